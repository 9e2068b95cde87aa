"""报告生成工具。"""

from __future__ import annotations

import csv
from pathlib import Path
from typing import Iterable

from image_resizer.core.models import BatchItem

HEADER = ["source_path", "output_path", "status", "error_kind", "message"]


def write_csv_report(items: Iterable[BatchItem], report_path: Path) -> Path:
    """将每个条目的处理结果写入 CSV 报告。"""

    report_path.parent.mkdir(parents=True, exist_ok=True)
    with report_path.open("w", newline="", encoding="utf-8") as handle:
        writer = csv.writer(handle)
        writer.writerow(HEADER)
        for item in items:
            writer.writerow(
                [
                    str(item.source_path),
                    str(item.output_path) if item.output_path else "",
                    item.status.value,
                    item.error_kind or "",
                    item.message or "",
                ]
            )
    return report_path
