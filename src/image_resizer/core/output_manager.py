"""输出路径选择与写入模块。"""

from __future__ import annotations

import logging
from itertools import count
from pathlib import Path

from image_resizer.core.config import OutputFormat
from image_resizer.core.exceptions import InvalidConfigurationError, WriteFailed

LOGGER = logging.getLogger(__name__)


def resolve_unique_path(directory: Path, base_name: str, extension: str) -> Path:
    """返回目录下不存在的输出路径。

    依次尝试 ``base.ext``、``base-1.ext``、``base-2.ext`` ……
    存在性检查与写入之间不做原子保护。
    """

    candidate = directory / f"{base_name}.{extension}"
    if not candidate.exists():
        return candidate

    for idx in count(1):
        candidate = directory / f"{base_name}-{idx}.{extension}"
        if not candidate.exists():
            return candidate

    # 理论上不会执行到此处
    return candidate


class OutputManager:
    """负责输出目录、文件命名与字节写入。"""

    def __init__(self, output_dir: Path) -> None:
        self.output_dir = output_dir.expanduser().resolve()
        try:
            self.output_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise InvalidConfigurationError(f"无法创建输出目录: {self.output_dir}") from exc
        if not self.output_dir.is_dir():
            raise InvalidConfigurationError(f"输出路径不是目录: {self.output_dir}")

    def destination_for(self, source_path: Path, output_format: OutputFormat) -> Path:
        """按源文件名（去掉扩展名）与输出格式确定不冲突的路径。"""

        destination = resolve_unique_path(self.output_dir, source_path.stem, output_format.extension)
        if destination.stem != source_path.stem:
            LOGGER.debug("目标已存在，重命名为 %s", destination.name)
        return destination

    def write_bytes(self, data: bytes, destination: Path) -> None:
        try:
            destination.write_bytes(data)
        except OSError as exc:
            raise WriteFailed(f"写入文件失败: {destination} ({exc.strerror or exc})") from exc
