"""文件扫描与筛选逻辑。"""

from __future__ import annotations

from pathlib import Path
from typing import Iterator

IMAGE_EXTENSIONS = {".png", ".jpg", ".jpeg", ".heic", ".tiff", ".webp"}


def is_supported_image(path: Path) -> bool:
    return path.suffix.lower() in IMAGE_EXTENSIONS


def _iter_candidate_files(path: Path) -> Iterator[Path]:
    """遍历目录下一层的所有文件，不进入子目录。"""

    if not path.is_dir():
        return

    for candidate in path.iterdir():
        if candidate.is_file():
            yield candidate


def collect_images(directory: Path) -> list[Path]:
    """扫描目录，返回扩展名可识别的图片文件（按路径排序，忽略大小写）。"""

    collected = [
        candidate
        for candidate in _iter_candidate_files(directory)
        if is_supported_image(candidate)
    ]
    collected.sort(key=lambda x: str(x).lower())
    return collected
