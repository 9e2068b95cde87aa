"""单个文件的完整处理流程：读取、解码、摆放、合成、编码、写出。"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from image_resizer.core.config import RunSettings
from image_resizer.core.exceptions import LoadFailed
from image_resizer.core.output_manager import OutputManager
from image_resizer.processing.codec import decode_image, encode_raster
from image_resizer.processing.compositor import composite
from image_resizer.processing.geometry import resolve_placement

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class ConversionTask:
    """描述单个图片转换任务。"""

    source_path: Path
    settings: RunSettings
    output_manager: OutputManager


def run_task(task: ConversionTask) -> Path:
    """执行一次转换并返回输出路径。

    每个阶段的失败以对应的 ItemProcessingError 子类抛出，由调用方记录到条目上。
    """

    settings = task.settings
    target_size = settings.target_size.size

    try:
        data = task.source_path.read_bytes()
    except OSError as exc:
        raise LoadFailed(f"无法读取文件: {task.source_path} ({exc.strerror or exc})") from exc

    source = decode_image(data)
    placement = resolve_placement(source.size, target_size, settings.resize_mode)
    LOGGER.debug("%s: %s -> %s, placement=%s", task.source_path.name, source.size, target_size, placement)
    canvas = composite(source, target_size, placement)

    encoded = encode_raster(
        canvas,
        settings.output_format,
        settings.quality,
        settings.lossless,
        jpeg_background=settings.jpeg_background,
    )

    destination = task.output_manager.destination_for(task.source_path, settings.output_format)
    task.output_manager.write_bytes(encoded, destination)
    return destination
