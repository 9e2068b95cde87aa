"""画布合成：把缩放后的源图按摆放矩形复制到透明画布上。"""

from __future__ import annotations

import logging
import math
from typing import Optional

import numpy as np
from PIL import Image

from image_resizer.core.exceptions import ResizeFailed
from image_resizer.core.models import PlacementRect, Raster

LOGGER = logging.getLogger(__name__)

RESAMPLE = Image.Resampling.LANCZOS


def composite(source: Raster, target_size: tuple[int, int], placement: PlacementRect) -> Raster:
    """返回尺寸恰好为 ``target_size`` 的新 Raster。

    画布初始为全透明，源像素直接覆盖画布像素（不做 alpha 混合），
    落在画布以外的部分被丢弃，fill 模式的居中裁剪即由此实现。
    只对可见区域重采样，不会先放大整张图再裁剪。
    """

    target_w, target_h = target_size
    if target_w <= 0 or target_h <= 0:
        raise ResizeFailed(f"目标尺寸不合法: {target_w}x{target_h}")
    if source.width <= 0 or source.height <= 0:
        raise ResizeFailed(f"源图尺寸不合法: {source.width}x{source.height}")
    if placement.width <= 0 or placement.height <= 0:
        raise ResizeFailed(f"摆放矩形不合法: {placement}")

    try:
        canvas = Raster.blank(target_w, target_h)
    except (MemoryError, ValueError) as exc:
        raise ResizeFailed(f"无法分配 {target_w}x{target_h} 的画布") from exc

    x_span = _visible_span(placement.x, placement.width, target_w)
    y_span = _visible_span(placement.y, placement.height, target_h)
    if x_span is None or y_span is None:
        LOGGER.debug("摆放矩形完全位于画布之外: %s", placement)
        return canvas

    left, right = x_span
    top, bottom = y_span
    box = (
        _source_coord(left, placement.x, placement.width, source.width),
        _source_coord(top, placement.y, placement.height, source.height),
        _source_coord(right, placement.x, placement.width, source.width),
        _source_coord(bottom, placement.y, placement.height, source.height),
    )
    if box[2] <= box[0] or box[3] <= box[1]:
        box = (0.0, 0.0, float(source.width), float(source.height))

    try:
        with source.to_image() as src_image:
            resized = src_image.resize((right - left, bottom - top), RESAMPLE, box=box)
        with resized:
            canvas.pixels[top:bottom, left:right] = np.asarray(resized, dtype=np.uint8)
    except (MemoryError, ValueError) as exc:
        raise ResizeFailed(f"缩放失败: {exc}") from exc

    return canvas


def _visible_span(offset: float, length: float, limit: int) -> Optional[tuple[int, int]]:
    """把浮点区间 [offset, offset + length) 栅格化并裁到 [0, limit)。"""

    start = math.floor(offset + 0.5)
    end = math.floor(offset + length + 0.5)
    if end <= start:
        # 不足半个像素时至少保留一个像素，落在区间中心。
        start = math.floor(offset + length / 2.0)
        end = start + 1

    start = max(start, 0)
    end = min(end, limit)
    if end <= start:
        return None
    return start, end


def _source_coord(dest: int, offset: float, length: float, source_length: int) -> float:
    """画布坐标映射回源图坐标，并限制在源图范围内。"""

    value = (dest - offset) * source_length / length
    return min(max(value, 0.0), float(source_length))
