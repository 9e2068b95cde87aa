"""源图在固定尺寸画布上的摆放计算。"""

from __future__ import annotations

from image_resizer.core.config import ResizeMode
from image_resizer.core.exceptions import ResizeFailed
from image_resizer.core.models import PlacementRect


def resolve_placement(
    source_size: tuple[int, int],
    target_size: tuple[int, int],
    mode: ResizeMode,
) -> PlacementRect:
    """计算缩放后的绘制矩形，两个方向都居中。

    fill 取较大缩放比，溢出部分由画布边界裁掉（偏移可为负）；
    fit 取较小缩放比，剩余区域保持透明。
    """

    source_w, source_h = source_size
    target_w, target_h = target_size
    if source_w <= 0 or source_h <= 0:
        raise ResizeFailed(f"源图尺寸不合法: {source_w}x{source_h}")
    if target_w <= 0 or target_h <= 0:
        raise ResizeFailed(f"目标尺寸不合法: {target_w}x{target_h}")

    width_ratio = target_w / source_w
    height_ratio = target_h / source_h

    if mode is ResizeMode.FILL:
        scale = max(width_ratio, height_ratio)
    elif mode is ResizeMode.FIT:
        scale = min(width_ratio, height_ratio)
    else:
        raise ResizeFailed(f"未知的尺寸模式: {mode}")

    # 约束轴精确等于目标尺寸
    scaled_w = float(target_w) if scale == width_ratio else source_w * scale
    scaled_h = float(target_h) if scale == height_ratio else source_h * scale

    return PlacementRect(
        x=(target_w - scaled_w) / 2.0,
        y=(target_h - scaled_h) / 2.0,
        width=scaled_w,
        height=scaled_h,
    )
