"""编解码：字节与 Raster 之间的转换，基于 Pillow（HEIC 由 pillow-heif 提供）。"""

from __future__ import annotations

import io
import logging

import numpy as np
from PIL import Image, ImageOps, UnidentifiedImageError
from pillow_heif import register_heif_opener

from image_resizer.core.config import OutputFormat
from image_resizer.core.exceptions import ConversionFailed, EncodingFailed, LoadFailed
from image_resizer.core.models import Raster
from image_resizer.utils.colors import parse_hex_color

LOGGER = logging.getLogger(__name__)

register_heif_opener()

WEBP_METHOD = 4

# 高位深灰度模式：按 16 位取值范围缩放到 8 位
HIGH_DEPTH_MODES = {"I", "I;16", "I;16L", "I;16B", "I;16N", "F"}


def decode_image(data: bytes) -> Raster:
    """解码图片字节，执行 EXIF 旋转并统一为 RGBA。

    多帧图片只取第一帧。
    """

    try:
        with Image.open(io.BytesIO(data)) as img:
            img.load()
            oriented = ImageOps.exif_transpose(img)
            if oriented.mode in HIGH_DEPTH_MODES:
                oriented = _reduce_depth(oriented)
            return Raster.from_image(oriented)
    except (UnidentifiedImageError, OSError, ValueError, Image.DecompressionBombError) as exc:
        LOGGER.debug("无法识别图像数据: %s", exc)
        raise LoadFailed(f"无法加载图像: {exc}") from exc


def _reduce_depth(image: Image.Image) -> Image.Image:
    """将 16 位 / 32 位灰度图缩放为 8 位 L 模式。

    直接 convert 会把大于 255 的值截断成白色。
    """

    values = np.asarray(image, dtype=np.float64)
    scaled = np.clip(values, 0, 65535) / 257.0
    return Image.fromarray(np.rint(scaled).astype(np.uint8))


def encode_raster(
    raster: Raster,
    output_format: OutputFormat,
    quality: int = 80,
    lossless: bool = False,
    *,
    jpeg_background: str = "#FFFFFF",
) -> bytes:
    """将 Raster 编码为目标格式的字节。

    - PNG 始终无损，忽略 quality。
    - JPEG 不支持透明通道，先与 ``jpeg_background`` 合成为 RGB。
    - WebP 在 lossless 时使用真正的无损模式，quality 固定为 100（压缩力度）。
    """

    error_type = EncodingFailed if output_format is OutputFormat.WEBP else ConversionFailed
    quality = max(0, min(int(quality), 100))

    image = raster.to_image()
    save_params: dict[str, object] = {}
    if output_format is OutputFormat.JPEG:
        image = _flatten(image, jpeg_background)
        save_params.update(quality=quality, optimize=True)
    elif output_format is OutputFormat.WEBP:
        save_params.update(method=WEBP_METHOD)
        if lossless:
            save_params.update(lossless=True, quality=100, exact=True)
        else:
            save_params.update(quality=quality)
    else:
        save_params.update(optimize=True)

    buffer = io.BytesIO()
    try:
        image.save(buffer, format=output_format.pillow_format, **save_params)
    except (OSError, ValueError, KeyError) as exc:
        raise error_type(f"{output_format.pillow_format} 编码失败: {exc}") from exc
    finally:
        image.close()
    return buffer.getvalue()


def _flatten(image: Image.Image, background: str) -> Image.Image:
    """按 alpha 将 RGBA 图像合成到纯色背景上。"""

    canvas = Image.new("RGB", image.size, parse_hex_color(background))
    canvas.paste(image, mask=image.getchannel("A"))
    image.close()
    return canvas
