"""处理任务的配置模型。"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional

from image_resizer.core.exceptions import InvalidConfigurationError
from image_resizer.utils.colors import parse_hex_color


class ResizeMode(str, Enum):
    """尺寸适配策略。"""

    FILL = "fill"  # 铺满画布，居中裁剪
    FIT = "fit"  # 完整显示，透明留白


class OutputFormat(str, Enum):
    """输出格式及其可用参数。"""

    WEBP = "webp"
    PNG = "png"
    JPEG = "jpeg"

    @property
    def extension(self) -> str:
        return _EXTENSIONS[self]

    @property
    def pillow_format(self) -> str:
        return _PILLOW_FORMATS[self]

    @property
    def supports_quality(self) -> bool:
        return self in (OutputFormat.WEBP, OutputFormat.JPEG)

    @property
    def supports_lossless(self) -> bool:
        return self is OutputFormat.WEBP


_EXTENSIONS = {
    OutputFormat.WEBP: "webp",
    OutputFormat.PNG: "png",
    OutputFormat.JPEG: "jpg",
}

_PILLOW_FORMATS = {
    OutputFormat.WEBP: "WEBP",
    OutputFormat.PNG: "PNG",
    OutputFormat.JPEG: "JPEG",
}


DEFAULT_QUALITY = 80


@dataclass(frozen=True, slots=True)
class TargetSize:
    """输出画布尺寸（像素）。"""

    width: int = 800
    height: int = 800

    @property
    def size(self) -> tuple[int, int]:
        return self.width, self.height

    def __str__(self) -> str:
        return f"{self.width}x{self.height}"


@dataclass(slots=True)
class RunSettings:
    """单次批处理共享的设置。"""

    resize_mode: ResizeMode = ResizeMode.FILL
    target_size: TargetSize = field(default_factory=TargetSize)
    output_format: OutputFormat = OutputFormat.WEBP
    quality: int = DEFAULT_QUALITY
    lossless: bool = False
    output_dir: Optional[Path] = None
    jpeg_background: str = "#FFFFFF"

    def validate(self) -> None:
        """检查设置是否合法，不合法时抛出 InvalidConfigurationError。"""

        width, height = self.target_size.size
        if not isinstance(width, int) or not isinstance(height, int):
            raise InvalidConfigurationError("目标尺寸必须为整数")
        if width <= 0 or height <= 0:
            raise InvalidConfigurationError(f"目标尺寸必须大于 0: {self.target_size}")
        if not 0 <= self.quality <= 100:
            raise InvalidConfigurationError(f"质量必须位于 0~100 之间: {self.quality}")
        parse_hex_color(self.jpeg_background)

    def ignored_options(self) -> list[str]:
        """返回当前输出格式不会使用的参数名。

        quality 仅在偏离默认值时才算作被忽略。
        """

        ignored = []
        fmt = self.output_format
        if self.lossless and not fmt.supports_lossless:
            ignored.append("lossless")
        if self.quality != DEFAULT_QUALITY and not fmt.supports_quality:
            ignored.append("quality")
        return ignored
