"""核心数据模型定义。"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional

import numpy as np
from PIL import Image


@dataclass(slots=True)
class Raster:
    """RGBA 像素缓冲，形状为 (height, width, 4)，每通道 8 bit。

    每个处理阶段都返回新的 Raster，不在阶段之间共享同一块缓冲。
    """

    pixels: np.ndarray

    def __post_init__(self) -> None:
        if self.pixels.ndim != 3 or self.pixels.shape[2] != 4:
            raise ValueError(f"Raster 需要 (height, width, 4) 的数组，实际为 {self.pixels.shape}")
        if self.pixels.dtype != np.uint8:
            raise ValueError(f"Raster 需要 uint8 数组，实际为 {self.pixels.dtype}")

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    @property
    def size(self) -> tuple[int, int]:
        return self.width, self.height

    @classmethod
    def blank(cls, width: int, height: int) -> "Raster":
        """分配全透明画布。"""

        return cls(np.zeros((height, width, 4), dtype=np.uint8))

    @classmethod
    def from_image(cls, image: Image.Image) -> "Raster":
        rgba = image if image.mode == "RGBA" else image.convert("RGBA")
        return cls(np.array(rgba, dtype=np.uint8))

    def to_image(self) -> Image.Image:
        return Image.fromarray(self.pixels)


@dataclass(frozen=True, slots=True)
class PlacementRect:
    """缩放后的源图在目标画布上的绘制矩形（浮点坐标，可为负）。"""

    x: float
    y: float
    width: float
    height: float


class ItemStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    SUCCEEDED = "succeeded"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (ItemStatus.SUCCEEDED, ItemStatus.FAILED)


@dataclass(slots=True)
class BatchItem:
    """批处理列表中的一个源文件及其处理状态。"""

    source_path: Path
    status: ItemStatus = ItemStatus.PENDING
    output_path: Optional[Path] = None
    error_kind: Optional[str] = None
    message: Optional[str] = None

    def reset(self) -> None:
        self.status = ItemStatus.PENDING
        self.output_path = None
        self.error_kind = None
        self.message = None


class RunState(str, Enum):
    NOT_STARTED = "not-started"
    RUNNING = "running"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


@dataclass(slots=True)
class RunSummary:
    """一次批处理结束时的汇总。"""

    state: RunState
    total: int
    completed: int
    succeeded: list[BatchItem] = field(default_factory=list)
    failed: list[BatchItem] = field(default_factory=list)
    pending: list[BatchItem] = field(default_factory=list)
