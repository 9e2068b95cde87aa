"""批处理过程中向调用方发出的事件。"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Union

from image_resizer.core.models import BatchItem, ItemStatus, RunSummary


class LogLevel(str, Enum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


@dataclass(slots=True)
class LogMessage:
    text: str
    level: LogLevel = LogLevel.INFO


@dataclass(slots=True)
class ItemStatusChanged:
    """条目状态变化；item_id 为条目在列表中的位置。"""

    item_id: int
    status: ItemStatus
    item: BatchItem


@dataclass(slots=True)
class ProgressChanged:
    completed: int
    total: int
    message: Optional[str] = None  # 刚处理完的文件名


@dataclass(slots=True)
class RunCompleted:
    summary: RunSummary


@dataclass(slots=True)
class RunCancelled:
    summary: RunSummary


BatchEvent = Union[LogMessage, ItemStatusChanged, ProgressChanged, RunCompleted, RunCancelled]
EventListener = Optional[Callable[[BatchEvent], None]]
