"""批处理编排：按顺序转换列表中的文件，发出状态/进度/日志事件，支持协作式取消。"""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Iterable, Optional

from image_resizer.core.config import RunSettings
from image_resizer.core.exceptions import InvalidConfigurationError, ItemProcessingError, RunStateError
from image_resizer.core.models import BatchItem, ItemStatus, RunState, RunSummary
from image_resizer.core.output_manager import OutputManager
from image_resizer.core.progress import (
    BatchEvent,
    EventListener,
    ItemStatusChanged,
    LogLevel,
    LogMessage,
    ProgressChanged,
    RunCancelled,
    RunCompleted,
)
from image_resizer.core.scanner import collect_images, is_supported_image
from image_resizer.processing.worker import ConversionTask, run_task

LOGGER = logging.getLogger(__name__)

_LOG_LEVELS = {
    LogLevel.INFO: logging.INFO,
    LogLevel.SUCCESS: logging.INFO,
    LogLevel.WARNING: logging.WARNING,
    LogLevel.ERROR: logging.ERROR,
}


class BatchOrchestrator:
    """持有批处理条目列表，并在单个后台线程中逐个处理。

    条目只在运行期间由编排器修改；调用方通过事件读取状态，
    不应在运行期间修改列表。事件在执行处理的线程上同步回调，
    同一条目的事件总是先于下一个条目的事件发出。
    """

    def __init__(self, settings: Optional[RunSettings] = None, listener: EventListener = None) -> None:
        self.items: list[BatchItem] = []
        self.logs: list[LogMessage] = []
        self.settings = settings or RunSettings()
        self.completed = 0
        self._listener = listener
        self._state = RunState.NOT_STARTED
        self._state_lock = threading.RLock()
        self._cancel_event = threading.Event()
        self._worker_thread: Optional[threading.Thread] = None
        self._summary: Optional[RunSummary] = None

    # ---------------------- 状态查询 ---------------------- #

    @property
    def state(self) -> RunState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._state is RunState.RUNNING

    @property
    def total(self) -> int:
        return len(self.items)

    def summary(self) -> RunSummary:
        """按当前条目状态生成汇总。"""

        return RunSummary(
            state=self._state,
            total=self.total,
            completed=self.completed,
            succeeded=[item for item in self.items if item.status is ItemStatus.SUCCEEDED],
            failed=[item for item in self.items if item.status is ItemStatus.FAILED],
            pending=[item for item in self.items if item.status is ItemStatus.PENDING],
        )

    # ---------------------- 列表与设置 ---------------------- #

    def add_items(self, paths: Iterable[Path]) -> list[BatchItem]:
        """追加文件到列表末尾；不去重，只检查文件是否存在。"""

        self._ensure_idle("运行期间不能添加文件")
        added: list[BatchItem] = []
        for path in paths:
            path = Path(path)
            if not path.is_file():
                self._log(f"文件不存在，已忽略: {path}", LogLevel.WARNING)
                continue
            added.append(BatchItem(source_path=path))
        self.items.extend(added)
        self._log(f"已添加 {len(added)} 张图片。")
        return added

    def add_folder(self, directory: Path) -> list[BatchItem]:
        """扫描目录（不递归）并追加其中可识别的图片。"""

        self._ensure_idle("运行期间不能添加文件")
        directory = Path(directory)
        if not directory.is_dir():
            self._log(f"无法读取目录: {directory}", LogLevel.ERROR)
            return []
        added = [BatchItem(source_path=path) for path in collect_images(directory)]
        self.items.extend(added)
        self._log(f"已从目录 {directory.name} 添加 {len(added)} 张图片。")
        return added

    def add_dropped(self, paths: Iterable[Path]) -> list[BatchItem]:
        """拖放语义：目录会被扫描，文件只接受可识别的扩展名。"""

        self._ensure_idle("运行期间不能添加文件")
        added: list[BatchItem] = []
        for path in paths:
            path = Path(path)
            if path.is_dir():
                found = [BatchItem(source_path=p) for p in collect_images(path)]
                if found:
                    self.items.extend(found)
                    self._log(f"拖入目录：从 {path.name} 添加 {len(found)} 张图片")
                else:
                    self._log(f"拖入的目录中没有可识别的图片: {path.name}")
                added.extend(found)
            elif path.is_file() and is_supported_image(path):
                item = BatchItem(source_path=path)
                self.items.append(item)
                added.append(item)
                self._log(f"拖入文件: {path.name}")
        return added

    def set_settings(self, settings: RunSettings) -> None:
        self._ensure_idle("运行期间不能修改设置")
        settings.validate()
        self.settings = settings
        for option in settings.ignored_options():
            self._log(
                f"{settings.output_format.value.upper()} 格式不使用 {option} 参数，已忽略。",
                LogLevel.WARNING,
            )

    def clear(self) -> None:
        """清空列表并重置计数。"""

        self._ensure_idle("运行期间不能清空列表")
        self.items.clear()
        self.completed = 0
        self._summary = None
        self._state = RunState.NOT_STARTED
        self._log("列表已清空。")

    # ---------------------- 运行控制 ---------------------- #

    def start(self) -> threading.Thread:
        """在后台线程中开始处理，立即返回。"""

        output_manager = self._begin()
        self._worker_thread = threading.Thread(
            target=self._execute,
            args=(output_manager,),
            name="batch-worker",
            daemon=True,
        )
        self._worker_thread.start()
        return self._worker_thread

    def run(self) -> RunSummary:
        """在当前线程中同步执行一次批处理。"""

        output_manager = self._begin()
        return self._execute(output_manager)

    def cancel(self) -> None:
        """请求取消；当前条目处理完后生效。"""

        if not self.is_running:
            return
        if not self._cancel_event.is_set():
            self._cancel_event.set()
            self._log("用户已请求取消，当前图片完成后停止。")

    def wait(self, timeout: Optional[float] = None) -> Optional[RunSummary]:
        """等待后台线程结束并返回汇总；超时仍未结束时返回 None。"""

        thread = self._worker_thread
        if thread is not None:
            thread.join(timeout)
            if thread.is_alive():
                return None
        return self._summary

    def _begin(self) -> OutputManager:
        with self._state_lock:
            if self._state is RunState.RUNNING:
                self._reject("已有任务正在执行。")
            if self.settings.output_dir is None:
                self._reject("错误：未选择输出目录。")
            if not self.items:
                self._reject("错误：没有需要处理的图片。")
            try:
                self.settings.validate()
                output_manager = OutputManager(self.settings.output_dir)
            except InvalidConfigurationError as exc:
                self._reject(f"错误：{exc}")

            for item in self.items:
                item.reset()
            self.completed = 0
            self._summary = None
            self._cancel_event.clear()
            self._state = RunState.RUNNING
        return output_manager

    def _execute(self, output_manager: OutputManager) -> RunSummary:
        settings = self.settings
        total = self.total
        self._log(
            f"开始转换 {total} 张图片（{settings.resize_mode.value}, {settings.target_size}, "
            f"{settings.output_format.value}）..."
        )

        cancelled = False
        try:
            for index, item in enumerate(self.items):
                if self._cancel_event.is_set():
                    cancelled = True
                    break
                self._process_item(index, item, ConversionTask(item.source_path, settings, output_manager))
                self.completed += 1
                self._emit(ProgressChanged(completed=self.completed, total=total, message=item.source_path.name))
        except Exception:
            # 事件回调自身出错时中止本次运行，不能停留在 RUNNING
            LOGGER.exception("批处理异常中止")
            self._state = RunState.CANCELLED
            self._summary = self.summary()
            raise

        return self._finish(cancelled)

    def _process_item(self, index: int, item: BatchItem, task: ConversionTask) -> None:
        self._set_status(index, item, ItemStatus.PROCESSING)
        try:
            item.output_path = run_task(task)
        except ItemProcessingError as exc:
            item.error_kind = exc.kind
            item.message = str(exc)
            self._set_status(index, item, ItemStatus.FAILED)
            self._log(f"✗ 失败: {item.source_path.name} - {exc.kind}: {exc}", LogLevel.ERROR)
        except Exception as exc:  # noqa: BLE001
            LOGGER.exception("处理 %s 时出现未预期的异常", item.source_path)
            item.error_kind = "UnexpectedError"
            item.message = str(exc)
            self._set_status(index, item, ItemStatus.FAILED)
            self._log(f"✗ 失败: {item.source_path.name} - {exc}", LogLevel.ERROR)
        else:
            self._set_status(index, item, ItemStatus.SUCCEEDED)
            self._log(f"✓ 已转换: {item.source_path.name} -> {item.output_path.name}", LogLevel.SUCCESS)

    def _finish(self, cancelled: bool) -> RunSummary:
        if cancelled:
            self._state = RunState.CANCELLED
            summary = self.summary()
            self._summary = summary
            self._log(f"处理已取消：完成 {summary.completed}/{summary.total} 张。")
            self._emit(RunCancelled(summary=summary))
        else:
            self._state = RunState.COMPLETED
            summary = self.summary()
            self._summary = summary
            self._log(f"批处理完成：成功 {len(summary.succeeded)} 张，失败 {len(summary.failed)} 张。")
            self._emit(RunCompleted(summary=summary))
        return summary

    # ---------------------- 内部工具 ---------------------- #

    def _set_status(self, index: int, item: BatchItem, status: ItemStatus) -> None:
        item.status = status
        self._emit(ItemStatusChanged(item_id=index, status=status, item=item))

    def _ensure_idle(self, reason: str) -> None:
        if self.is_running:
            raise RunStateError(reason)

    def _reject(self, text: str) -> None:
        self._log(text, LogLevel.ERROR)
        raise RunStateError(text)

    def _log(self, text: str, level: LogLevel = LogLevel.INFO) -> None:
        LOGGER.log(_LOG_LEVELS[level], text)
        message = LogMessage(text=text, level=level)
        self.logs.append(message)
        self._emit(message)

    def _emit(self, event: BatchEvent) -> None:
        if self._listener is None:
            return
        self._listener(event)
