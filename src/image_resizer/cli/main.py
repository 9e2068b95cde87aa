"""命令行入口。"""

from __future__ import annotations

import logging
import queue
from pathlib import Path
from typing import List, Optional

import typer
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TextColumn,
    TimeElapsedColumn,
    TimeRemainingColumn,
)
from rich.text import Text

from image_resizer.core.config import DEFAULT_QUALITY, OutputFormat, ResizeMode, RunSettings, TargetSize
from image_resizer.core.exceptions import InvalidConfigurationError, ResizeFailed, RunStateError
from image_resizer.core.progress import (
    BatchEvent,
    LogLevel,
    LogMessage,
    ProgressChanged,
    RunCancelled,
    RunCompleted,
)
from image_resizer.core.report import write_csv_report
from image_resizer.processing.geometry import resolve_placement
from image_resizer.processing.orchestrator import BatchOrchestrator
from image_resizer.utils.logging import setup_logging

app = typer.Typer(help="批量将图片缩放/裁剪到统一尺寸并转换格式。")

_LOG_STYLES = {
    LogLevel.INFO: "",
    LogLevel.SUCCESS: "green",
    LogLevel.WARNING: "yellow",
    LogLevel.ERROR: "red",
}


def _parse_mode(value: str) -> ResizeMode:
    try:
        return ResizeMode(value.lower())
    except ValueError as exc:
        raise typer.BadParameter("模式必须为 fill 或 fit") from exc


def _parse_format(value: str) -> OutputFormat:
    lowered = value.lower()
    if lowered == "jpg":
        lowered = "jpeg"
    try:
        return OutputFormat(lowered)
    except ValueError as exc:
        raise typer.BadParameter("格式必须为 webp、png 或 jpeg") from exc


def _render_event(progress: Progress, task_id, event: BatchEvent) -> None:
    if isinstance(event, ProgressChanged):
        description = f"转换图片 {event.message}" if event.message else "转换图片"
        progress.update(task_id, completed=event.completed, total=event.total, description=description)
    elif isinstance(event, LogMessage):
        progress.log(Text(event.text, style=_LOG_STYLES[event.level]))


@app.command("run")
def run_cli(  # noqa: PLR0913
    source: List[Path] = typer.Argument(..., help="源图片文件或目录，可指定多个"),
    output: Path = typer.Option(..., "--output", "-o", help="输出目录"),
    width: int = typer.Option(800, "--width", help="输出宽度（像素）"),
    height: int = typer.Option(800, "--height", help="输出高度（像素）"),
    mode: str = typer.Option("fill", "--mode", help="尺寸适配模式，fill（裁剪）或 fit（留白）"),
    output_format: str = typer.Option("webp", "--format", "-f", help="输出格式 webp/png/jpeg"),
    quality: int = typer.Option(DEFAULT_QUALITY, "--quality", "-q", help="质量 0~100（webp/jpeg）"),
    lossless: bool = typer.Option(False, "--lossless", help="WebP 使用无损模式"),
    jpeg_background: str = typer.Option("#FFFFFF", "--jpeg-background", help="JPEG 透明区域填充色 (HEX)"),
    report: Optional[Path] = typer.Option(None, "--report", help="写出 CSV 报告的路径"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="输出调试日志"),
) -> None:
    """执行批量转换。"""

    setup_logging(logging.DEBUG if verbose else logging.WARNING)

    settings = RunSettings(
        resize_mode=_parse_mode(mode),
        target_size=TargetSize(width=width, height=height),
        output_format=_parse_format(output_format),
        quality=quality,
        lossless=lossless,
        output_dir=output.expanduser().resolve(),
        jpeg_background=jpeg_background,
    )

    events: "queue.Queue[BatchEvent]" = queue.Queue()
    orchestrator = BatchOrchestrator(listener=events.put)
    try:
        orchestrator.set_settings(settings)
    except InvalidConfigurationError as exc:
        raise typer.BadParameter(str(exc)) from exc

    for path in source:
        path = path.expanduser().resolve()
        if path.is_dir():
            orchestrator.add_folder(path)
        else:
            orchestrator.add_items([path])

    progress = Progress(
        SpinnerColumn(),
        TextColumn("[bold blue]{task.description}"),
        BarColumn(),
        MofNCompleteColumn(),
        TimeElapsedColumn(),
        TimeRemainingColumn(),
    )

    with progress:
        task_id = progress.add_task("转换图片", total=orchestrator.total or None)
        try:
            orchestrator.start()
        except RunStateError as exc:
            _drain(events, progress, task_id)
            typer.echo(str(exc), err=True)
            raise typer.Exit(code=2) from exc

        finished = _wait_for_finish(orchestrator, events, progress, task_id)
        orchestrator.wait()
        _drain(events, progress, task_id)

    summary = finished.summary
    if report is not None:
        report_path = write_csv_report(orchestrator.items, report.expanduser().resolve())
        typer.echo(f"报告文件：{report_path}")

    typer.echo(
        f"处理{'已取消' if isinstance(finished, RunCancelled) else '完成'}："
        f"成功 {len(summary.succeeded)} 张，失败 {len(summary.failed)} 张，未处理 {len(summary.pending)} 张。"
    )
    if isinstance(finished, RunCancelled) or summary.failed:
        raise typer.Exit(code=1)


@app.command("placement")
def placement_cli(
    source_width: int = typer.Argument(..., help="源图宽度"),
    source_height: int = typer.Argument(..., help="源图高度"),
    target_width: int = typer.Argument(..., help="目标宽度"),
    target_height: int = typer.Argument(..., help="目标高度"),
    mode: str = typer.Option("fill", "--mode", help="fill 或 fit"),
) -> None:
    """打印源图在目标画布上的摆放矩形。"""

    try:
        rect = resolve_placement(
            (source_width, source_height),
            (target_width, target_height),
            _parse_mode(mode),
        )
    except ResizeFailed as exc:
        raise typer.BadParameter(str(exc)) from exc
    typer.echo(f"x={rect.x:g} y={rect.y:g} width={rect.width:g} height={rect.height:g}")


def _wait_for_finish(
    orchestrator: BatchOrchestrator,
    events: "queue.Queue[BatchEvent]",
    progress: Progress,
    task_id,
) -> RunCompleted | RunCancelled:
    """消费事件直到运行结束；期间任意位置的 Ctrl+C 都转为取消请求。"""

    finished = None
    while finished is None:
        try:
            event = events.get(timeout=0.2)
            if isinstance(event, (RunCompleted, RunCancelled)):
                finished = event
            _render_event(progress, task_id, event)
        except queue.Empty:
            continue
        except KeyboardInterrupt:
            orchestrator.cancel()
    return finished


def _drain(events: "queue.Queue[BatchEvent]", progress: Progress, task_id) -> None:
    while True:
        try:
            event = events.get_nowait()
        except queue.Empty:
            return
        _render_event(progress, task_id, event)


if __name__ == "__main__":
    app()
