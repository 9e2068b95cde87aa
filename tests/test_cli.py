"""环节四：命令行入口。"""

from __future__ import annotations

import csv
import queue
from pathlib import Path

from PIL import Image
from typer.testing import CliRunner

from image_resizer.cli.main import _render_event, _wait_for_finish, app
from image_resizer.core.models import RunState, RunSummary
from image_resizer.core.progress import LogMessage, ProgressChanged, RunCancelled, RunCompleted

runner = CliRunner()


def _make_inputs(folder: Path) -> None:
    folder.mkdir()
    Image.new("RGB", (120, 60), "orange").save(folder / "wide.png")
    Image.new("RGB", (30, 90), "purple").save(folder / "tall.jpg")
    (folder / "notes.txt").write_text("ignored")


def test_run_converts_folder(tmp_path: Path) -> None:
    source = tmp_path / "input"
    output = tmp_path / "output"
    _make_inputs(source)

    result = runner.invoke(
        app,
        ["run", str(source), "-o", str(output), "--width", "50", "--height", "40", "--mode", "fit", "--format", "png"],
    )

    assert result.exit_code == 0, result.output
    produced = sorted(path.name for path in output.iterdir())
    assert produced == ["tall.png", "wide.png"]
    for path in output.iterdir():
        with Image.open(path) as img:
            assert img.size == (50, 40)


def test_run_reports_failures_with_exit_code(tmp_path: Path) -> None:
    source = tmp_path / "input"
    output = tmp_path / "output"
    _make_inputs(source)
    (source / "broken.webp").write_text("not an image")
    report = tmp_path / "report.csv"

    result = runner.invoke(app, ["run", str(source), "-o", str(output), "--format", "jpg", "--report", str(report)])

    assert result.exit_code == 1
    with report.open("r", encoding="utf-8", newline="") as handle:
        rows = list(csv.DictReader(handle))
    assert [row["status"] for row in rows] == ["failed", "succeeded", "succeeded"]
    assert rows[0]["error_kind"] == "LoadFailed"
    assert rows[1]["output_path"].endswith("tall.jpg")


def test_run_with_nothing_to_do(tmp_path: Path) -> None:
    empty = tmp_path / "empty"
    empty.mkdir()

    result = runner.invoke(app, ["run", str(empty), "-o", str(tmp_path / "output")])

    assert result.exit_code == 2


def test_run_rejects_bad_quality(tmp_path: Path) -> None:
    source = tmp_path / "input"
    _make_inputs(source)

    result = runner.invoke(app, ["run", str(source), "-o", str(tmp_path / "output"), "--quality", "150"])

    assert result.exit_code != 0
    assert not (tmp_path / "output").exists()


def test_placement_command() -> None:
    result = runner.invoke(app, ["placement", "200", "100", "800", "800", "--mode", "fill"])

    assert result.exit_code == 0
    assert "x=-400 y=0 width=1600 height=800" in result.output


class FakeProgress:
    """记录 update/log 调用；可设置在第 N 次 log 时模拟 Ctrl+C。"""

    def __init__(self, interrupt_on_log: int | None = None) -> None:
        self.updates: list[dict] = []
        self.logged: list[str] = []
        self._interrupt_on_log = interrupt_on_log

    def update(self, task_id, **fields) -> None:
        self.updates.append(fields)

    def log(self, text) -> None:
        if self._interrupt_on_log is not None and len(self.logged) == self._interrupt_on_log:
            self._interrupt_on_log = None
            raise KeyboardInterrupt
        self.logged.append(str(text))


class FakeOrchestrator:
    def __init__(self) -> None:
        self.cancel_calls = 0

    def cancel(self) -> None:
        self.cancel_calls += 1


def _summary(state: RunState) -> RunSummary:
    return RunSummary(state=state, total=2, completed=1)


def test_progress_description_shows_current_file() -> None:
    progress = FakeProgress()

    _render_event(progress, 0, ProgressChanged(completed=1, total=3, message="wide.png"))
    _render_event(progress, 0, ProgressChanged(completed=2, total=3))

    assert progress.updates[0] == {"completed": 1, "total": 3, "description": "转换图片 wide.png"}
    assert progress.updates[1]["description"] == "转换图片"


def test_ctrl_c_while_rendering_requests_cancel() -> None:
    events: queue.Queue = queue.Queue()
    events.put(LogMessage("第一条"))
    events.put(LogMessage("第二条"))
    events.put(RunCancelled(_summary(RunState.CANCELLED)))
    orchestrator = FakeOrchestrator()
    progress = FakeProgress(interrupt_on_log=0)

    finished = _wait_for_finish(orchestrator, events, progress, 0)

    assert orchestrator.cancel_calls == 1
    assert isinstance(finished, RunCancelled)
    assert progress.logged == ["第二条"]


def test_ctrl_c_during_progress_update_requests_cancel() -> None:
    class InterruptingProgress(FakeProgress):
        def update(self, task_id, **fields) -> None:
            raise KeyboardInterrupt

    events: queue.Queue = queue.Queue()
    events.put(ProgressChanged(completed=2, total=2, message="tall.jpg"))
    events.put(RunCompleted(_summary(RunState.COMPLETED)))
    orchestrator = FakeOrchestrator()

    finished = _wait_for_finish(orchestrator, events, InterruptingProgress(), 0)

    assert orchestrator.cancel_calls == 1
    assert isinstance(finished, RunCompleted)
