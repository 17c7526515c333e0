"""Terminal progress rendering for the discovery and fetch stages."""

from __future__ import annotations

from dataclasses import dataclass
from threading import Lock

from rich.console import Console
from rich.errors import LiveError
from rich.progress import (
    BarColumn,
    Progress,
    ProgressColumn,
    SpinnerColumn,
    Task,
    TaskID,
    TaskProgressColumn,
    TextColumn,
    TimeElapsedColumn,
)
from rich.text import Text

from ..engine.thread_pool import CompletionEvent

STAGE_LABELS = {
    "discovery": "Scanning pages",
    "fetch": "Fetching questions",
}


@dataclass
class ProgressState:
    total: int | None
    success: int = 0
    failed: int = 0


class RateColumn(ProgressColumn):
    """Items completed per second, e.g. ``3.2 it/s``."""

    def render(self, task: Task) -> Text:
        speed = task.finished_speed or task.speed
        if speed is None:
            return Text("", style="progress.percentage")
        return Text(f"{speed:.1f} it/s", style="progress.percentage")


class ProgressReporter:
    """Passive observer turning pool completion events into a Rich progress row.

    Falls back to counting silently when stdout is not a terminal.
    """

    def __init__(self, stage: str, enabled: bool = True, console: Console | None = None) -> None:
        self.stage = stage
        self.label = STAGE_LABELS.get(stage, stage)
        self.enabled = enabled
        self.state: ProgressState | None = None
        self._console = console
        self._progress: Progress | None = None
        self._task_id: TaskID | None = None
        self._lock = Lock()

    def start(self, total: int | None = None) -> None:
        """Open the row; a ``None`` total stays indeterminate until the first event."""

        self.state = ProgressState(total=total)
        if not self.enabled:
            return
        if self._console is None:
            self._console = Console(stderr=True)
        if not self._console.is_terminal:
            # Non-interactive output: keep counters only.
            self.enabled = False
            return
        self._progress = Progress(
            SpinnerColumn(style="cyan"),
            TextColumn("[bold blue]{task.fields[label]:<20}", justify="left"),
            BarColumn(bar_width=None, complete_style="green", finished_style="green"),
            TaskProgressColumn(show_speed=False),
            TimeElapsedColumn(),
            RateColumn(),
            TextColumn("[green]✓{task.fields[success]:>4}", justify="right"),
            TextColumn("[red]✗{task.fields[failed]:>4}", justify="right"),
            console=self._console,
            transient=True,
            refresh_per_second=12,
            expand=True,
        )
        try:
            self._progress.__enter__()
        except LiveError:
            # Another live display owns the console.
            self.enabled = False
            self._progress = None
            return
        self._task_id = self._progress.add_task(
            self.stage, total=total, label=self.label, success=0, failed=0
        )

    def observe(self, event: CompletionEvent) -> None:
        if event.stage != self.stage:
            return
        with self._lock:
            if self.state is None:
                self.state = ProgressState(total=event.total)
            self.state.total = event.total
            if event.ok:
                self.state.success += 1
            else:
                self.state.failed += 1
            if self._progress is not None and self._task_id is not None:
                self._progress.update(
                    self._task_id,
                    completed=event.completed,
                    total=event.total,
                    success=self.state.success,
                    failed=self.state.failed,
                )

    __call__ = observe

    def close(self) -> None:
        if self._progress is not None:
            self._progress.stop()
            self._progress.__exit__(None, None, None)
            self._progress = None
        self._task_id = None

    def summary(self) -> dict[str, int]:
        if not self.state:
            return {"success": 0, "failed": 0}
        return {"success": self.state.success, "failed": self.state.failed}


__all__ = ["ProgressReporter", "ProgressState", "RateColumn", "STAGE_LABELS"]
