"""Rich progress display for long-running search phases."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import override

from rich.console import Console
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TaskID,
    TextColumn,
    TimeElapsedColumn,
)

from .protocols import ProgressReporter


def _stderr_console() -> Console:
    return Console(stderr=True)


@dataclass
class CliProgressReporter(ProgressReporter):
    """Shows one rich progress bar per phase (e.g. candidate enrichment).

    Output goes to stderr so piped stdout stays clean.
    """

    console: Console = field(default_factory=_stderr_console)
    _progress: Progress | None = field(default=None, init=False, repr=False)
    _task_id: TaskID | None = field(default=None, init=False, repr=False)

    def _build_progress(self) -> Progress:
        return Progress(
            SpinnerColumn(),
            TextColumn("[bold]{task.description}"),
            BarColumn(),
            MofNCompleteColumn(),
            TimeElapsedColumn(),
            console=self.console,
            transient=True,
        )

    @override
    def start(self, label: str, total: int | None) -> None:
        if self._progress is None:
            self._progress = self._build_progress()
            self._progress.start()
        if self._task_id is not None:
            self._progress.remove_task(self._task_id)
        self._task_id = self._progress.add_task(label, total=total)

    @override
    def advance(self, count: int) -> None:
        if self._progress is None or self._task_id is None:
            return
        self._progress.advance(self._task_id, count)

    @override
    def finish(self) -> None:
        if self._progress is None:
            return
        if self._task_id is not None:
            self._progress.remove_task(self._task_id)
            self._task_id = None
        self._progress.stop()
        self._progress = None
