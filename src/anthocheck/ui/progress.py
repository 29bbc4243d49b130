"""Rich progress display driven by ``on_progress(event, payload)`` callbacks."""

from __future__ import annotations

from types import TracebackType

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


class ProgressReporter:
    """Map pipeline events onto rich progress tasks.

    Known events:
    - ``load:start`` {files} / ``document:loaded`` / ``load:finalized``
    - ``manifest:start`` {path} / ``manifest:parsed`` {entries}
    - ``validate:start`` / ``validate:finalized`` {issues}
    Other events, such as ``registry:built``, are ignored.
    """

    def __init__(self, console: Console | None = None, *, enabled: bool = True) -> None:
        self.console = console or Console(stderr=True)
        self.progress = Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            MofNCompleteColumn(),
            TimeElapsedColumn(),
            console=self.console,
            transient=True,
            disable=not enabled,
        )
        self._tasks: dict[str, TaskID] = {}
        self._totals: dict[str, int] = {}

    def __enter__(self) -> ProgressReporter:
        self.progress.start()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.progress.stop()

    def add_step(self, description: str, total: int | None = None) -> TaskID:
        return self.progress.add_task(description, total=total)

    def finish_task(self, task_id: TaskID) -> None:
        task = next((t for t in self.progress.tasks if t.id == task_id), None)
        if task is not None and task.total is not None:
            self.progress.update(task_id, completed=task.total)
        self.progress.remove_task(task_id)

    def _start(self, key: str, description: str, total: int | None) -> None:
        if key in self._tasks:
            self._finish(key)
        self._tasks[key] = self.add_step(description, total=total)
        if total is not None:
            self._totals[key] = total

    def _advance(self, key: str) -> None:
        if key in self._tasks:
            self.progress.advance(self._tasks[key])

    def _finish(self, key: str) -> None:
        task_id = self._tasks.pop(key, None)
        if task_id is not None:
            self.finish_task(task_id)

    def emit(self, event: str, payload: dict[str, int | str]) -> None:
        if event == "load:start":
            total = payload.get("files")
            self._start("documents", "Loading documents", total if isinstance(total, int) else None)
        elif event == "document:loaded":
            self._advance("documents")
        elif event == "load:finalized":
            self._finish("documents")
        elif event == "manifest:start":
            self._start("manifest", f"Parsing {payload.get('path', 'manifest')}", None)
        elif event == "manifest:parsed":
            self._finish("manifest")
        elif event == "validate:start":
            self._start("validate", "Validating cross-references", None)
        elif event == "validate:finalized":
            self._finish("validate")


__all__ = ["ProgressReporter"]
