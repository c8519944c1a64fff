"""ProgressPollingObserver — renders a Rich progress bar for a polled run."""

from rich.console import Console
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    TaskID,
    TextColumn,
    TimeElapsedColumn,
)

_STATUS_STYLES: dict[str, str] = {
    "QUEUED": "dim white",
    "RUNNING": "cyan",
    "COMPLETED": "bright_green",
    "FAILED": "red",
    "CANCELLED": "yellow",
}


class ProgressPollingObserver:
    """Shows processed/total cases for the polled run.

    Only polling_started, run_refreshed and polling_stopped produce output;
    all other events are no-ops.

    Pass ``disabled=True`` to suppress all terminal output (useful in tests).

    Does NOT inherit from PollingObserver (structural typing via Protocol).
    """

    def __init__(self, disabled: bool = False) -> None:
        self._disabled = disabled
        self._progress: Progress | None = None
        self._task_id: TaskID | None = None
        self.last_status: str | None = None
        self.processed_cases = 0
        self.total_cases = 0

    def _description(self, run_id: int, status: str | None) -> str:
        label = status or "QUEUED"
        style = _STATUS_STYLES.get(label, "white")
        return f"run {run_id} [{style}]{label:<9}[/{style}]"

    def polling_started(
        self,
        run_id: int,
        run_interval_seconds: float,
        cases_interval_seconds: float,
    ) -> None:
        self.last_status = None
        self.processed_cases = 0
        self.total_cases = 0
        if self._disabled:
            return
        self._progress = Progress(
            TextColumn("{task.description}"),
            BarColumn(bar_width=40),
            MofNCompleteColumn(),
            TimeElapsedColumn(),
            console=Console(stderr=True),
            transient=False,
        )
        self._task_id = self._progress.add_task(
            self._description(run_id=run_id, status=None), total=None
        )
        self._progress.start()

    def run_refreshed(
        self,
        run_id: int,
        status: str,
        processed_cases: int,
        total_cases: int,
    ) -> None:
        self.last_status = status
        self.processed_cases = processed_cases
        self.total_cases = total_cases
        if self._progress is None or self._task_id is None:
            return
        self._progress.update(
            self._task_id,
            description=self._description(run_id=run_id, status=status),
            completed=processed_cases,
            total=total_cases or None,
        )

    def cases_refreshed(self, run_id: int, loaded_cases: int) -> None:
        pass

    def refresh_failed(
        self,
        run_id: int,
        resource: str,
        reason: str,
        retriable: bool,
    ) -> None:
        pass

    def stale_response_discarded(self, run_id: int, resource: str, ticket: int) -> None:
        pass

    def criteria_unavailable(self, workspace_id: int, reason: str) -> None:
        pass

    def polling_stopped(self, run_id: int, status: str | None, reason: str) -> None:
        if self._progress is not None:
            if self._task_id is not None:
                self._progress.update(
                    self._task_id,
                    description=self._description(run_id=run_id, status=status),
                )
            self._progress.stop()
        self._progress = None
        self._task_id = None
