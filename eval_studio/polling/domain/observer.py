"""Observer port for the polling controller — defines events in domain language."""

from typing import Protocol


class PollingObserver(Protocol):
    def polling_started(
        self,
        run_id: int,
        run_interval_seconds: float,
        cases_interval_seconds: float,
    ) -> None: ...

    def run_refreshed(
        self,
        run_id: int,
        status: str,
        processed_cases: int,
        total_cases: int,
    ) -> None: ...

    def cases_refreshed(self, run_id: int, loaded_cases: int) -> None: ...

    def refresh_failed(
        self,
        run_id: int,
        resource: str,
        reason: str,
        retriable: bool,
    ) -> None: ...

    def stale_response_discarded(
        self, run_id: int, resource: str, ticket: int
    ) -> None: ...

    def criteria_unavailable(self, workspace_id: int, reason: str) -> None: ...

    def polling_stopped(self, run_id: int, status: str | None, reason: str) -> None: ...
