"""CompositePollingObserver — fans every polling event out to several observers."""

from eval_studio.polling.domain.observer import PollingObserver


class CompositePollingObserver:
    """Forwards each event to every wrapped observer, in order."""

    def __init__(self, observers: list[PollingObserver]) -> None:
        self._observers = observers

    def polling_started(
        self,
        run_id: int,
        run_interval_seconds: float,
        cases_interval_seconds: float,
    ) -> None:
        for observer in self._observers:
            observer.polling_started(
                run_id=run_id,
                run_interval_seconds=run_interval_seconds,
                cases_interval_seconds=cases_interval_seconds,
            )

    def run_refreshed(
        self,
        run_id: int,
        status: str,
        processed_cases: int,
        total_cases: int,
    ) -> None:
        for observer in self._observers:
            observer.run_refreshed(
                run_id=run_id,
                status=status,
                processed_cases=processed_cases,
                total_cases=total_cases,
            )

    def cases_refreshed(self, run_id: int, loaded_cases: int) -> None:
        for observer in self._observers:
            observer.cases_refreshed(run_id=run_id, loaded_cases=loaded_cases)

    def refresh_failed(
        self,
        run_id: int,
        resource: str,
        reason: str,
        retriable: bool,
    ) -> None:
        for observer in self._observers:
            observer.refresh_failed(
                run_id=run_id, resource=resource, reason=reason, retriable=retriable
            )

    def stale_response_discarded(self, run_id: int, resource: str, ticket: int) -> None:
        for observer in self._observers:
            observer.stale_response_discarded(
                run_id=run_id, resource=resource, ticket=ticket
            )

    def criteria_unavailable(self, workspace_id: int, reason: str) -> None:
        for observer in self._observers:
            observer.criteria_unavailable(workspace_id=workspace_id, reason=reason)

    def polling_stopped(self, run_id: int, status: str | None, reason: str) -> None:
        for observer in self._observers:
            observer.polling_stopped(run_id=run_id, status=status, reason=reason)
