"""StructlogPollingObserver — production observer that delegates to structlog."""

import structlog


class StructlogPollingObserver:
    """Logs polling events to structlog.

    Does NOT inherit from PollingObserver (structural typing via Protocol).
    """

    def __init__(self) -> None:
        self._log = structlog.get_logger()

    def polling_started(
        self,
        run_id: int,
        run_interval_seconds: float,
        cases_interval_seconds: float,
    ) -> None:
        self._log.info(
            "polling.started",
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
        self._log.debug(
            "polling.run.refreshed",
            run_id=run_id,
            status=status,
            processed_cases=processed_cases,
            total_cases=total_cases,
        )

    def cases_refreshed(self, run_id: int, loaded_cases: int) -> None:
        self._log.debug(
            "polling.cases.refreshed", run_id=run_id, loaded_cases=loaded_cases
        )

    def refresh_failed(
        self,
        run_id: int,
        resource: str,
        reason: str,
        retriable: bool,
    ) -> None:
        self._log.warning(
            "polling.refresh.failed",
            run_id=run_id,
            resource=resource,
            reason=reason,
            retriable=retriable,
        )

    def stale_response_discarded(self, run_id: int, resource: str, ticket: int) -> None:
        self._log.debug(
            "polling.response.discarded",
            run_id=run_id,
            resource=resource,
            ticket=ticket,
        )

    def criteria_unavailable(self, workspace_id: int, reason: str) -> None:
        self._log.warning(
            "polling.criteria.unavailable",
            workspace_id=workspace_id,
            reason=reason,
            message="Runs without a criteria snapshot get no release thresholds",
        )

    def polling_stopped(self, run_id: int, status: str | None, reason: str) -> None:
        self._log.info("polling.stopped", run_id=run_id, status=status, reason=reason)
