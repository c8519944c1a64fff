"""FakePollingObserver — records polling events for assertion in tests."""

from dataclasses import dataclass


@dataclass(frozen=True)
class PollingStartedEvent:
    run_id: int
    run_interval_seconds: float
    cases_interval_seconds: float


@dataclass(frozen=True)
class RunRefreshedEvent:
    run_id: int
    status: str
    processed_cases: int
    total_cases: int


@dataclass(frozen=True)
class CasesRefreshedEvent:
    run_id: int
    loaded_cases: int


@dataclass(frozen=True)
class RefreshFailedEvent:
    run_id: int
    resource: str
    reason: str
    retriable: bool


@dataclass(frozen=True)
class StaleResponseDiscardedEvent:
    run_id: int
    resource: str
    ticket: int


@dataclass(frozen=True)
class CriteriaUnavailableEvent:
    workspace_id: int
    reason: str


@dataclass(frozen=True)
class PollingStoppedEvent:
    run_id: int
    status: str | None
    reason: str


class FakePollingObserver:
    """Records all emitted polling events as typed frozen dataclasses.

    Event lists use a leading underscore + public property pattern to avoid
    name collision between the list attributes and the Protocol method names.
    """

    def __init__(self) -> None:
        self._started: list[PollingStartedEvent] = []
        self._run_refreshed: list[RunRefreshedEvent] = []
        self._cases_refreshed: list[CasesRefreshedEvent] = []
        self._failed: list[RefreshFailedEvent] = []
        self._discarded: list[StaleResponseDiscardedEvent] = []
        self._stopped: list[PollingStoppedEvent] = []
        self._criteria_unavailable: list[CriteriaUnavailableEvent] = []

    @property
    def started(self) -> list[PollingStartedEvent]:
        return self._started

    @property
    def runs(self) -> list[RunRefreshedEvent]:
        return self._run_refreshed

    @property
    def cases(self) -> list[CasesRefreshedEvent]:
        return self._cases_refreshed

    @property
    def failed(self) -> list[RefreshFailedEvent]:
        return self._failed

    @property
    def discarded(self) -> list[StaleResponseDiscardedEvent]:
        return self._discarded

    @property
    def stopped(self) -> list[PollingStoppedEvent]:
        return self._stopped

    @property
    def unavailable_criteria(self) -> list[CriteriaUnavailableEvent]:
        return self._criteria_unavailable

    def polling_started(
        self,
        run_id: int,
        run_interval_seconds: float,
        cases_interval_seconds: float,
    ) -> None:
        self._started.append(
            PollingStartedEvent(
                run_id=run_id,
                run_interval_seconds=run_interval_seconds,
                cases_interval_seconds=cases_interval_seconds,
            )
        )

    def run_refreshed(
        self,
        run_id: int,
        status: str,
        processed_cases: int,
        total_cases: int,
    ) -> None:
        self._run_refreshed.append(
            RunRefreshedEvent(
                run_id=run_id,
                status=status,
                processed_cases=processed_cases,
                total_cases=total_cases,
            )
        )

    def cases_refreshed(self, run_id: int, loaded_cases: int) -> None:
        self._cases_refreshed.append(
            CasesRefreshedEvent(run_id=run_id, loaded_cases=loaded_cases)
        )

    def refresh_failed(
        self,
        run_id: int,
        resource: str,
        reason: str,
        retriable: bool,
    ) -> None:
        self._failed.append(
            RefreshFailedEvent(
                run_id=run_id, resource=resource, reason=reason, retriable=retriable
            )
        )

    def stale_response_discarded(self, run_id: int, resource: str, ticket: int) -> None:
        self._discarded.append(
            StaleResponseDiscardedEvent(run_id=run_id, resource=resource, ticket=ticket)
        )

    def criteria_unavailable(self, workspace_id: int, reason: str) -> None:
        self._criteria_unavailable.append(
            CriteriaUnavailableEvent(workspace_id=workspace_id, reason=reason)
        )

    def polling_stopped(self, run_id: int, status: str | None, reason: str) -> None:
        self._stopped.append(
            PollingStoppedEvent(run_id=run_id, status=status, reason=reason)
        )
