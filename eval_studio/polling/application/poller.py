"""RunPoller — keeps a run report current while the run is in flight.

While the run is QUEUED or RUNNING the run header is re-fetched every
``run_interval_seconds`` and the fully drained case list every
``cases_interval_seconds``; each applied refresh rebuilds the report. Once the
run reaches a terminal status, the cases are drained one final time and
polling stops.
"""

import asyncio
import contextlib
import dataclasses
from collections.abc import Callable
from typing import Self, TypeAlias

from eval_studio.analysis.application.report import build_run_report
from eval_studio.client.application.loader import DEFAULT_PAGE_SIZE, fetch_all_run_cases
from eval_studio.client.domain.api import EvalApi, RunTarget
from eval_studio.core.errors import EvalStudioError
from eval_studio.polling.domain.observer import PollingObserver
from eval_studio.polling.domain.snapshot import (
    PolledResource,
    PollingSnapshot,
    StopReason,
)
from eval_studio.run.domain.criteria import CriteriaSnapshot, ReleaseCriteria
from eval_studio.run.domain.status import RunStatus

DEFAULT_RUN_INTERVAL_SECONDS = 2.0
DEFAULT_CASES_INTERVAL_SECONDS = 3.0

SnapshotListener: TypeAlias = Callable[[PollingSnapshot], None]


class RunPoller:
    """Owns the refresh schedule for one run.

    ``stop()`` (or leaving ``async with``) is the single teardown: it cancels
    the polling task and waits for it, so no timer outlives the poller.

    Each refresh takes a ticket when it starts; a response is applied only if
    its ticket is newer than the last one applied for that resource, so a
    slow superseded response never overwrites fresher data.
    """

    def __init__(
        self,
        api: EvalApi,
        target: RunTarget,
        observer: PollingObserver,
        on_snapshot: SnapshotListener | None = None,
        criteria: CriteriaSnapshot | ReleaseCriteria | None = None,
        run_interval_seconds: float = DEFAULT_RUN_INTERVAL_SECONDS,
        cases_interval_seconds: float = DEFAULT_CASES_INTERVAL_SECONDS,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> None:
        self._api = api
        self._target = target
        self._observer = observer
        self._on_snapshot = on_snapshot
        self._criteria = criteria
        self._run_interval = run_interval_seconds
        self._cases_interval = cases_interval_seconds
        self._page_size = page_size
        self._snapshot = PollingSnapshot()
        self._issued: dict[PolledResource, int] = dict.fromkeys(PolledResource, 0)
        self._applied: dict[PolledResource, int] = dict.fromkeys(PolledResource, 0)
        # cases ticket issued when the run was first seen finished
        self._finished_at_ticket: int | None = None
        self._task: asyncio.Task[PollingSnapshot] | None = None

    @property
    def snapshot(self) -> PollingSnapshot:
        return self._snapshot

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        if self._task is None:
            self._task = asyncio.create_task(self._poll())

    async def stop(self) -> None:
        task = self._task
        if task is None or task.done():
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
        self._observer.polling_stopped(
            run_id=self._target.run_id,
            status=self._status(),
            reason=StopReason.TEARDOWN,
        )

    async def wait(self) -> PollingSnapshot:
        """Wait until polling ends on a terminal status."""
        self.start()
        assert self._task is not None
        return await self._task

    async def __aenter__(self) -> Self:
        self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.stop()

    # ------------------------------------------------------------------
    # Refreshes
    # ------------------------------------------------------------------

    async def refresh_run(self) -> None:
        ticket = self._issue(PolledResource.RUN)
        try:
            run = await self._api.get_run(self._target)
        except EvalStudioError as exc:
            self._fail(PolledResource.RUN, ticket, exc)
            return
        if not self._accept(PolledResource.RUN, ticket):
            return
        if run.status.is_terminal and self._finished_at_ticket is None:
            self._finished_at_ticket = self._issued[PolledResource.CASES]
        self._observer.run_refreshed(
            run_id=self._target.run_id,
            status=str(run.status),
            processed_cases=run.processed_cases,
            total_cases=run.total_cases,
        )
        self._publish(run=run, run_error=None)

    async def refresh_cases(self) -> None:
        ticket = self._issue(PolledResource.CASES)
        try:
            cases = await fetch_all_run_cases(
                self._api, self._target, page_size=self._page_size
            )
        except EvalStudioError as exc:
            self._fail(PolledResource.CASES, ticket, exc)
            return
        if not self._accept(PolledResource.CASES, ticket):
            return
        self._observer.cases_refreshed(
            run_id=self._target.run_id, loaded_cases=len(cases)
        )
        self._publish(cases=cases, cases_error=None)

    async def _poll(self) -> PollingSnapshot:
        loop = asyncio.get_running_loop()
        self._observer.polling_started(
            run_id=self._target.run_id,
            run_interval_seconds=self._run_interval,
            cases_interval_seconds=self._cases_interval,
        )
        await asyncio.gather(self.refresh_run(), self.refresh_cases())

        next_run_at = loop.time() + self._run_interval
        next_cases_at = loop.time() + self._cases_interval
        while not self._snapshot.is_terminal:
            await asyncio.sleep(max(0.0, min(next_run_at, next_cases_at) - loop.time()))
            now = loop.time()
            due = []
            if now >= next_run_at:
                due.append(self.refresh_run())
                next_run_at = now + self._run_interval
            if now >= next_cases_at:
                due.append(self.refresh_cases())
                next_cases_at = now + self._cases_interval
            await asyncio.gather(*due)

        # The final report needs a case list fetched after the finish.
        await self.refresh_cases()
        self._observer.polling_stopped(
            run_id=self._target.run_id,
            status=self._status(),
            reason=(
                StopReason.UNKNOWN_STATUS
                if self._status() == RunStatus.UNKNOWN
                else StopReason.TERMINAL
            ),
        )
        return self._snapshot

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _status(self) -> str | None:
        run = self._snapshot.run
        return None if run is None else str(run.status)

    def _issue(self, resource: PolledResource) -> int:
        self._issued[resource] += 1
        return self._issued[resource]

    def _accept(self, resource: PolledResource, ticket: int) -> bool:
        if ticket <= self._applied[resource]:
            self._observer.stale_response_discarded(
                run_id=self._target.run_id, resource=resource, ticket=ticket
            )
            return False
        self._applied[resource] = ticket
        return True

    def _fail(
        self, resource: PolledResource, ticket: int, exc: EvalStudioError
    ) -> None:
        if ticket <= self._applied[resource]:
            return
        self._observer.refresh_failed(
            run_id=self._target.run_id,
            resource=resource,
            reason=str(exc),
            retriable=exc.retriable,
        )
        if resource is PolledResource.RUN:
            self._publish(run_error=str(exc))
        else:
            self._publish(cases_error=str(exc))

    def _cases_current(self) -> bool:
        """False while a finished run still waits for a post-finish case list."""
        if self._finished_at_ticket is None:
            return True
        return self._applied[PolledResource.CASES] > self._finished_at_ticket

    def _publish(self, **changes: object) -> None:
        snapshot = dataclasses.replace(self._snapshot, **changes)
        report = snapshot.report
        if (
            snapshot.run is not None
            and ("run" in changes or "cases" in changes)
            and self._cases_current()
        ):
            report = build_run_report(snapshot.run, snapshot.cases, self._criteria)
        self._snapshot = dataclasses.replace(snapshot, report=report)
        if self._on_snapshot is not None:
            self._on_snapshot(self._snapshot)


async def watch_run(
    api: EvalApi,
    target: RunTarget,
    observer: PollingObserver,
    run_interval_seconds: float = DEFAULT_RUN_INTERVAL_SECONDS,
    cases_interval_seconds: float = DEFAULT_CASES_INTERVAL_SECONDS,
    page_size: int = DEFAULT_PAGE_SIZE,
) -> PollingSnapshot:
    """Poll *target* to the end, with live criteria as the snapshot fallback.

    Live criteria only matter for runs that carry no criteria snapshot, so
    failing to load them is reported and polling goes ahead without them.
    """
    criteria: ReleaseCriteria | None
    try:
        criteria = await api.get_release_criteria(target.workspace_id)
    except EvalStudioError as exc:
        observer.criteria_unavailable(workspace_id=target.workspace_id, reason=str(exc))
        criteria = None
    async with RunPoller(
        api=api,
        target=target,
        observer=observer,
        criteria=criteria,
        run_interval_seconds=run_interval_seconds,
        cases_interval_seconds=cases_interval_seconds,
        page_size=page_size,
    ) as poller:
        return await poller.wait()
