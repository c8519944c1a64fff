"""Immutable view of everything the poller has loaded so far."""

from dataclasses import dataclass, field
from enum import StrEnum

from eval_studio.analysis.application.report import RunReport
from eval_studio.run.domain.case import EvalCaseResult
from eval_studio.run.domain.run import EvaluationRun


class PolledResource(StrEnum):
    RUN = "run"
    CASES = "cases"


class StopReason(StrEnum):
    TERMINAL = "terminal"
    UNKNOWN_STATUS = "unknown_status"
    TEARDOWN = "teardown"


@dataclass(frozen=True)
class PollingSnapshot:
    """Last successfully loaded data plus the per-resource load error, if any.

    A failed refresh sets the matching error and keeps the previous data.
    Once the run is finished, ``report`` is only rebuilt from a case list
    fetched after the finish was seen; until then it stays the last report
    built while the run was in flight (or None).
    """

    run: EvaluationRun | None = None
    cases: list[EvalCaseResult] = field(default_factory=list)
    report: RunReport | None = None
    run_error: str | None = None
    cases_error: str | None = None

    @property
    def is_terminal(self) -> bool:
        return self.run is not None and self.run.status.is_terminal
