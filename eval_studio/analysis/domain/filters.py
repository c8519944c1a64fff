"""Trend windowing, case predicates and reason-driven case navigation."""

import math
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import StrEnum
from typing import Literal, TypeAlias

from eval_studio.analysis.domain.comparator import CompareTone, resolve_compare_tone
from eval_studio.core.json_probe import as_number, probe
from eval_studio.run.domain.case import EvalCaseResult
from eval_studio.run.domain.run import EvaluationRun
from eval_studio.run.domain.status import CaseStatus, EvalMode

DEFAULT_TREND_WINDOW = 10

AllFilter: TypeAlias = Literal["ALL"]


@dataclass(frozen=True)
class RunTrendPoint:
    run_id: int
    created_at: str | None
    mode: EvalMode
    prompt_version_id: int | None
    pass_rate: float | None = None
    avg_overall_score: float | None = None
    error_rate: float | None = None
    avg_score_delta: float | None = None


def build_run_trend_points(runs: Iterable[EvaluationRun]) -> list[RunTrendPoint]:
    """Project run headers onto trend points; runs without an id are skipped."""
    return [
        RunTrendPoint(
            run_id=run.id,
            created_at=run.created_at,
            mode=run.mode,
            prompt_version_id=run.prompt_version_id,
            pass_rate=as_number(probe(run.summary, "passRate")),
            avg_overall_score=as_number(probe(run.summary, "avgOverallScore")),
            error_rate=as_number(probe(run.summary, "errorRate")),
            avg_score_delta=as_number(probe(run.summary, "avgScoreDelta")),
        )
        for run in runs
        if run.id is not None
    ]


def _timestamp_millis(value: str | None) -> float:
    """Epoch milliseconds of an ISO-8601 timestamp; unparseable values sort as 0."""
    if not value:
        return 0.0
    try:
        parsed = datetime.fromisoformat(value.strip())
    except ValueError:
        return 0.0
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed.timestamp() * 1000.0


def _normalize_window(window_size: float) -> int:
    if not math.isfinite(window_size):
        return DEFAULT_TREND_WINDOW
    return max(1, math.floor(window_size))


def filter_run_trend_points(
    points: Sequence[RunTrendPoint],
    mode_filter: EvalMode | AllFilter = "ALL",
    version_filter: int | AllFilter = "ALL",
    window_size: float = DEFAULT_TREND_WINDOW,
) -> list[RunTrendPoint]:
    """Chronological, filtered, windowed view of run trend points.

    Points sort by timestamp with ties broken by run id, never by input
    order. Filtering happens before windowing, so a narrow filter still
    returns up to *window_size* of the newest matching points.
    """
    window = _normalize_window(window_size)
    ordered = sorted(
        points, key=lambda point: (_timestamp_millis(point.created_at), point.run_id)
    )
    filtered = [
        point
        for point in ordered
        if (mode_filter == "ALL" or point.mode == mode_filter)
        and (version_filter == "ALL" or point.prompt_version_id == version_filter)
    ]
    return filtered[-window:]


class CaseFilter(StrEnum):
    ALL = "ALL"
    PASS = "PASS"
    FAIL = "FAIL"
    ERROR = "ERROR"
    RUNNING = "RUNNING"
    SKIPPED = "SKIPPED"
    BETTER = "BETTER"
    WORSE = "WORSE"
    SAME = "SAME"


_TONE_FILTERS: dict[CaseFilter, CompareTone] = {
    CaseFilter.BETTER: CompareTone.BETTER,
    CaseFilter.WORSE: CompareTone.WORSE,
    CaseFilter.SAME: CompareTone.SAME,
}


def matches_case_filter(
    item: EvalCaseResult, case_filter: CaseFilter, *, compare_mode: bool = False
) -> bool:
    """Predicate behind the case-list filter chips.

    Tone filters only ever match in compare mode.
    """
    match case_filter:
        case CaseFilter.ALL:
            return True
        case CaseFilter.PASS:
            return item.passed is True
        case CaseFilter.FAIL:
            return item.passed is False
        case CaseFilter.ERROR:
            return item.status is CaseStatus.ERROR
        case CaseFilter.RUNNING:
            return item.status.is_pending
        case CaseFilter.SKIPPED:
            return item.status is CaseStatus.SKIPPED
    tone = _TONE_FILTERS.get(case_filter)
    if tone is None:
        return True
    return compare_mode and resolve_compare_tone(item) is tone


def filter_cases(
    cases: Iterable[EvalCaseResult],
    case_filter: CaseFilter,
    *,
    compare_mode: bool = False,
) -> list[EvalCaseResult]:
    """Matching cases, in the order the case list was returned."""
    return [
        item
        for item in cases
        if matches_case_filter(item, case_filter, compare_mode=compare_mode)
    ]


def count_case_filters(
    cases: Sequence[EvalCaseResult], *, compare_mode: bool = False
) -> dict[CaseFilter, int]:
    """Chip counts for every filter applicable in the current mode."""
    applicable = [
        case_filter
        for case_filter in CaseFilter
        if compare_mode or case_filter not in _TONE_FILTERS
    ]
    return {
        case_filter: len(filter_cases(cases, case_filter, compare_mode=compare_mode))
        for case_filter in applicable
    }


ReasonFilter: TypeAlias = Literal[CaseFilter.FAIL, CaseFilter.WORSE]


@dataclass(frozen=True)
class ReasonRule:
    """Case-insensitive substring *pattern* that maps a reason to *result*."""

    pattern: str
    result: ReasonFilter


@dataclass(frozen=True)
class ReasonLexicon:
    """Ordered rules; the first pattern found in the reason text wins."""

    rules: tuple[ReasonRule, ...]

    def match(self, reason: str) -> ReasonFilter | None:
        normalized = reason.lower()
        for rule in self.rules:
            if rule.pattern.lower() in normalized:
                return rule.result
        return None

    def extended(self, *rules: ReasonRule) -> "ReasonLexicon":
        return ReasonLexicon(rules=self.rules + rules)


_REGRESSION_HINTS = (
    "회귀",
    "열세",
    "낮",
    "느려",
    "비용",
    "worse",
    "regression",
    "loss",
    "slower",
    "cost",
)
_FAILURE_HINTS = (
    "미달",
    "실패",
    "오류",
    "must",
    "passrate",
    "기준",
    "fail",
    "error",
    "threshold",
    "pass rate",
)

DEFAULT_REASON_LEXICON = ReasonLexicon(
    rules=tuple(ReasonRule(hint, CaseFilter.WORSE) for hint in _REGRESSION_HINTS)
    + tuple(ReasonRule(hint, CaseFilter.FAIL) for hint in _FAILURE_HINTS)
)


def resolve_reason_driven_case_filter(
    reason: str,
    winner: str | None,
    compare_mode: bool,
    lexicon: ReasonLexicon = DEFAULT_REASON_LEXICON,
) -> ReasonFilter:
    """Map a decision reason or issue text to the case filter that explains it.

    Single mode always resolves to FAIL. In compare mode the lexicon decides;
    with no match, a baseline win resolves to WORSE and anything else to FAIL.
    """
    if not compare_mode:
        return CaseFilter.FAIL
    matched = lexicon.match(reason or "")
    if matched is not None:
        return matched
    return CaseFilter.WORSE if winner == "BASELINE" else CaseFilter.FAIL
