"""Aggregator — folds a run's case results into run-level statistics.

Every aggregate is optional: an empty sample yields None, never 0 or NaN.
"""

import math
import statistics
from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any, TypeAlias

from eval_studio.analysis.domain.comparator import (
    CaseClass,
    CompareTone,
    classify_case,
    extract_candidate_overall_score,
    extract_candidate_rule_checks,
    extract_judge_labels,
    extract_meta_metric,
    has_compare_summary,
    resolve_compare_tone,
    to_compare_case_delta,
)
from eval_studio.core.json_probe import as_number, as_record, as_string_array
from eval_studio.run.domain.case import EvalCaseResult
from eval_studio.run.domain.status import CaseStatus, EvalMode

DISTRIBUTION_LIMIT = 5
P95_QUANTILE = 0.95

CountMap: TypeAlias = dict[str, int]


@dataclass(frozen=True)
class CountEntry:
    key: str
    count: int
    pct: float


@dataclass(frozen=True)
class DeltaSummary:
    avg: float | None
    sample_size: int


@dataclass(frozen=True)
class LatencyStats:
    avg_latency_ms: float | None
    p95_latency_ms: float | None
    sample_size: int


@dataclass(frozen=True)
class CompareStats:
    """Candidate-vs-baseline aggregates over cases with a known tone."""

    better_count: int
    worse_count: int
    same_count: int
    unknown_count: int
    compare_win_rate: float | None
    compare_coverage_rate: float | None
    avg_score_delta: float | None
    score_delta: DeltaSummary
    token_delta: DeltaSummary
    cost_delta: DeltaSummary
    latency_delta: DeltaSummary
    pass_win_count: int
    pass_loss_count: int
    pass_comparable_count: int
    battle_winner: str
    baseline_complete: bool | None

    @property
    def known_count(self) -> int:
        return self.better_count + self.worse_count + self.same_count


@dataclass(frozen=True)
class RunAggregates:
    mode: EvalMode
    total: int
    processed: int
    passed: int
    failed: int
    error: int
    skipped: int
    pending: int
    warnings: int
    pass_rate: float | None
    error_rate: float | None
    avg_overall_score: float | None
    latency: LatencyStats
    total_tokens: float | None
    total_cost_usd: float | None
    rule_fail_counts: CountMap
    rule_warning_counts: CountMap
    error_code_counts: CountMap
    label_counts: CountMap
    compare: CompareStats | None

    @property
    def rule_fail_distribution(self) -> list[CountEntry]:
        return to_count_distribution(self.rule_fail_counts)

    @property
    def rule_warning_distribution(self) -> list[CountEntry]:
        return to_count_distribution(self.rule_warning_counts)

    @property
    def error_code_distribution(self) -> list[CountEntry]:
        return to_count_distribution(self.error_code_counts)

    @property
    def label_distribution(self) -> list[CountEntry]:
        return to_count_distribution(self.label_counts)


def to_count_distribution(
    raw: Any, limit: int = DISTRIBUTION_LIMIT
) -> list[CountEntry]:
    """Rank a ``{key: count}`` object into the top *limit* entries.

    Accepts locally tallied counts and the backend's ``summary.*Counts``
    objects alike. Blank keys and non-positive counts are omitted; ``pct`` is
    relative to all tallied occurrences, not just the returned ones.
    """
    record = as_record(raw)
    if record is None:
        return []

    entries: list[tuple[str, float]] = []
    for key, value in record.items():
        count = as_number(value) or 0.0
        if isinstance(key, str) and key.strip() and count > 0:
            entries.append((key, count))
    entries.sort(key=lambda entry: (-entry[1], entry[0]))

    total = sum(count for _, count in entries)
    return [
        CountEntry(
            key=key,
            count=int(count),
            pct=count * 100.0 / total,
        )
        for key, count in entries[:limit]
    ]


def summarize_deltas(values: Iterable[float | None]) -> DeltaSummary:
    finite = [value for value in values if value is not None and math.isfinite(value)]
    if not finite:
        return DeltaSummary(avg=None, sample_size=0)
    return DeltaSummary(avg=statistics.fmean(finite), sample_size=len(finite))


def nearest_rank_p95(sorted_values: list[float]) -> float | None:
    """Nearest-rank 95th percentile of an ascending list; no interpolation."""
    if not sorted_values:
        return None
    rank = math.ceil(len(sorted_values) * P95_QUANTILE) - 1
    index = max(0, min(rank, len(sorted_values) - 1))
    return sorted_values[index]


def compute_candidate_latency_stats(cases: Iterable[EvalCaseResult]) -> LatencyStats:
    """Latency statistics over candidate latencies only."""
    latencies = sorted(
        latency
        for latency in (
            extract_meta_metric(item.candidate_meta, "latencyMs") for item in cases
        )
        if latency is not None
    )
    if not latencies:
        return LatencyStats(avg_latency_ms=None, p95_latency_ms=None, sample_size=0)
    return LatencyStats(
        avg_latency_ms=statistics.fmean(latencies),
        p95_latency_ms=nearest_rank_p95(latencies),
        sample_size=len(latencies),
    )


def _percent(part: int, whole: int) -> float | None:
    if whole <= 0:
        return None
    return part * 100.0 / whole


def _mean(values: list[float]) -> float | None:
    if not values:
        return None
    return statistics.fmean(values)


def _sum_present(values: Iterable[float | None]) -> float | None:
    present = [value for value in values if value is not None]
    if not present:
        return None
    return math.fsum(present)


def _tally(keys: Iterable[str]) -> CountMap:
    counts = Counter(key for key in keys if key.strip())
    return dict(sorted(counts.items(), key=lambda entry: (-entry[1], entry[0])))


def _rule_check_keys(cases: list[EvalCaseResult], field: str) -> list[str]:
    keys: list[str] = []
    for item in cases:
        keys.extend(as_string_array(extract_candidate_rule_checks(item).get(field)))
    return keys


def _battle_winner(better: int, worse: int) -> str:
    if better > worse:
        return "CANDIDATE"
    if worse > better:
        return "BASELINE"
    return "TIE"


def _aggregate_compare(
    cases: list[EvalCaseResult],
    ok_cases: list[EvalCaseResult],
    processed: int,
    baseline_available: bool | None,
) -> CompareStats:
    tones = [resolve_compare_tone(item) for item in cases]
    known_cases = [
        item for item, tone in zip(cases, tones) if tone is not CompareTone.UNKNOWN
    ]
    better = tones.count(CompareTone.BETTER)
    worse = tones.count(CompareTone.WORSE)
    same = tones.count(CompareTone.SAME)

    deltas = [to_compare_case_delta(item) for item in known_cases]
    pass_comparable = [delta for delta in deltas if delta.pass_comparable]
    pass_wins = sum(
        1
        for delta in pass_comparable
        if delta.candidate_pass is True and delta.baseline_pass is False
    )
    pass_losses = sum(
        1
        for delta in pass_comparable
        if delta.candidate_pass is False and delta.baseline_pass is True
    )

    ok_known = sum(
        1 for item in ok_cases if resolve_compare_tone(item) is not CompareTone.UNKNOWN
    )
    score_delta = summarize_deltas(
        to_compare_case_delta(item).score_delta for item in cases
    )

    if processed == 0:
        baseline_complete = None
    else:
        all_ok_compared = all(has_compare_summary(item) for item in ok_cases)
        baseline_complete = baseline_available is not False and all_ok_compared

    return CompareStats(
        better_count=better,
        worse_count=worse,
        same_count=same,
        unknown_count=len(cases) - len(known_cases),
        compare_win_rate=_percent(better, len(known_cases)),
        compare_coverage_rate=_percent(ok_known, len(ok_cases)),
        avg_score_delta=score_delta.avg,
        score_delta=score_delta,
        token_delta=summarize_deltas(delta.token_delta for delta in deltas),
        cost_delta=summarize_deltas(delta.cost_delta for delta in deltas),
        latency_delta=summarize_deltas(delta.latency_delta for delta in deltas),
        pass_win_count=pass_wins,
        pass_loss_count=pass_losses,
        pass_comparable_count=len(pass_comparable),
        battle_winner=_battle_winner(better, worse),
        baseline_complete=baseline_complete,
    )


def aggregate_cases(
    cases: Iterable[EvalCaseResult],
    mode: EvalMode,
    baseline_available: bool | None = None,
) -> RunAggregates:
    """Fold every loaded case of a run into one RunAggregates.

    Counts are disjoint: ``passed``, ``failed`` and ``error`` partition a
    subset of the terminal cases, so their sum never exceeds ``processed``.
    Baseline-side fields are read only when *mode* is COMPARE_ACTIVE.
    """
    items = list(cases)
    compare_mode = mode is EvalMode.COMPARE_ACTIVE

    terminal = [item for item in items if item.status.is_terminal]
    ok_cases = [item for item in items if item.status is CaseStatus.OK]
    judged = [item for item in terminal if item.status is not CaseStatus.ERROR]

    processed = len(terminal)
    passed = sum(1 for item in judged if item.passed is True)
    failed = sum(1 for item in judged if item.passed is False)
    error = sum(1 for item in items if item.status is CaseStatus.ERROR)
    skipped = sum(1 for item in items if item.status is CaseStatus.SKIPPED)
    warnings = sum(1 for item in items if classify_case(item) is CaseClass.WARNING)

    scores = [
        score
        for score in (extract_candidate_overall_score(item) for item in items)
        if score is not None
    ]

    sides = ["candidate_meta", "baseline_meta"] if compare_mode else ["candidate_meta"]
    token_values = [
        extract_meta_metric(getattr(item, side), "totalTokens")
        for side in sides
        for item in items
    ]
    cost_values = [
        extract_meta_metric(getattr(item, side), "estimatedCostUsd")
        for side in sides
        for item in items
    ]

    return RunAggregates(
        mode=mode,
        total=len(items),
        processed=processed,
        passed=passed,
        failed=failed,
        error=error,
        skipped=skipped,
        pending=len(items) - processed,
        warnings=warnings,
        pass_rate=_percent(passed, processed),
        error_rate=_percent(error, processed),
        avg_overall_score=_mean(scores),
        latency=compute_candidate_latency_stats(items),
        total_tokens=_sum_present(token_values),
        total_cost_usd=_sum_present(cost_values),
        rule_fail_counts=_tally(_rule_check_keys(ok_cases, "failedChecks")),
        rule_warning_counts=_tally(_rule_check_keys(ok_cases, "warningChecks")),
        error_code_counts=_tally(item.error_code for item in items if item.error_code),
        label_counts=_tally(
            label for item in ok_cases for label in extract_judge_labels(item)
        ),
        compare=(
            _aggregate_compare(items, ok_cases, processed, baseline_available)
            if compare_mode
            else None
        ),
    )
