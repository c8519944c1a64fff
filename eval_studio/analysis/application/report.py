"""Run report pipeline — raw run and cases in, one display-ready snapshot out.

The report is recomputed from scratch on every refresh; nothing in it is
mutated after construction.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from eval_studio.analysis.domain.aggregator import RunAggregates, aggregate_cases
from eval_studio.analysis.domain.gate import (
    ReleaseDecision,
    ReleaseVerdict,
    evaluate_release_gates,
    format_number,
    format_percent,
    format_signed,
)
from eval_studio.analysis.domain.grade import InsightGrade, compute_insight_grade
from eval_studio.analysis.domain.labels import (
    ERROR_CODE_ISSUE_PREFIX,
    JUDGE_LABEL_ISSUE_PREFIX,
    RULE_FAIL_ISSUE_PREFIX,
    RULE_WARNING_ISSUE_PREFIX,
    decision_reason_label,
    to_issue_text,
)
from eval_studio.core.json_probe import as_boolean, as_record, probe
from eval_studio.run.domain.case import EvalCaseResult
from eval_studio.run.domain.criteria import CriteriaSnapshot, ReleaseCriteria
from eval_studio.run.domain.run import EvaluationRun

TOP_ISSUE_LIMIT = 3
BATTLE_REASON_LIMIT = 3


@dataclass(frozen=True)
class RunReport:
    run: EvaluationRun
    cases: list[EvalCaseResult]
    aggregates: RunAggregates
    criteria: CriteriaSnapshot
    verdict: ReleaseVerdict
    grade: InsightGrade
    top_issues: list[str]
    plain_summary: str
    tradeoff_summary: str | None
    battle_reasons: list[str]

    @property
    def is_running(self) -> bool:
        return self.run.status.is_pending

    @property
    def compare_mode(self) -> bool:
        return self.run.is_compare

    @property
    def top_issue_texts(self) -> list[str]:
        return [to_issue_text(issue) for issue in self.top_issues]

    @property
    def battle_winner(self) -> str | None:
        if self.aggregates.compare is None:
            return None
        return self.aggregates.compare.battle_winner

    def to_summary(self) -> dict[str, Any]:
        """Summary object in the evaluation service's camelCase shape."""
        agg = self.aggregates
        summary: dict[str, Any] = {
            "totalCases": agg.total,
            "processedCases": agg.processed,
            "passedCases": agg.passed,
            "failedCases": agg.failed,
            "errorCases": agg.error,
            "passRate": _round(agg.pass_rate),
            "avgOverallScore": _round(agg.avg_overall_score),
            "errorRate": _round(agg.error_rate),
            "releaseDecision": str(self.verdict.release_decision),
            "riskLevel": str(self.verdict.risk_level),
            "decisionReasons": list(self.verdict.decision_reasons),
            "criteriaSnapshot": self.criteria.model_dump(by_alias=True),
            "ruleFailCounts": dict(agg.rule_fail_counts),
            "ruleWarningCounts": dict(agg.rule_warning_counts),
            "errorCodeCounts": dict(agg.error_code_counts),
            "labelCounts": dict(agg.label_counts),
            "topIssues": list(self.top_issues),
            "plainSummary": self.plain_summary,
            "insightGrade": str(self.grade),
            "performance": {
                "candidate": {
                    "avgLatencyMs": _round(agg.latency.avg_latency_ms),
                    "p95LatencyMs": agg.latency.p95_latency_ms,
                    "sampleSize": agg.latency.sample_size,
                }
            },
        }
        if agg.compare is not None:
            summary["avgScoreDelta"] = _round(agg.compare.avg_score_delta)
            summary["compareBaselineComplete"] = agg.compare.baseline_complete
            summary["compareCoverageRate"] = _round(agg.compare.compare_coverage_rate)
            summary["compareWinRate"] = _round(agg.compare.compare_win_rate)
        review = as_record(probe(self.run.summary, "llmOverallReview"))
        if review is not None:
            summary["llmOverallReview"] = review
        return summary

    def to_cost(self) -> dict[str, Any]:
        return {
            "totalTokens": self.aggregates.total_tokens,
            "totalCostUsd": self.aggregates.total_cost_usd,
        }


def _round(value: float | None) -> float | None:
    if value is None:
        return None
    return round(value, 2)


def resolve_criteria(
    run: EvaluationRun, criteria: CriteriaSnapshot | ReleaseCriteria | None
) -> CriteriaSnapshot:
    """The run's captured snapshot wins; live criteria only fill a missing one."""
    snapshot = CriteriaSnapshot.from_payload(probe(run.summary, "criteriaSnapshot"))
    if not snapshot.is_empty or criteria is None:
        return snapshot
    if isinstance(criteria, ReleaseCriteria):
        return criteria.to_snapshot()
    return criteria


def _top_key(counts: dict[str, int]) -> str | None:
    # counts are already ordered by descending count
    return next(iter(counts), None)


def build_top_issues(verdict: ReleaseVerdict, aggregates: RunAggregates) -> list[str]:
    """Decision reasons first, then the dominant entry of each distribution."""
    issues: list[str] = list(verdict.decision_reasons)
    for prefix, counts in (
        (RULE_FAIL_ISSUE_PREFIX, aggregates.rule_fail_counts),
        (RULE_WARNING_ISSUE_PREFIX, aggregates.rule_warning_counts),
        (ERROR_CODE_ISSUE_PREFIX, aggregates.error_code_counts),
        (JUDGE_LABEL_ISSUE_PREFIX, aggregates.label_counts),
    ):
        key = _top_key(counts)
        if key is not None:
            issues.append(f"{prefix}{key}")
    return list(dict.fromkeys(issues))[:TOP_ISSUE_LIMIT]


def build_plain_summary(
    verdict: ReleaseVerdict, aggregates: RunAggregates, top_issues: list[str]
) -> str:
    decision = (
        "hold release"
        if verdict.release_decision is ReleaseDecision.HOLD
        else "ready to release"
    )
    parts = [
        f"Decision: {decision}",
        f"Pass rate {format_percent(aggregates.pass_rate)}",
        f"Avg score {format_number(aggregates.avg_overall_score)}",
    ]
    score_delta = aggregates.compare.avg_score_delta if aggregates.compare else None
    if score_delta is not None:
        parts.append(f"Compare delta {format_signed(score_delta)}")
    if top_issues:
        parts.append(f"Top issue: {to_issue_text(top_issues[0])}")
    return " / ".join(parts)


def _signed_currency(value: float) -> str:
    sign = "+" if value > 0 else "-" if value < 0 else ""
    return f"{sign}${abs(value):.6f}"


def _signed_ms(value: float) -> str:
    rounded = round(value)
    sign = "+" if rounded > 0 else ""
    return f"{sign}{rounded:,}ms"


def build_tradeoff_summary(aggregates: RunAggregates) -> str | None:
    """One-line quality / cost / latency trade-off; None outside compare mode."""
    compare = aggregates.compare
    if compare is None:
        return None
    parts: list[str] = []
    score = compare.avg_score_delta
    if score is not None:
        if score > 0:
            parts.append(f"quality up ({format_signed(score)})")
        elif score < 0:
            parts.append(f"quality down ({format_signed(score)})")
        else:
            parts.append("quality unchanged")
    cost = compare.cost_delta.avg
    if cost is not None:
        if cost < 0:
            parts.append(f"cost saved ({_signed_currency(cost)})")
        elif cost > 0:
            parts.append(f"cost increased ({_signed_currency(cost)})")
        else:
            parts.append("cost unchanged")
    latency = compare.latency_delta.avg
    if latency is not None:
        if latency < 0:
            parts.append(f"faster ({_signed_ms(latency)})")
        elif latency > 0:
            parts.append(f"slower ({_signed_ms(latency)})")
        else:
            parts.append("latency unchanged")
    if not parts:
        return "Not enough comparison data."
    return " · ".join(parts)


def build_battle_reasons(
    verdict: ReleaseVerdict, aggregates: RunAggregates, top_issues: list[str]
) -> list[str]:
    """Why the candidate lost (when it did), then decision reasons and issues."""
    reasons: list[str] = []
    compare = aggregates.compare
    if compare is not None and compare.battle_winner == "BASELINE":
        score = compare.avg_score_delta
        if score is not None and score < 0:
            reasons.append(
                f"Average score is {abs(score):.2f} lower than the released version."
            )
        if (
            compare.pass_comparable_count > 0
            and compare.pass_loss_count > compare.pass_win_count
        ):
            reasons.append(
                f"Pass battle loss (win {compare.pass_win_count}"
                f" / loss {compare.pass_loss_count})."
            )
        latency = compare.latency_delta.avg
        if latency is not None and latency > 0:
            reasons.append(f"Responses are {round(latency)}ms slower on average.")
        cost = compare.cost_delta.avg
        if cost is not None and cost > 0:
            reasons.append(f"Average cost increased by {_signed_currency(cost)}.")
    reasons.extend(decision_reason_label(code) for code in verdict.decision_reasons)
    reasons.extend(to_issue_text(issue) for issue in top_issues)
    unique = dict.fromkeys(reason for reason in reasons if reason.strip())
    return list(unique)[:BATTLE_REASON_LIMIT]


def build_run_report(
    run: EvaluationRun,
    cases: Iterable[EvalCaseResult],
    criteria: CriteriaSnapshot | ReleaseCriteria | None = None,
) -> RunReport:
    """Run the full comparator → aggregator → gate → grade pipeline."""
    items = list(cases)
    snapshot = resolve_criteria(run, criteria)
    aggregates = aggregate_cases(
        items,
        run.mode,
        baseline_available=as_boolean(probe(run.summary, "compareBaselineAvailable")),
    )
    compare = aggregates.compare
    verdict = evaluate_release_gates(
        mode=run.mode,
        criteria=snapshot,
        pass_rate=aggregates.pass_rate,
        avg_overall_score=aggregates.avg_overall_score,
        error_rate=aggregates.error_rate,
        avg_score_delta=compare.avg_score_delta if compare else None,
        baseline_complete=compare.baseline_complete if compare else None,
    )
    top_issues = build_top_issues(verdict, aggregates)
    return RunReport(
        run=run,
        cases=items,
        aggregates=aggregates,
        criteria=snapshot,
        verdict=verdict,
        grade=compute_insight_grade(
            aggregates.pass_rate,
            aggregates.avg_overall_score,
            aggregates.error_rate,
            is_running=run.status.is_pending,
        ),
        top_issues=top_issues,
        plain_summary=build_plain_summary(verdict, aggregates, top_issues),
        tradeoff_summary=build_tradeoff_summary(aggregates),
        battle_reasons=build_battle_reasons(verdict, aggregates, top_issues),
    )
