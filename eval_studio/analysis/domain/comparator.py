"""Per-case classification and candidate-vs-baseline comparison."""

from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from eval_studio.core.json_probe import (
    JsonRecord,
    as_boolean,
    as_number,
    as_record,
    as_string,
    as_string_array,
    probe,
)
from eval_studio.run.domain.case import EvalCaseResult
from eval_studio.run.domain.status import CaseStatus

SAME_SCORE_EPSILON = 0.01


class CaseClass(StrEnum):
    RUNNING = "RUNNING"
    ERROR = "ERROR"
    SKIPPED = "SKIPPED"
    FAIL = "FAIL"
    WARNING = "WARNING"
    PASS = "PASS"


class CompareWinner(StrEnum):
    CANDIDATE = "CANDIDATE"
    BASELINE = "BASELINE"
    TIE = "TIE"


class CompareTone(StrEnum):
    BETTER = "BETTER"
    WORSE = "WORSE"
    SAME = "SAME"
    UNKNOWN = "UNKNOWN"


_WINNER_TONES: dict[CompareWinner, CompareTone] = {
    CompareWinner.CANDIDATE: CompareTone.BETTER,
    CompareWinner.BASELINE: CompareTone.WORSE,
    CompareWinner.TIE: CompareTone.SAME,
}


@dataclass(frozen=True)
class CompareCaseDelta:
    """Candidate-minus-baseline deltas for one case; None where a side is missing."""

    score_delta: float | None
    candidate_score: float | None
    baseline_score: float | None
    token_delta: float | None
    cost_delta: float | None
    latency_delta: float | None
    candidate_pass: bool | None
    baseline_pass: bool | None

    @property
    def pass_comparable(self) -> bool:
        return self.candidate_pass is not None and self.baseline_pass is not None


def extract_judge_labels(item: EvalCaseResult) -> list[str]:
    return as_string_array(probe(item.judge_output, "labels"))


def classify_case(item: EvalCaseResult) -> CaseClass:
    """Collapse status and pass verdict into one display class.

    A passing case that still carries judge labels is a WARNING. A terminal
    case without a verdict is treated as a PASS.
    """
    if item.status.is_pending:
        return CaseClass.RUNNING
    if item.status is CaseStatus.ERROR:
        return CaseClass.ERROR
    if item.status is CaseStatus.SKIPPED:
        return CaseClass.SKIPPED
    if item.passed is False:
        return CaseClass.FAIL
    if item.passed is True and extract_judge_labels(item):
        return CaseClass.WARNING
    return CaseClass.PASS


def _compare_record(item: EvalCaseResult) -> JsonRecord | None:
    return as_record(probe(item.judge_output, "compare"))


def has_compare_summary(item: EvalCaseResult) -> bool:
    return _compare_record(item) is not None


def extract_compare_winner(item: EvalCaseResult) -> CompareWinner | None:
    winner = as_string(probe(item.judge_output, "compare", "winner"))
    if winner is None:
        return None
    try:
        return CompareWinner(winner)
    except ValueError:
        return None


def extract_compare_score_delta(item: EvalCaseResult) -> float | None:
    return as_number(probe(item.judge_output, "compare", "scoreDelta"))


def resolve_compare_tone(item: EvalCaseResult) -> CompareTone:
    """BETTER/WORSE/SAME from the judge's winner, else from the score delta."""
    winner = extract_compare_winner(item)
    if winner is not None:
        return _WINNER_TONES[winner]

    score_delta = extract_compare_score_delta(item)
    if score_delta is None:
        return CompareTone.UNKNOWN
    if abs(score_delta) < SAME_SCORE_EPSILON:
        return CompareTone.SAME
    return CompareTone.BETTER if score_delta > 0 else CompareTone.WORSE


def extract_meta_metric(meta: Any, key: str) -> float | None:
    return as_number(probe(meta, key))


def _difference(candidate: float | None, baseline: float | None) -> float | None:
    if candidate is None or baseline is None:
        return None
    return candidate - baseline


def to_compare_case_delta(item: EvalCaseResult) -> CompareCaseDelta:
    compare = _compare_record(item) or {}
    candidate_meta = item.candidate_meta
    baseline_meta = item.baseline_meta
    return CompareCaseDelta(
        score_delta=as_number(compare.get("scoreDelta")),
        candidate_score=as_number(compare.get("candidateOverallScore")),
        baseline_score=as_number(compare.get("baselineOverallScore")),
        token_delta=_difference(
            extract_meta_metric(candidate_meta, "totalTokens"),
            extract_meta_metric(baseline_meta, "totalTokens"),
        ),
        cost_delta=_difference(
            extract_meta_metric(candidate_meta, "estimatedCostUsd"),
            extract_meta_metric(baseline_meta, "estimatedCostUsd"),
        ),
        latency_delta=_difference(
            extract_meta_metric(candidate_meta, "latencyMs"),
            extract_meta_metric(baseline_meta, "latencyMs"),
        ),
        candidate_pass=as_boolean(compare.get("candidatePass")),
        baseline_pass=as_boolean(compare.get("baselinePass")),
    )


def extract_candidate_overall_score(item: EvalCaseResult) -> float | None:
    """Candidate score from the case, then the judge output, then the compare block."""
    if item.overall_score is not None:
        return item.overall_score
    judge_score = as_number(probe(item.judge_output, "overallScore"))
    if judge_score is not None:
        return judge_score
    return as_number(probe(item.judge_output, "compare", "candidateOverallScore"))


def extract_candidate_rule_checks(item: EvalCaseResult) -> JsonRecord:
    """Rule checks for the candidate side.

    Compare runs nest them as ``{candidate, baseline}``; single runs are flat.
    """
    rule_checks = as_record(item.rule_checks)
    if rule_checks is None:
        return {}
    candidate = as_record(rule_checks.get("candidate"))
    if candidate is not None:
        return candidate
    return rule_checks
