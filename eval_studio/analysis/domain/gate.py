"""Decision gate evaluator — release PASS/HOLD verdict against release criteria."""

from dataclasses import dataclass, field
from enum import StrEnum

from eval_studio.analysis.domain.labels import decision_reason_label
from eval_studio.run.domain.criteria import CriteriaSnapshot
from eval_studio.run.domain.status import EvalMode


class GateLevel(StrEnum):
    PASS = "PASS"
    FAIL = "FAIL"
    WARN = "WARN"
    NA = "NA"


class ReleaseDecision(StrEnum):
    PASS = "PASS"
    HOLD = "HOLD"


class RiskLevel(StrEnum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


class DecisionReason(StrEnum):
    PASS_RATE_BELOW_THRESHOLD = "PASS_RATE_BELOW_THRESHOLD"
    AVG_SCORE_BELOW_THRESHOLD = "AVG_SCORE_BELOW_THRESHOLD"
    ERROR_RATE_ABOVE_THRESHOLD = "ERROR_RATE_ABOVE_THRESHOLD"
    COMPARE_BASELINE_INCOMPLETE = "COMPARE_BASELINE_INCOMPLETE"
    COMPARE_REGRESSION_DETECTED = "COMPARE_REGRESSION_DETECTED"
    COMPARE_IMPROVEMENT_MINOR = "COMPARE_IMPROVEMENT_MINOR"


_HIGH_RISK_REASONS = frozenset(
    {
        DecisionReason.COMPARE_REGRESSION_DETECTED,
        DecisionReason.ERROR_RATE_ABOVE_THRESHOLD,
    }
)


@dataclass(frozen=True)
class DecisionGateItem:
    """One threshold comparison; ``actual`` and ``threshold`` are display strings."""

    key: str
    label: str
    actual: str
    threshold: str
    level: GateLevel
    note: str | None = None
    reason: DecisionReason | None = None


@dataclass(frozen=True)
class ReleaseVerdict:
    gates: list[DecisionGateItem]
    release_decision: ReleaseDecision
    risk_level: RiskLevel
    decision_reasons: list[str] = field(default_factory=list)

    @property
    def reason_labels(self) -> list[str]:
        return [decision_reason_label(code) for code in self.decision_reasons]

    @property
    def blocked(self) -> bool:
        return self.release_decision is ReleaseDecision.HOLD


def format_percent(value: float | None) -> str:
    if value is None:
        return "-"
    return f"{value:.2f}%"


def format_number(value: float | None, digits: int = 2) -> str:
    if value is None:
        return "-"
    return f"{value:.{digits}f}"


def format_signed(value: float | None, digits: int = 2) -> str:
    if value is None:
        return "-"
    sign = "+" if value > 0 else ""
    return f"{sign}{value:.{digits}f}"


def _at_least(actual: float | None, threshold: float | None) -> GateLevel:
    if actual is None or threshold is None:
        return GateLevel.NA
    return GateLevel.PASS if actual >= threshold else GateLevel.FAIL


def _at_most(actual: float | None, threshold: float | None) -> GateLevel:
    if actual is None or threshold is None:
        return GateLevel.NA
    return GateLevel.PASS if actual <= threshold else GateLevel.FAIL


def _threshold_gate(
    key: str,
    label: str,
    actual: float | None,
    threshold: float | None,
    *,
    upper_bound: bool,
    is_percent: bool,
    reason: DecisionReason,
) -> DecisionGateItem:
    fmt = format_percent if is_percent else format_number
    if upper_bound:
        level = _at_most(actual, threshold)
        comparator = "<="
    else:
        level = _at_least(actual, threshold)
        comparator = ">="
    return DecisionGateItem(
        key=key,
        label=label,
        actual=fmt(actual),
        threshold=(
            f"{comparator} {fmt(threshold)}"
            if threshold is not None
            else "no threshold"
        ),
        level=level,
        reason=reason if level is GateLevel.FAIL else None,
    )


def _baseline_gate(baseline_complete: bool | None) -> DecisionGateItem:
    if baseline_complete is None:
        level, actual = GateLevel.NA, "-"
    elif baseline_complete:
        level, actual = GateLevel.PASS, "complete"
    else:
        level, actual = GateLevel.FAIL, "incomplete"
    return DecisionGateItem(
        key="compareBaseline",
        label="Baseline comparison completeness",
        actual=actual,
        threshold="baseline comparison required",
        level=level,
        reason=(
            DecisionReason.COMPARE_BASELINE_INCOMPLETE
            if level is GateLevel.FAIL
            else None
        ),
    )


def _improvement_gate(
    avg_score_delta: float | None, criteria: CriteriaSnapshot
) -> DecisionGateItem:
    threshold = criteria.min_improvement_notice_delta
    note: str | None = None
    reason: DecisionReason | None = None
    if avg_score_delta is None or threshold is None:
        level = GateLevel.NA
        note = "no comparison score data" if avg_score_delta is None else None
    elif avg_score_delta < 0:
        level = GateLevel.FAIL
        note = "regression against the released version"
        reason = DecisionReason.COMPARE_REGRESSION_DETECTED
    elif avg_score_delta < threshold:
        level = GateLevel.WARN
        note = "improved, but below the recommended delta"
        reason = DecisionReason.COMPARE_IMPROVEMENT_MINOR
    else:
        level = GateLevel.PASS
    return DecisionGateItem(
        key="improvementDelta",
        label="Improvement (score delta)",
        actual=format_signed(avg_score_delta),
        threshold=(
            f"recommended >= +{threshold:.2f}"
            if threshold is not None
            else "no recommended delta"
        ),
        level=level,
        note=note,
        reason=reason,
    )


def _risk_level(
    blocking: list[DecisionReason], warnings: list[DecisionReason]
) -> RiskLevel:
    if blocking:
        if _HIGH_RISK_REASONS.intersection(blocking):
            return RiskLevel.HIGH
        return RiskLevel.MEDIUM
    if warnings:
        return RiskLevel.MEDIUM
    return RiskLevel.LOW


def evaluate_release_gates(
    mode: EvalMode,
    criteria: CriteriaSnapshot,
    pass_rate: float | None,
    avg_overall_score: float | None,
    error_rate: float | None,
    avg_score_delta: float | None = None,
    baseline_complete: bool | None = None,
) -> ReleaseVerdict:
    """Evaluate every gate for *mode* and derive the release verdict.

    Any FAIL blocks the release, including a compare regression; a WARN only
    adds a reason. NA gates are neither blocking nor reported. Reasons list
    blocking codes first, then warnings, each in gate order.
    """
    gates = [
        _threshold_gate(
            "passRate",
            "Pass rate",
            pass_rate,
            criteria.min_pass_rate,
            upper_bound=False,
            is_percent=True,
            reason=DecisionReason.PASS_RATE_BELOW_THRESHOLD,
        ),
        _threshold_gate(
            "avgScore",
            "Average score",
            avg_overall_score,
            criteria.min_avg_overall_score,
            upper_bound=False,
            is_percent=False,
            reason=DecisionReason.AVG_SCORE_BELOW_THRESHOLD,
        ),
        _threshold_gate(
            "errorRate",
            "Error rate",
            error_rate,
            criteria.max_error_rate,
            upper_bound=True,
            is_percent=True,
            reason=DecisionReason.ERROR_RATE_ABOVE_THRESHOLD,
        ),
    ]
    if mode is EvalMode.COMPARE_ACTIVE:
        gates.append(_baseline_gate(baseline_complete))
        gates.append(_improvement_gate(avg_score_delta, criteria))

    blocking = [
        gate.reason for gate in gates if gate.level is GateLevel.FAIL and gate.reason
    ]
    warnings = [
        gate.reason for gate in gates if gate.level is GateLevel.WARN and gate.reason
    ]

    return ReleaseVerdict(
        gates=gates,
        release_decision=ReleaseDecision.HOLD if blocking else ReleaseDecision.PASS,
        risk_level=_risk_level(blocking, warnings),
        decision_reasons=[str(code) for code in blocking + warnings],
    )
