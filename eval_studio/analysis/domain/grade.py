"""Insight grader — a fixed letter rubric, independent of release criteria."""

from enum import StrEnum


class InsightGrade(StrEnum):
    RUNNING = "..."
    S = "S"
    A = "A"
    B = "B"
    F = "F"


# (min pass rate, min avg score, max error rate), checked in order.
_GRADE_RUBRIC: list[tuple[InsightGrade, float, float, float]] = [
    (InsightGrade.S, 90.0, 85.0, 1.0),
    (InsightGrade.A, 80.0, 75.0, 3.0),
    (InsightGrade.B, 65.0, 65.0, 5.0),
]


def compute_insight_grade(
    pass_rate: float | None,
    avg_overall_score: float | None,
    error_rate: float | None,
    is_running: bool,
) -> InsightGrade:
    """Grade a run; a running run is always '...' whatever its partial metrics."""
    if is_running:
        return InsightGrade.RUNNING
    if pass_rate is None or avg_overall_score is None or error_rate is None:
        return InsightGrade.F
    for grade, min_pass_rate, min_score, max_error_rate in _GRADE_RUBRIC:
        if (
            pass_rate >= min_pass_rate
            and avg_overall_score >= min_score
            and error_rate <= max_error_rate
        ):
            return grade
    return InsightGrade.F
