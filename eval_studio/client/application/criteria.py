"""Release-criteria editing: local draft validation and save error mapping."""

import math
from dataclasses import dataclass

from eval_studio.client.domain.api import EvalApi
from eval_studio.client.infrastructure.errors import (
    ApiRequestError,
    CriteriaPermissionError,
    CriteriaSaveError,
    CriteriaValidationError,
)
from eval_studio.core.errors import EvalStudioError
from eval_studio.run.domain.criteria import ReleaseCriteria, ReleaseCriteriaUpdate

BLANK_FIELD_MESSAGE = "fill in every release criteria field"
NON_NUMERIC_MESSAGE = "release criteria must be numbers"
OUT_OF_RANGE_MESSAGE = "release criteria must be within 0-100"


@dataclass(frozen=True)
class ReleaseCriteriaDraft:
    """Raw text of the four thresholds as typed by the user."""

    min_pass_rate: str
    min_avg_overall_score: str
    max_error_rate: str
    min_improvement_notice_delta: str

    @classmethod
    def from_criteria(cls, criteria: ReleaseCriteria) -> "ReleaseCriteriaDraft":
        return cls(
            min_pass_rate=_format_value(criteria.min_pass_rate),
            min_avg_overall_score=_format_value(criteria.min_avg_overall_score),
            max_error_rate=_format_value(criteria.max_error_rate),
            min_improvement_notice_delta=_format_value(
                criteria.min_improvement_notice_delta
            ),
        )

    def values(self) -> list[str]:
        return [
            self.min_pass_rate,
            self.min_avg_overall_score,
            self.max_error_rate,
            self.min_improvement_notice_delta,
        ]


def _format_value(value: float) -> str:
    return repr(value)


def _parse_finite(raw: str) -> float | None:
    try:
        value = float(raw.strip())
    except ValueError:
        return None
    return value if math.isfinite(value) else None


def validate_criteria_draft(draft: ReleaseCriteriaDraft) -> ReleaseCriteriaUpdate:
    """Turn a draft into an update payload, or raise CriteriaValidationError.

    Checks run in order: every field present, every field numeric, every
    value within [0, 100]. Values are passed through unrounded.
    """
    raw_values = draft.values()
    if any(not raw.strip() for raw in raw_values):
        raise CriteriaValidationError(BLANK_FIELD_MESSAGE)

    parsed = [_parse_finite(raw) for raw in raw_values]
    if any(value is None for value in parsed):
        raise CriteriaValidationError(NON_NUMERIC_MESSAGE)

    numbers = [value for value in parsed if value is not None]
    if any(value < 0 or value > 100 for value in numbers):
        raise CriteriaValidationError(OUT_OF_RANGE_MESSAGE)

    min_pass_rate, min_avg_overall_score, max_error_rate, min_delta = numbers
    return ReleaseCriteriaUpdate(
        min_pass_rate=min_pass_rate,
        min_avg_overall_score=min_avg_overall_score,
        max_error_rate=max_error_rate,
        min_improvement_notice_delta=min_delta,
    )


async def save_release_criteria(
    api: EvalApi, workspace_id: int, draft: ReleaseCriteriaDraft
) -> ReleaseCriteria:
    """Validate locally, then submit.

    An invalid draft never reaches the network. A 403 becomes the owner-only
    CriteriaPermissionError; any other failure becomes CriteriaSaveError
    carrying the service's message when it sent one.
    """
    update = validate_criteria_draft(draft)
    try:
        return await api.update_release_criteria(workspace_id, update)
    except ApiRequestError as exc:
        if exc.status_code == 403:
            raise CriteriaPermissionError() from exc
        raise CriteriaSaveError(exc.server_message, retriable=exc.retriable) from exc
    except EvalStudioError as exc:
        raise CriteriaSaveError() from exc
