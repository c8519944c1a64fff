"""Release criteria, their update payload, audit entries and run snapshots."""

from typing import Any, Self, TypeAlias

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

from eval_studio.core.json_probe import as_record
from eval_studio.run.domain.fields import LenientId, LenientNumber, LenientString

DEFAULT_MIN_PASS_RATE = 90.0
DEFAULT_MIN_AVG_OVERALL_SCORE = 75.0
DEFAULT_MAX_ERROR_RATE = 10.0
DEFAULT_MIN_IMPROVEMENT_NOTICE_DELTA = 3.0

Percent: TypeAlias = float


class ReleaseCriteriaUpdate(
    BaseModel, frozen=True, alias_generator=to_camel, populate_by_name=True
):
    """The four thresholds sent on update; all within [0, 100]."""

    min_pass_rate: Percent = Field(ge=0.0, le=100.0)
    min_avg_overall_score: Percent = Field(ge=0.0, le=100.0)
    max_error_rate: Percent = Field(ge=0.0, le=100.0)
    min_improvement_notice_delta: Percent = Field(ge=0.0, le=100.0)


class CriteriaSnapshot(
    BaseModel, frozen=True, alias_generator=to_camel, populate_by_name=True
):
    """Thresholds captured on a run; any of them may be missing."""

    min_pass_rate: LenientNumber = None
    min_avg_overall_score: LenientNumber = None
    max_error_rate: LenientNumber = None
    min_improvement_notice_delta: LenientNumber = None

    @classmethod
    def from_payload(cls, payload: Any) -> Self:
        return cls.model_validate(as_record(payload) or {})

    @property
    def is_empty(self) -> bool:
        return all(
            value is None
            for value in (
                self.min_pass_rate,
                self.min_avg_overall_score,
                self.max_error_rate,
                self.min_improvement_notice_delta,
            )
        )


class ReleaseCriteria(
    BaseModel, frozen=True, alias_generator=to_camel, populate_by_name=True
):
    """Workspace-scoped release thresholds as currently stored."""

    workspace_id: LenientId = None
    min_pass_rate: Percent = Field(default=DEFAULT_MIN_PASS_RATE, ge=0.0, le=100.0)
    min_avg_overall_score: Percent = Field(
        default=DEFAULT_MIN_AVG_OVERALL_SCORE, ge=0.0, le=100.0
    )
    max_error_rate: Percent = Field(default=DEFAULT_MAX_ERROR_RATE, ge=0.0, le=100.0)
    min_improvement_notice_delta: Percent = Field(
        default=DEFAULT_MIN_IMPROVEMENT_NOTICE_DELTA, ge=0.0, le=100.0
    )
    updated_by: LenientString = None
    updated_at: LenientString = None

    def to_update(self) -> ReleaseCriteriaUpdate:
        return ReleaseCriteriaUpdate(
            min_pass_rate=self.min_pass_rate,
            min_avg_overall_score=self.min_avg_overall_score,
            max_error_rate=self.max_error_rate,
            min_improvement_notice_delta=self.min_improvement_notice_delta,
        )

    def to_snapshot(self) -> CriteriaSnapshot:
        return CriteriaSnapshot(
            min_pass_rate=self.min_pass_rate,
            min_avg_overall_score=self.min_avg_overall_score,
            max_error_rate=self.max_error_rate,
            min_improvement_notice_delta=self.min_improvement_notice_delta,
        )


class ReleaseCriteriaAudit(
    BaseModel, frozen=True, alias_generator=to_camel, populate_by_name=True
):
    """Immutable record of one criteria update."""

    id: LenientId = None
    workspace_id: LenientId = None
    min_pass_rate: LenientNumber = None
    min_avg_overall_score: LenientNumber = None
    max_error_rate: LenientNumber = None
    min_improvement_notice_delta: LenientNumber = None
    changed_by: LenientString = None
    changed_at: LenientString = None
