"""EvalCaseResult — outcome of one dataset test case within a run."""

from typing import Any, Self

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

from eval_studio.core.json_probe import as_record
from eval_studio.run.domain.fields import (
    LenientBool,
    LenientId,
    LenientNumber,
    LenientString,
)
from eval_studio.run.domain.status import CaseStatus, LenientCaseStatus


class EvalCaseResult(
    BaseModel, frozen=True, alias_generator=to_camel, populate_by_name=True
):
    """Per-case result.

    Evidence fields (``rule_checks``, ``judge_output`` and the per-side
    metadata) keep their raw JSON; their shape depends on the run mode and is
    read only through the JSON probe.
    """

    id: LenientId = None
    eval_run_id: LenientId = None
    test_case_id: LenientId = None
    status: LenientCaseStatus = CaseStatus.QUEUED
    candidate_output: Any = None
    baseline_output: Any = None
    candidate_meta: Any = None
    baseline_meta: Any = None
    rule_checks: Any = None
    judge_output: Any = None
    overall_score: LenientNumber = None
    passed: LenientBool = Field(default=None, alias="pass")
    error_code: LenientString = None
    error_message: LenientString = None
    started_at: LenientString = None
    completed_at: LenientString = None

    @classmethod
    def from_payload(cls, payload: Any) -> Self:
        return cls.model_validate(as_record(payload) or {})
