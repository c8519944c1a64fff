"""EvaluationRun — one execution of a dataset against a prompt version."""

from typing import Any, Self

from pydantic import BaseModel
from pydantic.alias_generators import to_camel

from eval_studio.core.json_probe import as_record
from eval_studio.run.domain.fields import (
    LenientCount,
    LenientId,
    LenientString,
)
from eval_studio.run.domain.status import (
    EvalMode,
    LenientMode,
    LenientRunStatus,
    RunStatus,
)


class EvaluationRun(
    BaseModel, frozen=True, alias_generator=to_camel, populate_by_name=True
):
    """Run header as returned by the evaluation service.

    ``summary`` and ``cost`` stay opaque: they are read through the JSON probe
    and recomputed locally by the analysis pipeline.
    """

    id: LenientId = None
    prompt_id: LenientId = None
    prompt_version_id: LenientId = None
    workspace_id: LenientId = None
    dataset_id: LenientId = None
    mode: LenientMode = EvalMode.CANDIDATE_ONLY
    trigger_type: LenientString = None
    rubric_template_code: LenientString = None
    rubric_overrides: Any = None
    status: LenientRunStatus = RunStatus.QUEUED
    total_cases: LenientCount = 0
    processed_cases: LenientCount = 0
    passed_cases: LenientCount = 0
    failed_cases: LenientCount = 0
    error_cases: LenientCount = 0
    summary: Any = None
    cost: Any = None
    started_at: LenientString = None
    completed_at: LenientString = None
    created_at: LenientString = None

    @classmethod
    def from_payload(cls, payload: Any) -> Self:
        """Build a run from arbitrary JSON; non-object payloads give an empty run."""
        return cls.model_validate(as_record(payload) or {})

    @property
    def is_compare(self) -> bool:
        return self.mode is EvalMode.COMPARE_ACTIVE
