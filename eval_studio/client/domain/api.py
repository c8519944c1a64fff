"""Fetch contract with the evaluation service, in domain language."""

from dataclasses import dataclass
from typing import Any, Protocol

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

from eval_studio.run.domain.criteria import (
    ReleaseCriteria,
    ReleaseCriteriaAudit,
    ReleaseCriteriaUpdate,
)
from eval_studio.run.domain.page import CaseResultPage
from eval_studio.run.domain.run import EvaluationRun
from eval_studio.run.domain.status import EvalMode


@dataclass(frozen=True)
class RunTarget:
    """Addresses one run of one prompt within a workspace."""

    workspace_id: int
    prompt_id: int
    run_id: int


class CreateRunRequest(
    BaseModel, frozen=True, alias_generator=to_camel, populate_by_name=True
):
    dataset_id: int = Field(gt=0)
    prompt_version_id: int = Field(gt=0)
    mode: EvalMode
    rubric_template_code: str = Field(min_length=1)
    rubric_overrides: dict[str, Any] | None = None


class EvalApi(Protocol):
    async def get_run(self, target: RunTarget) -> EvaluationRun: ...

    async def get_run_cases(
        self, target: RunTarget, page: int, page_size: int
    ) -> CaseResultPage: ...

    async def list_runs(
        self, workspace_id: int, prompt_id: int
    ) -> list[EvaluationRun]: ...

    async def create_run(
        self, workspace_id: int, prompt_id: int, request: CreateRunRequest
    ) -> EvaluationRun: ...

    async def cancel_run(self, target: RunTarget) -> None: ...

    async def get_release_criteria(self, workspace_id: int) -> ReleaseCriteria: ...

    async def get_release_criteria_history(
        self, workspace_id: int
    ) -> list[ReleaseCriteriaAudit]: ...

    async def update_release_criteria(
        self, workspace_id: int, update: ReleaseCriteriaUpdate
    ) -> ReleaseCriteria: ...

