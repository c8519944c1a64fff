"""Starting and cancelling evaluation runs."""

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Any

from pydantic import ValidationError

from eval_studio.client.domain.api import CreateRunRequest, EvalApi, RunTarget
from eval_studio.client.infrastructure.errors import (
    ApiResponseError,
    RunRequestValidationError,
)
from eval_studio.core.json_probe import as_number
from eval_studio.run.domain.run import EvaluationRun
from eval_studio.run.domain.status import EvalMode

_ANCHOR_SCORES = (1, 3, 5)


@dataclass(frozen=True)
class RubricCriterionDraft:
    """One rubric criterion as entered; ``weight`` is still free text.

    ``anchors`` maps a score (1, 3 or 5) to what an answer at that score
    looks like.
    """

    key: str
    description: str = ""
    weight: str = "1.0"
    anchors: tuple[tuple[int, str], ...] = ()


def _definition_line(key: str, criterion: RubricCriterionDraft) -> str | None:
    description = criterion.description.strip()
    anchors = [
        (score, text.strip())
        for score, text in criterion.anchors
        if score in _ANCHOR_SCORES and text.strip()
    ]
    if not description and not anchors:
        return None
    lines = [f"{key}: {description}"]
    lines.extend(f"  - score {score}: {text}" for score, text in sorted(anchors))
    return "\n".join(lines)


def build_rubric_overrides(
    criteria: Sequence[RubricCriterionDraft],
    min_overall_score: str | None = None,
    require_json_parse_pass: bool = False,
    note: str = "",
) -> dict[str, Any] | None:
    """Rubric overrides payload, or None when nothing would be overridden.

    Criteria without a key or without a finite numeric weight are dropped
    entirely. ``gates`` carries the minimum overall score when it parses and
    ``requireJsonParsePass`` only when set. ``description`` is the note
    followed by one definition block per remaining criterion.
    """
    weights: dict[str, float] = {}
    definitions: list[str] = []
    for criterion in criteria:
        key = criterion.key.strip()
        weight = as_number(criterion.weight)
        if not key or weight is None:
            continue
        weights[key] = weight
        line = _definition_line(key, criterion)
        if line is not None:
            definitions.append(line)

    gates: dict[str, Any] = {}
    score = as_number(min_overall_score)
    if score is not None:
        gates["minOverallScore"] = score
    if require_json_parse_pass:
        gates["requireJsonParsePass"] = True

    description = "\n".join(
        text for text in (note.strip(), *definitions) if text
    )

    overrides: dict[str, Any] = {}
    if weights:
        overrides["weights"] = weights
    if gates:
        overrides["gates"] = gates
    if description:
        overrides["description"] = description
    return overrides or None


def parse_weight_options(options: Iterable[str]) -> list[RubricCriterionDraft]:
    """Turn ``key=weight`` command-line values into criterion drafts."""
    drafts: list[RubricCriterionDraft] = []
    for option in options:
        key, separator, weight = option.partition("=")
        if not separator or not key.strip():
            raise RunRequestValidationError(
                f"rubric weights must look like key=1.0, got {option!r}"
            )
        drafts.append(RubricCriterionDraft(key=key.strip(), weight=weight))
    return drafts


def build_create_run_request(
    dataset_id: int | None,
    prompt_version_id: int | None,
    mode: EvalMode,
    rubric_template_code: str,
    rubric_overrides: dict[str, Any] | None = None,
    active_version_id: int | None = None,
) -> CreateRunRequest:
    """Validate a run request before it is submitted.

    Compare mode needs a released (active) version to compare against.
    """
    if not dataset_id or not prompt_version_id:
        raise RunRequestValidationError("select a dataset and a prompt version")
    if mode is EvalMode.COMPARE_ACTIVE and not active_version_id:
        raise RunRequestValidationError(
            "compare mode needs a released version to compare against"
        )
    try:
        return CreateRunRequest(
            dataset_id=dataset_id,
            prompt_version_id=prompt_version_id,
            mode=mode,
            rubric_template_code=rubric_template_code,
            rubric_overrides=rubric_overrides or None,
        )
    except ValidationError as exc:
        raise RunRequestValidationError(str(exc)) from exc


async def start_run(
    api: EvalApi, workspace_id: int, prompt_id: int, request: CreateRunRequest
) -> RunTarget:
    run: EvaluationRun = await api.create_run(workspace_id, prompt_id, request)
    if run.id is None:
        raise ApiResponseError(action="start evaluation run", reason="no run id")
    return RunTarget(workspace_id=workspace_id, prompt_id=prompt_id, run_id=run.id)


async def cancel_run(api: EvalApi, target: RunTarget) -> None:
    """Ask the service to cancel; the run's status reports the outcome."""
    await api.cancel_run(target)
