"""Loads exported run headers and case lists from JSON files.

Only unreadable files and malformed JSON are errors. Whatever shape the JSON
has is coerced leniently, the same as a service response.
"""

import json
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from eval_studio.core.json_probe import as_record
from eval_studio.run.domain.case import EvalCaseResult
from eval_studio.run.domain.criteria import ReleaseCriteria
from eval_studio.run.domain.page import CaseResultPage
from eval_studio.run.domain.run import EvaluationRun
from eval_studio.run.infrastructure.errors import RunFileError


def _read_json(path: Path) -> Any:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise RunFileError(path, exc.strerror or str(exc)) from exc
    except UnicodeDecodeError as exc:
        raise RunFileError(path, f"not UTF-8 text: {exc.reason}") from exc
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise RunFileError(path, f"invalid JSON: {exc}") from exc


def load_run_file(path: Path) -> EvaluationRun:
    return EvaluationRun.from_payload(_read_json(path))


def load_cases_file(path: Path) -> list[EvalCaseResult]:
    """Accept a bare JSON array or one page object with a ``content`` array."""
    payload = _read_json(path)
    if isinstance(payload, list):
        return [EvalCaseResult.from_payload(item) for item in payload]
    return list(CaseResultPage.from_payload(as_record(payload) or {}).content)


def load_criteria_file(path: Path) -> ReleaseCriteria:
    """Criteria are validated strictly; an out-of-range threshold is an error."""
    try:
        return ReleaseCriteria.model_validate(_read_json(path))
    except ValidationError as exc:
        raise RunFileError(path, str(exc)) from exc
