"""httpx implementation of the EvalApi port."""

from typing import Any, Self

import httpx
from pydantic import ValidationError

from eval_studio.client.domain.api import CreateRunRequest, RunTarget
from eval_studio.client.infrastructure.errors import ApiRequestError, ApiResponseError
from eval_studio.core.json_probe import as_record, as_string
from eval_studio.run.domain.criteria import (
    ReleaseCriteria,
    ReleaseCriteriaAudit,
    ReleaseCriteriaUpdate,
)
from eval_studio.run.domain.page import CaseResultPage
from eval_studio.run.domain.run import EvaluationRun

DEFAULT_TIMEOUT_SECONDS = 30.0


def _runs_path(workspace_id: int, prompt_id: int) -> str:
    return f"/workspaces/{workspace_id}/prompts/{prompt_id}/eval/runs"


def _run_path(target: RunTarget) -> str:
    return f"{_runs_path(target.workspace_id, target.prompt_id)}/{target.run_id}"


def _criteria_path(workspace_id: int) -> str:
    return f"/workspaces/{workspace_id}/eval/release-criteria"


def _server_message(response: httpx.Response) -> str | None:
    """The ``message`` field of an error body, when the body is JSON."""
    try:
        body = response.json()
    except ValueError:
        return None
    message = as_string((as_record(body) or {}).get("message"))
    return message.strip() if message else None


class HttpEvalApi:
    """Talks to the evaluation service over HTTP with a bearer token.

    Satisfies the EvalApi protocol structurally. Every failure surfaces as an
    ApiRequestError or ApiResponseError; task cancellation propagates as-is.
    """

    def __init__(
        self,
        base_url: str,
        token: str | None = None,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        headers = {"Accept": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._client = httpx.AsyncClient(
            base_url=base_url,
            headers=headers,
            timeout=httpx.Timeout(timeout_seconds),
            transport=transport,
        )

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        action: str,
        params: dict[str, Any] | None = None,
        json: Any = None,
    ) -> Any:
        try:
            response = await self._client.request(
                method, path, params=params, json=json
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            server_message = _server_message(exc.response)
            raise ApiRequestError(
                action=action,
                reason=server_message or exc.response.reason_phrase or "rejected",
                status_code=exc.response.status_code,
                server_message=server_message,
            ) from exc
        except httpx.RequestError as exc:
            raise ApiRequestError(
                action=action, reason=str(exc) or type(exc).__name__
            ) from exc

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise ApiResponseError(action=action, reason="body is not JSON") from exc

    async def get_run(self, target: RunTarget) -> EvaluationRun:
        payload = await self._request("GET", _run_path(target), action="load run")
        return EvaluationRun.from_payload(payload)

    async def get_run_cases(
        self, target: RunTarget, page: int, page_size: int
    ) -> CaseResultPage:
        payload = await self._request(
            "GET",
            f"{_run_path(target)}/cases",
            action="load run cases",
            params={"page": page, "size": page_size},
        )
        return CaseResultPage.from_payload(payload)

    async def list_runs(self, workspace_id: int, prompt_id: int) -> list[EvaluationRun]:
        payload = await self._request(
            "GET", _runs_path(workspace_id, prompt_id), action="list runs"
        )
        if not isinstance(payload, list):
            raise ApiResponseError(action="list runs", reason="expected a JSON array")
        return [EvaluationRun.from_payload(item) for item in payload]

    async def create_run(
        self, workspace_id: int, prompt_id: int, request: CreateRunRequest
    ) -> EvaluationRun:
        payload = await self._request(
            "POST",
            _runs_path(workspace_id, prompt_id),
            action="start evaluation run",
            json=request.model_dump(mode="json", by_alias=True, exclude_none=True),
        )
        return EvaluationRun.from_payload(payload)

    async def cancel_run(self, target: RunTarget) -> None:
        await self._request("POST", f"{_run_path(target)}:cancel", action="cancel run")

    async def get_release_criteria(self, workspace_id: int) -> ReleaseCriteria:
        payload = await self._request(
            "GET", _criteria_path(workspace_id), action="load release criteria"
        )
        return _parse_criteria(payload, action="load release criteria")

    async def get_release_criteria_history(
        self, workspace_id: int
    ) -> list[ReleaseCriteriaAudit]:
        payload = await self._request(
            "GET",
            f"{_criteria_path(workspace_id)}/history",
            action="load release criteria history",
        )
        if not isinstance(payload, list):
            raise ApiResponseError(
                action="load release criteria history", reason="expected a JSON array"
            )
        return [
            ReleaseCriteriaAudit.model_validate(as_record(item) or {})
            for item in payload
        ]

    async def update_release_criteria(
        self, workspace_id: int, update: ReleaseCriteriaUpdate
    ) -> ReleaseCriteria:
        payload = await self._request(
            "PUT",
            _criteria_path(workspace_id),
            action="save release criteria",
            json=update.model_dump(mode="json", by_alias=True),
        )
        return _parse_criteria(payload, action="save release criteria")


def _parse_criteria(payload: Any, action: str) -> ReleaseCriteria:
    try:
        return ReleaseCriteria.model_validate(payload)
    except ValidationError as exc:
        raise ApiResponseError(action=action, reason=str(exc)) from exc
