"""Tests for client/infrastructure/http.py — HttpEvalApi over httpx.MockTransport."""

import json
from collections.abc import Callable
from typing import Any, TypeAlias

import httpx
import pytest

from eval_studio.client.application.criteria import (
    ReleaseCriteriaDraft,
    save_release_criteria,
)
from eval_studio.client.domain.api import CreateRunRequest, RunTarget
from eval_studio.client.infrastructure.errors import (
    ApiRequestError,
    ApiResponseError,
    CriteriaPermissionError,
)
from eval_studio.client.infrastructure.http import HttpEvalApi
from eval_studio.run.domain.status import EvalMode, RunStatus

_TARGET = RunTarget(workspace_id=1, prompt_id=2, run_id=3)
_RUN_PATH = "/api/workspaces/1/prompts/2/eval/runs/3"

Handler: TypeAlias = Callable[[httpx.Request], httpx.Response]


def _api(handler: Handler, token: str | None = "secret") -> HttpEvalApi:
    return HttpEvalApi(
        base_url="https://studio.test/api",
        token=token,
        transport=httpx.MockTransport(handler),
    )


class _Recorder:
    """Answers every request with one canned response and keeps the requests."""

    def __init__(
        self, status_code: int = 200, body: Any = None, text: str = ""
    ) -> None:
        self.requests: list[httpx.Request] = []
        self._status_code = status_code
        self._body = body
        self._text = text

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self._body is not None:
            return httpx.Response(self._status_code, json=self._body)
        return httpx.Response(self._status_code, text=self._text)


class TestReads:
    async def test_get_run_sends_bearer_token(self) -> None:
        recorder = _Recorder(body={"id": 3, "status": "RUNNING"})

        async with _api(recorder) as api:
            run = await api.get_run(_TARGET)

        request = recorder.requests[0]
        assert request.method == "GET"
        assert request.url.path == _RUN_PATH
        assert request.headers["Authorization"] == "Bearer secret"
        assert run.id == 3
        assert run.status is RunStatus.RUNNING

    async def test_no_token_no_auth_header(self) -> None:
        recorder = _Recorder(body={"id": 3})

        async with _api(recorder, token=None) as api:
            await api.get_run(_TARGET)

        assert "Authorization" not in recorder.requests[0].headers

    async def test_get_run_cases_paginates(self) -> None:
        recorder = _Recorder(
            body={"content": [{"id": 1}], "page": 2, "totalPages": 3}
        )

        async with _api(recorder) as api:
            page = await api.get_run_cases(_TARGET, page=2, page_size=50)

        url = recorder.requests[0].url
        assert url.path == f"{_RUN_PATH}/cases"
        assert url.params["page"] == "2"
        assert url.params["size"] == "50"
        assert page.total_pages == 3
        assert len(page.content) == 1

    async def test_list_runs_requires_array(self) -> None:
        async with _api(_Recorder(body={"content": []})) as api:
            with pytest.raises(ApiResponseError):
                await api.list_runs(1, 2)

    async def test_list_runs(self) -> None:
        async with _api(_Recorder(body=[{"id": 1}, {"id": 2}])) as api:
            runs = await api.list_runs(1, 2)

        assert [run.id for run in runs] == [1, 2]

    async def test_history(self) -> None:
        body = [{"id": 1, "minPassRate": 80, "changedBy": "kim"}]

        async with _api(_Recorder(body=body)) as api:
            history = await api.get_release_criteria_history(1)

        assert history[0].min_pass_rate == 80.0
        assert history[0].changed_by == "kim"


class TestWrites:
    async def test_create_run_posts_camel_case(self) -> None:
        recorder = _Recorder(body={"id": 44})
        request = CreateRunRequest(
            dataset_id=4,
            prompt_version_id=8,
            mode=EvalMode.COMPARE_ACTIVE,
            rubric_template_code="DEFAULT",
        )

        async with _api(recorder) as api:
            run = await api.create_run(1, 2, request)

        sent = recorder.requests[0]
        assert sent.method == "POST"
        assert sent.url.path == "/api/workspaces/1/prompts/2/eval/runs"
        assert json.loads(sent.content) == {
            "datasetId": 4,
            "promptVersionId": 8,
            "mode": "COMPARE_ACTIVE",
            "rubricTemplateCode": "DEFAULT",
        }
        assert run.id == 44

    async def test_cancel_accepts_empty_body(self) -> None:
        recorder = _Recorder(status_code=204)

        async with _api(recorder) as api:
            await api.cancel_run(_TARGET)

        assert recorder.requests[0].method == "POST"
        assert recorder.requests[0].url.path == f"{_RUN_PATH}:cancel"

    async def test_criteria_round_trip(self) -> None:
        stored: dict[str, Any] = {"workspaceId": 1}

        def handler(request: httpx.Request) -> httpx.Response:
            if request.method == "PUT":
                stored.update(json.loads(request.content))
            return httpx.Response(200, json=stored)

        draft = ReleaseCriteriaDraft(
            min_pass_rate="87.125",
            min_avg_overall_score="70",
            max_error_rate="2.5",
            min_improvement_notice_delta="0.3",
        )
        async with _api(handler) as api:
            saved = await save_release_criteria(api, 1, draft)
            refetched = await api.get_release_criteria(1)

        assert saved == refetched
        assert refetched.min_pass_rate == 87.125
        assert refetched.max_error_rate == 2.5
        assert refetched.min_improvement_notice_delta == 0.3

    async def test_forbidden_save_is_owner_only(self) -> None:
        recorder = _Recorder(status_code=403, body={"message": "forbidden"})
        draft = ReleaseCriteriaDraft("90", "75", "10", "3")

        async with _api(recorder) as api:
            with pytest.raises(CriteriaPermissionError):
                await save_release_criteria(api, 1, draft)


class TestFailures:
    """Failures surface as ApiRequestError or ApiResponseError."""

    async def test_http_error_uses_server_message(self) -> None:
        recorder = _Recorder(status_code=404, body={"message": "Run not found"})

        async with _api(recorder) as api:
            with pytest.raises(ApiRequestError) as exc_info:
                await api.get_run(_TARGET)

        error = exc_info.value
        assert error.status_code == 404
        assert error.server_message == "Run not found"
        assert error.retriable is False
        assert str(error) == "Failed to load run: HTTP 404: Run not found"

    async def test_server_error_is_retriable(self) -> None:
        async with _api(_Recorder(status_code=503, text="down")) as api:
            with pytest.raises(ApiRequestError) as exc_info:
                await api.get_run(_TARGET)

        assert exc_info.value.retriable is True
        assert exc_info.value.server_message is None

    async def test_transport_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        async with _api(handler) as api:
            with pytest.raises(ApiRequestError) as exc_info:
                await api.get_run(_TARGET)

        assert exc_info.value.status_code is None
        assert exc_info.value.retriable is True

    async def test_non_json_body(self) -> None:
        async with _api(_Recorder(text="<html>")) as api:
            with pytest.raises(ApiResponseError):
                await api.get_run(_TARGET)

    async def test_invalid_criteria_payload(self) -> None:
        async with _api(_Recorder(body={"minPassRate": 400})) as api:
            with pytest.raises(ApiResponseError):
                await api.get_release_criteria(1)
