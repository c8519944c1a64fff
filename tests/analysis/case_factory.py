"""Builders for run and case payloads shaped like evaluation service responses."""

from typing import Any

from eval_studio.run.domain.case import EvalCaseResult
from eval_studio.run.domain.run import EvaluationRun


def make_case(
    status: str = "OK",
    passed: bool | None = True,
    overall_score: float | None = None,
    labels: list[str] | None = None,
    compare: dict[str, Any] | None = None,
    candidate_meta: dict[str, Any] | None = None,
    baseline_meta: dict[str, Any] | None = None,
    rule_checks: dict[str, Any] | None = None,
    error_code: str | None = None,
    test_case_id: int = 1,
) -> EvalCaseResult:
    judge_output: dict[str, Any] = {}
    if labels is not None:
        judge_output["labels"] = labels
    if compare is not None:
        judge_output["compare"] = compare
    return EvalCaseResult.from_payload(
        {
            "id": test_case_id,
            "testCaseId": test_case_id,
            "status": status,
            "pass": passed,
            "overallScore": overall_score,
            "judgeOutput": judge_output or None,
            "candidateMeta": candidate_meta,
            "baselineMeta": baseline_meta,
            "ruleChecks": rule_checks,
            "errorCode": error_code,
        }
    )


def make_run(
    run_id: int = 1,
    status: str = "COMPLETED",
    mode: str = "CANDIDATE_ONLY",
    summary: dict[str, Any] | None = None,
    created_at: str | None = None,
    prompt_version_id: int | None = 10,
) -> EvaluationRun:
    return EvaluationRun.from_payload(
        {
            "id": run_id,
            "promptId": 2,
            "workspaceId": 3,
            "promptVersionId": prompt_version_id,
            "status": status,
            "mode": mode,
            "summary": summary,
            "createdAt": created_at,
        }
    )
