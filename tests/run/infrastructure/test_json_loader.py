"""Tests for run/infrastructure/json_loader.py."""

import json
from pathlib import Path
from typing import Any

import pytest

from eval_studio.run.domain.status import CaseStatus, EvalMode, RunStatus
from eval_studio.run.infrastructure.errors import RunFileError
from eval_studio.run.infrastructure.json_loader import (
    load_cases_file,
    load_criteria_file,
    load_run_file,
)


def _write(tmp_path: Path, name: str, payload: Any) -> Path:
    path = tmp_path / name
    path.write_text(json.dumps(payload), encoding="utf-8")
    return path


class TestLoadRunFile:
    def test_reads_camel_case_header(self, tmp_path: Path) -> None:
        path = _write(
            tmp_path,
            "run.json",
            {
                "id": 12,
                "mode": "COMPARE_ACTIVE",
                "status": "RUNNING",
                "totalCases": "10",
                "processedCases": 4,
            },
        )

        run = load_run_file(path)

        assert run.id == 12
        assert run.mode is EvalMode.COMPARE_ACTIVE
        assert run.status is RunStatus.RUNNING
        assert run.total_cases == 10
        assert run.processed_cases == 4

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(RunFileError, match="Failed to read"):
            load_run_file(tmp_path / "absent.json")

    def test_malformed_json(self, tmp_path: Path) -> None:
        path = tmp_path / "run.json"
        path.write_text("{", encoding="utf-8")

        with pytest.raises(RunFileError, match="invalid JSON"):
            load_run_file(path)

    def test_non_utf8_file(self, tmp_path: Path) -> None:
        path = tmp_path / "run.json"
        path.write_bytes(b"\xff\xfe\x00")

        with pytest.raises(RunFileError, match="not UTF-8"):
            load_run_file(path)


class TestLoadCasesFile:
    def test_bare_array(self, tmp_path: Path) -> None:
        path = _write(
            tmp_path,
            "cases.json",
            [
                {"testCaseId": 1, "status": "OK", "pass": True},
                {"testCaseId": 2, "status": "ERROR", "errorCode": "TIMEOUT"},
            ],
        )

        cases = load_cases_file(path)

        assert [item.test_case_id for item in cases] == [1, 2]
        assert cases[0].passed is True
        assert cases[1].status is CaseStatus.ERROR

    def test_page_object(self, tmp_path: Path) -> None:
        path = _write(
            tmp_path,
            "cases.json",
            {"content": [{"testCaseId": 5, "status": "OK"}], "totalElements": 1},
        )

        assert [item.test_case_id for item in load_cases_file(path)] == [5]

    def test_unexpected_shape_is_empty(self, tmp_path: Path) -> None:
        assert load_cases_file(_write(tmp_path, "cases.json", "nope")) == []


class TestLoadCriteriaFile:
    def test_reads_thresholds(self, tmp_path: Path) -> None:
        path = _write(
            tmp_path,
            "criteria.json",
            {
                "minPassRate": 80,
                "minAvgOverallScore": 70,
                "maxErrorRate": 5,
                "minImprovementNoticeDelta": 2,
            },
        )

        criteria = load_criteria_file(path)

        assert criteria.min_pass_rate == 80.0
        assert criteria.max_error_rate == 5.0

    def test_out_of_range_threshold_is_rejected(self, tmp_path: Path) -> None:
        path = _write(tmp_path, "criteria.json", {"minPassRate": 140})

        with pytest.raises(RunFileError):
            load_criteria_file(path)
