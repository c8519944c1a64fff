"""Tests for client/application/runs.py — starting and cancelling runs."""

import pytest

from eval_studio.client.application.runs import (
    RubricCriterionDraft,
    build_create_run_request,
    build_rubric_overrides,
    cancel_run,
    parse_weight_options,
    start_run,
)
from eval_studio.client.domain.api import RunTarget
from eval_studio.client.infrastructure.errors import (
    ApiResponseError,
    RunRequestValidationError,
)
from eval_studio.run.domain.status import EvalMode
from tests.client.fake_api import FakeEvalApi


class TestBuildCreateRunRequest:
    def test_valid_request(self) -> None:
        request = build_create_run_request(
            dataset_id=4,
            prompt_version_id=8,
            mode=EvalMode.CANDIDATE_ONLY,
            rubric_template_code="DEFAULT",
        )

        assert request.model_dump(by_alias=True, exclude_none=True) == {
            "datasetId": 4,
            "promptVersionId": 8,
            "mode": EvalMode.CANDIDATE_ONLY,
            "rubricTemplateCode": "DEFAULT",
        }

    def test_missing_dataset(self) -> None:
        with pytest.raises(RunRequestValidationError):
            build_create_run_request(
                dataset_id=None,
                prompt_version_id=8,
                mode=EvalMode.CANDIDATE_ONLY,
                rubric_template_code="DEFAULT",
            )

    def test_compare_mode_needs_released_version(self) -> None:
        with pytest.raises(RunRequestValidationError) as exc_info:
            build_create_run_request(
                dataset_id=4,
                prompt_version_id=8,
                mode=EvalMode.COMPARE_ACTIVE,
                rubric_template_code="DEFAULT",
            )
        assert str(exc_info.value).startswith("Failed to ")

    def test_blank_rubric_is_rejected(self) -> None:
        with pytest.raises(RunRequestValidationError):
            build_create_run_request(
                dataset_id=4,
                prompt_version_id=8,
                mode=EvalMode.CANDIDATE_ONLY,
                rubric_template_code="",
            )


class TestBuildRubricOverrides:
    """Rubric override payloads assembled from loosely typed criteria."""

    def test_nothing_to_override_is_none(self) -> None:
        assert build_rubric_overrides([]) is None
        assert (
            build_rubric_overrides(
                [RubricCriterionDraft(key="   ", weight="2")],
                min_overall_score="  ",
                note="  ",
            )
            is None
        )

    def test_non_numeric_weights_are_dropped(self) -> None:
        overrides = build_rubric_overrides(
            [
                RubricCriterionDraft(key="accuracy", weight="2.5"),
                RubricCriterionDraft(key="tone", weight="heavy"),
                RubricCriterionDraft(key="format", weight=""),
                RubricCriterionDraft(key="safety", weight="inf"),
            ]
        )

        assert overrides == {"weights": {"accuracy": 2.5}}

    def test_only_invalid_weights_is_none(self) -> None:
        criteria = [RubricCriterionDraft(key="tone", weight="n/a")]

        assert build_rubric_overrides(criteria) is None

    def test_gates(self) -> None:
        overrides = build_rubric_overrides(
            [], min_overall_score="3.5", require_json_parse_pass=True
        )

        assert overrides == {
            "gates": {"minOverallScore": 3.5, "requireJsonParsePass": True}
        }

    def test_unparsable_minimum_score_is_left_out(self) -> None:
        overrides = build_rubric_overrides(
            [], min_overall_score="high", require_json_parse_pass=True
        )

        assert overrides == {"gates": {"requireJsonParsePass": True}}

    def test_description_lists_note_then_definitions(self) -> None:
        overrides = build_rubric_overrides(
            [
                RubricCriterionDraft(
                    key=" accuracy ",
                    description="Facts match the source",
                    anchors=((5, "No errors"), (1, "Mostly wrong"), (3, " ")),
                ),
                RubricCriterionDraft(key="tone"),
            ],
            note="  Support replies  ",
        )

        assert overrides is not None
        assert overrides["weights"] == {"accuracy": 1.0, "tone": 1.0}
        assert overrides["description"] == (
            "Support replies\n"
            "accuracy: Facts match the source\n"
            "  - score 1: Mostly wrong\n"
            "  - score 5: No errors"
        )

    def test_dropped_criterion_has_no_definition(self) -> None:
        overrides = build_rubric_overrides(
            [RubricCriterionDraft(key="tone", weight="?", description="Friendly")]
        )

        assert overrides is None

    def test_overrides_reach_the_request(self) -> None:
        overrides = build_rubric_overrides(
            parse_weight_options(["accuracy=2", "tone=0.5"]),
            min_overall_score="4",
        )
        request = build_create_run_request(
            dataset_id=4,
            prompt_version_id=8,
            mode=EvalMode.CANDIDATE_ONLY,
            rubric_template_code="DEFAULT",
            rubric_overrides=overrides,
        )

        dumped = request.model_dump(by_alias=True, exclude_none=True)
        assert dumped["rubricOverrides"] == {
            "weights": {"accuracy": 2.0, "tone": 0.5},
            "gates": {"minOverallScore": 4.0},
        }


class TestParseWeightOptions:
    def test_key_value_pairs(self) -> None:
        drafts = parse_weight_options([" accuracy =2", "tone="])

        assert drafts == [
            RubricCriterionDraft(key="accuracy", weight="2"),
            RubricCriterionDraft(key="tone", weight=""),
        ]

    @pytest.mark.parametrize("option", ["accuracy", "=2"])
    def test_malformed_option_is_rejected(self, option: str) -> None:
        with pytest.raises(RunRequestValidationError, match="key=1.0"):
            parse_weight_options([option])


class TestStartAndCancel:
    async def test_start_returns_target(self) -> None:
        api = FakeEvalApi()
        request = build_create_run_request(
            dataset_id=4,
            prompt_version_id=8,
            mode=EvalMode.COMPARE_ACTIVE,
            rubric_template_code="DEFAULT",
            active_version_id=7,
        )

        target = await start_run(api, 1, 2, request)

        assert target == RunTarget(workspace_id=1, prompt_id=2, run_id=99)
        assert api.created == [request]

    async def test_start_without_id_is_an_error(self) -> None:
        api = FakeEvalApi()
        api.created_run_id = None
        request = build_create_run_request(
            dataset_id=4,
            prompt_version_id=8,
            mode=EvalMode.CANDIDATE_ONLY,
            rubric_template_code="DEFAULT",
        )

        with pytest.raises(ApiResponseError):
            await start_run(api, 1, 2, request)

    async def test_cancel(self) -> None:
        api = FakeEvalApi()
        target = RunTarget(workspace_id=1, prompt_id=2, run_id=3)

        await cancel_run(api, target)

        assert api.cancelled == [target]
