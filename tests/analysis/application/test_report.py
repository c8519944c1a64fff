"""Tests for analysis/application/report.py — build_run_report() pipeline."""

from eval_studio.analysis.application.report import build_run_report
from eval_studio.analysis.domain.gate import GateLevel, ReleaseDecision
from eval_studio.analysis.domain.grade import InsightGrade
from eval_studio.run.domain.case import EvalCaseResult
from eval_studio.run.domain.criteria import CriteriaSnapshot, ReleaseCriteria
from tests.analysis.case_factory import make_case, make_run

_LENIENT_SNAPSHOT = {
    "minPassRate": 50,
    "minAvgOverallScore": 0,
    "maxErrorRate": 100,
    "minImprovementNoticeDelta": 0,
}


def _losing_compare_case(test_case_id: int) -> EvalCaseResult:
    return make_case(
        passed=False,
        compare={
            "winner": "BASELINE",
            "scoreDelta": -4,
            "candidatePass": False,
            "baselinePass": True,
        },
        candidate_meta={"latencyMs": 1200, "estimatedCostUsd": 0.003},
        baseline_meta={"latencyMs": 1000, "estimatedCostUsd": 0.002},
        test_case_id=test_case_id,
    )


class TestReleaseDecision:
    """The report carries a verdict computed from the resolved criteria."""

    def test_healthy_run_is_released(self) -> None:
        cases = [make_case(passed=True, overall_score=95) for _ in range(4)]

        report = build_run_report(make_run(), cases, ReleaseCriteria())

        assert report.verdict.release_decision is ReleaseDecision.PASS
        assert report.grade is InsightGrade.S
        assert report.top_issues == []
        assert report.plain_summary.startswith("Decision: ready to release")

    def test_run_snapshot_wins_over_live_criteria(self) -> None:
        run = make_run(summary={"criteriaSnapshot": _LENIENT_SNAPSHOT})
        cases = [make_case(passed=True, overall_score=80) for _ in range(3)]
        cases.append(make_case(passed=False, overall_score=80))

        report = build_run_report(run, cases, ReleaseCriteria(min_pass_rate=99.0))

        assert report.criteria.min_pass_rate == 50.0
        assert report.verdict.release_decision is ReleaseDecision.PASS

    def test_live_criteria_fill_a_missing_snapshot(self) -> None:
        cases = [make_case(passed=False, overall_score=80)]

        report = build_run_report(make_run(), cases, ReleaseCriteria())

        assert report.criteria.min_pass_rate == 90.0
        assert report.verdict.release_decision is ReleaseDecision.HOLD

    def test_no_criteria_at_all_leaves_gates_na(self) -> None:
        report = build_run_report(make_run(), [make_case(passed=False)])

        assert report.criteria == CriteriaSnapshot()
        assert all(gate.level is GateLevel.NA for gate in report.verdict.gates)
        assert report.verdict.release_decision is ReleaseDecision.PASS


class TestRunningRun:
    def test_grade_is_pending(self) -> None:
        run = make_run(status="RUNNING")
        cases = [make_case(passed=True, overall_score=99)]

        report = build_run_report(run, cases, ReleaseCriteria())

        assert report.is_running is True
        assert report.grade is InsightGrade.RUNNING


class TestTopIssues:
    """Decision reasons come first, then dominant distribution entries."""

    def test_reasons_then_distributions(self) -> None:
        cases = [
            make_case(
                passed=False,
                rule_checks={"failedChecks": ["max_chars"]},
                labels=["MISSING_MUST_COVER"],
            )
            for _ in range(2)
        ]

        report = build_run_report(make_run(), cases, ReleaseCriteria())

        assert report.top_issues == [
            "PASS_RATE_BELOW_THRESHOLD",
            "Top rule failure: max_chars",
            "Top judge issue: MISSING_MUST_COVER",
        ]
        assert report.top_issue_texts == [
            "Pass rate below threshold",
            "Top rule failure: Character limit",
            "Top judge issue: Required point not covered",
        ]
        assert report.plain_summary == (
            "Decision: hold release / Pass rate 0.00% / Avg score -"
            " / Top issue: Pass rate below threshold"
        )

    def test_at_most_three(self) -> None:
        cases = [
            make_case(
                passed=False,
                overall_score=10,
                rule_checks={
                    "failedChecks": ["schema"],
                    "warningChecks": ["max_lines"],
                },
            ),
            make_case(status="ERROR", error_code="TIMEOUT"),
        ]

        report = build_run_report(make_run(), cases, ReleaseCriteria())

        assert len(report.top_issues) == 3
        assert report.top_issues[0] == "PASS_RATE_BELOW_THRESHOLD"


class TestCompareReport:
    """Compare runs explain the battle and the trade-off."""

    def test_baseline_win_is_explained(self) -> None:
        run = make_run(mode="COMPARE_ACTIVE")
        cases = [_losing_compare_case(1), _losing_compare_case(2)]

        report = build_run_report(run, cases, ReleaseCriteria())

        assert report.compare_mode is True
        assert report.battle_winner == "BASELINE"
        assert report.verdict.release_decision is ReleaseDecision.HOLD
        assert report.battle_reasons == [
            "Average score is 4.00 lower than the released version.",
            "Pass battle loss (win 0 / loss 2).",
            "Responses are 200ms slower on average.",
        ]
        assert report.tradeoff_summary == (
            "quality down (-4.00) · cost increased (+$0.001000) · slower (+200ms)"
        )

    def test_single_mode_has_no_tradeoff(self) -> None:
        report = build_run_report(make_run(), [make_case()], ReleaseCriteria())

        assert report.tradeoff_summary is None
        assert report.battle_winner is None


class TestToSummary:
    """to_summary() produces the service's camelCase summary shape."""

    def test_single_mode_fields(self) -> None:
        cases = [
            make_case(
                passed=True, overall_score=88.456, candidate_meta={"latencyMs": 10}
            ),
            make_case(passed=False, overall_score=70),
        ]

        summary = build_run_report(make_run(), cases, ReleaseCriteria()).to_summary()

        assert summary["totalCases"] == 2
        assert summary["passedCases"] == 1
        assert summary["passRate"] == 50.0
        assert summary["avgOverallScore"] == 79.23
        assert summary["releaseDecision"] == "HOLD"
        assert summary["criteriaSnapshot"]["minPassRate"] == 90.0
        assert summary["performance"]["candidate"]["p95LatencyMs"] == 10.0
        assert "compareWinRate" not in summary

    def test_compare_mode_fields(self) -> None:
        run = make_run(mode="COMPARE_ACTIVE")

        summary = build_run_report(
            run, [_losing_compare_case(1)], ReleaseCriteria()
        ).to_summary()

        assert summary["avgScoreDelta"] == -4.0
        assert summary["compareWinRate"] == 0.0
        assert summary["compareBaselineComplete"] is True

    def test_llm_review_passes_through(self) -> None:
        run = make_run(summary={"llmOverallReview": {"text": "Looks fine."}})

        summary = build_run_report(run, [make_case()]).to_summary()

        assert summary["llmOverallReview"] == {"text": "Looks fine."}

    def test_cost(self) -> None:
        cases = [make_case(candidate_meta={"totalTokens": 10, "estimatedCostUsd": 1})]

        cost = build_run_report(make_run(), cases).to_cost()

        assert cost == {"totalTokens": 10.0, "totalCostUsd": 1.0}
