"""Rich rendering of reports, trends and release criteria for the terminal."""

from collections.abc import Callable, Sequence

from rich.console import Console
from rich.table import Table

from eval_studio.analysis.application.report import RunReport
from eval_studio.analysis.domain.aggregator import CountEntry
from eval_studio.analysis.domain.comparator import (
    classify_case,
    extract_candidate_overall_score,
    resolve_compare_tone,
)
from eval_studio.analysis.domain.filters import (
    CaseFilter,
    RunTrendPoint,
    count_case_filters,
    filter_cases,
)
from eval_studio.analysis.domain.gate import (
    GateLevel,
    ReleaseDecision,
    format_number,
    format_percent,
    format_signed,
)
from eval_studio.analysis.domain.labels import (
    case_status_label,
    error_code_label,
    judge_label,
    risk_level_label,
    rule_check_label,
    run_status_label,
)
from eval_studio.run.domain.criteria import ReleaseCriteria, ReleaseCriteriaAudit

_GATE_STYLES: dict[GateLevel, str] = {
    GateLevel.PASS: "green",
    GateLevel.WARN: "yellow",
    GateLevel.FAIL: "bold red",
    GateLevel.NA: "dim",
}

# Cases listed per report; the full list is available with --json.
_MAX_CASE_ROWS = 20


def _decision_text(decision: ReleaseDecision) -> str:
    if decision is ReleaseDecision.PASS:
        return "[bold green]PASS[/bold green]"
    return "[bold red]HOLD[/bold red]"


def _distribution_table(
    title: str, entries: list[CountEntry], label_of: Callable[[str], str]
) -> Table:
    table = Table(title=title, title_justify="left", show_edge=False)
    table.add_column("Key")
    table.add_column("Count", justify="right")
    table.add_column("Share", justify="right")
    for entry in entries:
        table.add_row(label_of(entry.key), str(entry.count), f"{entry.pct:.1f}%")
    return table


def render_report(
    console: Console, report: RunReport, case_filter: CaseFilter = CaseFilter.ALL
) -> None:
    """Print the run header, gates, distributions and a filtered case list."""
    agg = report.aggregates
    run = report.run
    console.rule(f"[bold cyan]Run {run.id if run.id is not None else '?'}")
    console.print(
        f"Status [bold]{run_status_label(str(run.status))}[/bold]"
        f"  ·  Mode {run.mode}"
        f"  ·  Processed {agg.processed}/{agg.total}"
        f"  ·  Grade [bold]{report.grade}[/bold]"
    )
    console.print(
        f"Decision {_decision_text(report.verdict.release_decision)}"
        f"  ·  Risk {risk_level_label(str(report.verdict.risk_level))}"
    )
    console.print(report.plain_summary)
    if report.tradeoff_summary is not None:
        console.print(f"[dim]{report.tradeoff_summary}[/dim]")

    gates = Table(title="Release gates", title_justify="left")
    gates.add_column("Gate")
    gates.add_column("Actual", justify="right")
    gates.add_column("Threshold", justify="right")
    gates.add_column("Level")
    gates.add_column("Note", style="dim")
    for gate in report.verdict.gates:
        style = _GATE_STYLES[gate.level]
        gates.add_row(
            gate.label,
            gate.actual,
            gate.threshold,
            f"[{style}]{gate.level}[/{style}]",
            gate.note or "",
        )
    console.print(gates)

    metrics = Table(show_header=False, show_edge=False)
    metrics.add_column(style="dim")
    metrics.add_column(justify="right")
    metrics.add_row("Pass rate", format_percent(agg.pass_rate))
    metrics.add_row("Avg overall score", format_number(agg.avg_overall_score))
    metrics.add_row("Error rate", format_percent(agg.error_rate))
    metrics.add_row("Avg latency", format_number(agg.latency.avg_latency_ms, 0))
    metrics.add_row("P95 latency", format_number(agg.latency.p95_latency_ms, 0))
    metrics.add_row("Total tokens", format_number(agg.total_tokens, 0))
    metrics.add_row("Total cost (USD)", format_number(agg.total_cost_usd, 6))
    if agg.compare is not None:
        compare = agg.compare
        metrics.add_row("Avg score delta", format_signed(compare.avg_score_delta))
        metrics.add_row("Compare win rate", format_percent(compare.compare_win_rate))
        metrics.add_row(
            "Better / worse / same",
            f"{compare.better_count} / {compare.worse_count} / {compare.same_count}",
        )
        metrics.add_row("Battle winner", compare.battle_winner)
    console.print(metrics)

    for title, entries, label_of in (
        ("Rule failures", agg.rule_fail_distribution, rule_check_label),
        ("Rule warnings", agg.rule_warning_distribution, rule_check_label),
        ("Error codes", agg.error_code_distribution, error_code_label),
        ("Judge labels", agg.label_distribution, judge_label),
    ):
        if entries:
            console.print(_distribution_table(title, entries, label_of))

    if report.top_issues:
        console.print("[bold]Top issues[/bold]")
        for issue in report.top_issue_texts:
            console.print(f"  • {issue}")
    if report.compare_mode and report.battle_reasons:
        console.print("[bold]Why this result[/bold]")
        for reason in report.battle_reasons:
            console.print(f"  • {reason}")

    _render_cases(console, report, case_filter)


def _render_cases(console: Console, report: RunReport, case_filter: CaseFilter) -> None:
    compare_mode = report.compare_mode
    counts = count_case_filters(report.cases, compare_mode=compare_mode)
    console.print(
        "  ".join(f"{name}: {count}" for name, count in counts.items()), style="dim"
    )
    selected = filter_cases(report.cases, case_filter, compare_mode=compare_mode)
    table = Table(title=f"Cases ({case_filter})", title_justify="left")
    table.add_column("Case", justify="right")
    table.add_column("Status")
    table.add_column("Result")
    table.add_column("Score", justify="right")
    if compare_mode:
        table.add_column("Tone")
    for item in selected[:_MAX_CASE_ROWS]:
        row = [
            str(item.test_case_id if item.test_case_id is not None else "-"),
            case_status_label(str(item.status)),
            str(classify_case(item)),
            format_number(extract_candidate_overall_score(item)),
        ]
        if compare_mode:
            row.append(str(resolve_compare_tone(item)))
        table.add_row(*row)
    console.print(table)
    if len(selected) > _MAX_CASE_ROWS:
        console.print(f"[dim]… {len(selected) - _MAX_CASE_ROWS} more[/dim]")


def render_trend(console: Console, points: Sequence[RunTrendPoint]) -> None:
    table = Table(title="Run trend", title_justify="left")
    table.add_column("Run", justify="right")
    table.add_column("Created")
    table.add_column("Mode")
    table.add_column("Version", justify="right")
    table.add_column("Pass rate", justify="right")
    table.add_column("Avg score", justify="right")
    table.add_column("Error rate", justify="right")
    table.add_column("Δ score", justify="right")
    for point in points:
        table.add_row(
            str(point.run_id),
            point.created_at or "-",
            str(point.mode),
            str(point.prompt_version_id or "-"),
            format_percent(point.pass_rate),
            format_number(point.avg_overall_score),
            format_percent(point.error_rate),
            format_signed(point.avg_score_delta),
        )
    console.print(table)


def render_criteria(console: Console, criteria: ReleaseCriteria) -> None:
    table = Table(title="Release criteria", title_justify="left", show_header=False)
    table.add_column(style="dim")
    table.add_column(justify="right")
    table.add_row("Min pass rate", format_percent(criteria.min_pass_rate))
    table.add_row(
        "Min avg overall score", format_number(criteria.min_avg_overall_score)
    )
    table.add_row("Max error rate", format_percent(criteria.max_error_rate))
    table.add_row(
        "Min improvement notice delta",
        format_number(criteria.min_improvement_notice_delta),
    )
    if criteria.updated_by or criteria.updated_at:
        changed = f"{criteria.updated_at or '-'} by {criteria.updated_by or '-'}"
        table.add_row("Last updated", changed)
    console.print(table)


def render_criteria_history(
    console: Console, entries: Sequence[ReleaseCriteriaAudit]
) -> None:
    if not entries:
        console.print("[dim]No release criteria changes recorded.[/dim]")
        return
    table = Table(title="Release criteria history", title_justify="left")
    table.add_column("Changed at")
    table.add_column("By")
    table.add_column("Pass rate", justify="right")
    table.add_column("Avg score", justify="right")
    table.add_column("Error rate", justify="right")
    table.add_column("Notice Δ", justify="right")
    for entry in entries:
        table.add_row(
            entry.changed_at or "-",
            entry.changed_by or "-",
            format_percent(entry.min_pass_rate),
            format_number(entry.min_avg_overall_score),
            format_percent(entry.max_error_rate),
            format_number(entry.min_improvement_notice_delta),
        )
    console.print(table)
