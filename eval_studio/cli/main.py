"""CLI entrypoint for eval-studio — typer app for analysing and watching runs."""

import asyncio
import contextlib
import dataclasses
import json
import sys
from collections.abc import Iterator
from enum import StrEnum
from pathlib import Path

import structlog
import typer
from rich.console import Console

from eval_studio.analysis.application.report import RunReport, build_run_report
from eval_studio.analysis.domain.filters import (
    CaseFilter,
    build_run_trend_points,
    filter_run_trend_points,
)
from eval_studio.cli.output.console import (
    render_criteria,
    render_criteria_history,
    render_report,
    render_trend,
)
from eval_studio.client.application.criteria import (
    ReleaseCriteriaDraft,
    save_release_criteria,
)
from eval_studio.client.application.runs import (
    build_create_run_request,
    build_rubric_overrides,
    cancel_run,
    parse_weight_options,
    start_run,
)
from eval_studio.client.domain.api import RunTarget
from eval_studio.client.infrastructure.http import HttpEvalApi
from eval_studio.config.domain.config import StudioConfig
from eval_studio.config.infrastructure.observer import StructlogConfigObserver
from eval_studio.config.infrastructure.yaml_loader import YamlConfigLoader
from eval_studio.core.errors import EvalStudioError
from eval_studio.polling.application.poller import watch_run
from eval_studio.polling.domain.observer import PollingObserver
from eval_studio.polling.domain.snapshot import PollingSnapshot
from eval_studio.polling.infrastructure.composite_observer import (
    CompositePollingObserver,
)
from eval_studio.polling.infrastructure.observer import StructlogPollingObserver
from eval_studio.polling.infrastructure.progress_observer import (
    ProgressPollingObserver,
)
from eval_studio.run.domain.criteria import ReleaseCriteria, ReleaseCriteriaAudit
from eval_studio.run.domain.run import EvaluationRun
from eval_studio.run.domain.status import EvalMode
from eval_studio.run.infrastructure.json_loader import (
    load_cases_file,
    load_criteria_file,
    load_run_file,
)
from eval_studio.session.infrastructure.json_file import JsonFileLastViewedRunCache

app = typer.Typer(add_completion=False)
criteria_app = typer.Typer(add_completion=False, help="Workspace release criteria.")
app.add_typer(criteria_app, name="criteria")

_DEFAULT_CONFIG = Path("eval-studio.yaml")


class TrendMode(StrEnum):
    ALL = "ALL"
    CANDIDATE_ONLY = "CANDIDATE_ONLY"
    COMPARE_ACTIVE = "COMPARE_ACTIVE"


def _configure_structlog(log_format: str) -> None:
    """Configure structlog based on the requested format."""
    if log_format == "console":
        renderer: structlog.types.Processor = structlog.dev.ConsoleRenderer()
    elif log_format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        typer.echo(f"Invalid log format: {log_format!r}. Must be 'console' or 'json'.")
        raise typer.Exit(code=1)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(0),
        context_class=dict,
        # stdout is reserved for reports and --json output.
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
    )


@contextlib.contextmanager
def _command_errors(interrupted: str) -> Iterator[None]:
    """Map failures to a one-line message and exit code 1."""
    try:
        yield
    except typer.Exit:
        raise
    except KeyboardInterrupt:
        typer.echo(interrupted)
        sys.exit(1)
    except EvalStudioError as exc:
        typer.echo(str(exc))
        sys.exit(1)
    except Exception as exc:  # noqa: BLE001
        typer.echo(f"Unexpected error: {exc}\nPlease report this bug.")
        sys.exit(1)


def _load_config(config_path: Path) -> StudioConfig:
    loader = YamlConfigLoader(observer=StructlogConfigObserver())
    return loader.load(path=config_path)


def _scope(
    config: StudioConfig, workspace: int | None, prompt: int | None
) -> tuple[int, int]:
    """Workspace and prompt ids, command-line flags first."""
    workspace_id = workspace or config.workspace_id
    prompt_id = prompt or config.prompt_id
    if workspace_id is None or prompt_id is None:
        typer.echo(
            "Failed to resolve scope: pass --workspace and --prompt"
            " or set workspace_id and prompt_id in the config."
        )
        raise typer.Exit(code=1)
    return workspace_id, prompt_id


def _workspace(config: StudioConfig, workspace: int | None) -> int:
    workspace_id = workspace or config.workspace_id
    if workspace_id is None:
        typer.echo(
            "Failed to resolve workspace: pass --workspace"
            " or set workspace_id in the config."
        )
        raise typer.Exit(code=1)
    return workspace_id


def _api(config: StudioConfig) -> HttpEvalApi:
    return HttpEvalApi(
        base_url=config.api.base_url,
        token=config.api.token,
        timeout_seconds=config.api.timeout_seconds,
    )


def _print_report(report: RunReport, case_filter: CaseFilter, as_json: bool) -> None:
    if as_json:
        payload = {"summary": report.to_summary(), "cost": report.to_cost()}
        typer.echo(json.dumps(payload, indent=2, ensure_ascii=False))
        return
    render_report(Console(), report, case_filter)


@app.command()
def analyze(
    run_path: Path = typer.Argument(..., help="Exported run header JSON"),
    cases_path: Path = typer.Argument(..., help="Exported case list JSON"),
    criteria_path: Path | None = typer.Option(
        None,
        "--criteria",
        help="Release criteria JSON used when the run carries no snapshot",
    ),
    case_filter: CaseFilter = typer.Option(
        CaseFilter.ALL, "--filter", help="Which cases to list"
    ),
    as_json: bool = typer.Option(
        False, "--json", help="Print the recomputed summary as JSON"
    ),
    log_format: str = typer.Option(
        "console",
        "--log-format",
        help="Log format: 'console' or 'json'",
    ),
) -> None:
    """Recompute the report of an exported run from local files."""
    with _command_errors("Analysis interrupted."):
        _configure_structlog(log_format=log_format)
        run = load_run_file(run_path)
        cases = load_cases_file(cases_path)
        criteria = load_criteria_file(criteria_path) if criteria_path else None
        report = build_run_report(run, cases, criteria)
        _print_report(report, case_filter, as_json)


async def _watch(
    config: StudioConfig,
    target: RunTarget,
    observer: PollingObserver,
) -> PollingSnapshot:
    async with _api(config) as api:
        return await watch_run(
            api=api,
            target=target,
            observer=observer,
            run_interval_seconds=config.polling.run_interval_seconds,
            cases_interval_seconds=config.polling.cases_interval_seconds,
            page_size=config.polling.page_size,
        )


@app.command()
def watch(
    run_id: int | None = typer.Argument(
        None, help="Run to watch; defaults to the last viewed run"
    ),
    config_path: Path = typer.Option(_DEFAULT_CONFIG, "--config", "-c"),
    workspace: int | None = typer.Option(None, "--workspace"),
    prompt: int | None = typer.Option(None, "--prompt"),
    case_filter: CaseFilter = typer.Option(CaseFilter.ALL, "--filter"),
    as_json: bool = typer.Option(False, "--json"),
    log_format: str = typer.Option(
        "console",
        "--log-format",
        help="Log format: 'console' or 'json'",
    ),
) -> None:
    """Poll a live run until it finishes, then print its report."""
    with _command_errors("Watch interrupted."):
        _configure_structlog(log_format=log_format)
        config = _load_config(config_path)
        workspace_id, prompt_id = _scope(config, workspace, prompt)
        cache = JsonFileLastViewedRunCache(config.session.resolved_path)
        resolved = run_id or cache.read(workspace_id, prompt_id)
        if resolved is None:
            typer.echo("Failed to pick a run: pass a run id; no run was viewed yet.")
            raise typer.Exit(code=1)
        cache.write(workspace_id, prompt_id, resolved)

        observers: list[PollingObserver] = [StructlogPollingObserver()]
        if log_format != "json":
            observers.append(ProgressPollingObserver())
        target = RunTarget(
            workspace_id=workspace_id, prompt_id=prompt_id, run_id=resolved
        )
        snapshot = asyncio.run(
            _watch(config, target, CompositePollingObserver(observers=observers))
        )
        report = snapshot.report
        if report is None:
            reason = snapshot.cases_error or snapshot.run_error or "no report available"
            typer.echo(f"Failed to load run {resolved}: {reason}")
            raise typer.Exit(code=1)
        if report.is_running:
            typer.echo(
                "Showing the last in-flight report; the final case list could"
                f" not be loaded: {snapshot.cases_error}",
                err=True,
            )
        _print_report(report, case_filter, as_json)


@app.command()
def start(
    dataset_id: int = typer.Option(..., "--dataset"),
    prompt_version_id: int = typer.Option(..., "--version"),
    rubric: str = typer.Option(..., "--rubric", help="Rubric template code"),
    mode: EvalMode = typer.Option(EvalMode.CANDIDATE_ONLY, "--mode"),
    active_version_id: int | None = typer.Option(
        None, "--active-version", help="Released version to compare against"
    ),
    weights: list[str] = typer.Option(
        [], "--weight", help="Rubric criterion weight as key=1.0; repeatable"
    ),
    min_overall_score: str | None = typer.Option(None, "--min-overall-score"),
    require_json_parse_pass: bool = typer.Option(
        False, "--require-json-parse-pass"
    ),
    rubric_note: str = typer.Option("", "--rubric-note"),
    config_path: Path = typer.Option(_DEFAULT_CONFIG, "--config", "-c"),
    workspace: int | None = typer.Option(None, "--workspace"),
    prompt: int | None = typer.Option(None, "--prompt"),
    log_format: str = typer.Option("console", "--log-format"),
) -> None:
    """Start an evaluation run and remember it as the last viewed run."""
    with _command_errors("Start interrupted."):
        _configure_structlog(log_format=log_format)
        config = _load_config(config_path)
        workspace_id, prompt_id = _scope(config, workspace, prompt)
        overrides = build_rubric_overrides(
            parse_weight_options(weights),
            min_overall_score=min_overall_score,
            require_json_parse_pass=require_json_parse_pass,
            note=rubric_note,
        )
        request = build_create_run_request(
            dataset_id=dataset_id,
            prompt_version_id=prompt_version_id,
            mode=mode,
            rubric_template_code=rubric,
            rubric_overrides=overrides,
            active_version_id=active_version_id,
        )

        async def _start() -> RunTarget:
            async with _api(config) as api:
                return await start_run(api, workspace_id, prompt_id, request)

        target = asyncio.run(_start())
        cache = JsonFileLastViewedRunCache(config.session.resolved_path)
        cache.write(workspace_id, prompt_id, target.run_id)
        typer.echo(f"Started run {target.run_id}.")


@app.command()
def cancel(
    run_id: int = typer.Argument(..., help="Run to cancel"),
    config_path: Path = typer.Option(_DEFAULT_CONFIG, "--config", "-c"),
    workspace: int | None = typer.Option(None, "--workspace"),
    prompt: int | None = typer.Option(None, "--prompt"),
    log_format: str = typer.Option("console", "--log-format"),
) -> None:
    """Ask the service to cancel a queued or running run."""
    with _command_errors("Cancel interrupted."):
        _configure_structlog(log_format=log_format)
        config = _load_config(config_path)
        workspace_id, prompt_id = _scope(config, workspace, prompt)
        target = RunTarget(
            workspace_id=workspace_id, prompt_id=prompt_id, run_id=run_id
        )

        async def _cancel() -> None:
            async with _api(config) as api:
                await cancel_run(api, target)

        asyncio.run(_cancel())
        typer.echo(f"Cancellation requested for run {run_id}.")


@app.command()
def trend(
    mode: TrendMode = typer.Option(TrendMode.ALL, "--mode"),
    version: int | None = typer.Option(None, "--version"),
    window: int | None = typer.Option(
        None, "--window", help="Newest runs to show; defaults to the config"
    ),
    config_path: Path = typer.Option(_DEFAULT_CONFIG, "--config", "-c"),
    workspace: int | None = typer.Option(None, "--workspace"),
    prompt: int | None = typer.Option(None, "--prompt"),
    log_format: str = typer.Option("console", "--log-format"),
) -> None:
    """Show pass rate, score and error rate across recent runs."""
    with _command_errors("Trend interrupted."):
        _configure_structlog(log_format=log_format)
        config = _load_config(config_path)
        workspace_id, prompt_id = _scope(config, workspace, prompt)

        async def _list() -> list[EvaluationRun]:
            async with _api(config) as api:
                return await api.list_runs(workspace_id, prompt_id)

        points = filter_run_trend_points(
            build_run_trend_points(asyncio.run(_list())),
            mode_filter="ALL" if mode is TrendMode.ALL else EvalMode(mode),
            version_filter="ALL" if version is None else version,
            window_size=window or config.analysis.trend_window,
        )
        render_trend(Console(), points)


@criteria_app.command("show")
def criteria_show(
    config_path: Path = typer.Option(_DEFAULT_CONFIG, "--config", "-c"),
    workspace: int | None = typer.Option(None, "--workspace"),
    log_format: str = typer.Option("console", "--log-format"),
) -> None:
    """Print the workspace's current release criteria."""
    with _command_errors("Interrupted."):
        _configure_structlog(log_format=log_format)
        config = _load_config(config_path)
        workspace_id = _workspace(config, workspace)

        async def _fetch() -> ReleaseCriteria:
            async with _api(config) as api:
                return await api.get_release_criteria(workspace_id)

        render_criteria(Console(), asyncio.run(_fetch()))


@criteria_app.command("history")
def criteria_history(
    config_path: Path = typer.Option(_DEFAULT_CONFIG, "--config", "-c"),
    workspace: int | None = typer.Option(None, "--workspace"),
    log_format: str = typer.Option("console", "--log-format"),
) -> None:
    """Print the audit trail of release criteria changes."""
    with _command_errors("Interrupted."):
        _configure_structlog(log_format=log_format)
        config = _load_config(config_path)
        workspace_id = _workspace(config, workspace)

        async def _fetch() -> list[ReleaseCriteriaAudit]:
            async with _api(config) as api:
                return await api.get_release_criteria_history(workspace_id)

        render_criteria_history(Console(), asyncio.run(_fetch()))


@criteria_app.command("set")
def criteria_set(
    min_pass_rate: str | None = typer.Option(None, "--min-pass-rate"),
    min_avg_overall_score: str | None = typer.Option(
        None, "--min-avg-overall-score"
    ),
    max_error_rate: str | None = typer.Option(None, "--max-error-rate"),
    min_improvement_notice_delta: str | None = typer.Option(
        None, "--min-improvement-notice-delta"
    ),
    config_path: Path = typer.Option(_DEFAULT_CONFIG, "--config", "-c"),
    workspace: int | None = typer.Option(None, "--workspace"),
    log_format: str = typer.Option("console", "--log-format"),
) -> None:
    """Update release criteria; omitted thresholds keep their current value."""
    changes = {
        name: value
        for name, value in (
            ("min_pass_rate", min_pass_rate),
            ("min_avg_overall_score", min_avg_overall_score),
            ("max_error_rate", max_error_rate),
            ("min_improvement_notice_delta", min_improvement_notice_delta),
        )
        if value is not None
    }
    with _command_errors("Interrupted."):
        _configure_structlog(log_format=log_format)
        config = _load_config(config_path)
        workspace_id = _workspace(config, workspace)

        async def _save() -> ReleaseCriteria:
            async with _api(config) as api:
                current = await api.get_release_criteria(workspace_id)
                draft = dataclasses.replace(
                    ReleaseCriteriaDraft.from_criteria(current), **changes
                )
                return await save_release_criteria(api, workspace_id, draft)

        saved = asyncio.run(_save())
        typer.echo("Release criteria saved.")
        render_criteria(Console(), saved)


if __name__ == "__main__":
    app()
