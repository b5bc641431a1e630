"""``hellobench run``: execute a load profile with live terminal output."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

import typer
from rich.console import Console
from rich.live import Live
from rich.panel import Panel
from rich.table import Table

from hellobench._internal.errors import HelloBenchError
from hellobench.engine.runner import LoadTestRunner
from hellobench.metrics.export import write_summary
from hellobench.patterns.constant import ConstantPattern
from hellobench.patterns.ramp import RampPattern
from hellobench.patterns.stages import StagedPattern, parse_stage

if TYPE_CHECKING:
    from hellobench.metrics.models import CheckSummary, EndpointMetrics, MetricSnapshot, TestResult
    from hellobench.patterns.base import LoadPattern

console = Console(stderr=True)


# ---------------------------------------------------------------------------
# Pattern construction helpers
# ---------------------------------------------------------------------------


def _build_pattern(
    pattern_name: str | None,
    users: int,
    duration: float | None,
    ramp_to: int | None,
    stages: list[str],
) -> LoadPattern | None:
    """Construct a LoadPattern from CLI flags.

    Returns None when no flag selects a schedule, meaning "use the stages
    declared by the scenario".

    Raises:
        typer.BadParameter: If the flags are inconsistent.
    """
    if stages:
        if pattern_name not in (None, "staged"):
            msg = "--stage cannot be combined with --pattern constant/ramp"
            raise typer.BadParameter(msg)
        return StagedPattern([parse_stage(s) for s in stages])

    if pattern_name is None or pattern_name == "staged":
        if pattern_name == "staged" or duration is None:
            return None
        pattern_name = "constant"

    if duration is None:
        msg = f"--duration is required when using --pattern {pattern_name}"
        raise typer.BadParameter(msg)

    if pattern_name == "constant":
        return ConstantPattern(users=users)

    if pattern_name == "ramp":
        if ramp_to is None:
            msg = "--ramp-to is required when using --pattern ramp"
            raise typer.BadParameter(msg)
        return RampPattern(start_users=users, end_users=ramp_to, ramp_duration=duration)

    msg = f"Unknown pattern: {pattern_name}. Choose from: staged, constant, ramp"
    raise typer.BadParameter(msg)


# ---------------------------------------------------------------------------
# Rich live display
# ---------------------------------------------------------------------------


def _metric_table(rows: list[tuple[str, str]], title: str | None = None) -> Table:
    table = Table(title=title, show_header=True, header_style="bold cyan", expand=True)
    table.add_column("Metric", style="bold")
    table.add_column("Value", justify="right")
    for label, value in rows:
        table.add_row(label, value)
    return table


def _make_live_table(snapshot: MetricSnapshot | None) -> Table:
    """Build the table shown while the run is in progress."""
    if snapshot is None:
        return _metric_table([("Status", "Starting...")])
    return _metric_table(
        [
            ("Elapsed", f"{snapshot.elapsed_seconds:.0f}s"),
            ("Active Users", str(snapshot.active_users)),
            ("Iterations", str(snapshot.iterations)),
            ("Requests/sec", f"{snapshot.requests_per_second:.1f}"),
            ("p95 Latency", f"{snapshot.latency_p95:.1f}ms"),
            ("Errors", str(snapshot.total_errors)),
            ("Checks Failed", str(snapshot.checks_failed)),
        ]
    )


def _checks_table(checks: dict[str, CheckSummary]) -> Table:
    """One row per check, marked ✓ when it never failed."""
    table = Table(title="Checks", show_header=True, header_style="bold cyan", expand=True)
    table.add_column("")
    table.add_column("Check")
    table.add_column("Passes", justify="right")
    table.add_column("Fails", justify="right")
    table.add_column("Pass %", justify="right")
    for check in checks.values():
        table.add_row(
            "[green]✓[/green]" if check.fails == 0 else "[red]✗[/red]",
            check.name,
            str(check.passes),
            str(check.fails),
            f"{check.pass_rate:.2%}",
        )
    return table


def _endpoints_table(endpoints: dict[str, EndpointMetrics]) -> Table:
    table = Table(
        title="Per-Endpoint Breakdown",
        show_header=True,
        header_style="bold cyan",
        expand=True,
    )
    for heading in ("Endpoint", "Requests", "RPS", "p50", "p95", "p99", "Errors"):
        table.add_column(heading, justify="left" if heading == "Endpoint" else "right")
    for ep in endpoints.values():
        table.add_row(
            ep.name,
            str(ep.request_count),
            f"{ep.requests_per_second:.1f}",
            f"{ep.latency_p50:.1f}ms",
            f"{ep.latency_p95:.1f}ms",
            f"{ep.latency_p99:.1f}ms",
            str(ep.error_count),
        )
    return table


def _print_summary(result: TestResult) -> None:
    """Print the end-of-run summary: checks, endpoints, then totals."""
    rows = [
        ("Scenario", result.scenario_name),
        ("Pattern", result.pattern_description.splitlines()[0]),
        ("Duration", f"{result.duration_seconds:.1f}s"),
    ]
    summary = result.final_summary
    if summary is not None:
        if summary.checks:
            console.print(_checks_table(summary.checks))
        if summary.endpoints:
            console.print(_endpoints_table(summary.endpoints))
        rows += [
            ("Iterations", str(summary.iterations)),
            ("Total Requests", str(summary.total_requests)),
            ("Avg Requests/sec", f"{summary.requests_per_second:.1f}"),
            ("p50 Latency", f"{summary.latency_p50:.1f}ms"),
            ("p95 Latency", f"{summary.latency_p95:.1f}ms"),
            ("p99 Latency", f"{summary.latency_p99:.1f}ms"),
            ("Total Errors", str(summary.total_errors)),
            ("Error Rate", f"{summary.error_rate:.2%}"),
            ("Checks", f"{summary.checks_passed} passed, {summary.checks_failed} failed"),
        ]
    console.print(_metric_table(rows, title="Run Complete"))


# ---------------------------------------------------------------------------
# Command
# ---------------------------------------------------------------------------


def run_cmd(
    scenario_file: Path = typer.Argument(
        ...,
        help="Path to the load profile .py file.",
        exists=True,
        file_okay=True,
        dir_okay=False,
        readable=True,
    ),
    stage: list[str] = typer.Option(
        [],
        "--stage",
        "-s",
        help="Ramp stage as DURATION:TARGET (e.g. 5m:200). Repeat for more stages.",
    ),
    users: int = typer.Option(
        10,
        "--users",
        "-u",
        help="Virtual users for --pattern constant, start users for ramp.",
        min=0,
    ),
    duration: float | None = typer.Option(
        None,
        "--duration",
        "-d",
        help="Run duration in seconds (default: length of the stages).",
        min=0.1,
    ),
    pattern: str | None = typer.Option(
        None,
        "--pattern",
        "-p",
        help="Schedule: staged (scenario stages), constant or ramp.",
    ),
    ramp_to: int | None = typer.Option(
        None,
        "--ramp-to",
        help="Ramp pattern: target user count at end of ramp.",
    ),
    base_url: str | None = typer.Option(
        None,
        "--base-url",
        "-b",
        help="Override the scenario's base URL.",
    ),
    summary_export: Path | None = typer.Option(
        None,
        "--summary-export",
        help="Write the end-of-run summary as JSON to this path.",
    ),
    fail_on_error_rate: float | None = typer.Option(
        None,
        "--fail-on-error-rate",
        help="Exit non-zero if error rate exceeds this threshold (e.g., 0.05).",
    ),
    tick: float = typer.Option(
        1.0,
        "--tick",
        help="Seconds between virtual-user adjustments.",
        min=0.05,
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose (DEBUG) logging.",
    ),
    json_logs: bool = typer.Option(
        False,
        "--json-logs",
        help="Emit logs as one JSON object per line.",
    ),
) -> None:
    """Run a load profile with live terminal output."""
    try:
        load_pattern = _build_pattern(
            pattern_name=pattern,
            users=users,
            duration=duration,
            ramp_to=ramp_to,
            stages=stage,
        )
    except HelloBenchError as exc:
        raise typer.BadParameter(str(exc)) from exc

    try:
        test_runner = LoadTestRunner(
            scenario_path=scenario_file,
            pattern=load_pattern,
            duration_seconds=duration,
            base_url=base_url,
            tick_interval=tick,
            log_level=logging.DEBUG if verbose else logging.INFO,
            json_logs=json_logs,
        )
        scenario, resolved_pattern, resolved_duration = test_runner.resolve()
    except HelloBenchError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(code=1) from exc

    console.print(
        Panel(
            f"[bold]Scenario:[/bold] {scenario.name} ({scenario_file.name})\n"
            f"[bold]Target:[/bold]   {scenario.base_url}\n"
            f"[bold]Pattern:[/bold]  {resolved_pattern.describe()}\n"
            f"[bold]Duration:[/bold] {resolved_duration:g}s",
            title="hellobench",
            border_style="cyan",
        )
    )

    try:
        with Live(
            _make_live_table(None),
            console=console,
            refresh_per_second=2,
            transient=True,
        ) as live:
            test_runner.on_snapshot = lambda snapshot: live.update(_make_live_table(snapshot))
            result = test_runner.run()
    except HelloBenchError as exc:
        console.print(f"[red]Load run failed:[/red] {exc}")
        raise typer.Exit(code=1) from exc

    _print_summary(result)

    if summary_export is not None:
        written = write_summary(result, summary_export)
        console.print(f"Summary written to {written}")

    if (
        fail_on_error_rate is not None
        and result.final_summary is not None
        and result.final_summary.error_rate > fail_on_error_rate
    ):
        console.print(
            f"[red]FAIL:[/red] Error rate {result.final_summary.error_rate * 100:.2f}% "
            f"exceeds threshold {fail_on_error_rate * 100:.2f}%"
        )
        raise typer.Exit(code=1)

    console.print("[green]Load run completed.[/green]")
