"""``checkrun run``: execute a scenario and print the check summary."""

from __future__ import annotations

import asyncio
import dataclasses
import logging
from pathlib import Path
from typing import TYPE_CHECKING

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from checkrun._internal.config import (
    RequestConfig,
    RunOptions,
    load_config,
    load_run_options,
    parse_status_set,
)
from checkrun._internal.errors import CheckRunError
from checkrun._internal.logging import setup_logging
from checkrun.dsl.loader import load_scenario
from checkrun.dsl.scenario import registry
from checkrun.engine.session import RunSession
from checkrun.metrics.export import write_summary_json
from checkrun.scenarios.products import products_scenario

if TYPE_CHECKING:
    from checkrun.dsl.scenario import ScenarioDefinition
    from checkrun.metrics.models import RunResult

console = Console(stderr=True)


# ---------------------------------------------------------------------------
# Configuration assembly
# ---------------------------------------------------------------------------


def _build_config(
    url: str | None,
    token: str | None,
    accept: str | None,
    timeout: float | None,
) -> RequestConfig:
    """Merge CLI overrides over the environment configuration.

    Raises:
        ConfigError: If the environment or an override is invalid.
    """
    base = load_config()
    return RequestConfig(
        url=url or base.url,
        token=token or base.token,
        accepted_statuses=parse_status_set(accept) if accept else base.accepted_statuses,
        timeout=timeout if timeout is not None else base.timeout,
    )


def _build_scenario(
    scenario_file: Path | None,
    scenario_name: str | None,
    config: RequestConfig,
    vus: int | None,
    iterations: int | None,
    max_duration: float | None,
) -> ScenarioDefinition:
    """Load the scenario to run and apply CLI option overrides.

    Without a file, the built-in products scenario runs with options from
    the environment. A file keeps the options from its ``@scenario``;
    ``scenario_name`` picks one when the file defines several.

    Raises:
        ScenarioError: If the scenario file cannot be loaded.
        ConfigError: If the resulting options are out of range.
    """
    if scenario_file is None:
        definition = products_scenario(config, load_run_options())
    else:
        # Reloading the same file must not trip duplicate registration
        registry.clear()
        definition = load_scenario(scenario_file, scenario_name)

    base = definition.options
    options = RunOptions(
        vus=vus if vus is not None else base.vus,
        iterations=iterations if iterations is not None else base.iterations,
        max_duration=max_duration if max_duration is not None else base.max_duration,
    )
    return dataclasses.replace(definition, options=options)


# ---------------------------------------------------------------------------
# Rich output
# ---------------------------------------------------------------------------


def _print_summary(result: RunResult) -> None:
    """Print the check breakdown and run totals.

    Args:
        result: Completed run result.
    """
    summary = result.summary
    if summary is None:
        return

    if summary.checks:
        checks_table = Table(
            title="Checks",
            show_header=True,
            header_style="bold cyan",
            expand=True,
        )
        checks_table.add_column("Check")
        checks_table.add_column("Passed", justify="right")
        checks_table.add_column("Failed", justify="right")
        checks_table.add_column("Pass %", justify="right")

        for tally in summary.checks.values():
            mark = "[green]✓[/green]" if tally.fails == 0 else "[red]✗[/red]"
            checks_table.add_row(
                f"{mark} {tally.name}",
                str(tally.passes),
                str(tally.fails),
                f"{tally.pass_rate * 100:.2f}%",
            )
        console.print(checks_table)

    table = Table(
        title="Run Complete",
        show_header=True,
        header_style="bold green",
        expand=True,
    )
    table.add_column("Metric", style="bold")
    table.add_column("Value", justify="right")

    table.add_row("Scenario", result.scenario_name)
    table.add_row("VUs", str(result.vus))
    table.add_row("Duration", f"{result.duration_seconds:.1f}s")
    table.add_row(
        "Iterations",
        f"{summary.iterations}/{result.iterations_planned}",
    )
    table.add_row("Iteration Errors", str(summary.iteration_errors))
    table.add_row("Checks Passed", str(summary.checks_passed))
    table.add_row("Checks Failed", str(summary.checks_failed))
    table.add_row("HTTP Requests", str(summary.total_requests))
    table.add_row("Requests/sec", f"{summary.requests_per_second:.1f}")
    table.add_row("Avg Latency", f"{summary.latency_avg:.1f}ms")
    table.add_row("p90 Latency", f"{summary.latency_p90:.1f}ms")
    table.add_row("p95 Latency", f"{summary.latency_p95:.1f}ms")
    if summary.status_counts:
        table.add_row(
            "Statuses",
            ", ".join(f"{code}: {count}" for code, count in summary.status_counts.items()),
        )
    if summary.errors_by_type:
        table.add_row(
            "Error Types",
            ", ".join(f"{name}: {count}" for name, count in summary.errors_by_type.items()),
        )

    console.print(table)

    if result.interrupted:
        console.print("[yellow]Run stopped before all iterations finished.[/yellow]")


# ---------------------------------------------------------------------------
# Command
# ---------------------------------------------------------------------------


def run_cmd(
    scenario_file: Path | None = typer.Argument(
        None,
        help="Scenario .py file. Omit to run the built-in products scenario.",
        exists=True,
        file_okay=True,
        dir_okay=False,
        readable=True,
    ),
    scenario_name: str | None = typer.Option(
        None,
        "--scenario",
        "-s",
        help="Scenario to run when SCENARIO_FILE defines several.",
    ),
    url: str | None = typer.Option(
        None,
        "--url",
        help="Target URL for the products scenario (env: CHECKRUN_URL).",
    ),
    token: str | None = typer.Option(
        None,
        "--token",
        help="Bearer token for the products scenario (env: CHECKRUN_TOKEN).",
    ),
    accept: str | None = typer.Option(
        None,
        "--accept",
        "-a",
        help="Accepted status codes, comma-separated (env: CHECKRUN_ACCEPTED_STATUSES).",
    ),
    vus: int | None = typer.Option(
        None,
        "--vus",
        "-u",
        help="Concurrent virtual users (env: CHECKRUN_VUS).",
        min=1,
    ),
    iterations: int | None = typer.Option(
        None,
        "--iterations",
        "-i",
        help="Total iterations shared by all VUs (env: CHECKRUN_ITERATIONS).",
        min=1,
    ),
    max_duration: float | None = typer.Option(
        None,
        "--max-duration",
        help="Stop the run after this many seconds (env: CHECKRUN_MAX_DURATION).",
    ),
    timeout: float | None = typer.Option(
        None,
        "--timeout",
        help="Per-request timeout in seconds (env: CHECKRUN_TIMEOUT).",
    ),
    summary_json: Path | None = typer.Option(
        None,
        "--summary-json",
        help="Write the run summary to this JSON file.",
    ),
    fail_on_check_rate: float | None = typer.Option(
        None,
        "--fail-on-check-rate",
        help="Exit non-zero if the check failure rate exceeds this (e.g., 0.05).",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose (DEBUG) logging.",
    ),
) -> None:
    """Run iterations and report the check results."""
    setup_logging(level=logging.DEBUG if verbose else logging.INFO)

    try:
        config = _build_config(url, token, accept, timeout)
        definition = _build_scenario(
            scenario_file, scenario_name, config, vus, iterations, max_duration
        )
    except CheckRunError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(code=1) from exc

    target = config.url if scenario_file is None else scenario_file.name
    console.print(
        Panel(
            f"[bold]Scenario:[/bold]   {definition.name}\n"
            f"[bold]Target:[/bold]     {target}\n"
            f"[bold]VUs:[/bold]        {definition.options.vus}\n"
            f"[bold]Iterations:[/bold] {definition.options.iterations}",
            title="checkrun",
            border_style="cyan",
        )
    )

    session = RunSession(definition, request_timeout=config.timeout)
    try:
        with console.status("Running iterations..."):
            result = asyncio.run(session.run())
    except CheckRunError as exc:
        console.print(f"[red]Run failed:[/red] {exc}")
        raise typer.Exit(code=1) from exc

    _print_summary(result)

    if summary_json is not None:
        write_summary_json(result, summary_json)
        console.print(f"Summary written to {summary_json}")

    if (
        fail_on_check_rate is not None
        and result.summary is not None
        and result.summary.check_failure_rate > fail_on_check_rate
    ):
        console.print(
            f"[red]FAIL:[/red] Check failure rate "
            f"{result.summary.check_failure_rate * 100:.2f}% "
            f"exceeds threshold {fail_on_check_rate * 100:.2f}%"
        )
        raise typer.Exit(code=1)

    console.print("[green]Run completed.[/green]")
