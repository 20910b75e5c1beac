from __future__ import annotations

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from parallel_suites.collect import CollectedResults
from parallel_suites.reconcile import Reconciliation


def format_time(duration_ms: float) -> str:
    total_seconds = max(0.0, duration_ms) / 1000.0
    if total_seconds < 60:
        return f"{total_seconds:.2f}s"
    minutes, seconds = divmod(int(round(total_seconds)), 60)
    return f"{minutes}m {seconds:02d}s"


def _failures_cell(count: int) -> str:
    return f"[red]{count}[/red]" if count > 0 else str(count)


def build_results_table(collected: CollectedResults, reconciliation: Reconciliation) -> Table:
    table = Table(title="Suite results", header_style="blue")
    table.add_column("Suite", overflow="fold")
    table.add_column("Time", justify="right")
    table.add_column("Tests", justify="right")
    table.add_column("Passing", justify="right")
    table.add_column("Failing", justify="right")
    table.add_column("Pending", justify="right")
    for suite_id, result in collected.results.items():
        table.add_row(
            escape(suite_id),
            format_time(result.duration_ms),
            str(result.test_count),
            str(result.pass_count),
            _failures_cell(result.fail_count),
            str(result.pending_count),
        )
    summary = reconciliation.summary
    table.add_section()
    table.add_row(
        "Results",
        format_time(summary.total_duration_ms),
        str(summary.total_tests),
        str(summary.total_passes),
        _failures_cell(summary.total_failures),
        str(summary.total_pending),
    )
    return table


def render_errors(collected: CollectedResults, console: Console) -> None:
    for suite_id, errors in collected.error_map.items():
        console.print()
        console.print(f"  {escape(suite_id)}")
        for number, error in enumerate(errors, start=1):
            console.print()
            console.print(f"    {number}) {escape(error.test_name)}")
            console.print(f"      [red]{escape(error.message)}[/red]")


def render_missing(reconciliation: Reconciliation, console: Console) -> None:
    console.print("[red]Found test suites do not match results.[/red]")
    console.print(f"Test suites found: {reconciliation.expected_count}")
    console.print(f"Test suite results: {reconciliation.collected_count}")
    console.print("Some test suites likely terminated without passing on results.")
    console.print("The following test suites are missing results:")
    for suite_id in reconciliation.missing:
        console.print(f"  - {escape(suite_id)}")


def time_saved_line(total_duration_ms: float, wall_ms: float) -> str:
    saved_ms = total_duration_ms - wall_ms
    percent = round(saved_ms / total_duration_ms * 100) if total_duration_ms > 0 else 0
    return (
        f"Total run time: {total_duration_ms / 1000:.3f}s, "
        f"executed in: {wall_ms / 1000:.3f}s, "
        f"saved {saved_ms / 1000:.3f}s (~{percent}%)"
    )


def render_report(
    collected: CollectedResults,
    reconciliation: Reconciliation,
    wall_ms: float,
    console: Console | None = None,
) -> None:
    console = console or Console()
    console.print(build_results_table(collected, reconciliation))
    render_errors(collected, console)
    if reconciliation.results_incomplete:
        render_missing(reconciliation, console)
        return
    if reconciliation.missing:
        console.print(
            f"[yellow]{len(reconciliation.missing)} suite(s) produced no results[/yellow]"
        )
    failures = reconciliation.summary.total_failures
    if failures > 0:
        console.print(f"[red]{failures} test failure(s)[/red]")
        return
    console.print(time_saved_line(reconciliation.summary.total_duration_ms, wall_ms))
