from __future__ import annotations

import logging
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from parallel_suites.cli_utils import expand_suite_args, sanitize_ansi_path
from parallel_suites.config import default_settings
from parallel_suites.distribution import DistributionError
from parallel_suites.pipeline import run_parallel
from parallel_suites.report import format_time
from parallel_suites.runtime import initialize_runtime
from parallel_suites.weights import WeightStore
from parallel_suites.worker import load_group, run_worker_group

app = typer.Typer(help="Run test suites in parallel worker processes balanced by weight")
weights_app = typer.Typer(help="Weight file commands")

app.add_typer(weights_app, name="weights")

console = Console()
logger = logging.getLogger(__name__)

THREADS_OPTION = typer.Option(None, "--threads", "-t", help="Number of worker processes")
STRICT_OPTION = typer.Option(
    None, "--strict/--no-strict", help="Fail when any suite produced no result"
)
WEIGHTS_OPTION = typer.Option(None, "--weights", dir_okay=False)
RESULTS_DIR_OPTION = typer.Option(None, "--results-dir", file_okay=False)
SUITES_DIR_OPTION = typer.Option(None, "--suites-dir", file_okay=False)
PATTERN_OPTION = typer.Option(None, "--pattern")
SUITE_OPTION = typer.Option(None, "--suite", "-s", help="Run only these suites")
COMMAND_OPTION = typer.Option(None, "--command", help="Suite command template")
DEFAULT_WEIGHT_OPTION = typer.Option(None, "--default-weight")
VERBOSE_OPTION = typer.Option(False, "--verbose", "-v")
GROUP_FILE_OPTION = typer.Option(..., "--group-file", exists=True, dir_okay=False)
WORKER_RESULTS_OPTION = typer.Option(..., "--results-dir", file_okay=False)
WORKER_COMMAND_OPTION = typer.Option(..., "--command")


def _clean_path(value: Path | None) -> Path | None:
    if value is None:
        return None
    return Path(sanitize_ansi_path(str(value)))


@app.command("run")
def run(
    threads: int | None = THREADS_OPTION,
    strict: bool | None = STRICT_OPTION,
    weights: Path | None = WEIGHTS_OPTION,
    results_dir: Path | None = RESULTS_DIR_OPTION,
    suites_dir: Path | None = SUITES_DIR_OPTION,
    pattern: str | None = PATTERN_OPTION,
    suite: list[str] | None = SUITE_OPTION,
    command: str | None = COMMAND_OPTION,
    default_weight: float | None = DEFAULT_WEIGHT_OPTION,
    verbose: bool = VERBOSE_OPTION,
) -> None:
    initialize_runtime(verbose=verbose, logger=logger)
    try:
        settings = default_settings().with_overrides(
            worker_count=threads,
            strict_mode=strict,
            weights_file=_clean_path(weights),
            results_dir=_clean_path(results_dir),
            suites_dir=_clean_path(suites_dir),
            pattern=pattern,
            suite_command=command,
            default_weight=default_weight,
        )
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc
    logger.info(
        "run start workers=%s strict=%s results_dir=%s",
        settings.worker_count,
        settings.strict_mode,
        settings.paths.results_dir,
    )
    explicit = expand_suite_args(suite) if suite else None
    try:
        outcome = run_parallel(settings, suites=explicit, console=console)
    except DistributionError as exc:
        raise typer.BadParameter(str(exc)) from exc
    console.print(f"Run summary: {outcome.summary_path}")
    if outcome.exit_code != 0:
        raise typer.Exit(code=outcome.exit_code)


@app.command("worker", hidden=True)
def worker(
    group_file: Path = GROUP_FILE_OPTION,
    results_dir: Path = WORKER_RESULTS_OPTION,
    command: str = WORKER_COMMAND_OPTION,
    verbose: bool = VERBOSE_OPTION,
) -> None:
    initialize_runtime(verbose=verbose, logger=logger)
    group = load_group(group_file)
    stats = run_worker_group(group, results_dir, command)
    if not stats.ok:
        raise typer.Exit(code=1)


@weights_app.command("show")
def weights_show(weights: Path | None = WEIGHTS_OPTION) -> None:
    initialize_runtime(logger=logger)
    path = _clean_path(weights) or default_settings().paths.weights_file
    table = WeightStore(path).load()
    if not table.weights:
        console.print(f"No weights recorded in {path}")
        return
    view = Table(title=f"Weights ({path})")
    view.add_column("Suite", overflow="fold")
    view.add_column("Duration", justify="right")
    view.add_column("Share", justify="right")
    ordered = sorted(table.weights.values(), key=lambda item: item.duration_ms, reverse=True)
    for record in ordered:
        view.add_row(
            record.suite_id,
            format_time(record.duration_ms),
            f"{record.normalized_weight * 100:.1f}%",
        )
    console.print(view)


if __name__ == "__main__":
    app()
