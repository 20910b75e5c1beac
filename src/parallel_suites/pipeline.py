from __future__ import annotations

import logging
import time
from collections.abc import Sequence
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

from rich.console import Console

from parallel_suites.artifacts import SUMMARY_FILENAME, clean_results_dir, write_json_atomic
from parallel_suites.collect import CollectedResults, ResultCollector
from parallel_suites.config import RunnerSettings
from parallel_suites.discovery import discover_suites
from parallel_suites.dispatch import WorkerDispatcher, WorkerOutcome
from parallel_suites.distribution import WeightedSuiteDistributor
from parallel_suites.feedback import FeedbackWriter
from parallel_suites.models import WorkerGroup
from parallel_suites.reconcile import ExitStatus, Reconciler, Reconciliation
from parallel_suites.report import render_report
from parallel_suites.weights import WeightStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RunOutcome:
    reconciliation: Reconciliation
    collected: CollectedResults
    groups: list[WorkerGroup]
    workers: list[WorkerOutcome] = field(default_factory=list)
    wall_ms: float = 0.0
    weights_written: bool = False
    summary_path: Path | None = None

    @property
    def status(self) -> ExitStatus:
        return self.reconciliation.status

    @property
    def exit_code(self) -> int:
        return int(self.reconciliation.status)


def run_parallel(
    settings: RunnerSettings,
    suites: Sequence[str] | None = None,
    console: Console | None = None,
    dispatcher: WorkerDispatcher | None = None,
) -> RunOutcome:
    paths = settings.paths
    store = WeightStore(paths.weights_file)
    # Fails before any cleanup or process start on bad configuration.
    distributor = WeightedSuiteDistributor.from_table(
        settings.worker_count, store.load(), settings.default_weight
    )

    clean_results_dir(paths.results_dir)
    expected = discover_suites(paths.suites_dir, paths.pattern, explicit=suites, base=paths.root)
    if not expected:
        logger.warning("no suites found action=noop")
    groups = distributor.distribute(expected)

    dispatcher = dispatcher or WorkerDispatcher(
        paths.results_dir, settings.suite_command, cwd=paths.root
    )
    started = time.perf_counter()
    workers = dispatcher.dispatch(groups)
    wall_ms = (time.perf_counter() - started) * 1000.0

    # Artifacts are read only after every worker has joined.
    collected = ResultCollector(paths.results_dir).collect()
    reconciliation = Reconciler(settings.strict_mode).reconcile(expected, collected)
    summary_path = paths.results_dir / SUMMARY_FILENAME
    write_json_atomic(
        summary_path, _summary_payload(reconciliation, collected, workers, wall_ms)
    )

    weights_written = False
    if reconciliation.ok and collected.results:
        FeedbackWriter(store).write(collected.results)
        weights_written = True
    elif not reconciliation.ok:
        logger.info("feedback skipped status=%s", reconciliation.status.name)

    render_report(collected, reconciliation, wall_ms, console)
    logger.info(
        "run complete status=%s suites=%s wall_ms=%.0f",
        reconciliation.status.name,
        len(expected),
        wall_ms,
    )
    return RunOutcome(
        reconciliation=reconciliation,
        collected=collected,
        groups=groups,
        workers=workers,
        wall_ms=wall_ms,
        weights_written=weights_written,
        summary_path=summary_path,
    )


def _summary_payload(
    reconciliation: Reconciliation,
    collected: CollectedResults,
    workers: list[WorkerOutcome],
    wall_ms: float,
) -> dict[str, Any]:
    summary = asdict(reconciliation.summary)
    summary["missing"] = list(reconciliation.summary.missing)
    return {
        "status": reconciliation.status.name,
        "exit_code": int(reconciliation.status),
        "strict_mode": reconciliation.strict_mode,
        "expected_count": reconciliation.expected_count,
        "collected_count": reconciliation.collected_count,
        "wall_ms": round(wall_ms, 3),
        "summary": summary,
        "suites": [result.model_dump(mode="json") for result in collected.results.values()],
        "unexpected": list(reconciliation.unexpected),
        "rejected_artifacts": [str(path) for path in collected.rejected],
        "workers": [
            {
                "group": outcome.group_index,
                "suites": list(outcome.members),
                "returncode": outcome.returncode,
                "joined_after_ms": outcome.joined_after_ms,
            }
            for outcome in workers
        ],
    }
