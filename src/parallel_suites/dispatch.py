from __future__ import annotations

import logging
import os
import subprocess
import sys
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from pathlib import Path

from parallel_suites.artifacts import groups_dir, write_json_atomic
from parallel_suites.models import WorkerGroup

logger = logging.getLogger(__name__)

WorkerArgv = Callable[[Path, Path, str], list[str]]


@dataclass(frozen=True)
class WorkerOutcome:
    group_index: int
    members: tuple[str, ...]
    returncode: int | None
    joined_after_ms: float

    @property
    def ok(self) -> bool:
        return self.returncode == 0


def worker_env() -> dict[str, str]:
    env = dict(os.environ)
    package_root = str(Path(__file__).resolve().parents[1])
    current = env.get("PYTHONPATH", "")
    parts = [part for part in current.split(os.pathsep) if part]
    if package_root not in parts:
        env["PYTHONPATH"] = os.pathsep.join([package_root, *parts])
    return env


def default_worker_argv(group_file: Path, results_dir: Path, suite_command: str) -> list[str]:
    return [
        sys.executable,
        "-m",
        "parallel_suites.cli",
        "worker",
        "--group-file",
        str(group_file),
        "--results-dir",
        str(results_dir),
        "--command",
        suite_command,
    ]


class WorkerDispatcher:
    """Start one worker process per non-empty group and wait for all of them.

    Worker failures are recorded in the returned outcomes and logged, never
    raised; missing results are judged later against the collected artifacts.
    """

    def __init__(
        self,
        results_dir: Path,
        suite_command: str,
        worker_argv: WorkerArgv | None = None,
        cwd: Path | None = None,
    ) -> None:
        self.results_dir = results_dir.resolve()
        self.cwd = cwd
        self.suite_command = suite_command
        self.worker_argv = worker_argv or default_worker_argv

    def dispatch(self, groups: Sequence[WorkerGroup]) -> list[WorkerOutcome]:
        active = [group for group in groups if not group.is_empty]
        skipped = len(groups) - len(active)
        logger.info("dispatch start groups=%s skipped_empty=%s", len(active), skipped)
        if not active:
            return []

        self.results_dir.mkdir(parents=True, exist_ok=True)
        started = time.perf_counter()
        running: list[tuple[WorkerGroup, subprocess.Popen[bytes] | None]] = []
        try:
            for group in active:
                running.append((group, self._launch(group)))
        finally:
            # Every started worker is joined, even when a later launch raised.
            outcomes = self._join(running, started)
        logger.info(
            "dispatch joined workers=%s failed=%s",
            len(outcomes),
            sum(1 for outcome in outcomes if not outcome.ok),
        )
        return outcomes

    def _join(
        self,
        running: Sequence[tuple[WorkerGroup, subprocess.Popen[bytes] | None]],
        started: float,
    ) -> list[WorkerOutcome]:
        outcomes: list[WorkerOutcome] = []
        for group, process in running:
            returncode = process.wait() if process is not None else None
            elapsed_ms = (time.perf_counter() - started) * 1000.0
            outcome = WorkerOutcome(
                group_index=group.index,
                members=group.members,
                returncode=returncode,
                joined_after_ms=round(elapsed_ms, 3),
            )
            if outcome.ok:
                logger.info("worker joined group=%s returncode=0", group.index)
            else:
                logger.warning(
                    "worker failed group=%s returncode=%s suites=%s",
                    group.index,
                    returncode,
                    len(group.members),
                )
            outcomes.append(outcome)
        return outcomes

    def _launch(self, group: WorkerGroup) -> subprocess.Popen[bytes] | None:
        group_file = groups_dir(self.results_dir) / f"group-{group.index}.json"
        try:
            write_json_atomic(group_file, group.model_dump(mode="json"))
            argv = self.worker_argv(group_file, self.results_dir, self.suite_command)
            process = subprocess.Popen(argv, cwd=self.cwd, env=worker_env())
        except OSError as exc:
            logger.error("worker launch failed group=%s error=%s", group.index, exc)
            return None
        logger.debug("worker started group=%s pid=%s", group.index, process.pid)
        return process
