from __future__ import annotations

import json
import logging
import subprocess
import sys
import tempfile
import time
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from pathlib import Path

from pydantic import ValidationError

from parallel_suites.artifacts import write_suite_result
from parallel_suites.config import split_suite_command
from parallel_suites.junit import parse_junit_report
from parallel_suites.models import SuiteResult, WorkerGroup

logger = logging.getLogger(__name__)


@dataclass
class WorkerRunStats:
    group_index: int
    completed: list[str] = field(default_factory=list)
    missing: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.missing


def render_suite_command(template: str, suite_id: str, report_path: Path) -> list[str]:
    tokens = split_suite_command(template)
    rendered: list[str] = []
    for token in tokens:
        token = token.replace("{python}", sys.executable)
        token = token.replace("{suite}", suite_id)
        token = token.replace("{report}", str(report_path))
        rendered.append(token)
    return rendered


def load_group(path: Path) -> WorkerGroup:
    return WorkerGroup.model_validate(json.loads(path.read_text()))


def run_suite(suite_id: str, results_dir: Path, suite_command: str) -> SuiteResult | None:
    with tempfile.TemporaryDirectory(prefix="parallel-suites-") as tmpdir:
        report_path = Path(tmpdir) / "junit.xml"
        cmd = render_suite_command(suite_command, suite_id, report_path)
        logger.info("suite start suite=%s", suite_id)
        started = time.perf_counter()
        try:
            completed = subprocess.run(cmd, check=False)
        except OSError as exc:
            logger.error("suite launch failed suite=%s error=%s", suite_id, exc)
            return None
        duration_ms = max(0.0, (time.perf_counter() - started) * 1000.0)
        if not report_path.exists():
            logger.error(
                "suite produced no report suite=%s returncode=%s",
                suite_id,
                completed.returncode,
            )
            return None
        try:
            counts = parse_junit_report(report_path, suite_id)
            result = SuiteResult(
                suite_id=suite_id,
                duration_ms=round(duration_ms, 3),
                pass_count=counts.passes,
                fail_count=counts.failures,
                pending_count=counts.pending,
                errors=counts.errors,
            )
        except (ET.ParseError, ValidationError) as exc:
            logger.error("suite report unreadable suite=%s error=%s", suite_id, exc)
            return None
    write_suite_result(results_dir, result)
    logger.info(
        "suite complete suite=%s duration_ms=%.0f passes=%s failures=%s pending=%s",
        suite_id,
        result.duration_ms,
        result.pass_count,
        result.fail_count,
        result.pending_count,
    )
    return result


def run_worker_group(group: WorkerGroup, results_dir: Path, suite_command: str) -> WorkerRunStats:
    stats = WorkerRunStats(group_index=group.index)
    logger.info("worker start group=%s suites=%s", group.index, len(group.members))
    for suite_id in group.members:
        result = run_suite(suite_id, results_dir, suite_command)
        if result is None:
            stats.missing.append(suite_id)
        else:
            stats.completed.append(suite_id)
    logger.info(
        "worker complete group=%s completed=%s missing=%s",
        group.index,
        len(stats.completed),
        len(stats.missing),
    )
    return stats
