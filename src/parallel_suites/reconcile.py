from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from enum import IntEnum

from parallel_suites.collect import CollectedResults
from parallel_suites.models import RunSummary, SuiteResult

logger = logging.getLogger(__name__)


class ExitStatus(IntEnum):
    SUCCESS = 0
    TEST_FAILURES = 1
    MISSING_RESULTS = 3


@dataclass(frozen=True)
class Reconciliation:
    status: ExitStatus
    summary: RunSummary
    expected_count: int
    collected_count: int
    strict_mode: bool
    unexpected: tuple[str, ...] = field(default_factory=tuple)

    @property
    def ok(self) -> bool:
        return self.status is ExitStatus.SUCCESS

    @property
    def missing(self) -> tuple[str, ...]:
        return self.summary.missing

    @property
    def results_incomplete(self) -> bool:
        return self.status is ExitStatus.MISSING_RESULTS


def summarize(results: Iterable[SuiteResult], missing: Sequence[str] = ()) -> RunSummary:
    rows = list(results)
    return RunSummary(
        suite_count=len(rows),
        total_duration_ms=sum(row.duration_ms for row in rows),
        total_tests=sum(row.test_count for row in rows),
        total_passes=sum(row.pass_count for row in rows),
        total_failures=sum(row.fail_count for row in rows),
        total_pending=sum(row.pending_count for row in rows),
        missing=tuple(missing),
    )


def find_missing(expected: Sequence[str], collected: Mapping[str, SuiteResult]) -> tuple[str, ...]:
    seen: set[str] = set()
    missing: list[str] = []
    for suite_id in expected:
        if suite_id in collected or suite_id in seen:
            continue
        seen.add(suite_id)
        missing.append(suite_id)
    return tuple(missing)


class Reconciler:
    def __init__(self, strict_mode: bool = True) -> None:
        self.strict_mode = strict_mode

    def reconcile(self, expected: Sequence[str], collected: CollectedResults) -> Reconciliation:
        missing = find_missing(expected, collected.results)
        expected_set = set(expected)
        unexpected = tuple(
            suite_id for suite_id in collected.results if suite_id not in expected_set
        )
        summary = summarize(collected.results.values(), missing)
        expected_count = len(expected_set)
        collected_count = len(collected.results)

        if self.strict_mode and (missing or expected_count != collected_count):
            status = ExitStatus.MISSING_RESULTS
            logger.error(
                "reconcile failed expected=%s collected=%s missing=%s",
                expected_count,
                collected_count,
                len(missing),
            )
        elif summary.total_failures > 0:
            status = ExitStatus.TEST_FAILURES
            logger.warning("reconcile failures=%s", summary.total_failures)
        else:
            status = ExitStatus.SUCCESS
            if missing:
                logger.warning("reconcile non_strict missing=%s", len(missing))
        if unexpected:
            logger.warning("reconcile unexpected results=%s", list(unexpected))
        logger.info("reconcile complete status=%s", status.name)
        return Reconciliation(
            status=status,
            summary=summary,
            expected_count=expected_count,
            collected_count=collected_count,
            strict_mode=self.strict_mode,
            unexpected=unexpected,
        )


def reconcile(
    expected: Sequence[str], collected: CollectedResults, strict_mode: bool = True
) -> Reconciliation:
    return Reconciler(strict_mode).reconcile(expected, collected)
