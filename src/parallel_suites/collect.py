from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path

from pydantic import ValidationError

from parallel_suites.artifacts import list_artifacts
from parallel_suites.models import ErrorRecord, SuiteResult

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CollectedResults:
    results: dict[str, SuiteResult] = field(default_factory=dict)
    error_map: dict[str, list[ErrorRecord]] = field(default_factory=dict)
    rejected: list[Path] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.results)


class ResultCollector:
    def __init__(self, results_dir: Path) -> None:
        self.results_dir = results_dir

    def collect(self) -> CollectedResults:
        results: dict[str, SuiteResult] = {}
        rejected: list[Path] = []
        for path in list_artifacts(self.results_dir):
            result = _read_artifact(path)
            if result is None:
                rejected.append(path)
                continue
            if result.suite_id in results:
                logger.warning(
                    "duplicate result suite=%s path=%s action=replace", result.suite_id, path
                )
            results[result.suite_id] = result

        error_map = {
            suite_id: list(result.errors) for suite_id, result in results.items() if result.errors
        }
        logger.info(
            "collect complete path=%s results=%s failing_suites=%s rejected=%s",
            self.results_dir,
            len(results),
            len(error_map),
            len(rejected),
        )
        return CollectedResults(results=results, error_map=error_map, rejected=rejected)


def collect_results(results_dir: Path) -> CollectedResults:
    return ResultCollector(results_dir).collect()


def _read_artifact(path: Path) -> SuiteResult | None:
    try:
        payload = json.loads(path.read_text())
        return SuiteResult.model_validate(payload)
    except (OSError, UnicodeDecodeError, json.JSONDecodeError, ValidationError) as exc:
        logger.warning("result artifact rejected path=%s error=%s", path, exc)
        return None
