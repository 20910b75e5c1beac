from __future__ import annotations

import hashlib
import json
import logging
import os
import re
import shutil
from pathlib import Path
from typing import Any

from parallel_suites.models import SuiteResult

logger = logging.getLogger(__name__)

ARTIFACT_SUFFIX = ".result.json"
GROUPS_DIRNAME = "groups"
SUMMARY_FILENAME = "run-summary.json"

_SLUG_RE = re.compile(r"[^A-Za-z0-9]+")


def artifact_name(suite_id: str) -> str:
    slug = _SLUG_RE.sub("_", suite_id).strip("_")[-60:] or "suite"
    digest = hashlib.sha256(suite_id.encode("utf-8")).hexdigest()[:12]
    return f"{slug}-{digest}{ARTIFACT_SUFFIX}"


def artifact_path(results_dir: Path, suite_id: str) -> Path:
    return results_dir / artifact_name(suite_id)


def groups_dir(results_dir: Path) -> Path:
    return results_dir / GROUPS_DIRNAME


def write_json_atomic(path: Path, payload: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_name(f".{path.name}.{os.getpid()}.tmp")
    tmp_path.write_text(json.dumps(payload, indent=2))
    os.replace(tmp_path, path)


def write_suite_result(results_dir: Path, result: SuiteResult) -> Path:
    path = artifact_path(results_dir, result.suite_id)
    write_json_atomic(path, result.model_dump(mode="json"))
    logger.debug("artifact written suite=%s path=%s", result.suite_id, path)
    return path


def list_artifacts(results_dir: Path) -> list[Path]:
    if not results_dir.exists():
        return []
    return sorted(results_dir.glob(f"*{ARTIFACT_SUFFIX}"))


def clean_results_dir(results_dir: Path) -> int:
    if not results_dir.exists():
        results_dir.mkdir(parents=True, exist_ok=True)
        return 0
    removed = 0
    for path in results_dir.iterdir():
        if path.is_file() and (path.name.endswith(".json") or path.name.endswith(".tmp")):
            path.unlink()
            removed += 1
    stale_groups = groups_dir(results_dir)
    if stale_groups.is_dir():
        shutil.rmtree(stale_groups)
    logger.info("results dir cleaned path=%s removed=%s", results_dir, removed)
    return removed
