from __future__ import annotations

import os
import shlex
from dataclasses import dataclass, replace
from pathlib import Path

DEFAULT_WORKER_COUNT = 2
# Baseline cost assigned to a suite with no recorded duration.
DEFAULT_SUITE_WEIGHT_MS = 1000.0
DEFAULT_SUITE_COMMAND = (
    "{python} -m pytest {suite} -q -p no:cacheprovider --junitxml={report}"
)
DEFAULT_PATTERN = "**/test_*.py"
REQUIRED_PLACEHOLDERS = ("{suite}", "{report}")

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class RunnerPaths:
    root: Path
    suites_dir: Path
    pattern: str
    results_dir: Path
    weights_file: Path


@dataclass(frozen=True)
class RunnerSettings:
    paths: RunnerPaths
    worker_count: int = DEFAULT_WORKER_COUNT
    strict_mode: bool = True
    default_weight: float = DEFAULT_SUITE_WEIGHT_MS
    suite_command: str = DEFAULT_SUITE_COMMAND

    def __post_init__(self) -> None:
        split_suite_command(self.suite_command)

    def with_overrides(self, **changes: object) -> RunnerSettings:
        path_fields = {"suites_dir", "pattern", "results_dir", "weights_file"}
        path_changes = {
            key: value
            for key, value in changes.items()
            if key in path_fields and value is not None
        }
        other_changes = {
            key: value
            for key, value in changes.items()
            if key not in path_fields and value is not None
        }
        paths = replace(self.paths, **path_changes) if path_changes else self.paths
        return replace(self, paths=paths, **other_changes)


def default_paths(root: Path | None = None) -> RunnerPaths:
    base = root or Path.cwd()
    suites_env = os.getenv("PARALLEL_SUITES_DIR", "").strip()
    pattern_env = os.getenv("PARALLEL_SUITES_PATTERN", "").strip()
    results_env = os.getenv("PARALLEL_SUITES_RESULTS_DIR", "").strip()
    weights_env = os.getenv("PARALLEL_SUITES_WEIGHTS", "").strip()
    return RunnerPaths(
        root=base,
        suites_dir=Path(suites_env) if suites_env else base / "tests",
        pattern=pattern_env or DEFAULT_PATTERN,
        results_dir=Path(results_env) if results_env else base / "runner-results",
        weights_file=Path(weights_env) if weights_env else base / "parallel-weights.json",
    )


def default_settings(root: Path | None = None) -> RunnerSettings:
    return RunnerSettings(
        paths=default_paths(root),
        worker_count=_env_int("PARALLEL_SUITES_THREADS", DEFAULT_WORKER_COUNT),
        strict_mode=_env_flag("PARALLEL_SUITES_STRICT", True),
        default_weight=_env_weight("PARALLEL_SUITES_DEFAULT_WEIGHT", DEFAULT_SUITE_WEIGHT_MS),
        suite_command=os.getenv("PARALLEL_SUITES_COMMAND", "").strip() or DEFAULT_SUITE_COMMAND,
    )


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from exc


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name, "").strip().lower()
    if not raw:
        return default
    if raw in _TRUE_VALUES:
        return True
    if raw in _FALSE_VALUES:
        return False
    raise ValueError(f"{name} must be a boolean flag, got {raw!r}")


def _env_weight(name: str, default: float) -> float:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number, got {raw!r}") from exc
    if value < 0:
        raise ValueError(f"{name} must not be negative, got {raw!r}")
    return value


def split_suite_command(template: str) -> list[str]:
    try:
        tokens = shlex.split(template)
    except ValueError as exc:
        raise ValueError(f"suite command template {template!r} is malformed: {exc}") from exc
    if not tokens:
        raise ValueError("suite command template is empty")
    missing = [
        placeholder
        for placeholder in REQUIRED_PLACEHOLDERS
        if not any(placeholder in token for token in tokens)
    ]
    if missing:
        raise ValueError(
            f"suite command template {template!r} lacks {', '.join(missing)}"
        )
    return tokens
