from __future__ import annotations

import logging
from collections.abc import Sequence
from pathlib import Path

logger = logging.getLogger(__name__)


def suite_id_for(path: Path, base: Path | None = None) -> str:
    base = base or Path.cwd()
    resolved = (path if path.is_absolute() else base / path).resolve()
    try:
        return resolved.relative_to(base.resolve()).as_posix()
    except ValueError:
        return resolved.as_posix()


def discover_suites(
    suites_dir: Path,
    pattern: str,
    explicit: Sequence[str] | None = None,
    base: Path | None = None,
) -> list[str]:
    if explicit:
        ordered: list[str] = []
        for item in explicit:
            suite_id = suite_id_for(Path(item), base)
            if suite_id not in ordered:
                ordered.append(suite_id)
        logger.info("discovery explicit suites=%s", len(ordered))
        return ordered
    if not suites_dir.is_dir():
        logger.warning("suites dir not found path=%s", suites_dir)
        return []
    found = sorted(
        {suite_id_for(path, base) for path in suites_dir.glob(pattern) if path.is_file()}
    )
    logger.info("discovery complete path=%s pattern=%s suites=%s", suites_dir, pattern, len(found))
    return found
