from __future__ import annotations

import argparse
import json
from pathlib import Path
from typing import Any

from parallel_suites.cli_utils import sanitize_ansi_path


def _as_float(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def _as_int(value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


def _worker_for(suite_id: str, workers: Any) -> str:
    if not isinstance(workers, list):
        return "?"
    for worker in workers:
        if isinstance(worker, dict) and suite_id in (worker.get("suites") or []):
            return str(worker.get("group", "?"))
    return "?"


def slowest_rows(summary: dict[str, Any], top: int = 10) -> list[dict[str, Any]]:
    suites = summary.get("suites") or []
    if not isinstance(suites, list):
        suites = []
    total_ms = sum(_as_float(suite.get("duration_ms")) for suite in suites if isinstance(suite, dict))
    rows = []
    for suite in suites:
        if not isinstance(suite, dict):
            continue
        duration_ms = _as_float(suite.get("duration_ms"))
        rows.append(
            {
                "suite": suite.get("suite_id") or "?",
                "worker": _worker_for(str(suite.get("suite_id")), summary.get("workers")),
                "duration_ms": duration_ms,
                "share": duration_ms / total_ms if total_ms > 0 else 0.0,
                "failures": _as_int(suite.get("fail_count")),
            }
        )
    rows.sort(key=lambda item: item["duration_ms"], reverse=True)
    return rows[: max(0, top)]


def main() -> int:
    parser = argparse.ArgumentParser()
    parser.add_argument("summary", type=str)
    parser.add_argument("--top", type=int, default=10)
    args = parser.parse_args()

    summary = json.loads(Path(sanitize_ansi_path(args.summary)).read_text())
    if not isinstance(summary, dict):
        print("summary must be a json object")
        return 2
    for idx, row in enumerate(slowest_rows(summary, args.top), start=1):
        bits = [
            f"rank={idx}",
            f"suite={row['suite']}",
            f"worker={row['worker']}",
            f"duration_ms={row['duration_ms']:.0f}",
            f"share={row['share'] * 100:.1f}%",
        ]
        if row["failures"]:
            bits.append(f"failures={row['failures']}")
        print(" ".join(bits))
    missing = (summary.get("summary") or {}).get("missing") or []
    if missing:
        print(f"missing={','.join(str(item) for item in missing)}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
