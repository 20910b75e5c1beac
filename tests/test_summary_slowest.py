from __future__ import annotations

import importlib.util
from pathlib import Path


def _load_script():
    spec = importlib.util.spec_from_file_location(
        "summary_slowest", Path(__file__).resolve().parents[1] / "scripts" / "summary_slowest.py"
    )
    assert spec is not None
    module = importlib.util.module_from_spec(spec)
    assert spec.loader is not None
    spec.loader.exec_module(module)
    return module


def test_summary_slowest_orders_by_duration() -> None:
    module = _load_script()
    summary = {
        "suites": [
            {"suite_id": "a.py", "duration_ms": 100, "fail_count": 0},
            {"suite_id": "b.py", "duration_ms": 300, "fail_count": 2},
            {"suite_id": "c.py", "duration_ms": 600, "fail_count": 0},
            "junk",
        ],
        "workers": [
            {"group": 0, "suites": ["c.py"]},
            {"group": 1, "suites": ["b.py", "a.py"]},
        ],
    }
    rows = module.slowest_rows(summary, top=2)
    assert [row["suite"] for row in rows] == ["c.py", "b.py"]
    assert rows[0]["worker"] == "0"
    assert rows[0]["share"] == 0.6
    assert rows[1]["failures"] == 2


def test_summary_slowest_handles_empty_summary() -> None:
    module = _load_script()
    assert module.slowest_rows({}) == []
