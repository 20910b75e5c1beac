from __future__ import annotations

import json
from pathlib import Path

from parallel_suites.weights import WeightStore, build_weight_table, load_weights, save_weights


def test_weight_store_roundtrip(tmp_path: Path) -> None:
    path = tmp_path / "nested" / "weights.json"
    table = build_weight_table({"spec/a.py": 300.0, "spec/b.py": 100.0})
    save_weights(path, table)

    loaded = load_weights(path)
    assert loaded == table
    record = loaded.get("spec/a.py")
    assert record is not None
    assert record.duration_ms == 300.0
    assert record.normalized_weight == 0.75


def test_missing_weights_file_is_cold_start(tmp_path: Path) -> None:
    table = WeightStore(tmp_path / "absent.json").load()
    assert len(table) == 0


def test_malformed_weights_file_is_cold_start(tmp_path: Path) -> None:
    path = tmp_path / "weights.json"
    path.write_text("{not json")
    assert len(WeightStore(path).load()) == 0

    path.write_text(json.dumps({"weights": {"a": {"suite_id": "a", "duration_ms": -5}}}))
    assert len(WeightStore(path).load()) == 0
