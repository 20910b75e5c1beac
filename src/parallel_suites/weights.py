from __future__ import annotations

import json
import logging
from pathlib import Path

from pydantic import ValidationError

from parallel_suites.models import SuiteWeight, WeightTable

logger = logging.getLogger(__name__)


class WeightStore:
    def __init__(self, path: Path) -> None:
        self.path = path

    def load(self) -> WeightTable:
        if not self.path.exists():
            logger.info("weights file not found path=%s action=cold_start", self.path)
            return WeightTable()
        try:
            data = json.loads(self.path.read_text())
            table = WeightTable.model_validate(data)
        except (OSError, json.JSONDecodeError, ValidationError) as exc:
            logger.warning(
                "weights file unreadable path=%s action=cold_start error=%s", self.path, exc
            )
            return WeightTable()
        logger.info("weights loaded path=%s suites=%s", self.path, len(table))
        return table

    def save(self, table: WeightTable) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = table.model_dump(mode="json")
        self.path.write_text(json.dumps(payload, indent=2, sort_keys=True))
        logger.info("weights saved path=%s suites=%s", self.path, len(table))


def load_weights(path: Path) -> WeightTable:
    return WeightStore(path).load()


def save_weights(path: Path, table: WeightTable) -> None:
    WeightStore(path).save(table)


def lookup_durations(table: WeightTable) -> dict[str, float]:
    return {suite_id: weight.duration_ms for suite_id, weight in table.weights.items()}


def build_weight_table(durations: dict[str, float]) -> WeightTable:
    total = sum(durations.values())
    weights: dict[str, SuiteWeight] = {}
    for suite_id, duration_ms in durations.items():
        share = duration_ms / total if total > 0 else 1.0 / len(durations)
        weights[suite_id] = SuiteWeight(
            suite_id=suite_id,
            duration_ms=duration_ms,
            normalized_weight=share,
        )
    return WeightTable(weights=weights)
