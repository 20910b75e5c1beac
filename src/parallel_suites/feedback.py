from __future__ import annotations

import logging
from collections.abc import Mapping

from parallel_suites.models import SuiteResult, WeightTable
from parallel_suites.weights import WeightStore, build_weight_table

logger = logging.getLogger(__name__)


def derive_weights(results: Mapping[str, SuiteResult]) -> WeightTable:
    durations = {suite_id: result.duration_ms for suite_id, result in results.items()}
    return build_weight_table(durations)


class FeedbackWriter:
    def __init__(self, store: WeightStore) -> None:
        self.store = store

    def write(self, results: Mapping[str, SuiteResult]) -> WeightTable:
        table = derive_weights(results)
        self.store.save(table)
        logger.info("feedback written suites=%s path=%s", len(table), self.store.path)
        return table
