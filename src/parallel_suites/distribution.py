from __future__ import annotations

import heapq
import logging
from collections.abc import Mapping, Sequence

from parallel_suites.config import DEFAULT_SUITE_WEIGHT_MS
from parallel_suites.models import WeightTable, WorkerGroup
from parallel_suites.weights import lookup_durations

logger = logging.getLogger(__name__)


class DistributionError(ValueError):
    pass


class WeightedSuiteDistributor:
    """Longest-processing-time-first partition of suites into worker groups.

    Suites are ordered by resolved weight, heaviest first, with discovery
    order kept among equal weights. Each suite then goes to the group with
    the lowest accumulated weight, the lowest group index winning ties, so
    identical inputs always produce identical groups. When no weights are
    known every suite has the baseline weight and the result is round-robin
    in discovery order.
    """

    def __init__(
        self,
        worker_count: int,
        durations: Mapping[str, float] | None = None,
        default_weight: float = DEFAULT_SUITE_WEIGHT_MS,
    ) -> None:
        if worker_count <= 0:
            raise DistributionError(f"worker count must be positive, got {worker_count}")
        if default_weight < 0:
            raise DistributionError(f"default weight must not be negative, got {default_weight}")
        self.worker_count = worker_count
        self.durations = dict(durations or {})
        self.default_weight = default_weight

    @classmethod
    def from_table(
        cls,
        worker_count: int,
        table: WeightTable,
        default_weight: float = DEFAULT_SUITE_WEIGHT_MS,
    ) -> WeightedSuiteDistributor:
        return cls(worker_count, lookup_durations(table), default_weight)

    def resolve_weight(self, suite_id: str) -> float:
        weight = self.durations.get(suite_id)
        if weight is None:
            return self.default_weight
        if weight < 0:
            raise DistributionError(f"negative weight {weight} for suite {suite_id}")
        return weight

    def distribute(self, suite_ids: Sequence[str]) -> list[WorkerGroup]:
        seen: set[str] = set()
        for suite_id in suite_ids:
            if suite_id in seen:
                raise DistributionError(f"suite listed twice: {suite_id}")
            seen.add(suite_id)

        weighted = [(self.resolve_weight(suite_id), suite_id) for suite_id in suite_ids]
        weighted.sort(key=lambda item: item[0], reverse=True)

        members: list[list[str]] = [[] for _ in range(self.worker_count)]
        loads = [0.0] * self.worker_count
        heap = [(0.0, index) for index in range(self.worker_count)]
        for weight, suite_id in weighted:
            load, index = heapq.heappop(heap)
            members[index].append(suite_id)
            loads[index] = load + weight
            heapq.heappush(heap, (loads[index], index))

        groups = [
            WorkerGroup(index=index, members=tuple(members[index]), total_weight=loads[index])
            for index in range(self.worker_count)
        ]
        known = sum(1 for suite_id in suite_ids if suite_id in self.durations)
        logger.info(
            "distribution complete suites=%s workers=%s known_weights=%s loads=%s",
            len(suite_ids),
            self.worker_count,
            known,
            [round(load, 1) for load in loads],
        )
        return groups


def distribute_by_weight(
    suite_ids: Sequence[str],
    worker_count: int,
    table: WeightTable | None = None,
    default_weight: float = DEFAULT_SUITE_WEIGHT_MS,
) -> list[WorkerGroup]:
    distributor = WeightedSuiteDistributor.from_table(
        worker_count, table or WeightTable(), default_weight
    )
    return distributor.distribute(suite_ids)


def makespan(groups: Sequence[WorkerGroup]) -> float:
    return max((group.total_weight for group in groups), default=0.0)
