"""Nearest-center assignment and per-cluster sum/count reduction.

A batch is split into partitions, every partition is reduced to a partial
aggregate on its own, and partials are merged. Merging is component-wise
addition of sums and counts, so the result does not depend on how the batch
was partitioned or in which order vectors arrived.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from functools import reduce

import numpy as np

from streaming_kmeans.src.models.cluster_model import ClusterModel


@dataclass(frozen=True, slots=True)
class ClusterStats:
    """Component-wise sum and count of the points assigned to one cluster."""

    total: np.ndarray
    count: int

    def combine(self, other: ClusterStats) -> ClusterStats:
        return ClusterStats(total=self.total + other.total, count=self.count + other.count)

    @property
    def mean(self) -> np.ndarray:
        return self.total / self.count


@dataclass(frozen=True, slots=True)
class ClusterAggregate:
    """Sparse mapping of cluster index to stats, holding only clusters that were hit."""

    stats: dict[int, ClusterStats] = field(default_factory=dict)

    def merge(self, other: ClusterAggregate) -> ClusterAggregate:
        merged = dict(self.stats)
        for index, stats in other.stats.items():
            current = merged.get(index)
            merged[index] = stats if current is None else current.combine(stats)
        return ClusterAggregate(stats=merged)

    def items(self) -> list[tuple[int, ClusterStats]]:
        return sorted(self.stats.items())

    def __contains__(self, index: object) -> bool:
        return index in self.stats

    def __len__(self) -> int:
        return len(self.stats)

    @property
    def total_count(self) -> int:
        return sum(stats.count for stats in self.stats.values())


def aggregate_partition(model: ClusterModel, vectors: np.ndarray) -> ClusterAggregate:
    """Assign every vector of one partition and sum it into its cluster."""
    if vectors.shape[0] == 0:
        return ClusterAggregate()
    labels = model.predict_many(vectors)
    stats: dict[int, ClusterStats] = {}
    for index in np.unique(labels):
        members = vectors[labels == index]
        stats[int(index)] = ClusterStats(
            total=members.sum(axis=0),
            count=int(members.shape[0]),
        )
    return ClusterAggregate(stats=stats)


class AssignmentReducer:
    """Reduce a batch to a ClusterAggregate against a read-only model snapshot."""

    def __init__(self, partitions: int = 1) -> None:
        if partitions <= 0:
            msg = f"partitions must be greater than 0, got {partitions}"
            raise ValueError(msg)
        self._partitions = partitions

    @property
    def partitions(self) -> int:
        return self._partitions

    def reduce(self, model: ClusterModel, batch: np.ndarray) -> ClusterAggregate:
        if batch.shape[0] == 0:
            return ClusterAggregate()
        chunks = [
            chunk for chunk in np.array_split(batch, min(self._partitions, batch.shape[0]))
            if chunk.shape[0]
        ]
        if len(chunks) == 1:
            return aggregate_partition(model, chunks[0])
        with ThreadPoolExecutor(max_workers=len(chunks)) as pool:
            partials = list(pool.map(lambda chunk: aggregate_partition(model, chunk), chunks))
        return reduce(ClusterAggregate.merge, partials, ClusterAggregate())
