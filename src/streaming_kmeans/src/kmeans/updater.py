from __future__ import annotations

import numpy as np
from loguru import logger

from streaming_kmeans.src.errors import InvariantViolationError
from streaming_kmeans.src.kmeans.reducer import AssignmentReducer, ClusterAggregate
from streaming_kmeans.src.models.cluster_model import ClusterModel
from streaming_kmeans.src.models.data_models import KMeansSettings


class BatchUpdater:
    """Merge one batch into a cluster model over `max_iterations` rounds.

    With alpha == 1 every center is the exact running mean of all points ever
    merged into it (mini-batch mode). Any other alpha moves the center towards
    the batch mean by that fraction (forgetful mode), so older batches fade
    out exponentially. Clusters that receive no points in a round are left
    exactly as they were.
    """

    def __init__(
        self,
        settings: KMeansSettings,
        reducer: AssignmentReducer | None = None,
    ) -> None:
        self._settings = settings
        self._reducer = reducer or AssignmentReducer(partitions=settings.partitions)

    @property
    def settings(self) -> KMeansSettings:
        return self._settings

    def update(self, model: ClusterModel, batch: np.ndarray) -> ClusterModel:
        """Return a new model reflecting every round; `model` is never modified."""
        centers = model.centers.copy()
        counts = model.counts.copy()
        for _ in range(self._settings.max_iterations):
            snapshot = model.with_state(centers, counts)
            aggregate = self._reducer.reduce(snapshot, batch)
            if self._settings.mini_batch:
                self._merge_running_mean(centers, counts, aggregate)
            else:
                self._merge_forgetful(centers, aggregate)
        updated = model.with_state(centers, counts)
        self._log_centers(updated)
        return updated

    def _merge_running_mean(
        self, centers: np.ndarray, counts: np.ndarray, aggregate: ClusterAggregate,
    ) -> None:
        for index, stats in aggregate.items():
            previous = int(counts[index])
            merged = previous + stats.count
            if merged <= 0:
                msg = (
                    f"cluster {index} would have non-positive count {merged} "
                    f"after merging {stats.count} points into {previous}"
                )
                raise InvariantViolationError(msg)
            centers[index] = (centers[index] * previous + stats.total) / merged
            counts[index] = merged

    def _merge_forgetful(self, centers: np.ndarray, aggregate: ClusterAggregate) -> None:
        alpha = self._settings.alpha
        for index, stats in aggregate.items():
            if stats.count <= 0:
                msg = f"cluster {index} is present in the aggregate with count {stats.count}"
                raise InvariantViolationError(msg)
            centers[index] = centers[index] + alpha * (stats.mean - centers[index])

    def _log_centers(self, model: ClusterModel) -> None:
        for index, center in enumerate(model.centers):
            logger.bind(event="cluster_center", cluster=index).info(
                "Cluster center {index}: {center}",
                index=index,
                center=", ".join(f"{value:.6g}" for value in center),
            )
