from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from loguru import logger

DEFAULT_DEAD_AFTER = 5


@dataclass(frozen=True, slots=True)
class CenterDrift:
    """Movement of one cluster center between two consecutive model snapshots."""

    cluster_id: int
    previous_center: np.ndarray
    current_center: np.ndarray
    distance: float
    ema_distance: float | None
    idle_updates: int
    dead: bool


@dataclass(frozen=True, slots=True)
class DriftUpdate:
    """Drift summary for one model update."""

    step: int
    per_cluster: dict[int, CenterDrift]
    mean_drift_distance: float | None
    max_drift_distance: float | None
    newly_dead: list[int]
    dead: list[int]


class CenterDriftTracker:
    """Track how far each of the k centers moves from one batch to the next.

    A center that stays bit-identical for `dead_after` consecutive updates is
    reported as dead: it no longer attracts any points. Dead clusters are only
    reported, never reseeded.

    Example:
        tracker = CenterDriftTracker(ema_alpha=0.3)
        tracker.update(np.array([[0.0, 0.0], [5.0, 5.0]]))
        update = tracker.update(np.array([[1.0, 0.0], [5.0, 5.0]]))
        drift = update.per_cluster[0].distance
    """

    def __init__(
        self,
        *,
        ema_alpha: float | None = None,
        dead_after: int = DEFAULT_DEAD_AFTER,
    ) -> None:
        if ema_alpha is not None and (ema_alpha <= 0 or ema_alpha > 1):
            msg = f"ema_alpha must be in the range (0, 1], got {ema_alpha}"
            raise ValueError(msg)
        if dead_after <= 0:
            msg = f"dead_after must be greater than 0, got {dead_after}"
            raise ValueError(msg)
        self._ema_alpha = ema_alpha
        self._dead_after = dead_after
        self._previous: np.ndarray | None = None
        self._idle: np.ndarray | None = None
        self._ema_distance: dict[int, float] = {}
        self._step = 0

    def update(self, centers: np.ndarray) -> DriftUpdate:
        """Compare a new (k, d) snapshot of centers with the previous one."""
        current = self._sanitize(centers)
        self._step += 1
        if self._previous is None or self._previous.shape != current.shape:
            self._previous = current
            self._idle = np.zeros(current.shape[0], dtype=int)
            self._ema_distance = {}
            return DriftUpdate(
                step=self._step,
                per_cluster={},
                mean_drift_distance=None,
                max_drift_distance=None,
                newly_dead=[],
                dead=[],
            )

        per_cluster: dict[int, CenterDrift] = {}
        newly_dead: list[int] = []
        for cluster_id, (before, after) in enumerate(zip(self._previous, current)):
            distance = float(np.linalg.norm(after - before))
            if np.array_equal(before, after):
                self._idle[cluster_id] += 1
            else:
                self._idle[cluster_id] = 0
            idle = int(self._idle[cluster_id])
            if idle == self._dead_after:
                newly_dead.append(cluster_id)
            per_cluster[cluster_id] = CenterDrift(
                cluster_id=cluster_id,
                previous_center=before.copy(),
                current_center=after.copy(),
                distance=distance,
                ema_distance=self._update_ema(cluster_id, distance),
                idle_updates=idle,
                dead=idle >= self._dead_after,
            )
        self._previous = current

        for cluster_id in newly_dead:
            logger.bind(event="dead_cluster", cluster=cluster_id).warning(
                "Cluster {cluster} center unchanged for {n} batches",
                cluster=cluster_id,
                n=self._dead_after,
            )

        distances = [drift.distance for drift in per_cluster.values()]
        return DriftUpdate(
            step=self._step,
            per_cluster=per_cluster,
            mean_drift_distance=float(np.mean(distances)),
            max_drift_distance=float(np.max(distances)),
            newly_dead=newly_dead,
            dead=self.get_dead_clusters(),
        )

    def get_dead_clusters(self) -> list[int]:
        if self._idle is None:
            return []
        return [int(index) for index in np.flatnonzero(self._idle >= self._dead_after)]

    def get_state(self) -> dict[str, object]:
        """Return a JSON-friendly snapshot of internal state."""
        return {
            "step": self._step,
            "centers": self._previous.tolist() if self._previous is not None else [],
            "idle_updates": self._idle.tolist() if self._idle is not None else [],
            "ema_distance": dict(self._ema_distance),
            "dead_clusters": self.get_dead_clusters(),
        }

    def reset(self) -> None:
        self._previous = None
        self._idle = None
        self._ema_distance = {}
        self._step = 0

    def _sanitize(self, centers: np.ndarray) -> np.ndarray:
        array = np.array(centers, dtype=float, copy=True)
        if array.ndim != 2:
            msg = f"centers must be a 2D array, got {array.ndim}D"
            raise ValueError(msg)
        if not np.isfinite(array).all():
            msg = "centers contain NaN/inf"
            raise ValueError(msg)
        return array

    def _update_ema(self, cluster_id: int, distance: float) -> float | None:
        if self._ema_alpha is None:
            return None
        previous = self._ema_distance.get(cluster_id, distance)
        ema = self._ema_alpha * distance + (1 - self._ema_alpha) * previous
        self._ema_distance[cluster_id] = ema
        return ema
