from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from streaming_kmeans.src.errors import DimensionMismatchError, InvariantViolationError


def _frozen_array(values: np.ndarray, dtype: type) -> np.ndarray:
    array = np.array(values, dtype=dtype, copy=True)
    array.setflags(write=False)
    return array


@dataclass(frozen=True, slots=True)
class ClusterModel:
    """Immutable snapshot of k cluster centers and their running counts.

    Attributes:
        centers: Float array of shape (k, d).
        counts: Integer array of shape (k,). Only meaningful in mini-batch
            mode, where it holds the number of points merged into each center.
    """

    centers: np.ndarray
    counts: np.ndarray

    def __post_init__(self) -> None:
        centers = _frozen_array(self.centers, np.float64)
        counts = _frozen_array(self.counts, np.int64)
        if centers.ndim != 2 or centers.shape[0] == 0 or centers.shape[1] == 0:
            msg = f"centers must be a non-empty 2D array, got shape {centers.shape}"
            raise InvariantViolationError(msg)
        if counts.shape != (centers.shape[0],):
            msg = (
                "counts must hold one entry per center, "
                f"got {counts.shape[0] if counts.ndim else 0} counts for {centers.shape[0]} centers"
            )
            raise InvariantViolationError(msg)
        if np.any(counts < 0):
            msg = "cluster counts must be non-negative"
            raise InvariantViolationError(msg)
        object.__setattr__(self, "centers", centers)
        object.__setattr__(self, "counts", counts)

    @property
    def k(self) -> int:
        return int(self.centers.shape[0])

    @property
    def d(self) -> int:
        return int(self.centers.shape[1])

    def predict(self, vector) -> int:
        """Return the index of the nearest center (squared Euclidean).

        Exact distance ties resolve to the lowest index.
        """
        point = np.asarray(vector, dtype=np.float64)
        if point.ndim != 1 or point.shape[0] != self.d:
            actual = point.shape[0] if point.ndim == 1 else None
            msg = f"vector must have dimension {self.d}, got shape {point.shape}"
            raise DimensionMismatchError(msg, expected=self.d, actual=actual)
        return int(self.predict_many(point[np.newaxis, :])[0])

    def predict_many(self, vectors) -> np.ndarray:
        """Vectorised `predict` over an (n, d) array, preserving row order."""
        points = np.asarray(vectors, dtype=np.float64)
        if points.ndim != 2 or points.shape[1] != self.d:
            actual = points.shape[1] if points.ndim == 2 else None
            msg = f"vectors must have shape (n, {self.d}), got {points.shape}"
            raise DimensionMismatchError(msg, expected=self.d, actual=actual)
        if points.shape[0] == 0:
            return np.empty(0, dtype=np.int64)
        deltas = points[:, np.newaxis, :] - self.centers[np.newaxis, :, :]
        distances = np.sum(deltas * deltas, axis=2)
        return np.argmin(distances, axis=1).astype(np.int64)

    def with_state(self, centers: np.ndarray, counts: np.ndarray) -> ClusterModel:
        """Return a new model with the same shape and the supplied state."""
        updated = ClusterModel(centers=centers, counts=counts)
        if updated.centers.shape != self.centers.shape:
            msg = (
                f"updated centers must keep shape {self.centers.shape}, "
                f"got {updated.centers.shape}"
            )
            raise InvariantViolationError(msg)
        return updated

    def to_dict(self) -> dict[str, object]:
        return {
            "k": self.k,
            "d": self.d,
            "centers": self.centers.tolist(),
            "counts": self.counts.tolist(),
        }
