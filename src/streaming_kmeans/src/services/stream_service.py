from __future__ import annotations

import numpy as np


class SyntheticStream:
    """Generator of drifting Gaussian blobs in d dimensions.

    Each call to `generate_batch` moves every true centroid by a small random
    step and samples `points_per_cluster` points around each of them.
    """

    def __init__(
        self,
        n_clusters: int = 3,
        dimensions: int = 2,
        points_per_cluster: int = 100,
        spread: float = 0.5,
        drift: float = 0.05,
        rng: np.random.Generator | None = None,
    ):
        self._validate(n_clusters, dimensions, points_per_cluster, spread, drift)
        self.n_clusters = n_clusters
        self.dimensions = dimensions
        self.points_per_cluster = points_per_cluster
        self.spread = spread
        self.drift = drift
        self._rng = rng or np.random.default_rng()
        self.centroids = self._random_centroids()
        self.batch_id = 0

    def _random_centroids(self) -> np.ndarray:
        return self._rng.uniform(-5, 5, size=(self.n_clusters, self.dimensions))

    def _update_centroids(self):
        """Apply random drift to centroids."""
        self.centroids = self.centroids + self._rng.uniform(
            -self.drift, self.drift, size=self.centroids.shape,
        )

    def generate_batch(self) -> np.ndarray:
        """Generate one shuffled batch of shape (n_clusters * points_per_cluster, dimensions)."""
        self.batch_id += 1
        self._update_centroids()
        blobs = [
            self._rng.normal(loc=center, scale=self.spread, size=(self.points_per_cluster, self.dimensions))
            for center in self.centroids
        ]
        batch = np.vstack(blobs) if blobs else np.empty((0, self.dimensions))
        self._rng.shuffle(batch)
        return batch

    def configure(
        self,
        n_clusters: int | None = None,
        dimensions: int | None = None,
        points_per_cluster: int | None = None,
        spread: float | None = None,
        drift: float | None = None,
    ):
        """Update configuration; changing the shape re-draws the centroids."""
        self._validate(
            n_clusters if n_clusters is not None else self.n_clusters,
            dimensions if dimensions is not None else self.dimensions,
            points_per_cluster if points_per_cluster is not None else self.points_per_cluster,
            spread if spread is not None else self.spread,
            drift if drift is not None else self.drift,
        )
        reshape = (n_clusters is not None and n_clusters != self.n_clusters) or (
            dimensions is not None and dimensions != self.dimensions
        )
        if n_clusters is not None:
            self.n_clusters = n_clusters
        if dimensions is not None:
            self.dimensions = dimensions
        if points_per_cluster is not None:
            self.points_per_cluster = points_per_cluster
        if spread is not None:
            self.spread = spread
        if drift is not None:
            self.drift = drift
        if reshape:
            self.centroids = self._random_centroids()

    def reset_stream(self):
        """Reset stream to initial state (batch counter and centroids)."""
        self.batch_id = 0
        self.centroids = self._random_centroids()

    def get_state(self) -> dict:
        """Return current configuration and state."""
        return {
            "n_clusters": self.n_clusters,
            "dimensions": self.dimensions,
            "points_per_cluster": self.points_per_cluster,
            "spread": self.spread,
            "drift": self.drift,
            "batch_id": self.batch_id,
            "centroids": self.centroids.tolist(),
        }

    @staticmethod
    def _validate(n_clusters, dimensions, points_per_cluster, spread, drift) -> None:
        if n_clusters <= 0 or dimensions <= 0:
            msg = f"n_clusters and dimensions must be greater than 0, got {n_clusters} and {dimensions}"
            raise ValueError(msg)
        if points_per_cluster < 0:
            msg = f"points_per_cluster must be non-negative, got {points_per_cluster}"
            raise ValueError(msg)
        if spread < 0 or drift < 0:
            msg = f"spread and drift must be non-negative, got {spread} and {drift}"
            raise ValueError(msg)
