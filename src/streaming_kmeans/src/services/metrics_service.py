from __future__ import annotations

import time
from collections import deque
from dataclasses import dataclass

import numpy as np
from loguru import logger
from sklearn.metrics import silhouette_score

SILHOUETTE_SAMPLE_SIZE = 1000


@dataclass(frozen=True, slots=True)
class MetricsRecord:
    """Snapshot of clustering evaluation metrics for one batch."""

    timestamp: float
    model_name: str
    batch_id: str | None
    n_samples: int
    number_of_clusters: int
    inertia: float | None
    silhouette_score: float | None
    latency_ms: float | None = None


class MetricsService:
    """Compute and store per-batch clustering metrics for monitoring."""

    def __init__(self, history_size: int = 100, random_state: int | None = 0) -> None:
        if history_size <= 0:
            msg = f"history_size must be greater than 0, got {history_size}"
            raise ValueError(msg)
        self._history_size = history_size
        self._random_state = random_state
        self._history: dict[str, deque[MetricsRecord]] = {}

    def evaluate(
        self,
        features: np.ndarray,
        labels: np.ndarray,
        *,
        model_name: str,
        batch_id: str | None = None,
        centers: np.ndarray | None = None,
        latency_ms: float | None = None,
    ) -> MetricsRecord:
        """Compute metrics for a labelled batch and store the result."""
        if not model_name:
            msg = "model_name must be a non-empty string"
            raise ValueError(msg)
        data = np.asarray(features, dtype=float)
        label_array = np.asarray(labels)
        if data.ndim != 2:
            msg = f"features must be a 2D array-like structure, got {data.ndim}D"
            raise ValueError(msg)
        if label_array.ndim != 1:
            msg = f"labels must be a 1D array-like structure, got {label_array.ndim}D"
            raise ValueError(msg)
        n_samples = int(data.shape[0])
        if n_samples != int(label_array.size):
            msg = (
                "features and labels must have matching lengths, "
                f"got {n_samples} and {label_array.size}"
            )
            raise ValueError(msg)

        number_of_clusters = len({int(label) for label in label_array.tolist()})
        record = MetricsRecord(
            timestamp=time.time(),
            model_name=model_name,
            batch_id=batch_id,
            n_samples=n_samples,
            number_of_clusters=number_of_clusters,
            inertia=self._inertia(data, label_array, centers),
            silhouette_score=self._safe_silhouette_score(data, label_array, number_of_clusters),
            latency_ms=latency_ms,
        )
        self._store(record)
        self._log(record)
        return record

    def get_latest(
        self, model_name: str | None = None,
    ) -> MetricsRecord | None | dict[str, MetricsRecord]:
        """Return the latest metrics record for a model or for all models."""
        if model_name is None:
            return {
                name: records[-1] for name, records in self._history.items() if records
            }
        records = self._history.get(model_name)
        return records[-1] if records else None

    def get_history(self, model_name: str) -> tuple[MetricsRecord, ...]:
        """Return a read-only copy of stored metrics for a model."""
        records = self._history.get(model_name)
        return tuple(records) if records else ()

    def reset(self) -> None:
        self._history = {}

    def _store(self, record: MetricsRecord) -> None:
        records = self._history.setdefault(
            record.model_name,
            deque(maxlen=self._history_size),
        )
        records.append(record)

    def _inertia(
        self, data: np.ndarray, labels: np.ndarray, centers: np.ndarray | None,
    ) -> float | None:
        if centers is None or data.shape[0] == 0:
            return None
        assigned = np.asarray(centers, dtype=float)[labels.astype(int)]
        return float(np.sum((data - assigned) ** 2))

    def _safe_silhouette_score(
        self, data: np.ndarray, labels: np.ndarray, number_of_clusters: int,
    ) -> float | None:
        if data.shape[0] > SILHOUETTE_SAMPLE_SIZE:
            rng = np.random.default_rng(self._random_state)
            picked = rng.choice(data.shape[0], size=SILHOUETTE_SAMPLE_SIZE, replace=False)
            data, labels = data[picked], labels[picked]
            number_of_clusters = len(set(labels.tolist()))
        # silhouette is only defined for 2 <= n_labels <= n_samples - 1
        if number_of_clusters < 2 or number_of_clusters >= data.shape[0]:
            return None
        return float(silhouette_score(data, labels))

    def _log(self, record: MetricsRecord) -> None:
        log = logger.warning if record.n_samples == 0 else logger.info
        log(
            "metrics computed | model={model} batch={batch} n_samples={n} "
            "n_clusters={clusters} inertia={inertia} silhouette={silhouette}",
            model=record.model_name,
            batch=record.batch_id,
            n=record.n_samples,
            clusters=record.number_of_clusters,
            inertia=record.inertia,
            silhouette=record.silhouette_score,
        )


metrics_service = MetricsService()
