from __future__ import annotations

import time
from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass
from enum import Enum
from threading import Lock

import numpy as np
from loguru import logger

from streaming_kmeans.src.errors import (
    DimensionMismatchError,
    InvalidVectorError,
    InvariantViolationError,
)
from streaming_kmeans.src.kmeans.initializer import init_random
from streaming_kmeans.src.kmeans.updater import BatchUpdater
from streaming_kmeans.src.models.cluster_model import ClusterModel
from streaming_kmeans.src.models.data_models import KMeansSettings
from streaming_kmeans.src.services.metrics_service import MetricsService
from streaming_kmeans.src.utils.drift_tracker import CenterDriftTracker
from streaming_kmeans.src.utils.timing import stopwatch

MODEL_NAME = "streaming_kmeans"


class DriverState(str, Enum):
    UNINITIALIZED = "uninitialized"
    RUNNING = "running"


@dataclass(frozen=True, slots=True)
class BatchResult:
    """Outcome of one processed batch.

    Attributes:
        labels: Cluster index of every vector, in the order they were given.
        model: The model that was committed for this batch and produced the labels.
    """

    batch_id: str | None
    labels: list[int]
    n_samples: int
    latency_ms: float
    model: ClusterModel


def as_batch(vectors, d: int) -> np.ndarray:
    """Coerce a batch to a finite (n, d) float array.

    Only a batch with no vectors at all is empty; zero-length vectors are a
    dimension mismatch like any other wrong length.
    """
    try:
        batch = np.array(vectors, dtype=np.float64)
    except (TypeError, ValueError) as exc:
        msg = f"batch is not a rectangular array of {d}-dimensional vectors: {exc}"
        raise DimensionMismatchError(msg, expected=d) from exc
    if batch.ndim == 1 and batch.shape[0] == 0:
        return np.empty((0, d), dtype=np.float64)
    if batch.ndim != 2 or batch.shape[1] != d:
        actual = batch.shape[1] if batch.ndim == 2 else None
        msg = f"every vector must have dimension {d}, got batch of shape {batch.shape}"
        raise DimensionMismatchError(msg, expected=d, actual=actual)
    if not np.isfinite(batch).all():
        msg = "batch contains NaN/inf values"
        raise InvalidVectorError(msg, expected=d, actual=d)
    return batch


class StreamDriver:
    """Owner of the single authoritative cluster model of a stream.

    Batches are processed strictly one at a time. For every batch the held
    model is passed to the updater, the returned model replaces it, and the
    same batch is labelled with the replacement. A batch that fails for any
    reason leaves the previously committed model in place.
    """

    def __init__(
        self,
        settings: KMeansSettings,
        *,
        rng: np.random.Generator | None = None,
        updater: BatchUpdater | None = None,
        metrics: MetricsService | None = None,
        drift_tracker: CenterDriftTracker | None = None,
        initial_model: ClusterModel | None = None,
    ) -> None:
        self._settings = settings
        self._rng = rng
        self._updater = updater or BatchUpdater(settings)
        self._metrics = metrics
        self._drift = drift_tracker
        self._lock = Lock()
        self._model: ClusterModel | None = None
        self._batches_processed = 0
        if initial_model is not None:
            self._validate_initial_model(initial_model)
            self._model = initial_model

    @property
    def settings(self) -> KMeansSettings:
        return self._settings

    @property
    def state(self) -> DriverState:
        return DriverState.UNINITIALIZED if self._model is None else DriverState.RUNNING

    @property
    def model(self) -> ClusterModel | None:
        return self._model

    @property
    def batches_processed(self) -> int:
        return self._batches_processed

    def start(self) -> ClusterModel:
        """Initialize the model now instead of on the first batch."""
        with self._lock:
            return self._ensure_model()

    def process_batch(self, vectors, batch_id: str | None = None) -> BatchResult:
        """Update the model with one batch and label that batch with the result."""
        batch = self._validate(vectors, batch_id)
        with self._lock:
            current = self._ensure_model()
            with stopwatch() as watch:
                updated = self._updater.update(current, batch)
                if not np.isfinite(updated.centers).all():
                    msg = (
                        f"update produced non-finite centers (alpha={self._settings.alpha}), "
                        "previous model kept"
                    )
                    raise InvariantViolationError(msg)
                self._model = updated
                self._batches_processed += 1
                labels = updated.predict_many(batch)
        result = BatchResult(
            batch_id=batch_id,
            labels=labels.tolist(),
            n_samples=int(batch.shape[0]),
            latency_ms=watch.elapsed_ms,
            model=updated,
        )
        self._observe(batch, labels, result)
        return result

    def predict(self, vectors) -> list[int]:
        """Label vectors with the committed model without updating it."""
        batch = as_batch(vectors, self._settings.d)
        with self._lock:
            model = self._ensure_model()
        return model.predict_many(batch).tolist()

    def run(
        self,
        batches: Iterable,
        sink: Callable[[BatchResult], None] | None = None,
    ) -> Iterator[BatchResult]:
        """Process batches in arrival order, yielding one result per batch."""
        self.start()
        for batch in batches:
            result = self.process_batch(batch)
            if sink is not None:
                sink(result)
            yield result

    def _ensure_model(self) -> ClusterModel:
        if self._model is None:
            self._model = init_random(
                self._settings.k,
                self._settings.d,
                self._settings.initialization_mode,
                rng=self._rng,
            )
        return self._model

    def _validate(self, vectors, batch_id: str | None) -> np.ndarray:
        try:
            return as_batch(vectors, self._settings.d)
        except DimensionMismatchError as exc:
            logger.bind(event="batch_rejected", batch_id=batch_id).error(
                "Batch rejected, model unchanged: {error}", error=str(exc),
            )
            raise

    def _validate_initial_model(self, model: ClusterModel) -> None:
        if model.k != self._settings.k or model.d != self._settings.d:
            msg = (
                f"initial model has k={model.k} d={model.d}, "
                f"settings expect k={self._settings.k} d={self._settings.d}"
            )
            raise DimensionMismatchError(msg, expected=self._settings.d, actual=model.d)

    def _observe(self, batch: np.ndarray, labels: np.ndarray, result: BatchResult) -> None:
        # the model is already committed here, observers can only log their failures
        occupied = len(set(result.labels))
        if self._metrics is not None:
            try:
                self._metrics.evaluate(
                    batch,
                    labels,
                    model_name=MODEL_NAME,
                    batch_id=result.batch_id,
                    centers=result.model.centers,
                    latency_ms=result.latency_ms,
                )
            except Exception as exc:
                self._log_observer_failure("metrics", result.batch_id, exc)
        if self._drift is not None:
            try:
                self._drift.update(result.model.centers)
            except Exception as exc:
                self._log_observer_failure("drift", result.batch_id, exc)
        logger.bind(
            event="kmeans_batch",
            model_name=MODEL_NAME,
            batch_id=result.batch_id,
            n_samples=result.n_samples,
            occupied_clusters=occupied,
            mode="mini-batch" if self._settings.mini_batch else "forgetful",
            latency_ms=result.latency_ms,
            timestamp=time.time(),
        ).info("Streaming k-means batch processed")

    @staticmethod
    def _log_observer_failure(observer: str, batch_id: str | None, exc: Exception) -> None:
        logger.opt(exception=exc).bind(
            event="observer_failed", observer=observer, batch_id=batch_id,
        ).error(
            "{observer} observer failed, batch result kept: {error}",
            observer=observer,
            error=str(exc),
        )
