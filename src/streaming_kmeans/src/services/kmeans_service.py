from __future__ import annotations

from threading import Lock
from typing import Any, Callable, Dict, Iterable, Optional

from streaming_kmeans.src.config import config
from streaming_kmeans.src.models.data_models import (
    BatchLabels,
    ClusterCenter,
    KMeansSettings,
    ModelSnapshot,
    load_settings,
)
from streaming_kmeans.src.services.metrics_service import MetricsService, metrics_service
from streaming_kmeans.src.services.stream_driver import BatchResult, StreamDriver
from streaming_kmeans.src.utils.drift_tracker import CenterDriftTracker


class KMeansService:
    """
    Service exposing one streaming k-means driver to the HTTP layer.

    Requests run on a thread pool, so updates, predictions and driver
    replacement (configure, reset) are serialised on one lock. A replaced
    driver never receives a batch.
    """

    DEFAULT_CONFIG = {
        "k": 2,
        "d": 5,
        "alpha": 1.0,
        "max_iterations": 1,
        "initialization_mode": "gaussian",
        "partitions": 1,
    }

    def __init__(
        self,
        driver_factory: Optional[Callable[..., StreamDriver]] = None,
        metrics: Optional[MetricsService] = None,
        **config,
    ):
        self._settings = load_settings(**{**self.DEFAULT_CONFIG, **config})
        self._metrics = metrics or metrics_service
        self._factory = driver_factory or self._default_factory
        self._lock = Lock()
        self.drift_tracker = CenterDriftTracker()
        self.driver = self._build_driver()
        self._last_result: Optional[BatchResult] = None

    def _default_factory(self, settings: KMeansSettings, **kwargs: Any) -> StreamDriver:
        return StreamDriver(settings, **kwargs)

    def _build_driver(self) -> StreamDriver:
        self.drift_tracker.reset()
        driver = self._factory(
            self._settings, metrics=self._metrics, drift_tracker=self.drift_tracker,
        )
        driver.start()
        return driver

    def update_clusters(
        self, vectors: Iterable[Iterable[float]], batch_id: Optional[str] = None,
    ) -> BatchLabels:
        with self._lock:
            result = self.driver.process_batch(list(vectors), batch_id=batch_id)
            self._last_result = result
        return BatchLabels(
            batch_id=result.batch_id,
            labels=result.labels,
            n_samples=result.n_samples,
            latency_ms=result.latency_ms,
        )

    def predict(self, vectors: Iterable[Iterable[float]]) -> list[int]:
        with self._lock:
            return self.driver.predict(list(vectors))

    def get_current_model(self) -> ModelSnapshot:
        driver = self.driver
        model = driver.model
        clusters = []
        if model is not None:
            clusters = [
                ClusterCenter(id=index, center=center.tolist(), count=int(count))
                for index, (center, count) in enumerate(zip(model.centers, model.counts))
            ]
        return ModelSnapshot(
            state=driver.state.value,
            batches_processed=driver.batches_processed,
            settings=self._settings,
            clusters=clusters,
        )

    def configure(self, **config) -> Dict[str, Any]:
        """Validate new settings and rebuild the driver; invalid values change nothing."""
        changes = {
            key: value for key, value in config.items()
            if value is not None and key in self.DEFAULT_CONFIG
        }
        if changes:
            with self._lock:
                self._settings = load_settings(**{**self._settings.model_dump(), **changes})
                self.driver = self._build_driver()
                self._last_result = None
        return self.get_config()

    def reset(self) -> ModelSnapshot:
        """Drop the model and start again from fresh random centers."""
        with self._lock:
            self.driver = self._build_driver()
            self._last_result = None
        return self.get_current_model()

    def get_config(self) -> Dict[str, Any]:
        return self._settings.model_dump()

    @property
    def last_result(self) -> Optional[BatchResult]:
        return self._last_result


kmeans_service = KMeansService(**config.kmeans.to_dict())
