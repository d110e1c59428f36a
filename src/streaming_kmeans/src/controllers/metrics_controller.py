from __future__ import annotations

from dataclasses import asdict, dataclass

from fastapi import APIRouter

from streaming_kmeans.src.services.kmeans_service import kmeans_service
from streaming_kmeans.src.services.metrics_service import metrics_service

router = APIRouter(prefix="/v1/metrics", tags=["Metrics"])


@dataclass(frozen=True, slots=True)
class MetricsResponse:
    latest: dict[str, dict[str, object]]
    drift: dict[str, object]

    def to_dict(self) -> dict[str, dict[str, object]]:
        return {"latest": self.latest, "drift": self.drift}


@router.get("/latest", summary="Fetch latest clustering metrics and center drift")
def get_latest_metrics() -> dict[str, dict[str, object]]:
    """Return the latest metrics per model and the drift state of the live model."""
    latest = metrics_service.get_latest()
    payload = {name: asdict(record) for name, record in latest.items()}
    response = MetricsResponse(latest=payload, drift=kmeans_service.drift_tracker.get_state())
    return response.to_dict()
