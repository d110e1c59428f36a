from fastapi import APIRouter, Body, HTTPException

from streaming_kmeans.src.config import config
from streaming_kmeans.src.errors import DimensionMismatchError
from streaming_kmeans.src.services.kmeans_service import kmeans_service
from streaming_kmeans.src.services.stream_service import SyntheticStream

router = APIRouter(prefix="/v1/stream", tags=["Stream"])

stream_service = SyntheticStream(
    n_clusters=config.kmeans.k,
    dimensions=config.kmeans.d,
    points_per_cluster=config.stream.points_per_cluster,
    spread=config.stream.spread,
    drift=config.stream.drift,
)


@router.get("/generate", summary="Generate a synthetic batch of vectors")
def generate_batch():
    data = stream_service.generate_batch()
    return {
        "batch_id": stream_service.batch_id,
        "points_generated": len(data),
        "vectors": data.tolist(),
    }


@router.post("/step", summary="Generate a synthetic batch and feed it to the model")
def step_stream():
    data = stream_service.generate_batch()
    try:
        labels = kmeans_service.update_clusters(data, batch_id=str(stream_service.batch_id))
    except DimensionMismatchError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    return {
        "batch_id": stream_service.batch_id,
        "points_generated": len(data),
        "labels": labels.labels,
        "latency_ms": labels.latency_ms,
        "model": kmeans_service.get_current_model(),
    }


@router.get("/state", summary="Get current stream generator state")
def get_stream_state():
    return stream_service.get_state()


@router.post("/configure", summary="Configure stream generator parameters")
def configure_stream(
    n_clusters: int = Body(None),
    dimensions: int = Body(None),
    points_per_cluster: int = Body(None),
    spread: float = Body(None),
    drift: float = Body(None),
):
    """Dynamically configure generator parameters."""
    try:
        stream_service.configure(
            n_clusters=n_clusters,
            dimensions=dimensions,
            points_per_cluster=points_per_cluster,
            spread=spread,
            drift=drift,
        )
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    return {"message": "Stream configuration updated", "state": stream_service.get_state()}


@router.post("/reset", summary="Reset the stream to initial state")
def reset_stream():
    """Reset stream (batch counter and centroids)."""
    stream_service.reset_stream()
    return {"message": "Stream reset successfully", "state": stream_service.get_state()}
