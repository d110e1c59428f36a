from fastapi import APIRouter

from streaming_kmeans.src.services.kmeans_service import kmeans_service

health_api = APIRouter(prefix="/v1/health", tags=["Health"])


@health_api.get("")
def health():
    return {
        "status": "ok",
        "stream_state": kmeans_service.driver.state.value,
        "batches_processed": kmeans_service.driver.batches_processed,
    }
