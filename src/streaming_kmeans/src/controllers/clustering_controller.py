from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from streaming_kmeans.src.errors import ConfigurationError, DimensionMismatchError
from streaming_kmeans.src.models.data_models import VectorBatchPayload
from streaming_kmeans.src.services.kmeans_service import kmeans_service


router = APIRouter(prefix="/v1/kmeans", tags=["Streaming K-means"])


class PredictPayload(BaseModel):
    vectors: List[List[float]]


class KMeansConfigPayload(BaseModel):
    k: Optional[int] = None
    d: Optional[int] = None
    alpha: Optional[float] = None
    max_iterations: Optional[int] = None
    initialization_mode: Optional[str] = None
    partitions: Optional[int] = None


@router.post("/update", summary="Update the model with a batch and label it")
def update_kmeans(payload: VectorBatchPayload):
    try:
        return kmeans_service.update_clusters(payload.vectors, batch_id=payload.batch_id)
    except DimensionMismatchError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc


@router.post("/predict", summary="Label vectors without updating the model")
def predict_kmeans(payload: PredictPayload):
    try:
        return {"labels": kmeans_service.predict(payload.vectors)}
    except DimensionMismatchError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc


@router.get("/model", summary="Fetch current cluster centers and counts")
def get_kmeans_model():
    return kmeans_service.get_current_model()


@router.post("/configure", summary="Replace the settings and restart the model")
def configure_kmeans(payload: KMeansConfigPayload):
    try:
        updated = kmeans_service.configure(**payload.model_dump(exclude_none=True))
    except ConfigurationError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    return {"message": "Streaming k-means configuration updated", "config": updated}


@router.get("/config", summary="Get current streaming k-means configuration")
def get_kmeans_config():
    return kmeans_service.get_config()


@router.post("/reset", summary="Re-initialize the model with random centers")
def reset_kmeans():
    return {"message": "Streaming k-means model reset", "model": kmeans_service.reset()}
