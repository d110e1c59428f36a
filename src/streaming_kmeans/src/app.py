from fastapi import FastAPI

from streaming_kmeans.src.controllers.clustering_controller import router as kmeans_api
from streaming_kmeans.src.controllers.health_controller import health_api
from streaming_kmeans.src.controllers.logs_controller import router as logs_api
from streaming_kmeans.src.controllers.metrics_controller import router as metrics_api
from streaming_kmeans.src.controllers.stream_controller import router as stream_api


def create_app() -> FastAPI:
    app = FastAPI(title="Streaming K-means API")
    app.include_router(health_api)
    app.include_router(kmeans_api)
    app.include_router(stream_api)
    app.include_router(metrics_api)
    app.include_router(logs_api)
    return app
