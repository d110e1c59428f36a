import numpy as np
import pytest
from fastapi.testclient import TestClient

from streaming_kmeans.src.app import create_app
from streaming_kmeans.src.models.cluster_model import ClusterModel
from streaming_kmeans.src.services.kmeans_service import kmeans_service
from streaming_kmeans.src.services.stream_driver import StreamDriver


@pytest.fixture
def client():
    original = kmeans_service.get_config()
    kmeans_service.configure(k=2, d=1, alpha=1.0, max_iterations=1, initialization_mode="gaussian")
    kmeans_service.driver = StreamDriver(
        kmeans_service.driver.settings,
        initial_model=ClusterModel(centers=np.array([[0.0], [10.0]]), counts=np.array([0, 0])),
        drift_tracker=kmeans_service.drift_tracker,
    )
    yield TestClient(create_app())
    kmeans_service.configure(**original)


def test_health_reports_running_stream(client):
    response = client.get("/v1/health")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"
    assert response.json()["stream_state"] == "running"


def test_update_returns_labels_in_input_order(client):
    # Act
    response = client.post("/v1/kmeans/update", json={"vectors": [[1.0], [2.0], [9.0]], "batch_id": "b1"})
    model = client.get("/v1/kmeans/model").json()

    # Assert
    assert response.status_code == 200
    assert response.json()["labels"] == [0, 0, 1]
    assert response.json()["batch_id"] == "b1"
    assert [c["center"] for c in model["clusters"]] == [[1.5], [9.0]]
    assert [c["count"] for c in model["clusters"]] == [2, 1]
    assert model["batches_processed"] == 1


def test_empty_update_returns_no_labels(client):
    response = client.post("/v1/kmeans/update", json={"vectors": []})

    assert response.status_code == 200
    assert response.json()["labels"] == []
    assert response.json()["n_samples"] == 0


def test_dimension_mismatch_is_unprocessable_and_keeps_model(client):
    # Arrange
    before = client.get("/v1/kmeans/model").json()

    # Act
    response = client.post("/v1/kmeans/update", json={"vectors": [[1.0, 2.0]]})

    # Assert
    assert response.status_code == 422
    assert client.get("/v1/kmeans/model").json() == before


@pytest.mark.parametrize("endpoint", ["/v1/kmeans/update", "/v1/kmeans/predict"])
def test_zero_length_vectors_are_unprocessable(client, endpoint):
    # Arrange
    before = client.get("/v1/kmeans/model").json()

    # Act
    response = client.post(endpoint, json={"vectors": [[], []]})

    # Assert
    assert response.status_code == 422
    assert client.get("/v1/kmeans/model").json() == before


def test_predict_does_not_update_model(client):
    response = client.post("/v1/kmeans/predict", json={"vectors": [[4.0], [6.0]]})

    assert response.status_code == 200
    assert response.json() == {"labels": [0, 1]}
    assert client.get("/v1/kmeans/model").json()["batches_processed"] == 0


def test_configure_validates_before_applying(client):
    # Act
    response = client.post("/v1/kmeans/configure", json={"initialization_mode": "random"})

    # Assert
    assert response.status_code == 422
    assert client.get("/v1/kmeans/config").json()["initialization_mode"] == "gaussian"


def test_configure_rebuilds_model(client):
    # Act
    response = client.post("/v1/kmeans/configure", json={"k": 4, "d": 3, "alpha": 0.5, "initialization_mode": "pos"})
    model = client.get("/v1/kmeans/model").json()

    # Assert
    assert response.status_code == 200
    assert response.json()["config"]["initialization_mode"] == "uniform-positive"
    assert len(model["clusters"]) == 4
    assert all(len(c["center"]) == 3 for c in model["clusters"])
    assert all(0.0 <= value < 1.0 for c in model["clusters"] for value in c["center"])


def test_reset_starts_from_fresh_centers(client):
    client.post("/v1/kmeans/update", json={"vectors": [[1.0]]})

    response = client.post("/v1/kmeans/reset")

    assert response.status_code == 200
    assert response.json()["model"]["batches_processed"] == 0
    assert response.json()["model"]["state"] == "running"
    assert all(c["count"] == 0 for c in response.json()["model"]["clusters"])


def test_stream_step_feeds_synthetic_batch(client):
    # Arrange
    client.post("/v1/kmeans/configure", json={"k": 3, "d": 2})
    client.post("/v1/stream/configure", json={"n_clusters": 3, "dimensions": 2, "points_per_cluster": 5})

    # Act
    response = client.post("/v1/stream/step")

    # Assert
    assert response.status_code == 200
    payload = response.json()
    assert payload["points_generated"] == 15
    assert len(payload["labels"]) == 15
    assert payload["model"]["batches_processed"] == 1


def test_stream_generate_and_reset(client):
    generated = client.get("/v1/stream/generate")
    reset = client.post("/v1/stream/reset")

    assert generated.status_code == 200
    assert len(generated.json()["vectors"]) == generated.json()["points_generated"]
    assert reset.json()["state"]["batch_id"] == 0


def test_recent_logs_endpoint(client):
    response = client.get("/v1/logs/recent", params={"limit": 5})

    assert response.status_code == 200
    assert isinstance(response.json()["logs"], list)


def test_recent_logs_can_be_filtered_by_event(client):
    response = client.get("/v1/logs/recent", params={"limit": 50, "event": "kmeans_batch", "level": "INFO"})

    assert response.status_code == 200
    assert all(entry["extra"]["event"] == "kmeans_batch" for entry in response.json()["logs"])
