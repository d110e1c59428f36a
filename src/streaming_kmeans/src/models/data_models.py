from __future__ import annotations

import math
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from streaming_kmeans.src.errors import ConfigurationError
from streaming_kmeans.src.kmeans.initializer import normalize_initialization_mode


class KMeansSettings(BaseModel):
    """Validated parameters of a streaming K-means run."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    k: int = Field(2, gt=0, description="Number of clusters")
    d: int = Field(5, gt=0, description="Vector dimensionality")
    alpha: float = Field(
        1.0,
        description="1.0 selects exact mini-batch updates, any other value forgetful updates",
    )
    max_iterations: int = Field(1, ge=1, description="Refinement rounds per batch")
    initialization_mode: str = "gaussian"
    partitions: int = Field(1, ge=1, description="Partitions per batch reduction")

    @field_validator("alpha")
    def _finite_alpha(cls, value: float) -> float:
        if not math.isfinite(value):
            raise ValueError("alpha must be a finite number")
        return value

    @field_validator("initialization_mode")
    def _known_mode(cls, value: str) -> str:
        return normalize_initialization_mode(value)

    @property
    def mini_batch(self) -> bool:
        return self.alpha == 1.0


def load_settings(**values) -> KMeansSettings:
    """Build settings eagerly, surfacing validation problems as ConfigurationError."""
    try:
        return KMeansSettings(**values)
    except ValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in error['loc']) or 'settings'}: {error['msg']}"
            for error in exc.errors()
        )
        raise ConfigurationError(f"Invalid streaming k-means settings: {problems}") from exc


class VectorBatchPayload(BaseModel):
    """One batch of vectors submitted to the clustering endpoints."""

    vectors: List[List[float]] = Field(default_factory=list)
    batch_id: Optional[str] = None


class ClusterCenter(BaseModel):
    id: int = Field(..., ge=0)
    center: List[float]
    count: int = Field(..., ge=0)


class ModelSnapshot(BaseModel):
    """Serializable view of the authoritative model held by the stream driver."""

    state: Literal["uninitialized", "running"]
    batches_processed: int = Field(..., ge=0)
    settings: KMeansSettings
    clusters: List[ClusterCenter] = Field(default_factory=list)

    @field_validator("clusters")
    def _unique_ids(cls, clusters: List[ClusterCenter]) -> List[ClusterCenter]:
        ids = [cluster.id for cluster in clusters]
        if len(ids) != len(set(ids)):
            raise ValueError("cluster ids must be unique")
        return clusters


class BatchLabels(BaseModel):
    """Labels emitted for one batch, in the order the vectors were submitted."""

    batch_id: Optional[str] = None
    labels: List[int] = Field(default_factory=list)
    n_samples: int = Field(..., ge=0)
    latency_ms: float = Field(0.0, ge=0.0)
