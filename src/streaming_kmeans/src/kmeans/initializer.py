"""Random seeding of the first cluster model.

Streaming K-means has not seen any data when it starts, so the initial
centers are drawn at random instead of being sampled from the input.
"""

from __future__ import annotations

import numpy as np
from loguru import logger

from streaming_kmeans.src.errors import ConfigurationError
from streaming_kmeans.src.models.cluster_model import ClusterModel

GAUSSIAN = "gaussian"
UNIFORM_POSITIVE = "uniform-positive"
INITIALIZATION_MODES = (GAUSSIAN, UNIFORM_POSITIVE)

_MODE_ALIASES = {
    "gauss": GAUSSIAN,
    "pos": UNIFORM_POSITIVE,
}

# Process-wide, unseeded. Tests pass their own generator instead.
_default_rng = np.random.default_rng()


def normalize_initialization_mode(mode: str) -> str:
    """Return the canonical mode name or raise ConfigurationError."""
    if not isinstance(mode, str):
        msg = f"Invalid initialization mode: {mode!r}"
        raise ConfigurationError(msg)
    canonical = _MODE_ALIASES.get(mode, mode)
    if canonical not in INITIALIZATION_MODES:
        msg = (
            f"Invalid initialization mode: {mode!r}, "
            f"must be one of {', '.join(INITIALIZATION_MODES)}"
        )
        raise ConfigurationError(msg)
    return canonical


def init_random(
    k: int,
    d: int,
    mode: str,
    rng: np.random.Generator | None = None,
) -> ClusterModel:
    """Build a model of k random centers in d dimensions with zero counts."""
    if k <= 0 or d <= 0:
        msg = f"k and d must be greater than 0, got k={k} d={d}"
        raise ConfigurationError(msg)
    canonical = normalize_initialization_mode(mode)
    generator = rng if rng is not None else _default_rng
    if canonical == GAUSSIAN:
        centers = generator.standard_normal(size=(k, d))
    else:
        centers = generator.random(size=(k, d))
    model = ClusterModel(centers=centers, counts=np.zeros(k, dtype=np.int64))
    logger.bind(event="kmeans_initialized", k=k, d=d, mode=canonical).info(
        "Initialized {k} random centers ({mode})", k=k, mode=canonical,
    )
    return model
