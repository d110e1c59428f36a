import numpy as np
import pytest

from streaming_kmeans.src.errors import ConfigurationError
from streaming_kmeans.src.kmeans.initializer import (
    GAUSSIAN,
    UNIFORM_POSITIVE,
    init_random,
    normalize_initialization_mode,
)


def test_gaussian_init_shapes_and_zero_counts():
    # Arrange
    rng = np.random.default_rng(11)

    # Act
    model = init_random(4, 3, "gaussian", rng=rng)

    # Assert
    assert model.centers.shape == (4, 3)
    assert model.counts.tolist() == [0, 0, 0, 0]


def test_gaussian_init_draws_standard_normal_values():
    # Arrange
    expected = np.random.default_rng(5).standard_normal(size=(2, 3))

    # Act
    model = init_random(2, 3, GAUSSIAN, rng=np.random.default_rng(5))

    # Assert
    assert np.array_equal(model.centers, expected)


def test_uniform_positive_init_stays_in_unit_interval():
    model = init_random(50, 4, UNIFORM_POSITIVE, rng=np.random.default_rng(2))

    assert np.all(model.centers >= 0.0)
    assert np.all(model.centers < 1.0)


def test_unseeded_default_source_gives_different_centers():
    first = init_random(3, 8, "gaussian")
    second = init_random(3, 8, "gaussian")

    assert not np.array_equal(first.centers, second.centers)


@pytest.mark.parametrize(("alias", "canonical"), [("gauss", GAUSSIAN), ("pos", UNIFORM_POSITIVE)])
def test_short_mode_names_are_accepted(alias, canonical):
    assert normalize_initialization_mode(alias) == canonical


@pytest.mark.parametrize("mode", ["kmeans++", "", "Gaussian", None])
def test_unknown_mode_is_a_configuration_error(mode):
    with pytest.raises(ConfigurationError):
        init_random(2, 2, mode)


def test_non_positive_shape_is_a_configuration_error():
    with pytest.raises(ConfigurationError):
        init_random(0, 2, "gaussian")
