"""Pytest configuration and shared fixtures."""

import numpy as np
import pytest

from weighted_descriptive.distribution import WeightedDistribution


@pytest.fixture
def example_observations():
    """Six measurements with weights summing to 10; 7 is observed twice."""
    return [-2, 7, 7, 4, 18, -5], [2, 1, 1, 2, 2, 2]


@pytest.fixture
def example_distribution(example_observations):
    """Distribution built from ``example_observations``."""
    values, weights = example_observations
    return WeightedDistribution.from_observations(values, weights)


@pytest.fixture
def skewed_distribution():
    """Weights spanning four orders of magnitude, added in two batches."""
    dist = WeightedDistribution()
    dist.add([1, 2, 3, 4], [0.1, 1, 10, 100])
    dist.add([3], [10])
    return dist


@pytest.fixture
def random_observations():
    """Reproducible continuous values with exponential weights."""
    rng = np.random.default_rng(42)
    values = rng.normal(loc=3.0, scale=2.0, size=500)
    weights = rng.exponential(scale=1.5, size=500)
    return values, weights
