"""Pytest configuration and shared fixtures for deterministic tests."""

import os

import numpy as np
import pytest


@pytest.fixture
def rng() -> np.random.Generator:
    """Fixture providing a seeded numpy random number generator.

    The seed can be overridden via the TEST_RNG_SEED environment variable.
    Default seed is 0 for reproducibility.

    Returns:
        numpy.random.Generator instance seeded with TEST_RNG_SEED or 0.
    """
    seed = int(os.environ.get("TEST_RNG_SEED", "0"))
    return np.random.default_rng(seed)


@pytest.fixture(scope="function", autouse=True)
def set_random_seeds() -> None:
    """Auto-use fixture to set the legacy numpy global seed for every test."""
    np.random.seed(int(os.environ.get("TEST_RNG_SEED", "0")))
