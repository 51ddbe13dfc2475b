"""Shared fixtures for tests."""

import numpy as np
import pytest


@pytest.fixture
def rng():
    return np.random.default_rng(1234)


@pytest.fixture
def base_matrix():
    """Well-conditioned, exactly symmetric 6 x 6 covariance matrix."""
    factor = np.random.default_rng(7).standard_normal((20, 6))
    base = factor.T @ factor
    return 0.5 * (base + base.T) + np.eye(6)
