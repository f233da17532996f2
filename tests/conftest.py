import matplotlib
matplotlib.use("Agg")

import numpy as np
import pytest

from ukf_fusion import UKFConfig, UnscentedKalmanFilter


@pytest.fixture
def config():
    return UKFConfig()


@pytest.fixture
def ukf(config):
    return UnscentedKalmanFilter(config)


@pytest.fixture
def small_covariance():
    """Well conditioned 5x5 covariance with small heading spread."""
    A = np.array([
        [0.20, 0.00, 0.00, 0.00, 0.00],
        [0.05, 0.30, 0.00, 0.00, 0.00],
        [0.02, 0.01, 0.40, 0.00, 0.00],
        [0.00, 0.01, 0.02, 0.10, 0.00],
        [0.00, 0.00, 0.01, 0.02, 0.05],
    ])
    return A @ A.T


@pytest.fixture
def sample_state():
    return np.array([1.0, 2.0, 3.0, 0.5, 0.2])
