"""
Constant turn rate and velocity (CTRV) motion model and the UKF prediction stage.
"""
import numpy as np
from typing import Tuple

from ukf_fusion.coordinate_transforms import normalize_angle

# Below this yaw rate the object is treated as driving straight
YAW_RATE_THRESHOLD = 0.001

# Index of the heading angle in the state vector
YAW_INDEX = 3


def ctrv_transition(sigma_points_aug: np.ndarray, dt: float) -> np.ndarray:
    """
    Propagate augmented sigma points through the CTRV model.

    Args:
        sigma_points_aug: Augmented sigma points, shape (n_sigma, 7), each row
            [px, py, v, yaw, yaw_rate, nu_a, nu_yawdd]
        dt: Time step (seconds)

    Returns:
        Predicted sigma points, shape (n_sigma, 5)
    """
    sigma_points_aug = np.atleast_2d(sigma_points_aug)
    px, py, v, yaw, yawd, nu_a, nu_yawdd = sigma_points_aug.T

    turning = np.abs(yawd) > YAW_RATE_THRESHOLD
    # Only divide by yaw rates that pass the threshold
    safe_yawd = np.where(turning, yawd, 1.0)

    px_p = np.where(
        turning,
        px + v / safe_yawd * (np.sin(yaw + yawd * dt) - np.sin(yaw)),
        px + v * dt * np.cos(yaw),
    )
    py_p = np.where(
        turning,
        py + v / safe_yawd * (np.cos(yaw) - np.cos(yaw + yawd * dt)),
        py + v * dt * np.sin(yaw),
    )
    v_p = v.copy()
    yaw_p = yaw + yawd * dt
    yawd_p = yawd.copy()

    # Process noise
    half_dt2 = 0.5 * dt * dt
    px_p = px_p + half_dt2 * nu_a * np.cos(yaw)
    py_p = py_p + half_dt2 * nu_a * np.sin(yaw)
    v_p = v_p + nu_a * dt
    yaw_p = yaw_p + half_dt2 * nu_yawdd
    yawd_p = yawd_p + nu_yawdd * dt

    return np.column_stack([px_p, py_p, v_p, yaw_p, yawd_p])


def state_residuals(points: np.ndarray, mean: np.ndarray) -> np.ndarray:
    """Differences between state sigma points and a mean, heading wrapped into (-pi, pi]."""
    diff = points - mean[None, :]
    diff[:, YAW_INDEX] = normalize_angle(diff[:, YAW_INDEX])
    return diff


def predict_mean_and_covariance(sigma_points: np.ndarray,
                                weights: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """
    Recombine predicted sigma points into a mean and covariance.

    Args:
        sigma_points: Predicted sigma points, shape (n_sigma, 5)
        weights: Sigma point weights, shape (n_sigma,)

    Returns:
        Tuple of (predicted_state, predicted_covariance)
    """
    # x = sum_i w_i * X_i
    state = weights @ sigma_points

    # P = sum_i w_i * (X_i - x)(X_i - x)^T
    diff = state_residuals(sigma_points, state)
    covariance = (weights[:, None] * diff).T @ diff

    return state, covariance
