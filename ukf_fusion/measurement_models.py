"""
Lidar and radar measurement models with their Kalman update steps.

Lidar observes position directly and is corrected with the standard linear
Kalman update. Radar observes (range, bearing, range rate), which is
nonlinear in the state, so its update runs the predicted sigma points
through the measurement function (unscented transform).
"""
import numpy as np

from ukf_fusion.coordinate_transforms import normalize_angle
from ukf_fusion.data_structures import UpdateResult
from ukf_fusion.exceptions import NumericalError
from ukf_fusion.process_model import state_residuals

# Index of the bearing angle in a radar measurement
BEARING_INDEX = 1


def normalized_innovation_squared(innovation: np.ndarray, innovation_cov_inv: np.ndarray) -> float:
    """NIS = y^T * S^{-1} * y"""
    return float(innovation @ innovation_cov_inv @ innovation)


def _invert(matrix: np.ndarray) -> np.ndarray:
    try:
        return np.linalg.inv(matrix)
    except np.linalg.LinAlgError as err:
        raise NumericalError(f"Innovation covariance is singular: {err}") from err


class LidarMeasurementModel:
    """
    Linear lidar model.

    State vector: [px, py, v, yaw, yaw_rate]
    Measurement vector: [px, py]
    """

    def __init__(self, noise_cov: np.ndarray):
        """
        Args:
            noise_cov: 2x2 measurement noise covariance R
        """
        self.dim_z = 2
        self.R = np.asarray(noise_cov, dtype=float)

        # Measurement matrix (observe position only)
        self.H = np.array([
            [1, 0, 0, 0, 0],
            [0, 1, 0, 0, 0]
        ], dtype=float)

    def predict_measurement(self, state: np.ndarray) -> np.ndarray:
        return self.H @ state

    def update(self, state: np.ndarray, covariance: np.ndarray, z: np.ndarray) -> UpdateResult:
        """
        Update state estimate with a lidar measurement.

        Args:
            state: Predicted state vector
            covariance: Predicted state covariance matrix
            z: Measurement [px, py]

        Returns:
            UpdateResult with posterior state, covariance and NIS
        """
        # Innovation: y = z - H * x_{k|k-1}
        innovation = z - self.predict_measurement(state)

        # Innovation covariance: S = H * P_{k|k-1} * H^T + R
        innovation_cov = self.H @ covariance @ self.H.T + self.R
        innovation_cov_inv = _invert(innovation_cov)

        # Kalman gain: K = P_{k|k-1} * H^T * S^{-1}
        kalman_gain = covariance @ self.H.T @ innovation_cov_inv

        # Update state: x_{k|k} = x_{k|k-1} + K * y
        state_updated = state + kalman_gain @ innovation

        # Update covariance: P_{k|k} = (I - K * H) * P_{k|k-1}
        I_KH = np.eye(state.shape[0]) - kalman_gain @ self.H
        covariance_updated = I_KH @ covariance

        return UpdateResult(
            state=state_updated,
            covariance=covariance_updated,
            innovation=innovation,
            innovation_covariance=innovation_cov,
            nis=normalized_innovation_squared(innovation, innovation_cov_inv),
        )


class RadarMeasurementModel:
    """
    Nonlinear radar model.

    Measurement vector: [rho, phi, rho_dot] (range, bearing, range rate)
    """

    def __init__(self, noise_cov: np.ndarray):
        """
        Args:
            noise_cov: 3x3 measurement noise covariance R
        """
        self.dim_z = 3
        self.R = np.asarray(noise_cov, dtype=float)

    def transform(self, sigma_points: np.ndarray) -> np.ndarray:
        """
        Map state sigma points into radar measurement space.

        A sigma point at the sensor origin has no defined range rate; any NaN
        produced there is replaced by 0.

        Args:
            sigma_points: State sigma points, shape (n_sigma, 5)

        Returns:
            Measurement sigma points, shape (n_sigma, 3)
        """
        sigma_points = np.atleast_2d(sigma_points)
        px, py, v, yaw = sigma_points[:, 0], sigma_points[:, 1], sigma_points[:, 2], sigma_points[:, 3]

        with np.errstate(divide='ignore', invalid='ignore'):
            rho = np.sqrt(px ** 2 + py ** 2)
            phi = np.arctan2(py, px)
            rho_dot = (px * v * np.cos(yaw) + py * v * np.sin(yaw)) / rho

        Z = np.column_stack([rho, phi, rho_dot])
        Z[np.isnan(Z)] = 0.0
        return Z

    def update(self,
               state: np.ndarray,
               covariance: np.ndarray,
               sigma_points: np.ndarray,
               weights: np.ndarray,
               z: np.ndarray) -> UpdateResult:
        """
        Update state estimate with a radar measurement.

        Args:
            state: Predicted state vector
            covariance: Predicted state covariance matrix
            sigma_points: Predicted state sigma points, shape (n_sigma, 5)
            weights: Sigma point weights
            z: Measurement [rho, phi, rho_dot]

        Returns:
            UpdateResult with posterior state, covariance and NIS
        """
        Z = self.transform(sigma_points)

        # Mean predicted measurement
        z_pred = weights @ Z

        z_diff = Z - z_pred[None, :]
        z_diff[:, BEARING_INDEX] = normalize_angle(z_diff[:, BEARING_INDEX])
        x_diff = state_residuals(sigma_points, state)

        # Innovation covariance: S = sum_i w_i * dz_i * dz_i^T + R
        innovation_cov = (weights[:, None] * z_diff).T @ z_diff + self.R
        innovation_cov_inv = _invert(innovation_cov)

        # Cross correlation: Tc = sum_i w_i * dx_i * dz_i^T
        cross_cov = (weights[:, None] * x_diff).T @ z_diff

        # Kalman gain: K = Tc * S^{-1}
        kalman_gain = cross_cov @ innovation_cov_inv

        innovation = z - z_pred
        innovation[BEARING_INDEX] = normalize_angle(innovation[BEARING_INDEX])

        state_updated = state + kalman_gain @ innovation
        covariance_updated = covariance - kalman_gain @ innovation_cov @ kalman_gain.T

        return UpdateResult(
            state=state_updated,
            covariance=covariance_updated,
            innovation=innovation,
            innovation_covariance=innovation_cov,
            nis=normalized_innovation_squared(innovation, innovation_cov_inv),
        )
