"""
Sigma point generation for the augmented CTRV state.

The augmented state appends the two process noise terms (longitudinal and
yaw acceleration) to the 5-dimensional CTRV state, so that noise can be
pushed through the nonlinear motion model alongside the state itself.
"""
import numpy as np
from scipy import linalg
from typing import Optional, Tuple

from ukf_fusion.exceptions import NumericalError

N_X = 5  # State dimension: [px, py, v, yaw, yaw_rate]
N_NOISE = 2  # Process noise dimension: [nu_a, nu_yawdd]
N_AUG = N_X + N_NOISE
N_SIGMA = 2 * N_AUG + 1

# Spreading parameter of the classical unscented transform, lambda = 3 - n_aug.
# Negative here, which gives the centre point a negative weight.
LAMBDA = 3 - N_AUG


def compute_weights(n_aug: int = N_AUG, lambda_: float = LAMBDA) -> np.ndarray:
    """
    Compute sigma point weights.

    Args:
        n_aug: Augmented state dimension
        lambda_: Spreading parameter

    Returns:
        Array of 2 * n_aug + 1 weights summing to one
    """
    weights = np.full(2 * n_aug + 1, 0.5 / (lambda_ + n_aug))
    weights[0] = lambda_ / (lambda_ + n_aug)
    return weights


class SigmaPointGenerator:
    """
    Builds augmented sigma points from a state mean and covariance.

    Sigma points are returned one per row: row 0 is the augmented mean,
    rows 1..n_aug the positive spread and rows n_aug+1..2*n_aug the
    negative spread along each column of the Cholesky factor.
    """

    def __init__(self, process_noise_cov: np.ndarray, lambda_: Optional[float] = None):
        """
        Args:
            process_noise_cov: 2x2 process noise covariance Q
            lambda_: Spreading parameter, defaults to 3 - n_aug
        """
        self.Q = np.asarray(process_noise_cov, dtype=float)
        if self.Q.shape != (N_NOISE, N_NOISE):
            raise ValueError(f"Process noise covariance must be {N_NOISE}x{N_NOISE}, got {self.Q.shape}")

        self.n_x = N_X
        self.n_aug = N_AUG
        self.lambda_ = LAMBDA if lambda_ is None else lambda_
        if self.lambda_ + self.n_aug <= 0:
            raise ValueError(f"lambda + n_aug must be positive, got {self.lambda_ + self.n_aug}")

        self.weights = compute_weights(self.n_aug, self.lambda_)

    def augment(self, state: np.ndarray, covariance: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        """
        Build the augmented mean and covariance.

        Args:
            state: State mean (5,)
            covariance: State covariance (5, 5)

        Returns:
            Tuple of (augmented_mean (7,), augmented_covariance (7, 7))
        """
        x_aug = np.zeros(self.n_aug)
        x_aug[:self.n_x] = state

        P_aug = np.zeros((self.n_aug, self.n_aug))
        P_aug[:self.n_x, :self.n_x] = covariance
        P_aug[self.n_x:, self.n_x:] = self.Q

        return x_aug, P_aug

    def generate(self, state: np.ndarray, covariance: np.ndarray) -> np.ndarray:
        """
        Generate augmented sigma points.

        Args:
            state: State mean (5,)
            covariance: State covariance (5, 5)

        Returns:
            Sigma points, shape (2 * n_aug + 1, n_aug)

        Raises:
            NumericalError: If the augmented covariance is not positive definite
        """
        x_aug, P_aug = self.augment(state, covariance)

        try:
            A = linalg.cholesky(P_aug, lower=True)
        except (linalg.LinAlgError, ValueError) as err:
            raise NumericalError(
                f"Augmented covariance is not positive definite: {err}"
            ) from err

        offset = np.sqrt(self.lambda_ + self.n_aug) * A.T

        # [centre, positive spread, negative spread]
        return np.vstack([
            x_aug[None, :],
            x_aug[None, :] + offset,
            x_aug[None, :] - offset,
        ])
