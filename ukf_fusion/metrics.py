"""
Evaluation metrics for the lidar/radar filter.
Covers estimation accuracy (RMSE against ground truth) and filter
consistency (NIS against chi-square thresholds).
"""
import numpy as np
from typing import Dict, List, Optional, Sequence
from scipy.stats import chi2

from ukf_fusion.data_structures import ConsistencyResult, SensorType


def calculate_rmse(estimations: Sequence[np.ndarray],
                   ground_truth: Sequence[np.ndarray]) -> np.ndarray:
    """
    Root mean squared error per component.

    Args:
        estimations: Estimated vectors, e.g. [px, py, vx, vy] per step
        ground_truth: True vectors of the same layout

    Returns:
        Array with one RMSE value per component
    """
    if len(estimations) == 0:
        raise ValueError("Cannot compute RMSE of an empty estimation list")
    if len(estimations) != len(ground_truth):
        raise ValueError(
            f"Estimation and ground truth sizes differ: {len(estimations)} vs {len(ground_truth)}"
        )

    est = np.asarray(estimations, dtype=float)
    gt = np.asarray(ground_truth, dtype=float)
    if est.shape != gt.shape:
        raise ValueError(f"Estimation and ground truth shapes differ: {est.shape} vs {gt.shape}")

    return np.sqrt(np.mean((est - gt) ** 2, axis=0))


def estimate_to_cartesian_velocity(state: np.ndarray) -> np.ndarray:
    """
    Convert the (v, yaw) part of a state, or a stack of states, to (vx, vy).

    Args:
        state: State vector [px, py, v, yaw, yaw_rate] or array of shape (N, 5)

    Returns:
        Array of shape (2,) or (N, 2)
    """
    state = np.asarray(state, dtype=float)
    speed = state[..., 2]
    yaw = state[..., 3]
    return np.stack([speed * np.cos(yaw), speed * np.sin(yaw)], axis=-1)


def estimates_in_ground_truth_layout(states: Sequence[np.ndarray]) -> np.ndarray:
    """Stack filter states as [px, py, vx, vy] rows for comparison with ground truth."""
    states = np.atleast_2d(np.asarray(states, dtype=float))
    return np.hstack([states[:, :2], estimate_to_cartesian_velocity(states)])


def nis_threshold(sensor_type: SensorType, confidence: float = 0.95) -> float:
    """
    Chi-square threshold for the NIS of a sensor.

    The degrees of freedom equal the measurement dimension (2 for lidar,
    3 for radar), giving 5.991 and 7.815 at 95%.
    """
    return float(chi2.ppf(confidence, df=sensor_type.measurement_dim))


class ConsistencyMetrics:
    """
    Collects NIS values per sensor and checks them against chi-square bounds.
    """

    def __init__(self, confidence: float = 0.95):
        """
        Args:
            confidence: Chi-square confidence level for the thresholds
        """
        self.confidence = confidence
        self.nis_history: Dict[SensorType, List[float]] = {sensor: [] for sensor in SensorType}

    def add(self, sensor_type: SensorType, nis: Optional[float]):
        """Record one NIS value; None (no update applied) is ignored."""
        if nis is not None:
            self.nis_history[sensor_type].append(float(nis))

    def compute(self, sensor_type: SensorType, skip: int = 0) -> ConsistencyResult:
        """
        Summarize NIS values of a sensor.

        Args:
            sensor_type: Sensor to summarize
            skip: Number of leading values to ignore (filter warm-up)

        Returns:
            ConsistencyResult for the sensor
        """
        values = np.asarray(self.nis_history[sensor_type][skip:], dtype=float)
        threshold = nis_threshold(sensor_type, self.confidence)

        if values.size == 0:
            return ConsistencyResult(
                sensor_type=sensor_type,
                num_samples=0,
                threshold=threshold,
                fraction_below=float('nan'),
                mean_nis=float('nan'),
                nis_values=[],
            )

        return ConsistencyResult(
            sensor_type=sensor_type,
            num_samples=int(values.size),
            threshold=threshold,
            fraction_below=float(np.mean(values < threshold)),
            mean_nis=float(np.mean(values)),
            nis_values=values.tolist(),
        )

    def print_metrics(self, skip: int = 0):
        """
        Print NIS consistency for every sensor with recorded values.

        Args:
            skip: Number of leading values to ignore per sensor
        """
        print("\nNIS Consistency:")
        for sensor_type in SensorType:
            result = self.compute(sensor_type, skip=skip)
            if result.num_samples == 0:
                continue
            print(f"  {sensor_type.name}:")
            print(f"    Samples: {result.num_samples}")
            print(f"    Below {result.threshold:.3f}: {result.fraction_below * 100:.1f}% "
                  f"(expected {self.confidence * 100:.0f}%)")
            print(f"    Mean NIS: {result.mean_nis:.3f} (expected {sensor_type.measurement_dim})")


def print_rmse(rmse: np.ndarray, labels: Sequence[str] = ("px", "py", "vx", "vy")):
    """Print an RMSE vector in a readable format."""
    print("\nAccuracy - RMSE:")
    for label, value in zip(labels, rmse):
        print(f"  {label}: {value:.4f}")
