"""
Data structures for lidar/radar measurements and filter estimates.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Sequence, Tuple
import numpy as np

from ukf_fusion.exceptions import MeasurementError


class SensorType(Enum):
    """Sensor that produced a measurement, valued by its log tag."""
    LIDAR = "L"
    RADAR = "R"

    @property
    def measurement_dim(self) -> int:
        return 2 if self is SensorType.LIDAR else 3


@dataclass
class Measurement:
    """
    A single sensor observation.

    Attributes:
        sensor_type: Sensor that produced the observation
        values: Raw measurement vector, [px, py] for lidar or
            [rho, phi, rho_dot] for radar
        timestamp: Measurement time in microseconds
    """
    sensor_type: SensorType
    values: np.ndarray
    timestamp: int

    def __post_init__(self):
        """Validate the measurement vector against the sensor tag."""
        if not isinstance(self.sensor_type, SensorType):
            try:
                self.sensor_type = SensorType(self.sensor_type)
            except ValueError as err:
                raise MeasurementError(f"Unknown sensor type: {self.sensor_type!r}") from err

        values = np.asarray(self.values, dtype=float)
        expected = self.sensor_type.measurement_dim
        if values.shape != (expected,):
            raise MeasurementError(
                f"{self.sensor_type.name} measurement needs {expected} values, "
                f"got shape {values.shape}"
            )
        if not np.all(np.isfinite(values)):
            raise MeasurementError(f"{self.sensor_type.name} measurement contains non-finite values: {values}")

        self.values = values
        self.timestamp = int(self.timestamp)

    @classmethod
    def lidar(cls, px: float, py: float, timestamp: int) -> "Measurement":
        return cls(SensorType.LIDAR, np.array([px, py]), timestamp)

    @classmethod
    def radar(cls, rho: float, phi: float, rho_dot: float, timestamp: int) -> "Measurement":
        return cls(SensorType.RADAR, np.array([rho, phi, rho_dot]), timestamp)

    @property
    def cartesian_pos(self) -> Tuple[float, float]:
        """Measured position in Cartesian coordinates."""
        if self.sensor_type is SensorType.LIDAR:
            return (float(self.values[0]), float(self.values[1]))

        from ukf_fusion.coordinate_transforms import polar_to_cartesian
        return polar_to_cartesian(self.values[0], self.values[1])


@dataclass
class GroundTruth:
    """
    True object state logged next to a measurement.

    Attributes:
        px, py: Position (m)
        vx, vy: Velocity (m/s)
    """
    px: float
    py: float
    vx: float
    vy: float

    def as_array(self) -> np.ndarray:
        return np.array([self.px, self.py, self.vx, self.vy])


@dataclass
class MeasurementRecord:
    """One line of a measurement log: the observation and optional ground truth."""
    measurement: Measurement
    ground_truth: Optional[GroundTruth] = None


@dataclass
class FilterEstimate:
    """
    Snapshot of the filter after processing one measurement.

    Attributes:
        timestamp: Timestamp of the measurement just processed (microseconds)
        state: Mean [px, py, v, yaw, yaw_rate]
        covariance: 5x5 state covariance
        sensor_type: Sensor of the measurement just processed
        nis: NIS of the update just applied, None on the initializing call
    """
    timestamp: int
    state: np.ndarray
    covariance: np.ndarray
    sensor_type: SensorType
    nis: Optional[float] = None

    @property
    def position(self) -> Tuple[float, float]:
        """Get current position estimate."""
        return (float(self.state[0]), float(self.state[1]))


@dataclass
class UpdateResult:
    """
    Output of a single measurement update.

    Attributes:
        state: Posterior mean
        covariance: Posterior covariance
        innovation: Measurement residual z - z_pred (angles normalized)
        innovation_covariance: S
        nis: Normalized innovation squared
    """
    state: np.ndarray
    covariance: np.ndarray
    innovation: np.ndarray
    innovation_covariance: np.ndarray
    nis: float


@dataclass
class ConsistencyResult:
    """
    NIS consistency summary for one sensor.

    Attributes:
        sensor_type: Sensor the NIS values belong to
        num_samples: Number of NIS values
        threshold: Chi-square threshold for the configured confidence
        fraction_below: Share of NIS values below the threshold
        mean_nis: Average NIS
        nis_values: Raw NIS history
    """
    sensor_type: SensorType
    num_samples: int
    threshold: float
    fraction_below: float
    mean_nis: float
    nis_values: Sequence[float] = field(default_factory=list)
