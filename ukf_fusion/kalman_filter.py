# kalman_filter.py

"""
Unscented Kalman filter fusing lidar and radar measurements of one object.
Uses the constant turn rate and velocity (CTRV) motion model.
"""
import numpy as np
from typing import Optional

from ukf_fusion.config import UKFConfig
from ukf_fusion.coordinate_transforms import polar_to_cartesian
from ukf_fusion.data_structures import FilterEstimate, Measurement, SensorType, UpdateResult
from ukf_fusion.exceptions import MeasurementError, NumericalError
from ukf_fusion.measurement_models import LidarMeasurementModel, RadarMeasurementModel
from ukf_fusion.process_model import ctrv_transition, predict_mean_and_covariance
from ukf_fusion.sigma_points import N_X, SigmaPointGenerator

# Initial uncertainty of [px, py, v, yaw, yaw_rate]
INITIAL_COVARIANCE_DIAGONAL = (1.0, 1.0, 1000.0, 100.0, 1.0)

# A first position component below this magnitude is treated as unknown
MIN_INITIAL_POSITION = 1e-4
FALLBACK_POSITION = 1.0
FALLBACK_POSITION_VARIANCE = 1000.0

MICROSECONDS_PER_SECOND = 1e6


class UnscentedKalmanFilter:
    """
    Unscented Kalman filter for a single object seen by lidar and radar.

    State vector: [px, py, v, yaw, yaw_rate]
    Lidar measurement: [px, py]
    Radar measurement: [rho, phi, rho_dot]

    The filter is sensor-agnostic: it processes whatever measurement it is
    given and dispatches on the measurement's sensor type.
    """

    def __init__(self, config: Optional[UKFConfig] = None):
        """
        Initialize the filter.

        Args:
            config: Noise configuration, defaults to UKFConfig()
        """
        self.config = config if config is not None else UKFConfig()
        self.dim_x = N_X

        self.sigma_generator = SigmaPointGenerator(self.config.process_noise_covariance)
        self.weights = self.sigma_generator.weights
        self.lidar_model = LidarMeasurementModel(self.config.lidar_noise_covariance)
        self.radar_model = RadarMeasurementModel(self.config.radar_noise_covariance)

        self._x = np.zeros(self.dim_x)
        self._P = np.diag(INITIAL_COVARIANCE_DIAGONAL)
        self._previous_timestamp: Optional[int] = None
        self._is_initialized = False

        self._nis_lidar: Optional[float] = None
        self._nis_radar: Optional[float] = None

        # Predicted sigma points of the current state, cleared by every update
        self._sigma_points_pred: Optional[np.ndarray] = None

    @property
    def state(self) -> np.ndarray:
        """Current state mean (copy)."""
        return self._x.copy()

    @property
    def covariance(self) -> np.ndarray:
        """Current state covariance (copy)."""
        return self._P.copy()

    @property
    def previous_timestamp(self) -> Optional[int]:
        """Timestamp of the last processed measurement (microseconds)."""
        return self._previous_timestamp

    @property
    def is_initialized(self) -> bool:
        return self._is_initialized

    @property
    def nis_lidar(self) -> Optional[float]:
        """NIS of the most recent lidar update."""
        return self._nis_lidar

    @property
    def nis_radar(self) -> Optional[float]:
        """NIS of the most recent radar update."""
        return self._nis_radar

    def latest_nis(self, sensor_type: SensorType) -> Optional[float]:
        """NIS of the most recent update from the given sensor."""
        return self.nis_lidar if sensor_type is SensorType.LIDAR else self.nis_radar

    def initialize(self, measurement: Measurement):
        """
        Initialize the state from the first measurement.

        Speed, heading and yaw rate start at zero. A position component that
        is numerically zero is replaced by a guess with large uncertainty. NIS values of
        earlier updates are cleared.

        Args:
            measurement: First lidar or radar measurement
        """
        if measurement.sensor_type is SensorType.RADAR:
            px, py = polar_to_cartesian(measurement.values[0], measurement.values[1])
        else:
            px, py = float(measurement.values[0]), float(measurement.values[1])

        covariance = np.diag(INITIAL_COVARIANCE_DIAGONAL)
        if abs(px) < MIN_INITIAL_POSITION:
            px = FALLBACK_POSITION
            covariance[0, 0] = FALLBACK_POSITION_VARIANCE
        if abs(py) < MIN_INITIAL_POSITION:
            py = FALLBACK_POSITION
            covariance[1, 1] = FALLBACK_POSITION_VARIANCE

        self._x = np.array([px, py, 0.0, 0.0, 0.0])
        self._P = covariance
        self._previous_timestamp = measurement.timestamp
        self._is_initialized = True
        self._nis_lidar = None
        self._nis_radar = None
        self._sigma_points_pred = None

    def predict(self, delta_t: float):
        """
        Predict sigma points, state mean and covariance delta_t seconds ahead.

        Args:
            delta_t: Time step (seconds)

        Raises:
            NumericalError: If the augmented covariance is not positive definite.
                State and covariance are left unchanged.
        """
        self._require_initialized()

        sigma_points_aug = self.sigma_generator.generate(self._x, self._P)
        sigma_points_pred = ctrv_transition(sigma_points_aug, delta_t)

        self._x, self._P = predict_mean_and_covariance(sigma_points_pred, self.weights)
        self._sigma_points_pred = sigma_points_pred

    def update_lidar(self, measurement: Measurement) -> UpdateResult:
        """
        Apply a lidar measurement with the linear Kalman update.

        Args:
            measurement: Lidar measurement

        Returns:
            UpdateResult of the correction
        """
        self._require_initialized()
        self._require_sensor(measurement, SensorType.LIDAR)

        result = self.lidar_model.update(self._x, self._P, measurement.values)
        self._apply(result)
        self._nis_lidar = result.nis
        return result

    def update_radar(self, measurement: Measurement) -> UpdateResult:
        """
        Apply a radar measurement with the unscented update.

        Uses the sigma points of the latest prediction. If the state has been
        corrected since then, sigma points are regenerated from the current
        mean and covariance.

        Args:
            measurement: Radar measurement

        Returns:
            UpdateResult of the correction
        """
        self._require_initialized()
        self._require_sensor(measurement, SensorType.RADAR)

        sigma_points = self._sigma_points_pred
        if sigma_points is None:
            sigma_points = self.sigma_generator.generate(self._x, self._P)[:, :self.dim_x]

        result = self.radar_model.update(self._x, self._P, sigma_points, self.weights, measurement.values)
        self._apply(result)
        self._nis_radar = result.nis
        return result

    def process_measurement(self, measurement: Measurement) -> FilterEstimate:
        """
        Run one filter cycle for a measurement.

        The first call only initializes the state. Every later call predicts
        to the measurement timestamp and applies the matching update.

        Args:
            measurement: Lidar or radar measurement

        Returns:
            FilterEstimate snapshot after the cycle
        """
        if not self.is_initialized:
            self.initialize(measurement)
            return self._estimate(measurement, nis=None)

        delta_t = (measurement.timestamp - self.previous_timestamp) / MICROSECONDS_PER_SECOND
        saved = (self._x, self._P, self._sigma_points_pred)
        try:
            self.predict(delta_t)
            if measurement.sensor_type is SensorType.RADAR:
                result = self.update_radar(measurement)
            else:
                result = self.update_lidar(measurement)
        except NumericalError:
            # Leave the filter as it was before this measurement
            self._x, self._P, self._sigma_points_pred = saved
            raise

        self._previous_timestamp = measurement.timestamp
        return self._estimate(measurement, nis=result.nis)

    def _apply(self, result: UpdateResult):
        self._x = result.state
        self._P = result.covariance
        self._sigma_points_pred = None

    def _estimate(self, measurement: Measurement, nis: Optional[float]) -> FilterEstimate:
        return FilterEstimate(
            timestamp=measurement.timestamp,
            state=self.state,
            covariance=self.covariance,
            sensor_type=measurement.sensor_type,
            nis=nis,
        )

    def _require_initialized(self):
        if not self.is_initialized:
            raise MeasurementError("Filter is not initialized; call initialize() or process_measurement() first")

    @staticmethod
    def _require_sensor(measurement: Measurement, sensor_type: SensorType):
        if measurement.sensor_type is not sensor_type:
            raise MeasurementError(
                f"Expected a {sensor_type.name} measurement, got {measurement.sensor_type.name}"
            )
