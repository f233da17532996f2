"""
Lidar/Radar Sensor Fusion with an Unscented Kalman Filter

Estimates position, speed, heading and turn rate of a single moving object
from asynchronous lidar (x, y) and radar (range, bearing, range rate)
measurements, using the constant turn rate and velocity (CTRV) model.

Key Components:
- Measurement and estimate data structures
- Sigma point generation on the noise-augmented state
- CTRV process model and prediction stage
- Linear lidar and unscented radar measurement updates
- Filter orchestrator with NIS consistency diagnostics
- Log reading, result writing, RMSE and NIS evaluation

Usage:
    from ukf_fusion import UnscentedKalmanFilter, Measurement

    ukf = UnscentedKalmanFilter()
    ukf.process_measurement(Measurement.lidar(1.0, 1.0, timestamp=0))
    estimate = ukf.process_measurement(Measurement.radar(1.5, 0.8, 0.3, timestamp=50000))
    print(estimate.state, ukf.nis_radar)
"""

from .data_structures import (
    SensorType,
    Measurement,
    GroundTruth,
    MeasurementRecord,
    FilterEstimate,
    UpdateResult,
    ConsistencyResult,
)
from .exceptions import UKFError, NumericalError, MeasurementError, ConfigError
from .config import UKFConfig
from .coordinate_transforms import normalize_angle, polar_to_cartesian, velocity_to_cartesian
from .sigma_points import SigmaPointGenerator, compute_weights, LAMBDA, N_AUG, N_SIGMA, N_X
from .process_model import ctrv_transition, predict_mean_and_covariance
from .measurement_models import LidarMeasurementModel, RadarMeasurementModel
from .kalman_filter import UnscentedKalmanFilter
from .metrics import (
    ConsistencyMetrics,
    calculate_rmse,
    estimate_to_cartesian_velocity,
    nis_threshold,
)

__version__ = "1.0.0"

__all__ = [
    # Data structures
    'SensorType',
    'Measurement',
    'GroundTruth',
    'MeasurementRecord',
    'FilterEstimate',
    'UpdateResult',
    'ConsistencyResult',

    # Errors
    'UKFError',
    'NumericalError',
    'MeasurementError',
    'ConfigError',

    # Configuration
    'UKFConfig',

    # Coordinate transforms
    'normalize_angle',
    'polar_to_cartesian',
    'velocity_to_cartesian',

    # Core components
    'SigmaPointGenerator',
    'compute_weights',
    'LAMBDA',
    'N_AUG',
    'N_SIGMA',
    'N_X',
    'ctrv_transition',
    'predict_mean_and_covariance',
    'LidarMeasurementModel',
    'RadarMeasurementModel',
    'UnscentedKalmanFilter',

    # Evaluation
    'ConsistencyMetrics',
    'calculate_rmse',
    'estimate_to_cartesian_velocity',
    'nis_threshold',
]
