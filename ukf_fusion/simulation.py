"""
Synthetic lidar/radar scenarios generated from the CTRV process model.
"""
import numpy as np
from typing import List, Optional, Sequence, Tuple

from ukf_fusion.config import UKFConfig
from ukf_fusion.coordinate_transforms import normalize_angle, velocity_to_cartesian
from ukf_fusion.data_structures import GroundTruth, Measurement, MeasurementRecord, SensorType
from ukf_fusion.measurement_models import RadarMeasurementModel
from ukf_fusion.process_model import ctrv_transition

DEFAULT_INITIAL_STATE = (20.0, 10.0, 5.0, 0.4, 0.1)


def generate_ctrv_scenario(num_steps: int = 400,
                           config: Optional[UKFConfig] = None,
                           initial_state: Sequence[float] = DEFAULT_INITIAL_STATE,
                           step_us: int = 50000,
                           sensor_pattern: Sequence[SensorType] = (SensorType.LIDAR, SensorType.RADAR),
                           seed: int = 0) -> Tuple[List[MeasurementRecord], np.ndarray]:
    """
    Simulate one object moving with CTRV dynamics and noisy sensors.

    The true state is propagated with the filter's own process model, with
    process noise drawn from N(0, std_a^2) and N(0, std_yawdd^2) and held
    constant over each step. Measurement noise uses the configured sensor
    standard deviations, so a correctly tuned filter should be consistent.

    Args:
        num_steps: Number of measurements to generate
        config: Noise configuration, defaults to UKFConfig()
        initial_state: True initial [px, py, v, yaw, yaw_rate]
        step_us: Time between measurements (microseconds)
        sensor_pattern: Sensors used in turn, repeated over the run
        seed: Random seed

    Returns:
        Tuple of (records, true_states) where true_states has shape (num_steps, 5)
    """
    config = config if config is not None else UKFConfig()
    rng = np.random.default_rng(seed)
    radar_model = RadarMeasurementModel(config.radar_noise_covariance)
    dt = step_us / 1e6

    state = np.asarray(initial_state, dtype=float)
    records = []
    true_states = []

    for step in range(num_steps):
        if step > 0:
            noise = rng.normal(0.0, [config.std_a, config.std_yawdd])
            state = ctrv_transition(np.concatenate([state, noise]), dt)[0]

        sensor_type = sensor_pattern[step % len(sensor_pattern)]
        if sensor_type is SensorType.LIDAR:
            values = state[:2] + rng.normal(0.0, [config.std_laspx, config.std_laspy])
        else:
            values = radar_model.transform(state)[0]
            values = values + rng.normal(0.0, [config.std_radr, config.std_radphi, config.std_radrd])
            values[1] = normalize_angle(values[1])

        vx, vy = velocity_to_cartesian(state[2], state[3])
        records.append(MeasurementRecord(
            measurement=Measurement(sensor_type, values, step * step_us),
            ground_truth=GroundTruth(state[0], state[1], vx, vy),
        ))
        true_states.append(state.copy())

    return records, np.array(true_states)
