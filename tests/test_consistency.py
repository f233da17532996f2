"""
Filter consistency on synthetic CTRV data generated with matching noise.
"""
import numpy as np
import numpy.testing as npt
import pytest

from ukf_fusion import SensorType, UKFConfig
from ukf_fusion.main import run_filter
from ukf_fusion.metrics import calculate_rmse, estimates_in_ground_truth_layout
from ukf_fusion.simulation import generate_ctrv_scenario

WARM_UP = 20


@pytest.fixture(scope="module")
def scenario_config():
    return UKFConfig(std_a=0.5, std_yawdd=0.3)


@pytest.fixture(scope="module")
def scenario(scenario_config):
    records, true_states = generate_ctrv_scenario(num_steps=600, config=scenario_config, seed=11)
    estimates, consistency = run_filter(records, scenario_config)
    return records, true_states, estimates, consistency


def test_scenario_alternates_sensors_at_fixed_rate(scenario):
    records, true_states, _, _ = scenario

    assert len(records) == 600
    assert true_states.shape == (600, 5)
    assert records[0].measurement.sensor_type is SensorType.LIDAR
    assert records[1].measurement.sensor_type is SensorType.RADAR
    assert [r.measurement.timestamp for r in records[:3]] == [0, 50000, 100000]

    gt = records[10].ground_truth
    assert np.isclose(np.hypot(gt.vx, gt.vy), abs(true_states[10][2]))


def test_scenario_is_reproducible(scenario_config):
    first, _ = generate_ctrv_scenario(num_steps=20, config=scenario_config, seed=5)
    second, _ = generate_ctrv_scenario(num_steps=20, config=scenario_config, seed=5)

    for a, b in zip(first, second):
        npt.assert_array_equal(a.measurement.values, b.measurement.values)


@pytest.mark.parametrize("sensor_type", [SensorType.LIDAR, SensorType.RADAR])
def test_nis_is_chi_square_consistent(scenario, sensor_type):
    _, _, _, consistency = scenario
    result = consistency.compute(sensor_type, skip=WARM_UP)
    dof = sensor_type.measurement_dim

    assert result.num_samples == 300 - WARM_UP - (1 if sensor_type is SensorType.LIDAR else 0)
    # Roughly 95% of NIS values below the chi-square 95% bound
    assert 0.85 <= result.fraction_below <= 1.0
    assert 0.4 * dof < result.mean_nis < 2.0 * dof


def test_estimates_track_ground_truth(scenario):
    records, _, estimates, _ = scenario

    rmse = calculate_rmse(
        estimates_in_ground_truth_layout([est.state for est in estimates[50:]]),
        [rec.ground_truth.as_array() for rec in records[50:]],
    )

    assert rmse[0] < 0.3
    assert rmse[1] < 0.3
    assert rmse[2] < 1.5
    assert rmse[3] < 1.5
