import numpy as np
import numpy.testing as npt

from ukf_fusion.process_model import ctrv_transition, predict_mean_and_covariance, state_residuals
from ukf_fusion.sigma_points import SigmaPointGenerator


def test_straight_line_motion():
    point = np.array([0.0, 0.0, 2.0, 0.0, 0.0, 0.0, 0.0])
    predicted = ctrv_transition(point, 1.0)

    assert predicted.shape == (1, 5)
    npt.assert_allclose(predicted[0], [2.0, 0.0, 2.0, 0.0, 0.0], atol=1e-12)


def test_straight_line_follows_heading():
    point = np.array([1.0, 1.0, 1.0, np.pi / 2, 0.0, 0.0, 0.0])
    predicted = ctrv_transition(point, 2.0)[0]

    npt.assert_allclose(predicted, [1.0, 3.0, 1.0, np.pi / 2, 0.0], atol=1e-12)


def test_turning_motion():
    yaw_rate = np.pi / 2
    point = np.array([0.0, 0.0, 1.0, 0.0, yaw_rate, 0.0, 0.0])
    predicted = ctrv_transition(point, 1.0)[0]

    npt.assert_allclose(predicted, [2 / np.pi, 2 / np.pi, 1.0, np.pi / 2, yaw_rate], atol=1e-12)


def test_small_yaw_rate_uses_straight_line_without_jump():
    below = ctrv_transition(np.array([0.0, 0.0, 5.0, 0.3, 0.0009, 0.0, 0.0]), 0.1)[0]
    above = ctrv_transition(np.array([0.0, 0.0, 5.0, 0.3, 0.0011, 0.0, 0.0]), 0.1)[0]

    assert np.all(np.isfinite(below))
    npt.assert_allclose(below[:2], above[:2], atol=1e-3)


def test_zero_yaw_rate_is_finite():
    predicted = ctrv_transition(np.array([0.0, 0.0, 5.0, 0.3, 0.0, 0.0, 0.0]), 0.1)[0]
    npt.assert_allclose(predicted[:2], [0.5 * np.cos(0.3), 0.5 * np.sin(0.3)])


def test_process_noise_injection():
    point = np.array([0.0, 0.0, 0.0, 0.0, 0.0, 1.0, 1.0])
    predicted = ctrv_transition(point, 2.0)[0]

    # px += dt^2/2 * nu_a * cos(yaw), v += nu_a * dt,
    # yaw += dt^2/2 * nu_yawdd, yaw_rate += nu_yawdd * dt
    npt.assert_allclose(predicted, [2.0, 0.0, 2.0, 2.0, 2.0], atol=1e-12)


def test_zero_time_step_keeps_mean_and_covariance(config, sample_state, small_covariance):
    generator = SigmaPointGenerator(config.process_noise_covariance)
    points = ctrv_transition(generator.generate(sample_state, small_covariance), 0.0)

    state, covariance = predict_mean_and_covariance(points, generator.weights)

    npt.assert_allclose(state, sample_state, atol=1e-10)
    npt.assert_allclose(covariance, small_covariance, atol=1e-10)


def test_prediction_grows_uncertainty(config, sample_state, small_covariance):
    generator = SigmaPointGenerator(config.process_noise_covariance)
    points = ctrv_transition(generator.generate(sample_state, small_covariance), 0.1)

    _, covariance = predict_mean_and_covariance(points, generator.weights)

    assert np.trace(covariance) > np.trace(small_covariance)
    npt.assert_allclose(covariance, covariance.T, atol=1e-10)


def test_heading_residuals_are_wrapped_in_covariance():
    # Headings 2*pi apart describe the same direction
    points = np.array([
        [0.0, 0.0, 1.0, 0.1, 0.0],
        [0.0, 0.0, 1.0, 0.1 + 2 * np.pi, 0.0],
        [0.0, 0.0, 1.0, 0.1 - 2 * np.pi, 0.0],
    ])
    weights = np.array([1 / 3, 1 / 3, 1 / 3])

    state, covariance = predict_mean_and_covariance(points, weights)

    assert np.isclose(state[3], 0.1)
    assert abs(covariance[3, 3]) < 1e-12


def test_state_residuals_only_wrap_heading():
    points = np.array([[10.0, -10.0, 7.0, 3.0, 7.0]])
    mean = np.array([0.0, 0.0, 0.0, -3.0, 0.0])

    diff = state_residuals(points, mean)

    npt.assert_allclose(diff[0, [0, 1, 2, 4]], [10.0, -10.0, 7.0, 7.0])
    assert np.isclose(diff[0, 3], 6.0 - 2 * np.pi)
