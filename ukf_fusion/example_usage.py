"""
Example usage of the lidar/radar unscented Kalman filter.
Generates a synthetic CTRV scenario, runs the filter and evaluates it.
"""
import numpy as np

from ukf_fusion.config import UKFConfig
from ukf_fusion.data_structures import SensorType
from ukf_fusion.main import run_filter
from ukf_fusion.metrics import calculate_rmse, estimates_in_ground_truth_layout, print_rmse
from ukf_fusion.simulation import generate_ctrv_scenario

# Updates ignored while the filter converges from its initial guess
WARM_UP_UPDATES = 20


def run_fusion_example(num_steps: int = 500, seed: int = 42):
    """Run the filter on synthetic data and print the evaluation."""
    config = UKFConfig(std_a=0.5, std_yawdd=0.3)

    print("Generating synthetic lidar/radar data...")
    records, true_states = generate_ctrv_scenario(num_steps=num_steps, config=config, seed=seed)

    print("Running filter...")
    estimates, consistency = run_filter(records, config)

    rmse = calculate_rmse(
        estimates_in_ground_truth_layout([est.state for est in estimates]),
        [rec.ground_truth.as_array() for rec in records],
    )

    print("\n" + "=" * 60)
    print("FILTER PERFORMANCE EVALUATION")
    print("=" * 60)
    print(f"Total Measurements Processed: {len(records)}")
    for sensor_type in SensorType:
        count = sum(1 for rec in records if rec.measurement.sensor_type is sensor_type)
        print(f"{sensor_type.name.capitalize()} Measurements: {count}")
    print_rmse(rmse)

    final_error = np.abs(estimates[-1].state[:2] - true_states[-1][:2])
    print(f"\nFinal Position Error: {final_error[0]:.3f} m, {final_error[1]:.3f} m")

    consistency.print_metrics(skip=WARM_UP_UPDATES)
    print("=" * 60)

    return estimates, records, consistency


if __name__ == "__main__":
    print("Starting Lidar/Radar Fusion Example")
    print("=" * 50)

    estimates, records, consistency = run_fusion_example()

    from ukf_fusion.visualize import visualize_nis, visualize_trajectory
    visualize_trajectory(estimates, records, "./results")
    for sensor_type in SensorType:
        visualize_nis(consistency.compute(sensor_type, skip=WARM_UP_UPDATES), "./results")
