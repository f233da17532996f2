# main.py

"""Run the lidar/radar unscented Kalman filter over a measurement log"""

import argparse
import sys
from typing import List, Optional, Tuple

import numpy as np

from ukf_fusion.config import UKFConfig
from ukf_fusion.data_loader import load_measurements
from ukf_fusion.data_structures import FilterEstimate, MeasurementRecord, SensorType
from ukf_fusion.exceptions import UKFError
from ukf_fusion.kalman_filter import UnscentedKalmanFilter
from ukf_fusion.metrics import (
    ConsistencyMetrics,
    calculate_rmse,
    estimates_in_ground_truth_layout,
    print_rmse,
)
from ukf_fusion.results_writer import format_result_row, write_results


def run_filter(records: List[MeasurementRecord],
               config: Optional[UKFConfig] = None,
               verbose: bool = False) -> Tuple[List[FilterEstimate], ConsistencyMetrics]:
    """
    Feed every record through a fresh filter.

    Args:
        records: Measurement records in time order
        config: Noise configuration
        verbose: Print state and covariance after every entry

    Returns:
        Tuple of (estimates, consistency_metrics)
    """
    ukf = UnscentedKalmanFilter(config)
    consistency = ConsistencyMetrics()
    estimates = []

    for k, record in enumerate(records):
        estimate = ukf.process_measurement(record.measurement)
        estimates.append(estimate)
        consistency.add(estimate.sensor_type, estimate.nis)

        if verbose:
            print(f"***** Entry: {k + 1} *****\n")
            print(f"x_ = {np.array2string(estimate.state, precision=6)}\n")
            print(f"P_ = {np.array2string(estimate.covariance, precision=6)}\n")

    return estimates, consistency


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog='ukf-fusion',
        description='Unscented Kalman filter fusing lidar and radar measurements. '
                    'Input and output files are required.')
    parser.add_argument('input', help='Measurement log to read.')
    parser.add_argument('output', help='File to write per-step estimates to.')
    parser.add_argument('-v', '--verbose', action='store_true', help='Print state and covariance per entry.')
    sensors = parser.add_mutually_exclusive_group()
    sensors.add_argument('-r', '--radar-only', action='store_true', help='Use only radar data.')
    sensors.add_argument('-l', '--lidar-only', action='store_true', help='Use only lidar data.')
    parser.add_argument('--config', help='YAML file with noise standard deviations.', default=None)
    parser.add_argument('--plot-dir', help='Directory to save trajectory and NIS plots to.', default=None)
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)

    try:
        config = UKFConfig.from_yaml(args.config) if args.config else UKFConfig()
        records = load_measurements(args.input,
                                    use_lidar=not args.radar_only,
                                    use_radar=not args.lidar_only)
    except OSError as err:
        print(f"Cannot open input file: {err}", file=sys.stderr)
        return 1
    except UKFError as err:
        print(f"Error: {err}", file=sys.stderr)
        return 1

    if not records:
        print(f"No measurements to process in {args.input}", file=sys.stderr)
        return 1

    try:
        estimates, consistency = run_filter(records, config, verbose=args.verbose)
    except UKFError as err:
        print(f"Filter failed: {err}", file=sys.stderr)
        return 1

    rows = [format_result_row(est, rec.measurement) for est, rec in zip(estimates, records)]
    try:
        write_results(args.output, rows)
    except OSError as err:
        print(f"Cannot open output file: {err}", file=sys.stderr)
        return 1

    ground_truth = [rec.ground_truth.as_array() for rec in records if rec.ground_truth is not None]
    if len(ground_truth) == len(estimates):
        estimated = estimates_in_ground_truth_layout([est.state for est in estimates])
        rmse = calculate_rmse(estimated, ground_truth)
        print_rmse(rmse)
    consistency.print_metrics()

    if args.plot_dir:
        from ukf_fusion.visualize import visualize_nis, visualize_trajectory
        visualize_trajectory(estimates, records, args.plot_dir)
        for sensor_type in SensorType:
            result = consistency.compute(sensor_type)
            if result.num_samples > 0:
                visualize_nis(result, args.plot_dir)
        print(f"Plots saved to {args.plot_dir}")

    return 0


if __name__ == '__main__':
    sys.exit(main())
