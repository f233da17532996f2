import matplotlib.pyplot as plt
import numpy as np
from pathlib import Path
from typing import List, Optional

from ukf_fusion.data_structures import ConsistencyResult, FilterEstimate, MeasurementRecord, SensorType


def prepare_output_directories(output_dir: str):
    """
    Create output directory for figures.

    Args:
        output_dir: Base output directory
    """
    Path(output_dir).mkdir(parents=True, exist_ok=True)


def visualize_trajectory(
        estimates: List[FilterEstimate],
        records: List[MeasurementRecord],
        output_dir: str,
        filename: str = "trajectory.png"
) -> Path:
    """
    Plot estimated trajectory against ground truth and raw measurements.

    Returns:
        Path of the saved figure
    """
    prepare_output_directories(output_dir)

    fig, ax = plt.subplots(figsize=(8, 8))

    est = np.array([e.position for e in estimates])
    if len(est) > 0:
        ax.plot(est[:, 0], est[:, 1], color='red', linewidth=1.2, label='UKF Estimate')

    gt = np.array([[r.ground_truth.px, r.ground_truth.py] for r in records if r.ground_truth is not None])
    if len(gt) > 0:
        ax.plot(gt[:, 0], gt[:, 1], color='green', linestyle='--', linewidth=1.0, label='Ground Truth')

    # Lidar measurements (blue dots), radar measurements (orange crosses)
    for sensor_type, style in ((SensorType.LIDAR, dict(c='blue', marker='.', s=8)),
                               (SensorType.RADAR, dict(c='orange', marker='x', s=10))):
        pts = np.array([r.measurement.cartesian_pos for r in records
                        if r.measurement.sensor_type is sensor_type])
        if len(pts) > 0:
            ax.scatter(pts[:, 0], pts[:, 1], alpha=0.6, label=f'{sensor_type.name.capitalize()} Measurement',
                       **style)

    ax.set_xlabel("px (m)")
    ax.set_ylabel("py (m)")
    ax.set_title("Estimated vs. True Trajectory")
    ax.axis('equal')
    ax.legend(loc='best', fontsize=8)
    ax.grid(True, alpha=0.3)
    plt.tight_layout()

    save_path = Path(output_dir) / filename
    fig.savefig(save_path, dpi=150)
    plt.close(fig)
    return save_path


def visualize_nis(
        result: ConsistencyResult,
        output_dir: str,
        filename: Optional[str] = None
) -> Path:
    """
    Plot the NIS history of one sensor with its chi-square threshold.

    Returns:
        Path of the saved figure
    """
    prepare_output_directories(output_dir)

    fig, ax = plt.subplots(figsize=(10, 4))
    ax.plot(np.arange(len(result.nis_values)), result.nis_values, linewidth=0.8,
            label=f'NIS {result.sensor_type.name.capitalize()}')
    ax.axhline(y=result.threshold, color='red', linestyle='--',
               label=f'95% threshold ({result.threshold:.3f})')
    ax.set_xlabel("Update")
    ax.set_ylabel("NIS")
    ax.set_title(f"{result.sensor_type.name.capitalize()} NIS "
                 f"({result.fraction_below * 100:.1f}% below threshold)")
    ax.legend(loc='upper right')
    plt.tight_layout()

    save_path = Path(output_dir) / (filename or f"nis_{result.sensor_type.name.lower()}.png")
    fig.savefig(save_path)
    plt.close(fig)
    return save_path
