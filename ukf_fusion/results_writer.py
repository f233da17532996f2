"""
Per-step output of filter estimates as a tab separated file.
"""
from pathlib import Path
from typing import Dict, Iterable, Union

import numpy as np
import pandas as pd

from ukf_fusion.data_structures import FilterEstimate, Measurement

RESULT_COLUMNS = ["px", "py", "v", "yaw", "yaw_rate", "meas_px", "meas_py", "nis"]


def format_result_row(estimate: FilterEstimate, measurement: Measurement) -> Dict[str, float]:
    """
    Build one output row keyed by column name.

    Radar measurements are written in Cartesian coordinates so both sensors
    share the measurement columns. The NIS is NaN for the call that
    initialized the filter and is written as an empty field.
    """
    row = dict(zip(RESULT_COLUMNS[:5], (float(v) for v in estimate.state)))
    row['meas_px'], row['meas_py'] = measurement.cartesian_pos
    row['nis'] = np.nan if estimate.nis is None else float(estimate.nis)
    return row


def write_results(path: Union[str, Path], rows: Iterable[Dict[str, float]], header: bool = True):
    """
    Write result rows to a tab separated file with six decimals per value.

    Args:
        path: Output file path
        rows: Rows produced by format_result_row
        header: Whether to write the column names first
    """
    results_df = pd.DataFrame(list(rows), columns=RESULT_COLUMNS)
    results_df.to_csv(path, sep='\t', index=False, header=header, float_format='%.6f', na_rep='')
