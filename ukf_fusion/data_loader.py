# data_loader.py  Reads lidar/radar measurement logs with ground truth.
"""
Each log line holds one measurement followed by the ground truth state:

    L  px   py           timestamp  gt_px gt_py gt_vx gt_vy
    R  rho  phi  rho_dot timestamp  gt_px gt_py gt_vx gt_vy
"""
from pathlib import Path
from typing import List, Sequence, Tuple, Union

import numpy as np
import pandas as pd

from ukf_fusion.data_structures import GroundTruth, Measurement, MeasurementRecord, SensorType
from ukf_fusion.exceptions import MeasurementError

GROUND_TRUTH_FIELDS = 4

# Radar lines are the widest: tag, 3 values, timestamp, ground truth
LOG_COLUMNS = 1 + SensorType.RADAR.measurement_dim + 1 + GROUND_TRUTH_FIELDS


def parse_measurement_fields(tokens: Sequence[str], line_number: int = 0) -> Tuple[Measurement, GroundTruth]:
    """
    Parse the fields of one log line.

    Args:
        tokens: Whitespace separated fields of the line
        line_number: Line number used in error messages

    Returns:
        Tuple of (measurement, ground_truth)

    Raises:
        MeasurementError: On an unknown sensor tag or wrong column count
    """
    if not tokens:
        raise MeasurementError(f"Line {line_number}: empty line")

    try:
        sensor_type = SensorType(tokens[0])
    except ValueError as err:
        raise MeasurementError(f"Line {line_number}: unknown sensor tag '{tokens[0]}'") from err

    n_values = sensor_type.measurement_dim
    expected = 1 + n_values + 1 + GROUND_TRUTH_FIELDS
    if len(tokens) != expected:
        raise MeasurementError(
            f"Line {line_number}: {sensor_type.name} line needs {expected} fields, got {len(tokens)}"
        )

    try:
        values = np.array([float(t) for t in tokens[1:1 + n_values]])
        timestamp = int(tokens[1 + n_values])
        gt_values = [float(t) for t in tokens[2 + n_values:]]
    except ValueError as err:
        raise MeasurementError(f"Line {line_number}: {err}") from err

    measurement = Measurement(sensor_type, values, timestamp)
    return measurement, GroundTruth(*gt_values)


def parse_measurement_line(line: str, line_number: int = 0) -> Tuple[Measurement, GroundTruth]:
    """Parse one raw log line."""
    return parse_measurement_fields(line.split(), line_number)


def read_log_table(path: Union[str, Path]) -> pd.DataFrame:
    """
    Read a measurement log into a DataFrame of string fields.

    Lidar rows are one field shorter than radar rows, so their last column
    is empty. Blank lines are kept as empty rows so the row index maps to
    the line number.

    Raises:
        MeasurementError: If a line has more fields than a radar line
    """
    try:
        return pd.read_csv(path, sep=r'\s+', header=None, names=range(LOG_COLUMNS),
                           dtype=str, keep_default_na=False, skip_blank_lines=False)
    except pd.errors.EmptyDataError:
        return pd.DataFrame(columns=range(LOG_COLUMNS), dtype=str)
    except pd.errors.ParserError as err:
        raise MeasurementError(f"Malformed measurement log {path}: {err}") from err


def load_measurements(path: Union[str, Path],
                      use_lidar: bool = True,
                      use_radar: bool = True) -> List[MeasurementRecord]:
    """
    Load a measurement log.

    Args:
        path: Path to the log file
        use_lidar: Keep lidar measurements
        use_radar: Keep radar measurements

    Returns:
        List of MeasurementRecord in file order
    """
    log_df = read_log_table(path)

    records = []
    for index, fields in enumerate(log_df.itertuples(index=False, name=None)):
        tokens = [f for f in fields if isinstance(f, str) and f]
        if not tokens:
            continue

        measurement, ground_truth = parse_measurement_fields(tokens, line_number=index + 1)
        if measurement.sensor_type is SensorType.LIDAR and not use_lidar:
            continue
        if measurement.sensor_type is SensorType.RADAR and not use_radar:
            continue

        records.append(MeasurementRecord(measurement, ground_truth))

    return records


def format_measurement_line(record: MeasurementRecord) -> str:
    """Inverse of parse_measurement_line, used to write synthetic logs."""
    m = record.measurement
    gt = record.ground_truth
    if gt is None:
        raise MeasurementError("Cannot write a log line without ground truth")

    fields = [m.sensor_type.value]
    fields += [repr(float(v)) for v in m.values]
    fields.append(str(m.timestamp))
    fields += [repr(float(v)) for v in gt.as_array()]
    return "\t".join(fields)


def save_measurements(path: Union[str, Path], records: List[MeasurementRecord]):
    """Write records in the log format read by load_measurements."""
    with open(path, 'w') as fp:
        for record in records:
            fp.write(format_measurement_line(record) + "\n")
