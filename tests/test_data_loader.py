import numpy as np
import numpy.testing as npt
import pytest

from ukf_fusion import MeasurementError, SensorType
from ukf_fusion.data_loader import (
    format_measurement_line,
    load_measurements,
    parse_measurement_fields,
    parse_measurement_line,
    read_log_table,
    save_measurements,
)
from ukf_fusion.simulation import generate_ctrv_scenario

LIDAR_LINE = "L\t3.122427e-01\t5.803398e-01\t1477010443000000\t6.000000e-01\t6.000000e-01\t5.199937e+00\t0\n"
RADAR_LINE = ("R\t1.014892e+00\t5.543292e-01\t4.892807e+00\t1477010443050000\t"
              "8.599968e-01\t6.000449e-01\t5.199747e+00\t1.796856e-03\n")


def test_parse_lidar_line():
    measurement, gt = parse_measurement_line(LIDAR_LINE)

    assert measurement.sensor_type is SensorType.LIDAR
    npt.assert_allclose(measurement.values, [0.3122427, 0.5803398])
    assert measurement.timestamp == 1477010443000000
    npt.assert_allclose(gt.as_array(), [0.6, 0.6, 5.199937, 0.0])


def test_parse_radar_line():
    measurement, gt = parse_measurement_line(RADAR_LINE)

    assert measurement.sensor_type is SensorType.RADAR
    npt.assert_allclose(measurement.values, [1.014892, 0.5543292, 4.892807])
    assert measurement.timestamp == 1477010443050000
    assert np.isclose(gt.vy, 1.796856e-03)


@pytest.mark.parametrize("line", [
    "X 1 2 3 4 5 6 7",
    "L 1 2 3 4 5 6",
    "R 1 2 3 4 5 6 7",
    "L 1 abc 3 4 5 6 7",
    "L 1 2 3.5 4 5 6 7",
])
def test_malformed_lines_rejected(line):
    with pytest.raises(MeasurementError, match="Line 3"):
        parse_measurement_line(line, line_number=3)


def test_load_measurements_with_sensor_selection(tmp_path):
    path = tmp_path / "log.txt"
    path.write_text(LIDAR_LINE + "\n" + RADAR_LINE + LIDAR_LINE)

    assert len(load_measurements(path)) == 3

    lidar_only = load_measurements(path, use_radar=False)
    assert [r.measurement.sensor_type for r in lidar_only] == [SensorType.LIDAR, SensorType.LIDAR]

    radar_only = load_measurements(path, use_lidar=False)
    assert [r.measurement.sensor_type for r in radar_only] == [SensorType.RADAR]


def test_load_reports_line_number(tmp_path):
    path = tmp_path / "log.txt"
    path.write_text(LIDAR_LINE + "Q 1 2\n")

    with pytest.raises(MeasurementError, match="Line 2"):
        load_measurements(path)


def test_saved_log_loads_back(tmp_path):
    records, _ = generate_ctrv_scenario(num_steps=6, seed=1)
    path = tmp_path / "synthetic.txt"

    save_measurements(path, records)
    loaded = load_measurements(path)

    assert len(loaded) == len(records)
    for original, restored in zip(records, loaded):
        assert restored.measurement.sensor_type is original.measurement.sensor_type
        assert restored.measurement.timestamp == original.measurement.timestamp
        npt.assert_array_equal(restored.measurement.values, original.measurement.values)
        npt.assert_array_equal(restored.ground_truth.as_array(), original.ground_truth.as_array())


def test_format_line_needs_ground_truth():
    records, _ = generate_ctrv_scenario(num_steps=1, seed=1)
    records[0].ground_truth = None

    with pytest.raises(MeasurementError):
        format_measurement_line(records[0])


def test_log_table_pads_lidar_rows(tmp_path):
    path = tmp_path / "log.txt"
    path.write_text(LIDAR_LINE + RADAR_LINE)

    log_df = read_log_table(path)

    assert log_df.shape == (2, 9)
    assert list(log_df[0]) == ["L", "R"]
    assert log_df.iloc[1, 4] == "1477010443050000"


def test_parse_fields_matches_line():
    measurement, gt = parse_measurement_fields(RADAR_LINE.split(), line_number=1)
    expected, expected_gt = parse_measurement_line(RADAR_LINE)

    npt.assert_array_equal(measurement.values, expected.values)
    npt.assert_array_equal(gt.as_array(), expected_gt.as_array())


def test_load_empty_log(tmp_path):
    path = tmp_path / "empty.txt"
    path.write_text("")

    assert load_measurements(path) == []


def test_load_rejects_overlong_line(tmp_path):
    path = tmp_path / "log.txt"
    path.write_text(RADAR_LINE + "R 1 2 3 4 5 6 7 8 9\n")

    with pytest.raises(MeasurementError):
        load_measurements(path)
