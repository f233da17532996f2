import pytest

from ukf_fusion.data_loader import save_measurements
from ukf_fusion.main import main, run_filter
from ukf_fusion.simulation import generate_ctrv_scenario


@pytest.fixture
def log_file(tmp_path):
    records, _ = generate_ctrv_scenario(num_steps=40, seed=2)
    path = tmp_path / "input.txt"
    save_measurements(path, records)
    return path


def test_run_filter_returns_one_estimate_per_record():
    records, _ = generate_ctrv_scenario(num_steps=10, seed=2)

    estimates, consistency = run_filter(records)

    assert len(estimates) == 10
    assert estimates[0].nis is None
    assert len(consistency.nis_history[records[1].measurement.sensor_type]) == 5


def test_main_writes_results(log_file, tmp_path, capsys):
    output = tmp_path / "output.txt"

    assert main([str(log_file), str(output)]) == 0

    lines = output.read_text().splitlines()
    assert len(lines) == 41
    out = capsys.readouterr().out
    assert "RMSE" in out
    assert "NIS Consistency" in out


def test_main_lidar_only(log_file, tmp_path):
    output = tmp_path / "output.txt"

    assert main([str(log_file), str(output), "--lidar-only"]) == 0
    assert len(output.read_text().splitlines()) == 21


def test_main_verbose(log_file, tmp_path, capsys):
    assert main([str(log_file), str(tmp_path / "output.txt"), "-v", "-r"]) == 0
    assert "***** Entry: 1 *****" in capsys.readouterr().out


def test_main_with_config_and_plots(log_file, tmp_path):
    config = tmp_path / "ukf.yaml"
    config.write_text("std_a: 0.8\n")
    plot_dir = tmp_path / "plots"

    assert main([str(log_file), str(tmp_path / "output.txt"),
                 "--config", str(config), "--plot-dir", str(plot_dir)]) == 0
    assert (plot_dir / "trajectory.png").exists()
    assert (plot_dir / "nis_lidar.png").exists()
    assert (plot_dir / "nis_radar.png").exists()


def test_main_missing_input(tmp_path, capsys):
    assert main([str(tmp_path / "missing.txt"), str(tmp_path / "output.txt")]) == 1
    assert "Cannot open input file" in capsys.readouterr().err


def test_main_malformed_input(tmp_path, capsys):
    path = tmp_path / "bad.txt"
    path.write_text("Z 1 2 3\n")

    assert main([str(path), str(tmp_path / "output.txt")]) == 1
    assert "Line 1" in capsys.readouterr().err


def test_sensor_flags_are_exclusive(log_file, tmp_path):
    with pytest.raises(SystemExit):
        main([str(log_file), str(tmp_path / "output.txt"), "-r", "-l"])
