from ukf_fusion.example_usage import run_fusion_example


def test_run_fusion_example(capsys):
    estimates, records, consistency = run_fusion_example(num_steps=80, seed=1)

    assert len(estimates) == len(records) == 80
    assert consistency.compute(records[1].measurement.sensor_type).num_samples == 40
    out = capsys.readouterr().out
    assert "FILTER PERFORMANCE EVALUATION" in out
    assert "RMSE" in out
