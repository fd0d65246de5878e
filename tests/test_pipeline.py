import math
import os

import pytest

import bike_rental_analysis.__main__ as cli
from bike_rental_analysis.__main__ import config_from_args, main, parse_args
from bike_rental_analysis.config import AnalysisConfig
from bike_rental_analysis.pipeline import AnalysisResults

COMPARED = ["lm_full", "lm_stepwise", "lm_no_influential", "glm_full", "glm_stepwise"]


def test_config_defaults():
    cfg = AnalysisConfig(output_dir="out")

    assert cfg.test_size == 0.2
    assert cfg.random_state == 42
    assert cfg.plots_dir == os.path.join("out", "plots")
    assert cfg.results_dir == os.path.join("out", "results")
    assert "time_slot" in cfg.predictors


@pytest.mark.parametrize("kwargs", [
    {"glm_family": "gamma"},
    {"criterion": "cp"},
    {"direction": "sideways"},
    {"test_size": 0.0},
    {"test_size": 1.5},
])
def test_config_rejects_bad_settings(kwargs):
    with pytest.raises(ValueError):
        AnalysisConfig(**kwargs)


def test_parse_args():
    args = parse_args(["--input", "hour.csv", "--seed", "7", "--glm-family", "poisson",
                       "--criterion", "bic", "--direction", "backward"])
    cfg = config_from_args(args)

    assert cfg.input_path == "hour.csv"
    assert cfg.random_state == 7
    assert cfg.glm_family == "poisson"
    assert cfg.criterion == "bic"
    assert cfg.direction == "backward"
    assert cfg.build_profile is False


def test_parse_args_rejects_unknown_family():
    with pytest.raises(SystemExit):
        parse_args(["--input", "hour.csv", "--glm-family", "gamma"])


def test_main_missing_input(tmp_path):
    with pytest.raises(SystemExit, match="does not exist"):
        main(["--input", str(tmp_path / "missing.csv"), "--output-dir", str(tmp_path / "out")])


def test_run_analysis_split(analysis_results):
    res = analysis_results

    assert res.n_train == res.n_rows - math.ceil(0.2 * res.n_rows)
    assert res.n_train + res.n_test <= res.n_rows
    assert res.glm_family in ("Poisson", "NegativeBinomial")
    assert res.glm_dispersion > 0


def test_run_analysis_models_and_tables(analysis_results):
    res = analysis_results
    comparison = res.tables["model_comparison"]

    assert list(comparison.index) == COMPARED
    assert (comparison["test_mse"] > 0).all()
    assert res.stats["glm_overall_lrt"]["lr_stat"] >= 0
    assert res.stats["glm_overall_lrt"]["p_value"] < 0.05
    assert len(res.tables["glm_drop1"]) == len(res.config.predictors)
    for key in ["lm_stepwise", "glm_stepwise"]:
        assert 0.0 <= res.stats[f"{key}_autocorrelation"]["durbin_watson"] <= 4.0
        assert res.stats[f"{key}_outliers"]["observations"] == res.n_train
    assert res.tables["lm_stepwise_history"]["aic"].is_monotonic_decreasing


def test_run_analysis_writes_files(analysis_results):
    cfg = analysis_results.config

    for name in ["model_comparison", "glm_drop1", "lm_anova", "lm_vif", "numeric_summary_stats"]:
        assert os.path.isfile(os.path.join(cfg.results_dir, f"{name}.csv"))
    for path in analysis_results.summaries.values():
        assert os.path.isfile(path)
    for plots in analysis_results.plots.values():
        for path in plots.values():
            assert os.path.isfile(path)


def test_report_sections(analysis_results):
    with open(analysis_results.report_path, encoding="utf-8") as f:
        report = f.read()

    for heading in ["## Data", "## Linear model", "## Count model", "## Diagnostics", "## Model comparison"]:
        assert heading in report
    assert "](plots/" in report
    assert "Lowest test MSE" in report


def test_main_exits_cleanly(tmp_path, monkeypatch):
    path = tmp_path / "hour.csv"
    path.write_text("cnt\n1\n")
    seen = []

    def fake_run(cfg):
        seen.append(cfg)
        return AnalysisResults(config=cfg)

    monkeypatch.setattr(cli, "run_analysis", fake_run)

    assert main(["--input", str(path), "--output-dir", str(tmp_path / "out")]) is None
    assert seen[0].input_path == str(path)
    assert seen[0].output_dir == str(tmp_path / "out")


def test_report_fit_statistics(analysis_results):
    with open(analysis_results.report_path, encoding="utf-8") as f:
        report = f.read()

    assert report.count("### Fit statistics") == 2
    assert "results/linear_model_full_summary.txt" in report
    assert "results/count_model_stepwise_summary.txt" in report
    assert "r_squared" in report
    assert "deviance" in report

    lm_stats = analysis_results.tables["lm_fit_statistics"]
    assert list(lm_stats.columns) == ["full", "stepwise"]
    assert lm_stats.loc["r_squared", "full"] >= lm_stats.loc["r_squared", "stepwise"] - 1e-12
