import math
import os

import pandas as pd

from bike_rental_analysis.config import ensure_output_dirs
from bike_rental_analysis.exploration import category_means, numeric_summary, overdispersion_statistic, run_exploration


def test_overdispersion_statistic():
    assert overdispersion_statistic([3, 3, 3]) == 0.0
    assert overdispersion_statistic([1, 3]) == 1.0
    assert math.isnan(overdispersion_statistic([0, 0, 0]))


def test_numeric_summary_columns(prepared):
    summary = numeric_summary(prepared, ["temp", "cnt"])

    assert list(summary.index) == ["temp", "cnt"]
    for col in ["mean", "std", "missing_pct", "zero_pct", "skew", "kurtosis"]:
        assert col in summary.columns
    assert summary.loc["temp", "missing_pct"] == 0.0


def test_category_means_follow_level_order(prepared):
    means = category_means(prepared, "cnt", ["time_slot"])["time_slot"]

    assert list(means.index) == ["night", "morning", "midday", "evening", "late"]
    assert means.loc["night", "mean"] < means.loc["evening", "mean"]
    assert means["count"].sum() == len(prepared)


def test_run_exploration_writes_outputs(prepared, cfg):
    ensure_output_dirs(cfg)
    out = run_exploration(prepared, cfg)

    assert out["dispersion"] > 1.0
    assert out["profile_path"] is None
    assert os.path.isfile(os.path.join(cfg.results_dir, "numeric_summary_stats.csv"))
    assert {"target_histogram", "correlation_heatmap", "hourly_profile", "box_time_slot"} <= set(out["plots"])
    for path in out["plots"].values():
        assert os.path.isfile(path)
    assert isinstance(out["category_means"]["season"], pd.DataFrame)
