"""
exploration.py

Bike Rental Regression Analysis – Exploratory Data Analysis

Summary statistics, target overdispersion, and the exploratory figures that
motivate the model choices (square-root transform for the LM, a count
family for the GLM).
"""
import os
from typing import Dict, List

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
import seaborn as sns

from .config import AnalysisConfig
from .plotting import plot_boxplot, plot_histogram, plot_scatter, save_plot

EDA_NAME = "eda"


# ------------------------------------------------------------
# 1. Numeric summary
# ------------------------------------------------------------

def numeric_summary(df: pd.DataFrame, columns: List[str]) -> pd.DataFrame:
    numeric_df = df[columns]

    basic_desc = numeric_df.describe().T

    extra_stats = pd.DataFrame(index=numeric_df.columns)
    extra_stats["missing_pct"] = numeric_df.isna().mean()
    extra_stats["zero_pct"] = (numeric_df == 0).mean()
    extra_stats["skew"] = numeric_df.skew()
    extra_stats["kurtosis"] = numeric_df.kurtosis()

    return basic_desc.join(extra_stats)


def overdispersion_statistic(counts) -> float:
    """Variance-to-mean ratio of the count target (1 for a Poisson variable)."""
    counts = pd.Series(counts, dtype=float)
    mean = counts.mean()
    if mean == 0:
        return float("nan")
    return float(counts.var() / mean)


def category_means(df: pd.DataFrame, target: str, categorical: List[str]) -> Dict[str, pd.DataFrame]:
    out = {}
    for col in categorical:
        out[col] = (
            df.groupby(col, observed=True)[target]
            .agg(["count", "mean", "std"])
            .round(2)
        )
    return out


# ------------------------------------------------------------
# 2. Plots
# ------------------------------------------------------------

def plot_correlation_heatmap(df: pd.DataFrame, columns: List[str], plots_dir: str) -> str:
    corr = df[columns].corr()
    plt.figure(figsize=(7, 6))
    sns.heatmap(corr, cmap="coolwarm", center=0, annot=True, fmt=".2f")
    plt.title("Correlation Heatmap – Continuous Predictors")
    plt.tight_layout()
    return save_plot(plots_dir, EDA_NAME, "correlation_heatmap")


def plot_hourly_profile(df: pd.DataFrame, target: str, plots_dir: str) -> str:
    plt.figure(figsize=(10, 5))
    hue = "workingday" if "workingday" in df.columns else None
    sns.lineplot(data=df, x="hr", y=target, hue=hue, estimator="mean", errorbar=None)
    plt.title("Mean Rentals by Hour of Day")
    plt.xlabel("Hour")
    plt.ylabel(f"Mean {target}")
    return save_plot(plots_dir, EDA_NAME, "hourly_profile")


def build_profile_report(df: pd.DataFrame, output_dir: str) -> str:
    from ydata_profiling import ProfileReport

    profile = ProfileReport(df, minimal=True, explorative=False)
    path = os.path.join(output_dir, "bike_rental_profile.html")
    profile.to_file(path)
    print("\n[INFO] HTML data profile generated")
    return path


# ------------------------------------------------------------
# 3. Run
# ------------------------------------------------------------

def run_exploration(df: pd.DataFrame, cfg: AnalysisConfig) -> Dict:
    print("\n=== EXPLORATORY DATA ANALYSIS ===")
    target = cfg.target_col
    plots = {}

    summary_cols = cfg.continuous_features + [target]
    summary = numeric_summary(df, summary_cols)
    summary.to_csv(os.path.join(cfg.results_dir, "numeric_summary_stats.csv"))

    dispersion = overdispersion_statistic(df[target])
    print(f"Mean of '{target}': {df[target].mean():.2f}")
    print(f"Variance of '{target}': {df[target].var():.2f}")
    print(f"Overdispersion (variance / mean): {dispersion:.2f}")

    plots["target_histogram"] = plot_histogram(df[target], cfg.plots_dir, EDA_NAME, target)
    plots["sqrt_target_histogram"] = plot_histogram(
        np.sqrt(df[target]), cfg.plots_dir, EDA_NAME, f"sqrt_{target}"
    )

    for col in cfg.categorical_features:
        plots[f"box_{col}"] = plot_boxplot(
            df, col, target, cfg.plots_dir, EDA_NAME, f"{target} by {col}"
        )

    for col in cfg.continuous_features:
        plots[f"scatter_{col}"] = plot_scatter(df, col, target, cfg.plots_dir, EDA_NAME)

    plots["correlation_heatmap"] = plot_correlation_heatmap(df, cfg.continuous_features, cfg.plots_dir)

    if "hr" in df.columns:
        plots["hourly_profile"] = plot_hourly_profile(df, target, cfg.plots_dir)

    means = category_means(df, target, cfg.categorical_features)

    profile_path = None
    if cfg.build_profile:
        profile_path = build_profile_report(df, cfg.output_dir)

    print("\nExploratory tables and plots saved")

    return {
        "summary": summary,
        "dispersion": dispersion,
        "category_means": means,
        "plots": plots,
        "profile_path": profile_path,
    }
