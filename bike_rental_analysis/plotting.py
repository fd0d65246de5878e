"""
plotting.py

Shared plot helpers. Every figure is written to
<output_dir>/plots/<model_name>/<plot_name>.png and the path is returned so
the report can link to it.
"""
import os

import matplotlib
matplotlib.use("Agg")   # Use non-GUI backend

import matplotlib.pyplot as plt
import numpy as np
import seaborn as sns
import statsmodels.api as sm

plt.style.use("seaborn-v0_8")


def save_plot(plots_dir, model_name, plot_name):
    """
    Save the current matplotlib figure into: plots/<model_name>/<plot_name>.png
    """
    folder = os.path.join(plots_dir, model_name)
    os.makedirs(folder, exist_ok=True)
    filepath = os.path.join(folder, f"{plot_name}.png")
    plt.savefig(filepath, dpi=150, bbox_inches="tight")
    plt.close("all")
    return filepath


# =============================================================================
# UNIVERSAL DIAGNOSTIC PLOT HELPERS
# =============================================================================

def plot_histogram(series, plots_dir, model_name, label):
    plt.figure(figsize=(8, 5))
    sns.histplot(series, kde=True, bins=30, color="steelblue")
    plt.title(f"Histogram of {label}")
    plt.xlabel(label)
    return save_plot(plots_dir, model_name, f"histogram_{label}")


def plot_qq(series, plots_dir, model_name, label):
    fig = sm.qqplot(np.asarray(series), line="45", fit=True)
    fig.set_size_inches(6, 6)
    plt.title(f"Q–Q Plot of {label}")
    return save_plot(plots_dir, model_name, f"qqplot_{label}")


def plot_residuals_vs_fitted(fitted, residuals, plots_dir, model_name, ylabel="Residuals"):
    plt.figure(figsize=(8, 5))
    sns.scatterplot(x=np.asarray(fitted), y=np.asarray(residuals), alpha=0.4, s=12)
    plt.axhline(0, color="red", linestyle="--")
    plt.title("Residuals vs Fitted")
    plt.xlabel("Fitted Values")
    plt.ylabel(ylabel)
    return save_plot(plots_dir, model_name, "residuals_vs_fitted")


def plot_scale_location(fitted, std_residuals, plots_dir, model_name):
    plt.figure(figsize=(8, 5))
    sns.scatterplot(x=np.asarray(fitted), y=np.sqrt(np.abs(np.asarray(std_residuals))), alpha=0.4, s=12)
    plt.title("Scale–Location")
    plt.xlabel("Fitted Values")
    plt.ylabel("√|Studentized Residuals|")
    return save_plot(plots_dir, model_name, "scale_location")


def plot_boxplot(df, x, y, plots_dir, model_name, title):
    plt.figure(figsize=(10, 5))
    sns.boxplot(x=x, y=y, data=df)
    plt.title(title)
    return save_plot(plots_dir, model_name, f"boxplot_{y}_by_{x}")


def plot_scatter(df, x, y, plots_dir, model_name):
    plt.figure(figsize=(8, 5))
    sns.scatterplot(x=df[x], y=df[y], alpha=0.3, s=10)
    plt.title(f"{y} vs {x}")
    return save_plot(plots_dir, model_name, f"scatter_{y}_vs_{x}")


def plot_predicted_vs_actual(y_true, y_pred, plots_dir, model_name, title):
    y_true = np.asarray(y_true, dtype=float)
    y_pred = np.asarray(y_pred, dtype=float)

    plt.figure(figsize=(7, 7))
    sns.scatterplot(x=y_true, y=y_pred, alpha=0.4, s=12)
    lo, hi = float(y_true.min()), float(y_true.max())
    plt.plot([lo, hi], [lo, hi], "r--")
    plt.title(title)
    plt.xlabel("Actual rentals")
    plt.ylabel("Predicted rentals")
    return save_plot(plots_dir, model_name, "predicted_vs_actual")
