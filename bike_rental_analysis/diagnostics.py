"""
diagnostics.py

Bike Rental Regression Analysis – Regression Diagnostics

Influence and outlier screening (leverage, Cook's distance, studentized
residuals), residual autocorrelation (Durbin–Watson, Ljung–Box,
Breusch–Godfrey), heteroscedasticity (Breusch–Pagan), multicollinearity
(VIF) and the usual diagnostic figures. Works on fitted statsmodels OLS and
GLM results.
"""
from typing import Callable, Dict, List

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
import statsmodels.api as sm
from statsmodels.graphics.tsaplots import plot_acf
from statsmodels.stats.diagnostic import acorr_breusch_godfrey, acorr_ljungbox, het_breuschpagan
from statsmodels.stats.outliers_influence import variance_inflation_factor
from statsmodels.stats.stattools import durbin_watson

from .config import AnalysisConfig
from .selection import n_parameters
from .plotting import plot_qq, plot_residuals_vs_fitted, plot_scale_location, save_plot


def is_glm(model) -> bool:
    return isinstance(model.model, sm.GLM)


def model_residuals(model) -> pd.Series:
    """Raw residuals for OLS, Pearson residuals for GLMs."""
    return model.resid_pearson if is_glm(model) else model.resid


# ------------------------------------------------------------
# 1. INFLUENCE / OUTLIERS
# ------------------------------------------------------------

def cooks_rank_factor(model) -> float:
    """
    statsmodels divides Cook's distance by the number of design columns;
    rescale so aliased columns do not count as parameters.
    """
    return model.model.exog.shape[1] / n_parameters(model)


def influence_table(model, cfg: AnalysisConfig) -> pd.DataFrame:
    infl = model.get_influence()
    n = int(model.nobs)
    index = model.fittedvalues.index

    if is_glm(model):
        studentized = np.asarray(infl.resid_studentized)
    else:
        studentized = np.asarray(infl.resid_studentized_external)

    table = pd.DataFrame({
        "fitted": np.asarray(model.fittedvalues),
        "leverage": np.asarray(infl.hat_matrix_diag),
        "cooks_d": np.asarray(infl.cooks_distance[0]) * cooks_rank_factor(model),
        "studentized": studentized,
    }, index=index)

    cooks_threshold = cfg.cooks_multiplier / n
    table["flag_cooks"] = table["cooks_d"] > cooks_threshold
    table["flag_studentized"] = table["studentized"].abs() > cfg.studentized_cutoff
    table["influential"] = table["flag_cooks"] | table["flag_studentized"]

    if not is_glm(model):
        bonf = model.outlier_test(method="bonf")
        table["bonf_p"] = np.asarray(bonf.iloc[:, 2])

    return table


def outlier_summary(table: pd.DataFrame, top: int = 10) -> Dict:
    n = len(table)
    counts = pd.Series({
        "observations": n,
        "cooks_flagged": int(table["flag_cooks"].sum()),
        "studentized_flagged": int(table["flag_studentized"].sum()),
        "influential": int(table["influential"].sum()),
        "max_cooks_d": float(table["cooks_d"].max()),
    })
    if "bonf_p" in table.columns:
        counts["bonferroni_outliers"] = int((table["bonf_p"] < 0.05).sum())

    top_rows = table.sort_values("cooks_d", ascending=False).head(top)
    return {"counts": counts, "top": top_rows}


def refit_without_influential(data: pd.DataFrame, table: pd.DataFrame,
                              fit: Callable, terms: List[str]):
    keep = table.index[~table["influential"]]
    removed = len(table) - len(keep)
    print(f"[INFO] Refitting without {removed} influential observations.")
    return fit(data.loc[keep], terms), removed


# ------------------------------------------------------------
# 2. RESIDUAL TESTS
# ------------------------------------------------------------

def autocorrelation_tests(model, lags: int = 24) -> pd.Series:
    """Durbin–Watson and Ljung–Box on residuals (Breusch–Godfrey for OLS)."""
    resid = np.asarray(model_residuals(model))

    lb = acorr_ljungbox(resid, lags=[lags], return_df=True)
    out = {
        "durbin_watson": float(durbin_watson(resid)),
        "ljung_box_stat": float(lb["lb_stat"].iloc[0]),
        "ljung_box_p": float(lb["lb_pvalue"].iloc[0]),
        "lags": lags,
    }

    if not is_glm(model):
        bg_lm, bg_p, _, _ = acorr_breusch_godfrey(model, nlags=lags)
        out["breusch_godfrey_stat"] = float(bg_lm)
        out["breusch_godfrey_p"] = float(bg_p)

    return pd.Series(out)


def heteroscedasticity_test(model) -> pd.Series:
    lm, lm_p, f_stat, f_p = het_breuschpagan(model.resid, model.model.exog)
    return pd.Series({
        "breusch_pagan_stat": float(lm),
        "breusch_pagan_p": float(lm_p),
        "f_stat": float(f_stat),
        "f_p": float(f_p),
    })


def variance_inflation(model) -> pd.DataFrame:
    """VIF for every column of the model design matrix except the intercept."""
    exog = np.asarray(model.model.exog)
    names = model.model.exog_names

    rows = []
    for i, name in enumerate(names):
        if name == "Intercept":
            continue
        rows.append((name, float(variance_inflation_factor(exog, i))))
    return pd.DataFrame(rows, columns=["variable", "VIF"]).sort_values("VIF", ascending=False)


# ------------------------------------------------------------
# 3. PLOTS
# ------------------------------------------------------------

def plot_residuals_vs_leverage(table: pd.DataFrame, plots_dir: str, model_name: str) -> str:
    plt.figure(figsize=(8, 5))
    sc = plt.scatter(table["leverage"], table["studentized"], c=table["cooks_d"],
                     cmap="viridis", s=10, alpha=0.6)
    plt.colorbar(sc, label="Cook's distance")
    plt.axhline(0, color="red", linestyle="--")
    plt.title("Residuals vs Leverage")
    plt.xlabel("Leverage")
    plt.ylabel("Studentized Residuals")
    return save_plot(plots_dir, model_name, "residuals_vs_leverage")


def plot_cooks_distance(table: pd.DataFrame, threshold: float, plots_dir: str, model_name: str) -> str:
    plt.figure(figsize=(10, 4))
    plt.stem(np.arange(len(table)), table["cooks_d"].to_numpy(), markerfmt=",", basefmt=" ")
    plt.axhline(threshold, color="red", linestyle="--", label=f"4/n = {threshold:.2e}")
    plt.title("Cook's Distance")
    plt.xlabel("Observation (time order)")
    plt.ylabel("Cook's distance")
    plt.legend()
    return save_plot(plots_dir, model_name, "cooks_distance")


def plot_residual_acf(model, lags: int, plots_dir: str, model_name: str) -> str:
    fig, ax = plt.subplots(figsize=(8, 4))
    plot_acf(np.asarray(model_residuals(model)), lags=lags, ax=ax)
    ax.set_title("Residual Autocorrelation")
    return save_plot(plots_dir, model_name, "residual_acf")


def diagnostic_plots(model, table: pd.DataFrame, cfg: AnalysisConfig, model_name: str) -> Dict[str, str]:
    resid = model_residuals(model)
    label = "pearson_residuals" if is_glm(model) else "residuals"
    plots = {
        "residuals_vs_fitted": plot_residuals_vs_fitted(
            model.fittedvalues, resid, cfg.plots_dir, model_name,
            ylabel="Pearson Residuals" if is_glm(model) else "Residuals",
        ),
        "qqplot": plot_qq(table["studentized"], cfg.plots_dir, model_name, label),
        "scale_location": plot_scale_location(model.fittedvalues, table["studentized"], cfg.plots_dir, model_name),
        "residuals_vs_leverage": plot_residuals_vs_leverage(table, cfg.plots_dir, model_name),
        "cooks_distance": plot_cooks_distance(
            table, cfg.cooks_multiplier / len(table), cfg.plots_dir, model_name
        ),
        "residual_acf": plot_residual_acf(model, cfg.acf_lags, cfg.plots_dir, model_name),
    }
    return plots
