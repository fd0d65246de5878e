"""
modeling.py

Bike Rental Regression Analysis – Linear and Count Models

Models included:
- Linear Model (OLS) on the square-root of the hourly rental count
- Generalized Linear Model for the raw count with a log link
  (Poisson, or Negative Binomial when the Poisson fit is overdispersed)

Categorical predictors enter the Patsy formulas through C(...) so the
pandas category order sets the reference level.
"""
import os
from typing import Callable, List, Optional

import numpy as np
import pandas as pd
import statsmodels.api as sm
import statsmodels.formula.api as smf

from .config import AnalysisConfig
from .selection import information_criterion, n_parameters

LM_NAME = "linear_model"
GLM_NAME = "count_model"


# ---------------------------------------------------------------------------
# 0. FORMULAS
# ---------------------------------------------------------------------------

def build_terms(categorical: List[str], continuous: List[str]) -> List[str]:
    return [f"C({c})" for c in categorical] + list(continuous)


def build_formula(response: str, terms: List[str]) -> str:
    rhs = " + ".join(terms) if terms else "1"
    return f"{response} ~ {rhs}"


def lm_response(cfg: AnalysisConfig) -> str:
    return f"np.sqrt({cfg.target_col})"


def default_terms(cfg: AnalysisConfig) -> List[str]:
    return build_terms(cfg.categorical_features, cfg.continuous_features)


# ---------------------------------------------------------------------------
# 1. LINEAR MODEL – sqrt(cnt)
# ---------------------------------------------------------------------------

def fit_linear_model(data: pd.DataFrame, cfg: AnalysisConfig, terms: Optional[List[str]] = None):
    terms = default_terms(cfg) if terms is None else terms
    formula = build_formula(lm_response(cfg), terms)
    return smf.ols(formula, data=data).fit()


def linear_fitter(cfg: AnalysisConfig) -> Callable:
    def fit(data, terms):
        return fit_linear_model(data, cfg, terms)
    return fit


# ---------------------------------------------------------------------------
# 2. COUNT MODEL – GLM with log link
# ---------------------------------------------------------------------------

def dispersion_statistic(glm_result) -> float:
    """Pearson chi-square over residual degrees of freedom."""
    return float(glm_result.pearson_chi2 / glm_result.df_resid)


def estimate_nb_alpha(poisson_result) -> float:
    """
    Auxiliary OLS estimate of the Negative Binomial (NB2) alpha:
    ((y - mu)^2 - y) / mu regressed on mu without intercept.
    """
    y = np.asarray(poisson_result.model.endog, dtype=float)
    mu = np.asarray(poisson_result.fittedvalues, dtype=float)
    aux_y = ((y - mu) ** 2 - y) / mu
    aux = sm.OLS(aux_y, mu).fit()
    return float(max(aux.params[0], 1e-6))


def family_name(glm_result) -> str:
    return type(glm_result.model.family).__name__


def _fit_glm(data, cfg, terms, family):
    formula = build_formula(cfg.target_col, terms)
    result = smf.glm(formula, data=data, family=family).fit(maxiter=cfg.glm_maxiter)
    if not getattr(result, "converged", True):
        print(f"[WARNING] GLM ({type(family).__name__}) did not converge for: {formula}")
    return result


def fit_count_model(data: pd.DataFrame, cfg: AnalysisConfig,
                    terms: Optional[List[str]] = None, family: Optional[str] = None):
    """
    Fit the count GLM. With family 'auto' a Poisson model is fitted first and
    replaced by a Negative Binomial model when the Pearson dispersion exceeds
    cfg.dispersion_threshold.
    """
    terms = default_terms(cfg) if terms is None else terms
    family = cfg.glm_family if family is None else family

    if family == "poisson":
        return _fit_glm(data, cfg, terms, sm.families.Poisson())

    poisson_model = _fit_glm(data, cfg, terms, sm.families.Poisson())
    dispersion = dispersion_statistic(poisson_model)

    if family == "auto":
        print(f"\n[INFO] Poisson dispersion statistic: {dispersion:.3f}")
        if dispersion <= cfg.dispersion_threshold:
            return poisson_model
        print("[INFO] Overdispersion detected, refitting as Negative Binomial.")
    elif family != "negative_binomial":
        raise ValueError(f"Unknown GLM family '{family}'.")

    alpha = estimate_nb_alpha(poisson_model)
    print(f"[INFO] Negative Binomial alpha (auxiliary OLS): {alpha:.4f}")
    return _fit_glm(data, cfg, terms, sm.families.NegativeBinomial(alpha=alpha))


def count_fitter(cfg: AnalysisConfig, glm_family) -> Callable:
    """Fitter that keeps the family (and NB alpha) of an already fitted GLM fixed."""
    def fit(data, terms):
        return _fit_glm(data, cfg, terms, glm_family)
    return fit


# ---------------------------------------------------------------------------
# 3. TABLES / SUMMARIES
# ---------------------------------------------------------------------------

def coefficient_table(model, exponentiate: bool = False) -> pd.DataFrame:
    ci = model.conf_int()
    table = pd.DataFrame({
        "coef": model.params,
        "std_err": model.bse,
        "stat": model.tvalues,
        "p_value": model.pvalues,
        "ci_low": ci[0],
        "ci_high": ci[1],
    })
    if exponentiate:
        table["rate_ratio"] = np.exp(table["coef"])
    return table


def save_model_summary(model, model_name: str, cfg: AnalysisConfig) -> str:
    summary_path = os.path.join(cfg.results_dir, f"{model_name}_summary.txt")
    with open(summary_path, "w") as f:
        f.write(model.summary().as_text())
    return summary_path


def fit_statistics(model) -> pd.Series:
    """Goodness-of-fit figures shown next to the saved model summary."""
    stats = {
        "nobs": int(model.nobs),
        "n_params": n_parameters(model),
        "log_likelihood": float(model.llf),
        "aic": information_criterion(model, "aic"),
        "bic": information_criterion(model, "bic"),
    }
    if hasattr(model, "rsquared"):
        stats.update({
            "r_squared": float(model.rsquared),
            "adj_r_squared": float(model.rsquared_adj),
            "f_statistic": float(model.fvalue),
            "f_p_value": float(model.f_pvalue),
        })
    else:
        stats.update({
            "deviance": float(model.deviance),
            "null_deviance": float(model.null_deviance),
            "pearson_chi2": float(model.pearson_chi2),
            "df_resid": float(model.df_resid),
        })
    return pd.Series(stats)
