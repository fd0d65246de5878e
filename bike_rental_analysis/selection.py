"""
selection.py

Bike Rental Regression Analysis – Model Selection and Hypothesis Tests

- Stepwise term selection by AIC or BIC (backward, forward or both ways)
- Sequential ANOVA tables and nested-model F-tests for the linear model
- Likelihood-ratio tests between nested models
- Drop-one analysis of deviance for the count model
"""
from dataclasses import dataclass
from typing import Callable, List, Optional

import numpy as np
import pandas as pd
import statsmodels.api as sm
from scipy.stats import chi2
from tqdm import tqdm


# ------------------------------------------------------------
# 1. INFORMATION CRITERIA
# ------------------------------------------------------------

def n_parameters(model) -> int:
    """Estimated coefficients including the intercept."""
    return int(round(model.df_model)) + 1


def information_criterion(model, criterion: str = "aic") -> float:
    k = n_parameters(model)
    if criterion == "aic":
        return float(-2.0 * model.llf + 2.0 * k)
    if criterion == "bic":
        return float(-2.0 * model.llf + np.log(model.nobs) * k)
    raise ValueError(f"Unknown criterion '{criterion}'.")


# ------------------------------------------------------------
# 2. STEPWISE SELECTION
# ------------------------------------------------------------

@dataclass
class StepwiseResult:
    terms: List[str]
    model: object
    history: pd.DataFrame
    criterion: str


def stepwise_selection(data: pd.DataFrame, terms: List[str], fit: Callable,
                       criterion: str = "aic", direction: str = "both",
                       max_steps: int = 100, verbose: bool = True) -> StepwiseResult:
    """
    Greedy search over single-term additions/removals, taking the move that
    lowers the criterion most and stopping when no move lowers it.

    backward / both start from the full term list, forward from the
    intercept-only model. `fit(data, terms)` must return a fitted
    statsmodels result. Rank-deficient designs are fitted through the
    pseudo-inverse and scored by their rank; a candidate whose fit raises
    LinAlgError (e.g. SVD non-convergence) is skipped with a warning.
    """
    if direction not in ("both", "forward", "backward"):
        raise ValueError(f"Unknown direction '{direction}'.")

    current = [] if direction == "forward" else list(terms)
    current_model = fit(data, current)
    current_score = information_criterion(current_model, criterion)

    history = [{
        "step": 0,
        "action": "<start>",
        "n_terms": len(current),
        criterion: current_score,
    }]

    for step in range(1, max_steps + 1):
        candidates = []
        if direction in ("both", "backward"):
            for t in current:
                candidates.append((f"- {t}", [x for x in current if x != t]))
        if direction in ("both", "forward"):
            for t in terms:
                if t not in current:
                    candidates.append((f"+ {t}", current + [t]))

        best = None
        for action, cand_terms in tqdm(candidates, desc=f"step {step}", leave=False, disable=not verbose):
            try:
                model = fit(data, cand_terms)
            except np.linalg.LinAlgError as exc:
                print(f"[WARNING] Skipping candidate '{action}': {exc}")
                continue
            score = information_criterion(model, criterion)
            if best is None or score < best[0]:
                best = (score, action, cand_terms, model)

        if best is None or best[0] >= current_score:
            break

        current_score, action, current, current_model = best
        history.append({
            "step": step,
            "action": action,
            "n_terms": len(current),
            criterion: current_score,
        })
        if verbose:
            print(f"  step {step}: {action:<20s} {criterion.upper()}={current_score:.2f}")

    return StepwiseResult(
        terms=current,
        model=current_model,
        history=pd.DataFrame(history),
        criterion=criterion,
    )


# ------------------------------------------------------------
# 3. ANOVA (linear model)
# ------------------------------------------------------------

def anova_table(model, typ: int = 1) -> pd.DataFrame:
    """Sequential (Type I) sums of squares by default, in formula term order."""
    return sm.stats.anova_lm(model, typ=typ)


def compare_nested_ols(reduced, full) -> pd.DataFrame:
    """F-test between two nested OLS fits."""
    table = sm.stats.anova_lm(reduced, full)
    table.index = ["reduced", "full"]
    return table


# ------------------------------------------------------------
# 4. LIKELIHOOD-RATIO TESTS
# ------------------------------------------------------------

def likelihood_ratio_test(reduced, full) -> pd.Series:
    df_diff = int(round(full.df_model - reduced.df_model))
    if df_diff <= 0:
        raise ValueError(
            "Likelihood-ratio test needs the full model to have more parameters "
            f"than the reduced one (df difference = {df_diff})."
        )

    stat = max(2.0 * (full.llf - reduced.llf), 0.0)
    return pd.Series({
        "llf_reduced": float(reduced.llf),
        "llf_full": float(full.llf),
        "lr_stat": float(stat),
        "df": df_diff,
        "p_value": float(chi2.sf(stat, df_diff)),
    })


def drop1_lrt(data: pd.DataFrame, terms: List[str], fit: Callable,
              full_model: Optional[object] = None) -> pd.DataFrame:
    """Likelihood-ratio test for dropping each term from the model."""
    full_model = fit(data, terms) if full_model is None else full_model

    rows = []
    for t in terms:
        reduced = fit(data, [x for x in terms if x != t])
        if round(full_model.df_model - reduced.df_model) <= 0:
            # aliased with the remaining terms
            lrt = {"df": 0, "lr_stat": 0.0, "p_value": np.nan}
        else:
            lrt = likelihood_ratio_test(reduced, full_model)
        rows.append({
            "term": t,
            "df": int(lrt["df"]),
            "deviance": float(getattr(reduced, "deviance", np.nan)),
            "aic": information_criterion(reduced, "aic"),
            "lr_stat": lrt["lr_stat"],
            "p_value": lrt["p_value"],
        })

    return pd.DataFrame(rows).set_index("term")
