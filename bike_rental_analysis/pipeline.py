"""
pipeline.py

Bike Rental Regression Analysis – End-to-End Run

Linear sequence: load → explore → split → LM (+ stepwise, ANOVA) →
count GLM (+ dispersion, drop-one LRT, stepwise, LRT) → diagnostics →
model comparison → report. All tables are written as CSV into
<output_dir>/results and all figures into <output_dir>/plots.
"""
import os
from dataclasses import dataclass, field
from typing import Dict, Optional

import pandas as pd

from .config import AnalysisConfig, ensure_output_dirs
from .diagnostics import (
    autocorrelation_tests,
    diagnostic_plots,
    heteroscedasticity_test,
    influence_table,
    outlier_summary,
    refit_without_influential,
    variance_inflation,
)
from .evaluation import compare_models, prediction_plots
from .exploration import run_exploration
from .modeling import (
    GLM_NAME,
    LM_NAME,
    coefficient_table,
    count_fitter,
    default_terms,
    dispersion_statistic,
    family_name,
    fit_count_model,
    fit_linear_model,
    fit_statistics,
    linear_fitter,
    save_model_summary,
)
from .pre_process import load_dataset, split_train_test
from .report import render_report
from .selection import (
    anova_table,
    compare_nested_ols,
    drop1_lrt,
    likelihood_ratio_test,
    stepwise_selection,
)


@dataclass
class AnalysisResults:
    config: AnalysisConfig
    n_rows: int = 0
    n_train: int = 0
    n_test: int = 0
    exploration: Dict = field(default_factory=dict)
    models: Dict[str, object] = field(default_factory=dict)
    tables: Dict[str, pd.DataFrame] = field(default_factory=dict)
    stats: Dict[str, pd.Series] = field(default_factory=dict)
    plots: Dict[str, Dict[str, str]] = field(default_factory=dict)
    summaries: Dict[str, str] = field(default_factory=dict)
    glm_family: str = ""
    glm_dispersion: float = float("nan")
    report_path: Optional[str] = None


def _is_nested(selected_terms, full_terms, selected_model, full_model) -> bool:
    """Selected terms are a subset of the full terms and drop at least one parameter."""
    return (set(selected_terms) <= set(full_terms)
            and round(full_model.df_model - selected_model.df_model) > 0)


def _save_table(table, cfg: AnalysisConfig, name: str) -> None:
    table.to_csv(os.path.join(cfg.results_dir, f"{name}.csv"))


def run_linear_model(train: pd.DataFrame, cfg: AnalysisConfig, results: AnalysisResults) -> None:
    print("\n=== LINEAR MODEL: sqrt(cnt) ===")
    terms = default_terms(cfg)
    fit = linear_fitter(cfg)

    lm_full = fit_linear_model(train, cfg, terms)
    print(lm_full.summary())
    results.summaries["lm_full"] = save_model_summary(lm_full, f"{LM_NAME}_full", cfg)
    results.tables["lm_coefficients"] = coefficient_table(lm_full)
    results.tables["lm_anova"] = anova_table(lm_full)
    print("\n=== ANOVA (sequential): linear model ===")
    print(results.tables["lm_anova"])

    print(f"\n=== STEPWISE SELECTION: linear model ({cfg.direction}, {cfg.criterion.upper()}) ===")
    step = stepwise_selection(train, terms, fit, criterion=cfg.criterion, direction=cfg.direction)
    results.tables["lm_stepwise_history"] = step.history
    results.summaries["lm_stepwise"] = save_model_summary(step.model, f"{LM_NAME}_stepwise", cfg)
    print(f"Selected terms: {step.terms}")

    if _is_nested(step.terms, terms, step.model, lm_full):
        results.tables["lm_nested_ftest"] = compare_nested_ols(step.model, lm_full)
        results.stats["lm_lrt"] = likelihood_ratio_test(step.model, lm_full)

    results.models["lm_full"] = lm_full
    results.models["lm_stepwise"] = step.model
    results.tables["lm_fit_statistics"] = pd.DataFrame({
        "full": fit_statistics(lm_full),
        "stepwise": fit_statistics(step.model),
    })
    results.tables["lm_selected_terms"] = pd.DataFrame({"term": step.terms})


def run_count_model(train: pd.DataFrame, cfg: AnalysisConfig, results: AnalysisResults) -> None:
    print("\n=== COUNT MODEL: GLM with log link ===")
    terms = default_terms(cfg)

    glm_full = fit_count_model(train, cfg, terms)
    results.glm_family = family_name(glm_full)
    results.glm_dispersion = dispersion_statistic(glm_full)
    print(glm_full.summary())
    print(f"[INFO] {results.glm_family} dispersion statistic: {results.glm_dispersion:.3f}")
    results.summaries["glm_full"] = save_model_summary(glm_full, f"{GLM_NAME}_full", cfg)
    results.tables["glm_coefficients"] = coefficient_table(glm_full, exponentiate=True)

    fit = count_fitter(cfg, glm_full.model.family)

    glm_null = fit(train, [])
    results.stats["glm_overall_lrt"] = likelihood_ratio_test(glm_null, glm_full)

    print("\n=== ANALYSIS OF DEVIANCE (drop-one LRT): count model ===")
    results.tables["glm_drop1"] = drop1_lrt(train, terms, fit, full_model=glm_full)
    print(results.tables["glm_drop1"])

    print(f"\n=== STEPWISE SELECTION: count model ({cfg.direction}, {cfg.criterion.upper()}) ===")
    step = stepwise_selection(train, terms, fit, criterion=cfg.criterion, direction=cfg.direction)
    results.tables["glm_stepwise_history"] = step.history
    results.summaries["glm_stepwise"] = save_model_summary(step.model, f"{GLM_NAME}_stepwise", cfg)
    print(f"Selected terms: {step.terms}")

    if _is_nested(step.terms, terms, step.model, glm_full):
        results.stats["glm_stepwise_lrt"] = likelihood_ratio_test(step.model, glm_full)

    results.models["glm_full"] = glm_full
    results.models["glm_stepwise"] = step.model
    results.tables["glm_fit_statistics"] = pd.DataFrame({
        "full": fit_statistics(glm_full),
        "stepwise": fit_statistics(step.model),
    })
    results.tables["glm_selected_terms"] = pd.DataFrame({"term": step.terms})


def run_diagnostics(train: pd.DataFrame, cfg: AnalysisConfig, results: AnalysisResults) -> None:
    print("\n=== REGRESSION DIAGNOSTICS ===")

    for key, model_name in [("lm_stepwise", f"{LM_NAME}_diagnostics"),
                            ("glm_stepwise", f"{GLM_NAME}_diagnostics")]:
        model = results.models[key]
        table = influence_table(model, cfg)
        summary = outlier_summary(table)

        results.tables[f"{key}_influence_top"] = summary["top"]
        results.stats[f"{key}_outliers"] = summary["counts"]
        results.stats[f"{key}_autocorrelation"] = autocorrelation_tests(model, cfg.acf_lags)
        results.plots[model_name] = diagnostic_plots(model, table, cfg, model_name)

        print(f"\n{key}:")
        print(summary["counts"].to_string())
        print(results.stats[f"{key}_autocorrelation"].to_string())

        if key == "lm_stepwise":
            if model.model.exog.shape[1] > 1:
                results.stats["lm_heteroscedasticity"] = heteroscedasticity_test(model)
            refit, removed = refit_without_influential(
                train, table, linear_fitter(cfg), results.tables["lm_selected_terms"]["term"].tolist()
            )
            results.models["lm_no_influential"] = refit
            results.stats["lm_no_influential"] = pd.Series({"removed": removed})

    results.tables["lm_vif"] = variance_inflation(results.models["lm_stepwise"])


def run_analysis(cfg: AnalysisConfig) -> AnalysisResults:
    ensure_output_dirs(cfg)
    results = AnalysisResults(config=cfg)

    df = load_dataset(cfg.input_path, cfg)
    results.n_rows = len(df)
    results.exploration = run_exploration(df, cfg)
    results.plots["eda"] = results.exploration["plots"]

    train, test = split_train_test(df, cfg)
    results.n_train, results.n_test = len(train), len(test)

    run_linear_model(train, cfg, results)
    run_count_model(train, cfg, results)
    run_diagnostics(train, cfg, results)

    comparison_models = {
        name: results.models[name]
        for name in ["lm_full", "lm_stepwise", "lm_no_influential", "glm_full", "glm_stepwise"]
        if name in results.models
    }
    results.tables["model_comparison"] = compare_models(comparison_models, train, test, cfg.target_col)
    results.plots["predictions"] = prediction_plots(comparison_models, test, cfg.target_col, cfg.plots_dir)

    for name, table in results.tables.items():
        _save_table(table, cfg, name)
    for name, series in results.stats.items():
        _save_table(series.to_frame("value"), cfg, name)

    results.report_path = render_report(results)

    print("\n=== ANALYSIS COMPLETE ===")
    print(f"Results saved to: {cfg.results_dir}")
    print(f"Plots saved to:   {cfg.plots_dir}")
    print(f"Report:           {results.report_path}")
    return results
