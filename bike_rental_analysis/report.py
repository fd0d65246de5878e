"""
report.py

Bike Rental Regression Analysis – Report Rendering

Writes <output_dir>/bike_rental_report.md: data overview, exploratory
figures, linear model, count model, selection and test results, diagnostics
and the model comparison. Tables are rendered with DataFrame.to_markdown and
figures are linked relative to the report.
"""
import os
from datetime import datetime

import pandas as pd

REPORT_FILE = "bike_rental_report.md"


def _table(f, table, floatfmt=".4g"):
    if isinstance(table, pd.Series):
        table = table.to_frame("value")
    f.write(table.to_markdown(floatfmt=floatfmt))
    f.write("\n\n")


def _figure(f, path, output_dir, caption):
    rel = os.path.relpath(path, output_dir).replace(os.sep, "/")
    f.write(f"![{caption}]({rel})\n\n")


def _summary_link(f, results, key, label):
    path = results.summaries.get(key)
    if path:
        rel = os.path.relpath(path, results.config.output_dir).replace(os.sep, "/")
        f.write(f"Full {label} summary: [{rel}]({rel})\n\n")


def _interpret(p_value, alpha, significant, not_significant):
    return significant if p_value < alpha else not_significant


def render_report(results) -> str:
    cfg = results.config
    out = cfg.output_dir
    report_path = os.path.join(out, REPORT_FILE)
    tables = results.tables
    stats = results.stats

    with open(report_path, "w", encoding="utf-8") as f:
        f.write("# Hourly Bike Rentals – Regression Analysis\n\n")
        f.write(f"*Generated on {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}*\n\n")

        # ------------------------------------------------------------
        # Data
        # ------------------------------------------------------------
        f.write("## Data\n\n")
        f.write(f"- Source: `{cfg.input_path}`\n")
        f.write(f"- Usable hourly records: {results.n_rows}\n")
        f.write(f"- Train / test rows: {results.n_train} / {results.n_test} "
                f"(test share {cfg.test_size:.0%}, seed {cfg.random_state})\n")
        f.write(f"- Categorical predictors: {', '.join(cfg.categorical_features)}\n")
        f.write(f"- Continuous predictors: {', '.join(cfg.continuous_features)}\n\n")

        f.write("### Numeric summary\n\n")
        _table(f, results.exploration["summary"], floatfmt=".3f")
        f.write(f"Variance-to-mean ratio of `{cfg.target_col}`: "
                f"{results.exploration['dispersion']:.2f} (1 for Poisson counts).\n\n")

        f.write("### Exploratory figures\n\n")
        for name, path in results.plots.get("eda", {}).items():
            _figure(f, path, out, name)
        if results.exploration.get("profile_path"):
            rel = os.path.relpath(results.exploration["profile_path"], out)
            f.write(f"Full data profile: [{rel}]({rel})\n\n")

        # ------------------------------------------------------------
        # Linear model
        # ------------------------------------------------------------
        f.write(f"## Linear model: sqrt({cfg.target_col})\n\n")
        f.write("### Fit statistics\n\n")
        _table(f, tables["lm_fit_statistics"])
        _summary_link(f, results, "lm_full", "full model")
        _summary_link(f, results, "lm_stepwise", "selected model")
        f.write("### Coefficients (full model)\n\n")
        _table(f, tables["lm_coefficients"])
        f.write("### ANOVA (sequential sums of squares)\n\n")
        _table(f, tables["lm_anova"])

        f.write(f"### Stepwise selection ({cfg.direction}, {cfg.criterion.upper()})\n\n")
        _table(f, tables["lm_stepwise_history"], floatfmt=".2f")
        f.write(f"Selected terms: {', '.join(tables['lm_selected_terms']['term']) or '(intercept only)'}\n\n")
        if "lm_nested_ftest" in tables:
            f.write("Nested F-test, selected vs full model:\n\n")
            _table(f, tables["lm_nested_ftest"])
        if "lm_lrt" in stats:
            f.write("Likelihood-ratio test, selected vs full model:\n\n")
            _table(f, stats["lm_lrt"])

        # ------------------------------------------------------------
        # Count model
        # ------------------------------------------------------------
        f.write(f"## Count model: {results.glm_family} GLM, log link\n\n")
        f.write(f"Pearson dispersion statistic: {results.glm_dispersion:.3f}"
                f" (threshold for switching to Negative Binomial: {cfg.dispersion_threshold}).\n\n")
        f.write("### Fit statistics\n\n")
        _table(f, tables["glm_fit_statistics"])
        _summary_link(f, results, "glm_full", "full model")
        _summary_link(f, results, "glm_stepwise", "selected model")
        f.write("### Coefficients (full model)\n\n")
        _table(f, tables["glm_coefficients"])

        overall = stats["glm_overall_lrt"]
        f.write("### Likelihood-ratio test against the intercept-only model\n\n")
        _table(f, overall)
        f.write(_interpret(overall["p_value"], cfg.alpha,
                           "The predictors jointly explain rental counts.",
                           "The predictors do not jointly improve on the intercept-only model.") + "\n\n")

        f.write("### Analysis of deviance (drop-one LRT)\n\n")
        _table(f, tables["glm_drop1"])

        f.write(f"### Stepwise selection ({cfg.direction}, {cfg.criterion.upper()})\n\n")
        _table(f, tables["glm_stepwise_history"], floatfmt=".2f")
        f.write(f"Selected terms: {', '.join(tables['glm_selected_terms']['term']) or '(intercept only)'}\n\n")
        if "glm_stepwise_lrt" in stats:
            f.write("Likelihood-ratio test, selected vs full model:\n\n")
            _table(f, stats["glm_stepwise_lrt"])

        # ------------------------------------------------------------
        # Diagnostics
        # ------------------------------------------------------------
        f.write("## Diagnostics\n\n")
        for key, label in [("lm_stepwise", "Linear model"), ("glm_stepwise", "Count model")]:
            f.write(f"### {label} (selected)\n\n")
            f.write("Outliers and influence "
                    f"(Cook's distance > {cfg.cooks_multiplier:g}/n, |studentized residual| > {cfg.studentized_cutoff:g}):\n\n")
            _table(f, stats[f"{key}_outliers"])

            auto = stats[f"{key}_autocorrelation"]
            f.write("Residual autocorrelation:\n\n")
            _table(f, auto)
            f.write(_interpret(auto["ljung_box_p"], cfg.alpha,
                               "Residuals are autocorrelated; observations are not independent in time.",
                               "No evidence of residual autocorrelation.") + "\n\n")

            f.write("Most influential observations:\n\n")
            _table(f, tables[f"{key}_influence_top"])

        if "lm_heteroscedasticity" in stats:
            f.write("### Heteroscedasticity (linear model, Breusch–Pagan)\n\n")
            _table(f, stats["lm_heteroscedasticity"])
        if "lm_no_influential" in stats:
            f.write(f"Linear model refitted without {int(stats['lm_no_influential']['removed'])} "
                    "influential observations; see `lm_no_influential` in the comparison below.\n\n")

        f.write("### Variance inflation factors (selected linear model design)\n\n")
        _table(f, tables["lm_vif"].set_index("variable"), floatfmt=".2f")

        for model_name, plots in results.plots.items():
            if not model_name.endswith("_diagnostics"):
                continue
            f.write(f"### Figures: {model_name}\n\n")
            for name, path in plots.items():
                _figure(f, path, out, name)

        # ------------------------------------------------------------
        # Comparison
        # ------------------------------------------------------------
        f.write("## Model comparison\n\n")
        f.write("Errors are on the rental-count scale (linear model predictions squared back). "
                "AIC/BIC come from the training fits; linear model values refer to the sqrt scale.\n\n")
        comparison = tables["model_comparison"]
        _table(f, comparison)
        best = comparison["test_mse"].idxmin()
        f.write(f"Lowest test MSE: **{best}** ({comparison.loc[best, 'test_mse']:.1f}).\n\n")

        for name, path in results.plots.get("predictions", {}).items():
            _figure(f, path, out, f"{name} predicted vs actual")

    print(f"\n[INFO] Report written to {report_path}")
    return report_path
