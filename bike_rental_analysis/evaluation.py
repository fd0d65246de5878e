"""
evaluation.py

Bike Rental Regression Analysis – Model Comparison

Predictions are compared on the rental-count scale: the linear model is fitted
on sqrt(cnt), so its predictions are squared back (negative square-root
predictions are clipped at zero first). AIC/BIC come from the training fits;
for the linear model they refer to the square-root scale and are not directly
comparable with the count model's values.
"""
from typing import Dict

import numpy as np
import pandas as pd

from .diagnostics import is_glm
from .plotting import plot_predicted_vs_actual
from .selection import information_criterion, n_parameters


def mse(y_true, y_pred) -> float:
    y_true = np.asarray(y_true, dtype=float)
    y_pred = np.asarray(y_pred, dtype=float)
    return float(np.mean((y_true - y_pred) ** 2))


def rmse(y_true, y_pred) -> float:
    return float(np.sqrt(mse(y_true, y_pred)))


def mae(y_true, y_pred) -> float:
    y_true = np.asarray(y_true, dtype=float)
    y_pred = np.asarray(y_pred, dtype=float)
    return float(np.mean(np.abs(y_true - y_pred)))


def predict_counts(model, data: pd.DataFrame) -> np.ndarray:
    pred = np.asarray(model.predict(data), dtype=float)
    if is_glm(model):
        return pred
    return np.clip(pred, 0.0, None) ** 2


def compare_models(models: Dict[str, object], train: pd.DataFrame, test: pd.DataFrame,
                   target: str) -> pd.DataFrame:
    rows = []
    for name, model in models.items():
        train_pred = predict_counts(model, train)
        test_pred = predict_counts(model, test)
        rows.append({
            "model": name,
            "scale": "count" if is_glm(model) else "sqrt(count)",
            "n_params": n_parameters(model),
            "train_mse": mse(train[target], train_pred),
            "test_mse": mse(test[target], test_pred),
            "test_rmse": rmse(test[target], test_pred),
            "test_mae": mae(test[target], test_pred),
            "aic": information_criterion(model, "aic"),
            "bic": information_criterion(model, "bic"),
        })

    table = pd.DataFrame(rows).set_index("model")

    print("\n=== MODEL COMPARISON ===")
    print(table.round(3).to_string())
    return table


def prediction_plots(models: Dict[str, object], test: pd.DataFrame, target: str,
                     plots_dir: str) -> Dict[str, str]:
    plots = {}
    for name, model in models.items():
        plots[name] = plot_predicted_vs_actual(
            test[target], predict_counts(model, test), plots_dir, name,
            f"Predicted vs Actual – {name} (test set)",
        )
    return plots
