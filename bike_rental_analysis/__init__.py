"""
Bike Rental Regression Analysis

Linear and count regression models for hourly bike rentals: a linear model on
the square-root of the rental count and a log-link GLM on the raw count, with
stepwise selection, ANOVA, likelihood-ratio tests, influence and
autocorrelation diagnostics, model comparison and a rendered report.
"""
from .config import AnalysisConfig
from .pipeline import AnalysisResults, run_analysis

__all__ = ["AnalysisConfig", "AnalysisResults", "run_analysis"]

__version__ = "1.0.0"
