"""
config.py

Bike Rental Regression Analysis – Configuration

Holds the analysis settings (paths, columns, split, model and diagnostic
options) in a single dataclass so that the pipeline, the CLI and the tests
share one source of defaults.
"""
import os
from dataclasses import dataclass, field
from typing import List


GLM_FAMILIES = ("poisson", "negative_binomial", "auto")
CRITERIA = ("aic", "bic")
DIRECTIONS = ("both", "forward", "backward")


# ------------------------------------------------------------
# 1. ANALYSIS CONFIGURATION
# ------------------------------------------------------------

@dataclass
class AnalysisConfig:
    input_path: str = "hour.csv"
    output_dir: str = "bike_rental_results"

    target_col: str = "cnt"

    categorical_features: List[str] = field(default_factory=lambda: [
        "season",
        "mnth",
        "weekday",
        "time_slot",
        "weathersit",
        "workingday",
        "holiday",
    ])

    continuous_features: List[str] = field(default_factory=lambda: [
        "temp",
        "atemp",
        "hum",
        "windspeed",
    ])

    # Train/test split
    test_size: float = 0.2
    random_state: int = 42

    # Count model
    glm_family: str = "auto"
    dispersion_threshold: float = 1.5
    glm_maxiter: int = 100

    # Stepwise selection
    criterion: str = "aic"
    direction: str = "both"

    # Diagnostics
    alpha: float = 0.05
    studentized_cutoff: float = 3.0
    cooks_multiplier: float = 4.0
    acf_lags: int = 24

    build_profile: bool = False
    add_real_units: bool = True

    def __post_init__(self):
        if self.glm_family not in GLM_FAMILIES:
            raise ValueError(f"Unknown GLM family '{self.glm_family}'. Expected one of {GLM_FAMILIES}.")
        if self.criterion not in CRITERIA:
            raise ValueError(f"Unknown criterion '{self.criterion}'. Expected one of {CRITERIA}.")
        if self.direction not in DIRECTIONS:
            raise ValueError(f"Unknown direction '{self.direction}'. Expected one of {DIRECTIONS}.")
        if not 0.0 < self.test_size < 1.0:
            raise ValueError(f"test_size must lie strictly between 0 and 1, got {self.test_size}.")

    @property
    def plots_dir(self) -> str:
        return os.path.join(self.output_dir, "plots")

    @property
    def results_dir(self) -> str:
        return os.path.join(self.output_dir, "results")

    @property
    def predictors(self) -> List[str]:
        return self.categorical_features + self.continuous_features


def ensure_output_dirs(cfg: AnalysisConfig) -> None:
    os.makedirs(cfg.output_dir, exist_ok=True)
    os.makedirs(cfg.plots_dir, exist_ok=True)
    os.makedirs(cfg.results_dir, exist_ok=True)
