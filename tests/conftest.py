import numpy as np
import pandas as pd
import pytest

from bike_rental_analysis.config import AnalysisConfig
from bike_rental_analysis.pipeline import run_analysis
from bike_rental_analysis.pre_process import prepare_dataset, split_train_test

SLOT_EFFECT = {"night": -1.6, "morning": 0.4, "midday": 0.2, "evening": 0.6, "late": -0.3}


def make_hourly_frame(n_days=120, seed=7):
    """
    Hourly rentals in the public bike-sharing schema, drawn from a
    gamma-mixed Poisson (overdispersed) log-linear process.
    """
    rng = np.random.default_rng(seed)
    days = pd.date_range("2011-01-01", "2011-12-31", periods=n_days).normalize()

    day_idx = np.repeat(np.arange(n_days), 24)
    hr = np.tile(np.arange(24), n_days)
    d = days[day_idx]
    n = len(hr)

    weekday = ((d.dayofweek + 1) % 7).to_numpy()
    is_weekday = np.isin(weekday, [1, 2, 3, 4, 5])
    holiday_day = rng.random(n_days) < 0.04
    # consecutive sample days never both fall on a weekend
    holiday_day[[1, 2, n_days // 2, n_days // 2 + 1]] = True
    holiday = (holiday_day[day_idx] & is_weekday).astype(int)
    workingday = (is_weekday & (holiday == 0)).astype(int)
    season = ((d.month.to_numpy() % 12) // 3) + 1

    seasonal = 0.5 - 0.3 * np.cos(2 * np.pi * (d.dayofyear.to_numpy() - 15) / 365)
    temp = np.clip(seasonal + rng.normal(0, 0.06, n), 0.02, 0.98)
    atemp = np.clip(0.9 * temp + 0.03 + rng.normal(0, 0.02, n), 0.0, 1.0)
    hum = rng.uniform(0.25, 0.95, n)
    windspeed = np.clip(rng.beta(2, 8, n), 0, 1)
    weathersit = rng.choice([1, 2, 3], size=n, p=[0.6, 0.3, 0.1])

    slot = np.select(
        [hr <= 5, hr <= 9, hr <= 15, hr <= 19],
        ["night", "morning", "midday", "evening"],
        default="late",
    )
    slot_effect = np.array([SLOT_EFFECT[s] for s in slot])

    log_mu = (3.2 + slot_effect + 1.4 * temp - 0.9 * hum
              - 0.5 * (weathersit == 3) - 0.15 * (weathersit == 2)
              + 0.25 * workingday)
    cnt = rng.poisson(np.exp(log_mu) * rng.gamma(5.0, 1 / 5.0, n))
    registered = rng.binomial(cnt, 0.8)

    return pd.DataFrame({
        "instant": np.arange(1, n + 1),
        "dteday": d.strftime("%Y-%m-%d"),
        "season": season,
        "yr": 0,
        "mnth": d.month.to_numpy(),
        "hr": hr,
        "holiday": holiday,
        "weekday": weekday,
        "workingday": workingday,
        "weathersit": weathersit,
        "temp": temp.round(4),
        "atemp": atemp.round(4),
        "hum": hum.round(4),
        "windspeed": windspeed.round(4),
        "casual": cnt - registered,
        "registered": registered,
        "cnt": cnt,
    })


@pytest.fixture
def hourly_raw():
    return make_hourly_frame()


@pytest.fixture
def hourly_csv(tmp_path, hourly_raw):
    path = tmp_path / "hour.csv"
    hourly_raw.to_csv(path, index=False)
    return str(path)


@pytest.fixture
def cfg(tmp_path):
    cfg = AnalysisConfig(output_dir=str(tmp_path / "out"))
    return cfg


@pytest.fixture
def prepared(hourly_raw, cfg):
    return prepare_dataset(hourly_raw, cfg)


@pytest.fixture
def split(prepared, cfg):
    return split_train_test(prepared, cfg)


@pytest.fixture
def train(split):
    return split[0]


@pytest.fixture(scope="session")
def analysis_results(tmp_path_factory):
    root = tmp_path_factory.mktemp("analysis")
    path = root / "hour.csv"
    make_hourly_frame(n_days=40, seed=11).to_csv(path, index=False)
    cfg = AnalysisConfig(input_path=str(path), output_dir=str(root / "out"))
    return run_analysis(cfg)
