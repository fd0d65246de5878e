"""
pre_process.py

Bike Rental Regression Analysis – Loading, Validation and Train/Test Split

Reads the hourly bike-rental CSV and turns it into a typed modeling table:

- checks that the required columns exist
- coerces numerics and counts malformed values per column
- drops malformed / incomplete rows
- derives the time-of-day slot from the hour
- replaces numeric codes with readable, ordered category labels
- optionally adds real-unit weather columns
- splits the table 80/20 into train and test partitions
"""
from typing import Dict, List, Tuple

import pandas as pd
from sklearn.model_selection import train_test_split

from .config import AnalysisConfig


# ---------------------------------------------------------
# Schema
# ---------------------------------------------------------

REQUIRED_COLUMNS = [
    "season", "mnth", "weekday", "workingday", "holiday", "weathersit",
    "temp", "atemp", "hum", "windspeed", "cnt",
]

SEASON_LABELS = {1: "spring", 2: "summer", 3: "fall", 4: "winter"}
WEATHER_LABELS = {1: "clear", 2: "mist", 3: "light_precip", 4: "heavy_precip"}
WEEKDAY_LABELS = {0: "Sun", 1: "Mon", 2: "Tue", 3: "Wed", 4: "Thu", 5: "Fri", 6: "Sat"}
MONTH_LABELS = {
    1: "Jan", 2: "Feb", 3: "Mar", 4: "Apr", 5: "May", 6: "Jun",
    7: "Jul", 8: "Aug", 9: "Sep", 10: "Oct", 11: "Nov", 12: "Dec",
}

# (first hour, last hour, label)
TIME_SLOTS = [
    (0, 5, "night"),
    (6, 9, "morning"),
    (10, 15, "midday"),
    (16, 19, "evening"),
    (20, 23, "late"),
]
TIME_SLOT_LABELS = [label for _, _, label in TIME_SLOTS]

# Documented normalization constants of the hourly dataset
REAL_UNIT_SCALES = {
    "temp": ("temp_c", 41.0),
    "atemp": ("atemp_c", 50.0),
    "hum": ("hum_pct", 100.0),
    "windspeed": ("windspeed_kmh", 67.0),
}

VALIDATION_RULES = {
    "season":     ("cat",   set(SEASON_LABELS)),
    "yr":         ("cat",   {0, 1}),
    "mnth":       ("cat",   set(MONTH_LABELS)),
    "hr":         ("int",   (0, 23)),
    "holiday":    ("cat",   {0, 1}),
    "weekday":    ("cat",   set(WEEKDAY_LABELS)),
    "workingday": ("cat",   {0, 1}),
    "weathersit": ("cat",   set(WEATHER_LABELS)),
    "temp":       ("float", (0, 1)),
    "atemp":      ("float", (0, 1)),
    "hum":        ("float", (0, 1)),
    "windspeed":  ("float", (0, 1)),
    "casual":     ("int",   (0, None)),
    "registered": ("int",   (0, None)),
    "cnt":        ("int",   (0, None)),
}


# ---------------------------------------------------------
# Helpers
# ---------------------------------------------------------

def derive_time_slot(hours) -> pd.Series:
    """Map hour-of-day values (0..23) onto the five time slots."""
    hours = pd.Series(hours)
    if hours.isna().any() or ((hours < 0) | (hours > 23)).any():
        raise ValueError("Hours must lie in 0..23 to derive a time slot.")

    bins = [TIME_SLOTS[0][0] - 1] + [last for _, last, _ in TIME_SLOTS]
    slots = pd.cut(hours, bins=bins, labels=TIME_SLOT_LABELS)
    return slots.astype(pd.CategoricalDtype(TIME_SLOT_LABELS, ordered=False))


def _malformed_mask(s: pd.Series, kind: str, rule) -> pd.Series:
    if kind == "cat":
        return ~s.isin(rule) & s.notna()

    lo, hi = rule
    bad = pd.Series(False, index=s.index)
    if lo is not None:
        bad |= s < lo
    if hi is not None:
        bad |= s > hi
    if kind == "int":
        bad |= (s % 1 != 0)
    return bad & s.notna()


def validate_records(df: pd.DataFrame) -> Dict[str, int]:
    """
    Count malformed values per column against VALIDATION_RULES.
    Expects numeric columns to be coerced already.
    """
    report = {}
    for col, (kind, rule) in VALIDATION_RULES.items():
        if col not in df.columns:
            continue
        report[col] = int(_malformed_mask(df[col], kind, rule).sum())
    return report


def _label_categorical(s: pd.Series, labels: Dict[int, str]) -> pd.Series:
    mapped = s.astype(int).map(labels)
    return mapped.astype(pd.CategoricalDtype(list(labels.values()), ordered=False))


# ---------------------------------------------------------
# Load
# ---------------------------------------------------------

def load_dataset(path: str, cfg: AnalysisConfig) -> pd.DataFrame:
    df = pd.read_csv(path, low_memory=False)
    df.columns = [c.strip() for c in df.columns]

    print("\n=== Loaded dataset ===")
    print(f"Shape: {df.shape}")
    print(df.columns.tolist())

    missing = [c for c in REQUIRED_COLUMNS if c not in df.columns]
    if "hr" not in df.columns and "time_slot" not in df.columns:
        missing.append("hr")
    if missing:
        raise KeyError(f"Required columns not found in dataset: {missing}")

    return prepare_dataset(df, cfg)


def prepare_dataset(df: pd.DataFrame, cfg: AnalysisConfig) -> pd.DataFrame:
    df = df.copy()

    # 1) Coerce numerics
    for col, (kind, _) in VALIDATION_RULES.items():
        if col in df.columns:
            df[col] = pd.to_numeric(df[col], errors="coerce")

    if "dteday" in df.columns:
        df["dteday"] = pd.to_datetime(df["dteday"], errors="coerce")

    if "time_slot" in df.columns:
        slots = df["time_slot"].astype("string").str.strip().str.lower()
        df["time_slot"] = slots.replace("", pd.NA).astype(object)

    # 2) Malformed values
    malformed = pd.Series(False, index=df.index)
    for col, (kind, rule) in VALIDATION_RULES.items():
        if col in df.columns:
            malformed |= _malformed_mask(df[col], kind, rule)

    report = validate_records(df)
    print("\n=== MALFORMED VALUE SUMMARY ===")
    print(pd.Series(report, dtype="int64").sort_values(ascending=False).to_string())

    if malformed.any():
        print(f"[WARNING] Dropping {int(malformed.sum())} rows with malformed values.")
        df = df.loc[~malformed]

    # 3) Incomplete rows (model columns only)
    model_cols = [c for c in REQUIRED_COLUMNS + ["hr", "time_slot"] if c in df.columns]
    incomplete = df[model_cols].isna().any(axis=1)
    if incomplete.any():
        print(f"[WARNING] Dropping {int(incomplete.sum())} rows with missing model values.")
        df = df.loc[~incomplete]

    if df.empty:
        raise ValueError("No usable rows left after validation.")

    # 4) Keep time order for residual autocorrelation checks
    order_cols = [c for c in ["dteday", "hr"] if c in df.columns]
    if order_cols:
        df = df.sort_values(order_cols, kind="mergesort")
    df = df.reset_index(drop=True)

    # 5) Derived and typed columns
    if "time_slot" in df.columns:
        slots = df["time_slot"]
        if slots.isin(TIME_SLOT_LABELS).all():
            levels = TIME_SLOT_LABELS
        else:
            levels = sorted(slots.unique())
        df["time_slot"] = slots.astype(pd.CategoricalDtype(levels))
    else:
        df["time_slot"] = derive_time_slot(df["hr"].astype(int))

    df["season"] = _label_categorical(df["season"], SEASON_LABELS)
    df["weathersit"] = _label_categorical(df["weathersit"], WEATHER_LABELS)
    df["weekday"] = _label_categorical(df["weekday"], WEEKDAY_LABELS)
    df["mnth"] = _label_categorical(df["mnth"], MONTH_LABELS)

    for flag in ["workingday", "holiday"]:
        df[flag] = df[flag].astype(int).astype(pd.CategoricalDtype([0, 1]))

    df[cfg.target_col] = df[cfg.target_col].astype(int)

    if cfg.add_real_units:
        for col, (new_col, scale) in REAL_UNIT_SCALES.items():
            df[new_col] = df[col] * scale

    print(f"\n[INFO] Prepared {len(df)} hourly records.")
    return df


# ---------------------------------------------------------
# Split
# ---------------------------------------------------------

def align_categories(train: pd.DataFrame, test: pd.DataFrame,
                     columns: List[str]) -> Tuple[pd.DataFrame, pd.DataFrame]:
    """
    Restrict every categorical column to the levels seen in training and drop
    test rows carrying a level the models never saw.
    """
    train = train.copy()
    test = test.copy()

    unseen = pd.Series(False, index=test.index)
    for col in columns:
        if col not in train.columns or not isinstance(train[col].dtype, pd.CategoricalDtype):
            continue
        train[col] = train[col].cat.remove_unused_categories()
        seen = list(train[col].cat.categories)
        unseen |= ~test[col].isin(seen)
        test[col] = test[col].cat.set_categories(seen)

    if unseen.any():
        print(f"[WARNING] Dropping {int(unseen.sum())} test rows with levels unseen in training.")
        test = test.loc[~unseen]

    return train, test


def split_train_test(df: pd.DataFrame, cfg: AnalysisConfig) -> Tuple[pd.DataFrame, pd.DataFrame]:
    train, test = train_test_split(
        df, test_size=cfg.test_size, random_state=cfg.random_state
    )

    # Back into time order
    train = train.sort_index()
    test = test.sort_index()

    train, test = align_categories(train, test, cfg.categorical_features)

    print("\n=== TRAIN / TEST SPLIT ===")
    print(f"Train rows: {len(train)} | Test rows: {len(test)} "
          f"(test_size={cfg.test_size}, seed={cfg.random_state})")
    return train, test

