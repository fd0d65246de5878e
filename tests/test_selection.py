import numpy as np
import pytest
import statsmodels.api as sm

from bike_rental_analysis.modeling import count_fitter, fit_count_model, fit_linear_model, linear_fitter
from bike_rental_analysis.selection import (
    anova_table,
    compare_nested_ols,
    drop1_lrt,
    information_criterion,
    likelihood_ratio_test,
    n_parameters,
    stepwise_selection,
)


@pytest.fixture
def noisy_train(train):
    rng = np.random.default_rng(0)
    train = train.copy()
    train["noise"] = rng.normal(size=len(train))
    return train


def test_information_criterion_matches_statsmodels(train, cfg):
    model = fit_linear_model(train, cfg, ["C(time_slot)", "temp"])

    assert n_parameters(model) == len(model.params)
    assert information_criterion(model, "aic") == pytest.approx(model.aic)
    assert information_criterion(model, "bic") == pytest.approx(model.bic)


def test_information_criterion_counts_rank_not_columns(train, cfg):
    # workingday is fixed by weekday and holiday
    model = fit_linear_model(train, cfg, ["C(weekday)", "C(holiday)", "C(workingday)"])
    assert n_parameters(model) == len(model.params) - 1


def test_unknown_criterion(train, cfg):
    model = fit_linear_model(train, cfg, ["temp"])
    with pytest.raises(ValueError):
        information_criterion(model, "hqic")


def test_forward_selection_skips_noise(noisy_train, cfg):
    terms = ["C(time_slot)", "temp", "noise"]
    result = stepwise_selection(noisy_train, terms, linear_fitter(cfg),
                                criterion="bic", direction="forward", verbose=False)

    assert "C(time_slot)" in result.terms
    assert "temp" in result.terms
    assert "noise" not in result.terms
    assert result.history["action"].iloc[0] == "<start>"
    assert result.history["n_terms"].iloc[0] == 0


@pytest.mark.parametrize("direction", ["both", "backward"])
def test_stepwise_never_worsens_criterion(noisy_train, cfg, direction):
    terms = ["C(time_slot)", "C(weathersit)", "temp", "hum", "noise"]
    fit = linear_fitter(cfg)
    result = stepwise_selection(noisy_train, terms, fit, criterion="aic",
                                direction=direction, verbose=False)

    scores = result.history["aic"]
    assert scores.is_monotonic_decreasing
    assert scores.iloc[-1] <= information_criterion(fit(noisy_train, terms), "aic")
    assert information_criterion(result.model, "aic") == pytest.approx(scores.iloc[-1])
    assert set(result.terms) <= set(terms)


def test_stepwise_count_model(train, cfg):
    terms = ["C(time_slot)", "temp", "windspeed"]
    fit = count_fitter(cfg, sm.families.Poisson())
    result = stepwise_selection(train, terms, fit, criterion="aic", direction="both", verbose=False)

    assert "C(time_slot)" in result.terms
    assert "temp" in result.terms
    assert result.criterion == "aic"


def test_stepwise_rejects_unknown_direction(train, cfg):
    with pytest.raises(ValueError):
        stepwise_selection(train, ["temp"], linear_fitter(cfg), direction="sideways")


def test_anova_table_lists_terms(train, cfg):
    model = fit_linear_model(train, cfg, ["C(time_slot)", "temp", "hum"])
    table = anova_table(model)

    assert list(table.index) == ["C(time_slot)", "temp", "hum", "Residual"]
    assert table.loc["C(time_slot)", "df"] == 4
    assert table.loc["temp", "PR(>F)"] < 0.05


def test_compare_nested_ols(train, cfg):
    reduced = fit_linear_model(train, cfg, ["temp"])
    full = fit_linear_model(train, cfg, ["temp", "C(time_slot)"])
    table = compare_nested_ols(reduced, full)

    assert list(table.index) == ["reduced", "full"]
    assert table.loc["full", "df_diff"] == 4
    assert table.loc["full", "Pr(>F)"] < 0.05


def test_likelihood_ratio_test(train, cfg):
    reduced = fit_count_model(train, cfg, ["temp"], family="poisson")
    full = fit_count_model(train, cfg, ["temp", "hum"], family="poisson")
    lrt = likelihood_ratio_test(reduced, full)

    assert lrt["df"] == 1
    assert lrt["lr_stat"] >= 0
    assert lrt["lr_stat"] == pytest.approx(2 * (full.llf - reduced.llf))
    assert 0 <= lrt["p_value"] <= 1


def test_likelihood_ratio_test_needs_nested_order(train, cfg):
    reduced = fit_count_model(train, cfg, ["temp"], family="poisson")
    full = fit_count_model(train, cfg, ["temp", "hum"], family="poisson")

    with pytest.raises(ValueError):
        likelihood_ratio_test(full, reduced)
    with pytest.raises(ValueError):
        likelihood_ratio_test(full, full)


def test_drop1_lrt(train, cfg):
    terms = ["C(weekday)", "C(holiday)", "C(workingday)", "temp", "hum"]
    fit = count_fitter(cfg, sm.families.Poisson())
    table = drop1_lrt(train, terms, fit)

    assert list(table.index) == terms
    assert table.loc["temp", "df"] == 1
    assert table.loc["temp", "lr_stat"] > 0
    assert table.loc["C(workingday)", "df"] == 0
    assert np.isnan(table.loc["C(workingday)", "p_value"])


def test_stepwise_skips_candidates_that_fail(train, cfg, capsys):
    base = linear_fitter(cfg)

    def fit(data, terms):
        if "hum" in terms:
            raise np.linalg.LinAlgError("SVD did not converge")
        return base(data, terms)

    result = stepwise_selection(train, ["temp", "hum"], fit, criterion="aic",
                                direction="forward", verbose=False)

    assert result.terms == ["temp"]
    assert "[WARNING] Skipping candidate '+ hum'" in capsys.readouterr().out
