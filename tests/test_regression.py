import json
import math

import numpy as np
import pandas as pd
import pytest

from statcore.config import DEFAULT_CONFIG
from statcore.errors import (
    InsufficientData,
    InsufficientObservations,
    InvalidSelection,
    SingularMatrix,
)
from statcore.stats.regression import INTERCEPT_LABEL, _f_statistic_pvalue, ols_regression


def make_linear_frame(n=50, noise=0.5, seed=3):
    rng = np.random.default_rng(seed)
    x1 = rng.uniform(0, 10, n)
    x2 = rng.normal(0, 2, n)
    y = 2.0 + 3.0 * x1 - 1.5 * x2 + rng.normal(0, noise, n)
    return pd.DataFrame({"y": y, "x1": x1, "x2": x2})


def test_exact_line_recovered():
    df = pd.DataFrame({"x": [1, 2, 3, 4, 5], "y": [5, 8, 11, 14, 17]})
    result = ols_regression(df, "y", ["x"])
    assert result.coefficients[0].variable == INTERCEPT_LABEL
    assert result.coefficient("(Intercept)").estimate == pytest.approx(2.0)
    assert result.coefficient("x").estimate == pytest.approx(3.0)
    assert result.r_squared == pytest.approx(1.0)
    assert result.f_statistic > 1e6
    assert result.f_p_value < 1e-10


def test_noisy_fit_statistics():
    result = ols_regression(make_linear_frame(), "y", ["x1", "x2"])
    assert result.n_obs == 50
    assert result.n_predictors == 2
    assert result.dof == 47
    assert abs(result.coefficient("x1").estimate - 3.0) < 0.1
    assert abs(result.coefficient("x2").estimate + 1.5) < 0.1
    assert 0.0 <= result.r_squared <= 1.0
    assert result.adj_r_squared <= result.r_squared
    assert result.ssr + result.sse == pytest.approx(result.sst)
    assert result.coefficient("x1").p_value < 1e-10
    assert result.f_p_value < 1e-10
    assert np.allclose(
        np.asarray(result.fitted) + np.asarray(result.residuals), result.y_actual
    )


def test_coefficient_inference_matches_numpy_lstsq():
    df = make_linear_frame(n=30, noise=2.0)
    result = ols_regression(df, "y", ["x1", "x2"])
    X = np.column_stack([np.ones(len(df)), df["x1"], df["x2"]])
    beta, *_ = np.linalg.lstsq(X, df["y"].to_numpy(), rcond=None)
    assert np.allclose([c.estimate for c in result.coefficients], beta)
    for c in result.coefficients:
        assert c.t_stat == pytest.approx(c.estimate / c.std_error)


def test_rows_with_non_numeric_cells_are_dropped():
    columns = ["y", "x"]
    rows = [
        {"y": "1,000", "x": "1"},
        {"y": "2,100", "x": "2"},
        {"y": "", "x": "3"},
        {"y": "2,900", "x": "4"},
        {"y": "4,050", "x": "5"},
        {"y": "5000", "x": "abc"},
    ]
    result = ols_regression((columns, rows), "y", ["x"])
    assert result.n_obs == 4
    assert result.y_actual[0] == 1000.0


def test_collinear_predictors_raise_singular():
    df = pd.DataFrame(
        {"y": [1.0, 2.0, 2.5, 4.1, 5.2], "a": [1, 2, 3, 4, 5], "b": [2, 4, 6, 8, 10]}
    )
    with pytest.raises(SingularMatrix):
        ols_regression(df, "y", ["a", "b"])


def test_too_few_observations():
    df = pd.DataFrame({"y": [1.0, 2.0, 3.0], "a": [1, 2, 4], "b": [0, 1, 1]})
    with pytest.raises(InsufficientObservations):
        ols_regression(df, "y", ["a", "b"])


def test_no_numeric_rows():
    df = pd.DataFrame({"y": ["a", "b"], "x": ["c", "d"]})
    with pytest.raises(InsufficientData):
        ols_regression(df, "y", ["x"])


def test_invalid_predictor_selection():
    df = make_linear_frame(n=10)
    with pytest.raises(InvalidSelection):
        ols_regression(df, "y", ["x1", "x1"])
    with pytest.raises(InvalidSelection):
        ols_regression(df, "y", ["y"])
    with pytest.raises(InvalidSelection):
        ols_regression(df, "y", ["missing"])


def test_normal_pvalue_method_stays_close():
    df = make_linear_frame(n=200, noise=20.0)
    exact = ols_regression(df, "y", ["x1", "x2"])
    legacy = ols_regression(df, "y", ["x1", "x2"], DEFAULT_CONFIG.replace(pvalue_method="normal"))
    for a, b in zip(exact.coefficients, legacy.coefficients):
        assert a.estimate == b.estimate
        assert abs(a.p_value - b.p_value) < 0.01


def test_to_dict_is_json_safe():
    df = pd.DataFrame({"x": [1, 2, 3, 4, 5], "y": [3.1, 4.9, 7.2, 9.0, 10.8]})
    record = ols_regression(df, "y", ["x"]).to_dict()
    json.dumps(record)
    assert record["coefficients"][1]["variable"] == "x"
    assert len(record["residuals"]) == 5


def test_zero_residual_variance_gives_infinite_f():
    assert _f_statistic_pvalue(10.0, 0.0, 1, 3, DEFAULT_CONFIG) == (math.inf, 0.0)
    assert _f_statistic_pvalue(0.0, 0.0, 1, 3, DEFAULT_CONFIG) == (0.0, 1.0)
