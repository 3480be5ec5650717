import numpy as np
import pandas as pd
import pytest

from statcore.analysis import (
    run_crosstab,
    run_hypothesis_test,
    run_monte_carlo,
    run_regression,
)
from statcore.errors import DimensionMismatch
from statcore.schema import CrossTabResult, Failure, RegressionResult, TestResult
from statcore.stats.linalg import multiply


def make_frame():
    rng = np.random.default_rng(8)
    n = 40
    x = rng.uniform(0, 5, n)
    return pd.DataFrame(
        {
            "x": x,
            "y": 1.0 + 2.0 * x + rng.normal(0, 0.5, n),
            "before": rng.normal(10, 1, n),
            "after": rng.normal(10.5, 1, n),
            "arm": ["treat", "control"] * (n // 2),
            "site": ["A", "B", "C", "D"] * (n // 4),
        }
    )


def test_regression_success_and_failure():
    df = make_frame()
    result = run_regression(df, "y", ["x"])
    assert isinstance(result, RegressionResult)
    assert result.ok
    failure = run_regression(df, "y", [])
    assert isinstance(failure, Failure)
    assert not failure.ok
    assert failure.kind == "invalid_selection"


def test_failures_are_logged(caplog):
    with caplog.at_level("WARNING"):
        result = run_regression(make_frame(), "y", ["nope"])
    assert result.kind == "invalid_selection"
    assert "run_regression failed" in caplog.text


def test_each_hypothesis_test_binding():
    df = make_frame()
    one = run_hypothesis_test(df, "one-sample", variable="before", mu0=10.0)
    two = run_hypothesis_test(df, "two-sample", variable="y", group="arm")
    paired = run_hypothesis_test(df, "paired", variable="before", variable2="after")
    chi = run_hypothesis_test(df, "chi-square", variable="arm", variable2="site")
    anova = run_hypothesis_test(df, "anova", variable="y", group="site")
    for result in (one, two, paired, chi, anova):
        assert isinstance(result, TestResult)
        assert 0.0 <= result.p_value <= 1.0
    assert paired.details.n == 40
    assert anova.details.groups == ("A", "B", "C", "D")


def test_hypothesis_failure_kinds():
    df = make_frame()
    assert run_hypothesis_test(df, "z-test", variable="x").kind == "invalid_selection"
    assert run_hypothesis_test(df, "one-sample").kind == "invalid_selection"
    assert (
        run_hypothesis_test(df, "paired", variable="x", variable2="x").kind
        == "invalid_selection"
    )
    assert (
        run_hypothesis_test(df, "one-sample", variable="x", alternative="both").kind
        == "invalid_selection"
    )
    single = df.assign(arm="treat")
    assert (
        run_hypothesis_test(single, "two-sample", variable="y", group="arm").kind
        == "insufficient_groups"
    )


def test_paired_rows_require_both_values():
    columns = ["a", "b"]
    rows = [
        {"a": "1", "b": "2"},
        {"a": "", "b": "5"},
        {"a": "3", "b": "3.5"},
        {"a": "4", "b": "6"},
    ]
    result = run_hypothesis_test((columns, rows), "paired", variable="a", variable2="b")
    assert result.details.n == 3


def test_crosstab_entry_point():
    df = make_frame()
    result = run_crosstab(df, "arm", "site")
    assert isinstance(result, CrossTabResult)
    assert result.grand_total == 40
    failure = run_crosstab(df, "arm", "site", aggregation="mode")
    assert failure.kind == "invalid_selection"


def test_monte_carlo_accepts_dicts_and_seed():
    variables = [{"name": "X", "distribution": "normal", "params": {"mean": 1, "sd": 0}}]
    result = run_monte_carlo(variables, "X * 3", 100, seed=1)
    assert result.ok
    assert set(result.values) == {3.0}
    again = run_monte_carlo(
        [{"name": "X", "distribution": "uniform"}], "X", 50, seed=2
    )
    same = run_monte_carlo(
        [{"name": "X", "distribution": "uniform"}], "X", 50, seed=2
    )
    assert again.values == same.values


def test_monte_carlo_failures():
    bad = run_monte_carlo([{"name": "X", "distribution": "cauchy"}], "X", 10)
    assert bad.kind == "invalid_selection"
    assert run_monte_carlo([], "1", 0).kind == "invalid_selection"


def test_dimension_errors_are_not_converted():
    with pytest.raises(DimensionMismatch):
        multiply(np.ones((2, 2)), np.ones((3, 1)))


def test_monte_carlo_zero_rate_exponential_yields_zeros():
    variables = [{"name": "X", "distribution": "exponential", "params": {"rate": 0}}]
    result = run_monte_carlo(variables, "X", 10, seed=1)
    assert result.ok
    assert result.values == (0.0,) * 10
