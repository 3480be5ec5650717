"""Public entry points used by the workspace.

Each ``run_*`` function accepts plain values (a table plus column selections
and options) and returns either a result record or a
:class:`statcore.schema.Failure`. Input errors never escape as exceptions;
matrix dimension errors do, because they indicate a caller bug.
"""

from __future__ import annotations

import functools
import logging
import threading
from typing import Optional, Sequence, Union

import numpy as np

from .config import DEFAULT_CONFIG, EngineConfig
from .errors import AnalysisError, InvalidSelection
from .sampling import RandomVariable, make_rng, variable_from_dict
from .schema import CrossTabResult, Failure, RegressionResult, SimulationResult, TestResult
from .simulation import run_simulation
from .stats.crosstab import cross_tabulate
from .stats.hypothesis import (
    chi_square_test,
    one_sample_t_test,
    one_way_anova,
    paired_t_test,
    two_sample_t_test,
)
from .stats.regression import ols_regression
from .table import as_table

logger = logging.getLogger(__name__)

TEST_TYPES = ("one-sample", "two-sample", "paired", "chi-square", "anova")


def _reported(func):
    """Convert :class:`AnalysisError` raised by ``func`` into a ``Failure``."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except AnalysisError as exc:
            logger.warning("%s failed: %s", func.__name__, exc)
            return Failure(error=str(exc), kind=exc.kind)

    return wrapper


@_reported
def run_regression(
    data, y: str, xs: Sequence[str], config: Optional[EngineConfig] = None
) -> Union[RegressionResult, Failure]:
    """OLS regression of ``y`` on ``xs``; see :func:`ols_regression`."""
    if not xs:
        raise InvalidSelection("Select at least one predictor.")
    return ols_regression(data, y, xs, config=config)


@_reported
def run_hypothesis_test(
    data,
    test: str,
    variable: Optional[str] = None,
    variable2: Optional[str] = None,
    group: Optional[str] = None,
    mu0: float = 0.0,
    alternative: str = "two-sided",
    config: Optional[EngineConfig] = None,
) -> Union[TestResult, Failure]:
    """Run one test from :data:`TEST_TYPES` against table columns.

    Bindings per test:
        - ``one-sample``: ``variable`` (numeric), ``mu0``.
        - ``two-sample``: ``variable`` (numeric), ``group`` (categorical).
        - ``paired``: ``variable`` and ``variable2`` (numeric); rows where
          both parse are paired.
        - ``chi-square``: ``variable`` and ``variable2`` (categorical).
        - ``anova``: ``variable`` (numeric), ``group`` (categorical).
    """
    config = config or DEFAULT_CONFIG
    if test not in TEST_TYPES:
        raise InvalidSelection(f"Unknown test '{test}'. Expected one of {TEST_TYPES}.")
    if alternative not in ("two-sided", "less", "greater"):
        raise InvalidSelection(f"Unknown alternative '{alternative}'.")
    table = as_table(data)

    if test == "one-sample":
        table.require(variable)
        return one_sample_t_test(table.numeric_values(variable), mu0, alternative, config)

    if test == "two-sample":
        table.require(variable, group)
        return two_sample_t_test(
            table.numeric(variable), table.labels(group), alternative, config
        )

    if test == "paired":
        table.require(variable, variable2)
        if variable == variable2:
            raise InvalidSelection("Paired test needs two different variables.")
        pairs = table.complete_numeric([variable, variable2])
        return paired_t_test(pairs[:, 0], pairs[:, 1], alternative, config)

    if test == "chi-square":
        table.require(variable, variable2)
        if variable == variable2:
            raise InvalidSelection("Chi-square test needs two different variables.")
        return chi_square_test(table.labels(variable), table.labels(variable2))

    table.require(variable, group)
    return one_way_anova(table.numeric(variable), table.labels(group))


@_reported
def run_crosstab(
    data,
    row_var: str,
    col_var: str,
    value_var: Optional[str] = None,
    aggregation: str = "count",
    display: str = "counts",
) -> Union[CrossTabResult, Failure]:
    """Cross-tabulation; see :func:`cross_tabulate`."""
    return cross_tabulate(data, row_var, col_var, value_var, aggregation, display)


@_reported
def run_monte_carlo(
    variables: Sequence[Union[RandomVariable, dict]],
    expression: str,
    iterations: int,
    seed: Optional[int] = None,
    rng: Optional[np.random.Generator] = None,
    cancel_event: Optional[threading.Event] = None,
    config: Optional[EngineConfig] = None,
) -> Union[SimulationResult, Failure]:
    """Monte Carlo simulation; variables may be dataclasses or plain dicts."""
    parsed = []
    for var in variables:
        if isinstance(var, dict):
            try:
                parsed.append(variable_from_dict(var))
            except (KeyError, TypeError, ValueError) as exc:
                raise InvalidSelection(f"Invalid random variable {var!r}: {exc}") from exc
        else:
            parsed.append(var)
    if rng is None:
        rng = make_rng(seed)
    return run_simulation(parsed, expression, iterations, rng, cancel_event, config)
