"""Ordinary least squares regression on string-valued table columns.

The estimator builds a design matrix with an intercept column, solves the
normal equations with the Gauss-Jordan inverse from :mod:`.linalg`, and
derives per-coefficient inference plus model-level fit statistics.
"""

from __future__ import annotations

import logging
import math
from typing import Optional, Sequence

import numpy as np

from ..config import DEFAULT_CONFIG, EngineConfig
from ..errors import InsufficientData, InsufficientObservations, InvalidSelection, SingularMatrix
from ..schema import Coefficient, RegressionResult
from ..table import as_table
from . import linalg
from .special import f_pvalue, t_pvalue

logger = logging.getLogger(__name__)

INTERCEPT_LABEL = "(Intercept)"


def _f_statistic_pvalue(
    ssr: float, sse: float, k: int, dof: int, config: EngineConfig
) -> tuple[float, float]:
    if k == 0 or dof <= 0:
        return 0.0, 1.0
    if sse <= 0:
        if ssr > 0:
            return math.inf, 0.0
        return 0.0, 1.0
    f_stat = (ssr / k) / (sse / dof)
    if config.pvalue_method == "normal":
        # legacy approximation: t-approximation applied to sqrt(F)
        return f_stat, t_pvalue(math.sqrt(max(f_stat, 0.0)), dof, method="normal")
    return f_stat, f_pvalue(f_stat, k, dof)


def ols_regression(
    data,
    y: str,
    xs: Sequence[str],
    config: Optional[EngineConfig] = None,
) -> RegressionResult:
    """Fit ``y = b0 + b1 x1 + ... + bk xk`` by ordinary least squares.

    Args:
        data: A :class:`statcore.table.Table`, a DataFrame, or a
            ``(columns, rows)`` pair.
        y: Dependent column name.
        xs: Predictor column names, in the order they should appear in the
            coefficient table.
        config: Engine settings; :data:`statcore.config.DEFAULT_CONFIG` when
            omitted.

    Returns:
        RegressionResult: Coefficients (intercept first) with standard errors,
        t statistics and two-tailed p-values, plus R^2, adjusted R^2, the F
        statistic, sums of squares and per-observation fitted values and
        residuals.

    Raises:
        InvalidSelection: If ``y`` or a predictor is not a column, or a
            predictor is repeated or equal to ``y``.
        InsufficientData: If no row has numeric values in every selected
            column.
        InsufficientObservations: If there are not more observations than
            parameters plus one.
        SingularMatrix: If ``X'X`` cannot be inverted (perfect
            multicollinearity).

    Note:
        Rows are kept only when the dependent variable and every predictor
        parse as finite numbers after stripping thousands separators.
    """
    config = config or DEFAULT_CONFIG
    table = as_table(data)
    xs = list(xs)
    table.require(y, *xs)
    if len(set(xs)) != len(xs) or y in xs:
        raise InvalidSelection(
            "Predictors must be distinct and must not include the dependent variable."
        )

    block = table.complete_numeric([y, *xs])
    n = int(block.shape[0])
    k = len(xs)

    if n == 0:
        raise InsufficientData(
            "No valid observations. Check that selected columns contain numeric data."
        )
    if n <= k + 1:
        raise InsufficientObservations(
            f"Insufficient observations ({n}) for {k + 1} parameters. Need at least {k + 2}."
        )

    y_vec = block[:, 0]
    X = np.column_stack([np.ones(n), block[:, 1:]])

    Xt = linalg.transpose(X)
    XtX = linalg.multiply(Xt, X)
    XtX_inv = linalg.inverse(XtX, tol=config.pivot_tolerance)
    if XtX_inv is None:
        raise SingularMatrix(
            "Matrix is singular (perfect multicollinearity detected). "
            "Remove a redundant variable."
        )

    Xty = linalg.mat_vec(Xt, y_vec)
    beta = linalg.mat_vec(XtX_inv, Xty)

    fitted = linalg.mat_vec(X, beta)
    residuals = y_vec - fitted

    sse = float(np.sum(residuals**2))
    y_mean = float(np.mean(y_vec))
    sst = float(np.sum((y_vec - y_mean) ** 2))
    ssr = sst - sse
    dof = n - k - 1

    if sst == 0:
        r2 = 1.0
        adj_r2 = 1.0
    else:
        r2 = 1.0 - sse / sst
        adj_r2 = 1.0 - (1.0 - r2) * (n - 1) / dof

    s2 = sse / dof
    residual_se = math.sqrt(s2)
    # tiny negative diagonal entries can appear from round-off
    std_errors = np.sqrt(np.clip(np.diag(XtX_inv) * s2, 0.0, None))

    names = [INTERCEPT_LABEL, *xs]
    coefficients = []
    for j, name in enumerate(names):
        se = float(std_errors[j])
        t_stat = 0.0 if se == 0 else float(beta[j]) / se
        coefficients.append(
            Coefficient(
                variable=name,
                estimate=float(beta[j]),
                std_error=se,
                t_stat=t_stat,
                p_value=t_pvalue(t_stat, dof, method=config.pvalue_method),
            )
        )

    f_stat, f_p = _f_statistic_pvalue(ssr, sse, k, dof, config)

    logger.debug("OLS fit of %s on %s: n=%d, dof=%d, R2=%.6f", y, xs, n, dof, r2)

    return RegressionResult(
        dependent=y,
        coefficients=tuple(coefficients),
        r_squared=float(r2),
        adj_r_squared=float(adj_r2),
        f_statistic=float(f_stat),
        f_p_value=float(f_p),
        n_obs=n,
        n_predictors=k,
        residual_std_error=float(residual_se),
        ssr=float(ssr),
        sse=sse,
        sst=sst,
        dof=dof,
        fitted=tuple(float(v) for v in fitted),
        residuals=tuple(float(v) for v in residuals),
        y_actual=tuple(float(v) for v in y_vec),
    )
