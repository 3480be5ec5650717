"""Format engine results into tables and text for display and export.

Numeric results are never modified here; these helpers only render them.
"""

from __future__ import annotations

import math
from typing import List

import pandas as pd

from .schema import CrossTabResult, RegressionResult, SimulationSummary, TestResult


def significance_stars(p: float) -> str:
    """Return the conventional significance code for a p-value.

    Args:
        p (float): p-value in ``[0, 1]``.

    Returns:
        str: ``"***"`` below 0.001, ``"**"`` below 0.01, ``"*"`` below 0.05,
        ``"."`` below 0.1, otherwise an empty string.
    """
    if p < 0.001:
        return "***"
    if p < 0.01:
        return "**"
    if p < 0.05:
        return "*"
    if p < 0.1:
        return "."
    return ""


def format_p_value(p: float) -> str:
    if not math.isfinite(p):
        return "NA"
    if p < 0.001:
        return "< 0.001"
    return f"{p:.4f}"


def format_coefficient(value: float) -> str:
    """Four decimals, switching to scientific notation for extreme magnitudes."""
    if value == 0:
        return "0.0000"
    if not math.isfinite(value):
        return str(value)
    if abs(value) >= 1e8 or abs(value) < 1e-4:
        return f"{value:.4e}"
    return f"{value:.4f}"


def format_statistic(value: float) -> str:
    if not math.isfinite(value):
        return str(value)
    if abs(value) >= 1e6 or (value != 0 and abs(value) < 0.01):
        return f"{value:.3e}"
    return f"{value:.2f}"


def regression_table(result: RegressionResult) -> pd.DataFrame:
    """Coefficient table with one row per term, intercept first.

    Returns:
        pandas.DataFrame: Columns ``Variable``, ``Estimate``, ``Std. Error``,
        ``t value``, ``Pr(>|t|)`` and ``Signif``.
    """
    return pd.DataFrame(
        [
            {
                "Variable": c.variable,
                "Estimate": c.estimate,
                "Std. Error": c.std_error,
                "t value": c.t_stat,
                "Pr(>|t|)": c.p_value,
                "Signif": significance_stars(c.p_value),
            }
            for c in result.coefficients
        ]
    )


def observations_frame(result: RegressionResult) -> pd.DataFrame:
    return pd.DataFrame(
        {
            "Actual": result.y_actual,
            "Fitted": result.fitted,
            "Residual": result.residuals,
        }
    )


def _total_label(labels) -> str:
    label = "Total"
    while label in labels:
        label = f"({label})"
    return label


def crosstab_frame(result: CrossTabResult, display: bool = True) -> pd.DataFrame:
    """Cross-tab as a DataFrame with a ``Total`` row and column.

    When a category is itself named ``Total`` the margin is labelled
    ``(Total)`` instead so no data row or column is overwritten.

    Args:
        result: Cross-tabulation result.
        display: Use the display-mode matrix instead of raw aggregates. Totals
            always come from the raw aggregates.
    """
    matrix = result.display_matrix if display else result.matrix
    frame = pd.DataFrame(
        [list(row) for row in matrix],
        index=list(result.row_labels),
        columns=list(result.col_labels),
    )
    frame[_total_label(result.col_labels)] = list(result.row_totals)
    frame.loc[_total_label(result.row_labels)] = [*result.col_totals, result.grand_total]
    return frame


def format_regression_report(result: RegressionResult) -> str:
    table = regression_table(result)
    lines: List[str] = [f"OLS regression of {result.dependent}", ""]
    lines.append(f"{'Variable':<20}{'Estimate':>14}{'Std. Error':>14}{'t value':>10}{'Pr(>|t|)':>12}")
    for _, row in table.iterrows():
        lines.append(
            f"{row['Variable']:<20}"
            f"{format_coefficient(row['Estimate']):>14}"
            f"{format_coefficient(row['Std. Error']):>14}"
            f"{row['t value']:>10.3f}"
            f"{format_p_value(row['Pr(>|t|)']):>12} {row['Signif']}"
        )
    lines += [
        "",
        f"Residual standard error: {format_statistic(result.residual_std_error)} "
        f"on {result.dof} degrees of freedom",
        f"R-squared: {result.r_squared:.4f}, Adjusted R-squared: {result.adj_r_squared:.4f}",
        f"F-statistic: {format_statistic(result.f_statistic)} on {result.n_predictors} and "
        f"{result.dof} DF, p-value: {format_p_value(result.f_p_value)}",
        f"Observations: {result.n_obs}",
    ]
    return "\n".join(lines)


def format_test_report(result: TestResult, alpha: float = 0.05) -> str:
    if isinstance(result.df, tuple):
        df_text = f"{result.df[0]:g}, {result.df[1]:g}"
    else:
        df_text = f"{result.df:.2f}".rstrip("0").rstrip(".")
    lines = [
        result.test_name,
        f"{result.statistic_label} = {format_statistic(result.statistic)}, df = {df_text}, "
        f"p = {format_p_value(result.p_value)} {significance_stars(result.p_value)}".rstrip(),
    ]
    if result.effect_size is not None:
        lines.append(f"{result.effect_size_label} = {result.effect_size:.4f}")
    if result.alternative != "two-sided":
        lines.append(f"Alternative: {result.alternative}")
    verdict = "significant" if result.p_value < alpha else "not significant"
    lines.append(f"Result is {verdict} at alpha = {alpha:g}")
    return "\n".join(lines)


def format_simulation_report(summary: SimulationSummary) -> str:
    return "\n".join(
        [
            f"Iterations: {summary.n}",
            f"Mean: {summary.mean:.4f}",
            f"Median: {summary.median:.4f}",
            f"Std Dev: {summary.std_dev:.4f}",
            f"5th percentile: {summary.p5:.4f}",
            f"95th percentile: {summary.p95:.4f}",
            f"P(outcome > 0): {summary.p_positive:.4f}",
        ]
    )
