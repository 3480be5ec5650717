"""Row x column aggregation tables with an optional independence test."""

from __future__ import annotations

import logging
from typing import Callable, Dict, List, Optional

import numpy as np

from ..errors import InsufficientData, InvalidSelection
from ..schema import CrossTabResult
from ..table import as_table
from .hypothesis import chi_square_from_counts

logger = logging.getLogger(__name__)


def median(values: List[float]) -> float:
    """Median by the even/odd midpoint rule."""
    ordered = sorted(values)
    n = len(ordered)
    mid = n // 2
    if n % 2:
        return float(ordered[mid])
    return (ordered[mid - 1] + ordered[mid]) / 2.0


AGGREGATIONS: Dict[str, Callable[[List[float]], float]] = {
    "count": lambda vals: float(len(vals)),
    "sum": lambda vals: float(sum(vals)),
    "mean": lambda vals: float(sum(vals)) / len(vals),
    "min": lambda vals: float(min(vals)),
    "max": lambda vals: float(max(vals)),
    "median": median,
}

DISPLAY_MODES = ("counts", "row_pct", "col_pct", "total_pct")


def _safe_pct(numer: np.ndarray, denom: np.ndarray) -> np.ndarray:
    denom = np.broadcast_to(np.asarray(denom, dtype=float), numer.shape)
    out = np.zeros_like(numer, dtype=float)
    np.divide(numer * 100.0, denom, out=out, where=denom > 0)
    return out


def display_matrix(
    matrix: np.ndarray,
    row_totals: np.ndarray,
    col_totals: np.ndarray,
    grand_total: float,
    mode: str,
) -> np.ndarray:
    """Transform aggregated values into the requested percentage view.

    Every zero denominator maps the affected cells to 0.
    """
    if mode == "counts":
        return matrix.copy()
    if mode == "row_pct":
        return _safe_pct(matrix, row_totals[:, None])
    if mode == "col_pct":
        return _safe_pct(matrix, col_totals[None, :])
    if mode == "total_pct":
        return _safe_pct(matrix, np.array(grand_total))
    raise InvalidSelection(f"Unknown display mode '{mode}'. Expected one of {DISPLAY_MODES}.")


def _as_tuples(matrix: np.ndarray):
    return tuple(tuple(float(v) for v in row) for row in matrix)


def cross_tabulate(
    data,
    row_var: str,
    col_var: str,
    value_var: Optional[str] = None,
    aggregation: str = "count",
    display: str = "counts",
) -> CrossTabResult:
    """Aggregate a value (or row counts) over two categorical variables.

    Args:
        data: Table, DataFrame or ``(columns, rows)`` pair.
        row_var: Column whose labels form the rows.
        col_var: Column whose labels form the columns.
        value_var: Optional numeric column to aggregate. Without it each row
            contributes the value 1.
        aggregation: One of ``count``, ``sum``, ``mean``, ``min``, ``max``,
            ``median``. Empty cells aggregate to 0.
        display: One of ``counts``, ``row_pct``, ``col_pct``, ``total_pct``.

    Returns:
        CrossTabResult: Labels, aggregated matrix, totals, display matrix and,
        for count tables of at least 2 x 2 with observations, a chi-square
        block with Cramér's V.

    Raises:
        InvalidSelection: For unknown columns, aggregation or display mode.
        InsufficientData: If either variable has no non-empty labels.
    """
    if aggregation not in AGGREGATIONS:
        raise InvalidSelection(
            f"Unknown aggregation '{aggregation}'. Expected one of {tuple(AGGREGATIONS)}."
        )
    if display not in DISPLAY_MODES:
        raise InvalidSelection(f"Unknown display mode '{display}'. Expected one of {DISPLAY_MODES}.")

    table = as_table(data)
    table.require(row_var, col_var)
    if value_var:
        table.require(value_var)

    row_cells = table.labels(row_var)
    col_cells = table.labels(col_var)
    row_labels = sorted({v for v in row_cells if v})
    col_labels = sorted({v for v in col_cells if v})
    if not row_labels or not col_labels:
        raise InsufficientData("Both variables need at least one non-empty category.")

    row_idx = {v: i for i, v in enumerate(row_labels)}
    col_idx = {v: i for i, v in enumerate(col_labels)}
    values = table.numeric(value_var) if value_var else np.ones(len(table))

    cells: List[List[List[float]]] = [[[] for _ in col_labels] for _ in row_labels]
    for r, c, v in zip(row_cells, col_cells, values):
        if not r or not c or not np.isfinite(v):
            continue
        cells[row_idx[r]][col_idx[c]].append(float(v))

    agg = AGGREGATIONS[aggregation]
    matrix = np.array(
        [[agg(cell) if cell else 0.0 for cell in row] for row in cells], dtype=float
    )
    row_totals = matrix.sum(axis=1)
    col_totals = matrix.sum(axis=0)
    grand_total = float(row_totals.sum())

    shown = display_matrix(matrix, row_totals, col_totals, grand_total, display)

    chi_square = None
    if aggregation == "count" and grand_total > 0 and len(row_labels) >= 2 and len(col_labels) >= 2:
        chi_square = chi_square_from_counts(matrix)

    logger.debug(
        "Cross-tab %s x %s: %dx%d cells, aggregation=%s",
        row_var,
        col_var,
        len(row_labels),
        len(col_labels),
        aggregation,
    )

    return CrossTabResult(
        row_labels=tuple(row_labels),
        col_labels=tuple(col_labels),
        matrix=_as_tuples(matrix),
        display_matrix=_as_tuples(shown),
        row_totals=tuple(float(v) for v in row_totals),
        col_totals=tuple(float(v) for v in col_totals),
        grand_total=grand_total,
        max_value=max(float(matrix.max()), 1.0),
        aggregation=aggregation,
        display=display,
        chi_square=chi_square,
    )
