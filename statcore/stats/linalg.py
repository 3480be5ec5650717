"""Dense matrix primitives for the regression engine.

Matrices are 2-D float ``numpy.ndarray`` objects. Every operation returns a
new array and checks operand shapes, raising
:class:`statcore.errors.DimensionMismatch` on a violation. The inverse is a
Gauss-Jordan elimination with partial pivoting over the augmented ``[A | I]``
matrix.
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence

import numpy as np

from ..config import DEFAULT_PIVOT_TOLERANCE
from ..errors import DimensionMismatch

logger = logging.getLogger(__name__)


def _as_matrix(a) -> np.ndarray:
    arr = np.array(a, dtype=float)
    if arr.ndim != 2:
        raise DimensionMismatch(f"Expected a 2-D matrix, got {arr.ndim} dimension(s).")
    return arr


def create(rows: int, cols: int) -> np.ndarray:
    """Return a ``rows x cols`` zero matrix."""
    if rows < 0 or cols < 0:
        raise DimensionMismatch("Matrix dimensions must be non-negative.")
    return np.zeros((rows, cols), dtype=float)


def transpose(a) -> np.ndarray:
    return _as_matrix(a).T.copy()


def multiply(a, b) -> np.ndarray:
    """Matrix product ``a @ b``."""
    left = _as_matrix(a)
    right = _as_matrix(b)
    if left.shape[1] != right.shape[0]:
        raise DimensionMismatch(
            f"Cannot multiply {left.shape[0]}x{left.shape[1]} by "
            f"{right.shape[0]}x{right.shape[1]}."
        )
    return left @ right


def mat_vec(a, v: Sequence[float]) -> np.ndarray:
    """Matrix-vector product ``a @ v``."""
    mat = _as_matrix(a)
    vec = np.array(v, dtype=float)
    if vec.ndim != 1 or mat.shape[1] != vec.shape[0]:
        raise DimensionMismatch(
            f"Cannot multiply {mat.shape[0]}x{mat.shape[1]} matrix by vector of "
            f"shape {vec.shape}."
        )
    return mat @ vec


def identity(n: int) -> np.ndarray:
    return np.eye(n, dtype=float)


def inverse(a, tol: float = DEFAULT_PIVOT_TOLERANCE) -> Optional[np.ndarray]:
    """Invert a square matrix by Gauss-Jordan elimination.

    For each column the row with the largest remaining magnitude is swapped
    into the pivot position. If that magnitude is below ``tol`` the matrix is
    treated as singular.

    Args:
        a: Square matrix.
        tol: Minimum acceptable pivot magnitude.

    Returns:
        numpy.ndarray | None: The inverse, or ``None`` when ``a`` is empty,
        non-square or numerically singular.
    """
    mat = np.array(a, dtype=float)
    if mat.ndim != 2 or mat.shape[0] == 0 or mat.shape[0] != mat.shape[1]:
        return None
    n = mat.shape[0]

    aug = np.hstack([mat, np.eye(n, dtype=float)])

    for col in range(n):
        pivot_row = col + int(np.argmax(np.abs(aug[col:, col])))
        if abs(aug[pivot_row, col]) < tol:
            logger.debug("Singular matrix: pivot %.3e in column %d", aug[pivot_row, col], col)
            return None

        if pivot_row != col:
            aug[[col, pivot_row]] = aug[[pivot_row, col]]

        aug[col] /= aug[col, col]

        factors = aug[:, col].copy()
        factors[col] = 0.0
        aug -= np.outer(factors, aug[col])

    return aug[:, n:].copy()
