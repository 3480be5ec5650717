"""Immutable table snapshots and cell parsing.

The surrounding application hands the engine ``columns`` plus ``rows`` whose
cells are always strings. This module is the only place where those strings
are turned into numbers or category labels.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Iterable, List, Mapping, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from .errors import InvalidSelection

logger = logging.getLogger(__name__)


def is_missing(cell: object) -> bool:
    """Return ``True`` when a cell is absent or blank after trimming."""
    if cell is None:
        return True
    return str(cell).strip() == ""


def parse_numeric(cells: Iterable[object]) -> np.ndarray:
    """Parse raw cells into floats, mapping unparseable cells to NaN.

    Thousands-separator commas are stripped before parsing. Non-finite
    parses (``"inf"``, ``"nan"``) are treated as missing.

    Args:
        cells: Raw cell values, normally strings.

    Returns:
        numpy.ndarray: Float array of the same length; NaN marks missing or
        non-numeric cells.
    """
    series = pd.Series(list(cells), dtype=object)
    if series.empty:
        return np.array([], dtype=float)
    cleaned = series.map(lambda c: "" if c is None else str(c).replace(",", "").strip())
    values = pd.to_numeric(cleaned, errors="coerce").to_numpy(dtype=float)
    values[~np.isfinite(values)] = np.nan
    return values


def parse_number(cell: object) -> Optional[float]:
    """Parse a single cell; return ``None`` when it is missing or non-numeric."""
    value = parse_numeric([cell])[0]
    return None if np.isnan(value) else float(value)


def parse_label(cell: object) -> Optional[str]:
    """Return the trimmed category label, or ``None`` for a blank cell."""
    if is_missing(cell):
        return None
    return str(cell).strip()


@dataclass(frozen=True)
class Table:
    """Column names plus string-valued row records.

    Rows are stored as read-only mappings so an analysis can never mutate the
    caller's snapshot.
    """

    columns: Tuple[str, ...]
    rows: Tuple[Mapping[str, str], ...]

    @classmethod
    def from_records(
        cls, columns: Sequence[str], rows: Iterable[Mapping[str, object]]
    ) -> "Table":
        cols = tuple(str(c) for c in columns)
        if len(set(cols)) != len(cols):
            raise ValueError("Column names must be unique.")
        frozen = tuple(
            MappingProxyType(
                {c: "" if row.get(c) is None else str(row.get(c)) for c in cols}
            )
            for row in rows
        )
        return cls(columns=cols, rows=frozen)

    @classmethod
    def from_frame(cls, df: pd.DataFrame) -> "Table":
        """Build a table from a DataFrame, rendering every cell as a string."""
        text = df.astype(object).where(pd.notna(df), "")
        records = [
            {str(k): str(v) for k, v in rec.items()}
            for rec in text.to_dict(orient="records")
        ]
        return cls.from_records([str(c) for c in df.columns], records)

    def __len__(self) -> int:
        return len(self.rows)

    def require(self, *names: Optional[str]) -> None:
        """Raise :class:`InvalidSelection` unless every name is a column."""
        for name in names:
            if not name:
                raise InvalidSelection("A required variable has not been selected.")
            if name not in self.columns:
                raise InvalidSelection(f"Unknown column '{name}'.")

    def cells(self, name: str) -> List[str]:
        self.require(name)
        return [row.get(name, "") for row in self.rows]

    def numeric(self, name: str) -> np.ndarray:
        """Return the column parsed as floats, NaN for missing cells."""
        return parse_numeric(self.cells(name))

    def numeric_values(self, name: str) -> np.ndarray:
        """Return only the finite numeric values of a column, in row order."""
        values = self.numeric(name)
        return values[np.isfinite(values)]

    def labels(self, name: str) -> List[Optional[str]]:
        return [parse_label(c) for c in self.cells(name)]

    def complete_numeric(self, names: Sequence[str]) -> np.ndarray:
        """Return an ``(n, len(names))`` array of rows where every column parses.

        Rows with a missing or non-numeric cell in any of ``names`` are
        dropped, preserving the original row order.
        """
        self.require(*names)
        if not names:
            return np.empty((len(self.rows), 0), dtype=float)
        stacked = np.column_stack([self.numeric(n) for n in names]) if self.rows else (
            np.empty((0, len(names)), dtype=float)
        )
        mask = np.all(np.isfinite(stacked), axis=1)
        logger.debug(
            "Kept %d of %d rows with numeric %s", int(mask.sum()), len(self.rows), list(names)
        )
        return stacked[mask]


def as_table(data) -> Table:
    """Coerce a :class:`Table`, a DataFrame or a ``(columns, rows)`` pair."""
    if isinstance(data, Table):
        return data
    if isinstance(data, pd.DataFrame):
        return Table.from_frame(data)
    if isinstance(data, tuple) and len(data) == 2:
        columns, rows = data
        return Table.from_records(columns, rows)
    raise TypeError(f"Cannot build a Table from {type(data).__name__}.")
