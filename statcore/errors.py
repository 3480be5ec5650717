"""Typed failures raised by the engine.

Input errors derive from :class:`AnalysisError` and are converted to
:class:`statcore.schema.Failure` values at the public boundary in
:mod:`statcore.analysis`. :class:`DimensionMismatch` signals a caller bug in
the matrix kernel and is never converted.
"""

from __future__ import annotations


class AnalysisError(ValueError):
    """Base class for reportable input errors."""

    kind = "analysis_error"


class InsufficientData(AnalysisError):
    kind = "insufficient_data"


class InsufficientObservations(AnalysisError):
    kind = "insufficient_observations"


class SingularMatrix(AnalysisError):
    kind = "singular_matrix"


class InsufficientGroups(AnalysisError):
    kind = "insufficient_groups"


class InvalidSelection(AnalysisError):
    kind = "invalid_selection"


class ZeroVariance(AnalysisError):
    kind = "zero_variance"


class RunCancelled(AnalysisError):
    kind = "cancelled"


class DimensionMismatch(ValueError):
    """Matrix operands have incompatible shapes."""
