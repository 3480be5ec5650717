"""Engine tolerances and defaults shared by every analysis module."""

from __future__ import annotations

from dataclasses import dataclass, replace

DEFAULT_PIVOT_TOLERANCE: float = 1e-12
DEFAULT_MAX_ITERATIONS: int = 200
DEFAULT_CONVERGENCE_EPS: float = 1e-10
DEFAULT_TRACE_POINTS: int = 200
BINOMIAL_EXACT_LIMIT: int = 200
POISSON_EXACT_LIMIT: float = 30.0
DEFAULT_PVALUE_METHOD: str = "exact"
DEFAULT_ALPHA: float = 0.05

PVALUE_METHODS = ("exact", "normal")


@dataclass(frozen=True)
class EngineConfig:
    """Numerical settings for one analysis call.

    Attributes:
        pivot_tolerance: Smallest pivot magnitude accepted by the Gauss-Jordan
            inverse before the matrix is declared singular.
        trace_points: Approximate number of points kept in a Monte Carlo
            convergence trace.
        binomial_exact_limit: Largest ``n`` sampled by an exact Bernoulli sum.
        poisson_exact_limit: Largest ``lambda`` sampled with Knuth's method.
        pvalue_method: ``"exact"`` (incomplete beta) or ``"normal"`` (legacy
            blended normal approximation) for Student-t p-values.
        alpha: Significance level used by reports.
    """

    pivot_tolerance: float = DEFAULT_PIVOT_TOLERANCE
    trace_points: int = DEFAULT_TRACE_POINTS
    binomial_exact_limit: int = BINOMIAL_EXACT_LIMIT
    poisson_exact_limit: float = POISSON_EXACT_LIMIT
    pvalue_method: str = DEFAULT_PVALUE_METHOD
    alpha: float = DEFAULT_ALPHA

    def __post_init__(self):
        if self.pvalue_method not in PVALUE_METHODS:
            raise ValueError(
                f"pvalue_method must be one of {PVALUE_METHODS}, got {self.pvalue_method!r}"
            )
        if self.trace_points < 1:
            raise ValueError("trace_points must be >= 1")

    def replace(self, **changes) -> "EngineConfig":
        return replace(self, **changes)


DEFAULT_CONFIG = EngineConfig()
