"""Result records returned by the engine.

Every record is a frozen dataclass built once per run and never updated in
place. ``to_dict`` produces plain JSON-safe data for a rendering or
persistence layer; non-finite floats become ``None``.
"""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass, field, is_dataclass
from typing import Any, Optional, Tuple, Union


def _plain(value: Any) -> Any:
    if is_dataclass(value) and not isinstance(value, type):
        return {k: _plain(v) for k, v in asdict(value).items()}
    if isinstance(value, dict):
        return {str(k): _plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_plain(v) for v in value]
    if isinstance(value, float):
        return value if math.isfinite(value) else None
    if hasattr(value, "item") and callable(value.item):
        return _plain(value.item())
    return value


class _Record:
    def to_dict(self) -> dict:
        return _plain(self)


@dataclass(frozen=True)
class Failure(_Record):
    """Typed failure variant returned instead of raising across the boundary."""

    error: str
    kind: str = "analysis_error"

    @property
    def ok(self) -> bool:
        return False


@dataclass(frozen=True)
class Coefficient(_Record):
    variable: str
    estimate: float
    std_error: float
    t_stat: float
    p_value: float


@dataclass(frozen=True)
class RegressionResult(_Record):
    """Ordinary least squares fit.

    ``fitted``, ``residuals`` and ``y_actual`` are parallel and have one
    entry per valid observation, in row order.
    """

    dependent: str
    coefficients: Tuple[Coefficient, ...]
    r_squared: float
    adj_r_squared: float
    f_statistic: float
    f_p_value: float
    n_obs: int
    n_predictors: int
    residual_std_error: float
    ssr: float
    sse: float
    sst: float
    dof: int
    fitted: Tuple[float, ...]
    residuals: Tuple[float, ...]
    y_actual: Tuple[float, ...]

    ok = True

    def coefficient(self, variable: str) -> Coefficient:
        for coef in self.coefficients:
            if coef.variable == variable:
                return coef
        raise KeyError(variable)


@dataclass(frozen=True)
class OneSampleDetails(_Record):
    n: int
    mean: float
    sd: float
    mu0: float


@dataclass(frozen=True)
class PairedDetails(_Record):
    n: int
    mean_diff: float
    sd_diff: float


@dataclass(frozen=True)
class TwoSampleDetails(_Record):
    group1: str
    group2: str
    n1: int
    n2: int
    mean1: float
    mean2: float
    sd1: float
    sd2: float


@dataclass(frozen=True)
class ChiSquareDetails(_Record):
    rows: int
    cols: int
    total_n: int
    row_labels: Tuple[str, ...] = ()
    col_labels: Tuple[str, ...] = ()
    observed: Tuple[Tuple[int, ...], ...] = ()


@dataclass(frozen=True)
class AnovaDetails(_Record):
    groups: Tuple[str, ...]
    group_sizes: Tuple[int, ...]
    group_means: Tuple[float, ...]
    grand_mean: float
    ss_between: float
    ss_within: float
    ms_between: float
    ms_within: float


TestDetails = Union[
    OneSampleDetails, PairedDetails, TwoSampleDetails, ChiSquareDetails, AnovaDetails
]


@dataclass(frozen=True)
class TestResult(_Record):
    test_name: str
    statistic: float
    statistic_label: str
    df: Union[float, Tuple[float, float]]
    p_value: float
    details: TestDetails
    alternative: str = "two-sided"
    effect_size: Optional[float] = None
    effect_size_label: Optional[str] = None

    ok = True

    # pytest would otherwise try to collect this class
    __test__ = False

    def significant(self, alpha: float = 0.05) -> bool:
        return self.p_value < alpha


@dataclass(frozen=True)
class ChiSquareBlock(_Record):
    statistic: float
    df: int
    p_value: float
    cramers_v: float


@dataclass(frozen=True)
class CrossTabResult(_Record):
    row_labels: Tuple[str, ...]
    col_labels: Tuple[str, ...]
    matrix: Tuple[Tuple[float, ...], ...]
    display_matrix: Tuple[Tuple[float, ...], ...]
    row_totals: Tuple[float, ...]
    col_totals: Tuple[float, ...]
    grand_total: float
    max_value: float
    aggregation: str
    display: str
    chi_square: Optional[ChiSquareBlock] = None

    ok = True


@dataclass(frozen=True)
class SimulationSummary(_Record):
    n: int
    mean: float
    median: float
    std_dev: float
    p5: float
    p95: float
    p_positive: float


@dataclass(frozen=True)
class HistogramBin(_Record):
    start: float
    end: float
    count: int


@dataclass(frozen=True)
class SimulationResult(_Record):
    values: Tuple[float, ...]
    convergence: Tuple[float, ...]
    expression: str
    variables: Tuple[Any, ...]
    iterations: int
    diagnostics: Tuple[str, ...] = field(default=())

    ok = True
