"""
A Python package for regression, hypothesis testing, cross-tabulation and
Monte Carlo simulation over tabular data.

Modules:
    - table: Immutable string-cell tables and numeric coercion.
    - stats: Matrix kernel, special functions, OLS, tests and cross-tabs.
    - expression: Safe arithmetic expression compiler for simulation models.
    - sampling: Random variable definitions and seeded variate samplers.
    - simulation: Monte Carlo driver, convergence trace and summaries.
    - analysis: Table-level entry points that return results or failures.
    - runner: Background execution with supersede-on-resubmit semantics.
    - reporting, output, plotting: Tables, text, CSV/JSON and figures.
"""

__version__ = "1.0.0"

from .analysis import (
    TEST_TYPES,
    run_crosstab,
    run_hypothesis_test,
    run_monte_carlo,
    run_regression,
)
from .config import DEFAULT_CONFIG, EngineConfig
from .errors import AnalysisError, DimensionMismatch
from .expression import compile_expression, evaluate, parse
from .runner import AnalysisRunner
from .sampling import (
    Binomial,
    Exponential,
    Normal,
    Poisson,
    Uniform,
    make_rng,
    variable_from_dict,
)
from .schema import Failure
from .simulation import PRESETS, get_preset, histogram_bins, run_simulation, summarize
from .table import Table, as_table

__all__ = [
    # Entry points
    "TEST_TYPES",
    "run_crosstab",
    "run_hypothesis_test",
    "run_monte_carlo",
    "run_regression",
    "AnalysisRunner",
    "Failure",
    # Configuration and errors
    "DEFAULT_CONFIG",
    "EngineConfig",
    "AnalysisError",
    "DimensionMismatch",
    # Data
    "Table",
    "as_table",
    # Simulation
    "Binomial",
    "Exponential",
    "Normal",
    "Poisson",
    "Uniform",
    "PRESETS",
    "compile_expression",
    "evaluate",
    "get_preset",
    "histogram_bins",
    "make_rng",
    "parse",
    "run_simulation",
    "summarize",
    "variable_from_dict",
]
