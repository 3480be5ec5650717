"""
Numerical core of the statistics engine.

All functions operate on arrays and primitive types; tabular selection and
error reporting live one level up in ``statcore.analysis``.

Modules:
    linalg:
        Dense matrix helpers and Gauss-Jordan inversion with partial
        pivoting. Singular input yields ``None`` instead of raising.

    special:
        Log-gamma, normal CDF, regularized incomplete gamma and beta, and
        the t, chi-square and F p-values built on them.

    regression:
        Ordinary least squares with an intercept, coefficient inference and
        overall F test.

    hypothesis:
        One-sample, Welch two-sample and paired t tests, chi-square test of
        independence and one-way ANOVA.

    crosstab:
        Cross-tabulation with count/sum/mean/median aggregation, percentage
        display modes and an attached chi-square block.
"""

from .crosstab import AGGREGATIONS, DISPLAY_MODES, cross_tabulate, display_matrix
from .hypothesis import (
    chi_square_from_counts,
    chi_square_test,
    contingency_counts,
    one_sample_t_test,
    one_way_anova,
    paired_t_test,
    two_sample_t_test,
)
from .linalg import create, identity, inverse, mat_vec, multiply, transpose
from .regression import INTERCEPT_LABEL, ols_regression
from .special import (
    chi_square_pvalue,
    f_pvalue,
    incomplete_beta,
    log_gamma,
    lower_incomplete_gamma,
    normal_cdf,
    student_t_cdf,
    t_pvalue,
    upper_incomplete_gamma,
)

__all__ = [
    # Matrix kernel
    "create",
    "identity",
    "inverse",
    "mat_vec",
    "multiply",
    "transpose",
    # Special functions
    "chi_square_pvalue",
    "f_pvalue",
    "incomplete_beta",
    "log_gamma",
    "lower_incomplete_gamma",
    "normal_cdf",
    "student_t_cdf",
    "t_pvalue",
    "upper_incomplete_gamma",
    # Models and tests
    "INTERCEPT_LABEL",
    "ols_regression",
    "chi_square_from_counts",
    "chi_square_test",
    "contingency_counts",
    "one_sample_t_test",
    "one_way_anova",
    "paired_t_test",
    "two_sample_t_test",
    # Cross-tabulation
    "AGGREGATIONS",
    "DISPLAY_MODES",
    "cross_tabulate",
    "display_matrix",
]
