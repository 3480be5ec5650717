"""Parametric hypothesis tests returning uniform :class:`TestResult` records.

Each test validates its minimum sample sizes before computing and raises a
typed :class:`statcore.errors.AnalysisError` otherwise. A non-significant
outcome is a valid result, not an error.
"""

from __future__ import annotations

import logging
import math
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

from ..config import DEFAULT_CONFIG, EngineConfig
from ..errors import InsufficientData, InsufficientGroups, InsufficientObservations, ZeroVariance
from ..schema import (
    AnovaDetails,
    ChiSquareBlock,
    ChiSquareDetails,
    OneSampleDetails,
    PairedDetails,
    TestResult,
    TwoSampleDetails,
)
from .special import ALTERNATIVES, chi_square_pvalue, f_pvalue, t_pvalue

logger = logging.getLogger(__name__)


def _finite(values: Sequence[float]) -> np.ndarray:
    arr = np.asarray(values, dtype=float).ravel()
    return arr[np.isfinite(arr)]


def _check_alternative(alternative: str) -> None:
    if alternative not in ALTERNATIVES:
        raise ValueError(f"alternative must be one of {ALTERNATIVES}, got {alternative!r}")


def one_sample_t_test(
    values: Sequence[float],
    mu0: float = 0.0,
    alternative: str = "two-sided",
    config: Optional[EngineConfig] = None,
) -> TestResult:
    """Test whether the mean of ``values`` differs from ``mu0``.

    Non-finite entries are ignored. Cohen's d is ``|mean - mu0| / sd``.
    """
    config = config or DEFAULT_CONFIG
    _check_alternative(alternative)
    x = _finite(values)
    n = int(x.size)
    if n < 2:
        raise InsufficientObservations(f"One-sample t-test needs at least 2 values, got {n}.")
    mean = float(np.mean(x))
    sd = float(np.std(x, ddof=1))
    if sd == 0:
        raise ZeroVariance("All values are identical; the t statistic is undefined.")
    t = (mean - mu0) / (sd / math.sqrt(n))
    df = n - 1
    return TestResult(
        test_name="One-Sample t-Test",
        statistic=t,
        statistic_label="t",
        df=float(df),
        p_value=t_pvalue(t, df, alternative, config.pvalue_method),
        alternative=alternative,
        effect_size=abs(mean - mu0) / sd,
        effect_size_label="Cohen's d",
        details=OneSampleDetails(n=n, mean=mean, sd=sd, mu0=float(mu0)),
    )


def first_two_groups(groups: Sequence[Optional[str]]) -> List[str]:
    """Return the first two distinct non-empty labels in observation order."""
    seen: List[str] = []
    for label in groups:
        if label and label not in seen:
            seen.append(label)
            if len(seen) == 2:
                break
    return seen


def two_sample_t_test(
    values: Sequence[float],
    groups: Sequence[Optional[str]],
    alternative: str = "two-sided",
    config: Optional[EngineConfig] = None,
) -> TestResult:
    """Welch's unequal-variance t-test between the first two group labels.

    Args:
        values: Numeric response per observation (NaN for missing).
        groups: Group label per observation (``None`` or ``""`` for missing),
            parallel to ``values``.
        alternative: Direction relative to ``mean(group1) - mean(group2)``.
        config: Engine settings.

    Raises:
        InsufficientGroups: If fewer than two distinct labels exist.
        InsufficientObservations: If either group has fewer than two numeric
            values.
        ZeroVariance: If both groups have zero variance.
    """
    config = config or DEFAULT_CONFIG
    _check_alternative(alternative)
    vals = np.asarray(values, dtype=float)
    if len(vals) != len(groups):
        raise ValueError("values and groups must have the same length")
    labels = first_two_groups(groups)
    if len(labels) < 2:
        raise InsufficientGroups("Two-sample t-test needs two distinct groups.")

    samples = []
    for label in labels:
        mask = np.array([g == label for g in groups], dtype=bool)
        samples.append(_finite(vals[mask]))
    g1, g2 = samples
    n1, n2 = int(g1.size), int(g2.size)
    if n1 < 2 or n2 < 2:
        raise InsufficientObservations(
            f"Each group needs at least 2 values ({labels[0]}: {n1}, {labels[1]}: {n2})."
        )

    m1, m2 = float(np.mean(g1)), float(np.mean(g2))
    v1, v2 = float(np.var(g1, ddof=1)), float(np.var(g2, ddof=1))
    a1, a2 = v1 / n1, v2 / n2
    se = math.sqrt(a1 + a2)
    if se == 0:
        raise ZeroVariance("Both groups have zero variance; the t statistic is undefined.")
    t = (m1 - m2) / se
    df = (a1 + a2) ** 2 / (a1**2 / (n1 - 1) + a2**2 / (n2 - 1))
    pooled_sd = math.sqrt(((n1 - 1) * v1 + (n2 - 1) * v2) / (n1 + n2 - 2))

    return TestResult(
        test_name="Welch's Two-Sample t-Test",
        statistic=t,
        statistic_label="t",
        df=float(df),
        p_value=t_pvalue(t, df, alternative, config.pvalue_method),
        alternative=alternative,
        effect_size=abs(m1 - m2) / pooled_sd,
        effect_size_label="Cohen's d",
        details=TwoSampleDetails(
            group1=labels[0],
            group2=labels[1],
            n1=n1,
            n2=n2,
            mean1=m1,
            mean2=m2,
            sd1=math.sqrt(v1),
            sd2=math.sqrt(v2),
        ),
    )


def paired_t_test(
    first: Sequence[float],
    second: Sequence[float],
    alternative: str = "two-sided",
    config: Optional[EngineConfig] = None,
) -> TestResult:
    """Paired t-test on ``first - second``.

    The vectors are truncated to the shorter length before differencing;
    pairs with a non-finite member are dropped.
    """
    config = config or DEFAULT_CONFIG
    _check_alternative(alternative)
    a = np.asarray(first, dtype=float).ravel()
    b = np.asarray(second, dtype=float).ravel()
    n = min(a.size, b.size)
    diffs = _finite(a[:n] - b[:n])
    n = int(diffs.size)
    if n < 2:
        raise InsufficientObservations(f"Paired t-test needs at least 2 pairs, got {n}.")
    mean = float(np.mean(diffs))
    sd = float(np.std(diffs, ddof=1))
    if sd == 0:
        raise ZeroVariance("All paired differences are identical; the t statistic is undefined.")
    t = mean / (sd / math.sqrt(n))
    df = n - 1
    return TestResult(
        test_name="Paired t-Test",
        statistic=t,
        statistic_label="t",
        df=float(df),
        p_value=t_pvalue(t, df, alternative, config.pvalue_method),
        alternative=alternative,
        effect_size=abs(mean) / sd,
        effect_size_label="Cohen's d",
        details=PairedDetails(n=n, mean_diff=mean, sd_diff=sd),
    )


def chi_square_from_counts(observed) -> ChiSquareBlock:
    """Chi-square test of independence on an ``r x c`` table of counts.

    Expected counts are ``row_total * col_total / grand_total``; cells with
    zero expectation are skipped. Cramér's V is
    ``sqrt(chi2 / (N * (min(r, c) - 1)))``.

    Raises:
        InsufficientGroups: If the table is smaller than 2 x 2.
        InsufficientData: If the grand total is zero.
    """
    obs = np.asarray(observed, dtype=float)
    if obs.ndim != 2 or obs.shape[0] < 2 or obs.shape[1] < 2:
        raise InsufficientGroups("Chi-square test needs at least two categories per variable.")
    total = float(obs.sum())
    if total <= 0:
        raise InsufficientData("Chi-square test needs at least one observation.")

    row_totals = obs.sum(axis=1)
    col_totals = obs.sum(axis=0)
    expected = np.outer(row_totals, col_totals) / total
    mask = expected > 0
    chi2 = float(np.sum((obs[mask] - expected[mask]) ** 2 / expected[mask]))
    r, c = obs.shape
    df = (r - 1) * (c - 1)
    k = min(r, c)
    cramers_v = math.sqrt(chi2 / (total * (k - 1)))
    return ChiSquareBlock(
        statistic=chi2,
        df=int(df),
        p_value=chi_square_pvalue(chi2, df),
        cramers_v=cramers_v,
    )


def contingency_counts(
    row_labels: Sequence[Optional[str]], col_labels: Sequence[Optional[str]]
) -> Tuple[List[str], List[str], np.ndarray]:
    """Count co-occurrences of two label sequences.

    Only positions where both labels are present contribute. Label sets are
    returned sorted.
    """
    if len(row_labels) != len(col_labels):
        raise ValueError("row_labels and col_labels must have the same length")
    pairs = [(r, c) for r, c in zip(row_labels, col_labels) if r and c]
    rows = sorted({r for r, _ in pairs})
    cols = sorted({c for _, c in pairs})
    row_idx = {v: i for i, v in enumerate(rows)}
    col_idx = {v: i for i, v in enumerate(cols)}
    counts = np.zeros((len(rows), len(cols)), dtype=int)
    for r, c in pairs:
        counts[row_idx[r], col_idx[c]] += 1
    return rows, cols, counts


def chi_square_test(
    row_labels: Sequence[Optional[str]], col_labels: Sequence[Optional[str]]
) -> TestResult:
    """Chi-square test of independence between two categorical variables."""
    rows, cols, counts = contingency_counts(row_labels, col_labels)
    block = chi_square_from_counts(counts)
    return TestResult(
        test_name="Chi-Square Test of Independence",
        statistic=block.statistic,
        statistic_label="χ²",
        df=float(block.df),
        p_value=block.p_value,
        effect_size=block.cramers_v,
        effect_size_label="Cramer's V",
        details=ChiSquareDetails(
            rows=len(rows),
            cols=len(cols),
            total_n=int(counts.sum()),
            row_labels=tuple(rows),
            col_labels=tuple(cols),
            observed=tuple(tuple(int(v) for v in row) for row in counts),
        ),
    )


def one_way_anova(
    values: Sequence[float], groups: Sequence[Optional[str]]
) -> TestResult:
    """One-way analysis of variance of ``values`` across ``groups``.

    Groups are kept in order of first appearance. Observations with a missing
    label or a non-finite value are ignored.
    """
    vals = np.asarray(values, dtype=float)
    if len(vals) != len(groups):
        raise ValueError("values and groups must have the same length")
    buckets: Dict[str, List[float]] = {}
    for v, g in zip(vals, groups):
        if not g or not math.isfinite(v):
            continue
        buckets.setdefault(g, []).append(float(v))

    k = len(buckets)
    if k < 2:
        raise InsufficientGroups(f"ANOVA needs at least two groups, got {k}.")
    names = list(buckets)
    arrays = [np.asarray(buckets[name]) for name in names]
    all_vals = np.concatenate(arrays)
    N = int(all_vals.size)
    if N <= k:
        raise InsufficientObservations(
            f"ANOVA needs more observations ({N}) than groups ({k})."
        )

    grand_mean = float(np.mean(all_vals))
    means = [float(np.mean(a)) for a in arrays]
    ss_between = float(sum(a.size * (m - grand_mean) ** 2 for a, m in zip(arrays, means)))
    ss_within = float(sum(np.sum((a - m) ** 2) for a, m in zip(arrays, means)))
    if ss_within == 0:
        raise ZeroVariance("Every group has zero variance; the F statistic is undefined.")

    df_between = k - 1
    df_within = N - k
    ms_between = ss_between / df_between
    ms_within = ss_within / df_within
    f_stat = ms_between / ms_within
    logger.debug("ANOVA: k=%d, N=%d, F=%.6f", k, N, f_stat)

    return TestResult(
        test_name="One-Way ANOVA",
        statistic=f_stat,
        statistic_label="F",
        df=(float(df_between), float(df_within)),
        p_value=f_pvalue(f_stat, df_between, df_within),
        effect_size=ss_between / (ss_between + ss_within),
        effect_size_label="η²",
        details=AnovaDetails(
            groups=tuple(names),
            group_sizes=tuple(int(a.size) for a in arrays),
            group_means=tuple(means),
            grand_mean=grand_mean,
            ss_between=ss_between,
            ss_within=ss_within,
            ms_between=ms_between,
            ms_within=ms_within,
        ),
    )
