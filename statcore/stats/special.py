"""Special-function approximations and the p-values derived from them.

No statistics library is used: log-gamma follows the six-term Lanczos series,
the normal CDF uses the Abramowitz-Stegun 7.1.26 rational approximation of
erf, and the regularized incomplete gamma and beta functions are evaluated by
series and modified-Lentz continued fractions.

Precision contract:
    ``t_pvalue(..., method="exact")`` (the default) uses the identity
    ``P(|T| > |t|) = I_{df/(df+t^2)}(df/2, 1/2)`` and is accurate to roughly
    1e-9 for the degrees of freedom produced by this package.
    ``method="normal"`` reproduces the older blended normal approximation and
    is only accurate to about two decimal places for small ``df``.
"""

from __future__ import annotations

import math

from ..config import DEFAULT_CONVERGENCE_EPS, DEFAULT_MAX_ITERATIONS, PVALUE_METHODS

_LANCZOS = (
    76.18009172947146,
    -86.50532032941677,
    24.01409824083091,
    -1.231739572450155,
    0.1208650973866179e-2,
    -0.5395239384953e-5,
)
_SQRT_2PI_SERIES = 2.5066282746310005

_AS_A = (0.254829592, -0.284496736, 1.421413741, -1.453152027, 1.061405429)
_AS_P = 0.3275911

# Lentz guard against division by zero
_FPMIN = 1e-300

ALTERNATIVES = ("two-sided", "less", "greater")


def _clamp01(p: float) -> float:
    return min(1.0, max(0.0, p))


def log_gamma(z: float) -> float:
    """Natural log of the gamma function for ``z > 0``.

    Raises:
        ValueError: If ``z`` is not strictly positive.
    """
    if not z > 0:
        raise ValueError(f"log_gamma is defined for z > 0, got {z!r}")
    x = y = float(z)
    tmp = x + 5.5
    tmp -= (x + 0.5) * math.log(tmp)
    ser = 1.000000000190015
    for c in _LANCZOS:
        y += 1.0
        ser += c / y
    return -tmp + math.log(_SQRT_2PI_SERIES * ser / x)


def normal_cdf(x: float) -> float:
    """Standard normal CDF, saturating to exactly 0 / 1 beyond ``|x| > 8``."""
    if x < -8.0:
        return 0.0
    if x > 8.0:
        return 1.0
    z = abs(x) / math.sqrt(2.0)
    t = 1.0 / (1.0 + _AS_P * z)
    a1, a2, a3, a4, a5 = _AS_A
    poly = ((((a5 * t + a4) * t + a3) * t + a2) * t + a1) * t
    erf = 1.0 - poly * math.exp(-z * z)
    sign = -1.0 if x < 0 else 1.0
    return _clamp01(0.5 * (1.0 + sign * erf))


def _gamma_series(s: float, x: float, max_iter: int, eps: float) -> float:
    term = 1.0 / s
    total = term
    for n in range(1, max_iter + 1):
        term *= x / (s + n)
        total += term
        if abs(term) < abs(total) * eps:
            break
    return total * math.exp(-x + s * math.log(x) - log_gamma(s))


def _gamma_continued_fraction(s: float, x: float, max_iter: int, eps: float) -> float:
    b = x + 1.0 - s
    c = 1.0 / _FPMIN
    d = 1.0 / b
    h = d
    for i in range(1, max_iter + 1):
        an = -i * (i - s)
        b += 2.0
        d = an * d + b
        if abs(d) < _FPMIN:
            d = _FPMIN
        c = b + an / c
        if abs(c) < _FPMIN:
            c = _FPMIN
        d = 1.0 / d
        delta = d * c
        h *= delta
        if abs(delta - 1.0) < eps:
            break
    return math.exp(-x + s * math.log(x) - log_gamma(s)) * h


def lower_incomplete_gamma(
    s: float,
    x: float,
    max_iter: int = DEFAULT_MAX_ITERATIONS,
    eps: float = DEFAULT_CONVERGENCE_EPS,
) -> float:
    """Regularized lower incomplete gamma ``P(s, x)``.

    The power series is used below ``x = s + 1``; above it the complement is
    computed from the continued fraction, which converges quickly there.
    """
    if s <= 0:
        raise ValueError(f"Shape parameter must be > 0, got {s!r}")
    if x <= 0:
        return 0.0
    if math.isinf(x):
        return 1.0
    if x < s + 1.0:
        return _clamp01(_gamma_series(s, x, max_iter, eps))
    return _clamp01(1.0 - _gamma_continued_fraction(s, x, max_iter, eps))


def upper_incomplete_gamma(
    s: float,
    x: float,
    max_iter: int = DEFAULT_MAX_ITERATIONS,
    eps: float = DEFAULT_CONVERGENCE_EPS,
) -> float:
    """Regularized upper incomplete gamma ``Q(s, x) = 1 - P(s, x)``."""
    if s <= 0:
        raise ValueError(f"Shape parameter must be > 0, got {s!r}")
    if x <= 0:
        return 1.0
    if math.isinf(x):
        return 0.0
    if x < s + 1.0:
        return _clamp01(1.0 - _gamma_series(s, x, max_iter, eps))
    return _clamp01(_gamma_continued_fraction(s, x, max_iter, eps))


def _beta_continued_fraction(a: float, b: float, x: float, max_iter: int, eps: float) -> float:
    qab = a + b
    qap = a + 1.0
    qam = a - 1.0
    c = 1.0
    d = 1.0 - qab * x / qap
    if abs(d) < _FPMIN:
        d = _FPMIN
    d = 1.0 / d
    h = d
    for m in range(1, max_iter + 1):
        m2 = 2 * m
        aa = m * (b - m) * x / ((qam + m2) * (a + m2))
        d = 1.0 + aa * d
        if abs(d) < _FPMIN:
            d = _FPMIN
        c = 1.0 + aa / c
        if abs(c) < _FPMIN:
            c = _FPMIN
        d = 1.0 / d
        h *= d * c

        aa = -(a + m) * (qab + m) * x / ((a + m2) * (qap + m2))
        d = 1.0 + aa * d
        if abs(d) < _FPMIN:
            d = _FPMIN
        c = 1.0 + aa / c
        if abs(c) < _FPMIN:
            c = _FPMIN
        d = 1.0 / d
        delta = d * c
        h *= delta
        if abs(delta - 1.0) < eps:
            break
    return h


def incomplete_beta(
    a: float,
    b: float,
    x: float,
    max_iter: int = DEFAULT_MAX_ITERATIONS,
    eps: float = DEFAULT_CONVERGENCE_EPS,
) -> float:
    """Regularized incomplete beta ``I_x(a, b)``.

    Uses ``I_x(a, b) = 1 - I_{1-x}(b, a)`` when ``x`` lies above the mean of
    the beta density so the continued fraction always converges rapidly.
    """
    if a <= 0 or b <= 0:
        raise ValueError(f"Beta parameters must be > 0, got a={a!r}, b={b!r}")
    if x <= 0:
        return 0.0
    if x >= 1:
        return 1.0
    log_front = (
        log_gamma(a + b)
        - log_gamma(a)
        - log_gamma(b)
        + a * math.log(x)
        + b * math.log1p(-x)
    )
    front = math.exp(log_front)
    if x < (a + 1.0) / (a + b + 2.0):
        return _clamp01(front * _beta_continued_fraction(a, b, x, max_iter, eps) / a)
    return _clamp01(1.0 - front * _beta_continued_fraction(b, a, 1.0 - x, max_iter, eps) / b)


def _t_tail(t: float, df: float) -> float:
    """``P(T > |t|)`` for Student's t with ``df`` degrees of freedom."""
    if math.isinf(t):
        return 0.0
    x = df / (df + t * t)
    return 0.5 * incomplete_beta(df / 2.0, 0.5, x)


def student_t_cdf(t: float, df: float) -> float:
    """CDF of Student's t distribution."""
    if df <= 0:
        raise ValueError(f"Degrees of freedom must be > 0, got {df!r}")
    if math.isnan(t):
        return math.nan
    tail = _t_tail(t, df)
    return tail if t < 0 else 1.0 - tail


def _normal_blend_z(t: float, df: float) -> float:
    if df > 100:
        return t
    t2 = t * t
    if df <= 5:
        return t / math.sqrt(1.0 + t2 / df)
    return (
        t
        * math.sqrt((df - 1.5) / (df * (1.0 + t2 / (2.0 * df))))
        * (1.0 + (3.0 * t2 - df) / (20.0 * df * df))
    )


def t_pvalue(
    t: float, df: float, alternative: str = "two-sided", method: str = "exact"
) -> float:
    """p-value of a Student-t statistic.

    Args:
        t: Test statistic.
        df: Degrees of freedom (may be fractional, e.g. Welch). ``df <= 0``
            yields 1.
        alternative: ``"two-sided"``, ``"less"`` or ``"greater"``.
        method: ``"exact"`` or ``"normal"`` (see module docstring).

    Returns:
        float: p-value in ``[0, 1]``.
    """
    if alternative not in ALTERNATIVES:
        raise ValueError(f"alternative must be one of {ALTERNATIVES}, got {alternative!r}")
    if method not in PVALUE_METHODS:
        raise ValueError(f"method must be one of {PVALUE_METHODS}, got {method!r}")
    if df <= 0 or math.isnan(t):
        return 1.0

    if method == "exact":
        one_tail = _t_tail(t, df)
    else:
        z = t if math.isinf(t) else _normal_blend_z(t, df)
        one_tail = 1.0 - normal_cdf(abs(z))

    if alternative == "two-sided":
        return _clamp01(2.0 * one_tail)
    if alternative == "greater":
        return _clamp01(one_tail if t > 0 else 1.0 - one_tail)
    return _clamp01(one_tail if t < 0 else 1.0 - one_tail)


def chi_square_pvalue(x: float, df: float) -> float:
    """Right-tail probability of the chi-square distribution."""
    if x <= 0 or df <= 0:
        return 1.0
    return upper_incomplete_gamma(df / 2.0, x / 2.0)


def f_pvalue(f: float, df1: float, df2: float) -> float:
    """Right-tail probability of the F distribution."""
    if f <= 0 or df1 <= 0 or df2 <= 0 or math.isnan(f):
        return 1.0
    if math.isinf(f):
        return 0.0
    x = df2 / (df2 + df1 * f)
    return incomplete_beta(df2 / 2.0, df1 / 2.0, x)
