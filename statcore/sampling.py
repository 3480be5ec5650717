"""Random variable definitions and single-draw variate generators.

Every sampler takes a ``numpy.random.Generator`` and uses only its uniform
``random()`` stream, so a seeded generator reproduces a run exactly.
"""

from __future__ import annotations

import math
import uuid
from dataclasses import dataclass, field
from typing import Dict, Optional, Type, Union

import numpy as np

from .config import BINOMIAL_EXACT_LIMIT, POISSON_EXACT_LIMIT


def make_rng(seed: Optional[int] = None) -> np.random.Generator:
    return np.random.default_rng(seed)


def _nonzero_uniform(rng: np.random.Generator) -> float:
    u = 0.0
    while u == 0.0:
        u = float(rng.random())
    return u


def sample_normal(rng: np.random.Generator, mean: float = 0.0, sd: float = 1.0) -> float:
    """Box-Muller transform of two independent non-zero uniforms."""
    u1 = _nonzero_uniform(rng)
    u2 = _nonzero_uniform(rng)
    z = math.sqrt(-2.0 * math.log(u1)) * math.cos(2.0 * math.pi * u2)
    return mean + sd * z


def sample_uniform(rng: np.random.Generator, low: float = 0.0, high: float = 1.0) -> float:
    return low + float(rng.random()) * (high - low)


def sample_binomial(
    rng: np.random.Generator,
    n: float = 10,
    p: float = 0.5,
    exact_limit: int = BINOMIAL_EXACT_LIMIT,
) -> float:
    """Number of successes in ``round(n)`` Bernoulli(p) trials.

    Above ``exact_limit`` trials a normal approximation with mean ``np`` and
    sd ``sqrt(np(1-p))`` is rounded and clamped to ``[0, n]``.
    """
    trials = int(round(n))
    if trials <= 0:
        return 0.0
    if trials > exact_limit:
        mean = trials * p
        sd = math.sqrt(max(trials * p * (1.0 - p), 0.0))
        draw = sample_normal(rng, mean, sd)
        return float(round(max(0.0, min(float(trials), draw))))
    successes = 0
    for _ in range(trials):
        if rng.random() < p:
            successes += 1
    return float(successes)


def sample_exponential(rng: np.random.Generator, rate: float = 1.0) -> float:
    """Inverse-CDF draw ``-ln(u) / rate``.

    A zero rate yields ``inf``, which the expression evaluator coerces to 0.
    """
    u = _nonzero_uniform(rng)
    if rate == 0:
        return math.inf
    return -math.log(u) / rate


def sample_poisson(
    rng: np.random.Generator,
    lam: float = 5.0,
    exact_limit: float = POISSON_EXACT_LIMIT,
) -> float:
    """Knuth's multiplicative method, normal-approximated above ``exact_limit``."""
    if lam <= 0:
        return 0.0
    if lam > exact_limit:
        return float(round(max(0.0, sample_normal(rng, lam, math.sqrt(lam)))))
    limit = math.exp(-lam)
    k = 0
    prod = 1.0
    while True:
        k += 1
        prod *= float(rng.random())
        if prod <= limit:
            break
    return float(k - 1)


def _new_id() -> str:
    return uuid.uuid4().hex


@dataclass(frozen=True)
class Normal:
    name: str
    mean: float = 0.0
    sd: float = 1.0
    id: str = field(default_factory=_new_id)
    distribution: str = field(default="normal", init=False)


@dataclass(frozen=True)
class Uniform:
    name: str
    min: float = 0.0
    max: float = 1.0
    id: str = field(default_factory=_new_id)
    distribution: str = field(default="uniform", init=False)


@dataclass(frozen=True)
class Binomial:
    name: str
    n: float = 10
    p: float = 0.5
    id: str = field(default_factory=_new_id)
    distribution: str = field(default="binomial", init=False)


@dataclass(frozen=True)
class Exponential:
    name: str
    rate: float = 1.0
    id: str = field(default_factory=_new_id)
    distribution: str = field(default="exponential", init=False)


@dataclass(frozen=True)
class Poisson:
    name: str
    lam: float = 5.0
    id: str = field(default_factory=_new_id)
    distribution: str = field(default="poisson", init=False)


RandomVariable = Union[Normal, Uniform, Binomial, Exponential, Poisson]

DISTRIBUTIONS: Dict[str, Type] = {
    "normal": Normal,
    "uniform": Uniform,
    "binomial": Binomial,
    "exponential": Exponential,
    "poisson": Poisson,
}


def with_distribution(var: RandomVariable, distribution: str) -> RandomVariable:
    """Switch ``var`` to another family, resetting parameters to its defaults.

    The variable keeps its ``id`` and ``name``.
    """
    try:
        cls = DISTRIBUTIONS[distribution]
    except KeyError:
        raise ValueError(
            f"Unknown distribution {distribution!r}. Expected one of {tuple(DISTRIBUTIONS)}."
        ) from None
    return cls(name=var.name, id=var.id)


def variable_from_dict(data: Dict) -> RandomVariable:
    """Build a variable from ``{"name", "distribution", "params"}`` mappings.

    Missing parameters take the family defaults; ``lambda`` is accepted as
    an alias for ``lam``.
    """
    distribution = data.get("distribution", "normal")
    if distribution not in DISTRIBUTIONS:
        raise ValueError(f"Unknown distribution {distribution!r}.")
    params = dict(data.get("params", {}))
    if "lambda" in params:
        params["lam"] = params.pop("lambda")
    kwargs = {"name": data["name"], **{k: float(v) for k, v in params.items()}}
    if data.get("id"):
        kwargs["id"] = data["id"]
    return DISTRIBUTIONS[distribution](**kwargs)


def sample_variable(
    var: RandomVariable,
    rng: np.random.Generator,
    binomial_exact_limit: int = BINOMIAL_EXACT_LIMIT,
    poisson_exact_limit: float = POISSON_EXACT_LIMIT,
) -> float:
    """Draw one value of ``var``."""
    if isinstance(var, Normal):
        return sample_normal(rng, var.mean, var.sd)
    if isinstance(var, Uniform):
        return sample_uniform(rng, var.min, var.max)
    if isinstance(var, Binomial):
        return sample_binomial(rng, var.n, var.p, binomial_exact_limit)
    if isinstance(var, Exponential):
        return sample_exponential(rng, var.rate)
    if isinstance(var, Poisson):
        return sample_poisson(rng, var.lam, poisson_exact_limit)
    raise TypeError(f"Unsupported random variable type {type(var).__name__}.")
