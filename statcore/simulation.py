"""Monte Carlo driver: sample variables, evaluate a model, trace convergence.

Example:
    >>> from statcore.sampling import Normal, make_rng
    >>> result = run_simulation([Normal("X", mean=5, sd=1)], "X * 2", 1000, rng=make_rng(1))
    >>> len(result.values)
    1000
"""

from __future__ import annotations

import logging
import math
import threading
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import numpy as np

from .config import DEFAULT_CONFIG, EngineConfig
from .errors import InvalidSelection, RunCancelled
from .expression import compile_expression
from .sampling import (
    Normal,
    RandomVariable,
    Uniform,
    make_rng,
    sample_variable,
)
from .schema import HistogramBin, SimulationResult, SimulationSummary

logger = logging.getLogger(__name__)

ITERATION_OPTIONS = (1000, 5000, 10000, 50000, 100000)

# iterations between cancellation checks
_CANCEL_CHECK_EVERY = 1024


@dataclass(frozen=True)
class Preset:
    name: str
    description: str
    variables: Tuple[RandomVariable, ...]
    expression: str
    iterations: int


PRESETS: Tuple[Preset, ...] = (
    Preset(
        name="Sum of Dice",
        description="Roll two dice and add them",
        variables=(Uniform("X", min=1, max=6), Uniform("Y", min=1, max=6)),
        expression="X + Y",
        iterations=10000,
    ),
    Preset(
        name="Portfolio Return",
        description="60/40 stock-bond portfolio",
        variables=(Normal("X", mean=0.08, sd=0.15), Normal("Y", mean=0.05, sd=0.08)),
        expression="0.6 * X + 0.4 * Y",
        iterations=10000,
    ),
    Preset(
        name="Election Margin",
        description="Popular vote margin estimate",
        variables=(Normal("X", mean=0.02, sd=0.03),),
        expression="X * 1000000",
        iterations=10000,
    ),
)


def get_preset(name: str) -> Preset:
    for preset in PRESETS:
        if preset.name.lower() == name.lower():
            return preset
    raise KeyError(f"No preset named {name!r}.")


def trace_interval(iterations: int, trace_points: int = DEFAULT_CONFIG.trace_points) -> int:
    """Iterations between convergence-trace samples."""
    return max(1, iterations // trace_points)


def run_simulation(
    variables: Sequence[RandomVariable],
    expression: str,
    iterations: int,
    rng: Optional[np.random.Generator] = None,
    cancel_event: Optional[threading.Event] = None,
    config: Optional[EngineConfig] = None,
) -> SimulationResult:
    """Run ``iterations`` trials of ``expression`` over sampled variables.

    Each trial draws every variable once into a fresh environment and
    evaluates the compiled expression against it. The running mean is
    appended to the convergence trace every ``max(1, iterations // 200)``
    trials and on the final trial, so the last trace value equals the mean of
    ``values``.

    Args:
        variables: Random variables with unique names.
        expression: Model expression, e.g. ``"0.6 * X + 0.4 * Y"``.
        iterations: Number of trials, at least 1.
        rng: Uniform source; a fresh unseeded generator when omitted.
        cancel_event: When set by another thread the run stops with
            :class:`statcore.errors.RunCancelled`.
        config: Engine settings.

    Returns:
        SimulationResult: Per-trial values, convergence trace and the inputs
        used, plus any expression diagnostics.
    """
    config = config or DEFAULT_CONFIG
    iterations = int(iterations)
    if iterations < 1:
        raise InvalidSelection("Iterations must be at least 1.")
    names = [v.name for v in variables]
    if any(not n for n in names):
        raise InvalidSelection("Every random variable needs a name.")
    if len(set(names)) != len(names):
        raise InvalidSelection("Random variable names must be unique.")

    rng = rng if rng is not None else make_rng()
    compiled = compile_expression(expression)
    diagnostics = list(compiled.diagnostics)
    for name in compiled.unbound_variables(names):
        diagnostics.append(f"Variable '{name}' is not defined and evaluates to 0.")
    for message in diagnostics:
        logger.warning("Simulation expression %r: %s", expression, message)

    interval = trace_interval(iterations, config.trace_points)
    values = np.empty(iterations, dtype=float)
    convergence: List[float] = []
    running_sum = 0.0

    for i in range(iterations):
        if cancel_event is not None and i % _CANCEL_CHECK_EVERY == 0 and cancel_event.is_set():
            logger.info("Simulation cancelled after %d of %d iterations", i, iterations)
            raise RunCancelled("Simulation was superseded by a newer run.")
        env = {
            v.name: sample_variable(
                v, rng, config.binomial_exact_limit, config.poisson_exact_limit
            )
            for v in variables
        }
        result = compiled.evaluate(env)
        values[i] = result
        running_sum += result
        if (i + 1) % interval == 0 or i == iterations - 1:
            convergence.append(running_sum / (i + 1))

    logger.debug("Simulation of %r finished %d iterations", expression, iterations)

    return SimulationResult(
        values=tuple(float(v) for v in values),
        convergence=tuple(convergence),
        expression=expression,
        variables=tuple(variables),
        iterations=iterations,
        diagnostics=tuple(diagnostics),
    )


def summarize(values: Sequence[float]) -> SimulationSummary:
    """Mean, median, population SD, nearest-rank 5th/95th percentiles, P(x > 0)."""
    arr = np.asarray(values, dtype=float)
    n = int(arr.size)
    if n == 0:
        return SimulationSummary(n=0, mean=0.0, median=0.0, std_dev=0.0, p5=0.0, p95=0.0, p_positive=0.0)
    ordered = np.sort(arr)
    mean = float(np.mean(arr))
    if n % 2 == 0:
        median = float((ordered[n // 2 - 1] + ordered[n // 2]) / 2.0)
    else:
        median = float(ordered[n // 2])
    return SimulationSummary(
        n=n,
        mean=mean,
        median=median,
        std_dev=float(np.sqrt(np.mean((arr - mean) ** 2))),
        p5=float(ordered[int(math.floor(n * 0.05))]),
        p95=float(ordered[min(n - 1, int(math.floor(n * 0.95)))]),
        p_positive=float(np.count_nonzero(arr > 0)) / n,
    )


def histogram_bins(values: Sequence[float]) -> List[HistogramBin]:
    """Equal-width bins over ``[min, max]``.

    The bin count is ``min(50, max(30, ceil(0.8 * sqrt(n))))``; a constant
    sample uses width 1. The maximum falls into the last bin.
    """
    arr = np.asarray(values, dtype=float)
    if arr.size == 0:
        return []
    v_min = float(arr.min())
    v_max = float(arr.max())
    count = min(50, max(30, int(math.ceil(math.sqrt(arr.size) * 0.8))))
    width = (v_max - v_min) / count or 1.0
    idx = np.floor((arr - v_min) / width).astype(int)
    idx = np.clip(idx, 0, count - 1)
    counts = np.bincount(idx, minlength=count)
    return [
        HistogramBin(start=v_min + i * width, end=v_min + (i + 1) * width, count=int(c))
        for i, c in enumerate(counts)
    ]
