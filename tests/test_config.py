import pytest

from statcore.config import DEFAULT_CONFIG, EngineConfig
from statcore.sampling import Binomial, make_rng
from statcore.simulation import run_simulation


def test_defaults():
    assert DEFAULT_CONFIG.pivot_tolerance == 1e-12
    assert DEFAULT_CONFIG.pvalue_method == "exact"
    assert DEFAULT_CONFIG.trace_points == 200


def test_replace_returns_new_config():
    changed = DEFAULT_CONFIG.replace(trace_points=10)
    assert changed.trace_points == 10
    assert DEFAULT_CONFIG.trace_points == 200


def test_validation():
    with pytest.raises(ValueError):
        EngineConfig(pvalue_method="bayes")
    with pytest.raises(ValueError):
        EngineConfig(trace_points=0)


def test_trace_points_and_exact_limits_flow_through():
    config = EngineConfig(trace_points=10, binomial_exact_limit=5)
    result = run_simulation([Binomial("B", n=50, p=0.5)], "B", 100, rng=make_rng(0), config=config)
    assert len(result.convergence) == 10
    assert all(0 <= v <= 50 for v in result.values)
