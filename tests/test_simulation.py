import threading

import numpy as np
import pytest

from statcore.errors import InvalidSelection, RunCancelled
from statcore.sampling import Normal, Uniform, make_rng
from statcore.simulation import (
    PRESETS,
    get_preset,
    histogram_bins,
    run_simulation,
    summarize,
    trace_interval,
)


def test_normal_mean_converges():
    result = run_simulation([Normal("X", mean=5.0, sd=1.0)], "X", 100000, rng=make_rng(42))
    assert len(result.values) == 100000
    assert abs(np.mean(result.values) - 5.0) < 0.05


def test_final_trace_point_is_sample_mean():
    result = run_simulation([Uniform("U", min=0, max=10)], "U * 2", 1234, rng=make_rng(1))
    total = 0.0
    for v in result.values:
        total += v
    assert result.convergence[-1] == total / len(result.values)
    # every 6th iteration plus the final one
    assert len(result.convergence) == 1234 // trace_interval(1234) + 1


def test_trace_interval():
    assert trace_interval(100) == 1
    assert trace_interval(10000) == 50
    assert trace_interval(10000, trace_points=100) == 100


def test_same_seed_same_values():
    variables = [Normal("X"), Uniform("Y")]
    a = run_simulation(variables, "X + Y", 500, rng=make_rng(7))
    b = run_simulation(variables, "X + Y", 500, rng=make_rng(7))
    assert a.values == b.values


def test_unbound_variable_is_reported(caplog):
    with caplog.at_level("WARNING"):
        result = run_simulation([Normal("X")], "X + Z", 10, rng=make_rng(0))
    assert any("'Z'" in d for d in result.diagnostics)
    assert "not defined" in caplog.text


def test_invalid_configuration():
    with pytest.raises(InvalidSelection):
        run_simulation([Normal("X")], "X", 0)
    with pytest.raises(InvalidSelection):
        run_simulation([Normal("X"), Uniform("X")], "X", 10)
    with pytest.raises(InvalidSelection):
        run_simulation([Normal("")], "X", 10)


def test_cancelled_run_raises():
    event = threading.Event()
    event.set()
    with pytest.raises(RunCancelled):
        run_simulation([Normal("X")], "X", 5000, rng=make_rng(0), cancel_event=event)


def test_summarize_statistics():
    summary = summarize(list(range(1, 101)))
    assert summary.n == 100
    assert summary.mean == 50.5
    assert summary.median == 50.5
    assert summary.std_dev == pytest.approx(np.std(np.arange(1, 101)))
    assert summary.p5 == 6.0
    assert summary.p95 == 96.0
    assert summary.p_positive == 1.0


def test_summarize_empty_and_odd():
    assert summarize([]).n == 0
    odd = summarize([-1.0, 3.0, 2.0])
    assert odd.median == 2.0
    assert odd.p_positive == pytest.approx(2 / 3)


def test_histogram_bins_cover_all_values():
    values = make_rng(3).normal(size=2500)
    bins = histogram_bins(values)
    assert 30 <= len(bins) <= 50
    assert sum(b.count for b in bins) == 2500
    assert bins[0].start == values.min()
    assert bins[-1].end == pytest.approx(values.max())


def test_histogram_constant_sample():
    bins = histogram_bins([4.0] * 10)
    assert bins[0].count == 10
    assert bins[0].end - bins[0].start == 1.0
    assert histogram_bins([]) == []


def test_presets_run():
    assert len(PRESETS) == 3
    dice = get_preset("sum of dice")
    result = run_simulation(dice.variables, dice.expression, 20000, rng=make_rng(4))
    assert abs(np.mean(result.values) - 7.0) < 0.1
    assert not result.diagnostics
    with pytest.raises(KeyError):
        get_preset("Lottery")


def test_long_expression_runs():
    source = " + ".join(["X"] * 2000)
    result = run_simulation([Normal("X", mean=1, sd=0)], source, 5, rng=make_rng(0))
    assert result.values == (2000.0,) * 5
    assert result.diagnostics == ()
