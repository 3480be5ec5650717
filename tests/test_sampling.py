import numpy as np
import pytest

from statcore.sampling import (
    Binomial,
    Exponential,
    Normal,
    Poisson,
    Uniform,
    make_rng,
    sample_binomial,
    sample_exponential,
    sample_normal,
    sample_poisson,
    sample_uniform,
    sample_variable,
    variable_from_dict,
    with_distribution,
)

N = 20000


def draws(fn, *args, seed=123):
    rng = make_rng(seed)
    return np.array([fn(rng, *args) for _ in range(N)])


def test_seeded_generators_reproduce():
    a = draws(sample_normal, 0.0, 1.0, seed=5)
    b = draws(sample_normal, 0.0, 1.0, seed=5)
    assert np.array_equal(a, b)


def test_normal_moments():
    x = draws(sample_normal, 3.0, 2.0)
    assert abs(x.mean() - 3.0) < 0.06
    assert abs(x.std() - 2.0) < 0.06


def test_uniform_range_and_mean():
    x = draws(sample_uniform, 1.0, 6.0)
    assert x.min() >= 1.0 and x.max() < 6.0
    assert abs(x.mean() - 3.5) < 0.05


def test_exponential_mean_and_positive():
    x = draws(sample_exponential, 2.0)
    assert (x > 0).all()
    assert abs(x.mean() - 0.5) < 0.02


def test_binomial_exact_and_approximate():
    x = draws(sample_binomial, 10, 0.3)
    assert set(np.unique(x)) <= set(range(11))
    assert abs(x.mean() - 3.0) < 0.05
    big = draws(sample_binomial, 1000, 0.5)
    assert big.min() >= 0 and big.max() <= 1000
    assert np.array_equal(big, np.round(big))
    assert abs(big.mean() - 500.0) < 0.5


def test_binomial_degenerate_inputs():
    rng = make_rng(0)
    assert sample_binomial(rng, 0, 0.5) == 0.0
    assert sample_binomial(rng, 5, 1.0) == 5.0


def test_poisson_small_and_large_lambda():
    x = draws(sample_poisson, 4.0)
    assert abs(x.mean() - 4.0) < 0.06
    assert abs(x.var() - 4.0) < 0.2
    big = draws(sample_poisson, 100.0)
    assert abs(big.mean() - 100.0) < 0.3
    assert sample_poisson(make_rng(0), 0.0) == 0.0


def test_variable_ids_are_unique_and_kept_on_switch():
    a = Normal("X")
    b = Normal("X")
    assert a.id != b.id
    switched = with_distribution(a, "poisson")
    assert isinstance(switched, Poisson)
    assert switched.id == a.id and switched.name == "X"
    assert switched.lam == 5.0
    with pytest.raises(ValueError):
        with_distribution(a, "cauchy")


def test_variable_from_dict():
    var = variable_from_dict({"name": "K", "distribution": "poisson", "params": {"lambda": 2}})
    assert isinstance(var, Poisson) and var.lam == 2.0
    default = variable_from_dict({"name": "U", "distribution": "uniform"})
    assert (default.min, default.max) == (0.0, 1.0)
    with pytest.raises(ValueError):
        variable_from_dict({"name": "Z", "distribution": "weibull"})


def test_sample_variable_dispatch():
    rng = make_rng(9)
    for var in (Normal("a"), Uniform("b"), Binomial("c"), Exponential("d"), Poisson("e")):
        assert np.isfinite(sample_variable(var, rng))
    with pytest.raises(TypeError):
        sample_variable("not a variable", rng)


def test_exponential_zero_rate_is_infinite():
    assert sample_exponential(make_rng(0), 0.0) == float("inf")
