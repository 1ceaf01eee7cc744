"""Pytest configuration and fixtures for mcstate tests."""

import pytest
import numpy as np


@pytest.fixture(params=[".json", ".npz"])
def ext(request):
    """File extension selecting each backend in turn."""
    return request.param


@pytest.fixture
def rng():
    """Seeded generator for reproducible simulations."""
    return np.random.default_rng(1234)


@pytest.fixture
def make_mc():
    """Factory for small reference simulations."""
    from mcstate.simulation import IsingModel, MetropolisMC, SquareLattice

    def factory(seed=7, sweeps=20, thermalization=5, beta=0.4):
        model = IsingModel(SquareLattice(4, 4), beta=beta)
        return MetropolisMC(
            model,
            sweeps=sweeps,
            thermalization=thermalization,
            rng=np.random.default_rng(seed),
        )

    return factory


@pytest.fixture
def mc(make_mc):
    return make_mc()


def assert_same_simulation(a, b):
    """Assert two simulations hold identical state."""
    assert a.sweeps_completed == b.sweeps_completed
    assert a.total_sweeps == b.total_sweeps
    assert a.accepted == b.accepted
    assert a.proposed == b.proposed
    assert a.status == b.status
    assert a.model == b.model
    assert np.array_equal(a.conf, b.conf)
    assert a.conf.dtype == b.conf.dtype
    assert a.measurements == b.measurements


def assert_same_tree(a, b):
    """Assert two stores (or groups) hold identical trees."""
    from mcstate.io.store import Group

    assert list(a.keys()) == list(b.keys())
    for key in a.keys():
        x, y = a[key], b[key]
        if isinstance(x, Group):
            assert isinstance(y, Group)
            assert_same_tree(x, y)
        elif isinstance(x, np.ndarray):
            assert np.array_equal(x, y)
            assert x.dtype == y.dtype
        else:
            assert x == y, key
