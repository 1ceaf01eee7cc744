"""Tests for the reference simulation engine."""

import pytest
import numpy as np


class TestSquareLattice:
    def test_neighbors(self):
        from mcstate.simulation import SquareLattice

        lattice = SquareLattice(4, 2)
        nbrs = lattice.neighbors()

        assert nbrs.shape == (8, 4)
        # site 3 = (x=3, y=0): right wraps to 0, left 2, up 7, down 7
        assert list(nbrs[3]) == [0, 2, 7, 7]

    def test_sublattices_alternate(self):
        from mcstate.simulation import SquareLattice

        lattice = SquareLattice(4, 4)
        parity = lattice.sublattice()
        nbrs = lattice.neighbors()
        assert np.all(parity[nbrs] != parity[:, None])

    def test_odd_dimensions_rejected(self):
        from mcstate.simulation import SquareLattice

        with pytest.raises(ValueError):
            SquareLattice(3, 4)


class TestAccumulator:
    def test_mean_and_variance(self):
        from mcstate.simulation import Accumulator

        acc = Accumulator("x")
        for v in [1.0, 2.0, 3.0, 4.0]:
            acc.push(v)

        assert acc.count == 4
        assert float(acc.mean) == pytest.approx(2.5)
        assert float(acc.var) == pytest.approx(np.var([1, 2, 3, 4], ddof=1))

    def test_array_samples(self):
        from mcstate.simulation import Accumulator

        acc = Accumulator("G")
        acc.push(np.eye(2))
        acc.push(np.zeros((2, 2)))
        assert np.allclose(acc.mean, 0.5 * np.eye(2))

    def test_variance_undefined_for_single_sample(self):
        from mcstate.simulation import Accumulator

        acc = Accumulator("x")
        acc.push(1.0)
        assert np.isnan(acc.var)


class TestMetropolisMC:
    """Tests for MetropolisMC."""

    def test_initial_state(self, mc):
        from mcstate.simulation import SimulationStatus

        assert mc.status == SimulationStatus.IDLE
        assert mc.total_sweeps == 25
        assert mc.progress == 0.0
        assert set(np.unique(mc.conf)) <= {-1, 1}
        assert mc.conf.dtype == np.int8

    def test_run_is_capped_at_total(self, mc, rng):
        from mcstate.simulation import SimulationStatus

        summary = mc.run(sweeps=100, rng=rng)

        assert summary.sweeps_run == 25
        assert mc.sweeps_completed == 25
        assert mc.status == SimulationStatus.COMPLETED
        assert mc.progress_percent == 100.0
        assert 0.0 <= summary.acceptance_rate <= 1.0

        again = mc.run(rng=rng)
        assert again.sweeps_run == 0

    def test_partial_run_pauses(self, mc, rng):
        from mcstate.simulation import SimulationStatus

        mc.run(sweeps=3, rng=rng)
        assert mc.status == SimulationStatus.PAUSED
        assert mc.remaining_sweeps == 22

    def test_measurements_after_thermalization(self, make_mc, rng):
        mc = make_mc(sweeps=6, thermalization=4)
        mc.measure_every = 2
        mc.run(rng=rng)

        assert mc.measurements["Energy"].obs.count == 3
        assert mc.measurements["Magnetization"].obs.count == 3

    def test_same_seed_same_chain(self, make_mc):
        a, b = make_mc(), make_mc()
        a.run(rng=np.random.default_rng(3))
        b.run(rng=np.random.default_rng(3))
        assert np.array_equal(a.conf, b.conf)
        assert a.measurements == b.measurements

    def test_low_temperature_stays_ordered(self, rng):
        from mcstate.simulation import IsingModel, MetropolisMC, SquareLattice

        model = IsingModel(SquareLattice(4, 4), beta=2.0)
        mc = MetropolisMC(model, sweeps=50, thermalization=0, conf=np.ones(16))
        mc.run(rng=rng)
        assert float(mc.measurements["Magnetization"].obs.mean) > 0.9

    def test_energy(self):
        from mcstate.simulation import IsingModel, MetropolisMC, SquareLattice

        model = IsingModel(SquareLattice(4, 4), J=1.0, h=0.5)
        mc = MetropolisMC(model, conf=np.ones(16, dtype=np.int8))
        # 32 bonds, 16 sites in the field
        assert mc.energy == -32.0 - 8.0

    def test_error_status(self, mc):
        from mcstate.simulation import SimulationStatus

        with pytest.raises(AttributeError):
            mc.run(sweeps=1, rng="not a generator")
        assert mc.status == SimulationStatus.ERROR

    def test_summary_to_dict(self, mc, rng):
        data = mc.run(sweeps=2, rng=rng).to_dict()
        assert data["status"] == "paused"
        assert data["sweeps_run"] == 2

    def test_invalid_configuration(self):
        from mcstate.simulation import IsingModel, MetropolisMC, SquareLattice

        with pytest.raises(ValueError):
            MetropolisMC(IsingModel(SquareLattice(4, 4)), conf=np.ones(8))
