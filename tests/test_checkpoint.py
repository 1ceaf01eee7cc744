"""Tests for checkpointing and resuming simulations."""

import pytest
import numpy as np

from conftest import assert_same_simulation, assert_same_tree
from mcstate.errors import RNGRestoreError, UnknownTypeError
from mcstate.io.persistence import save
from mcstate.io.rng import export_rng_state
from mcstate.io.store import open_store
from mcstate.simulation import Checkpointer, SimulationStatus, resume


class TestResume:
    """Tests for resume determinism."""

    def test_interrupted_run_matches_uninterrupted(self, tmp_path, ext, make_mc):
        """Test that N sweeps, save, resume, M sweeps equals N + M sweeps."""
        uninterrupted = make_mc()
        rng_a = np.random.default_rng(42)
        uninterrupted.run(sweeps=8, rng=rng_a)
        uninterrupted.run(sweeps=9, rng=rng_a)

        interrupted = make_mc()
        rng_b = np.random.default_rng(42)
        interrupted.run(sweeps=8, rng=rng_b)
        filename = save(tmp_path / f"checkpoint{ext}", interrupted, rng=rng_b)
        del interrupted

        fresh_rng = np.random.default_rng(0)
        resumed, summary = resume(filename, rng=fresh_rng, sweeps=9)

        assert_same_simulation(resumed, uninterrupted)
        assert export_rng_state(fresh_rng) == export_rng_state(rng_a)
        assert summary.sweeps_run == 9
        assert summary.sweeps_completed == 17

    def test_resume_with_zero_sweeps_reproduces_snapshot(self, tmp_path, make_mc):
        mc = make_mc()
        rng = np.random.default_rng(5)
        mc.run(sweeps=10, rng=rng)
        first = save(tmp_path / "first.npz", mc, rng=rng)

        restored_rng = np.random.default_rng(0)
        resumed, summary = resume(first, rng=restored_rng, sweeps=0)
        second = save(tmp_path / "second.npz", resumed, rng=restored_rng)

        assert summary.sweeps_run == 0
        with open_store(first) as a, open_store(second) as b:
            assert_same_tree(a, b)

    def test_resume_runs_to_completion(self, tmp_path, make_mc):
        mc = make_mc(sweeps=10, thermalization=2)
        rng = np.random.default_rng(1)
        mc.run(sweeps=3, rng=rng)
        filename = save(tmp_path / "run.json", mc, rng=rng)

        resumed, summary = resume(filename, rng=np.random.default_rng(0))

        assert resumed.status == SimulationStatus.COMPLETED
        assert resumed.sweeps_completed == 12
        assert summary.sweeps_run == 9
        assert resumed.measurements["Energy"].obs.count == 10

    def test_resume_unknown_simulation_type(self, tmp_path):
        filename = tmp_path / "run.json"
        with open_store(filename, "w") as store:
            store["VERSION"] = 1
            store["MC/VERSION"] = 1
            store["MC/type"] = "other_flavor.DQMC"
            store["MC/data"] = 0
            store["RNG"] = export_rng_state(np.random.default_rng(0))

        with pytest.raises(UnknownTypeError, match="missing imports"):
            resume(filename, rng=np.random.default_rng(0))

    def test_resume_rejects_incompatible_rng(self, tmp_path, mc):
        """Test that a generator of another kind is not silently left unrestored."""
        filename = save(tmp_path / "run.json", mc, rng=np.random.default_rng(3))
        rng = np.random.Generator(np.random.MT19937(0))
        before = export_rng_state(rng)

        with pytest.raises(RNGRestoreError):
            resume(filename, rng=rng)

        assert np.array_equal(export_rng_state(rng)["state"]["key"], before["state"]["key"])


class TestCheckpointer:
    """Tests for periodic checkpoints during a run."""

    def test_periodic_saves(self, tmp_path, make_mc):
        mc = make_mc(sweeps=10, thermalization=0)
        checkpointer = Checkpointer(tmp_path / "run.npz", every=4)

        mc.run(rng=np.random.default_rng(2), checkpointer=checkpointer)

        # sweeps 4 and 8, then the final state at sweep 10
        assert checkpointer.saves == 3
        assert checkpointer.last_sweep == 10
        assert checkpointer.last_saved == tmp_path / "run.npz"
        assert [p.name for p in tmp_path.iterdir()] == ["run.npz"]

    def test_final_save_on_interval_boundary(self, tmp_path, make_mc):
        """Test that a run ending on a checkpoint sweep still records its final status."""
        mc = make_mc(sweeps=8, thermalization=0)
        checkpointer = Checkpointer(tmp_path / "run.json", every=4)
        mc.run(rng=np.random.default_rng(2), checkpointer=checkpointer)

        # sweeps 4 and 8 while running, then sweep 8 again as completed
        assert checkpointer.saves == 3
        with open_store(checkpointer.last_saved) as store:
            assert store["MC/data/status"] == "completed"
            assert store["MC/data/sweeps_completed"] == 8

    def test_no_duplicate_final_save(self, tmp_path, make_mc):
        mc = make_mc(sweeps=6, thermalization=0)
        checkpointer = Checkpointer(tmp_path / "run.json", every=4)
        rng = np.random.default_rng(2)
        mc.run(rng=rng, checkpointer=checkpointer)
        assert checkpointer.saves == 2

        checkpointer.finish(mc, rng)
        assert checkpointer.saves == 2

    def test_checkpoint_does_not_change_chain(self, tmp_path, make_mc):
        """Test that checkpointing leaves the sampled chain unchanged."""
        plain = make_mc()
        plain.run(rng=np.random.default_rng(9))

        checkpointed = make_mc()
        checkpointed.run(
            rng=np.random.default_rng(9),
            checkpointer=Checkpointer(tmp_path / "run.json", every=3),
        )

        assert_same_simulation(plain, checkpointed)

    def test_resume_from_checkpoint(self, tmp_path, make_mc):
        """Test continuing a run from its last checkpoint."""
        reference = make_mc(sweeps=12, thermalization=0)
        reference.run(rng=np.random.default_rng(4))

        mc = make_mc(sweeps=12, thermalization=0)
        checkpointer = Checkpointer(tmp_path / "run.json", every=5)
        mc.run(sweeps=7, rng=np.random.default_rng(4), checkpointer=checkpointer)
        assert checkpointer.last_sweep == 7

        resumed, _ = resume(checkpointer.last_saved, rng=np.random.default_rng(0))

        assert_same_simulation(resumed, reference)

    def test_invalid_interval(self, tmp_path):
        with pytest.raises(ValueError):
            Checkpointer(tmp_path / "run.json", every=0)
