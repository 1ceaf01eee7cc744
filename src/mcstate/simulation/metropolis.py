"""Reference engine: checkerboard Metropolis sampling of the Ising model."""

import logging
import time

import numpy as np

from mcstate.errors import UnknownTypeError
from mcstate.io.codec import UnknownEntity, check_version, decode_entity, encode_entity, register_entity
from mcstate.io.rng import global_rng
from mcstate.simulation.flavor import MonteCarloFlavor, RunSummary, SimulationStatus
from mcstate.simulation.measurements import (
    Measurement,
    default_measurements,
    load_measurements,
    save_measurements,
)
from mcstate.simulation.model import IsingModel

logger = logging.getLogger(__name__)


@register_entity(version=1)
class MetropolisMC(MonteCarloFlavor):
    """Single spin flip Metropolis simulation with checkerboard updates.

    Args:
        model: Model to sample
        sweeps: Number of measurement sweeps
        thermalization: Number of sweeps before measuring starts
        measure_every: Measure every n-th sweep after thermalization
        measurements: Measurements by name (default: energy and magnetization)
        conf: Initial spin configuration; drawn from `rng` when omitted
        rng: Generator for the initial configuration (default: global)
    """

    def __init__(
        self,
        model: IsingModel,
        sweeps: int = 1000,
        thermalization: int = 100,
        measure_every: int = 1,
        measurements: dict | None = None,
        conf: np.ndarray | None = None,
        rng=None,
    ):
        if measure_every < 1:
            raise ValueError(f"measure_every must be positive, got {measure_every}")
        self.model = model
        self.sweeps = sweeps
        self.thermalization = thermalization
        self.measure_every = measure_every
        self.total_sweeps = thermalization + sweeps
        self.measurements = default_measurements() if measurements is None else measurements

        nsites = model.lattice.nsites
        if conf is None:
            rng = global_rng() if rng is None else rng
            conf = rng.choice(np.array([-1, 1], dtype=np.int8), size=nsites)
        conf = np.asarray(conf, dtype=np.int8)
        if conf.shape != (nsites,):
            raise ValueError(f"Configuration shape {conf.shape} does not match {nsites} sites")
        self.conf = conf

        self.sweeps_completed = 0
        self.accepted = 0
        self.proposed = 0
        self.status = SimulationStatus.IDLE
        self.resume_init()

    def resume_init(self):
        self._neighbors = self.model.lattice.neighbors()
        parity = self.model.lattice.sublattice()
        self._sublattices = [np.flatnonzero(parity == p) for p in (0, 1)]

    @property
    def energy(self) -> float:
        return self.model.energy(self.conf, self._neighbors)

    def sweep(self, rng):
        """Attempt one flip per site, one sublattice at a time."""
        beta = self.model.beta
        for sites in self._sublattices:
            field = self.model.local_field(self.conf, self._neighbors, sites)
            delta_e = 2.0 * self.conf[sites] * field
            accept = rng.random(len(sites)) < np.exp(-beta * delta_e)
            self.conf[sites[accept]] *= -1
            self.accepted += int(accept.sum())
            self.proposed += len(sites)

    def measure(self):
        for m in self.measurements.values():
            if isinstance(m, Measurement):
                m.measure(self)

    def run(self, sweeps: int | None = None, rng=None, checkpointer=None) -> RunSummary:
        """Run (or continue) the simulation.

        Args:
            sweeps: Number of sweeps to run (None = run remaining)
            rng: Generator driving the updates (default: global)
            checkpointer: Optional `Checkpointer` saving during the run

        Returns:
            RunSummary of this call
        """
        rng = global_rng() if rng is None else rng
        n_sweeps = self.remaining_sweeps if sweeps is None else min(sweeps, self.remaining_sweeps)
        accepted, proposed = self.accepted, self.proposed
        start = time.perf_counter()

        if n_sweeps <= 0:
            if self.sweeps_completed >= self.total_sweeps:
                self.status = SimulationStatus.COMPLETED
            return self._summary(0, accepted, proposed, start)

        self.status = SimulationStatus.RUNNING
        logger.debug("Running %d sweeps from sweep %d", n_sweeps, self.sweeps_completed)
        try:
            for _ in range(n_sweeps):
                self.sweep(rng)
                self.sweeps_completed += 1

                measured = self.sweeps_completed - self.thermalization
                if measured > 0 and measured % self.measure_every == 0:
                    self.measure()

                if checkpointer is not None:
                    checkpointer.step(self, rng)
        except Exception:
            self.status = SimulationStatus.ERROR
            raise

        if self.sweeps_completed >= self.total_sweeps:
            self.status = SimulationStatus.COMPLETED
        else:
            self.status = SimulationStatus.PAUSED

        if checkpointer is not None:
            checkpointer.finish(self, rng)

        return self._summary(n_sweeps, accepted, proposed, start)

    def _summary(self, n_sweeps, accepted, proposed, start) -> RunSummary:
        attempts = self.proposed - proposed
        return RunSummary(
            sweeps_run=n_sweeps,
            sweeps_completed=self.sweeps_completed,
            total_sweeps=self.total_sweeps,
            acceptance_rate=(self.accepted - accepted) / attempts if attempts else 0.0,
            elapsed_s=time.perf_counter() - start,
            status=self.status,
        )

    def save_entity(self, group):
        group["data/conf"] = self.conf
        group["data/sweeps"] = self.sweeps
        group["data/thermalization"] = self.thermalization
        group["data/measure_every"] = self.measure_every
        group["data/sweeps_completed"] = self.sweeps_completed
        group["data/accepted"] = self.accepted
        group["data/proposed"] = self.proposed
        group["data/status"] = self.status.value
        encode_entity(group, "Model", self.model)
        save_measurements(group, self.measurements)

    @classmethod
    def load_entity(cls, group, version):
        check_version(group, 1)
        model = decode_entity(group, "Model")
        if isinstance(model, UnknownEntity):
            raise UnknownTypeError(model.type_id, model.keys, "model")

        data = group["data"]
        measurements = load_measurements(group["Measurements"]) if "Measurements" in group else {}
        mc = cls(
            model,
            sweeps=data["sweeps"],
            thermalization=data["thermalization"],
            measure_every=data["measure_every"],
            measurements=measurements,
            conf=data["conf"],
        )
        mc.sweeps_completed = data["sweeps_completed"]
        mc.accepted = data["accepted"]
        mc.proposed = data["proposed"]
        mc.status = SimulationStatus(data["status"])
        return mc

    def __repr__(self):
        lattice = self.model.lattice
        return (
            f"MetropolisMC({lattice.Lx}x{lattice.Ly}, beta={self.model.beta}, "
            f"{self.sweeps_completed}/{self.total_sweeps} sweeps, {self.status.value})"
        )
