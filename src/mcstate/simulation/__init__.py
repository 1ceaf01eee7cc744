"""Simulation module.

Engine contract, checkpointing and the reference Metropolis engine.
"""

from mcstate.simulation.checkpoint import Checkpointer, resume
from mcstate.simulation.flavor import MonteCarloFlavor, RunSummary, SimulationStatus
from mcstate.simulation.lattice import SquareLattice
from mcstate.simulation.measurements import (
    Accumulator,
    EnergyMeasurement,
    MagnetizationMeasurement,
    Measurement,
)
from mcstate.simulation.metropolis import MetropolisMC
from mcstate.simulation.model import IsingModel

__all__ = [
    "Checkpointer",
    "resume",
    "MonteCarloFlavor",
    "RunSummary",
    "SimulationStatus",
    "SquareLattice",
    "IsingModel",
    "Accumulator",
    "Measurement",
    "EnergyMeasurement",
    "MagnetizationMeasurement",
    "MetropolisMC",
]
