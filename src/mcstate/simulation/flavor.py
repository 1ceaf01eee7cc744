"""Engine contract shared by all Monte Carlo flavors."""

from dataclasses import dataclass
from enum import Enum


class SimulationStatus(Enum):
    """Status of a simulation."""

    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"
    COMPLETED = "completed"
    ERROR = "error"


@dataclass
class RunSummary:
    """What a call to `MonteCarloFlavor.run` did.

    Attributes:
        sweeps_run: Sweeps performed by this call
        sweeps_completed: Total sweeps performed by the simulation so far
        total_sweeps: Target number of sweeps
        acceptance_rate: Fraction of accepted proposals during this call
        elapsed_s: Wall clock time of this call in seconds
        status: Status after the call
    """

    sweeps_run: int
    sweeps_completed: int
    total_sweeps: int
    acceptance_rate: float
    elapsed_s: float
    status: SimulationStatus

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "sweeps_run": self.sweeps_run,
            "sweeps_completed": self.sweeps_completed,
            "total_sweeps": self.total_sweeps,
            "acceptance_rate": self.acceptance_rate,
            "elapsed_s": self.elapsed_s,
            "status": self.status.value,
        }


class MonteCarloFlavor:
    """Base class for simulation engines.

    Subclasses own all mutable simulation state and implement `run`, the
    continuation entry point: calling it again after a save/load cycle must
    continue the same Markov chain. State that is not saved (caches, scratch
    buffers) is rebuilt in `resume_init`.
    """

    status: SimulationStatus = SimulationStatus.IDLE
    sweeps_completed: int = 0
    total_sweeps: int = 0

    def run(self, sweeps: int | None = None, rng=None, checkpointer=None) -> RunSummary:
        raise NotImplementedError

    def resume_init(self):
        """Rebuild transient runtime structures after loading."""

    @property
    def progress(self) -> float:
        """Progress as fraction from 0 to 1."""
        if self.total_sweeps == 0:
            return 0.0
        return self.sweeps_completed / self.total_sweeps

    @property
    def progress_percent(self) -> float:
        """Progress as percentage from 0 to 100."""
        return self.progress * 100

    @property
    def remaining_sweeps(self) -> int:
        return max(self.total_sweeps - self.sweeps_completed, 0)
