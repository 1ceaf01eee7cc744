"""Checkpointing during a run and resuming from a checkpoint."""

import logging
from pathlib import Path

from mcstate.config import SaveOptions
from mcstate.errors import UnknownTypeError
from mcstate.io.codec import UnknownEntity, decode_entity
from mcstate.io.persistence import check_format_version, save
from mcstate.io.rng import global_rng, load_rng
from mcstate.io.store import open_store

logger = logging.getLogger(__name__)


class Checkpointer:
    """Save a running simulation every `every` sweeps and at the end of a run.

    Each checkpoint replaces the previous one (through the backup protocol
    of `mcstate.save`), so at most one checkpoint file exists per run.

    Args:
        filename: Checkpoint file
        every: Interval in sweeps
        options: Save options (default: overwrite, no rename)
        **backend_options: Passed to the backend
    """

    def __init__(self, filename, every: int = 100, options: SaveOptions | None = None, **backend_options):
        if every < 1:
            raise ValueError(f"Checkpoint interval must be positive, got {every}")
        self.filename = Path(filename)
        self.every = every
        self.options = options or SaveOptions(overwrite=True, rename=False)
        self.backend_options = backend_options
        self.saves = 0
        self.last_saved: Path | None = None
        self.last_sweep: int | None = None
        self.last_status = None

    def step(self, mc, rng=None):
        """Called after every sweep; saves when the interval is reached."""
        if mc.sweeps_completed % self.every == 0:
            self.save(mc, rng)

    def finish(self, mc, rng=None):
        """Called at the end of a run; saves unless this exact state is already saved."""
        if (self.last_sweep, self.last_status) != (mc.sweeps_completed, mc.status):
            self.save(mc, rng)

    def save(self, mc, rng=None) -> Path:
        self.last_saved = save(self.filename, mc, rng=rng, options=self.options, **self.backend_options)
        self.last_sweep = mc.sweeps_completed
        self.last_status = mc.status
        self.saves += 1
        logger.debug("Checkpoint %d at sweep %d", self.saves, mc.sweeps_completed)
        return self.last_saved


def resume(filename, rng=None, backend=None, **kwargs):
    """Resume a simulation from a file written by `save` or a `Checkpointer`.

    Restores the generator state into `rng` (default: the global generator)
    and continues the run. Takes the same keyword arguments as the engine's
    `run`.

    Returns:
        Tuple of (simulation, summary returned by `run`)
    """
    rng = global_rng() if rng is None else rng

    with open_store(filename, "r", backend=backend) as store:
        check_format_version(store, filename)
        mc = decode_entity(store, "MC")
        if isinstance(mc, UnknownEntity):
            raise UnknownTypeError(mc.type_id, mc.keys, "simulation")
        load_rng(store, rng)
        mc.resume_init()

    logger.info("Resuming %s from %s", mc, filename)
    summary = mc.run(rng=rng, **kwargs)
    return mc, summary
