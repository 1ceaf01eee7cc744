"""Capture and restore random number generator state.

The generator is passed explicitly through save/load/resume. When a caller
does not pass one, the process-wide default generator from `global_rng` is
used. Restoring mutates the given generator in place: either the whole state
is replaced or, on failure, the generator keeps its previous state and
`RNGRestoreError` is raised.
"""

import logging
import random

import numpy as np

from mcstate.errors import RNGRestoreError, RNGSaveError, UnsupportedRNGError

logger = logging.getLogger(__name__)

_GLOBAL_RNG = np.random.default_rng()


def global_rng() -> np.random.Generator:
    """The process-wide default generator."""
    return _GLOBAL_RNG


def seed_global_rng(seed=None) -> np.random.Generator:
    """Reseed the process-wide generator in place and return it."""
    fresh = np.random.default_rng(seed)
    _GLOBAL_RNG.bit_generator.state = fresh.bit_generator.state
    return _GLOBAL_RNG


def export_rng_state(rng):
    """Return a copy of the complete state of `rng`.

    Supports `numpy.random.Generator`, `numpy.random.BitGenerator`,
    `numpy.random.RandomState` and `random.Random`.
    """
    if isinstance(rng, np.random.Generator):
        return rng.bit_generator.state
    if isinstance(rng, np.random.BitGenerator):
        return rng.state
    if isinstance(rng, np.random.RandomState):
        return rng.get_state(legacy=False)
    if isinstance(rng, random.Random):
        return rng.getstate()
    raise UnsupportedRNGError(f"Unsupported random number generator: {type(rng).__name__}")


def _set_state(rng, state):
    if isinstance(rng, np.random.Generator):
        rng.bit_generator.state = state
    elif isinstance(rng, np.random.BitGenerator):
        rng.state = state
    elif isinstance(rng, np.random.RandomState):
        rng.set_state(state)
    elif isinstance(rng, random.Random):
        rng.setstate(state)
    else:
        raise UnsupportedRNGError(f"Unsupported random number generator: {type(rng).__name__}")


def import_rng_state(rng, state):
    """Replace the state of `rng` with `state`, in place.

    Raises:
        RNGRestoreError: If the state does not fit the generator. The
            generator is rolled back to its previous state first.
    """
    previous = export_rng_state(rng)
    try:
        _set_state(rng, state)
    except (TypeError, ValueError, KeyError) as e:
        _set_state(rng, previous)
        raise RNGRestoreError(f"Error while restoring RNG state: {e}") from e


def save_rng(group, rng=None, entryname: str = "RNG"):
    """Write the state of `rng` (default: the global generator) to `group[entryname]`."""
    rng = global_rng() if rng is None else rng
    try:
        group[entryname] = export_rng_state(rng)
    except UnsupportedRNGError:
        raise
    except (TypeError, ValueError) as e:
        raise RNGSaveError(f"Error while saving RNG state: {e}") from e


def load_rng(group, rng=None, entryname: str = "RNG"):
    """Restore the state stored at `group[entryname]` into `rng`, in place.

    Returns:
        The restored generator
    """
    rng = global_rng() if rng is None else rng
    import_rng_state(rng, group[entryname])
    logger.debug("Restored %s state from %s", type(rng).__name__, entryname)
    return rng
