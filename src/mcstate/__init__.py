"""mcstate: versioned checkpoint store for Monte Carlo simulations.

Saves simulations, their random number generator state and measurements to
a hierarchical file, and resumes interrupted runs so that they continue the
same Markov chain.
"""

__version__ = "0.1.0"

# Convenient imports
from mcstate.config import SaveOptions
from mcstate.errors import (
    EntityVersionMismatch,
    FormatVersionMismatch,
    KeyNotFoundError,
    MCStateError,
    RNGRestoreError,
    TargetExistsError,
    TypeInferenceError,
    UnknownTypeError,
)
from mcstate.io import (
    UnknownEntity,
    decode_entity,
    encode_entity,
    generate_unique_filename,
    load,
    open_store,
    register_decoder,
    register_entity,
    save,
)
from mcstate.simulation import Checkpointer, MetropolisMC, resume

__all__ = [
    "__version__",
    "SaveOptions",
    "save",
    "load",
    "resume",
    "Checkpointer",
    "open_store",
    "encode_entity",
    "decode_entity",
    "register_entity",
    "register_decoder",
    "generate_unique_filename",
    "UnknownEntity",
    "MetropolisMC",
    # Errors
    "MCStateError",
    "TargetExistsError",
    "FormatVersionMismatch",
    "EntityVersionMismatch",
    "KeyNotFoundError",
    "TypeInferenceError",
    "UnknownTypeError",
    "RNGRestoreError",
]
