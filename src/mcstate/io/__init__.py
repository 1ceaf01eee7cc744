"""I/O and persistence module.

Handles saving and loading simulation states.
"""

from mcstate.io.codec import (
    UNKNOWN_TYPE,
    UnknownEntity,
    check_version,
    decode_entity,
    decode_group,
    encode_entity,
    lookup_decoder,
    register_decoder,
    register_encoder,
    register_entity,
    register_group_decoder,
    type_identifier,
)
from mcstate.io.filenames import generate_unique_filename
from mcstate.io.persistence import (
    FORMAT_VERSION,
    load,
    save,
    save_lattice,
    save_mc,
    save_model,
)
from mcstate.io.rng import global_rng, load_rng, save_rng, seed_global_rng
from mcstate.io.store import Group, Store, open_store

__all__ = [
    "FORMAT_VERSION",
    "save",
    "load",
    "save_mc",
    "save_model",
    "save_lattice",
    "save_rng",
    "load_rng",
    "global_rng",
    "seed_global_rng",
    "Group",
    "Store",
    "open_store",
    "UNKNOWN_TYPE",
    "UnknownEntity",
    "check_version",
    "decode_entity",
    "decode_group",
    "encode_entity",
    "lookup_decoder",
    "register_decoder",
    "register_encoder",
    "register_entity",
    "register_group_decoder",
    "type_identifier",
    "generate_unique_filename",
]
