"""Versioned entity envelopes and the type dispatch table.

Saving and loading happens in a nested fashion. Every saved entity gets an
*envelope* group holding

- ``VERSION``: the entity's own layout version,
- ``type``: a type identifier used to pick the decoder,
- ``data`` (or any other entity-specific children): the payload.

Entity modules register their encoder/decoder pair at import time, either
with the `register_entity` class decorator or with `register_encoder` /
`register_decoder`. Types without a registration fall back to the default
codec, which stores the object verbatim under ``data`` with VERSION 0.

When a type identifier cannot be resolved (typically because the module
that registered it was never imported), decoding does not fail. It returns
an `UnknownEntity` that lists the available keys so the caller can diagnose
the missing import.
"""

import logging
import sys
from collections.abc import Collection
from dataclasses import dataclass
from typing import Any, Callable

from mcstate.errors import EntityVersionMismatch, KeyNotFoundError, TypeInferenceError
from mcstate.io.store import Group

logger = logging.getLogger(__name__)

Encoder = Callable[[Group, Any], None]
Decoder = Callable[[Group, int], Any]


class _UnknownType:
    """Sentinel returned by `lookup_decoder` for unresolvable identifiers."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self):
        return "UNKNOWN_TYPE"

    def __bool__(self):
        return False


UNKNOWN_TYPE = _UnknownType()


@dataclass(frozen=True)
class UnknownEntity:
    """Result of decoding an envelope whose type is not known to this process.

    Attributes:
        type_id: The stored type identifier
        path: Path of the envelope inside the store
        keys: Names of the children available at that path
    """

    type_id: str
    path: str
    keys: tuple[str, ...]

    def __bool__(self):
        return False


_ENCODERS: dict[type, tuple[int, Encoder]] = {}
_DECODERS: dict[str, Decoder] = {}
_GROUP_DECODERS: dict[str, Callable[[Group], Any]] = {}


def type_identifier(obj) -> str:
    """Stable identifier of an object's class: ``"<module>.<qualname>"``."""
    cls = obj if isinstance(obj, type) else type(obj)
    return f"{cls.__module__}.{cls.__qualname__}"


def resolve_type(type_id: str) -> type | None:
    """Find the class for `type_id` among already imported modules.

    Never imports anything: an identifier whose module is not loaded does
    not resolve.
    """
    if not isinstance(type_id, str):
        return None
    parts = type_id.split(".")
    for i in range(len(parts) - 1, 0, -1):
        module = sys.modules.get(".".join(parts[:i]))
        if module is None:
            continue
        obj = module
        for attr in parts[i:]:
            obj = getattr(obj, attr, None)
            if obj is None:
                return None
        return obj if isinstance(obj, type) else None
    return None


def register_encoder(cls: type, encoder: Encoder, version: int):
    """Register a custom encoder for `cls` writing layout `version`."""
    if not isinstance(version, int) or version < 0:
        raise ValueError(f"Entity versions must be non-negative integers, got {version!r}")
    _ENCODERS[cls] = (version, encoder)


def register_decoder(type_id: str | type, decoder: Decoder | None = None):
    """Register `decoder(group, version)` for `type_id`.

    Can be used directly or as a decorator:

        @register_decoder("mypkg.MyType")
        def load_mytype(group, version): ...
    """
    if isinstance(type_id, type):
        type_id = type_identifier(type_id)

    def decorator(fn: Decoder) -> Decoder:
        _DECODERS[type_id] = fn
        return fn

    if decoder is None:
        return decorator
    return decorator(decoder)


def register_entity(version: int):
    """Class decorator registering a type's own codec.

    The class must define ``save_entity(self, group)`` writing its payload
    into the envelope group, and classmethod ``load_entity(cls, group,
    version)`` rebuilding the object from it.
    """

    def decorator(cls):
        register_encoder(cls, lambda group, entity: entity.save_entity(group), version)
        register_decoder(cls, cls.load_entity)
        return cls

    return decorator


def unregister(type_id: str | type):
    """Remove any codec registered for `type_id`."""
    if isinstance(type_id, type):
        _ENCODERS.pop(type_id, None)
        type_id = type_identifier(type_id)
    _DECODERS.pop(type_id, None)
    for cls in [c for c in _ENCODERS if type_identifier(c) == type_id]:
        del _ENCODERS[cls]


def registered_types() -> list[str]:
    return sorted(_DECODERS)


def lookup_decoder(type_id: str) -> Decoder | _UnknownType:
    """Resolve the decoder for `type_id`.

    Returns the registered decoder, the default decoder for identifiers that
    name a loaded class, or `UNKNOWN_TYPE`. Never raises.
    """
    decoder = _DECODERS.get(type_id) if isinstance(type_id, str) else None
    if decoder is not None:
        return decoder
    if resolve_type(type_id) is not None:
        return default_decoder
    return UNKNOWN_TYPE


def check_version(group: Group, expected: int | Collection[int], name: str = "") -> int:
    """Check the envelope VERSION in `group` against `expected`.

    Returns:
        The stored version

    Raises:
        EntityVersionMismatch: If the stored version is not accepted
    """
    actual = group["VERSION"]
    accepted = expected if isinstance(expected, Collection) else (expected,)
    if actual not in accepted:
        raise EntityVersionMismatch(expected, actual, name or _type_of(group))
    return actual


def _type_of(group: Group) -> str:
    return group["type"] if "type" in group else group.path


def encode_entity(group: Group, path: str, entity, version: int | None = None) -> Group:
    """Write `entity` as an envelope at `path` below `group`.

    Args:
        group: Parent group (or store)
        path: Relative path of the envelope
        entity: Object to save
        version: Local layout version; defaults to the registered encoder's
            version, or 0 for the default encoder

    Returns:
        The envelope group
    """
    registered = _find_encoder(type(entity))
    if registered is None:
        version = 0 if version is None else version
        if version != 0:
            raise EntityVersionMismatch(0, version, type_identifier(entity))
        encoder = default_encoder
    else:
        default_version, encoder = registered
        version = default_version if version is None else version

    envelope = group.require_group(path)
    envelope["VERSION"] = version
    envelope["type"] = type_identifier(entity)
    encoder(envelope, entity)
    logger.debug("Encoded %s at %s (VERSION %d)", envelope["type"], envelope.path, version)
    return envelope


def _find_encoder(cls: type):
    # exact type only: a subclass has its own identifier and may add fields
    return _ENCODERS.get(cls)


def default_encoder(group: Group, entity):
    """Store `entity` verbatim under ``data``."""
    group["data"] = entity


def default_decoder(group: Group, version: int):
    """Return ``data`` unchanged; only VERSION 0 is understood."""
    if version != 0:
        raise EntityVersionMismatch(
            0, version, f"{_type_of(group)} (incompatible with the default decoder)"
        )
    return group["data"]


def decode_entity(group: Group, path: str = ""):
    """Decode the envelope at `path` below `group`.

    Returns:
        The decoded entity, or an `UnknownEntity` when the stored type
        cannot be resolved in this process

    Raises:
        KeyNotFoundError: If the envelope lacks VERSION or type
        EntityVersionMismatch: If the decoder does not accept the VERSION
    """
    envelope = group.raw(path)
    if not isinstance(envelope, Group):
        raise ValueError(f"{envelope!r} at {path!r} is a value, not an envelope")
    for key in ("VERSION", "type"):
        if key not in envelope:
            raise KeyNotFoundError(f"{envelope.path}/{key}", envelope.keys())

    type_id = envelope["type"]
    version = envelope["VERSION"]
    decoder = lookup_decoder(type_id)
    if decoder is UNKNOWN_TYPE:
        return _unknown(envelope, type_id)

    logger.debug("Decoding %s at %s (VERSION %s)", type_id, envelope.path or "/", version)
    return decoder(envelope, version)


def _unknown(envelope: Group, type_id) -> UnknownEntity:
    keys = tuple(envelope.keys())
    logger.info("Failed to load %s at %s (unknown type)", type_id, envelope.path or "/")
    logger.info("Available fields: %s", ", ".join(keys))
    logger.info("You may be missing an import of the module defining this type.")
    return UnknownEntity(str(type_id), envelope.path, keys)


def register_group_decoder(name: str, decoder: Callable[[Group], Any] | None = None):
    """Map a group name without a ``type`` child to a decoder.

    Can be used as a decorator, like `register_decoder`.
    """

    def decorator(fn):
        _GROUP_DECODERS[name] = fn
        return fn

    if decoder is None:
        return decorator
    return decorator(decoder)


def decode_group(group: Group, name: str):
    """Decode the named child group of `group`.

    Uses the child's ``type`` entry when present, otherwise the decoder
    registered for the group name.

    Raises:
        TypeInferenceError: If neither is available
    """
    child = group.raw(name)
    if isinstance(child, Group) and "type" in child:
        return decode_entity(child)

    segment = name.rstrip("/").rsplit("/", 1)[-1]
    if segment in _GROUP_DECODERS:
        return _GROUP_DECODERS[segment](child)
    raise TypeInferenceError(segment)
