"""Exception hierarchy for the checkpoint store.

Every error raised on purpose by this package derives from `MCStateError`, so
callers can catch the whole family with one clause. I/O failures of the
backing file are *not* wrapped: they propagate as the original `OSError`.

Decoding a type tag that cannot be resolved does not raise: it returns a
`mcstate.io.codec.UnknownEntity`. `UnknownTypeError` is only raised by
callers that cannot continue without the entity.
"""

from collections.abc import Collection


class MCStateError(Exception):
    """Base class for all checkpoint store errors."""


class TargetExistsError(MCStateError, FileExistsError):
    """Raised when a save target exists and neither rename nor overwrite is set."""

    def __init__(self, location):
        self.location = location
        super().__init__(
            f'Cannot save because "{location}" already exists. Consider setting '
            "`rename=True` to adjust the filename or `overwrite=True` to "
            "overwrite the file."
        )


class VersionMismatchError(MCStateError):
    """A stored VERSION does not match what the reader understands.

    Attributes:
        expected: Version (or collection of versions) the reader accepts
        actual: Version found in the store
        name: What was being read (file name or type identifier)
    """

    kind = "Version"

    def __init__(self, expected, actual, name: str = ""):
        self.expected = expected
        self.actual = actual
        self.name = name
        super().__init__(
            f"{self.kind} mismatch for {name or 'entry'}: "
            f"expected {_format_expected(expected)}, got {actual!r}"
        )


class FormatVersionMismatch(VersionMismatchError):
    """The top-level file format VERSION is not supported."""

    kind = "Format version"


class EntityVersionMismatch(VersionMismatchError):
    """An entity envelope's local VERSION is not supported by its decoder."""

    kind = "Entity version"


class KeyNotFoundError(MCStateError, KeyError):
    """A path does not exist in the store."""

    def __init__(self, path: str, available: Collection[str] = ()):
        self.path = path
        self.available = tuple(available)
        super().__init__(path)

    def __str__(self):
        msg = f"Key not found: {self.path!r}"
        if self.available:
            msg += f" (available: {', '.join(self.available)})"
        return msg


class TypeInferenceError(MCStateError):
    """A group has no `type` child and its name maps to no known decoder."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(
            f'Failed to infer type for group "{name}". To fix this, add a '
            f'"type" entry under "{name}" with the relevant type identifier, '
            "or decode the group manually with a registered decoder."
        )


class UnknownTypeError(MCStateError, TypeError):
    """An entity that is required to continue has a type unknown to this process.

    Decoding itself never raises for unknown types; this error is raised by
    callers that cannot proceed with an `UnknownEntity`, such as `resume`.
    """

    def __init__(self, type_id: str, keys=(), what: str = "entity"):
        self.type_id = type_id
        self.keys = tuple(keys)
        super().__init__(
            f"Got unknown type {type_id!r} instead of a {what}. This may be caused "
            f"by missing imports. Available fields: {', '.join(self.keys)}"
        )


class StoreReadOnlyError(MCStateError):
    """A write was attempted on a store opened read-only."""


class RNGSaveError(MCStateError):
    """The random number generator state could not be captured."""


class RNGRestoreError(MCStateError):
    """The random number generator state could not be restored.

    The generator is left in the state it had before the restore attempt.
    """


class UnsupportedRNGError(MCStateError, TypeError):
    """The object is not a random number generator this package can handle."""


def _format_expected(expected) -> str:
    if isinstance(expected, (list, tuple, set, frozenset, range)):
        return " or ".join(repr(v) for v in sorted(expected))
    return repr(expected)
