"""Hierarchical, path-addressed store backed by a single file.

A store is a tree of groups. Every group maps segment names to either a
sub-group or a leaf value, and every node is addressed by a slash separated
path such as ``"MC/Model/VERSION"``. Writing to a path creates the missing
intermediate groups; writes are additive and never remove siblings.

The whole tree is held in memory while the store is open. `Store.close`
writes it through the selected backend (see `mcstate.io.backends`).

Example:
    >>> with open_store("run.npz", "w") as store:
    ...     store["MC/VERSION"] = 1
    ...     store["MC/data/conf"] = np.ones(16, dtype=np.int8)
"""

import logging
from collections.abc import MutableMapping
from pathlib import Path
from typing import Any, Iterator

import numpy as np

from mcstate.errors import KeyNotFoundError, StoreReadOnlyError
from mcstate.io import leaves
from mcstate.io.backends import Backend, backend_for

logger = logging.getLogger(__name__)

SEP = "/"
MODES = ("r", "w", "a")


def split_path(path: str) -> list[str]:
    """Split a slash separated path into its segments."""
    if not isinstance(path, str):
        raise TypeError(f"Store paths must be strings, got {type(path).__name__}")
    return [s for s in path.split(SEP) if s]


def join_path(*segments: str) -> str:
    return SEP.join(s.strip(SEP) for s in segments if s and s.strip(SEP))


class Group(MutableMapping):
    """A group node: an ordered mapping from segment name to child.

    Children are either `Group` instances or leaf values (see
    `mcstate.io.leaves` for what a leaf may hold). Keys may be nested paths.
    """

    def __init__(self, name: str = "", parent: "Group | None" = None):
        self._name = name
        self._parent = parent
        self._children: dict[str, Any] = {}

    @property
    def name(self) -> str:
        return self._name

    @property
    def path(self) -> str:
        """Absolute path of this group within its store ("" for the root)."""
        if self._parent is None:
            return ""
        return join_path(self._parent.path, self._name)

    @property
    def root(self) -> "Group":
        node = self
        while node._parent is not None:
            node = node._parent
        return node

    @property
    def readonly(self) -> bool:
        return self.root._is_readonly()

    def _is_readonly(self) -> bool:
        return False

    def _check_writable(self):
        root = self.root
        if root._is_readonly():
            raise StoreReadOnlyError(f"Cannot write to read-only store {root!r}")
        root._check_open()

    def _check_open(self):
        pass

    def _walk_to(self, segments: list[str], create: bool = False) -> "Group":
        node = self
        for i, seg in enumerate(segments):
            child = node._children.get(seg)
            if child is None:
                if not create:
                    raise KeyNotFoundError(
                        join_path(self.path, *segments[: i + 1]), node._children.keys()
                    )
                child = Group(seg, node)
                node._children[seg] = child
            elif not isinstance(child, Group):
                raise ValueError(f"{join_path(node.path, seg)!r} is a value, not a group")
            node = child
        return node

    def __getitem__(self, path: str):
        return leaves.resolve(self.raw(path))

    def raw(self, path: str):
        """Like `group[path]`, but pickled leaves stay `PickledValue`s."""
        segments = split_path(path)
        if not segments:
            return self
        parent = self._walk_to(segments[:-1])
        try:
            return parent._children[segments[-1]]
        except KeyError:
            raise KeyNotFoundError(
                join_path(self.path, *segments), parent._children.keys()
            ) from None

    def __setitem__(self, path: str, value):
        self._check_writable()
        segments = split_path(path)
        if not segments:
            raise ValueError("Cannot assign to the group itself")
        if isinstance(value, Group):
            raise TypeError("Assign leaf values only; use require_group() for groups")

        parent = self._walk_to(segments[:-1], create=True)
        existing = parent._children.get(segments[-1])
        if isinstance(existing, Group):
            raise ValueError(f"{join_path(parent.path, segments[-1])!r} is a group")

        if isinstance(value, np.ndarray):
            value = value.copy()
        parent._children[segments[-1]] = value

    def __delitem__(self, path: str):
        self._check_writable()
        segments = split_path(path)
        parent = self._walk_to(segments[:-1])
        try:
            del parent._children[segments[-1]]
        except (KeyError, IndexError):
            raise KeyNotFoundError(join_path(self.path, *segments), parent._children.keys()) from None

    def __contains__(self, path) -> bool:
        if not isinstance(path, str):
            return False
        segments = split_path(path)
        node = self
        for seg in segments:
            if not isinstance(node, Group) or seg not in node._children:
                return False
            node = node._children[seg]
        return True

    def __iter__(self) -> Iterator[str]:
        return iter(self._children)

    def __len__(self) -> int:
        return len(self._children)

    def __repr__(self):
        return f"<Group {self.path or SEP!r} ({len(self)} members)>"

    def is_group(self, path: str) -> bool:
        return path in self and isinstance(self.raw(path), Group)

    def list_keys(self, path: str = "") -> list[str]:
        """Names of the immediate children of the group at `path`."""
        node = self.raw(path)
        if not isinstance(node, Group):
            raise ValueError(f"{join_path(self.path, path)!r} is a value, not a group")
        return list(node._children)

    def require_group(self, path: str) -> "Group":
        """Return the group at `path`, creating it (and its parents) if missing."""
        segments = split_path(path)
        try:
            return self._walk_to(segments)
        except KeyNotFoundError:
            self._check_writable()
            return self._walk_to(segments, create=True)

    def walk(self) -> Iterator[tuple[str, Any]]:
        """Yield `(path, node)` for every descendant, depth first, in insertion order.

        Leaves are yielded as stored (see `raw`).
        """
        for key, child in self._children.items():
            path = join_path(self.path, key)
            yield path, child
            if isinstance(child, Group):
                yield from child.walk()


class Store(Group):
    """Root group bound to a file on disk.

    Args:
        location: Path of the backing file
        mode: "r" (read-only), "w" (create, truncating any existing file) or
            "a" (read if present, otherwise create)
        backend: Backend name, class or instance; inferred from the file
            extension when omitted
        compress: Whether the backend should compress on write
        **options: Backend-specific options

    Use as a context manager so the store is flushed and released on every
    exit path.
    """

    def __init__(self, location, mode: str = "r", backend=None, compress: bool = True, **options):
        super().__init__()
        if mode not in MODES:
            raise ValueError(f"Invalid mode {mode!r}; expected one of {MODES}")

        self.location = Path(location)
        self.mode = mode
        self.compress = compress
        self.backend: Backend = backend_for(self.location, backend, **options)
        self._closed = False

        if mode == "r" or (mode == "a" and self.location.is_file()):
            self._populate(*self.backend.read(self.location))
            logger.debug("Opened %s (%s, mode=%s)", self.location, self.backend.name, mode)
        else:
            # create the file right away so an unwritable target fails here
            self.flush()
            logger.debug("Created %s (%s)", self.location, self.backend.name)

    def _populate(self, groups: list[str], entries: list[tuple[str, Any]]):
        for path in groups:
            self._walk_to(split_path(path), create=True)
        for path, value in entries:
            segments = split_path(path)
            parent = self._walk_to(segments[:-1], create=True)
            parent._children[segments[-1]] = value

    def _is_readonly(self) -> bool:
        return self.mode == "r"

    def _check_open(self):
        if self._closed:
            raise ValueError(f"I/O operation on closed store {self.location}")

    @property
    def closed(self) -> bool:
        return self._closed

    def listing(self) -> tuple[list[str], list[tuple[str, Any]]]:
        """Flat listing of the tree: all group paths and all `(path, value)` leaves."""
        groups, entries = [], []
        for path, node in self.walk():
            if isinstance(node, Group):
                groups.append(path)
            else:
                entries.append((path, node))
        return groups, entries

    def flush(self):
        """Write the current tree to the backing file."""
        self._check_open()
        if self.readonly:
            return
        self.backend.write(self.location, *self.listing(), compress=self.compress)

    def close(self):
        """Flush (unless read-only) and release the store. Safe to call twice."""
        if self._closed:
            return
        try:
            self.flush()
        finally:
            self._closed = True
        logger.debug("Closed %s", self.location)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        if exc_type is None:
            self.close()
            return
        # keep the original error; a failing flush is only logged here
        try:
            self.close()
        except OSError:
            logger.exception("Failed to flush %s while handling another error", self.location)

    def __repr__(self):
        state = "closed" if self._closed else self.mode
        return f"<Store {str(self.location)!r} ({self.backend.name}, {state})>"


def open_store(location, mode: str = "r", backend=None, compress: bool = True, **options) -> Store:
    """Open (or create) a store. See `Store` for the arguments."""
    return Store(location, mode, backend=backend, compress=compress, **options)
