"""File backends for the hierarchical store.

A backend turns the flat listing of a store (group paths plus `(path, value)`
leaf pairs) into one file and back. Two backends ship with the package and
are selected by file extension:

- `.npz`: numpy archive. Binary leaves become archive members, everything
  else lives in a JSON index member.
- anything else (canonically `.json`): a single JSON document.

Both read the complete tree on open; there are no partial reads.
"""

import json
import logging
from pathlib import Path
from typing import Any

import numpy as np

from mcstate.io import leaves

logger = logging.getLogger(__name__)

FORMAT_TAG = "mcstate"
INDEX_KEY = "__tree__"

Listing = tuple[list[str], list[tuple[str, Any]]]


class Backend:
    """Base class for file backends.

    Subclasses implement `read` and `write`. Backend-specific options are
    passed as keyword arguments to the constructor.
    """

    name = ""
    extensions: tuple[str, ...] = ()

    def read(self, location: Path) -> Listing:
        raise NotImplementedError

    def write(self, location: Path, groups: list[str], entries: list[tuple[str, Any]], compress: bool = True):
        raise NotImplementedError

    def __repr__(self):
        return f"{type(self).__name__}()"


class JSONBackend(Backend):
    """Store the tree as one JSON document.

    Args:
        indent: Indentation for pretty printing. Defaults to compact output
            when compressing and an indent of 2 otherwise.
    """

    name = "json"
    extensions = (".json",)

    def __init__(self, indent: int | None = None):
        self.indent = indent

    def read(self, location: Path) -> Listing:
        with open(location) as f:
            doc = json.load(f)

        _check_format(doc.get("format"), location)
        entries = [(path, leaves.from_json_node(node)) for path, node in doc["leaves"].items()]
        return list(doc["groups"]), entries

    def write(self, location: Path, groups: list[str], entries: list[tuple[str, Any]], compress: bool = True):
        doc = {
            "format": FORMAT_TAG,
            "groups": groups,
            "leaves": {path: leaves.to_json_node(value) for path, value in entries},
        }

        if compress and self.indent is None:
            kwargs = {"separators": (",", ":")}
        else:
            kwargs = {"indent": 2 if self.indent is None else self.indent}

        with open(location, "w") as f:
            json.dump(doc, f, **kwargs)


class NPZBackend(Backend):
    """Store the tree as a numpy `.npz` archive.

    Arrays, numpy scalars, raw bytes and pickled values are archive members
    named `leaf_<n>`. Scalars and JSON-compatible containers are kept inline
    in the index member together with the group list. The archive is always
    read with `allow_pickle=False`; pickled leaves are stored as raw bytes.
    """

    name = "npz"
    extensions = (".npz",)

    def read(self, location: Path) -> Listing:
        entries = []
        with np.load(location, allow_pickle=False) as data:
            if INDEX_KEY not in data.files:
                raise ValueError(f"{location} is not a {FORMAT_TAG} archive (no index)")
            index = json.loads(data[INDEX_KEY].item())
            _check_format(index.get("format"), location)

            for path, node in index["leaves"].items():
                kind = node["kind"]
                if kind not in leaves.BINARY_KINDS:
                    entries.append((path, leaves.from_json_node(node)))
                    continue
                arr = data[node["key"]]
                if kind == "ndarray":
                    entries.append((path, arr))
                elif kind == "npscalar":
                    entries.append((path, arr[()]))
                else:
                    entries.append((path, leaves.from_bytes(kind, arr.tobytes(), node)))

        return list(index["groups"]), entries

    def write(self, location: Path, groups: list[str], entries: list[tuple[str, Any]], compress: bool = True):
        arrays = {}
        index = {}
        for i, (path, value) in enumerate(entries):
            kind = leaves.classify(value)
            if kind not in leaves.BINARY_KINDS:
                index[path] = leaves.to_json_node(value)
                continue

            key = f"leaf_{i:05d}"
            if kind == "ndarray":
                arrays[key] = value
            elif kind == "npscalar":
                arrays[key] = np.asarray(value)
            else:
                raw, _ = leaves.to_bytes(kind, value)
                arrays[key] = np.frombuffer(raw, dtype=np.uint8)
            index[path] = {"kind": kind, "key": key}

        doc = {"format": FORMAT_TAG, "groups": groups, "leaves": index}
        arrays[INDEX_KEY] = np.array(json.dumps(doc))

        save = np.savez_compressed if compress else np.savez
        # file object so numpy does not append ".npz" to the name
        with open(location, "wb") as f:
            save(f, **arrays)


def _check_format(tag, location):
    if tag != FORMAT_TAG:
        raise ValueError(f"{location} is not a {FORMAT_TAG} file (format tag {tag!r})")


BACKENDS: dict[str, type[Backend]] = {
    JSONBackend.name: JSONBackend,
    NPZBackend.name: NPZBackend,
}
DEFAULT_BACKEND = JSONBackend


def register_backend(backend_cls: type[Backend]):
    """Make a backend selectable by name and by its extensions."""
    BACKENDS[backend_cls.name] = backend_cls
    return backend_cls


def backend_for(location, backend=None, **options) -> Backend:
    """Resolve the backend for `location`.

    Args:
        location: Target file; its extension selects the backend when
            `backend` is not given
        backend: Optional backend name, class or instance
        **options: Backend-specific options

    Returns:
        Backend instance
    """
    if isinstance(backend, Backend):
        if options:
            raise TypeError("Backend options cannot be combined with a backend instance")
        return backend
    if isinstance(backend, str):
        if backend not in BACKENDS:
            raise ValueError(f"Unknown backend: {backend!r} (available: {', '.join(BACKENDS)})")
        return BACKENDS[backend](**options)
    if isinstance(backend, type):
        return backend(**options)

    suffix = Path(location).suffix.lower()
    for cls in BACKENDS.values():
        if suffix in cls.extensions:
            return cls(**options)
    return DEFAULT_BACKEND(**options)
