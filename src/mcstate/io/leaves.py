"""Tagged leaf values stored at the ends of store paths.

Each leaf is classified into one *kind*. Backends persist the kind next to
the payload so a value reads back as the same Python type it was written as.
Numeric arrays are kept bit-exact; anything without a native representation
is pickled. Pickled leaves read from a file stay `PickledValue`s holding the
raw bytes until a caller reads them, so opening a file never imports the
modules its entities were defined in.
"""

import base64
import json
import pickle
from typing import Any

import numpy as np

SCALAR_KINDS = ("none", "bool", "int", "float", "complex", "str")
BINARY_KINDS = ("bytes", "ndarray", "npscalar", "pickle")
KINDS = SCALAR_KINDS + ("json",) + BINARY_KINDS


class PickledValue:
    """Pickle payload of a stored leaf, unpickled on demand."""

    __slots__ = ("raw",)

    def __init__(self, raw: bytes):
        self.raw = bytes(raw)

    def load(self) -> Any:
        return pickle.loads(self.raw)

    def __eq__(self, other):
        if not isinstance(other, PickledValue):
            return NotImplemented
        return self.raw == other.raw

    def __repr__(self):
        return f"PickledValue({len(self.raw)} bytes)"


def resolve(value: Any) -> Any:
    """Return the Python object for a stored leaf, unpickling if needed."""
    if isinstance(value, PickledValue):
        return value.load()
    return value


def classify(value: Any) -> str:
    """Return the leaf kind used to store `value`."""
    if value is None:
        return "none"
    if isinstance(value, PickledValue):
        return "pickle"
    # bool before int: bool is an int subclass
    if isinstance(value, bool):
        return "bool"
    if isinstance(value, int):
        return "int"
    if isinstance(value, float):
        return "float"
    if isinstance(value, complex):
        return "complex"
    if isinstance(value, str):
        return "str"
    if isinstance(value, (bytes, bytearray)):
        return "bytes"
    if isinstance(value, np.ndarray):
        return "pickle" if value.dtype.hasobject else "ndarray"
    if isinstance(value, np.generic):
        return "pickle" if value.dtype.hasobject else "npscalar"
    if isinstance(value, (list, dict)) and _survives_json(value):
        return "json"
    return "pickle"


def _survives_json(value) -> bool:
    try:
        return json.loads(json.dumps(value)) == value
    except (TypeError, ValueError):
        return False


def to_bytes(kind: str, value: Any) -> tuple[bytes, dict]:
    """Encode a binary-kind value to raw bytes plus the metadata to rebuild it."""
    if kind == "bytes":
        return bytes(value), {}
    if kind == "ndarray":
        # asarray keeps 0-d arrays 0-d, unlike ascontiguousarray
        arr = np.asarray(value, order="C")
        return arr.tobytes(), {"dtype": arr.dtype.str, "shape": list(arr.shape)}
    if kind == "npscalar":
        return value.tobytes(), {"dtype": value.dtype.str}
    if kind == "pickle":
        if isinstance(value, PickledValue):
            return value.raw, {}
        return pickle.dumps(value, protocol=pickle.HIGHEST_PROTOCOL), {}
    raise ValueError(f"Not a binary leaf kind: {kind}")


def from_bytes(kind: str, raw: bytes, meta: dict) -> Any:
    """Inverse of `to_bytes`."""
    if kind == "bytes":
        return bytes(raw)
    if kind == "ndarray":
        arr = np.frombuffer(raw, dtype=np.dtype(meta["dtype"]))
        # frombuffer returns a read-only view
        return arr.reshape(meta["shape"]).copy()
    if kind == "npscalar":
        return np.frombuffer(raw, dtype=np.dtype(meta["dtype"]))[0]
    if kind == "pickle":
        return PickledValue(raw)
    raise ValueError(f"Not a binary leaf kind: {kind}")


def to_json_node(value: Any) -> dict:
    """Encode a leaf as a JSON-compatible node."""
    kind = classify(value)
    if kind == "none":
        return {"kind": kind}
    if kind == "complex":
        return {"kind": kind, "value": [value.real, value.imag]}
    if kind in SCALAR_KINDS or kind == "json":
        return {"kind": kind, "value": value}

    raw, meta = to_bytes(kind, value)
    node = {"kind": kind, "data": base64.b64encode(raw).decode("ascii")}
    node.update(meta)
    return node


def from_json_node(node: dict) -> Any:
    """Decode a node produced by `to_json_node`."""
    kind = node["kind"]
    if kind == "none":
        return None
    if kind == "complex":
        re, im = node["value"]
        return complex(re, im)
    if kind == "float":
        return float(node["value"])
    if kind in SCALAR_KINDS or kind == "json":
        return node["value"]
    if kind in BINARY_KINDS:
        raw = base64.b64decode(node["data"])
        return from_bytes(kind, raw, node)
    raise ValueError(f"Unknown leaf kind: {kind!r}")
