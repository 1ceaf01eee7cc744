"""Measurements and their accumulators.

Measurements are saved under ``MC/Measurements/<name>``. Every entry is an
envelope with ``VERSION``, ``type`` and an ``obs`` group holding the
accumulator state.
"""

import logging
from dataclasses import dataclass, field

import numpy as np

from mcstate.io.codec import (
    UnknownEntity,
    check_version,
    decode_entity,
    encode_entity,
    register_entity,
    register_group_decoder,
)

logger = logging.getLogger(__name__)


@dataclass
class Accumulator:
    """Running mean and variance (Welford) of scalar or array samples.

    Attributes:
        name: Display name
        count: Number of samples pushed
        mean: Running mean
        m2: Running sum of squared deviations
    """

    name: str
    count: int = 0
    mean: np.ndarray = field(default_factory=lambda: np.zeros(()))
    m2: np.ndarray = field(default_factory=lambda: np.zeros(()))

    def __post_init__(self):
        self.mean = np.asarray(self.mean, dtype=float)
        self.m2 = np.asarray(self.m2, dtype=float)

    def push(self, value):
        value = np.asarray(value, dtype=float)
        if self.count == 0:
            self.mean = np.zeros_like(value)
            self.m2 = np.zeros_like(value)
        self.count += 1
        delta = value - self.mean
        self.mean = np.asarray(self.mean + delta / self.count)
        self.m2 = np.asarray(self.m2 + delta * (value - self.mean))

    @property
    def var(self) -> np.ndarray:
        if self.count < 2:
            return np.full_like(self.mean, np.nan)
        return self.m2 / (self.count - 1)

    @property
    def std_error(self) -> np.ndarray:
        """Naive standard error, ignoring autocorrelation."""
        return np.sqrt(self.var / max(self.count, 1))

    def save(self, group):
        group["name"] = self.name
        group["count"] = self.count
        group["mean"] = self.mean
        group["m2"] = self.m2

    @classmethod
    def load(cls, group) -> "Accumulator":
        return cls(
            name=group["name"],
            count=group["count"],
            mean=group["mean"],
            m2=group["m2"],
        )

    def __eq__(self, other):
        if not isinstance(other, Accumulator):
            return NotImplemented
        return (
            self.name == other.name
            and self.count == other.count
            and np.array_equal(self.mean, other.mean)
            and np.array_equal(self.m2, other.m2)
        )


class Measurement:
    """Base class for measurements taken during a run."""

    def __init__(self, obs: Accumulator):
        self.obs = obs

    def measure(self, mc):
        raise NotImplementedError

    def save_entity(self, group):
        self.obs.save(group.require_group("obs"))

    @classmethod
    def load_entity(cls, group, version):
        check_version(group, 1)
        return cls(Accumulator.load(group["obs"]))

    def __eq__(self, other):
        return type(self) is type(other) and self.obs == other.obs

    def __repr__(self):
        return f"{type(self).__name__}({self.obs.name!r}, count={self.obs.count})"


@register_entity(version=1)
class EnergyMeasurement(Measurement):
    """Energy per site."""

    def __init__(self, obs: Accumulator | None = None):
        super().__init__(obs or Accumulator("Energy per site"))

    def measure(self, mc):
        self.obs.push(mc.energy / mc.model.lattice.nsites)


@register_entity(version=1)
class MagnetizationMeasurement(Measurement):
    """Absolute magnetization per site."""

    def __init__(self, obs: Accumulator | None = None):
        super().__init__(obs or Accumulator("Magnetization per site"))

    def measure(self, mc):
        self.obs.push(abs(mc.conf.sum()) / mc.model.lattice.nsites)


def default_measurements() -> dict[str, Measurement]:
    return {
        "Energy": EnergyMeasurement(),
        "Magnetization": MagnetizationMeasurement(),
    }


def save_measurements(group, measurements: dict, entryname: str = "Measurements"):
    """Save every measurement as an envelope below `entryname`."""
    target = group.require_group(entryname)
    for name, m in measurements.items():
        if isinstance(m, UnknownEntity):
            # decoded from a file without the defining module; nothing to write
            logger.warning("Skipping measurement %s of unknown type %s", name, m.type_id)
            continue
        encode_entity(target, name, m)


@register_group_decoder("Measurements")
def load_measurements(group) -> dict:
    """Decode all measurement envelopes in `group`.

    Entries whose type is unknown stay in the result as `UnknownEntity`.
    """
    return {name: decode_entity(group, name) for name in group.keys()}
