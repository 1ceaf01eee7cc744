"""Ising model used by the reference engine."""

from dataclasses import dataclass

import numpy as np

from mcstate.io.codec import check_version, decode_entity, encode_entity, register_entity
from mcstate.simulation.lattice import SquareLattice


@register_entity(version=1)
@dataclass
class IsingModel:
    """Classical Ising model ``H = -J sum_<ij> s_i s_j - h sum_i s_i``.

    Attributes:
        lattice: Underlying lattice
        beta: Inverse temperature
        J: Coupling
        h: External field
    """

    lattice: SquareLattice
    beta: float = 1.0
    J: float = 1.0
    h: float = 0.0

    def energy(self, conf: np.ndarray, neighbors: np.ndarray) -> float:
        """Total energy of `conf` (each bond counted once)."""
        bonds = conf[neighbors[:, 0]] + conf[neighbors[:, 2]]
        return float(-self.J * np.sum(conf * bonds) - self.h * np.sum(conf))

    def local_field(self, conf: np.ndarray, neighbors: np.ndarray, sites: np.ndarray) -> np.ndarray:
        """Effective field acting on `sites`."""
        return self.J * conf[neighbors[sites]].sum(axis=1) + self.h

    def save_entity(self, group):
        group["data"] = {"beta": self.beta, "J": self.J, "h": self.h}
        encode_entity(group, "Lattice", self.lattice)

    @classmethod
    def load_entity(cls, group, version):
        check_version(group, 1)
        params = group["data"]
        return cls(lattice=decode_entity(group, "Lattice"), **params)
