"""Lattice geometry for the reference engine.

Lattices carry no custom codec: they are saved verbatim by the default
encoder (VERSION 0).
"""

from dataclasses import dataclass

import numpy as np


@dataclass(frozen=True)
class SquareLattice:
    """Periodic Lx x Ly square lattice.

    Sites are numbered row by row, ``site = x + Lx * y``.
    """

    Lx: int
    Ly: int

    def __post_init__(self):
        if self.Lx < 2 or self.Ly < 2:
            raise ValueError(f"Lattice dimensions must be at least 2, got {self.Lx}x{self.Ly}")
        if self.Lx % 2 or self.Ly % 2:
            raise ValueError("Checkerboard updates require even lattice dimensions")

    @property
    def nsites(self) -> int:
        return self.Lx * self.Ly

    @property
    def shape(self) -> tuple[int, int]:
        return (self.Ly, self.Lx)

    def neighbors(self) -> np.ndarray:
        """Neighbor table of shape (nsites, 4): right, left, up, down."""
        x, y = np.meshgrid(np.arange(self.Lx), np.arange(self.Ly))
        x, y = x.ravel(), y.ravel()
        return np.stack(
            [
                (x + 1) % self.Lx + self.Lx * y,
                (x - 1) % self.Lx + self.Lx * y,
                x + self.Lx * ((y + 1) % self.Ly),
                x + self.Lx * ((y - 1) % self.Ly),
            ],
            axis=1,
        )

    def sublattice(self) -> np.ndarray:
        """Checkerboard parity (0 or 1) of every site."""
        x, y = np.meshgrid(np.arange(self.Lx), np.arange(self.Ly))
        return ((x + y) % 2).ravel()
