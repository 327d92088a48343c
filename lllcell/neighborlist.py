"""Neighbor list wrapper with rebuild tracking.

This module provides a Python interface to the numba-accelerated minimum-image
neighbor list, with tracking of site displacements between relaxation steps and
a skin-based rebuild criterion.
"""

from dataclasses import dataclass
import logging
from typing import Optional
import numpy as np
from .backend import require_numba, NUMBA_AVAILABLE
from .distance import periodic_distance

if NUMBA_AVAILABLE:
    from .distance_numba import site_displacements_numba

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NeighborListConfig:
    """Configuration for neighbor list usage in relaxation loops.

    Args:
        skin: Skin distance for rebuild criterion (rebuild when max displacement > skin/2)
    """
    skin: float = 0.2

    def __post_init__(self):
        if self.skin < 0:
            raise ValueError(f"skin must be >= 0, got {self.skin}")


class NeighborList:
    """Neighbor list with automatic rebuild tracking.

    Tracks site fractional coordinates and rebuilds the neighbor list when any
    site has moved more than skin/2 since the last rebuild. The lattice is that
    of the structure passed in; its cached reduction is reused for every build.
    """

    def __init__(self, structure, rc, skin=0.2, config: Optional[NeighborListConfig] = None):
        """Initialize neighbor list.

        Args:
            structure: Structure providing the lattice and initial coordinates
            rc: Cutoff distance
            skin: Skin distance for rebuild criterion (rebuild when max displacement > skin/2)
            config: NeighborListConfig; when given, its skin overrides the skin argument
        """
        require_numba("Neighbor list")
        if config is not None:
            skin = config.skin
        if rc <= 0:
            raise ValueError(f"rc must be > 0, got {rc}")
        if skin < 0:
            raise ValueError(f"skin must be >= 0, got {skin}")

        self.rc = rc
        self.skin = skin
        self.cutoff = rc + skin  # Neighbor list uses rc + skin as cutoff
        self.structure = structure
        self.N = structure.num_sites
        self.n_builds = 0

        self.neighbor_list, self.neighbor_starts = self._build(structure)

    def _build(self, structure):
        self.structure = structure
        self.frac_ref = np.array(structure.frac_coords, copy=True)
        self.n_builds += 1
        logger.debug("Building neighbor list for %d sites (build %d)", self.N, self.n_builds)
        return structure.neighbor_list(self.cutoff)

    def _check_shape(self, frac_coords):
        frac_coords = np.ascontiguousarray(frac_coords, dtype=np.float64)
        if frac_coords.shape != (self.N, 3):
            raise ValueError(f"frac_coords must have shape ({self.N}, 3), got {frac_coords.shape}")
        return frac_coords

    def displacements(self, frac_coords):
        """Minimum-image distance each site moved since the last rebuild, shape (N,)."""
        frac_coords = self._check_shape(frac_coords)
        reduced = self.structure.reduced_lattice
        inverse = self.structure.inverse_mapping
        if NUMBA_AVAILABLE:
            return site_displacements_numba(self.frac_ref, frac_coords, reduced, inverse)
        return np.array([
            periodic_distance(self.frac_ref[i], frac_coords[i], reduced, inverse)[1]
            for i in range(self.N)
        ])

    def needs_rebuild(self, frac_coords):
        """Check if neighbor list needs rebuilding.

        Args:
            frac_coords: Current fractional coordinates, shape (N, 3)

        Returns:
            True if max displacement > skin/2, False otherwise
        """
        if self.N == 0:
            return False
        return float(np.max(self.displacements(frac_coords))) > 0.5 * self.skin

    def rebuild(self, frac_coords):
        """Rebuild neighbor list from current fractional coordinates.

        Args:
            frac_coords: Current fractional coordinates, shape (N, 3)
        """
        frac_coords = self._check_shape(frac_coords)
        self.neighbor_list, self.neighbor_starts = self._build(
            self.structure.with_coordinates(frac_coords)
        )

    def update(self, frac_coords, force_rebuild=False):
        """Update neighbor list if needed.

        Args:
            frac_coords: Current fractional coordinates, shape (N, 3)
            force_rebuild: If True, force rebuild regardless of displacement

        Returns:
            True if the list was rebuilt
        """
        if force_rebuild or self.needs_rebuild(frac_coords):
            self.rebuild(frac_coords)
            return True
        return False

    def neighbors_of(self, i):
        """Neighbor indices j > i stored for site i."""
        return self.neighbor_list[self.neighbor_starts[i]:self.neighbor_starts[i + 1]]

    def pairs(self):
        """All stored (i, j) pairs as a set."""
        return {(i, int(j)) for i in range(self.N) for j in self.neighbors_of(i)}
