"""Periodic structure container with cached LLL reduction."""

from dataclasses import dataclass
from functools import cached_property
import logging
from typing import Optional
import numpy as np
from .backend import require_numba, NUMBA_AVAILABLE
from .lll import ReductionConfig, LLLResult, lll_reduce
from .distance import periodic_distance, distance_matrix, neighbor_list_csr
from .utils import (
    as_lattice,
    as_fractional,
    fractional_to_cartesian,
    cell_volume,
    integer_inverse,
    reciprocal_lattice,
)

if NUMBA_AVAILABLE:
    from .lll_numba import lll_reduce_numba
    from .distance_numba import (
        minimum_image_numba,
        distance_matrix_numba,
        build_neighbor_list_numba,
    )

logger = logging.getLogger(__name__)


@dataclass(eq=False)
class Structure:
    """Lattice, fractional site coordinates and per-site species labels.

    The lattice is LLL-reduced once, on first use, and the result is cached;
    distance queries never reduce again. Arrays are stored as read-only copies.

    Attributes:
        lattice: Lattice vectors as rows, shape (3, 3)
        frac_coords: Fractional coordinates of the sites, shape (n, 3)
        species: Integer species label of each site, shape (n,)
        config: Reduction parameters (defaults to ReductionConfig())
    """
    lattice: np.ndarray
    frac_coords: np.ndarray
    species: np.ndarray
    config: Optional[ReductionConfig] = None

    def __post_init__(self):
        """Validate shapes and freeze the arrays."""
        self.lattice = as_lattice(self.lattice)
        self.frac_coords = np.array(self.frac_coords, dtype=np.float64)
        if self.frac_coords.size == 0:
            self.frac_coords = self.frac_coords.reshape(0, 3)
        self.species = np.array(self.species, dtype=np.int64)
        if self.config is None:
            self.config = ReductionConfig()

        n = self.frac_coords.shape[0]
        if self.frac_coords.ndim != 2 or self.frac_coords.shape[1] != 3:
            raise ValueError(f"frac_coords must have shape (n, 3), got {self.frac_coords.shape}")
        if self.species.shape != (n,):
            raise ValueError(
                f"species must have shape ({n},) to match frac_coords, got {self.species.shape}"
            )

        for arr in (self.lattice, self.frac_coords, self.species):
            arr.flags.writeable = False

    def __len__(self):
        return self.frac_coords.shape[0]

    @property
    def num_sites(self):
        return len(self)

    @property
    def volume(self):
        return cell_volume(self.lattice)

    @property
    def reciprocal_lattice(self):
        return reciprocal_lattice(self.lattice)

    @cached_property
    def reduction(self) -> LLLResult:
        """LLL reduction of the lattice, computed once per structure."""
        cfg = self.config
        if NUMBA_AVAILABLE:
            result = lll_reduce_numba(self.lattice, cfg.delta, cfg.max_steps, cfg.degenerate_tol)
        else:
            require_numba("Structure lattice reduction")
            logger.warning("numba unavailable; using the Python reference reduction")
            result = lll_reduce(self.lattice, cfg.delta, cfg.max_steps, cfg.degenerate_tol)
        logger.debug("Reduced lattice:\n%s", result.reduced)
        return result

    @property
    def reduced_lattice(self):
        return self.reduction.reduced

    @property
    def mapping(self):
        return self.reduction.mapping

    @cached_property
    def inverse_mapping(self):
        return integer_inverse(self.reduction.mapping)

    def cartesian_coords(self):
        """Cartesian positions of the sites, shape (n, 3)."""
        return fractional_to_cartesian(self.frac_coords, self.lattice)

    def get_distances(self, f1, f2):
        """Minimum-image displacement and distance between two fractional points.

        Args:
            f1: First point in fractional coordinates of this lattice, shape (3,)
            f2: Second point in fractional coordinates of this lattice, shape (3,)

        Returns:
            Tuple (vector, distance): Cartesian displacement from f1 to the
            nearest image of f2, and its length
        """
        f1 = as_fractional(f1, "f1")
        f2 = as_fractional(f2, "f2")
        if NUMBA_AVAILABLE:
            vector, r2, _ = minimum_image_numba(
                f1, f2, self.reduced_lattice, self.inverse_mapping, True
            )
            return vector, float(np.sqrt(r2))
        require_numba("Structure distances")
        return periodic_distance(f1, f2, self.reduced_lattice, self.inverse_mapping)

    def site_distance(self, i, j):
        """Minimum-image distance between sites i and j."""
        return self.get_distances(self.frac_coords[i], self.frac_coords[j])[1]

    def distance_matrix(self):
        """All-pairs minimum-image distances between sites, shape (n, n)."""
        frac = np.ascontiguousarray(self.frac_coords)
        if NUMBA_AVAILABLE:
            return distance_matrix_numba(frac, self.reduced_lattice, self.inverse_mapping)
        require_numba("Structure distance matrix")
        return distance_matrix(frac, self.reduced_lattice, self.inverse_mapping)

    def neighbor_list(self, cutoff):
        """Minimum-image neighbor list in CSR format.

        Args:
            cutoff: Distance below which two sites are neighbors

        Returns:
            neighbor_list: Flat array of neighbor indices j > i
            neighbor_starts: Starting index for each site, shape (n+1,)
        """
        frac = np.ascontiguousarray(self.frac_coords)
        if NUMBA_AVAILABLE:
            return build_neighbor_list_numba(
                frac, self.reduced_lattice, self.inverse_mapping, float(cutoff) ** 2
            )
        require_numba("Neighbor list")
        return neighbor_list_csr(frac, self.reduced_lattice, self.inverse_mapping, cutoff)

    def with_coordinates(self, frac_coords):
        """Return a structure on the same lattice with new site coordinates.

        The cached reduction is carried over, so relaxation loops that only
        move sites never reduce the lattice again.
        """
        new = Structure(self.lattice, frac_coords, self.species, self.config)
        if "reduction" in self.__dict__:
            new.__dict__["reduction"] = self.reduction
        return new
