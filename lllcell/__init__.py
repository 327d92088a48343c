"""lllcell: LLL lattice reduction and minimum-image distances for periodic cells."""

from .backend import NUMBA_AVAILABLE, require_numba
from .errors import LatticeError, DegenerateLatticeError, AlgorithmDivergenceError
from .utils import (
    IMAGE_OFFSETS,
    fractional_to_cartesian,
    cartesian_to_fractional,
    wrap_fractional,
    integer_inverse,
    cell_volume,
    reciprocal_lattice,
)
from .lll import (
    ReductionConfig,
    LLLResult,
    gram_schmidt,
    lll_reduce,
    is_lll_reduced,
)
from .lll_numba import lll_reduce_numba
from .distance import (
    to_reduced_fractional,
    minimum_image_displacement,
    periodic_distance,
    distance_matrix,
    neighbor_pairs,
)
from .structure import Structure
from .neighborlist import NeighborListConfig, NeighborList

__all__ = [
    "NUMBA_AVAILABLE",
    "require_numba",
    "LatticeError",
    "DegenerateLatticeError",
    "AlgorithmDivergenceError",
    "IMAGE_OFFSETS",
    "fractional_to_cartesian",
    "cartesian_to_fractional",
    "wrap_fractional",
    "integer_inverse",
    "cell_volume",
    "reciprocal_lattice",
    "ReductionConfig",
    "LLLResult",
    "gram_schmidt",
    "lll_reduce",
    "is_lll_reduced",
    "lll_reduce_numba",
    "to_reduced_fractional",
    "minimum_image_displacement",
    "periodic_distance",
    "distance_matrix",
    "neighbor_pairs",
    "Structure",
    "NeighborListConfig",
    "NeighborList",
]
