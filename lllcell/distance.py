"""Minimum-image displacements under periodic boundary conditions.

Reference implementations (Python) of the 27-image search. Fractional
coordinates given in the original lattice frame are re-expressed in the frame of
the LLL-reduced lattice, wrapped into [0, 1), converted to Cartesian, and the
displacement is compared against its 27 nearest periodic images. For a reduced
basis the nearest image is always among those 27; for a skewed, unreduced basis
it may not be.

Numba kernels with the same semantics live in distance_numba.py.
"""

import numpy as np
from .utils import IMAGE_OFFSETS, as_fractional, wrap_fractional, image_offsets_cartesian


def to_reduced_fractional(frac, inverse_mapping, wrap=True):
    """Re-express fractional coordinates in the reduced-lattice frame.

    Args:
        frac: Fractional coordinate(s) in the original frame, shape (3,) or (N, 3)
        inverse_mapping: Inverse of the reduction mapping, shape (3, 3)
        wrap: If True, wrap the result into [0, 1)

    Returns:
        Fractional coordinate(s) in the reduced frame
    """
    out = np.asarray(frac, dtype=np.float64) @ np.asarray(inverse_mapping, dtype=np.float64)
    if wrap:
        out = wrap_fractional(out)
    return out


def minimum_image_displacement(f1, f2, reduced, inverse_mapping, wrap=True):
    """Shortest displacement from point f1 to any periodic image of point f2.

    Args:
        f1: First point, fractional coordinates in the original frame, shape (3,)
        f2: Second point, fractional coordinates in the original frame, shape (3,)
        reduced: Reduced lattice vectors as rows, shape (3, 3)
        inverse_mapping: Inverse of the reduction mapping, shape (3, 3)
        wrap: Wrap both points into the reduced cell before searching

    Returns:
        Tuple (vector, distance, offset):
        - vector: Cartesian displacement, shape (3,)
        - distance: Euclidean length of vector
        - offset: Winning image offset in the reduced frame, shape (3,) int
    """
    f1 = as_fractional(f1, "f1")
    f2 = as_fractional(f2, "f2")
    reduced = np.asarray(reduced, dtype=np.float64)

    cart1 = to_reduced_fractional(f1, inverse_mapping, wrap) @ reduced
    cart2 = to_reduced_fractional(f2, inverse_mapping, wrap) @ reduced
    pre_image = cart2 - cart1
    cart_images = image_offsets_cartesian(reduced)

    best = np.inf
    best_k = 0
    for k in range(len(IMAGE_OFFSETS)):
        dv = pre_image + cart_images[k]
        d2 = dv @ dv
        if d2 < best:
            best = d2
            best_k = k

    vector = pre_image + cart_images[best_k]
    return vector, float(np.sqrt(best)), IMAGE_OFFSETS[best_k].astype(int)


def periodic_distance(f1, f2, reduced, inverse_mapping, wrap=True):
    """Minimum-image displacement vector and distance between two points.

    Returns:
        Tuple (vector, distance)
    """
    vector, distance, _ = minimum_image_displacement(f1, f2, reduced, inverse_mapping, wrap)
    return vector, distance


def distance_matrix(frac_coords, reduced, inverse_mapping):
    """All-pairs minimum-image distances.

    Args:
        frac_coords: Fractional coordinates in the original frame, shape (N, 3)
        reduced: Reduced lattice vectors as rows, shape (3, 3)
        inverse_mapping: Inverse of the reduction mapping, shape (3, 3)

    Returns:
        Symmetric distance matrix with zero diagonal, shape (N, N)
    """
    frac_coords = np.asarray(frac_coords, dtype=np.float64)
    N = frac_coords.shape[0]
    D = np.zeros((N, N))
    for i in range(N - 1):
        for j in range(i + 1, N):
            _, d = periodic_distance(frac_coords[i], frac_coords[j], reduced, inverse_mapping)
            D[i, j] = d
            D[j, i] = d
    return D


def neighbor_pairs(frac_coords, reduced, inverse_mapping, cutoff):
    """Find all pairs (i, j), i < j, whose minimum-image distance is below cutoff.

    Returns:
        Set of (i, j) tuples
    """
    D = distance_matrix(frac_coords, reduced, inverse_mapping)
    N = D.shape[0]
    pairs = set()
    for i in range(N - 1):
        for j in range(i + 1, N):
            if D[i, j] < cutoff:
                pairs.add((i, j))
    return pairs


def neighbor_list_csr(frac_coords, reduced, inverse_mapping, cutoff):
    """Neighbor list in CSR format built from neighbor_pairs.

    Returns:
        neighbor_list: Flat array of neighbor indices j > i
        neighbor_starts: Starting index for each site, shape (N+1,)
    """
    N = np.asarray(frac_coords).shape[0]
    pairs = sorted(neighbor_pairs(frac_coords, reduced, inverse_mapping, cutoff))
    neighbor_list = np.array([j for _, j in pairs], dtype=np.int32)
    neighbor_starts = np.zeros(N + 1, dtype=np.int32)
    for i, _ in pairs:
        neighbor_starts[i + 1] += 1
    return neighbor_list, np.cumsum(neighbor_starts).astype(np.int32)
