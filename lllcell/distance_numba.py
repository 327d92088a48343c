"""Numba-accelerated minimum-image kernels.

Same semantics as the reference implementations in distance.py: points are
mapped into the reduced-lattice frame, wrapped into [0, 1), and the 27
neighboring images are searched with ties going to the first offset in
(-1, 0, 1)^3 lexicographic order.

The neighbor list is returned in CSR (Compressed Sparse Row) format:
- neighbor_list: Flat array of neighbor indices j > i
- neighbor_starts: Starting index in neighbor_list for each site (length N+1)
"""

import numpy as np
from .backend import njit, NUMBA_AVAILABLE

if not NUMBA_AVAILABLE:
    def _raise_numba_error():
        raise ImportError(
            "Numba is required for minimum-image kernels. "
            "Install with: pip install numba"
        )

    def minimum_image_numba(*args, **kwargs):
        _raise_numba_error()

    def distance_matrix_numba(*args, **kwargs):
        _raise_numba_error()

    def build_neighbor_list_numba(*args, **kwargs):
        _raise_numba_error()

    def site_displacements_numba(*args, **kwargs):
        _raise_numba_error()
else:
    @njit(cache=True)
    def _reduced_cartesian(f, reduced, inverse_mapping, wrap):
        """Map a fractional point to the reduced frame, wrap it, return Cartesian."""
        g = np.zeros(3)
        for c in range(3):
            s = 0.0
            for r in range(3):
                s += f[r] * inverse_mapping[r, c]
            if wrap:
                s = s - np.floor(s)
                if s >= 1.0:
                    s = 0.0
            g[c] = s
        cart = np.zeros(3)
        for c in range(3):
            s = 0.0
            for r in range(3):
                s += g[r] * reduced[r, c]
            cart[c] = s
        return cart

    @njit(cache=True)
    def _search_images(pre_image, reduced):
        """Index into (-1, 0, 1)^3 of the shortest image, and its squared length."""
        best = np.inf
        best_k = 0
        k = 0
        for nx in range(-1, 2):
            for ny in range(-1, 2):
                for nz in range(-1, 2):
                    d2 = 0.0
                    for c in range(3):
                        dv = pre_image[c] + nx * reduced[0, c] + ny * reduced[1, c] + nz * reduced[2, c]
                        d2 += dv * dv
                    if d2 < best:
                        best = d2
                        best_k = k
                    k += 1
        return best_k, best

    @njit(cache=True)
    def _pair_displacement(f1, f2, reduced, inverse_mapping, wrap):
        cart1 = _reduced_cartesian(f1, reduced, inverse_mapping, wrap)
        cart2 = _reduced_cartesian(f2, reduced, inverse_mapping, wrap)
        pre_image = cart2 - cart1
        best_k, best = _search_images(pre_image, reduced)
        nx = best_k // 9 - 1
        ny = (best_k // 3) % 3 - 1
        nz = best_k % 3 - 1
        vector = np.zeros(3)
        for c in range(3):
            vector[c] = pre_image[c] + nx * reduced[0, c] + ny * reduced[1, c] + nz * reduced[2, c]
        return vector, best, best_k

    @njit(cache=True)
    def minimum_image_numba(f1, f2, reduced, inverse_mapping, wrap):
        """Minimum-image displacement from f1 to f2.

        Args:
            f1: First point, fractional coordinates in the original frame, shape (3,)
            f2: Second point, fractional coordinates in the original frame, shape (3,)
            reduced: Reduced lattice vectors as rows, shape (3, 3)
            inverse_mapping: Inverse of the reduction mapping, shape (3, 3)
            wrap: Wrap both points into the reduced cell before searching

        Returns:
            vector: Cartesian displacement, shape (3,)
            r2: Squared length of vector
            best_k: Index of the winning image offset in (-1, 0, 1)^3 order
        """
        return _pair_displacement(f1, f2, reduced, inverse_mapping, wrap)

    @njit(cache=True)
    def distance_matrix_numba(frac_coords, reduced, inverse_mapping):
        """All-pairs minimum-image distances, shape (N, N)."""
        N = frac_coords.shape[0]
        D = np.zeros((N, N))
        for i in range(N - 1):
            for j in range(i + 1, N):
                _, r2, _ = _pair_displacement(frac_coords[i], frac_coords[j], reduced, inverse_mapping, True)
                d = np.sqrt(r2)
                D[i, j] = d
                D[j, i] = d
        return D

    @njit(cache=True)
    def build_neighbor_list_numba(frac_coords, reduced, inverse_mapping, rc2):
        """Build a minimum-image neighbor list by brute force over pairs.

        Args:
            frac_coords: Fractional coordinates in the original frame, shape (N, 3)
            reduced: Reduced lattice vectors as rows, shape (3, 3)
            inverse_mapping: Inverse of the reduction mapping, shape (3, 3)
            rc2: Squared cutoff distance

        Returns:
            neighbor_list: Flat array of neighbor site indices
            neighbor_starts: Starting indices for each site, shape (N+1,)
        """
        N = frac_coords.shape[0]
        max_total_neighbors = N * (N - 1) // 2
        neighbor_list = np.zeros(max_total_neighbors, dtype=np.int32)
        neighbor_starts = np.zeros(N + 1, dtype=np.int32)
        neighbor_count = 0

        for i in range(N):
            neighbor_starts[i] = neighbor_count
            for j in range(i + 1, N):
                _, r2, _ = _pair_displacement(frac_coords[i], frac_coords[j], reduced, inverse_mapping, True)
                if r2 < rc2:
                    neighbor_list[neighbor_count] = j
                    neighbor_count += 1

        neighbor_starts[N] = neighbor_count
        return neighbor_list[:neighbor_count].copy(), neighbor_starts

    @njit(cache=True)
    def site_displacements_numba(frac_ref, frac_new, reduced, inverse_mapping):
        """Minimum-image distance each site moved between two configurations, shape (N,)."""
        N = frac_ref.shape[0]
        out = np.zeros(N)
        for i in range(N):
            _, r2, _ = _pair_displacement(frac_ref[i], frac_new[i], reduced, inverse_mapping, True)
            out[i] = np.sqrt(r2)
        return out
