"""Numba-accelerated LLL reduction kernel.

Mirrors the reference implementation in lll.py step for step. Kernels do not
raise; they return a status code that the Python wrapper translates into
DegenerateLatticeError or AlgorithmDivergenceError.

Note: This module requires numba to be installed. Functions will raise
ImportError if called without numba. Use backend.require_numba() to check
availability before use.
"""

import numpy as np
from .backend import njit, NUMBA_AVAILABLE
from .errors import DegenerateLatticeError, AlgorithmDivergenceError
from .lll import LLLResult, DEFAULT_DELTA, MAX_STEPS, DEGENERATE_TOL, ReductionConfig
from .utils import as_lattice

STATUS_OK = 0
STATUS_DEGENERATE = 1
STATUS_DIVERGED = 2

if not NUMBA_AVAILABLE:
    def _raise_numba_error():
        raise ImportError(
            "Numba is required for lattice reduction kernels. "
            "Install with: pip install numba"
        )

    def lll_reduce_kernel(*args, **kwargs):
        _raise_numba_error()
else:
    @njit(cache=True)
    def _gram_schmidt_row(a, b, u, m, i, tol):
        """Recompute row i of the Gram-Schmidt state; returns False if degenerate."""
        for j in range(i):
            s = 0.0
            for r in range(3):
                s += a[r, i] * b[r, j]
            u[i, j] = s / m[j]
        for r in range(3):
            v = a[r, i]
            for j in range(i):
                v -= b[r, j] * u[i, j]
            b[r, i] = v
        mi = 0.0
        for r in range(3):
            mi += b[r, i] * b[r, i]
        m[i] = mi
        scale = mi
        for j in range(i):
            if m[j] > scale:
                scale = m[j]
        return mi > tol * scale

    @njit(cache=True)
    def lll_reduce_kernel(lattice, delta, max_steps, tol):
        """LLL-reduce a row lattice.

        Args:
            lattice: Lattice vectors as rows, shape (3, 3), float64
            delta: Lovasz parameter
            max_steps: Step budget
            tol: Relative degeneracy threshold

        Returns:
            reduced: Reduced lattice vectors as rows, shape (3, 3)
            mapping: Unimodular matrix with reduced = mapping @ lattice
            status: STATUS_OK, STATUS_DEGENERATE or STATUS_DIVERGED
            steps: Number of iterations taken
            swaps: Number of swaps performed
        """
        a = lattice.T.copy()
        b = np.zeros((3, 3))
        u = np.zeros((3, 3))
        m = np.zeros(3)
        mapping = np.zeros((3, 3))
        for i in range(3):
            mapping[i, i] = 1.0

        for i in range(3):
            if not _gram_schmidt_row(a, b, u, m, i, tol):
                return a.T.copy(), mapping.T.copy(), STATUS_DEGENERATE, 0, 0

        k = 1
        steps = 0
        swaps = 0
        while k < 3:
            steps += 1
            if steps > max_steps:
                return a.T.copy(), mapping.T.copy(), STATUS_DIVERGED, steps, swaps

            # Size reduction
            for j in range(k - 1, -1, -1):
                mu = u[k, j]
                if abs(mu) > 0.5:
                    q = np.rint(mu)
                    for r in range(3):
                        a[r, k] -= q * a[r, j]
                        mapping[r, k] -= q * mapping[r, j]
                    for c in range(j):
                        u[k, c] -= q * u[j, c]
                    u[k, j] -= q

            if m[k] >= (delta - u[k, k - 1] * u[k, k - 1]) * m[k - 1]:
                k += 1
            else:
                swaps += 1
                for r in range(3):
                    tmp = a[r, k - 1]
                    a[r, k - 1] = a[r, k]
                    a[r, k] = tmp
                    tmp = mapping[r, k - 1]
                    mapping[r, k - 1] = mapping[r, k]
                    mapping[r, k] = tmp
                for i in range(k - 1, 3):
                    if not _gram_schmidt_row(a, b, u, m, i, tol):
                        return a.T.copy(), mapping.T.copy(), STATUS_DEGENERATE, steps, swaps
                if k > 1:
                    k -= 1

        return a.T.copy(), mapping.T.copy(), STATUS_OK, steps, swaps


def lll_reduce_numba(lattice, delta=DEFAULT_DELTA, max_steps=MAX_STEPS, degenerate_tol=DEGENERATE_TOL):
    """Numba-backed equivalent of lll.lll_reduce.

    Args:
        lattice: Lattice vectors as rows, shape (3, 3)
        delta: Lovasz parameter in (0.25, 1)
        max_steps: Step budget
        degenerate_tol: Relative degeneracy threshold on Gram-Schmidt norms

    Returns:
        LLLResult (reduced = mapping @ lattice)
    """
    ReductionConfig(delta, max_steps, degenerate_tol)
    lattice = as_lattice(lattice)
    reduced, mapping, status, steps, swaps = lll_reduce_kernel(
        lattice, float(delta), int(max_steps), float(degenerate_tol)
    )
    if status == STATUS_DEGENERATE:
        raise DegenerateLatticeError(
            "Lattice is degenerate: a squared Gram-Schmidt norm is at or below "
            f"{degenerate_tol:g} times the largest one"
        )
    if status == STATUS_DIVERGED:
        raise AlgorithmDivergenceError(
            f"LLL reduction did not terminate within {max_steps} steps"
        )
    return LLLResult(reduced=reduced, mapping=mapping, steps=int(steps), swaps=int(swaps))
