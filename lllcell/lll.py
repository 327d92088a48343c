"""LLL reduction of 3D lattice bases (Python reference implementation).

The reduction works on the lattice vectors as columns of ``a``:

    b[0] = a[0]
    b[i] = a[i] - sum_{j<i} u[i, j] * b[j],   u[i, j] = (a[i] . b[j]) / m[j]

where ``b`` are the Gram-Schmidt vectors and ``m`` their squared norms. A basis
is LLL-reduced for parameter delta when |u[i, j]| <= 1/2 for all j < i and the
Lovasz condition m[k] >= (delta - u[k, k-1]^2) * m[k-1] holds for each k.

Public functions take and return lattices with vectors as rows. The returned
mapping ``T`` satisfies ``reduced = T @ lattice`` with det(T) = +/-1.

The Numba kernel in lll_numba.py follows the same steps and is what Structure
uses; this module is the reference it is tested against.
"""

from dataclasses import dataclass
import logging
import numpy as np
from .errors import DegenerateLatticeError, AlgorithmDivergenceError
from .utils import as_lattice, integer_inverse

logger = logging.getLogger(__name__)

DEFAULT_DELTA = 0.75
MAX_STEPS = 10_000
DEGENERATE_TOL = 1e-12


@dataclass(frozen=True)
class ReductionConfig:
    """Parameters for LLL reduction.

    Args:
        delta: Lovasz parameter, must lie in (0.25, 1)
        max_steps: Maximum number of advance/swap iterations before giving up
        degenerate_tol: A squared Gram-Schmidt norm at or below this fraction of
            the largest one marks the basis as singular
    """
    delta: float = DEFAULT_DELTA
    max_steps: int = MAX_STEPS
    degenerate_tol: float = DEGENERATE_TOL

    def __post_init__(self):
        if not 0.25 < self.delta < 1.0:
            raise ValueError(f"delta must lie in (0.25, 1), got {self.delta}")
        if self.max_steps <= 0:
            raise ValueError(f"max_steps must be > 0, got {self.max_steps}")
        if self.degenerate_tol < 0:
            raise ValueError(f"degenerate_tol must be >= 0, got {self.degenerate_tol}")


@dataclass(frozen=True)
class LLLResult:
    """Result of an LLL reduction.

    Attributes:
        reduced: Reduced lattice vectors as rows, shape (3, 3)
        mapping: Integer-valued unimodular matrix with reduced = mapping @ lattice
        steps: Number of loop iterations taken
        swaps: Number of those iterations that swapped two vectors
    """
    reduced: np.ndarray
    mapping: np.ndarray
    steps: int = 0
    swaps: int = 0

    @property
    def inverse_mapping(self):
        """Integer inverse of mapping; frac @ inverse_mapping gives reduced-frame fractions."""
        return integer_inverse(self.mapping)


def _check_norm(m, i, tol):
    # Relative to the largest Gram-Schmidt norm so far, not to |a_i|
    scale = np.max(m[:i + 1])
    if not m[i] > tol * scale:
        raise DegenerateLatticeError(
            f"Lattice is degenerate: squared Gram-Schmidt norm of vector {i} is {m[i]:.3e}, "
            f"at or below {tol:g} times the largest ({scale:.3e})"
        )


def _gram_schmidt_row(a, b, u, m, i, tol):
    """Recompute row i of the Gram-Schmidt state from the columns of a."""
    u[i, :i] = (a[:, i] @ b[:, :i]) / m[:i]
    b[:, i] = a[:, i] - b[:, :i] @ u[i, :i]
    m[i] = b[:, i] @ b[:, i]
    _check_norm(m, i, tol)


def gram_schmidt(a, tol=DEGENERATE_TOL):
    """Gram-Schmidt orthogonalization of a column basis.

    Args:
        a: Basis vectors as columns, shape (3, 3)
        tol: Relative degeneracy threshold on the squared norms

    Returns:
        Tuple (b, u, m):
        - b: Orthogonal vectors as columns, shape (3, 3)
        - u: Strictly lower triangular projection coefficients, shape (3, 3)
        - m: Squared norms of the orthogonal vectors, shape (3,)

    Raises:
        DegenerateLatticeError: If any orthogonal norm collapses toward zero
    """
    a = np.asarray(a, dtype=np.float64)
    if a.shape != (3, 3):
        raise ValueError(f"basis must have shape (3, 3), got {a.shape}")
    b = np.zeros((3, 3))
    u = np.zeros((3, 3))
    m = np.zeros(3)
    for i in range(3):
        _gram_schmidt_row(a, b, u, m, i, tol)
    return b, u, m


def lll_reduce(lattice, delta=DEFAULT_DELTA, max_steps=MAX_STEPS, degenerate_tol=DEGENERATE_TOL):
    """Reduce a 3D lattice basis with the LLL algorithm.

    Args:
        lattice: Lattice vectors as rows, shape (3, 3)
        delta: Lovasz parameter in (0.25, 1)
        max_steps: Step budget; exceeded budgets raise AlgorithmDivergenceError
        degenerate_tol: Relative degeneracy threshold on Gram-Schmidt norms

    Returns:
        LLLResult with the reduced rows and the mapping (reduced = mapping @ lattice)

    Raises:
        DegenerateLatticeError: If the lattice is singular or nearly so
        AlgorithmDivergenceError: If the reduction does not finish in max_steps
    """
    ReductionConfig(delta, max_steps, degenerate_tol)
    a = as_lattice(lattice).T.copy()
    b, u, m = gram_schmidt(a, degenerate_tol)
    mapping = np.identity(3)

    k = 1
    steps = 0
    swaps = 0
    while k < 3:
        steps += 1
        if steps > max_steps:
            raise AlgorithmDivergenceError(
                f"LLL reduction did not terminate within {max_steps} steps"
            )

        # Size reduction of vector k against vectors k-1 .. 0
        for j in range(k - 1, -1, -1):
            mu = u[k, j]
            if abs(mu) > 0.5:
                q = np.rint(mu)
                a[:, k] -= q * a[:, j]
                mapping[:, k] -= q * mapping[:, j]
                u[k, :j] -= q * u[j, :j]
                u[k, j] -= q

        if m[k] >= (delta - u[k, k - 1] ** 2) * m[k - 1]:
            k += 1
        else:
            swaps += 1
            a[:, [k - 1, k]] = a[:, [k, k - 1]]
            mapping[:, [k - 1, k]] = mapping[:, [k, k - 1]]
            for i in range(k - 1, 3):
                _gram_schmidt_row(a, b, u, m, i, degenerate_tol)
            k = max(k - 1, 1)

    logger.debug("LLL reduction finished in %d steps (%d swaps)", steps, swaps)
    return LLLResult(reduced=a.T.copy(), mapping=mapping.T.copy(), steps=steps, swaps=swaps)


def is_lll_reduced(lattice, delta=DEFAULT_DELTA, atol=1e-10):
    """Check size reduction and the Lovasz condition for a row lattice.

    Args:
        lattice: Lattice vectors as rows, shape (3, 3)
        delta: Lovasz parameter
        atol: Absolute tolerance applied to both conditions

    Returns:
        True if the basis is LLL-reduced within tolerance
    """
    _, u, m = gram_schmidt(as_lattice(lattice).T)
    for i in range(1, 3):
        if np.any(np.abs(u[i, :i]) > 0.5 + atol):
            return False
        if m[i] < (delta - u[i, i - 1] ** 2) * m[i - 1] - atol:
            return False
    return True
