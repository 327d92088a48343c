"""Numba availability and the Python fallback policy.

Structure and NeighborList dispatch every reduction and distance query to the
compiled kernels in lll_numba.py and distance_numba.py. Without numba they
refuse to run, because the reference code in lll.py and distance.py loops in
Python over every pair and all 27 images. Setting LLLCELL_ALLOW_PYTHON=1 lets
them use that reference code instead; it gives the same answers, slowly.
"""

import os

try:
    from numba import njit
    NUMBA_AVAILABLE = True
except ImportError:
    NUMBA_AVAILABLE = False
    njit = None


def python_fallback_allowed():
    """Return True if LLLCELL_ALLOW_PYTHON is set to 1, true or yes."""
    return os.getenv("LLLCELL_ALLOW_PYTHON", "0").lower() in ("1", "true", "yes")


def require_numba(feature: str):
    """Stop a numba-backed code path from running on the Python fallback by accident.

    Returns silently when numba is importable or the fallback is allowed.

    Args:
        feature: Code path that needs numba, used in the error message
            (e.g. "Structure distances")

    Raises:
        ImportError: If numba is missing and LLLCELL_ALLOW_PYTHON is not set
    """
    if NUMBA_AVAILABLE or python_fallback_allowed():
        return

    raise ImportError(
        f"Numba is required for {feature}. "
        f"Install with: pip install numba\n"
        f"(Set LLLCELL_ALLOW_PYTHON=1 to run the slow Python reference code instead)"
    )


__all__ = ["NUMBA_AVAILABLE", "require_numba", "python_fallback_allowed", "njit"]
