"""Utilities for lattices, fractional coordinates and periodic images."""

import itertools
import numpy as np


# Periodic image offsets in enumeration order; ties in the image search go to
# the first entry.
IMAGE_OFFSETS = np.array(list(itertools.product((-1, 0, 1), repeat=3)), dtype=np.float64)


def as_lattice(lattice):
    """Validate and convert a lattice to a float64 (3, 3) array.

    Args:
        lattice: Lattice vectors as rows, shape (3, 3)

    Returns:
        C-contiguous float64 copy of the lattice
    """
    lattice = np.array(lattice, dtype=np.float64)
    if lattice.shape != (3, 3):
        raise ValueError(f"lattice must have shape (3, 3), got {lattice.shape}")
    if not np.all(np.isfinite(lattice)):
        raise ValueError("lattice contains non-finite values")
    return np.ascontiguousarray(lattice)


def as_fractional(frac, name="frac"):
    """Convert a single fractional coordinate to a float64 array of shape (3,)."""
    frac = np.asarray(frac, dtype=np.float64)
    if frac.shape != (3,):
        raise ValueError(f"{name} must have shape (3,), got {frac.shape}")
    return frac


def fractional_to_cartesian(frac, lattice):
    """Convert fractional coordinates to Cartesian positions.

    Args:
        frac: Fractional coordinate(s), shape (3,) or (N, 3)
        lattice: Lattice vectors as rows, shape (3, 3)

    Returns:
        Cartesian position(s), same shape as frac
    """
    return np.asarray(frac) @ np.asarray(lattice)


def cartesian_to_fractional(cart, lattice):
    """Convert Cartesian positions to fractional coordinates of lattice.

    Args:
        cart: Cartesian position(s), shape (3,) or (N, 3)
        lattice: Lattice vectors as rows, shape (3, 3)

    Returns:
        Fractional coordinate(s), same shape as cart
    """
    return np.linalg.solve(np.asarray(lattice).T, np.asarray(cart).T).T


def wrap_fractional(frac):
    """Wrap fractional coordinates into [0, 1)."""
    frac = np.asarray(frac, dtype=np.float64)
    wrapped = frac - np.floor(frac)
    # frac - floor(frac) can round up to exactly 1.0 for tiny negative inputs
    return np.where(wrapped >= 1.0, 0.0, wrapped)


def integer_inverse(mapping):
    """Inverse of a unimodular integer matrix, rounded to exact integers.

    Args:
        mapping: Integer-valued matrix with determinant +/-1, shape (3, 3)

    Returns:
        Integer-valued float64 inverse, shape (3, 3)
    """
    mapping = np.asarray(mapping, dtype=np.float64)
    det = np.linalg.det(mapping)
    if abs(abs(det) - 1.0) > 1e-6:
        raise ValueError(f"mapping is not unimodular: det = {det}")
    return np.rint(np.linalg.inv(mapping))


def cell_volume(lattice):
    """Absolute volume of the cell spanned by the lattice rows."""
    return float(abs(np.linalg.det(np.asarray(lattice, dtype=np.float64))))


def reciprocal_lattice(lattice):
    """Reciprocal lattice vectors as rows, with a_i . b_j = 2*pi*delta_ij.

    Args:
        lattice: Lattice vectors as rows, shape (3, 3)

    Returns:
        Reciprocal vectors as rows, shape (3, 3)

    Raises:
        ValueError: If the lattice is not a finite (3, 3) array
    """
    return 2.0 * np.pi * np.linalg.inv(as_lattice(lattice)).T


def image_offsets_cartesian(lattice):
    """Cartesian translations of the 27 neighboring image offsets, shape (27, 3)."""
    return IMAGE_OFFSETS @ np.asarray(lattice, dtype=np.float64)
