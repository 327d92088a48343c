"""Pytest configuration and fixtures."""

import numpy as np
import pytest
from lllcell.backend import NUMBA_AVAILABLE


def pytest_addoption(parser):
    """Add command-line options for pytest."""
    parser.addoption(
        "--runslow",
        action="store_true",
        default=False,
        help="run slow tests"
    )


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')")


def pytest_collection_modifyitems(config, items):
    """Modify test collection based on command-line options."""
    if config.getoption("--runslow"):
        return

    skip_slow = pytest.mark.skip(reason="need --runslow option to run")
    for item in items:
        if "slow" in item.keywords:
            item.add_marker(skip_slow)


def random_unimodular(rng, n_ops=6, max_coeff=2):
    """Random integer matrix with determinant 1 built from elementary row operations."""
    M = np.identity(3)
    for _ in range(n_ops):
        i, j = rng.choice(3, size=2, replace=False)
        k = rng.integers(-max_coeff, max_coeff + 1)
        M[i] += k * M[j]
    return M


def near_orthogonal_lattice(rng, scale=3.0, noise=0.2):
    """Random lattice close to a scaled orthonormal basis."""
    return scale * (np.identity(3) + noise * rng.normal(size=(3, 3)))


@pytest.fixture
def skewed_lattices():
    """Skewed row lattices: near-orthogonal cells hidden behind unimodular transforms."""
    rng = np.random.default_rng(2024)
    lattices = []
    for _ in range(20):
        base = near_orthogonal_lattice(rng)
        lattices.append(random_unimodular(rng) @ base)
    return lattices


@pytest.fixture(scope="session", autouse=True)
def warmup_numba_jit():
    """Warm up numba JIT compilation before running tests.

    Compiles the reduction and distance kernels once per session on a small
    deterministic configuration so JIT time does not land in individual tests.
    """
    if not NUMBA_AVAILABLE:
        return

    try:
        from lllcell.lll_numba import lll_reduce_kernel
        from lllcell.distance_numba import (
            minimum_image_numba,
            distance_matrix_numba,
            build_neighbor_list_numba,
            site_displacements_numba,
        )

        lattice = np.array([[2.0, 0.0, 0.0], [0.1, 1.8, 0.0], [0.1, 0.2, 0.9]])
        identity = np.identity(3)
        rng = np.random.default_rng(42)
        frac = rng.random((4, 3))

        _ = lll_reduce_kernel(lattice, 0.75, 100, 1e-12)
        _ = minimum_image_numba(frac[0], frac[1], lattice, identity, True)
        _ = distance_matrix_numba(frac, lattice, identity)
        _ = build_neighbor_list_numba(frac, lattice, identity, 1.0)
        _ = site_displacements_numba(frac, frac.copy(), lattice, identity)

    except (ImportError, AttributeError):
        pass
