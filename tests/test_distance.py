"""Tests for the Python reference minimum-image search."""

import numpy as np
import pytest
from lllcell.lll import lll_reduce
from lllcell.distance import (
    to_reduced_fractional,
    minimum_image_displacement,
    periodic_distance,
    distance_matrix,
    neighbor_pairs,
    neighbor_list_csr,
)
from lllcell.utils import (
    IMAGE_OFFSETS,
    wrap_fractional,
    fractional_to_cartesian,
    reciprocal_lattice,
    image_offsets_cartesian,
    cell_volume,
)


IDENTITY = np.identity(3)


def brute_force_displacement(f1, f2, reduced, inverse_mapping, n_max=2):
    """Shortest displacement by exhaustive search over a wide image range."""
    c = (np.asarray(f2) - np.asarray(f1)) @ inverse_mapping
    center = -np.rint(c)
    best = None
    rng = range(-n_max, n_max + 1)
    for nx in rng:
        for ny in rng:
            for nz in rng:
                v = (c + center + np.array([nx, ny, nz])) @ reduced
                if best is None or v @ v < best @ best:
                    best = v
    return best, float(np.sqrt(best @ best))


def test_identity_lattice_corner_points():
    """(0,0,0) and (0.9,0.9,0.9) are 0.1*sqrt(3) apart through the corner image."""
    vec, dist, offset = minimum_image_displacement(
        [0.0, 0.0, 0.0], [0.9, 0.9, 0.9], IDENTITY, IDENTITY
    )

    np.testing.assert_allclose(dist, np.sqrt(3) * 0.1, atol=1e-12)
    np.testing.assert_allclose(vec, [-0.1, -0.1, -0.1], atol=1e-12)
    np.testing.assert_array_equal(offset, [-1, -1, -1])


def test_skewed_lattice_needs_reduction():
    """The nearest image lies two repeats away along the first unreduced vector.

    A 27-image search over the unreduced basis misses it; the same search over
    the reduced basis finds it.
    """
    lattice = np.array([
        [1.0, 0.0, 0.0],
        [4.0, 1.0, 0.0],
        [0.0, 0.0, 1.0],
    ])
    f1 = np.zeros(3)
    f2 = np.array([0.0, 0.45, 0.0])

    res = lll_reduce(lattice)
    np.testing.assert_allclose(res.reduced, IDENTITY, atol=1e-12)
    np.testing.assert_array_equal(res.mapping, [[1, 0, 0], [-4, 1, 0], [0, 0, 1]])

    vec, dist, offset = minimum_image_displacement(f1, f2, res.reduced, res.inverse_mapping)
    np.testing.assert_allclose(vec, [-0.2, 0.45, 0.0], atol=1e-12)
    np.testing.assert_allclose(dist, np.sqrt(0.2 ** 2 + 0.45 ** 2), atol=1e-12)
    np.testing.assert_array_equal(offset, [-1, 0, 0])

    _, unreduced_dist, _ = minimum_image_displacement(f1, f2, lattice, IDENTITY)
    np.testing.assert_allclose(unreduced_dist, np.sqrt(0.8 ** 2 + 0.45 ** 2), atol=1e-12)
    assert unreduced_dist > dist


def test_zero_distance_for_coincident_points():
    rng = np.random.default_rng(3)
    lattice = np.array([[2.0, 0.0, 0.0], [0.1, 1.8, 0.0], [0.1, 0.2, 0.9]])
    res = lll_reduce(lattice)
    for _ in range(10):
        f = rng.uniform(-3, 3, size=3)
        vec, dist = periodic_distance(f, f, res.reduced, res.inverse_mapping)
        assert dist < 1e-12
        np.testing.assert_allclose(vec, 0.0, atol=1e-12)


def test_periodic_translations_give_zero_distance():
    """Points differing by whole lattice repeats coincide."""
    res = lll_reduce(np.array([[2.0, 0.0, 0.0], [0.1, 1.8, 0.0], [0.1, 0.2, 0.9]]))
    _, dist = periodic_distance([0.3, 0.2, 0.1], [2.3, -4.8, 1.1], res.reduced, res.inverse_mapping)
    assert dist < 1e-10


def test_symmetry(skewed_lattices):
    rng = np.random.default_rng(5)
    for lattice in skewed_lattices:
        res = lll_reduce(lattice)
        f1, f2 = rng.random(3), rng.random(3)

        v12, d12 = periodic_distance(f1, f2, res.reduced, res.inverse_mapping)
        v21, d21 = periodic_distance(f2, f1, res.reduced, res.inverse_mapping)

        np.testing.assert_allclose(d12, d21, rtol=1e-12, atol=1e-12)
        np.testing.assert_allclose(v12, -v21, atol=1e-10)


def test_matches_brute_force(skewed_lattices):
    """27-image search on the reduced basis equals an exhaustive search."""
    rng = np.random.default_rng(8)
    for lattice in skewed_lattices:
        res = lll_reduce(lattice)
        for _ in range(10):
            f1 = rng.uniform(-2, 2, size=3)
            f2 = rng.uniform(-2, 2, size=3)

            vec, dist = periodic_distance(f1, f2, res.reduced, res.inverse_mapping)
            ref_vec, ref_dist = brute_force_displacement(f1, f2, res.reduced, res.inverse_mapping)

            np.testing.assert_allclose(dist, ref_dist, rtol=1e-10, atol=1e-10)
            np.testing.assert_allclose(vec, ref_vec, atol=1e-9)


def test_displacement_is_a_lattice_translate(skewed_lattices):
    """vector - (cart2 - cart1) is a lattice vector of the original lattice."""
    rng = np.random.default_rng(9)
    for lattice in skewed_lattices[:5]:
        res = lll_reduce(lattice)
        f1, f2 = rng.random(3), rng.random(3)
        vec, _ = periodic_distance(f1, f2, res.reduced, res.inverse_mapping)

        shift = vec - (fractional_to_cartesian(f2, lattice) - fractional_to_cartesian(f1, lattice))
        n = np.linalg.solve(lattice.T, shift)
        np.testing.assert_allclose(n, np.rint(n), atol=1e-8)


def test_wrapping_does_not_change_distance(skewed_lattices):
    rng = np.random.default_rng(10)
    for lattice in skewed_lattices[:5]:
        res = lll_reduce(lattice)
        f1, f2 = rng.random(3), rng.random(3)
        _, wrapped = periodic_distance(f1, f2, res.reduced, res.inverse_mapping, wrap=True)
        _, unwrapped = periodic_distance(f1, f2, res.reduced, res.inverse_mapping, wrap=False)
        assert wrapped <= unwrapped + 1e-12


def test_ties_go_to_first_offset():
    """Points half a repeat apart tie between two images; the first in order wins."""
    _, dist, offset = minimum_image_displacement(
        [0.0, 0.0, 0.0], [0.5, 0.0, 0.0], IDENTITY, IDENTITY
    )
    assert dist == pytest.approx(0.5)
    np.testing.assert_array_equal(offset, [-1, 0, 0])


def test_image_offsets_order():
    assert IMAGE_OFFSETS.shape == (27, 3)
    np.testing.assert_array_equal(IMAGE_OFFSETS[0], [-1, -1, -1])
    np.testing.assert_array_equal(IMAGE_OFFSETS[13], [0, 0, 0])
    np.testing.assert_array_equal(IMAGE_OFFSETS[-1], [1, 1, 1])


def test_to_reduced_fractional_wraps():
    inverse = np.array([[1.0, 0.0, 0.0], [4.0, 1.0, 0.0], [0.0, 0.0, 1.0]])
    np.testing.assert_allclose(
        to_reduced_fractional([0.0, 0.45, -0.25], inverse), [0.8, 0.45, 0.75], atol=1e-12
    )
    np.testing.assert_allclose(
        to_reduced_fractional([0.0, 0.45, -0.25], inverse, wrap=False), [1.8, 0.45, -0.25]
    )


def test_wrap_fractional_range():
    out = wrap_fractional([-1e-18, 1.0, 2.5, -0.25])
    assert np.all(out >= 0.0) and np.all(out < 1.0)
    np.testing.assert_allclose(out, [0.0, 0.0, 0.5, 0.75])


def test_reciprocal_lattice_duality(skewed_lattices):
    for lattice in skewed_lattices[:5]:
        recip = reciprocal_lattice(lattice)
        np.testing.assert_allclose(lattice @ recip.T, 2 * np.pi * IDENTITY, atol=1e-9)
        np.testing.assert_allclose(
            cell_volume(recip), (2 * np.pi) ** 3 / cell_volume(lattice), rtol=1e-9
        )

    np.testing.assert_allclose(
        reciprocal_lattice(np.diag([2.0, 4.0, 0.5])), np.diag([np.pi, np.pi / 2, 4 * np.pi])
    )
    with pytest.raises(ValueError):
        reciprocal_lattice(np.identity(2))


def test_image_offsets_cartesian():
    lattice = np.array([[2.0, 0.0, 0.0], [0.1, 1.8, 0.0], [0.1, 0.2, 0.9]])
    images = image_offsets_cartesian(lattice)

    assert images.shape == (27, 3)
    np.testing.assert_allclose(images[13], 0.0)
    np.testing.assert_allclose(images[0], -lattice.sum(axis=0))
    np.testing.assert_allclose(images[17], lattice[1] + lattice[2])


def test_bad_point_shape():
    with pytest.raises(ValueError):
        periodic_distance([0.0, 0.0], [0.1, 0.1, 0.1], IDENTITY, IDENTITY)


def test_distance_matrix_and_neighbor_pairs():
    rng = np.random.default_rng(12)
    lattice = np.array([[2.0, 0.0, 0.0], [0.1, 1.8, 0.0], [0.1, 0.2, 0.9]])
    res = lll_reduce(lattice)
    frac = rng.random((8, 3))

    D = distance_matrix(frac, res.reduced, res.inverse_mapping)
    assert D.shape == (8, 8)
    np.testing.assert_allclose(D, D.T)
    np.testing.assert_array_equal(np.diag(D), 0.0)
    for i in range(8):
        for j in range(8):
            _, d = periodic_distance(frac[i], frac[j], res.reduced, res.inverse_mapping)
            np.testing.assert_allclose(D[i, j], d, atol=1e-12)

    cutoff = 0.6
    pairs = neighbor_pairs(frac, res.reduced, res.inverse_mapping, cutoff)
    expected = {(i, j) for i in range(8) for j in range(i + 1, 8) if D[i, j] < cutoff}
    assert pairs == expected

    nl, starts = neighbor_list_csr(frac, res.reduced, res.inverse_mapping, cutoff)
    assert starts.shape == (9,)
    assert starts[-1] == len(nl) == len(pairs)
    rebuilt = {(i, int(j)) for i in range(8) for j in nl[starts[i]:starts[i + 1]]}
    assert rebuilt == pairs
