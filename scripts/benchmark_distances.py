#!/usr/bin/env python3
"""Benchmark script comparing Python reference and Numba minimum-image kernels.

Times the all-pairs distance matrix and the neighbor list build on random
structures in a skewed cell, for the Python reference and the Numba kernels.
"""

import argparse
import csv
import time
from pathlib import Path
import numpy as np

import sys
sys.path.insert(0, str(Path(__file__).parent.parent))

from lllcell.structure import Structure
from lllcell.distance import distance_matrix
from lllcell.neighborlist import NeighborListConfig, NeighborList
from lllcell.backend import NUMBA_AVAILABLE


SKEWED_LATTICE = np.array([
    [4.0, 0.0, 0.0],
    [7.5, 3.6, 0.0],
    [2.1, 5.3, 3.9],
])


def make_structure(N, seed):
    """Generate a random structure in the skewed benchmark cell.

    Args:
        N: Number of sites
        seed: Random seed

    Returns:
        Structure with N sites of species 0
    """
    rng = np.random.default_rng(seed)
    return Structure(SKEWED_LATTICE, rng.random((N, 3)), np.zeros(N, dtype=int))


def warmup():
    """Warm up JIT kernels before timing."""
    try:
        s = make_structure(8, seed=999)
        s.distance_matrix()
        s.neighbor_list(2.0)
        s.get_distances(s.frac_coords[0], s.frac_coords[1])
    except ImportError:
        pass


def benchmark_python(N, seed):
    """Time the Python reference distance matrix."""
    s = make_structure(N, seed)
    t_start = time.perf_counter()
    distance_matrix(s.frac_coords, s.reduced_lattice, s.inverse_mapping)
    return time.perf_counter() - t_start


def benchmark_numba(N, seed, cutoff, nl_config):
    """Time the Numba distance matrix and neighbor list build.

    The neighbor list is built with cutoff - skin as rc, so its search radius
    equals cutoff.

    Returns:
        Tuple (seconds_matrix, seconds_neighborlist)
    """
    s = make_structure(N, seed)
    s.reduction  # reduce outside the timed region
    t0 = time.perf_counter()
    s.distance_matrix()
    t1 = time.perf_counter()
    NeighborList(s, cutoff - nl_config.skin, config=nl_config)
    t2 = time.perf_counter()
    return t1 - t0, t2 - t1


def main():
    parser = argparse.ArgumentParser(
        description="Benchmark minimum-image distance kernels"
    )
    parser.add_argument(
        "--sizes", type=int, nargs="+",
        default=[64, 128, 256, 512],
        help="Structure sizes to benchmark (default: 64 128 256 512)"
    )
    parser.add_argument(
        "--repeats", type=int, default=3,
        help="Number of repeats per configuration (default: 3)"
    )
    parser.add_argument(
        "--cutoff", type=float, default=3.0,
        help="Neighbor list cutoff (default: 3.0)"
    )
    parser.add_argument(
        "--skin", type=float, default=0.3,
        help="Neighbor list skin, included in the cutoff (default: 0.3)"
    )
    parser.add_argument(
        "--skip-python", action="store_true",
        help="Skip the Python reference timings"
    )
    parser.add_argument(
        "--csv", type=str, default=None,
        help="Output CSV file path (optional)"
    )

    args = parser.parse_args()
    nl_config = NeighborListConfig(skin=args.skin)
    if args.cutoff <= nl_config.skin:
        parser.error("--cutoff must be larger than --skin")

    if not NUMBA_AVAILABLE:
        print("WARNING: Numba not available. Numba timings will be skipped.")
        print("Install numba: pip install numba")

    print("=" * 70)
    print("Minimum-Image Distance Benchmark")
    print("=" * 70)
    print(f"Sizes: {args.sizes}")
    print(f"Repeats: {args.repeats}")
    print(f"Cutoff: {args.cutoff} (skin {nl_config.skin})")
    print("=" * 70)
    print()

    if NUMBA_AVAILABLE:
        print("Warming up JIT kernels...")
        warmup()
        print("Warmup complete.\n")

    csv_rows = []
    print(f"{'N':>8} {'python s':>12} {'numba s':>12} {'nl s':>12}")
    print("-" * 70)
    for N in args.sizes:
        for repeat in range(args.repeats):
            seed = 1000 + N * 10 + repeat
            t_py = float("nan") if args.skip_python else benchmark_python(N, seed)
            t_nb, t_nl = (benchmark_numba(N, seed, args.cutoff, nl_config)
                          if NUMBA_AVAILABLE else (float("nan"), float("nan")))
            print(f"{N:>8} {t_py:>12.5f} {t_nb:>12.5f} {t_nl:>12.5f}")
            csv_rows.append({
                "N": N,
                "repeat": repeat + 1,
                "python_seconds": t_py,
                "numba_seconds": t_nb,
                "neighborlist_seconds": t_nl,
            })

    if args.csv:
        with open(args.csv, "w", newline="") as fh:
            writer = csv.DictWriter(fh, fieldnames=list(csv_rows[0].keys()))
            writer.writeheader()
            writer.writerows(csv_rows)
        print(f"\nWrote {len(csv_rows)} rows to {args.csv}")


if __name__ == "__main__":
    main()
