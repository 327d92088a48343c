import numpy as np

from lllcell.lll import lll_reduce
from lllcell.distance import minimum_image_displacement
from lllcell.structure import Structure


# ----------------------------
# LLL reduction of a skewed lattice
# ----------------------------
def reduce_demo():
    lattice = np.array([
        [2.0, 0.0, 0.0],
        [0.1, 1.8, 0.0],
        [0.1, 0.2, 0.9],
    ])
    res = lll_reduce(lattice, delta=0.75)
    print("Reduced lattice (rows):")
    print(res.reduced)
    print("Mapping (reduced = mapping @ lattice):")
    print(res.mapping)
    print(f"steps={res.steps} swaps={res.swaps} det(mapping)={np.linalg.det(res.mapping):+.1f}")
    return res


# ----------------------------
# Minimum-image distance in the reduced frame
# ----------------------------
def distance_demo(res):
    f1 = np.array([0.5, 0.5, 0.5])
    f2 = np.array([0.25, 0.15, 0.85])
    vec, dist, offset = minimum_image_displacement(f1, f2, res.reduced, res.inverse_mapping)
    print("Displacement:", vec)
    print("Distance:", dist, "image offset:", offset)


# ----------------------------
# Structure on the identity lattice
# ----------------------------
def structure_demo():
    structure = Structure(
        lattice=np.identity(3),
        frac_coords=[[0.5, 0.5, 0.5], [1.5, 0.5, 0.5]],
        species=[1, 0],
    )
    vec, dist = structure.get_distances([0.0, 0.0, 0.0], [0.9, 0.9, 0.9])
    print("Structure displacement:", vec)
    print("Structure distance:", dist)


if __name__ == "__main__":
    print("LLL reduction:")
    res = reduce_demo()

    print("\nMinimum-image distance:")
    distance_demo(res)

    print("\nStructure.get_distances:")
    structure_demo()
