"""Exceptions raised by lattice reduction and periodic distance code."""


class LatticeError(ValueError):
    """Base class for invalid lattice input."""


class DegenerateLatticeError(LatticeError):
    """Lattice basis is singular or numerically indistinguishable from singular."""


class AlgorithmDivergenceError(RuntimeError):
    """LLL reduction exceeded its step budget without terminating."""
