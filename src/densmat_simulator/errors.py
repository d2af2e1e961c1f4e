"""
Exception types raised by the density-matrix engine.

All of them derive from ``ValueError`` so callers that already guard
simulator calls with ``except ValueError`` keep working.
"""


class DensityMatrixError(ValueError):
    """Base class for engine failures."""


class InvalidInstructionError(DensityMatrixError):
    """Op type is not in the set of instructions the state understands."""


class InvalidGateError(DensityMatrixError):
    """Gate name is not in the gate table (or not valid on the chosen path)."""


class QubitCountMismatchError(DensityMatrixError):
    """Initial state does not match the requested register size."""


class IncompleteSaveError(DensityMatrixError):
    """A full-state save was requested on a strict subset of the qubits."""
