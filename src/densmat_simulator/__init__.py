# Density-Matrix Simulator: Noisy Quantum Circuit Simulation on Density Matrices
#
# Evolves the full density matrix of an N-qubit register under gates, noise
# channels, measurements and resets, and extracts probabilities, reduced
# states and Pauli expectation values.
#
# Architecture:
#   Framework (framework/): instruction model, classical register, random
#       source, result sink
#   Backends (backends/): vectorized density-matrix storage and kernels
#   Engine (engine/): gate table, chunk routing, partial trace, noise,
#       the per-op state machine
#   Driver (simulator.py): shot loop, measurement sampling, chunked execution

__version__ = "0.1.0"

from .configurations import SimulatorConfig, get_default_config, get_parallel_config
from .errors import (
    DensityMatrixError,
    InvalidInstructionError,
    InvalidGateError,
    QubitCountMismatchError,
    IncompleteSaveError,
)
from .backends import DensityMatrix, DensityMatrixStorage
from .engine import DensityMatrixState
from .simulator import DensityMatrixSimulator, ChunkedDensityMatrix

__all__ = [
    "__version__",
    "SimulatorConfig",
    "get_default_config",
    "get_parallel_config",
    "DensityMatrixError",
    "InvalidInstructionError",
    "InvalidGateError",
    "QubitCountMismatchError",
    "IncompleteSaveError",
    "DensityMatrix",
    "DensityMatrixStorage",
    "DensityMatrixState",
    "DensityMatrixSimulator",
    "ChunkedDensityMatrix",
]
