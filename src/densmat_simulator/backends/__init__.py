# Backing Stores
#
# Storage for the vectorized density matrix and the kernels that update it.
#
# Modules:
#   - base: DensityMatrixStorage (abstract contract used by the engine)
#   - qubitvector: QubitVector (statevector-shaped buffer, one-sided kernels)
#   - densitymatrix: DensityMatrix (numpy store over 2N superoperator qubits)

from .base import DensityMatrixStorage
from .qubitvector import QubitVector
from .densitymatrix import DensityMatrix

__all__ = [
    "DensityMatrixStorage",
    "QubitVector",
    "DensityMatrix",
]
