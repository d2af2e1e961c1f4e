# Backing Store Base Class
#
# Abstract interface the density-matrix engine depends on. Concrete storage
# (numpy on one host today) is chosen when the state is constructed, never
# by branching inside the hot loops.
#
# Capability flags:
#   - support_global_indexing(): True if the store resolves global (chunk)
#     qubits itself. The numpy store does not, so the engine routes gates
#     touching global qubits through the chunk logic.

from abc import ABC, abstractmethod
from typing import Sequence

import numpy as np


class DensityMatrixStorage(ABC):
    """Contract of a vectorized density-matrix store (one chunk or the whole state)."""

    # -- identity / geometry --------------------------------------------------

    @property
    @abstractmethod
    def num_qubits(self) -> int:
        """Number of density-matrix qubits held locally."""

    @abstractmethod
    def set_num_qubits(self, num_qubits: int):
        ...

    @abstractmethod
    def chunk_index(self) -> int:
        ...

    @abstractmethod
    def set_chunk_index(self, index: int):
        ...

    @abstractmethod
    def support_global_indexing(self) -> bool:
        ...

    @abstractmethod
    def superop_qubits(self, qubits: Sequence[int]) -> list:
        ...

    # -- configuration --------------------------------------------------------

    @abstractmethod
    def set_omp_threshold(self, threshold: int):
        ...

    @abstractmethod
    def set_omp_threads(self, threads: int):
        ...

    @abstractmethod
    def set_json_chop_threshold(self, threshold: float):
        ...

    @abstractmethod
    def required_memory_mb(self, num_qubits: int) -> int:
        """Memory for a vector over ``num_qubits`` superoperator qubits."""

    # -- initialization / extraction -----------------------------------------

    @abstractmethod
    def initialize(self):
        ...

    @abstractmethod
    def initialize_from_vector(self, vec: Sequence[complex]):
        ...

    @abstractmethod
    def initialize_from_matrix(self, mat: np.ndarray):
        ...

    @abstractmethod
    def vector(self) -> np.ndarray:
        """Copy of the vectorized amplitude buffer."""

    @abstractmethod
    def copy_to_matrix(self) -> np.ndarray:
        ...

    @abstractmethod
    def move_to_matrix(self) -> np.ndarray:
        ...

    @abstractmethod
    def clear(self):
        """Release the buffer."""

    # -- readout --------------------------------------------------------------

    @abstractmethod
    def trace(self) -> complex:
        ...

    @abstractmethod
    def probability(self, index: int) -> float:
        ...

    @abstractmethod
    def probabilities(self, qubits: Sequence[int]) -> np.ndarray:
        ...

    @abstractmethod
    def sample_measure(self, rnds: Sequence[float]) -> np.ndarray:
        ...

    @abstractmethod
    def expval_pauli(self, qubits: Sequence[int], pauli: str) -> float:
        ...

    # -- two-sided (density matrix) updates ----------------------------------

    @abstractmethod
    def apply_unitary_matrix(self, qubits: Sequence[int], mat: np.ndarray):
        ...

    @abstractmethod
    def apply_diagonal_unitary_matrix(self, qubits: Sequence[int], diag: Sequence[complex]):
        ...

    @abstractmethod
    def apply_superop_matrix(self, qubits: Sequence[int], mat: np.ndarray):
        ...

    @abstractmethod
    def apply_x(self, qubit: int):
        ...

    @abstractmethod
    def apply_y(self, qubit: int):
        ...

    @abstractmethod
    def apply_cnot(self, control: int, target: int):
        ...

    @abstractmethod
    def apply_cy(self, control: int, target: int):
        ...

    @abstractmethod
    def apply_cphase(self, q0: int, q1: int, phase: complex):
        ...

    @abstractmethod
    def apply_swap(self, q0: int, q1: int):
        ...

    @abstractmethod
    def apply_toffoli(self, q0: int, q1: int, q2: int):
        ...

    @abstractmethod
    def apply_reset(self, qubits: Sequence[int]):
        ...

    # -- one-sided (vector) updates over superoperator qubits -----------------

    @abstractmethod
    def apply_diagonal_matrix(self, qubits: Sequence[int], diag: Sequence[complex]):
        ...

    @abstractmethod
    def apply_matrix(self, qubits: Sequence[int], mat: np.ndarray):
        ...

    @abstractmethod
    def apply_mcx(self, qubits: Sequence[int]):
        ...

    @abstractmethod
    def apply_mcy(self, qubits: Sequence[int]):
        ...

    @abstractmethod
    def apply_mcphase(self, qubits: Sequence[int], phase: complex):
        ...

    @abstractmethod
    def apply_mcu(self, qubits: Sequence[int], mat: np.ndarray):
        ...

    @abstractmethod
    def apply_pauli(self, qubits: Sequence[int], pauli: str, coeff: complex = 1.0):
        ...
