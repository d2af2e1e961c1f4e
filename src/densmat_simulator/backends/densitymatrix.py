"""
Vectorized Density Matrix Store
===============================

A density matrix over N qubits held as a statevector over 2N superoperator
qubits (column-major flattening: ``vec[row + col * 2^N] = rho[row, col]``).

THE SUPEROPERATOR PICTURE
-------------------------

With column stacking,

    vec(U rho U†) = (conj(U) ⊗ U) vec(rho)

so a gate on qubits ``q`` becomes a vector update on the superoperator
qubits ``q + [x + N for x in q]``: the row qubits see ``U`` and the column
qubits see ``conj(U)``. The structural gates (X, CNOT, SWAP, Toffoli) are
real permutations, so they are simply applied on both halves. Phases are
conjugated on the column half.

Noise channels enter the same way: a Kraus set ``{K_i}`` becomes the
superoperator ``Σ conj(K_i) ⊗ K_i`` applied once on the superoperator
qubits.
"""

from typing import List, Sequence

import numpy as np

from .base import DensityMatrixStorage
from .qubitvector import QubitVector
from ..utils.math_utils import devectorize_matrix, parity, pauli_masks, subindex, vectorize_matrix


# Reset channel of one qubit in the superoperator basis (rho00, rho10, rho01, rho11):
# rho00 <- rho00 + rho11, everything else vanishes.
RESET_SUPEROP = np.array([
    [1, 0, 0, 1],
    [0, 0, 0, 0],
    [0, 0, 0, 0],
    [0, 0, 0, 0],
], dtype=complex)

Y_MATRIX = np.array([[0, -1j], [1j, 0]], dtype=complex)


class DensityMatrix(QubitVector, DensityMatrixStorage):
    """
    Numpy-backed density-matrix store.

    Parameters
    ----------
    num_qubits : int
        Number of density-matrix qubits N (the buffer has 4^N entries)

    Example
    -------
    >>> rho = DensityMatrix(1)
    >>> rho.initialize()
    >>> rho.apply_unitary_matrix([0], np.array([[0, 1], [1, 0]]))
    >>> rho.probabilities([0])
    array([0., 1.])
    """

    def __init__(self, num_qubits: int = 0):
        super().__init__(2 * num_qubits)

    # =========================================================================
    # GEOMETRY
    # =========================================================================

    @property
    def num_qubits(self) -> int:
        return self._num_qubits // 2

    @property
    def rows(self) -> int:
        return 1 << self.num_qubits

    def set_num_qubits(self, num_qubits: int):
        self._allocate(2 * num_qubits)

    def superop_qubits(self, qubits: Sequence[int]) -> List[int]:
        """Row qubits followed by their column partners."""
        n = self.num_qubits
        return list(qubits) + [q + n for q in qubits]

    def _check_dm_qubits(self, qubits: Sequence[int]):
        n = self.num_qubits
        if len(set(qubits)) != len(qubits):
            raise ValueError(f"Duplicate qubits in {list(qubits)}")
        for q in qubits:
            if q < 0 or q >= n:
                raise ValueError(f"Qubit {q} out of range for a {n}-qubit density matrix")

    # =========================================================================
    # INITIALIZATION AND EXTRACTION
    # =========================================================================

    def initialize(self):
        """Set the state to |0...0><0...0|."""
        self.zero()
        self.data[0] = 1.0

    def initialize_from_vector(self, vec: Sequence[complex]):
        """
        Initialize from a pure state ``psi`` (length 2^N) as ``|psi><psi|``,
        or from an already vectorized density matrix (length 4^N).
        """
        vec = np.asarray(vec, dtype=complex).ravel()
        if vec.size == self.rows:
            self._data = np.kron(np.conj(vec), vec)
        elif vec.size == self.size:
            self._data = vec.copy()
        else:
            raise ValueError(
                f"Initial vector of length {vec.size} does not match a "
                f"{self.num_qubits}-qubit register"
            )

    def initialize_from_matrix(self, mat: np.ndarray):
        mat = np.asarray(mat, dtype=complex)
        if mat.shape != (self.rows, self.rows):
            raise ValueError(
                f"Initial density matrix of shape {mat.shape} does not match a "
                f"{self.num_qubits}-qubit register"
            )
        self._data = vectorize_matrix(mat).copy()

    def copy_to_matrix(self) -> np.ndarray:
        return devectorize_matrix(self.data.copy())

    def move_to_matrix(self) -> np.ndarray:
        """Hand the buffer over as a matrix; the store is empty afterwards."""
        mat = devectorize_matrix(self.data)
        self._data = None
        return mat

    def diagonal(self) -> np.ndarray:
        return self.data[::self.rows + 1].real.copy()

    # =========================================================================
    # READOUT
    # =========================================================================

    def trace(self) -> complex:
        return complex(np.sum(self.data[::self.rows + 1]))

    def probability(self, index: int) -> float:
        return float(self.data[index * (self.rows + 1)].real)

    def probabilities(self, qubits: Sequence[int]) -> np.ndarray:
        qubits = list(qubits)
        self._check_dm_qubits(qubits)
        sub = subindex(np.arange(self.rows, dtype=np.int64), qubits)
        return np.bincount(sub, weights=self.diagonal(), minlength=1 << len(qubits))

    def sample_measure(self, rnds: Sequence[float]) -> np.ndarray:
        """Resolve uniform variates against the diagonal distribution."""
        return self._sample_from(self.diagonal(), rnds)

    def expval_pauli(self, qubits: Sequence[int], pauli: str) -> float:
        """
        Re Tr(P rho) for a Pauli string on ``qubits``.

        P maps |r> to i^{#Y} (-1)^{|r ∧ z|} |r ⊕ x>, so the trace picks the
        entries rho[r, r ⊕ x].
        """
        qubits = list(qubits)
        self._check_dm_qubits(qubits)
        x_mask, z_mask, num_y = pauli_masks(qubits, pauli)
        rows = np.arange(self.rows, dtype=np.int64)
        vals = self.data[rows + (rows ^ x_mask) * self.rows]
        if z_mask:
            vals = vals * (1 - 2 * parity(rows, z_mask))
        return float(((1j ** num_y) * np.sum(vals)).real)

    # =========================================================================
    # TWO-SIDED UPDATES
    # =========================================================================

    def apply_unitary_matrix(self, qubits: Sequence[int], mat: np.ndarray):
        mat = np.asarray(mat, dtype=complex)
        if mat.ndim == 1 or mat.shape[0] == 1:
            self.apply_diagonal_unitary_matrix(qubits, mat.ravel())
            return
        self._check_dm_qubits(qubits)
        self.apply_matrix(self.superop_qubits(qubits), np.kron(np.conj(mat), mat))

    def apply_diagonal_unitary_matrix(self, qubits: Sequence[int], diag: Sequence[complex]):
        self._check_dm_qubits(qubits)
        diag = np.asarray(diag, dtype=complex).ravel()
        self.apply_diagonal_matrix(self.superop_qubits(qubits), np.kron(np.conj(diag), diag))

    def apply_superop_matrix(self, qubits: Sequence[int], mat: np.ndarray):
        self._check_dm_qubits(qubits)
        self.apply_matrix(self.superop_qubits(qubits), mat)

    def apply_x(self, qubit: int):
        self.apply_mcx([qubit])
        self.apply_mcx([qubit + self.num_qubits])

    def apply_y(self, qubit: int):
        self.apply_mcy([qubit])
        # conj(Y) = -Y on the column side
        self.apply_mcu([qubit + self.num_qubits], np.conj(Y_MATRIX))

    def apply_cnot(self, control: int, target: int):
        n = self.num_qubits
        self.apply_mcx([control, target])
        self.apply_mcx([control + n, target + n])

    def apply_cy(self, control: int, target: int):
        n = self.num_qubits
        self.apply_mcy([control, target])
        self.apply_mcu([control + n, target + n], np.conj(Y_MATRIX))

    def apply_cphase(self, q0: int, q1: int, phase: complex):
        n = self.num_qubits
        self.apply_mcphase([q0, q1], phase)
        self.apply_mcphase([q0 + n, q1 + n], np.conj(phase))

    def apply_swap(self, q0: int, q1: int):
        n = self.num_qubits
        self.apply_mcswap([q0, q1])
        self.apply_mcswap([q0 + n, q1 + n])

    def apply_toffoli(self, q0: int, q1: int, q2: int):
        n = self.num_qubits
        self.apply_mcx([q0, q1, q2])
        self.apply_mcx([q0 + n, q1 + n, q2 + n])

    def apply_reset(self, qubits: Sequence[int]):
        """Deterministic reset of each qubit to |0> (no sampling)."""
        self._check_dm_qubits(qubits)
        for q in qubits:
            self.apply_superop_matrix([q], RESET_SUPEROP)
