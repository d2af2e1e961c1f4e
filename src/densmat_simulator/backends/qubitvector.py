"""
Qubit Vector Kernels
====================

A complex amplitude vector over ``n`` qubits with the primitive update
kernels the density-matrix store is built from.

Index convention: qubit ``q`` is bit ``q`` of the basis index. Inside
multi-qubit matrices, ``qubits[i]`` is bit ``i`` of the matrix index.

Dense updates use ``np.tensordot`` on the (2,)*n reshaped vector; permutation
and phase updates work on index arrays so they touch only the affected
amplitudes.
"""

from typing import Sequence

import numpy as np

from ..constants import LOG2_BYTES_PER_AMPLITUDE, LOG2_BYTES_PER_MB, PARALLEL_QUBIT_THRESHOLD
from ..framework.rng import clamp_cumulative_draw
from ..utils.math_utils import parity, pauli_masks, subindex


class QubitVector:
    """
    Statevector-shaped complex buffer with in-place gate kernels.

    Parameters
    ----------
    num_qubits : int
        Number of vector qubits (the buffer has 2**num_qubits entries)
    """

    def __init__(self, num_qubits: int = 0):
        self._num_qubits = 0
        self._data = np.zeros(1, dtype=complex)
        self._chunk_index = 0
        self._omp_threshold = PARALLEL_QUBIT_THRESHOLD
        self._omp_threads = 1
        self._json_chop_threshold = 0.0
        self._allocate(num_qubits)

    # =========================================================================
    # ALLOCATION AND ACCESS
    # =========================================================================

    def _allocate(self, num_vector_qubits: int):
        if num_vector_qubits < 0:
            raise ValueError(f"Number of qubits must be non-negative, got {num_vector_qubits}")
        self._num_qubits = num_vector_qubits
        self._data = np.zeros(1 << num_vector_qubits, dtype=complex)

    @property
    def num_vector_qubits(self) -> int:
        return self._num_qubits

    @property
    def size(self) -> int:
        return 1 << self._num_qubits

    @property
    def data(self) -> np.ndarray:
        """Live buffer (no copy)."""
        if self._data is None:
            raise ValueError("State buffer has been moved out and is no longer available")
        return self._data

    def vector(self) -> np.ndarray:
        return self.data.copy()

    def zero(self):
        self.data[:] = 0.0

    def clear(self):
        self._data = None

    def chunk_index(self) -> int:
        return self._chunk_index

    def set_chunk_index(self, index: int):
        self._chunk_index = int(index)

    def support_global_indexing(self) -> bool:
        return False

    def set_omp_threshold(self, threshold: int):
        self._omp_threshold = int(threshold)

    def set_omp_threads(self, threads: int):
        self._omp_threads = int(threads)

    def set_json_chop_threshold(self, threshold: float):
        self._json_chop_threshold = float(threshold)

    @property
    def omp_threshold(self) -> int:
        return self._omp_threshold

    @property
    def omp_threads(self) -> int:
        return self._omp_threads

    @staticmethod
    def required_memory_mb(num_qubits: int) -> int:
        """Megabytes for a complex128 vector over ``num_qubits`` qubits."""
        shift_mb = max(0, num_qubits + LOG2_BYTES_PER_AMPLITUDE - LOG2_BYTES_PER_MB)
        return 1 << shift_mb

    def _check_qubits(self, qubits: Sequence[int]):
        if len(set(qubits)) != len(qubits):
            raise ValueError(f"Duplicate qubits in {list(qubits)}")
        for q in qubits:
            if q < 0 or q >= self._num_qubits:
                raise ValueError(
                    f"Qubit {q} out of range for a vector of {self._num_qubits} qubits"
                )

    def _controlled_indices(self, controls: Sequence[int], zeros: Sequence[int] = ()) -> np.ndarray:
        """Basis indices with every control bit 1 and every ``zeros`` bit 0."""
        idx = np.arange(self.size, dtype=np.int64)
        ctrl_mask = 0
        for q in controls:
            ctrl_mask |= 1 << q
        zero_mask = 0
        for q in zeros:
            zero_mask |= 1 << q
        select = ((idx & ctrl_mask) == ctrl_mask) & ((idx & zero_mask) == 0)
        return idx[select]

    # =========================================================================
    # DENSE AND DIAGONAL UPDATES
    # =========================================================================

    def apply_matrix(self, qubits: Sequence[int], mat: np.ndarray):
        """Apply a 2^k x 2^k matrix to ``qubits`` (identity elsewhere)."""
        qubits = list(qubits)
        self._check_qubits(qubits)
        k = len(qubits)
        mat = np.asarray(mat, dtype=complex)
        if mat.shape != (1 << k, 1 << k):
            raise ValueError(f"Matrix of shape {mat.shape} does not act on {k} qubits")
        n = self._num_qubits
        tensor = self.data.reshape([2] * n)
        # numpy axis 0 is the most significant bit
        axes = [n - 1 - q for q in reversed(qubits)]
        mat_t = mat.reshape([2] * (2 * k))
        out = np.tensordot(mat_t, tensor, axes=(list(range(k, 2 * k)), axes))
        out = np.moveaxis(out, list(range(k)), axes)
        self._data = np.ascontiguousarray(out).reshape(-1)

    def apply_diagonal_matrix(self, qubits: Sequence[int], diag: Sequence[complex]):
        """Multiply each amplitude by ``diag[sub-index of qubits]``."""
        qubits = list(qubits)
        self._check_qubits(qubits)
        diag = np.asarray(diag, dtype=complex).ravel()
        if diag.size != 1 << len(qubits):
            raise ValueError(f"Diagonal of length {diag.size} does not act on {len(qubits)} qubits")
        sub = subindex(np.arange(self.size, dtype=np.int64), qubits)
        self.data[:] *= diag[sub]

    # =========================================================================
    # MULTI-CONTROLLED PRIMITIVES
    # =========================================================================
    # The last qubit is the target; all preceding qubits are controls.

    def apply_mcx(self, qubits: Sequence[int]):
        qubits = list(qubits)
        self._check_qubits(qubits)
        target = qubits[-1]
        i0 = self._controlled_indices(qubits[:-1], zeros=[target])
        i1 = i0 | (1 << target)
        data = self.data
        data[i0], data[i1] = data[i1].copy(), data[i0].copy()

    def apply_mcy(self, qubits: Sequence[int]):
        qubits = list(qubits)
        self._check_qubits(qubits)
        target = qubits[-1]
        i0 = self._controlled_indices(qubits[:-1], zeros=[target])
        i1 = i0 | (1 << target)
        data = self.data
        a0, a1 = data[i0].copy(), data[i1].copy()
        data[i0] = -1j * a1
        data[i1] = 1j * a0

    def apply_mcphase(self, qubits: Sequence[int], phase: complex):
        qubits = list(qubits)
        self._check_qubits(qubits)
        idx = self._controlled_indices(qubits)
        self.data[idx] *= phase

    def apply_mcswap(self, qubits: Sequence[int]):
        qubits = list(qubits)
        self._check_qubits(qubits)
        qa, qb = qubits[-2], qubits[-1]
        i_a = self._controlled_indices(list(qubits[:-2]) + [qa], zeros=[qb])
        i_b = (i_a ^ (1 << qa)) | (1 << qb)
        data = self.data
        data[i_a], data[i_b] = data[i_b].copy(), data[i_a].copy()

    def apply_mcu(self, qubits: Sequence[int], mat: np.ndarray):
        """Apply a single-qubit ``mat`` to the last qubit, controlled on the rest."""
        qubits = list(qubits)
        self._check_qubits(qubits)
        mat = np.asarray(mat, dtype=complex)
        if mat.shape != (2, 2):
            raise ValueError(f"Controlled update needs a 2x2 matrix, got {mat.shape}")
        target = qubits[-1]
        i0 = self._controlled_indices(qubits[:-1], zeros=[target])
        i1 = i0 | (1 << target)
        data = self.data
        a0, a1 = data[i0].copy(), data[i1].copy()
        data[i0] = mat[0, 0] * a0 + mat[0, 1] * a1
        data[i1] = mat[1, 0] * a0 + mat[1, 1] * a1

    def apply_pauli(self, qubits: Sequence[int], pauli: str, coeff: complex = 1.0):
        """
        Apply ``coeff`` times a Pauli string.

        Uses Y = iXZ: the string maps |b⟩ to i^{#Y} (-1)^{|b ∧ z|} |b ⊕ x⟩.
        """
        qubits = list(qubits)
        self._check_qubits(qubits)
        x_mask, z_mask, num_y = pauli_masks(qubits, pauli)
        phase = coeff * (1j ** num_y)
        idx = np.arange(self.size, dtype=np.int64)
        amps = self.data * phase
        if z_mask:
            amps = amps * (1 - 2 * parity(idx, z_mask))
        out = np.empty_like(amps)
        out[idx ^ x_mask] = amps
        self._data = out

    # =========================================================================
    # READOUT
    # =========================================================================

    def norm(self) -> float:
        return float(np.vdot(self.data, self.data).real)

    def probability(self, index: int) -> float:
        return float(abs(self.data[index]) ** 2)

    def probabilities(self, qubits: Sequence[int]) -> np.ndarray:
        qubits = list(qubits)
        self._check_qubits(qubits)
        probs = np.abs(self.data) ** 2
        sub = subindex(np.arange(self.size, dtype=np.int64), qubits)
        return np.bincount(sub, weights=probs, minlength=1 << len(qubits))

    @staticmethod
    def _sample_from(probs: np.ndarray, rnds: Sequence[float]) -> np.ndarray:
        probs = np.clip(probs, 0.0, None)
        cumulative = np.cumsum(probs)
        return clamp_cumulative_draw(cumulative, probs, np.asarray(rnds, dtype=float))

    def sample_measure(self, rnds: Sequence[float]) -> np.ndarray:
        """Resolve uniform variates against the full basis distribution."""
        return self._sample_from(np.abs(self.data) ** 2, rnds)
