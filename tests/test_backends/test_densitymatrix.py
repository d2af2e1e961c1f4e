"""
Test Suite: Vectorized Density-Matrix Store
===========================================

Checks the numpy backing store against dense reference formulas:

1. Initialization and extraction (pure states, raw vectors, matrices)
2. Two-sided updates: U rho U†, diagonals, superoperators, structural gates
3. Reset channel
4. Readout: trace, probabilities, Pauli expectation values, sampling
5. Memory model
"""

import numpy as np
import pytest

from densmat_simulator.backends import DensityMatrix, DensityMatrixStorage, QubitVector
from densmat_simulator.engine.gates import PAULI_X, PAULI_Y
from densmat_simulator.utils.math_utils import vectorize_matrix

from tests.reference import (
    apply_channel,
    bell_state,
    evolve,
    full_operator,
    pauli_matrix,
    random_density_matrix,
    random_unitary,
)


@pytest.fixture
def store3(rho3):
    store = DensityMatrix(3)
    store.initialize_from_matrix(rho3)
    return store


# =============================================================================
# CATEGORY 1: INITIALIZATION AND EXTRACTION
# =============================================================================

class TestInitialization:

    def test_implements_storage_contract(self):
        assert isinstance(DensityMatrix(1), DensityMatrixStorage)

    def test_initialize_is_ground_state(self):
        store = DensityMatrix(2)
        store.initialize()
        expected = np.zeros((4, 4))
        expected[0, 0] = 1.0
        assert np.allclose(store.copy_to_matrix(), expected)
        assert store.num_qubits == 2
        assert store.num_vector_qubits == 4, "2 qubits should use 4 superoperator qubits"

    def test_initialize_from_pure_state(self):
        psi = bell_state()
        store = DensityMatrix(2)
        store.initialize_from_vector(psi)
        assert np.allclose(store.copy_to_matrix(), np.outer(psi, psi.conj())), (
            "A length-2^N vector should become |psi><psi|"
        )

    def test_initialize_from_vectorized_matrix(self, rho3):
        store = DensityMatrix(3)
        store.initialize_from_vector(vectorize_matrix(rho3))
        assert np.allclose(store.copy_to_matrix(), rho3)

    def test_wrong_sizes_rejected(self):
        store = DensityMatrix(2)
        with pytest.raises(ValueError):
            store.initialize_from_vector(np.ones(8))
        with pytest.raises(ValueError):
            store.initialize_from_matrix(np.eye(2))

    def test_column_major_layout(self, rho3):
        store = DensityMatrix(3)
        store.initialize_from_matrix(rho3)
        vec = store.vector()
        assert vec[1 + 2 * 8] == pytest.approx(rho3[1, 2]), (
            "Entry rho[row, col] must live at index row + col * 2^N"
        )

    def test_copy_does_not_alias(self, store3, rho3):
        mat = store3.copy_to_matrix()
        mat[0, 0] = 100.0
        assert np.allclose(store3.copy_to_matrix(), rho3)

    def test_move_empties_store(self, store3, rho3):
        mat = store3.move_to_matrix()
        assert np.allclose(mat, rho3)
        with pytest.raises(ValueError):
            store3.trace()

    def test_superop_qubits(self):
        store = DensityMatrix(3)
        assert store.superop_qubits([2, 0]) == [2, 0, 5, 3]


# =============================================================================
# CATEGORY 2: TWO-SIDED UPDATES
# =============================================================================

class TestTwoSidedUpdates:

    def test_unitary_matches_reference(self, store3, rho3, np_rng):
        u = random_unitary(4, np_rng)
        store3.apply_unitary_matrix([2, 0], u)
        assert np.allclose(store3.copy_to_matrix(), evolve(rho3, u, [2, 0])), (
            "Superoperator update must equal U rho U† for unsorted qubits"
        )

    def test_single_row_matrix_is_diagonal(self, store3, rho3):
        diag = np.exp(1j * np.array([0.1, 0.2, 0.3, 0.4]))
        store3.apply_unitary_matrix([0, 1], diag.reshape(1, 4))
        assert np.allclose(store3.copy_to_matrix(), evolve(rho3, np.diag(diag), [0, 1]))

    def test_diagonal_unitary(self, store3, rho3):
        diag = np.exp(1j * np.array([0.3, -1.1]))
        store3.apply_diagonal_unitary_matrix([1], diag)
        assert np.allclose(store3.copy_to_matrix(), evolve(rho3, np.diag(diag), [1]))

    def test_superop_matches_channel(self, store3, rho3):
        p = 0.2
        kmats = [np.sqrt(1 - p) * np.eye(2), np.sqrt(p) * PAULI_X]
        superop = sum(np.kron(k.conj(), k) for k in kmats)
        store3.apply_superop_matrix([1], superop)
        assert np.allclose(store3.copy_to_matrix(), apply_channel(rho3, kmats, [1]))

    @pytest.mark.parametrize("method, args, mat, qubits", [
        ("apply_x", (1,), PAULI_X, [1]),
        ("apply_y", (2,), PAULI_Y, [2]),
        ("apply_cnot", (2, 0), np.array([[1, 0, 0, 0], [0, 0, 0, 1],
                                         [0, 0, 1, 0], [0, 1, 0, 0]]), [2, 0]),
        ("apply_cy", (0, 1), np.array([[1, 0, 0, 0], [0, 0, 0, -1j],
                                       [0, 0, 1, 0], [0, 1j, 0, 0]]), [0, 1]),
        ("apply_swap", (0, 2), np.array([[1, 0, 0, 0], [0, 0, 1, 0],
                                         [0, 1, 0, 0], [0, 0, 0, 1]]), [0, 2]),
    ])
    def test_structural_gates(self, store3, rho3, method, args, mat, qubits):
        getattr(store3, method)(*args)
        assert np.allclose(store3.copy_to_matrix(), evolve(rho3, mat, qubits)), (
            f"{method}{args} disagrees with the dense reference"
        )

    def test_cphase(self, store3, rho3):
        phase = np.exp(0.7j)
        store3.apply_cphase(1, 2, phase)
        expected = evolve(rho3, np.diag([1, 1, 1, phase]), [1, 2])
        assert np.allclose(store3.copy_to_matrix(), expected)

    def test_toffoli(self, store3, rho3):
        ccx = np.eye(8)
        ccx[[3, 7]] = ccx[[7, 3]]
        store3.apply_toffoli(2, 0, 1)
        assert np.allclose(store3.copy_to_matrix(), evolve(rho3, ccx, [2, 0, 1]))

    def test_superop_pauli(self, store3, rho3):
        # (-1)^{#Y} P⊗P on the superoperator qubits is P rho P
        store3.apply_pauli(store3.superop_qubits([0, 2]), "YX" + "YX", -1)
        expected = evolve(rho3, pauli_matrix("YX"), [0, 2])
        assert np.allclose(store3.copy_to_matrix(), expected)

    def test_trace_preserved_by_unitaries(self, store3, np_rng):
        for qubits in ([0], [1, 2], [2, 0, 1]):
            store3.apply_unitary_matrix(qubits, random_unitary(1 << len(qubits), np_rng))
        assert store3.trace() == pytest.approx(1.0)


# =============================================================================
# CATEGORY 3: RESET
# =============================================================================

class TestReset:

    def test_reset_excited_qubit(self):
        store = DensityMatrix(1)
        store.initialize_from_vector([0, 1])
        store.apply_reset([0])
        assert np.allclose(store.copy_to_matrix(), [[1, 0], [0, 0]])

    def test_reset_matches_kraus_channel(self, store3, rho3):
        k0 = np.array([[1, 0], [0, 0]])
        k1 = np.array([[0, 1], [0, 0]])
        store3.apply_reset([1, 2])
        expected = apply_channel(apply_channel(rho3, [k0, k1], [1]), [k0, k1], [2])
        assert np.allclose(store3.copy_to_matrix(), expected)
        assert store3.trace() == pytest.approx(1.0)


# =============================================================================
# CATEGORY 4: READOUT
# =============================================================================

class TestReadout:

    def test_probabilities_of_bell_state(self):
        store = DensityMatrix(2)
        store.initialize_from_vector(bell_state())
        assert np.allclose(store.probabilities([0, 1]), [0.5, 0, 0, 0.5])
        assert np.allclose(store.probabilities([1]), [0.5, 0.5])

    def test_probabilities_qubit_order(self):
        store = DensityMatrix(2)
        # |q1=1, q0=0> is basis index 2
        store.initialize_from_vector([0, 0, 1, 0])
        assert np.allclose(store.probabilities([0, 1]), [0, 0, 1, 0])
        assert np.allclose(store.probabilities([1, 0]), [0, 1, 0, 0]), (
            "qubits[0] must be the least significant bit of the outcome"
        )

    def test_probabilities_normalized(self, store3):
        assert store3.probabilities([2, 0]).sum() == pytest.approx(1.0)

    def test_probability_of_basis_index(self, store3, rho3):
        assert store3.probability(5) == pytest.approx(rho3[5, 5].real)

    @pytest.mark.parametrize("pauli, qubits", [
        ("Z", [0]), ("X", [2]), ("Y", [1]), ("XY", [0, 2]), ("ZYX", [1, 2, 0]), ("II", [0, 1]),
    ])
    def test_expval_pauli(self, store3, rho3, pauli, qubits):
        pmat = full_operator(pauli_matrix(pauli), qubits, 3)
        expected = np.trace(pmat @ rho3).real
        assert store3.expval_pauli(qubits, pauli) == pytest.approx(expected), (
            f"<{pauli}> on {qubits} disagrees with Tr(P rho)"
        )

    def test_sample_measure(self):
        store = DensityMatrix(2)
        store.initialize_from_vector(bell_state())
        samples = store.sample_measure([0.0, 0.49, 0.51, 0.99, 1.0])
        assert list(samples) == [0, 0, 3, 3, 3], (
            "Variates past the total weight clamp to the last non-zero outcome"
        )

    def test_qubit_out_of_range(self, store3):
        with pytest.raises(ValueError):
            store3.probabilities([3])


# =============================================================================
# CATEGORY 5: MEMORY MODEL
# =============================================================================

class TestMemory:

    @pytest.mark.parametrize("vector_qubits, expected_mb", [(2, 1), (16, 1), (20, 16), (24, 256)])
    def test_required_memory(self, vector_qubits, expected_mb):
        assert QubitVector.required_memory_mb(vector_qubits) == expected_mb

    def test_random_state_fixture_is_valid(self, np_rng):
        rho = random_density_matrix(2, np_rng)
        assert np.trace(rho) == pytest.approx(1.0)
        assert np.allclose(rho, rho.conj().T)
