"""
Test Suite: Measurement, Collapse and Reset
===========================================

1. Projective measurement: collapse, renormalization, classical bits
2. measure_reset_update: projection followed by a basis-state move
3. Shot sampling without collapse
4. Reset channel through the dispatcher
"""

import numpy as np
import pytest

from densmat_simulator.engine.state import DensityMatrixState
from densmat_simulator.framework import make_measure, make_reset
from densmat_simulator.framework.rng import RngEngine

from tests.reference import PAULI, bell_state, full_operator


def make_state(num_qubits, psi=None, num_memory=0, num_registers=0):
    state = DensityMatrixState()
    state.initialize_qreg(num_qubits)
    state.initialize_creg(num_memory, num_registers)
    if psi is not None:
        state.qreg.initialize_from_vector(psi)
    return state


def basis_state(index, num_qubits):
    psi = np.zeros(1 << num_qubits, dtype=complex)
    psi[index] = 1.0
    return psi


# =============================================================================
# CATEGORY 1: PROJECTIVE MEASUREMENT
# =============================================================================

class TestMeasure:

    @pytest.mark.parametrize("seed", [0, 1, 2, 3, 4, 5])
    def test_bell_collapse_is_correlated(self, seed, result):
        state = make_state(2, bell_state(), num_memory=2)
        rng = RngEngine(seed)
        state.apply_op(make_measure([0]), result, rng)
        outcome = int(state.creg.memory[-1])

        expected = np.zeros((4, 4))
        expected[3 * outcome, 3 * outcome] = 1.0
        assert np.allclose(state.copy_to_matrix(), expected), (
            "measuring one half of a Bell pair must collapse both qubits"
        )
        state.apply_op(make_measure([1]), result, rng)
        assert state.creg.memory in ("00", "11")

    def test_post_measurement_state_is_normalized(self, rho3, rng, result):
        state = make_state(3, num_memory=3)
        state.qreg.initialize_from_matrix(rho3)
        state.apply_op(make_measure([2, 0]), result, rng)
        assert state.qreg.trace() == pytest.approx(1.0)
        probs = state.measure_probs([2, 0])
        assert np.isclose(probs.max(), 1.0), "the measured qubits must be in a basis state"

    def test_memory_and_register_bits(self, rng, result):
        # q0 = 1, q1 = 0
        state = make_state(2, basis_state(1, 2), num_memory=4, num_registers=2)
        state.apply_op(make_measure([0, 1], memory=[2, 3], registers=[0, 1]), result, rng)
        assert state.creg.memory == "0100"
        assert state.creg.register == "01"

    def test_deterministic_outcome(self, rng):
        state = make_state(3, basis_state(0b101, 3))
        outcome, prob = state.sample_measure_with_prob([0, 1, 2], rng)
        assert outcome == 0b101
        assert prob == pytest.approx(1.0)

    def test_seed_determinism(self, result):
        def run(seed):
            rng = RngEngine(seed)
            outcomes = []
            for _ in range(20):
                state = make_state(1, np.array([1, 1]) / np.sqrt(2), num_memory=1)
                state.apply_op(make_measure([0]), result, rng)
                outcomes.append(state.creg.memory)
            return outcomes

        assert run(11) == run(11)


# =============================================================================
# CATEGORY 2: MEASURE-RESET UPDATE
# =============================================================================

class TestMeasureResetUpdate:

    def test_single_qubit_project_and_flip(self, rho3):
        state = make_state(3)
        state.qreg.initialize_from_matrix(rho3)
        prob = state.measure_probs([1])[1]
        state.measure_reset_update([1], 0, 1, prob)

        proj = full_operator(np.diag([0, 1]), [1], 3)
        flip = full_operator(PAULI["X"], [1], 3)
        expected = flip @ proj @ rho3 @ proj @ flip / prob
        assert np.allclose(state.copy_to_matrix(), expected)
        assert np.allclose(state.measure_probs([1]), [1, 0])

    def test_multi_qubit_project_and_move(self, rho3):
        state = make_state(3)
        state.qreg.initialize_from_matrix(rho3)
        # sub-index 2 on [0, 2] is q0 = 0, q2 = 1; move it to q0 = 1, q2 = 0
        prob = state.measure_probs([0, 2])[2]
        state.measure_reset_update([0, 2], 1, 2, prob)

        proj = full_operator(np.diag([0, 0, 1, 0]), [0, 2], 3)
        perm = np.eye(4)
        perm[[1, 2]] = perm[[2, 1]]
        move = full_operator(perm, [0, 2], 3)
        expected = move @ proj @ rho3 @ proj @ move.T / prob
        assert np.allclose(state.copy_to_matrix(), expected)
        assert np.allclose(state.measure_probs([0, 2]), [0, 1, 0, 0])

    def test_same_final_state_only_projects(self, rho3):
        state = make_state(3)
        state.qreg.initialize_from_matrix(rho3)
        prob = state.measure_probs([2])[0]
        state.measure_reset_update([2], 0, 0, prob)
        proj = full_operator(np.diag([1, 0]), [2], 3)
        assert np.allclose(state.copy_to_matrix(), proj @ rho3 @ proj / prob)

    def test_tiny_probability_warns(self):
        state = make_state(1)
        with pytest.warns(UserWarning, match="Renormalizing"):
            state.measure_reset_update([0], 1, 1, 1e-12)


# =============================================================================
# CATEGORY 3: SHOT SAMPLING
# =============================================================================

class TestSampleMeasure:

    def test_qubit_order(self, rng):
        # q1 = 1, q0 = 0
        state = make_state(2, basis_state(2, 2))
        assert state.sample_measure([0, 1], 3, rng) == [[0, 1]] * 3
        assert state.sample_measure([1, 0], 2, rng) == [[1, 0]] * 2

    def test_sampling_does_not_collapse(self, rng):
        state = make_state(2, bell_state())
        before = state.copy_to_matrix()
        samples = state.sample_measure([0, 1], 50, rng)
        assert all(s in ([0, 0], [1, 1]) for s in samples)
        assert np.allclose(state.copy_to_matrix(), before)

    def test_sampling_frequencies(self):
        state = make_state(1, np.array([np.sqrt(0.2), np.sqrt(0.8)]))
        samples = state.sample_measure([0], 4000, RngEngine(3))
        freq = np.mean([s[0] for s in samples])
        assert freq == pytest.approx(0.8, abs=0.03)


# =============================================================================
# CATEGORY 4: RESET
# =============================================================================

class TestReset:

    def test_reset_half_of_bell_pair(self, rng, result):
        state = make_state(2, bell_state())
        state.apply_op(make_reset([0]), result, rng)
        rho = state.copy_to_matrix()
        assert np.allclose(np.diag(rho).real, [0.5, 0, 0.5, 0])
        assert np.allclose(rho, np.diag(np.diag(rho))), "reset leaves no coherence with q0"

    def test_reset_all_qubits(self, rho3, rng, result):
        state = make_state(3)
        state.qreg.initialize_from_matrix(rho3)
        state.apply_op(make_reset([0, 1, 2]), result, rng)
        expected = np.zeros((8, 8))
        expected[0, 0] = 1.0
        assert np.allclose(state.copy_to_matrix(), expected)

    def test_reset_does_not_use_randomness(self, result):
        rng = RngEngine(5)
        state = make_state(1, [0, 1])
        state.apply_op(make_reset([0]), result, rng)
        assert rng.rand() == RngEngine(5).rand()
