"""
Test Suite: Instruction Model
=============================

Op normalization, factory helpers and observable decomposition.
"""

import dataclasses

import numpy as np
import pytest

from densmat_simulator.framework import (
    DataSubType,
    Op,
    OpType,
    make_diagonal_matrix,
    make_gate,
    make_jump,
    make_kraus,
    make_matrix,
    make_measure,
    make_save_expval,
    make_save_probs,
    make_save_state,
    pauli_expval_params,
)


class TestOp:

    def test_fields_are_normalized(self):
        op = Op(OpType.gate, name="x", qubits=[np.int64(2)], mats=[np.eye(2)])
        assert op.qubits == (2,)
        assert isinstance(op.qubits[0], int)
        assert op.mats[0].dtype == complex

    def test_frozen(self):
        op = make_gate("x", [0])
        with pytest.raises(dataclasses.FrozenInstanceError):
            op.name = "y"

    def test_replace_builds_new_op(self):
        op = make_gate("cx", [2, 0])
        new = dataclasses.replace(op, name="x", qubits=(0,))
        assert (op.name, op.qubits) == ("cx", (2, 0))
        assert (new.name, new.qubits) == ("x", (0,))

    def test_conditional_flag(self):
        assert not make_gate("x", [0]).conditional
        assert make_gate("x", [0], conditional_reg=0).conditional

    def test_repr(self):
        assert repr(make_gate("cx", [0, 1])) == "Op(gate, name='cx', qubits=[0, 1])"


class TestFactories:

    def test_single_qubit_int(self):
        assert make_gate("h", 3).qubits == (3,)

    def test_gate_with_pauli(self):
        op = make_gate("pauli", [0, 1], pauli="XZ")
        assert op.string_params == ("XZ",)

    def test_measure_defaults_memory_to_qubits(self):
        op = make_measure([2, 0])
        assert op.memory == (2, 0)
        assert op.registers == ()

    def test_matrix_promotes_row(self):
        assert make_matrix([0], [1, 1j]).mats[0].shape == (1, 2)

    def test_diagonal_length_checked(self):
        with pytest.raises(ValueError, match="does not match"):
            make_diagonal_matrix([0, 1], [1, 1])

    def test_kraus_needs_operators(self):
        with pytest.raises(ValueError):
            make_kraus([0], [])

    def test_save_defaults(self):
        assert make_save_state([0]).string_params == ("_method_",)
        assert make_save_state([0]).save_type == DataSubType.single
        assert make_save_probs([0]).save_type == DataSubType.average
        assert make_save_probs([0], ket=True).type == OpType.save_probs_ket

    def test_jump(self):
        op = make_jump("loop", conditional_reg=0)
        assert op.type == OpType.jump
        assert op.string_params == ("loop",)


class TestObservables:

    def test_coefficients_and_square(self):
        params = {p: (c, sq) for p, c, sq in pauli_expval_params([("ZZ", 1.0), ("XI", 0.5)], 2)}
        assert params["ZZ"] == pytest.approx((1.0, 0.0))
        assert params["XI"] == pytest.approx((0.5, 0.0))
        assert params["II"] == pytest.approx((0.0, 1.25)), "O^2 = 1.25 I for anticommuting terms"
        assert params["YZ"] == pytest.approx((0.0, 0.0))

    def test_duplicate_terms_merge(self):
        params = pauli_expval_params([("Z", 0.5), ("z", 0.25)], 1)
        assert dict((p, c) for p, c, _ in params)["Z"] == pytest.approx(0.75)

    def test_length_checked(self):
        with pytest.raises(ValueError, match="length"):
            make_save_expval([0, 1], [("Z", 1.0)])

    def test_bad_character(self):
        with pytest.raises(ValueError, match="Invalid Pauli"):
            pauli_expval_params([("ZQ", 1.0)], 2)

    def test_empty_observable(self):
        with pytest.raises(ValueError, match="no Pauli terms"):
            pauli_expval_params([], 1)
