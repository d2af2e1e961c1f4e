"""
Test Suite: Classical Register
==============================

Measurement storage, conditional guards, boolean functions and readout
error injection.
"""

import pytest

from densmat_simulator.framework import (
    ClassicalRegister,
    RegComparison,
    RngEngine,
    make_bfunc,
    make_gate,
    make_roerror,
)


class TestStorage:

    def test_bits_are_msb_first(self):
        creg = ClassicalRegister(4, 0)
        creg.store_measure([1, 1], [0, 2], [])
        assert creg.memory == "0101"
        assert creg.memory_hex() == "0x5"

    def test_empty_register_hex(self):
        creg = ClassicalRegister()
        assert creg.memory_hex() == "0x0"
        assert creg.register_hex() == "0x0"

    def test_initialize_clears(self):
        creg = ClassicalRegister(2, 2)
        creg.store_measure([1, 1], [0, 1], [0, 1])
        creg.initialize(3, 1)
        assert creg.memory == "000"
        assert creg.register == "0"

    def test_out_of_range_bit(self):
        creg = ClassicalRegister(2, 0)
        with pytest.raises(ValueError, match="out of range"):
            creg.store_measure([1], [2], [])


class TestConditional:

    def test_unconditional_always_runs(self):
        assert ClassicalRegister(0, 0).check_conditional(make_gate("x", [0]))

    def test_guard_bit(self):
        creg = ClassicalRegister(0, 2)
        op = make_gate("x", [0], conditional_reg=1)
        assert not creg.check_conditional(op)
        creg.store_measure([1], [], [1])
        assert creg.check_conditional(op)


class TestBfunc:

    @pytest.mark.parametrize("relation, value, expected", [
        (RegComparison.Equal, "0x2", "1"),
        (RegComparison.NotEqual, "0x2", "0"),
        (RegComparison.Less, "0x3", "1"),
        (RegComparison.LessEqual, "0x2", "1"),
        (RegComparison.Greater, "0x2", "0"),
        (RegComparison.GreaterEqual, "0x1", "1"),
    ])
    def test_relations(self, relation, value, expected):
        creg = ClassicalRegister(1, 3)
        creg.store_measure([0, 1], [], [0, 1])  # register = 0b010
        creg.apply_bfunc(make_bfunc("0x3", value, relation, register=2, memory=0))
        assert creg.register[0] == expected, f"(0b010 & 0x3) {relation.value} {value}"
        assert creg.memory == expected

    def test_mask_hides_bits(self):
        creg = ClassicalRegister(0, 3)
        creg.store_measure([1, 1], [], [0, 1])
        creg.apply_bfunc(make_bfunc("0x1", "0x1", register=2))
        assert creg.register == "111"

    def test_wrong_op_type(self):
        with pytest.raises(ValueError):
            ClassicalRegister(1, 1).apply_bfunc(make_gate("x", [0]))


class TestReadoutError:

    def test_certain_flip(self):
        creg = ClassicalRegister(2, 1)
        creg.store_measure([1, 0], [0, 1], [])
        # swap the reported value of bit 1: 0 -> 1 with certainty
        op = make_roerror([1], [[0.0, 1.0], [1.0, 0.0]], registers=[0])
        creg.apply_roerror(op, RngEngine(0))
        assert creg.memory == "11"
        assert creg.register == "1"

    def test_two_bit_readout(self):
        creg = ClassicalRegister(2, 0)
        creg.store_measure([1, 0], [0, 1], [])  # true value 0b01
        probs = [[1, 0, 0, 0], [0, 0, 0, 1], [0, 0, 1, 0], [0, 1, 0, 0]]
        creg.apply_roerror(make_roerror([0, 1], probs), RngEngine(0))
        assert creg.memory == "11"

    def test_identity_readout(self):
        creg = ClassicalRegister(1, 0)
        creg.store_measure([1], [0], [])
        creg.apply_roerror(make_roerror([0], [[1, 0], [0, 1]]), RngEngine(1))
        assert creg.memory == "1"

    def test_row_count_checked(self):
        with pytest.raises(ValueError, match="probability rows"):
            make_roerror([0, 1], [[1, 0], [0, 1]])
