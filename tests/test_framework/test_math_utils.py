"""
Test Suite: Index Arithmetic and Pauli Helpers
==============================================
"""

import numpy as np
import pytest

from densmat_simulator.utils.math_utils import (
    devectorize_matrix,
    index0,
    indexes,
    int2reg,
    parity,
    pauli_masks,
    pauli_product,
    reg2int,
    subindex,
    validate_pauli,
    vec2ket,
    vectorize_matrix,
)


# =============================================================================
# CATEGORY 1: VECTORIZATION AND REGISTERS
# =============================================================================

class TestVectorization:

    def test_column_stacking(self):
        mat = np.array([[1, 2], [3, 4]])
        assert list(vectorize_matrix(mat)) == [1, 3, 2, 4]
        assert np.array_equal(devectorize_matrix(vectorize_matrix(mat)), mat)

    def test_non_square_length(self):
        with pytest.raises(ValueError):
            devectorize_matrix(np.ones(8))

    def test_int2reg(self):
        assert int2reg(6, 2, 4) == [0, 1, 1, 0]
        assert int2reg(0, 2, 2) == [0, 0]
        assert reg2int([0, 1, 1, 0]) == 6

    def test_vec2ket(self):
        vec = np.array([0.5, 1e-14, 0.0, 0.5])
        assert vec2ket(vec, 1e-10) == {"0x0": 0.5, "0x3": 0.5}
        assert vec2ket(vec, 1e-10, base=2) == {"00": 0.5, "11": 0.5}
        with pytest.raises(ValueError):
            vec2ket(vec, 1e-10, base=8)


# =============================================================================
# CATEGORY 2: BASIS INDEX GENERATORS
# =============================================================================

class TestIndexGenerators:

    def test_index0_inserts_zero_bits(self):
        assert index0([1], 0b11) == 0b101
        assert index0([0, 2], 0b1) == 0b10

    def test_indexes_follow_caller_order(self):
        assert list(indexes([2, 0], [0, 2], 0)) == [0, 4, 1, 5]
        assert list(indexes([0], [0], 3)) == [6, 7]

    def test_subindex(self):
        assert list(subindex(np.arange(8), [2, 0])) == [0, 2, 0, 2, 1, 3, 1, 3]


# =============================================================================
# CATEGORY 3: PAULI STRINGS
# =============================================================================

class TestPauli:

    def test_masks_last_character_on_first_qubit(self):
        x_mask, z_mask, num_y = pauli_masks([0, 3], "ZX")
        assert x_mask == 0b0001
        assert z_mask == 0b1000
        assert num_y == 0

    def test_masks_with_y(self):
        assert pauli_masks([1], "y") == (0b10, 0b10, 1)

    def test_parity(self):
        assert list(parity(np.array([0, 1, 2, 3]), 0b11)) == [0, 1, 1, 0]

    @pytest.mark.parametrize("a, b, phase, product", [
        ("X", "Y", 1j, "Z"),
        ("Y", "X", -1j, "Z"),
        ("ZZ", "XI", 1j, "YZ"),
        ("XX", "XX", 1, "II"),
    ])
    def test_products(self, a, b, phase, product):
        assert pauli_product(a, b) == (phase, product)

    def test_validation(self):
        assert validate_pauli("xz", 2) == "XZ"
        with pytest.raises(ValueError):
            validate_pauli("X", 2)
        with pytest.raises(ValueError):
            pauli_product("X", "XX")
