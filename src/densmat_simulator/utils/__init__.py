# Utility Functions
#
# Common index arithmetic and linear-algebra helpers.
#
# Submodules:
#   - math_utils: vectorization, register conversion, basis index
#     generators, Pauli-string masks and products

from .math_utils import (
    vectorize_matrix,
    devectorize_matrix,
    tensor_product,
    int2reg,
    reg2int,
    int2hex,
    vec2ket,
    index0,
    index_offsets,
    indexes,
    subindex,
    pauli_masks,
    pauli_product,
    parity,
)

__all__ = [
    "vectorize_matrix",
    "devectorize_matrix",
    "tensor_product",
    "int2reg",
    "reg2int",
    "int2hex",
    "vec2ket",
    "index0",
    "index_offsets",
    "indexes",
    "subindex",
    "pauli_masks",
    "pauli_product",
    "parity",
]
