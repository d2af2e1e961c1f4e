"""
Mathematical Utilities
======================

Index arithmetic and small linear-algebra helpers shared by the backends and
the engine.

Conventions
-----------
- Basis indices are little-endian: qubit ``qubits[i]`` is bit ``i`` of an
  outcome/sub-index.
- Matrices are vectorized **column-major** (column stacking):
  ``vec[row + col * dim] = mat[row, col]``. For a density matrix this puts
  the row qubits in the low bits and the column qubits in the high bits.
- Pauli strings are big-endian: the *last* character acts on ``qubits[0]``.
"""

from typing import Dict, List, Sequence, Tuple

import numpy as np


# =============================================================================
# MATRIX VECTORIZATION
# =============================================================================

def vectorize_matrix(mat: np.ndarray) -> np.ndarray:
    """Column-stack a matrix into a flat vector."""
    return np.asarray(mat, dtype=complex).ravel(order="F")


def devectorize_matrix(vec: np.ndarray) -> np.ndarray:
    """
    Inverse of ``vectorize_matrix`` for square matrices.

    Parameters
    ----------
    vec : np.ndarray
        Flat vector of length dim**2

    Returns
    -------
    np.ndarray
        (dim, dim) matrix
    """
    vec = np.asarray(vec)
    dim = int(round(np.sqrt(vec.size)))
    if dim * dim != vec.size:
        raise ValueError(f"Vector of length {vec.size} is not a vectorized square matrix")
    return vec.reshape((dim, dim), order="F")


def tensor_product(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    """Kronecker product ``a ⊗ b`` (``b`` occupies the low-order index bits)."""
    return np.kron(a, b)


# =============================================================================
# INTEGER / REGISTER CONVERSION
# =============================================================================

def int2reg(n: int, base: int = 2, minlen: int = 0) -> List[int]:
    """
    Digits of ``n`` least-significant first, padded to ``minlen``.

    >>> int2reg(6, 2, 4)
    [0, 1, 1, 0]
    """
    digits = []
    while n > 0:
        n, rem = divmod(n, base)
        digits.append(rem)
    if len(digits) < minlen:
        digits.extend([0] * (minlen - len(digits)))
    return digits


def reg2int(reg: Sequence[int], base: int = 2) -> int:
    """Inverse of ``int2reg``."""
    value = 0
    for digit in reversed(reg):
        value = value * base + int(digit)
    return value


def int2hex(n: int) -> str:
    return hex(int(n))


def vec2ket(vec: Sequence, chop_threshold: float, base: int = 16) -> Dict[str, float]:
    """
    Sparse ket-notation map of a vector.

    Entries with magnitude at or below ``chop_threshold`` are dropped. Keys
    are hex strings (``"0x3"``) for base 16 or bit strings for base 2.
    """
    if base not in (2, 16):
        raise ValueError(f"Unsupported ket base: {base}. Use 2 or 16.")
    vec = np.asarray(vec)
    width = max(1, int(np.log2(max(vec.size, 1))))
    ket = {}
    for index in np.flatnonzero(np.abs(vec) > chop_threshold):
        key = int2hex(index) if base == 16 else format(int(index), f"0{width}b")
        value = vec[index]
        ket[key] = value.item() if hasattr(value, "item") else value
    return ket


# =============================================================================
# BASIS INDEX GENERATORS
# =============================================================================

def index0(qubits_sorted: Sequence[int], k: int) -> int:
    """
    Insert zero bits into ``k`` at every (sorted) qubit position.

    The result is the basis index where all ``qubits_sorted`` are 0 and the
    remaining bits are the bits of ``k`` in order.
    """
    ret = int(k)
    for q in qubits_sorted:
        lowbits = ret & ((1 << q) - 1)
        ret >>= q
        ret <<= q + 1
        ret |= lowbits
    return ret


def index_offsets(qubits: Sequence[int]) -> np.ndarray:
    """
    Offsets added to ``index0`` to enumerate all values of ``qubits``.

    Entry ``i`` sets qubit ``qubits[j]`` to bit ``j`` of ``i``, so the
    caller's (possibly unsorted) qubit order defines the sub-index order.
    """
    n = len(qubits)
    sub = np.arange(1 << n, dtype=np.int64)
    offsets = np.zeros(1 << n, dtype=np.int64)
    for j, q in enumerate(qubits):
        offsets |= ((sub >> j) & 1) << q
    return offsets


def indexes(qubits: Sequence[int], qubits_sorted: Sequence[int], k: int) -> np.ndarray:
    """All 2^len(qubits) basis indices of block ``k`` (see ``index0``)."""
    return index0(qubits_sorted, k) + index_offsets(qubits)


def subindex(indices: np.ndarray, qubits: Sequence[int]) -> np.ndarray:
    """Project full basis indices onto ``qubits`` (little-endian sub-index)."""
    indices = np.asarray(indices, dtype=np.int64)
    out = np.zeros_like(indices)
    for j, q in enumerate(qubits):
        out |= ((indices >> q) & 1) << j
    return out


# =============================================================================
# PAULI STRINGS
# =============================================================================

_PAULI_PRODUCT = {
    # (a, b) -> (phase, a*b)
    ("I", "I"): (1, "I"), ("I", "X"): (1, "X"), ("I", "Y"): (1, "Y"), ("I", "Z"): (1, "Z"),
    ("X", "I"): (1, "X"), ("X", "X"): (1, "I"), ("X", "Y"): (1j, "Z"), ("X", "Z"): (-1j, "Y"),
    ("Y", "I"): (1, "Y"), ("Y", "X"): (-1j, "Z"), ("Y", "Y"): (1, "I"), ("Y", "Z"): (1j, "X"),
    ("Z", "I"): (1, "Z"), ("Z", "X"): (1j, "Y"), ("Z", "Y"): (-1j, "X"), ("Z", "Z"): (1, "I"),
}


def validate_pauli(pauli: str, num_qubits: int) -> str:
    pauli = pauli.upper()
    if len(pauli) != num_qubits:
        raise ValueError(
            f"Pauli string '{pauli}' has length {len(pauli)} but {num_qubits} qubits were given"
        )
    bad = set(pauli) - set("IXYZ")
    if bad:
        raise ValueError(f"Invalid Pauli characters {sorted(bad)} in '{pauli}'")
    return pauli


def pauli_masks(qubits: Sequence[int], pauli: str) -> Tuple[int, int, int]:
    """
    Bit masks of a Pauli string on ``qubits``.

    Returns
    -------
    x_mask : int
        Bits flipped by X or Y factors
    z_mask : int
        Bits phased by Z or Y factors
    num_y : int
        Number of Y factors
    """
    pauli = validate_pauli(pauli, len(qubits))
    x_mask = z_mask = num_y = 0
    for q, p in zip(qubits, reversed(pauli)):
        if p in "XY":
            x_mask |= 1 << q
        if p in "ZY":
            z_mask |= 1 << q
        if p == "Y":
            num_y += 1
    return x_mask, z_mask, num_y


def parity(values: np.ndarray, mask: int) -> np.ndarray:
    """Parity of ``values & mask`` for an integer array."""
    values = np.asarray(values, dtype=np.int64) & mask
    out = np.zeros_like(values)
    bit = 0
    while mask >> bit:
        if (mask >> bit) & 1:
            out ^= (values >> bit) & 1
        bit += 1
    return out


def pauli_product(a: str, b: str) -> Tuple[complex, str]:
    """Product ``a · b`` of two equal-length Pauli strings as (phase, string)."""
    if len(a) != len(b):
        raise ValueError(f"Pauli strings '{a}' and '{b}' differ in length")
    phase = 1
    chars = []
    for pa, pb in zip(a.upper(), b.upper()):
        factor, p = _PAULI_PRODUCT[(pa, pb)]
        phase *= factor
        chars.append(p)
    return phase, "".join(chars)
