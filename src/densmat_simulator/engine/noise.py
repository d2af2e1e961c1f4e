"""
Noise-Channel Applicator
========================

Turns a Kraus set into the superoperator that acts on the vectorized
density matrix, and provides the standard single-qubit channels.

KRAUS TO SUPEROPERATOR
----------------------

For ``E(rho) = Σ K_i rho K_i†`` and column-stacked vectorization,

    vec(E(rho)) = (Σ conj(K_i) ⊗ K_i) vec(rho)

QuTiP uses the same column-stacking convention, so ``kraus_to_super``
gives exactly the matrix the backing store expects. The channel is then
applied in a single ``apply_superop_matrix`` call rather than once per
Kraus operator.

STANDARD CHANNELS
-----------------

Depolarizing:
    rho -> (1-p) rho + (p/3)(X rho X + Y rho Y + Z rho Z)

Dephasing (phase-flip):
    rho -> (1-p) rho + p Z rho Z

Bit-flip:
    rho -> (1-p) rho + p X rho X

Asymmetric Pauli:
    rho -> (1-px-py-pz) rho + px X rho X + py Y rho Y + pz Z rho Z

Amplitude damping (T1 decay with |1> -> |0> probability gamma):
    K0 = [[1, 0], [0, sqrt(1-gamma)]],  K1 = [[0, sqrt(gamma)], [0, 0]]
"""

from typing import List, Sequence

import numpy as np

try:
    from qutip import Qobj, kraus_to_super
except ImportError:
    raise ImportError(
        "QuTiP is required for Kraus channels. Install with: pip install qutip"
    )

from .gates import PAULI_I, PAULI_X, PAULI_Y, PAULI_Z


def kraus_superop(kmats: Sequence[np.ndarray]) -> np.ndarray:
    """
    Superoperator ``Σ conj(K) ⊗ K`` of a Kraus set.

    Parameters
    ----------
    kmats : sequence of np.ndarray
        Kraus operators, all of the same square shape

    Returns
    -------
    np.ndarray
        (d^2, d^2) column-stacking superoperator
    """
    if len(kmats) == 0:
        raise ValueError("Kraus channel requires at least one operator")
    shape = np.shape(kmats[0])
    for k in kmats:
        if np.shape(k) != shape or len(shape) != 2 or shape[0] != shape[1]:
            raise ValueError(
                f"Kraus operators must be square and of equal shape, got {np.shape(k)}"
            )
    superop = kraus_to_super([Qobj(np.asarray(k, dtype=complex)) for k in kmats])
    return np.asarray(superop.full(), dtype=complex)


def is_trace_preserving(kmats: Sequence[np.ndarray], atol: float = 1e-10) -> bool:
    """Whether ``Σ K† K == I``."""
    total = sum(np.conj(np.transpose(k)) @ k for k in kmats)
    return bool(np.allclose(total, np.eye(total.shape[0]), atol=atol))


# =============================================================================
# STANDARD SINGLE-QUBIT CHANNELS
# =============================================================================

def _check_probability(name: str, p: float):
    if not 0.0 <= p <= 1.0:
        raise ValueError(f"{name} must be in [0, 1], got {p}")


def pauli_channel_kraus(px: float, py: float, pz: float) -> List[np.ndarray]:
    """Kraus set of the asymmetric Pauli channel."""
    for name, p in (("px", px), ("py", py), ("pz", pz)):
        _check_probability(name, p)
    p_id = 1.0 - px - py - pz
    if p_id < -1e-12:
        raise ValueError(f"Pauli error probabilities sum to {px + py + pz} > 1")
    p_id = max(p_id, 0.0)
    kmats = []
    for p, pauli in ((p_id, PAULI_I), (px, PAULI_X), (py, PAULI_Y), (pz, PAULI_Z)):
        if p > 0:
            kmats.append(np.sqrt(p) * pauli)
    return kmats


def bit_flip_kraus(p: float) -> List[np.ndarray]:
    return pauli_channel_kraus(p, 0.0, 0.0)


def phase_flip_kraus(p: float) -> List[np.ndarray]:
    return pauli_channel_kraus(0.0, 0.0, p)


def depolarizing_kraus(p: float) -> List[np.ndarray]:
    """Symmetric depolarizing channel with total error probability ``p``."""
    _check_probability("p", p)
    return pauli_channel_kraus(p / 3, p / 3, p / 3)


def amplitude_damping_kraus(gamma: float) -> List[np.ndarray]:
    _check_probability("gamma", gamma)
    k0 = np.array([[1, 0], [0, np.sqrt(1 - gamma)]], dtype=complex)
    k1 = np.array([[0, np.sqrt(gamma)], [0, 0]], dtype=complex)
    return [k0, k1]
