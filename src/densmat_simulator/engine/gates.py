"""
Gate Table and Gate Matrices
============================

Maps instruction names onto the closed ``Gates`` enum and builds the
matrices of the parametrized gates.

Matrix convention: for a gate on ``qubits = [q0, q1, ...]`` the matrix index
is little-endian, so ``q0`` is the least significant bit. In terms of
``np.kron`` this means ``kron(A, B)`` puts ``B`` on ``q0`` and ``A`` on
``q1``.

Conventions for the rotations
-----------------------------

    u3(θ, φ, λ) = [[cos(θ/2),          -e^{iλ} sin(θ/2)     ],
                   [e^{iφ} sin(θ/2),    e^{i(φ+λ)} cos(θ/2) ]]

    rx(θ) = exp(-iθX/2),  ry(θ) = exp(-iθY/2),  rz(θ) = exp(-iθZ/2)
    r(θ, φ) = exp(-iθ(cos φ X + sin φ Y)/2)

    rxx(θ) = exp(-iθ X⊗X/2),  ryy(θ) = exp(-iθ Y⊗Y/2)
    rzz(θ) = exp(-iθ Z⊗Z/2),  rzx(θ) = exp(-iθ X⊗Z/2)   (Z on q0, X on q1)

The two-qubit Pauli rotations are built with ``scipy.linalg.expm`` on the
Pauli products; rz and rzz are returned as diagonals so they can go
through the diagonal path.
"""

from enum import Enum
from typing import Dict

import numpy as np
from scipy.linalg import expm

from ..constants import SQRT2_INV
from ..errors import InvalidGateError


class Gates(Enum):
    """Closed set of gates understood by the density-matrix engine."""
    u1 = "u1"
    u2 = "u2"
    u3 = "u3"
    r = "r"
    rx = "rx"
    ry = "ry"
    rz = "rz"
    id = "id"
    x = "x"
    y = "y"
    z = "z"
    h = "h"
    s = "s"
    sdg = "sdg"
    sx = "sx"
    sxdg = "sxdg"
    t = "t"
    tdg = "tdg"
    cx = "cx"
    cy = "cy"
    cz = "cz"
    swap = "swap"
    rxx = "rxx"
    ryy = "ryy"
    rzz = "rzz"
    rzx = "rzx"
    ccx = "ccx"
    cp = "cp"
    pauli = "pauli"
    ecr = "ecr"


GATESET: Dict[str, Gates] = {
    # Single-qubit gates
    "delay": Gates.id,
    "id": Gates.id,
    "x": Gates.x,
    "y": Gates.y,
    "z": Gates.z,
    "h": Gates.h,
    "s": Gates.s,
    "sdg": Gates.sdg,
    "t": Gates.t,
    "tdg": Gates.tdg,
    "sx": Gates.sx,
    "sxdg": Gates.sxdg,
    "x90": Gates.sx,
    "r": Gates.r,
    "rx": Gates.rx,
    "ry": Gates.ry,
    "rz": Gates.rz,
    "p": Gates.u1,
    "u1": Gates.u1,
    "u2": Gates.u2,
    "u3": Gates.u3,
    "u": Gates.u3,
    "U": Gates.u3,
    # Two-qubit gates
    "CX": Gates.cx,
    "cx": Gates.cx,
    "cy": Gates.cy,
    "cz": Gates.cz,
    "cp": Gates.cp,
    "cu1": Gates.cp,
    "swap": Gates.swap,
    "rxx": Gates.rxx,
    "ryy": Gates.ryy,
    "rzz": Gates.rzz,
    "rzx": Gates.rzx,
    "ecr": Gates.ecr,
    # Three-qubit gates
    "ccx": Gates.ccx,
    # N-qubit gates
    "pauli": Gates.pauli,
}


def resolve_gate(name: str) -> Gates:
    """Look up a gate name; unknown names raise ``InvalidGateError``."""
    try:
        return GATESET[name]
    except KeyError:
        raise InvalidGateError(f"DensityMatrixState: invalid gate instruction '{name}'") from None


# =============================================================================
# PAULI MATRICES
# =============================================================================

PAULI_I = np.eye(2, dtype=complex)
PAULI_X = np.array([[0, 1], [1, 0]], dtype=complex)
PAULI_Y = np.array([[0, -1j], [1j, 0]], dtype=complex)
PAULI_Z = np.array([[1, 0], [0, -1]], dtype=complex)


# =============================================================================
# SINGLE-QUBIT MATRICES
# =============================================================================

def u3_matrix(theta: float, phi: float, lam: float) -> np.ndarray:
    c, s = np.cos(theta / 2), np.sin(theta / 2)
    return np.array([
        [c, -np.exp(1j * lam) * s],
        [np.exp(1j * phi) * s, np.exp(1j * (phi + lam)) * c],
    ], dtype=complex)


def u2_matrix(phi: float, lam: float) -> np.ndarray:
    return u3_matrix(np.pi / 2, phi, lam)


def h_matrix() -> np.ndarray:
    return u3_matrix(np.pi / 2, 0.0, np.pi)


def rx_matrix(theta: float) -> np.ndarray:
    c, s = np.cos(theta / 2), np.sin(theta / 2)
    return np.array([[c, -1j * s], [-1j * s, c]], dtype=complex)


def ry_matrix(theta: float) -> np.ndarray:
    c, s = np.cos(theta / 2), np.sin(theta / 2)
    return np.array([[c, -s], [s, c]], dtype=complex)


def r_matrix(theta: float, phi: float) -> np.ndarray:
    c, s = np.cos(theta / 2), np.sin(theta / 2)
    return np.array([
        [c, -1j * np.exp(-1j * phi) * s],
        [-1j * np.exp(1j * phi) * s, c],
    ], dtype=complex)


SX_MATRIX = 0.5 * np.array([[1 + 1j, 1 - 1j], [1 - 1j, 1 + 1j]], dtype=complex)
SXDG_MATRIX = SX_MATRIX.conj().T

ECR_MATRIX = SQRT2_INV * np.array([
    [0, 1, 0, 1j],
    [1, 0, -1j, 0],
    [0, 1j, 0, 1],
    [-1j, 0, 1, 0],
], dtype=complex)


# =============================================================================
# DIAGONALS
# =============================================================================

def phase_diag(phase: complex) -> np.ndarray:
    """Diagonal ``[1, phase]`` of a single-qubit phase gate."""
    return np.array([1.0, phase], dtype=complex)


def rz_diag(theta: float) -> np.ndarray:
    return np.array([np.exp(-0.5j * theta), np.exp(0.5j * theta)], dtype=complex)


def rzz_diag(theta: float) -> np.ndarray:
    minus, plus = np.exp(-0.5j * theta), np.exp(0.5j * theta)
    return np.array([minus, plus, plus, minus], dtype=complex)


# =============================================================================
# TWO-QUBIT PAULI ROTATIONS
# =============================================================================

def _pauli_rotation(generator: np.ndarray, theta: float) -> np.ndarray:
    return expm(-0.5j * theta * generator)


def rxx_matrix(theta: float) -> np.ndarray:
    return _pauli_rotation(np.kron(PAULI_X, PAULI_X), theta)


def ryy_matrix(theta: float) -> np.ndarray:
    return _pauli_rotation(np.kron(PAULI_Y, PAULI_Y), theta)


def rzx_matrix(theta: float) -> np.ndarray:
    """exp(-iθ/2 X⊗Z) with Z on the first qubit and X on the second."""
    return _pauli_rotation(np.kron(PAULI_X, PAULI_Z), theta)
