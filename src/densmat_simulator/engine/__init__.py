# State-Evolution Engine
#
# Turns instructions into updates of the vectorized density matrix.
#
# Modules:
#   - gates: Gates enum, GATESET name table, gate matrices and diagonals
#   - chunk_utils: routing of gates with global (chunk) qubits
#   - partial_trace: reduced density matrices
#   - noise: Kraus sets to superoperators, standard channels
#   - state: DensityMatrixState (dispatch, measurement, save instructions)

from .gates import Gates, GATESET, resolve_gate
from .chunk_utils import (
    ChunkContext,
    ChunkRoute,
    ChunkSide,
    route_gate_op,
    block_diagonal_matrix,
)
from .partial_trace import reduced_density_matrix
from .noise import (
    kraus_superop,
    pauli_channel_kraus,
    bit_flip_kraus,
    phase_flip_kraus,
    depolarizing_kraus,
    amplitude_damping_kraus,
)
from .state import DensityMatrixState

__all__ = [
    "Gates",
    "GATESET",
    "resolve_gate",
    "ChunkContext",
    "ChunkRoute",
    "ChunkSide",
    "route_gate_op",
    "block_diagonal_matrix",
    "reduced_density_matrix",
    "kraus_superop",
    "pauli_channel_kraus",
    "bit_flip_kraus",
    "phase_flip_kraus",
    "depolarizing_kraus",
    "amplitude_damping_kraus",
    "DensityMatrixState",
]
