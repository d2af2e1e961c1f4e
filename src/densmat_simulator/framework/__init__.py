# Framework
#
# Collaborators of the density-matrix engine: the instruction model, the
# classical register, the random source and the result sink.
#
# Modules:
#   - operations: Op, OpType, DataSubType, RegComparison, op factories
#   - creg: ClassicalRegister (measure storage, bfunc, readout error)
#   - rng: RngEngine (uniform and weighted draws)
#   - results: ExperimentResult (named saved artifacts, counts)

from .operations import (
    Op,
    OpType,
    DataSubType,
    RegComparison,
    SAVE_TYPES,
    make_gate,
    make_measure,
    make_reset,
    make_barrier,
    make_matrix,
    make_diagonal_matrix,
    make_kraus,
    make_superop,
    make_set_statevector,
    make_set_density_matrix,
    make_save_state,
    make_save_density_matrix,
    make_save_probs,
    make_save_amps_sq,
    make_save_expval,
    make_bfunc,
    make_roerror,
    make_jump,
    make_mark,
    pauli_expval_params,
)
from .creg import ClassicalRegister
from .rng import RngEngine
from .results import ExperimentResult

__all__ = [
    "Op",
    "OpType",
    "DataSubType",
    "RegComparison",
    "SAVE_TYPES",
    "make_gate",
    "make_measure",
    "make_reset",
    "make_barrier",
    "make_matrix",
    "make_diagonal_matrix",
    "make_kraus",
    "make_superop",
    "make_set_statevector",
    "make_set_density_matrix",
    "make_save_state",
    "make_save_density_matrix",
    "make_save_probs",
    "make_save_amps_sq",
    "make_save_expval",
    "make_bfunc",
    "make_roerror",
    "make_jump",
    "make_mark",
    "pauli_expval_params",
    "ClassicalRegister",
    "RngEngine",
    "ExperimentResult",
]
