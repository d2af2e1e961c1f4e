"""
Density-Matrix State
====================

The state-evolution engine: takes one ``Op`` at a time, checks its
classical guard, and turns it into updates of the vectorized density
matrix held by the backing store.

WHAT HAPPENS TO EACH INSTRUCTION
--------------------------------

- **Gates** are looked up in ``GATESET``. Permutation gates (X, CNOT, SWAP,
  Toffoli) and Y are applied directly on both halves of the superoperator
  index; phase gates go through the diagonal path; everything else is a
  dense ``conj(U) ⊗ U`` update.
- **Noise** (``kraus``) is folded into one superoperator and applied once.
- **Measurement** draws an outcome from the diagonal, projects and
  renormalizes, and writes the bits to the classical register.
- **Reset** is the deterministic reset channel, no sampling involved.
- **Save** instructions read the state (partial trace, probabilities,
  Pauli expectation values) and hand the data to the result sink.

CHUNKED OPERATION
-----------------

When ``num_global_qubits`` exceeds the store's qubit count the store holds
one block of a larger matrix. Controlled gates with global controls are
rerouted by ``chunk_utils.route_gate_op`` and diagonal gates are reduced by
``chunk_utils.block_diagonal_matrix``; the caller's ops are never modified.
"""

import warnings
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional, Sequence, Tuple, Type

import numpy as np

from ..backends.base import DensityMatrixStorage
from ..backends.densitymatrix import DensityMatrix, Y_MATRIX
from ..configurations import SimulatorConfig, get_default_config
from ..constants import DEFAULT_SAVE_KEY, METHOD_KEY_PLACEHOLDER, T_PHASE, TDG_PHASE
from ..errors import IncompleteSaveError, InvalidGateError, InvalidInstructionError, QubitCountMismatchError
from ..framework.creg import ClassicalRegister
from ..framework.operations import DataSubType, Op, OpType
from ..framework.results import ExperimentResult
from ..framework.rng import RngEngine
from ..utils.math_utils import int2reg, vec2ket
from . import gates as G
from .chunk_utils import ChunkContext, ChunkSide, block_diagonal_matrix, column_qubits, route_gate_op
from .noise import kraus_superop
from .partial_trace import reduced_density_matrix


class DensityMatrixState:
    """
    Density-matrix simulation state for one register (or one chunk of it).

    Parameters
    ----------
    config : SimulatorConfig, optional
        Thresholds and thread budget. Defaults to ``get_default_config()``.
    storage_cls : type
        ``DensityMatrixStorage`` implementation used for the register

    Attributes
    ----------
    qreg : DensityMatrixStorage
        Backing store of the (local) density matrix
    creg : ClassicalRegister
        Classical memory and registers of the current shot
    num_global_qubits : int
        Qubits of the full register; larger than ``qreg.num_qubits`` when
        this state holds a single chunk

    Example
    -------
    >>> state = DensityMatrixState()
    >>> state.initialize_qreg(2)
    >>> state.apply_op(make_gate("h", [0]), result, rng)
    >>> state.apply_op(make_gate("cx", [0, 1]), result, rng)
    >>> state.measure_probs([0, 1])
    array([0.5, 0. , 0. , 0.5])
    """

    def __init__(self, config: Optional[SimulatorConfig] = None,
                 storage_cls: Type[DensityMatrixStorage] = DensityMatrix):
        self._storage_cls = storage_cls
        self.qreg = storage_cls()
        self.creg = ClassicalRegister()
        self.num_global_qubits = 0
        self.set_config(config if config is not None else get_default_config())

    # =========================================================================
    # CONFIGURATION AND ALLOCATION
    # =========================================================================

    def set_config(self, config: SimulatorConfig):
        self.config = config
        self._configure_store()

    def _configure_store(self):
        self.qreg.set_json_chop_threshold(self.config.chop_threshold)
        self.qreg.set_omp_threshold(self.config.parallel_threshold)
        self.qreg.set_omp_threads(self.config.threads)

    def required_memory_mb(self, num_qubits: int, ops: Sequence[Op] = ()) -> int:
        """Megabytes needed for an ``num_qubits`` density matrix."""
        return self._storage_cls().required_memory_mb(2 * num_qubits)

    def allocate(self, num_qubits: int, block_bits: Optional[int] = None):
        """
        Size the store for a register of ``num_qubits``.

        ``block_bits`` smaller than ``num_qubits`` makes this state a chunk
        holding ``block_bits`` local qubits.
        """
        local = num_qubits if block_bits is None else block_bits
        if local > num_qubits:
            raise ValueError(
                f"Chunk of {local} qubits does not fit a {num_qubits}-qubit register"
            )
        self.num_global_qubits = num_qubits
        self.qreg.set_num_qubits(local)
        self._configure_store()

    def set_chunk_index(self, index: int):
        self.qreg.set_chunk_index(index)

    def initialize_creg(self, num_memory: int, num_registers: int):
        self.creg.initialize(num_memory, num_registers)

    def initialize_qreg(self, num_qubits: int):
        """Reset the register to |0...0><0...0|."""
        self.num_global_qubits = num_qubits
        self.qreg.set_num_qubits(num_qubits)
        self._configure_store()
        self.qreg.initialize()

    def initialize_qreg_from_state(self, num_qubits: int, store: DensityMatrixStorage):
        """Adopt an existing store as the register."""
        if store.num_qubits != num_qubits:
            store.clear()
            raise QubitCountMismatchError(
                f"DensityMatrixState: initial state has {store.num_qubits} qubits "
                f"but {num_qubits} were requested"
            )
        self.num_global_qubits = num_qubits
        self.qreg = store
        self._configure_store()

    def initialize_from_vector(self, params: Sequence[complex]):
        self.qreg.initialize_from_vector(params)

    @property
    def num_qubits(self) -> int:
        return self.qreg.num_qubits

    def _chunk_routing_active(self) -> bool:
        return (self.num_global_qubits > self.qreg.num_qubits
                and not self.qreg.support_global_indexing())

    def chunk_context(self) -> ChunkContext:
        return ChunkContext(self.qreg.num_qubits, self.num_global_qubits,
                            self.qreg.chunk_index())

    # =========================================================================
    # DISPATCH
    # =========================================================================

    def apply_op(self, op: Op, result: ExperimentResult, rng: RngEngine,
                 final_op: bool = False):
        """
        Apply one instruction.

        Parameters
        ----------
        op : Op
            Instruction to apply
        result : ExperimentResult
            Sink for save instructions
        rng : RngEngine
            Random source for measurement and readout error
        final_op : bool
            True if no instruction follows; full-state saves may then move
            the buffer out instead of copying it
        """
        if not self.creg.check_conditional(op):
            return

        t = op.type
        if t in (OpType.barrier, OpType.qerror_loc, OpType.mark, OpType.jump):
            return
        elif t == OpType.reset:
            self.apply_reset(op.qubits)
        elif t == OpType.measure:
            self.apply_measure(op.qubits, op.memory, op.registers, rng)
        elif t == OpType.bfunc:
            self.creg.apply_bfunc(op)
        elif t == OpType.roerror:
            self.creg.apply_roerror(op, rng)
        elif t == OpType.gate:
            self.apply_gate(op)
        elif t == OpType.matrix:
            self.apply_matrix(op.qubits, op.mats[0])
        elif t == OpType.diagonal_matrix:
            self.apply_diagonal_unitary_matrix(op.qubits, op.params)
        elif t == OpType.superop:
            self.qreg.apply_superop_matrix(op.qubits, op.mats[0])
        elif t == OpType.kraus:
            self.apply_kraus(op.qubits, op.mats)
        elif t == OpType.set_statevec:
            self.initialize_from_vector(op.params)
        elif t == OpType.set_densmat:
            self.qreg.initialize_from_matrix(op.mats[0])
        elif t in (OpType.save_expval, OpType.save_expval_var):
            self.apply_save_expval(op, result)
        elif t == OpType.save_state:
            self.apply_save_state(op, result, final_op)
        elif t == OpType.save_densmat:
            self.apply_save_density_matrix(op, result, final_op)
        elif t in (OpType.save_probs, OpType.save_probs_ket):
            self.apply_save_probs(op, result)
        elif t == OpType.save_amps_sq:
            self.apply_save_amplitudes_sq(op, result)
        else:
            raise InvalidInstructionError(
                f"DensityMatrixState: invalid instruction '{op.name}'"
            )

    def apply_ops(self, ops: Sequence[Op], result: ExperimentResult, rng: RngEngine,
                  final_ops: bool = False):
        """Apply a straight-line sequence of ops (no jump resolution)."""
        last = len(ops) - 1
        for i, op in enumerate(ops):
            self.apply_op(op, result, rng, final_ops and i == last)

    # =========================================================================
    # GATES
    # =========================================================================

    def apply_gate(self, op: Op):
        if self._chunk_routing_active():
            route = route_gate_op(op, self.chunk_context())
            if route.side == ChunkSide.skip:
                return
            if route.side in (ChunkSide.ket, ChunkSide.bra):
                self.apply_gate_statevector(route.op)
                return
            op = route.op

        gate = G.resolve_gate(op.name)
        q = op.qubits
        params = [float(np.real(p)) for p in op.params]

        if gate == G.Gates.u3:
            self.qreg.apply_unitary_matrix(q, G.u3_matrix(*params[:3]))
        elif gate == G.Gates.u2:
            self.qreg.apply_unitary_matrix(q, G.u2_matrix(*params[:2]))
        elif gate == G.Gates.u1:
            self.apply_phase(q[0], np.exp(1j * params[0]))
        elif gate == G.Gates.cx:
            self.qreg.apply_cnot(q[0], q[1])
        elif gate == G.Gates.cy:
            self.qreg.apply_cy(q[0], q[1])
        elif gate == G.Gates.cz:
            self.qreg.apply_cphase(q[0], q[1], -1)
        elif gate == G.Gates.cp:
            self.qreg.apply_cphase(q[0], q[1], np.exp(1j * params[0]))
        elif gate == G.Gates.id:
            pass
        elif gate == G.Gates.x:
            self.qreg.apply_x(q[0])
        elif gate == G.Gates.y:
            self.qreg.apply_y(q[0])
        elif gate == G.Gates.z:
            self.apply_phase(q[0], -1)
        elif gate == G.Gates.h:
            self.qreg.apply_unitary_matrix(q, G.h_matrix())
        elif gate == G.Gates.s:
            self.apply_phase(q[0], 1j)
        elif gate == G.Gates.sdg:
            self.apply_phase(q[0], -1j)
        elif gate == G.Gates.t:
            self.apply_phase(q[0], T_PHASE)
        elif gate == G.Gates.tdg:
            self.apply_phase(q[0], TDG_PHASE)
        elif gate == G.Gates.sx:
            self.qreg.apply_unitary_matrix(q, G.SX_MATRIX)
        elif gate == G.Gates.sxdg:
            self.qreg.apply_unitary_matrix(q, G.SXDG_MATRIX)
        elif gate == G.Gates.swap:
            self.qreg.apply_swap(q[0], q[1])
        elif gate == G.Gates.ecr:
            self.qreg.apply_unitary_matrix(q, G.ECR_MATRIX)
        elif gate == G.Gates.ccx:
            self.qreg.apply_toffoli(q[0], q[1], q[2])
        elif gate == G.Gates.r:
            self.qreg.apply_unitary_matrix(q, G.r_matrix(params[0], params[1]))
        elif gate == G.Gates.rx:
            self.qreg.apply_unitary_matrix(q, G.rx_matrix(params[0]))
        elif gate == G.Gates.ry:
            self.qreg.apply_unitary_matrix(q, G.ry_matrix(params[0]))
        elif gate == G.Gates.rz:
            self.apply_diagonal_unitary_matrix(q, G.rz_diag(params[0]))
        elif gate == G.Gates.rxx:
            self.qreg.apply_unitary_matrix(q, G.rxx_matrix(params[0]))
        elif gate == G.Gates.ryy:
            self.qreg.apply_unitary_matrix(q, G.ryy_matrix(params[0]))
        elif gate == G.Gates.rzz:
            self.apply_diagonal_unitary_matrix(q, G.rzz_diag(params[0]))
        elif gate == G.Gates.rzx:
            self.qreg.apply_unitary_matrix(q, G.rzx_matrix(params[0]))
        elif gate == G.Gates.pauli:
            self.apply_pauli(q, op.string_params[0])
        else:
            raise InvalidGateError(
                f"DensityMatrixState: invalid gate instruction '{op.name}'"
            )

    def apply_gate_statevector(self, op: Op):
        """
        One-sided update used for chunk blocks where only the row (ket) or
        only the column (bra) side satisfies the global controls.

        Qubits at or above the chunk's local count are column qubits; gates
        on them are applied complex-conjugated.
        """
        gate = G.resolve_gate(op.name)
        q = list(op.qubits)
        on_columns = bool(q) and q[-1] >= self.qreg.num_qubits

        if gate in (G.Gates.x, G.Gates.cx):
            self.qreg.apply_mcx(q)
        elif gate in (G.Gates.y, G.Gates.cy):
            if on_columns:
                self.qreg.apply_mcu(q, np.conj(Y_MATRIX))
            else:
                self.qreg.apply_mcy(q)
        elif gate in (G.Gates.z, G.Gates.cz):
            self.qreg.apply_mcphase(q, -1)
        elif gate in (G.Gates.u1, G.Gates.cp):
            phase = np.exp(1j * float(np.real(op.params[0])))
            self.qreg.apply_mcphase(q, np.conj(phase) if on_columns else phase)
        else:
            raise InvalidGateError(
                f"DensityMatrixState: invalid gate instruction '{op.name}' "
                f"for a one-sided chunk update"
            )

    def apply_matrix(self, qubits: Sequence[int], mat: np.ndarray):
        """Unitary matrix op; a single-row matrix is a diagonal."""
        mat = np.asarray(mat, dtype=complex)
        if mat.shape[0] == 1:
            self.apply_diagonal_unitary_matrix(qubits, mat[0])
        else:
            self.qreg.apply_unitary_matrix(qubits, mat)

    def apply_diagonal_unitary_matrix(self, qubits: Sequence[int], diag: Sequence[complex]):
        qubits = list(qubits)
        diag = np.asarray(diag, dtype=complex).ravel()
        if not self._chunk_routing_active():
            self.qreg.apply_diagonal_unitary_matrix(qubits, diag)
            return

        ctx = self.chunk_context()
        qubits_in, diag_in = block_diagonal_matrix(ctx.chunk_index, ctx.num_local_qubits,
                                                   qubits, diag)
        if len(qubits_in) == len(qubits) and qubits_in == qubits:
            self.qreg.apply_diagonal_unitary_matrix(qubits, diag)
            return

        _, diag_row = block_diagonal_matrix(ctx.chunk_index, ctx.num_local_qubits,
                                            column_qubits(qubits, ctx), diag)
        qubits_chunk = list(qubits_in) + [q + ctx.num_local_qubits for q in qubits_in]
        self.qreg.apply_diagonal_matrix(qubits_chunk, np.kron(np.conj(diag_row), diag_in))

    def apply_phase(self, qubit: int, phase: complex):
        self.apply_diagonal_unitary_matrix([qubit], G.phase_diag(phase))

    def apply_pauli(self, qubits: Sequence[int], pauli: str):
        # As a superoperator a Pauli string is (-1)^{#Y} P ⊗ P
        coeff = -1 if pauli.upper().count("Y") % 2 else 1
        self.qreg.apply_pauli(self.qreg.superop_qubits(qubits), pauli + pauli, coeff)

    def apply_kraus(self, qubits: Sequence[int], kmats: Sequence[np.ndarray]):
        self.qreg.apply_superop_matrix(qubits, kraus_superop(kmats))

    # =========================================================================
    # MEASUREMENT AND RESET
    # =========================================================================

    def measure_probs(self, qubits: Sequence[int]) -> np.ndarray:
        """Outcome probabilities of ``qubits`` (``qubits[0]`` is the LSB)."""
        return self.qreg.probabilities(qubits)

    def sample_measure_with_prob(self, qubits: Sequence[int], rng: RngEngine) -> Tuple[int, float]:
        probs = self.measure_probs(qubits)
        outcome = rng.rand_int(probs)
        return outcome, float(probs[outcome])

    def measure_reset_update(self, qubits: Sequence[int], final_state: int, meas_state: int,
                             meas_prob: float):
        """
        Project ``qubits`` onto ``meas_state``, renormalize, then move the
        population to ``final_state`` if it differs.
        """
        if meas_prob <= self.config.chop_threshold:
            warnings.warn(
                f"Renormalizing measurement outcome {meas_state} of qubits {list(qubits)} "
                f"with probability {meas_prob:.3e} (chop threshold "
                f"{self.config.chop_threshold:g}); the post-measurement state may be "
                f"numerically unreliable.",
                UserWarning
            )
        dim = 1 << len(qubits)
        mdiag = np.zeros(dim, dtype=complex)
        mdiag[meas_state] = 1.0 / np.sqrt(meas_prob)
        self.apply_diagonal_unitary_matrix(qubits, mdiag)

        if final_state == meas_state:
            return
        if len(qubits) == 1:
            self.qreg.apply_x(qubits[0])
        else:
            perm = np.eye(dim, dtype=complex)
            perm[[final_state, meas_state]] = perm[[meas_state, final_state]]
            self.qreg.apply_unitary_matrix(qubits, perm)

    def apply_measure(self, qubits: Sequence[int], memory: Sequence[int],
                      registers: Sequence[int], rng: RngEngine):
        outcome, prob = self.sample_measure_with_prob(qubits, rng)
        self.measure_reset_update(qubits, outcome, outcome, prob)
        self.creg.store_measure(int2reg(outcome, 2, len(qubits)), memory, registers)

    def apply_reset(self, qubits: Sequence[int]):
        self.qreg.apply_reset(qubits)

    def sample_measure(self, qubits: Sequence[int], shots: int, rng: RngEngine) -> List[List[int]]:
        """
        Draw ``shots`` measurement records of ``qubits`` without collapsing
        the state. Each record lists the bit of ``qubits[i]`` at position i.
        """
        rnds = rng.rand(0.0, 1.0, size=shots)
        allbit_samples = self.qreg.sample_measure(rnds)
        n = self.qreg.num_qubits
        samples = []
        for value in allbit_samples:
            bits = int2reg(int(value), 2, n)
            samples.append([bits[q] for q in qubits])
        return samples

    # =========================================================================
    # SAVE INSTRUCTIONS
    # =========================================================================

    def apply_save_probs(self, op: Op, result: ExperimentResult):
        probs = self.measure_probs(op.qubits)
        if op.type == OpType.save_probs_ket:
            datum = vec2ket(probs, self.config.chop_threshold, 16)
        else:
            datum = probs
        result.save_data_average(self.creg, op.string_params[0], datum, op.type, op.save_type)

    def apply_save_amplitudes_sq(self, op: Op, result: ExperimentResult):
        if not op.int_params:
            raise ValueError("Invalid save_amplitudes_sq instruction (empty params).")
        size = len(op.int_params)
        if size > 2 ** self.config.parallel_threshold and self.config.threads > 1:
            with ThreadPoolExecutor(max_workers=self.config.threads) as executor:
                amps_sq = np.fromiter(executor.map(self.qreg.probability, op.int_params),
                                      dtype=float, count=size)
        else:
            amps_sq = np.array([self.qreg.probability(i) for i in op.int_params], dtype=float)
        result.save_data_average(self.creg, op.string_params[0], amps_sq, op.type, op.save_type)

    def expval_pauli(self, qubits: Sequence[int], pauli: str) -> float:
        return self.qreg.expval_pauli(qubits, pauli)

    def apply_save_expval(self, op: Op, result: ExperimentResult):
        if not op.expval_params:
            raise ValueError("Invalid save expval instruction (Pauli components are empty).")
        variance = op.type == OpType.save_expval_var
        expval = 0.0
        sq_expval = 0.0
        for pauli, coeff, sq_coeff in op.expval_params:
            val = self.expval_pauli(op.qubits, pauli)
            expval += coeff * val
            if variance:
                sq_expval += sq_coeff * val
        if variance:
            datum = np.array([expval, sq_expval - expval * expval])
        else:
            datum = expval
        result.save_data_average(self.creg, op.string_params[0], datum, op.type, op.save_type)

    def apply_save_density_matrix(self, op: Op, result: ExperimentResult, final_op: bool = False):
        result.save_data_average(self.creg, op.string_params[0],
                                 self.reduced_density_matrix(op.qubits, final_op),
                                 op.type, op.save_type)

    def apply_save_state(self, op: Op, result: ExperimentResult, final_op: bool = False):
        if len(op.qubits) != self.qreg.num_qubits:
            raise IncompleteSaveError(
                f"{op.name} was not applied to all qubits. Only the full state can be saved."
            )
        if op.save_type == DataSubType.single:
            save_type = DataSubType.average
        elif op.save_type == DataSubType.c_single:
            save_type = DataSubType.c_average
        else:
            save_type = op.save_type

        key = op.string_params[0] if op.string_params else METHOD_KEY_PLACEHOLDER
        if key == METHOD_KEY_PLACEHOLDER:
            key = DEFAULT_SAVE_KEY
        datum = self.move_to_matrix() if final_op else self.copy_to_matrix()
        result.save_data_average(self.creg, key, datum, OpType.save_densmat, save_type)

    def reduced_density_matrix(self, qubits: Sequence[int], final_op: bool = False) -> np.ndarray:
        return reduced_density_matrix(self.qreg, qubits, final_op, self.config)

    def copy_to_matrix(self) -> np.ndarray:
        return self.qreg.copy_to_matrix()

    def move_to_matrix(self) -> np.ndarray:
        return self.qreg.move_to_matrix()
