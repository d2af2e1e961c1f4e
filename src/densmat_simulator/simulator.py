"""
Density-Matrix Circuit Driver
=============================

Runs a list of ``Op`` objects for a number of shots and collects the
classical outcomes and saved data in an ``ExperimentResult``.

EXECUTION MODES
---------------

**Per-shot**
    Every shot starts from |0...0><0...0| and walks the op list, following
    ``jump``/``mark`` control flow. Measurements collapse the state.

**Measurement sampling**
    If everything from the first measurement onwards is a measurement (or
    barrier), nothing is conditional and there is no control flow, the
    density matrix before the measurements is the same for every shot. The
    prefix then runs once and all shots are drawn from its diagonal in a
    single ``sample_measure`` call.

CHUNKED EXECUTION
-----------------

``ChunkedDensityMatrix`` splits a register into ``4^G`` blocks of
``2^L x 2^L`` entries (``G = N - L`` global qubits) and evolves each block
with its own ``DensityMatrixState``. Only ops that never mix blocks can be
applied this way: ops on local qubits, controlled gates whose controls are
global, and diagonal gates on any qubit.
"""

from typing import Dict, List, Optional, Sequence

import numpy as np

from .backends.densitymatrix import DensityMatrix
from .configurations import SimulatorConfig, get_default_config
from .engine.chunk_utils import PHASE_GATE_NAMES, is_controlled_gate
from .engine.gates import GATESET, Gates
from .engine.state import DensityMatrixState
from .framework.operations import SAVE_TYPES, DataSubType, Op, OpType
from .framework.results import ExperimentResult
from .framework.rng import RngEngine


# Gates that are diagonal in the computational basis
DIAGONAL_GATES = frozenset({
    Gates.id, Gates.z, Gates.s, Gates.sdg, Gates.t, Gates.tdg,
    Gates.u1, Gates.rz, Gates.cz, Gates.cp, Gates.rzz,
})


def _classical_sizes(ops: Sequence[Op]):
    num_memory = 0
    num_registers = 0
    for op in ops:
        if op.memory:
            num_memory = max(num_memory, max(op.memory) + 1)
        if op.registers:
            num_registers = max(num_registers, max(op.registers) + 1)
        if op.conditional:
            num_registers = max(num_registers, op.conditional_reg + 1)
    return num_memory, num_registers


def _find_marks(ops: Sequence[Op]) -> Dict[str, int]:
    marks = {}
    for pos, op in enumerate(ops):
        if op.type == OpType.mark:
            name = op.string_params[0]
            if name in marks:
                raise ValueError(f"Duplicate mark '{name}' at positions {marks[name]} and {pos}")
            marks[name] = pos
    return marks


def can_sample_measure(ops: Sequence[Op]) -> bool:
    """Whether all shots can be drawn from a single pre-measurement state."""
    first = next((i for i, op in enumerate(ops) if op.type == OpType.measure), None)
    if first is None:
        return False
    for op in ops:
        if op.conditional or op.type in (OpType.jump, OpType.mark, OpType.bfunc, OpType.roerror):
            return False
        if op.type in SAVE_TYPES and op.save_type in (DataSubType.list, DataSubType.c_list):
            return False
    return all(op.type in (OpType.measure, OpType.barrier) for op in ops[first:])


class DensityMatrixSimulator:
    """
    Shot-based density-matrix circuit simulator.

    Parameters
    ----------
    config : SimulatorConfig, optional
        Thresholds, thread budget, memory limit and default seed
    verbose : bool
        Print a run summary

    Example
    -------
    >>> sim = DensityMatrixSimulator()
    >>> ops = [make_gate("h", [0]), make_gate("cx", [0, 1]), make_measure([0, 1])]
    >>> result = sim.run(ops, num_qubits=2, shots=1000, seed=7)
    >>> sorted(result.counts)
    ['0x0', '0x3']
    """

    def __init__(self, config: Optional[SimulatorConfig] = None, verbose: bool = False):
        self.config = config if config is not None else get_default_config()
        self.verbose = verbose

    def run(self, ops: Sequence[Op], num_qubits: int, shots: int = 1,
            seed: Optional[int] = None) -> ExperimentResult:
        """
        Simulate ``ops`` on an ``num_qubits`` register.

        Parameters
        ----------
        ops : sequence of Op
            Instructions in program order
        num_qubits : int
            Register size
        shots : int
            Number of repetitions
        seed : int, optional
            Seed for this run; falls back to ``config.seed``

        Returns
        -------
        ExperimentResult
            Counts and memory per shot plus all saved data
        """
        if shots < 1:
            raise ValueError(f"shots must be >= 1, got {shots}")
        ops = list(ops)
        state = DensityMatrixState(self.config)

        required_mb = state.required_memory_mb(num_qubits, ops)
        if self.config.max_memory_mb is not None and required_mb > self.config.max_memory_mb:
            raise ValueError(
                f"A {num_qubits}-qubit density matrix needs {required_mb} MB, "
                f"which exceeds max_memory_mb={self.config.max_memory_mb}"
            )

        rng = RngEngine(seed if seed is not None else self.config.seed,
                        self.config.probability_tolerance)
        num_memory, num_registers = _classical_sizes(ops)
        sampling = shots > 1 and can_sample_measure(ops)

        if self.verbose:
            print(f"\n{'='*70}")
            print("DENSITY-MATRIX SIMULATION")
            print(f"{'='*70}")
            print(f"Qubits:            {num_qubits}")
            print(f"Instructions:      {len(ops)}")
            print(f"Shots:             {shots}")
            print(f"Sampling mode:     {'measure sampling' if sampling else 'per shot'}")
            print(f"Memory estimate:   {required_mb} MB")
            print(f"Threads:           {self.config.threads}")

        result = ExperimentResult()
        if sampling:
            self._run_sampled(state, ops, num_qubits, shots, rng, result,
                              num_memory, num_registers)
        else:
            marks = _find_marks(ops)
            for _ in range(shots):
                state.initialize_qreg(num_qubits)
                state.initialize_creg(num_memory, num_registers)
                self._run_shot(state, ops, marks, rng, result)
                if num_memory:
                    result.add_memory(state.creg.memory_hex())

        result.metadata.update({
            "num_qubits": num_qubits,
            "shots": shots,
            "measure_sampling": sampling,
            "required_memory_mb": required_mb,
            "seed": rng.seed,
        })

        if self.verbose:
            print(f"\nSimulation complete! {len(result.counts)} distinct outcomes, "
                  f"{len(list(result.keys()))} saved items")
        return result

    @staticmethod
    def _run_shot(state: DensityMatrixState, ops: List[Op], marks: Dict[str, int],
                  rng: RngEngine, result: ExperimentResult):
        last = len(ops) - 1
        pos = 0
        while pos <= last:
            op = ops[pos]
            if op.type == OpType.jump:
                if state.creg.check_conditional(op):
                    dest = op.string_params[0]
                    if dest not in marks:
                        raise ValueError(f"Jump to unknown mark '{dest}'")
                    pos = marks[dest]
                    continue
            else:
                state.apply_op(op, result, rng, final_op=(pos == last))
            pos += 1

    @staticmethod
    def _run_sampled(state: DensityMatrixState, ops: List[Op], num_qubits: int, shots: int,
                     rng: RngEngine, result: ExperimentResult, num_memory: int,
                     num_registers: int):
        first = next(i for i, op in enumerate(ops) if op.type == OpType.measure)
        state.initialize_qreg(num_qubits)
        state.initialize_creg(num_memory, num_registers)
        state.apply_ops(ops[:first], result, rng)

        meas_ops = [op for op in ops[first:] if op.type == OpType.measure]
        qubits = []
        for op in meas_ops:
            for q in op.qubits:
                if q not in qubits:
                    qubits.append(q)
        position = {q: i for i, q in enumerate(qubits)}

        for sample in state.sample_measure(qubits, shots, rng):
            state.initialize_creg(num_memory, num_registers)
            for op in meas_ops:
                outcome = [sample[position[q]] for q in op.qubits]
                state.creg.store_measure(outcome, op.memory, op.registers)
            if num_memory:
                result.add_memory(state.creg.memory_hex())


# =============================================================================
# CHUNKED EXECUTION
# =============================================================================

class ChunkedDensityMatrix:
    """
    A density matrix evolved as independent ``2^L x 2^L`` blocks.

    Parameters
    ----------
    num_qubits : int
        Register size N
    num_local_qubits : int
        Qubits held by each chunk (L <= N)
    config : SimulatorConfig, optional
        Passed to every chunk state

    Example
    -------
    >>> chunks = ChunkedDensityMatrix(3, 1)
    >>> chunks.initialize_from_matrix(rho)
    >>> chunks.apply_ops([make_gate("cz", [0, 2])])
    >>> rho_out = chunks.to_matrix()
    """

    def __init__(self, num_qubits: int, num_local_qubits: int,
                 config: Optional[SimulatorConfig] = None):
        if not 0 < num_local_qubits <= num_qubits:
            raise ValueError(
                f"num_local_qubits must be in [1, {num_qubits}], got {num_local_qubits}"
            )
        self.num_qubits = num_qubits
        self.num_local_qubits = num_local_qubits
        self.num_global_bits = num_qubits - num_local_qubits
        self.config = config if config is not None else get_default_config()
        self.chunks: List[DensityMatrixState] = []
        for gid in range(self.num_chunks):
            state = DensityMatrixState(self.config, storage_cls=DensityMatrix)
            state.allocate(num_qubits, num_local_qubits)
            state.set_chunk_index(gid)
            self.chunks.append(state)
        self.initialize()

    @property
    def num_chunks(self) -> int:
        return 1 << (2 * self.num_global_bits)

    def _block(self, gid: int):
        size = 1 << self.num_local_qubits
        row_block = gid & ((1 << self.num_global_bits) - 1)
        col_block = gid >> self.num_global_bits
        rows = slice(row_block * size, (row_block + 1) * size)
        cols = slice(col_block * size, (col_block + 1) * size)
        return rows, cols

    def initialize(self):
        """Every chunk zero except the one holding |0...0><0...0|."""
        dim = 1 << self.num_qubits
        rho = np.zeros((dim, dim), dtype=complex)
        rho[0, 0] = 1.0
        self.initialize_from_matrix(rho)

    def initialize_from_matrix(self, mat: np.ndarray):
        mat = np.asarray(mat, dtype=complex)
        dim = 1 << self.num_qubits
        if mat.shape != (dim, dim):
            raise ValueError(f"Expected a ({dim}, {dim}) density matrix, got {mat.shape}")
        for gid, state in enumerate(self.chunks):
            rows, cols = self._block(gid)
            state.qreg.initialize_from_matrix(mat[rows, cols])

    def to_matrix(self) -> np.ndarray:
        """Reassemble the full density matrix from the chunks."""
        dim = 1 << self.num_qubits
        rho = np.zeros((dim, dim), dtype=complex)
        for gid, state in enumerate(self.chunks):
            rows, cols = self._block(gid)
            rho[rows, cols] = state.copy_to_matrix()
        return rho

    def is_chunk_safe(self, op: Op) -> bool:
        """Whether ``op`` can be applied block by block."""
        local = all(q < self.num_local_qubits for q in op.qubits)
        if op.type == OpType.diagonal_matrix or op.type == OpType.barrier:
            return True
        if op.type != OpType.gate:
            return local and op.type in (OpType.matrix, OpType.kraus, OpType.superop,
                                         OpType.reset)
        if local:
            return True
        gate = GATESET.get(op.name)
        if gate in DIAGONAL_GATES:
            return True
        if is_controlled_gate(op):
            target_local = op.qubits[-1] < self.num_local_qubits
            return target_local or op.name in PHASE_GATE_NAMES
        return False

    def apply_op(self, op: Op):
        if op.conditional:
            raise ValueError("Conditional ops are not supported on a chunked density matrix")
        if not self.is_chunk_safe(op):
            raise ValueError(
                f"{op!r} mixes chunks of {self.num_local_qubits} local qubits and "
                f"cannot be applied block by block"
            )
        result = ExperimentResult()
        rng = RngEngine(self.config.seed, self.config.probability_tolerance)
        for state in self.chunks:
            state.apply_op(op, result, rng)

    def apply_ops(self, ops: Sequence[Op]):
        for op in ops:
            self.apply_op(op)
