"""
Chunk Routing for Global Qubits
===============================

When the density matrix is split into chunks, each chunk holds a
``2^L x 2^L`` block of the full ``2^N x 2^N`` matrix (``L`` local qubits,
``G = N - L`` global qubits). The chunk index packs the block position:

    chunk_index = row_block + (col_block << G)

so global qubit ``q`` (``q >= L``) has its row value in bit ``q - L`` of the
index and its column value in bit ``q - L + G``.

Gates whose qubits are all local act on a chunk as usual. Controlled gates
with global controls and diagonal gates with global qubits can still be
evaluated chunk by chunk:

- A global control is a fixed bit of the block. On the row (ket) side the
  gate acts iff the row bits of every global control are 1; on the column
  (bra) side iff the column bits are 1.
- A diagonal entry whose global bits disagree with the block never touches
  it, so the diagonal reduces to the entries compatible with the block.

Everything here is a pure function of an ``Op`` and a ``ChunkContext``;
rewritten ops are new ``Op`` objects.
"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import List, Optional, Sequence, Tuple

import numpy as np

from ..framework.operations import Op, OpType


PHASE_GATE_NAMES = frozenset({"cz", "cp", "cu1", "mcz", "mcp", "mcphase", "mcu1"})
"""Controlled gates that are diagonal, so their target may also be global."""


@dataclass(frozen=True)
class ChunkContext:
    """
    Geometry of one chunk.

    Attributes
    ----------
    num_local_qubits : int
        Density-matrix qubits held by the chunk (L)
    num_global_qubits : int
        Density-matrix qubits of the full register (N)
    chunk_index : int
        Block position ``row_block + (col_block << (N - L))``
    """
    num_local_qubits: int
    num_global_qubits: int
    chunk_index: int = 0

    @property
    def num_global_bits(self) -> int:
        return self.num_global_qubits - self.num_local_qubits

    @property
    def is_chunked(self) -> bool:
        return self.num_global_qubits > self.num_local_qubits

    @property
    def row_block(self) -> int:
        return self.chunk_index & ((1 << self.num_global_bits) - 1)

    @property
    def col_block(self) -> int:
        return self.chunk_index >> self.num_global_bits


class ChunkSide(Enum):
    """Where a routed gate acts inside a chunk."""
    local = "local"  # no global qubit involved, apply the op unchanged
    skip = "skip"  # controls not satisfied on either side
    both = "both"  # two-sided gate on the local qubits
    ket = "ket"  # row side only, statevector-style on row qubits
    bra = "bra"  # column side only, statevector-style on column qubits


@dataclass(frozen=True)
class ChunkRoute:
    side: ChunkSide
    op: Optional[Op] = None


# =============================================================================
# QUBIT SPLITTING
# =============================================================================

def is_controlled_gate(op: Op) -> bool:
    return op.type == OpType.gate and (op.name.startswith("c") or op.name.startswith("mc"))


def get_inout_ctrl_qubits(op: Op, num_local_qubits: int) -> Tuple[List[int], List[int]]:
    """
    Split a controlled gate's qubits into chunk-local and global ones.

    Non-controlled ops return ``([], [])``: they are never rerouted.
    """
    qubits_in: List[int] = []
    qubits_out: List[int] = []
    if is_controlled_gate(op):
        for q in op.qubits:
            if q < num_local_qubits:
                qubits_in.append(q)
            else:
                qubits_out.append(q)
    return qubits_in, qubits_out


def correct_gate_name(name: str, num_qubits_in: int) -> str:
    """
    Gate name after dropping global controls.

    >>> correct_gate_name("ccx", 2)
    'cx'
    >>> correct_gate_name("mcphase", 1)
    'p'
    """
    if "ccx" in name:
        return "x" if num_qubits_in == 1 else "cx"
    if num_qubits_in <= 1:
        if name.startswith("mc"):
            return "p" if name == "mcphase" else name[2:]
        if name.startswith("c"):
            return name[1:]
    return name


def correct_gate_op_in_chunk(op: Op, qubits_in: Sequence[int]) -> Op:
    """New op restricted to ``qubits_in`` with its name corrected."""
    return replace(op, qubits=tuple(qubits_in), name=correct_gate_name(op.name, len(qubits_in)))


def _phase_angle(op: Op) -> float:
    if op.name in ("cz", "mcz"):
        return float(np.pi)
    return float(np.real(op.params[0]))


# =============================================================================
# ROUTING
# =============================================================================

def route_gate_op(op: Op, ctx: ChunkContext) -> ChunkRoute:
    """
    Decide how a gate acts on the chunk described by ``ctx``.

    Parameters
    ----------
    op : Op
        Gate op with qubits in global numbering
    ctx : ChunkContext
        Chunk geometry

    Returns
    -------
    ChunkRoute
        ``local`` routes carry the original op; ``both``/``ket`` routes carry
        the rewritten op on local row qubits; ``bra`` routes carry the
        rewritten op on the column qubits (offset by ``num_local_qubits``).
    """
    if not ctx.is_chunked:
        return ChunkRoute(ChunkSide.local, op)

    qubits_in, qubits_out = get_inout_ctrl_qubits(op, ctx.num_local_qubits)
    if not qubits_out:
        return ChunkRoute(ChunkSide.local, op)

    if op.qubits[-1] >= ctx.num_local_qubits and op.name not in PHASE_GATE_NAMES:
        raise ValueError(
            f"Gate '{op.name}' on {list(op.qubits)} has a global target qubit; "
            f"only controls may be outside the {ctx.num_local_qubits} chunk-local qubits"
        )

    mask = 0
    for q in qubits_out:
        mask |= 1 << (q - ctx.num_local_qubits)
    ket_active = (ctx.chunk_index & mask) == mask
    bra_active = ((ctx.chunk_index >> ctx.num_global_bits) & mask) == mask

    if not ket_active and not bra_active:
        return ChunkRoute(ChunkSide.skip)

    if not qubits_in:
        # Diagonal gate entirely on global qubits: a scalar phase on the block.
        if ket_active and bra_active:
            return ChunkRoute(ChunkSide.skip)
        angle = _phase_angle(op)
        if bra_active:
            angle = -angle
        side = ChunkSide.ket if ket_active else ChunkSide.bra
        return ChunkRoute(side, replace(op, name="p", qubits=(), params=(angle,)))

    new_op = correct_gate_op_in_chunk(op, qubits_in)
    if ket_active and bra_active:
        return ChunkRoute(ChunkSide.both, new_op)
    if ket_active:
        return ChunkRoute(ChunkSide.ket, new_op)
    offset = tuple(q + ctx.num_local_qubits for q in new_op.qubits)
    return ChunkRoute(ChunkSide.bra, replace(new_op, qubits=offset))


# =============================================================================
# DIAGONAL REDUCTION
# =============================================================================

def block_diagonal_matrix(chunk_index: int, num_local_qubits: int, qubits: Sequence[int],
                          diag: Sequence[complex]) -> Tuple[List[int], np.ndarray]:
    """
    Reduce a diagonal gate to the entries compatible with one chunk.

    Qubits ``>= num_local_qubits`` are global: their value is read from bit
    ``q - num_local_qubits`` of ``chunk_index`` and only diagonal entries
    with matching bits are kept.

    Returns
    -------
    qubits_in : list of int
        Local qubits of the reduced diagonal. If every qubit was global this
        is ``[0]`` with a constant 2-entry diagonal.
    diag_in : np.ndarray
        Reduced diagonal
    """
    diag = np.asarray(diag, dtype=complex).ravel()
    qubits_in: List[int] = []
    mask_out = 0
    mask_id = 0
    for i, q in enumerate(qubits):
        if q < num_local_qubits:
            qubits_in.append(q)
        else:
            mask_out |= 1 << i
            if (chunk_index >> (q - num_local_qubits)) & 1:
                mask_id |= 1 << i

    if len(qubits_in) == len(qubits):
        return list(qubits), diag

    idx = np.arange(diag.size)
    diag_in = diag[(idx & mask_out) == mask_id]
    if not qubits_in:
        return [0], np.full(2, diag_in[0], dtype=complex)
    return qubits_in, diag_in


def column_qubits(qubits: Sequence[int], ctx: ChunkContext) -> List[int]:
    """Shift global qubits so their chunk-index bit is the column bit."""
    return [q + ctx.num_global_bits if q >= ctx.num_local_qubits else q for q in qubits]
