"""
Instruction Model
=================

One ``Op`` describes one quantum instruction: its type tag, target qubits,
numeric parameters, attached matrices, string/int side parameters and an
optional classical-register guard.

Ops are immutable. Code that needs a modified op (e.g. the chunk router
rewriting global qubits to local ones) builds a new one with
``dataclasses.replace``.

Factory helpers (``make_gate``, ``make_measure``, ...) are the supported way
to build ops from Python.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Optional, Sequence, Tuple

import numpy as np

from ..utils.math_utils import pauli_product, validate_pauli


# =============================================================================
# TAGS
# =============================================================================

class OpType(Enum):
    """Closed set of instruction types."""
    gate = "gate"
    measure = "measure"
    reset = "reset"
    barrier = "barrier"
    bfunc = "bfunc"
    qerror_loc = "qerror_loc"
    roerror = "roerror"
    matrix = "matrix"
    diagonal_matrix = "diagonal_matrix"
    kraus = "kraus"
    superop = "superop"
    set_statevec = "set_statevector"
    set_densmat = "set_density_matrix"
    save_expval = "save_expval"
    save_expval_var = "save_expval_var"
    save_densmat = "save_density_matrix"
    save_probs = "save_probabilities"
    save_probs_ket = "save_probabilities_dict"
    save_amps_sq = "save_amplitudes_sq"
    save_state = "save_state"
    jump = "jump"
    mark = "mark"


class DataSubType(Enum):
    """How a saved artifact is accumulated across shots."""
    single = "single"
    c_single = "c_single"
    average = "average"
    c_average = "c_average"
    list = "list"
    c_list = "c_list"


class RegComparison(Enum):
    """Relation used by boolean-function (``bfunc``) ops."""
    Equal = "=="
    NotEqual = "!="
    Less = "<"
    LessEqual = "<="
    Greater = ">"
    GreaterEqual = ">="


SAVE_TYPES = frozenset({
    OpType.save_expval,
    OpType.save_expval_var,
    OpType.save_densmat,
    OpType.save_probs,
    OpType.save_probs_ket,
    OpType.save_amps_sq,
    OpType.save_state,
})


# =============================================================================
# OP
# =============================================================================

@dataclass(frozen=True, eq=False)
class Op:
    """
    A single quantum instruction.

    Attributes
    ----------
    type : OpType
        Instruction type tag
    name : str
        Instruction name (gate name for ``OpType.gate``)
    qubits : tuple of int
        Ordered target qubits
    params : tuple
        Numeric parameters (gate angles, diagonal entries, statevector)
    mats : tuple of np.ndarray
        Attached matrices (unitary, Kraus set, superoperator, density matrix)
    string_params : tuple of str
        String side parameters (save key, Pauli string, bfunc mask/value,
        jump destination)
    int_params : tuple of int
        Integer side parameters (basis indices for ``save_amps_sq``)
    memory, registers : tuple of int
        Classical memory / register bits written by the op
    conditional_reg : int, optional
        Register bit guarding execution. ``None`` means unconditional.
    bfunc : RegComparison
        Relation for ``bfunc`` ops
    probs : tuple of tuple of float
        Readout assignment probabilities for ``roerror`` ops;
        ``probs[true_value][reported_value]``
    expval_params : tuple of (str, float, float)
        ``(pauli, coeff, sq_coeff)`` terms for ``save_expval(_var)``
    save_type : DataSubType
        Accumulation type of saved data
    """
    type: OpType
    name: str = ""
    qubits: Tuple[int, ...] = ()
    params: Tuple = ()
    mats: Tuple[np.ndarray, ...] = ()
    string_params: Tuple[str, ...] = ()
    int_params: Tuple[int, ...] = ()
    memory: Tuple[int, ...] = ()
    registers: Tuple[int, ...] = ()
    conditional_reg: Optional[int] = None
    bfunc: RegComparison = RegComparison.Equal
    probs: Tuple[Tuple[float, ...], ...] = ()
    expval_params: Tuple[Tuple[str, float, float], ...] = ()
    save_type: DataSubType = DataSubType.average

    def __post_init__(self):
        object.__setattr__(self, "qubits", tuple(int(q) for q in self.qubits))
        object.__setattr__(self, "params", tuple(self.params))
        object.__setattr__(
            self, "mats", tuple(np.asarray(m, dtype=complex) for m in self.mats)
        )
        object.__setattr__(self, "string_params", tuple(self.string_params))
        object.__setattr__(self, "int_params", tuple(int(i) for i in self.int_params))
        object.__setattr__(self, "memory", tuple(int(m) for m in self.memory))
        object.__setattr__(self, "registers", tuple(int(r) for r in self.registers))

    @property
    def conditional(self) -> bool:
        return self.conditional_reg is not None

    def __repr__(self) -> str:
        return f"Op({self.type.name}, name={self.name!r}, qubits={list(self.qubits)})"


# =============================================================================
# FACTORIES
# =============================================================================

def _qubits(qubits) -> Tuple[int, ...]:
    if isinstance(qubits, (int, np.integer)):
        return (int(qubits),)
    return tuple(qubits)


def make_gate(name: str, qubits, params: Sequence = (), pauli: Optional[str] = None,
              conditional_reg: Optional[int] = None) -> Op:
    """
    Build a gate op.

    >>> make_gate("cx", [0, 1])
    Op(gate, name='cx', qubits=[0, 1])
    """
    string_params = (pauli,) if pauli is not None else ()
    return Op(OpType.gate, name=name, qubits=_qubits(qubits), params=tuple(params),
              string_params=string_params, conditional_reg=conditional_reg)


def make_measure(qubits, memory: Optional[Sequence[int]] = None,
                 registers: Optional[Sequence[int]] = None,
                 conditional_reg: Optional[int] = None) -> Op:
    """Measure op; by default qubit i is stored in memory bit i."""
    qubits = _qubits(qubits)
    memory = tuple(memory) if memory is not None else qubits
    registers = tuple(registers) if registers is not None else ()
    return Op(OpType.measure, name="measure", qubits=qubits, memory=memory,
              registers=registers, conditional_reg=conditional_reg)


def make_reset(qubits, conditional_reg: Optional[int] = None) -> Op:
    return Op(OpType.reset, name="reset", qubits=_qubits(qubits), conditional_reg=conditional_reg)


def make_barrier(qubits) -> Op:
    return Op(OpType.barrier, name="barrier", qubits=_qubits(qubits))


def make_matrix(qubits, mat, conditional_reg: Optional[int] = None) -> Op:
    """Unitary matrix op. A single-row ``mat`` is treated as a diagonal."""
    return Op(OpType.matrix, name="unitary", qubits=_qubits(qubits), mats=(np.atleast_2d(mat),),
              conditional_reg=conditional_reg)


def make_diagonal_matrix(qubits, diag: Sequence[complex],
                         conditional_reg: Optional[int] = None) -> Op:
    diag = tuple(complex(d) for d in diag)
    qubits = _qubits(qubits)
    if len(diag) != 1 << len(qubits):
        raise ValueError(
            f"Diagonal of length {len(diag)} does not match {len(qubits)} qubits"
        )
    return Op(OpType.diagonal_matrix, name="diagonal", qubits=qubits, params=diag,
              conditional_reg=conditional_reg)


def make_kraus(qubits, kmats: Iterable, conditional_reg: Optional[int] = None) -> Op:
    kmats = tuple(np.asarray(k, dtype=complex) for k in kmats)
    if not kmats:
        raise ValueError("Kraus op requires at least one operator")
    return Op(OpType.kraus, name="kraus", qubits=_qubits(qubits), mats=kmats,
              conditional_reg=conditional_reg)


def make_superop(qubits, superop, conditional_reg: Optional[int] = None) -> Op:
    return Op(OpType.superop, name="superop", qubits=_qubits(qubits), mats=(superop,),
              conditional_reg=conditional_reg)


def make_set_statevector(qubits, statevector: Sequence[complex]) -> Op:
    return Op(OpType.set_statevec, name="set_statevector", qubits=_qubits(qubits),
              params=tuple(complex(a) for a in statevector))


def make_set_density_matrix(qubits, density_matrix) -> Op:
    return Op(OpType.set_densmat, name="set_density_matrix", qubits=_qubits(qubits),
              mats=(density_matrix,))


def make_save_state(qubits, key: str = "_method_",
                    save_type: DataSubType = DataSubType.single) -> Op:
    return Op(OpType.save_state, name="save_state", qubits=_qubits(qubits),
              string_params=(key,), save_type=save_type)


def make_save_density_matrix(qubits, key: str = "density_matrix",
                             save_type: DataSubType = DataSubType.average) -> Op:
    return Op(OpType.save_densmat, name="save_density_matrix", qubits=_qubits(qubits),
              string_params=(key,), save_type=save_type)


def make_save_probs(qubits, key: str = "probabilities", ket: bool = False,
                    save_type: DataSubType = DataSubType.average) -> Op:
    op_type = OpType.save_probs_ket if ket else OpType.save_probs
    return Op(op_type, name=op_type.value, qubits=_qubits(qubits), string_params=(key,),
              save_type=save_type)


def make_save_amps_sq(qubits, basis_states: Sequence[int], key: str = "amplitudes_squared",
                      save_type: DataSubType = DataSubType.average) -> Op:
    return Op(OpType.save_amps_sq, name="save_amplitudes_sq", qubits=_qubits(qubits),
              int_params=tuple(basis_states), string_params=(key,), save_type=save_type)


def make_save_expval(qubits, terms: Sequence[Tuple[str, float]], key: str = "expval",
                     variance: bool = False,
                     save_type: DataSubType = DataSubType.average) -> Op:
    """
    Expectation-value save for the observable ``Σ coeff · pauli``.

    Parameters
    ----------
    qubits : sequence of int
        Qubits the Pauli strings act on (last character on ``qubits[0]``)
    terms : sequence of (str, float)
        Pauli decomposition of a Hermitian observable
    variance : bool
        Also save the variance (``save_expval_var``)
    """
    qubits = _qubits(qubits)
    op_type = OpType.save_expval_var if variance else OpType.save_expval
    return Op(op_type, name=op_type.value, qubits=qubits, string_params=(key,),
              expval_params=pauli_expval_params(terms, len(qubits)), save_type=save_type)


def make_bfunc(mask: str, value: str, relation: RegComparison = RegComparison.Equal,
               register: Optional[int] = None, memory: Optional[int] = None) -> Op:
    """
    Boolean function on the classical register.

    ``mask`` and ``value`` are hex strings (``"0x3"``); the result
    ``(creg & mask) <relation> value`` is written to ``register`` and/or
    ``memory``.
    """
    return Op(OpType.bfunc, name="bfunc", string_params=(mask, value), bfunc=relation,
              registers=(register,) if register is not None else (),
              memory=(memory,) if memory is not None else ())


def make_roerror(memory: Sequence[int], probs: Sequence[Sequence[float]],
                 registers: Sequence[int] = ()) -> Op:
    """Readout-error op; ``probs[true][reported]`` over the memory bits' value."""
    probs = tuple(tuple(float(p) for p in row) for row in probs)
    if len(probs) != 1 << len(memory):
        raise ValueError(
            f"Readout error needs {1 << len(memory)} probability rows, got {len(probs)}"
        )
    return Op(OpType.roerror, name="roerror", memory=tuple(memory), registers=tuple(registers),
              probs=probs)


def make_jump(destination: str, conditional_reg: Optional[int] = None) -> Op:
    return Op(OpType.jump, name="jump", string_params=(destination,),
              conditional_reg=conditional_reg)


def make_mark(name: str) -> Op:
    return Op(OpType.mark, name="mark", string_params=(name,))


# =============================================================================
# OBSERVABLE HELPERS
# =============================================================================

def pauli_expval_params(terms: Sequence[Tuple[str, float]],
                        num_qubits: int) -> Tuple[Tuple[str, float, float], ...]:
    """
    Build ``(pauli, coeff, sq_coeff)`` triples for an observable.

    ``coeff`` is the coefficient of ``pauli`` in ``O = Σ c_i P_i`` and
    ``sq_coeff`` its coefficient in ``O²``, so that
    ``Var(O) = Σ sq_coeff·⟨P⟩ − (Σ coeff·⟨P⟩)²``.
    """
    if not terms:
        raise ValueError("Observable has no Pauli terms")
    coeffs = {}
    for pauli, coeff in terms:
        pauli = validate_pauli(pauli, num_qubits)
        coeffs[pauli] = coeffs.get(pauli, 0.0) + complex(coeff)

    sq_coeffs = {}
    for pa, ca in coeffs.items():
        for pb, cb in coeffs.items():
            phase, pab = pauli_product(pa, pb)
            sq_coeffs[pab] = sq_coeffs.get(pab, 0.0) + phase * ca * cb

    params: List[Tuple[str, float, float]] = []
    for pauli in sorted(set(coeffs) | set(sq_coeffs)):
        params.append((pauli, float(np.real(coeffs.get(pauli, 0.0))),
                       float(np.real(sq_coeffs.get(pauli, 0.0)))))
    return tuple(params)
