"""
Classical Register
==================

Classical memory and register bits written by measurements, boolean
functions and readout-error injection, and queried by conditional ops.

Bits are held as '0'/'1' strings with the most significant bit first, so bit
``b`` lives at string position ``len - 1 - b``.
"""

from typing import Sequence

from .operations import Op, OpType, RegComparison


class ClassicalRegister:
    """
    Classical memory and register for one shot.

    Parameters
    ----------
    num_memory : int
        Number of classical memory bits (measurement results)
    num_registers : int
        Number of register bits (conditional-execution guards)
    """

    def __init__(self, num_memory: int = 0, num_registers: int = 0):
        self.initialize(num_memory, num_registers)

    def initialize(self, num_memory: int, num_registers: int):
        self._memory = "0" * num_memory
        self._register = "0" * num_registers

    @property
    def memory(self) -> str:
        return self._memory

    @property
    def register(self) -> str:
        return self._register

    def memory_hex(self) -> str:
        return hex(int(self._memory, 2)) if self._memory else "0x0"

    def register_hex(self) -> str:
        return hex(int(self._register, 2)) if self._register else "0x0"

    # -------------------------------------------------------------------------
    # Bit access
    # -------------------------------------------------------------------------

    @staticmethod
    def _set_bit(bits: str, bit: int, value: str) -> str:
        if bit >= len(bits):
            raise ValueError(f"Classical bit {bit} out of range for {len(bits)} bits")
        pos = len(bits) - 1 - bit
        return bits[:pos] + value + bits[pos + 1:]

    @staticmethod
    def _get_bit(bits: str, bit: int) -> str:
        if bit >= len(bits):
            raise ValueError(f"Classical bit {bit} out of range for {len(bits)} bits")
        return bits[len(bits) - 1 - bit]

    def check_conditional(self, op: Op) -> bool:
        """True if ``op`` is unconditional or its guard bit is set."""
        if op.conditional:
            return self._get_bit(self._register, op.conditional_reg) == "1"
        return True

    def store_measure(self, outcome: Sequence[int], memory: Sequence[int],
                      registers: Sequence[int]):
        """Write ``outcome[i]`` to ``memory[i]`` and ``registers[i]``."""
        for value, bit in zip(outcome, memory):
            self._memory = self._set_bit(self._memory, bit, str(int(value)))
        for value, bit in zip(outcome, registers):
            self._register = self._set_bit(self._register, bit, str(int(value)))

    # -------------------------------------------------------------------------
    # Classical instructions
    # -------------------------------------------------------------------------

    def apply_bfunc(self, op: Op):
        """
        Evaluate ``(register & mask) <relation> value`` and store the result.

        ``op.string_params`` holds the mask and target value as hex strings.
        """
        if op.type != OpType.bfunc:
            raise ValueError(f"apply_bfunc called with a '{op.type.value}' op")
        mask = int(op.string_params[0], 16)
        target = int(op.string_params[1], 16)
        reg_int = int(self._register, 2) if self._register else 0
        compared = (reg_int & mask) - target

        if op.bfunc == RegComparison.Equal:
            outcome = compared == 0
        elif op.bfunc == RegComparison.NotEqual:
            outcome = compared != 0
        elif op.bfunc == RegComparison.Less:
            outcome = compared < 0
        elif op.bfunc == RegComparison.LessEqual:
            outcome = compared <= 0
        elif op.bfunc == RegComparison.Greater:
            outcome = compared > 0
        elif op.bfunc == RegComparison.GreaterEqual:
            outcome = compared >= 0
        else:
            raise ValueError(f"Unknown bfunc relation: {op.bfunc}")

        value = "1" if outcome else "0"
        if op.registers:
            self._register = self._set_bit(self._register, op.registers[0], value)
        if op.memory:
            self._memory = self._set_bit(self._memory, op.memory[0], value)

    def apply_roerror(self, op: Op, rng):
        """
        Replace the stored memory bits with a noisy readout.

        The true value of ``op.memory`` (``memory[0]`` least significant)
        selects the row of ``op.probs`` used for the weighted draw.
        """
        if op.type != OpType.roerror:
            raise ValueError(f"apply_roerror called with a '{op.type.value}' op")
        true_value = 0
        for pos, bit in enumerate(op.memory):
            if self._get_bit(self._memory, bit) == "1":
                true_value |= 1 << pos
        reported = rng.rand_int(op.probs[true_value])
        for pos, bit in enumerate(op.memory):
            value = str((reported >> pos) & 1)
            self._memory = self._set_bit(self._memory, bit, value)
        for pos, bit in enumerate(op.registers):
            value = str((reported >> pos) & 1)
            self._register = self._set_bit(self._register, bit, value)
