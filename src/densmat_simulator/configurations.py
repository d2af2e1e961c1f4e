"""
Configuration Dataclasses for Density-Matrix Simulation
=======================================================

This module groups the tunable knobs of the simulator into a single
dataclass that is passed explicitly to every object that needs it.

WHY A DATACLASS?
----------------

The engine has a handful of performance and export settings (chop
threshold, parallelization threshold, thread budget). Keeping them in one
object means:

1. **No module globals**: two simulators in the same process can run with
   different thread budgets.
2. **Documentation**: each setting carries its unit and meaning.
3. **Defaults**: sensible values from ``constants.py``.

PRESET CONFIGURATIONS
---------------------

- ``get_default_config()``: single-threaded, default thresholds
- ``get_parallel_config(threads)``: thread-pool loops enabled
"""

from dataclasses import dataclass, asdict, fields
from typing import Any, Dict, Optional

from .constants import (
    CHOP_THRESHOLD,
    PARALLEL_QUBIT_THRESHOLD,
    PROBABILITY_TOLERANCE,
)


@dataclass
class SimulatorConfig:
    """
    Settings consumed by the density-matrix state and its backing store.

    Attributes
    ----------
    chop_threshold : float
        Magnitude below which exported values are dropped (ket-formatted
        probabilities).
    parallel_threshold : int
        Number of *vector* qubits (2N for an N-qubit density matrix) above
        which data-parallel loops are split across threads.
    threads : int
        Thread budget for data-parallel loops. 1 disables the thread pool.
    probability_tolerance : float
        Allowed drift of a distribution's total weight from 1 before a
        warning is emitted on sampling.
    max_memory_mb : int, optional
        If set, the simulator refuses registers whose density matrix would
        exceed this many megabytes.
    seed : int, optional
        Default seed for the simulator's random source.

    Example
    -------
    >>> config = SimulatorConfig(threads=4, parallel_threshold=10)
    >>> config.use_threads(12)
    True
    """
    chop_threshold: float = CHOP_THRESHOLD
    parallel_threshold: int = PARALLEL_QUBIT_THRESHOLD
    threads: int = 1
    probability_tolerance: float = PROBABILITY_TOLERANCE
    max_memory_mb: Optional[int] = None
    seed: Optional[int] = None

    def __post_init__(self):
        if self.chop_threshold < 0:
            raise ValueError(f"chop_threshold must be non-negative, got {self.chop_threshold}")
        if self.parallel_threshold < 0:
            raise ValueError(
                f"parallel_threshold must be non-negative, got {self.parallel_threshold}"
            )
        if self.threads < 1:
            raise ValueError(f"threads must be >= 1, got {self.threads}")

    def use_threads(self, num_vector_qubits: int) -> bool:
        """Whether a loop over 2^num_vector_qubits entries should use the pool."""
        return self.threads > 1 and num_vector_qubits > self.parallel_threshold

    def to_dict(self) -> dict:
        """Convert to dictionary for easy inspection."""
        return asdict(self)

    @classmethod
    def from_dict(cls, values: Dict[str, Any]) -> "SimulatorConfig":
        """
        Build a config from a plain dict, ignoring unknown keys.

        Accepts the alias ``statevector_parallel_threshold`` for
        ``parallel_threshold``.
        """
        values = dict(values)
        if "statevector_parallel_threshold" in values:
            values.setdefault("parallel_threshold", values.pop("statevector_parallel_threshold"))
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in values.items() if k in known})


def get_default_config() -> SimulatorConfig:
    """Single-threaded configuration with default thresholds."""
    return SimulatorConfig()


def get_parallel_config(threads: int, parallel_threshold: int = PARALLEL_QUBIT_THRESHOLD) -> SimulatorConfig:
    """Configuration with the thread pool enabled for large index spaces."""
    return SimulatorConfig(threads=threads, parallel_threshold=parallel_threshold)
