"""
Experiment Result Sink
======================

Collects the named artifacts emitted by save instructions and the
per-shot classical outcomes of a run.

Save subtypes
-------------
- ``single``: one value, later saves overwrite earlier ones
- ``average``: values are summed across shots and divided by the number of
  saves when read back
- ``list``: one entry per shot
- ``c_*``: same as above but bucketed by the classical memory value (hex)
  at the time of the save
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import numpy as np

from .operations import DataSubType, OpType


@dataclass
class _AverageEntry:
    total: Any = None
    count: int = 0

    def add(self, datum):
        if isinstance(datum, dict):
            # sparse ket maps accumulate per key
            if self.total is None:
                self.total = {}
            for key, value in datum.items():
                self.total[key] = self.total.get(key, 0.0) + value
        elif self.total is None:
            self.total = np.array(datum, dtype=complex if np.iscomplexobj(datum) else float, copy=True)
        else:
            self.total = self.total + datum
        self.count += 1

    def mean(self):
        if isinstance(self.total, dict):
            return {key: value / self.count for key, value in self.total.items()}
        value = self.total / self.count
        return value.item() if np.ndim(value) == 0 else value


@dataclass
class ExperimentResult:
    """
    Result container for one experiment.

    Attributes
    ----------
    counts : dict
        Histogram of classical memory values (hex string -> shots)
    memory : list of str
        Per-shot classical memory values (hex), in shot order
    metadata : dict
        Run information (shots, sampling mode, qubits, ...)
    """
    counts: Dict[str, int] = field(default_factory=dict)
    memory: List[str] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)
    _data: Dict[str, Any] = field(default_factory=dict, repr=False)
    _types: Dict[str, tuple] = field(default_factory=dict, repr=False)

    # -------------------------------------------------------------------------
    # Writers
    # -------------------------------------------------------------------------

    def _check_type(self, key: str, op_type: OpType, save_type: DataSubType):
        previous = self._types.setdefault(key, (op_type, save_type))
        if previous != (op_type, save_type):
            raise ValueError(
                f"Cannot save data with key '{key}' as {op_type.value}/{save_type.value}; "
                f"it was already saved as {previous[0].value}/{previous[1].value}"
            )

    def save_data_average(self, creg, key: str, datum, op_type: OpType,
                          save_type: DataSubType):
        """Save a single or shot-averaged artifact (list subtypes keep every shot)."""
        if save_type in (DataSubType.list, DataSubType.c_list):
            self.save_data_pershot(creg, key, datum, op_type, save_type)
            return
        self._check_type(key, op_type, save_type)
        if save_type == DataSubType.single:
            self._data[key] = datum
        elif save_type == DataSubType.c_single:
            self._data.setdefault(key, {})[creg.memory_hex()] = datum
        elif save_type == DataSubType.average:
            self._data.setdefault(key, _AverageEntry()).add(datum)
        elif save_type == DataSubType.c_average:
            bucket = self._data.setdefault(key, {})
            bucket.setdefault(creg.memory_hex(), _AverageEntry()).add(datum)
        else:
            raise ValueError(f"Invalid save type '{save_type.value}' for averaged data")

    def save_data_pershot(self, creg, key: str, datum, op_type: OpType,
                          save_type: DataSubType):
        """Save a per-shot artifact."""
        self._check_type(key, op_type, save_type)
        if save_type == DataSubType.list:
            self._data.setdefault(key, []).append(datum)
        elif save_type == DataSubType.c_list:
            self._data.setdefault(key, {}).setdefault(creg.memory_hex(), []).append(datum)
        else:
            raise ValueError(f"Invalid save type '{save_type.value}' for per-shot data")

    def add_memory(self, memory_hex: str):
        """Record one shot's classical memory value."""
        self.counts[memory_hex] = self.counts.get(memory_hex, 0) + 1
        self.memory.append(memory_hex)

    # -------------------------------------------------------------------------
    # Readers
    # -------------------------------------------------------------------------

    def __contains__(self, key: str) -> bool:
        return key in self._data

    def keys(self):
        return self._data.keys()

    def save_type(self, key: str) -> Optional[DataSubType]:
        entry = self._types.get(key)
        return entry[1] if entry else None

    def get(self, key: str, default=None):
        """Processed value of a saved artifact (averages are divided out)."""
        if key not in self._data:
            return default
        value = self._data[key]
        if isinstance(value, _AverageEntry):
            return value.mean()
        if isinstance(value, dict):
            return {k: (v.mean() if isinstance(v, _AverageEntry) else v) for k, v in value.items()}
        return value

    def __getitem__(self, key: str):
        if key not in self._data:
            raise KeyError(key)
        return self.get(key)

    def to_dict(self) -> dict:
        """Convert to dictionary for easy inspection."""
        return {
            "counts": dict(self.counts),
            "memory": list(self.memory),
            "data": {key: self.get(key) for key in self._data},
            "metadata": dict(self.metadata),
        }
