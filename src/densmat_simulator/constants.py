"""
Numerical Constants for Density-Matrix Simulation
=================================================

Default thresholds and fixed gate data shared by the backends, the engine
and the configuration layer.

WHY THESE CONSTANTS MATTER
--------------------------

**Chop threshold**
    Floating-point evolution leaves tiny non-zero residues on entries that
    should vanish exactly (e.g. probabilities of outcomes that were projected
    out). Exported results drop anything below this magnitude.

**Parallel threshold**
    Counted in *vector* qubits. A density matrix over N qubits is stored as a
    statevector over 2N superoperator qubits, so the default of 14 vector
    qubits corresponds to a 7-qubit density matrix.

**Memory model**
    One complex128 amplitude occupies 16 bytes. A density matrix over N
    qubits holds 4^N amplitudes, so its footprint is 2^(2N + 4) bytes.
"""

import numpy as np

# =============================================================================
# NUMERICAL THRESHOLDS
# =============================================================================

CHOP_THRESHOLD = 1e-10
"""
Magnitude below which exported values are treated as zero.

Used when formatting probability vectors as sparse ket maps
(``save_probs_ket``).
"""

PARALLEL_QUBIT_THRESHOLD = 14
"""
Vector-qubit count above which data-parallel loops may use a thread pool.

Refers to the superoperator index space (2N for N density-matrix qubits).
"""

PROBABILITY_TOLERANCE = 1e-8
"""
Allowed drift of a probability distribution's sum away from 1 before a
``UserWarning`` is issued on sampling.
"""

# =============================================================================
# MEMORY MODEL
# =============================================================================

BYTES_PER_AMPLITUDE = 16  # complex128
LOG2_BYTES_PER_AMPLITUDE = 4
LOG2_BYTES_PER_MB = 20

# =============================================================================
# FIXED GATE DATA
# =============================================================================

SQRT2_INV = 1.0 / np.sqrt(2.0)

T_PHASE = complex(SQRT2_INV, SQRT2_INV)  # e^{iπ/4}
TDG_PHASE = complex(SQRT2_INV, -SQRT2_INV)  # e^{-iπ/4}

DEFAULT_SAVE_KEY = "density_matrix"
METHOD_KEY_PLACEHOLDER = "_method_"
