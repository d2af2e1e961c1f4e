"""
Partial-Trace Reducer
=====================

Reduced density matrix of a subset of qubits, read straight from the
vectorized store.

HOW THE BLOCK SUM WORKS
-----------------------

Keep ``k`` of ``N`` qubits. In the superoperator index the kept row and
column qubits select an entry of the reduced matrix; the remaining
``2(N - k)`` bits hold the traced row value ``t_r`` (low ``N - k`` bits)
and the traced column value ``t_c`` (high ``N - k`` bits). The partial trace
sums the entries with ``t_r == t_c == b``, i.e. remaining-bit value

    b + b * 2^(N - k) = b * (END + 1),   END = 2^(N - k)

``indexes(squbits, squbits_sorted, b * SHIFT)`` enumerates those entries
with the kept qubits in caller order, so the block sum is already the
vectorized reduced matrix.
"""

from concurrent.futures import ThreadPoolExecutor
from typing import Sequence

import numpy as np

from ..configurations import SimulatorConfig
from ..utils.math_utils import devectorize_matrix, indexes


def _accumulate_blocks(vmat: np.ndarray, squbits: Sequence[int], squbits_sorted: Sequence[int],
                       start: int, stop: int, shift: int) -> np.ndarray:
    reduced = vmat[indexes(squbits, squbits_sorted, start * shift)].copy()
    for block in range(start + 1, stop):
        reduced += vmat[indexes(squbits, squbits_sorted, block * shift)]
    return reduced


def reduced_density_matrix_helper(store, qubits: Sequence[int], qubits_sorted: Sequence[int],
                                  config: SimulatorConfig) -> np.ndarray:
    """
    Partial trace over every qubit not in ``qubits``.

    Parameters
    ----------
    store : DensityMatrixStorage
        Backing store (left untouched)
    qubits : sequence of int
        Kept qubits; ``qubits[0]`` is the least significant bit of the result
    qubits_sorted : sequence of int
        ``qubits`` in ascending order
    config : SimulatorConfig
        Thread budget and parallel threshold

    Returns
    -------
    np.ndarray
        (2^k, 2^k) reduced density matrix
    """
    squbits = store.superop_qubits(qubits)
    squbits_sorted = store.superop_qubits(qubits_sorted)

    end = 1 << (store.num_qubits - len(qubits))
    shift = end + 1
    vmat = store.vector()

    if config.use_threads(2 * store.num_qubits) and end > 1:
        workers = min(config.threads, end)
        bounds = np.linspace(0, end, workers + 1).astype(int)
        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = [
                executor.submit(_accumulate_blocks, vmat, squbits, squbits_sorted,
                                int(lo), int(hi), shift)
                for lo, hi in zip(bounds[:-1], bounds[1:]) if hi > lo
            ]
            partials = [f.result() for f in futures]
        reduced = partials[0]
        for partial in partials[1:]:
            reduced = reduced + partial
    else:
        reduced = _accumulate_blocks(vmat, squbits, squbits_sorted, 0, end, shift)

    return devectorize_matrix(reduced)


def reduced_density_matrix(store, qubits: Sequence[int], final_op: bool,
                           config: SimulatorConfig) -> np.ndarray:
    """
    Reduced density matrix of ``qubits``.

    - no qubits: the 1x1 matrix ``[[trace]]``
    - the full register in ascending order: the whole matrix, moved out of
      the store when ``final_op`` is set (the store is empty afterwards),
      copied otherwise
    - anything else: block-sum partial trace
    """
    qubits = list(qubits)
    if not qubits:
        return np.array([[store.trace()]], dtype=complex)

    qubits_sorted = sorted(qubits)
    if len(qubits) == store.num_qubits and qubits == qubits_sorted:
        return store.move_to_matrix() if final_op else store.copy_to_matrix()
    return reduced_density_matrix_helper(store, qubits, qubits_sorted, config)
