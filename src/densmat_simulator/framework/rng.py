"""
Random Source
=============

Thin wrapper around ``numpy.random.Generator`` providing the two draws the
engine needs: uniform variates and weighted integer draws.

Probability drift
-----------------
Weights handed to ``rand_int`` come from floating-point evolution and may
not sum to exactly 1. The draw is made against the *unnormalized* cumulative
distribution with a uniform variate in [0, 1); a variate that lands beyond
the total weight is clamped to the last outcome with non-zero weight. A
``UserWarning`` is emitted when the drift exceeds ``probability_tolerance``.
"""

import warnings
from typing import Optional, Sequence

import numpy as np

from ..constants import PROBABILITY_TOLERANCE


def clamp_cumulative_draw(cumulative: np.ndarray, weights: np.ndarray,
                          rnds: np.ndarray) -> np.ndarray:
    """
    Resolve uniform variates against a cumulative distribution.

    Variates past the end of the distribution resolve to the last outcome
    with non-zero weight.
    """
    outcomes = np.searchsorted(cumulative, rnds, side="right")
    nonzero = np.flatnonzero(weights > 0)
    last = int(nonzero[-1]) if nonzero.size else len(weights) - 1
    return np.minimum(outcomes, last)


class RngEngine:
    """
    Seedable random source.

    Parameters
    ----------
    seed : int, optional
        Seed for the underlying PCG64 generator. ``None`` draws fresh entropy.
    probability_tolerance : float
        Allowed drift of a distribution's total weight from 1 before warning.
    """

    def __init__(self, seed: Optional[int] = None,
                 probability_tolerance: float = PROBABILITY_TOLERANCE):
        self.probability_tolerance = probability_tolerance
        self.set_seed(seed)

    def set_seed(self, seed: Optional[int]):
        self.seed = seed
        self._generator = np.random.default_rng(seed)

    @property
    def generator(self) -> np.random.Generator:
        return self._generator

    def rand(self, a: float = 0.0, b: float = 1.0, size: Optional[int] = None):
        """Uniform variate(s) in [a, b)."""
        return self._generator.uniform(a, b, size=size)

    def rand_int(self, probs: Sequence[float]) -> int:
        """Draw an index with probability proportional to ``probs``."""
        weights = np.clip(np.asarray(probs, dtype=float), 0.0, None)
        if weights.size == 0:
            raise ValueError("Cannot draw from an empty distribution")
        self.check_normalization(weights)
        cumulative = np.cumsum(weights)
        rnd = np.array([self._generator.random()])
        return int(clamp_cumulative_draw(cumulative, weights, rnd)[0])

    def check_normalization(self, weights: np.ndarray):
        total = float(np.sum(weights))
        if abs(total - 1.0) > self.probability_tolerance:
            warnings.warn(
                f"Sampling from a distribution whose weights sum to {total:.12f} "
                f"(tolerance {self.probability_tolerance:g}). Out-of-range draws "
                f"are clamped to the last non-zero outcome.",
                UserWarning
            )
