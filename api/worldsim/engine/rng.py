"""Random sources for the tick engine.

Every draw goes through an object with ``random()`` and ``uniform()``.
Production code uses a numpy Generator seeded per stream so that a given
tick or year can be replayed from ``(seed, index)``.
"""

from __future__ import annotations

import math
from typing import Protocol

import numpy as np

EVENT_STREAM = 0
TICK_STREAM = 1


class RandomSource(Protocol):
    def random(self) -> float: ...

    def uniform(self, low: float, high: float) -> float: ...


def create_rng(seed: int | None, stream: int, index: int) -> np.random.Generator:
    """Create the generator for one stream position.

    Args:
        seed: Base seed, or None for fresh OS entropy.
        stream: EVENT_STREAM (indexed by year) or TICK_STREAM (indexed by tick).
        index: Year or tick index.

    Returns:
        Numpy random generator.
    """
    if seed is None:
        return np.random.Generator(np.random.PCG64())
    return np.random.Generator(np.random.PCG64([seed, stream, index]))


def bernoulli(rng: RandomSource, p: float) -> bool:
    return float(rng.random()) < p


def stochastic_round(rng: RandomSource, expected: float) -> int:
    """Floor of ``expected`` plus one with probability of its fractional part.

    Keeps the long-run mean equal to ``expected``.
    """
    base = math.floor(expected)
    return base + (1 if bernoulli(rng, expected - base) else 0)
