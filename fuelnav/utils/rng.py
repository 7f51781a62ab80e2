"""Random number generation utilities for RL navigation."""

from typing import Optional, Sequence, TypeVar

import numpy as np

T = TypeVar("T")


class SeededRNG:
    """Seeded random number generator for reproducible results."""

    def __init__(self, seed: Optional[int] = None):
        self._seed = seed
        self._generator = np.random.default_rng(seed)

    @property
    def seed(self) -> Optional[int]:
        """Get the current seed."""
        return self._seed

    def random(self) -> float:
        """Generate random float in [0, 1)."""
        return float(self._generator.random())

    def choice(self, seq: Sequence[T]) -> T:
        """Choose random element from sequence."""
        if not seq:
            raise IndexError("Cannot choose from an empty sequence")
        return seq[int(self._generator.integers(len(seq)))]

    def sample(self, population: Sequence[T], k: int) -> list:
        """Sample k elements from population without replacement."""
        indices = self._generator.choice(len(population), size=k, replace=False)
        return [population[int(i)] for i in indices]
