"""Deterministic pseudo-random numbers for demo fixtures.

A small linear congruential generator. It is not statistically rigorous and
must never be used for anything security related; it only exists so the same
seed always produces the same demo dataset.
"""
from typing import Sequence, TypeVar

T = TypeVar('T')

LCG_MULTIPLIER = 1103515245
LCG_INCREMENT = 12345
LCG_MASK = 0x7fffffff


class SeededRandom:
    """Linear congruential generator yielding floats in [0, 1]."""

    def __init__(self, seed: int):
        self.seed = seed
        self._state = seed & LCG_MASK

    def random(self) -> float:
        self._state = (self._state * LCG_MULTIPLIER + LCG_INCREMENT) & LCG_MASK
        return self._state / LCG_MASK

    def below(self, n: int) -> int:
        """Integer in [0, n). ``random()`` can return exactly 1.0, so clamp."""
        if n <= 0:
            raise ValueError("n must be positive")
        return min(int(self.random() * n), n - 1)

    def choice(self, seq: Sequence[T]) -> T:
        if not seq:
            raise IndexError("Cannot choose from an empty sequence")
        return seq[self.below(len(seq))]

    def uniform(self, low: float, high: float) -> float:
        return low + self.random() * (high - low)

    def weighted_index(self, weights: Sequence[float]) -> int:
        """Pick an index using cumulative weights; falls back to 0."""
        roll = self.random()
        cumulative = 0.0
        for index, weight in enumerate(weights):
            cumulative += weight
            if roll < cumulative:
                return index
        return 0

    def token(self, alphabet: str, length: int) -> str:
        return ''.join(self.choice(alphabet) for _ in range(length))
