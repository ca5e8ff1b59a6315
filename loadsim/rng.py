"""Seeded Random Source

The only randomness any simulation component consumes. One instance is
created per simulation (or per run, from a derived seed) and passed
explicitly; nothing touches the process-global random module state.
"""

import random
from typing import Sequence, TypeVar

T = TypeVar("T")


class SeededRandom:
    """Deterministic PRNG: same seed + same call order -> same values."""

    def __init__(self, seed: int):
        self._seed = int(seed)
        self._random = random.Random(self._seed)

    @property
    def seed(self) -> int:
        return self._seed

    def next(self) -> float:
        """Uniform float in [0, 1)."""
        return self._random.random()

    def next_int(self, min_value: int, max_value: int) -> int:
        """Uniform integer in [min_value, max_value], both inclusive."""
        if max_value < min_value:
            raise ValueError(f"next_int range is empty: [{min_value}, {max_value}]")
        return self._random.randint(min_value, max_value)

    def next_float(self, min_value: float, max_value: float) -> float:
        """Uniform float in [min_value, max_value)."""
        return min_value + self._random.random() * (max_value - min_value)

    def chance(self, probability: float) -> bool:
        """True with the given probability."""
        return self._random.random() < probability

    def pick(self, seq: Sequence[T]) -> T:
        """Uniformly pick one element.

        Raises:
            ValueError: If seq is empty
        """
        if not seq:
            raise ValueError("Cannot pick from an empty sequence")
        return seq[self._random.randrange(len(seq))]

    def weighted_pick(self, weights: dict) -> str:
        """Pick a key of weights with probability proportional to its value.

        Args:
            weights: Dict of key -> non-negative weight

        Returns:
            The chosen key (the last key absorbs floating-point slack)
        """
        if not weights:
            raise ValueError("Cannot pick from empty weights")
        total = sum(weights.values())
        r = self._random.random() * total
        cumulative = 0.0
        last = None
        for key, weight in weights.items():
            cumulative += weight
            last = key
            if r < cumulative:
                return key
        return last

    def shuffle(self, seq: Sequence[T]) -> list[T]:
        """Return a shuffled copy of seq; the input is not modified."""
        items = list(seq)
        self._random.shuffle(items)
        return items

    def sample(self, seq: Sequence[T], k: int) -> list[T]:
        """Pick k distinct elements (k is clamped to len(seq))."""
        k = max(0, min(k, len(seq)))
        return self._random.sample(list(seq), k)

    def derive(self, offset: int) -> "SeededRandom":
        """Independent source for a sub-task, e.g. one run of a batch."""
        return SeededRandom(self._seed + offset)
