"""
Weighted sampling over an injected random source.

Purpose
-------
One cumulative-weight roll shared by every random choice in the engine:
loot rarity, dungeon drop tables, name templates and bonus-drop chances.

Design Notes
------------
- The random source is injected. The default is `secrets.SystemRandom()`,
  so production rolls are unpredictable while tests pass a seeded
  `random.Random` and get reproducible results.
- Negative weights are treated as zero and zero-weight entries are never
  picked. A table whose weights are all zero yields its first key.

Usage
-----
    sampler = WeightedSampler(random.Random(7))
    rarity = sampler.choose([("common", 50), ("rare", 15)])
    if sampler.chance(0.3):
        ...
"""

from __future__ import annotations

import random
import secrets
from typing import Iterable, Mapping, Optional, Sequence, Tuple, TypeVar, Union

T = TypeVar("T")

WeightTable = Union[Mapping[T, float], Iterable[Tuple[T, float]]]


class WeightedSampler:
    """Cumulative-weight sampler bound to one random source."""

    def __init__(self, rng: Optional[random.Random] = None) -> None:
        self._rng: random.Random = rng if rng is not None else secrets.SystemRandom()

    @property
    def rng(self) -> random.Random:
        return self._rng

    def choose(self, table: WeightTable) -> T:
        """
        Pick one key with probability proportional to its weight.

        Args:
            table: Mapping or sequence of (key, weight) pairs; order is the
                cumulative order

        Returns:
            The selected key

        Raises:
            ValueError: If the table is empty
        """
        entries = list(table.items()) if isinstance(table, Mapping) else list(table)
        if not entries:
            raise ValueError("Cannot sample from an empty weight table")

        weights = [max(0.0, float(weight)) for _, weight in entries]
        total = sum(weights)
        if total <= 0:
            return entries[0][0]

        roll = self._rng.random() * total
        cumulative = 0.0
        selected = entries[0][0]
        for (key, _), weight in zip(entries, weights):
            if weight <= 0:
                continue
            cumulative += weight
            selected = key
            if roll < cumulative:
                return key
        return selected

    def chance(self, probability: float) -> bool:
        """True with the given probability (clamped to [0, 1])."""
        if probability <= 0:
            return False
        if probability >= 1:
            return True
        return self._rng.random() < probability

    def uniform(self, items: Sequence[T]) -> T:
        return self.choose([(item, 1.0) for item in items])

    def randint(self, low: int, high: int) -> int:
        return self._rng.randint(low, high)

    def random(self) -> float:
        return self._rng.random()

    def sample(self, items: Sequence[T], count: int) -> Tuple[T, ...]:
        """Draw `count` distinct items without replacement."""
        return tuple(self._rng.sample(list(items), count))
