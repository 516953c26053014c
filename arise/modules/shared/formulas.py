"""
Arise Progression Formulas

Purpose
-------
Pure calculation functions for the progression rules: the XP curve, dungeon
power requirements, drop-rate ramps, enhancement costs and reward scaling.

Design Notes
------------
- Pure functions only. Every tunable number is passed in by the caller,
  which reads it from the content registry.
- Results that represent counts (XP, Power, shards) are floored to ints.

Usage
-----
    from arise.modules.shared.formulas import xp_threshold

    needed = xp_threshold(level=2, base=100, exponent=1.5)  # 282
"""

from __future__ import annotations

import math
from typing import Optional


def xp_threshold(level: int, base: float = 100, exponent: float = 1.5) -> int:
    """
    XP needed to advance from `level` to `level + 1`.

    Formula: floor(base * level ** exponent)

    Example:
        >>> xp_threshold(1)
        100
        >>> xp_threshold(2)
        282
    """
    return math.floor(base * max(1, level) ** exponent)


def required_power(floor: int, base: float, linear: float, quadratic: float) -> int:
    """
    Power needed to clear a dungeon floor.

    Formula: floor(base + (f - 1) * linear + (f - 1) ** 2 * quadratic)

    Example:
        >>> required_power(1, 12000, 4500, 35)
        12000
        >>> required_power(2, 12000, 4500, 35)
        16535
    """
    offset = max(1, floor) - 1
    return math.floor(base + offset * linear + offset**2 * quadratic)


def ramped_rate(
    floor: int,
    base: float,
    growth: float,
    start: int = 0,
    minimum: float = 0.0,
    maximum: float = 1.0,
) -> float:
    """
    A probability that ramps linearly with the floor index.

    Zero below `start`; otherwise base + (f - start) * growth, clamped to
    [minimum, maximum].
    """
    if floor < start:
        return 0.0
    rate = base + (floor - start) * growth
    return min(maximum, max(minimum, rate))


def triangular(n: int) -> int:
    """n * (n + 1) / 2 for n >= 0."""
    n = max(0, n)
    return n * (n + 1) // 2


def level_stat_bonus(level: int, divisor: int = 5, cap: int = 10) -> int:
    """Flat bonus added to every loot stat roll: min(cap, floor(level / divisor))."""
    return min(cap, max(0, level) // divisor)


def streak_multiplier(streak: int, per_day: float = 0.05) -> float:
    """1 + streak * per_day. A streak of 1 gives 1.05 by default."""
    return 1 + max(0, streak) * per_day


def season_xp_share(xp: int, share: float = 0.25, minimum: int = 10) -> int:
    """Season XP earned alongside a regular XP award."""
    return max(minimum, math.floor(xp * share))


def enhancement_cost(current_level: int, levels: int, cost_per_level: int = 100) -> int:
    """
    Shard cost of raising an item `levels` times from `current_level`.

    Formula: sum(cost_per_level * (current_level + i + 1) for i in range(levels))

    Example:
        >>> enhancement_cost(0, 2)
        300
    """
    return sum(cost_per_level * (current_level + i + 1) for i in range(max(0, levels)))


def enhanced_stat_value(value: int, levels: int, growth: float = 1.1) -> int:
    """
    Stat value after `levels` successful enhancements.

    Grows geometrically but always by at least one point per level, so
    small stats still move: max(floor(v * growth ** n), v + n).
    """
    return max(math.floor(value * growth**levels), value + levels)


def capped_chance(base: float, bonus: float, cap: Optional[float] = None) -> float:
    chance = base + bonus
    if cap is not None:
        chance = min(cap, chance)
    return max(0.0, min(1.0, chance))
