"""
Dungeon floor derivation.

Everything about a floor is a pure function of its index: difficulty tier,
required Power, boss identity, base XP and the rarity drop table. Floors
are derived on demand and never stored.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from typing import Dict, Mapping, Optional

from arise.core.content.registry import ContentRegistry
from arise.domain.models import BossDefinition, HunterRank, Rarity
from arise.modules.shared import formulas
from arise.modules.shared.constants import MIN_FLOOR


@dataclass(frozen=True)
class DungeonFloor:
    index: int
    tier: HunterRank
    required_power: int
    base_xp: int
    boss: Optional[BossDefinition] = None
    drop_table: Mapping[Rarity, float] = field(default_factory=dict)

    @property
    def is_boss(self) -> bool:
        return self.boss is not None


class FloorCalculator:
    """Derives `DungeonFloor` values from the dungeon content tables."""

    def __init__(self, content: ContentRegistry) -> None:
        self._content = content
        self._tiers = content.dungeon_tiers or (HunterRank.E,)
        self._floors_per_tier = int(content.get("dungeon.floors_per_tier", 20))
        self._boss_interval = int(content.get("dungeon.boss_interval", 10))
        self._power_base = float(content.get("dungeon.power.base", 12000))
        self._power_linear = float(content.get("dungeon.power.linear", 4500))
        self._power_quadratic = float(content.get("dungeon.power.quadratic", 35))
        self._xp_ratio = float(content.get("dungeon.xp.base_ratio", 0.05))
        self._drop_rates: Mapping[str, Mapping[str, float]] = content.get("dungeon.drop_rates", {})
        self._boss_boost: Mapping[str, float] = content.get("dungeon.drops.boss_boost", {})

    def required_power(self, floor: int) -> int:
        """Power needed to clear `floor`; strictly increasing in the index."""
        return formulas.required_power(
            max(MIN_FLOOR, floor), self._power_base, self._power_linear, self._power_quadratic
        )

    def tier(self, floor: int) -> HunterRank:
        index = min((max(MIN_FLOOR, floor) - 1) // self._floors_per_tier, len(self._tiers) - 1)
        return self._tiers[index]

    def boss(self, floor: int) -> Optional[BossDefinition]:
        """
        Boss of a floor, if it is a boss floor.

        Bosses cycle through the configured list. Only the first pass
        through the list carries extractable companions.
        """
        bosses = self._content.bosses
        if not bosses or floor % self._boss_interval != 0:
            return None
        index = floor // self._boss_interval - 1
        boss = bosses[index % len(bosses)]
        if index >= len(bosses):
            boss = replace(boss, companion=None)
        return boss

    def drop_table(self, floor: int, boss_boost: bool = False) -> Dict[Rarity, float]:
        """
        Rarity probabilities for a drop on `floor`.

        Rates are assigned rarest first; once they reach 1 the remaining
        rarities are truncated. Common absorbs whatever is left, so the
        table always sums to 1.
        """
        remaining = 1.0
        table: Dict[Rarity, float] = {}
        for rarity in reversed(tuple(Rarity)):
            if rarity is Rarity.COMMON:
                continue
            spec = self._drop_rates.get(rarity.value)
            rate = 0.0
            if spec:
                rate = formulas.ramped_rate(
                    floor,
                    base=float(spec.get("base", 0)),
                    growth=float(spec.get("growth", 0)),
                    start=int(spec.get("start", 0)),
                    minimum=float(spec.get("min", 0.0)),
                    maximum=float(spec.get("max", 1.0)),
                )
            if boss_boost:
                rate *= float(self._boss_boost.get(rarity.value, 1))
            rate = min(max(0.0, rate), remaining)
            table[rarity] = rate
            remaining -= rate
        table[Rarity.COMMON] = max(0.0, remaining)
        return {rarity: table[rarity] for rarity in Rarity}

    def floor_info(self, floor: int) -> DungeonFloor:
        floor = max(MIN_FLOOR, int(floor))
        required = self.required_power(floor)
        return DungeonFloor(
            index=floor,
            tier=self.tier(floor),
            required_power=required,
            base_xp=math.floor(required * self._xp_ratio),
            boss=self.boss(floor),
            drop_table=self.drop_table(floor),
        )
