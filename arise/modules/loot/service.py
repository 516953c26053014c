"""
Loot generation.

Purpose
-------
Create procedurally generated equipment: pick a rarity (weighted, optionally
biased by a difficulty modifier), a slot, a name and a set of stat rolls.

Responsibilities
----------------
- Difficulty-adjusted rarity weights and the rarity roll
- Slot selection, name templates (prefix / root / suffix)
- Stat rolls: distinct stat kinds, count bounded by the rarity tier
- Rarity overrides, used by dungeon drops and shop purchases

Non-Responsibilities
--------------------
- Adding items to a character (inventory and dungeon services do that)
- Enhancement and salvage (InventoryService)

Design Notes
------------
- Every random pick goes through the injected sampler, so a seeded RNG
  reproduces the same item, id included.
- A rarity override skips the rarity roll entirely.
"""

from __future__ import annotations

import random
from datetime import datetime, timezone
from logging import Logger
from typing import Any, Dict, Mapping, Optional, Union

from arise.core.content.registry import ContentRegistry
from arise.core.invariants import check_invariant
from arise.core.logging.logger import get_logger
from arise.domain.models import Equipment, Rarity, StatRoll
from arise.modules.shared import formulas
from arise.modules.shared.base_service import BaseService
from arise.modules.shared.constants import MIN_DIFFICULTY

logger = get_logger(__name__)

RarityLike = Union[Rarity, str]


class LootGenerator(BaseService):
    """Procedural equipment generator."""

    def __init__(
        self,
        content: Optional[ContentRegistry] = None,
        rng: Optional[random.Random] = None,
        logger: Optional[Logger] = None,
    ) -> None:
        super().__init__(content, rng, logger)
        self._level_divisor = int(self.get_content("loot.level_bonus.divisor", 5))
        self._level_cap = int(self.get_content("loot.level_bonus.cap", 10))

    # =========================================================================
    # RARITY
    # =========================================================================

    def stat_count(self, rarity: RarityLike) -> int:
        """
        Number of stat rolls an item of this rarity gets.

        Clamped to the size of the stat universe; a tier asking for more is
        a content invariant violation.
        """
        count = self.content.rarity_tier(Rarity.from_string(rarity)).stat_count
        universe = len(self.content.stat_kinds)
        if not check_invariant(
            count <= universe,
            "Rarity stat count exceeds stat universe",
            rarity=str(Rarity.from_string(rarity).value),
            stat_count=count,
            universe=universe,
        ):
            count = universe
        return max(0, count)

    def rarity_weights(self, context_modifier: float = 1) -> Dict[Rarity, float]:
        """
        Base rarity weights adjusted for difficulty.

        - The first boost band whose threshold the difficulty reaches adds
          its per-rarity boosts.
        - At or above the shift threshold, (d - 1) * per_level is taken from
          the lowest tiers (each kept at its floor) and given to the receiver.
        - No weight drops below zero.
        """
        weights: Dict[Rarity, float] = {tier.rarity: tier.weight for tier in self.content.rarity_tiers}
        difficulty = max(MIN_DIFFICULTY, context_modifier)

        for band in self.get_content("loot.difficulty.boost_bands", ()):
            if difficulty >= band["min_difficulty"]:
                for rarity, boost in band.get("boosts", {}).items():
                    weights[Rarity.from_string(rarity)] += float(boost)
                break

        shift: Mapping[str, Any] = self.get_content("loot.difficulty.shift", {})
        if shift and difficulty >= shift.get("min_difficulty", float("inf")):
            bonus = (difficulty - 1) * float(shift.get("per_level", 0))
            for rarity, floor_weight in shift.get("floors", {}).items():
                key = Rarity.from_string(rarity)
                weights[key] = max(float(floor_weight), weights[key] - bonus)
            receiver = Rarity.from_string(shift.get("receiver", Rarity.RARE.value))
            weights[receiver] += bonus

        return {rarity: max(0.0, weight) for rarity, weight in weights.items()}

    def roll_rarity(self, context_modifier: float = 1) -> Rarity:
        return self.sampler.choose(self.rarity_weights(context_modifier).items())

    # =========================================================================
    # GENERATION
    # =========================================================================

    def generate(
        self,
        slot_hint: Optional[str] = None,
        rarity_override: Optional[RarityLike] = None,
        level: int = 1,
        context_modifier: float = 1,
        now: Optional[datetime] = None,
    ) -> Equipment:
        """
        Generate one equipment item.

        Args:
            slot_hint: Force this slot instead of a uniform pick
            rarity_override: Force this rarity; skips the rarity roll
            level: Character level; adds min(10, floor(level / 5)) to each roll
            context_modifier: Difficulty; biases the rarity roll
            now: Creation timestamp

        Returns:
            A new, unequipped item at enhancement 0
        """
        if rarity_override is not None:
            rarity = self._parse_rarity(rarity_override)
        else:
            rarity = self.roll_rarity(context_modifier)
        return self._build(rarity, slot_hint, level, now)

    def _build(
        self,
        rarity: Rarity,
        slot_hint: Optional[str],
        level: int,
        now: Optional[datetime],
    ) -> Equipment:
        slot = self._pick_slot(slot_hint)
        item = Equipment(
            id=f"eq_{self.sampler.rng.getrandbits(64):016x}",
            name=self._roll_name(slot),
            slot=slot,
            rarity=rarity,
            enhancement_level=0,
            stats=self._roll_stats(rarity, level),
            equipped=False,
            created_at=now or datetime.now(timezone.utc),
        )
        logger.debug(
            "Equipment generated",
            extra={
                "item_id": item.id,
                "slot": slot,
                "rarity": rarity.value,
                "stat_total": item.stat_total,
            },
        )
        return item

    def _parse_rarity(self, value: RarityLike) -> Rarity:
        known = {r.value for r in Rarity}
        raw = value.value if isinstance(value, Rarity) else str(value).strip().lower()
        if not check_invariant(raw in known, "Unknown rarity override", rarity=str(value)):
            return Rarity.lowest()
        return Rarity(raw)

    def _pick_slot(self, slot_hint: Optional[str]) -> str:
        slots = self.content.slots
        if slot_hint is not None and check_invariant(
            slot_hint in slots, "Unknown equipment slot", slot=slot_hint
        ):
            return slot_hint
        return self.sampler.uniform(slots)

    def _roll_name(self, slot: str) -> str:
        roots = self.content.slot_roots(slot) or (slot.title(),)
        prefixes = self.content.prefixes or ("",)
        suffixes = self.content.suffixes or ("",)
        templates = self.content.name_templates or (("{root}", 1.0),)

        pattern = self.sampler.choose(templates)
        name = pattern.format(
            prefix=self.sampler.uniform(prefixes),
            root=self.sampler.uniform(roots),
            suffix=self.sampler.uniform(suffixes),
        )
        return " ".join(name.split())

    def _roll_stats(self, rarity: Rarity, level: int):
        tier = self.content.rarity_tier(rarity)
        bonus = formulas.level_stat_bonus(level, self._level_divisor, self._level_cap)
        kinds = self.sampler.sample(self.content.stat_kinds, self.stat_count(rarity))
        return tuple(
            StatRoll(stat=kind, value=self.sampler.randint(tier.stat_min, tier.stat_max) + bonus)
            for kind in kinds
        )
