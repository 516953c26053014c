"""
Inventory service.

Purpose
-------
Manage the equipment a character owns: wearing it, enhancing it with
shards, salvaging it back into shards and buying new pieces.

Responsibilities
----------------
- Equip (one item per slot) and unequip
- Enhancement: shard cost, success chance bands, failure pity, stat growth
- Salvage (single and bulk) into shards
- Shard purchases of freshly generated equipment

Non-Responsibilities
--------------------
- Item generation (LootGenerator)
- Power contribution of equipment (PowerAggregator)

Design Notes
------------
- Enhancement rolls once per requested level. Each attempt succeeds with
  min(base_chance(level) + failures * pity, max_chance); a success resets
  the pity counter, a failure raises it. The full shard cost is paid even
  when every attempt fails.
- Equipped items are never salvaged.
- Unknown ids and unaffordable requests are no-ops.
"""

from __future__ import annotations

import random
from dataclasses import dataclass, replace
from datetime import datetime
from logging import Logger
from typing import Any, Mapping, Optional, Sequence, Union

from arise.core.content.registry import ContentRegistry
from arise.domain.models import (
    CharacterState,
    Equipment,
    Outcome,
    Rarity,
    RewardEvent,
    RewardKind,
    StatRoll,
)
from arise.modules.loot.service import LootGenerator
from arise.modules.shared import formulas
from arise.modules.shared.base_service import BaseService
from arise.modules.shared.constants import MAX_ENHANCE_LEVELS_PER_CALL


@dataclass(frozen=True)
class EnhancementResult:
    state: CharacterState
    attempts: int = 0
    successes: int = 0
    cost: int = 0

    @property
    def failures(self) -> int:
        return self.attempts - self.successes


class InventoryService(BaseService):
    """Equipment ownership: equip, enhance, salvage and purchase."""

    def __init__(
        self,
        content: Optional[ContentRegistry] = None,
        rng: Optional[random.Random] = None,
        logger: Optional[Logger] = None,
        *,
        loot: Optional[LootGenerator] = None,
    ) -> None:
        super().__init__(content, rng, logger)
        self._loot = loot or LootGenerator(self.content, self.sampler.rng)
        self._cost_per_level = int(self.get_content("inventory.enhancement.cost_per_level", 100))
        self._chance_bands: Sequence[Mapping[str, Any]] = sorted(
            self.get_content("inventory.enhancement.chance_bands", ()),
            key=lambda band: band["min_level"],
            reverse=True,
        )
        self._pity = float(self.get_content("inventory.enhancement.pity_per_failure", 0.15))
        self._max_chance = float(self.get_content("inventory.enhancement.max_chance", 0.95))
        self._stat_growth = float(self.get_content("inventory.enhancement.stat_growth", 1.1))
        self._salvage_per_level = int(self.get_content("inventory.salvage.per_enhancement_level", 20))

    # =========================================================================
    # EQUIPPING
    # =========================================================================

    def equip_item(self, state: CharacterState, item_id: str) -> CharacterState:
        """Wear an item, taking off whatever was in its slot."""
        item = state.find_item(item_id)
        if item is None:
            return self.log_noop("equip_item", "unknown item", state, item_id=item_id)

        def updated(other: Equipment) -> Equipment:
            if other.id == item_id:
                return other if other.equipped else replace(other, equipped=True)
            if other.slot == item.slot and other.equipped:
                return replace(other, equipped=False)
            return other

        return replace(state, equipment=tuple(updated(e) for e in state.equipment))

    def unequip_item(self, state: CharacterState, item_id: str) -> CharacterState:
        item = state.find_item(item_id)
        if item is None or not item.equipped:
            return self.log_noop("unequip_item", "not equipped", state, item_id=item_id)
        return self._replace_item(state, replace(item, equipped=False))

    # =========================================================================
    # ENHANCEMENT
    # =========================================================================

    def base_chance(self, enhancement_level: int) -> float:
        """Success chance before pity, from the highest band the level reaches."""
        for band in self._chance_bands:
            if enhancement_level >= int(band["min_level"]):
                return float(band["chance"])
        return 1.0

    def enhance_item(self, state: CharacterState, item_id: str, levels: int = 1) -> EnhancementResult:
        """
        Try to raise an item `levels` times.

        Args:
            state: Current character state
            item_id: Item to enhance
            levels: Attempts to make; clamped to the rarity's max level

        Returns:
            EnhancementResult; `attempts` is 0 when nothing happened
        """
        item = state.find_item(item_id)
        if item is None:
            return EnhancementResult(
                state=self.log_noop("enhance_item", "unknown item", state, item_id=item_id)
            )

        max_level = self.content.rarity_tier(item.rarity).max_enhancement
        attempts = min(int(levels), MAX_ENHANCE_LEVELS_PER_CALL, max_level - item.enhancement_level)
        if attempts <= 0:
            return EnhancementResult(
                state=self.log_noop("enhance_item", "no levels to gain", state, item_id=item_id)
            )

        cost = formulas.enhancement_cost(item.enhancement_level, attempts, self._cost_per_level)
        if state.currencies.shards < cost:
            return EnhancementResult(
                state=self.log_noop(
                    "enhance_item",
                    "not enough shards",
                    state,
                    item_id=item_id,
                    cost=cost,
                    shards=state.currencies.shards,
                )
            )

        level = item.enhancement_level
        failures = item.consecutive_failures
        successes = 0
        for _ in range(attempts):
            chance = formulas.capped_chance(self.base_chance(level), failures * self._pity, self._max_chance)
            if self.sampler.chance(chance):
                level += 1
                successes += 1
                failures = 0
            else:
                failures += 1

        enhanced = replace(item, enhancement_level=level, consecutive_failures=failures)
        if successes:
            enhanced = replace(
                enhanced,
                stats=tuple(
                    StatRoll(
                        stat=roll.stat,
                        value=formulas.enhanced_stat_value(roll.value, successes, self._stat_growth),
                    )
                    for roll in item.stats
                ),
            )

        state = self._replace_item(state, enhanced)
        state = replace(
            state,
            currencies=replace(state.currencies, shards=state.currencies.shards - cost),
        )
        self.log_operation(
            "enhance_item",
            item_id=item_id,
            attempts=attempts,
            successes=successes,
            enhancement_level=level,
            cost=cost,
        )
        return EnhancementResult(state=state, attempts=attempts, successes=successes, cost=cost)

    # =========================================================================
    # SALVAGE AND PURCHASE
    # =========================================================================

    def salvage_value(self, item: Equipment) -> int:
        tier = self.content.rarity_tier(item.rarity)
        return tier.salvage_value + item.enhancement_level * self._salvage_per_level

    def salvage_item(self, state: CharacterState, item_id: str) -> CharacterState:
        item = state.find_item(item_id)
        if item is None:
            return self.log_noop("salvage_item", "unknown item", state, item_id=item_id)
        if item.equipped:
            return self.log_noop("salvage_item", "item is equipped", state, item_id=item_id)

        shards = self.salvage_value(item)
        self.log_operation("salvage_item", item_id=item_id, rarity=item.rarity.value, shards=shards)
        return replace(
            state,
            equipment=tuple(e for e in state.equipment if e.id != item_id),
            currencies=replace(state.currencies, shards=state.currencies.shards + shards),
        )

    def bulk_salvage(self, state: CharacterState, min_rarity_to_keep: Union[Rarity, str]) -> CharacterState:
        """Salvage every unequipped item below `min_rarity_to_keep`."""
        keep_from = Rarity.from_string(min_rarity_to_keep)
        salvaged = [e for e in state.equipment if not e.equipped and not e.rarity.at_least(keep_from)]
        if not salvaged:
            return self.log_noop("bulk_salvage", "nothing to salvage", state, keep_from=keep_from.value)

        shards = sum(self.salvage_value(e) for e in salvaged)
        removed = {e.id for e in salvaged}
        self.log_operation("bulk_salvage", items=len(salvaged), shards=shards, keep_from=keep_from.value)
        return replace(
            state,
            equipment=tuple(e for e in state.equipment if e.id not in removed),
            currencies=replace(state.currencies, shards=state.currencies.shards + shards),
        )

    def purchase_equipment(
        self,
        state: CharacterState,
        cost: int,
        now: datetime,
        rarity: Optional[Union[Rarity, str]] = None,
    ) -> Outcome:
        """Buy a generated item for `cost` shards, optionally of a fixed rarity."""
        cost = max(0, int(cost))
        if state.currencies.shards < cost:
            return Outcome(
                state=self.log_noop(
                    "purchase_equipment",
                    "not enough shards",
                    state,
                    cost=cost,
                    shards=state.currencies.shards,
                )
            )

        item = self._loot.generate(rarity_override=rarity, level=state.level, now=now)
        state = replace(
            state,
            equipment=state.equipment + (item,),
            currencies=replace(state.currencies, shards=state.currencies.shards - cost),
        )
        self.log_operation("purchase_equipment", item_id=item.id, rarity=item.rarity.value, cost=cost)
        event = RewardEvent(
            kind=RewardKind.ITEM_DROP,
            payload={
                "item_id": item.id,
                "name": item.name,
                "slot": item.slot,
                "rarity": item.rarity.value,
                "source": "purchase",
            },
            occurred_at=now,
        )
        return Outcome(state=state, events=(event,))

    @staticmethod
    def _replace_item(state: CharacterState, item: Equipment) -> CharacterState:
        return replace(state, equipment=tuple(item if e.id == item.id else e for e in state.equipment))
