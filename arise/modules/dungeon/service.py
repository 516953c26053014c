"""
Dungeon resolver.

Purpose
-------
Resolve one attempt at a dungeon floor. The outcome is a threshold test,
never a simulation: a character whose total Power reaches the floor's
required Power wins.

Responsibilities
----------------
- Victory rewards: XP with a small variance, equipment drops, shards, the
  cleared-floor record, boss companion extraction, companion evolution
  experience and season XP
- Defeat consolation XP
- Running the XP through leveling and the result through unlock recompute

Non-Responsibilities
--------------------
- Power computation (PowerAggregator)
- Item generation (LootGenerator)
- Combat simulation of any kind

Design Notes
------------
- Victory depends only on state and floor; randomness touches rewards only.
- Each drop samples its rarity from the floor's drop table and is then
  built by the loot generator at the player's level. Boss floors add a drop
  sampled from the boosted table.
- Reward order: drops, extraction, XP and level-ups, companion evolution,
  season XP, unlocks. Events come back in that order.
"""

from __future__ import annotations

import math
import random
from dataclasses import dataclass, replace
from datetime import datetime
from logging import Logger
from typing import List, Optional, Tuple

from arise.core.content.registry import ContentRegistry
from arise.domain.models import (
    CharacterState,
    Companion,
    Equipment,
    HunterRank,
    Rarity,
    RewardEvent,
    RewardKind,
)
from arise.modules.character.season import SeasonTracker
from arise.modules.companions.service import CompanionService
from arise.modules.dungeon.floors import DungeonFloor, FloorCalculator
from arise.modules.leveling.service import LevelingEngine
from arise.modules.loot.service import LootGenerator
from arise.modules.power.service import PowerAggregator
from arise.modules.shared import formulas
from arise.modules.shared.base_service import BaseService
from arise.modules.shared.constants import MIN_FLOOR
from arise.modules.unlocks.service import UnlockRuleEngine


@dataclass(frozen=True)
class DungeonResult:
    """
    Outcome of a floor attempt.

    Attributes:
        state: Character state after rewards, leveling and unlocks
        victory: Whether total Power reached the floor's requirement
        xp_award: XP granted (victory or consolation)
        drops: Items added to the inventory, in drop order
        companion_extracted: Companion gained on this run, if any
        rank_up: New season rank if one was reached, else None
        shards_award: Shards granted (0 on defeat)
        events: Reward events in the order they happened
        floor: The derived floor that was attempted
        power: The character's total Power at the time of the attempt
    """

    state: CharacterState
    victory: bool
    xp_award: int
    drops: Tuple[Equipment, ...]
    companion_extracted: Optional[Companion]
    rank_up: Optional[HunterRank]
    shards_award: int
    events: Tuple[RewardEvent, ...]
    floor: Optional[DungeonFloor] = None
    power: int = 0


class DungeonResolver(BaseService):
    """Threshold-based dungeon floor resolution."""

    def __init__(
        self,
        content: Optional[ContentRegistry] = None,
        rng: Optional[random.Random] = None,
        logger: Optional[Logger] = None,
        *,
        power: Optional[PowerAggregator] = None,
        loot: Optional[LootGenerator] = None,
        leveling: Optional[LevelingEngine] = None,
        companions: Optional[CompanionService] = None,
        unlocks: Optional[UnlockRuleEngine] = None,
        season: Optional[SeasonTracker] = None,
    ) -> None:
        super().__init__(content, rng, logger)
        rng = self.sampler.rng
        self._floors = FloorCalculator(self.content)
        self._power = power or PowerAggregator(self.content, rng)
        self._loot = loot or LootGenerator(self.content, rng)
        self._leveling = leveling or LevelingEngine(self.content, rng)
        self._companions = companions or CompanionService(self.content, rng)
        self._unlocks = unlocks or UnlockRuleEngine(self.content, rng)
        self._season = season or SeasonTracker(self.content, rng)

        self._victory_factor = float(self.get_content("dungeon.xp.victory_factor", 0.15))
        self._victory_variance = float(self.get_content("dungeon.xp.victory_variance", 0.2))
        self._defeat_factor = float(self.get_content("dungeon.xp.defeat_factor", 0.1))
        self._difficulty_span = int(self.get_content("dungeon.drops.difficulty_span", 20))
        self._bonus_chance = self.get_content("dungeon.drops.bonus_chance", {})
        self._deep_floor = self.get_content("dungeon.drops.deep_floor", {})
        self._shard_base = int(self.get_content("dungeon.shards.base", 10))
        self._shard_rank_factor = float(self.get_content("dungeon.shards.rank_factor", 0.3))
        self._shard_multipliers = self.get_content("dungeon.shards.rank_multipliers", {})

    @property
    def floors(self) -> FloorCalculator:
        return self._floors

    def required_power(self, floor: int) -> int:
        return self._floors.required_power(floor)

    def floor_info(self, floor: int) -> DungeonFloor:
        return self._floors.floor_info(floor)

    def resolve(self, floor_index: int, state: CharacterState, now: datetime) -> DungeonResult:
        """
        Attempt `floor_index` with the given character.

        Args:
            floor_index: Floor to attempt (values below 1 are treated as 1)
            state: Current character state
            now: Injected current time

        Returns:
            DungeonResult with the rewarded state and ordered events
        """
        floor = self._floors.floor_info(max(MIN_FLOOR, int(floor_index)))
        power = self._power.total_power(state)
        if power >= floor.required_power:
            return self._victory(floor, state, power, now)
        return self._defeat(floor, state, power, now)

    # =========================================================================
    # OUTCOMES
    # =========================================================================

    def _victory(
        self,
        floor: DungeonFloor,
        state: CharacterState,
        power: int,
        now: datetime,
    ) -> DungeonResult:
        events: List[RewardEvent] = []
        level = state.level

        xp_award = math.floor(
            floor.base_xp * self._victory_factor * (1 + self.sampler.random() * self._victory_variance)
        )

        drops = self._roll_drops(floor, level, now)
        for item in drops:
            events.append(
                RewardEvent(
                    kind=RewardKind.ITEM_DROP,
                    payload={
                        "item_id": item.id,
                        "name": item.name,
                        "slot": item.slot,
                        "rarity": item.rarity.value,
                        "floor": floor.index,
                    },
                    occurred_at=now,
                )
            )

        shards = self._shard_award(floor)
        state = replace(
            state,
            equipment=state.equipment + drops,
            currencies=replace(state.currencies, shards=state.currencies.shards + shards),
            cleared_floors=state.cleared_floors | {floor.index},
        )

        companion = None
        if floor.boss is not None:
            extraction = self._companions.extract(state, floor.boss, floor.index, floor.tier, now)
            state = extraction.state
            companion = extraction.companion
            events.extend(extraction.events)

        leveled = self._leveling.apply_xp(state, xp_award, now=now, source=f"dungeon:{floor.index}")
        state = leveled.state
        events.extend(leveled.events)

        state = self._companions.grant_evolution_xp(state, xp_award)

        season = self._season.grant(state, xp_award, now)
        state = season.state
        events.extend(season.events)

        unlocked = self._unlocks.recompute(state, now)
        state = unlocked.state
        events.extend(unlocked.events)

        self.log_operation(
            "dungeon_victory",
            floor=floor.index,
            tier=floor.tier.value,
            power=power,
            required_power=floor.required_power,
            xp_award=xp_award,
            drops=len(drops),
            shards=shards,
        )
        return DungeonResult(
            state=state,
            victory=True,
            xp_award=xp_award,
            drops=drops,
            companion_extracted=companion,
            rank_up=season.rank_up,
            shards_award=shards,
            events=tuple(events),
            floor=floor,
            power=power,
        )

    def _defeat(
        self,
        floor: DungeonFloor,
        state: CharacterState,
        power: int,
        now: datetime,
    ) -> DungeonResult:
        xp_award = math.floor(floor.base_xp * self._defeat_factor)
        leveled = self._leveling.apply_xp(state, xp_award, now=now, source=f"dungeon:{floor.index}")
        unlocked = self._unlocks.recompute(leveled.state, now)

        self.log_operation(
            "dungeon_defeat",
            floor=floor.index,
            power=power,
            required_power=floor.required_power,
            xp_award=xp_award,
        )
        return DungeonResult(
            state=unlocked.state,
            victory=False,
            xp_award=xp_award,
            drops=(),
            companion_extracted=None,
            rank_up=None,
            shards_award=0,
            events=leveled.events + unlocked.events,
            floor=floor,
            power=power,
        )

    # =========================================================================
    # REWARDS
    # =========================================================================

    def _roll_drops(self, floor: DungeonFloor, level: int, now: datetime) -> Tuple[Equipment, ...]:
        difficulty = math.ceil(floor.index / self._difficulty_span)
        tables = [floor.drop_table]

        if floor.is_boss:
            tables.append(self._floors.drop_table(floor.index, boss_boost=True))

        bonus = formulas.ramped_rate(
            floor.index,
            base=float(self._bonus_chance.get("base", 0.2)),
            growth=float(self._bonus_chance.get("growth", 0.002)),
            maximum=float(self._bonus_chance.get("max", 0.5)),
        )
        if self.sampler.chance(bonus):
            tables.append(floor.drop_table)

        if floor.index >= int(self._deep_floor.get("min_floor", 100)) and self.sampler.chance(
            float(self._deep_floor.get("chance", 0.3))
        ):
            tables.append(floor.drop_table)

        drops: List[Equipment] = []
        for table in tables:
            rarity: Rarity = self.sampler.choose(table.items())
            drops.append(
                self._loot.generate(
                    rarity_override=rarity,
                    level=level,
                    context_modifier=difficulty,
                    now=now,
                )
            )
        return tuple(drops)

    def _shard_award(self, floor: DungeonFloor) -> int:
        multiplier = float(self._shard_multipliers.get(floor.tier.value, 1))
        return math.floor(self._shard_base * (1 + multiplier * self._shard_rank_factor))
