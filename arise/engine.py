"""
Progression engine facade.

Purpose
-------
One entry point for host applications. The facade wires every service to a
single content registry and a single random source, and exposes each
operation as `state in, Outcome out`.

Responsibilities
----------------
- Build the services with shared collaborators
- Run each operation inside a LogContext so log lines carry the operation
- Normalize return values to `Outcome(state, events)` (dungeon runs and
  enhancements return the richer `DungeonResult` and `EnhancementResult`)

Non-Responsibilities
--------------------
- Persistence, rendering, scheduling or remote sync
- Holding character state between calls

Usage
-----
    engine = ProgressionEngine(rng=random.Random(7))
    state = engine.new_character()
    state = engine.add_mission(state, Mission(id="gym", title="Gym", xp_reward=150)).state
    outcome = engine.complete_mission(state, "gym", now)
    result = engine.resolve_dungeon(1, outcome.state, now)
"""

from __future__ import annotations

import random
from datetime import datetime
from typing import Optional, Union

from arise.core.content.registry import ContentRegistry, default_registry
from arise.core.logging.logger import LogContext, get_logger
from arise.domain.models import (
    BaseStats,
    CharacterState,
    Equipment,
    Milestone,
    Mission,
    Outcome,
    Rarity,
)
from arise.modules.character import CharacterService, SeasonTracker
from arise.modules.companions import CompanionService
from arise.modules.dungeon import DungeonFloor, DungeonResolver, DungeonResult
from arise.modules.inventory import EnhancementResult, InventoryService
from arise.modules.leveling import LevelingEngine
from arise.modules.loot import LootGenerator
from arise.modules.missions import MissionService
from arise.modules.power import PowerAggregator, PowerBreakdown
from arise.modules.unlocks import UnlockRuleEngine

logger = get_logger(__name__)

__all__ = ["DungeonResult", "EnhancementResult", "Outcome", "ProgressionEngine"]


class ProgressionEngine:
    """
    Facade over the progression services.

    Args:
        content: Static content registry (defaults to the packaged content)
        rng: Random source shared by every service (defaults to
            `secrets.SystemRandom()`)
    """

    def __init__(
        self,
        content: Optional[ContentRegistry] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.content = content if content is not None else default_registry()

        self.leveling = LevelingEngine(self.content, rng)
        # Every service draws from the same random source
        rng = self.leveling.sampler.rng

        self.loot = LootGenerator(self.content, rng)
        self.power = PowerAggregator(self.content, rng)
        self.unlocks = UnlockRuleEngine(self.content, rng)
        self.companions = CompanionService(self.content, rng)
        self.season = SeasonTracker(self.content, rng)
        self.character = CharacterService(
            self.content, rng, leveling=self.leveling, unlocks=self.unlocks
        )
        self.missions = MissionService(
            self.content,
            rng,
            leveling=self.leveling,
            unlocks=self.unlocks,
            season=self.season,
            character=self.character,
        )
        self.inventory = InventoryService(self.content, rng, loot=self.loot)
        self.dungeon = DungeonResolver(
            self.content,
            rng,
            power=self.power,
            loot=self.loot,
            leveling=self.leveling,
            companions=self.companions,
            unlocks=self.unlocks,
            season=self.season,
        )

        logger.debug(
            "Progression engine initialized",
            extra={"content_source": self.content.source, "unlockables": len(self.unlocks.registry)},
        )

    @staticmethod
    def _context(operation: str, **extra) -> LogContext:
        return LogContext(operation=operation, component="engine", **extra)

    # =========================================================================
    # CHARACTER
    # =========================================================================

    def new_character(self) -> CharacterState:
        with self._context("new_character"):
            return self.character.new_character()

    def reconcile(self, state: CharacterState, now: datetime) -> Outcome:
        with self._context("reconcile"):
            return Outcome(state=self.character.reconcile(state, now))

    def apply_xp(
        self,
        state: CharacterState,
        delta: int,
        now: datetime,
        source: Optional[str] = None,
    ) -> Outcome:
        with self._context("apply_xp"):
            return self.character.award_xp(state, delta, now, source=source)

    def set_level(self, state: CharacterState, level: int) -> Outcome:
        with self._context("set_level"):
            return Outcome(state=self.leveling.set_level(state, level))

    def xp_threshold(self, level: int) -> int:
        return self.leveling.xp_threshold(level)

    def activate_buff(self, state: CharacterState, buff_id: str, now: datetime) -> Outcome:
        with self._context("activate_buff"):
            return Outcome(state=self.character.activate_buff(state, buff_id, now))

    def purchase_passive(self, state: CharacterState, passive_id: str) -> Outcome:
        with self._context("purchase_passive"):
            return Outcome(state=self.character.purchase_passive(state, passive_id))

    def open_daily_chest(self, state: CharacterState, now: datetime) -> Outcome:
        with self._context("open_daily_chest"):
            return self.character.open_daily_chest(state, now)

    def add_milestone(self, state: CharacterState, milestone: Milestone) -> Outcome:
        with self._context("add_milestone"):
            return Outcome(state=self.character.add_milestone(state, milestone))

    def complete_milestone(self, state: CharacterState, milestone_id: str, now: datetime) -> Outcome:
        with self._context("complete_milestone"):
            return self.character.complete_milestone(state, milestone_id, now)

    def advance_progression_tier(self, state: CharacterState, tier: int) -> Outcome:
        with self._context("advance_progression_tier"):
            return Outcome(state=self.character.advance_progression_tier(state, tier))

    # =========================================================================
    # MISSIONS
    # =========================================================================

    def add_mission(self, state: CharacterState, mission: Mission) -> Outcome:
        with self._context("add_mission"):
            return Outcome(state=self.missions.add_mission(state, mission))

    def complete_mission(self, state: CharacterState, mission_id: str, now: datetime) -> Outcome:
        with self._context("complete_mission", mission_id=mission_id):
            return self.missions.complete_mission(state, mission_id, now)

    # =========================================================================
    # EQUIPMENT
    # =========================================================================

    def generate_equipment(
        self,
        slot_hint: Optional[str] = None,
        rarity_override: Optional[Union[Rarity, str]] = None,
        level: int = 1,
        context_modifier: float = 1,
        now: Optional[datetime] = None,
    ) -> Equipment:
        with self._context("generate_equipment"):
            return self.loot.generate(slot_hint, rarity_override, level, context_modifier, now)

    def equip_item(self, state: CharacterState, item_id: str) -> Outcome:
        with self._context("equip_item"):
            return Outcome(state=self.inventory.equip_item(state, item_id))

    def unequip_item(self, state: CharacterState, item_id: str) -> Outcome:
        with self._context("unequip_item"):
            return Outcome(state=self.inventory.unequip_item(state, item_id))

    def enhance_item(self, state: CharacterState, item_id: str, levels: int = 1) -> EnhancementResult:
        with self._context("enhance_item", item_id=item_id):
            return self.inventory.enhance_item(state, item_id, levels)

    def salvage_item(self, state: CharacterState, item_id: str) -> Outcome:
        with self._context("salvage_item"):
            return Outcome(state=self.inventory.salvage_item(state, item_id))

    def bulk_salvage(self, state: CharacterState, min_rarity_to_keep: Union[Rarity, str]) -> Outcome:
        with self._context("bulk_salvage"):
            return Outcome(state=self.inventory.bulk_salvage(state, min_rarity_to_keep))

    def purchase_equipment(
        self,
        state: CharacterState,
        cost: int,
        now: datetime,
        rarity: Optional[Union[Rarity, str]] = None,
    ) -> Outcome:
        with self._context("purchase_equipment"):
            return self.inventory.purchase_equipment(state, cost, now, rarity=rarity)

    # =========================================================================
    # POWER
    # =========================================================================

    def compute_breakdown(self, state: CharacterState) -> PowerBreakdown:
        return self.power.compute_breakdown(state)

    def total_power(self, state: CharacterState) -> int:
        return self.power.total_power(state)

    def effective_stats(self, state: CharacterState, now: datetime) -> BaseStats:
        return self.power.effective_stats(state, now)

    # =========================================================================
    # DUNGEON AND COMPANIONS
    # =========================================================================

    def floor_info(self, floor: int) -> DungeonFloor:
        return self.dungeon.floor_info(floor)

    def required_power(self, floor: int) -> int:
        return self.dungeon.required_power(floor)

    def resolve_dungeon(self, floor_index: int, state: CharacterState, now: datetime) -> DungeonResult:
        with self._context("resolve_dungeon", floor=floor_index):
            return self.dungeon.resolve(floor_index, state, now)

    def equip_companion(self, state: CharacterState, companion_id: Optional[str]) -> Outcome:
        with self._context("equip_companion"):
            return Outcome(state=self.companions.equip_companion(state, companion_id))

    # =========================================================================
    # UNLOCKS
    # =========================================================================

    def recompute_unlocks(self, state: CharacterState, now: datetime) -> Outcome:
        with self._context("recompute_unlocks"):
            result = self.unlocks.recompute(state, now)
            return Outcome(state=result.state, events=result.events)

    def equip_title(self, state: CharacterState, title_id: Optional[str]) -> Outcome:
        with self._context("equip_title"):
            return Outcome(state=self.unlocks.equip_title(state, title_id))

    def equip_frame(self, state: CharacterState, frame_id: Optional[str]) -> Outcome:
        with self._context("equip_frame"):
            return Outcome(state=self.unlocks.equip_frame(state, frame_id))
