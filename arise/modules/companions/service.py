"""
Companion service.

Purpose
-------
Companions are extracted from dungeon bosses, can be equipped for a stat
bonus, and evolve from the experience of dungeon victories.

Responsibilities
----------------
- Extraction, idempotent by companion name
- Equip / unequip
- Evolution experience and evolution thresholds

Design Notes
------------
- Evolution experience is cumulative; thresholds are totals (500, then
  2000 by default). Each evolution adds a flat bonus to the companion's
  stat bonus.
- Power counts every owned companion by rank; only the equipped one feeds
  effective stats.
"""

from __future__ import annotations

import math
import random
from dataclasses import dataclass, replace
from datetime import datetime
from logging import Logger
from typing import Optional, Tuple

from arise.core.content.registry import ContentRegistry
from arise.domain.models import (
    BossDefinition,
    CharacterState,
    Companion,
    HunterRank,
    RewardEvent,
    RewardKind,
)
from arise.modules.shared.base_service import BaseService


@dataclass(frozen=True)
class ExtractionResult:
    state: CharacterState
    companion: Optional[Companion]
    events: Tuple[RewardEvent, ...]


class CompanionService(BaseService):
    """Companion extraction, equipping and evolution."""

    def __init__(
        self,
        content: Optional[ContentRegistry] = None,
        rng: Optional[random.Random] = None,
        logger: Optional[Logger] = None,
    ) -> None:
        super().__init__(content, rng, logger)
        self._bonus_stat = str(self.get_content("companions.bonus_stat", "strength"))
        self._bonus_per_floor = float(self.get_content("companions.bonus_per_floor", 2.5))
        self._xp_share = float(self.get_content("companions.evolution.xp_share", 0.2))
        self._thresholds = tuple(
            int(t) for t in self.get_content("companions.evolution.thresholds", (500, 2000))
        )
        self._bonus_per_evolution = int(self.get_content("companions.evolution.bonus_per_evolution", 5))

    def extract(
        self,
        state: CharacterState,
        boss: BossDefinition,
        floor: int,
        rank: HunterRank,
        now: datetime,
    ) -> ExtractionResult:
        """
        Add the boss's companion unless one with the same name is owned.

        The companion's rank is the floor's difficulty tier and its bonus is
        floor(floor * bonus_per_floor) on the configured stat.
        """
        if not boss.extractable:
            return ExtractionResult(state=state, companion=None, events=())
        if state.owns_companion_named(boss.companion):
            self.log_noop("extract_companion", "already owned", state, companion=boss.companion)
            return ExtractionResult(state=state, companion=None, events=())

        companion = Companion(
            id=boss.companion.lower(),
            name=boss.companion,
            rank=rank,
            bonus_stat=self._bonus_stat,
            bonus_value=math.floor(floor * self._bonus_per_floor),
            source_floor=floor,
            extracted_at=now,
        )
        new_state = replace(state, companions=state.companions + (companion,))
        event = RewardEvent(
            kind=RewardKind.COMPANION_EXTRACTED,
            payload={
                "companion_id": companion.id,
                "name": companion.name,
                "rank": companion.rank.value,
                "boss": boss.name,
                "floor": floor,
            },
            occurred_at=now,
        )
        self.log_operation(
            "extract_companion",
            companion=companion.name,
            rank=companion.rank.value,
            floor=floor,
        )
        return ExtractionResult(state=new_state, companion=companion, events=(event,))

    def equip_companion(self, state: CharacterState, companion_id: Optional[str]) -> CharacterState:
        """Equip an owned companion; `None` unequips. Unknown ids are a no-op."""
        if companion_id is None:
            return replace(state, equipped_companion_id=None)
        if state.find_companion(companion_id) is None:
            return self.log_noop("equip_companion", "unknown companion", state, companion_id=companion_id)
        return replace(state, equipped_companion_id=companion_id)

    def grant_evolution_xp(self, state: CharacterState, dungeon_xp: int) -> CharacterState:
        """
        Give the equipped companion its share of a dungeon XP award.

        Crossing an evolution threshold raises the evolution level and the
        stat bonus; experience keeps accumulating past the last threshold.
        """
        if state.equipped_companion_id is None:
            return state
        companion = state.find_companion(state.equipped_companion_id)
        if companion is None:
            return state

        gained = math.floor(max(0, dungeon_xp) * self._xp_share)
        if gained <= 0:
            return state

        xp = companion.evolution_xp + gained
        level = companion.evolution_level
        bonus = companion.bonus_value
        while level < len(self._thresholds) and xp >= self._thresholds[level]:
            level += 1
            bonus += self._bonus_per_evolution

        if level > companion.evolution_level:
            self.log_operation(
                "companion_evolved",
                companion=companion.name,
                evolution_level=level,
                bonus_value=bonus,
            )

        evolved = replace(companion, evolution_xp=xp, evolution_level=level, bonus_value=bonus)
        return replace(
            state,
            companions=tuple(evolved if c.id == companion.id else c for c in state.companions),
        )
