"""
Power aggregation.

Purpose
-------
Fold a character's whole progression into one Power score, broken down by
component, and derive the effective (display) stats.

Responsibilities
----------------
- Per-component Power: base stats, level, titles, frames, companions,
  equipment, passives, progression tier
- Effective stats: base stats plus gear, companion, passives, active buffs
  and season-rank bonuses

Design Notes
------------
- Pure and stateless: Power is re-derived from the state on every call and
  never cached on it. The input state is never touched.
- Every component is a sum, so the result does not depend on the order of
  any collection.
- Power deliberately uses raw base stats. Buffs and gear stats only show up
  in `effective_stats`, apart from the equipment component itself.
- Unknown ids or rarities contribute 0 (an invariant violation in strict
  mode).
"""

from __future__ import annotations

import math
import random
from dataclasses import asdict, dataclass
from datetime import datetime
from logging import Logger
from typing import Dict, Mapping, Optional

from arise.core.content.registry import ContentRegistry
from arise.core.invariants import check_invariant
from arise.domain.models import (
    BaseStats,
    CharacterState,
    Rarity,
    UnlockableDefinition,
)
from arise.modules.shared import formulas
from arise.modules.shared.base_service import BaseService


@dataclass(frozen=True)
class PowerBreakdown:
    """Power by component; `total` is the floored sum of the components."""

    base_stats: int = 0
    level: int = 0
    equipped_title: int = 0
    title_collection: int = 0
    equipped_frame: int = 0
    frame_collection: int = 0
    companions: int = 0
    equipment: int = 0
    passives: int = 0
    progression_tier: int = 0
    total: int = 0

    def as_dict(self) -> Dict[str, int]:
        return asdict(self)


class PowerAggregator(BaseService):
    """Pure Power calculator over `CharacterState`."""

    def __init__(
        self,
        content: Optional[ContentRegistry] = None,
        rng: Optional[random.Random] = None,
        logger: Optional[Logger] = None,
    ) -> None:
        super().__init__(content, rng, logger)
        self._scale = float(self.get_content("power.scale", 12))
        self._stat_weight = float(self.get_content("power.stat_weight", 40))
        self._level_weight = float(self.get_content("power.level_weight", 400))
        self._collection_share = float(self.get_content("power.collection_share", 0.1))
        self._equipment_factor = float(self.get_content("power.equipment_factor", 3))
        self._passive_factor = float(self.get_content("power.passive_factor", 400))
        self._tier_unit = float(self.get_content("power.progression_tier_unit", 2500))
        self._frame_power: Mapping[str, float] = self.get_content("power.frame_power", {})
        self._excluded_frames = frozenset(self.get_content("power.excluded_frames", ()))
        self._rank_power: Mapping[str, float] = self.get_content("power.companion_rank_power", {})
        self._companion_milestones = tuple(self.get_content("power.companion_milestones", ()))

    # =========================================================================
    # POWER
    # =========================================================================

    def compute_breakdown(self, state: CharacterState) -> PowerBreakdown:
        """
        Compute Power per component for a character.

        Example:
            >>> aggregator.compute_breakdown(CharacterState()).base_stats
            28800
        """
        components = {
            "base_stats": state.stats.total * self._stat_weight * self._scale,
            "level": state.level * self._level_weight * self._scale,
            "equipped_title": self._equipped_title_power(state),
            "title_collection": self._title_collection_power(state),
            "equipped_frame": self._equipped_frame_power(state),
            "frame_collection": self._frame_collection_power(state),
            "companions": self._companion_power(state),
            "equipment": self._equipment_power(state),
            "passives": self._passive_power(state),
            "progression_tier": formulas.triangular(state.progression_tier)
            * self._tier_unit
            * self._scale,
        }
        total = math.floor(sum(components.values()))
        return PowerBreakdown(
            **{name: math.floor(value) for name, value in components.items()},
            total=total,
        )

    def total_power(self, state: CharacterState) -> int:
        return self.compute_breakdown(state).total

    def title_power(self, definition: UnlockableDefinition) -> float:
        known = {r.value for r in Rarity}
        if not check_invariant(
            definition.rarity in known,
            "Title has unknown rarity",
            title_id=definition.id,
            rarity=definition.rarity,
        ):
            return 0
        return self.content.rarity_tier(Rarity(definition.rarity)).title_power

    def frame_power(self, definition: UnlockableDefinition) -> float:
        if definition.id in self._excluded_frames:
            return 0
        if not check_invariant(
            definition.rarity in self._frame_power,
            "Frame has unknown grade",
            frame_id=definition.id,
            grade=definition.rarity,
        ):
            return 0
        return float(self._frame_power[definition.rarity])

    def _equipped_title_power(self, state: CharacterState) -> float:
        if state.equipped_title_id is None:
            return 0
        definition = self.content.title(state.equipped_title_id)
        if not check_invariant(
            definition is not None, "Equipped title is not defined", title_id=state.equipped_title_id
        ):
            return 0
        return self.title_power(definition) * self._scale

    def _title_collection_power(self, state: CharacterState) -> float:
        total = 0
        for title_id in state.unlocked_title_ids - {state.equipped_title_id}:
            definition = self.content.title(title_id)
            if not check_invariant(
                definition is not None, "Unlocked title is not defined", title_id=title_id
            ):
                continue
            total += math.floor(self.title_power(definition) * self._scale * self._collection_share)
        return total

    def _equipped_frame_power(self, state: CharacterState) -> float:
        if state.equipped_frame_id is None:
            return 0
        definition = self.content.frame(state.equipped_frame_id)
        if not check_invariant(
            definition is not None, "Equipped frame is not defined", frame_id=state.equipped_frame_id
        ):
            return 0
        return self.frame_power(definition) * self._scale

    def _frame_collection_power(self, state: CharacterState) -> float:
        total = 0
        for frame_id in state.unlocked_frame_ids - {state.equipped_frame_id}:
            definition = self.content.frame(frame_id)
            if not check_invariant(
                definition is not None, "Unlocked frame is not defined", frame_id=frame_id
            ):
                continue
            total += math.floor(self.frame_power(definition) * self._scale * self._collection_share)
        return total

    def _companion_power(self, state: CharacterState) -> float:
        total = 0.0
        for companion in state.companions:
            rank = companion.rank.value
            if not check_invariant(
                rank in self._rank_power,
                "Companion rank has no Power value",
                companion_id=companion.id,
                rank=rank,
            ):
                continue
            total += float(self._rank_power[rank]) * self._scale

        owned = len(state.companions)
        for milestone in self._companion_milestones:
            if owned >= int(milestone["count"]):
                total += float(milestone["bonus"]) * self._scale
        return total

    def _equipment_power(self, state: CharacterState) -> float:
        total = 0
        for item in state.equipped_items():
            multiplier = self.content.rarity_tier(item.rarity).power_multiplier
            total += math.floor(item.stat_total * multiplier * self._equipment_factor) * self._scale
        return total

    def _passive_power(self, state: CharacterState) -> float:
        total = 0
        for passive_id, level in state.passive_levels.items():
            definition = self.content.passives.get(passive_id)
            if not check_invariant(
                definition is not None, "Passive is not defined", passive_id=passive_id
            ):
                continue
            total += (
                math.floor(definition.bonus_total_per_level * level * self._passive_factor)
                * self._scale
            )
        return total

    # =========================================================================
    # EFFECTIVE STATS
    # =========================================================================

    def effective_stats(self, state: CharacterState, now: datetime) -> BaseStats:
        """
        Base stats plus every active bonus source.

        Sources: equipped items, the equipped companion, passives, buffs with
        `expires_at > now` and the current season rank's bonus.
        """
        bonuses: Dict[str, int] = {}

        def add(stat: str, value: int) -> None:
            bonuses[stat] = bonuses.get(stat, 0) + int(value)

        for item in state.equipped_items():
            for roll in item.stats:
                add(roll.stat, roll.value)

        if state.equipped_companion_id is not None:
            companion = state.find_companion(state.equipped_companion_id)
            if companion is not None:
                add(companion.bonus_stat, companion.bonus_value)

        for passive_id, level in state.passive_levels.items():
            definition = self.content.passives.get(passive_id)
            if definition is None:
                continue
            for stat, per_level in definition.stat_bonus_per_level.items():
                add(stat, per_level * level)

        for buff in state.active_buffs:
            definition = self.content.buffs.get(buff.buff_id)
            if definition is None or not buff.is_active(now):
                continue
            for stat, value in definition.stat_modifiers.items():
                add(stat, value)

        for rank in self.content.season_ranks:
            if rank.rank == state.season.rank:
                for stat, value in rank.stat_bonus.items():
                    add(stat, value)

        return state.stats.with_bonuses(bonuses)
