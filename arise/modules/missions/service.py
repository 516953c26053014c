"""
Mission service.

Purpose
-------
Missions are the recurring real-world tasks that feed the whole engine.
Completing one pays XP (boosted by the daily streak and active buffs),
shards, a stat point and season XP, then lets leveling and unlocks catch up.

Responsibilities
----------------
- Adding mission definitions
- Once-per-day completion with per-mission and global streaks
- XP, shard, stat and season rewards for a completion

Design Notes
------------
- A mission's streak continues when its previous completion was on the
  previous day it was scheduled; missions without a schedule run daily.
- The global streak counts active days: +1 on the first completion of a
  day following an active yesterday, unchanged on later completions the
  same day, back to 1 after a gap.
- Shards scale with the level the character had before this completion.
- Events: xp_gain, level_up (per level), rank_up, then unlock events.
"""

from __future__ import annotations

import math
import random
from dataclasses import replace
from datetime import date, datetime, timedelta
from logging import Logger
from typing import Optional

from arise.core.content.registry import ContentRegistry
from arise.core.invariants import check_invariant
from arise.domain.models import STAT_KINDS, CharacterState, Mission, Outcome
from arise.modules.character.season import SeasonTracker
from arise.modules.character.service import CharacterService
from arise.modules.leveling.service import LevelingEngine
from arise.modules.shared import formulas
from arise.modules.shared.base_service import BaseService
from arise.modules.unlocks.service import UnlockRuleEngine


class MissionService(BaseService):
    """Mission bookkeeping and completion rewards."""

    def __init__(
        self,
        content: Optional[ContentRegistry] = None,
        rng: Optional[random.Random] = None,
        logger: Optional[Logger] = None,
        *,
        leveling: Optional[LevelingEngine] = None,
        unlocks: Optional[UnlockRuleEngine] = None,
        season: Optional[SeasonTracker] = None,
        character: Optional[CharacterService] = None,
    ) -> None:
        super().__init__(content, rng, logger)
        rng = self.sampler.rng
        self._leveling = leveling or LevelingEngine(self.content, rng)
        self._unlocks = unlocks or UnlockRuleEngine(self.content, rng)
        self._season = season or SeasonTracker(self.content, rng)
        self._character = character or CharacterService(
            self.content, rng, leveling=self._leveling, unlocks=self._unlocks
        )
        self._streak_bonus = float(self.get_content("missions.streak_bonus_per_day", 0.05))
        self._stat_gain = int(self.get_content("missions.stat_gain", 1))
        self._shard_base = int(self.get_content("missions.shards.base", 15))
        self._shard_spread = int(self.get_content("missions.shards.spread", 24))
        self._shard_streak_factor = float(self.get_content("missions.shards.streak_factor", 0.1))
        self._shard_level_factor = float(self.get_content("missions.shards.level_factor", 0.05))

    def add_mission(self, state: CharacterState, mission: Mission) -> CharacterState:
        if state.find_mission(mission.id) is not None:
            return self.log_noop("add_mission", "duplicate id", state, mission_id=mission.id)
        if mission.target_stat is not None and not check_invariant(
            mission.target_stat in STAT_KINDS,
            "Unknown mission target stat",
            mission_id=mission.id,
            target_stat=mission.target_stat,
        ):
            mission = replace(mission, target_stat=None)
        return replace(state, missions=state.missions + (mission,))

    def complete_mission(self, state: CharacterState, mission_id: str, now: datetime) -> Outcome:
        """
        Complete a mission for today and pay its rewards.

        Args:
            state: Current character state
            mission_id: Mission to complete
            now: Injected current time; its date is "today"

        Returns:
            Outcome with the rewarded state and ordered events; an unknown
            mission or a second completion on the same day is a no-op
        """
        mission = state.find_mission(mission_id)
        today = now.date()
        if mission is None or mission.last_completed_on == today:
            reason = "unknown mission" if mission is None else "already completed today"
            return Outcome(
                state=self.log_noop("complete_mission", reason, state, mission_id=mission_id)
            )

        streak = self._global_streak(state, today)
        xp = math.floor(
            mission.xp_reward
            * formulas.streak_multiplier(streak, self._streak_bonus)
            * self._character.xp_multiplier(state, now)
        )
        shards = math.floor(
            (self._shard_base + self.sampler.randint(0, self._shard_spread))
            * (1 + streak * self._shard_streak_factor)
            * (1 + state.level * self._shard_level_factor)
        )

        completed = replace(
            mission,
            streak=self._mission_streak(mission, today),
            completions=mission.completions + 1,
            last_completed_on=today,
        )
        stats = state.stats
        if mission.target_stat in STAT_KINDS:
            stats = stats.with_bonuses({mission.target_stat: self._stat_gain})

        state = replace(
            state,
            missions=tuple(completed if m.id == mission_id else m for m in state.missions),
            stats=stats,
            streak=streak,
            last_active_on=today,
            currencies=replace(state.currencies, shards=state.currencies.shards + shards),
        )

        leveled = self._leveling.apply_xp(state, xp, now=now, source=f"mission:{mission_id}")
        season = self._season.grant(leveled.state, xp, now)
        unlocked = self._unlocks.recompute(season.state, now)

        self.log_operation(
            "complete_mission",
            mission_id=mission_id,
            xp=xp,
            shards=shards,
            streak=streak,
            mission_streak=completed.streak,
        )
        return Outcome(
            state=unlocked.state,
            events=leveled.events + season.events + unlocked.events,
        )

    # =========================================================================
    # STREAKS
    # =========================================================================

    @staticmethod
    def _global_streak(state: CharacterState, today: date) -> int:
        if state.last_active_on == today:
            return max(1, state.streak)
        if state.last_active_on == today - timedelta(days=1):
            return state.streak + 1
        return 1

    @staticmethod
    def _mission_streak(mission: Mission, today: date) -> int:
        if mission.last_completed_on is None:
            return 1
        previous = today - timedelta(days=1)
        for _ in range(7):
            if mission.is_scheduled_on(previous):
                break
            previous -= timedelta(days=1)
        return mission.streak + 1 if mission.last_completed_on == previous else 1
