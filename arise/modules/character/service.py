"""
Character bookkeeping service.

Purpose
-------
Everything that changes a character outside of missions, dungeons and the
inventory: creating a fresh character, daily reconciliation, buffs,
passives, the daily chest, milestones, job-class tiers and plain XP awards.

Responsibilities
----------------
- Starting state with configured base stats
- Daily reconcile: expire buffs, break a streak after a missed day
- Buff activation and the active XP multiplier
- Passive purchases paid with passive points
- Once-a-day chest XP
- Milestone bookkeeping with XP rewards
- Progression tier advancement, one step at a time

Non-Responsibilities
--------------------
- Mission completion (MissionService)
- Equipment (InventoryService)

Design Notes
------------
- Requests that cannot apply (unknown ids, nothing to pay with, already
  done today) are no-ops: logged at DEBUG, same state back, no events.
- Anything that grants XP goes through LevelingEngine and then unlock
  recompute, and returns an `Outcome`.
"""

from __future__ import annotations

import random
from dataclasses import replace
from datetime import date, datetime, timedelta
from logging import Logger
from typing import Optional

from arise.core.config import Config
from arise.core.content.registry import ContentRegistry
from arise.domain.models import (
    ActiveBuff,
    BaseStats,
    CharacterState,
    Milestone,
    Outcome,
)
from arise.domain.models.base import ensure_utc
from arise.modules.leveling.service import LevelingEngine
from arise.modules.shared.base_service import BaseService
from arise.modules.unlocks.service import UnlockRuleEngine


class CharacterService(BaseService):
    """Character bookkeeping outside missions, dungeons and inventory."""

    def __init__(
        self,
        content: Optional[ContentRegistry] = None,
        rng: Optional[random.Random] = None,
        logger: Optional[Logger] = None,
        *,
        leveling: Optional[LevelingEngine] = None,
        unlocks: Optional[UnlockRuleEngine] = None,
    ) -> None:
        super().__init__(content, rng, logger)
        self._leveling = leveling or LevelingEngine(self.content, self.sampler.rng)
        self._unlocks = unlocks or UnlockRuleEngine(self.content, self.sampler.rng)
        self._chest_xp_per_level = int(self.get_content("daily_chest.xp_per_level", 50))

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def new_character(self) -> CharacterState:
        start = Config.DEFAULT_STARTING_STAT
        return CharacterState(
            stats=BaseStats(
                strength=start,
                vitality=start,
                agility=start,
                intelligence=start,
                fortune=start,
                metabolism=start,
            )
        )

    def reconcile(self, state: CharacterState, now: datetime) -> CharacterState:
        """
        Bring a state up to date with the clock.

        Drops buffs whose expiry has passed and resets the global streak to 0
        when the last active day is older than yesterday.
        """
        changes = {}

        live_buffs = tuple(b for b in state.active_buffs if b.is_active(now))
        if len(live_buffs) != len(state.active_buffs):
            changes["active_buffs"] = live_buffs

        yesterday = now.date() - timedelta(days=1)
        if state.streak and (state.last_active_on is None or state.last_active_on < yesterday):
            changes["streak"] = 0
            self.log_operation("streak_broken", streak=state.streak, last_active_on=str(state.last_active_on))

        return replace(state, **changes) if changes else state

    # =========================================================================
    # BUFFS AND PASSIVES
    # =========================================================================

    def activate_buff(self, state: CharacterState, buff_id: str, now: datetime) -> CharacterState:
        """Start a buff; an active buff with the same id gets a fresh expiry."""
        definition = self.content.buffs.get(buff_id)
        if definition is None:
            return self.log_noop("activate_buff", "unknown buff", state, buff_id=buff_id)

        buff = ActiveBuff(
            buff_id=buff_id,
            activated_at=now,
            expires_at=now + timedelta(minutes=definition.duration_minutes),
        )
        others = tuple(b for b in state.active_buffs if b.buff_id != buff_id)
        self.log_operation("activate_buff", buff_id=buff_id, expires_at=buff.expires_at.isoformat())
        return replace(state, active_buffs=others + (buff,))

    def xp_multiplier(self, state: CharacterState, now: datetime) -> float:
        """Product of the XP multipliers of every buff active at `now`."""
        multiplier = 1.0
        for buff in state.active_buffs:
            definition = self.content.buffs.get(buff.buff_id)
            if definition is not None and buff.is_active(now):
                multiplier *= definition.xp_multiplier
        return multiplier

    def purchase_passive(self, state: CharacterState, passive_id: str) -> CharacterState:
        definition = self.content.passives.get(passive_id)
        if definition is None:
            return self.log_noop("purchase_passive", "unknown passive", state, passive_id=passive_id)

        current = state.passive_levels.get(passive_id, 0)
        if current >= definition.max_level:
            return self.log_noop("purchase_passive", "max level", state, passive_id=passive_id)
        if state.passive_points < definition.cost_per_level:
            return self.log_noop(
                "purchase_passive",
                "not enough passive points",
                state,
                passive_id=passive_id,
                passive_points=state.passive_points,
            )

        levels = dict(state.passive_levels)
        levels[passive_id] = current + 1
        self.log_operation("purchase_passive", passive_id=passive_id, level=current + 1)
        return replace(
            state,
            passive_levels=levels,
            passive_points=state.passive_points - definition.cost_per_level,
        )

    # =========================================================================
    # XP SOURCES
    # =========================================================================

    def award_xp(
        self,
        state: CharacterState,
        xp: int,
        now: datetime,
        source: Optional[str] = None,
    ) -> Outcome:
        """Grant XP, resolve level-ups and recompute unlocks."""
        leveled = self._leveling.apply_xp(state, xp, now=now, source=source)
        unlocked = self._unlocks.recompute(leveled.state, now)
        return Outcome(state=unlocked.state, events=leveled.events + unlocked.events)

    def open_daily_chest(self, state: CharacterState, now: datetime) -> Outcome:
        """Grant `level * xp_per_level` XP, at most once per calendar day."""
        last = state.last_chest_opened_at
        if last is not None and _local_date(last, now) >= now.date():
            return Outcome(state=self.log_noop("open_daily_chest", "already opened today", state))

        xp = state.level * self._chest_xp_per_level
        self.log_operation("open_daily_chest", xp=xp, level=state.level)
        return self.award_xp(replace(state, last_chest_opened_at=now), xp, now, source="daily_chest")

    # =========================================================================
    # MILESTONES AND TIERS
    # =========================================================================

    def add_milestone(self, state: CharacterState, milestone: Milestone) -> CharacterState:
        if state.find_milestone(milestone.id) is not None:
            return self.log_noop("add_milestone", "duplicate id", state, milestone_id=milestone.id)
        return replace(state, milestones=state.milestones + (milestone,))

    def complete_milestone(self, state: CharacterState, milestone_id: str, now: datetime) -> Outcome:
        """
        Mark a milestone complete and pay its XP reward.

        Completing an already completed milestone changes nothing.
        """
        milestone = state.find_milestone(milestone_id)
        if milestone is None or milestone.completed:
            reason = "unknown milestone" if milestone is None else "already completed"
            return Outcome(
                state=self.log_noop("complete_milestone", reason, state, milestone_id=milestone_id)
            )

        done = replace(milestone, completed=True, completed_at=now)
        state = replace(
            state,
            milestones=tuple(done if m.id == milestone_id else m for m in state.milestones),
        )
        self.log_operation("complete_milestone", milestone_id=milestone_id, xp_reward=milestone.xp_reward)
        return self.award_xp(state, milestone.xp_reward, now, source=f"milestone:{milestone_id}")

    def advance_progression_tier(self, state: CharacterState, tier: int) -> CharacterState:
        """Move to job-class tier `tier`; only the next tier is accepted."""
        last_tier = len(self.content.progression_tiers) - 1
        if tier != state.progression_tier + 1 or tier > last_tier:
            return self.log_noop(
                "advance_progression_tier",
                "not the next tier",
                state,
                current_tier=state.progression_tier,
                requested_tier=tier,
            )
        self.log_operation(
            "advance_progression_tier",
            tier=tier,
            tier_name=self.content.progression_tiers[tier],
        )
        return replace(state, progression_tier=tier)


def _local_date(moment: datetime, now: datetime) -> date:
    """Calendar date of `moment` in the timezone of `now`; naive values are UTC."""
    return ensure_utc(moment).astimezone(ensure_utc(now).tzinfo).date()
