"""
Leveling engine.

Purpose
-------
Turn experience into levels. A grant is added to the current XP, then every
threshold the character can pay for is paid: the level goes up, every base
stat gains a point and passive points are granted.

Responsibilities
----------------
- The XP curve: xp_threshold(level) = floor(base * level ** exponent)
- Multi-level grants in a single call
- xp_gain and level_up reward events
- A debug override that jumps straight to a level

Design Notes
------------
- XP is "XP into the current level": each level-up subtracts the threshold
  it paid. Splitting a grant into pieces lands on the same state as granting
  the sum at once.
- Negative grants are clamped to zero, so level never decreases.
"""

from __future__ import annotations

import random
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from logging import Logger
from typing import List, Optional, Tuple

from arise.core.content.registry import ContentRegistry
from arise.core.logging.logger import get_logger
from arise.domain.models import CharacterState, RewardEvent, RewardKind
from arise.modules.shared import formulas
from arise.modules.shared.base_service import BaseService
from arise.modules.shared.constants import MAX_DEBUG_LEVEL, MIN_LEVEL

logger = get_logger(__name__)


@dataclass(frozen=True)
class LevelingResult:
    state: CharacterState
    levels_gained: int
    events: Tuple[RewardEvent, ...]


class LevelingEngine(BaseService):
    """XP curve and level-up application."""

    def __init__(
        self,
        content: Optional[ContentRegistry] = None,
        rng: Optional[random.Random] = None,
        logger: Optional[Logger] = None,
    ) -> None:
        super().__init__(content, rng, logger)
        self._xp_base = float(self.get_content("progression.xp_curve.base", 100))
        self._xp_exponent = float(self.get_content("progression.xp_curve.exponent", 1.5))
        self._stat_gain = int(self.get_content("progression.level_up.stat_gain", 1))
        self._passive_points = int(self.get_content("progression.level_up.passive_points", 1))

    def xp_threshold(self, level: int) -> int:
        """XP required to go from `level` to `level + 1`."""
        return formulas.xp_threshold(level, self._xp_base, self._xp_exponent)

    def apply_xp(
        self,
        state: CharacterState,
        delta: int,
        now: Optional[datetime] = None,
        source: Optional[str] = None,
    ) -> LevelingResult:
        """
        Grant XP and resolve every level-up it pays for.

        Args:
            state: Current character state
            delta: XP to grant; negative values are treated as 0
            now: Timestamp for the emitted events
            source: Optional label carried in the xp_gain payload

        Returns:
            LevelingResult with the new state, levels gained and events
            (one xp_gain, then one level_up per level crossed)
        """
        now = now or datetime.now(timezone.utc)
        amount = max(0, int(delta))
        if amount == 0:
            return LevelingResult(state=state, levels_gained=0, events=())

        events: List[RewardEvent] = [
            RewardEvent(
                kind=RewardKind.XP_GAIN,
                payload={"amount": amount, "source": source},
                occurred_at=now,
            )
        ]

        level = state.level
        xp = state.xp + amount
        stats = state.stats
        passive_points = state.passive_points

        while xp >= self.xp_threshold(level):
            xp -= self.xp_threshold(level)
            level += 1
            stats = stats.with_all_increased(self._stat_gain)
            passive_points += self._passive_points
            events.append(
                RewardEvent(
                    kind=RewardKind.LEVEL_UP,
                    payload={
                        "level": level,
                        "stat_gain": self._stat_gain,
                        "passive_points": self._passive_points,
                    },
                    occurred_at=now,
                )
            )

        levels_gained = level - state.level
        new_state = replace(
            state,
            level=level,
            xp=xp,
            stats=stats,
            passive_points=passive_points,
        )

        if levels_gained:
            self.log_operation(
                "level_up",
                old_level=state.level,
                new_level=level,
                xp_granted=amount,
            )

        return LevelingResult(state=new_state, levels_gained=levels_gained, events=tuple(events))

    def set_level(self, state: CharacterState, level: int) -> CharacterState:
        """
        Debug override: jump straight to `level` with zero XP.

        Stats and passive points are left as they are. This is a testing
        tool, not part of the XP curve.
        """
        target = min(MAX_DEBUG_LEVEL, max(MIN_LEVEL, int(level)))
        logger.warning(
            "Debug level override applied",
            extra={"old_level": state.level, "new_level": target},
        )
        return replace(state, level=target, xp=0)
