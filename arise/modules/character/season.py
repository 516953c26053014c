"""
Season rank tracking.

Season XP accrues alongside regular XP (a quarter of every mission and
dungeon award, never less than the configured minimum) and maps onto the
Hunter ranks through fixed thresholds. Crossing a threshold emits a
`rank_up` event.
"""

from __future__ import annotations

import random
from dataclasses import dataclass, replace
from datetime import datetime
from logging import Logger
from typing import Optional, Tuple

from arise.core.content.registry import ContentRegistry
from arise.domain.models import CharacterState, HunterRank, RewardEvent, RewardKind
from arise.modules.shared import formulas
from arise.modules.shared.base_service import BaseService


@dataclass(frozen=True)
class SeasonGrant:
    state: CharacterState
    season_xp: int
    rank_up: Optional[HunterRank]
    events: Tuple[RewardEvent, ...]


class SeasonTracker(BaseService):
    """Season XP accrual and rank thresholds."""

    def __init__(
        self,
        content: Optional[ContentRegistry] = None,
        rng: Optional[random.Random] = None,
        logger: Optional[Logger] = None,
    ) -> None:
        super().__init__(content, rng, logger)
        self._share = float(self.get_content("season.xp_share", 0.25))
        self._minimum = int(self.get_content("season.xp_minimum", 10))

    def season_xp_for(self, xp: int) -> int:
        """Season XP that accompanies a regular award of `xp`."""
        return formulas.season_xp_share(xp, self._share, self._minimum)

    def rank_for(self, season_xp: int) -> HunterRank:
        """Highest rank whose threshold `season_xp` reaches."""
        rank = HunterRank.lowest()
        for definition in self.content.season_ranks:
            if season_xp >= definition.threshold:
                rank = definition.rank
        return rank

    def grant(self, state: CharacterState, xp: int, now: datetime) -> SeasonGrant:
        """Add the season share of an `xp` award and re-rank."""
        gained = self.season_xp_for(xp)
        total = state.season.season_xp + gained
        rank = self.rank_for(total)
        if not rank.at_least(state.season.rank):
            rank = state.season.rank
        new_state = replace(state, season=replace(state.season, season_xp=total, rank=rank))

        if rank == state.season.rank:
            return SeasonGrant(state=new_state, season_xp=gained, rank_up=None, events=())

        self.log_operation(
            "season_rank_up",
            old_rank=state.season.rank.value,
            new_rank=rank.value,
            season_xp=total,
        )
        event = RewardEvent(
            kind=RewardKind.RANK_UP,
            payload={
                "rank": rank.value,
                "previous_rank": state.season.rank.value,
                "season_xp": total,
            },
            occurred_at=now,
        )
        return SeasonGrant(state=new_state, season_xp=gained, rank_up=rank, events=(event,))
