"""
Unlock rule engine.

Purpose
-------
Keep a character's unlocked titles and frames in sync with the registry
predicates, and handle equipping them.

Responsibilities
----------------
- Evaluate every not-yet-unlocked title, then every frame, and union in the
  ones that qualify
- Clear equipped pointers that reference ids missing from their set
- Emit at most one headline event per kind
- Equip / unequip titles and frames

Design Notes
------------
- Titles are settled before frames, and frames see the updated title set.
  Each kind is re-evaluated until a pass adds nothing, so an entry that
  depends on another entry of the same kind unlocks in the same call, and a
  second `recompute` finds nothing new.
- Unlocked sets only grow; nothing here ever removes an id.
- Deterministic: no randomness is involved.
"""

from __future__ import annotations

import random
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from logging import Logger
from typing import List, Optional, Set, Tuple

from arise.core.content.registry import ContentRegistry
from arise.domain.models import (
    DEFAULT_FRAME_ID,
    CharacterState,
    RewardEvent,
    RewardKind,
    UnlockableDefinition,
)
from arise.modules.shared.base_service import BaseService
from arise.modules.unlocks.predicates import evaluate
from arise.modules.unlocks.registry import UnlockRegistry


@dataclass(frozen=True)
class UnlockResult:
    state: CharacterState
    new_title_ids: Tuple[str, ...]
    new_frame_ids: Tuple[str, ...]
    events: Tuple[RewardEvent, ...]


class UnlockRuleEngine(BaseService):
    """Predicate-driven title and frame unlocking."""

    def __init__(
        self,
        content: Optional[ContentRegistry] = None,
        rng: Optional[random.Random] = None,
        logger: Optional[Logger] = None,
    ) -> None:
        super().__init__(content, rng, logger)
        self._registry = UnlockRegistry(self.content)

    @property
    def registry(self) -> UnlockRegistry:
        return self._registry

    def recompute(self, state: CharacterState, now: Optional[datetime] = None) -> UnlockResult:
        """
        Unlock everything the character now qualifies for.

        Returns:
            UnlockResult with the new state, the newly unlocked ids in
            registry order, and up to two headline events (one
            unlock_title, one unlock_frame)
        """
        now = now or datetime.now(timezone.utc)

        state, new_titles = self._unlock_until_stable(UnlockableDefinition.TITLE, state, "unlocked_title_ids")
        state, new_frames = self._unlock_until_stable(UnlockableDefinition.FRAME, state, "unlocked_frame_ids")

        state = self._clear_dangling_pointers(state)

        events: List[RewardEvent] = []
        if new_titles:
            events.append(self._headline(RewardKind.UNLOCK_TITLE, UnlockableDefinition.TITLE, new_titles, now))
        if new_frames:
            events.append(self._headline(RewardKind.UNLOCK_FRAME, UnlockableDefinition.FRAME, new_frames, now))

        if new_titles or new_frames:
            self.log_operation(
                "recompute_unlocks",
                new_title_ids=list(new_titles),
                new_frame_ids=list(new_frames),
            )

        return UnlockResult(
            state=state,
            new_title_ids=new_titles,
            new_frame_ids=new_frames,
            events=tuple(events),
        )

    def equip_title(self, state: CharacterState, title_id: Optional[str]) -> CharacterState:
        """Equip an unlocked title; `None` unequips. Anything else is a no-op."""
        if title_id is None:
            return replace(state, equipped_title_id=None)
        if self._registry.get(UnlockableDefinition.TITLE, title_id) is None:
            return self.log_noop("equip_title", "unknown title", state, title_id=title_id)
        if title_id not in state.unlocked_title_ids:
            return self.log_noop("equip_title", "title not unlocked", state, title_id=title_id)
        return replace(state, equipped_title_id=title_id)

    def equip_frame(self, state: CharacterState, frame_id: Optional[str]) -> CharacterState:
        """Equip an unlocked frame; `None` goes back to the default frame."""
        if frame_id is None:
            return replace(state, equipped_frame_id=DEFAULT_FRAME_ID)
        if self._registry.get(UnlockableDefinition.FRAME, frame_id) is None:
            return self.log_noop("equip_frame", "unknown frame", state, frame_id=frame_id)
        if frame_id not in state.unlocked_frame_ids:
            return self.log_noop("equip_frame", "frame not unlocked", state, frame_id=frame_id)
        return replace(state, equipped_frame_id=frame_id)

    # =========================================================================
    # HELPERS
    # =========================================================================

    def _unlock_until_stable(
        self, kind: str, state: CharacterState, field_name: str
    ) -> Tuple[CharacterState, Tuple[str, ...]]:
        """Unlock `kind` entries repeatedly until a pass finds nothing new."""
        gained: Set[str] = set()
        while True:
            unlocked = getattr(state, field_name)
            found = {
                definition.id
                for definition in self._registry.of_kind(kind)
                if definition.id not in unlocked and evaluate(definition.predicate, state)
            }
            if not found:
                break
            gained |= found
            state = replace(state, **{field_name: unlocked | found})
        return state, tuple(d.id for d in self._registry.of_kind(kind) if d.id in gained)

    @staticmethod
    def _clear_dangling_pointers(state: CharacterState) -> CharacterState:
        changes = {}
        if state.equipped_title_id is not None and state.equipped_title_id not in state.unlocked_title_ids:
            changes["equipped_title_id"] = None
        if state.equipped_frame_id is not None and state.equipped_frame_id not in state.unlocked_frame_ids:
            changes["equipped_frame_id"] = DEFAULT_FRAME_ID
        return replace(state, **changes) if changes else state

    def _headline(
        self,
        event_kind: RewardKind,
        kind: str,
        new_ids: Tuple[str, ...],
        now: datetime,
    ) -> RewardEvent:
        definition = self._registry.get(kind, new_ids[0])
        return RewardEvent(
            kind=event_kind,
            payload={
                "id": definition.id,
                "name": definition.name,
                "rarity": definition.rarity,
                "unlocked_ids": list(new_ids),
            },
            occurred_at=now,
        )
