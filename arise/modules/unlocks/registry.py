"""
Unlock registry.

The ordered table of titles and frames the rule engine evaluates. Order is
registry order (YAML order, then generated companion titles) and decides
which new unlock becomes the headline event.
"""

from __future__ import annotations

from typing import Dict, Iterator, Optional, Tuple

from arise.core.content.registry import ContentRegistry
from arise.core.invariants import check_invariant
from arise.core.logging.logger import get_logger
from arise.domain.models import PredicateSpec, UnlockableDefinition
from arise.modules.unlocks.predicates import known_tags

logger = get_logger(__name__)


class UnlockRegistry:
    """Read-only, ordered view over the title and frame definitions."""

    def __init__(self, content: ContentRegistry) -> None:
        self._titles: Tuple[UnlockableDefinition, ...] = content.titles
        self._frames: Tuple[UnlockableDefinition, ...] = content.frames
        self._by_kind: Dict[str, Dict[str, UnlockableDefinition]] = {
            UnlockableDefinition.TITLE: {d.id: d for d in self._titles},
            UnlockableDefinition.FRAME: {d.id: d for d in self._frames},
        }
        self._check_tags()
        logger.debug(
            "Unlock registry built",
            extra={"titles": len(self._titles), "frames": len(self._frames)},
        )

    @property
    def titles(self) -> Tuple[UnlockableDefinition, ...]:
        return self._titles

    @property
    def frames(self) -> Tuple[UnlockableDefinition, ...]:
        return self._frames

    def of_kind(self, kind: str) -> Tuple[UnlockableDefinition, ...]:
        return self._titles if kind == UnlockableDefinition.TITLE else self._frames

    def get(self, kind: str, unlock_id: Optional[str]) -> Optional[UnlockableDefinition]:
        return self._by_kind.get(kind, {}).get(unlock_id)

    def __iter__(self) -> Iterator[UnlockableDefinition]:
        return iter(self._titles + self._frames)

    def __len__(self) -> int:
        return len(self._titles) + len(self._frames)

    def _check_tags(self) -> None:
        tags = known_tags()

        def walk(spec: PredicateSpec, owner: str) -> None:
            check_invariant(spec.tag in tags, "Unknown unlock predicate tag", unlock_id=owner, tag=spec.tag)
            for child in spec.children():
                walk(child, owner)

        for definition in self:
            walk(definition.predicate, definition.id)
