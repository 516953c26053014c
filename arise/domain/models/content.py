"""
Static content definitions.

Typed, immutable views over the YAML tables in `arise/content`. Instances are
built once by `ContentRegistry` and shared by every service.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Tuple

from arise.domain.models.character import HunterRank
from arise.domain.models.equipment import Rarity


@dataclass(frozen=True)
class RarityTier:
    """Per-rarity numbers used by loot, Power, enhancement and salvage."""

    rarity: Rarity
    weight: float
    stat_count: int
    stat_min: int
    stat_max: int
    power_multiplier: float
    title_power: int
    max_enhancement: int
    salvage_value: int


@dataclass(frozen=True)
class PredicateSpec:
    """
    Tagged unlock condition.

    `params` is plain data; composites (`all_of`, `any_of`) carry their
    children under `params["predicates"]`.
    """

    tag: str
    params: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def from_raw(cls, raw: Any) -> "PredicateSpec":
        if isinstance(raw, str):
            return cls(tag=raw)
        raw = raw or {}
        return cls(tag=str(raw.get("tag", "")), params=dict(raw.get("params") or {}))

    def children(self) -> Tuple["PredicateSpec", ...]:
        return tuple(PredicateSpec.from_raw(child) for child in self.params.get("predicates") or ())


@dataclass(frozen=True)
class UnlockableDefinition:
    """
    A title or frame.

    For titles `rarity` is a `Rarity` value; for frames it is a frame grade
    (C, B, A, S, SS, SSS).
    """

    id: str
    kind: str
    rarity: str
    name: str
    predicate: PredicateSpec

    TITLE = "title"
    FRAME = "frame"


@dataclass(frozen=True)
class PassiveDefinition:
    id: str
    name: str
    max_level: int
    cost_per_level: int
    stat_bonus_per_level: Mapping[str, int] = field(default_factory=dict)

    @property
    def bonus_total_per_level(self) -> int:
        return sum(self.stat_bonus_per_level.values())


@dataclass(frozen=True)
class BuffDefinition:
    id: str
    name: str
    duration_minutes: int
    stat_modifiers: Mapping[str, int] = field(default_factory=dict)
    xp_multiplier: float = 1.0


@dataclass(frozen=True)
class BossDefinition:
    """A dungeon boss; `companion` is None for bosses that cannot be extracted."""

    index: int
    name: str
    companion: Optional[str] = None

    @property
    def extractable(self) -> bool:
        return self.companion is not None


@dataclass(frozen=True)
class SeasonRankDefinition:
    rank: HunterRank
    threshold: int
    stat_bonus: Dict[str, int] = field(default_factory=dict)
