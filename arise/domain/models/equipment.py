"""
Equipment domain model.

Purpose
-------
Immutable representation of a generated gear item: its slot, rarity tier,
enhancement level and stat rolls.

Lifecycle
---------
Created by `LootGenerator.generate` or a shop purchase, changed by
enhancement (copy-on-write) and removed by salvage.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Tuple

from arise.domain.models.base import (
    DomainValidationError,
    coerce_int,
    format_datetime,
    parse_datetime,
    validate_non_negative,
    validate_not_empty,
)


# ============================================================================
# RARITY
# ============================================================================


class Rarity(str, Enum):
    """
    Totally ordered rarity tiers, lowest first.

    Per-tier numbers (weights, stat ranges, multipliers) live in the content
    registry; this enum only fixes the identities and their order.
    """

    COMMON = "common"
    UNCOMMON = "uncommon"
    RARE = "rare"
    EPIC = "epic"
    LEGENDARY = "legendary"
    MYTHIC = "mythic"
    GODLIKE = "godlike"

    @property
    def order(self) -> int:
        return _RARITY_ORDER.index(self)

    @classmethod
    def lowest(cls) -> "Rarity":
        return cls.COMMON

    @classmethod
    def from_string(cls, value: Any) -> "Rarity":
        """Parse a rarity; unknown values degrade to the lowest tier."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.lowest()

    def at_least(self, other: "Rarity") -> bool:
        return self.order >= other.order


_RARITY_ORDER: Tuple[Rarity, ...] = tuple(Rarity)


# ============================================================================
# STAT ROLLS
# ============================================================================


@dataclass(frozen=True)
class StatRoll:
    """One rolled stat bonus on an item. Zero-valued rolls are kept."""

    stat: str
    value: int

    def __post_init__(self) -> None:
        validate_not_empty(self.stat, "stat")
        validate_non_negative(self.value, "value")


# ============================================================================
# EQUIPMENT
# ============================================================================


@dataclass(frozen=True)
class Equipment:
    """
    A gear item.

    Attributes
    ----------
    id : str
        Unique item id
    name : str
        Generated display name
    slot : str
        Equipment slot (weapon, helmet, ...)
    rarity : Rarity
        Rarity tier
    enhancement_level : int
        Current enhancement level (>= 0)
    stats : Tuple[StatRoll, ...]
        Distinct stat kinds with their values
    equipped : bool
        Whether the item is currently worn
    created_at : Optional[datetime]
        Creation timestamp (the injected "now")
    consecutive_failures : int
        Enhancement pity counter; reset on success
    """

    id: str
    name: str
    slot: str
    rarity: Rarity = Rarity.COMMON
    enhancement_level: int = 0
    stats: Tuple[StatRoll, ...] = field(default_factory=tuple)
    equipped: bool = False
    created_at: Optional[datetime] = None
    consecutive_failures: int = 0

    def __post_init__(self) -> None:
        validate_not_empty(self.id, "id")
        validate_not_empty(self.slot, "slot")
        validate_non_negative(self.enhancement_level, "enhancement_level")
        validate_non_negative(self.consecutive_failures, "consecutive_failures")
        object.__setattr__(self, "rarity", Rarity.from_string(self.rarity))
        object.__setattr__(self, "stats", tuple(self.stats))

        kinds = [roll.stat for roll in self.stats]
        if len(kinds) != len(set(kinds)):
            raise DomainValidationError(
                f"stat kinds must be distinct, got {kinds}",
                field="stats",
            )

    @property
    def stat_total(self) -> int:
        return sum(roll.value for roll in self.stats)

    def stat_bonuses(self) -> Dict[str, int]:
        return {roll.stat: roll.value for roll in self.stats}

    # ========================================================================
    # SERIALIZATION
    # ========================================================================

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "slot": self.slot,
            "rarity": self.rarity.value,
            "enhancement_level": self.enhancement_level,
            "stats": [{"stat": roll.stat, "value": roll.value} for roll in self.stats],
            "equipped": self.equipped,
            "created_at": format_datetime(self.created_at),
            "consecutive_failures": self.consecutive_failures,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Optional["Equipment"]:
        """
        Rebuild an item from its serialized form.

        Returns None when the record has no usable id or slot. Duplicate or
        malformed stat rolls are dropped, keeping the first of each kind.
        """
        item_id = str(data.get("id") or "").strip()
        slot = str(data.get("slot") or "").strip()
        if not item_id or not slot:
            return None

        rolls = []
        seen = set()
        for raw in data.get("stats") or ():
            if not isinstance(raw, Mapping):
                continue
            stat = str(raw.get("stat") or "").strip().lower()
            if not stat or stat in seen:
                continue
            seen.add(stat)
            rolls.append(StatRoll(stat=stat, value=coerce_int(raw.get("value"), 0, minimum=0)))

        return cls(
            id=item_id,
            name=str(data.get("name") or slot.title()),
            slot=slot,
            rarity=Rarity.from_string(data.get("rarity")),
            enhancement_level=coerce_int(data.get("enhancement_level"), 0, minimum=0),
            stats=tuple(rolls),
            equipped=bool(data.get("equipped", False)),
            created_at=parse_datetime(data.get("created_at")),
            consecutive_failures=coerce_int(data.get("consecutive_failures"), 0, minimum=0),
        )
