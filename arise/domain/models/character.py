"""
Character domain model for the Arise progression engine.

Purpose
-------
Immutable snapshot of everything the engine knows about one player: level
and experience, base stats, currencies, collections (titles, frames,
companions, equipment), missions, milestones, buffs and season progress.

Responsibilities
----------------
- Hold progression state as frozen value objects
- Normalize collections on construction (tuples, frozensets, read-only maps)
- Keep the `default` frame permanently unlocked
- Serialize to and tolerantly rebuild from plain dictionaries

Non-Responsibilities
--------------------
- Game rules (leveling, loot, Power, unlocks live in `arise.modules`)
- Persistence (hosts store the output of `to_dict`)

Design Notes
------------
- Every update is `dataclasses.replace(state, ...)`; nothing here mutates.
- `from_dict` defaults anything missing. Unknown rarities and ranks degrade
  to the lowest tier, negative counters clamp to zero.

Usage Example
-------------
>>> state = CharacterState.from_dict({"level": 3, "stats": {"strength": 14}})
>>> state.stats.vitality
10
>>> "default" in state.unlocked_frame_ids
True
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, FrozenSet, Mapping, Optional, Tuple

from arise.domain.models.base import (
    coerce_int,
    ensure_utc,
    format_date,
    format_datetime,
    parse_date,
    parse_datetime,
    validate_non_negative,
    validate_not_empty,
    validate_positive,
    validate_range,
)
from arise.domain.models.equipment import Equipment

DEFAULT_FRAME_ID = "default"
STAT_KINDS: Tuple[str, ...] = (
    "strength",
    "vitality",
    "agility",
    "intelligence",
    "fortune",
    "metabolism",
)


# ============================================================================
# RANKS
# ============================================================================


class HunterRank(str, Enum):
    """
    Letter grade shared by season ranks, companion ranks and dungeon tiers.

    Ordered lowest first.
    """

    E = "E"
    D = "D"
    C = "C"
    B = "B"
    A = "A"
    S = "S"
    SS = "SS"
    SSS = "SSS"

    @property
    def order(self) -> int:
        return _RANK_ORDER.index(self)

    @classmethod
    def lowest(cls) -> "HunterRank":
        return cls.E

    @classmethod
    def from_string(cls, value: Any) -> "HunterRank":
        """Parse a rank; unknown values degrade to E."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            return cls.lowest()

    def at_least(self, other: "HunterRank") -> bool:
        return self.order >= other.order


_RANK_ORDER: Tuple[HunterRank, ...] = tuple(HunterRank)


# ============================================================================
# VALUE OBJECTS
# ============================================================================


@dataclass(frozen=True)
class BaseStats:
    """
    The six raw stats. Power uses these directly; buffs and gear only feed
    the derived effective stats.
    """

    strength: int = 10
    vitality: int = 10
    agility: int = 10
    intelligence: int = 10
    fortune: int = 10
    metabolism: int = 10

    def __post_init__(self) -> None:
        for stat in STAT_KINDS:
            validate_non_negative(getattr(self, stat), stat)

    def get(self, stat: str) -> int:
        """Value of a stat by name; unknown names are 0."""
        if stat not in STAT_KINDS:
            return 0
        return getattr(self, stat)

    @property
    def total(self) -> int:
        return sum(getattr(self, stat) for stat in STAT_KINDS)

    def with_bonuses(self, bonuses: Mapping[str, int]) -> "BaseStats":
        """Copy with per-stat deltas applied; unknown stats are ignored."""
        values = self.as_dict()
        for stat, delta in bonuses.items():
            if stat in values:
                values[stat] = max(0, values[stat] + int(delta))
        return BaseStats(**values)

    def with_all_increased(self, amount: int) -> "BaseStats":
        return self.with_bonuses({stat: amount for stat in STAT_KINDS})

    def as_dict(self) -> Dict[str, int]:
        return {stat: getattr(self, stat) for stat in STAT_KINDS}

    @classmethod
    def from_dict(cls, data: Any, default: int = 10) -> "BaseStats":
        data = data if isinstance(data, Mapping) else {}
        return cls(**{stat: coerce_int(data.get(stat), default, minimum=0) for stat in STAT_KINDS})


@dataclass(frozen=True)
class Currencies:
    shards: int = 0
    quest_points: int = 0

    def __post_init__(self) -> None:
        validate_non_negative(self.shards, "shards")
        validate_non_negative(self.quest_points, "quest_points")


@dataclass(frozen=True)
class Companion:
    """
    A companion extracted from a dungeon boss.

    Identity for extraction purposes is `name`: the same boss never yields
    two companions.
    """

    id: str
    name: str
    rank: HunterRank = HunterRank.E
    bonus_stat: str = "strength"
    bonus_value: int = 0
    evolution_level: int = 0
    evolution_xp: int = 0
    source_floor: Optional[int] = None
    extracted_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        validate_not_empty(self.id, "id")
        validate_not_empty(self.name, "name")
        validate_non_negative(self.bonus_value, "bonus_value")
        validate_non_negative(self.evolution_level, "evolution_level")
        validate_non_negative(self.evolution_xp, "evolution_xp")
        object.__setattr__(self, "rank", HunterRank.from_string(self.rank))


@dataclass(frozen=True)
class Mission:
    """
    A recurring real-world task.

    Attributes
    ----------
    days_of_week : Tuple[int, ...]
        Scheduled weekdays (Monday=0). Empty means every day.
    streak : int
        Consecutive scheduled days this mission was completed
    completions : int
        Lifetime completion count
    last_completed_on : Optional[date]
        Calendar day of the most recent completion
    """

    id: str
    title: str
    xp_reward: int
    target_stat: Optional[str] = None
    days_of_week: Tuple[int, ...] = field(default_factory=tuple)
    streak: int = 0
    completions: int = 0
    last_completed_on: Optional[date] = None

    def __post_init__(self) -> None:
        validate_not_empty(self.id, "id")
        validate_non_negative(self.xp_reward, "xp_reward")
        validate_non_negative(self.streak, "streak")
        validate_non_negative(self.completions, "completions")
        days = tuple(sorted(set(self.days_of_week)))
        for day in days:
            validate_range(day, 0, 6, "days_of_week")
        object.__setattr__(self, "days_of_week", days)

    def is_scheduled_on(self, day: date) -> bool:
        return not self.days_of_week or day.weekday() in self.days_of_week


@dataclass(frozen=True)
class Milestone:
    id: str
    title: str
    category: str = "General"
    xp_reward: int = 0
    completed: bool = False
    completed_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        validate_not_empty(self.id, "id")
        validate_non_negative(self.xp_reward, "xp_reward")


@dataclass(frozen=True)
class ActiveBuff:
    buff_id: str
    activated_at: datetime
    expires_at: datetime

    def __post_init__(self) -> None:
        object.__setattr__(self, "activated_at", ensure_utc(self.activated_at))
        object.__setattr__(self, "expires_at", ensure_utc(self.expires_at))

    def is_active(self, now: datetime) -> bool:
        return self.expires_at > ensure_utc(now)


@dataclass(frozen=True)
class SeasonProgress:
    season_xp: int = 0
    rank: HunterRank = HunterRank.E

    def __post_init__(self) -> None:
        validate_non_negative(self.season_xp, "season_xp")
        object.__setattr__(self, "rank", HunterRank.from_string(self.rank))


# ============================================================================
# CHARACTER STATE
# ============================================================================


@dataclass(frozen=True)
class CharacterState:
    """
    Complete progression state of one character.

    Collections are normalized on construction, so callers may pass lists
    and dicts; the stored values are tuples, frozensets and read-only maps.
    """

    level: int = 1
    xp: int = 0
    stats: BaseStats = field(default_factory=BaseStats)
    streak: int = 0
    last_active_on: Optional[date] = None
    currencies: Currencies = field(default_factory=Currencies)
    passive_points: int = 0
    equipped_title_id: Optional[str] = None
    equipped_frame_id: Optional[str] = DEFAULT_FRAME_ID
    unlocked_title_ids: FrozenSet[str] = field(default_factory=frozenset)
    unlocked_frame_ids: FrozenSet[str] = field(default_factory=lambda: frozenset({DEFAULT_FRAME_ID}))
    companions: Tuple[Companion, ...] = field(default_factory=tuple)
    equipped_companion_id: Optional[str] = None
    equipment: Tuple[Equipment, ...] = field(default_factory=tuple)
    passive_levels: Mapping[str, int] = field(default_factory=dict)
    progression_tier: int = 0
    season: SeasonProgress = field(default_factory=SeasonProgress)
    milestones: Tuple[Milestone, ...] = field(default_factory=tuple)
    missions: Tuple[Mission, ...] = field(default_factory=tuple)
    cleared_floors: FrozenSet[int] = field(default_factory=frozenset)
    active_buffs: Tuple[ActiveBuff, ...] = field(default_factory=tuple)
    last_chest_opened_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        validate_positive(self.level, "level")
        validate_non_negative(self.xp, "xp")
        validate_non_negative(self.streak, "streak")
        validate_non_negative(self.passive_points, "passive_points")
        validate_non_negative(self.progression_tier, "progression_tier")

        object.__setattr__(self, "unlocked_title_ids", frozenset(self.unlocked_title_ids))
        object.__setattr__(
            self,
            "unlocked_frame_ids",
            frozenset(self.unlocked_frame_ids) | {DEFAULT_FRAME_ID},
        )
        object.__setattr__(self, "cleared_floors", frozenset(self.cleared_floors))
        for name in ("companions", "equipment", "milestones", "missions", "active_buffs"):
            object.__setattr__(self, name, tuple(getattr(self, name)))
        object.__setattr__(self, "passive_levels", MappingProxyType(dict(self.passive_levels)))

    # ========================================================================
    # QUERIES
    # ========================================================================

    @property
    def highest_cleared_floor(self) -> int:
        return max(self.cleared_floors, default=0)

    def equipped_items(self) -> Tuple[Equipment, ...]:
        return tuple(item for item in self.equipment if item.equipped)

    def find_item(self, item_id: str) -> Optional[Equipment]:
        return next((item for item in self.equipment if item.id == item_id), None)

    def find_companion(self, companion_id: str) -> Optional[Companion]:
        return next((c for c in self.companions if c.id == companion_id), None)

    def find_mission(self, mission_id: str) -> Optional[Mission]:
        return next((m for m in self.missions if m.id == mission_id), None)

    def find_milestone(self, milestone_id: str) -> Optional[Milestone]:
        return next((m for m in self.milestones if m.id == milestone_id), None)

    def owns_companion_named(self, name: str) -> bool:
        return any(c.name == name for c in self.companions)

    # ========================================================================
    # SERIALIZATION
    # ========================================================================

    def to_dict(self) -> Dict[str, Any]:
        """Serialized form; sets are emitted sorted so output is stable."""
        return {
            "level": self.level,
            "xp": self.xp,
            "stats": self.stats.as_dict(),
            "streak": self.streak,
            "last_active_on": format_date(self.last_active_on),
            "currencies": {
                "shards": self.currencies.shards,
                "quest_points": self.currencies.quest_points,
            },
            "passive_points": self.passive_points,
            "equipped_title_id": self.equipped_title_id,
            "equipped_frame_id": self.equipped_frame_id,
            "unlocked_title_ids": sorted(self.unlocked_title_ids),
            "unlocked_frame_ids": sorted(self.unlocked_frame_ids),
            "companions": [
                {
                    "id": c.id,
                    "name": c.name,
                    "rank": c.rank.value,
                    "bonus_stat": c.bonus_stat,
                    "bonus_value": c.bonus_value,
                    "evolution_level": c.evolution_level,
                    "evolution_xp": c.evolution_xp,
                    "source_floor": c.source_floor,
                    "extracted_at": format_datetime(c.extracted_at),
                }
                for c in self.companions
            ],
            "equipped_companion_id": self.equipped_companion_id,
            "equipment": [item.to_dict() for item in self.equipment],
            "passive_levels": dict(self.passive_levels),
            "progression_tier": self.progression_tier,
            "season": {"season_xp": self.season.season_xp, "rank": self.season.rank.value},
            "milestones": [
                {
                    "id": m.id,
                    "title": m.title,
                    "category": m.category,
                    "xp_reward": m.xp_reward,
                    "completed": m.completed,
                    "completed_at": format_datetime(m.completed_at),
                }
                for m in self.milestones
            ],
            "missions": [
                {
                    "id": m.id,
                    "title": m.title,
                    "xp_reward": m.xp_reward,
                    "target_stat": m.target_stat,
                    "days_of_week": list(m.days_of_week),
                    "streak": m.streak,
                    "completions": m.completions,
                    "last_completed_on": format_date(m.last_completed_on),
                }
                for m in self.missions
            ],
            "cleared_floors": sorted(self.cleared_floors),
            "active_buffs": [
                {
                    "buff_id": b.buff_id,
                    "activated_at": format_datetime(b.activated_at),
                    "expires_at": format_datetime(b.expires_at),
                }
                for b in self.active_buffs
            ],
            "last_chest_opened_at": format_datetime(self.last_chest_opened_at),
        }

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> "CharacterState":
        """
        Rebuild a state from partial data.

        Missing fields take their defaults and malformed records inside
        collections are skipped. This never raises for well-typed JSON input.
        """
        data = data or {}
        currencies = data.get("currencies") or {}
        season = data.get("season") or {}

        return cls(
            level=coerce_int(data.get("level"), 1, minimum=1),
            xp=coerce_int(data.get("xp"), 0, minimum=0),
            stats=BaseStats.from_dict(data.get("stats")),
            streak=coerce_int(data.get("streak"), 0, minimum=0),
            last_active_on=parse_date(data.get("last_active_on")),
            currencies=Currencies(
                shards=coerce_int(currencies.get("shards"), 0, minimum=0),
                quest_points=coerce_int(currencies.get("quest_points"), 0, minimum=0),
            ),
            passive_points=coerce_int(data.get("passive_points"), 0, minimum=0),
            equipped_title_id=data.get("equipped_title_id") or None,
            equipped_frame_id=data.get("equipped_frame_id", DEFAULT_FRAME_ID) or None,
            unlocked_title_ids=frozenset(str(i) for i in data.get("unlocked_title_ids") or ()),
            unlocked_frame_ids=frozenset(str(i) for i in data.get("unlocked_frame_ids") or ()),
            companions=tuple(_parse_records(data.get("companions"), _companion_from_dict)),
            equipped_companion_id=data.get("equipped_companion_id") or None,
            equipment=tuple(_parse_records(data.get("equipment"), Equipment.from_dict)),
            passive_levels={
                str(k): coerce_int(v, 0, minimum=0)
                for k, v in (data.get("passive_levels") or {}).items()
            },
            progression_tier=coerce_int(data.get("progression_tier"), 0, minimum=0),
            season=SeasonProgress(
                season_xp=coerce_int(season.get("season_xp"), 0, minimum=0),
                rank=HunterRank.from_string(season.get("rank", "E")),
            ),
            milestones=tuple(_parse_records(data.get("milestones"), _milestone_from_dict)),
            missions=tuple(_parse_records(data.get("missions"), _mission_from_dict)),
            cleared_floors=frozenset(
                f for f in (coerce_int(v, 0) for v in data.get("cleared_floors") or ()) if f > 0
            ),
            active_buffs=tuple(_parse_records(data.get("active_buffs"), _buff_from_dict)),
            last_chest_opened_at=parse_datetime(data.get("last_chest_opened_at")),
        )


# ============================================================================
# RECORD PARSERS
# ============================================================================


def _parse_records(raw: Any, parser):
    for record in raw or ():
        if not isinstance(record, Mapping):
            continue
        parsed = parser(record)
        if parsed is not None:
            yield parsed


def _companion_from_dict(data: Mapping[str, Any]) -> Optional[Companion]:
    name = str(data.get("name") or "").strip()
    if not name:
        return None
    return Companion(
        id=str(data.get("id") or name.lower()),
        name=name,
        rank=HunterRank.from_string(data.get("rank")),
        bonus_stat=str(data.get("bonus_stat") or "strength").lower(),
        bonus_value=coerce_int(data.get("bonus_value"), 0, minimum=0),
        evolution_level=coerce_int(data.get("evolution_level"), 0, minimum=0),
        evolution_xp=coerce_int(data.get("evolution_xp"), 0, minimum=0),
        source_floor=coerce_int(data.get("source_floor"), 0) or None,
        extracted_at=parse_datetime(data.get("extracted_at")),
    )


def _mission_from_dict(data: Mapping[str, Any]) -> Optional[Mission]:
    mission_id = str(data.get("id") or "").strip()
    if not mission_id:
        return None
    days = tuple(
        d for d in (coerce_int(v, -1) for v in data.get("days_of_week") or ()) if 0 <= d <= 6
    )
    target = data.get("target_stat")
    return Mission(
        id=mission_id,
        title=str(data.get("title") or mission_id),
        xp_reward=coerce_int(data.get("xp_reward"), 0, minimum=0),
        target_stat=str(target).lower() if target else None,
        days_of_week=days,
        streak=coerce_int(data.get("streak"), 0, minimum=0),
        completions=coerce_int(data.get("completions"), 0, minimum=0),
        last_completed_on=parse_date(data.get("last_completed_on")),
    )


def _milestone_from_dict(data: Mapping[str, Any]) -> Optional[Milestone]:
    milestone_id = str(data.get("id") or "").strip()
    if not milestone_id:
        return None
    return Milestone(
        id=milestone_id,
        title=str(data.get("title") or milestone_id),
        category=str(data.get("category") or "General"),
        xp_reward=coerce_int(data.get("xp_reward"), 0, minimum=0),
        completed=bool(data.get("completed", False)),
        completed_at=parse_datetime(data.get("completed_at")),
    )


def _buff_from_dict(data: Mapping[str, Any]) -> Optional[ActiveBuff]:
    buff_id = str(data.get("buff_id") or "").strip()
    activated_at = parse_datetime(data.get("activated_at"))
    expires_at = parse_datetime(data.get("expires_at"))
    if not buff_id or expires_at is None:
        return None
    return ActiveBuff(
        buff_id=buff_id,
        activated_at=activated_at or expires_at,
        expires_at=expires_at,
    )
