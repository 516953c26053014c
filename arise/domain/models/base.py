"""
Base domain building blocks for the Arise progression engine.

Purpose
-------
Provide the reward event type every engine operation emits, the domain
validation error, and the small coercion helpers used when rebuilding state
from its serialized form.

Responsibilities
----------------
- Define `RewardEvent` and the closed set of event kinds
- Define `DomainValidationError` and the `validate_*` helpers
- Provide tolerant coercion for deserialization (ints, dates, datetimes)

Non-Responsibilities
--------------------
- Persistence (the host application stores `CharacterState.to_dict()`)
- Game rules (handled by the services under `arise.modules`)

Design Notes
------------
- Value objects are frozen dataclasses. Every update goes through
  `dataclasses.replace`, so a state handed to the engine is never mutated.
- Direct construction validates and raises `DomainValidationError`.
  `from_dict` never raises for partial or malformed data; it coerces.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, Optional, Tuple

if TYPE_CHECKING:
    from arise.domain.models.character import CharacterState


# ============================================================================
# REWARD EVENTS
# ============================================================================


class RewardKind(str, Enum):
    """Kinds of reward events, in the vocabulary hosts render."""

    XP_GAIN = "xp_gain"
    ITEM_DROP = "item_drop"
    LEVEL_UP = "level_up"
    UNLOCK_TITLE = "unlock_title"
    UNLOCK_FRAME = "unlock_frame"
    COMPANION_EXTRACTED = "companion_extracted"
    RANK_UP = "rank_up"


@dataclass(frozen=True)
class RewardEvent:
    """
    Something the player should be told about.

    Events are returned to the caller in the order they happened. The engine
    never renders or publishes them.

    Attributes
    ----------
    kind : RewardKind
        Event kind
    payload : Dict[str, Any]
        Event data (ids, amounts, names)
    occurred_at : datetime
        The injected "now" of the operation that produced the event
    """

    kind: RewardKind
    payload: Dict[str, Any] = field(default_factory=dict)
    occurred_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.value,
            "payload": dict(self.payload),
            "occurred_at": self.occurred_at.isoformat(),
        }


@dataclass(frozen=True)
class Outcome:
    """
    Result of an engine operation: the new state and what happened.

    Attributes
    ----------
    state : CharacterState
        The state after the operation (the input state for a no-op)
    events : Tuple[RewardEvent, ...]
        Reward events in the order they happened
    """

    state: "CharacterState"
    events: Tuple[RewardEvent, ...] = ()


# ============================================================================
# CONSTRUCTION-TIME VALIDATION
# ============================================================================


class DomainValidationError(Exception):
    """A value object was constructed with an impossible value."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


def _require(ok: bool, field_name: str, problem: str) -> None:
    if not ok:
        raise DomainValidationError(f"{field_name} {problem}", field=field_name)


def validate_positive(value: int, field_name: str) -> None:
    _require(value > 0, field_name, f"must be positive, got {value}")


def validate_non_negative(value: float, field_name: str) -> None:
    _require(value >= 0, field_name, f"must be non-negative, got {value}")


def validate_range(value: int, min_val: int, max_val: int, field_name: str) -> None:
    """Inclusive on both ends."""
    _require(min_val <= value <= max_val, field_name, f"must be between {min_val} and {max_val}, got {value}")


def validate_not_empty(value: str, field_name: str) -> None:
    _require(bool(value) and bool(str(value).strip()), field_name, "cannot be empty")


# ============================================================================
# DESERIALIZATION HELPERS
# ============================================================================


def coerce_int(value: Any, default: int = 0, minimum: Optional[int] = None) -> int:
    """Best-effort int conversion; falls back to `default`, clamps to `minimum`."""
    try:
        result = int(value)
    except (TypeError, ValueError):
        result = default
    if minimum is not None and result < minimum:
        result = minimum
    return result


def ensure_utc(value: datetime) -> datetime:
    """Attach UTC to a naive datetime; aware values pass through unchanged."""
    return value if value.tzinfo is not None else value.replace(tzinfo=timezone.utc)


def parse_datetime(value: Any) -> Optional[datetime]:
    """
    Parse an ISO-8601 timestamp.

    Naive timestamps are assumed to be UTC. Anything unparseable is None.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value:
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
    else:
        return None

    return ensure_utc(parsed)


def parse_date(value: Any) -> Optional[date]:
    """Parse a calendar date; a full timestamp is reduced to its date."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str) and value:
        try:
            return date.fromisoformat(value[:10])
        except ValueError:
            return None
    return None


def format_datetime(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def format_date(value: Optional[date]) -> Optional[str]:
    return value.isoformat() if value is not None else None
