"""
Domain models for the Arise progression engine.

Frozen value objects holding character state, equipment, reward events and
the typed views of static content.
"""

from arise.domain.models.base import (
    Outcome,
    DomainValidationError,
    RewardEvent,
    RewardKind,
    validate_non_negative,
    validate_not_empty,
    validate_positive,
    validate_range,
)
from arise.domain.models.character import (
    DEFAULT_FRAME_ID,
    STAT_KINDS,
    ActiveBuff,
    BaseStats,
    CharacterState,
    Companion,
    Currencies,
    HunterRank,
    Milestone,
    Mission,
    SeasonProgress,
)
from arise.domain.models.content import (
    BossDefinition,
    BuffDefinition,
    PassiveDefinition,
    PredicateSpec,
    RarityTier,
    SeasonRankDefinition,
    UnlockableDefinition,
)
from arise.domain.models.equipment import Equipment, Rarity, StatRoll

__all__ = [
    # Base
    "Outcome",
    "RewardEvent",
    "RewardKind",
    "DomainValidationError",
    "validate_positive",
    "validate_non_negative",
    "validate_range",
    "validate_not_empty",
    # Character
    "CharacterState",
    "BaseStats",
    "Currencies",
    "Companion",
    "Mission",
    "Milestone",
    "ActiveBuff",
    "SeasonProgress",
    "HunterRank",
    "STAT_KINDS",
    "DEFAULT_FRAME_ID",
    # Equipment
    "Equipment",
    "StatRoll",
    "Rarity",
    # Content
    "RarityTier",
    "PredicateSpec",
    "UnlockableDefinition",
    "PassiveDefinition",
    "BuffDefinition",
    "BossDefinition",
    "SeasonRankDefinition",
]
