"""Character bookkeeping: lifecycle, buffs, passives, chest, milestones, tiers and season rank."""

from arise.modules.character.season import SeasonGrant, SeasonTracker
from arise.modules.character.service import CharacterService

__all__ = ["CharacterService", "SeasonGrant", "SeasonTracker"]
