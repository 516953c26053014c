"""Companions: boss extraction, equipping and evolution."""

from arise.modules.companions.service import CompanionService, ExtractionResult

__all__ = ["CompanionService", "ExtractionResult"]
