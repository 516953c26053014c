"""Leveling: the XP curve and level-up application."""

from arise.modules.leveling.service import LevelingEngine, LevelingResult

__all__ = ["LevelingEngine", "LevelingResult"]
