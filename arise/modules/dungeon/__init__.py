"""Dungeon: floor derivation and threshold-based floor resolution."""

from arise.modules.dungeon.floors import DungeonFloor, FloorCalculator
from arise.modules.dungeon.service import DungeonResolver, DungeonResult

__all__ = ["DungeonFloor", "DungeonResolver", "DungeonResult", "FloorCalculator"]
