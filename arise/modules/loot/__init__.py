"""Loot: procedural equipment generation."""

from arise.modules.loot.service import LootGenerator

__all__ = ["LootGenerator"]
