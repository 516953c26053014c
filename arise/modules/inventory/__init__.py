"""Inventory: equip, enhance, salvage and purchase equipment."""

from arise.modules.inventory.service import EnhancementResult, InventoryService

__all__ = ["EnhancementResult", "InventoryService"]
