"""Unlocks: titles and frames driven by tagged predicates."""

from arise.modules.unlocks.registry import UnlockRegistry
from arise.modules.unlocks.service import UnlockResult, UnlockRuleEngine

__all__ = ["UnlockRegistry", "UnlockRuleEngine", "UnlockResult"]
