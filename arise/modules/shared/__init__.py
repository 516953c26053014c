"""
Arise Shared Module

Purpose
-------
Foundations used by every engine service:
- BaseService: injected content, random source and structured logging
- WeightedSampler: the one cumulative-weight roll used for all random picks
- Formulas: pure calculation functions for progression rules
- Constants: structural values that are not balance knobs

Usage
-----
    from arise.modules.shared import BaseService, WeightedSampler, formulas
"""

from arise.modules.shared import formulas
from arise.modules.shared.base_service import BaseService
from arise.modules.shared.sampling import WeightedSampler

__all__ = ["BaseService", "WeightedSampler", "formulas"]
