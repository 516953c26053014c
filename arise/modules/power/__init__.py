"""Power: the single progression score and effective stats."""

from arise.modules.power.service import PowerAggregator, PowerBreakdown

__all__ = ["PowerAggregator", "PowerBreakdown"]
