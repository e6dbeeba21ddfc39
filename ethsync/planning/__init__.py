from .range_planner import BlockRange, BoundedRangePlanner

__all__ = ["BlockRange", "BoundedRangePlanner"]
