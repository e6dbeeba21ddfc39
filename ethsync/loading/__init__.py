from .range_loader import LoadedRange, RangeLoader

__all__ = ["LoadedRange", "RangeLoader"]
