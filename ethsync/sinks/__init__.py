from .base import DryRunSink, ResultSink

__all__ = ["DryRunSink", "ResultSink"]
