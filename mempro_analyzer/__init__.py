"""Diagnostic analysis of MemPro memory-profiler exports."""

__version__ = "1.0.0"
