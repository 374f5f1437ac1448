"""Analysis engine: issue classification, prioritisation, and reporting."""

from mempro_analyzer.analysis.issues import IssueType, MemoryIssue, Severity
from mempro_analyzer.analysis.memory_analyzer import MemoryAnalyzer
from mempro_analyzer.analysis.report_generator import ReportGenerator

__all__ = [
    "IssueType",
    "MemoryIssue",
    "Severity",
    "MemoryAnalyzer",
    "ReportGenerator",
]
