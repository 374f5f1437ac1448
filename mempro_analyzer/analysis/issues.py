"""Issue model produced by the memory analyzer.

A :class:`MemoryIssue` is a single finding -- a leak, a fragmentation
warning, or an oversized allocation -- with a severity tier, a description,
an optional source location, and a remediation suggestion.  Issues are value
objects: each analysis call builds fresh ones and nothing mutates them.
"""

from __future__ import annotations

import json
import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, List


# ============================================================================
# Enums
# ============================================================================


class Severity(str, Enum):
    """Severity tiers, most urgent first."""

    critical = "Critical"
    high = "High"
    medium = "Medium"
    low = "Low"


class IssueType(str, Enum):
    """Categories of memory issue."""

    memory_leak = "MemoryLeak"
    memory_fragmentation = "MemoryFragmentation"
    large_allocation = "LargeAllocation"


_SEVERITY_ORDER: Dict[str, int] = {
    Severity.critical.value: 0,
    Severity.high.value: 1,
    Severity.medium.value: 2,
    Severity.low.value: 3,
}


def severity_rank(severity: str) -> float:
    """Return the sort rank of *severity*; unrecognised labels rank last."""
    return _SEVERITY_ORDER.get(severity, math.inf)


# ============================================================================
# Data classes
# ============================================================================


@dataclass(frozen=True)
class MemoryIssue:
    """A detected memory issue.

    ``severity`` and ``type`` hold the wire strings (see :class:`Severity`
    and :class:`IssueType`).  Location fields are empty for aggregate issues
    such as fragmentation.
    """

    severity: str
    type: str
    description: str
    function_name: str = ""
    file_name: str = ""
    line_number: int = 0
    size: int = 0
    count: int = 0
    score: float = 0.0
    suggestion: str = ""

    # -- serialisation helpers ------------------------------------------------

    def to_dict(self) -> Dict[str, object]:
        return {
            "severity": self.severity,
            "type": self.type,
            "description": self.description,
            "functionName": self.function_name,
            "fileName": self.file_name,
            "lineNumber": self.line_number,
            "size": self.size,
            "count": self.count,
            "score": self.score,
            "suggestion": self.suggestion,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> MemoryIssue:
        return cls(
            severity=str(data.get("severity", "")),
            type=str(data.get("type", "")),
            description=str(data.get("description", "")),
            function_name=str(data.get("functionName", "")),
            file_name=str(data.get("fileName", "")),
            line_number=int(data.get("lineNumber", 0)),
            size=int(data.get("size", 0)),
            count=int(data.get("count", 0)),
            score=float(data.get("score", 0.0)),
            suggestion=str(data.get("suggestion", "")),
        )


# ============================================================================
# Helpers
# ============================================================================


def sort_issues(issues: Iterable[MemoryIssue]) -> List[MemoryIssue]:
    """Order issues most urgent first: by severity rank, then by size descending.

    The sort is stable, so issues that tie on both keys keep their input order.
    """
    return sorted(issues, key=lambda i: (severity_rank(i.severity), -i.size))


def issues_to_json(issues: Iterable[MemoryIssue], indent: int = 2) -> str:
    """Serialise a list of issues to a JSON array."""
    return json.dumps([i.to_dict() for i in issues], indent=indent)


def issues_from_json(text: str) -> List[MemoryIssue]:
    """Parse a JSON array produced by :func:`issues_to_json`."""
    raw = json.loads(text)
    if not isinstance(raw, list):
        raise ValueError(f"expected a JSON array of issues, got {type(raw).__name__}")
    return [MemoryIssue.from_dict(item) for item in raw]
