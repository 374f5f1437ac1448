"""Memory issue analysis over a single MemPro snapshot.

Turns the raw records of a :class:`Snapshot` into prioritised
:class:`MemoryIssue` lists (leaks, fragmentation, large allocations) and into
two plain-text reports (an overall summary and a top-leakers digest).

Every operation is a pure function of the snapshot: nothing is cached and
nothing is written back, so one snapshot can be analysed from several
threads at once.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List, Union

from mempro_analyzer.analysis import rules
from mempro_analyzer.analysis.issues import IssueType, MemoryIssue, sort_issues
from mempro_analyzer.snapshot.loader import load_snapshot
from mempro_analyzer.snapshot.models import Snapshot, SnapshotStats

logger = logging.getLogger(__name__)

_BYTES_PER_KB: float = 1024.0
_BYTES_PER_MB: float = 1024.0 * 1024.0

# Leak percentage above which the summary raises a critical finding.
_CRITICAL_LEAK_PCT: float = 50.0

DEFAULT_TOP_LEAKERS: int = 10


# ============================================================================
# Memory Analyzer
# ============================================================================


class MemoryAnalyzer:
    """Detect and prioritise memory issues in a MemPro snapshot.

    Usage::

        analyzer = MemoryAnalyzer.from_file("session.json")
        for issue in analyzer.analyze_leaks():
            print(issue.severity, issue.function_name, issue.suggestion)
        print(analyzer.get_summary())
    """

    def __init__(self, snapshot: Snapshot) -> None:
        self._snapshot = snapshot

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> MemoryAnalyzer:
        """Load the export at *path* and wrap it in an analyzer.

        Raises :class:`~mempro_analyzer.snapshot.loader.ReadError` or
        :class:`~mempro_analyzer.snapshot.loader.ParseError` on failure.
        """
        return cls(load_snapshot(path))

    @property
    def snapshot(self) -> Snapshot:
        return self._snapshot

    # ------------------------------------------------------------------
    # Issue analysis
    # ------------------------------------------------------------------

    def analyze_leaks(self) -> List[MemoryIssue]:
        """Classify every leak record and return the issues most urgent first.

        Records with neither leaked bytes nor leaked allocations are skipped.
        Issues are ordered by severity, then by leaked bytes descending.
        """
        issues: List[MemoryIssue] = []
        for leak in self._snapshot.leaks:
            if not rules.is_leak_evidence(leak):
                continue

            severity = rules.classify_leak_severity(
                leak.is_suspect, leak.leak_size, leak.leak_count,
            )
            issues.append(
                MemoryIssue(
                    severity=severity.value,
                    type=IssueType.memory_leak.value,
                    description=rules.describe_leak(
                        leak.function_name, leak.leak_size, leak.leak_count,
                    ),
                    function_name=leak.function_name,
                    file_name=leak.file_name,
                    line_number=leak.line_number,
                    size=leak.leak_size,
                    count=leak.leak_count,
                    score=leak.leak_score,
                    suggestion=rules.suggest_leak_remediation(leak.function_name),
                )
            )

        logger.debug("Leak analysis produced %d issues.", len(issues))
        return sort_issues(issues)

    def analyze_fragmentation(self) -> List[MemoryIssue]:
        """Return zero or one issue describing heap fragmentation."""
        snapshot = self._snapshot
        band = rules.classify_fragmentation(snapshot.memory_fragmentation)
        if band is None:
            return []

        severity, description, suggestion = band
        return [
            MemoryIssue(
                severity=severity.value,
                type=IssueType.memory_fragmentation.value,
                description=description,
                size=snapshot.total_size,
                count=snapshot.total_allocations,
                score=snapshot.memory_fragmentation,
                suggestion=suggestion,
            )
        ]

    def analyze_large_allocations(self) -> List[MemoryIssue]:
        """Flag functions whose allocations are large on average or at peak.

        Issues follow the order of the snapshot's function list.
        """
        issues: List[MemoryIssue] = []
        for fn in self._snapshot.functions:
            if not rules.is_large_allocation(fn):
                continue

            issues.append(
                MemoryIssue(
                    severity=rules.classify_large_allocation(fn.max_size).value,
                    type=IssueType.large_allocation.value,
                    description=rules.describe_large_allocation(fn),
                    function_name=fn.function_name,
                    file_name=fn.file_name,
                    line_number=fn.line_number,
                    size=fn.total_size,
                    count=fn.allocation_count,
                    score=float(fn.max_size),
                    suggestion=rules.SUGGEST_CHUNKING,
                )
            )

        logger.debug("Large-allocation analysis produced %d issues.", len(issues))
        return issues

    # ------------------------------------------------------------------
    # Reports
    # ------------------------------------------------------------------

    def get_summary(self) -> str:
        """Return the multi-line memory analysis summary."""
        snapshot = self._snapshot
        leak_pct = snapshot.leak_percentage

        lines = [
            "Memory Analysis Summary",
            "======================",
            f"Session: {snapshot.session_name}",
            f"Total Allocations: {snapshot.total_allocations}",
            f"Total Size: {snapshot.total_size} bytes "
            f"({snapshot.total_size / _BYTES_PER_MB:.2f} MB)",
            f"Leak Count: {snapshot.leak_count}",
            f"Leak Size: {snapshot.leak_size} bytes "
            f"({snapshot.leak_size / _BYTES_PER_MB:.2f} MB)",
            f"Leak Percentage: {leak_pct:.2f}%",
            f"Memory Fragmentation: {snapshot.memory_fragmentation:.2f}%",
            "",
            "Critical Findings:",
        ]

        if leak_pct > _CRITICAL_LEAK_PCT:
            lines.append("- CRITICAL: Over 50% of allocated memory is leaked!")
        if rules.is_severe_fragmentation(snapshot.memory_fragmentation):
            lines.append("- HIGH: Severe memory fragmentation detected")

        suspect_leaks = sum(1 for leak in snapshot.leaks if leak.is_suspect)
        if suspect_leaks > 0:
            lines.append(f"- {suspect_leaks} suspect leak locations identified")

        return "\n".join(lines) + "\n"

    def get_top_leakers(self, n: int = DEFAULT_TOP_LEAKERS) -> str:
        """Return a ranked digest of the *n* largest leaks by leaked bytes.

        *n* is clamped to the number of leak records; ``n <= 0`` yields a
        header with no entries.
        """
        leaks = sorted(self._snapshot.leaks, key=lambda lk: -lk.leak_size)
        n = max(min(n, len(leaks)), 0)

        lines = [f"Top {n} Memory Leakers:", "====================", ""]
        for rank, leak in enumerate(leaks[:n], start=1):
            lines.append(f"{rank}. {leak.function_name}")
            lines.append(
                f"   Leak Size: {leak.leak_size} bytes "
                f"({leak.leak_size / _BYTES_PER_KB:.2f} KB)"
            )
            lines.append(f"   Leak Count: {leak.leak_count} allocations")
            lines.append(f"   Leak Score: {leak.leak_score:.2f}")
            lines.append(f"   Suspect: {'true' if leak.is_suspect else 'false'}")
            if leak.file_name:
                lines.append(f"   Location: {leak.file_name}:{leak.line_number}")
            if leak.call_stack:
                lines.append(f"   CallStack: {leak.call_stack}")
            lines.append("")

        return "\n".join(lines) + "\n"

    # ------------------------------------------------------------------
    # Aggregate views
    # ------------------------------------------------------------------

    def get_stats(self) -> SnapshotStats:
        return self._snapshot.stats()

    def get_all_issues(self) -> Dict[str, Any]:
        """Bundle the summary and every issue list into one JSON-ready dict."""
        return {
            "summary": self.get_summary(),
            "leaks": [i.to_dict() for i in self.analyze_leaks()],
            "fragmentation": [i.to_dict() for i in self.analyze_fragmentation()],
            "large_allocations": [i.to_dict() for i in self.analyze_large_allocations()],
        }
