"""Classification rules for memory issues.

Each rule is a small ordered decision table implemented as a pure function
over plain values, so it can be exercised directly with literal inputs.  The
first matching row wins.
"""

from __future__ import annotations

from typing import Optional, Tuple

from mempro_analyzer.analysis.issues import Severity
from mempro_analyzer.snapshot.models import FunctionStat, LeakRecord


# ============================================================================
# Thresholds and constants
# ============================================================================

# Suspect leaks above this many bytes are critical.
_CRITICAL_LEAK_BYTES: int = 100_000

# Any leak above this many bytes is at least high severity.
_HIGH_LEAK_BYTES: int = 50_000

# Leaks above this many bytes, or this many allocations, are medium severity.
_MEDIUM_LEAK_BYTES: int = 10_000
_MEDIUM_LEAK_COUNT: int = 100

# Fragmentation percentage bands (exclusive lower bounds).
_SEVERE_FRAGMENTATION_PCT: float = 80.0
_MODERATE_FRAGMENTATION_PCT: float = 50.0

# A function is flagged when its average or largest allocation exceeds these.
_LARGE_AVERAGE_BYTES: float = 10_000
_LARGE_MAX_BYTES: int = 50_000

# Flagged functions whose largest allocation exceeds this are high severity.
_HUGE_MAX_BYTES: int = 100_000

# Marker the profiler writes when a frame could not be symbolicated.
UNKNOWN_FUNCTION_MARKER: str = "Unknown Function"

# Symbol fragments that identify standard-library container allocations.
STL_ALLOCATION_MARKERS: Tuple[str, ...] = ("std::_Allocate", "std::vector")

ENTRY_POINT_MARKER: str = "main"


# ============================================================================
# Suggestion text
# ============================================================================

SUGGEST_DEBUG_SYMBOLS = (
    "Enable debug symbols and rebuild with full symbol information to identify "
    "the exact source of this leak. Check for third-party libraries or "
    "dynamically loaded modules."
)

SUGGEST_STL_CLEANUP = (
    "STL container leak detected. Ensure proper cleanup in destructors, check "
    "for circular references, and verify that containers are properly cleared "
    "before going out of scope."
)

SUGGEST_ENTRY_POINT_OWNERSHIP = (
    "Leak originated from main function. Review allocation ownership and "
    "ensure all allocated resources are freed before program exit. Consider "
    "using RAII or smart pointers."
)

SUGGEST_SMART_POINTERS = (
    "Review allocation patterns in this function and ensure all allocated "
    "memory is properly deallocated. Consider using smart pointers "
    "(std::unique_ptr, std::shared_ptr) or RAII patterns."
)

SUGGEST_POOLING = (
    "Consider implementing object pooling or using memory arenas to reduce "
    "fragmentation. Review allocation patterns and consolidate small "
    "allocations where possible."
)

SUGGEST_MONITOR_FRAGMENTATION = (
    "Monitor fragmentation levels and consider optimizing allocation patterns "
    "if fragmentation increases."
)

SUGGEST_CHUNKING = (
    "Review if large allocations can be split into smaller chunks or allocated "
    "incrementally. Consider using streaming or chunked processing for large data."
)


# ============================================================================
# Leak rules
# ============================================================================


def is_leak_evidence(leak: LeakRecord) -> bool:
    """A record with neither leaked bytes nor leaked allocations is not a leak."""
    return not (leak.leak_size == 0 and leak.leak_count == 0)


def classify_leak_severity(is_suspect: bool, leak_size: int, leak_count: int) -> Severity:
    if is_suspect and leak_size > _CRITICAL_LEAK_BYTES:
        return Severity.critical
    if is_suspect or leak_size > _HIGH_LEAK_BYTES:
        return Severity.high
    if leak_size > _MEDIUM_LEAK_BYTES or leak_count > _MEDIUM_LEAK_COUNT:
        return Severity.medium
    return Severity.low


def describe_leak(function_name: str, leak_size: int, leak_count: int) -> str:
    if UNKNOWN_FUNCTION_MARKER in function_name:
        return (
            f"Unknown function leaked {leak_size} bytes across {leak_count} "
            f"allocations. This may indicate missing debug symbols or "
            f"dynamically loaded code."
        )
    return f"Function leaked {leak_size} bytes across {leak_count} allocations"


def suggest_leak_remediation(function_name: str) -> str:
    """Pick remediation advice from the leaking function's name.

    Matching is a case-sensitive substring test against a fixed set of
    markers, checked in order.
    """
    if UNKNOWN_FUNCTION_MARKER in function_name:
        return SUGGEST_DEBUG_SYMBOLS
    if any(marker in function_name for marker in STL_ALLOCATION_MARKERS):
        return SUGGEST_STL_CLEANUP
    if ENTRY_POINT_MARKER in function_name:
        return SUGGEST_ENTRY_POINT_OWNERSHIP
    return SUGGEST_SMART_POINTERS


# ============================================================================
# Fragmentation rules
# ============================================================================


def classify_fragmentation(fragmentation_pct: float) -> Optional[Tuple[Severity, str, str]]:
    """Map a fragmentation percentage to ``(severity, description, suggestion)``.

    Returns ``None`` when fragmentation is not high enough to report.
    """
    if fragmentation_pct > _SEVERE_FRAGMENTATION_PCT:
        return (
            Severity.high,
            f"Memory fragmentation is at {fragmentation_pct:.2f}%, which "
            f"indicates severe fragmentation",
            SUGGEST_POOLING,
        )
    if fragmentation_pct > _MODERATE_FRAGMENTATION_PCT:
        return (
            Severity.medium,
            f"Memory fragmentation is at {fragmentation_pct:.2f}%, which may "
            f"impact performance",
            SUGGEST_MONITOR_FRAGMENTATION,
        )
    return None


def is_severe_fragmentation(fragmentation_pct: float) -> bool:
    return fragmentation_pct > _SEVERE_FRAGMENTATION_PCT


# ============================================================================
# Large-allocation rules
# ============================================================================


def is_large_allocation(fn: FunctionStat) -> bool:
    return fn.average_size > _LARGE_AVERAGE_BYTES or fn.max_size > _LARGE_MAX_BYTES


def classify_large_allocation(max_size: int) -> Severity:
    if max_size > _HUGE_MAX_BYTES:
        return Severity.high
    return Severity.medium


def describe_large_allocation(fn: FunctionStat) -> str:
    return (
        f"Large allocation detected: average {fn.average_size:.0f} bytes, "
        f"max {fn.max_size} bytes across {fn.allocation_count} allocations"
    )
