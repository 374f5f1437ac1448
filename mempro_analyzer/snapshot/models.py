"""Data model for MemPro memory-profiler exports.

A MemPro export is a single JSON document describing one profiling session:
aggregate counters, a call tree, per-function allocation statistics, leak
records, page usage, and per-type statistics.  The classes below mirror that
document field-for-field.  Keys use the exporter's PascalCase names on the
wire; absent keys fall back to the zero value of the field's type, and absent
(or ``null``) arrays are treated as empty.  Present values must have the
field's JSON type; the ``_str``/``_int``/``_float``/``_bool`` readers raise
:class:`TypeError` or :class:`ValueError` otherwise.

Every class is a frozen dataclass and every collection is a tuple, so a
:class:`Snapshot` is never mutated after it has been loaded.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field, asdict
from typing import Any, Dict, List, Tuple


# Range of the exporter's 64-bit integer fields.
_INT64_MIN: int = -(2 ** 63)
_INT64_MAX: int = 2 ** 63 - 1


def _list_of(data: Dict[str, Any], key: str) -> List[Dict[str, Any]]:
    """Return the array of objects stored under *key*; missing or null is empty."""
    raw = data.get(key)
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise TypeError(f"expected an array for {key!r}, got {type(raw).__name__}")
    for item in raw:
        if not isinstance(item, dict):
            raise TypeError(
                f"expected objects in {key!r}, got {type(item).__name__}"
            )
    return raw


def _str(data: Dict[str, Any], key: str) -> str:
    value = data.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise TypeError(f"expected a string for {key!r}, got {type(value).__name__}")
    return value


def _int(data: Dict[str, Any], key: str) -> int:
    """Read an integer field; integral floats such as ``12.0`` are accepted."""
    value = data.get(key)
    if value is None:
        return 0
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise TypeError(f"expected an integer for {key!r}, got {type(value).__name__}")
    if isinstance(value, float):
        if not math.isfinite(value) or not value.is_integer():
            raise ValueError(f"expected an integer for {key!r}, got {value!r}")
        value = int(value)
    if not _INT64_MIN <= value <= _INT64_MAX:
        raise ValueError(f"integer out of range for {key!r}: {value}")
    return value


def _float(data: Dict[str, Any], key: str) -> float:
    value = data.get(key)
    if value is None:
        return 0.0
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise TypeError(f"expected a number for {key!r}, got {type(value).__name__}")
    try:
        result = float(value)
    except OverflowError:
        raise ValueError(f"number out of range for {key!r}") from None
    if not math.isfinite(result):
        raise ValueError(f"number out of range for {key!r}: {value!r}")
    return result


def _bool(data: Dict[str, Any], key: str) -> bool:
    value = data.get(key)
    if value is None:
        return False
    if not isinstance(value, bool):
        raise TypeError(f"expected a boolean for {key!r}, got {type(value).__name__}")
    return value


# ============================================================================
# Data classes
# ============================================================================


@dataclass(frozen=True)
class CallTreeNode:
    """One node of the allocation call tree.

    ``inclusive_size`` is expected to be at least ``self_size`` but this is
    taken on trust from the exporter.
    """

    function_name: str = ""
    file_name: str = ""
    line_number: int = 0
    allocation_count: int = 0
    total_size: int = 0
    self_size: int = 0
    inclusive_size: int = 0
    children: Tuple[CallTreeNode, ...] = ()

    def to_dict(self) -> Dict[str, object]:
        return {
            "FunctionName": self.function_name,
            "FileName": self.file_name,
            "LineNumber": self.line_number,
            "AllocationCount": self.allocation_count,
            "TotalSize": self.total_size,
            "SelfSize": self.self_size,
            "InclusiveSize": self.inclusive_size,
            "Children": [c.to_dict() for c in self.children],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> CallTreeNode:
        return cls(
            function_name=_str(data, "FunctionName"),
            file_name=_str(data, "FileName"),
            line_number=_int(data, "LineNumber"),
            allocation_count=_int(data, "AllocationCount"),
            total_size=_int(data, "TotalSize"),
            self_size=_int(data, "SelfSize"),
            inclusive_size=_int(data, "InclusiveSize"),
            children=tuple(cls.from_dict(c) for c in _list_of(data, "Children")),
        )


@dataclass(frozen=True)
class FunctionStat:
    """Allocation statistics for a single function."""

    function_name: str = ""
    file_name: str = ""
    line_number: int = 0
    allocation_count: int = 0
    total_size: int = 0
    average_size: float = 0.0
    min_size: int = 0
    max_size: int = 0
    percentage: float = 0.0

    def to_dict(self) -> Dict[str, object]:
        return {
            "FunctionName": self.function_name,
            "FileName": self.file_name,
            "LineNumber": self.line_number,
            "AllocationCount": self.allocation_count,
            "TotalSize": self.total_size,
            "AverageSize": self.average_size,
            "MinSize": self.min_size,
            "MaxSize": self.max_size,
            "Percentage": self.percentage,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> FunctionStat:
        return cls(
            function_name=_str(data, "FunctionName"),
            file_name=_str(data, "FileName"),
            line_number=_int(data, "LineNumber"),
            allocation_count=_int(data, "AllocationCount"),
            total_size=_int(data, "TotalSize"),
            average_size=_float(data, "AverageSize"),
            min_size=_int(data, "MinSize"),
            max_size=_int(data, "MaxSize"),
            percentage=_float(data, "Percentage"),
        )


@dataclass(frozen=True)
class LeakRecord:
    """An allocation site whose memory was never seen to be freed.

    ``leak_score`` and ``is_suspect`` come from the profiler's own
    heuristics; a higher score means a more suspicious site.
    """

    function_name: str = ""
    file_name: str = ""
    line_number: int = 0
    leak_size: int = 0
    leak_count: int = 0
    leak_score: float = 0.0
    call_stack: str = ""
    is_suspect: bool = False

    def to_dict(self) -> Dict[str, object]:
        return {
            "FunctionName": self.function_name,
            "FileName": self.file_name,
            "LineNumber": self.line_number,
            "LeakSize": self.leak_size,
            "LeakCount": self.leak_count,
            "LeakScore": self.leak_score,
            "CallStack": self.call_stack,
            "IsSuspect": self.is_suspect,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> LeakRecord:
        return cls(
            function_name=_str(data, "FunctionName"),
            file_name=_str(data, "FileName"),
            line_number=_int(data, "LineNumber"),
            leak_size=_int(data, "LeakSize"),
            leak_count=_int(data, "LeakCount"),
            leak_score=_float(data, "LeakScore"),
            call_stack=_str(data, "CallStack"),
            is_suspect=_bool(data, "IsSuspect"),
        )


@dataclass(frozen=True)
class PageUsage:
    """Usage information for one virtual-memory page."""

    address: int = 0
    state: str = ""
    type: str = ""
    protection: int = 0
    stack_id: int = 0
    usage: int = 0
    allocation_count: int = 0
    total_size: int = 0
    function_name: str = ""
    call_stack: str = ""

    def to_dict(self) -> Dict[str, object]:
        return {
            "Address": self.address,
            "State": self.state,
            "Type": self.type,
            "Protection": self.protection,
            "StackId": self.stack_id,
            "Usage": self.usage,
            "AllocationCount": self.allocation_count,
            "TotalSize": self.total_size,
            "FunctionName": self.function_name,
            "CallStack": self.call_stack,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> PageUsage:
        return cls(
            address=_int(data, "Address"),
            state=_str(data, "State"),
            type=_str(data, "Type"),
            protection=_int(data, "Protection"),
            stack_id=_int(data, "StackId"),
            usage=_int(data, "Usage"),
            allocation_count=_int(data, "AllocationCount"),
            total_size=_int(data, "TotalSize"),
            function_name=_str(data, "FunctionName"),
            call_stack=_str(data, "CallStack"),
        )


@dataclass(frozen=True)
class TypeStat:
    """Allocation statistics aggregated per allocated type."""

    type_name: str = ""
    allocation_count: int = 0
    total_size: int = 0
    average_size: float = 0.0
    min_size: int = 0
    max_size: int = 0
    percentage: float = 0.0
    most_common_function: str = ""
    most_common_file: str = ""
    most_common_line: int = 0

    def to_dict(self) -> Dict[str, object]:
        return {
            "TypeName": self.type_name,
            "AllocationCount": self.allocation_count,
            "TotalSize": self.total_size,
            "AverageSize": self.average_size,
            "MinSize": self.min_size,
            "MaxSize": self.max_size,
            "Percentage": self.percentage,
            "MostCommonFunction": self.most_common_function,
            "MostCommonFile": self.most_common_file,
            "MostCommonLine": self.most_common_line,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> TypeStat:
        return cls(
            type_name=_str(data, "TypeName"),
            allocation_count=_int(data, "AllocationCount"),
            total_size=_int(data, "TotalSize"),
            average_size=_float(data, "AverageSize"),
            min_size=_int(data, "MinSize"),
            max_size=_int(data, "MaxSize"),
            percentage=_float(data, "Percentage"),
            most_common_function=_str(data, "MostCommonFunction"),
            most_common_file=_str(data, "MostCommonFile"),
            most_common_line=_int(data, "MostCommonLine"),
        )


@dataclass(frozen=True)
class SnapshotStats:
    """Read-only aggregate view of a snapshot, for lightweight polling."""

    session: str
    total_allocations: int
    total_size: int
    leak_count: int
    leak_size: int
    fragmentation: float
    leak_percentage: float

    def to_dict(self) -> Dict[str, object]:
        return asdict(self)


@dataclass(frozen=True)
class Snapshot:
    """A complete, parsed MemPro export for a single profiling session."""

    session_name: str = ""
    total_snapshots: int = 0
    total_allocations: int = 0
    total_size: int = 0
    leak_count: int = 0
    leak_size: int = 0
    memory_fragmentation: float = 0.0
    call_trees: Tuple[CallTreeNode, ...] = field(default_factory=tuple)
    functions: Tuple[FunctionStat, ...] = field(default_factory=tuple)
    leaks: Tuple[LeakRecord, ...] = field(default_factory=tuple)
    page_views: Tuple[PageUsage, ...] = field(default_factory=tuple)
    types: Tuple[TypeStat, ...] = field(default_factory=tuple)

    @property
    def leak_percentage(self) -> float:
        """Leaked bytes as a percentage of total bytes (0.0 if nothing was allocated)."""
        if self.total_size > 0:
            return self.leak_size / self.total_size * 100
        return 0.0

    def stats(self) -> SnapshotStats:
        return SnapshotStats(
            session=self.session_name,
            total_allocations=self.total_allocations,
            total_size=self.total_size,
            leak_count=self.leak_count,
            leak_size=self.leak_size,
            fragmentation=self.memory_fragmentation,
            leak_percentage=self.leak_percentage,
        )

    # -- serialisation helpers ------------------------------------------------

    def to_dict(self) -> Dict[str, object]:
        return {
            "SessionName": self.session_name,
            "TotalSnapshots": self.total_snapshots,
            "TotalAllocations": self.total_allocations,
            "TotalSize": self.total_size,
            "LeakCount": self.leak_count,
            "LeakSize": self.leak_size,
            "MemoryFragmentation": self.memory_fragmentation,
            "CallTrees": [c.to_dict() for c in self.call_trees],
            "Functions": [f.to_dict() for f in self.functions],
            "Leaks": [lk.to_dict() for lk in self.leaks],
            "PageViews": [p.to_dict() for p in self.page_views],
            "Types": [t.to_dict() for t in self.types],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Snapshot:
        return cls(
            session_name=_str(data, "SessionName"),
            total_snapshots=_int(data, "TotalSnapshots"),
            total_allocations=_int(data, "TotalAllocations"),
            total_size=_int(data, "TotalSize"),
            leak_count=_int(data, "LeakCount"),
            leak_size=_int(data, "LeakSize"),
            memory_fragmentation=_float(data, "MemoryFragmentation"),
            call_trees=tuple(CallTreeNode.from_dict(c) for c in _list_of(data, "CallTrees")),
            functions=tuple(FunctionStat.from_dict(f) for f in _list_of(data, "Functions")),
            leaks=tuple(LeakRecord.from_dict(lk) for lk in _list_of(data, "Leaks")),
            page_views=tuple(PageUsage.from_dict(p) for p in _list_of(data, "PageViews")),
            types=tuple(TypeStat.from_dict(t) for t in _list_of(data, "Types")),
        )
