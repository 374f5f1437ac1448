"""MemPro export data model and loader."""

from mempro_analyzer.snapshot.models import (
    CallTreeNode,
    FunctionStat,
    LeakRecord,
    PageUsage,
    Snapshot,
    SnapshotStats,
    TypeStat,
)
from mempro_analyzer.snapshot.loader import (
    ParseError,
    ReadError,
    SnapshotLoadError,
    load_snapshot,
)

__all__ = [
    "CallTreeNode",
    "FunctionStat",
    "LeakRecord",
    "PageUsage",
    "Snapshot",
    "SnapshotStats",
    "TypeStat",
    "ParseError",
    "ReadError",
    "SnapshotLoadError",
    "load_snapshot",
]
