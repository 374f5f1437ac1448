"""Load a MemPro JSON export from disk into a :class:`Snapshot`.

Loading is all-or-nothing: the file is either read and parsed in full, or a
:class:`SnapshotLoadError` is raised.  There is no best-effort parsing, no
retrying, and no caching between calls.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Union

from mempro_analyzer.snapshot.models import Snapshot

logger = logging.getLogger(__name__)


def _reject_constant(token: str) -> None:
    raise ValueError(f"non-finite number {token} is not allowed")


# ============================================================================
# Exceptions
# ============================================================================


class SnapshotLoadError(Exception):
    """Raised when a MemPro export cannot be turned into a snapshot.

    Attributes
    ----------
    path:
        The path that was being loaded.
    message:
        Human-readable error description.
    """

    def __init__(self, message: str, path: str = "") -> None:
        self.path = path
        self.message = message
        super().__init__(message)


class ReadError(SnapshotLoadError):
    """The export file could not be read (missing, unreadable, not a file)."""


class ParseError(SnapshotLoadError):
    """The export file was read but its content is not a valid MemPro document."""


# ============================================================================
# Loader
# ============================================================================


def load_snapshot(path: Union[str, Path]) -> Snapshot:
    """Read and parse the MemPro export at *path*.

    Parameters
    ----------
    path:
        Path to the MemPro JSON analysis file.

    Returns
    -------
    Snapshot

    Raises
    ------
    ReadError
        If the file cannot be read.
    ParseError
        If the content is not a JSON object matching the export schema.
    """
    filepath = Path(path)
    try:
        raw = filepath.read_bytes()
    except (OSError, ValueError) as exc:
        raise ReadError(f"failed to read JSON file: {exc}", path=str(path)) from exc

    try:
        data = json.loads(raw.decode("utf-8-sig"), parse_constant=_reject_constant)
    except (ValueError, RecursionError) as exc:
        raise ParseError(f"failed to parse JSON: {exc}", path=str(path)) from exc

    if not isinstance(data, dict):
        raise ParseError(
            f"failed to parse JSON: expected an object at the top level, "
            f"got {type(data).__name__}",
            path=str(path),
        )

    try:
        snapshot = Snapshot.from_dict(data)
    except (TypeError, ValueError, OverflowError, RecursionError) as exc:
        raise ParseError(f"failed to parse JSON: {exc}", path=str(path)) from exc

    logger.debug(
        "Loaded snapshot %r from %s (%d leaks, %d functions).",
        snapshot.session_name,
        path,
        len(snapshot.leaks),
        len(snapshot.functions),
    )
    return snapshot
