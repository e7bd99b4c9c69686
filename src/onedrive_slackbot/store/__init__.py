"""Dedup state and snapshot persistence."""

from .base import SeenRecord, SnapshotStore, StateSnapshot
from .file_store import SnapshotFileStore
from .state_engine import RETENTION_WINDOW, DedupStateEngine

__all__ = [
    "RETENTION_WINDOW",
    "DedupStateEngine",
    "SeenRecord",
    "SnapshotFileStore",
    "SnapshotStore",
    "StateSnapshot",
]
