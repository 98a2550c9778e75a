"""Snapshot storage for records exported from the backend."""

from .snapshot import SNAPSHOT_SCHEMA, Snapshot, SnapshotError, load_snapshot, validate_snapshot

__all__ = [
    "SNAPSHOT_SCHEMA",
    "Snapshot",
    "SnapshotError",
    "load_snapshot",
    "validate_snapshot",
]
