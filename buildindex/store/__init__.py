"""Snapshot persistence."""

from buildindex.store.snapshot_store import SnapshotStore, flatten_branch

__all__ = ["SnapshotStore", "flatten_branch"]
