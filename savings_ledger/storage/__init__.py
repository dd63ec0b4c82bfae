"""Snapshot persistence for ledger state."""

from savings_ledger.storage.json_file import JsonSnapshotStore
from savings_ledger.storage.serialization import from_snapshot, to_snapshot

__all__ = ["JsonSnapshotStore", "from_snapshot", "to_snapshot"]
