"""JSON file storage for ledger snapshots."""

from __future__ import annotations

import json
import logging
import re
from decimal import Decimal
from pathlib import Path

from savings_ledger.exceptions import ConfigurationError, StorageError
from savings_ledger.store.state import LedgerState
from savings_ledger.storage.serialization import from_snapshot, to_snapshot

logger = logging.getLogger(__name__)

_TENANT_PATTERN = re.compile(r"^[A-Za-z0-9_.-]+$")


class JsonSnapshotStore:
    """Persist one ledger snapshot per tenant as a JSON document."""

    def __init__(self, data_dir: str | Path, pretty: bool = False) -> None:
        """Initialize the snapshot store.

        Parameters
        ----------
        data_dir : str | Path
            Directory holding the snapshot files.
        pretty : bool
            Pretty-print JSON output.
        """
        self.data_dir = Path(data_dir)
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self.pretty = pretty

    def path_for(self, tenant_id: str) -> Path:
        """Snapshot file of a tenant."""
        if not _TENANT_PATTERN.match(tenant_id) or tenant_id in {".", ".."}:
            raise ConfigurationError(f"Invalid tenant id: {tenant_id!r}")
        return self.data_dir / f"ledger_{tenant_id}.json"

    def exists(self, tenant_id: str) -> bool:
        return self.path_for(tenant_id).exists()

    def load(self, tenant_id: str) -> LedgerState | None:
        """Load a tenant's snapshot.

        Returns
        -------
        LedgerState | None
            Decoded state, or None when the tenant has no snapshot yet.

        Raises
        ------
        StorageError
            If the file cannot be read or decoded.
        """
        file_path = self.path_for(tenant_id)
        if not file_path.exists():
            return None

        try:
            with open(file_path, encoding="utf-8") as f:
                document = json.load(f, parse_float=Decimal)
            state = from_snapshot(document)
        except (OSError, ValueError, KeyError, TypeError) as e:
            raise StorageError(f"Cannot load snapshot {file_path}: {e}") from e

        logger.info(
            "Loaded snapshot for tenant %s: %d clients, %d plans, %d tontine groups",
            tenant_id,
            len(state.clients),
            len(state.plans),
            len(state.tontine_groups),
        )
        return state

    def save(self, state: LedgerState, tenant_id: str) -> Path:
        """Write a tenant's snapshot, replacing the previous one atomically.

        Raises
        ------
        StorageError
            If the file cannot be written.
        """
        file_path = self.path_for(tenant_id)
        tmp_path = file_path.with_suffix(".json.tmp")
        document = to_snapshot(state)

        try:
            with open(tmp_path, "w", encoding="utf-8") as f:
                if self.pretty:
                    json.dump(document, f, indent=2, ensure_ascii=False)
                else:
                    json.dump(document, f, ensure_ascii=False)
            tmp_path.replace(file_path)
        except OSError as e:
            raise StorageError(f"Cannot write snapshot {file_path}: {e}") from e

        logger.debug("Saved snapshot for tenant %s to %s", tenant_id, file_path)
        return file_path

    def delete(self, tenant_id: str) -> None:
        """Remove a tenant's snapshot if present."""
        self.path_for(tenant_id).unlink(missing_ok=True)
