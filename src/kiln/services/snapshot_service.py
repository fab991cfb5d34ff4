from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any

from kiln.domain.codec import (
    customer_from_dict,
    customer_to_dict,
    dump_records,
    entry_from_dict,
    entry_to_dict,
    parse_records,
)
from kiln.domain.errors import InvalidSnapshotFormatError, MalformedPersistedStateError, PersistenceWriteError

log = logging.getLogger("kiln.backup")

SNAPSHOT_VERSION = "1.0"


class SnapshotCodec:
    """
    Full export/import of entries + customers.

    Import is all-or-nothing on validation: every record is parsed before
    anything is replaced. The version tag is informational only.
    """

    def __init__(self, store, customers):
        self.store = store
        self.customers = customers

    def export(self) -> dict:
        return {
            "entries": dump_records(self.store.entries, entry_to_dict),
            "customers": dump_records(self.customers.customers, customer_to_dict),
            "version": SNAPSHOT_VERSION,
            "exportedAt": datetime.now(timezone.utc).isoformat(),
        }

    def dumps(self) -> str:
        return json.dumps(self.export(), ensure_ascii=False, indent=2)

    def import_snapshot(self, payload: Any) -> tuple[int, int]:
        if not isinstance(payload, dict):
            raise InvalidSnapshotFormatError("Snapshot must be a JSON object.")
        if not isinstance(payload.get("entries"), list):
            raise InvalidSnapshotFormatError("Snapshot has no entries list.")
        raw_customers = payload.get("customers")
        if raw_customers is None:
            raw_customers = []

        try:
            entries = parse_records(payload["entries"], entry_from_dict, strict=True)
            customers = parse_records(raw_customers, customer_from_dict, strict=True)
        except MalformedPersistedStateError as e:
            raise InvalidSnapshotFormatError(str(e)) from e

        write_error: PersistenceWriteError | None = None
        for target, records in ((self.store, entries), (self.customers, customers)):
            try:
                target.replace_all(records)
            except PersistenceWriteError as e:
                write_error = write_error or e
        log.warning(
            "snapshot_imported entries=%s customers=%s version=%s",
            len(entries), len(customers), payload.get("version"),
        )
        if write_error is not None:
            raise write_error
        return len(entries), len(customers)

    def loads(self, text: str) -> tuple[int, int]:
        try:
            payload = json.loads(text)
        except ValueError as e:
            raise InvalidSnapshotFormatError(f"Backup is not valid JSON: {e}") from e
        return self.import_snapshot(payload)
