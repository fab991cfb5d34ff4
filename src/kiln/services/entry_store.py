from __future__ import annotations

import json
import logging
import sqlite3
from typing import Iterable, Optional

from kiln.domain.codec import dump_records, entry_from_dict, entry_to_dict, parse_records
from kiln.domain.errors import InvalidEntryKindError, MalformedPersistedStateError, PersistenceWriteError
from kiln.domain.models import Entry
from kiln.repositories.sqlite_repo import ENTRIES_KEY

log = logging.getLogger(__name__)


class EntryStore:
    """
    Newest-first, append-only collection of ledger entries.

    Every mutation swaps in a new tuple, so a tuple handed out by `entries`
    never changes afterwards. Writes go through to the repository immediately.

    Stored records that fail to parse on load are kept verbatim and written
    back after the parsed entries, so a save never drops them.
    """

    def __init__(self, repo, key: str = ENTRIES_KEY):
        self.repo = repo
        self.key = key
        self._entries: tuple[Entry, ...] = ()
        self._unparsed: tuple = ()

    @property
    def entries(self) -> tuple[Entry, ...]:
        return self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def load_all(self) -> tuple[Entry, ...]:
        raw = self.repo.get_value(self.key)
        self._unparsed = ()
        if raw is None:
            self._entries = ()
            return self._entries
        skipped: list = []
        try:
            self._entries = tuple(parse_records(json.loads(raw), entry_from_dict, strict=False, skipped=skipped))
            self._unparsed = tuple(skipped)
        except (ValueError, MalformedPersistedStateError) as e:
            log.warning("entries_load_malformed key=%s error=%s", self.key, e)
            self._entries = ()
        return self._entries

    def get(self, entry_id: str) -> Optional[Entry]:
        for e in self._entries:
            if e.id == entry_id:
                return e
        return None

    def append(self, entry: Entry) -> Entry:
        self._commit((entry,) + self._entries)
        return entry

    def replace_all(self, entries: Iterable[Entry]) -> None:
        self._unparsed = ()
        self._commit(tuple(entries))

    def replace_sale(self, updated: Entry) -> bool:
        if not updated.is_sale:
            raise InvalidEntryKindError(f"Entry {updated.id} is {updated.kind}, not SALE.")
        for idx, e in enumerate(self._entries):
            if e.id == updated.id:
                if not e.is_sale:
                    raise InvalidEntryKindError(f"Entry {e.id} is {e.kind}, not SALE.")
                self._commit(self._entries[:idx] + (updated,) + self._entries[idx + 1:])
                return True
        return False

    @property
    def last_saved_at(self) -> Optional[str]:
        return self.repo.get_saved_at(self.key)

    def _commit(self, entries: tuple[Entry, ...]) -> None:
        # In-memory state is kept even if the write below fails.
        self._entries = entries
        try:
            payload = json.dumps(dump_records(entries, entry_to_dict) + list(self._unparsed), ensure_ascii=False)
            self.repo.set_value(self.key, payload)
        except (TypeError, ValueError, sqlite3.Error) as e:
            log.error("entries_persist_failed key=%s count=%s error=%s", self.key, len(entries), e)
            raise PersistenceWriteError(f"Could not save entries: {e}") from e
