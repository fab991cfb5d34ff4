from __future__ import annotations

import json
import logging
import sqlite3
import uuid
from typing import Iterable

from kiln.domain.codec import customer_from_dict, customer_to_dict, dump_records, parse_records
from kiln.domain.errors import MalformedPersistedStateError, PersistenceWriteError, ValidationError
from kiln.domain.models import Customer
from kiln.repositories.sqlite_repo import CUSTOMERS_KEY

log = logging.getLogger(__name__)


class CustomerDirectory:
    def __init__(self, repo, key: str = CUSTOMERS_KEY):
        self.repo = repo
        self.key = key
        self._customers: tuple[Customer, ...] = ()
        # Stored records that failed to parse; written back untouched.
        self._unparsed: tuple = ()

    @property
    def customers(self) -> tuple[Customer, ...]:
        return self._customers

    def __len__(self) -> int:
        return len(self._customers)

    def load_all(self) -> tuple[Customer, ...]:
        raw = self.repo.get_value(self.key)
        self._unparsed = ()
        if raw is None:
            self._customers = ()
            return self._customers
        skipped: list = []
        try:
            self._customers = tuple(parse_records(json.loads(raw), customer_from_dict, strict=False, skipped=skipped))
            self._unparsed = tuple(skipped)
        except (ValueError, MalformedPersistedStateError) as e:
            log.warning("customers_load_malformed key=%s error=%s", self.key, e)
            self._customers = ()
        return self._customers

    def add(self, name: str, address: str = "") -> Customer:
        name = (name or "").strip()
        address = (address or "").strip()
        if not name:
            raise ValidationError("Customer name is required.")
        customer = Customer(id=uuid.uuid4().hex, name=name, address=address)
        self.append(customer)
        log.info("customer_added customer_id=%s", customer.id)
        return customer

    def append(self, customer: Customer) -> Customer:
        self._commit((customer,) + self._customers)
        return customer

    def replace_all(self, customers: Iterable[Customer]) -> None:
        self._unparsed = ()
        self._commit(tuple(customers))

    def search(self, query: str = "") -> list[Customer]:
        q = (query or "").lower()
        hits = [c for c in self._customers if q in c.name.lower() or q in c.address.lower()]
        return sorted(hits, key=lambda c: c.name)

    def suggest(self, text: str, limit: int = 5) -> list[Customer]:
        """Autocomplete for the sale form: name matches only, directory order."""
        t = (text or "").strip().lower()
        if not t:
            return []
        return [c for c in self._customers if t in c.name.lower()][:limit]

    def _commit(self, customers: tuple[Customer, ...]) -> None:
        self._customers = customers
        try:
            payload = json.dumps(dump_records(customers, customer_to_dict) + list(self._unparsed), ensure_ascii=False)
            self.repo.set_value(self.key, payload)
        except (TypeError, ValueError, sqlite3.Error) as e:
            log.error("customers_persist_failed key=%s count=%s error=%s", self.key, len(customers), e)
            raise PersistenceWriteError(f"Could not save customers: {e}") from e
