from __future__ import annotations

import logging
from dataclasses import replace
from typing import Optional

from kiln.domain.errors import InvalidEntryKindError
from kiln.domain.models import CASH, DUE, Entry

log = logging.getLogger("kiln.sales")

UNPAID_FULL = "UNPAID_FULL"
PARTIALLY_PAID = "PARTIALLY_PAID"
FULLY_PAID_AT_CREATION = "FULLY_PAID_AT_CREATION"
SETTLED = "SETTLED"


def settlement_state(entry: Entry) -> str:
    if not entry.is_sale:
        raise InvalidEntryKindError(f"Entry {entry.id} is {entry.kind}, not SALE.")
    if entry.is_settled:
        return SETTLED
    paid = entry.paid_amount or 0
    if paid <= 0 and entry.amount > 0:
        return UNPAID_FULL
    if paid < entry.amount:
        return PARTIALLY_PAID
    return FULLY_PAID_AT_CREATION


class SettlementService:
    """
    Marks due memos as settled and reverses that.

    Undo never reads a stored "previous state": the due amount is recomputed
    from amount - paid_amount, and paid_amount is never changed here.
    """

    def __init__(self, store):
        self.store = store

    def _sale(self, entry_id: str) -> Optional[Entry]:
        entry = self.store.get(entry_id)
        if entry is None:
            log.warning("settlement_skipped entry_id=%s reason=not_found", entry_id)
            return None
        if not entry.is_sale:
            raise InvalidEntryKindError(f"Entry {entry_id} is {entry.kind}, not SALE.")
        return entry

    def mark_paid(self, entry_id: str) -> Optional[Entry]:
        entry = self._sale(entry_id)
        if entry is None:
            return None
        updated = replace(entry, is_settled=True, due_amount=0, payment_status=CASH)
        self.store.replace_sale(updated)
        log.info("sale_settled entry_id=%s challan=%s paid=%s", entry.id, entry.challan_no, entry.paid_amount)
        return updated

    def undo_paid(self, entry_id: str) -> Optional[Entry]:
        entry = self._sale(entry_id)
        if entry is None:
            return None
        original_due = entry.amount - (entry.paid_amount or 0)
        if original_due > 0:
            updated = replace(entry, is_settled=False, due_amount=original_due, payment_status=DUE)
        else:
            updated = replace(entry, is_settled=False, due_amount=0, payment_status=CASH)
        self.store.replace_sale(updated)
        log.info("sale_unsettled entry_id=%s challan=%s due=%s", entry.id, entry.challan_no, updated.due_amount)
        return updated
