from __future__ import annotations

import logging
from datetime import datetime

from kiln.domain.errors import ValidationError
from kiln.domain.models import (
    EXPENSE,
    EXPENSE_CATEGORY,
    LABOR_ADVANCE,
    LABOR_CATEGORY,
    LABOR_WORK,
    Entry,
    new_id,
)

log = logging.getLogger(__name__)


class ExpenseService:
    """Expenses and contractor (majhi) payments. Entries are immutable once recorded."""

    def __init__(self, store):
        self.store = store

    def _record(self, kind: str, amount: float, description: str, category: str) -> Entry:
        amount = float(amount or 0)
        if amount <= 0:
            raise ValidationError("Amount must be > 0.")
        entry = Entry(
            id=new_id(),
            kind=kind,
            amount=amount,
            timestamp=datetime.now().astimezone(),
            description=description,
            category=category,
        )
        self.store.append(entry)
        log.info("entry_recorded kind=%s entry_id=%s amount=%.2f", kind, entry.id, amount)
        return entry

    def record_expense(self, amount: float, description: str) -> Entry:
        description = (description or "").strip()
        if not description:
            raise ValidationError("Description is required.")
        return self._record(EXPENSE, amount, description, EXPENSE_CATEGORY)

    def record_labor_advance(self, contractor: str, amount: float) -> Entry:
        contractor = (contractor or "").strip()
        if not contractor:
            raise ValidationError("Contractor name is required.")
        return self._record(LABOR_ADVANCE, amount, f"দাদন: {contractor}", LABOR_CATEGORY)

    def record_labor_work(self, contractor: str, amount: float) -> Entry:
        contractor = (contractor or "").strip()
        if not contractor:
            raise ValidationError("Contractor name is required.")
        return self._record(LABOR_WORK, amount, f"কাজ: {contractor}", LABOR_CATEGORY)
