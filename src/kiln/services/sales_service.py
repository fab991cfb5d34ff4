from __future__ import annotations

from datetime import date, datetime, time
from typing import Iterable, Optional

import logging
import math
from kiln.domain.errors import ValidationError
from kiln.domain.models import CASH, DUE, SALE, SALE_CATEGORY, Entry, SaleItem, new_id
from kiln.services.challan import challan_in_use, next_challan_number

log = logging.getLogger("kiln.sales")


def _entry_timestamp(on: date | str | None) -> datetime:
    if on is None:
        return datetime.now().astimezone()
    if isinstance(on, str):
        try:
            on = date.fromisoformat(on)
        except ValueError as e:
            raise ValidationError(f"Invalid date: {on}") from e
    return datetime.combine(on, time()).astimezone()


class SalesService:
    def __init__(self, store):
        self.store = store

    def next_challan_number(self) -> int:
        return next_challan_number(self.store.entries)

    def create_sale(
        self,
        customer_name: str,
        items: Iterable[dict],
        paid_amount: float = 0,
        customer_address: str = "",
        vehicle_no: Optional[str] = None,
        challan_no: Optional[int] = None,
        sale_date: date | str | None = None,
    ) -> Entry:
        """
        items: [{brick_type, qty, rate}]
        """
        customer_name = (customer_name or "").strip()
        if not customer_name:
            raise ValidationError("Customer name is required.")

        items = list(items)
        if not items:
            raise ValidationError("Memo has no items.")

        lines: list[SaleItem] = []
        for it in items:
            brick_type = str(it.get("brick_type") or "").strip()
            raw_qty = float(it.get("qty") or 0)
            if not raw_qty.is_integer():
                raise ValidationError("Qty must be a whole number of bricks.")
            qty = int(raw_qty)
            rate = float(it.get("rate") or 0)
            if not brick_type:
                raise ValidationError("Brick type is required.")
            if qty <= 0:
                raise ValidationError("Qty must be >= 1.")
            if not math.isfinite(rate) or rate <= 0:
                raise ValidationError("Rate must be > 0.")
            lines.append(SaleItem(brick_type=brick_type, qty=qty, rate=rate))

        amount = sum(line.line_total for line in lines)
        paid = float(paid_amount or 0)
        if paid < 0:
            raise ValidationError("Paid amount must be >= 0.")
        if paid > amount:
            raise ValidationError("Paid amount cannot exceed the memo total.")
        due = amount - paid

        entries = self.store.entries
        if challan_no is None:
            challan_no = next_challan_number(entries)
        elif challan_in_use(entries, int(challan_no)):
            log.warning("challan_collision challan=%s", challan_no)

        entry = Entry(
            id=new_id(),
            kind=SALE,
            amount=amount,
            timestamp=_entry_timestamp(sale_date),
            description=f"{lines[0].brick_type} বিক্রয়",
            category=SALE_CATEGORY,
            items=tuple(lines),
            challan_no=int(challan_no),
            customer_name=customer_name,
            customer_address=(customer_address or "").strip(),
            vehicle_no=(vehicle_no or "").strip() or None,
            paid_amount=paid,
            due_amount=due,
            payment_status=DUE if due > 0 else CASH,
            is_settled=False,
        )
        self.store.append(entry)
        log.info(
            "sale_created entry_id=%s challan=%s amount=%.2f paid=%.2f due=%.2f",
            entry.id, entry.challan_no, amount, paid, due,
        )
        return entry

    def get_sale(self, entry_id: str) -> Optional[Entry]:
        entry = self.store.get(entry_id)
        return entry if entry is not None and entry.is_sale else None
