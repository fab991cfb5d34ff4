"""
Mapping between domain records and their JSON shape.

Field names on the wire are the ones used by the kiln backups:
  id | type | amount | timestamp | description | category | items[{type, qty, rate}]
  challanNo | customerName | customerAddress | vehicleNo
  paidAmount | dueAmount | paymentStatus | isSettled

An absent (or null) optional field takes its default. A field that is present
with the wrong type is rejected with MalformedPersistedStateError.
"""
from __future__ import annotations

import logging
import math
from datetime import datetime
from typing import Any, Iterable

from kiln.domain.errors import MalformedPersistedStateError
from kiln.domain.models import ENTRY_KINDS, PAYMENT_STATUSES, Customer, Entry, SaleItem

log = logging.getLogger(__name__)

# Largest integer the browser backups can carry exactly (2**53 - 1).
MAX_SAFE_INTEGER = 9007199254740991

ENTRY_FIELDS = frozenset({
    "id", "type", "amount", "timestamp", "description", "category", "items",
    "challanNo", "customerName", "customerAddress", "vehicleNo",
    "paidAmount", "dueAmount", "paymentStatus", "isSettled",
})


def parse_timestamp(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    if not isinstance(value, str) or not value.strip():
        raise MalformedPersistedStateError(f"Invalid timestamp: {value!r}")
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError as e:
        raise MalformedPersistedStateError(f"Invalid timestamp: {value!r}") from e


def _is_number(v: Any) -> bool:
    if isinstance(v, bool) or not isinstance(v, (int, float)):
        return False
    if isinstance(v, int):
        return abs(v) <= MAX_SAFE_INTEGER
    return math.isfinite(v)


def _is_integral(v: Any) -> bool:
    return _is_number(v) and (isinstance(v, int) or v.is_integer())


def _required(raw: dict, key: str) -> Any:
    if raw.get(key) is None:
        raise MalformedPersistedStateError(f"Missing field: {key}")
    return raw[key]


def _optional(raw: dict, key: str, check, default=None) -> Any:
    v = raw.get(key)
    if v is None:
        return default
    if not check(v):
        raise MalformedPersistedStateError(f"Field {key} has wrong type: {type(v).__name__}")
    return v


def _str(v: Any) -> bool:
    return isinstance(v, str)


def _number(raw: dict, key: str, required: bool = False) -> float | int | None:
    v = _required(raw, key) if required else raw.get(key)
    if v is None:
        return None
    if not _is_number(v):
        raise MalformedPersistedStateError(f"Field {key} must be a number")
    return v


def _item_from_dict(raw: Any) -> SaleItem:
    if not isinstance(raw, dict):
        raise MalformedPersistedStateError("Sale item must be an object")
    brick_type = _optional(raw, "type", _str, "")
    qty = _number(raw, "qty", required=True)
    if not _is_integral(qty):
        raise MalformedPersistedStateError(f"Sale item qty must be a whole number: {qty!r}")
    rate = _number(raw, "rate", required=True)
    return SaleItem(brick_type=brick_type, qty=int(qty), rate=rate)


def entry_from_dict(raw: Any) -> Entry:
    if not isinstance(raw, dict):
        raise MalformedPersistedStateError("Entry must be an object")

    entry_id = _required(raw, "id")
    if not isinstance(entry_id, str) or not entry_id:
        raise MalformedPersistedStateError("Field id must be a non-empty string")

    kind = _required(raw, "type")
    if kind not in ENTRY_KINDS:
        raise MalformedPersistedStateError(f"Unknown entry type: {kind!r}")

    amount = _number(raw, "amount", required=True)
    if amount < 0:
        raise MalformedPersistedStateError(f"Entry {entry_id} has negative amount")

    items_raw = _optional(raw, "items", lambda v: isinstance(v, list), [])
    challan = raw.get("challanNo")
    if challan is not None:
        if not _is_integral(challan):
            raise MalformedPersistedStateError("Field challanNo must be an integer")
        challan = int(challan)

    status = raw.get("paymentStatus")
    if status is not None and status not in PAYMENT_STATUSES:
        raise MalformedPersistedStateError(f"Unknown paymentStatus: {status!r}")

    return Entry(
        id=entry_id,
        kind=kind,
        amount=amount,
        timestamp=parse_timestamp(_required(raw, "timestamp")),
        description=_optional(raw, "description", _str, ""),
        category=_optional(raw, "category", _str, ""),
        items=tuple(_item_from_dict(it) for it in items_raw),
        challan_no=challan,
        customer_name=_optional(raw, "customerName", _str),
        customer_address=_optional(raw, "customerAddress", _str),
        vehicle_no=_optional(raw, "vehicleNo", _str),
        paid_amount=_number(raw, "paidAmount"),
        due_amount=_number(raw, "dueAmount"),
        payment_status=status,
        is_settled=_optional(raw, "isSettled", lambda v: isinstance(v, bool), False),
        # Fields this build does not model (e.g. contractorId) ride along untouched.
        extra=tuple((k, v) for k, v in raw.items() if k not in ENTRY_FIELDS),
    )


def entry_to_dict(entry: Entry) -> dict:
    out: dict[str, Any] = dict(entry.extra)
    out.update({
        "id": entry.id,
        "type": entry.kind,
        "amount": entry.amount,
        "description": entry.description,
        "category": entry.category,
        "timestamp": entry.timestamp.isoformat(),
    })
    if entry.items:
        out["items"] = [{"type": it.brick_type, "qty": it.qty, "rate": it.rate} for it in entry.items]
    optional = {
        "challanNo": entry.challan_no,
        "customerName": entry.customer_name,
        "customerAddress": entry.customer_address,
        "vehicleNo": entry.vehicle_no,
        "paidAmount": entry.paid_amount,
        "dueAmount": entry.due_amount,
        "paymentStatus": entry.payment_status,
    }
    out.update({k: v for k, v in optional.items() if v is not None})
    if entry.is_sale or entry.is_settled:
        out["isSettled"] = entry.is_settled
    return out


def customer_from_dict(raw: Any) -> Customer:
    if not isinstance(raw, dict):
        raise MalformedPersistedStateError("Customer must be an object")
    cid = _required(raw, "id")
    name = _required(raw, "name")
    if not isinstance(cid, str) or not isinstance(name, str):
        raise MalformedPersistedStateError("Customer id and name must be strings")
    return Customer(id=cid, name=name, address=_optional(raw, "address", _str, ""))


def customer_to_dict(customer: Customer) -> dict:
    return {"id": customer.id, "name": customer.name, "address": customer.address}


def parse_records(raw: Any, parse_one, *, strict: bool, skipped: list | None = None) -> list:
    """
    Parse a JSON array of records.

    strict=True raises on the first bad record.
    strict=False drops bad records with a warning (used when loading local storage);
    the raw records it drops are appended to `skipped` when one is given.
    """
    if not isinstance(raw, list):
        raise MalformedPersistedStateError(f"Expected a list, got {type(raw).__name__}")
    out = []
    for idx, rec in enumerate(raw):
        try:
            out.append(parse_one(rec))
        except MalformedPersistedStateError as e:
            if strict:
                raise MalformedPersistedStateError(f"Record {idx}: {e}") from e
            log.warning("record_skipped index=%s error=%s", idx, e)
            if skipped is not None:
                skipped.append(rec)
    return out


def dump_records(records: Iterable, dump_one) -> list[dict]:
    return [dump_one(r) for r in records]
