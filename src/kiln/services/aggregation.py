"""
Derived figures over the ledger.

All functions are pure. `ledger_stats` and the due rows are memoized on the
identity of the collection passed in; EntryStore hands out a fresh tuple after
every mutation, so a cached result is never stale.

Day strings are local calendar days in canonical YYYY-MM-DD form. Range
checks compare these strings directly, which works because the format is
zero-padded and ordered year-month-day.
"""
from __future__ import annotations

import functools
from datetime import date, datetime, timedelta, tzinfo
from typing import Iterable, Sequence

from kiln.domain.errors import ValidationError
from kiln.domain.models import (
    DUE,
    EXPENSE,
    LABOR_ADVANCE,
    LABOR_WORK,
    SALE,
    DueReport,
    Entry,
    LedgerStats,
    SalesSummary,
)


def _memo_by_identity(fn):
    last: list = [None, None]

    @functools.wraps(fn)
    def wrapper(entries):
        if last[0] is not entries:
            last[1] = fn(entries)
            last[0] = entries
        return last[1]

    return wrapper


def _sum(entries: Iterable[Entry], kind: str) -> float:
    return sum(e.amount for e in entries if e.kind == kind)


def _newest_first(entries: Iterable[Entry]) -> list[Entry]:
    return sorted(entries, key=lambda e: e.timestamp.timestamp(), reverse=True)


@_memo_by_identity
def ledger_stats(entries: Sequence[Entry]) -> LedgerStats:
    total_sales = _sum(entries, SALE)
    expenses = _sum(entries, EXPENSE)
    labor_work = _sum(entries, LABOR_WORK)
    labor_advances = _sum(entries, LABOR_ADVANCE)
    collected = sum(
        e.paid_amount if e.paid_amount is not None else e.amount
        for e in entries
        if e.kind == SALE
    )

    total_expenses = expenses + labor_work
    return LedgerStats(
        total_sales=total_sales,
        total_expenses=total_expenses,
        profit=total_sales - total_expenses,
        # Cash basis: advances count, labor work does not.
        net_cash=collected - expenses - labor_advances,
    )


# ---------- Days ----------
def local_date_string(ts: datetime, tz: tzinfo | None = None) -> str:
    return ts.astimezone(tz).strftime("%Y-%m-%d")


def today_string(tz: tzinfo | None = None) -> str:
    return local_date_string(datetime.now().astimezone(), tz)


def _check_day(day: str) -> date:
    try:
        return date.fromisoformat(day)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"Invalid day, expected YYYY-MM-DD: {day!r}") from e


def shift_day(day: str, delta: int) -> str:
    return (_check_day(day) + timedelta(days=delta)).isoformat()


def last_days_range(days: int, today: str | None = None) -> tuple[str, str]:
    end = today or today_string()
    return shift_day(end, -int(days)), end


def sales_on_day(entries: Iterable[Entry], day: str, tz: tzinfo | None = None) -> list[Entry]:
    _check_day(day)
    return _newest_first(e for e in entries if e.kind == SALE and local_date_string(e.timestamp, tz) == day)


def sales_between(entries: Iterable[Entry], start: str, end: str, tz: tzinfo | None = None) -> list[Entry]:
    _check_day(start)
    _check_day(end)
    return _newest_first(
        e for e in entries
        if e.kind == SALE and start <= local_date_string(e.timestamp, tz) <= end
    )


def summarize_sales(sales: Iterable[Entry]) -> SalesSummary:
    total_bricks = 0
    total_amount = 0.0
    parties: set[str] = set()
    for s in sales:
        total_amount += s.amount
        if s.customer_name:
            parties.add(s.customer_name)
        total_bricks += s.brick_count
    return SalesSummary(total_bricks=total_bricks, total_amount=total_amount, total_parties=len(parties))


# ---------- Dues ----------
@_memo_by_identity
def _due_rows(entries: Sequence[Entry]) -> tuple[Entry, ...]:
    return tuple(_newest_first(
        e for e in entries
        if e.kind == SALE and ((e.payment_status == DUE and (e.due_amount or 0) > 0) or e.is_settled)
    ))


def due_report(entries: Sequence[Entry], search: str = "") -> DueReport:
    rows = _due_rows(entries)
    total_due = sum(e.due_amount or 0 for e in rows)
    open_count = sum(1 for e in rows if not e.is_settled)

    needle = (search or "").strip().lower()
    if needle:
        rows = tuple(
            e for e in rows
            if needle in (e.customer_name or "").lower()
            or (e.challan_no is not None and needle in str(e.challan_no))
        )
    return DueReport(rows=rows, total_due=total_due, open_count=open_count)
