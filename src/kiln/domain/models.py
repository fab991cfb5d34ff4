from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime, tzinfo
from typing import Any, Optional
import uuid

SALE = "SALE"
EXPENSE = "EXPENSE"
LABOR_ADVANCE = "LABOR_ADVANCE"
LABOR_WORK = "LABOR_WORK"
ENTRY_KINDS = (SALE, EXPENSE, LABOR_ADVANCE, LABOR_WORK)

CASH = "CASH"
DUE = "DUE"
PAYMENT_STATUSES = (CASH, DUE)

SALE_CATEGORY = "বিক্রয়"
EXPENSE_CATEGORY = "খরচ"
LABOR_CATEGORY = "শ্রমিক"

BRICK_TYPES = (
    "১ নং মেশিন",
    "২ নং মেশিন",
    "১ নং বাংলা",
    "২ নং বাংলা",
    "ঘুড়িয়া",
)


@dataclass(frozen=True)
class SaleItem:
    brick_type: str
    qty: int
    rate: float

    @property
    def line_total(self) -> float:
        return self.qty * self.rate


@dataclass(frozen=True)
class Entry:
    id: str
    kind: str
    amount: float
    timestamp: datetime
    description: str = ""
    category: str = ""
    items: tuple[SaleItem, ...] = ()
    challan_no: Optional[int] = None
    customer_name: Optional[str] = None
    customer_address: Optional[str] = None
    vehicle_no: Optional[str] = None
    paid_amount: Optional[float] = None
    due_amount: Optional[float] = None
    payment_status: Optional[str] = None
    is_settled: bool = False
    extra: tuple[tuple[str, Any], ...] = field(default=(), repr=False)

    @property
    def is_sale(self) -> bool:
        return self.kind == SALE

    @property
    def brick_count(self) -> int:
        return sum(it.qty for it in self.items)

    def local_date(self, tz: tzinfo | None = None) -> str:
        # Naive timestamps are taken as local time by astimezone().
        return self.timestamp.astimezone(tz).strftime("%Y-%m-%d")


@dataclass(frozen=True)
class Customer:
    id: str
    name: str
    address: str


@dataclass(frozen=True)
class LedgerStats:
    total_sales: float
    total_expenses: float
    profit: float
    net_cash: float


@dataclass(frozen=True)
class SalesSummary:
    total_bricks: int
    total_amount: float
    total_parties: int


@dataclass(frozen=True)
class DueReport:
    rows: tuple[Entry, ...]
    total_due: float
    open_count: int


def new_id() -> str:
    return uuid.uuid4().hex
