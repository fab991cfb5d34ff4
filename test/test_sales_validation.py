from datetime import datetime
from pathlib import Path

import pytest
from conftest import open_store

from kiln.domain.errors import ValidationError
from kiln.services.expense_service import ExpenseService
from kiln.services.sales_service import SalesService


def _setup(tmp_path: Path):
    _, store, _ = open_store(tmp_path / "sales_validation.db")
    return store, SalesService(store)


@pytest.mark.parametrize(
    "name, items, paid, message",
    [
        ("", [{"brick_type": "ঘুড়িয়া", "qty": 10, "rate": 5}], 0, "Customer name is required"),
        ("Rahim", [], 0, "no items"),
        ("Rahim", [{"brick_type": "ঘুড়িয়া", "qty": 0, "rate": 5}], 0, "Qty must be >= 1"),
        ("Rahim", [{"brick_type": "ঘুড়িয়া", "qty": 10, "rate": 0}], 0, "Rate must be > 0"),
        ("Rahim", [{"brick_type": "ঘুড়িয়া", "qty": 2.5, "rate": 5}], 0, "whole number"),
        ("Rahim", [{"brick_type": "ঘুড়িয়া", "qty": 10, "rate": float("inf")}], 0, "Rate must be > 0"),
        ("Rahim", [{"brick_type": "", "qty": 10, "rate": 5}], 0, "Brick type is required"),
        ("Rahim", [{"brick_type": "ঘুড়িয়া", "qty": 10, "rate": 5}], -1, "Paid amount must be >= 0"),
        ("Rahim", [{"brick_type": "ঘুড়িয়া", "qty": 10, "rate": 5}], 51, "cannot exceed"),
    ],
)
def test_create_sale_rejects_invalid_input_and_appends_nothing(tmp_path: Path, name, items, paid, message):
    store, sales = _setup(tmp_path)

    with pytest.raises(ValidationError, match=message):
        sales.create_sale(name, items, paid_amount=paid)
    assert store.entries == ()


def test_create_sale_computes_totals_and_keeps_customer_copy(tmp_path: Path):
    store, sales = _setup(tmp_path)
    sale = sales.create_sale(
        " Rahim ",
        [{"brick_type": "১ নং মেশিন", "qty": 1000, "rate": 12}, {"brick_type": "ঘুড়িয়া", "qty": 200, "rate": 7}],
        paid_amount=5000,
        customer_address="Bogura",
        vehicle_no=" ",
        sale_date="2024-06-15",
    )

    assert sale.amount == 13400
    assert sale.paid_amount == 5000
    assert sale.due_amount == 8400
    assert sale.payment_status == "DUE"
    assert sale.is_settled is False
    assert sale.customer_name == "Rahim"
    assert sale.vehicle_no is None
    assert sale.brick_count == 1200
    assert sale.description == "১ নং মেশিন বিক্রয়"
    assert sale.category == "বিক্রয়"
    assert sale.local_date() == "2024-06-15"
    assert store.entries == (sale,)


def test_fully_paid_sale_is_cash(tmp_path: Path):
    _, sales = _setup(tmp_path)
    sale = sales.create_sale("Karim", [{"brick_type": "২ নং বাংলা", "qty": 10, "rate": 10}], paid_amount=100)
    assert sale.payment_status == "CASH"
    assert sale.due_amount == 0
    assert sale.timestamp.tzinfo is not None
    assert abs((datetime.now().astimezone() - sale.timestamp).total_seconds()) < 60


def test_sale_rejects_bad_date(tmp_path: Path):
    store, sales = _setup(tmp_path)
    with pytest.raises(ValidationError, match="Invalid date"):
        sales.create_sale("Karim", [{"brick_type": "ঘুড়িয়া", "qty": 1, "rate": 1}], sale_date="15/06/2024")
    assert store.entries == ()


def test_expense_and_labor_entries(tmp_path: Path):
    store, _ = _setup(tmp_path)
    expenses = ExpenseService(store)

    advance = expenses.record_labor_advance("Jalal", 2000)
    work = expenses.record_labor_work("Jalal", 3500)
    expense = expenses.record_expense(400, "Generator fuel")

    assert advance.kind == "LABOR_ADVANCE" and advance.description == "দাদন: Jalal"
    assert work.kind == "LABOR_WORK" and work.category == "শ্রমিক"
    assert expense.kind == "EXPENSE" and expense.category == "খরচ"
    assert [e.id for e in store.entries] == [expense.id, work.id, advance.id]


@pytest.mark.parametrize(
    "call, message",
    [
        (lambda svc: svc.record_expense(0, "Fuel"), "Amount must be > 0"),
        (lambda svc: svc.record_expense(10, " "), "Description is required"),
        (lambda svc: svc.record_labor_advance("", 100), "Contractor name is required"),
        (lambda svc: svc.record_labor_work("Jalal", -5), "Amount must be > 0"),
    ],
)
def test_expense_validation(tmp_path: Path, call, message):
    store, _ = _setup(tmp_path)
    with pytest.raises(ValidationError, match=message):
        call(ExpenseService(store))
    assert store.entries == ()
