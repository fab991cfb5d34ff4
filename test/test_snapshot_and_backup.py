import json
import sqlite3
from pathlib import Path

import pytest
from conftest import open_store

from kiln.domain.errors import InvalidSnapshotFormatError, PersistenceWriteError
from kiln.repositories.sqlite_repo import SqliteRepository
from kiln.services.backup_service import BackupService
from kiln.services.customer_directory import CustomerDirectory
from kiln.services.entry_store import EntryStore
from kiln.services.expense_service import ExpenseService
from kiln.services.sales_service import SalesService
from kiln.services.settlement import SettlementService
from kiln.services.snapshot_service import SnapshotCodec


def _populated(tmp_path: Path, name: str = "src.db"):
    _, store, customers = open_store(tmp_path / name)
    customers.add("Rahim", "Bogura")
    sales = SalesService(store)
    s1 = sales.create_sale(
        "Rahim",
        [{"brick_type": "১ নং মেশিন", "qty": 500, "rate": 11.5}, {"brick_type": "ঘুড়িয়া", "qty": 100, "rate": 6}],
        paid_amount=2000,
        customer_address="Bogura",
        vehicle_no="DHAKA-METRO-TA-11",
        sale_date="2024-04-01",
    )
    sales.create_sale("Karim", [{"brick_type": "২ নং বাংলা", "qty": 200, "rate": 9}], paid_amount=1800)
    SettlementService(store).mark_paid(s1.id)
    expenses = ExpenseService(store)
    expenses.record_expense(750, "Coal")
    expenses.record_labor_advance("Jalal", 1000)
    expenses.record_labor_work("Jalal", 1500)
    return store, customers, SnapshotCodec(store, customers)


def test_export_shape(tmp_path: Path):
    _, _, codec = _populated(tmp_path)
    snap = codec.export()

    assert snap["version"] == "1.0"
    assert isinstance(snap["exportedAt"], str)
    assert len(snap["entries"]) == 5
    assert snap["customers"] == [{"id": snap["customers"][0]["id"], "name": "Rahim", "address": "Bogura"}]
    sale = next(e for e in snap["entries"] if e.get("challanNo") == 1001)
    assert sale["items"][0] == {"type": "১ নং মেশিন", "qty": 500, "rate": 11.5}
    assert sale["isSettled"] is True


def test_export_then_import_reproduces_entries_field_for_field(tmp_path: Path):
    store, customers, codec = _populated(tmp_path)
    text = codec.dumps()

    _, fresh_store, fresh_customers = open_store(tmp_path / "fresh.db")
    counts = SnapshotCodec(fresh_store, fresh_customers).loads(text)

    assert counts == (5, 1)
    assert fresh_store.entries == store.entries
    assert fresh_customers.customers == customers.customers
    for a, b in zip(fresh_store.entries, store.entries):
        assert a.timestamp == b.timestamp


def test_import_replaces_instead_of_merging(tmp_path: Path):
    _, _, codec = _populated(tmp_path)
    codec.import_snapshot({"entries": []})

    assert codec.store.entries == ()
    assert codec.customers.customers == ()


def test_import_accepts_browser_backup_shape(tmp_path: Path):
    _, store, customers = open_store(tmp_path / "legacy.db")
    payload = {
        "entries": [{
            "id": "1712000000000", "type": "SALE", "paymentStatus": "DUE", "amount": 12000,
            "paidAmount": 0, "dueAmount": 12000, "description": "১ নং মেশিন বিক্রয়", "category": "বিক্রয়",
            "items": [{"type": "১ নং মেশিন", "qty": 1000, "rate": 12}], "challanNo": 1007,
            "customerName": "Rahim", "customerAddress": "", "vehicleNo": "",
            "timestamp": "2024-04-01T00:00:00.000Z",
        }],
        "customers": [{"id": "1711000000000", "name": "Rahim", "address": ""}],
        "version": "1.0",
        "exportedAt": "2024-04-02T10:00:00.000Z",
    }

    SnapshotCodec(store, customers).import_snapshot(payload)

    sale = store.get("1712000000000")
    assert sale.timestamp.isoformat() == "2024-04-01T00:00:00+00:00"
    assert sale.brick_count == 1000
    assert customers.customers[0].id == "1711000000000"


@pytest.mark.parametrize(
    "payload",
    [
        [],
        {"customers": []},
        {"entries": {"id": "x"}},
        {"entries": [{"id": "x", "type": "SALE", "amount": "100", "timestamp": "2024-01-01T00:00:00Z"}]},
        {"entries": [{"id": "x", "type": "SALE", "amount": 100, "timestamp": "yesterday"}]},
        {"entries": [], "customers": "nobody"},
        {"entries": [{"id": "x", "type": "SALE", "amount": 10, "challanNo": float("inf"), "timestamp": "2024-01-01T00:00:00Z"}]},
        {"entries": [{"id": "x", "type": "SALE", "amount": 10, "challanNo": 10 ** 20, "timestamp": "2024-01-01T00:00:00Z"}]},
        {"entries": [{"id": "x", "type": "EXPENSE", "amount": float("nan"), "timestamp": "2024-01-01T00:00:00Z"}]},
        {"entries": [{"id": "x", "type": "EXPENSE", "amount": float("inf"), "timestamp": "2024-01-01T00:00:00Z"}]},
        {"entries": [{"id": "x", "type": "SALE", "amount": 10, "items": [{"type": "ঘুড়িয়া", "qty": 2.5, "rate": 4}], "timestamp": "2024-01-01T00:00:00Z"}]},
    ],
)
def test_invalid_snapshot_leaves_state_untouched(tmp_path: Path, payload):
    store, customers, codec = _populated(tmp_path)
    before_entries, before_customers = store.entries, customers.customers

    with pytest.raises(InvalidSnapshotFormatError):
        codec.import_snapshot(payload)

    assert store.entries is before_entries
    assert customers.customers is before_customers


def test_backup_file_round_trip_and_garbage_file(tmp_path: Path):
    store, _, codec = _populated(tmp_path)
    backup = BackupService(codec, tmp_path / "backups")
    path = backup.create_backup()

    assert path.name.startswith("kiln_backup_") and path.suffix == ".json"
    assert json.loads(path.read_text(encoding="utf-8"))["version"] == "1.0"

    original = store.entries
    codec.import_snapshot({"entries": []})
    assert backup.restore_latest() == (5, 1)
    assert store.entries == original

    junk = tmp_path / "junk.json"
    junk.write_text("<html>not a backup</html>", encoding="utf-8")
    with pytest.raises(InvalidSnapshotFormatError):
        backup.restore_backup(junk)
    assert store.entries == original


def test_backup_retention_keeps_newest(tmp_path: Path):
    _, _, codec = _populated(tmp_path)
    backup = BackupService(codec, tmp_path / "backups", max_backups=3)
    for _ in range(5):
        backup.create_backup()

    assert len(backup.list_backups()) == 3


def test_restore_latest_without_backups(tmp_path: Path):
    _, store, customers = open_store(tmp_path / "empty.db")
    backup = BackupService(SnapshotCodec(store, customers), tmp_path / "none")
    with pytest.raises(FileNotFoundError):
        backup.restore_latest()


def test_loads_rejects_non_finite_json_literals(tmp_path: Path):
    store, _, codec = _populated(tmp_path)
    before = store.entries

    with pytest.raises(InvalidSnapshotFormatError):
        codec.loads(
            '{"entries": [{"id": "x", "type": "SALE", "amount": 10, "challanNo": Infinity,'
            ' "timestamp": "2024-01-01T00:00:00Z"}]}'
        )
    assert store.entries is before


def test_unknown_fields_survive_import_and_export(tmp_path: Path):
    _, store, customers = open_store(tmp_path / "contractor.db")
    codec = SnapshotCodec(store, customers)
    codec.import_snapshot({"entries": [{
        "id": "1712000000001", "type": "LABOR_WORK", "amount": 400, "contractorId": "1700000000000",
        "description": "কাজ: Jalal", "category": "শ্রমিক", "timestamp": "2024-04-01T06:00:00.000Z",
    }]})

    exported = codec.export()["entries"][0]
    assert exported["contractorId"] == "1700000000000"
    assert exported["amount"] == 400


class FailingRepo(SqliteRepository):
    def set_value(self, key, value):
        raise sqlite3.OperationalError("disk I/O error")


def test_import_write_failure_replaces_both_collections_then_raises(tmp_path: Path):
    repo = FailingRepo(tmp_path / "failing.db")
    repo.init_db()
    store, customers = EntryStore(repo), CustomerDirectory(repo)
    payload = {
        "entries": [{"id": "e1", "type": "EXPENSE", "amount": 75, "timestamp": "2024-03-01T08:00:00Z"}],
        "customers": [{"id": "c1", "name": "Rahim", "address": "Bogura"}],
    }

    with pytest.raises(PersistenceWriteError, match="Could not save entries"):
        SnapshotCodec(store, customers).import_snapshot(payload)

    assert [e.id for e in store.entries] == ["e1"]
    assert [c.id for c in customers.customers] == ["c1"]
