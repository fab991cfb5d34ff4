from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from kiln.repositories.sqlite_repo import SqliteRepository
from kiln.services.backup_service import BackupService
from kiln.services.customer_directory import CustomerDirectory
from kiln.services.entry_store import EntryStore
from kiln.services.expense_service import ExpenseService
from kiln.services.operations_service import OperationsService
from kiln.services.reporting_service import ReportingService
from kiln.services.sales_service import SalesService
from kiln.services.settlement import SettlementService
from kiln.services.snapshot_service import SnapshotCodec


@dataclass(frozen=True)
class AppContainer:
    repo: SqliteRepository
    store: EntryStore
    customers: CustomerDirectory
    sales: SalesService
    expenses: ExpenseService
    settlement: SettlementService
    snapshots: SnapshotCodec
    backup: BackupService
    reporting: ReportingService
    operations: OperationsService


def build_container(db_path: Path | str, backup_dir: Path | str | None = None) -> AppContainer:
    repo = SqliteRepository(db_path)
    repo.init_db()

    store = EntryStore(repo)
    store.load_all()
    customers = CustomerDirectory(repo)
    customers.load_all()

    snapshots = SnapshotCodec(store, customers)
    backup_dir = Path(backup_dir) if backup_dir else Path(db_path).parent / "backups"
    backup = BackupService(snapshots, backup_dir)
    operations = OperationsService(
        repo,
        store,
        customers,
        db_path=db_path,
        logs_dir=Path(db_path).parent / "logs",
        backup_dir=backup_dir,
    )

    return AppContainer(
        repo=repo,
        store=store,
        customers=customers,
        sales=SalesService(store),
        expenses=ExpenseService(store),
        settlement=SettlementService(store),
        snapshots=snapshots,
        backup=backup,
        reporting=ReportingService(store),
        operations=operations,
    )
