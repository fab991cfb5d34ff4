from .entry_store import EntryStore
from .customer_directory import CustomerDirectory
from .sales_service import SalesService
from .expense_service import ExpenseService
from .settlement import SettlementService
from .snapshot_service import SnapshotCodec
from .backup_service import BackupService
from .reporting_service import ReportingService
from .operations_service import OperationsService

__all__ = [
    "EntryStore",
    "CustomerDirectory",
    "SalesService",
    "ExpenseService",
    "SettlementService",
    "SnapshotCodec",
    "BackupService",
    "ReportingService",
    "OperationsService",
]
