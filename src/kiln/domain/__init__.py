from .models import Entry, SaleItem, Customer, LedgerStats, SalesSummary, DueReport
from .errors import (
    ValidationError,
    InvalidEntryKindError,
    InvalidSnapshotFormatError,
    PersistenceWriteError,
    MalformedPersistedStateError,
)

__all__ = [
    "Entry",
    "SaleItem",
    "Customer",
    "LedgerStats",
    "SalesSummary",
    "DueReport",
    "ValidationError",
    "InvalidEntryKindError",
    "InvalidSnapshotFormatError",
    "PersistenceWriteError",
    "MalformedPersistedStateError",
]
