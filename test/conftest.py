import sys
from datetime import datetime, timezone
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))


def open_store(db_path: Path):
    from kiln.repositories.sqlite_repo import SqliteRepository
    from kiln.services.customer_directory import CustomerDirectory
    from kiln.services.entry_store import EntryStore

    repo = SqliteRepository(db_path)
    repo.init_db()
    store = EntryStore(repo)
    store.load_all()
    customers = CustomerDirectory(repo)
    customers.load_all()
    return repo, store, customers


def make_entry(entry_id: str, kind: str = "SALE", amount: float = 0.0, ts: datetime | None = None, **fields):
    from kiln.domain.models import Entry

    return Entry(
        id=entry_id,
        kind=kind,
        amount=amount,
        timestamp=ts or datetime(2024, 1, 15, 10, 0, tzinfo=timezone.utc),
        **fields,
    )
