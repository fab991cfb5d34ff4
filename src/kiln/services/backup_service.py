from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path

from kiln.domain.errors import InvalidSnapshotFormatError

log = logging.getLogger("kiln.backup")

BACKUP_GLOB = "kiln_backup_*.json"


class BackupService:
    def __init__(self, codec, backup_dir: Path | str, max_backups: int = 30):
        self.codec = codec
        self.backup_dir = Path(backup_dir)
        self.max_backups = max_backups

    def create_backup(self) -> Path:
        self.backup_dir.mkdir(parents=True, exist_ok=True)
        ts = datetime.now().strftime("%Y%m%d_%H%M%S")
        target = self.backup_dir / f"kiln_backup_{ts}.json"
        n = 1
        while target.exists():
            target = self.backup_dir / f"kiln_backup_{ts}_{n}.json"
            n += 1

        target.write_text(self.codec.dumps(), encoding="utf-8")
        self._enforce_retention(self.max_backups)
        log.info("backup_created path=%s", target)
        return target

    def list_backups(self) -> list[Path]:
        if not self.backup_dir.exists():
            return []
        return sorted(self.backup_dir.glob(BACKUP_GLOB), key=lambda p: (p.stat().st_mtime, p.name))

    def restore_backup(self, backup_file: Path | str) -> tuple[int, int]:
        backup_path = Path(backup_file)
        try:
            text = backup_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise InvalidSnapshotFormatError(f"Cannot read backup file: {e}") from e
        counts = self.codec.loads(text)
        log.warning("backup_restored path=%s entries=%s customers=%s", backup_path, *counts)
        return counts

    def restore_latest(self) -> tuple[int, int]:
        files = self.list_backups()
        if not files:
            raise FileNotFoundError("No backups available to restore")
        return self.restore_backup(files[-1])

    def _enforce_retention(self, max_backups: int) -> None:
        files = self.list_backups()
        if len(files) <= max_backups:
            return
        for old in files[: len(files) - max_backups]:
            old.unlink(missing_ok=True)
