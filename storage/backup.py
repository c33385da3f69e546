"""Dated copies of the store file, taken when a store is opened."""
from __future__ import annotations

from datetime import datetime, timedelta
from pathlib import Path
from shutil import copy2
from typing import List

from core.log import get_logger
from core.settings import BACKUP, BackupSettings


logger = get_logger("backup")

# Committed pages not yet checkpointed into the main file live here in WAL mode.
WAL_SUFFIX = "-wal"


def _wal_file(db_file: Path) -> Path:
    return db_file.with_name(db_file.name + WAL_SUFFIX)


def _backup_date(path: Path, prefix: str) -> datetime | None:
    stem = path.stem
    if not stem.startswith(prefix):
        return None
    try:
        return datetime.strptime(stem[len(prefix) :], "%Y-%m-%d")
    except ValueError:
        return None


def prune_backups(db_file: Path, backup_dir: Path, keep_days: int) -> List[Path]:
    """Delete copies of ``db_file`` older than ``keep_days`` days. Returns what was removed."""

    if keep_days <= 0 or not backup_dir.exists():
        return []
    prefix = f"{db_file.stem}_"
    cutoff = datetime.now().date() - timedelta(days=keep_days - 1)
    removed: List[Path] = []
    for file in backup_dir.glob(f"{prefix}*{db_file.suffix}"):
        taken = _backup_date(file, prefix)
        if taken is None or taken.date() >= cutoff:
            continue
        try:
            _wal_file(file).unlink(missing_ok=True)
            file.unlink()
        except OSError as exc:
            logger.warning("Could not remove old backup %s: %s", file, exc)
            continue
        removed.append(file)
    return removed


def ensure_daily_backup(db_path: str | Path, settings: BackupSettings = BACKUP) -> Path | None:
    """Copy a non-empty store file once per calendar day and rotate old copies.

    A leftover write-ahead log is copied next to the main file so the copy
    opens with the same committed content. Returns the path of the copy made
    by this call, or None.
    """

    db_file = Path(db_path)
    if not settings.enabled or not db_file.exists() or db_file.stat().st_size == 0:
        return None

    backups = Path(settings.directory)
    backups.mkdir(parents=True, exist_ok=True)

    today = datetime.now().date()
    destination = backups / f"{db_file.stem}_{today.isoformat()}{db_file.suffix}"

    created: Path | None = None
    if not destination.exists():
        copy2(db_file, destination)
        wal = _wal_file(db_file)
        if wal.exists() and wal.stat().st_size > 0:
            copy2(wal, _wal_file(destination))
        created = destination
        logger.info("Backed up %s to %s", db_file, destination)

    prune_backups(db_file, backups, settings.keep_days)
    return created


__all__ = ["ensure_daily_backup", "prune_backups"]
