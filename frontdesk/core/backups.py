"""Daily snapshots of the visitor store: create, prune and restore.

Layout under the data directory::

    <data_dir>/database.db                      live store
    <data_dir>/backups/database-YYYY-MM-DD.db   one snapshot per UTC day

Snapshot dates are taken in UTC. Names sort lexicographically in the same
order as their dates, which is what ``restore_from_backup`` relies on to pick
the latest one.
"""

from __future__ import annotations

import os
import shutil
import time
from pathlib import Path

from frontdesk.core.action_logging import null_log_action
from frontdesk.core.store_core import DB_FILE_NAME
from frontdesk.core.timestamps import utc_now, utc_now_iso

BACKUP_DIR_NAME = "backups"
BACKUP_RETENTION_DAYS = 7
DEFAULT_SNAPSHOT_SUFFIX = ".db"
SECONDS_PER_DAY = 24 * 60 * 60
PARTIAL_SUFFIX = ".partial"
_SIDECAR_SUFFIXES = ("-journal", "-wal", "-shm")


def backup_dir_for(data_dir):
    """Return ``<data_dir>/backups``."""
    return Path(data_dir) / BACKUP_DIR_NAME


def snapshot_name_parts(store_file_name):
    """Return ``(prefix, suffix)`` used for snapshot names of a store file."""
    path = Path(store_file_name)
    return path.stem, path.suffix or DEFAULT_SNAPSHOT_SUFFIX


def snapshot_file_name(store_file_name, day):
    """Return ``<stem>-<YYYY-MM-DD><suffix>`` for ``day`` (a date)."""
    prefix, suffix = snapshot_name_parts(store_file_name)
    return f"{prefix}-{day.isoformat()}{suffix}"


def list_snapshots(backup_dir, prefix, suffix=DEFAULT_SNAPSHOT_SUFFIX):
    """Return snapshot paths matching ``<prefix>-*<suffix>``, newest name first."""
    base = Path(backup_dir)
    if not base.is_dir():
        return []
    matches = [path for path in base.glob(f"{prefix}-*{suffix}") if path.is_file()]
    matches.sort(key=lambda path: path.name, reverse=True)
    return matches


def _discard_interrupted_copies(backup_dir, prefix, suffix, log_action):
    # A copy that died before os.replace leaves <snapshot>.partial behind.
    base = Path(backup_dir)
    if not base.is_dir():
        return
    for partial in base.glob(f"{prefix}-*{suffix}{PARTIAL_SUFFIX}"):
        try:
            partial.unlink()
            log_action("backup-cleanup", f"removed interrupted copy {partial.name}", level="warning")
        except OSError as exc:
            log_action("backup-cleanup", f"could not remove {partial.name}: {exc}", level="error")


def clean_old_backups(
    backup_dir,
    prefix,
    retention_days=BACKUP_RETENTION_DAYS,
    *,
    suffix=DEFAULT_SNAPSHOT_SUFFIX,
    now=None,
    log_action=None,
):
    """Delete snapshots whose mtime is older than ``retention_days``; return count.

    Only files inside ``backup_dir`` that match the snapshot pattern are
    considered. A failure on one file is logged and the rest still run.
    Leftover ``.partial`` copies from an interrupted backup are removed
    regardless of age.
    """
    log_action = log_action or null_log_action
    cutoff = (time.time() if now is None else float(now)) - retention_days * SECONDS_PER_DAY
    try:
        candidates = list_snapshots(backup_dir, prefix, suffix)
    except OSError as exc:
        log_action("backup-cleanup", f"could not list {backup_dir}: {exc}", level="error")
        return 0

    _discard_interrupted_copies(backup_dir, prefix, suffix, log_action)

    deleted = 0
    for path in candidates:
        try:
            if path.stat().st_mtime < cutoff:
                path.unlink()
                deleted += 1
        except OSError as exc:
            log_action("backup-cleanup", f"could not remove {path.name}: {exc}", level="error")
    if deleted:
        log_action("backup-cleanup", f"removed {deleted} snapshot(s) older than {retention_days} days")
    else:
        log_action("backup-cleanup", f"no snapshots older than {retention_days} days")
    return deleted


def create_backup(
    db_path,
    data_dir,
    *,
    status=None,
    log_action=None,
    retention_days=BACKUP_RETENTION_DAYS,
    today=None,
):
    """Copy the live store to today's snapshot and prune old snapshots.

    Returns True when today's snapshot exists afterwards. A second call on
    the same day skips the copy but still prunes and refreshes
    ``last_backup``. Copy failures are logged and return False without
    touching ``status``. The live store is only ever read.
    """
    log_action = log_action or null_log_action
    source = Path(db_path)
    backup_dir = backup_dir_for(data_dir)
    prefix, suffix = snapshot_name_parts(source.name)
    day = today or utc_now().date()
    target = backup_dir / snapshot_file_name(source.name, day)

    try:
        backup_dir.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        log_action("backup-create", f"could not create {backup_dir}: {exc}", level="error")
        return False

    if target.exists():
        log_action("backup-create", f"snapshot for {day.isoformat()} already exists; skipping copy")
    else:
        partial = target.with_name(target.name + PARTIAL_SUFFIX)
        try:
            shutil.copyfile(source, partial)
            os.replace(partial, target)
        except OSError as exc:
            log_action("backup-create", f"snapshot copy failed: {exc}", level="error")
            try:
                partial.unlink()
            except OSError:
                pass
            return False
        log_action("backup-create", f"snapshot created: {target.name}")

    if status is not None:
        status.update_status("last_backup", utc_now_iso())
    clean_old_backups(backup_dir, prefix, retention_days, suffix=suffix, log_action=log_action)
    return True


def _discard_stale_sidecars(db_path, log_action):
    # A journal left by the replaced file would be replayed into the snapshot.
    for sidecar_suffix in _SIDECAR_SUFFIXES:
        sidecar = Path(f"{db_path}{sidecar_suffix}")
        if not sidecar.exists():
            continue
        try:
            sidecar.unlink()
        except OSError as exc:
            log_action("backup-restore", f"could not remove {sidecar.name}: {exc}", level="warning")


def restore_from_backup(data_dir, store_file_name=DB_FILE_NAME, *, log_action=None):
    """Replace the live store with the latest snapshot; return True on success.

    When there is no backup directory or no matching snapshot the live file
    is left exactly as it was.
    """
    log_action = log_action or null_log_action
    backup_dir = backup_dir_for(data_dir)
    db_path = Path(data_dir) / store_file_name
    prefix, suffix = snapshot_name_parts(store_file_name)
    log_action("backup-restore", "attempting store recovery from latest snapshot", level="warning")

    if not backup_dir.is_dir():
        log_action("backup-restore", "no backup directory; cannot restore", level="error")
        return False
    try:
        snapshots = list_snapshots(backup_dir, prefix, suffix)
    except OSError as exc:
        log_action("backup-restore", f"could not list snapshots: {exc}", level="error")
        return False
    if not snapshots:
        log_action("backup-restore", "no snapshot files found; cannot restore", level="error")
        return False

    latest = snapshots[0]
    staging = db_path.with_name(db_path.name + ".restoring")
    try:
        shutil.copyfile(latest, staging)
        os.replace(staging, db_path)
    except OSError as exc:
        log_action("backup-restore", f"restore from {latest.name} failed: {exc}", level="error")
        try:
            staging.unlink()
        except OSError:
            pass
        return False

    _discard_stale_sidecars(db_path, log_action)
    log_action("backup-restore", f"store restored from {latest.name}", level="warning")
    return True
