"""Startup recovery for the visitor store: verify, restore, initialize."""

from pathlib import Path

from frontdesk.core.backups import backup_dir_for, list_snapshots, restore_from_backup, snapshot_name_parts
from frontdesk.core.integrity import check_integrity
from frontdesk.core.store_core import initialize_store_db


def _has_snapshots(data_dir, store_file_name):
    prefix, suffix = snapshot_name_parts(store_file_name)
    try:
        return bool(list_snapshots(backup_dir_for(data_dir), prefix, suffix))
    except OSError:
        return False


def recover_store(db_path, data_dir, *, status, log_action, log_exception):
    """Bring the store to a usable state and record readiness in ``status``.

    Returns True when the store passed the integrity check (possibly after a
    restore) and its schema is in place. A first run with neither a store
    nor any snapshot creates a fresh store. On failure ``db_ready`` stays
    False and ``last_error`` explains why; nothing is raised.
    """
    db_path = Path(db_path)
    healthy = check_integrity(db_path, log_action)
    if not healthy:
        fresh_install = not db_path.exists() and not _has_snapshots(data_dir, db_path.name)
        if fresh_install:
            log_action("store-recovery", "no store and no snapshots; creating a new store")
        elif restore_from_backup(data_dir, db_path.name, log_action=log_action):
            healthy = check_integrity(db_path, log_action)
        if not healthy and not fresh_install:
            message = "Database failed integrity check and could not be restored."
            log_action("store-recovery", message, level="critical")
            status.update_status("db_ready", False)
            status.update_status("last_error", message)
            return False

    if not initialize_store_db(db_path=db_path, log_exception=log_exception):
        status.update_status("db_ready", False)
        status.update_status("last_error", "Database schema could not be initialized.")
        return False

    status.update_status("db_ready", True)
    log_action("store-recovery", f"store ready: {db_path.name}")
    return True
