"""Read-only structural check of the visitor store file."""

from __future__ import annotations

import sqlite3
from contextlib import closing
from pathlib import Path

from frontdesk.core.action_logging import null_log_action


def _open_read_only(db_path):
    uri = Path(db_path).resolve().as_uri() + "?mode=ro"
    return sqlite3.connect(uri, uri=True, timeout=5.0)


def check_integrity(db_path, log_action=None):
    """Return True when ``PRAGMA integrity_check`` reports ``ok``.

    Never raises. A missing file, an unopenable file, a failing pragma and
    any reported inconsistency all return False. The read-only handle is
    closed on every path.
    """
    log_action = log_action or null_log_action
    path = Path(db_path)
    if not path.is_file():
        log_action("integrity-check", f"store file missing: {path.name}", level="warning")
        return False

    try:
        conn = _open_read_only(path)
    except (sqlite3.Error, OSError, ValueError) as exc:
        log_action("integrity-check", f"could not open store read-only: {exc}", level="error")
        return False

    with closing(conn):
        try:
            rows = conn.execute("PRAGMA integrity_check").fetchall()
        except sqlite3.Error as exc:
            log_action("integrity-check", f"integrity_check failed to run: {exc}", level="error")
            return False

    results = [str(row[0]) for row in rows]
    if results != ["ok"]:
        summary = "; ".join(results[:5]) or "no result rows"
        log_action("integrity-check", f"corruption detected: {summary}", level="error")
        return False

    log_action("integrity-check", "store integrity check passed")
    return True
