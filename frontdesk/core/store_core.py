"""Shared SQLite connection/schema helpers for the visitor store."""

from __future__ import annotations

import sqlite3
from contextlib import closing
from pathlib import Path


DB_FILE_NAME = "database.db"


def _connect(db_path):
    path = Path(db_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(str(path), timeout=5.0)
    conn.row_factory = sqlite3.Row
    # Rollback journal keeps the store a single file for byte-copy snapshots.
    conn.execute("PRAGMA journal_mode=DELETE")
    conn.execute("PRAGMA foreign_keys=ON")
    return conn


def open_store(db_path):
    """Return a connection wrapped so ``with`` closes it on exit."""
    return closing(_connect(db_path))


def _create_tables(conn):
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS visitors (
            id INTEGER PRIMARY KEY,
            first_name TEXT NOT NULL,
            last_name TEXT NOT NULL,
            photo_path TEXT,
            is_banned BOOLEAN DEFAULT 0
        )
        """
    )
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS visits (
            id INTEGER PRIMARY KEY,
            visitor_id INTEGER NOT NULL,
            entry_time TEXT NOT NULL,
            exit_time TEXT,
            known_as TEXT,
            address TEXT,
            phone_number TEXT,
            unit TEXT NOT NULL,
            reason_for_visit TEXT,
            type TEXT NOT NULL,
            company_name TEXT,
            mandatory_acknowledgment_taken BOOLEAN DEFAULT 0,
            FOREIGN KEY (visitor_id) REFERENCES visitors(id)
        )
        """
    )
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS dependents (
            id INTEGER PRIMARY KEY,
            full_name TEXT NOT NULL,
            age INTEGER NOT NULL,
            visit_id INTEGER NOT NULL,
            FOREIGN KEY (visit_id) REFERENCES visits(id)
        )
        """
    )
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS audit_logs (
            id INTEGER PRIMARY KEY,
            event_name TEXT NOT NULL,
            timestamp TEXT NOT NULL,
            status TEXT NOT NULL,
            profiles_deleted INTEGER,
            visits_deleted INTEGER,
            dependents_deleted INTEGER
        )
        """
    )
    conn.execute("CREATE INDEX IF NOT EXISTS idx_visits_visitor_id ON visits(visitor_id)")
    conn.execute("CREATE INDEX IF NOT EXISTS idx_visits_entry_time ON visits(entry_time)")
    conn.execute("CREATE INDEX IF NOT EXISTS idx_dependents_visit_id ON dependents(visit_id)")


def initialize_store_db(
    *,
    db_path,
    log_exception=None,
):
    """Create the visitor store schema; return False when it cannot be written."""
    try:
        with open_store(db_path) as conn:
            _create_tables(conn)
            conn.commit()
        return True
    except Exception as exc:
        if callable(log_exception):
            try:
                log_exception("initialize_store_db", exc)
            except Exception:
                pass
        return False
