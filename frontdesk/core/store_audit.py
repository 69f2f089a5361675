"""Append-only audit records for the visitor store."""

from __future__ import annotations

from frontdesk.core.store_core import open_store


def append_audit_entry(
    db_path,
    *,
    event_name,
    timestamp,
    status,
    profiles_deleted=None,
    visits_deleted=None,
    dependents_deleted=None,
):
    """Insert one audit row and return its id. Raises on database errors."""
    with open_store(db_path) as conn:
        with conn:
            cursor = conn.execute(
                """
                INSERT INTO audit_logs (
                    event_name,
                    timestamp,
                    status,
                    profiles_deleted,
                    visits_deleted,
                    dependents_deleted
                )
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    str(event_name),
                    str(timestamp),
                    str(status),
                    profiles_deleted,
                    visits_deleted,
                    dependents_deleted,
                ),
            )
        return cursor.lastrowid


def list_audit_entries(db_path, *, limit=None):
    """Return audit rows as dicts, newest timestamp first."""
    sql = "SELECT * FROM audit_logs ORDER BY timestamp DESC, id DESC"
    params = ()
    if limit is not None:
        sql += " LIMIT ?"
        params = (max(1, int(limit)),)
    with open_store(db_path) as conn:
        rows = conn.execute(sql, params).fetchall()
    return [dict(row) for row in rows]
