"""Visitor profile records for the visitor store."""

from __future__ import annotations

from frontdesk.core.store_core import open_store
from frontdesk.core.store_visits import insert_dependents, insert_visit, latest_visit, load_dependents


def get_visitor(db_path, visitor_id):
    """Return one visitor row as a dict, or ``None``."""
    with open_store(db_path) as conn:
        row = conn.execute("SELECT * FROM visitors WHERE id = ?", (visitor_id,)).fetchone()
    return dict(row) if row is not None else None


def find_visitor_by_name(db_path, first_name, last_name):
    """Return the id of a visitor with exactly this first and last name."""
    with open_store(db_path) as conn:
        row = conn.execute(
            "SELECT id FROM visitors WHERE first_name = ? AND last_name = ? LIMIT 1",
            (first_name, last_name),
        ).fetchone()
    return int(row["id"]) if row is not None else None


def get_visitor_with_latest_visit(db_path, visitor_id):
    """Return ``(visitor, latest_visit)``; either may be ``None``."""
    with open_store(db_path) as conn:
        row = conn.execute("SELECT * FROM visitors WHERE id = ?", (visitor_id,)).fetchone()
        if row is None:
            return None, None
        return dict(row), latest_visit(conn, visitor_id)


def register_visitor(db_path, *, first_name, last_name, photo_path, entry_time, details, dependents=()):
    """Create a visitor, their first visit and its dependents in one transaction.

    Returns ``(visitor_id, visit_id)``. Nothing is kept if any insert fails.
    """
    with open_store(db_path) as conn:
        with conn:
            cursor = conn.execute(
                "INSERT INTO visitors (first_name, last_name, photo_path) VALUES (?, ?, ?)",
                (first_name, last_name, photo_path),
            )
            visitor_id = cursor.lastrowid
            visit_id = insert_visit(conn, visitor_id=visitor_id, entry_time=entry_time, details=details)
            insert_dependents(conn, visit_id, dependents)
    return visitor_id, visit_id


def set_banned(db_path, visitor_id, banned):
    """Set or clear the banned flag; return False when the visitor is unknown."""
    with open_store(db_path) as conn:
        with conn:
            cursor = conn.execute(
                "UPDATE visitors SET is_banned = ? WHERE id = ?",
                (1 if banned else 0, visitor_id),
            )
    return cursor.rowcount > 0


def search_visitors(db_path, name):
    """Find visitors whose first or last name contains every search term.

    Each result carries the details of the visitor's latest visit (if any)
    and that visit's dependents.
    """
    terms = [term for term in str(name or "").split() if term]
    if not terms:
        return []
    conditions = []
    params = []
    for term in terms:
        like = f"%{term}%"
        conditions.append("(p.first_name LIKE ? OR p.last_name LIKE ?)")
        params.extend([like, like])

    with open_store(db_path) as conn:
        rows = conn.execute(
            f"""
            SELECT
                p.id, p.first_name, p.last_name, p.photo_path, p.is_banned,
                v.id AS visit_id, v.known_as, v.address, v.phone_number, v.unit,
                v.reason_for_visit, v.company_name, v.type,
                v.mandatory_acknowledgment_taken
            FROM visitors p
            LEFT JOIN (
                SELECT *, ROW_NUMBER() OVER (
                    PARTITION BY visitor_id ORDER BY entry_time DESC, id DESC
                ) AS rn
                FROM visits
            ) v ON p.id = v.visitor_id AND v.rn = 1
            WHERE {' AND '.join(conditions)}
            ORDER BY p.last_name ASC, p.first_name ASC, p.id ASC
            """,
            params,
        ).fetchall()
        items = [dict(row) for row in rows]
        dependents = load_dependents(conn, [item["visit_id"] for item in items])
    for item in items:
        item["dependents"] = dependents.get(item["visit_id"], []) if item["visit_id"] is not None else []
    return items
