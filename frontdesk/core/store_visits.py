"""Visit and dependent records for the visitor store."""

from __future__ import annotations

import json

from frontdesk.core.store_core import open_store

VISIT_DETAIL_FIELDS = (
    "known_as",
    "address",
    "phone_number",
    "unit",
    "reason_for_visit",
    "type",
    "company_name",
    "mandatory_acknowledgment_taken",
)
REQUIRED_VISIT_FIELDS = ("unit", "type")

# Placeholders used when a corrected visit has no earlier visit to copy from.
MISSED_VISIT_DEFAULTS = {
    "known_as": "--",
    "address": "--",
    "phone_number": None,
    "unit": "--",
    "reason_for_visit": None,
    "type": "Visitor",
    "company_name": None,
    "mandatory_acknowledgment_taken": 0,
}

_TRUE_FLAG_TEXT = {"1", "true", "yes", "on", "y"}


def as_flag(value):
    """Coerce form/JSON truthy values to the 0/1 stored in BOOLEAN columns."""
    if isinstance(value, bool):
        return 1 if value else 0
    if isinstance(value, (int, float)):
        return 1 if value else 0
    return 1 if str(value or "").strip().lower() in _TRUE_FLAG_TEXT else 0


def _clean_text(value):
    text = str(value).strip() if value is not None else ""
    return text or None


def normalize_visit_details(payload):
    """Pick the visit detail fields out of a request payload."""
    source = payload if isinstance(payload, dict) else {}
    details = {}
    for field in VISIT_DETAIL_FIELDS:
        if field == "mandatory_acknowledgment_taken":
            details[field] = as_flag(source.get(field))
        else:
            details[field] = _clean_text(source.get(field))
    return details


def missing_visit_fields(details):
    """Return required detail fields that are blank."""
    return [field for field in REQUIRED_VISIT_FIELDS if not details.get(field)]


def inherit_visit_details(previous, *, fill_all):
    """Copy visit details from ``previous`` (a visit dict or ``None``).

    Required fields always fall back to placeholders. With ``fill_all`` every
    blank field does.
    """
    source = previous or {}
    details = {}
    for field, default in MISSED_VISIT_DEFAULTS.items():
        value = source.get(field)
        blank = value is None or value == ""
        if blank and (fill_all or field in REQUIRED_VISIT_FIELDS):
            value = default
        details[field] = value
    return details


def parse_dependents(raw):
    """Return a normalized dependents list from a JSON string or list.

    Raises ``ValueError`` when the payload is not valid JSON or an entry
    lacks a name or a whole-number age.
    """
    if raw is None or raw == "":
        return []
    items = raw
    if isinstance(raw, str):
        try:
            items = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise ValueError("Invalid dependents JSON format.") from exc
    if not isinstance(items, list):
        raise ValueError("Dependents must be a JSON array.")

    dependents = []
    for item in items:
        if not isinstance(item, dict):
            raise ValueError("Each dependent must be an object.")
        name = _clean_text(item.get("full_name"))
        if not name:
            raise ValueError("Each dependent needs a full_name.")
        try:
            age = int(str(item.get("age")).strip())
        except (TypeError, ValueError) as exc:
            raise ValueError(f"Dependent {name} needs a whole-number age.") from exc
        dependents.append({"full_name": name, "age": age})
    return dependents


def insert_visit(conn, *, visitor_id, entry_time, details, exit_time=None):
    """Insert one visit row on an open connection and return its id."""
    cursor = conn.execute(
        """
        INSERT INTO visits (
            visitor_id,
            entry_time,
            exit_time,
            known_as,
            address,
            phone_number,
            unit,
            reason_for_visit,
            type,
            company_name,
            mandatory_acknowledgment_taken
        )
        VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """,
        (
            visitor_id,
            entry_time,
            exit_time,
            details.get("known_as"),
            details.get("address"),
            details.get("phone_number"),
            details.get("unit"),
            details.get("reason_for_visit"),
            details.get("type"),
            details.get("company_name"),
            as_flag(details.get("mandatory_acknowledgment_taken")),
        ),
    )
    return cursor.lastrowid


def insert_dependents(conn, visit_id, dependents):
    """Insert dependents for ``visit_id`` on an open connection."""
    for dependent in dependents or ():
        conn.execute(
            "INSERT INTO dependents (full_name, age, visit_id) VALUES (?, ?, ?)",
            (dependent["full_name"], dependent["age"], visit_id),
        )


def start_visit(db_path, *, visitor_id, entry_time, details, dependents=(), exit_time=None):
    """Insert a visit and its dependents atomically; return the visit id.

    Any failure rolls back the visit together with every dependent row.
    """
    with open_store(db_path) as conn:
        with conn:
            visit_id = insert_visit(
                conn,
                visitor_id=visitor_id,
                entry_time=entry_time,
                details=details,
                exit_time=exit_time,
            )
            insert_dependents(conn, visit_id, dependents)
    return visit_id


def load_dependents(conn, visit_ids):
    """Return ``{visit_id: [dependent, ...]}`` for the given visits."""
    ids = [int(visit_id) for visit_id in visit_ids if visit_id is not None]
    grouped = {visit_id: [] for visit_id in ids}
    if not ids:
        return grouped
    placeholders = ",".join("?" for _ in ids)
    rows = conn.execute(
        f"SELECT visit_id, full_name, age FROM dependents WHERE visit_id IN ({placeholders}) ORDER BY id ASC",
        ids,
    ).fetchall()
    for row in rows:
        grouped.setdefault(int(row["visit_id"]), []).append(
            {"full_name": row["full_name"], "age": row["age"]}
        )
    return grouped


def latest_visit(conn, visitor_id):
    """Return the visitor's newest visit (with dependents) or ``None``."""
    row = conn.execute(
        """
        SELECT *
        FROM visits
        WHERE visitor_id = ?
        ORDER BY entry_time DESC, id DESC
        LIMIT 1
        """,
        (visitor_id,),
    ).fetchone()
    if row is None:
        return None
    visit = dict(row)
    visit["dependents"] = load_dependents(conn, [visit["id"]]).get(visit["id"], [])
    return visit


def end_active_visit(db_path, visitor_id, exit_time):
    """Close the visitor's newest open visit.

    Returns ``{"visit_id", "first_name", "last_name"}`` or ``None`` when the
    visitor has no active session.
    """
    with open_store(db_path) as conn:
        row = conn.execute(
            """
            SELECT v.id AS visit_id, p.first_name, p.last_name
            FROM visits v
            JOIN visitors p ON v.visitor_id = p.id
            WHERE v.visitor_id = ? AND v.exit_time IS NULL
            ORDER BY v.entry_time DESC, v.id DESC
            LIMIT 1
            """,
            (visitor_id,),
        ).fetchone()
        if row is None:
            return None
        with conn:
            conn.execute("UPDATE visits SET exit_time = ? WHERE id = ?", (exit_time, row["visit_id"]))
    return dict(row)


def list_active_visits(db_path):
    """Return every open visit joined with its visitor, newest entry first."""
    with open_store(db_path) as conn:
        rows = conn.execute(
            """
            SELECT
                p.id, p.first_name, p.last_name, p.photo_path, p.is_banned,
                v.id AS visit_id, v.entry_time, v.exit_time, v.known_as, v.address,
                v.phone_number, v.unit, v.reason_for_visit, v.company_name, v.type,
                v.mandatory_acknowledgment_taken
            FROM visitors p
            JOIN visits v ON p.id = v.visitor_id
            WHERE v.exit_time IS NULL
            ORDER BY v.entry_time DESC, v.id DESC
            """
        ).fetchall()
        items = [dict(row) for row in rows]
        dependents = load_dependents(conn, [item["visit_id"] for item in items])
    for item in items:
        item["additional_dependents"] = dependents.get(item["visit_id"], [])
    return items


def query_history(db_path, *, search=None, start_date=None, end_date=None):
    """Return all visits joined with visitor data, filtered and newest first.

    ``search`` matches first or last name case-insensitively. ``start_date``
    and ``end_date`` are ``YYYY-MM-DD`` bounds; the end bound covers the
    whole day.
    """
    clauses = []
    params = []
    term = str(search or "").strip().lower()
    if term:
        like = f"%{term}%"
        clauses.append("(LOWER(p.first_name) LIKE ? OR LOWER(p.last_name) LIKE ?)")
        params.extend([like, like])
    start = str(start_date or "").strip()
    if start:
        clauses.append("v.entry_time >= ?")
        params.append(start)
    end = str(end_date or "").strip()
    if end:
        clauses.append("v.entry_time <= ?")
        params.append(f"{end}T23:59:59.999Z")
    where = f"WHERE {' AND '.join(clauses)}" if clauses else ""

    with open_store(db_path) as conn:
        rows = conn.execute(
            f"""
            SELECT
                p.id AS visitor_id, p.first_name, p.last_name, p.photo_path, p.is_banned,
                v.id AS visit_id, v.known_as, v.entry_time, v.exit_time, v.address,
                v.phone_number, v.unit, v.reason_for_visit, v.company_name, v.type,
                v.mandatory_acknowledgment_taken
            FROM visitors p
            JOIN visits v ON p.id = v.visitor_id
            {where}
            ORDER BY v.entry_time DESC, v.id DESC
            """,
            params,
        ).fetchall()
        items = [dict(row) for row in rows]
        dependents = load_dependents(conn, [item["visit_id"] for item in items])
    for item in items:
        item["dependents"] = dependents.get(item["visit_id"], [])
    return items
