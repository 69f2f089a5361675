"""SQLite-backed visitor store.

This module is a facade over the focused ``store_*`` submodules so routes
and services import one name.
"""

from frontdesk.core.store_core import DB_FILE_NAME, initialize_store_db, open_store
from frontdesk.core.store_audit import append_audit_entry, list_audit_entries
from frontdesk.core.store_visitors import (
    find_visitor_by_name,
    get_visitor,
    get_visitor_with_latest_visit,
    register_visitor,
    search_visitors,
    set_banned,
)
from frontdesk.core.store_visits import (
    MISSED_VISIT_DEFAULTS,
    end_active_visit,
    inherit_visit_details,
    list_active_visits,
    missing_visit_fields,
    normalize_visit_details,
    parse_dependents,
    query_history,
    start_visit,
)

__all__ = [
    "DB_FILE_NAME",
    "initialize_store_db",
    "open_store",
    "append_audit_entry",
    "list_audit_entries",
    "find_visitor_by_name",
    "get_visitor",
    "get_visitor_with_latest_visit",
    "register_visitor",
    "search_visitors",
    "set_banned",
    "MISSED_VISIT_DEFAULTS",
    "end_active_visit",
    "inherit_visit_details",
    "list_active_visits",
    "missing_visit_fields",
    "normalize_visit_details",
    "parse_dependents",
    "query_history",
    "start_visit",
]
