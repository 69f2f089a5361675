"""Data-retention compliance cleanup for visits, dependents and visitor profiles.

The job removes rows older than the retention window in foreign-key order:

1. dependents attached to expired visits
2. expired visits
3. visitor profiles that are not banned and have no visits left

Each phase commits on its own, so a failure in a later phase keeps the
earlier deletions and reports their counts. Exactly one ``audit_logs`` row is
written per run, success or not. Banned visitors are never removed.

The window is a fixed 730 x 24h span, not a calendar-aware "two years".
"""

from __future__ import annotations

from datetime import timedelta

from frontdesk.core.action_logging import null_log_action, null_log_exception
from frontdesk.core.store_audit import append_audit_entry
from frontdesk.core.store_core import open_store
from frontdesk.core.timestamps import to_iso_z, utc_now, utc_now_iso

DATA_RETENTION_DAYS = 2 * 365
CLEANUP_SUCCEEDED = "Compliance Cleanup Succeeded"
CLEANUP_FAILED = "Compliance Cleanup Failed"
AUDIT_STATUS_OK = "OK"
AUDIT_STATUS_ERROR = "ERROR"

_DELETE_EXPIRED_DEPENDENTS = """
    DELETE FROM dependents
    WHERE visit_id IN (SELECT id FROM visits WHERE entry_time < ?)
"""
_DELETE_EXPIRED_VISITS = "DELETE FROM visits WHERE entry_time < ?"
_DELETE_ORPHANED_VISITORS = """
    DELETE FROM visitors
    WHERE id NOT IN (SELECT visitor_id FROM visits)
      AND COALESCE(is_banned, 0) = 0
"""


def retention_cutoff(now=None, retention_days=DATA_RETENTION_DAYS):
    """Return the stored-timestamp string before which visits expire."""
    moment = now or utc_now()
    return to_iso_z(moment - timedelta(days=retention_days))


def _run_delete(conn, sql, params=()):
    with conn:
        cursor = conn.execute(sql, params)
    return max(0, cursor.rowcount)


def run_compliance_cleanup(
    db_path,
    *,
    status=None,
    log_action=None,
    log_exception=None,
    retention_days=DATA_RETENTION_DAYS,
    now=None,
):
    """Run one retention pass and return its summary dict. Never raises."""
    log_action = log_action or null_log_action
    log_exception = log_exception or null_log_exception
    log_action("compliance-cleanup", "starting data retention compliance cleanup")

    counts = {"profiles": 0, "visits": 0, "dependents": 0}
    event_name = CLEANUP_SUCCEEDED
    audit_status = AUDIT_STATUS_OK
    error_text = ""
    cutoff = None

    try:
        cutoff = retention_cutoff(now, retention_days)
        with open_store(db_path) as conn:
            counts["dependents"] = _run_delete(conn, _DELETE_EXPIRED_DEPENDENTS, (cutoff,))
            counts["visits"] = _run_delete(conn, _DELETE_EXPIRED_VISITS, (cutoff,))
            counts["profiles"] = _run_delete(conn, _DELETE_ORPHANED_VISITORS)
        log_action(
            "compliance-cleanup",
            f"profiles={counts['profiles']} visits={counts['visits']} dependents={counts['dependents']} cutoff={cutoff}",
        )
        if status is not None:
            status.update_status("last_cleanup", utc_now_iso())
    except Exception as exc:
        event_name = CLEANUP_FAILED
        audit_status = AUDIT_STATUS_ERROR
        error_text = str(exc) or type(exc).__name__
        log_exception("compliance-cleanup", exc)
        if status is not None:
            status.update_status("last_error", f"Cleanup Failed: {error_text}")

    audit_written = True
    try:
        append_audit_entry(
            db_path,
            event_name=event_name,
            timestamp=utc_now_iso(),
            status=audit_status,
            profiles_deleted=counts["profiles"],
            visits_deleted=counts["visits"],
            dependents_deleted=counts["dependents"],
        )
        log_action("compliance-cleanup", f"audit entry saved: {audit_status}")
    except Exception as exc:
        audit_written = False
        log_exception("compliance-cleanup/audit_logs CRITICAL: audit entry not written", exc, level="critical")

    return {
        "event_name": event_name,
        "status": audit_status,
        "cutoff": cutoff,
        "profiles_deleted": counts["profiles"],
        "visits_deleted": counts["visits"],
        "dependents_deleted": counts["dependents"],
        "error": error_text or None,
        "audit_written": audit_written,
    }
