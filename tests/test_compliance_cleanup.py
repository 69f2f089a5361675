import sqlite3
import tempfile
import unittest
from datetime import datetime, timedelta, timezone
from pathlib import Path
from unittest.mock import Mock, patch

from frontdesk.core.store_audit import list_audit_entries
from frontdesk.core.store_core import initialize_store_db
from frontdesk.core.timestamps import to_iso_z
from frontdesk.services import compliance_cleanup
from frontdesk.services.compliance_cleanup import (
    AUDIT_STATUS_ERROR,
    AUDIT_STATUS_OK,
    CLEANUP_FAILED,
    CLEANUP_SUCCEEDED,
    retention_cutoff,
    run_compliance_cleanup,
)
from frontdesk.state import StatusTracker

NOW = datetime(2026, 6, 1, 12, 0, 0, tzinfo=timezone.utc)


class ComplianceCleanupTests(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmp.cleanup)
        self.db_path = Path(self._tmp.name) / "database.db"
        self.assertTrue(initialize_store_db(db_path=self.db_path))

    def execute(self, sql, params=()):
        conn = sqlite3.connect(str(self.db_path))
        try:
            cursor = conn.execute(sql, params)
            conn.commit()
            return cursor.lastrowid
        finally:
            conn.close()

    def count(self, table):
        conn = sqlite3.connect(str(self.db_path))
        try:
            return conn.execute(f"SELECT COUNT(*) FROM {table}").fetchone()[0]
        finally:
            conn.close()

    def add_visitor(self, name="Ada", banned=0):
        return self.execute(
            "INSERT INTO visitors (first_name, last_name, is_banned) VALUES (?, ?, ?)",
            (name, "Lovelace", banned),
        )

    def add_visit(self, visitor_id, entry_time):
        return self.execute(
            "INSERT INTO visits (visitor_id, entry_time, unit, type) VALUES (?, ?, ?, ?)",
            (visitor_id, to_iso_z(entry_time), "4B", "Visitor"),
        )

    def add_dependent(self, visit_id, name="Kid"):
        return self.execute(
            "INSERT INTO dependents (full_name, age, visit_id) VALUES (?, ?, ?)",
            (name, 7, visit_id),
        )

    def test_expired_visit_cascades_to_dependents_and_profile(self):
        visitor_id = self.add_visitor()
        visit_id = self.add_visit(visitor_id, NOW - timedelta(days=800))
        self.add_dependent(visit_id)
        status = StatusTracker()

        summary = run_compliance_cleanup(self.db_path, status=status, now=NOW)

        self.assertEqual(summary["status"], AUDIT_STATUS_OK)
        self.assertEqual(summary["event_name"], CLEANUP_SUCCEEDED)
        self.assertEqual(
            (summary["profiles_deleted"], summary["visits_deleted"], summary["dependents_deleted"]),
            (1, 1, 1),
        )
        self.assertTrue(summary["audit_written"])
        for table in ("visitors", "visits", "dependents"):
            self.assertEqual(self.count(table), 0)

        audits = list_audit_entries(self.db_path)
        self.assertEqual(len(audits), 1)
        self.assertEqual(audits[0]["event_name"], CLEANUP_SUCCEEDED)
        self.assertEqual(audits[0]["status"], AUDIT_STATUS_OK)
        self.assertEqual(audits[0]["profiles_deleted"], 1)
        self.assertEqual(audits[0]["visits_deleted"], 1)
        self.assertEqual(audits[0]["dependents_deleted"], 1)
        self.assertNotEqual(status.get_status()["last_cleanup"], "N/A")

    def test_banned_visitor_profile_survives(self):
        visitor_id = self.add_visitor(banned=1)
        self.add_visit(visitor_id, NOW - timedelta(days=1000))

        summary = run_compliance_cleanup(self.db_path, now=NOW)

        self.assertEqual(summary["visits_deleted"], 1)
        self.assertEqual(summary["profiles_deleted"], 0)
        self.assertEqual(self.count("visitors"), 1)
        self.assertEqual(self.count("visits"), 0)

    def test_banned_visitor_without_visits_is_never_removed(self):
        self.add_visitor(name="Banned", banned=1)
        self.add_visitor(name="Unbanned", banned=0)

        summary = run_compliance_cleanup(self.db_path, now=NOW)

        self.assertEqual(summary["profiles_deleted"], 1)
        conn = sqlite3.connect(str(self.db_path))
        try:
            names = [row[0] for row in conn.execute("SELECT first_name FROM visitors")]
        finally:
            conn.close()
        self.assertEqual(names, ["Banned"])

    def test_recent_visits_and_their_profiles_are_kept(self):
        visitor_id = self.add_visitor()
        old_visit = self.add_visit(visitor_id, NOW - timedelta(days=900))
        self.add_dependent(old_visit)
        self.add_visit(visitor_id, NOW - timedelta(days=3))

        summary = run_compliance_cleanup(self.db_path, now=NOW)

        self.assertEqual(summary["visits_deleted"], 1)
        self.assertEqual(summary["dependents_deleted"], 1)
        self.assertEqual(summary["profiles_deleted"], 0)
        self.assertEqual(self.count("visitors"), 1)
        self.assertEqual(self.count("visits"), 1)

    def test_cutoff_boundary(self):
        visitor_id = self.add_visitor()
        self.add_visit(visitor_id, NOW - timedelta(days=730, seconds=1))
        self.add_visit(visitor_id, NOW - timedelta(days=730))
        self.add_visit(visitor_id, NOW - timedelta(days=729))

        summary = run_compliance_cleanup(self.db_path, now=NOW)

        self.assertEqual(summary["cutoff"], to_iso_z(NOW - timedelta(days=730)))
        self.assertEqual(summary["visits_deleted"], 1)
        self.assertEqual(self.count("visits"), 2)

    def test_empty_store_writes_ok_audit_with_zero_counts(self):
        summary = run_compliance_cleanup(self.db_path, now=NOW)
        self.assertEqual(summary["status"], AUDIT_STATUS_OK)
        audits = list_audit_entries(self.db_path)
        self.assertEqual(len(audits), 1)
        self.assertEqual(
            (audits[0]["profiles_deleted"], audits[0]["visits_deleted"], audits[0]["dependents_deleted"]),
            (0, 0, 0),
        )

    def test_each_run_writes_exactly_one_audit_row(self):
        run_compliance_cleanup(self.db_path, now=NOW)
        run_compliance_cleanup(self.db_path, now=NOW)
        self.assertEqual(self.count("audit_logs"), 2)

    def test_failure_mid_run_records_error_audit_with_partial_counts(self):
        status = StatusTracker()
        log_exception = Mock()
        with patch.object(
            compliance_cleanup,
            "_run_delete",
            side_effect=[2, sqlite3.OperationalError("database is locked")],
        ):
            summary = run_compliance_cleanup(
                self.db_path, status=status, log_exception=log_exception, now=NOW
            )

        self.assertEqual(summary["status"], AUDIT_STATUS_ERROR)
        self.assertEqual(summary["event_name"], CLEANUP_FAILED)
        self.assertEqual(summary["dependents_deleted"], 2)
        self.assertEqual(summary["visits_deleted"], 0)
        self.assertEqual(summary["error"], "database is locked")
        self.assertEqual(status.get_status()["last_error"], "Cleanup Failed: database is locked")
        self.assertEqual(status.get_status()["last_cleanup"], "N/A")
        log_exception.assert_called_once()

        audits = list_audit_entries(self.db_path)
        self.assertEqual(len(audits), 1)
        self.assertEqual(audits[0]["event_name"], CLEANUP_FAILED)
        self.assertEqual(audits[0]["status"], AUDIT_STATUS_ERROR)
        self.assertEqual(audits[0]["dependents_deleted"], 2)

    def test_audit_write_failure_is_logged_critical(self):
        log_exception = Mock()
        with patch.object(
            compliance_cleanup,
            "append_audit_entry",
            side_effect=sqlite3.OperationalError("disk I/O error"),
        ):
            summary = run_compliance_cleanup(self.db_path, log_exception=log_exception, now=NOW)

        self.assertFalse(summary["audit_written"])
        self.assertEqual(summary["status"], AUDIT_STATUS_OK)
        self.assertEqual(log_exception.call_args.kwargs["level"], "critical")

    def test_store_without_tables_does_not_raise(self):
        bare = Path(self._tmp.name) / "bare.db"
        status = StatusTracker()
        summary = run_compliance_cleanup(bare, status=status, now=NOW)
        self.assertEqual(summary["status"], AUDIT_STATUS_ERROR)
        self.assertFalse(summary["audit_written"])
        self.assertTrue(status.get_status()["last_error"].startswith("Cleanup Failed:"))

    def test_out_of_range_window_records_error_audit(self):
        status = StatusTracker()
        log_exception = Mock()

        summary = run_compliance_cleanup(
            self.db_path, status=status, log_exception=log_exception, retention_days=1000000, now=NOW
        )

        self.assertEqual(summary["status"], AUDIT_STATUS_ERROR)
        self.assertEqual(summary["event_name"], CLEANUP_FAILED)
        self.assertIsNone(summary["cutoff"])
        self.assertTrue(summary["audit_written"])
        self.assertTrue(status.get_status()["last_error"].startswith("Cleanup Failed:"))
        log_exception.assert_called_once()
        audits = list_audit_entries(self.db_path)
        self.assertEqual(len(audits), 1)
        self.assertEqual(audits[0]["event_name"], CLEANUP_FAILED)
        self.assertEqual(audits[0]["status"], AUDIT_STATUS_ERROR)

    def test_retention_cutoff_uses_fixed_day_span(self):
        self.assertEqual(retention_cutoff(NOW), "2024-06-01T12:00:00.000Z")
        self.assertEqual(retention_cutoff(NOW, retention_days=1), "2026-05-31T12:00:00.000Z")


if __name__ == "__main__":
    unittest.main()
