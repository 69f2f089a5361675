"""Flask lifecycle hooks and startup step composition."""
from flask import has_request_context, request
from werkzeug.exceptions import HTTPException

from frontdesk.core.backups import create_backup
from frontdesk.core.response_helpers import internal_error_response
from frontdesk.services.compliance_cleanup import run_compliance_cleanup
from frontdesk.services.store_recovery import recover_store


def install_flask_hooks(app, *, log_action, log_exception):
    """Install error hooks that log through the front desk loggers."""

    @app.errorhandler(Exception)
    def _unhandled_exception_handler(exc):
        if isinstance(exc, HTTPException):
            return exc
        path = request.path if has_request_context() else "unknown-path"
        log_exception(f"unhandled_exception path={path}", exc)
        return internal_error_response()

    @app.errorhandler(413)
    def _upload_too_large(exc):
        log_action("reject", f"{request.path} upload exceeds size limit", level="warning")
        return {"error": "Uploaded file is too large."}, 413


def build_boot_steps(state):
    """Return the ordered ``(name, callable)`` startup steps for ``state``."""

    def _recover_store():
        recover_store(
            state["DB_PATH"],
            state["DATA_DIR"],
            status=state["status"],
            log_action=state["log_action"],
            log_exception=state["log_exception"],
        )

    def _create_backup():
        if not state["status"].get_status().get("db_ready"):
            state["log_action"]("backup-create", "store not ready; skipping daily snapshot", level="warning")
            return
        create_backup(
            state["DB_PATH"],
            state["DATA_DIR"],
            status=state["status"],
            log_action=state["log_action"],
            retention_days=state["BACKUP_RETENTION_DAYS"],
        )

    def _run_cleanup():
        if not state["status"].get_status().get("db_ready"):
            state["log_action"]("compliance-cleanup", "store not ready; skipping cleanup", level="warning")
            return
        run_compliance_cleanup(
            state["DB_PATH"],
            status=state["status"],
            log_action=state["log_action"],
            log_exception=state["log_exception"],
            retention_days=state["DATA_RETENTION_DAYS"],
        )

    return [
        ("recover_store", _recover_store),
        ("create_backup", _create_backup),
        ("run_compliance_cleanup", _run_cleanup),
    ]
