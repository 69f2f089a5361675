"""Health status, audit log, backup listing and upload route registration."""
import sqlite3

from flask import abort, jsonify, send_from_directory

from frontdesk.core.backups import snapshot_name_parts
from frontdesk.core.filesystem_utils import list_snapshot_files, safe_filename_in_dir
from frontdesk.core.response_helpers import (
    database_error_response,
    error_response,
    message_response,
    request_json_object,
)
from frontdesk.core.store import list_audit_entries

_CLIENT_ERROR_REQUIRED_FIELDS = ("event_name", "timestamp", "status")


def register_system_routes(app, state):
    """Register health, audit and static upload routes."""
    log_action = state["log_action"]

    @app.route("/api/status", methods=["GET"])
    def status_route():
        """Return the process health snapshot for the status widget."""
        return jsonify(state["status"].get_status())

    @app.route("/api/backups", methods=["GET"])
    def backups_route():
        """List daily snapshots of the store, newest first."""
        prefix, suffix = snapshot_name_parts(state["DB_PATH"].name)
        items = list_snapshot_files(state["BACKUP_DIR"], f"{prefix}-*{suffix}", state["DISPLAY_TZ"])
        return jsonify(items)

    @app.route("/api/audit/log-error", methods=["POST"])
    def audit_log_error_route():
        """Record a client-side crash report in the log and health status."""
        payload = request_json_object()
        missing = [field for field in _CLIENT_ERROR_REQUIRED_FIELDS if not payload.get(field)]
        if missing:
            log_action("client-error", "rejected log-error due to missing fields", level="warning")
            return error_response("Missing required fields", 400)

        event_name = str(payload.get("event_name"))
        state["status"].update_status("last_error", f"Client Crash: {event_name}")
        detail = (
            f"[RENDER_CRASH] {event_name}: {payload.get('client_message') or 'No message'}"
            f" | time={payload.get('timestamp')}"
            f" | stack={str(payload.get('client_stack') or '')[:700]}"
            f" | context={str(payload.get('client_info') or '')[:300]}"
        )
        log_action("client-error", detail, level="error")
        return message_response("Client error logged successfully", 201)

    @app.route("/api/audit/history", methods=["GET"])
    def audit_history_route():
        """Return audit rows, newest first."""
        try:
            rows = list_audit_entries(state["DB_PATH"])
        except sqlite3.Error as exc:
            state["log_exception"]("audit/history", exc)
            return database_error_response()
        return jsonify(rows)

    @app.route("/uploads/<path:filename>", methods=["GET"])
    def uploaded_photo_route(filename):
        """Serve a stored visitor photo."""
        uploads_dir = state["UPLOADS_DIR"]
        safe_name = safe_filename_in_dir(uploads_dir, filename)
        if not safe_name:
            abort(404)
        return send_from_directory(uploads_dir, safe_name)
