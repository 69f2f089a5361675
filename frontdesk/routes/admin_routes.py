"""Ban/unban and password-gated history route registration."""
import csv
import io
import sqlite3

from flask import Response, jsonify, request

from frontdesk.core.response_helpers import (
    database_error_response,
    error_response,
    message_response,
    password_rejected_response,
    request_json_object,
)
from frontdesk.core.security import is_admin_password_valid
from frontdesk.core.store import query_history, set_banned
from frontdesk.core.timestamps import utc_now

HISTORY_EXPORT_COLUMNS = (
    "visit_id",
    "visitor_id",
    "first_name",
    "last_name",
    "known_as",
    "entry_time",
    "exit_time",
    "unit",
    "type",
    "company_name",
    "reason_for_visit",
    "address",
    "phone_number",
    "mandatory_acknowledgment_taken",
    "is_banned",
    "dependents",
)


def _history_filters():
    return {
        "search": request.args.get("search"),
        "start_date": request.args.get("start_date"),
        "end_date": request.args.get("end_date"),
    }


def _format_dependents(dependents):
    return "; ".join(f"{item['full_name']} ({item['age']})" for item in dependents)


def render_history_csv(items):
    """Render history rows as CSV text with a header row."""
    buffer = io.StringIO()
    writer = csv.writer(buffer)
    writer.writerow(HISTORY_EXPORT_COLUMNS)
    for item in items:
        row = []
        for column in HISTORY_EXPORT_COLUMNS:
            if column == "dependents":
                row.append(_format_dependents(item.get("dependents", [])))
            else:
                value = item.get(column)
                row.append("" if value is None else value)
        writer.writerow(row)
    return buffer.getvalue()


def register_admin_routes(app, state):
    """Register ban/unban and visit-history routes."""
    log_action = state["log_action"]

    @app.route("/ban-visitor", methods=["POST"])
    def ban_visitor_route():
        """Ban a visitor so future sign-ins are refused."""
        payload = request_json_object()
        visitor_id = payload.get("visitor_id")
        if not visitor_id:
            log_action("ban", "rejected: missing visitor_id", level="warning")
            return error_response("Visitor ID is required.", 400)
        try:
            changed = set_banned(state["DB_PATH"], visitor_id, True)
        except sqlite3.Error as exc:
            state["log_exception"](f"ban visitor_id={visitor_id}", exc)
            return database_error_response("Failed to ban visitor.")
        if not changed:
            log_action("ban", f"visitor {visitor_id} not found", level="warning")
            return message_response("Visitor not found.", 404)
        log_action("ban", f"visitor {visitor_id} banned")
        return message_response("Visitor has been banned successfully.", 200, visitor_id=visitor_id)

    @app.route("/unban-visitor/<int:visitor_id>", methods=["POST"])
    def unban_visitor_route(visitor_id):
        """Lift a ban; requires the second admin password."""
        payload = request_json_object()
        if not is_admin_password_valid(payload.get("password"), state["ADMIN_PASSWORD_2"]):
            log_action("unban", f"unauthorized unban attempt for visitor {visitor_id}", level="warning")
            return password_rejected_response()
        try:
            changed = set_banned(state["DB_PATH"], visitor_id, False)
        except sqlite3.Error as exc:
            state["log_exception"](f"unban visitor_id={visitor_id}", exc)
            return database_error_response()
        if not changed:
            log_action("unban", f"visitor {visitor_id} not found", level="warning")
            return message_response("Visitor not found.", 404)
        log_action("unban", f"visitor {visitor_id} unbanned")
        return message_response("Visitor has been unbanned successfully.")

    @app.route("/authorize-history", methods=["POST"])
    def authorize_history_route():
        """Check the history dashboard password."""
        payload = request_json_object()
        if not is_admin_password_valid(payload.get("password"), state["ADMIN_PASSWORD_1"]):
            log_action("authorize-history", "failed attempt with incorrect password", level="warning")
            return password_rejected_response()
        log_action("authorize-history", "history dashboard unlocked")
        return jsonify({"success": True, "message": "Authorization successful."})

    @app.route("/history", methods=["GET"])
    def history_route():
        """Return visit history with optional name and date filters."""
        filters = _history_filters()
        try:
            items = query_history(state["DB_PATH"], **filters)
        except sqlite3.Error as exc:
            state["log_exception"]("history/query", exc)
            return database_error_response("Failed to retrieve historical data.")
        base_url = request.host_url
        for item in items:
            photo_path = item.pop("photo_path", None)
            item["photo"] = f"{base_url}{photo_path}" if photo_path else None
        log_action("history", f"returned {len(items)} record(s) (search={filters['search'] or 'none'})")
        return jsonify(items)

    @app.route("/history/export.csv", methods=["GET"])
    def history_export_route():
        """Download the filtered visit history as CSV."""
        filters = _history_filters()
        try:
            items = query_history(state["DB_PATH"], **filters)
        except sqlite3.Error as exc:
            state["log_exception"]("history/export", exc)
            return database_error_response("Failed to export historical data.")
        filename = f"visit-history-{utc_now().date().isoformat()}.csv"
        log_action("history-export", f"exported {len(items)} record(s)")
        return Response(
            render_history_csv(items),
            mimetype="text/csv",
            headers={"Content-Disposition": f"attachment; filename={filename}"},
        )
