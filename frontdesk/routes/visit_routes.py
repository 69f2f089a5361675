"""Sign-in/sign-out route registration for the front desk."""
import sqlite3

from flask import jsonify, request

from frontdesk.core.filesystem_utils import photo_upload_name
from frontdesk.core.response_helpers import (
    database_error_response,
    error_response,
    message_response,
    request_json_object,
)
from frontdesk.core.store import (
    end_active_visit,
    find_visitor_by_name,
    get_visitor,
    get_visitor_with_latest_visit,
    inherit_visit_details,
    list_active_visits,
    missing_visit_fields,
    normalize_visit_details,
    parse_dependents,
    register_visitor,
    search_visitors,
    start_visit,
)
from frontdesk.core.timestamps import parse_client_timestamp, to_iso_z, utc_now, utc_now_iso


def _request_payload():
    if request.is_json:
        return request_json_object()
    return request.form.to_dict()


def _clean(value):
    return str(value or "").strip()


def register_visit_routes(app, state):
    """Register registration, sign-in, sign-out, dashboard and search routes."""
    log_action = state["log_action"]

    @app.route("/register-visitor", methods=["POST"])
    def register_visitor_route():
        """Create a visitor with their first visit, dependents and optional photo."""
        payload = _request_payload()
        first_name = _clean(payload.get("first_name"))
        last_name = _clean(payload.get("last_name"))
        details = normalize_visit_details(payload)
        missing = [name for name, value in (("first_name", first_name), ("last_name", last_name)) if not value]
        missing += missing_visit_fields(details)
        if missing:
            log_action("register", f"rejected: missing {', '.join(missing)}", level="warning")
            return error_response(f"Missing required fields: {', '.join(missing)}", 400)
        try:
            dependents = parse_dependents(payload.get("additional_dependents"))
        except ValueError as exc:
            log_action("register", f"rejected dependents: {exc}", level="warning")
            return error_response(str(exc), 400)

        try:
            existing_id = find_visitor_by_name(state["DB_PATH"], first_name, last_name)
        except sqlite3.Error as exc:
            state["log_exception"]("register/duplicate_check", exc)
            return database_error_response()
        if existing_id is not None:
            log_action("register", f"duplicate registration for {first_name} {last_name}", level="warning")
            return message_response(
                f"A visitor named {first_name} {last_name} already exists. Please use the search bar to log them in.",
                409,
            )

        photo_file = None
        photo_path = None
        upload = request.files.get("photo")
        if upload is not None and upload.filename:
            stored_name = photo_upload_name(upload.filename)
            if stored_name is None:
                return error_response("Photo must be an image file.", 400)
            state["UPLOADS_DIR"].mkdir(parents=True, exist_ok=True)
            photo_file = state["UPLOADS_DIR"] / stored_name
            upload.save(str(photo_file))
            photo_path = f"uploads/{stored_name}"

        try:
            visitor_id, visit_id = register_visitor(
                state["DB_PATH"],
                first_name=first_name,
                last_name=last_name,
                photo_path=photo_path,
                entry_time=utc_now_iso(),
                details=details,
                dependents=dependents,
            )
        except sqlite3.Error as exc:
            state["log_exception"]("register/insert", exc)
            if photo_file is not None:
                photo_file.unlink(missing_ok=True)
            return database_error_response("Failed to register visitor.")

        log_action(
            "register",
            f"registered {first_name} {last_name} (id={visitor_id}, visit={visit_id}) with {len(dependents)} dependent(s)",
        )
        return message_response("Visitor registered successfully!", 201, id=visitor_id)

    @app.route("/visitors", methods=["GET"])
    def active_visitors_route():
        """List visitors currently on site."""
        try:
            items = list_active_visits(state["DB_PATH"])
        except sqlite3.Error as exc:
            state["log_exception"]("visitors/list", exc)
            return database_error_response()
        for item in items:
            item["photo"] = item.get("photo_path") or None
        log_action("dashboard", f"fetched {len(items)} signed-in visitor(s)")
        return jsonify(items)

    @app.route("/login", methods=["POST"])
    def login_route():
        """Sign a returning visitor in, copying details from their latest visit."""
        payload = _request_payload()
        visitor_id = payload.get("id")
        if not visitor_id:
            log_action("login", "rejected: missing visitor id", level="warning")
            return message_response("Visitor ID is required for login.", 400)
        try:
            visitor, previous = get_visitor_with_latest_visit(state["DB_PATH"], visitor_id)
        except sqlite3.Error as exc:
            state["log_exception"]("login/lookup", exc)
            return database_error_response()
        if visitor is None:
            log_action("login", f"visitor {visitor_id} not found", level="warning")
            return message_response("Visitor not found.", 404)
        if visitor.get("is_banned"):
            log_action("login", f"blocked banned visitor {visitor_id}", level="warning")
            return message_response("This visitor is banned and cannot log in.", 403)

        details = inherit_visit_details(previous, fill_all=False)
        dependents = (previous or {}).get("dependents", [])
        try:
            visit_id = start_visit(
                state["DB_PATH"],
                visitor_id=visitor["id"],
                entry_time=utc_now_iso(),
                details=details,
                dependents=dependents,
            )
        except sqlite3.Error as exc:
            state["log_exception"]("login/insert", exc)
            return database_error_response("Failed to sign visitor in.")

        log_action("login", f"visitor {visitor['id']} signed in (visit={visit_id})")
        visitor_data = {
            "id": visitor["id"],
            "is_banned": visitor["is_banned"],
            **details,
            "dependents": dependents,
        }
        return message_response("Visitor signed in successfully!", 200, visit_id=visit_id, visitorData=visitor_data)

    @app.route("/update-visitor-details", methods=["POST"])
    def update_visitor_details_route():
        """Sign a returning visitor in with new details and dependents."""
        payload = _request_payload()
        visitor_id = payload.get("id")
        if not visitor_id:
            return message_response("Visitor ID is required for re-registration.", 400)
        details = normalize_visit_details(payload)
        missing = missing_visit_fields(details)
        if missing:
            return error_response(f"Missing required fields: {', '.join(missing)}", 400)
        try:
            dependents = parse_dependents(payload.get("additional_dependents"))
        except ValueError as exc:
            log_action("update-details", f"rejected dependents: {exc}", level="warning")
            return error_response(str(exc), 400)

        try:
            visitor = get_visitor(state["DB_PATH"], visitor_id)
            if visitor is None:
                log_action("update-details", f"visitor {visitor_id} not found", level="warning")
                return message_response("Visitor ID not found.", 404)
            visit_id = start_visit(
                state["DB_PATH"],
                visitor_id=visitor["id"],
                entry_time=utc_now_iso(),
                details=details,
                dependents=dependents,
            )
        except sqlite3.Error as exc:
            state["log_exception"]("update-details/insert", exc)
            return error_response("Transaction failed.", 500)

        log_action("update-details", f"visitor {visitor_id} updated and signed in (visit={visit_id})")
        return message_response("Visitor Updated Successfully & signed in!", 201, id=visit_id)

    @app.route("/exit-visitor/<int:visitor_id>", methods=["POST"])
    def exit_visitor_route(visitor_id):
        """Sign a visitor out by closing their active visit."""
        try:
            closed = end_active_visit(state["DB_PATH"], visitor_id, utc_now_iso())
        except sqlite3.Error as exc:
            state["log_exception"]("logout/update", exc)
            return database_error_response()
        if closed is None:
            log_action("logout", f"no active visit for visitor {visitor_id}", level="warning")
            return message_response("Visitor not found or already signed out.", 404)
        full_name = f"{closed['first_name']} {closed['last_name']}"
        log_action("logout", f"{full_name} (id={visitor_id}) signed out")
        return message_response(f"{full_name} has been successfully signed out.")

    @app.route("/record-missed-visit", methods=["POST"])
    def record_missed_visit_route():
        """Record a past visit that was never signed in, closing it now."""
        payload = _request_payload()
        visitor_id = payload.get("visitorId")
        past_entry = payload.get("pastEntryTime")
        if not visitor_id or not past_entry:
            log_action("missed-visit", "rejected: missing visitorId or pastEntryTime", level="warning")
            return message_response("Missing visitor ID or required entry time.", 400)

        exit_moment = utc_now()
        entry_moment = parse_client_timestamp(past_entry)
        if entry_moment is None or entry_moment >= exit_moment:
            log_action("missed-visit", f"invalid entry time for visitor {visitor_id}", level="warning")
            return message_response(
                "Invalid entry time. It must be a valid date/time and occur before the current exit time.",
                400,
            )
        entry_time = to_iso_z(entry_moment)
        exit_time = to_iso_z(exit_moment)

        try:
            visitor, previous = get_visitor_with_latest_visit(state["DB_PATH"], visitor_id)
            if visitor is None:
                return message_response("Visitor not found.", 404)
            start_visit(
                state["DB_PATH"],
                visitor_id=visitor["id"],
                entry_time=entry_time,
                exit_time=exit_time,
                details=inherit_visit_details(previous, fill_all=True),
            )
        except sqlite3.Error as exc:
            state["log_exception"]("missed-visit/insert", exc)
            return database_error_response("Failed to record historical visit.")

        log_action("missed-visit", f"visitor {visitor_id} corrected for {entry_time}")
        return message_response(
            "Visitor entry time corrected and signed out.",
            200,
            entry=entry_time,
            exit=exit_time,
        )

    @app.route("/visitor-search", methods=["GET"])
    def visitor_search_route():
        """Find visitors by name terms."""
        name = _clean(request.args.get("name"))
        if not name:
            log_action("search", "rejected: missing name parameter", level="warning")
            return message_response("Search term 'name' is required.", 400)
        try:
            items = search_visitors(state["DB_PATH"], name)
        except sqlite3.Error as exc:
            state["log_exception"]("search", exc)
            return database_error_response()
        base_url = request.host_url
        for item in items:
            item["photo_path"] = f"{base_url}{item['photo_path']}" if item.get("photo_path") else None
        log_action("search", f"found {len(items)} result(s) for {name!r}")
        return jsonify(items)
