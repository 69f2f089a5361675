"""Shared Flask JSON request/response helpers."""

from flask import jsonify, request


def request_json_object():
    """Return the JSON body when it is an object, else an empty dict."""
    payload = request.get_json(silent=True)
    return payload if isinstance(payload, dict) else {}


def message_response(message, status_code=200, **extra):
    """Return ``{"message": ...}`` plus any extra fields."""
    return jsonify({"message": message, **extra}), status_code


def error_response(error, status_code, **extra):
    """Return ``{"error": ...}`` with the given status."""
    return jsonify({"error": error, **extra}), status_code


def password_rejected_response():
    """Return standardized password rejection response."""
    return jsonify({"message": "Incorrect password."}), 403


def database_error_response(message="Database error"):
    """Return the generic store failure payload."""
    return jsonify({"error": message}), 500


def internal_error_response():
    """Return generic internal-error response payload."""
    return jsonify({"error": "internal_error", "message": "Internal server error."}), 500
