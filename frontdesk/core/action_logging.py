"""Front desk event/error logging with request-aware client identification."""

from datetime import datetime
import os
import traceback
from flask import request, has_request_context

LOG_ROTATE_MAX_BYTES = 5 * 1024 * 1024
LOG_ROTATE_BACKUP_COUNT = 5
LOG_LEVELS = ("info", "warning", "error", "critical")


def sanitize_log_fragment(text):
    """Normalize user/system text into a single safe log line fragment."""
    return " ".join(str(text or "").replace("\r", " ").replace("\n", " ").split()).strip()


def get_client_ip():
    """Resolve the caller IP from proxy headers or the direct connection."""
    if not has_request_context():
        return "frontdesk"
    xff = (request.headers.get("X-Forwarded-For") or "").strip()
    if xff:
        first = xff.split(",")[0].strip()
        if first:
            return first
    direct = (request.remote_addr or "").strip()
    return direct or "frontdesk"


def _rotate_log_file(path, max_bytes=LOG_ROTATE_MAX_BYTES, backup_count=LOG_ROTATE_BACKUP_COUNT):
    """Rotate log file when size reaches threshold."""
    if max_bytes <= 0 or backup_count <= 0:
        return
    try:
        if not path.exists():
            return
        if path.stat().st_size < max_bytes:
            return
        for idx in range(backup_count - 1, 0, -1):
            src = path.with_name(f"{path.name}.{idx}")
            dst = path.with_name(f"{path.name}.{idx + 1}")
            if src.exists():
                os.replace(src, dst)
        os.replace(path, path.with_name(f"{path.name}.1"))
    except OSError:
        # Rotation failures must not break request handling.
        pass


def format_log_line(timestamp, level, client, action, detail=None):
    """Render one log line: ``<ts> LEVEL <client> [frontdesk/action] detail``."""
    safe_level = level if level in LOG_LEVELS else "info"
    safe_action = sanitize_log_fragment(action) or "unknown"
    line = f"{timestamp} {safe_level.upper()} <{client}> [frontdesk/{safe_action}]"
    safe_detail = sanitize_log_fragment(detail)
    if safe_detail:
        line += f" {safe_detail}"
    return line


def make_log_action(display_tz, log_dir, log_file):
    """Build and return the event logger closure."""

    def log_action(action, detail=None, level="info"):
        """Append one event line; write failures are swallowed."""
        timestamp = datetime.now(tz=display_tz).strftime("%Y-%m-%d %H:%M:%S")
        client_ip = sanitize_log_fragment(get_client_ip()) or "unknown"
        line = format_log_line(timestamp, level, client_ip, action, detail)
        try:
            log_dir.mkdir(parents=True, exist_ok=True)
            _rotate_log_file(log_file)
            with log_file.open("a", encoding="utf-8") as f:
                f.write(line + "\n")
        except OSError:
            # Logging must not break request handling or boot steps.
            pass

    return log_action


def make_log_exception(log_action):
    """Build and return an exception logger that emits through log_action."""

    def log_exception(context, exc, level="error"):
        """Log a compact exception summary with a truncated traceback."""
        exc_name = type(exc).__name__ if exc is not None else "Exception"
        exc_text = sanitize_log_fragment(str(exc) if exc is not None else "")
        tb = ""
        if exc is not None:
            tb = sanitize_log_fragment(" | ".join(traceback.format_exception(type(exc), exc, exc.__traceback__)))
        message = f"{context}: {exc_name}"
        if exc_text:
            message += f": {exc_text}"
        if tb:
            message += f" | traceback: {tb[:700]}"
        log_action("error", message, level=level)

    return log_exception


def null_log_action(action, detail=None, level="info"):
    """Discard an event; default for core helpers called without a logger."""
    return None


def null_log_exception(context, exc, level="error"):
    """Discard an exception report."""
    return None
