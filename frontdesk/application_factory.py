"""App factory and runtime wiring for the front desk visitor service."""

import os
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from flask import Flask

from frontdesk.core.backups import BACKUP_RETENTION_DAYS, backup_dir_for
from frontdesk.core.logging_setup import build_loggers
from frontdesk.core.security import blank_admin_passwords
from frontdesk.core.store_core import DB_FILE_NAME
from frontdesk.core.web_config import WebConfig, ensure_config_file
from frontdesk.routes.frontdesk_routes import register_routes
from frontdesk.services.app_lifecycle import build_boot_steps, install_flask_hooks
from frontdesk.services.bootstrap import run_boot_steps
from frontdesk.services.compliance_cleanup import DATA_RETENTION_DAYS
from frontdesk.state import AppState, StatusTracker

APP_DIR = Path(__file__).resolve().parent.parent
CONFIG_FILE_NAME = "frontdesk.env"
DATA_DIR_ENV = "FRONTDESK_DATA_DIR"
STATE_EXTENSION_KEY = "frontdesk_state"
MAX_RETENTION_DAYS = 36500


def resolve_data_dir(data_dir=None):
    """Pick the data directory: argument, then environment, then ``<repo>/data``."""
    if data_dir is not None:
        return Path(data_dir)
    from_env = (os.environ.get(DATA_DIR_ENV) or "").strip()
    if from_env:
        return Path(from_env)
    return APP_DIR / "data"


def _display_tz(name):
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        return ZoneInfo("UTC")


def create_app(data_dir=None, *, run_boot=True):
    """Build the Flask app, its AppState and (optionally) run startup steps."""
    data_dir = resolve_data_dir(data_dir)
    data_dir.mkdir(parents=True, exist_ok=True)
    config_path = data_dir / CONFIG_FILE_NAME
    created_config = ensure_config_file(config_path)
    cfg = WebConfig(config_path, data_dir)

    display_tz = _display_tz(cfg.get_str("DISPLAY_TZ", "UTC"))
    log_dir = cfg.get_path("LOG_DIR", data_dir / "logs")
    log_action, log_exception = build_loggers(display_tz, log_dir)
    log_action("boot-start", f"data_dir={data_dir}")
    if created_config:
        log_action("config", f"created default config at {config_path}")
    for key in blank_admin_passwords(cfg.values):
        log_action("config", f"SECURITY ALERT: {key} is empty; its gate rejects every attempt", level="warning")

    max_upload_mb = cfg.get_int("MAX_UPLOAD_MB", 20, minimum=1)
    state = AppState({
        "DATA_DIR": data_dir,
        "DB_PATH": data_dir / DB_FILE_NAME,
        "BACKUP_DIR": backup_dir_for(data_dir),
        "UPLOADS_DIR": cfg.get_path("UPLOADS_DIR", data_dir / "uploads"),
        "LOG_DIR": log_dir,
        "DISPLAY_TZ": display_tz,
        "ADMIN_PASSWORD_1": cfg.get_str("ADMIN_PASSWORD_1", ""),
        "ADMIN_PASSWORD_2": cfg.get_str("ADMIN_PASSWORD_2", ""),
        "DATA_RETENTION_DAYS": cfg.get_int(
            "DATA_RETENTION_DAYS", DATA_RETENTION_DAYS, minimum=1, maximum=MAX_RETENTION_DAYS
        ),
        "BACKUP_RETENTION_DAYS": cfg.get_int(
            "BACKUP_RETENTION_DAYS", BACKUP_RETENTION_DAYS, minimum=1, maximum=MAX_RETENTION_DAYS
        ),
        "MAX_UPLOAD_BYTES": max_upload_mb * 1024 * 1024,
        "status": StatusTracker(),
        "log_action": log_action,
        "log_exception": log_exception,
    })
    state["UPLOADS_DIR"].mkdir(parents=True, exist_ok=True)

    app = Flask(__name__)
    app.config["MAX_CONTENT_LENGTH"] = state["MAX_UPLOAD_BYTES"]
    app.config["WEB_HOST"] = cfg.get_str("WEB_HOST", "127.0.0.1")
    app.config["WEB_PORT"] = cfg.get_int("WEB_PORT", 3001, minimum=1)
    app.extensions[STATE_EXTENSION_KEY] = state

    if run_boot:
        run_boot_steps(
            build_boot_steps(state),
            status=state["status"],
            log_action=log_action,
            log_exception=log_exception,
        )

    install_flask_hooks(app, log_action=log_action, log_exception=log_exception)
    register_routes(app, state)
    log_action("boot", "all routes attached")
    return app
