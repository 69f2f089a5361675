"""Logging setup helpers."""

from frontdesk.core.action_logging import make_log_action, make_log_exception

LOG_FILE_NAME = "frontdesk.log"


def build_loggers(display_tz, log_dir):
    """Create the front desk event logger and exception logger for ``log_dir``."""
    log_file = log_dir / LOG_FILE_NAME
    log_action = make_log_action(display_tz, log_dir, log_file)
    log_exception = make_log_exception(log_action)
    return log_action, log_exception
