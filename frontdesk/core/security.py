"""Shared-secret password gate helpers."""

import hmac


def is_admin_password_valid(supplied, expected):
    """Compare a supplied password to the configured one.

    An unset (blank) configured password rejects every attempt.
    """
    expected_text = str(expected or "")
    if not expected_text.strip():
        return False
    supplied_text = str(supplied or "")
    if not supplied_text:
        return False
    return hmac.compare_digest(supplied_text.encode("utf-8"), expected_text.encode("utf-8"))


def blank_admin_passwords(config_values):
    """Return the admin password keys that are unset in ``config_values``."""
    blank = []
    for key in ("ADMIN_PASSWORD_1", "ADMIN_PASSWORD_2"):
        if not str(config_values.get(key) or "").strip():
            blank.append(key)
    return blank
