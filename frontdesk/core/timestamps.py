"""UTC timestamp helpers for values stored in the visitor database.

Every stored timestamp uses the same fixed-width ``YYYY-MM-DDTHH:MM:SS.mmmZ``
form so that SQL string comparison matches chronological order.
"""

from datetime import datetime, timezone


def to_iso_z(moment):
    """Format an aware or naive-UTC datetime as ``...T..:..:..mmmZ``."""
    if moment.tzinfo is not None:
        moment = moment.astimezone(timezone.utc)
    return moment.strftime("%Y-%m-%dT%H:%M:%S.") + f"{moment.microsecond // 1000:03d}Z"


def utc_now():
    """Return the current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def utc_now_iso():
    """Return the current UTC time in stored-timestamp form."""
    return to_iso_z(utc_now())


def parse_client_timestamp(text):
    """Parse an ISO-8601 timestamp from a client; return aware UTC or ``None``.

    Naive values are treated as UTC. A trailing ``Z`` is accepted.
    """
    raw = str(text or "").strip()
    if not raw:
        return None
    if raw.endswith("Z") or raw.endswith("z"):
        raw = raw[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(raw)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)
