"""Typed application runtime state container."""
import threading
from collections.abc import Iterator, MutableMapping
from typing import Any


def default_status() -> dict[str, Any]:
    """Return the health snapshot values a fresh process starts with."""
    return {
        "db_ready": False,
        "last_backup": "N/A",
        "last_cleanup": "N/A",
        "last_error": None,
    }


class StatusTracker:
    """Process-lifetime health snapshot shared by boot steps, jobs and routes.

    Writes are unconditional overwrites; keys and values are not validated.
    ``get_status`` hands out a copy so readers never observe a dict that is
    being mutated by another request thread.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._values = default_status()

    def update_status(self, key: str, value: Any) -> None:
        """Overwrite one status entry."""
        with self._lock:
            self._values[key] = value

    def get_status(self) -> dict[str, Any]:
        """Return a copy of the current status snapshot."""
        with self._lock:
            return dict(self._values)


_STATE_CORE_KEYS = (
    "DATA_DIR",
    "DB_PATH",
    "BACKUP_DIR",
    "UPLOADS_DIR",
    "LOG_DIR",
    "DISPLAY_TZ",
    "ADMIN_PASSWORD_1",
    "ADMIN_PASSWORD_2",
    "DATA_RETENTION_DAYS",
    "BACKUP_RETENTION_DAYS",
    "MAX_UPLOAD_BYTES",
)

_STATE_BINDING_KEYS = (
    "status",
    "log_action",
    "log_exception",
)

REQUIRED_STATE_KEYS = _STATE_CORE_KEYS + _STATE_BINDING_KEYS
REQUIRED_STATE_KEY_SET = frozenset(REQUIRED_STATE_KEYS)


class AppState(MutableMapping[str, Any]):
    """Strict runtime mapping of the members every route and boot step needs."""

    __slots__ = ("_data",)

    def __init__(self, data: dict[str, Any]):
        missing = [key for key in REQUIRED_STATE_KEYS if key not in data]
        if missing:
            raise KeyError(f"Missing state members: {', '.join(missing)}")
        self._data = {key: data[key] for key in REQUIRED_STATE_KEYS}

    def __getitem__(self, key: str) -> Any:
        try:
            return self._data[key]
        except KeyError as exc:
            raise KeyError(key) from exc

    def __setitem__(self, key: str, value: Any) -> None:
        if key not in REQUIRED_STATE_KEY_SET:
            raise KeyError(key)
        self._data[key] = value

    def __delitem__(self, key: str) -> None:
        raise TypeError("AppState does not support deleting members")

    def __iter__(self) -> Iterator[str]:
        return iter(REQUIRED_STATE_KEYS)

    def __len__(self) -> int:
        return len(REQUIRED_STATE_KEYS)
