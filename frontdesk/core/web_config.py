"""KEY=VALUE settings file for the front desk, with environment overrides.

Values come from ``frontdesk.env`` in the data directory. Any key may be
overridden by an environment variable named ``FRONTDESK_<KEY>``, so a
deployment can inject the admin passwords without writing them to disk.
"""

import os
from pathlib import Path

ENV_PREFIX = "FRONTDESK_"

DEFAULT_CONFIG_LINES = (
    "# Front desk settings. Lines are KEY=VALUE; blank values use defaults.",
    "WEB_HOST=127.0.0.1",
    "WEB_PORT=3001",
    "ADMIN_PASSWORD_1=",
    "ADMIN_PASSWORD_2=",
    "DISPLAY_TZ=UTC",
    "MAX_UPLOAD_MB=20",
)


def ensure_config_file(config_path):
    """Write the default config file when none exists; return True if created."""
    path = Path(config_path)
    if path.exists():
        return False
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text("\n".join(DEFAULT_CONFIG_LINES) + "\n", encoding="utf-8")
    except OSError:
        return False
    return True


def _unquote(value):
    if len(value) >= 2 and value[0] == value[-1] and value[0] in {"'", '"'}:
        return value[1:-1]
    return value


def parse_config_lines(lines):
    """Return ``{key: value}`` from dotenv-style lines; comments are skipped."""
    values = {}
    for raw in lines:
        line = raw.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, value = line.split("=", 1)
        key = key.strip()
        if key:
            values[key] = _unquote(value.strip())
    return values


def environment_overrides(environ=None):
    """Return settings taken from ``FRONTDESK_*`` environment variables."""
    source = os.environ if environ is None else environ
    overrides = {}
    for name, value in source.items():
        if name.startswith(ENV_PREFIX) and len(name) > len(ENV_PREFIX):
            overrides[name[len(ENV_PREFIX):]] = value
    return overrides


class WebConfig:
    """Merged front desk settings with typed getters."""

    def __init__(self, config_path, base_dir, environ=None):
        self.config_path = Path(config_path)
        self.base_dir = Path(base_dir)
        self.file_values = self._read_file()
        self.values = {**self.file_values, **environment_overrides(environ)}

    def _read_file(self):
        try:
            text = self.config_path.read_text(encoding="utf-8")
        except OSError:
            return {}
        return parse_config_lines(text.splitlines())

    def _raw(self, name):
        value = self.values.get(name)
        if value is None:
            return None
        value = str(value).strip()
        return value or None

    def get_str(self, name, default):
        """String setting; missing or blank falls back to ``default``."""
        value = self._raw(name)
        return default if value is None else value

    def get_int(self, name, default, minimum=None, maximum=None):
        """Integer setting clamped to ``minimum``/``maximum``; unparsable uses ``default``."""
        value = self._raw(name)
        if value is None:
            return default
        try:
            parsed = int(value)
        except ValueError:
            return default
        if minimum is not None:
            parsed = max(minimum, parsed)
        if maximum is not None:
            parsed = min(maximum, parsed)
        return parsed

    def get_path(self, name, default):
        """Path setting; relative values resolve against ``base_dir``."""
        value = self._raw(name)
        if value is None:
            return Path(default)
        candidate = Path(value)
        return candidate if candidate.is_absolute() else self.base_dir / candidate
