"""Filesystem helpers for snapshot listings, uploads and safe paths."""

from datetime import datetime
from pathlib import Path
import time

from werkzeug.utils import secure_filename

ALLOWED_PHOTO_SUFFIXES = {".jpg", ".jpeg", ".png", ".gif", ".webp", ".bmp"}


def format_file_size(num_bytes):
    """Format bytes into a human-readable string (B/KB/MB/GB/TB)."""
    value = float(max(0, num_bytes or 0))
    units = ["B", "KB", "MB", "GB", "TB"]
    idx = 0
    while value >= 1024 and idx < len(units) - 1:
        value /= 1024
        idx += 1
    if idx == 0:
        return f"{int(value)} {units[idx]}"
    return f"{value:.1f} {units[idx]}"


def list_snapshot_files(base_dir, pattern, display_tz):
    """Return snapshot metadata sorted newest name first."""
    items = []
    base_dir = Path(base_dir)
    if not base_dir.exists() or not base_dir.is_dir():
        return items

    for path in base_dir.glob(pattern):
        if not path.is_file():
            continue
        try:
            stat = path.stat()
        except OSError:
            continue
        ts = stat.st_mtime
        items.append({
            "name": path.name,
            "mtime": ts,
            "size_bytes": stat.st_size,
            "modified": datetime.fromtimestamp(ts, tz=display_tz).strftime("%Y-%m-%d %H:%M:%S %Z"),
            "size_text": format_file_size(stat.st_size),
        })

    items.sort(key=lambda item: item["name"], reverse=True)
    return items


def photo_upload_name(original_filename, field_name="photo", now=None):
    """Return ``<field>-<epoch ms><ext>`` for an uploaded photo, or ``None``.

    Only image extensions are accepted.
    """
    suffix = Path(secure_filename(original_filename or "")).suffix.lower()
    if suffix not in ALLOWED_PHOTO_SUFFIXES:
        return None
    stamp_ms = int((time.time() if now is None else now) * 1000)
    return f"{field_name}-{stamp_ms}{suffix}"


def safe_filename_in_dir(base_dir, filename):
    """Validate and return a direct-child filename within ``base_dir``."""
    if not filename:
        return None
    name = Path(filename).name
    if name != filename:
        return None
    candidate = base_dir / name
    try:
        base_resolved = base_dir.resolve()
        candidate_resolved = candidate.resolve()
    except OSError:
        return None
    try:
        candidate_resolved.relative_to(base_resolved)
    except ValueError:
        return None
    if not candidate_resolved.exists() or not candidate_resolved.is_file():
        return None
    return name
