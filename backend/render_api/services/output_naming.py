"""
Naming and encoding helpers for render outputs.

Filenames, storage keys, content types and inline data URLs.
"""

import base64
import re
from datetime import datetime, timezone
from typing import Optional

CONTENT_TYPES = {
    "pdf": "application/pdf",
    "png": "image/png",
    "jpeg": "image/jpeg",
    "webp": "image/webp",
}


def iso_utc(moment: Optional[datetime] = None) -> str:
    """
    ISO 8601 UTC timestamp with millisecond precision and a ``Z`` suffix.

    Example:
        >>> iso_utc(datetime(2026, 1, 2, 3, 4, 5, 678000, tzinfo=timezone.utc))
        '2026-01-02T03:04:05.678Z'
    """
    moment = (moment or datetime.now(timezone.utc)).astimezone(timezone.utc)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def build_output_filename(
    extension: str,
    filename: Optional[str] = None,
    now: Optional[datetime] = None,
) -> str:
    """
    Return ``<filename>.<ext>``, or a timestamp-derived name when none is given.

    Example:
        >>> build_output_filename("pdf", now=datetime(2026, 1, 2, 3, 4, 5, tzinfo=timezone.utc))
        'render-2026-01-02T03-04-05-000Z.pdf'
    """
    if filename:
        return f"{filename}.{extension}"
    timestamp = re.sub(r"[:.]", "-", iso_utc(now))
    return f"render-{timestamp}.{extension}"


def build_storage_key(filename: str, storage_path: Optional[str] = None) -> str:
    """Join an optional path prefix and a filename, trimming stray slashes."""
    prefix = storage_path.strip("/") if storage_path else ""
    return f"{prefix}/{filename}" if prefix else filename


def content_type_for(output_format: str) -> str:
    return CONTENT_TYPES[output_format]


def to_data_url(data: bytes, content_type: str) -> str:
    encoded = base64.b64encode(data).decode("ascii")
    return f"data:{content_type};base64,{encoded}"
