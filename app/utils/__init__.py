"""Shared utility helpers used across services."""

import json
from datetime import datetime


def iso(dt: datetime | None) -> str | None:
    """ISO-8601 string for a datetime, or None."""
    return dt.isoformat() if dt else None


def parse_json(text: str | None):
    """Decode a JSON text column, returning None when empty or malformed."""
    if not text:
        return None
    try:
        return json.loads(text)
    except (ValueError, TypeError):
        return None
