"""
Date helpers.

All datetimes handled by reviewsync are timezone-aware UTC. Naive inputs
are assumed to already be UTC.
"""

from datetime import datetime, timezone
from typing import Any, Optional


def parse_date(value: Any) -> Optional[datetime]:
    """
    Parse an upstream date value into an aware UTC datetime.

    Accepts ISO-8601 strings (with or without time, ``Z`` suffix allowed),
    ``YYYY-MM-DD HH:MM:SS`` timestamps, datetimes, and epoch milliseconds.

    Returns:
        Parsed datetime, or None if the value is empty or unparseable
    """
    if value is None or value == "" or isinstance(value, bool):
        return None

    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, (int, float)):
        try:
            parsed = datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def to_iso(value: datetime) -> str:
    """Format as ``2024-06-15T10:30:00.000Z`` (millisecond precision, UTC)."""
    value = value.astimezone(timezone.utc)
    return value.strftime("%Y-%m-%dT%H:%M:%S") + f".{value.microsecond // 1000:03d}Z"


def format_ymd(value: datetime) -> str:
    return value.astimezone(timezone.utc).strftime("%Y-%m-%d")


def format_timestamp(value: datetime) -> str:
    """Format a last-fetched timestamp (``YYYY-MM-DD HH:MM:SS``, UTC)."""
    return value.astimezone(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")
