"""Utility functions for working with dates and times."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from dateutil import parser as dateparser

__all__ = [
    "get_current_timestamp",
    "parse_event_date",
    "day_bucket",
]


def get_current_timestamp() -> datetime:
    """Return the current UTC datetime with micro-second precision.

    This object can be stored directly in MongoDB where it will be written as
    a BSON Date.
    """
    return datetime.now(tz=timezone.utc)


def parse_event_date(value: Any) -> datetime | None:
    """Parse a provider timestamp into an aware UTC datetime.

    Accepts ``datetime`` objects, ISO-8601/RFC-2822 strings and epoch
    milliseconds (LinkedIn). Returns ``None`` when the value is missing or
    cannot be interpreted as an instant.
    """
    if value is None or value == "":
        return None

    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, (int, float)) and not isinstance(value, bool):
        try:
            parsed = datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    elif isinstance(value, str):
        try:
            parsed = dateparser.parse(value)
        except (ValueError, OverflowError):
            return None
    else:
        return None

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def day_bucket(moment: datetime) -> str:
    """Return the UTC calendar day of *moment* as ``YYYY-MM-DD``."""
    return moment.astimezone(timezone.utc).strftime("%Y-%m-%d")
