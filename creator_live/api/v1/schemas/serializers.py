"""Shared serialization utilities for API schemas."""

from datetime import datetime, timezone


def serialize_utc_datetime(dt: datetime) -> str:
    """Serialize datetime as ISO 8601 string with UTC timezone.

    Naive values coming from the database are assumed to be UTC.
    """
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).isoformat()
