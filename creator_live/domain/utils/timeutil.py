from datetime import date, datetime, time, timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def local_to_utc(local_date: str, local_time: str, tz_name: str) -> datetime:
    """
    Convert a wall-clock date (YYYY-MM-DD) and time (HH:MM) in an IANA timezone to UTC.

    Raises:
        ValueError: If the date, time or timezone cannot be parsed.
    """
    try:
        zone = ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ValueError(f"Invalid timezone: {tz_name}") from exc

    try:
        parsed_date = date.fromisoformat(local_date)
    except ValueError as exc:
        raise ValueError("scheduled_date must be in YYYY-MM-DD format") from exc

    try:
        parsed_time = datetime.strptime(local_time, "%H:%M").time()
    except ValueError as exc:
        raise ValueError("scheduled_time must be in HH:MM format") from exc

    local = datetime.combine(parsed_date, time(parsed_time.hour, parsed_time.minute), tzinfo=zone)
    return local.astimezone(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes read from the database as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
