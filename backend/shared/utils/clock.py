"""
UTC clock helpers.

Lifecycle timestamps are set by the application, not the database, so
monotonic checks (course firing, close) compare values from one clock.
"""

from datetime import datetime, timezone


def utcnow() -> datetime:
    """Current time, timezone-aware UTC."""
    return datetime.now(timezone.utc)


def as_utc(value: datetime | None) -> datetime | None:
    """
    Normalize a datetime to aware UTC.

    Some drivers (SQLite) hand back naive datetimes for timezone-aware
    columns; those are taken to be UTC already.
    """
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
