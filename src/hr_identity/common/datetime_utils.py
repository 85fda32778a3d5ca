from __future__ import annotations

from datetime import datetime, timezone


def now_utc() -> datetime:
    """Current time as an aware UTC datetime.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Treat naive values as UTC (the database stores UTC without tzinfo)."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def to_naive_utc(value: datetime) -> datetime:
    return as_utc(value).replace(tzinfo=None)
