from __future__ import annotations

from datetime import datetime, time, tzinfo
from zoneinfo import ZoneInfo


def parse_hhmm(value: str) -> time:
    """Parse HH:MM string into time."""
    return datetime.strptime(value.strip(), "%H:%M").time()


def org_timezone(name: str) -> tzinfo:
    return ZoneInfo(name)


def now_local(tz: tzinfo | None = None) -> datetime:
    """Current time in the organization timezone.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now(tz)


def as_aware(value: datetime, tz: tzinfo) -> datetime:
    """Attach ``tz`` to naive datetimes; aware ones are returned unchanged."""
    if value.tzinfo is None:
        return value.replace(tzinfo=tz)
    return value


def whole_minutes(start: datetime, end: datetime) -> int:
    """Floor of the minutes elapsed from start to end (negative if end < start)."""
    return int((end - start).total_seconds() // 60)


def rounded_minutes(start: datetime, end: datetime) -> int:
    """Minutes from start to end, rounded half-up."""
    return int((end - start).total_seconds() / 60 + 0.5)
