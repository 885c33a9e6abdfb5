from __future__ import annotations

from datetime import date, datetime, time, timedelta
from typing import Optional


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    return datetime.strptime(value[:10], "%Y-%m-%d").date()


def parse_clock_time(value) -> Optional[time]:
    """Parse a wall-clock value from the API ("08:00:00" or "08:00")."""

    if value is None or value == "":
        return None
    if isinstance(value, time):
        return value
    parts = str(value).strip().split(":")
    if len(parts) < 2:
        raise ValueError(f"Invalid time string: {value!r}")
    seconds = int(parts[2][:2]) if len(parts) >= 3 and parts[2] else 0
    return time(hour=int(parts[0]), minute=int(parts[1]), second=seconds)


def format_clock_time(value: Optional[time]) -> Optional[str]:
    return value.strftime("%H:%M:%S") if value else None


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now()


def format_elapsed(start: datetime, now: datetime) -> str:
    """Render worked time as "{hours}h {minutes}m"; negative spans render as 0."""

    diff = max(now - start, timedelta(0))
    total_minutes = int(diff.total_seconds()) // 60
    return f"{total_minutes // 60}h {total_minutes % 60}m"
