from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Any, Iterator, Optional


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    return datetime.strptime(value, "%Y-%m-%d").date()


def parse_source_timestamp(value: Any) -> Optional[datetime]:
    """Parse a punch timestamp as sent by the terminal API.

    Accepts 'YYYY-MM-DD HH:MM:SS', ISO strings with 'T', or datetimes. Offsets are
    dropped: terminals report wall-clock time of the site.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.replace(tzinfo=None)
    text = str(value).strip()
    if text.endswith("Z"):
        text = text[:-1]
    return datetime.fromisoformat(text).replace(tzinfo=None)


def format_source_timestamp(value: datetime) -> str:
    return value.strftime("%Y-%m-%d %H:%M:%S")


def start_of_day(day: date) -> datetime:
    return datetime.combine(day, datetime.min.time())


def iter_days(start: date, end: date) -> Iterator[date]:
    """Inclusive day range."""
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def minutes_between(later: datetime, earlier: datetime) -> int:
    """Whole minutes from earlier to later (floored, may be negative)."""
    return int((later - earlier).total_seconds() // 60)


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now()
