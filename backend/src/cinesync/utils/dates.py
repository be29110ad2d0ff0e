"""Date helpers for the cinenews showtimes endpoint."""

import re
from datetime import date, datetime, timezone

# "24-10-2026 20:15", sometimes with trailing seconds
SHOWTIME_PATTERN = re.compile(r"^\s*(\d{1,2})-(\d{1,2})-(\d{4})\s+(\d{1,2}):(\d{2})(?::\d{2})?\s*$")


def utc_today() -> date:
    """Return the current calendar date in UTC."""
    return datetime.now(timezone.utc).date()


def format_query_date(day: date) -> str:
    """
    Format a date the way the showtimes endpoint expects it.

    The endpoint takes year-month-day without zero padding, e.g. 2026-3-7.
    """
    return f"{day.year}-{day.month}-{day.day}"


def parse_showtime(value: str) -> datetime:
    """
    Parse a cinenews "DD-MM-YYYY HH:MM" string.

    Trailing seconds, when present, are ignored.

    Cinenews publishes local wall-clock times without an offset; they are
    stored as UTC instants carrying the same wall-clock value so that the
    read side can display them verbatim.

    Raises:
        ValueError: if the string does not match the expected format
    """
    match = SHOWTIME_PATTERN.match(value)
    if not match:
        raise ValueError(f"Unrecognised showtime: {value!r}")

    day, month, year, hour, minute = (int(part) for part in match.groups())
    return datetime(year, month, day, hour, minute, tzinfo=timezone.utc)


def parse_iso_date(value: str | None) -> date | None:
    """Parse a YYYY-MM-DD string, returning None when empty or invalid."""
    if not value:
        return None
    try:
        return date.fromisoformat(value.strip())
    except ValueError:
        return None
