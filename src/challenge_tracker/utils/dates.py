"""Calendar date helpers for challenge day boundaries.

All dates in the data model are plain ``YYYY-MM-DD`` strings in the user's
local calendar. "Today" is always derived from the host's local calendar
(``date.today()``), never from a UTC-normalised instant, so the date cannot
roll forward or backward near midnight.
"""

import re
import time
from datetime import date, datetime, timedelta
from typing import Optional


DATE_FORMAT = "%Y-%m-%d"

_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def format_date(value: date) -> str:
    """Format a date as YYYY-MM-DD."""
    return value.strftime(DATE_FORMAT)


def parse_date(value: str) -> date:
    """Parse a YYYY-MM-DD string into a date.

    Raises:
        ValueError: If the string is not a valid calendar date.
    """
    return datetime.strptime(value, DATE_FORMAT).date()


def today() -> str:
    """Get today's date in YYYY-MM-DD format (host local calendar)."""
    return format_date(date.today())


def yesterday(reference: Optional[str] = None) -> str:
    """Get the day before ``reference`` (defaults to today)."""
    return previous_day(reference or today())


def days_between(start: str, end: str) -> int:
    """
    Whole days from ``start`` to ``end``.

    Positive when ``end`` is later. Both are treated as calendar dates, so
    there are no fractional days or DST shifts.
    """
    return (parse_date(end) - parse_date(start)).days


def add_days(value: str, days: int) -> str:
    """Add (or subtract, for negative ``days``) days to a YYYY-MM-DD date."""
    return format_date(parse_date(value) + timedelta(days=days))


def previous_day(value: str) -> str:
    """Get the calendar day before ``value``."""
    return add_days(value, -1)


def is_valid_date(value: str) -> bool:
    """Check a string is YYYY-MM-DD shaped and a real calendar date."""
    if not isinstance(value, str) or not _DATE_RE.match(value):
        return False
    try:
        parse_date(value)
    except ValueError:
        return False
    return True


def date_score(value: str) -> int:
    """Sortable numeric key for a date (20250115 for 2025-01-15)."""
    return int(value.replace("-", ""))


def now_ms() -> int:
    """Current instant as epoch milliseconds."""
    return int(time.time() * 1000)
