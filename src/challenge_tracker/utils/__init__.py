"""Utility helpers."""

from .dates import (
    today,
    yesterday,
    days_between,
    add_days,
    previous_day,
    is_valid_date,
    parse_date,
    format_date,
    date_score,
    now_ms,
)

__all__ = [
    "today",
    "yesterday",
    "days_between",
    "add_days",
    "previous_day",
    "is_valid_date",
    "parse_date",
    "format_date",
    "date_score",
    "now_ms",
]
