"""Calendar helpers for day-granular task dates."""

from __future__ import annotations

import calendar
from datetime import date, datetime, timedelta

DATE_FORMAT = "%Y-%m-%d"


def parse_task_date(value: str | None) -> date | None:
    """Parse a ``YYYY-MM-DD`` string, returning ``None`` when absent or invalid."""
    if not isinstance(value, str) or not value:
        return None
    try:
        return datetime.strptime(value, DATE_FORMAT).date()
    except ValueError:
        return None


def format_task_date(value: date) -> str:
    return value.strftime(DATE_FORMAT)


def days_between(start: date, end: date) -> int:
    return (end - start).days


def clamp_date(year: int, month: int, day: int) -> date:
    """Build a date, moving an out-of-range day back to the last valid one."""
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, max(1, min(day, last_day)))


def add_days(value: date, days: int) -> date:
    return value + timedelta(days=days)


def add_months(value: date, months: int) -> date:
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    return clamp_date(year, month, value.day)


def add_years(value: date, years: int) -> date:
    return clamp_date(value.year + years, value.month, value.day)


def shift_task_date(value: str | None, days: int) -> str | None:
    """Shift a stored date string by a day delta; unparseable values are kept."""
    parsed = parse_task_date(value)
    if parsed is None:
        return value
    return format_task_date(add_days(parsed, days))
