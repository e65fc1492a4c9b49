"""
Calendar helpers shared by the engines.

Month arithmetic clamps the day to the last valid day of the target month
(adding one month to Jan 31 yields Feb 28 or 29).
"""

from __future__ import annotations

import calendar
from datetime import date, datetime, timedelta
from typing import Optional
from zoneinfo import ZoneInfo

MONTH_KEY_FORMAT = "%Y-%m"


def add_months(dt: date, months: int) -> date:
    """Return a new date a number of months after ``dt``."""
    year = dt.year + (dt.month - 1 + months) // 12
    month = (dt.month - 1 + months) % 12 + 1
    day = min(dt.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def month_key(dt: date) -> str:
    """Calendar-month grouping key, ``YYYY-MM``."""
    return dt.strftime(MONTH_KEY_FORMAT)


def same_month(a: date, b: date) -> bool:
    return a.year == b.year and a.month == b.month


def start_of_month(dt: date) -> date:
    return date(dt.year, dt.month, 1)


def end_of_month(dt: date) -> date:
    return date(dt.year, dt.month, calendar.monthrange(dt.year, dt.month)[1])


def end_of_year(dt: date) -> date:
    return date(dt.year, 12, 31)


def as_date(value: date | datetime) -> date:
    """Normalize a datetime to its calendar date; dates pass through."""
    if isinstance(value, datetime):
        return value.date()
    return value


def as_aware(value: datetime, timezone: Optional[str] = None) -> datetime:
    """Attach ``timezone`` (UTC when not given) to a naive datetime; aware ones pass through."""
    if value.tzinfo is None:
        return value.replace(tzinfo=ZoneInfo(timezone or "UTC"))
    return value


def local_date(value: datetime, timezone: Optional[str] = None) -> date:
    """Calendar date of ``value``; aware datetimes are read in ``timezone`` first."""
    if value.tzinfo is None:
        return value.date()
    return value.astimezone(ZoneInfo(timezone or "UTC")).date()


def today(timezone: Optional[str] = None) -> date:
    """Current calendar date in ``timezone`` (UTC when not given)."""
    tz = ZoneInfo(timezone or "UTC")
    return datetime.now(tz).date()


def truncate(dt: date, unit: str) -> date:
    """
    Truncate a date to the start of its bucket.

    Units: day, week (Monday start), month, quarter, year.
    """
    if unit == "day":
        return dt
    if unit == "week":
        return dt - timedelta(days=dt.weekday())
    if unit == "month":
        return date(dt.year, dt.month, 1)
    if unit == "quarter":
        return date(dt.year, 3 * ((dt.month - 1) // 3) + 1, 1)
    if unit == "year":
        return date(dt.year, 1, 1)
    raise ValueError(f"Unsupported period unit: {unit}")


def next_bucket(dt: date, unit: str) -> date:
    """Start of the bucket following the one that starts at ``dt``."""
    if unit == "day":
        return dt + timedelta(days=1)
    if unit == "week":
        return dt + timedelta(weeks=1)
    if unit == "month":
        return add_months(dt, 1)
    if unit == "quarter":
        return add_months(dt, 3)
    if unit == "year":
        return add_months(dt, 12)
    raise ValueError(f"Unsupported period unit: {unit}")
