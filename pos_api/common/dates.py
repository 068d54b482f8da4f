"""
Calendar helpers shared by the reports and sales modules.

All period boundaries are computed in the shop's local timezone (APP_TIMEZONE)
and are inclusive on both ends: a month runs from the 1st at 00:00:00 to the
last day at 23:59:59, a year from January 1 00:00:00 to December 31 23:59:59.
"""
import calendar
import os
from datetime import datetime
from typing import Optional, Tuple

import pytz
from fastapi import HTTPException, status

APP_TZ = pytz.timezone(os.environ.get("APP_TIMEZONE", "Asia/Jakarta"))


def now_local() -> datetime:
    """Current time in the application timezone."""
    return datetime.now(APP_TZ)


def ensure_aware(value: datetime) -> datetime:
    """
    Attach the application timezone to naive datetimes.

    Firestore hands back timezone-aware UTC timestamps, but values created in
    tests or migrated from older documents may be naive; those are taken to be
    local time.
    """
    if value.tzinfo is None:
        return APP_TZ.localize(value)
    return value


def day_bounds(day: datetime) -> Tuple[datetime, datetime]:
    """Start and end of the local calendar day containing `day`."""
    local = ensure_aware(day).astimezone(APP_TZ)
    start = APP_TZ.localize(datetime(local.year, local.month, local.day, 0, 0, 0))
    end = APP_TZ.localize(datetime(local.year, local.month, local.day, 23, 59, 59))
    return start, end


def month_bounds(year: int, month: int) -> Tuple[datetime, datetime]:
    """First and last second of a calendar month."""
    last_day = calendar.monthrange(year, month)[1]
    start = APP_TZ.localize(datetime(year, month, 1, 0, 0, 0))
    end = APP_TZ.localize(datetime(year, month, last_day, 23, 59, 59))
    return start, end


def year_bounds(year: int) -> Tuple[datetime, datetime]:
    """First and last second of a calendar year."""
    start = APP_TZ.localize(datetime(year, 1, 1, 0, 0, 0))
    end = APP_TZ.localize(datetime(year, 12, 31, 23, 59, 59))
    return start, end


def period_bounds(
    year: Optional[int] = None,
    month: Optional[int] = None
) -> Tuple[Optional[datetime], Optional[datetime]]:
    """
    Resolve the optional year/month filter used by the reports.

    Args:
        year: Calendar year, or None for no date filter
        month: Month 1-12; only meaningful together with a year

    Returns:
        (start, end) in the application timezone, or (None, None) when unfiltered

    Raises:
        HTTPException: If a month is given without a year, or the month is out of range
    """
    if month is not None and year is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="A month filter requires a year"
        )
    if year is None:
        return None, None
    if month is None:
        return year_bounds(year)
    if not 1 <= month <= 12:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid month: {month}. Expected 1-12"
        )
    return month_bounds(year, month)


def in_range(value: Optional[datetime], start: Optional[datetime], end: Optional[datetime]) -> bool:
    """Inclusive range check; a missing bound is open."""
    if value is None:
        return start is None and end is None
    value = ensure_aware(value)
    if start is not None and value < start:
        return False
    if end is not None and value > end:
        return False
    return True
