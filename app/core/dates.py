"""
Calendar Day Helpers

Every place that buckets by day (daily page-view rows, dashboard day and
month buckets) goes through these helpers so they agree on where a day
starts. Days are computed in settings.SITE_TIMEZONE; timestamps are
stored in UTC.
"""

import calendar
from datetime import date, datetime, time, timedelta, timezone, tzinfo
from functools import lru_cache
from typing import Optional, Tuple
from zoneinfo import ZoneInfo

from app.core.setting import settings


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


@lru_cache(maxsize=None)
def get_timezone(name: Optional[str] = None) -> tzinfo:
    """
    Resolve an IANA time zone name (defaults to settings.SITE_TIMEZONE).

    Raises:
        ZoneInfoNotFoundError: If the name is unknown
    """
    name = name or settings.SITE_TIMEZONE
    if name.upper() == "UTC":
        return timezone.utc
    return ZoneInfo(name)


def local_today(now: Optional[datetime] = None, tz: Optional[tzinfo] = None) -> date:
    """
    Calendar day of `now` in the site time zone.

    Naive datetimes are taken to be UTC.
    """
    now = now or utcnow()
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return now.astimezone(tz or get_timezone()).date()


def start_of_day_utc(day: date, tz: Optional[tzinfo] = None) -> datetime:
    """UTC instant of local midnight at the start of `day`."""
    local_midnight = datetime.combine(day, time.min, tzinfo=tz or get_timezone())
    return local_midnight.astimezone(timezone.utc)


def day_bounds_utc(day: date, tz: Optional[tzinfo] = None) -> Tuple[datetime, datetime]:
    """Half-open [start, end) UTC range covering the local calendar day."""
    return start_of_day_utc(day, tz), start_of_day_utc(day + timedelta(days=1), tz)


def shift_months(day: date, months: int) -> date:
    """
    Move `day` by a number of calendar months, clamping the day of month.

    Example:
        shift_months(date(2024, 3, 31), -1) -> date(2024, 2, 29)
    """
    month_index = day.year * 12 + (day.month - 1) + months
    year, month = divmod(month_index, 12)
    month += 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(day.day, last_day))


def month_start(day: date) -> date:
    return day.replace(day=1)
