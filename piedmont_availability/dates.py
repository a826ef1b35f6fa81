"""Pacific-time date helpers. Piedmont Springs is in Oakland, CA."""

from datetime import date, datetime, timedelta
from typing import Any, Optional

import pytz

from piedmont_availability import config

DATE_FORMAT = "%Y-%m-%d"


def now_local(tz_name: str = config.TIMEZONE, now: Optional[datetime] = None) -> datetime:
    tz = pytz.timezone(tz_name)
    if now is None:
        return datetime.now(tz)
    if now.tzinfo is None:
        now = pytz.utc.localize(now)
    return now.astimezone(tz)


def today(tz_name: str = config.TIMEZONE, now: Optional[datetime] = None) -> str:
    """Today's date in the spa's timezone as YYYY-MM-DD."""
    return now_local(tz_name, now).strftime(DATE_FORMAT)


def date_plus_days(days: int, tz_name: str = config.TIMEZONE, now: Optional[datetime] = None) -> str:
    local_today = now_local(tz_name, now).date()
    return (local_today + timedelta(days=days)).strftime(DATE_FORMAT)


def parse_date(date_str: str) -> date:
    return datetime.strptime(date_str, DATE_FORMAT).date()


def day_bounds(date_str: str, tz_name: str = config.TIMEZONE) -> tuple[str, str]:
    """Start (00:00) and end (23:59) of a local day as ISO strings with that day's UTC offset."""
    tz = pytz.timezone(tz_name)
    day = parse_date(date_str)
    start = tz.localize(datetime(day.year, day.month, day.day, 0, 0))
    end = tz.localize(datetime(day.year, day.month, day.day, 23, 59))
    return start.isoformat(), end.isoformat()


def clamp_days(value: Any) -> int:
    """Coerces a requested day count into [MIN_DAYS, MAX_DAYS]; junk gives DEFAULT_DAYS."""
    if value is None or value == "":
        return config.DEFAULT_DAYS
    try:
        days = int(value)
    except (TypeError, ValueError):
        return config.DEFAULT_DAYS
    return min(max(days, config.MIN_DAYS), config.MAX_DAYS)
