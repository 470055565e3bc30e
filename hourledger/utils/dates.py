"""
Date helpers: month ranges, clock times and the configured local day
"""
import calendar
from datetime import date, datetime
from zoneinfo import ZoneInfo


def today_local(tz_name: str) -> date:
    """Current calendar day in the given IANA timezone."""
    return datetime.now(tz=ZoneInfo(tz_name)).date()


def month_bounds(year: int, month: int) -> tuple[date, date]:
    """First and last day of a month (inclusive)."""
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


def in_month(d: date | None, year: int, month: int) -> bool:
    return d is not None and d.year == year and d.month == month


def add_months(d: date, months: int) -> date:
    """Shift by whole months, clamping the day to the target month's length."""
    total = d.year * 12 + (d.month - 1) + months
    year, month = divmod(total, 12)
    month += 1
    day = min(d.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def parse_clock(value: str) -> int | None:
    """
    "HH:MM" -> minutes since midnight

    Returns None when the value is not a valid clock time.
    """
    parts = value.strip().split(":")
    if len(parts) != 2:
        return None
    try:
        hours, minutes = int(parts[0]), int(parts[1])
    except ValueError:
        return None
    if not (0 <= hours <= 24 and 0 <= minutes < 60):
        return None
    return hours * 60 + minutes


def compute_duration_minutes(start_time: str, end_time: str) -> int:
    """
    Minutes between two "HH:MM" clock times on the same day.

    Unparseable input yields 0. A reversed range yields a negative number;
    callers decide what that means.
    """
    start = parse_clock(start_time)
    end = parse_clock(end_time)
    if start is None or end is None:
        return 0
    return end - start
