"""Shared date and time utilities.

Provides day-of-week parsing, civil calendar arithmetic (month stepping,
week-of-month ordinals, last-day checks) and epoch-millisecond conversions.
All values are naive "civil" datetimes: no time zone is ever applied.
"""
from __future__ import annotations

import calendar as _calendar
import datetime as _dt
import re
from typing import Any, List, Optional, Union

from dateutil.relativedelta import relativedelta
from dateutil.relativedelta import weekday as rd_weekday

from .constants import FMT_DATETIME_SEC, FMT_DAY_START

__all__ = [
    "DAY_MAP",
    "DAY_NAMES",
    "EPOCH",
    "add_months",
    "days_in_month",
    "from_epoch_millis",
    "is_last_day_of_month",
    "is_same_day",
    "is_same_day_or_after",
    "normalize_day",
    "normalize_days",
    "nth_weekday_of_month",
    "parse_civil",
    "to_civil",
    "to_epoch_millis",
    "to_iso_str",
    "truncate_millis",
    "week_of_month",
]

# Day-of-week name/abbreviation to RRULE code mapping
DAY_MAP = {
    "monday": "MO",
    "mon": "MO",
    "tuesday": "TU",
    "tue": "TU",
    "tues": "TU",
    "wednesday": "WE",
    "wed": "WE",
    "thursday": "TH",
    "thu": "TH",
    "thur": "TH",
    "thurs": "TH",
    "friday": "FR",
    "fri": "FR",
    "saturday": "SA",
    "sat": "SA",
    "sunday": "SU",
    "sun": "SU",
}

# Day name sequence for iteration (abbreviated, lowercase, Monday first)
DAY_NAMES = ['mon', 'tue', 'wed', 'thu', 'fri', 'sat', 'sun']

EPOCH = _dt.datetime(1970, 1, 1)

_ONE_MS = _dt.timedelta(milliseconds=1)

CivilLike = Union[_dt.datetime, _dt.date, str]


def normalize_day(day_name: str) -> str:
    """Convert day name to two-letter RRULE code (e.g., 'Monday' -> 'MO')."""
    s = day_name.strip()
    if len(s) == 2 and s.upper() in DAY_MAP.values():
        return s.upper()
    return DAY_MAP.get(s.lower(), '')


def normalize_days(spec: str) -> List[str]:
    """Parse day specification to list of two-letter RRULE codes.

    Handles ranges like 'Mon to Fri', lists like 'Mon & Wed' and
    comma-separated RRULE codes like 'MO,WE'.

    Examples:
        'Monday' -> ['MO']
        'Mon to Fri' -> ['MO', 'TU', 'WE', 'TH', 'FR']
        'Mon & Wed' -> ['MO', 'WE']
        'SU,SA' -> ['SU', 'SA']
    """
    s = (spec or '').lower().replace('&amp;', '&').replace('&', ' & ')
    out: List[str] = []

    # Ranges like "Mon to Fri" or "Mon-Fri"
    m = re.search(r'\b(mon|tue|wed|thu|fri|sat|sun)\w*\b\s*(?:-|\bto\b)\s*\b(mon|tue|wed|thu|fri|sat|sun)\w*\b', s)
    if m:
        a, b = m.group(1), m.group(2)
        i1, i2 = DAY_NAMES.index(a), DAY_NAMES.index(b)
        rng = DAY_NAMES[i1:i2+1] if i1 <= i2 else (DAY_NAMES[i1:] + DAY_NAMES[:i2+1])
        return [DAY_MAP[d] for d in rng]

    for tok in re.split(r'[\s,;&]+', s):
        if not tok:
            continue
        code = normalize_day(tok)
        if not code and len(tok) > 3:
            code = DAY_MAP.get(tok[:3], '')
        if code and code not in out:
            out.append(code)
    return out


def to_civil(v: CivilLike) -> _dt.datetime:
    """Coerce a datetime, date or ISO string to a naive civil datetime.

    Raises:
        ValueError: for aware datetimes, unparseable strings or other types.
    """
    if isinstance(v, str):
        return parse_civil(v)
    if isinstance(v, _dt.datetime):
        if v.tzinfo is not None and v.utcoffset() is not None:
            raise ValueError(f"Expected a naive civil datetime, got aware value {v.isoformat()}")
        return v
    if isinstance(v, _dt.date):
        return _dt.datetime(v.year, v.month, v.day)
    raise ValueError(f"Expected a date or datetime, got {type(v).__name__}")


def parse_civil(text: str) -> _dt.datetime:
    """Parse 'YYYY-MM-DD' or an ISO datetime string into a civil datetime."""
    cleaned = (text or "").strip()
    if not cleaned:
        raise ValueError("Empty date string")
    try:
        value = _dt.datetime.fromisoformat(cleaned)
    except ValueError as exc:
        raise ValueError(f"Invalid date: {text!r}") from exc
    return to_civil(value)


def truncate_millis(dt: _dt.datetime) -> _dt.datetime:
    """Drop sub-millisecond precision."""
    return dt.replace(microsecond=dt.microsecond - dt.microsecond % 1000)


def to_epoch_millis(dt: _dt.datetime) -> int:
    """Milliseconds between the civil epoch and ``dt`` (floored)."""
    return (dt - EPOCH) // _ONE_MS


def from_epoch_millis(ms: int) -> _dt.datetime:
    return EPOCH + _dt.timedelta(milliseconds=ms)


def days_in_month(year: int, month: int) -> int:
    return _calendar.monthrange(year, month)[1]


def is_last_day_of_month(dt: _dt.date) -> bool:
    return dt.day == days_in_month(dt.year, dt.month)


def add_months(dt: _dt.datetime, months: int) -> _dt.datetime:
    """Shift by whole months, clamping the day to the target month's length.

    Examples:
        2018-01-31 + 1 month -> 2018-02-28
        2016-02-29 + 12 months -> 2017-02-28
    """
    return dt + relativedelta(months=months)


def week_of_month(dt: _dt.date) -> int:
    """Ordinal of ``dt``'s weekday within its month (1..5)."""
    return (dt.day - 1) // 7 + 1


def nth_weekday_of_month(year: int, month: int, weekday: int, nth: int) -> int:
    """Day of month of the ``nth`` ``weekday`` (0=Monday) in a month.

    ``nth`` of -1 selects the last such weekday.
    """
    first = _dt.date(year, month, 1)
    if nth < 0:
        # day=31 clamps to the month end, then steps back to the weekday
        return (first + relativedelta(day=31, weekday=rd_weekday(weekday)(-1))).day
    return (first + relativedelta(weekday=rd_weekday(weekday)(nth))).day


def is_same_day(a: _dt.date, b: _dt.date) -> bool:
    return (a.year, a.month, a.day) == (b.year, b.month, b.day)


def is_same_day_or_after(a: _dt.date, b: _dt.date) -> bool:
    """True if ``a`` falls on ``b``'s calendar day or later."""
    return (a.year, a.month, a.day) >= (b.year, b.month, b.day)


def to_iso_str(v: Any) -> Optional[str]:
    """Convert a value to ISO datetime string.

    Args:
        v: A datetime, date, string, or other value.

    Returns:
        ISO-formatted string, or None if input is None.
    """
    if v is None:
        return None
    if isinstance(v, str):
        return v
    if isinstance(v, _dt.datetime):
        return v.strftime(FMT_DATETIME_SEC)
    if isinstance(v, _dt.date):
        return v.strftime(FMT_DAY_START)
    return str(v)
