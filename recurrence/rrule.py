"""RFC 5545 style rule lines.

Converts a recurrence to a single ``KEY=VALUE;...`` line and back. Keys
are always written in the same order, which external consumers rely on::

    DTSTART=20180115T132536;FREQ=WEEKLY;INTERVAL=2;BYDAY=MO,FR;COUNT=10

See https://tools.ietf.org/html/rfc5545 (section 3.3.10).
"""
from __future__ import annotations

import datetime as _dt
import logging
from typing import Dict, List, Optional

from core.constants import FMT_RRULE_DATETIME
from core.date_utils import week_of_month

from .constants import RRULE_KEYS, RRULE_PREFIX
from .errors import FormatError, InvalidArgument
from .model import WEEK, EndType, MonthlyDay, Period, Recurrence, Weekday

LOG = logging.getLogger(__name__)

_FREQ_VALUES = {
    "DAILY": Period.DAILY,
    "WEEKLY": Period.WEEKLY,
    "MONTHLY": Period.MONTHLY,
    "YEARLY": Period.YEARLY,
}


def _format_date(value: _dt.datetime) -> str:
    return value.strftime(FMT_RRULE_DATETIME)


def to_rule_text(rule: Recurrence) -> Optional[str]:
    """Format ``rule`` as a rule line.

    Returns None for a rule that does not repeat, since a rule line can't
    express it.
    """
    if rule.period == Period.NONE:
        return None

    start = rule.start
    parts: List[str] = [
        f"DTSTART={_format_date(start)}",
        f"FREQ={rule.period.name}",
        f"INTERVAL={rule.frequency}",
    ]

    if rule.period == Period.WEEKLY:
        parts.append("BYDAY=" + ",".join(day.code for day in WEEK if rule.day_setting & day))
    elif rule.period == Period.MONTHLY:
        option = rule.day_setting
        if option == MonthlyDay.SAME_DAY_OF_MONTH:
            parts.append(f"BYMONTHDAY={start.day}")
        elif option == MonthlyDay.SAME_DAY_OF_WEEK:
            week = week_of_month(start)
            parts.append(f"BYSETPOS={-1 if week == 5 else week}")
            parts.append(f"BYDAY={Weekday.of(start).code}")
        else:
            parts.append("BYMONTHDAY=-1")
    elif rule.period == Period.YEARLY:
        parts.append(f"BYMONTH={start.month}")
        parts.append(f"BYMONTHDAY={start.day}")

    if rule.end_type == EndType.BY_DATE and rule.end_date is not None:
        parts.append(f"UNTIL={_format_date(rule.end_date)}")
    elif rule.end_type == EndType.BY_COUNT:
        parts.append(f"COUNT={rule.end_count}")

    return ";".join(parts)


def _split_attributes(text: str) -> Dict[str, str]:
    body = text.strip()
    if body.upper().startswith(RRULE_PREFIX):
        body = body[len(RRULE_PREFIX):]
    attributes: Dict[str, str] = {}
    for item in body.split(";"):
        if not item.strip():
            continue
        key, sep, value = item.partition("=")
        key = key.strip().upper()
        if not sep or not value.strip():
            raise FormatError(f"Malformed rule attribute: {item!r}")
        if key not in RRULE_KEYS:
            raise FormatError(f"Unsupported rule attribute: {key}")
        if key in attributes:
            raise FormatError(f"Duplicate rule attribute: {key}")
        attributes[key] = value.strip()
    return attributes


def _parse_date(value: str, key: str) -> _dt.datetime:
    try:
        return _dt.datetime.strptime(value, FMT_RRULE_DATETIME)
    except ValueError:
        raise FormatError(f"Invalid {key} value: {value!r}") from None


def _parse_int(value: str, key: str) -> int:
    try:
        return int(value)
    except ValueError:
        raise FormatError(f"Invalid {key} value: {value!r}") from None


def from_rule_text(text: str) -> Recurrence:
    """Parse a rule line written by ``to_rule_text``.

    An ``RRULE:`` prefix is accepted. Day settings that follow from the start
    date (month day, weekday position) are recomputed from ``DTSTART``.

    Raises:
        FormatError: if the line is malformed or describes an invalid rule.
    """
    attributes = _split_attributes(text or "")

    if "DTSTART" not in attributes:
        raise FormatError("Recurrence rule must specify start date (DTSTART)")
    start = _parse_date(attributes["DTSTART"], "DTSTART")

    freq = attributes.get("FREQ", "").upper()
    if freq not in _FREQ_VALUES:
        raise FormatError(f"Unsupported recurrence period: {freq or 'missing FREQ'}")
    period = _FREQ_VALUES[freq]
    frequency = _parse_int(attributes.get("INTERVAL", "1"), "INTERVAL")

    day_setting = 0
    if period == Period.WEEKLY:
        if "BYDAY" not in attributes:
            raise FormatError("Weekly recurrence must specify days (BYDAY)")
        try:
            for code in attributes["BYDAY"].split(","):
                day_setting |= Weekday.from_code(code)
        except InvalidArgument as exc:
            raise FormatError(str(exc)) from exc
    elif period == Period.MONTHLY:
        if "BYSETPOS" in attributes:
            day_setting = MonthlyDay.SAME_DAY_OF_WEEK
        elif attributes.get("BYMONTHDAY") == "-1":
            day_setting = MonthlyDay.LAST_DAY_OF_MONTH
        else:
            day_setting = MonthlyDay.SAME_DAY_OF_MONTH

    if "UNTIL" in attributes and "COUNT" in attributes:
        raise FormatError("UNTIL and COUNT are mutually exclusive")
    end_type = EndType.NEVER
    end_count = 0
    end_date = None
    if "UNTIL" in attributes:
        end_type = EndType.BY_DATE
        end_date = _parse_date(attributes["UNTIL"], "UNTIL")
    elif "COUNT" in attributes:
        end_type = EndType.BY_COUNT
        end_count = _parse_int(attributes["COUNT"], "COUNT")

    try:
        rule = Recurrence(
            start=start,
            period=period,
            frequency=frequency,
            day_setting=day_setting,
            end_type=end_type,
            end_count=end_count,
            end_date=end_date,
        )
    except InvalidArgument as exc:
        raise FormatError(f"Rule does not describe a valid recurrence: {exc}") from exc
    LOG.debug("parsed %s rule starting %s", rule.period.name, start.isoformat())
    return rule
