"""Rule descriptions as plain mappings and YAML files.

A rule file looks like::

    start: 2018-01-15T09:00:00
    period: weekly        # none, daily, weekly, monthly, yearly
    frequency: 2
    days: Mon & Fri       # weekly only; 'MO,FR' or a list also work
    count: 10             # or: until: 2018-06-30

Monthly rules take ``monthly: same_day | same_weekday | last_day``. A file
may instead hold a single ``rrule:`` line in the format of
``recurrence.rrule``.
"""
from __future__ import annotations

import logging
import re
from typing import Any, Dict, Mapping

from core.date_utils import normalize_days
from core.yamlio import dump_config, load_config

from .errors import FormatError, InvalidArgument
from .model import EndType, MonthlyDay, Period, Recurrence, days_mask
from .rrule import from_rule_text

LOG = logging.getLogger(__name__)

PERIOD_NAMES: Dict[str, Period] = {
    "none": Period.NONE,
    "daily": Period.DAILY,
    "weekly": Period.WEEKLY,
    "monthly": Period.MONTHLY,
    "yearly": Period.YEARLY,
}

MONTHLY_NAMES: Dict[str, MonthlyDay] = {
    "same_day": MonthlyDay.SAME_DAY_OF_MONTH,
    "same_day_of_month": MonthlyDay.SAME_DAY_OF_MONTH,
    "same_weekday": MonthlyDay.SAME_DAY_OF_WEEK,
    "same_day_of_week": MonthlyDay.SAME_DAY_OF_WEEK,
    "last_day": MonthlyDay.LAST_DAY_OF_MONTH,
    "last_day_of_month": MonthlyDay.LAST_DAY_OF_MONTH,
}

_KNOWN_KEYS = {"start", "period", "frequency", "days", "monthly", "until", "count", "rrule"}


def _key(value: Any) -> str:
    return str(value).strip().lower().replace("-", "_")


def parse_period(value: Any) -> Period:
    name = _key(value)
    if name not in PERIOD_NAMES:
        raise InvalidArgument(f"Unknown period: {value!r} (expected one of {', '.join(PERIOD_NAMES)})")
    return PERIOD_NAMES[name]


def parse_monthly(value: Any) -> MonthlyDay:
    name = _key(value)
    if name not in MONTHLY_NAMES:
        raise InvalidArgument(f"Unknown monthly setting: {value!r}")
    return MONTHLY_NAMES[name]


def parse_days(value: Any) -> int:
    """Weekday mask from 'Mon to Fri', 'MO,WE', a list of codes or an int mask."""
    if isinstance(value, str):
        codes = normalize_days(value)
        if not codes:
            raise InvalidArgument(f"No weekdays in {value!r}")
        return days_mask(codes)
    if isinstance(value, (list, tuple)) and all(isinstance(v, str) for v in value):
        return days_mask([c for v in value for c in normalize_days(v)])
    return days_mask(value)


def _whole_number(value: Any, what: str) -> int:
    """An int, or a string of digits; floats and booleans are rejected."""
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, str) and re.fullmatch(r"\s*-?\d+\s*", value):
        return int(value)
    raise InvalidArgument(f"Invalid {what}: {value!r} is not a whole number")


def rule_from_dict(data: Mapping[str, Any]) -> Recurrence:
    """Build a rule from a mapping of rule file keys.

    Raises:
        InvalidArgument: for unknown keys, values or invalid combinations.
        FormatError: for a malformed ``rrule`` line.
    """
    unknown = set(data) - _KNOWN_KEYS
    if unknown:
        raise InvalidArgument(f"Unknown rule keys: {', '.join(sorted(map(str, unknown)))}")

    if data.get("rrule"):
        if len([k for k in data if data.get(k) is not None]) > 1:
            raise InvalidArgument("'rrule' cannot be combined with other rule keys")
        return from_rule_text(str(data["rrule"]))

    if data.get("start") is None:
        raise InvalidArgument("Rule must specify a start date")
    if data.get("until") is not None and data.get("count") is not None:
        raise InvalidArgument("'until' and 'count' are mutually exclusive")

    period = parse_period(data.get("period", "none"))
    for key, owner in (("days", Period.WEEKLY), ("monthly", Period.MONTHLY)):
        if data.get(key) is not None and period != owner:
            raise InvalidArgument(f"'{key}' only applies to {owner.name.lower()} rules")
    day_setting = 0
    if period == Period.WEEKLY and data.get("days") is not None:
        day_setting = parse_days(data["days"])
    elif period == Period.MONTHLY and data.get("monthly") is not None:
        day_setting = parse_monthly(data["monthly"])

    end_type = EndType.NEVER
    if data.get("until") is not None:
        end_type = EndType.BY_DATE
    elif data.get("count") is not None:
        end_type = EndType.BY_COUNT

    frequency = _whole_number(data.get("frequency", 1), "frequency")
    count = _whole_number(data["count"], "count") if end_type == EndType.BY_COUNT else 0

    rule = Recurrence(
        start=data["start"],
        period=period,
        frequency=frequency,
        day_setting=day_setting,
        end_type=end_type,
        end_count=count,
        end_date=data.get("until"),
    )
    LOG.debug("built %s rule from mapping", rule.period.name)
    return rule


def load_rule(path: str) -> Recurrence:
    """Read a rule from a YAML file."""
    data = load_config(path)
    if not data:
        raise FormatError(f"Rule file not found or empty: {path}")
    if not isinstance(data, dict):
        raise FormatError("Top-level YAML must be a mapping (dict)")
    return rule_from_dict(data)


def rule_to_dict(rule: Recurrence) -> Dict[str, Any]:
    """Mapping accepted by ``rule_from_dict``; the inverse of loading."""
    out: Dict[str, Any] = {"start": rule.start.isoformat(), "period": rule.period.name.lower()}
    if rule.period == Period.NONE:
        return out
    out["frequency"] = rule.frequency
    if rule.period == Period.WEEKLY:
        out["days"] = rule.to_dict()["days"]
    elif rule.period == Period.MONTHLY:
        out["monthly"] = MonthlyDay(rule.day_setting).name.lower()
    if rule.end_type == EndType.BY_DATE and rule.end_date is not None:
        out["until"] = rule.end_date.isoformat()
    elif rule.end_type == EndType.BY_COUNT:
        out["count"] = rule.end_count
    return out


def save_rule(path: str, rule: Recurrence) -> None:
    """Write ``rule`` as a YAML rule file."""
    dump_config(path, rule_to_dict(rule))
