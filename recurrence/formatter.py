"""Human-readable recurrence phrases.

The formatter composes a phrase from three parts:

- the period clause ("Every 2 weeks"), chosen by quantity;
- a qualifier when the rule isn't in its default form ("on Sun, Sat",
  "(on every second Sunday)");
- the end clause ("until Jan 1, 2020", "for 3 events").

Every word comes from a ``FormatTables`` instance supplied by the caller;
``default_tables()`` loads the English tables shipped in ``locales/``.
"""
from __future__ import annotations

import datetime as _dt
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from types import MappingProxyType
from typing import Any, Callable, Dict, Mapping, Optional

from core.date_utils import week_of_month
from core.yamlio import load_config

from .constants import DEFAULT_LOCALE, EVERY_DAY_OF_WEEK
from .errors import FormatError
from .model import WEEK, EndType, MonthlyDay, Period, Recurrence, Weekday

__all__ = [
    "PLURAL_RULES",
    "FormatTables",
    "RecurrenceFormatter",
    "default_end_date_format",
    "default_tables",
    "format_recurrence",
    "load_format_tables",
]

LOCALES_DIR = Path(__file__).resolve().parent / "locales"

# Ordinal key used for a weekday in the fifth week, which is treated as "last"
LAST_WEEK = -1

PluralRule = Callable[[int], str]

# Quantity categories for the plural rules used by shipped and common locales
PLURAL_RULES: Dict[str, PluralRule] = {
    "one_other": lambda n: "one" if n == 1 else "other",
    "one_includes_zero": lambda n: "one" if n in (0, 1) else "other",
    "other_only": lambda n: "other",
}


def default_end_date_format(value: _dt.datetime) -> str:
    """Format an end date like 'Jan 1, 2020'."""
    return f"{value:%b} {value.day}, {value.year}"


@dataclass(frozen=True)
class FormatTables:
    """Localized words and templates used to phrase a recurrence.

    Quantity templates are mappings from plural category ("one", "other",
    ...) to a template with a ``{count}`` field; ``plural`` picks the
    category for a count. Weekday tables are keyed by ``Weekday``; ordinals
    by week of month 1-4 and ``LAST_WEEK``.
    """
    none: str
    periods: Mapping[Period, Mapping[str, str]]
    weekday_abbr: Mapping[Weekday, str]
    weekday_names: Mapping[Weekday, str]
    ordinals: Mapping[int, str]
    weekly_option: str
    weekly_all: str
    monthly_option: str
    monthly_same_day: str
    monthly_same_week: str
    monthly_last_day: str
    end_date: str
    end_count: Mapping[str, str]
    list_separator: str = ", "
    merge: str = "{recurrence}; {end}"
    plural: PluralRule = field(default=PLURAL_RULES["one_other"])

    def quantity(self, templates: Mapping[str, str], count: int) -> str:
        """Pick and fill the template for ``count``."""
        template = templates.get(self.plural(count), templates.get("other"))
        if template is None:
            raise FormatError(f"No quantity template for {count}")
        return template.format(count=count)


class RecurrenceFormatter:
    """Formats recurrences with injected tables and end date format.

    Example usage:
        fmt = RecurrenceFormatter(default_tables())
        fmt.format(Recurrence(datetime(2018, 1, 1), Period.DAILY))  # 'Every day'
    """

    def __init__(
        self,
        tables: FormatTables,
        end_date_format: Callable[[_dt.datetime], str] = default_end_date_format,
    ):
        self.tables = tables
        self.end_date_format = end_date_format

    def format(self, r: Recurrence) -> str:
        t = self.tables
        if r.period == Period.NONE:
            return t.none

        # Every [freq] day/week/month/year
        text = t.quantity(t.periods[r.period], r.frequency)

        qualifier = None
        if not r.is_default:
            if r.period == Period.WEEKLY:
                qualifier = t.weekly_option.format(days=self.weekly_days(r))
            elif r.period == Period.MONTHLY:
                qualifier = t.monthly_option.format(option=self.monthly_option(r))
        if qualifier:
            text = f"{text} {qualifier}"

        end = None
        if r.end_type == EndType.BY_DATE and r.end_date is not None:
            end = t.end_date.format(date=self.end_date_format(r.end_date))
        elif r.end_type == EndType.BY_COUNT:
            end = t.quantity(t.end_count, r.end_count)
        if end:
            text = t.merge.format(recurrence=text, end=end)
        return text

    def weekly_days(self, r: Recurrence) -> str:
        """'every day of the week' or a list like 'Sun, Sat'."""
        if r.day_setting == EVERY_DAY_OF_WEEK:
            return self.tables.weekly_all
        names = [self.tables.weekday_abbr[day] for day in WEEK if r.day_setting & day]
        return self.tables.list_separator.join(names)

    def monthly_option(self, r: Recurrence) -> str:
        option = r.day_setting
        if option == MonthlyDay.SAME_DAY_OF_WEEK:
            return self.same_week_text(r.start)
        if option == MonthlyDay.LAST_DAY_OF_MONTH:
            return self.tables.monthly_last_day
        return self.tables.monthly_same_day

    def same_week_text(self, date: _dt.date) -> str:
        """Text like 'on every third Sunday' or 'on every last Friday' for ``date``."""
        week = week_of_month(date)
        ordinal = self.tables.ordinals[LAST_WEEK if week == 5 else week]
        weekday = self.tables.weekday_names[Weekday.of(date)]
        return self.tables.monthly_same_week.format(ordinal=ordinal, weekday=weekday)


def format_recurrence(
    r: Recurrence,
    tables: Optional[FormatTables] = None,
    end_date_format: Callable[[_dt.datetime], str] = default_end_date_format,
) -> str:
    """Format ``r`` in one call, with the English tables unless ``tables`` is given."""
    return RecurrenceFormatter(tables or default_tables(), end_date_format).format(r)


# -----------------------------------------------------------------------------
# Table loading
# -----------------------------------------------------------------------------


def _require(data: Mapping[str, Any], key: str, where: str) -> Any:
    if not isinstance(data, Mapping) or key not in data:
        raise FormatError(f"Format tables are missing '{key}' in {where}")
    return data[key]


def _weekday_table(data: Mapping[str, Any], where: str) -> Dict[Weekday, str]:
    return {day: str(_require(data, day.code, where)) for day in WEEK}


def _ordinal_key(key: Any) -> int:
    if str(key).strip().lower() == "last":
        return LAST_WEEK
    return int(key)


def tables_from_dict(data: Mapping[str, Any], plural: Optional[PluralRule] = None) -> FormatTables:
    """Build tables from a mapping shaped like ``locales/en.yaml``.

    ``plural`` overrides the rule named by the mapping's ``plural`` key.
    """
    if plural is None:
        rule_name = str(data.get("plural", "one_other"))
        if rule_name not in PLURAL_RULES:
            raise FormatError(f"Unknown plural rule: {rule_name}")
        plural = PLURAL_RULES[rule_name]

    periods = _require(data, "periods", "root")
    weekdays = _require(data, "weekdays", "root")
    weekly = _require(data, "weekly", "root")
    monthly = _require(data, "monthly", "root")
    end = _require(data, "end", "root")
    try:
        ordinals = {_ordinal_key(k): str(v) for k, v in _require(data, "ordinals", "root").items()}
    except (AttributeError, ValueError) as exc:
        raise FormatError(f"Invalid ordinals table: {exc}") from exc
    for key in (1, 2, 3, 4, LAST_WEEK):
        if key not in ordinals:
            raise FormatError(f"Format tables are missing ordinal {key}")

    return FormatTables(
        none=str(_require(data, "none", "root")),
        periods=MappingProxyType({
            p: MappingProxyType(dict(_require(periods, p.name.lower(), "periods")))
            for p in (Period.DAILY, Period.WEEKLY, Period.MONTHLY, Period.YEARLY)
        }),
        weekday_abbr=MappingProxyType(_weekday_table(_require(weekdays, "abbr", "weekdays"), "weekdays.abbr")),
        weekday_names=MappingProxyType(_weekday_table(_require(weekdays, "names", "weekdays"), "weekdays.names")),
        ordinals=MappingProxyType(ordinals),
        weekly_option=str(_require(weekly, "option", "weekly")),
        weekly_all=str(_require(weekly, "all", "weekly")),
        monthly_option=str(_require(monthly, "option", "monthly")),
        monthly_same_day=str(_require(monthly, "same_day", "monthly")),
        monthly_same_week=str(_require(monthly, "same_week", "monthly")),
        monthly_last_day=str(_require(monthly, "last_day", "monthly")),
        end_date=str(_require(end, "date", "end")),
        end_count=MappingProxyType(dict(_require(end, "count", "end"))),
        list_separator=str(weekly.get("separator", ", ")),
        merge=str(data.get("merge", "{recurrence}; {end}")),
        plural=plural,
    )


def load_format_tables(path: str, plural: Optional[PluralRule] = None) -> FormatTables:
    """Load tables from a YAML file."""
    data = load_config(path)
    if not data:
        raise FormatError(f"Format tables not found or empty: {path}")
    if not isinstance(data, dict):
        raise FormatError("Top-level YAML must be a mapping (dict)")
    return tables_from_dict(data, plural)


@lru_cache(maxsize=8)
def default_tables(locale: str = DEFAULT_LOCALE) -> FormatTables:
    """Tables shipped with the package for ``locale``."""
    path = LOCALES_DIR / f"{locale}.yaml"
    if not path.exists():
        raise FormatError(f"No shipped format tables for locale '{locale}'")
    return load_format_tables(str(path))
