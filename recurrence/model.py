"""Recurrence rule value type and its mutations.

A ``Recurrence`` is an immutable value. Every change is expressed as a
mutation record (``SetFrequency``, ``SetEndByDate``, ...) and applied with
``apply_mutation``, which returns a new rule or raises ``InvalidArgument``.
Construction re-establishes the rule invariants, so degenerate inputs are
folded into their canonical form:

- a ``NONE`` rule always has frequency 1, no day setting and never ends;
- a weekly rule repeating on every day with frequency 1 becomes daily;
- a monthly "last day" rule whose start isn't a month end becomes
  "same day of month";
- an end date on the start's day turns the rule into ``NONE``.
"""
from __future__ import annotations

import datetime as _dt
from dataclasses import dataclass, field, replace
from enum import IntEnum, IntFlag
from typing import Any, Callable, Dict, List, Optional, Tuple, Type, Union

from core.date_utils import is_last_day_of_month, is_same_day, is_same_day_or_after, to_civil, truncate_millis

from .constants import BYDAY_VALUES, EVERY_DAY_OF_WEEK
from .errors import InvalidArgument

DateLike = Union[_dt.datetime, _dt.date, str]


class Period(IntEnum):
    """Repeat unit. Values are the binary record codes."""
    NONE = -1
    DAILY = 0
    WEEKLY = 1
    MONTHLY = 2
    YEARLY = 3


class MonthlyDay(IntEnum):
    """How a monthly rule picks its day in each month."""
    SAME_DAY_OF_MONTH = 0
    SAME_DAY_OF_WEEK = 1
    LAST_DAY_OF_MONTH = 2


class EndType(IntEnum):
    NEVER = 0
    BY_DATE = 1
    BY_COUNT = 2


class Weekday(IntFlag):
    """Weekday bits of a weekly day setting (Sunday is bit 1)."""
    SUNDAY = 1 << 1
    MONDAY = 1 << 2
    TUESDAY = 1 << 3
    WEDNESDAY = 1 << 4
    THURSDAY = 1 << 5
    FRIDAY = 1 << 6
    SATURDAY = 1 << 7

    @classmethod
    def of(cls, day: _dt.date) -> "Weekday":
        """Weekday bit for a date."""
        return cls(1 << (day.isoweekday() % 7 + 1))

    @classmethod
    def from_code(cls, code: str) -> "Weekday":
        """Weekday for a two-letter RRULE code such as 'MO'."""
        try:
            return cls(1 << (BYDAY_VALUES.index(code.strip().upper()) + 1))
        except ValueError:
            raise InvalidArgument(f"Unknown weekday code: {code!r}") from None

    @property
    def code(self) -> str:
        return BYDAY_VALUES[self.index]

    @property
    def index(self) -> int:
        """Position in the Sunday-first week (0..6)."""
        return self.value.bit_length() - 2


# Sunday-first week order, used wherever days are listed
WEEK: Tuple[Weekday, ...] = (
    Weekday.SUNDAY,
    Weekday.MONDAY,
    Weekday.TUESDAY,
    Weekday.WEDNESDAY,
    Weekday.THURSDAY,
    Weekday.FRIDAY,
    Weekday.SATURDAY,
)


def days_mask(days: Any) -> int:
    """Build a weekday mask from an int, a ``Weekday``, 'MO,WE' or an iterable of codes/weekdays."""
    if isinstance(days, int):
        return int(days)
    if isinstance(days, str):
        days = [d for d in days.replace(";", ",").split(",") if d.strip()]
    mask = 0
    for day in days:
        if isinstance(day, Weekday):
            mask |= day
        elif isinstance(day, str):
            mask |= Weekday.from_code(day)
        else:
            raise InvalidArgument(f"Invalid weekday: {day!r}")
    return mask


def coerce_moment(value: DateLike, what: str) -> _dt.datetime:
    try:
        return truncate_millis(to_civil(value))
    except ValueError as exc:
        raise InvalidArgument(f"Invalid {what}: {exc}") from exc


def _enum(enum_cls: Type[IntEnum], value: Any, what: str) -> Any:
    try:
        return enum_cls(value)
    except ValueError:
        raise InvalidArgument(f"Invalid {what}: {value!r}") from None


@dataclass(frozen=True)
class Recurrence:
    """
    Recurrence rule anchored on a start moment.

    Usage:
        r = Recurrence(datetime(2018, 1, 1), Period.WEEKLY)
        r = r.set_frequency(2).set_weekly_days(Weekday.MONDAY | Weekday.FRIDAY)
        r.find(None, 5)  # next five occurrences after the start

    ``day_setting`` holds a ``Weekday`` mask for weekly rules and a
    ``MonthlyDay`` value for monthly rules; it is 0 otherwise. A weekly rule
    built with a day setting of 0 repeats on the start's weekday.
    """
    start: _dt.datetime
    period: Period = Period.NONE
    frequency: int = 1
    day_setting: int = 0
    end_type: EndType = EndType.NEVER
    end_count: int = 0
    end_date: Optional[_dt.datetime] = field(default=None)

    def __post_init__(self):
        """Coerce field types and fold the rule into its canonical form."""
        # Use object.__setattr__ because dataclass is frozen
        def put(name: str, value: Any) -> None:
            object.__setattr__(self, name, value)

        start = coerce_moment(self.start, "start date")
        put("start", start)
        period = _enum(Period, self.period, "period")
        put("period", period)
        end_type = _enum(EndType, self.end_type, "end type")
        put("end_type", end_type)

        if period == Period.NONE:
            self._reset_to_none()
            return

        if not isinstance(self.frequency, int) or self.frequency < 1:
            raise InvalidArgument("Frequency must be 1 or greater")

        days = self.day_setting
        if period == Period.WEEKLY:
            days = int(days)
            if days < 0 or days > EVERY_DAY_OF_WEEK or days & 1:
                raise InvalidArgument(f"Weekly setting isn't valid: {days}")
            if days == 0:
                days = Weekday.of(start).value
            if days == EVERY_DAY_OF_WEEK and self.frequency == 1:
                put("period", Period.DAILY)
                days = 0
        elif period == Period.MONTHLY:
            days = _enum(MonthlyDay, days, "monthly setting")
            if days == MonthlyDay.LAST_DAY_OF_MONTH and not is_last_day_of_month(start):
                days = MonthlyDay.SAME_DAY_OF_MONTH
        else:
            days = 0
        put("day_setting", int(days))

        if end_type == EndType.NEVER:
            put("end_count", 0)
            put("end_date", None)
        elif end_type == EndType.BY_COUNT:
            if not isinstance(self.end_count, int) or self.end_count < 1:
                raise InvalidArgument("End count must be 1 or greater")
            put("end_date", None)
        else:
            if self.end_date is None:
                raise InvalidArgument("End date is required when ending by date")
            end = coerce_moment(self.end_date, "end date")
            if is_same_day(end, start):
                # Start and end on the same day: nothing repeats
                self._reset_to_none()
                return
            if not is_same_day_or_after(end, start):
                raise InvalidArgument("End date cannot be before start date")
            put("end_date", end)
            put("end_count", 0)

    def _reset_to_none(self) -> None:
        for name, value in (
            ("period", Period.NONE),
            ("frequency", 1),
            ("day_setting", 0),
            ("end_type", EndType.NEVER),
            ("end_count", 0),
            ("end_date", None),
        ):
            object.__setattr__(self, name, value)

    # ------------------------------------------------------------------
    # Derived state
    # ------------------------------------------------------------------

    @property
    def is_default(self) -> bool:
        """True if the rule is the simplest form of its period.

        Default rules get a terser phrase; occurrences are unaffected.
        """
        if self.period == Period.NONE:
            return True
        return (
            self.frequency == 1
            and self.end_type == EndType.NEVER
            and (self.period != Period.WEEKLY or self.day_setting == Weekday.of(self.start))
            and (self.period != Period.MONTHLY or self.day_setting == MonthlyDay.SAME_DAY_OF_MONTH)
        )

    @property
    def weekly_days(self) -> Weekday:
        """Weekday mask of a weekly rule, empty otherwise."""
        if self.period != Period.WEEKLY:
            return Weekday(0)
        return Weekday(self.day_setting)

    @property
    def monthly_day(self) -> Optional[MonthlyDay]:
        if self.period != Period.MONTHLY:
            return None
        return MonthlyDay(self.day_setting)

    def is_repeating_on(self, days: Any) -> bool:
        """True if weekly and repeating on all of ``days``."""
        mask = days_mask(days)
        return self.period == Period.WEEKLY and (self.day_setting & mask) == mask

    def equals(self, other: Any, *, ignore_start: bool = False) -> bool:
        """Compare rules, optionally ignoring the start moment.

        ``ignore_start`` matches a rule against presets whatever their anchor.
        """
        if not isinstance(other, Recurrence):
            return False
        if not ignore_start:
            return self == other
        return self._settings() == other._settings()

    def _settings(self) -> Tuple[Any, ...]:
        return (self.period, self.frequency, self.day_setting, self.end_type, self.end_count, self.end_date)

    def copy(self) -> "Recurrence":
        return replace(self)

    def to_dict(self) -> Dict[str, Any]:
        """Plain representation for JSON/YAML output."""
        out: Dict[str, Any] = {
            "start": self.start.isoformat(),
            "period": self.period.name.lower(),
            "frequency": self.frequency,
            "default": self.is_default,
        }
        if self.period == Period.WEEKLY:
            out["days"] = [d.code for d in WEEK if self.day_setting & d]
        elif self.period == Period.MONTHLY:
            out["monthly"] = MonthlyDay(self.day_setting).name.lower()
        if self.end_type == EndType.BY_DATE and self.end_date is not None:
            out["until"] = self.end_date.isoformat()
        elif self.end_type == EndType.BY_COUNT:
            out["count"] = self.end_count
        return out

    # ------------------------------------------------------------------
    # Builder-style mutators
    # ------------------------------------------------------------------

    def set_period(self, period: Period) -> "Recurrence":
        return apply_mutation(self, SetPeriod(period))

    def set_frequency(self, frequency: int) -> "Recurrence":
        return apply_mutation(self, SetFrequency(frequency))

    def set_weekly_days(self, days: Any) -> "Recurrence":
        return apply_mutation(self, SetWeeklyDays(days_mask(days)))

    def set_monthly_day(self, option: MonthlyDay) -> "Recurrence":
        return apply_mutation(self, SetMonthlyDay(option))

    def set_end_never(self) -> "Recurrence":
        return apply_mutation(self, SetEndNever())

    def set_end_by_date(self, date: DateLike) -> "Recurrence":
        return apply_mutation(self, SetEndByDate(date))

    def set_end_by_count(self, count: int) -> "Recurrence":
        return apply_mutation(self, SetEndByCount(count))

    def set_start_date(self, date: DateLike) -> "Recurrence":
        return apply_mutation(self, SetStartDate(date))

    # ------------------------------------------------------------------
    # Occurrence queries (see recurrence.finder)
    # ------------------------------------------------------------------

    def find_based_on(
        self,
        base: DateLike,
        base_count: int,
        lower_bound: Optional[DateLike],
        amount: int,
    ) -> List[_dt.datetime]:
        from .finder import find_based_on

        return find_based_on(self, base, base_count, lower_bound, amount)

    def find(self, lower_bound: Optional[DateLike], amount: int) -> List[_dt.datetime]:
        from .finder import find

        return find(self, lower_bound, amount)

    def find_between(self, start: DateLike, end: DateLike) -> List[_dt.datetime]:
        from .finder import find_between

        return find_between(self, start, end)


# -----------------------------------------------------------------------------
# Mutations
# -----------------------------------------------------------------------------


@dataclass(frozen=True)
class SetPeriod:
    period: Period


@dataclass(frozen=True)
class SetFrequency:
    frequency: int


@dataclass(frozen=True)
class SetWeeklyDays:
    days: int


@dataclass(frozen=True)
class SetMonthlyDay:
    option: MonthlyDay


@dataclass(frozen=True)
class SetEndNever:
    pass


@dataclass(frozen=True)
class SetEndByDate:
    date: DateLike


@dataclass(frozen=True)
class SetEndByCount:
    count: int


@dataclass(frozen=True)
class SetStartDate:
    date: DateLike


Mutation = Union[
    SetPeriod,
    SetFrequency,
    SetWeeklyDays,
    SetMonthlyDay,
    SetEndNever,
    SetEndByDate,
    SetEndByCount,
    SetStartDate,
]


def _set_period(r: Recurrence, m: SetPeriod) -> Recurrence:
    period = _enum(Period, m.period, "period")
    if period == r.period:
        return r
    if period == Period.NONE:
        return Recurrence(r.start)
    # Weekly falls back to the start's weekday, monthly to the same day of month
    return replace(r, period=period, day_setting=0)


def _set_frequency(r: Recurrence, m: SetFrequency) -> Recurrence:
    if not isinstance(m.frequency, int) or m.frequency < 1:
        raise InvalidArgument("Frequency must be 1 or greater")
    if r.period == Period.NONE:
        return r
    return replace(r, frequency=m.frequency)


def _set_weekly_days(r: Recurrence, m: SetWeeklyDays) -> Recurrence:
    days = m.days
    if not isinstance(days, int) or days < 0 or days > EVERY_DAY_OF_WEEK or (days & 1 and days != 1):
        raise InvalidArgument(f"Weekly setting isn't valid: {days!r}")
    if r.period != Period.WEEKLY:
        return r
    if days & EVERY_DAY_OF_WEEK == 0:
        # Not repeating on any day: does not repeat
        return Recurrence(r.start)
    return replace(r, day_setting=days)


def _set_monthly_day(r: Recurrence, m: SetMonthlyDay) -> Recurrence:
    option = _enum(MonthlyDay, m.option, "monthly setting")
    if r.period != Period.MONTHLY:
        return r
    return replace(r, day_setting=option)


def _set_end_never(r: Recurrence, m: SetEndNever) -> Recurrence:
    if r.period == Period.NONE:
        return r
    return replace(r, end_type=EndType.NEVER, end_count=0, end_date=None)


def _set_end_by_date(r: Recurrence, m: SetEndByDate) -> Recurrence:
    end = coerce_moment(m.date, "end date")
    if r.period == Period.NONE:
        return r
    if not is_same_day_or_after(end, r.start):
        raise InvalidArgument("End date cannot be before start date")
    return replace(r, end_type=EndType.BY_DATE, end_date=end, end_count=0)


def _set_end_by_count(r: Recurrence, m: SetEndByCount) -> Recurrence:
    if not isinstance(m.count, int) or m.count < 1:
        raise InvalidArgument("End count must be 1 or greater")
    if r.period == Period.NONE:
        return r
    return replace(r, end_type=EndType.BY_COUNT, end_count=m.count, end_date=None)


def _set_start_date(r: Recurrence, m: SetStartDate) -> Recurrence:
    start = coerce_moment(m.date, "start date")
    if r.end_type == EndType.BY_DATE and r.end_date is not None and is_same_day_or_after(start, r.end_date):
        # Start moved onto or past the end: nothing left to repeat
        return Recurrence(start)
    days = r.day_setting
    if r.period == Period.WEEKLY and r.is_default:
        days = Weekday.of(start).value
    # A last-day monthly rule falls back to same-day when the new start isn't a month end
    return replace(r, start=start, day_setting=days)


_HANDLERS: Dict[type, Callable[[Recurrence, Any], Recurrence]] = {
    SetPeriod: _set_period,
    SetFrequency: _set_frequency,
    SetWeeklyDays: _set_weekly_days,
    SetMonthlyDay: _set_monthly_day,
    SetEndNever: _set_end_never,
    SetEndByDate: _set_end_by_date,
    SetEndByCount: _set_end_by_count,
    SetStartDate: _set_start_date,
}


def apply_mutation(rule: Recurrence, mutation: Mutation) -> Recurrence:
    """Return ``rule`` with ``mutation`` applied.

    Raises:
        InvalidArgument: if the mutation carries an out-of-range value.
            ``rule`` itself is never modified.
    """
    handler = _HANDLERS.get(type(mutation))
    if handler is None:
        raise InvalidArgument(f"Unknown mutation: {mutation!r}")
    return handler(rule, mutation)
