"""Occurrence generation.

Occurrences are computed step by step from a known occurrence (the base).
Starting from a later base whose position in the sequence is known avoids
walking every earlier occurrence again: to get the 1000th event when the
999th is known, pass the 999th as the base with ``base_count=999``.

The base itself is never emitted. Lower bounds and end dates are compared
by calendar day, so an occurrence later on the lower bound's day counts as
"after" it.
"""
from __future__ import annotations

import datetime as _dt
import logging
from typing import Iterator, List, Optional

from dateutil.relativedelta import relativedelta

from core.date_utils import add_months, days_in_month, is_same_day_or_after, nth_weekday_of_month, week_of_month

from .errors import InvalidArgument
from .model import DateLike, MonthlyDay, Period, Recurrence, coerce_moment

LOG = logging.getLogger(__name__)

_ONE_DAY = _dt.timedelta(days=1)


def _day_of_week(day: _dt.date) -> int:
    """Sunday-first weekday number, 1..7."""
    return day.isoweekday() % 7 + 1


def _daily_steps(rule: Recurrence, current: _dt.datetime) -> Iterator[_dt.datetime]:
    step = _ONE_DAY * rule.frequency
    while True:
        current += step
        yield current


def _yearly_steps(rule: Recurrence, current: _dt.datetime) -> Iterator[_dt.datetime]:
    while True:
        current = current + relativedelta(years=rule.frequency)
        yield current


def _weekly_steps(rule: Recurrence, current: _dt.datetime) -> Iterator[_dt.datetime]:
    skipped = 0
    first_week = True
    while True:
        for day in range(1, 8):
            if first_week and _day_of_week(current) >= day:
                # On or before the base's weekday in the first week
                continue
            skipped += 1
            if rule.day_setting & (1 << day):
                current += _ONE_DAY * skipped
                skipped = 0
                yield current
        if rule.frequency > 1:
            current += _ONE_DAY * (7 * (rule.frequency - 1))
        first_week = False


def _monthly_steps(rule: Recurrence, current: _dt.datetime) -> Iterator[_dt.datetime]:
    option = rule.day_setting
    # Day and weekday ordinal come from the start, whatever the base
    anchor = rule.start
    anchor_day = anchor.day
    anchor_weekday = anchor.weekday()
    # A fifth occurrence of a weekday doesn't exist in every month: use the last one
    anchor_week = week_of_month(anchor)
    nth = -1 if anchor_week == 5 else anchor_week
    while True:
        current = add_months(current, rule.frequency)
        length = days_in_month(current.year, current.month)
        if option == MonthlyDay.LAST_DAY_OF_MONTH:
            current = current.replace(day=length)
        elif option == MonthlyDay.SAME_DAY_OF_MONTH:
            if anchor_day > length:
                # Month too short for the anchor day: skip it entirely
                continue
            current = current.replace(day=anchor_day)
        else:
            current = current.replace(day=nth_weekday_of_month(current.year, current.month, anchor_weekday, nth))
        yield current


_STEPS = {
    Period.DAILY: _daily_steps,
    Period.WEEKLY: _weekly_steps,
    Period.MONTHLY: _monthly_steps,
    Period.YEARLY: _yearly_steps,
}


def iter_occurrences(
    rule: Recurrence,
    base: Optional[DateLike] = None,
    base_count: int = 0,
) -> Iterator[_dt.datetime]:
    """Lazily yield the occurrences following ``base`` (default: the start).

    ``base_count`` is the number of occurrences already produced up to and
    including ``base``; it only matters for rules ending by count. The
    sequence stops when the rule's end condition is reached and is infinite
    otherwise.
    """
    if rule.period == Period.NONE:
        return
    current = rule.start if base is None else coerce_moment(base, "base date")
    count = base_count
    for candidate in _STEPS[rule.period](rule, current):
        if rule.end_count and count >= rule.end_count:
            return
        if rule.end_date is not None and not is_same_day_or_after(rule.end_date, candidate):
            return
        count += 1
        yield candidate


def find_based_on(
    rule: Recurrence,
    base: DateLike,
    base_count: int,
    lower_bound: Optional[DateLike],
    amount: int,
) -> List[_dt.datetime]:
    """Return up to ``amount`` occurrences after ``base`` falling on or after ``lower_bound``.

    Args:
        rule: Rule to expand.
        base: A known occurrence (or the start) to step from.
        base_count: How many occurrences were produced when ``base`` happened.
            Only relevant for rules ending by count, otherwise pass 0.
        lower_bound: Only return occurrences on or after this day. ``None``
            returns every occurrence after the start.
        amount: Maximum number of occurrences to return.

    Returns:
        Increasing list of occurrences, shorter than ``amount`` when the rule
        ends first, empty if none.

    Raises:
        InvalidArgument: if ``amount`` is less than 1.
    """
    if amount < 1:
        raise InvalidArgument("Amount must be 1 or greater")
    lower = rule.start if lower_bound is None else coerce_moment(lower_bound, "lower bound")

    # Not repeating, or already ended as of the lower bound
    if rule.period == Period.NONE or (
        rule.end_date is not None and not is_same_day_or_after(rule.end_date, lower)
    ):
        return []

    found: List[_dt.datetime] = []
    for occurrence in iter_occurrences(rule, base, base_count):
        if not is_same_day_or_after(occurrence, lower):
            continue
        found.append(occurrence)
        if len(found) == amount:
            break
    LOG.debug("found %d/%d %s occurrences from %s", len(found), amount, rule.period.name, lower.isoformat())
    return found


def find(rule: Recurrence, lower_bound: Optional[DateLike], amount: int) -> List[_dt.datetime]:
    """Return up to ``amount`` occurrences on or after ``lower_bound``, stepping from the start."""
    return find_based_on(rule, rule.start, 0, lower_bound, amount)


def find_between(rule: Recurrence, start: DateLike, end: DateLike) -> List[_dt.datetime]:
    """Return every occurrence from ``start``'s day (inclusive) until ``end`` (exclusive).

    The occurrence sequence is walked once, each occurrence serving as the
    base of the next step.
    """
    lower = coerce_moment(start, "start bound")
    upper = coerce_moment(end, "end bound")
    found: List[_dt.datetime] = []
    if rule.period == Period.NONE or upper <= lower:
        return found
    for occurrence in iter_occurrences(rule):
        if occurrence >= upper:
            break
        if is_same_day_or_after(occurrence, lower):
            found.append(occurrence)
    LOG.debug("found %d %s occurrences between %s and %s",
              len(found), rule.period.name, lower.isoformat(), upper.isoformat())
    return found
