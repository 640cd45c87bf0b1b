"""Tests for the Recurrence value type and its mutations."""
from __future__ import annotations

import datetime as _dt
import unittest

from recurrence import (
    EndType,
    InvalidArgument,
    MonthlyDay,
    Period,
    Recurrence,
    SetEndByCount,
    SetFrequency,
    SetPeriod,
    Weekday,
    apply_mutation,
)
from recurrence.constants import EVERY_DAY_OF_WEEK

MONDAY_2018 = _dt.datetime(2018, 1, 1)  # a Monday


class TestConstruction(unittest.TestCase):
    def test_weekly_defaults_to_start_weekday(self):
        r = Recurrence(MONDAY_2018, Period.WEEKLY)
        self.assertEqual(r.day_setting, Weekday.MONDAY)
        self.assertEqual(r.weekly_days, Weekday.MONDAY)
        self.assertTrue(r.is_default)

    def test_monthly_defaults_to_same_day(self):
        r = Recurrence(MONDAY_2018, Period.MONTHLY)
        self.assertEqual(r.monthly_day, MonthlyDay.SAME_DAY_OF_MONTH)
        self.assertTrue(r.is_default)

    def test_none_forces_zero_state(self):
        r = Recurrence(MONDAY_2018, Period.NONE, frequency=4, day_setting=6,
                       end_type=EndType.BY_COUNT, end_count=3)
        self.assertEqual((r.frequency, r.day_setting, r.end_type, r.end_count, r.end_date),
                         (1, 0, EndType.NEVER, 0, None))
        self.assertTrue(r.is_default)

    def test_accepts_dates_and_strings(self):
        self.assertEqual(Recurrence(_dt.date(2018, 1, 1)).start, MONDAY_2018)
        self.assertEqual(Recurrence("2018-01-01T09:30").start, _dt.datetime(2018, 1, 1, 9, 30))

    def test_rejects_aware_start(self):
        with self.assertRaises(InvalidArgument):
            Recurrence(_dt.datetime(2018, 1, 1, tzinfo=_dt.timezone.utc), Period.DAILY)

    def test_start_truncated_to_milliseconds(self):
        r = Recurrence(_dt.datetime(2018, 1, 1, 12, 0, 0, 123456), Period.DAILY)
        self.assertEqual(r.start.microsecond, 123000)

    def test_period_codes_are_coerced(self):
        r = Recurrence(MONDAY_2018, 3)
        self.assertIs(r.period, Period.YEARLY)
        with self.assertRaises(InvalidArgument):
            Recurrence(MONDAY_2018, 9)

    def test_invalid_weekly_mask_rejected(self):
        with self.assertRaises(InvalidArgument):
            Recurrence(MONDAY_2018, Period.WEEKLY, day_setting=0b1_0000_0000)
        with self.assertRaises(InvalidArgument):
            Recurrence(MONDAY_2018, Period.WEEKLY, day_setting=Weekday.SUNDAY | 1)

    def test_end_by_date_requires_date(self):
        with self.assertRaises(InvalidArgument):
            Recurrence(MONDAY_2018, Period.DAILY, end_type=EndType.BY_DATE)


class TestMutations(unittest.TestCase):
    def setUp(self):
        self.weekly = Recurrence(MONDAY_2018, Period.WEEKLY)

    def test_full_week_with_frequency_one_becomes_daily(self):
        r = self.weekly.set_weekly_days(EVERY_DAY_OF_WEEK)
        self.assertEqual(r.period, Period.DAILY)
        self.assertEqual(r.day_setting, 0)

    def test_full_week_with_frequency_two_stays_weekly(self):
        r = self.weekly.set_frequency(2).set_weekly_days(EVERY_DAY_OF_WEEK)
        self.assertEqual(r.period, Period.WEEKLY)
        self.assertEqual(r.day_setting, EVERY_DAY_OF_WEEK)

    def test_empty_week_collapses_to_none(self):
        self.assertEqual(self.weekly.set_weekly_days(0).period, Period.NONE)
        self.assertEqual(self.weekly.set_weekly_days(1).period, Period.NONE)

    def test_single_weekday_is_valid(self):
        r = self.weekly.set_weekly_days(Weekday.TUESDAY)
        self.assertEqual(r.period, Period.WEEKLY)
        self.assertTrue(r.is_repeating_on("TU"))
        self.assertFalse(r.is_repeating_on("MO"))
        self.assertFalse(r.is_default)

    def test_weekly_days_from_codes(self):
        r = self.weekly.set_weekly_days("SU,SA")
        self.assertEqual(r.day_setting, Weekday.SUNDAY | Weekday.SATURDAY)
        self.assertTrue(r.is_repeating_on([Weekday.SUNDAY, "SA"]))

    def test_malformed_weekly_mask_rejected(self):
        with self.assertRaises(InvalidArgument):
            self.weekly.set_weekly_days(0b1_0000_0000)
        with self.assertRaises(InvalidArgument):
            self.weekly.set_weekly_days(Weekday.MONDAY | 1)
        with self.assertRaises(InvalidArgument):
            self.weekly.set_weekly_days("MO,XX")

    def test_is_repeating_on_requires_weekly(self):
        self.assertFalse(Recurrence(MONDAY_2018, Period.DAILY).is_repeating_on("MO"))

    def test_frequency_below_one_rejected_and_rule_unchanged(self):
        with self.assertRaises(InvalidArgument):
            self.weekly.set_frequency(0)
        self.assertEqual(self.weekly.frequency, 1)

    def test_end_count_below_one_rejected(self):
        with self.assertRaises(InvalidArgument):
            self.weekly.set_end_by_count(0)

    def test_end_by_count_clears_end_date(self):
        r = self.weekly.set_end_by_date(_dt.datetime(2018, 3, 1)).set_end_by_count(4)
        self.assertEqual((r.end_type, r.end_count, r.end_date), (EndType.BY_COUNT, 4, None))
        r = r.set_end_never()
        self.assertEqual((r.end_type, r.end_count, r.end_date), (EndType.NEVER, 0, None))

    def test_end_date_on_start_day_collapses_to_none(self):
        r = self.weekly.set_end_by_date(_dt.datetime(2018, 1, 1, 23, 0))
        self.assertEqual(r.period, Period.NONE)

    def test_end_date_before_start_rejected(self):
        with self.assertRaises(InvalidArgument):
            self.weekly.set_end_by_date(_dt.datetime(2017, 12, 31))

    def test_end_by_date(self):
        r = self.weekly.set_end_by_date(_dt.date(2018, 2, 1))
        self.assertEqual(r.end_type, EndType.BY_DATE)
        self.assertEqual(r.end_date, _dt.datetime(2018, 2, 1))
        self.assertFalse(r.is_default)

    def test_last_day_needs_month_end_start(self):
        monthly = Recurrence(MONDAY_2018, Period.MONTHLY)
        self.assertEqual(monthly.set_monthly_day(MonthlyDay.LAST_DAY_OF_MONTH).day_setting,
                         MonthlyDay.SAME_DAY_OF_MONTH)
        month_end = Recurrence(_dt.datetime(2018, 1, 31), Period.MONTHLY)
        self.assertEqual(month_end.set_monthly_day(MonthlyDay.LAST_DAY_OF_MONTH).day_setting,
                         MonthlyDay.LAST_DAY_OF_MONTH)

    def test_monthly_setting_ignored_for_other_periods(self):
        self.assertEqual(self.weekly.set_monthly_day(MonthlyDay.SAME_DAY_OF_WEEK), self.weekly)

    def test_mutators_on_none_are_noops(self):
        none = Recurrence(MONDAY_2018)
        self.assertEqual(none.set_frequency(3), none)
        self.assertEqual(none.set_end_by_count(3), none)
        self.assertEqual(none.set_end_by_date(_dt.date(2018, 5, 1)), none)
        with self.assertRaises(InvalidArgument):
            none.set_frequency(0)

    def test_set_period_resets_day_setting(self):
        r = self.weekly.set_weekly_days("TU,TH").set_period(Period.MONTHLY)
        self.assertEqual(r.monthly_day, MonthlyDay.SAME_DAY_OF_MONTH)
        self.assertEqual(r.set_period(Period.NONE), Recurrence(MONDAY_2018))
        self.assertEqual(Recurrence(MONDAY_2018).set_period(Period.WEEKLY), self.weekly)

    def test_set_start_moves_default_weekday(self):
        r = self.weekly.set_start_date(_dt.date(2018, 1, 3))
        self.assertEqual(r.day_setting, Weekday.WEDNESDAY)
        custom = self.weekly.set_weekly_days("TU,TH").set_start_date(_dt.date(2018, 1, 3))
        self.assertEqual(custom.day_setting, Weekday.TUESDAY | Weekday.THURSDAY)

    def test_set_start_drops_last_day_when_not_month_end(self):
        r = Recurrence(_dt.datetime(2018, 1, 31), Period.MONTHLY, day_setting=MonthlyDay.LAST_DAY_OF_MONTH)
        self.assertEqual(r.set_start_date(_dt.date(2018, 2, 15)).monthly_day, MonthlyDay.SAME_DAY_OF_MONTH)
        self.assertEqual(r.set_start_date(_dt.date(2018, 2, 28)).monthly_day, MonthlyDay.LAST_DAY_OF_MONTH)

    def test_set_start_past_end_date_collapses(self):
        r = self.weekly.set_end_by_date(_dt.date(2018, 2, 1))
        self.assertEqual(r.set_start_date(_dt.date(2018, 2, 1)).period, Period.NONE)

    def test_apply_mutation_values(self):
        r = apply_mutation(Recurrence(MONDAY_2018, Period.DAILY), SetFrequency(3))
        r = apply_mutation(r, SetEndByCount(5))
        self.assertEqual((r.frequency, r.end_count), (3, 5))
        self.assertEqual(apply_mutation(r, SetPeriod(Period.DAILY)), r)

    def test_apply_mutation_rejects_unknown(self):
        with self.assertRaises(InvalidArgument):
            apply_mutation(self.weekly, "frequency=2")  # type: ignore[arg-type]


class TestEquality(unittest.TestCase):
    def test_exact_equality_and_hash(self):
        a = Recurrence(MONDAY_2018, Period.DAILY, frequency=2)
        b = Recurrence(_dt.date(2018, 1, 1), Period.DAILY, frequency=2)
        self.assertEqual(a, b)
        self.assertEqual(len({a, b}), 1)
        self.assertNotEqual(a, a.set_start_date(_dt.datetime(2018, 1, 1, 0, 0, 1)))

    def test_equals_ignoring_start(self):
        a = Recurrence(MONDAY_2018, Period.MONTHLY)
        b = Recurrence(_dt.datetime(2019, 6, 5), Period.MONTHLY)
        self.assertFalse(a.equals(b))
        self.assertTrue(a.equals(b, ignore_start=True))
        self.assertFalse(a.equals(b.set_frequency(2), ignore_start=True))
        self.assertFalse(a.equals("monthly"))

    def test_copy_is_equal(self):
        r = Recurrence(MONDAY_2018, Period.WEEKLY).set_weekly_days("MO,FR")
        self.assertEqual(r.copy(), r)

    def test_to_dict(self):
        r = Recurrence(MONDAY_2018, Period.WEEKLY, frequency=2).set_weekly_days("SU,SA").set_end_by_count(10)
        self.assertEqual(r.to_dict(), {
            "start": "2018-01-01T00:00:00",
            "period": "weekly",
            "frequency": 2,
            "default": False,
            "days": ["SU", "SA"],
            "count": 10,
        })


if __name__ == "__main__":
    unittest.main()
