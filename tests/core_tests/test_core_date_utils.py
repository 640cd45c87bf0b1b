"""Tests for core/date_utils.py civil calendar helpers."""
from __future__ import annotations

import datetime as _dt
import unittest

from core.date_utils import (
    add_months,
    days_in_month,
    from_epoch_millis,
    is_last_day_of_month,
    is_same_day,
    is_same_day_or_after,
    normalize_day,
    normalize_days,
    nth_weekday_of_month,
    parse_civil,
    to_civil,
    to_epoch_millis,
    to_iso_str,
    truncate_millis,
    week_of_month,
)


class TestDayNames(unittest.TestCase):
    def test_normalize_day_names_and_codes(self):
        self.assertEqual(normalize_day("Monday"), "MO")
        self.assertEqual(normalize_day("thurs"), "TH")
        self.assertEqual(normalize_day("sa"), "SA")
        self.assertEqual(normalize_day("noday"), "")

    def test_normalize_days_range(self):
        self.assertEqual(normalize_days("Mon to Fri"), ["MO", "TU", "WE", "TH", "FR"])
        self.assertEqual(normalize_days("Sat-Mon"), ["SA", "SU", "MO"])

    def test_normalize_days_lists(self):
        self.assertEqual(normalize_days("Mon & Wed"), ["MO", "WE"])
        self.assertEqual(normalize_days("SU,SA"), ["SU", "SA"])
        self.assertEqual(normalize_days("tuesday, tuesday"), ["TU"])
        self.assertEqual(normalize_days(""), [])


class TestCivilMoments(unittest.TestCase):
    def test_to_civil_promotes_date(self):
        self.assertEqual(to_civil(_dt.date(2018, 1, 2)), _dt.datetime(2018, 1, 2))

    def test_to_civil_parses_strings(self):
        self.assertEqual(to_civil("2018-01-15T13:25:36"), _dt.datetime(2018, 1, 15, 13, 25, 36))
        self.assertEqual(parse_civil(" 2018-01-15 "), _dt.datetime(2018, 1, 15))

    def test_to_civil_rejects_aware_values(self):
        aware = _dt.datetime(2018, 1, 1, tzinfo=_dt.timezone.utc)
        with self.assertRaises(ValueError):
            to_civil(aware)

    def test_to_civil_rejects_other_types(self):
        with self.assertRaises(ValueError):
            to_civil(12345)  # type: ignore[arg-type]
        with self.assertRaises(ValueError):
            parse_civil("not a date")
        with self.assertRaises(ValueError):
            parse_civil("")

    def test_truncate_millis(self):
        value = _dt.datetime(2018, 1, 1, 0, 0, 0, 123456)
        self.assertEqual(truncate_millis(value).microsecond, 123000)

    def test_epoch_millis(self):
        self.assertEqual(to_epoch_millis(_dt.datetime(1970, 1, 1)), 0)
        self.assertEqual(to_epoch_millis(_dt.datetime(1970, 1, 2)), 86_400_000)
        self.assertEqual(to_epoch_millis(_dt.datetime(1969, 12, 31, 23, 59, 59, 999000)), -1)
        moment = _dt.datetime(2018, 1, 15, 13, 25, 36, 250000)
        self.assertEqual(from_epoch_millis(to_epoch_millis(moment)), moment)

    def test_to_iso_str(self):
        self.assertIsNone(to_iso_str(None))
        self.assertEqual(to_iso_str(_dt.datetime(2018, 1, 2, 3, 4, 5)), "2018-01-02T03:04:05")
        self.assertEqual(to_iso_str(_dt.date(2018, 1, 2)), "2018-01-02T00:00:00")


class TestCalendarArithmetic(unittest.TestCase):
    def test_days_in_month(self):
        self.assertEqual(days_in_month(2018, 2), 28)
        self.assertEqual(days_in_month(2016, 2), 29)
        self.assertEqual(days_in_month(2018, 12), 31)

    def test_is_last_day_of_month(self):
        self.assertTrue(is_last_day_of_month(_dt.date(2018, 4, 30)))
        self.assertFalse(is_last_day_of_month(_dt.date(2018, 4, 29)))

    def test_add_months_clamps_day(self):
        self.assertEqual(add_months(_dt.datetime(2018, 1, 31, 9), 1), _dt.datetime(2018, 2, 28, 9))
        self.assertEqual(add_months(_dt.datetime(2016, 2, 29), 12), _dt.datetime(2017, 2, 28))
        self.assertEqual(add_months(_dt.datetime(2018, 11, 15), 3), _dt.datetime(2019, 2, 15))

    def test_week_of_month(self):
        self.assertEqual(week_of_month(_dt.date(2018, 1, 7)), 1)
        self.assertEqual(week_of_month(_dt.date(2018, 1, 14)), 2)
        self.assertEqual(week_of_month(_dt.date(2018, 1, 29)), 5)

    def test_nth_weekday_of_month(self):
        # February 2018 starts on a Thursday
        self.assertEqual(nth_weekday_of_month(2018, 2, 6, 2), 11)  # second Sunday
        self.assertEqual(nth_weekday_of_month(2018, 2, 3, 1), 1)  # first Thursday
        self.assertEqual(nth_weekday_of_month(2018, 2, 0, -1), 26)  # last Monday
        self.assertEqual(nth_weekday_of_month(2018, 3, 5, -1), 31)  # last Saturday

    def test_same_day_comparisons(self):
        morning = _dt.datetime(2018, 1, 1, 8)
        evening = _dt.datetime(2018, 1, 1, 20)
        self.assertTrue(is_same_day(morning, evening))
        self.assertTrue(is_same_day_or_after(morning, evening))
        self.assertFalse(is_same_day_or_after(morning, _dt.datetime(2018, 1, 2)))


if __name__ == "__main__":
    unittest.main()
