"""Recurrence constants shared across modules."""

from __future__ import annotations

# -----------------------------------------------------------------------------
# Weekday masks (bit 0 is unused; Sunday is bit 1, Saturday bit 7, see model.Weekday)
# -----------------------------------------------------------------------------

EVERY_DAY_OF_WEEK = 0b11111110

# RRULE BYDAY codes indexed Sunday-first, matching the mask bit order
BYDAY_VALUES = ("SU", "MO", "TU", "WE", "TH", "FR", "SA")

# -----------------------------------------------------------------------------
# Binary record
# -----------------------------------------------------------------------------

VERSION_1 = 100
VERSION = VERSION_1

# version, default flag, start ms, period, frequency, day setting,
# end type, end count, end ms
RECORD_FORMAT = ">ibqiiiiiq"
BYTE_ARRAY_LENGTH = 41

# -----------------------------------------------------------------------------
# Rule text keys, in export order
# -----------------------------------------------------------------------------

RRULE_KEYS = (
    "DTSTART",
    "FREQ",
    "INTERVAL",
    "BYSETPOS",
    "BYDAY",
    "BYMONTH",
    "BYMONTHDAY",
    "UNTIL",
    "COUNT",
)
RRULE_PREFIX = "RRULE:"

# -----------------------------------------------------------------------------
# CLI defaults
# -----------------------------------------------------------------------------

DEFAULT_OCCURRENCE_LIMIT = 10
DEFAULT_LOCALE = "en"
