"""Recurrence rule engine.

Builds recurring-event rules, computes their occurrences, and converts them
to a fixed-length binary record, an RFC 5545 style rule line, and a
localized phrase.
"""

from .errors import FormatError, InvalidArgument, RecurrenceError
from .finder import find, find_based_on, find_between, iter_occurrences
from .formatter import FormatTables, RecurrenceFormatter, default_tables, load_format_tables
from .model import (
    EndType,
    MonthlyDay,
    Period,
    Recurrence,
    SetEndByCount,
    SetEndByDate,
    SetEndNever,
    SetFrequency,
    SetMonthlyDay,
    SetPeriod,
    SetStartDate,
    SetWeeklyDays,
    Weekday,
    apply_mutation,
)
from .presets import default_presets, match_preset
from .rrule import from_rule_text, to_rule_text
from .serializer import decode, encode

__all__ = [
    "__version__",
    "EndType",
    "FormatError",
    "FormatTables",
    "InvalidArgument",
    "MonthlyDay",
    "Period",
    "Recurrence",
    "RecurrenceError",
    "RecurrenceFormatter",
    "SetEndByCount",
    "SetEndByDate",
    "SetEndNever",
    "SetFrequency",
    "SetMonthlyDay",
    "SetPeriod",
    "SetStartDate",
    "SetWeeklyDays",
    "Weekday",
    "apply_mutation",
    "decode",
    "default_presets",
    "default_tables",
    "encode",
    "find",
    "find_based_on",
    "find_between",
    "from_rule_text",
    "iter_occurrences",
    "load_format_tables",
    "match_preset",
    "to_rule_text",
]
__version__ = "0.1.0"
