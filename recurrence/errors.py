"""Exceptions raised by the recurrence engine and its codecs."""
from __future__ import annotations


class RecurrenceError(ValueError):
    """Base class for recurrence errors."""


class InvalidArgument(RecurrenceError):
    """A mutator or query received a value outside its valid range.

    The rule the call was applied to is left unchanged.
    """


class FormatError(RecurrenceError):
    """A binary record or rule line could not be decoded."""
