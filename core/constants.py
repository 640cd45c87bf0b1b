"""Shared constants used across multiple modules.

Date formats and CLI defaults that are not specific to the recurrence
engine live here so the CLI helpers and the codecs agree on them.
"""

from __future__ import annotations

# -----------------------------------------------------------------------------
# Date formats
# -----------------------------------------------------------------------------

FMT_DATETIME_SEC = "%Y-%m-%dT%H:%M:%S"
FMT_DAY_START = "%Y-%m-%dT00:00:00"

# Compact form used by RFC 5545 DTSTART/UNTIL values (floating time)
FMT_RRULE_DATETIME = "%Y%m%dT%H%M%S"


# -----------------------------------------------------------------------------
# CLI defaults
# -----------------------------------------------------------------------------

DEFAULT_OUTPUT_FORMAT = "text"
DEFAULT_DAYS_FORWARD = 180
