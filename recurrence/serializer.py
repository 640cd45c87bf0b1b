"""Fixed-length binary record for recurrence rules.

Layout (big-endian, 41 bytes):

    version      int32   record version tag (100)
    default      int8    1 if the rule is in its default form
    start        int64   start moment, civil epoch milliseconds
    period       int32   Period code
    frequency    int32
    day setting  int32   weekday mask or MonthlyDay code
    end type     int32   EndType code
    end count    int32   0 unless ending by count
    end date     int64   civil epoch milliseconds, 0 unless ending by date

Any layout change must bump the version tag; unknown versions are rejected.
"""
from __future__ import annotations

import logging
import struct
from typing import Union

from core.date_utils import from_epoch_millis, to_epoch_millis

from .constants import BYTE_ARRAY_LENGTH, RECORD_FORMAT, VERSION
from .errors import FormatError, InvalidArgument
from .model import EndType, Recurrence

LOG = logging.getLogger(__name__)

_RECORD = struct.Struct(RECORD_FORMAT)

Buffer = Union[bytes, bytearray, memoryview]


def encode(rule: Recurrence) -> bytes:
    """Serialize ``rule`` into a record of ``BYTE_ARRAY_LENGTH`` bytes."""
    end_ms = 0
    if rule.end_type == EndType.BY_DATE and rule.end_date is not None:
        end_ms = to_epoch_millis(rule.end_date)
    return _RECORD.pack(
        VERSION,
        1 if rule.is_default else 0,
        to_epoch_millis(rule.start),
        int(rule.period),
        rule.frequency,
        rule.day_setting,
        int(rule.end_type),
        rule.end_count,
        end_ms,
    )


def decode(data: Buffer, offset: int = 0) -> Recurrence:
    """Read the record starting at ``offset`` in ``data``.

    Raises:
        FormatError: if the buffer is too short, the offset leaves no room
            for a full record, the version tag is unknown, or the fields
            don't describe a valid rule.
    """
    if len(data) < BYTE_ARRAY_LENGTH:
        raise FormatError("Byte array does not represent a valid Recurrence object")
    if offset < 0 or offset > len(data) - BYTE_ARRAY_LENGTH:
        raise FormatError(f"Byte array index is invalid: {offset}")

    (version, default_flag, start_ms, period, frequency,
     day_setting, end_type, end_count, end_ms) = _RECORD.unpack_from(data, offset)

    if version != VERSION:
        raise FormatError(f"Unknown record version: {version}")

    try:
        rule = Recurrence(
            start=from_epoch_millis(start_ms),
            period=period,
            frequency=frequency,
            day_setting=day_setting,
            end_type=end_type,
            end_count=end_count,
            end_date=from_epoch_millis(end_ms) if end_type == EndType.BY_DATE else None,
        )
    except (InvalidArgument, OverflowError) as exc:
        raise FormatError(f"Record does not describe a valid recurrence: {exc}") from exc

    if bool(default_flag) != rule.is_default:
        # The flag is derived from the other fields; an old writer may disagree
        LOG.debug("record default flag %d differs from derived flag", default_flag)
    return rule
