"""Preset rules offered to users picking a recurrence."""
from __future__ import annotations

from typing import List, Optional, Sequence

from .model import DateLike, Period, Recurrence

# Presets in display order
PRESET_PERIODS = (Period.NONE, Period.DAILY, Period.WEEKLY, Period.MONTHLY, Period.YEARLY)


def default_presets(start: DateLike) -> List[Recurrence]:
    """Does not repeat, then the default daily, weekly, monthly and yearly rules anchored on ``start``."""
    return [Recurrence(start, period) for period in PRESET_PERIODS]


def match_preset(rule: Recurrence, presets: Sequence[Recurrence]) -> Optional[int]:
    """Index of the first preset equal to ``rule`` whatever its start, or None."""
    for i, preset in enumerate(presets):
        if rule.equals(preset, ignore_start=True):
            return i
    return None
