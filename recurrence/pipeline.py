"""Recurrence CLI pipeline components."""
from __future__ import annotations

import datetime as _dt
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from core.cli_output import OutputFormat
from core.date_utils import to_iso_str
from core.pipeline import BaseProducer, SafeProcessor

from .errors import InvalidArgument, RecurrenceError
from .finder import find_based_on, find_between
from .formatter import FormatTables, RecurrenceFormatter, default_tables
from .model import DateLike, Recurrence, coerce_moment
from .presets import default_presets, match_preset
from .rrule import to_rule_text
from .serializer import decode, encode
from .ruleio import save_rule

LOG = logging.getLogger(__name__)


class RecurrenceProcessor(SafeProcessor):
    """Reports library errors as usage errors; other exceptions propagate."""

    handled = (RecurrenceError,)


def _describe(rule: Recurrence, tables: Optional[FormatTables]) -> str:
    return RecurrenceFormatter(tables or default_tables()).format(rule)


# -----------------------------------------------------------------------------
# Occurrences
# -----------------------------------------------------------------------------


@dataclass
class OccurrencesRequest:
    rule: Recurrence
    lower_bound: Optional[DateLike] = None
    amount: int = 10
    base: Optional[DateLike] = None
    base_count: int = 0


@dataclass
class BetweenRequest:
    rule: Recurrence
    start: DateLike
    end: DateLike


@dataclass
class OccurrencesResult:
    rule: Recurrence
    occurrences: List[_dt.datetime]


class OccurrencesProcessor(RecurrenceProcessor):
    """Upcoming occurrences from the start, or from a known base occurrence."""

    def _process_safe(self, payload: OccurrencesRequest) -> OccurrencesResult:
        rule = payload.rule
        base = rule.start if payload.base is None else payload.base
        found = find_based_on(rule, base, payload.base_count, payload.lower_bound, payload.amount)
        return OccurrencesResult(rule=rule, occurrences=found)


class BetweenProcessor(RecurrenceProcessor):
    """Occurrences within a date window."""

    def _process_safe(self, payload: BetweenRequest) -> OccurrencesResult:
        lower = coerce_moment(payload.start, "window start")
        upper = coerce_moment(payload.end, "window end")
        if upper < lower:
            raise InvalidArgument("Window end cannot be before window start")
        return OccurrencesResult(rule=payload.rule, occurrences=find_between(payload.rule, lower, upper))


class OccurrencesProducer(BaseProducer):
    """One occurrence per line, or a table with index and weekday."""

    def _produce_success(self, payload: OccurrencesResult, diagnostics: Optional[Dict[str, Any]]) -> None:
        if self.writer.config.format == OutputFormat.TABLE:
            rows = [
                {"#": i, "date": to_iso_str(d), "weekday": d.strftime("%a")}
                for i, d in enumerate(payload.occurrences, start=1)
            ]
            self.writer.print_data(rows, headers=["#", "date", "weekday"])
            return
        self.writer.print_data([to_iso_str(d) for d in payload.occurrences])


# -----------------------------------------------------------------------------
# Describe / rule text
# -----------------------------------------------------------------------------


@dataclass
class DescribeRequest:
    rule: Recurrence
    tables: Optional[FormatTables] = None


@dataclass
class DescribeResult:
    rule: Recurrence
    text: str
    rrule: Optional[str]


class DescribeProcessor(RecurrenceProcessor):
    """Phrase and rule line for a rule."""

    def _process_safe(self, payload: DescribeRequest) -> DescribeResult:
        return DescribeResult(
            rule=payload.rule,
            text=_describe(payload.rule, payload.tables),
            rrule=to_rule_text(payload.rule),
        )


class DescribeProducer(BaseProducer):
    """Prints the phrase, or the full rule in structured formats."""

    def _produce_success(self, payload: DescribeResult, diagnostics: Optional[Dict[str, Any]]) -> None:
        if self.writer.config.format == OutputFormat.TEXT:
            self.writer.print(payload.text)
            return
        data = payload.rule.to_dict()
        data["text"] = payload.text
        data["rrule"] = payload.rrule
        self.writer.print_data(data)


@dataclass
class RuleTextRequest:
    rule: Recurrence


class RuleTextProcessor(RecurrenceProcessor):
    """Rule line for a repeating rule."""

    def _process_safe(self, payload: RuleTextRequest) -> str:
        text = to_rule_text(payload.rule)
        if text is None:
            raise InvalidArgument("A rule that does not repeat has no rule line")
        return text


# -----------------------------------------------------------------------------
# Binary record
# -----------------------------------------------------------------------------


@dataclass
class EncodeRequest:
    rule: Recurrence


class EncodeProcessor(RecurrenceProcessor):
    """Binary record as hex."""

    def _process_safe(self, payload: EncodeRequest) -> str:
        return encode(payload.rule).hex()


@dataclass
class DecodeRequest:
    data: str
    tables: Optional[FormatTables] = None
    save_path: Optional[str] = None


class DecodeProcessor(RecurrenceProcessor):
    """Rule from a hex record, optionally saved as a rule file."""

    def _process_safe(self, payload: DecodeRequest) -> DescribeResult:
        cleaned = "".join(payload.data.split())
        try:
            raw = bytes.fromhex(cleaned)
        except ValueError as exc:
            raise InvalidArgument(f"Record is not valid hex: {exc}") from exc
        rule = decode(raw)
        if payload.save_path:
            save_rule(payload.save_path, rule)
            LOG.debug("saved decoded rule to %s", payload.save_path)
        return DescribeResult(rule=rule, text=_describe(rule, payload.tables), rrule=to_rule_text(rule))


# -----------------------------------------------------------------------------
# Presets
# -----------------------------------------------------------------------------


@dataclass
class PresetsRequest:
    start: DateLike
    rule: Optional[Recurrence] = None
    tables: Optional[FormatTables] = None


class PresetsProcessor(RecurrenceProcessor):
    """Preset catalog for an anchor, marking the one matching the given rule."""

    def _process_safe(self, payload: PresetsRequest) -> List[Dict[str, Any]]:
        presets = default_presets(payload.start)
        selected = match_preset(payload.rule, presets) if payload.rule is not None else None
        return [
            {
                "#": i,
                "text": _describe(preset, payload.tables),
                "rrule": to_rule_text(preset) or "",
                "selected": i == selected,
            }
            for i, preset in enumerate(presets)
        ]


class PresetsProducer(BaseProducer):
    def _produce_success(self, payload: List[Dict[str, Any]], diagnostics: Optional[Dict[str, Any]]) -> None:
        if self.writer.config.format != OutputFormat.TEXT:
            self.writer.print_data(payload)
            return
        for item in payload:
            marker = "*" if item["selected"] else " "
            self.writer.print(f"{marker} {item['#']}. {item['text']}")
