"""Recurrence CLI

Expands, describes and converts recurrence rules. A rule is given either
with flags (--start, --period, ...), as a YAML rule file (--rule) or as a
rule line (--rrule). Examples:

  recurrence next --start 2018-01-15T09:00 --period weekly --days "Mon & Fri" --limit 5
  recurrence between --rrule "DTSTART=20180101T000000;FREQ=MONTHLY;INTERVAL=1;BYMONTHDAY=-1" --to 2018-12-31
  recurrence describe --rule rules/standup.yaml
  recurrence encode --start 2018-01-01 --period yearly --count 30
  recurrence decode 00000064...
"""
from __future__ import annotations

import argparse
import datetime as _dt
from pathlib import Path
from typing import Callable, List, Optional

from core.cli_errors import ConfigError, NotFoundError, UsageError
from core.cli_framework import CLIApp
from core.constants import DEFAULT_DAYS_FORWARD
from core.pipeline import BaseProducer, run_pipeline

from . import __version__
from .constants import DEFAULT_LOCALE, DEFAULT_OCCURRENCE_LIMIT
from .errors import FormatError, RecurrenceError
from .formatter import FormatTables, default_tables, load_format_tables
from .model import Recurrence, coerce_moment
from .pipeline import (
    BetweenProcessor,
    BetweenRequest,
    DecodeProcessor,
    DecodeRequest,
    DescribeProcessor,
    DescribeProducer,
    DescribeRequest,
    EncodeProcessor,
    EncodeRequest,
    OccurrencesProcessor,
    OccurrencesProducer,
    OccurrencesRequest,
    PresetsProcessor,
    PresetsProducer,
    PresetsRequest,
    RuleTextProcessor,
    RuleTextRequest,
)
from .rrule import from_rule_text
from .ruleio import MONTHLY_NAMES, PERIOD_NAMES, load_rule, rule_from_dict


app = CLIApp(
    "recurrence",
    "Expand, describe and convert recurrence rules.",
    version=__version__,
    epilog=__doc__.split("Examples:", 1)[1] if __doc__ else None,
)

# (flags, kwargs) shared by every command taking a rule
_RULE_ARGUMENTS = [
    (("--rule",), {"metavar": "FILE", "help": "YAML rule file"}),
    (("--rrule",), {"metavar": "TEXT", "help": "Rule line (DTSTART=...;FREQ=...)"}),
    (("--start",), {"help": "Start date/time (YYYY-MM-DD or YYYY-MM-DDTHH:MM)"}),
    (("--period",), {"choices": list(PERIOD_NAMES), "help": "Repeat period (default none)"}),
    (("--frequency", "-f"), {"type": int, "help": "Repeat every N periods (default 1)"}),
    (("--days",), {"help": "Weekly days, e.g. 'Mon & Fri', 'Mon to Fri' or 'MO,FR'"}),
    (("--monthly",), {"choices": sorted(MONTHLY_NAMES), "help": "Monthly day setting"}),
    (("--until",), {"help": "End on this date (inclusive)"}),
    (("--count",), {"type": int, "help": "End after N occurrences"}),
]

_TABLE_ARGUMENTS = [
    (("--locale",), {"default": DEFAULT_LOCALE, "help": f"Shipped phrase tables (default {DEFAULT_LOCALE})"}),
    (("--tables",), {"metavar": "FILE", "help": "Phrase tables YAML (overrides --locale)"}),
]


def _with_arguments(arguments: list) -> Callable:
    """Attach a shared argument list to the command below it, keeping its order."""
    def decorator(func):
        for flags, kwargs in reversed(arguments):
            app.argument(*flags, **kwargs)(func)
        return func
    return decorator


rule_arguments = _with_arguments(_RULE_ARGUMENTS)
table_arguments = _with_arguments(_TABLE_ARGUMENTS)


def _rule_from_args(args: argparse.Namespace) -> Recurrence:
    """Build the rule described by --rule, --rrule or the rule flags."""
    rule_path = getattr(args, "rule", None)
    rule_text = getattr(args, "rrule", None)
    flags = {
        "start": getattr(args, "start", None),
        "period": getattr(args, "period", None),
        "frequency": getattr(args, "frequency", None),
        "days": getattr(args, "days", None),
        "monthly": getattr(args, "monthly", None),
        "until": getattr(args, "until", None),
        "count": getattr(args, "count", None),
    }
    flags = {k: v for k, v in flags.items() if v is not None}
    sources = sum(1 for present in (rule_path, rule_text, flags) if present)
    if sources == 0:
        raise UsageError("No rule given", hint="Use --start/--period, --rule FILE or --rrule TEXT")
    if sources > 1:
        raise UsageError("Give only one of --rule, --rrule or rule flags")

    try:
        if rule_path:
            if not Path(rule_path).exists():
                raise NotFoundError(f"Rule file not found: {rule_path}")
            return load_rule(rule_path)
        if rule_text:
            return from_rule_text(rule_text)
        return rule_from_dict(flags)
    except RecurrenceError as exc:
        raise UsageError(str(exc)) from exc


def _tables_from_args(args: argparse.Namespace) -> FormatTables:
    try:
        path = getattr(args, "tables", None)
        if path:
            if not Path(path).exists():
                raise NotFoundError(f"Phrase tables not found: {path}")
            return load_format_tables(path)
        return default_tables(getattr(args, "locale", None) or DEFAULT_LOCALE)
    except FormatError as exc:
        raise ConfigError(str(exc), hint="See recurrence/locales/en.yaml for the expected keys") from exc


def _moment(value: Optional[str], what: str) -> Optional[_dt.datetime]:
    if value is None:
        return None
    try:
        return coerce_moment(value, what)
    except RecurrenceError as exc:
        raise UsageError(str(exc)) from exc


@app.command("next", help="List the occurrences following the start (or a known occurrence)")
@rule_arguments
@app.argument("--from", dest="from_date", help="Only occurrences on or after this day")
@app.argument("--limit", "-n", type=int, default=DEFAULT_OCCURRENCE_LIMIT,
              help=f"Maximum occurrences (default {DEFAULT_OCCURRENCE_LIMIT})")
@app.argument("--base", help="Step from this known occurrence instead of the start")
@app.argument("--base-count", type=int, default=0, help="Occurrences already produced up to --base")
def cmd_next(args: argparse.Namespace) -> int:
    request = OccurrencesRequest(
        rule=_rule_from_args(args),
        lower_bound=_moment(getattr(args, "from_date", None), "--from"),
        amount=getattr(args, "limit", DEFAULT_OCCURRENCE_LIMIT),
        base=_moment(getattr(args, "base", None), "--base"),
        base_count=getattr(args, "base_count", 0),
    )
    return run_pipeline(request, OccurrencesProcessor(), OccurrencesProducer(args._output))


@app.command("between", help="List the occurrences within a date window")
@rule_arguments
@app.argument("--from", dest="from_date", help="Window start day (default: rule start)")
@app.argument("--to", dest="to_date",
              help=f"Window end, exclusive (default: {DEFAULT_DAYS_FORWARD} days after the window start)")
def cmd_between(args: argparse.Namespace) -> int:
    rule = _rule_from_args(args)
    lower = _moment(getattr(args, "from_date", None), "--from") or rule.start
    upper = _moment(getattr(args, "to_date", None), "--to") or lower + _dt.timedelta(days=DEFAULT_DAYS_FORWARD)
    request = BetweenRequest(rule=rule, start=lower, end=upper)
    return run_pipeline(request, BetweenProcessor(), OccurrencesProducer(args._output))


@app.command("rrule", help="Print the rule line for a rule")
@rule_arguments
def cmd_rrule(args: argparse.Namespace) -> int:
    request = RuleTextRequest(rule=_rule_from_args(args))
    return run_pipeline(request, RuleTextProcessor(), BaseProducer(args._output))


@app.command("describe", help="Describe a rule in words")
@rule_arguments
@table_arguments
def cmd_describe(args: argparse.Namespace) -> int:
    request = DescribeRequest(rule=_rule_from_args(args), tables=_tables_from_args(args))
    return run_pipeline(request, DescribeProcessor(), DescribeProducer(args._output))


@app.command("encode", help="Print the binary record of a rule as hex")
@rule_arguments
def cmd_encode(args: argparse.Namespace) -> int:
    request = EncodeRequest(rule=_rule_from_args(args))
    return run_pipeline(request, EncodeProcessor(), BaseProducer(args._output))


@app.command("decode", help="Read a hex binary record and describe the rule")
@app.argument("record", help="Record as hex (whitespace ignored)")
@app.argument("--save", metavar="FILE", help="Also write the rule as a YAML rule file")
@table_arguments
def cmd_decode(args: argparse.Namespace) -> int:
    request = DecodeRequest(
        data=args.record,
        tables=_tables_from_args(args),
        save_path=getattr(args, "save", None),
    )
    return run_pipeline(request, DecodeProcessor(), DescribeProducer(args._output))


@app.command("presets", help="List preset rules for the rule's start, marking the matching one")
@rule_arguments
@table_arguments
def cmd_presets(args: argparse.Namespace) -> int:
    rule = _rule_from_args(args)
    request = PresetsRequest(start=rule.start, rule=rule, tables=_tables_from_args(args))
    return run_pipeline(request, PresetsProcessor(), PresetsProducer(args._output))


def main(argv: Optional[List[str]] = None) -> int:
    """Run the CLI."""
    return app.run(argv)


if __name__ == "__main__":
    raise SystemExit(main())
