"""Declarative CLI application framework.

Commands are plain functions registered with ``@app.command``; their
arguments are declared with ``@app.argument`` below it. Every app gets
``--verbose``, ``--quiet`` and ``--output``, and each command receives an
``OutputWriter`` for the chosen format as ``args._output``.
"""
from __future__ import annotations

import argparse
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from .cli_errors import ExitCode, handle_error
from .cli_output import OutputConfig, OutputFormat, OutputWriter
from .constants import DEFAULT_OUTPUT_FORMAT

CommandFunc = Callable[[argparse.Namespace], int]

LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"

# Attribute on a command function collecting its @app.argument declarations
_ARGUMENTS_ATTR = "__cli_arguments__"


@dataclass
class Argument:
    """One ``add_argument`` call."""
    name_or_flags: Tuple[str, ...]
    kwargs: Dict[str, Any] = field(default_factory=dict)

    def add_to(self, parser: argparse.ArgumentParser) -> None:
        parser.add_argument(*self.name_or_flags, **self.kwargs)


@dataclass
class CommandDef:
    name: str
    func: CommandFunc
    help: str = ""
    description: str = ""
    arguments: List[Argument] = field(default_factory=list)


COMMON_ARGUMENTS = [
    Argument(("--verbose", "-v"), {"action": "store_true", "help": "Enable debug logging"}),
    Argument(("--quiet", "-q"), {"action": "store_true", "help": "Suppress output"}),
    Argument(("--output", "-o"), {
        "choices": [f.value for f in OutputFormat],
        "default": DEFAULT_OUTPUT_FORMAT,
        "help": f"Output format (default: {DEFAULT_OUTPUT_FORMAT})",
    }),
]


class CLIApp:
    """Command-line application built from decorated functions.

    Example usage:
        app = CLIApp("recurrence", "Recurrence rule tools")

        @app.command("next", help="Print upcoming occurrences")
        @app.argument("--limit", type=int, default=10)
        def cmd_next(args):
            ...
            return 0

        if __name__ == "__main__":
            raise SystemExit(app.run())
    """

    def __init__(
        self,
        name: str,
        description: str = "",
        *,
        version: Optional[str] = None,
        epilog: Optional[str] = None,
        add_common_args: bool = True,
    ):
        self.name = name
        self.description = description
        self.version = version
        self.epilog = epilog
        self.add_common_args = add_common_args
        self._commands: Dict[str, CommandDef] = {}
        self._parser: Optional[argparse.ArgumentParser] = None

    def command(self, name: str, *, help: str = "", description: str = "") -> Callable[[CommandFunc], CommandFunc]:
        """Register the decorated function as command ``name``."""
        def decorator(func: CommandFunc) -> CommandFunc:
            # @app.argument decorators ran bottom-up; restore source order
            declared = getattr(func, _ARGUMENTS_ATTR, [])
            self._commands[name] = CommandDef(
                name=name,
                func=func,
                help=help,
                description=description or help,
                arguments=list(reversed(declared)),
            )
            self._parser = None
            return func
        return decorator

    def argument(self, *name_or_flags: str, **kwargs: Any) -> Callable[[CommandFunc], CommandFunc]:
        """Declare an argument for the command registered above this decorator.

        ``name_or_flags`` and ``kwargs`` are passed to ``add_argument``.
        """
        def decorator(func: CommandFunc) -> CommandFunc:
            if not hasattr(func, _ARGUMENTS_ATTR):
                setattr(func, _ARGUMENTS_ATTR, [])
            getattr(func, _ARGUMENTS_ATTR).append(Argument(tuple(name_or_flags), kwargs))
            return func
        return decorator

    @property
    def commands(self) -> Dict[str, CommandDef]:
        return dict(self._commands)

    def build_parser(self) -> argparse.ArgumentParser:
        parser = argparse.ArgumentParser(
            prog=self.name,
            description=self.description,
            epilog=self.epilog,
            formatter_class=argparse.RawDescriptionHelpFormatter,
        )
        if self.version:
            parser.add_argument("--version", "-V", action="version", version=f"%(prog)s {self.version}")
        if self.add_common_args:
            for arg in COMMON_ARGUMENTS:
                arg.add_to(parser)

        if self._commands:
            subparsers = parser.add_subparsers(dest="command", metavar="<command>")
            for cmd in self._commands.values():
                sub = subparsers.add_parser(cmd.name, help=cmd.help, description=cmd.description)
                for arg in cmd.arguments:
                    arg.add_to(sub)
                sub.set_defaults(_cmd_func=cmd.func)
        return parser

    @property
    def parser(self) -> argparse.ArgumentParser:
        if self._parser is None:
            self._parser = self.build_parser()
        return self._parser

    def run(self, argv: Optional[Sequence[str]] = None) -> int:
        """Parse ``argv`` (defaults to sys.argv[1:]), run the command and return its exit code."""
        args = self.parser.parse_args(argv)
        verbose = bool(getattr(args, "verbose", False))
        if verbose:
            logging.basicConfig(level=logging.DEBUG, format=LOG_FORMAT)
        args._output = _writer_for(args)

        cmd_func = getattr(args, "_cmd_func", None)
        if cmd_func is None:
            self.parser.print_help()
            return ExitCode.USAGE
        try:
            return int(cmd_func(args))
        except (Exception, KeyboardInterrupt) as exc:
            return handle_error(exc, verbose=verbose)


def _writer_for(args: argparse.Namespace) -> OutputWriter:
    return OutputWriter(OutputConfig(
        format=OutputFormat(getattr(args, "output", DEFAULT_OUTPUT_FORMAT)),
        verbose=bool(getattr(args, "verbose", False)),
        quiet=bool(getattr(args, "quiet", False)),
    ))
