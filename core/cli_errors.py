"""CLI exit codes and error reporting."""
from __future__ import annotations

import sys
import traceback
from enum import IntEnum
from typing import Optional, TextIO


class ExitCode(IntEnum):
    """Process exit codes returned by the CLI."""
    SUCCESS = 0
    ERROR = 1
    USAGE = 2
    CONFIG_ERROR = 3
    NOT_FOUND = 6
    INTERRUPTED = 130  # 128 + SIGINT


class CLIError(Exception):
    """Error shown to the user as ``Error: ...`` plus an optional hint.

    Subclasses set the exit code as a class attribute; passing ``code``
    overrides it for a single error.
    """

    code: ExitCode = ExitCode.ERROR

    def __init__(self, message: str, code: Optional[ExitCode] = None, hint: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.hint = hint
        if code is not None:
            self.code = code

    def __str__(self) -> str:
        return self.message

    def report(self, stream: Optional[TextIO] = None) -> None:
        stream = stream or sys.stderr
        print(f"Error: {self.message}", file=stream)
        if self.hint:
            print(f"Hint: {self.hint}", file=stream)


class UsageError(CLIError):
    """Bad arguments, or a rule that cannot be built from them."""
    code = ExitCode.USAGE


class ConfigError(CLIError):
    """Phrase tables or a rule file could not be used."""
    code = ExitCode.CONFIG_ERROR


class NotFoundError(CLIError):
    """A rule file or phrase table path does not exist."""
    code = ExitCode.NOT_FOUND


def handle_error(error: BaseException, verbose: bool = False) -> int:
    """Report ``error`` on stderr and return the exit code to use.

    Unexpected exceptions print a traceback when ``verbose`` is set.
    """
    if isinstance(error, CLIError):
        error.report()
        return error.code
    if isinstance(error, KeyboardInterrupt):
        print("\nInterrupted.", file=sys.stderr)
        return ExitCode.INTERRUPTED

    print(f"Error: {error}", file=sys.stderr)
    if verbose:
        traceback.print_exception(type(error), error, error.__traceback__)
    return ExitCode.ERROR

