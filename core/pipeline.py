"""Processor/producer scaffolding for CLI commands.

A command builds a request, a processor turns it into a ``ResultEnvelope``
and a producer renders the envelope. Expected failures become error
envelopes; anything else propagates to the CLI error handler.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Generic, Optional, Tuple, Type, TypeVar

from .cli_errors import ExitCode
from .cli_output import OutputWriter

RequestT = TypeVar("RequestT")
ResultT = TypeVar("ResultT")


@dataclass
class ResultEnvelope(Generic[ResultT]):
    status: str
    payload: Optional[ResultT] = None
    diagnostics: Optional[Dict[str, Any]] = None

    @classmethod
    def success(cls, payload: ResultT) -> "ResultEnvelope[ResultT]":
        return cls(status="success", payload=payload)

    @classmethod
    def failure(cls, message: str, code: int = ExitCode.USAGE) -> "ResultEnvelope[Any]":
        return cls(status="error", diagnostics={"message": message, "code": int(code)})

    def ok(self) -> bool:
        return self.status.lower() == "success"

    @property
    def exit_code(self) -> int:
        if self.ok():
            return ExitCode.SUCCESS
        return int((self.diagnostics or {}).get("code", ExitCode.USAGE))


class SafeProcessor(Generic[RequestT, ResultT]):
    """Processor reporting the exception types in ``handled`` as error envelopes.

    Subclasses implement ``_process_safe``:

        class HalfProcessor(SafeProcessor[int, int]):
            handled = (ValueError,)

            def _process_safe(self, payload: int) -> int:
                ...
    """

    handled: Tuple[Type[BaseException], ...] = (ValueError,)
    error_code: int = ExitCode.USAGE

    def process(self, payload: RequestT) -> ResultEnvelope[ResultT]:
        try:
            return ResultEnvelope.success(self._process_safe(payload))
        except self.handled as exc:
            return ResultEnvelope.failure(str(exc), self.error_code)

    def _process_safe(self, payload: RequestT) -> ResultT:
        raise NotImplementedError("Subclass must implement _process_safe")


class BaseProducer:
    """Prints error envelopes to stderr and hands payloads to ``_produce_success``."""

    def __init__(self, writer: Optional[OutputWriter] = None) -> None:
        self.writer = writer or OutputWriter()

    def produce(self, result: ResultEnvelope) -> None:
        if result.ok():
            self._produce_success(result.payload, result.diagnostics)
            return
        message = (result.diagnostics or {}).get("message")
        if message:
            self.writer.print_error(message)

    def _produce_success(self, payload: Any, diagnostics: Optional[Dict[str, Any]]) -> None:
        self.writer.print_data(payload)


def run_pipeline(request: Any, processor: SafeProcessor, producer: BaseProducer) -> int:
    """Process ``request``, produce the envelope and return the CLI exit code."""
    envelope = processor.process(request)
    producer.produce(envelope)
    return envelope.exit_code
