"""Tests for core/pipeline.py."""

from __future__ import annotations

import io
import unittest
from typing import Any, Dict, Optional
from unittest.mock import patch

from core.cli_errors import ExitCode
from core.cli_output import OutputConfig, OutputFormat, OutputWriter
from core.pipeline import BaseProducer, ResultEnvelope, SafeProcessor, run_pipeline


class _Halver(SafeProcessor[int, int]):
    handled = (ValueError,)

    def _process_safe(self, payload: int) -> int:
        if payload % 2:
            raise ValueError(f"{payload} is odd")
        if payload < 0:
            raise RuntimeError("negative")
        return payload // 2


class _CollectingProducer(BaseProducer):
    def __init__(self) -> None:
        super().__init__()
        self.seen = []

    def _produce_success(self, payload: Any, diagnostics: Optional[Dict[str, Any]]) -> None:
        self.seen.append(payload)


class TestResultEnvelope(unittest.TestCase):
    def test_constructors(self):
        ok = ResultEnvelope.success([1])
        self.assertTrue(ok.ok())
        self.assertEqual(ok.exit_code, 0)
        failed = ResultEnvelope.failure("bad", ExitCode.NOT_FOUND)
        self.assertFalse(failed.ok())
        self.assertEqual(failed.diagnostics, {"message": "bad", "code": 6})
        self.assertEqual(failed.exit_code, ExitCode.NOT_FOUND)

    def test_exit_code_defaults_to_usage(self):
        self.assertEqual(ResultEnvelope(status="error").exit_code, ExitCode.USAGE)

    def test_ok_is_case_insensitive(self):
        self.assertTrue(ResultEnvelope(status="SUCCESS").ok())
        self.assertTrue(ResultEnvelope(status="success").ok())
        self.assertFalse(ResultEnvelope(status="error").ok())


class TestSafeProcessor(unittest.TestCase):
    def test_success_wraps_payload(self):
        envelope = _Halver().process(4)
        self.assertTrue(envelope.ok())
        self.assertEqual(envelope.payload, 2)

    def test_handled_error_becomes_envelope(self):
        envelope = _Halver().process(3)
        self.assertFalse(envelope.ok())
        self.assertEqual(envelope.diagnostics, {"message": "3 is odd", "code": int(ExitCode.USAGE)})

    def test_unhandled_error_propagates(self):
        with self.assertRaises(RuntimeError):
            _Halver().process(-2)


class TestBaseProducer(unittest.TestCase):
    def test_error_goes_to_stderr(self):
        producer = _CollectingProducer()
        with patch("sys.stderr", new_callable=io.StringIO) as err:
            producer.produce(ResultEnvelope(status="error", diagnostics={"message": "bad"}))
        self.assertEqual(err.getvalue(), "Error: bad\n")
        self.assertEqual(producer.seen, [])

    def test_default_rendering_uses_writer(self):
        buf = io.StringIO()
        producer = BaseProducer(OutputWriter(OutputConfig(format=OutputFormat.JSON, file=buf)))
        producer.produce(ResultEnvelope(status="success", payload=[1, 2]))
        self.assertEqual(buf.getvalue(), "[\n  1,\n  2\n]\n")


class TestRunPipeline(unittest.TestCase):
    def test_success_returns_zero(self):
        producer = _CollectingProducer()
        self.assertEqual(run_pipeline(8, _Halver(), producer), 0)
        self.assertEqual(producer.seen, [4])

    def test_failure_returns_diagnostics_code(self):
        with patch("sys.stderr", new_callable=io.StringIO):
            self.assertEqual(run_pipeline(5, _Halver(), _CollectingProducer()), ExitCode.USAGE)


if __name__ == "__main__":
    unittest.main()
