"""
Tests for the engine tracer.

Verifies that traced engines emit PAYROLL_ENGINE_TRACE records with a
deterministic input fingerprint, and that failures are traced and re-raised.
"""

from decimal import Decimal

import pytest

from payroll_engines.advance_lifecycle import request_advance
from payroll_engines.tracer import (
    TRACE_TYPE,
    compute_input_fingerprint,
    traced_engine,
)
from payroll_kernel.exceptions import ValidationError


def _traces(captured_logs):
    return [r for r in captured_logs() if r.get("trace_type") == TRACE_TYPE]


class TestFingerprint:
    """Tests for compute_input_fingerprint."""

    def test_equal_decimals_share_fingerprint(self):
        a = compute_input_fingerprint(("amount",), {"amount": Decimal("100")})
        b = compute_input_fingerprint(("amount",), {"amount": Decimal("100.00")})
        assert a == b
        assert len(a) == 16

    def test_dict_key_order_ignored(self):
        a = compute_input_fingerprint(("d",), {"d": {"x": 1, "y": 2}})
        b = compute_input_fingerprint(("d",), {"d": {"y": 2, "x": 1}})
        assert a == b

    def test_different_inputs_differ(self):
        a = compute_input_fingerprint(("amount",), {"amount": Decimal("100")})
        b = compute_input_fingerprint(("amount",), {"amount": Decimal("101")})
        assert a != b


class TestTracedEngine:
    """Tests for the @traced_engine decorator."""

    def test_successful_call_emits_trace(self, captured_logs):
        request_advance("EMP-001", Decimal("300"), "Rent")

        traces = _traces(captured_logs)
        assert len(traces) == 1
        trace = traces[0]
        assert trace["engine_name"] == "advance_request"
        assert trace["engine_version"] == "1.0"
        assert trace["outcome"] == "ok"
        assert len(trace["input_fingerprint"]) == 16

    def test_positional_and_keyword_calls_fingerprint_alike(self, captured_logs):
        request_advance("EMP-001", Decimal("300"), "Rent")
        request_advance(employee_id="EMP-001", amount=Decimal("300"), reason="Other")

        first, second = _traces(captured_logs)
        assert first["input_fingerprint"] == second["input_fingerprint"]

    def test_failure_traced_and_reraised(self, captured_logs):
        with pytest.raises(ValidationError):
            request_advance("EMP-001", Decimal("-1"), "Rent")

        traces = _traces(captured_logs)
        assert traces[-1]["outcome"] == "error"

    def test_wrapper_preserves_name(self):
        @traced_engine("demo", "0.1")
        def sample(x):
            """Doc."""
            return x * 2

        assert sample(2) == 4
        assert sample.__name__ == "sample"
        assert sample.__doc__ == "Doc."
