"""Tests for the @traced_engine decorator and input fingerprinting."""

import json
import logging
from io import StringIO

import pytest

from erp_engines.approval import approve
from erp_engines.tracer import compute_input_fingerprint, traced_engine
from erp_kernel.exceptions import NotEligibleError
from erp_kernel.logging_config import StructuredFormatter, configure_logging


@pytest.fixture
def trace_stream():
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    configure_logging(handler=handler, level=logging.DEBUG)
    return stream


def _traces(stream: StringIO) -> list[dict]:
    records = [json.loads(line) for line in stream.getvalue().splitlines() if line]
    return [r for r in records if r["message"] == "ERP_ENGINE_TRACE"]


class TestFingerprint:

    def test_deterministic(self):
        a = compute_input_fingerprint(("acting_role",), {"acting_role": "gmd"})
        b = compute_input_fingerprint(("acting_role",), {"acting_role": "gmd"})
        assert a == b
        assert len(a) == 16

    def test_sensitive_to_values(self):
        a = compute_input_fingerprint(("acting_role",), {"acting_role": "gmd"})
        b = compute_input_fingerprint(("acting_role",), {"acting_role": "finance"})
        assert a != b

    def test_missing_field_is_null(self):
        a = compute_input_fingerprint(("acting_role",), {})
        b = compute_input_fingerprint(("acting_role",), {"acting_role": None})
        assert a == b

    def test_dict_key_order_irrelevant(self):
        a = compute_input_fingerprint(("flags",), {"flags": {"a": 1, "b": 2}})
        b = compute_input_fingerprint(("flags",), {"flags": {"b": 2, "a": 1}})
        assert a == b


class TestTracedEngine:

    def test_emits_trace_on_success(self, trace_stream, make_memo):
        approve(make_memo(), acting_role="finance", acting_user_id=1)

        traces = _traces(trace_stream)
        assert len(traces) == 1
        trace = traces[0]
        assert trace["trace_type"] == "ERP_ENGINE_TRACE"
        assert trace["engine_name"] == "approval"
        assert trace["engine_version"] == "1.0"
        assert trace["function"] == "approve"
        assert trace["error_code"] is None
        assert trace["input_fingerprint"] == compute_input_fingerprint(
            ("acting_role",), {"acting_role": "finance"},
        )

    def test_records_error_code_and_reraises(self, trace_stream, make_memo):
        with pytest.raises(NotEligibleError):
            approve(make_memo(), acting_role="gmd", acting_user_id=1)

        assert _traces(trace_stream)[0]["error_code"] == "NOT_ELIGIBLE"

    def test_preserves_function_metadata(self):
        @traced_engine("sample", "2.0")
        def compute(x):
            """Doubles x."""
            return x * 2

        assert compute.__name__ == "compute"
        assert compute.__doc__ == "Doubles x."
        assert compute(4) == 8

    def test_positional_arguments_are_fingerprinted(self, trace_stream, make_memo):
        approve(make_memo(id=31), "finance", 1)

        trace = _traces(trace_stream)[0]
        assert trace["input_fingerprint"] == compute_input_fingerprint(
            ("acting_role",), {"acting_role": "finance"},
        )
        assert trace["subject_id"] == 31

    def test_enum_values_fingerprint_like_their_value(self):
        from erp_kernel.domain.approval import DocumentType

        assert compute_input_fingerprint(("t",), {"t": DocumentType.MEMO}) == (
            compute_input_fingerprint(("t",), {"t": "memo"})
        )
