"""
Unit tests for observability features.

Tests cover:
- Structured logging with JSON format
- Request correlation ID propagation
- Trace context in log lines
- Prometheus metrics rendering
- OpenTelemetry helpers (header parsing, disabled init, trace/span IDs)
"""

import json
import logging
import sys

import pytest
from opentelemetry.sdk.trace import TracerProvider

from listdata.core import telemetry
from listdata.core.config import settings
from listdata.core.observability import (
    StructuredFormatter,
    configure_structured_logging,
    get_logger,
    get_metrics_text,
    get_request_id,
    set_correlation_id,
)
from listdata.core.telemetry import (
    _parse_headers,
    get_span_id,
    get_trace_id,
    init_telemetry,
    shutdown_telemetry,
)


def _record(message="List request processed", **extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="listdata.engine.processor",
        level=logging.INFO,
        pathname=__file__,
        lineno=10,
        msg=message,
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestStructuredFormatter:
    """Tests for StructuredFormatter."""

    @pytest.mark.anyio
    async def test_outputs_json_with_standard_fields(self):
        entry = json.loads(StructuredFormatter().format(_record()))
        assert entry["level"] == "INFO"
        assert entry["logger"] == "listdata.engine.processor"
        assert entry["message"] == "List request processed"
        assert "timestamp" in entry
        assert entry["line"] == 10

    @pytest.mark.anyio
    async def test_extra_fields_are_nested(self):
        entry = json.loads(StructuredFormatter().format(_record(input_count=5, mode="offset")))
        assert entry["extra"]["input_count"] == 5
        assert entry["extra"]["mode"] == "offset"

    @pytest.mark.anyio
    async def test_request_id_included_when_set(self):
        set_correlation_id("req-123")
        try:
            entry = json.loads(StructuredFormatter().format(_record()))
            assert entry["request_id"] == "req-123"
            assert get_request_id() == "req-123"
        finally:
            set_correlation_id("")

    @pytest.mark.anyio
    async def test_request_id_omitted_when_unset(self):
        set_correlation_id("")
        entry = json.loads(StructuredFormatter().format(_record()))
        assert "request_id" not in entry

    @pytest.mark.anyio
    async def test_trace_context_included_inside_span(self):
        tracer = TracerProvider().get_tracer("test")
        with tracer.start_as_current_span("listdata.filter"):
            entry = json.loads(StructuredFormatter().format(_record()))
        assert len(entry["trace_id"]) == 32
        assert len(entry["span_id"]) == 16

    @pytest.mark.anyio
    async def test_exception_info(self):
        try:
            raise ValueError("boom")
        except ValueError:
            record = _record()
            record.exc_info = sys.exc_info()
        entry = json.loads(StructuredFormatter().format(record))
        assert entry["exception"] == {"type": "ValueError", "message": "boom"}


class TestConfigureLogging:
    """Tests for configure_structured_logging."""

    @pytest.fixture
    def restore_root_logger(self):
        root = logging.getLogger()
        handlers, level = list(root.handlers), root.level
        yield root
        root.handlers[:] = handlers
        root.setLevel(level)

    @pytest.mark.anyio
    async def test_structured_handler(self, restore_root_logger):
        configure_structured_logging("debug")
        assert restore_root_logger.level == logging.DEBUG
        assert isinstance(restore_root_logger.handlers[0].formatter, StructuredFormatter)

    @pytest.mark.anyio
    async def test_plain_text_handler(self, restore_root_logger):
        configure_structured_logging("WARNING", structured=False)
        assert restore_root_logger.level == logging.WARNING
        assert not isinstance(restore_root_logger.handlers[0].formatter, StructuredFormatter)

    @pytest.mark.anyio
    async def test_get_logger(self):
        assert get_logger("listdata.test").name == "listdata.test"


class TestMetricsText:
    """Tests for Prometheus rendering."""

    @pytest.mark.anyio
    async def test_metrics_text_lists_engine_metrics(self):
        text = get_metrics_text().decode("utf-8")
        assert "listdata_requests_total" in text
        assert "listdata_stage_duration_seconds" in text
        assert "listdata_result_items" in text
        assert "listdata_search_queries_total" in text


class TestTelemetry:
    """Tests for the OpenTelemetry helpers."""

    @pytest.mark.anyio
    async def test_parse_headers(self):
        assert _parse_headers("token=abc=123, header = value") == {
            "token": "abc=123",
            "header": "value",
        }
        assert _parse_headers(None) == {}
        assert _parse_headers("novalue") == {}

    @pytest.mark.anyio
    async def test_init_disabled_returns_none(self, monkeypatch):
        monkeypatch.setattr(settings, "otel_enabled", False)
        assert init_telemetry() is None

    @pytest.mark.anyio
    async def test_shutdown_without_init_is_a_no_op(self, monkeypatch):
        monkeypatch.setattr(telemetry, "_tracer_provider", None)
        shutdown_telemetry()

    @pytest.mark.anyio
    async def test_no_ids_outside_a_span(self):
        assert get_trace_id() is None
        assert get_span_id() is None
