"""
OpenTelemetry tracing for the list-query engine.

The processor opens one span per pipeline stage through ``get_tracer``. When no
tracer provider has been installed, the OpenTelemetry API hands out no-op
spans, so tracing costs nothing in tests or in hosts that do not export.

Configuration via environment variables (see listdata.core.config):
- LISTDATA_OTEL_ENABLED: Enable/disable exporting (default: false)
- LISTDATA_OTEL_SERVICE_NAME: Service name for traces (default: listdata)
- LISTDATA_OTEL_EXPORTER_OTLP_ENDPOINT: OTLP collector endpoint
- LISTDATA_OTEL_EXPORTER_OTLP_HEADERS: Optional headers for OTLP exporter
- LISTDATA_OTEL_TRACES_SAMPLER_ARG: Sampling rate (default: 1.0)

Usage:
    from listdata.core.telemetry import init_telemetry, shutdown_telemetry

    init_telemetry()
    ...
    shutdown_telemetry()
"""

import logging

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import DEPLOYMENT_ENVIRONMENT, SERVICE_NAME, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.sdk.trace.sampling import ParentBased, TraceIdRatioBased

logger = logging.getLogger(__name__)

TRACER_NAME = "listdata"

# Global tracer provider reference for shutdown
_tracer_provider: TracerProvider | None = None


def _parse_headers(headers_string: str | None) -> dict[str, str]:
    """
    Parse OTLP headers from environment variable format.

    Args:
        headers_string: Headers in format "key1=value1,key2=value2"

    Returns:
        Dictionary of headers
    """
    if not headers_string:
        return {}

    headers = {}
    for pair in headers_string.split(","):
        pair = pair.strip()
        if "=" in pair:
            key, value = pair.split("=", 1)
            headers[key.strip()] = value.strip()
    return headers


def init_telemetry(
    service_name: str | None = None,
    otlp_endpoint: str | None = None,
    otlp_headers: str | None = None,
    sampler_arg: float | None = None,
) -> TracerProvider | None:
    """
    Initialize OpenTelemetry tracing with an OTLP exporter.

    Args:
        service_name: Service name (defaults to settings.otel_service_name)
        otlp_endpoint: OTLP collector endpoint
        otlp_headers: OTLP exporter headers
        sampler_arg: Root sampling ratio

    Returns:
        TracerProvider instance if enabled, None otherwise
    """
    global _tracer_provider

    from listdata.core.config import settings

    if not settings.otel_enabled:
        logger.info("OpenTelemetry tracing is disabled (LISTDATA_OTEL_ENABLED=false)")
        return None

    service_name = service_name or settings.otel_service_name
    otlp_endpoint = otlp_endpoint or settings.otel_exporter_otlp_endpoint
    otlp_headers = otlp_headers or settings.otel_exporter_otlp_headers
    sampler_arg = sampler_arg if sampler_arg is not None else settings.otel_traces_sampler_arg

    resource = Resource.create(
        {
            SERVICE_NAME: service_name,
            DEPLOYMENT_ENVIRONMENT: settings.app_env.value,
        }
    )
    tracer_provider = TracerProvider(
        resource=resource, sampler=ParentBased(root=TraceIdRatioBased(sampler_arg))
    )
    tracer_provider.add_span_processor(
        BatchSpanProcessor(
            OTLPSpanExporter(endpoint=otlp_endpoint, headers=_parse_headers(otlp_headers))
        )
    )
    trace.set_tracer_provider(tracer_provider)
    _tracer_provider = tracer_provider

    logger.info(
        "OpenTelemetry initialized: service=%s, endpoint=%s", service_name, otlp_endpoint
    )
    return tracer_provider


def shutdown_telemetry() -> None:
    """Shutdown the tracer provider, flushing pending spans."""
    global _tracer_provider

    if _tracer_provider is None:
        logger.debug("OpenTelemetry tracer provider not initialized")
        return

    logger.info("Shutting down OpenTelemetry tracer provider")
    _tracer_provider.shutdown()
    _tracer_provider = None


def get_tracer() -> trace.Tracer:
    """Get the tracer used for list pipeline spans."""
    return trace.get_tracer(TRACER_NAME)


def get_trace_id() -> str | None:
    """
    Get the current trace ID from OpenTelemetry context.

    Returns:
        Trace ID as hex string, or None if no active span
    """
    current_span = trace.get_current_span()
    if not current_span.is_recording():
        return None
    return format(current_span.get_span_context().trace_id, "032x")


def get_span_id() -> str | None:
    """
    Get the current span ID from OpenTelemetry context.

    Returns:
        Span ID as hex string, or None if no active span
    """
    current_span = trace.get_current_span()
    if not current_span.is_recording():
        return None
    return format(current_span.get_span_context().span_id, "016x")
