"""OpenTelemetry tracing configuration for s3filestore.

Tracing is off unless enabled by environment. When on, every file store
operation emits a span (see s3filestore.storage.tracing) and botocore calls
can be instrumented so the underlying S3 requests nest under those spans.

Environment Variables:
    S3FILESTORE_OTEL_ENABLED: Set to "1" to enable tracing (default: disabled)
    S3FILESTORE_REQUIRE_OTEL: Set to "1" to raise if tracing cannot initialize
    S3FILESTORE_OTEL_SERVICE_NAME: Service name for spans (default: "s3filestore")
    S3FILESTORE_OTEL_EXPORTER: Exporter type - "otlp" or "console" (default: "otlp")
    S3FILESTORE_OTEL_EXPORTER_OTLP_ENDPOINT: OTLP endpoint URL (optional)
    S3FILESTORE_OTEL_EXPORTER_OTLP_PROTOCOL: "grpc" or "http" (default: "grpc")
    S3FILESTORE_OTEL_RESOURCE_ATTRS: Comma-separated k=v pairs for resource attributes
    S3FILESTORE_OTEL_TEST_CAPTURE: Set to "1" to use in-memory exporter for tests

Span attributes never include credentials, object bodies, or raw paths.
"""

from __future__ import annotations

import logging
import os
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from opentelemetry.sdk.trace import ReadableSpan, TracerProvider
    from opentelemetry.sdk.trace.export import SpanExporter

logger = logging.getLogger(__name__)

ENABLED_ENV = "S3FILESTORE_OTEL_ENABLED"
REQUIRE_ENV = "S3FILESTORE_REQUIRE_OTEL"
SERVICE_NAME_ENV = "S3FILESTORE_OTEL_SERVICE_NAME"
EXPORTER_ENV = "S3FILESTORE_OTEL_EXPORTER"
OTLP_ENDPOINT_ENV = "S3FILESTORE_OTEL_EXPORTER_OTLP_ENDPOINT"
OTLP_PROTOCOL_ENV = "S3FILESTORE_OTEL_EXPORTER_OTLP_PROTOCOL"
RESOURCE_ATTRS_ENV = "S3FILESTORE_OTEL_RESOURCE_ATTRS"
TEST_CAPTURE_ENV = "S3FILESTORE_OTEL_TEST_CAPTURE"

_tracer_provider: TracerProvider | None = None
_is_configured: bool = False
_botocore_instrumented: bool = False
_test_exporter: Any = None  # InMemorySpanExporter when test capture is on


class TracingConfigError(Exception):
    """Raised when tracing configuration fails and S3FILESTORE_REQUIRE_OTEL=1."""


def _get_env_bool(key: str, default: bool = False) -> bool:
    """Get boolean from environment variable."""
    val = os.environ.get(key, "").strip().lower()
    if val in ("1", "true", "yes"):
        return True
    return default


def _get_env_str(key: str, default: str = "") -> str:
    """Get string from environment variable."""
    return os.environ.get(key, default).strip()


def _parse_resource_attrs(attrs_str: str) -> dict[str, str]:
    """Parse comma-separated k=v resource attributes."""
    result: dict[str, str] = {}
    for pair in attrs_str.split(","):
        k, sep, v = pair.partition("=")
        if sep and k.strip():
            result[k.strip()] = v.strip()
    return result


def _create_exporter(exporter_type: str) -> SpanExporter:
    """Create the span exporter named by S3FILESTORE_OTEL_EXPORTER."""
    if exporter_type == "console":
        from opentelemetry.sdk.trace.export import ConsoleSpanExporter

        return ConsoleSpanExporter()

    kwargs: dict[str, Any] = {}
    endpoint = _get_env_str(OTLP_ENDPOINT_ENV)
    if endpoint:
        kwargs["endpoint"] = endpoint

    if _get_env_str(OTLP_PROTOCOL_ENV, "grpc") == "http":
        from opentelemetry.exporter.otlp.proto.http.trace_exporter import (
            OTLPSpanExporter as HTTPExporter,
        )

        return HTTPExporter(**kwargs)

    from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import (
        OTLPSpanExporter as GRPCExporter,
    )

    return GRPCExporter(**kwargs)


def configure_tracing() -> bool:
    """Configure OpenTelemetry tracing from the environment.

    Idempotent. The global tracer provider can only be installed once per
    process, so later calls reuse it.

    Returns:
        True if tracing is enabled and configured, False otherwise.

    Raises:
        TracingConfigError: If S3FILESTORE_REQUIRE_OTEL=1 and configuration fails.
    """
    global _tracer_provider, _is_configured, _test_exporter

    if not _get_env_bool(ENABLED_ENV):
        _is_configured = True
        logger.debug("OpenTelemetry tracing disabled (%s not set)", ENABLED_ENV)
        return False

    test_capture = _get_env_bool(TEST_CAPTURE_ENV)
    if test_capture and _test_exporter is not None:
        return True
    if _tracer_provider is not None:
        return True

    _is_configured = True

    try:
        from opentelemetry import trace
        from opentelemetry.sdk.resources import Resource
        from opentelemetry.sdk.trace import TracerProvider
        from opentelemetry.sdk.trace.export import BatchSpanProcessor, SimpleSpanProcessor

        service_name = _get_env_str(SERVICE_NAME_ENV, "s3filestore")
        resource_attrs = {"service.name": service_name}
        resource_attrs.update(_parse_resource_attrs(_get_env_str(RESOURCE_ATTRS_ENV)))

        provider = TracerProvider(resource=Resource.create(resource_attrs))

        if test_capture:
            from opentelemetry.sdk.trace.export.in_memory_span_exporter import (
                InMemorySpanExporter,
            )

            _test_exporter = InMemorySpanExporter()
            provider.add_span_processor(SimpleSpanProcessor(_test_exporter))
            exporter_name = "in-memory"
        else:
            exporter_name = _get_env_str(EXPORTER_ENV, "otlp")
            exporter = _create_exporter(exporter_name)
            if exporter_name == "console":
                provider.add_span_processor(SimpleSpanProcessor(exporter))
            else:
                provider.add_span_processor(BatchSpanProcessor(exporter))

        trace.set_tracer_provider(provider)
        _tracer_provider = provider

        logger.info(
            "OpenTelemetry tracing configured: service=%s, exporter=%s",
            service_name,
            exporter_name,
        )
        return True

    except Exception as e:
        logger.error("Failed to configure OpenTelemetry tracing: %s", e)
        if _get_env_bool(REQUIRE_ENV):
            raise TracingConfigError(
                f"OpenTelemetry tracing required but configuration failed: {e}"
            ) from e
        return False


def instrument_botocore() -> bool:
    """Instrument botocore so each S3 request emits a client span.

    Returns:
        True if instrumentation is active after the call.
    """
    global _botocore_instrumented

    if not _get_env_bool(ENABLED_ENV):
        return False
    if _botocore_instrumented:
        return True

    try:
        from opentelemetry.instrumentation.botocore import BotocoreInstrumentor

        BotocoreInstrumentor().instrument()
        _botocore_instrumented = True
        logger.debug("botocore instrumented with OpenTelemetry")
    except Exception as e:
        logger.warning("Failed to instrument botocore: %s", e)
    return _botocore_instrumented


def get_current_trace_id() -> str | None:
    """Get the current trace ID for logging correlation.

    Returns:
        Hex string of current trace ID, or None if no active span.
    """
    try:
        from opentelemetry import trace

        ctx = trace.get_current_span().get_span_context()
        if ctx is None or not ctx.is_valid:
            return None
        return format(ctx.trace_id, "032x")
    except Exception:
        return None


def get_test_spans() -> list[ReadableSpan]:
    """Get captured spans from in-memory exporter (for testing).

    Returns:
        List of captured spans if S3FILESTORE_OTEL_TEST_CAPTURE=1, else empty list.
    """
    if _test_exporter is not None:
        return list(_test_exporter.get_finished_spans())
    return []


def clear_test_spans() -> None:
    """Clear captured spans from in-memory exporter (for testing)."""
    if _test_exporter is not None:
        _test_exporter.clear()


def reset_tracing() -> None:
    """Reset tracing configuration (for testing).

    The installed TracerProvider cannot be replaced, so the in-memory
    exporter is kept and only its spans are cleared.
    """
    global _is_configured

    clear_test_spans()
    _is_configured = False
