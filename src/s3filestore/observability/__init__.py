"""s3filestore observability: OpenTelemetry tracing setup."""

from s3filestore.observability.tracing import (
    configure_tracing,
    get_current_trace_id,
    instrument_botocore,
)

__all__ = ["configure_tracing", "get_current_trace_id", "instrument_botocore"]
