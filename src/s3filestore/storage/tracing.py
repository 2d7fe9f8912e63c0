"""OpenTelemetry tracing for file store operations.

Span attributes carry only safe identifiers: the SHA256 of the logical path,
never the raw path or key, plus backend, bucket and result shape.
"""

from __future__ import annotations

import functools
import hashlib
import inspect
import logging
import os
from collections.abc import Callable
from typing import Any, TypeVar, cast

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


def _get_env_bool(key: str, default: bool = False) -> bool:
    """Get boolean from environment variable."""
    val = os.environ.get(key, "").strip().lower()
    if val in ("1", "true", "yes"):
        return True
    return default


def _is_otel_enabled() -> bool:
    """Check if OpenTelemetry tracing is enabled."""
    return _get_env_bool("S3FILESTORE_OTEL_ENABLED", False)


def _path_sha256(path: Any) -> str:
    logical_path = getattr(path, "path", path)
    return hashlib.sha256(str(logical_path or "").encode("utf-8")).hexdigest()


def traced_file_store_operation(operation: str) -> Callable[[F], F]:
    """Decorator to trace file store operations with OpenTelemetry.

    Args:
        operation: Operation name (e.g., "get_file_info", "copy_file").

    Returns:
        Decorated function that emits spans when tracing is enabled.
    """

    def decorator(func: F) -> F:
        # First parameter after self names the path the span is keyed on.
        path_param = list(inspect.signature(func).parameters)[1]

        @functools.wraps(func)
        def wrapper(self: Any, *args: Any, **kwargs: Any) -> Any:
            if not _is_otel_enabled():
                return func(self, *args, **kwargs)

            try:
                from opentelemetry import trace
            except ImportError:
                return func(self, *args, **kwargs)

            path = args[0] if args else kwargs.get(path_param)

            tracer = trace.get_tracer("s3filestore.file_store")
            span_name = f"s3filestore.file_store.{operation}"

            with tracer.start_as_current_span(span_name) as span:
                span.set_attribute("s3filestore.path_sha256", _path_sha256(path))
                span.set_attribute("storage.backend", getattr(self, "backend_name", "unknown"))
                bucket = getattr(self, "bucket_name", None)
                if bucket:
                    span.set_attribute("storage.bucket", bucket)

                try:
                    result = func(self, *args, **kwargs)
                except Exception as e:
                    span.set_attribute("error", True)
                    span.set_attribute("error.type", type(e).__name__)
                    raise

                _add_result_attributes(span, result, operation)
                return result

        return cast(F, wrapper)

    return decorator


def _add_result_attributes(span: Any, result: Any, operation: str) -> None:
    """Add result-based attributes to span safely.

    Only adds shape information (found, counts, sizes), never paths.
    """
    try:
        from s3filestore.storage.models import DirectoryEntry, FileEntry, LookupResult

        if isinstance(result, bool):
            span.set_attribute("s3filestore.succeeded", result)
        elif isinstance(result, FileEntry | DirectoryEntry):
            span.set_attribute("s3filestore.found", True)
            span.set_attribute("s3filestore.is_directory", result.is_directory)
            span.set_attribute("s3filestore.length", result.length)
        elif isinstance(result, list):
            span.set_attribute("s3filestore.entry_count", len(result))
            span.set_attribute(
                "s3filestore.directory_count", sum(1 for e in result if e.is_directory)
            )
        elif isinstance(result, LookupResult):
            span.set_attribute("s3filestore.lookup_status", result.status.value)
        elif result is None and operation.startswith("get_"):
            span.set_attribute("s3filestore.found", False)
    except Exception as e:
        logger.debug("Failed to add result attributes to span: %s", e)
