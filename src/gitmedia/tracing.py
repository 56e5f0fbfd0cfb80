"""OpenTelemetry tracing for git media operations.

Environment Variables:
    GIT_MEDIA_OTEL_ENABLED: Set to "1" to emit spans (default: disabled)
    GIT_MEDIA_OTEL_SERVICE_NAME: Service name for spans (default: "gitmedia-client")
    GIT_MEDIA_OTEL_EXPORTER: "console" or "none" (default: "console")
    GIT_MEDIA_OTEL_TEST_CAPTURE: Set to "1" to use an in-memory exporter for tests

Security:
    - Never export credentials or Authorization headers in span attributes
    - URLs are exported without userinfo, querystring or fragment
    - Local filesystem paths are never exported, only object ids
"""

from __future__ import annotations

import functools
import logging
import os
from collections.abc import Callable
from typing import TYPE_CHECKING, Any, TypeVar, cast

from opentelemetry import trace

from gitmedia.errors import GitMediaError
from gitmedia.urls import derive_oid, sanitize_url

if TYPE_CHECKING:
    from opentelemetry.sdk.trace import ReadableSpan, TracerProvider

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])

TRACER_NAME = "gitmedia.client"

_tracer_provider: TracerProvider | None = None
_test_exporter: Any = None


def _get_env_bool(key: str, default: bool = False) -> bool:
    """Get boolean from environment variable."""
    val = os.environ.get(key, "").strip().lower()
    if val in ("1", "true", "yes"):
        return True
    if val in ("0", "false", "no", ""):
        return default
    return default


def _get_env_str(key: str, default: str = "") -> str:
    return os.environ.get(key, default).strip()


def is_tracing_enabled() -> bool:
    return _get_env_bool("GIT_MEDIA_OTEL_ENABLED", False)


def configure_tracing() -> bool:
    """Configure the OpenTelemetry tracer provider.

    Idempotent. The global provider can only be installed once per process;
    later calls reuse it.

    Returns:
        True if tracing is enabled and configured, False otherwise.
    """
    global _tracer_provider, _test_exporter

    if not is_tracing_enabled():
        logger.debug("Tracing disabled (GIT_MEDIA_OTEL_ENABLED not set)")
        return False

    if _tracer_provider is not None:
        return True

    from opentelemetry.sdk.resources import Resource
    from opentelemetry.sdk.trace import TracerProvider
    from opentelemetry.sdk.trace.export import ConsoleSpanExporter, SimpleSpanProcessor
    from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter

    service_name = _get_env_str("GIT_MEDIA_OTEL_SERVICE_NAME", "gitmedia-client")
    exporter_type = _get_env_str("GIT_MEDIA_OTEL_EXPORTER", "console")

    provider = TracerProvider(resource=Resource.create({"service.name": service_name}))

    if _get_env_bool("GIT_MEDIA_OTEL_TEST_CAPTURE", False):
        _test_exporter = InMemorySpanExporter()
        provider.add_span_processor(SimpleSpanProcessor(_test_exporter))
        exporter_type = "in-memory"
    elif exporter_type == "console":
        provider.add_span_processor(SimpleSpanProcessor(ConsoleSpanExporter()))

    trace.set_tracer_provider(provider)
    _tracer_provider = provider
    logger.info("Tracing configured: service=%s, exporter=%s", service_name, exporter_type)
    return True


def get_test_spans() -> list[ReadableSpan]:
    """Get spans captured by the in-memory exporter (for testing)."""
    if _test_exporter is not None:
        return list(_test_exporter.get_finished_spans())
    return []


def clear_test_spans() -> None:
    """Clear spans captured by the in-memory exporter (for testing)."""
    if _test_exporter is not None:
        _test_exporter.clear()


def traced_operation(operation: str) -> Callable[[F], F]:
    """Decorator emitting a span around a client operation.

    The wrapped method must take the local path as its first argument and
    its owner must expose ``object_url(oid)``.

    Args:
        operation: Operation name (e.g. "options", "put", "get").
    """

    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(self: Any, path: Any, *args: Any, **kwargs: Any) -> Any:
            if not is_tracing_enabled():
                return func(self, path, *args, **kwargs)

            tracer = trace.get_tracer(TRACER_NAME)
            with tracer.start_as_current_span(f"gitmedia.{operation}") as span:
                span.set_attribute("gitmedia.operation", operation)
                try:
                    oid = derive_oid(path)
                except GitMediaError:
                    oid = None
                if oid is not None:
                    span.set_attribute("gitmedia.oid", oid)
                    span.set_attribute("http.url", sanitize_url(self.object_url(oid)))

                try:
                    return func(self, path, *args, **kwargs)
                except Exception as e:
                    span.set_attribute("error", True)
                    span.set_attribute("error.type", type(e).__name__)
                    if isinstance(e, GitMediaError):
                        span.set_attribute("gitmedia.error_kind", str(e.kind))
                        status_code = getattr(e, "status_code", None)
                        if status_code is not None:
                            span.set_attribute("http.status_code", status_code)
                    raise

        return cast(F, wrapper)

    return decorator
