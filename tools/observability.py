"""
Observability module for structured logging and tracing.

This module provides:
- Structured logging with structlog (JSON or console rendering)
- OpenTelemetry spans around upstream calls
- Request id generation and binding into the logging context
"""

import logging
import random
import string
import time
from contextlib import contextmanager
from typing import Any, Dict, Iterator, Optional, TextIO

import structlog
from opentelemetry import trace
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter
from opentelemetry.trace import Status, StatusCode


SERVICE_NAME = "code-review-relay"

_BASE36 = string.digits + string.ascii_lowercase

_tracer_provider: Optional[TracerProvider] = None


def configure_logging(
    level: str = "INFO",
    fmt: str = "json",
    stream: Optional[TextIO] = None,
) -> None:
    """
    Configure structlog for the process.

    Args:
        level: Minimum log level name
        fmt: ``json`` for machine-readable lines, ``console`` for development
        stream: Output file for log lines (stdout if None)
    """
    renderer = (
        structlog.dev.ConsoleRenderer()
        if fmt == "console"
        else structlog.processors.JSONRenderer()
    )
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(level.upper())
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(stream),
        cache_logger_on_first_use=False,
    )


def setup_tracing(
    service_name: str = SERVICE_NAME,
    version: str = "1.0.0",
    enable_console_export: bool = False,
) -> TracerProvider:
    """
    Install the global OpenTelemetry tracer provider once per process.

    Args:
        service_name: Name of the service for tracing
        version: Service version attached to the resource
        enable_console_export: Whether to export spans to the console

    Returns:
        The configured tracer provider
    """
    global _tracer_provider
    if _tracer_provider is not None:
        return _tracer_provider

    resource = Resource.create({
        "service.name": service_name,
        "service.version": version,
    })
    provider = TracerProvider(resource=resource)

    if enable_console_export:
        provider.add_span_processor(BatchSpanProcessor(ConsoleSpanExporter()))

    trace.set_tracer_provider(provider)
    _tracer_provider = provider
    return provider


def generate_request_id(now: Optional[float] = None) -> str:
    """
    Generate a correlation token of the form ``req_<millis>_<suffix>``.

    Args:
        now: Epoch seconds (defaults to the current time)

    Returns:
        Request id string
    """
    if now is None:
        now = time.time()
    suffix = "".join(random.choices(_BASE36, k=6))
    return f"req_{int(now * 1000)}_{suffix}"


@contextmanager
def request_context(request_id: str, **extra: Any) -> Iterator[str]:
    """
    Bind ``request_id`` (and any extra fields) to the logging context.

    Yields:
        The request id being used
    """
    structlog.contextvars.bind_contextvars(request_id=request_id, **extra)
    try:
        yield request_id
    finally:
        structlog.contextvars.unbind_contextvars("request_id", *extra.keys())


@contextmanager
def trace_operation(
    operation_name: str,
    attributes: Optional[Dict[str, Any]] = None,
):
    """
    Context manager for tracing an operation.

    Args:
        operation_name: Name of the operation being traced
        attributes: Optional attributes to attach to the span

    Yields:
        The span object
    """
    tracer = trace.get_tracer(SERVICE_NAME)
    with tracer.start_as_current_span(
        operation_name, record_exception=False, set_status_on_exception=False
    ) as span:
        if attributes:
            for key, value in attributes.items():
                span.set_attribute(key, str(value))

        try:
            yield span
        except Exception as e:
            span.set_status(Status(StatusCode.ERROR, type(e).__name__))
            span.record_exception(e)
            raise


def get_logger(name: Optional[str] = None):
    return structlog.get_logger(name)
