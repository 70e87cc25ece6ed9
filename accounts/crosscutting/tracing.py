"""
===============================================================================
MODULE: OpenTelemetry tracing + log correlation
===============================================================================

Goals
-----
- Open a span around a unit of work when tracing is enabled
- Copy trace_id/span_id into contextvars so logs carry them

Design
------
- No-op unless Settings.otel_enabled is true or a tracer is installed
  explicitly with set_tracer() (tests, host applications with their own
  TracerProvider).
- The span is always closed, and the exception recorded, when the body raises.

-------------------------------------------------------------------------------
CRC (Component Card)
-------------------------------------------------------------------------------
Component:
  span() context manager, traced() decorator

Responsibilities:
  - Create spans with attributes
  - Record failures on the span (status ERROR + exception event)
  - Enrich the logging context with trace/span ids

Collaborators:
  - accounts/context.py (trace_id_var, span_id_var)
  - crosscutting/config.py (otel_enabled, otel_service_name)
===============================================================================
"""

from __future__ import annotations

import functools
from contextlib import contextmanager
from typing import Any, Callable, Generator, Optional, TypeVar

from opentelemetry import trace

from ..context import span_id_var, trace_id_var
from .config import get_settings

F = TypeVar("F", bound=Callable[..., Any])

_tracer: Optional[trace.Tracer] = None


def _init_tracing() -> None:
    global _tracer

    settings = get_settings()
    if not settings.otel_enabled:
        _tracer = None
        return

    from opentelemetry.sdk.resources import Resource
    from opentelemetry.sdk.trace import TracerProvider
    from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter

    resource = Resource.create({"service.name": settings.otel_service_name})
    provider = TracerProvider(resource=resource)
    provider.add_span_processor(BatchSpanProcessor(ConsoleSpanExporter()))
    trace.set_tracer_provider(provider)

    _tracer = trace.get_tracer("accounts")


_init_tracing()


def set_tracer(tracer: Optional[trace.Tracer]) -> None:
    """Install (or remove, with None) the tracer used by span()."""
    global _tracer
    _tracer = tracer


def is_tracing_enabled() -> bool:
    return _tracer is not None


@contextmanager
def span(name: str, attributes: Optional[dict] = None) -> Generator[Any, None, None]:
    """
    Usage:
      with span("business.userbus.create", {"actor_id": str(actor_id)}):
          ...

    Yields None when tracing is disabled.
    """
    if _tracer is None:
        yield None
        return

    with _tracer.start_as_current_span(
        name,
        attributes=attributes,
        record_exception=True,
        set_status_on_exception=True,
    ) as s:
        ctx = s.get_span_context()
        trace_token = trace_id_var.set(format(ctx.trace_id, "032x"))
        span_token = span_id_var.set(format(ctx.span_id, "016x"))
        try:
            yield s
        finally:
            span_id_var.reset(span_token)
            trace_id_var.reset(trace_token)


def traced(name: str) -> Callable[[F], F]:
    """Decorator form of span(): the whole call runs inside a span called `name`."""

    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            with span(name):
                return func(*args, **kwargs)

        return wrapper  # type: ignore[return-value]

    return decorator
