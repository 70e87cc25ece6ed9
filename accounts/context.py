"""
===============================================================================
CRC CARD: accounts/context.py (per-call context)
===============================================================================

Responsibilities:
  - Keep call-scoped context in ContextVars (thread and async safe).
  - Correlate logs and spans without threading parameters through the stack.
  - Provide minimal helpers: set_*(), get_context_dict(), clear_context().

Collaborators:
  - crosscutting.logger: enriches JSON records with get_context_dict().
  - crosscutting.tracing: sets trace_id/span_id while a span is active.
  - Transport layer (out of scope): sets request_id/actor_id per request.

Constraints:
  - Only primitive strings, so the values serialize safely.
  - Empty string ("") means "not available".
===============================================================================
"""

from __future__ import annotations

from contextvars import ContextVar
from typing import Final

request_id_var: ContextVar[str] = ContextVar("request_id", default="")
actor_id_var: ContextVar[str] = ContextVar("actor_id", default="")

# Hex ids, only while an OpenTelemetry span is active.
trace_id_var: ContextVar[str] = ContextVar("trace_id", default="")
span_id_var: ContextVar[str] = ContextVar("span_id", default="")

_CTX_REQUEST_ID: Final[str] = "request_id"
_CTX_ACTOR_ID: Final[str] = "actor_id"
_CTX_TRACE_ID: Final[str] = "trace_id"
_CTX_SPAN_ID: Final[str] = "span_id"


def set_request_context(*, request_id: str = "", actor_id: str = "") -> None:
    """Set the minimal context of the current request."""
    request_id_var.set(request_id or "")
    actor_id_var.set(actor_id or "")


def set_trace_context(*, trace_id: str = "", span_id: str = "") -> None:
    trace_id_var.set(trace_id or "")
    span_id_var.set(span_id or "")


def get_context_dict() -> dict[str, str]:
    """Return the current context as a dict, omitting empty keys."""
    ctx: dict[str, str] = {}

    if val := request_id_var.get():
        ctx[_CTX_REQUEST_ID] = val
    if val := actor_id_var.get():
        ctx[_CTX_ACTOR_ID] = val
    if val := trace_id_var.get():
        ctx[_CTX_TRACE_ID] = val
    if val := span_id_var.get():
        ctx[_CTX_SPAN_ID] = val

    return ctx


def clear_context() -> None:
    """
    Reset every context var at the end of a request or job.

    Workers reuse threads and event loops; leftovers would leak into the next call.
    """
    request_id_var.set("")
    actor_id_var.set("")
    trace_id_var.set("")
    span_id_var.set("")
