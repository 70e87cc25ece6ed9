"""
===============================================================================
FILE: crosscutting/metrics.py
===============================================================================

CRC CARD (Module)
-------------------------------------------------------------------------------
Name:
    Metrics (Prometheus), low coupling observability

Responsibilities:
    - Define the business call metrics on a private registry.
    - Provide small, stable functions to record outcomes and durations.
    - Keep cardinality low (operation + outcome only, NO user ids or emails).
    - Render the exposition payload for a /metrics endpoint owned elsewhere.

Collaborators:
    - application/user_business.py: records every Business operation.
    - crosscutting/config.py: metrics_enabled switch.
===============================================================================
"""

from __future__ import annotations

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)

from .config import get_settings

OUTCOME_SUCCESS = "success"
OUTCOME_ERROR = "error"

_registry = CollectorRegistry()

_business_calls_total = Counter(
    "accounts_business_calls_total",
    "Total user business operations",
    ["operation", "outcome"],
    registry=_registry,
)

_business_call_seconds = Histogram(
    "accounts_business_call_seconds",
    "Duration of user business operations (seconds)",
    ["operation"],
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5),
    registry=_registry,
)


def record_business_call(operation: str, outcome: str, seconds: float) -> None:
    """Record one finished business operation (no-op when metrics are disabled)."""
    if not get_settings().metrics_enabled:
        return

    _business_calls_total.labels(operation=operation, outcome=outcome).inc()
    _business_call_seconds.labels(operation=operation).observe(max(0.0, seconds))


def get_registry() -> CollectorRegistry:
    return _registry


def render_metrics() -> tuple[bytes, str]:
    """Return (payload, content_type) for the exposition endpoint."""
    return generate_latest(_registry), CONTENT_TYPE_LATEST
