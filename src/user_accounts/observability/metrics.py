"""Prometheus metrics for the user accounts store and publisher.

Outcomes are coarse labels (``ok``, ``not_found``, ``conflict``,
``locked``, ``duplicate``, ``error``) so dashboards can separate
contention from failures.
"""

from __future__ import annotations

from prometheus_client import (
    Counter,
    Histogram,
)

# ---------------------------------------------------------------------------
# Store metrics
# ---------------------------------------------------------------------------

STORE_OPERATIONS_TOTAL = Counter(
    "user_accounts_store_operations_total",
    "Store calls by operation and outcome",
    ["operation", "outcome"],
)

STORE_LATENCY = Histogram(
    "user_accounts_store_latency_seconds",
    "Store call latency",
    ["operation"],
    buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5],
)

# ---------------------------------------------------------------------------
# Service / publishing metrics
# ---------------------------------------------------------------------------

NO_CHANGE_UPDATES_TOTAL = Counter(
    "user_accounts_no_change_updates_total",
    "Updates refused because no field changed",
)

EVENTS_PUBLISHED_TOTAL = Counter(
    "user_accounts_events_published_total",
    "User events handed to the bus",
    ["change"],
)

PUBLISH_FAILURES_TOTAL = Counter(
    "user_accounts_publish_failures_total",
    "User events that could not be published",
    ["change"],
)


def record_store_outcome(operation: str, outcome: str, elapsed: float) -> None:
    STORE_OPERATIONS_TOTAL.labels(operation=operation, outcome=outcome).inc()
    STORE_LATENCY.labels(operation=operation).observe(elapsed)
