"""
Metric registry using prometheus_client.

Counts planned tasks and submitted calls per authority, and times each
authority's lane. Exposed in Prometheus text format.
"""

from __future__ import annotations

from prometheus_client import (
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)

# Create a dedicated registry for reconciliation metrics.
#
# Using a dedicated registry avoids pollution from default Python process metrics.
REGISTRY = CollectorRegistry()

# -----------------------------------------------------------------------------
# Planning
# -----------------------------------------------------------------------------

tasks_planned = Counter(
    "xchain_sync_tasks_planned_total",
    "Reconciliation tasks produced by the differencer",
    ["authority", "need_change"],
    registry=REGISTRY,
)

tasks_rejected = Counter(
    "xchain_sync_tasks_rejected_total",
    "Tasks dropped because their call could not be built",
    ["domain"],
    registry=REGISTRY,
)

# -----------------------------------------------------------------------------
# Execution
# -----------------------------------------------------------------------------

transactions_submitted = Counter(
    "xchain_sync_transactions_submitted_total",
    "Calls confirmed by the ledger",
    ["authority"],
    registry=REGISTRY,
)

transactions_failed = Counter(
    "xchain_sync_transactions_failed_total",
    "Calls rejected by the ledger or timed out",
    ["authority"],
    registry=REGISTRY,
)

lane_duration = Histogram(
    "xchain_sync_lane_seconds",
    "Time an authority lane spent submitting its calls",
    ["authority"],
    buckets=(0.1, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0, 120.0),
    registry=REGISTRY,
)


def generate_metrics() -> bytes:
    """
    Generate Prometheus metrics output.

    Returns:
        Prometheus text format output as bytes.
    """
    return generate_latest(REGISTRY)
