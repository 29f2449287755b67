"""
Metrics module for observability.

Provides counters and histograms for planning and execution of a reconciliation.
Exposes metrics in Prometheus text format.
"""

from .registry import (
    REGISTRY,
    generate_metrics,
    lane_duration,
    tasks_planned,
    tasks_rejected,
    transactions_failed,
    transactions_submitted,
)

__all__ = [
    "REGISTRY",
    "generate_metrics",
    "lane_duration",
    "tasks_planned",
    "tasks_rejected",
    "transactions_failed",
    "transactions_submitted",
]
