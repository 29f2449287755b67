"""Tests for the Prometheus metrics registry."""

from __future__ import annotations

from xchain_sync.metrics import (
    REGISTRY,
    generate_metrics,
    lane_duration,
    tasks_planned,
    transactions_submitted,
)


class TestMetricTypes:
    """Labelled counters and histograms record per authority."""

    def test_counter_increments_per_label(self) -> None:
        child = transactions_submitted.labels(authority="oracle")
        initial = child._value.get()
        child.inc()
        assert child._value.get() == initial + 1.0

    def test_histogram_observes_values(self) -> None:
        child = lane_duration.labels(authority="bridge")
        initial = next(
            s.value for s in list(lane_duration.collect())[0].samples
            if s.name.endswith("_count") and s.labels.get("authority") == "bridge"
        )
        child.observe(0.2)
        count = next(
            s.value for s in list(lane_duration.collect())[0].samples
            if s.name.endswith("_count") and s.labels.get("authority") == "bridge"
        )
        assert count == initial + 1


class TestPrometheusOutput:
    def test_output_contains_metric_names(self) -> None:
        tasks_planned.labels(authority="layerzero", need_change="True").inc()
        output = generate_metrics().decode("utf-8")

        assert "xchain_sync_tasks_planned_total" in output
        assert "# HELP xchain_sync_tasks_rejected_total" in output
        assert "# TYPE xchain_sync_lane_seconds histogram" in output
        assert 'authority="layerzero"' in output

    def test_registry_is_dedicated(self) -> None:
        from prometheus_client import REGISTRY as DEFAULT_REGISTRY

        assert REGISTRY is not DEFAULT_REGISTRY
        assert "python_gc_objects_collected_total" not in generate_metrics().decode("utf-8")
