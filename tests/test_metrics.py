"""Tests for the metrics aggregator and the enterprise summary."""

import pytest

from loadsim.enterprise import (
    build_enterprise_demo_summary,
    format_executive_view,
    get_executive_cards,
    validate_demo_mode,
)
from loadsim.metrics import (
    build_metrics_snapshot,
    compute_metrics_summary,
    format_metrics_summary,
    get_chart_data,
    percentile,
)
from loadsim.models import RunMetrics


def make_run(index, duration, evidence=100, status="COMPLETED", detection=10.0,
             special=0, wait=0.0):
    return RunMetrics(
        run_id=f"run-{index:03d}",
        start_time_ms=wait,
        end_time_ms=wait + duration,
        duration_ms=duration,
        evidence_count=evidence,
        detection_time_ms=detection,
        export_time_ms=100.0,
        db_writes=evidence + 3,
        queue_wait_ms=wait,
        memory_bytes=evidence * 200,
        special_category_detections=special,
        status=status,
    )


@pytest.fixture
def runs():
    return [make_run(i + 1, float(d), special=5, wait=i * 10.0)
            for i, d in enumerate([100, 200, 300, 400, 1000])]


class TestPercentile:
    """Nearest-rank percentile."""

    def test_nearest_rank(self):
        assert percentile([1, 2, 3, 4, 5, 6, 7, 8, 9, 10], 95) == 10
        assert percentile([1, 2, 3, 4, 5, 6, 7, 8, 9, 10], 50) == 5

    def test_unsorted_input(self):
        assert percentile([5, 1, 3], 100) == 5

    def test_single_value(self):
        assert percentile([42.0], 95) == 42.0

    def test_empty(self):
        assert percentile([], 95) == 0.0


class TestSummary:
    """Tests for compute_metrics_summary."""

    def test_empty_is_all_zero(self):
        summary = compute_metrics_summary([])
        assert all(v == 0 for v in summary.to_dict().values())

    def test_ordering(self, runs):
        summary = compute_metrics_summary(runs)
        assert summary.avg_duration_ms <= summary.p95_duration_ms <= summary.max_duration_ms
        assert summary.avg_duration_ms == 400.0
        assert summary.p95_duration_ms == 1000.0

    def test_single_outlier_above_p95(self):
        """20 runs at 1 ms and one at 1000 ms: p95 stays at 1 ms, the average does not."""
        runs = [make_run(i + 1, 1.0) for i in range(20)] + [make_run(21, 1000.0)]
        summary = compute_metrics_summary(runs)
        assert summary.p95_duration_ms == 1.0
        assert summary.avg_duration_ms == 48.57
        assert summary.max_duration_ms == 1000.0
        assert summary.avg_duration_ms > summary.p95_duration_ms

    def test_counts_by_status(self):
        runs = [make_run(1, 10), make_run(2, 10, status="FAILED", evidence=0),
                make_run(3, 10, status="PARTIAL_COMPLETED")]
        summary = compute_metrics_summary(runs)
        assert (summary.completed_runs, summary.failed_runs, summary.partial_runs) == (1, 1, 1)

    def test_throughput(self, runs):
        """500 items over 50 ms of detection -> 10,000 items/s."""
        assert compute_metrics_summary(runs).detection_throughput_per_sec == 10000.0

    def test_zero_detection_time(self):
        summary = compute_metrics_summary([make_run(1, 0.0, detection=0.0)])
        assert summary.detection_throughput_per_sec == 0.0
        assert summary.db_write_ops_per_sec == 0.0

    def test_trigger_rate(self, runs):
        assert compute_metrics_summary(runs).special_category_trigger_rate == 0.05

    def test_rounding(self):
        summary = compute_metrics_summary([make_run(1, 1 / 3)])
        assert summary.avg_duration_ms == 0.33


class TestSnapshot:
    """Tests for snapshots and chart data."""

    def test_snapshot(self, runs):
        snapshot = build_metrics_snapshot(runs, 12.3456, 100, 500)
        assert snapshot.generation_time_ms == 12.35
        assert snapshot.summary.total_runs == 5
        assert snapshot.to_dict()["total_evidence_items"] == 500

    def test_chart_data_last_n(self, runs):
        data = get_chart_data(runs, last_n=3)
        assert [d["run"] for d in data] == ["run-003", "run-004", "run-005"]

    def test_format(self, runs):
        text = format_metrics_summary(compute_metrics_summary(runs))
        assert "Runs: 5" in text


class TestEnterprise:
    """Tests for the executive projection."""

    def test_projection(self, runs):
        snapshot = build_metrics_snapshot(runs, 1.0, 100, 500)
        summary = build_enterprise_demo_summary(snapshot)
        assert summary.records_processed == 500
        assert summary.processing_time_sec == 2.0
        assert summary.special_category_detections == 25
        assert summary.export_gates_activated == 25
        assert summary.policy_violations == 0
        assert summary.audit_coverage_percent == 100
        assert summary.parallel_runs_completed == 5
        assert summary.governance_checks_performed == 15

    def test_view_and_cards(self, runs):
        summary = build_enterprise_demo_summary(build_metrics_snapshot(runs, 1.0, 100, 500))
        assert "Processed 500 records" in format_executive_view(summary)
        labels = [c["label"] for c in get_executive_cards(summary)]
        assert "Audit Coverage" in labels

    def test_demo_mode(self):
        assert validate_demo_mode(True, "production") is None
        assert validate_demo_mode(False, "development") is None
        assert validate_demo_mode(False, "production") is not None
