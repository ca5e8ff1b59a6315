"""Metrics Aggregator

Pure aggregation of RunMetrics into averages, nearest-rank percentiles
and throughput figures. Values are rounded to two decimals; every ratio
is 0 when its denominator is 0.
"""

import math
from datetime import datetime, timezone
from typing import Sequence

from config.constants import STATUS_COMPLETED, STATUS_FAILED, STATUS_PARTIAL

from .core import emit_receipt
from .models import MetricsSnapshot, MetricsSummary, RunMetrics


def percentile(values: Sequence[float], pct: float) -> float:
    """Nearest-rank percentile.

    Index is ceil(pct/100 * n) - 1, clamped to [0, n - 1]. From 20 samples
    up the single largest value ranks above p95, so one outlier lifts the
    average but not p95 and the average can exceed p95.

    Args:
        values: Samples (any order)
        pct: Percentile in (0, 100]

    Returns:
        The percentile, 0 for no samples
    """
    if not values:
        return 0.0
    ordered = sorted(values)
    index = math.ceil(pct / 100 * len(ordered)) - 1
    return ordered[max(0, min(index, len(ordered) - 1))]


def _avg(values: Sequence[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def compute_metrics_summary(runs: Sequence[RunMetrics], emit: bool = False) -> MetricsSummary:
    """Aggregate runs into a MetricsSummary.

    Args:
        runs: Run metrics (possibly empty)
        emit: Whether to emit a metrics_summary receipt

    Returns:
        MetricsSummary; all zero for no runs
    """
    if not runs:
        summary = MetricsSummary()
    else:
        durations = [r.duration_ms for r in runs]
        total_evidence = sum(r.evidence_count for r in runs)
        total_detection_ms = sum(r.detection_time_ms for r in runs)
        total_duration_ms = sum(durations)
        total_writes = sum(r.db_writes for r in runs)
        total_special = sum(r.special_category_detections for r in runs)

        summary = MetricsSummary(
            total_runs=len(runs),
            completed_runs=sum(1 for r in runs if r.status == STATUS_COMPLETED),
            failed_runs=sum(1 for r in runs if r.status == STATUS_FAILED),
            partial_runs=sum(1 for r in runs if r.status == STATUS_PARTIAL),
            avg_duration_ms=round(_avg(durations), 2),
            p95_duration_ms=round(percentile(durations, 95), 2),
            max_duration_ms=round(max(durations), 2),
            avg_evidence_per_run=round(total_evidence / len(runs), 2),
            detection_throughput_per_sec=round(
                total_evidence / total_detection_ms * 1000 if total_detection_ms > 0 else 0.0, 2),
            avg_queue_wait_ms=round(_avg([r.queue_wait_ms for r in runs]), 2),
            db_write_ops_per_sec=round(
                total_writes / total_duration_ms * 1000 if total_duration_ms > 0 else 0.0, 2),
            avg_export_time_ms=round(_avg([r.export_time_ms for r in runs]), 2),
            special_category_trigger_rate=round(
                total_special / total_evidence if total_evidence > 0 else 0.0, 4),
        )

    if emit:
        emit_receipt("metrics_summary", summary.to_dict())
    return summary


def build_metrics_snapshot(runs: Sequence[RunMetrics], generation_time_ms: float,
                           total_subjects: int, total_evidence_items: int) -> MetricsSnapshot:
    """Bundle a summary with the dataset context for reporting."""
    return MetricsSnapshot(
        summary=compute_metrics_summary(runs, emit=True),
        runs=list(runs),
        generation_time_ms=round(generation_time_ms, 2),
        total_subjects=total_subjects,
        total_evidence_items=total_evidence_items,
        timestamp=datetime.now(timezone.utc).isoformat(),
    )


def get_chart_data(runs: Sequence[RunMetrics], last_n: int = 10) -> list:
    """Per-run series of the most recent last_n runs for charts.

    Returns:
        List of dicts with run label, duration, evidence, queue wait, status
    """
    return [
        {
            "run": r.run_id,
            "duration_ms": round(r.duration_ms, 2),
            "evidence_count": r.evidence_count,
            "queue_wait_ms": round(r.queue_wait_ms, 2),
            "status": r.status,
        }
        for r in list(runs)[-last_n:]
    ] if last_n > 0 else []


def format_metrics_summary(summary: MetricsSummary) -> str:
    """Text block for terminal output."""
    lines = [
        f"  Runs: {summary.total_runs} "
        f"(completed {summary.completed_runs}, partial {summary.partial_runs}, "
        f"failed {summary.failed_runs})",
        f"  Duration avg/p95/max: {summary.avg_duration_ms:.2f} / "
        f"{summary.p95_duration_ms:.2f} / {summary.max_duration_ms:.2f} ms",
        f"  Evidence per run: {summary.avg_evidence_per_run:.2f}",
        f"  Detection throughput: {summary.detection_throughput_per_sec:.2f} items/s",
        f"  Queue wait avg: {summary.avg_queue_wait_ms:.2f} ms",
        f"  DB writes: {summary.db_write_ops_per_sec:.2f} ops/s",
        f"  Export time avg: {summary.avg_export_time_ms:.2f} ms",
        f"  Special-category trigger rate: {summary.special_category_trigger_rate:.2%}",
    ]
    return "\n".join(lines)
