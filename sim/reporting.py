"""Simulation Results Reporting

Generates human-readable and machine-parseable reports from simulation
results: text, JSON, Markdown, a pandas run table and a Parquet export.
"""

import json
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import pandas as pd
import pyarrow as pa
import pyarrow.parquet as pq

from loadsim.core import emit_receipt
from loadsim.metrics import format_metrics_summary

from .sim import PerformanceSimulationResult

RUN_COLUMNS = [
    "run_id", "status", "start_time_ms", "end_time_ms", "duration_ms",
    "queue_wait_ms", "evidence_count", "detection_time_ms", "export_time_ms",
    "db_writes", "memory_bytes", "special_category_detections",
    "batches_processed", "total_batches", "error",
]


def format_simulation_result(result: PerformanceSimulationResult) -> str:
    """Format a simulation result as text summary.

    Args:
        result: Simulation result

    Returns:
        Formatted string
    """
    status = "✓ PASS" if result.success else "✗ FAIL"
    config = result.config
    dataset = result.dataset

    lines = [
        f"\n{'='*60}",
        f"  Performance Simulation: {status}",
        f"{'='*60}",
        f"  Subjects: {dataset.total_subjects:,}  Evidence: {dataset.total_evidence_items:,} "
        f"({config.evidence_density})",
        f"  Runs: {config.parallel_runs}  Mode: {config.detection_mode}  Seed: {config.seed}",
        f"  Generation: {dataset.generation_time_ms:.1f}ms in {dataset.batch_count} batches "
        f"(peak {dataset.peak_batch_items} items)",
        f"  Duration: {result.duration_ms:.1f}ms",
        "",
        "  Providers:",
    ]
    for provider, count in dataset.items_by_provider.items():
        lines.append(f"    {provider:16} {count:>10,}")

    lines.append("")
    lines.append("  Metrics:")
    lines.append(format_metrics_summary(result.snapshot.summary))

    if result.concurrency:
        c = result.concurrency
        lines.append(f"\n  Concurrency: {'✓' if c.passed else '✗'} "
                     f"{c.completed_runs}/{c.total_runs} completed, "
                     f"{c.rate_limit_triggered} rate limited, {c.retry_attempts} retries")
    if result.security:
        s = result.security
        lines.append(f"  Security:    {'✓' if s.passed else '✗'} "
                     f"{s.rate_limited_requests} rate limited, "
                     f"{s.break_glass_events_logged} break-glass")
    if result.failure_suite:
        f = result.failure_suite
        lines.append(f"  Failures:    {'✓' if f.all_passed else '✗'} "
                     f"{f.passed}/{f.total_tests} passed")

    if result.violations:
        lines.append(f"\n  Violations ({len(result.violations)}):")
        for v in result.violations[:5]:
            lines.append(f"    - {v.get('type', 'unknown')}: {v}")
        if len(result.violations) > 5:
            lines.append(f"    ... and {len(result.violations) - 5} more")

    lines.append("")
    return "\n".join(lines)


def format_all_results(results: dict) -> str:
    """Format all scenario results.

    Args:
        results: Results from run_all_scenarios

    Returns:
        Formatted string
    """
    lines = [
        "\n" + "=" * 60,
        "  LOAD SIMULATOR - Scenario Report",
        "=" * 60,
        f"  Timestamp: {results.get('timestamp', 'N/A')}",
        f"  Overall: {'✓ ALL PASSED' if results.get('all_passed') else '✗ SOME FAILED'}",
        ""
    ]

    lines.append("  Scenario Results:")
    lines.append("  " + "-" * 50)

    for name, data in results.get("scenarios", {}).items():
        status = "✓" if data["success"] else "✗"
        duration = data.get("duration_ms", 0)
        violations = len(data.get("violations", []))
        lines.append(f"    {status} {name:20} {duration:8.1f}ms  {violations} violations")

    lines.append("  " + "-" * 50)
    lines.append("")

    return "\n".join(lines)


def build_report(result: PerformanceSimulationResult) -> dict:
    """Machine-readable report of one simulation."""
    report = {
        "report_type": "performance_report",
        "version": "1.0",
        "generated_at": datetime.now(timezone.utc).isoformat(),
        "success": result.success,
        "duration_ms": result.duration_ms,
        "config": result.config.to_dict(),
        "dataset": {
            "total_subjects": result.dataset.total_subjects,
            "total_evidence_items": result.dataset.total_evidence_items,
            "items_by_provider": result.dataset.items_by_provider,
            "special_category_subjects": result.dataset.special_category_subjects,
            "generation_time_ms": result.dataset.generation_time_ms,
            "batch_count": result.dataset.batch_count,
            "peak_batch_items": result.dataset.peak_batch_items,
        },
        "summary": result.snapshot.summary.to_dict(),
        "runs": [r.to_dict() for r in result.parallel.runs],
        "queue_log": [e.__dict__ for e in result.parallel.queue_log],
        "enterprise": result.enterprise.to_dict(),
        "violations": result.violations,
    }
    if result.concurrency:
        report["concurrency"] = result.concurrency.__dict__
    if result.security:
        report["security"] = result.security.__dict__
    if result.failure_suite:
        report["failure_suite"] = {
            "total_tests": result.failure_suite.total_tests,
            "passed": result.failure_suite.passed,
            "all_passed": result.failure_suite.all_passed,
            "results": [r.__dict__ for r in result.failure_suite.results],
        }
    return report


def generate_json_report(result: PerformanceSimulationResult,
                         output_path: Optional[Path] = None) -> dict:
    """Generate JSON report.

    Args:
        result: Simulation result
        output_path: Optional path to write JSON

    Returns:
        Report dict
    """
    report = build_report(result)

    if output_path:
        with open(output_path, "w") as f:
            json.dump(report, f, indent=2, default=str)

    return report


def generate_markdown_report(result: PerformanceSimulationResult) -> str:
    """Generate Markdown report.

    Args:
        result: Simulation result

    Returns:
        Markdown string
    """
    summary = result.snapshot.summary
    lines = [
        "# Load Simulation Report",
        "",
        f"**Generated:** {result.snapshot.timestamp}",
        "",
        "## Summary",
        "",
    ]

    if result.success:
        lines.append("**Status:** ✅ PASSED")
    else:
        lines.append("**Status:** ❌ FAILED")

    lines.extend([
        "",
        f"- **Subjects:** {result.dataset.total_subjects:,}",
        f"- **Evidence items:** {result.dataset.total_evidence_items:,}",
        f"- **Runs:** {summary.total_runs} ({summary.completed_runs} completed, "
        f"{summary.partial_runs} partial, {summary.failed_runs} failed)",
        f"- **Duration avg / p95 / max:** {summary.avg_duration_ms:.2f} / "
        f"{summary.p95_duration_ms:.2f} / {summary.max_duration_ms:.2f} ms",
        f"- **Detection throughput:** {summary.detection_throughput_per_sec:.2f} items/s",
        "",
        "## Runs",
        "",
        "| Run | Status | Evidence | Queue wait | Duration | Batches |",
        "|-----|--------|----------|------------|----------|---------|"
    ])

    for r in result.parallel.runs:
        lines.append(f"| {r.run_id} | {r.status} | {r.evidence_count:,} | "
                     f"{r.queue_wait_ms:.1f}ms | {r.duration_ms:.1f}ms | "
                     f"{r.batches_processed}/{r.total_batches} |")

    if result.violations:
        lines.extend(["", "**Violations:**"])
        for v in result.violations[:3]:
            lines.append(f"- {v.get('type', 'unknown')}")

    lines.append("")
    return "\n".join(lines)


def runs_to_dataframe(runs: list) -> pd.DataFrame:
    """One row per run, columns in RUN_COLUMNS order."""
    return pd.DataFrame([r.to_dict() for r in runs], columns=RUN_COLUMNS)


def export_runs_parquet(runs: list, output_path: Path) -> dict:
    """Export the run table as Parquet.

    Args:
        runs: RunMetrics list
        output_path: Output file path

    Returns:
        Export result dict with receipt
    """
    records = [{k: r.to_dict()[k] for k in RUN_COLUMNS} for r in runs]
    schema = pa.schema([
        ("run_id", pa.string()),
        ("status", pa.string()),
        ("start_time_ms", pa.float64()),
        ("end_time_ms", pa.float64()),
        ("duration_ms", pa.float64()),
        ("queue_wait_ms", pa.float64()),
        ("evidence_count", pa.int64()),
        ("detection_time_ms", pa.float64()),
        ("export_time_ms", pa.float64()),
        ("db_writes", pa.int64()),
        ("memory_bytes", pa.int64()),
        ("special_category_detections", pa.int64()),
        ("batches_processed", pa.int64()),
        ("total_batches", pa.int64()),
        ("error", pa.string()),
    ])
    table = pa.Table.from_pylist(records, schema=schema)
    pq.write_table(table, output_path)

    total_bytes = os.path.getsize(output_path)
    receipt = emit_receipt("export", {
        "format": "parquet",
        "output_path": str(output_path),
        "rows": len(records),
        "total_bytes": total_bytes
    })

    return {
        "format": "parquet",
        "output_path": str(output_path),
        "rows": len(records),
        "total_bytes": total_bytes,
        "receipt": receipt
    }


def save_results(result: PerformanceSimulationResult, output_dir: Path):
    """Save all report formats.

    Args:
        result: Simulation result
        output_dir: Directory to save reports
    """
    output_dir.mkdir(parents=True, exist_ok=True)

    generate_json_report(result, output_dir / "performance_report.json")

    with open(output_dir / "performance_report.md", "w") as f:
        f.write(generate_markdown_report(result))

    with open(output_dir / "performance_report.txt", "w") as f:
        f.write(format_simulation_result(result))

    export_runs_parquet(result.parallel.runs, output_dir / "runs.parquet")
