"""Performance Simulation Harness

Composes the generator, scheduler, stress tests, failure suite and
aggregator into one deterministic simulation, and runs named scenarios
against their success criteria.
"""

import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Optional

from config.constants import (
    CONCURRENCY_TEST_EVIDENCE_CEILING,
    CONCURRENCY_TEST_RUNS,
    SECURITY_TEST_REQUESTS,
    SECURITY_TEST_WINDOW_SECONDS,
    STATUS_FAILED,
)

from loadsim.core import ConfigurationError, emit_receipt
from loadsim.dataset import ScalableDataset, ensure_valid_config, generate_scalable_dataset, validate_performance_mode
from loadsim.enterprise import EnterpriseDemoSummary, build_enterprise_demo_summary
from loadsim.failures import FailureSuiteResult, run_failure_simulation_suite
from loadsim.governance.settings import GovernanceSettings
from loadsim.metrics import build_metrics_snapshot
from loadsim.models import MetricsSnapshot, PerformanceConfig
from loadsim.rng import SeededRandom
from loadsim.scheduler import ParallelSimulationResult, run_parallel_simulation
from loadsim.stress import (
    ConcurrencyTestResult,
    SecurityTestResult,
    run_concurrency_test,
    run_security_under_load_test,
)


@dataclass
class SimulationOptions:
    """Which sub-tests to run and how."""
    run_concurrency_test: bool = True
    run_security_test: bool = True
    run_failure_suite: bool = True
    concurrency_runs: int = CONCURRENCY_TEST_RUNS
    concurrency_evidence_ceiling: int = CONCURRENCY_TEST_EVIDENCE_CEILING
    security_requests: int = SECURITY_TEST_REQUESTS
    security_window_seconds: int = SECURITY_TEST_WINDOW_SECONDS
    governance: Optional[GovernanceSettings] = None
    detector: Optional[Callable] = None
    environment: Optional[str] = None
    tenant_slug: Optional[str] = None


@dataclass
class PerformanceSimulationResult:
    config: PerformanceConfig
    dataset: ScalableDataset
    parallel: ParallelSimulationResult
    snapshot: MetricsSnapshot
    enterprise: EnterpriseDemoSummary
    failure_suite: Optional[FailureSuiteResult] = None
    concurrency: Optional[ConcurrencyTestResult] = None
    security: Optional[SecurityTestResult] = None
    duration_ms: float = 0.0
    success: bool = True
    violations: list = field(default_factory=list)


@dataclass
class SimScenario:
    """A named configuration plus the criteria it must meet."""
    name: str
    config: PerformanceConfig
    options: SimulationOptions = field(default_factory=SimulationOptions)
    success_criteria: dict = field(default_factory=dict)
    description: str = ""


def run_performance_simulation(config: PerformanceConfig,
                               options: Optional[SimulationOptions] = None) -> PerformanceSimulationResult:
    """Run a complete simulation.

    Args:
        config: Simulation configuration
        options: Sub-test selection, defaults to all

    Returns:
        PerformanceSimulationResult

    Raises:
        ConfigurationError: Before any work if the configuration or the
            environment is not allowed
    """
    options = options or SimulationOptions()
    ensure_valid_config(config)
    mode_error = validate_performance_mode(options.environment, options.tenant_slug)
    if mode_error:
        raise ConfigurationError(mode_error)

    start = time.perf_counter()
    rng = SeededRandom(config.seed)

    dataset = generate_scalable_dataset(config, rng)
    parallel = run_parallel_simulation(config, dataset.subjects,
                                       governance=options.governance,
                                       detector=options.detector)
    snapshot = build_metrics_snapshot(parallel.runs, dataset.generation_time_ms,
                                      dataset.total_subjects, dataset.total_evidence_items)

    result = PerformanceSimulationResult(
        config=config,
        dataset=dataset,
        parallel=parallel,
        snapshot=snapshot,
        enterprise=build_enterprise_demo_summary(snapshot),
    )

    if options.run_concurrency_test:
        result.concurrency = run_concurrency_test(
            options.concurrency_runs, options.concurrency_evidence_ceiling, config.seed)
        if not result.concurrency.passed:
            result.violations.append({"type": "concurrency_test"})

    if options.run_security_test:
        result.security = run_security_under_load_test(
            options.security_requests, options.security_window_seconds, config.seed)
        if not result.security.passed:
            result.violations.append({"type": "security_test"})

    if options.run_failure_suite:
        result.failure_suite = run_failure_simulation_suite(config.seed)
        if not result.failure_suite.all_passed:
            result.violations.append({"type": "failure_suite"})

    result.duration_ms = (time.perf_counter() - start) * 1000
    result.success = not result.violations

    emit_receipt("performance_simulation", {
        "seed": config.seed,
        "subjects": dataset.total_subjects,
        "evidence_items": dataset.total_evidence_items,
        "parallel_runs": config.parallel_runs,
        "detection_mode": config.detection_mode,
        "completed_runs": snapshot.summary.completed_runs,
        "failed_runs": snapshot.summary.failed_runs,
        "violations": len(result.violations),
        "duration_ms": result.duration_ms,
        "success": result.success,
    })
    return result


def validate_criteria(result: PerformanceSimulationResult, criteria: dict) -> list:
    """Check a result against scenario criteria.

    Args:
        result: Simulation result
        criteria: Success criteria dict

    Returns:
        List of violation dicts (empty if all criteria are met)
    """
    violations = []
    summary = result.snapshot.summary

    if "expected_total_evidence" in criteria:
        if result.dataset.total_evidence_items != criteria["expected_total_evidence"]:
            violations.append({
                "type": "total_evidence",
                "expected": criteria["expected_total_evidence"],
                "actual": result.dataset.total_evidence_items
            })

    if "max_failed_runs" in criteria:
        if summary.failed_runs > criteria["max_failed_runs"]:
            violations.append({
                "type": "failed_runs",
                "expected": criteria["max_failed_runs"],
                "actual": summary.failed_runs
            })

    if "min_completed_runs" in criteria:
        if summary.completed_runs < criteria["min_completed_runs"]:
            violations.append({
                "type": "completed_runs",
                "expected": criteria["min_completed_runs"],
                "actual": summary.completed_runs
            })

    if "max_p95_duration_ms" in criteria:
        if summary.p95_duration_ms > criteria["max_p95_duration_ms"]:
            violations.append({
                "type": "latency_exceeded",
                "expected": criteria["max_p95_duration_ms"],
                "actual": summary.p95_duration_ms
            })

    if "max_peak_batch_items" in criteria:
        if result.dataset.peak_batch_items > criteria["max_peak_batch_items"]:
            violations.append({
                "type": "memory_bound",
                "expected": criteria["max_peak_batch_items"],
                "actual": result.dataset.peak_batch_items
            })

    if criteria.get("all_runs_audited", False):
        audited = {e.run_id for e in result.parallel.audit_entries}
        missing = [r.run_id for r in result.parallel.runs if r.run_id not in audited]
        if missing:
            violations.append({"type": "audit_missing", "runs": missing})

    if criteria.get("failed_runs_have_errors", False):
        silent = [r.run_id for r in result.parallel.runs
                  if r.status == STATUS_FAILED and not r.error]
        if silent:
            violations.append({"type": "failure_without_error", "runs": silent})

    return violations


def run_scenario(scenario: SimScenario) -> PerformanceSimulationResult:
    """Run one scenario and apply its criteria."""
    result = run_performance_simulation(scenario.config, scenario.options)
    result.violations.extend(validate_criteria(result, scenario.success_criteria))
    result.success = not result.violations
    return result


def run_all_scenarios(scenarios: list) -> dict:
    """Run all scenarios and return summary.

    Args:
        scenarios: List of SimScenario

    Returns:
        Summary dict with all results
    """
    results = {}
    all_passed = True

    for scenario in scenarios:
        print(f"Running {scenario.name}...", end=" ", flush=True)
        result = run_scenario(scenario)
        results[scenario.name] = {
            "success": result.success,
            "duration_ms": result.duration_ms,
            "metrics": result.snapshot.summary.to_dict(),
            "violations": result.violations,
            "description": scenario.description
        }
        if result.success:
            print("✓ PASS")
        else:
            print("✗ FAIL")
            all_passed = False

    return {
        "all_passed": all_passed,
        "scenarios": results,
        "timestamp": datetime.now(timezone.utc).isoformat()
    }
