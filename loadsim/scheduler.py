"""Parallel Run Scheduler

Simulates N runs competing for a bounded number of execution slots.
Parallelism is analytic: runs are processed one after another on a single
thread and their queue wait, timestamps and durations are computed from a
deterministic model, never measured from real concurrency.

Queue model (run index i, slot cap c):
    wave     = i // c          full rounds of slots ahead of this run
    position = i %  c          admission offset inside the round
    wait_ms  = wave * service_ms + position * QUEUE_STAGGER_MS

service_ms is the run's connector latency, drawn from a source seeded with
seed + i, so the wait depends only on (i, c, latency range, seed). It is
never negative, grows with position inside a round, and every run in a
later round waits at least one service time.
"""

import math
from dataclasses import dataclass, field
from typing import Callable, Optional, Sequence

from config.constants import (
    CONNECTOR_LATENCY_MAX_MS,
    CONNECTOR_LATENCY_MIN_MS,
    DB_SLOW_WRITE_LATENCY_MS,
    DB_WRITE_LATENCY_MS,
    DB_WRITES_PER_ITEM,
    DB_WRITES_PER_RUN,
    DETECTION_COST_MS_PER_ITEM,
    EXPORT_LATENCY_MS,
    INJECTED_FAILURE_PROBABILITY,
    MEMORY_BYTES_PER_ITEM,
    QUEUE_STAGGER_MS,
    STATUS_COMPLETED,
    STATUS_FAILED,
    STATUS_PARTIAL,
)

from .audit import RUN_COMPLETED, RUN_DENIED, RUN_FAILED, RUN_PARTIAL, RUN_STARTED, AuditLog
from .core import emit_receipt
from .dataset import SyntheticSubject, ensure_valid_config, generate_evidence_batched
from .detection import run_detection_load
from .governance.checks import (
    RateLimitState,
    enforce_justification,
    enforce_rate_limits,
    enforce_run_permission,
)
from .governance.settings import (
    GovernanceSettings,
    build_performance_settings,
    validate_governance_settings,
)
from .models import PerformanceConfig, RunMetrics
from .rng import SeededRandom

PERF_ACTOR = "perf-runner@synthetic.test"
PERF_ROLE = "DPO"
PERF_TENANT = "perf-tenant"

# Offset separating per-run sources from the dataset source
RUN_SEED_OFFSET = 1_000_003


@dataclass(frozen=True)
class ParallelRunConfig:
    """Everything one scheduled run needs. Built by run_parallel_simulation."""
    run_id: str
    run_index: int
    config: PerformanceConfig
    settings: GovernanceSettings
    subjects: tuple
    slot_cap: int
    tenant_runs_today: int = 0
    user_runs_today: int = 0
    actor: str = PERF_ACTOR
    role: str = PERF_ROLE
    tenant_id: str = PERF_TENANT
    justification: str = "Scheduled performance simulation run"
    detector: Optional[Callable] = None


@dataclass(frozen=True)
class QueueLogEntry:
    run_id: str
    run_index: int
    queue_wait_ms: float
    in_flight_at_admission: int
    wave: int


@dataclass
class ParallelSimulationResult:
    runs: list
    queue_log: list
    audit_log: AuditLog
    slot_cap: int
    max_in_flight: int
    total_duration_ms: float
    settings: GovernanceSettings
    receipt: dict = field(default_factory=dict)

    @property
    def governance_log(self) -> list:
        return self.audit_log.governance_entries

    @property
    def audit_entries(self) -> list:
        return self.audit_log.entries


def compute_queue_wait(run_index: int, slot_cap: int, seed: int,
                       latency_range: tuple = (CONNECTOR_LATENCY_MIN_MS,
                                               CONNECTOR_LATENCY_MAX_MS)) -> tuple:
    """Queue wait of a run under the slot model.

    Returns:
        Tuple of (wait_ms, service_ms, in_flight_at_admission, wave)
    """
    service_ms = SeededRandom(seed + run_index).next_int(*latency_range)
    wave = run_index // slot_cap
    position = run_index % slot_cap
    wait_ms = float(wave * service_ms + position * QUEUE_STAGGER_MS)
    return wait_ms, service_ms, position, wave


def slice_subjects(subjects: Sequence[SyntheticSubject], run_index: int,
                   run_count: int) -> tuple:
    """Non-overlapping slice of the population assigned to run_index."""
    n = len(subjects)
    return tuple(subjects[run_index * n // run_count:(run_index + 1) * n // run_count])


def _failed_metrics(run_id: str, start_ms: float, duration_ms: float,
                    queue_wait_ms: float, error: str, total_batches: int) -> RunMetrics:
    return RunMetrics(
        run_id=run_id,
        start_time_ms=start_ms,
        end_time_ms=start_ms + duration_ms,
        duration_ms=duration_ms,
        evidence_count=0,
        detection_time_ms=0.0,
        export_time_ms=0.0,
        db_writes=0,
        queue_wait_ms=queue_wait_ms,
        memory_bytes=0,
        special_category_detections=0,
        status=STATUS_FAILED,
        error=error,
        batches_processed=0,
        total_batches=total_batches,
    )


def simulate_single_run(run: ParallelRunConfig,
                        audit_log: Optional[AuditLog] = None) -> tuple:
    """Execute one scheduled run.

    Steps: three governance pre-checks (each logged), queue wait, detection
    over the assigned evidence with per-run truncation, lifecycle audit.

    Args:
        run: Run configuration
        audit_log: Log receiving governance and audit entries

    Returns:
        Tuple of (RunMetrics, QueueLogEntry)
    """
    audit_log = audit_log if audit_log is not None else AuditLog(run.tenant_id)
    config = run.config
    limits = config.limits

    wait_ms, service_ms, in_flight, wave = compute_queue_wait(
        run.run_index, run.slot_cap, config.seed)
    queue_entry = QueueLogEntry(run.run_id, run.run_index, wait_ms, in_flight, wave)

    per_subject = config.evidence_per_subject
    assigned_items = len(run.subjects) * per_subject
    batch_size = limits.batch_size
    total_batches = math.ceil(assigned_items / batch_size)

    checks = [
        ("role", enforce_run_permission(run.role)),
        ("justification", enforce_justification(run.justification, run.settings)),
        ("rate_limit", enforce_rate_limits(RateLimitState(
            tenant_runs_today=run.tenant_runs_today,
            user_runs_today=run.user_runs_today,
            concurrent_runs=in_flight,
        ), run.settings)),
    ]
    for name, result in checks:
        audit_log.record_check(run.run_id, name, result, run.actor, run.tenant_id)

    denied = next((r for _, r in checks if not r.allowed), None)
    if denied is not None:
        audit_log.record(run.run_id, RUN_DENIED, run.actor, wait_ms,
                         {"code": denied.code, "reason": denied.reason}, run.tenant_id)
        return _failed_metrics(run.run_id, wait_ms, 0.0, wait_ms,
                               f"{denied.code}: {denied.reason}", total_batches), queue_entry

    audit_log.record(run.run_id, RUN_STARTED, run.actor, wait_ms,
                     {"subjects": len(run.subjects), "assigned_items": assigned_items},
                     run.tenant_id)

    # Injection draws happen in a fixed order whether or not a flag is set
    rng = SeededRandom(config.seed + RUN_SEED_OFFSET + run.run_index)
    failures = config.failures
    external_fails = rng.chance(INJECTED_FAILURE_PROBABILITY["external_service_failure"])
    times_out = rng.chance(INJECTED_FAILURE_PROBABILITY["timeout"])
    export_crashes = rng.chance(INJECTED_FAILURE_PROBABILITY["export_crash"])

    error = None
    if failures.external_service_failure and external_fails:
        error = "External connector: 503 Service Unavailable"
        duration = float(service_ms)
    elif failures.timeout and times_out:
        error = "Connector timeout after 30s"
        duration = float(service_ms + 30000)
    if error:
        audit_log.record(run.run_id, RUN_FAILED, run.actor, wait_ms + duration,
                         {"error": error}, run.tenant_id)
        return _failed_metrics(run.run_id, wait_ms, duration, wait_ms, error,
                               total_batches), queue_entry

    limit = min(limits.max_evidence_items_per_run, run.settings.max_evidence_items_per_run)
    scan_limit = min(limits.max_content_scan_bytes, run.settings.max_content_scan_bytes)
    evidence_count = 0
    special = 0
    detection_ms = 0.0
    batches_processed = 0
    truncated = False

    for batch in generate_evidence_batched(run.subjects, per_subject, batch_size):
        items = batch.items
        if evidence_count + len(items) > limit:
            items = items[:limit - evidence_count]
            truncated = True
        if items:
            load = run_detection_load(items, config.detection_mode, rng, batch_size,
                                      detector=run.detector, emit=False,
                                      max_content_bytes=scan_limit)
            evidence_count += load.total_items
            special += load.special_category_items
            detection_ms += load.total_time_ms
            batches_processed += 1
        if truncated:
            break

    db_range = DB_SLOW_WRITE_LATENCY_MS if failures.slow_db_write else DB_WRITE_LATENCY_MS
    db_write_ms = rng.next_int(*db_range)
    export_ms = float(rng.next_int(*EXPORT_LATENCY_MS))
    duration = (service_ms + evidence_count * DETECTION_COST_MS_PER_ITEM
                + db_write_ms + export_ms)

    if failures.export_crash and export_crashes:
        status = STATUS_FAILED
        error = "Export generation crashed"
        action = RUN_FAILED
    elif truncated:
        status = STATUS_PARTIAL
        error = f"Evidence truncated at {limit} of {assigned_items} items"
        action = RUN_PARTIAL
    else:
        status = STATUS_COMPLETED
        action = RUN_COMPLETED

    metrics = RunMetrics(
        run_id=run.run_id,
        start_time_ms=wait_ms,
        end_time_ms=wait_ms + duration,
        duration_ms=duration,
        evidence_count=evidence_count,
        detection_time_ms=detection_ms,
        export_time_ms=export_ms,
        db_writes=evidence_count * DB_WRITES_PER_ITEM + DB_WRITES_PER_RUN,
        queue_wait_ms=wait_ms,
        memory_bytes=evidence_count * MEMORY_BYTES_PER_ITEM,
        special_category_detections=special,
        status=status,
        error=error,
        batches_processed=batches_processed,
        total_batches=total_batches,
    )

    audit_log.record(run.run_id, action, run.actor, metrics.end_time_ms,
                     {"status": status, "evidence_count": evidence_count, "error": error},
                     run.tenant_id)
    return metrics, queue_entry


def run_parallel_simulation(config: PerformanceConfig,
                            subjects: Sequence[SyntheticSubject],
                            governance: Optional[GovernanceSettings] = None,
                            detector: Optional[Callable] = None) -> ParallelSimulationResult:
    """Schedule config.parallel_runs runs over the population.

    Args:
        config: Validated simulation configuration
        subjects: Population, sliced without overlap across runs
        governance: Settings to enforce, defaults to performance settings
        detector: Detector for real mode

    Returns:
        ParallelSimulationResult with runs and queue log in submission order

    Raises:
        ConfigurationError: If config fails validation
    """
    ensure_valid_config(config)
    if governance is None:
        settings = build_performance_settings(
            config.parallel_runs,
            config.limits.max_evidence_items_per_run,
            config.limits.max_content_scan_bytes,
        )
    else:
        settings = validate_governance_settings(governance)

    slot_cap = settings.max_concurrent_runs
    audit_log = AuditLog(PERF_TENANT)
    runs = []
    queue_log = []

    for i in range(config.parallel_runs):
        run = ParallelRunConfig(
            run_id=f"run-{i + 1:03d}",
            run_index=i,
            config=config,
            settings=settings,
            subjects=slice_subjects(subjects, i, config.parallel_runs),
            slot_cap=slot_cap,
            tenant_runs_today=i,
            user_runs_today=i,
            detector=detector,
        )
        metrics, entry = simulate_single_run(run, audit_log)
        runs.append(metrics)
        queue_log.append(entry)
        emit_receipt("run", metrics.to_dict(), tenant_id=PERF_TENANT)

    max_in_flight = max((e.in_flight_at_admission + 1 for e in queue_log), default=0)
    total_duration_ms = max((r.end_time_ms for r in runs), default=0.0)

    receipt = emit_receipt("parallel_simulation", {
        "parallel_runs": config.parallel_runs,
        "slot_cap": slot_cap,
        "max_in_flight": max_in_flight,
        "total_duration_ms": total_duration_ms,
        "completed": sum(1 for r in runs if r.status == STATUS_COMPLETED),
        "partial": sum(1 for r in runs if r.status == STATUS_PARTIAL),
        "failed": sum(1 for r in runs if r.status == STATUS_FAILED),
        "governance_entries": len(audit_log.governance_entries),
        "audit_entries": len(audit_log.entries),
    }, tenant_id=PERF_TENANT)

    return ParallelSimulationResult(
        runs=runs,
        queue_log=queue_log,
        audit_log=audit_log,
        slot_cap=slot_cap,
        max_in_flight=max_in_flight,
        total_duration_ms=total_duration_ms,
        settings=settings,
        receipt=receipt,
    )
