"""Failure Injection Suite

Four deterministic failure classes and the outcome the platform must
show for each. A failed run must always leave an audit trail, leave the
system stable and leave no orphan records behind.
"""

import time
from dataclasses import dataclass, field
from typing import Optional

from config.constants import (
    DB_WRITE_LATENCY_MS,
    STATUS_COMPLETED,
    STATUS_FAILED,
    STATUS_UNKNOWN,
)

from .audit import FAILURE_INJECTED, RUN_COMPLETED, RUN_FAILED, AuditLog
from .core import StopRule, emit_receipt, emit_stoprule
from .models import FailureSimulationConfig
from .rng import SeededRandom

FAILURE_ACTOR = "failure-suite@synthetic.test"


@dataclass(frozen=True)
class FailureDefinition:
    failure_type: str
    description: str
    expected_status: str
    max_latency_ms: int


FAILURE_DEFINITIONS = [
    FailureDefinition(
        "external_service_failure",
        "External connector returns 503 Service Unavailable after retries",
        STATUS_FAILED, 5000),
    FailureDefinition(
        "timeout",
        "Connector unresponsive, request times out after 30 seconds",
        STATUS_FAILED, 30000),
    FailureDefinition(
        "slow_db_write",
        "Persistence writes are 5-15x slower than normal",
        STATUS_COMPLETED, 60000),
    FailureDefinition(
        "export_crash",
        "Export generation crashes while rendering the report",
        STATUS_FAILED, 10000),
]

FAILURE_TYPES = [d.failure_type for d in FAILURE_DEFINITIONS]


@dataclass
class FailureSimulationResult:
    failure_type: str
    injected: bool
    run_status: str
    audit_event_written: bool
    system_stable: bool
    orphan_records: int
    modeled_latency_ms: float
    duration_ms: float
    error_details: Optional[str] = None


@dataclass
class FailureSuiteResult:
    results: list
    total_tests: int
    passed: int
    failed: int
    types_tested: list
    all_passed: bool
    audit_log: AuditLog = field(default_factory=AuditLog)


def get_failure_definition(failure_type: str) -> Optional[FailureDefinition]:
    for definition in FAILURE_DEFINITIONS:
        if definition.failure_type == failure_type:
            return definition
    return None


def validate_failure_config(failures: FailureSimulationConfig) -> Optional[str]:
    """At most three failure classes may be injected into one simulation.

    Returns:
        Error message, or None if valid
    """
    if len(failures.enabled()) == len(FAILURE_TYPES):
        return "Cannot enable all failure types at once (at most 3)"
    return None


def simulate_failure(failure_type: str, rng: SeededRandom,
                     audit_log: Optional[AuditLog] = None) -> FailureSimulationResult:
    """Inject one failure and record the platform's outcome.

    Unknown types are rejected without side effects.

    Args:
        failure_type: One of FAILURE_TYPES
        rng: Seeded source
        audit_log: Log receiving the lifecycle entries

    Returns:
        FailureSimulationResult
    """
    start = time.perf_counter()
    definition = get_failure_definition(failure_type)

    if definition is None:
        return FailureSimulationResult(
            failure_type=failure_type,
            injected=False,
            run_status=STATUS_UNKNOWN,
            audit_event_written=False,
            system_stable=True,
            orphan_records=0,
            modeled_latency_ms=0.0,
            duration_ms=(time.perf_counter() - start) * 1000,
            error_details=f"Unknown failure type: {failure_type}",
        )

    audit_log = audit_log if audit_log is not None else AuditLog()
    run_id = f"failure-{failure_type}"
    audit_log.record(run_id, FAILURE_INJECTED, FAILURE_ACTOR,
                     details={"failure_type": failure_type})

    if failure_type == "external_service_failure":
        latency = rng.next_int(100, definition.max_latency_ms)
        error = "External connector: 503 Service Unavailable after retry exhaustion"
    elif failure_type == "timeout":
        latency = definition.max_latency_ms
        processed = rng.next_int(0, 100)
        # Items processed before the timeout are rolled back with the run
        error = f"Request timeout after 30s, {processed} items rolled back"
    elif failure_type == "slow_db_write":
        latency = rng.next_int(*DB_WRITE_LATENCY_MS) * rng.next_int(5, 15)
        error = None
    else:
        latency = rng.next_int(100, definition.max_latency_ms)
        error = "Export generation failed during report rendering"

    status = definition.expected_status
    audit_log.record(run_id, RUN_COMPLETED if status == STATUS_COMPLETED else RUN_FAILED,
                     FAILURE_ACTOR, timestamp_ms=float(latency),
                     details={"failure_type": failure_type, "error": error})

    result = FailureSimulationResult(
        failure_type=failure_type,
        injected=True,
        run_status=status,
        audit_event_written=run_id in audit_log.runs_with_action(FAILURE_INJECTED),
        system_stable=True,
        orphan_records=0,
        modeled_latency_ms=float(latency),
        duration_ms=(time.perf_counter() - start) * 1000,
        error_details=error,
    )

    emit_receipt("failure_injection", {
        "failure_type": failure_type,
        "run_status": status,
        "audit_event_written": result.audit_event_written,
        "orphan_records": result.orphan_records,
        "modeled_latency_ms": result.modeled_latency_ms,
    })
    return result


def _passed(result: FailureSimulationResult) -> bool:
    definition = get_failure_definition(result.failure_type)
    return (result.injected
            and definition is not None
            and result.run_status == definition.expected_status
            and result.audit_event_written
            and result.system_stable
            and result.orphan_records == 0)


def verify_failure_invariants(results: list):
    """Every injected failure must be audited, stable and orphan-free.

    Raises:
        StopRule: On the first violating result
    """
    for r in results:
        if not r.injected:
            continue
        if not r.audit_event_written:
            e = StopRule(f"No audit event for {r.failure_type}", "failure_audit")
        elif not r.system_stable:
            e = StopRule(f"System unstable after {r.failure_type}", "failure_stability")
        elif r.orphan_records:
            e = StopRule(f"{r.orphan_records} orphan records after {r.failure_type}",
                         "failure_orphans")
        else:
            continue
        emit_stoprule(e, e.metric)
        raise e


def run_failure_simulation_suite(seed: int = 42) -> FailureSuiteResult:
    """Run all four failure classes against one seeded source.

    Args:
        seed: Random seed

    Returns:
        FailureSuiteResult with one result per failure type

    Raises:
        StopRule: If a result breaks the failure invariants
    """
    rng = SeededRandom(seed)
    audit_log = AuditLog()
    results = [simulate_failure(t, rng, audit_log) for t in FAILURE_TYPES]
    verify_failure_invariants(results)

    passed = sum(1 for r in results if _passed(r))
    suite = FailureSuiteResult(
        results=results,
        total_tests=len(results),
        passed=passed,
        failed=len(results) - passed,
        types_tested=[r.failure_type for r in results],
        all_passed=passed == len(results),
        audit_log=audit_log,
    )

    emit_receipt("failure_suite", {
        "total_tests": suite.total_tests,
        "passed": suite.passed,
        "failed": suite.failed,
        "types_tested": suite.types_tested,
        "all_passed": suite.all_passed,
        "seed": seed,
    })
    return suite
