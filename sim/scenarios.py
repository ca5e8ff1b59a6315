"""Named Performance Scenarios

Each scenario is a fixed, seeded configuration with the criteria it must
meet. QUICK_SCENARIOS are small enough for CI.
"""

from dataclasses import replace

from loadsim.models import FailureSimulationConfig, PerformanceLimits, create_default_config

from .sim import SimScenario, SimulationOptions

_QUICK_OPTIONS = SimulationOptions(concurrency_runs=25, security_requests=50)

# Tiny population, every sub-test on
SMOKE = SimScenario(
    name="SMOKE",
    config=create_default_config(dataset_size="custom", subject_count=50,
                                 evidence_density="low", parallel_runs=3, seed=7),
    options=_QUICK_OPTIONS,
    success_criteria={
        "expected_total_evidence": 250,
        "max_failed_runs": 0,
        "all_runs_audited": True
    },
    description="50 subjects, low density, 3 runs"
)

# 1k preset, the default configuration
BASELINE_1K = SimScenario(
    name="BASELINE_1K",
    config=create_default_config(dataset_size="1k", evidence_density="low", seed=42),
    success_criteria={
        "expected_total_evidence": 5000,
        "max_failed_runs": 0,
        "max_peak_batch_items": 500,
        "all_runs_audited": True
    },
    description="1,000 subjects, low density, 5 runs"
)

MEDIUM_5K = SimScenario(
    name="MEDIUM_5K",
    config=create_default_config(dataset_size="5k", evidence_density="medium",
                                 parallel_runs=10, seed=123),
    success_criteria={
        "expected_total_evidence": 125000,
        "max_failed_runs": 0,
        "max_peak_batch_items": 500
    },
    description="5,000 subjects, medium density, 10 runs"
)

# Enterprise scale: 10k subjects x 25 items, every slot in use
ENTERPRISE_10K = SimScenario(
    name="ENTERPRISE_10K",
    config=create_default_config(dataset_size="10k", evidence_density="medium",
                                 parallel_runs=25, seed=2024),
    success_criteria={
        "expected_total_evidence": 250000,
        "min_completed_runs": 25,
        "max_peak_batch_items": 500,
        "all_runs_audited": True
    },
    description="10,000 subjects, medium density, 25 parallel runs"
)

# Injected failures must fail loudly and stay audited
FAILURE_DRILL = SimScenario(
    name="FAILURE_DRILL",
    config=replace(
        create_default_config(dataset_size="custom", subject_count=200,
                              parallel_runs=20, seed=99),
        failures=FailureSimulationConfig(external_service_failure=True, timeout=True,
                                         slow_db_write=True),
    ),
    options=_QUICK_OPTIONS,
    success_criteria={
        "all_runs_audited": True,
        "failed_runs_have_errors": True
    },
    description="External failures, timeouts and slow writes injected into 20 runs"
)

# Per-run evidence ceiling forces PARTIAL_COMPLETED runs
TRUNCATION = SimScenario(
    name="TRUNCATION",
    config=create_default_config(dataset_size="custom", subject_count=250, parallel_runs=1,
                                 limits=PerformanceLimits(max_evidence_items_per_run=100),
                                 seed=5),
    options=_QUICK_OPTIONS,
    success_criteria={
        "max_failed_runs": 0,
        "all_runs_audited": True
    },
    description="1,250 items against a 100 item per-run limit"
)

ALL_SCENARIOS = [
    SMOKE,
    BASELINE_1K,
    MEDIUM_5K,
    ENTERPRISE_10K,
    FAILURE_DRILL,
    TRUNCATION
]

# Quick scenarios for fast testing
QUICK_SCENARIOS = [SMOKE, FAILURE_DRILL, TRUNCATION]


def get_scenario_by_name(name: str) -> SimScenario:
    """Get scenario by name.

    Args:
        name: Scenario name

    Returns:
        SimScenario

    Raises:
        ValueError: If scenario not found
    """
    for scenario in ALL_SCENARIOS:
        if scenario.name == name:
            return scenario
    raise ValueError(f"Scenario '{name}' not found")


def list_scenarios() -> list[str]:
    """List all scenario names."""
    return [s.name for s in ALL_SCENARIOS]
