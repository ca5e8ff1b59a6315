"""Performance Simulation Harness for the Load Simulator

Composes dataset generation, parallel runs, stress tests and the failure
suite, and runs named scenarios:
1. SMOKE - Tiny population, all sub-tests
2. BASELINE_1K - Default configuration
3. MEDIUM_5K - Medium density
4. ENTERPRISE_10K - 250,000 items over 25 runs
5. FAILURE_DRILL - Injected failures
6. TRUNCATION - Per-run evidence ceiling
"""

from .sim import (
    SimScenario,
    SimulationOptions,
    PerformanceSimulationResult,
    run_performance_simulation,
    run_scenario,
    run_all_scenarios
)
from .scenarios import SMOKE, BASELINE_1K, MEDIUM_5K, ENTERPRISE_10K, FAILURE_DRILL, TRUNCATION
