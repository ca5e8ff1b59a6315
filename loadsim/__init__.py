"""Load Simulator - Deterministic Load and Concurrency Harness

Validates a case-processing platform at scale before it sees production
traffic: synthetic workload, batched detection, analytic parallel runs,
failure injection, governance stress tests and percentile metrics.

Core Components:
- core: Foundation functions (dual_hash, emit_receipt, StopRule)
- rng: Seeded random source
- dataset: Batched subject and evidence generation
- detection: Real or simulated detection load
- scheduler: Parallel runs over a bounded slot pool
- failures: Failure injection suite
- stress: Concurrency and security-under-load tests
- metrics: Aggregation and percentiles
- enterprise: Executive summary
- governance: Settings, predicates and reason codes
"""

__version__ = "1.0.0"
__author__ = "Load Simulator Team"

from .core import dual_hash, emit_receipt, StopRule, ConfigurationError
from .rng import SeededRandom
from .models import (
    PerformanceConfig,
    PerformanceLimits,
    FailureSimulationConfig,
    RunMetrics,
    MetricsSummary,
    create_default_config
)
from .dataset import generate_scalable_dataset
from .detection import run_detection_load
from .scheduler import run_parallel_simulation
from .failures import run_failure_simulation_suite
from .stress import run_concurrency_test, run_security_under_load_test
from .metrics import compute_metrics_summary
from .enterprise import build_enterprise_demo_summary
