"""Performance Data Model

Immutable configuration and the per-run / aggregate metric records shared
by the generator, scheduler, aggregator and reports.
"""

from dataclasses import asdict, dataclass, field, replace
from typing import Optional

from config.constants import (
    DATASET_PRESETS,
    DEFAULT_BATCH_SIZE,
    DEFAULT_MAX_CONTENT_SCAN_BYTES,
    DEFAULT_MAX_EVIDENCE_PER_RUN,
    DEFAULT_PARALLEL_RUNS,
    DEFAULT_SEED,
    DEFAULT_SPECIAL_CATEGORY_RATIO,
    DEFAULT_SUBJECT_COUNT,
    EVIDENCE_DENSITY,
)


@dataclass(frozen=True)
class PerformanceLimits:
    """Resource limits applied to every run."""
    max_evidence_items_per_run: int = DEFAULT_MAX_EVIDENCE_PER_RUN
    max_content_scan_bytes: int = DEFAULT_MAX_CONTENT_SCAN_BYTES
    batch_size: int = DEFAULT_BATCH_SIZE


@dataclass(frozen=True)
class FailureSimulationConfig:
    """Failure classes injected into scheduled runs."""
    external_service_failure: bool = False
    timeout: bool = False
    slow_db_write: bool = False
    export_crash: bool = False

    def enabled(self) -> list[str]:
        return [name for name, on in asdict(self).items() if on]


@dataclass(frozen=True)
class PerformanceConfig:
    """A full simulation configuration. Validated before use."""
    subject_count: int = DEFAULT_SUBJECT_COUNT
    dataset_size: str = "1k"           # 1k | 5k | 10k | custom
    evidence_density: str = "low"      # low | medium | high
    special_category_ratio: float = DEFAULT_SPECIAL_CATEGORY_RATIO
    parallel_runs: int = DEFAULT_PARALLEL_RUNS
    detection_mode: str = "simulated"  # real | simulated
    seed: int = DEFAULT_SEED
    limits: PerformanceLimits = field(default_factory=PerformanceLimits)
    failures: FailureSimulationConfig = field(default_factory=FailureSimulationConfig)

    @property
    def evidence_per_subject(self) -> int:
        return get_evidence_per_subject(self.evidence_density)

    @property
    def total_evidence(self) -> int:
        return self.subject_count * self.evidence_per_subject

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class RunMetrics:
    """Metrics for one scheduled run. Timestamps are on the simulated clock."""
    run_id: str
    start_time_ms: float
    end_time_ms: float
    duration_ms: float
    evidence_count: int
    detection_time_ms: float
    export_time_ms: float
    db_writes: int
    queue_wait_ms: float
    memory_bytes: int
    special_category_detections: int
    status: str
    error: Optional[str] = None
    batches_processed: int = 0
    total_batches: int = 0

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class MetricsSummary:
    """Aggregate over a list of RunMetrics. All zero for no runs."""
    total_runs: int = 0
    completed_runs: int = 0
    failed_runs: int = 0
    partial_runs: int = 0
    avg_duration_ms: float = 0.0
    p95_duration_ms: float = 0.0
    max_duration_ms: float = 0.0
    avg_evidence_per_run: float = 0.0
    detection_throughput_per_sec: float = 0.0
    avg_queue_wait_ms: float = 0.0
    db_write_ops_per_sec: float = 0.0
    avg_export_time_ms: float = 0.0
    special_category_trigger_rate: float = 0.0

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class MetricsSnapshot:
    """Summary plus the context the executive view needs."""
    summary: MetricsSummary
    runs: list
    generation_time_ms: float
    total_subjects: int
    total_evidence_items: int
    timestamp: str

    def to_dict(self) -> dict:
        return {
            "summary": self.summary.to_dict(),
            "runs": [r.to_dict() for r in self.runs],
            "generation_time_ms": self.generation_time_ms,
            "total_subjects": self.total_subjects,
            "total_evidence_items": self.total_evidence_items,
            "timestamp": self.timestamp,
        }


def get_subject_count_for_preset(preset: str) -> int:
    """Subject count for a dataset preset.

    Raises:
        KeyError: If the preset is unknown
    """
    return DATASET_PRESETS[preset]


def get_evidence_per_subject(density: str) -> int:
    """Evidence items per subject for a density level.

    Raises:
        KeyError: If the density is unknown
    """
    return EVIDENCE_DENSITY[density]


def create_default_config(**overrides) -> PerformanceConfig:
    """Build a PerformanceConfig from defaults plus keyword overrides.

    A dataset_size override other than "custom" also sets subject_count
    unless subject_count is given explicitly.

    Example:
        >>> create_default_config(dataset_size="10k", evidence_density="medium").total_evidence
        250000
    """
    config = PerformanceConfig()
    preset = overrides.get("dataset_size")
    if preset and preset != "custom" and "subject_count" not in overrides and preset in DATASET_PRESETS:
        overrides["subject_count"] = DATASET_PRESETS[preset]
    return replace(config, **overrides)
