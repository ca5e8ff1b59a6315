"""Governance Settings

Immutable, fully enumerated settings consumed by the scheduler and the
stress tests. Settings are validated once at the boundary and are
read-only for the rest of a simulation.
"""

from dataclasses import asdict, dataclass, replace

from config.constants import (
    EXECUTION_MODE_METADATA_ONLY,
    GOVERNANCE_ALLOWED_PROVIDER_PHASES,
    GOVERNANCE_MAX_CONCURRENT_RUNS,
    GOVERNANCE_MAX_CONTENT_SCAN_BYTES,
    GOVERNANCE_MAX_EVIDENCE_PER_RUN,
    GOVERNANCE_MAX_RUNS_PER_DAY_TENANT,
    GOVERNANCE_MAX_RUNS_PER_DAY_USER,
    PERF_MAX_CONCURRENT_RUNS,
)

from ..core import ConfigurationError


@dataclass(frozen=True)
class GovernanceSettings:
    """Tenant governance configuration."""
    enabled: bool = True
    allowed_provider_phases: tuple = GOVERNANCE_ALLOWED_PROVIDER_PHASES
    default_execution_mode: str = EXECUTION_MODE_METADATA_ONLY
    allow_content_scanning: bool = False
    allow_ocr: bool = False
    allow_llm_summaries: bool = False
    max_runs_per_day_tenant: int = GOVERNANCE_MAX_RUNS_PER_DAY_TENANT
    max_runs_per_day_user: int = GOVERNANCE_MAX_RUNS_PER_DAY_USER
    max_evidence_items_per_run: int = GOVERNANCE_MAX_EVIDENCE_PER_RUN
    max_content_scan_bytes: int = GOVERNANCE_MAX_CONTENT_SCAN_BYTES
    max_concurrent_runs: int = GOVERNANCE_MAX_CONCURRENT_RUNS
    two_person_approval_for_export: bool = False
    require_justification: bool = True
    require_confirmation: bool = True

    def to_dict(self) -> dict:
        return asdict(self)


DEFAULT_GOVERNANCE_SETTINGS = GovernanceSettings()


def validate_governance_settings(settings: GovernanceSettings) -> GovernanceSettings:
    """Check settings at the boundary.

    Returns:
        The same settings, for chaining

    Raises:
        ConfigurationError: If a limit is not a positive integer
    """
    for name in ("max_runs_per_day_tenant", "max_runs_per_day_user",
                 "max_evidence_items_per_run", "max_content_scan_bytes",
                 "max_concurrent_runs"):
        value = getattr(settings, name)
        if not isinstance(value, int) or value < 1:
            raise ConfigurationError(f"Governance setting {name} must be a positive integer")
    if not settings.allowed_provider_phases:
        raise ConfigurationError("Governance setting allowed_provider_phases must not be empty")
    return settings


def build_performance_settings(parallel_runs: int, max_evidence_items_per_run: int,
                               max_content_scan_bytes: int) -> GovernanceSettings:
    """Settings for a performance simulation.

    Daily budgets are sized so that a single simulation never exhausts
    them; the slot cap is the performance cap.
    """
    return validate_governance_settings(replace(
        DEFAULT_GOVERNANCE_SETTINGS,
        max_concurrent_runs=PERF_MAX_CONCURRENT_RUNS,
        max_runs_per_day_tenant=max(GOVERNANCE_MAX_RUNS_PER_DAY_TENANT, parallel_runs),
        max_runs_per_day_user=max(GOVERNANCE_MAX_RUNS_PER_DAY_USER, parallel_runs),
        max_evidence_items_per_run=max_evidence_items_per_run,
        max_content_scan_bytes=max_content_scan_bytes,
    ))
