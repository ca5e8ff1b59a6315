"""Governance Module

Settings, allow/deny predicates, anomaly detection and reason codes
consumed by the run scheduler and the stress tests.
"""

from .settings import (
    GovernanceSettings,
    DEFAULT_GOVERNANCE_SETTINGS,
    validate_governance_settings,
    build_performance_settings
)

from .checks import (
    GovernanceCheckResult,
    RateLimitState,
    AnomalyCheckInput,
    AnomalyCheckResult,
    get_role_scope,
    enforce_run_permission,
    enforce_justification,
    enforce_rate_limits,
    enforce_export_permission,
    check_for_anomalies,
    mask_identifier_for_log
)

from .reason_codes import (
    REASON_CODES,
    validate_reason_code,
    get_reason_code_info,
    is_rate_limit_code
)

__all__ = [
    "GovernanceSettings",
    "DEFAULT_GOVERNANCE_SETTINGS",
    "validate_governance_settings",
    "build_performance_settings",
    "GovernanceCheckResult",
    "RateLimitState",
    "AnomalyCheckInput",
    "AnomalyCheckResult",
    "get_role_scope",
    "enforce_run_permission",
    "enforce_justification",
    "enforce_rate_limits",
    "enforce_export_permission",
    "check_for_anomalies",
    "mask_identifier_for_log",
    "REASON_CODES",
    "validate_reason_code",
    "get_reason_code_info",
    "is_rate_limit_code"
]
