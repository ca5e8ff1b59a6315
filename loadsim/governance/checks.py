"""Governance Predicates

Pure allow/deny checks used before every run: role scope, justification,
rate limits, export permission, plus usage-anomaly detection and
identifier masking for log entries.
"""

from dataclasses import dataclass
from typing import Optional

from config.constants import (
    ANOMALY_DENIED_PER_HOUR,
    ANOMALY_DISTINCT_SUBJECTS_PER_HOUR,
    ANOMALY_RUNS_PER_HOUR,
    MIN_JUSTIFICATION_LENGTH,
)

from .settings import GovernanceSettings


@dataclass(frozen=True)
class RoleScope:
    can_start_run: bool
    can_request_export: bool
    can_approve_export: bool
    can_change_settings: bool
    metadata_only: bool


_FULL = RoleScope(True, True, True, True, False)
_NONE = RoleScope(False, False, False, False, True)

ROLE_SCOPES = {
    "SUPER_ADMIN": _FULL,
    "TENANT_ADMIN": _FULL,
    "DPO": _FULL,
    "CASE_MANAGER": RoleScope(True, True, False, False, False),
    "CONTRIBUTOR": _NONE,
    "READ_ONLY": _NONE,
}


@dataclass(frozen=True)
class GovernanceCheckResult:
    allowed: bool
    reason: Optional[str] = None
    code: Optional[str] = None


ALLOWED = GovernanceCheckResult(allowed=True)


@dataclass(frozen=True)
class RateLimitState:
    """Usage counters observed when a request is admitted."""
    tenant_runs_today: int
    user_runs_today: int
    concurrent_runs: int


@dataclass(frozen=True)
class AnomalyCheckInput:
    user_id: str
    tenant_id: str
    runs_in_last_hour: int
    distinct_subjects_in_last_hour: int
    permission_denied_in_last_hour: int


@dataclass(frozen=True)
class AnomalyCheckResult:
    is_anomaly: bool
    event_type: Optional[str] = None
    description: Optional[str] = None


def get_role_scope(role: str) -> RoleScope:
    """Scope of a role. Unknown roles get READ_ONLY."""
    return ROLE_SCOPES.get(role, ROLE_SCOPES["READ_ONLY"])


def enforce_run_permission(role: str) -> GovernanceCheckResult:
    if not get_role_scope(role).can_start_run:
        return GovernanceCheckResult(
            allowed=False,
            reason=f"Role '{role}' does not have permission to start runs.",
            code="ROLE_FORBIDDEN",
        )
    return ALLOWED


def enforce_justification(justification: Optional[str],
                          settings: Optional[GovernanceSettings] = None) -> GovernanceCheckResult:
    """Require a justification of at least MIN_JUSTIFICATION_LENGTH characters."""
    if settings is not None and not settings.require_justification:
        return ALLOWED
    if not justification or len(justification.strip()) < MIN_JUSTIFICATION_LENGTH:
        return GovernanceCheckResult(
            allowed=False,
            reason=(f"A justification of at least {MIN_JUSTIFICATION_LENGTH} "
                    "characters is required for every run."),
            code="MISSING_JUSTIFICATION",
        )
    return ALLOWED


def enforce_rate_limits(state: RateLimitState,
                        settings: GovernanceSettings) -> GovernanceCheckResult:
    """Check concurrency, then tenant daily, then user daily limits.

    Args:
        state: Counters at admission time (excluding this request)
        settings: Governance settings

    Returns:
        First failing check, or ALLOWED
    """
    if state.concurrent_runs >= settings.max_concurrent_runs:
        return GovernanceCheckResult(
            allowed=False,
            reason=f"Concurrency limit reached ({settings.max_concurrent_runs} concurrent runs).",
            code="CONCURRENCY_LIMIT",
        )
    if state.tenant_runs_today >= settings.max_runs_per_day_tenant:
        return GovernanceCheckResult(
            allowed=False,
            reason=f"Tenant daily limit reached ({settings.max_runs_per_day_tenant} runs/day).",
            code="TENANT_DAILY_LIMIT",
        )
    if state.user_runs_today >= settings.max_runs_per_day_user:
        return GovernanceCheckResult(
            allowed=False,
            reason=f"User daily limit reached ({settings.max_runs_per_day_user} runs/day).",
            code="USER_DAILY_LIMIT",
        )
    return ALLOWED


def enforce_export_permission(role: str) -> GovernanceCheckResult:
    if not get_role_scope(role).can_request_export:
        return GovernanceCheckResult(
            allowed=False,
            reason=f"Role '{role}' does not have permission to request exports.",
            code="EXPORT_FORBIDDEN",
        )
    return ALLOWED


def check_for_anomalies(data: AnomalyCheckInput) -> AnomalyCheckResult:
    """Detect suspicious usage. Thresholds are checked in a fixed order.

    Args:
        data: Hourly usage counters of one user

    Returns:
        AnomalyCheckResult, is_anomaly False if nothing crossed a threshold
    """
    if data.runs_in_last_hour >= ANOMALY_RUNS_PER_HOUR:
        return AnomalyCheckResult(
            is_anomaly=True,
            event_type="ANOMALY_MANY_RUNS",
            description=(f"{data.runs_in_last_hour} runs in the last hour "
                         f"(threshold: {ANOMALY_RUNS_PER_HOUR})"),
        )
    if data.distinct_subjects_in_last_hour >= ANOMALY_DISTINCT_SUBJECTS_PER_HOUR:
        return AnomalyCheckResult(
            is_anomaly=True,
            event_type="ANOMALY_MANY_SUBJECTS",
            description=(f"{data.distinct_subjects_in_last_hour} distinct subjects in the "
                         f"last hour (threshold: {ANOMALY_DISTINCT_SUBJECTS_PER_HOUR})"),
        )
    if data.permission_denied_in_last_hour >= ANOMALY_DENIED_PER_HOUR:
        return AnomalyCheckResult(
            is_anomaly=True,
            event_type="ANOMALY_PERMISSION_DENIED",
            description=(f"{data.permission_denied_in_last_hour} permission denials in the "
                         f"last hour (threshold: {ANOMALY_DENIED_PER_HOUR})"),
        )
    return AnomalyCheckResult(is_anomaly=False)


def _mask_email(value: str) -> str:
    local, _, domain = value.partition("@")
    return f"{local[:1]}***@{domain}"


def mask_identifier_for_log(identifier_type: str, value: Optional[str]) -> str:
    """Mask an identifier before it is written to a log entry.

    Args:
        identifier_type: EMAIL, PHONE, IBAN, NAME, EMPLOYEE_ID or other
        value: Raw identifier

    Returns:
        Masked string; "***" for empty input

    Example:
        >>> mask_identifier_for_log("EMAIL", "anna.meyer@synthetic.test")
        'a***@synthetic.test'
    """
    if not value:
        return "***"

    kind = identifier_type.upper()
    if kind == "EMAIL" or (kind not in ("PHONE", "IBAN", "NAME", "EMPLOYEE_ID") and "@" in value):
        return _mask_email(value)
    if kind == "PHONE":
        return "***" + value[-2:]
    if kind == "IBAN":
        return value[:4] + "****" + value[-2:]
    if kind == "NAME":
        return " ".join(f"{part[:1]}***" for part in value.split())
    return value[:1] + "***"
