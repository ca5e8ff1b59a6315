"""Audit and Governance Logs

Append-only sinks for run lifecycle events and governance decisions.
Every entry is mirrored as a receipt. Entries never carry raw identifiers:
actors are masked before they are stored.
"""

from dataclasses import asdict, dataclass, field
from typing import Optional

from .core import emit_receipt
from .governance.checks import GovernanceCheckResult, mask_identifier_for_log

# Audit actions
RUN_STARTED = "RUN_STARTED"
RUN_COMPLETED = "RUN_COMPLETED"
RUN_PARTIAL = "RUN_PARTIAL_COMPLETED"
RUN_FAILED = "RUN_FAILED"
RUN_DENIED = "RUN_DENIED"
RUN_RETRIED = "RUN_RETRIED"
BREAK_GLASS = "BREAK_GLASS"
FAILURE_INJECTED = "FAILURE_INJECTED"


@dataclass(frozen=True)
class AuditLogEntry:
    run_id: str
    action: str
    actor: str
    tenant_id: str
    timestamp_ms: float
    details: dict = field(default_factory=dict)

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class GovernanceLogEntry:
    run_id: str
    check: str
    allowed: bool
    code: Optional[str]
    reason: Optional[str]
    actor: str
    tenant_id: str

    def to_dict(self) -> dict:
        return asdict(self)


class AuditLog:
    """Append-only audit and governance log for one simulation."""

    def __init__(self, tenant_id: str = "loadsim-local"):
        self.tenant_id = tenant_id
        self._audit: list = []
        self._governance: list = []

    @property
    def entries(self) -> list:
        return list(self._audit)

    @property
    def governance_entries(self) -> list:
        return list(self._governance)

    def record(self, run_id: str, action: str, actor: str,
               timestamp_ms: float = 0.0, details: Optional[dict] = None,
               tenant_id: Optional[str] = None) -> AuditLogEntry:
        """Append an audit entry. The actor is masked before storage."""
        entry = AuditLogEntry(
            run_id=run_id,
            action=action,
            actor=mask_identifier_for_log("EMAIL", actor),
            tenant_id=tenant_id or self.tenant_id,
            timestamp_ms=timestamp_ms,
            details=details or {},
        )
        self._audit.append(entry)
        emit_receipt("break_glass" if action == BREAK_GLASS else "audit",
                     entry.to_dict(), tenant_id=entry.tenant_id)
        return entry

    def record_check(self, run_id: str, check: str, result: GovernanceCheckResult,
                     actor: str, tenant_id: Optional[str] = None) -> GovernanceLogEntry:
        """Append the outcome of one governance pre-check, allowed or not."""
        entry = GovernanceLogEntry(
            run_id=run_id,
            check=check,
            allowed=result.allowed,
            code=result.code,
            reason=result.reason,
            actor=mask_identifier_for_log("EMAIL", actor),
            tenant_id=tenant_id or self.tenant_id,
        )
        self._governance.append(entry)
        emit_receipt("governance_check", entry.to_dict(), tenant_id=entry.tenant_id)
        return entry

    def runs_with_action(self, action: str) -> set:
        return {e.run_id for e in self._audit if e.action == action}

    def extend(self, other: "AuditLog"):
        """Concatenate another log's entries (order preserved)."""
        self._audit.extend(other._audit)
        self._governance.extend(other._governance)


def get_audit_summary(log: AuditLog) -> dict:
    """Summarize a log.

    Args:
        log: Audit log

    Returns:
        Dict with entry counts by action, governance checks and denials
    """
    by_action: dict = {}
    for e in log.entries:
        by_action[e.action] = by_action.get(e.action, 0) + 1

    governance = log.governance_entries
    denied = [g for g in governance if not g.allowed]
    by_code: dict = {}
    for g in denied:
        by_code[g.code] = by_code.get(g.code, 0) + 1

    return {
        "audit_entries": len(log.entries),
        "by_action": by_action,
        "governance_checks": len(governance),
        "governance_denials": len(denied),
        "denials_by_code": by_code,
        "runs_audited": len({e.run_id for e in log.entries}),
    }
