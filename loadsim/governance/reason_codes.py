"""Reason Codes - Governance Denial Classification

Every governance denial carries one of these codes. Denials are data,
not exceptions: the caller logs them and decides what to do.
"""

from typing import Optional

REASON_CODES = {
    # Role scope
    "ROLE_FORBIDDEN": {
        "category": "role",
        "description": "Role is not permitted to start runs",
        "retryable": False
    },
    "EXPORT_FORBIDDEN": {
        "category": "role",
        "description": "Role is not permitted to request exports",
        "retryable": False
    },

    # Justification
    "MISSING_JUSTIFICATION": {
        "category": "justification",
        "description": "A justification of at least 10 characters is required",
        "retryable": False
    },

    # Rate limits
    "CONCURRENCY_LIMIT": {
        "category": "rate_limit",
        "description": "Concurrent run limit reached",
        "retryable": True
    },
    "TENANT_DAILY_LIMIT": {
        "category": "rate_limit",
        "description": "Tenant daily run limit reached",
        "retryable": True
    },
    "USER_DAILY_LIMIT": {
        "category": "rate_limit",
        "description": "User daily run limit reached",
        "retryable": True
    },
}

RATE_LIMIT_CODES = [code for code, info in REASON_CODES.items()
                    if info["category"] == "rate_limit"]


def validate_reason_code(code: str) -> bool:
    """Check that a code is a known denial reason."""
    return code in REASON_CODES


def get_reason_code_info(code: str) -> Optional[dict]:
    """Get category, description and retryability of a code.

    Args:
        code: Reason code

    Returns:
        Info dict or None if unknown
    """
    info = REASON_CODES.get(code)
    if info is None:
        return None
    return {"code": code, **info}


def is_rate_limit_code(code: Optional[str]) -> bool:
    return code in RATE_LIMIT_CODES
