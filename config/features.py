"""Load Simulator Feature Flags

All flags start FALSE: a simulation persists nothing and prints nothing
unless a side channel is switched on.
"""

import os

# =============================================================================
# FEATURE FLAGS - All start FALSE
# =============================================================================

# Receipt side channels
FEATURE_RECEIPT_LEDGER_ENABLED = False   # Append receipts to the JSONL ledger
FEATURE_RECEIPT_ECHO_ENABLED = False     # Print receipts to stdout

# Executive view outside demo tenants
FEATURE_EXECUTIVE_VIEW_ENABLED = False

ENV_PREFIX = "LOADSIM_"


def is_feature_enabled(feature_name: str) -> bool:
    """Check if a feature is enabled.

    Supports environment variable override: LOADSIM_{FEATURE_NAME}=1

    Args:
        feature_name: Name of the feature flag

    Returns:
        True if enabled, False otherwise
    """
    env_value = os.environ.get(f"{ENV_PREFIX}{feature_name.upper()}")
    if env_value is not None:
        return env_value.lower() in ("1", "true", "yes", "on")

    return globals().get(feature_name, False)


def enable_feature(feature_name: str):
    """Enable a feature flag at runtime.

    Args:
        feature_name: Name of the feature flag
    """
    if feature_name in globals():
        globals()[feature_name] = True


def disable_feature(feature_name: str):
    """Disable a feature flag at runtime.

    Args:
        feature_name: Name of the feature flag
    """
    if feature_name in globals():
        globals()[feature_name] = False


def get_environment() -> str:
    """Current deployment environment from LOADSIM_ENV (default: development)."""
    return os.environ.get(f"{ENV_PREFIX}ENV", "development").lower()


def get_all_features() -> dict:
    """Get all feature flags and their current state.

    Returns:
        Dict of feature_name -> enabled
    """
    return {
        name: is_feature_enabled(name)
        for name in (
            "FEATURE_RECEIPT_LEDGER_ENABLED",
            "FEATURE_RECEIPT_ECHO_ENABLED",
            "FEATURE_EXECUTIVE_VIEW_ENABLED",
        )
    }
