"""Core Foundation Functions

Every other module imports from here. Foundation for:
- Dual hashing (SHA256 + BLAKE3)
- Receipt emission
- StopRule and configuration errors
"""

import hashlib
import json
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import blake3

from config.features import is_feature_enabled

TENANT_ID = os.environ.get("LOADSIM_TENANT_ID", "loadsim-local")

# Global receipt counter for ordering
_receipt_counter = 0


class StopRule(Exception):
    """Raised when stoprule triggers. Never catch silently.

    StopRules indicate a broken harness invariant (an unaudited failure,
    an orphan record). They emit an anomaly receipt before raising.
    """
    def __init__(self, message: str, metric: str = "unknown", action: str = "halt"):
        self.message = message
        self.metric = metric
        self.action = action
        super().__init__(message)


class ConfigurationError(ValueError):
    """Raised before any work starts when a configuration is invalid."""


def get_receipts_file() -> Path:
    """Ledger path, read from LOADSIM_RECEIPTS_FILE at call time."""
    return Path(os.environ.get("LOADSIM_RECEIPTS_FILE", "receipts.jsonl"))


def dual_hash(data: bytes | str) -> str:
    """Compute SHA256:BLAKE3 dual hash.

    Args:
        data: Input bytes or string to hash

    Returns:
        String in format "sha256_hex:blake3_hex"
    """
    if isinstance(data, str):
        data = data.encode('utf-8')

    sha256_hash = hashlib.sha256(data).hexdigest()
    blake3_hash = blake3.blake3(data).hexdigest()

    return f"{sha256_hash}:{blake3_hash}"


def emit_receipt(receipt_type: str, data: dict,
                 tenant_id: Optional[str] = None,
                 to_file: Optional[bool] = None,
                 silent: Optional[bool] = None) -> dict:
    """Emit a receipt. Every simulation stage calls this.

    Side channels follow the feature flags unless overridden: the ledger
    write is controlled by FEATURE_RECEIPT_LEDGER_ENABLED, stdout echo by
    FEATURE_RECEIPT_ECHO_ENABLED.

    Args:
        receipt_type: Type of receipt (dataset, run, audit, anomaly, etc.)
        data: Receipt payload data
        tenant_id: Override default tenant ID
        to_file: Whether to append to the receipts ledger
        silent: Whether to suppress stdout printing

    Returns:
        Complete receipt dict with ts, tenant_id, sequence, payload_hash
    """
    global _receipt_counter
    _receipt_counter += 1

    if to_file is None:
        to_file = is_feature_enabled("FEATURE_RECEIPT_LEDGER_ENABLED")
    if silent is None:
        silent = not is_feature_enabled("FEATURE_RECEIPT_ECHO_ENABLED")

    ts = datetime.now(timezone.utc).isoformat().replace('+00:00', 'Z')
    tid = tenant_id or data.get("tenant_id", TENANT_ID)

    receipt = {
        "receipt_type": receipt_type,
        "ts": ts,
        "tenant_id": tid,
        "sequence": _receipt_counter,
        **data
    }

    receipt["payload_hash"] = dual_hash(json.dumps(receipt, sort_keys=True, default=str))
    receipt_json = json.dumps(receipt, sort_keys=True, default=str)

    if not silent:
        print(receipt_json, flush=True)

    if to_file:
        with open(get_receipts_file(), "a") as f:
            f.write(receipt_json + "\n")

    return receipt


def emit_stoprule(e: Exception, metric: str, action: str = "halt") -> dict:
    """Emit anomaly receipt for a stoprule violation.

    Args:
        e: The exception that triggered the stoprule
        metric: The metric that violated
        action: Action to take (halt, escalate, alert)

    Returns:
        The anomaly receipt
    """
    return emit_receipt("anomaly", {
        "metric": metric,
        "classification": "violation",
        "action": action,
        "error": str(e)
    })


def load_receipts(file_path: Optional[Path] = None) -> list[dict]:
    """Load all receipts from the ledger file.

    Args:
        file_path: Path to receipts file, defaults to the configured ledger

    Returns:
        List of receipt dicts (empty if the ledger does not exist)
    """
    path = file_path or get_receipts_file()
    receipts = []

    try:
        with open(path, 'r') as f:
            for line in f:
                line = line.strip()
                if line:
                    receipts.append(json.loads(line))
    except FileNotFoundError:
        pass

    return receipts


def summarize_receipts(receipts: list[dict]) -> dict:
    """Count receipts by type.

    Args:
        receipts: Receipts as returned by load_receipts

    Returns:
        Dict of receipt_type -> count
    """
    counts: dict = {}
    for r in receipts:
        rtype = r.get("receipt_type", "unknown")
        counts[rtype] = counts.get(rtype, 0) + 1
    return counts


def get_receipt_count() -> int:
    """Get the current receipt counter value."""
    return _receipt_counter


def reset_receipt_counter():
    """Reset the receipt counter (for testing)."""
    global _receipt_counter
    _receipt_counter = 0
