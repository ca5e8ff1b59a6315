"""Tests for core foundation functions."""

import json

import pytest

from config.features import disable_feature, enable_feature, is_feature_enabled
from loadsim.core import (
    ConfigurationError,
    StopRule,
    dual_hash,
    emit_receipt,
    emit_stoprule,
    get_receipt_count,
    get_receipts_file,
    load_receipts,
    summarize_receipts,
)


class TestDualHash:
    """Tests for dual_hash function."""

    def test_returns_dual_format(self):
        """Hash must be in SHA256:BLAKE3 format."""
        parts = dual_hash(b"test").split(":")
        assert len(parts) == 2
        assert len(parts[0]) == 64
        assert len(parts[1]) == 64

    def test_string_and_bytes_agree(self):
        """Strings are hashed as their UTF-8 bytes."""
        assert dual_hash("hello") == dual_hash(b"hello")

    def test_deterministic(self):
        assert dual_hash(b"x") == dual_hash(b"x")
        assert dual_hash(b"x") != dual_hash(b"y")


class TestEmitReceipt:
    """Tests for receipt emission."""

    def test_receipt_fields(self):
        """Receipt carries type, sequence and payload hash."""
        receipt = emit_receipt("dataset", {"total": 5})
        assert receipt["receipt_type"] == "dataset"
        assert receipt["total"] == 5
        assert receipt["sequence"] == 1
        assert ":" in receipt["payload_hash"]

    def test_sequence_increments(self):
        emit_receipt("run", {})
        emit_receipt("run", {})
        assert get_receipt_count() == 2

    def test_silent_and_in_memory_by_default(self, capsys):
        """With flags off nothing is printed or written."""
        emit_receipt("run", {"a": 1})
        assert capsys.readouterr().out == ""
        assert not get_receipts_file().exists()

    def test_ledger_flag_writes_jsonl(self):
        """Ledger flag appends one JSON line per receipt."""
        enable_feature("FEATURE_RECEIPT_LEDGER_ENABLED")
        try:
            emit_receipt("run", {"a": 1})
            emit_receipt("audit", {"b": 2})
        finally:
            disable_feature("FEATURE_RECEIPT_LEDGER_ENABLED")

        receipts = load_receipts()
        assert [r["receipt_type"] for r in receipts] == ["run", "audit"]
        assert summarize_receipts(receipts) == {"run": 1, "audit": 1}

    def test_echo_flag_prints(self, capsys):
        enable_feature("FEATURE_RECEIPT_ECHO_ENABLED")
        try:
            emit_receipt("run", {"a": 1})
        finally:
            disable_feature("FEATURE_RECEIPT_ECHO_ENABLED")
        assert json.loads(capsys.readouterr().out)["receipt_type"] == "run"

    def test_env_override(self, monkeypatch):
        """LOADSIM_<FLAG> overrides the module value."""
        monkeypatch.setenv("LOADSIM_FEATURE_RECEIPT_ECHO_ENABLED", "1")
        assert is_feature_enabled("FEATURE_RECEIPT_ECHO_ENABLED")

    def test_load_missing_ledger(self, tmp_path):
        assert load_receipts(tmp_path / "missing.jsonl") == []


class TestErrors:
    """Tests for StopRule and ConfigurationError."""

    def test_stoprule_attributes(self):
        e = StopRule("broken", metric="failure_audit", action="halt")
        assert e.metric == "failure_audit"
        assert str(e) == "broken"

    def test_emit_stoprule_anomaly(self):
        receipt = emit_stoprule(StopRule("broken"), "failure_audit")
        assert receipt["receipt_type"] == "anomaly"
        assert receipt["metric"] == "failure_audit"

    def test_configuration_error_is_value_error(self):
        with pytest.raises(ValueError):
            raise ConfigurationError("bad")
