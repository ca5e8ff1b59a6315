"""Tests for governance settings, predicates and reason codes."""

from dataclasses import FrozenInstanceError, replace

import pytest

from loadsim.core import ConfigurationError
from loadsim.governance import (
    DEFAULT_GOVERNANCE_SETTINGS,
    REASON_CODES,
    AnomalyCheckInput,
    RateLimitState,
    build_performance_settings,
    check_for_anomalies,
    enforce_export_permission,
    enforce_justification,
    enforce_rate_limits,
    enforce_run_permission,
    get_reason_code_info,
    get_role_scope,
    is_rate_limit_code,
    mask_identifier_for_log,
    validate_governance_settings,
    validate_reason_code,
)


class TestSettings:
    """Tests for GovernanceSettings."""

    def test_defaults(self):
        s = DEFAULT_GOVERNANCE_SETTINGS
        assert s.max_concurrent_runs == 3
        assert s.max_runs_per_day_tenant == 100
        assert s.max_runs_per_day_user == 20
        assert s.max_evidence_items_per_run == 10000
        assert s.max_content_scan_bytes == 512000
        assert s.allowed_provider_phases == (1,)
        assert s.default_execution_mode == "METADATA_ONLY"

    def test_immutable(self):
        with pytest.raises(FrozenInstanceError):
            DEFAULT_GOVERNANCE_SETTINGS.max_concurrent_runs = 10

    def test_invalid_limit_rejected(self):
        with pytest.raises(ConfigurationError):
            validate_governance_settings(replace(DEFAULT_GOVERNANCE_SETTINGS, max_concurrent_runs=0))

    def test_performance_settings(self):
        s = build_performance_settings(25, 50000, 104857600)
        assert s.max_concurrent_runs == 25
        assert s.max_runs_per_day_user >= 25
        assert s.max_evidence_items_per_run == 50000


class TestRolePermissions:
    """Tests for role-based checks."""

    @pytest.mark.parametrize("role", ["SUPER_ADMIN", "TENANT_ADMIN", "DPO", "CASE_MANAGER"])
    def test_run_allowed(self, role):
        assert enforce_run_permission(role).allowed

    @pytest.mark.parametrize("role", ["CONTRIBUTOR", "READ_ONLY", "UNKNOWN"])
    def test_run_forbidden(self, role):
        result = enforce_run_permission(role)
        assert not result.allowed
        assert result.code == "ROLE_FORBIDDEN"

    def test_unknown_role_is_read_only(self):
        assert get_role_scope("NOBODY") == get_role_scope("READ_ONLY")

    def test_export_permission(self):
        assert enforce_export_permission("CASE_MANAGER").allowed
        assert enforce_export_permission("READ_ONLY").code == "EXPORT_FORBIDDEN"


class TestJustification:
    """Tests for justification checks."""

    def test_short_justification(self):
        result = enforce_justification("too short")
        assert not result.allowed
        assert result.code == "MISSING_JUSTIFICATION"

    def test_missing_justification(self):
        assert not enforce_justification(None).allowed

    def test_ten_characters_enough(self):
        assert enforce_justification("0123456789").allowed

    def test_not_required(self):
        settings = replace(DEFAULT_GOVERNANCE_SETTINGS, require_justification=False)
        assert enforce_justification("", settings).allowed


class TestRateLimits:
    """Rate limits are checked concurrency, tenant, user."""

    def test_allowed_under_limits(self):
        state = RateLimitState(tenant_runs_today=0, user_runs_today=0, concurrent_runs=0)
        assert enforce_rate_limits(state, DEFAULT_GOVERNANCE_SETTINGS).allowed

    def test_concurrency_first(self):
        state = RateLimitState(tenant_runs_today=500, user_runs_today=500, concurrent_runs=3)
        assert enforce_rate_limits(state, DEFAULT_GOVERNANCE_SETTINGS).code == "CONCURRENCY_LIMIT"

    def test_tenant_before_user(self):
        state = RateLimitState(tenant_runs_today=100, user_runs_today=20, concurrent_runs=0)
        assert enforce_rate_limits(state, DEFAULT_GOVERNANCE_SETTINGS).code == "TENANT_DAILY_LIMIT"

    def test_user_limit(self):
        state = RateLimitState(tenant_runs_today=0, user_runs_today=20, concurrent_runs=0)
        assert enforce_rate_limits(state, DEFAULT_GOVERNANCE_SETTINGS).code == "USER_DAILY_LIMIT"


class TestAnomalies:
    """Tests for anomaly detection."""

    def _input(self, runs=0, subjects=0, denied=0):
        return AnomalyCheckInput("u@synthetic.test", "t", runs, subjects, denied)

    def test_no_anomaly(self):
        assert not check_for_anomalies(self._input(1, 1, 0)).is_anomaly

    def test_many_runs(self):
        assert check_for_anomalies(self._input(runs=10)).event_type == "ANOMALY_MANY_RUNS"

    def test_many_subjects(self):
        assert check_for_anomalies(self._input(subjects=5)).event_type == "ANOMALY_MANY_SUBJECTS"

    def test_many_denials(self):
        assert check_for_anomalies(self._input(denied=5)).event_type == "ANOMALY_PERMISSION_DENIED"


class TestMasking:
    """Identifiers are masked before logging."""

    def test_email(self):
        assert mask_identifier_for_log("EMAIL", "anna.meyer@synthetic.test") == "a***@synthetic.test"

    def test_email_detected_by_at_sign(self):
        assert mask_identifier_for_log("user", "perf-user-1@synthetic.test") == "p***@synthetic.test"

    def test_name(self):
        assert mask_identifier_for_log("NAME", "Anna Meyer") == "A*** M***"

    def test_iban(self):
        masked = mask_identifier_for_log("IBAN", "DE12123456789012345678")
        assert masked.startswith("DE12")
        assert "123456789" not in masked

    def test_empty(self):
        assert mask_identifier_for_log("EMAIL", "") == "***"


class TestReasonCodes:
    """Tests for reason codes."""

    def test_all_check_codes_known(self):
        for code in ("ROLE_FORBIDDEN", "MISSING_JUSTIFICATION", "CONCURRENCY_LIMIT",
                     "TENANT_DAILY_LIMIT", "USER_DAILY_LIMIT", "EXPORT_FORBIDDEN"):
            assert validate_reason_code(code)

    def test_info(self):
        info = get_reason_code_info("CONCURRENCY_LIMIT")
        assert info["category"] == "rate_limit"
        assert info["retryable"]
        assert get_reason_code_info("NOPE") is None

    def test_rate_limit_codes(self):
        assert is_rate_limit_code("USER_DAILY_LIMIT")
        assert not is_rate_limit_code("ROLE_FORBIDDEN")
        assert len(REASON_CODES) >= 6
