"""Tests for the concurrency and security stress tests."""

from loadsim.stress import run_concurrency_test, run_security_under_load_test


class TestConcurrency:
    """Tests for run_concurrency_test."""

    def test_every_request_accounted_for(self):
        result = run_concurrency_test(total_runs=25)
        assert result.completed_runs + result.failed_runs == 25
        assert result.total_runs == 25

    def test_rate_limits_and_retries(self):
        """25 requests against a limit of 10 concurrent runs trigger limits."""
        result = run_concurrency_test(total_runs=25)
        assert result.rate_limit_triggered > 0
        assert result.retry_attempts == result.rate_limit_triggered

    def test_guarantees_hold(self):
        result = run_concurrency_test()
        assert result.governance_enforced
        assert result.audit_logs_complete
        assert result.exports_correctly_gated
        assert result.no_system_blocks
        assert not result.cross_tenant_leakage
        assert not result.unmasked_pii_in_logs
        assert result.passed

    def test_evidence_spread_over_completed_runs(self):
        result = run_concurrency_test(total_runs=10, evidence_ceiling=1000)
        assert result.evidence_processed == result.completed_runs * 100

    def test_small_burst_fails_verdict(self):
        """5 requests never reach the limit, so limiting is not exercised."""
        result = run_concurrency_test(total_runs=5)
        assert result.rate_limit_triggered == 0
        assert result.retry_attempts == 0
        assert result.completed_runs == 5
        assert not result.passed

    def test_zero_runs(self):
        result = run_concurrency_test(total_runs=0)
        assert result.completed_runs == 0
        assert not result.no_system_blocks
        assert not result.passed

    def test_limited_burst_passes(self):
        result = run_concurrency_test(total_runs=25)
        assert result.rate_limit_triggered == 6
        assert result.retry_attempts == 6
        assert result.completed_runs == 25
        assert result.passed

    def test_deterministic(self):
        a = run_concurrency_test(seed=3)
        b = run_concurrency_test(seed=3)
        assert a.rate_limit_triggered == b.rate_limit_triggered
        assert a.break_glass_events_logged == b.break_glass_events_logged


class TestSecurityUnderLoad:
    """Tests for run_security_under_load_test."""

    def test_passes(self):
        result = run_security_under_load_test(total_requests=100, window_seconds=60)
        assert result.passed
        assert result.rate_limiting_active
        assert result.rate_limited_requests > 0

    def test_no_leakage_or_unmasked_identifiers(self):
        result = run_security_under_load_test()
        assert not result.cross_tenant_leakage_detected
        assert not result.unmasked_pii_detected

    def test_all_requests_audited_in_window(self):
        result = run_security_under_load_test(total_requests=50, window_seconds=30)
        assert result.all_audit_logs_present
        assert result.requests_in_window == 50
        assert result.window_duration_sec == 30

    def test_anomalies_become_break_glass_entries(self):
        result = run_security_under_load_test()
        assert result.anomalies_detected > 0
        assert result.break_glass_events_logged == result.anomalies_detected
