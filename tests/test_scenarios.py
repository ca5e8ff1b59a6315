"""Tests for the simulation harness, scenarios and reports."""

import json

import pandas as pd
import pyarrow.parquet as pq
import pytest

from loadsim.core import ConfigurationError
from loadsim.models import create_default_config
from sim.reporting import (
    RUN_COLUMNS,
    export_runs_parquet,
    generate_json_report,
    generate_markdown_report,
    runs_to_dataframe,
    save_results,
)
from sim.scenarios import (
    ALL_SCENARIOS,
    FAILURE_DRILL,
    QUICK_SCENARIOS,
    SMOKE,
    TRUNCATION,
    get_scenario_by_name,
    list_scenarios,
)
from sim.sim import (
    SimulationOptions,
    run_all_scenarios,
    run_performance_simulation,
    run_scenario,
    validate_criteria,
)

QUICK = SimulationOptions(concurrency_runs=25, security_requests=20)


@pytest.fixture
def result(small_config):
    return run_performance_simulation(small_config, QUICK)


class TestScenarioRegistry:
    """Tests for scenario lookup."""

    def test_list_scenarios(self):
        names = list_scenarios()
        assert len(names) == len(ALL_SCENARIOS)
        assert "ENTERPRISE_10K" in names

    def test_get_by_name(self):
        assert get_scenario_by_name("SMOKE") is SMOKE

    def test_unknown_scenario(self):
        with pytest.raises(ValueError):
            get_scenario_by_name("NOPE")

    def test_enterprise_expects_quarter_million(self):
        scenario = get_scenario_by_name("ENTERPRISE_10K")
        assert scenario.config.total_evidence == 250000
        assert scenario.success_criteria["expected_total_evidence"] == 250000


class TestPerformanceSimulation:
    """Tests for run_performance_simulation."""

    def test_success(self, result, small_config):
        assert result.success
        assert result.dataset.total_evidence_items == 500
        assert len(result.parallel.runs) == small_config.parallel_runs
        assert result.enterprise.records_processed == 500

    def test_sub_tests_run(self, result):
        assert result.concurrency.passed
        assert result.security.passed
        assert result.failure_suite.all_passed

    def test_sub_tests_skipped(self, small_config):
        options = SimulationOptions(run_concurrency_test=False, run_security_test=False,
                                    run_failure_suite=False)
        result = run_performance_simulation(small_config, options)
        assert result.concurrency is None
        assert result.security is None
        assert result.failure_suite is None

    def test_invalid_config_fails_fast(self):
        with pytest.raises(ConfigurationError):
            run_performance_simulation(create_default_config(parallel_runs=0), QUICK)

    def test_production_rejected(self, small_config):
        options = SimulationOptions(environment="production")
        with pytest.raises(ConfigurationError):
            run_performance_simulation(small_config, options)

    def test_demo_tenant_allowed_in_production(self, small_config):
        options = SimulationOptions(environment="production", tenant_slug="demo-acme",
                                    run_concurrency_test=False, run_security_test=False,
                                    run_failure_suite=False)
        assert run_performance_simulation(small_config, options).success

    def test_same_seed_same_metrics(self, small_config):
        a = run_performance_simulation(small_config, QUICK)
        b = run_performance_simulation(small_config, QUICK)
        sa, sb = a.snapshot.summary, b.snapshot.summary
        assert sa.avg_duration_ms == sb.avg_duration_ms
        assert sa.avg_queue_wait_ms == sb.avg_queue_wait_ms
        assert a.dataset.items_by_provider == b.dataset.items_by_provider


class TestCriteria:
    """Tests for validate_criteria."""

    def test_wrong_total_evidence(self, result):
        violations = validate_criteria(result, {"expected_total_evidence": 1})
        assert violations[0]["type"] == "total_evidence"

    def test_met_criteria(self, result):
        assert validate_criteria(result, {
            "expected_total_evidence": 500,
            "max_failed_runs": 0,
            "all_runs_audited": True,
            "failed_runs_have_errors": True,
        }) == []


class TestQuickScenarios:
    """Quick scenarios pass."""

    @pytest.mark.parametrize("scenario", QUICK_SCENARIOS, ids=lambda s: s.name)
    def test_scenario_passes(self, scenario):
        result = run_scenario(scenario)
        assert result.success, result.violations

    def test_truncation_scenario_partial(self):
        result = run_scenario(TRUNCATION)
        assert result.snapshot.summary.partial_runs == 1
        assert result.parallel.runs[0].evidence_count == 100

    def test_failure_drill_fails_loudly(self):
        result = run_scenario(FAILURE_DRILL)
        failed = [r for r in result.parallel.runs if r.status == "FAILED"]
        assert failed
        assert all(r.error for r in failed)

    def test_run_all(self, capsys):
        summary = run_all_scenarios([SMOKE])
        assert summary["all_passed"]
        assert "SMOKE" in summary["scenarios"]
        assert "PASS" in capsys.readouterr().out


class TestReporting:
    """Tests for reports and exports."""

    def test_dataframe(self, result):
        df = runs_to_dataframe(result.parallel.runs)
        assert isinstance(df, pd.DataFrame)
        assert list(df.columns) == RUN_COLUMNS
        assert len(df) == 4
        assert df["evidence_count"].sum() == 500

    def test_parquet_export(self, result, tmp_path):
        path = tmp_path / "runs.parquet"
        export = export_runs_parquet(result.parallel.runs, path)
        assert export["rows"] == 4
        assert export["receipt"]["receipt_type"] == "export"
        table = pq.read_table(path)
        assert table.column_names == RUN_COLUMNS

    def test_json_report(self, result, tmp_path):
        path = tmp_path / "report.json"
        report = generate_json_report(result, path)
        assert report["success"]
        loaded = json.loads(path.read_text())
        assert loaded["dataset"]["total_evidence_items"] == 500
        assert len(loaded["runs"]) == 4

    def test_markdown_report(self, result):
        md = generate_markdown_report(result)
        assert md.startswith("# Load Simulation Report")
        assert "run-001" in md

    def test_save_results(self, result, tmp_path):
        save_results(result, tmp_path / "out")
        names = {p.name for p in (tmp_path / "out").iterdir()}
        assert names == {"performance_report.json", "performance_report.md",
                         "performance_report.txt", "runs.parquet"}
