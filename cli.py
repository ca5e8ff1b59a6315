#!/usr/bin/env python3
"""Load Simulator CLI

Main entry point for running performance simulations.

Commands:
    python cli.py --run                       # Default simulation (1k subjects, 5 runs)
    python cli.py --run --persons 10000 --density medium --runs 25
    python cli.py --scenario ENTERPRISE_10K   # Run a named scenario
    python cli.py --list-scenarios            # List scenarios
    python cli.py --validate                  # Run quick scenarios
    python cli.py --failures                  # Failure injection suite
    python cli.py --concurrency 25            # Concurrency stress test
    python cli.py --security 100              # Security-under-load test
    python cli.py --report                    # Summarize receipts.jsonl
"""

import argparse
import sys
from pathlib import Path

# Ensure loadsim, config and sim are importable
sys.path.insert(0, str(Path(__file__).parent))

from loadsim.core import ConfigurationError, emit_receipt, load_receipts, reset_receipt_counter, summarize_receipts
from loadsim.models import FailureSimulationConfig, PerformanceLimits, create_default_config


def build_config(args):
    """Build a PerformanceConfig from CLI arguments."""
    overrides = {
        "evidence_density": args.density,
        "parallel_runs": args.runs,
        "detection_mode": args.mode,
        "seed": args.seed,
        "special_category_ratio": args.ratio,
        "limits": PerformanceLimits(
            max_evidence_items_per_run=args.max_evidence,
            batch_size=args.batch_size,
        ),
        "failures": FailureSimulationConfig(
            external_service_failure="external" in args.inject,
            timeout="timeout" in args.inject,
            slow_db_write="slow-db" in args.inject,
            export_crash="export-crash" in args.inject,
        ),
    }
    if args.persons is not None:
        overrides["dataset_size"] = "custom"
        overrides["subject_count"] = args.persons
    else:
        overrides["dataset_size"] = args.preset
    return create_default_config(**overrides)


def run_simulation(args) -> bool:
    """Run one simulation and print its report."""
    from sim.sim import SimulationOptions, run_performance_simulation
    from sim.reporting import format_simulation_result, save_results
    from loadsim.enterprise import format_executive_view, validate_demo_mode

    reset_receipt_counter()
    config = build_config(args)
    options = SimulationOptions(
        run_concurrency_test=not args.skip_concurrency,
        run_security_test=not args.skip_security,
        run_failure_suite=not args.skip_failures,
        tenant_slug=args.tenant,
    )

    print(f"Simulating {config.subject_count:,} subjects x {config.evidence_per_subject} items "
          f"over {config.parallel_runs} runs...", file=sys.stderr)
    result = run_performance_simulation(config, options)
    print(format_simulation_result(result), file=sys.stderr)

    if args.executive:
        error = validate_demo_mode(bool(args.tenant and args.tenant.startswith("demo")))
        if error:
            print(f"✗ {error}", file=sys.stderr)
        else:
            print(format_executive_view(result.enterprise), file=sys.stderr)

    if args.output:
        save_results(result, Path(args.output))
        print(f"✓ Reports written to {args.output}", file=sys.stderr)

    return result.success


def run_named_scenario(name: str, output: str = None) -> bool:
    from sim.scenarios import get_scenario_by_name
    from sim.sim import run_scenario
    from sim.reporting import format_simulation_result, save_results

    reset_receipt_counter()
    scenario = get_scenario_by_name(name)
    print(f"Running {scenario.name}: {scenario.description}", file=sys.stderr)
    result = run_scenario(scenario)
    print(format_simulation_result(result), file=sys.stderr)
    if output:
        save_results(result, Path(output))
    return result.success


def run_validation() -> bool:
    """Run quick scenarios."""
    from sim.sim import run_all_scenarios
    from sim.scenarios import QUICK_SCENARIOS
    from sim.reporting import format_all_results

    print("Running validation scenarios...\n", file=sys.stderr)

    results = run_all_scenarios(QUICK_SCENARIOS)

    print(format_all_results(results), file=sys.stderr)

    emit_receipt("validation", {
        "status": "passed" if results["all_passed"] else "failed",
        "scenarios": len(results["scenarios"])
    })

    return results["all_passed"]


def run_failures(seed: int) -> bool:
    from loadsim.failures import run_failure_simulation_suite

    suite = run_failure_simulation_suite(seed)
    for r in suite.results:
        mark = "✓" if r.audit_event_written and r.system_stable else "✗"
        print(f"  {mark} {r.failure_type:26} {r.run_status:10} "
              f"orphans={r.orphan_records}  {r.error_details or ''}", file=sys.stderr)
    print(f"\n  {suite.passed}/{suite.total_tests} failure types handled", file=sys.stderr)
    return suite.all_passed


def run_concurrency(n: int, seed: int) -> bool:
    from loadsim.stress import run_concurrency_test

    result = run_concurrency_test(n, seed=seed)
    print(f"  Completed: {result.completed_runs}/{result.total_runs}", file=sys.stderr)
    print(f"  Failed: {result.failed_runs}", file=sys.stderr)
    print(f"  Rate limits: {result.rate_limit_triggered}  Retries: {result.retry_attempts}",
          file=sys.stderr)
    print(f"  Break-glass: {result.break_glass_events_logged}", file=sys.stderr)
    print(f"  {'✓ PASS' if result.passed else '✗ FAIL'}", file=sys.stderr)
    return result.passed


def run_security(n: int, seed: int) -> bool:
    from loadsim.stress import run_security_under_load_test

    result = run_security_under_load_test(n, seed=seed)
    print(f"  Requests: {result.total_requests} in {result.window_duration_sec}s", file=sys.stderr)
    print(f"  Rate limited: {result.rate_limited_requests}", file=sys.stderr)
    print(f"  Break-glass: {result.break_glass_events_logged}", file=sys.stderr)
    print(f"  Cross-tenant leakage: {result.cross_tenant_leakage_detected}", file=sys.stderr)
    print(f"  {'✓ PASS' if result.passed else '✗ FAIL'}", file=sys.stderr)
    return result.passed


def run_report():
    """Summarize the receipts ledger."""
    receipts = load_receipts()
    if not receipts:
        print("No receipts found. Set LOADSIM_FEATURE_RECEIPT_LEDGER_ENABLED=1 to record them.",
              file=sys.stderr)
        return
    print(f"{len(receipts)} receipts", file=sys.stderr)
    for rtype, count in sorted(summarize_receipts(receipts).items()):
        print(f"  {rtype:24} {count:>8}", file=sys.stderr)


def main():
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Load Simulator - deterministic load and concurrency harness",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__.split("Commands:")[1]
    )

    parser.add_argument("--run", "-r", action="store_true", help="Run a simulation")
    parser.add_argument("--persons", "-p", type=int, metavar="N",
                        help="Subject count (overrides --preset)")
    parser.add_argument("--preset", choices=["1k", "5k", "10k", "custom"], default="1k",
                        help="Dataset size preset (default: 1k)")
    parser.add_argument("--density", choices=["low", "medium", "high"], default="low",
                        help="Evidence density (default: low)")
    parser.add_argument("--runs", type=int, default=5, help="Parallel runs, 1-25 (default: 5)")
    parser.add_argument("--mode", choices=["real", "simulated"], default="simulated",
                        help="Detection mode (default: simulated)")
    parser.add_argument("--seed", "-s", type=int, default=42, help="Random seed (default: 42)")
    parser.add_argument("--ratio", type=float, default=0.10,
                        help="Special-category subject ratio (default: 0.10)")
    parser.add_argument("--batch-size", type=int, default=500, help="Batch size (default: 500)")
    parser.add_argument("--max-evidence", type=int, default=50000,
                        help="Evidence limit per run (default: 50000)")
    parser.add_argument("--inject", nargs="*", default=[],
                        choices=["external", "timeout", "slow-db", "export-crash"],
                        help="Failure classes to inject into runs")
    parser.add_argument("--skip-concurrency", action="store_true")
    parser.add_argument("--skip-security", action="store_true")
    parser.add_argument("--skip-failures", action="store_true")
    parser.add_argument("--tenant", type=str, help="Tenant slug (demo* enables demo mode)")
    parser.add_argument("--executive", action="store_true", help="Print the executive view")
    parser.add_argument("--output", "-o", type=str, metavar="DIR", help="Write reports to DIR")

    parser.add_argument("--scenario", type=str, help="Run a named scenario")
    parser.add_argument("--list-scenarios", action="store_true", help="List scenarios")
    parser.add_argument("--validate", "-v", action="store_true", help="Run quick scenarios")
    parser.add_argument("--failures", action="store_true", help="Run the failure suite")
    parser.add_argument("--concurrency", type=int, metavar="N", help="Concurrency test with N runs")
    parser.add_argument("--security", type=int, metavar="N", help="Security test with N requests")
    parser.add_argument("--report", action="store_true", help="Summarize the receipts ledger")

    args = parser.parse_args()

    try:
        if args.list_scenarios:
            from sim.scenarios import ALL_SCENARIOS
            for s in ALL_SCENARIOS:
                print(f"  {s.name:16} {s.description}", file=sys.stderr)
            sys.exit(0)
        elif args.scenario:
            sys.exit(0 if run_named_scenario(args.scenario, args.output) else 1)
        elif args.validate:
            sys.exit(0 if run_validation() else 1)
        elif args.failures:
            sys.exit(0 if run_failures(args.seed) else 1)
        elif args.concurrency is not None:
            sys.exit(0 if run_concurrency(args.concurrency, args.seed) else 1)
        elif args.security is not None:
            sys.exit(0 if run_security(args.security, args.seed) else 1)
        elif args.report:
            run_report()
            sys.exit(0)
        elif args.run:
            sys.exit(0 if run_simulation(args) else 1)
        else:
            parser.print_help()
            sys.exit(0)
    except (ConfigurationError, ValueError) as e:
        print(f"✗ {e}", file=sys.stderr)
        sys.exit(2)


if __name__ == "__main__":
    main()
