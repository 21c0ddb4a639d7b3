"""CLI entry point for retireplan."""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
import sys

from .engine import SimulationContext, run_simulation
from .export import write_account_csv, write_snapshot_csv
from .reference import load_reference_data
from .schema import SchemaError, build_person, load_profile
from .validate import validate_profile


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Month-by-month retirement simulator")
    parser.add_argument("profile", help="Path to profile JSON file")
    parser.add_argument("-o", "--output", default="accounts.csv", help="Output CSV path for per-account monthly rows")
    parser.add_argument("--snapshots", help="Optional CSV path for monthly snapshots")
    parser.add_argument("--start", help="Override simulation start date (YYYY-MM-DD)")
    parser.add_argument("--end", help="Override simulation end date (YYYY-MM-DD)")
    parser.add_argument("--validate", action="store_true", help="Validate JSON only")
    parser.add_argument("--summary", action="store_true", help="Print text summary to stdout")
    parser.add_argument("--tax-data", help="Reference tax data JSON (default: bundled tax_years.json)")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    return parser


def _print_validation(errors: list[str], warnings: list[str]) -> None:
    for warning in warnings:
        print(f"WARNING: {warning}")
    for error in errors:
        print(f"ERROR: {error}", file=sys.stderr)


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        profile = load_profile(args.profile)
        if args.start:
            profile.simulation.start = args.start
        if args.end:
            profile.simulation.end = args.end
    except (SchemaError, OSError, ValueError) as exc:
        print(f"Failed to load profile: {exc}", file=sys.stderr)
        return 2

    validation = validate_profile(profile)
    _print_validation(validation.errors, validation.warnings)
    if not validation.is_valid:
        return 1

    if args.validate:
        print("Profile is valid.")
        return 0

    try:
        reference = load_reference_data(args.tax_data)
        start = profile.start_date()
        end = profile.end_date()
        person = build_person(profile, as_of=start)
    except (SchemaError, OSError, ValueError) as exc:
        print(f"Failed to load profile: {exc}", file=sys.stderr)
        return 2

    context = SimulationContext(reference=reference, settings=profile.simulation.settings())
    result = run_simulation(person, start=start, end=end, context=context)

    write_account_csv(args.output, result)
    print(f"Wrote account ledger to {Path(args.output)}")
    if args.snapshots:
        write_snapshot_csv(args.snapshots, result)
        print(f"Wrote snapshots to {Path(args.snapshots)}")

    if args.summary and result.snapshots:
        first = result.snapshots[0]
        last = result.snapshots[-1]
        print(f"Person: {person.name} (life expectancy {person.life_expectancy(start):.1f})")
        print(f"Months: {first.date.isoformat()} to {last.date.isoformat()} ({len(result.snapshots)})")
        print(f"Ending net worth: ${result.final_net_worth:,.0f}")
        print(f"Total taxes: ${sum(item.result.total_tax for item in result.taxes):,.0f}")
        print(f"Shortfall events: {len(result.shortfalls)} (${result.total_shortfall:,.0f})")
        if result.first_shortfall_date is not None:
            print(f"First shortfall: {result.first_shortfall_date.isoformat()}")
        for milestone in result.milestones:
            print(f"Milestone {milestone.name}: {milestone.date.isoformat()} (age {milestone.age:.1f})")

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
