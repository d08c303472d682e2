#!/usr/bin/env python3
"""
Run a replenishment scenario and print its cash-flow report.

Loads a scenario YAML (default: the bundled spring_restock set), runs the
simulation through SimulationService and prints KPIs, timeline segments
and financial events.

Usage:
    python3 scripts/run_replenishment.py
    python3 scripts/run_replenishment.py --scenario replenish_config/sets/carton_freight.yaml
    python3 scripts/run_replenishment.py --daily          # add the daily table
    python3 scripts/run_replenishment.py --json           # machine-readable output
    python3 scripts/run_replenishment.py --list           # bundled scenarios
"""

import argparse
import json
import logging
import sys
from dataclasses import asdict
from pathlib import Path

# ---------------------------------------------------------------------------
# Project root on sys.path
# ---------------------------------------------------------------------------
ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))

from replenish_config import DEFAULT_SCENARIO_DIR, list_scenarios  # noqa: E402
from replenish_kernel.domain.values import Money  # noqa: E402
from replenish_kernel.exceptions import ScenarioConfigError  # noqa: E402
from replenish_kernel.logging_config import configure_logging  # noqa: E402
from replenish_services import SimulationService  # noqa: E402

W = 72
DEFAULT_SCENARIO = DEFAULT_SCENARIO_DIR / "spring_restock.yaml"


# =============================================================================
# Formatting helpers
# =============================================================================


def banner(title: str) -> None:
    print()
    print("=" * W)
    print(f"  {title}")
    print("=" * W)


def section(title: str) -> None:
    print()
    print(f"--- {title} ---")
    print()


def field(name: str, value, indent: int = 4) -> None:
    print(f"{' ' * indent}{name}: {value}")


def fmt_day(day) -> str:
    return "-" if day is None else str(day)


# =============================================================================
# Printers
# =============================================================================


def print_kpis(result) -> None:
    section("KPIs")
    summary = result.kpi_summary()
    for name, value in summary.items():
        field(name, fmt_day(value) if value is None else value)


def print_segments(result) -> None:
    section("Timeline")
    groups = (
        ("production", result.production),
        ("shipping", result.shipping),
        ("hold", result.hold),
        ("sell", result.sell),
        ("stockout", result.stockout),
    )
    for kind, segments in groups:
        for seg in segments:
            tag = seg.cost or seg.freight or seg.revenue
            extra = f"  {Money.of(tag, result.currency).round()}" if tag is not None else ""
            if seg.duration is not None:
                extra = f"  {seg.duration}d idle"
            if seg.gap_days is not None:
                extra = f"  {seg.gap_days}d gap"
            print(f"    #{seg.batch_index + 1:<3} {kind:<10} [{seg.start}, {seg.end}){extra}")


def print_events(result) -> None:
    section("Financial events")
    for event in result.financial_events:
        amount = Money.of(event.amount, result.currency).round()
        print(f"    day {event.day:>3}  {event.event_type.value:<8} {amount!s:>16}  {event.label}")


def print_daily(result) -> None:
    section("Daily")
    print(f"    {'day':>4} {'date':>6} {'inventory':>10} {'cash':>14} {'profit':>14}  stockout")
    for m in result.day_metrics():
        cash = Money.of(m.cash_balance, result.currency).round().amount
        profit = Money.of(m.accumulated_profit, result.currency).round().amount
        flag = "x" if m.is_stockout else ""
        print(f"    {m.day:>4} {m.label:>6} {m.inventory!s:>10} {cash!s:>14} {profit!s:>14}  {flag}")


def as_json(scenario, result) -> str:
    payload = {
        "scenario": scenario.name,
        "checksum": scenario.checksum,
        "kpis": {
            k: (str(v.amount) if isinstance(v, Money) else v)
            for k, v in result.kpi_summary().items()
        },
        "segments": {
            "production": [asdict(s) for s in result.production],
            "shipping": [asdict(s) for s in result.shipping],
            "hold": [asdict(s) for s in result.hold],
            "sell": [asdict(s) for s in result.sell],
            "stockout": [asdict(s) for s in result.stockout],
        },
        "financial_events": [asdict(e) for e in result.financial_events],
        "annotations": {k: asdict(a) for k, a in result.annotations.items()},
    }
    return json.dumps(payload, indent=2, default=str)


# =============================================================================
# Main
# =============================================================================


def main() -> int:
    parser = argparse.ArgumentParser(
        description="Simulate a replenishment plan day by day.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "examples:\n"
            "  python3 scripts/run_replenishment.py\n"
            "  python3 scripts/run_replenishment.py --scenario my_plan.yaml --daily\n"
            "  python3 scripts/run_replenishment.py --json\n"
        ),
    )
    parser.add_argument(
        "--scenario", type=Path, default=DEFAULT_SCENARIO,
        help=f"Scenario YAML file (default: {DEFAULT_SCENARIO.name})",
    )
    parser.add_argument(
        "--json", action="store_true",
        help="Output KPIs, segments and events as JSON",
    )
    parser.add_argument(
        "--daily", action="store_true",
        help="Also print the day-by-day table",
    )
    parser.add_argument(
        "--list", action="store_true",
        help="List bundled scenarios and exit",
    )
    parser.add_argument(
        "--verbose", action="store_true",
        help="Emit structured engine logs on stderr",
    )
    args = parser.parse_args()

    if args.list:
        for path in list_scenarios():
            print(f"  {path.name}")
        return 0

    if args.verbose:
        configure_logging(level=logging.DEBUG)
    else:
        logging.disable(logging.CRITICAL)

    service = SimulationService()
    try:
        scenario, result = service.run_scenario_file(args.scenario)
    except ScenarioConfigError as exc:
        print(f"  ERROR [{exc.code}]: {exc}", file=sys.stderr)
        return 1

    if result is None:
        print(f"  Scenario {scenario.name} has no batches; nothing to simulate.")
        return 0

    if args.json:
        print(as_json(scenario, result))
        return 0

    banner(f"REPLENISHMENT  {scenario.name}")
    field("source", scenario.source_path)
    field("checksum", scenario.checksum[:16])
    field("sim_start", scenario.params.sim_start)
    field("batches", len(scenario.params.batches))
    field("horizon_days", result.horizon_days)

    print_kpis(result)
    print_segments(result)
    print_events(result)
    if args.daily:
        print_daily(result)

    banner("DONE")
    return 0


if __name__ == "__main__":
    sys.exit(main())
