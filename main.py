#!/usr/bin/env python3
# barge-dispatch/main.py
"""
Command-Line Interface for the barge refueling dispatch engine.

Plans a schedule for a scenario file and prints it as a table.

Usage:
    python main.py                                  # Sample scenario
    python main.py --scenario my_port.json          # Custom scenario
    python main.py --priorities window_end total_quantity
    python main.py --start 2025-03-01T12:00         # Override start instant
    python main.py --output schedule.csv            # Also write CSV
    python main.py --commit                         # Show state after commit
    python main.py --planner-url http://host/plan   # Delegate to remote planner

Exit Codes:
    0: Success
    1: Input error
    2: Schedule integrity error
    3: Remote planner unavailable (retryable)
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from typing import List, Optional

# Ensure the package is importable when run from a checkout
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from barge_dispatch import config
from barge_dispatch.dispatch import DispatchEngine
from barge_dispatch.emitter import commit_schedule, schedule_to_dataframe
from barge_dispatch.errors import (
    InputValidationError,
    PlannerUnavailableError,
    ScheduleIntegrityError,
)
from barge_dispatch.loaders import load_scenario
from barge_dispatch.models import HistoryRecord, PriorityRuleSet, ScheduleResult, SchedulingInput
from barge_dispatch.planner_client import RemotePlanner
from barge_dispatch.priority import RULE_DESCRIPTIONS, RULES
from barge_dispatch.utils import parse_timestamp

DEFAULT_SCENARIO = os.path.join(os.path.dirname(os.path.abspath(__file__)), "data", "sample_scenario.json")


def print_header() -> None:
    """Print the CLI header."""
    print("\n" + "=" * 60)
    print("  BARGE DISPATCH - Port Refueling Scheduler")
    print("  Priority-Ordered Constructive Planner")
    print("=" * 60 + "\n")


def print_schedule(result: ScheduleResult, snapshot: SchedulingInput) -> None:
    """
    Print the schedule and the requests left out.

    Args:
        result: Planner output
        snapshot: The input it was planned from (for names)
    """
    print("\n" + "=" * 60)
    print("  SCHEDULE")
    print("=" * 60 + "\n")

    if not result.events:
        print("  (no events)")
    else:
        df = schedule_to_dataframe(result.events, snapshot)
        print(df.drop(columns=["barge_id", "location_id"], errors="ignore").to_string(index=False))

    print(f"\n  Deliveries: {len(result.deliveries)}   Recharges: {len(result.recharges)}")
    if result.unscheduled:
        requests = {r.request_id: r for r in snapshot.requests}
        print("  Unscheduled requests:")
        for request_id in result.unscheduled:
            print(f"    - {request_id} ({requests[request_id].ship_name})")
    print("=" * 60 + "\n")


def print_committed_state(snapshot: SchedulingInput, history: List[HistoryRecord]) -> None:
    """Print barge volumes/locations and history after a commit."""
    print("  STATE AFTER COMMIT")
    print("-" * 60)
    for barge in snapshot.barges:
        state = snapshot.states[barge.barge_id]
        volumes = ", ".join(
            f"{tank.product.value} {state.volume(tank.product):g}/{tank.capacity:g}" for tank in barge.tanks
        )
        location = snapshot.locations[state.location_id].name
        print(f"  {barge.name:<12} @ {location:<16} {volumes}")

    print("\n  HISTORY (newest first)")
    print("-" * 60)
    names = {b.barge_id: b.name for b in snapshot.barges}
    for record in history:
        print(f"  {record.completion_time:%Y-%m-%d %H:%M}  {record.ship_name:<18} "
              f"{names.get(record.barge_id, record.barge_id):<12} {record.product.value:<6} {record.quantity:g}")
    print()


def load_scenario_safe(path: str) -> Optional[SchedulingInput]:
    """
    Load a scenario with graceful error handling.

    Returns:
        The snapshot, or None if it cannot be loaded
    """
    try:
        snapshot = load_scenario(path)
    except FileNotFoundError as e:
        print(f"ERROR: {e}")
        return None
    except InputValidationError as e:
        print(f"ERROR: Failed to load scenario: {e}")
        return None

    print(f"Loaded {len(snapshot.barges)} barges and {len(snapshot.confirmed_requests)} "
          f"confirmed requests from '{path}'")
    return snapshot


def main() -> int:
    """
    Main entry point for the CLI.

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    parser = argparse.ArgumentParser(
        description="Barge refueling dispatch CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="Priority rules:\n" + "\n".join(
            f"  {name:<18} {RULE_DESCRIPTIONS[name]}" for name in RULES
        ),
    )

    parser.add_argument(
        "--scenario", "-s",
        type=str,
        default=DEFAULT_SCENARIO,
        help="Scenario JSON file (default: data/sample_scenario.json)"
    )

    parser.add_argument(
        "--start",
        type=str,
        default=None,
        help="Override the simulation start instant (ISO-8601)"
    )

    parser.add_argument(
        "--priorities", "-p",
        nargs="+",
        default=None,
        help=f"Ordered priority rules (default from scenario or {' '.join(config.DEFAULT_PRIORITY_RULES)})"
    )

    parser.add_argument(
        "--planner-url",
        type=str,
        default=None,
        help="Delegate planning to a remote planner at this URL"
    )

    parser.add_argument(
        "--output", "-o",
        type=str,
        default=None,
        help="Write the schedule to this CSV file"
    )

    parser.add_argument(
        "--commit",
        action="store_true",
        help="Apply the schedule to the loaded barge states and print the result"
    )

    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Show planner decisions"
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    print_header()

    snapshot = load_scenario_safe(args.scenario)
    if snapshot is None:
        return 1

    try:
        if args.start:
            snapshot.start_time = parse_timestamp(args.start, "start")
        if args.priorities:
            snapshot.priorities = PriorityRuleSet(rules=tuple(args.priorities))

        if args.planner_url:
            print(f"Delegating to remote planner at {args.planner_url}")
            result = RemotePlanner(url=args.planner_url).plan(snapshot)
        else:
            result = DispatchEngine().plan(snapshot)
    except InputValidationError as e:
        print(f"ERROR: Invalid input: {e}")
        return 1
    except ScheduleIntegrityError as e:
        print(f"ERROR: Schedule rejected: {e}")
        return 2
    except PlannerUnavailableError as e:
        print(f"ERROR: {e} (safe to retry)")
        return 3

    print_schedule(result, snapshot)

    if args.output:
        schedule_to_dataframe(result.events, snapshot).to_csv(args.output, index=False)
        print(f"Schedule written to {args.output}")

    if args.commit:
        history: List[HistoryRecord] = []
        commit_schedule(result.events, snapshot.barges, snapshot.states, history)
        print_committed_state(snapshot, history)

    return 0


if __name__ == "__main__":
    sys.exit(main())
