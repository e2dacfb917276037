"""Regression suite: plan every bundled scenario and check its expectations.

Each scenario in ``examples/scenarios`` declares the outcome it should reach
(goal achieved, move/cycle bounds, parallel cycles, conflict counts). This
script plans them all and exits non-zero if any expectation is missed.

Usage:
    # Run every scenario
    python examples/regression/run.py

    # Run selected scenarios with per-cycle tracing
    python examples/regression/run.py shared_blocker independent_towers --verbose

    # Pace cycles as an animation layer would
    python examples/regression/run.py --pace 0.2
"""

import argparse
import asyncio
import os
import sys
from typing import List

from blocksworld import PlanningError, ScenarioLoader
from blocksworld.config import Config
from blocksworld.logging_utils import LOG_TAG_ERROR, LOG_TAG_SUCCESS, log_error, log_success
from blocksworld.schemas import CycleEntry


def parse_args() -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description="Blocks world planner regression suite")
    parser.add_argument(
        "scenarios",
        nargs="*",
        help="Scenario names to run (default: all bundled scenarios)",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Print proposals, conflicts and deferrals for every cycle",
    )
    parser.add_argument(
        "--pace",
        type=float,
        default=0.0,
        help="Seconds to wait between cycles (default: 0)",
    )
    return parser.parse_args()


async def run_scenarios(names: List[str], pace_seconds: float) -> int:
    loader = ScenarioLoader()
    names = names or loader.available()
    failed = 0

    async def pace(entry: CycleEntry) -> None:
        await asyncio.sleep(pace_seconds)

    for name in names:
        print(f"\n=== {name} ===")
        try:
            scenario = loader.load(name)
            result = await scenario.planner().run(pace if pace_seconds > 0 else None)
        except (PlanningError, ValueError, FileNotFoundError) as exc:
            log_error(f"{LOG_TAG_ERROR} {name}: {exc}")
            failed += 1
            continue

        print("Moves:")
        for group in result.moves:
            label = " | ".join(str(move) for move in group.moves)
            print(f"  cycle {group.cycle}: {label}")

        failures = scenario.check(result)
        if failures:
            failed += 1
            for failure in failures:
                log_error(f"{LOG_TAG_ERROR} {name}: {failure}")
        else:
            log_success(f"{LOG_TAG_SUCCESS} {name}: as expected")

    print(f"\n{len(names) - failed}/{len(names)} scenario(s) passed")
    return failed


def main() -> None:
    args = parse_args()
    Config.validate()
    if args.verbose:
        os.environ["BLOCKSWORLD_VERBOSE"] = "true"

    try:
        failed = asyncio.run(run_scenarios(args.scenarios, args.pace))
    except KeyboardInterrupt:
        print("\n\nRegression run interrupted by user.")
        sys.exit(130)

    sys.exit(1 if failed else 0)


if __name__ == "__main__":
    main()
