"""
Planner entry point - coordinates one planning request.

BlocksWorldPlanner wires the components together for a single call:
1. Validation normalizes stacks, goal chains and options (config defaults fill gaps)
2. A fresh BeliefModel is built from the stacks (never shared between calls)
3. MultiAgentScheduler assigns one agent per goal chain
4. CycleRunner iterates cycles until the goal holds, the iteration budget is
   spent, or the wall-clock limit passes
5. The PlanResult carries move groups, the intention log and final beliefs

Budget exhaustion and timeouts are reported on the result, not raised.
Malformed input raises before any planning happens.
"""

from __future__ import annotations

import time
from typing import Any, Callable, List, Mapping, Optional, Sequence, Union

from .beliefs import BeliefModel
from .logging_utils import (
    LOG_TAG_ERROR,
    LOG_TAG_SUCCESS,
    Color,
    colored,
    log_error,
    log_success,
)
from .planning.conflicts import ConflictDetector
from .planning.runner import CycleListener, CycleRunner, PaceHook
from .planning.scheduler import MultiAgentScheduler
from .planning.strategies import NegotiationStrategy, PriorityStrategy, resolve_strategy
from .schemas import PlannerOptions, PlanResult, RunStatus
from .validation import (
    GoalInput,
    normalize_goal_chains,
    normalize_stacks,
    resolve_planner_options,
    split_goal_input,
)


OptionsInput = Union[PlannerOptions, Mapping[str, Any], None]


class BlocksWorldPlanner:
    """Plans moves that turn ``stacks`` into the requested goal tower(s).

    Each call to ``plan()`` / ``run()`` / ``build_runner()`` starts from the
    validated input stacks, so the same planner can be run repeatedly.
    """

    def __init__(
        self,
        stacks: Any,
        goal: Optional[GoalInput] = None,
        goal_chains: Optional[Sequence[Sequence[str]]] = None,
        options: OptionsInput = None,
        *,
        strategy: Optional[NegotiationStrategy] = None,
        detector: Optional[ConflictDetector] = None,
        cycle_listeners: Optional[List[CycleListener]] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """
        Args:
            stacks: Bottom-to-top stacks, e.g. ``[["A", "B"], ["C"]]``.
            goal: One chain ``["A", "B", "Table"]`` or a list of chains.
            goal_chains: Explicit list of chains (mutually exclusive with ``goal``).
            options: PlannerOptions, a dict (snake_case or camelCase keys), or None.
            strategy: Negotiation strategy override. By default it comes from
                the options; ``enable_negotiation=False`` forces fixed priority.
            detector: Conflict detector override (reset at the start of each run).
            cycle_listeners: Callables receiving each CycleEntry as it completes.
            clock: Monotonic clock in seconds used for the timeout.
        """
        self.stacks = normalize_stacks(stacks)
        self.goal_chains = normalize_goal_chains(split_goal_input(goal, goal_chains), self.stacks)
        self.options = resolve_planner_options(options)

        if strategy is not None:
            self.strategy = strategy
        elif self.options.enable_negotiation:
            self.strategy = resolve_strategy(self.options.negotiation_strategy)
        else:
            self.strategy = PriorityStrategy()

        self.detector = detector or ConflictDetector()
        self.cycle_listeners = cycle_listeners or []
        self.clock = clock

    def build_runner(self) -> CycleRunner:
        """Fresh beliefs, scheduler and runner for one planning session."""
        self.detector.reset()
        scheduler = MultiAgentScheduler(
            BeliefModel.from_stacks(self.stacks),
            self.goal_chains,
            strategy=self.strategy,
            detector=self.detector,
        )
        return CycleRunner(
            scheduler,
            self.options,
            clock=self.clock,
            cycle_listeners=self.cycle_listeners,
        )

    def plan(self) -> PlanResult:
        """Plan synchronously to completion."""
        runner = self.build_runner()
        self._print_start(runner)
        result = runner.run()
        self._print_summary(result)
        return result

    async def run(self, pace: Optional[PaceHook] = None) -> PlanResult:
        """Plan through the async driver, awaiting ``pace`` after every cycle."""
        runner = self.build_runner()
        self._print_start(runner)
        result = await runner.arun(pace)
        self._print_summary(result)
        return result

    def _print_start(self, runner: CycleRunner) -> None:
        blocks = sum(len(stack) for stack in self.stacks)
        print(
            f"Planning {len(self.goal_chains)} goal chain(s) over {blocks} block(s) "
            f"with {len(runner.scheduler.agents)} agent(s) "
            f"[strategy={self.strategy.name}, maxIterations={self.options.max_iterations}]"
        )

    def _print_summary(self, result: PlanResult) -> None:
        move_count = len(result.flat_moves())
        if result.status == RunStatus.ACHIEVED:
            log_success(
                f"{LOG_TAG_SUCCESS} Goal achieved in {result.iterations} cycle(s), "
                f"{move_count} move(s)"
            )
        else:
            log_error(f"{LOG_TAG_ERROR} {result.error_code}: {result.error_message}")

        stats = result.statistics
        if stats.get("total_conflicts"):
            print(
                colored(
                    f"  Conflicts: {stats['total_conflicts']} "
                    f"(deferred {stats.get('deferred_proposals', 0)}, "
                    f"parallel cycles {stats.get('parallel_cycles', 0)})",
                    Color.CYAN,
                )
            )


def plan_blocks_world(
    stacks: Any,
    goal: Optional[GoalInput] = None,
    goal_chains: Optional[Sequence[Sequence[str]]] = None,
    options: OptionsInput = None,
) -> PlanResult:
    """Plan moves from ``stacks`` to the goal chain(s) with default collaborators.

    Usage:
        result = plan_blocks_world([["A", "B"]], goal=["A", "B", "Table"])
        [str(move) for move in result.flat_moves()]  # ['B -> Table', 'A -> B']

    Raises:
        MalformedStacksError / MalformedGoalError / PlanningError on bad input.
    """
    return BlocksWorldPlanner(stacks, goal=goal, goal_chains=goal_chains, options=options).plan()
