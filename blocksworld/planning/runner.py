"""Cycle runner: drives the scheduler until the goal holds or a limit is hit.

``iter_cycles()`` is a generator and the only suspension point of a run. A
driver that stops pulling from it cancels the run; the runner then reports
``RunStatus.CANCELLED``. Budget exhaustion and timeouts end the run normally
and are recorded on the result rather than raised.
"""

from __future__ import annotations

import asyncio
import time
from enum import Enum
from typing import Any, Awaitable, Callable, Iterator, List, Optional

from ..errors import BudgetExhaustedError, PlannerTimeoutError
from ..logging_utils import LOG_TAG_ERROR, LOG_TAG_INFO, log_error, log_info, verbose_enabled
from ..schemas import CycleEntry, MoveReason, PlannerOptions, PlanResult, RunStatus
from .scheduler import MultiAgentScheduler


CycleListener = Callable[[CycleEntry], None]
PaceHook = Callable[[CycleEntry], Awaitable[Any]]


class RunnerState(str, Enum):
    IDLE = "idle"
    PLANNING = "planning"
    PROPOSING = "proposing"
    CONFLICT_CHECK = "conflict_check"
    APPLYING = "applying"
    GOAL_CHECK = "goal_check"
    ACHIEVED = "achieved"
    BUDGET_EXHAUSTED = "budget_exhausted"
    TIMED_OUT = "timed_out"


_TERMINAL_STATUS = {
    RunnerState.ACHIEVED: RunStatus.ACHIEVED,
    RunnerState.BUDGET_EXHAUSTED: RunStatus.BUDGET_EXHAUSTED,
    RunnerState.TIMED_OUT: RunStatus.TIMED_OUT,
}


class CycleRunner:
    """Iterates scheduling cycles under an iteration budget and a wall-clock limit."""

    def __init__(
        self,
        scheduler: MultiAgentScheduler,
        options: PlannerOptions,
        *,
        clock: Callable[[], float] = time.monotonic,
        cycle_listeners: Optional[List[CycleListener]] = None,
    ) -> None:
        """
        Args:
            scheduler: Scheduler owning the shared beliefs and goal chains.
            options: Resolved planner options (budget, timeout).
            clock: Monotonic clock in seconds. Tests inject a fake one.
            cycle_listeners: Callables invoked with each finished cycle entry.
                A listener that raises is reported and skipped.
        """
        self.scheduler = scheduler
        self.options = options
        self.clock = clock
        self.cycle_listeners = cycle_listeners or []

        self.state = RunnerState.IDLE
        self.intention_log: List[CycleEntry] = []
        self.iterations = 0
        self._started_at: Optional[float] = None
        self._finished_at: Optional[float] = None

    # ------------------------------------------------------------------
    # Drivers
    # ------------------------------------------------------------------

    def iter_cycles(self) -> Iterator[CycleEntry]:
        self.state = RunnerState.PLANNING
        self._started_at = self.clock()
        self._finished_at = None

        while True:
            if self.scheduler.goal_achieved():
                self._finish(RunnerState.ACHIEVED)
                return
            if self.iterations >= self.options.max_iterations:
                self._finish(RunnerState.BUDGET_EXHAUSTED)
                return
            if self.elapsed_ms() >= self.options.deliberation_timeout_ms:
                self._finish(RunnerState.TIMED_OUT)
                return

            self.iterations += 1
            if verbose_enabled():
                log_info(f"{LOG_TAG_INFO} === Cycle {self.iterations} ===")

            entry = self.scheduler.step(self.iterations, on_phase=self._enter_phase)
            self.intention_log.append(entry)
            self._notify(entry)
            yield entry

    def run(self) -> PlanResult:
        for _ in self.iter_cycles():
            pass
        return self.result()

    async def arun(self, pace: Optional[PaceHook] = None) -> PlanResult:
        """Async driver. ``pace`` is awaited after every cycle (e.g. to animate it)."""
        for entry in self.iter_cycles():
            if pace is not None:
                await pace(entry)
            else:
                await asyncio.sleep(0)
        return self.result()

    # ------------------------------------------------------------------
    # Reporting
    # ------------------------------------------------------------------

    @property
    def status(self) -> RunStatus:
        return _TERMINAL_STATUS.get(self.state, RunStatus.CANCELLED)

    def elapsed_ms(self) -> float:
        if self._started_at is None:
            return 0.0
        end = self._finished_at if self._finished_at is not None else self.clock()
        return (end - self._started_at) * 1000.0

    def result(self) -> PlanResult:
        scheduler = self.scheduler
        status = self.status
        pending = scheduler.remaining_relations()

        error = None
        if status == RunStatus.BUDGET_EXHAUSTED:
            error = BudgetExhaustedError(
                max_iterations=self.options.max_iterations,
                pending=[str(relation) for relation in pending],
            )
        elif status == RunStatus.TIMED_OUT:
            error = PlannerTimeoutError(
                elapsed_ms=self.elapsed_ms(),
                limit_ms=self.options.deliberation_timeout_ms,
            )

        statistics = scheduler.statistics()
        statistics["elapsed_ms"] = round(self.elapsed_ms(), 3)

        return PlanResult(
            moves=list(scheduler.move_groups),
            iterations=self.iterations,
            goal_achieved=not pending,
            relations_resolved=sum(
                1
                for group in scheduler.move_groups
                for move in group.moves
                if move.reason == MoveReason.STACK
            ),
            agent_count=len(scheduler.agents),
            intention_log=list(self.intention_log),
            beliefs=scheduler.beliefs.snapshot(pending[0] if pending else None),
            planner_options_used=self.options,
            goal_chains=[list(chain) for chain in scheduler.goal_chains],
            status=status,
            timed_out=status == RunStatus.TIMED_OUT,
            pending_relations=pending,
            error_code=error.code if error else None,
            error_message=str(error) if error else None,
            statistics=statistics,
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _enter_phase(self, phase: str) -> None:
        self.state = RunnerState(phase)

    def _finish(self, state: RunnerState) -> None:
        self.state = state
        self._finished_at = self.clock()

    def _notify(self, entry: CycleEntry) -> None:
        for listener in self.cycle_listeners:
            try:
                listener(entry)
            except Exception as exc:
                log_error(f"  {LOG_TAG_ERROR} [Runner] Cycle listener failed: {exc}")
