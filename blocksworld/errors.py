"""
Planner exceptions.

Every error raised by the planner derives from ``PlanningError`` and carries an
HTTP-like ``status`` so a transport wrapper can map it to a response without
inspecting the message. Budget exhaustion and timeouts are normal outcomes:
the runner records them on the result instead of raising (see
``PlanResult.raise_for_status`` for callers that prefer exceptions).
"""

from typing import List, Optional


class PlanningError(Exception):
    """Base class for planner failures."""

    code = "PLANNING_ERROR"

    def __init__(self, message: str, *, status: int = 400) -> None:
        self.status = status
        super().__init__(message)


class MalformedStacksError(PlanningError):
    """Raised when the world snapshot cannot be turned into beliefs."""

    code = "MALFORMED_STACKS"


class MalformedGoalError(PlanningError):
    """Raised when a goal chain is empty, references unknown blocks, or repeats blocks."""

    code = "MALFORMED_GOAL"


class IllegalMoveError(PlanningError):
    """Raised when a move violates a precondition of the belief model.

    The scheduler recovers from this locally: the offending proposal is dropped
    for the current cycle and the agent proposes again next cycle.
    """

    code = "ILLEGAL_MOVE"

    def __init__(self, *, block: str, to: str, reason: str) -> None:
        self.block = block
        self.to = to
        self.reason = reason
        super().__init__(f"Illegal move {block} -> {to}: {reason}", status=422)


class BudgetExhaustedError(PlanningError):
    """Iteration cap reached before every goal relation was satisfied."""

    code = "BUDGET_EXHAUSTED"

    def __init__(self, *, max_iterations: int, pending: Optional[List[str]] = None) -> None:
        self.max_iterations = max_iterations
        self.pending = list(pending or [])
        message_lines = [
            f"Planner could not achieve the goal within {max_iterations} iterations.",
        ]
        if self.pending:
            message_lines.append("Unsatisfied relations:")
            for relation in self.pending:
                message_lines.append(f"  - {relation}")
        message_lines.extend(
            [
                "\nRemediation tips:",
                "  - Raise maxIterations (capped by BLOCKSWORLD_MAX_ITERATION_CAP)",
                "  - Enable BLOCKSWORLD_VERBOSE=true to trace proposals and conflicts",
            ]
        )
        super().__init__("\n".join(message_lines), status=422)


class PlannerTimeoutError(PlanningError):
    """Wall-clock safety limit reached before the goal was achieved."""

    code = "TIMEOUT"

    def __init__(self, *, elapsed_ms: float, limit_ms: int) -> None:
        self.elapsed_ms = elapsed_ms
        self.limit_ms = limit_ms
        super().__init__(
            f"Planner timed out after {elapsed_ms:.0f}ms (limit {limit_ms}ms).",
            status=422,
        )
