"""
Pydantic schemas for the blocks world planner.

All data structures exchanged between planner components, and returned to
callers, are defined here.

Design Philosophy:
- Tagged enums for move reasons, conflict kinds and run outcomes so new kinds
  cannot slip through unhandled
- snake_case in Python, camelCase on the wire (``to_payload`` / aliases)
- Results are plain data: the planner never hands out live belief objects
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .errors import BudgetExhaustedError, PlannerTimeoutError


# The table is a sentinel support, never a block. It is always clear.
TABLE = "Table"


class PayloadModel(BaseModel):
    """Base model accepting snake_case or camelCase input and dumping camelCase."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")


# ============================================================================
# Moves and relations
# ============================================================================


class MoveReason(str, Enum):
    """Why a move was proposed.

    ``clear-block`` moves a blocker off the block that has to move,
    ``clear-target`` moves a blocker off the destination, and ``stack`` is the
    move that realizes a goal relation.
    """

    CLEAR_BLOCK = "clear-block"
    CLEAR_TARGET = "clear-target"
    STACK = "stack"


class Relation(PayloadModel):
    """One adjacent pair of a goal chain: ``block`` directly on ``destination``."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    block: str
    destination: str

    def __str__(self) -> str:
        return f"{self.block} on {self.destination}"


class Move(PayloadModel):
    """A single-block relocation. ``to`` is a block id or ``Table``."""

    block: str = Field(..., description="Block being moved (must be clear)")
    to: str = Field(..., description="Destination block id or 'Table'")
    actor: Optional[str] = Field(None, description="Agent that executes the move")
    reason: Optional[MoveReason] = Field(None, description="Why the planner chose this move")
    cycle: Optional[int] = Field(None, description="Scheduling cycle that committed the move")

    def __str__(self) -> str:
        return f"{self.block} -> {self.to}"


class Proposal(PayloadModel):
    """Candidate next move from one agent's planner, before conflict resolution."""

    agent_id: str
    move: Move
    chain_index: int = Field(0, description="Index of the goal chain the agent owns")
    cycle: int = 0
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


# ============================================================================
# Conflicts
# ============================================================================


class ConflictType(str, Enum):
    RESOURCE = "RESOURCE_CONFLICT"
    DESTINATION = "DESTINATION_CONFLICT"
    ORDERING = "ORDERING_CONFLICT"
    GOAL = "GOAL_CONFLICT"


class Severity(str, Enum):
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"


class Conflict(PayloadModel):
    """Result of comparing two proposals from the same cycle."""

    type: ConflictType
    participants: List[str] = Field(..., description="Agent ids of the two proposals")
    severity: Severity
    description: str = ""
    cycle: int = 0
    goal_relation: Optional[Relation] = Field(
        None, description="Shared goal relation (GOAL_CONFLICT only)"
    )


# ============================================================================
# Cycles and beliefs
# ============================================================================


class MoveGroup(PayloadModel):
    """Moves committed in one scheduling cycle."""

    cycle: int
    moves: List[Move] = Field(default_factory=list)

    @property
    def is_concurrent(self) -> bool:
        return len(self.moves) > 1

    def to_payload(self) -> Dict[str, Any]:
        # Single moves travel bare; concurrent cycles keep their grouping so the
        # animation layer can play them simultaneously.
        if len(self.moves) == 1:
            return self.moves[0].to_payload()
        return super().to_payload()


class BeliefSnapshot(PayloadModel):
    """Serializable view of the belief model at one instant."""

    stacks: List[List[str]] = Field(default_factory=list)
    on_map: Dict[str, str] = Field(default_factory=dict)
    clear_blocks: List[str] = Field(default_factory=list)
    on_table_blocks: List[str] = Field(default_factory=list)
    pending_relation: Optional[Relation] = None


class CycleEntry(PayloadModel):
    """Intention-log entry: everything that happened in one scheduling round."""

    cycle: int
    moves: List[Move] = Field(default_factory=list)
    resulting_stacks: List[List[str]] = Field(default_factory=list)
    proposals: List[Proposal] = Field(default_factory=list)
    conflicts: List[Conflict] = Field(default_factory=list)
    # Excluded by conflict resolution; retried next cycle
    deferred: List[Proposal] = Field(default_factory=list)
    # Rejected by the belief model as illegal
    dropped: List[Proposal] = Field(default_factory=list)
    relations_reached: List[Relation] = Field(default_factory=list)
    pending_relations: List[Relation] = Field(default_factory=list)
    clear_blocks: List[str] = Field(default_factory=list)
    goal_achieved: bool = False


# ============================================================================
# Options and results
# ============================================================================


class PlannerOptions(PayloadModel):
    """Per-call planner options. Unset values come from ``Config``."""

    max_iterations: int = Field(..., gt=0)
    deliberation_timeout_ms: int = Field(..., gt=0)
    enable_negotiation: bool = True
    negotiation_strategy: str = "prefer-stack"


class RunStatus(str, Enum):
    ACHIEVED = "ACHIEVED"
    BUDGET_EXHAUSTED = "BUDGET_EXHAUSTED"
    TIMED_OUT = "TIMED_OUT"
    # Driver stopped pulling cycles before a terminal state
    CANCELLED = "CANCELLED"


class PlanResult(PayloadModel):
    """Everything a planning call returns to the execution/UI layer."""

    moves: List[MoveGroup] = Field(default_factory=list)
    iterations: int = 0
    goal_achieved: bool = False
    relations_resolved: int = 0
    agent_count: int = 1
    intention_log: List[CycleEntry] = Field(default_factory=list)
    beliefs: BeliefSnapshot = Field(default_factory=BeliefSnapshot)
    planner_options_used: PlannerOptions
    goal_chains: List[List[str]] = Field(default_factory=list)
    status: RunStatus = RunStatus.ACHIEVED
    timed_out: bool = False
    pending_relations: List[Relation] = Field(default_factory=list)
    error_code: Optional[str] = None
    error_message: Optional[str] = None
    statistics: Dict[str, Any] = Field(default_factory=dict)

    def flat_moves(self) -> List[Move]:
        """All committed moves in execution order."""
        return [move for group in self.moves for move in group.moves]

    def raise_for_status(self) -> None:
        """Raise the recorded non-fatal error, if any."""
        if self.status == RunStatus.BUDGET_EXHAUSTED:
            raise BudgetExhaustedError(
                max_iterations=self.planner_options_used.max_iterations,
                pending=[str(relation) for relation in self.pending_relations],
            )
        if self.status == RunStatus.TIMED_OUT:
            raise PlannerTimeoutError(
                elapsed_ms=float(self.statistics.get("elapsed_ms", 0.0)),
                limit_ms=self.planner_options_used.deliberation_timeout_ms,
            )

    def to_payload(self) -> Dict[str, Any]:
        payload = super().to_payload()
        payload["moves"] = [group.to_payload() for group in self.moves]
        return payload
