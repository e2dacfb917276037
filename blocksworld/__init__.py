"""
Blocksworld - multi-agent planning for the blocks world.

Turn a snapshot of stacked blocks and one or more goal towers into a sequence
of legal, conflict-free moves. Independent towers are built by separate agents
whose non-interfering moves are grouped into concurrent cycles.

Single process, synchronous per request. No I/O beyond optional scenario files.
"""

__version__ = "0.1.0"

# Entry points
from .planner import BlocksWorldPlanner, plan_blocks_world
from .replan import (
    AddBlock,
    EditGoal,
    ManualMove,
    Mutation,
    MutationQueue,
    RemoveBlock,
    ReplanCoordinator,
)
from .scenario import Scenario, ScenarioLoader

# Core components
from .beliefs import BeliefModel
from .planning import (
    BalancedStrategy,
    ConflictDetector,
    CycleRunner,
    MultiAgentScheduler,
    NegotiationStrategy,
    PreferStackStrategy,
    PriorityStrategy,
    RunnerState,
    SingleTowerPlanner,
    TowerPlan,
    resolve_strategy,
)

# Core schemas
from .schemas import (
    TABLE,
    BeliefSnapshot,
    Conflict,
    ConflictType,
    CycleEntry,
    Move,
    MoveGroup,
    MoveReason,
    PlannerOptions,
    PlanResult,
    Proposal,
    Relation,
    RunStatus,
    Severity,
)

# Errors
from .errors import (
    BudgetExhaustedError,
    IllegalMoveError,
    MalformedGoalError,
    MalformedStacksError,
    PlannerTimeoutError,
    PlanningError,
)

from .config import Config

__all__ = [
    "BlocksWorldPlanner",
    "plan_blocks_world",
    "AddBlock",
    "EditGoal",
    "ManualMove",
    "Mutation",
    "MutationQueue",
    "RemoveBlock",
    "ReplanCoordinator",
    "Scenario",
    "ScenarioLoader",
    "BeliefModel",
    "BalancedStrategy",
    "ConflictDetector",
    "CycleRunner",
    "MultiAgentScheduler",
    "NegotiationStrategy",
    "PreferStackStrategy",
    "PriorityStrategy",
    "RunnerState",
    "SingleTowerPlanner",
    "TowerPlan",
    "resolve_strategy",
    "TABLE",
    "BeliefSnapshot",
    "Conflict",
    "ConflictType",
    "CycleEntry",
    "Move",
    "MoveGroup",
    "MoveReason",
    "PlannerOptions",
    "PlanResult",
    "Proposal",
    "Relation",
    "RunStatus",
    "Severity",
    "BudgetExhaustedError",
    "IllegalMoveError",
    "MalformedGoalError",
    "MalformedStacksError",
    "PlannerTimeoutError",
    "PlanningError",
    "Config",
]
