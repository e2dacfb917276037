"""Planning components: per-tower planning, conflicts, negotiation, scheduling."""

from .conflicts import ConflictDetector, severity_for
from .runner import CycleRunner, RunnerState
from .scheduler import MultiAgentScheduler, agent_name
from .strategies import (
    MOVE_REASON_PRIORITY,
    STRATEGIES,
    BalancedStrategy,
    NegotiationStrategy,
    PreferStackStrategy,
    PriorityStrategy,
    RankingContext,
    resolve_strategy,
)
from .tower import SingleTowerPlanner, TowerPlan, chain_relations

__all__ = [
    "ConflictDetector",
    "severity_for",
    "CycleRunner",
    "RunnerState",
    "MultiAgentScheduler",
    "agent_name",
    "MOVE_REASON_PRIORITY",
    "STRATEGIES",
    "BalancedStrategy",
    "NegotiationStrategy",
    "PreferStackStrategy",
    "PriorityStrategy",
    "RankingContext",
    "resolve_strategy",
    "SingleTowerPlanner",
    "TowerPlan",
    "chain_relations",
]
