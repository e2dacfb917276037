"""Negotiation strategies for ranking competing proposals.

A strategy only orders proposals. The scheduler walks the ranked list and
accepts each proposal that does not conflict with one it already accepted, so
the first-ranked proposal of every conflicting pair wins the cycle and the
others are retried next cycle.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Dict, List, Protocol, Sequence

from ..errors import PlanningError
from ..schemas import MoveReason, Proposal


# Higher wins. Stacking realizes a relation; clearing moves only prepare one.
MOVE_REASON_PRIORITY: Dict[MoveReason, int] = {
    MoveReason.STACK: 3,
    MoveReason.CLEAR_TARGET: 2,
    MoveReason.CLEAR_BLOCK: 1,
}


@dataclass(frozen=True)
class RankingContext:
    """What the scheduler knows about its agents when ranking a cycle."""

    agent_order: Dict[str, int] = field(default_factory=dict)
    moves_so_far: Dict[str, int] = field(default_factory=dict)

    def index_of(self, agent_id: str) -> int:
        return self.agent_order.get(agent_id, len(self.agent_order))


def _reason_priority(proposal: Proposal) -> int:
    reason = proposal.move.reason
    if reason is None:
        return 0
    return MOVE_REASON_PRIORITY[reason]


class NegotiationStrategy(Protocol):
    """Protocol for proposal ranking.

    Implementations return a new list; the input sequence is never reordered
    in place.
    """

    name: str

    def rank(self, proposals: Sequence[Proposal], context: RankingContext) -> List[Proposal]:
        ...


class PriorityStrategy:
    """Fixed agent priority: Agent-A beats Agent-B beats Agent-C."""

    name = "priority"

    def rank(self, proposals: Sequence[Proposal], context: RankingContext) -> List[Proposal]:
        return sorted(proposals, key=lambda p: context.index_of(p.agent_id))


class PreferStackStrategy:
    """Favor moves that complete a relation, then fall back to agent priority."""

    name = "prefer-stack"

    def rank(self, proposals: Sequence[Proposal], context: RankingContext) -> List[Proposal]:
        return sorted(
            proposals,
            key=lambda p: (-_reason_priority(p), context.index_of(p.agent_id)),
        )


class BalancedStrategy:
    """Move priority first, then the agent that has moved least so far.

    Keeps one agent from monopolizing shared blocks when both keep proposing
    clearing moves of equal weight.
    """

    name = "balanced"

    def rank(self, proposals: Sequence[Proposal], context: RankingContext) -> List[Proposal]:
        return sorted(
            proposals,
            key=lambda p: (
                -_reason_priority(p),
                context.moves_so_far.get(p.agent_id, 0),
                context.index_of(p.agent_id),
            ),
        )


STRATEGIES: Dict[str, Callable[[], NegotiationStrategy]] = {
    PriorityStrategy.name: PriorityStrategy,
    PreferStackStrategy.name: PreferStackStrategy,
    BalancedStrategy.name: BalancedStrategy,
}


def resolve_strategy(name: str) -> NegotiationStrategy:
    """Instantiate a registered strategy by name."""
    key = (name or "").strip().lower()
    try:
        factory = STRATEGIES[key]
    except KeyError:
        available = ", ".join(sorted(STRATEGIES))
        raise PlanningError(
            f"Unknown negotiation strategy '{name}'. Available: {available}."
        ) from None
    return factory()
