"""Tests for negotiation strategies."""

import pytest

from blocksworld.errors import PlanningError
from blocksworld.planning.strategies import (
    BalancedStrategy,
    PreferStackStrategy,
    PriorityStrategy,
    RankingContext,
    resolve_strategy,
)
from blocksworld.schemas import TABLE, Move, MoveReason, Proposal


CONTEXT = RankingContext(agent_order={"Agent-A": 0, "Agent-B": 1, "Agent-C": 2})


def _proposal(agent: str, reason: MoveReason) -> Proposal:
    return Proposal(agent_id=agent, move=Move(block=agent[-1], to=TABLE, reason=reason))


def _agents(ranked):
    return [p.agent_id for p in ranked]


def test_priority_strategy_orders_by_agent_index():
    proposals = [
        _proposal("Agent-C", MoveReason.STACK),
        _proposal("Agent-A", MoveReason.CLEAR_BLOCK),
        _proposal("Agent-B", MoveReason.CLEAR_TARGET),
    ]
    assert _agents(PriorityStrategy().rank(proposals, CONTEXT)) == ["Agent-A", "Agent-B", "Agent-C"]


def test_prefer_stack_strategy_orders_by_move_reason_then_index():
    proposals = [
        _proposal("Agent-A", MoveReason.CLEAR_BLOCK),
        _proposal("Agent-B", MoveReason.CLEAR_TARGET),
        _proposal("Agent-C", MoveReason.STACK),
    ]
    assert _agents(PreferStackStrategy().rank(proposals, CONTEXT)) == ["Agent-C", "Agent-B", "Agent-A"]

    tied = [_proposal("Agent-B", MoveReason.STACK), _proposal("Agent-A", MoveReason.STACK)]
    assert _agents(PreferStackStrategy().rank(tied, CONTEXT)) == ["Agent-A", "Agent-B"]


def test_balanced_strategy_prefers_the_less_busy_agent_on_ties():
    context = RankingContext(
        agent_order=CONTEXT.agent_order,
        moves_so_far={"Agent-A": 5, "Agent-B": 1},
    )
    proposals = [_proposal("Agent-A", MoveReason.CLEAR_BLOCK), _proposal("Agent-B", MoveReason.CLEAR_BLOCK)]
    assert _agents(BalancedStrategy().rank(proposals, context)) == ["Agent-B", "Agent-A"]

    # Move priority still dominates workload
    proposals = [_proposal("Agent-A", MoveReason.STACK), _proposal("Agent-B", MoveReason.CLEAR_BLOCK)]
    assert _agents(BalancedStrategy().rank(proposals, context)) == ["Agent-A", "Agent-B"]


def test_rank_does_not_reorder_input():
    proposals = [_proposal("Agent-B", MoveReason.STACK), _proposal("Agent-A", MoveReason.STACK)]
    PriorityStrategy().rank(proposals, CONTEXT)
    assert _agents(proposals) == ["Agent-B", "Agent-A"]


@pytest.mark.parametrize(
    "name, expected",
    [
        ("priority", PriorityStrategy),
        ("prefer-stack", PreferStackStrategy),
        (" Balanced ", BalancedStrategy),
    ],
)
def test_resolve_strategy(name, expected):
    assert isinstance(resolve_strategy(name), expected)


def test_resolve_strategy_rejects_unknown_names():
    with pytest.raises(PlanningError, match="Unknown negotiation strategy"):
        resolve_strategy("coin-flip")
