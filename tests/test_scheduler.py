"""Tests for multi-agent cycle assembly."""

from blocksworld.beliefs import BeliefModel
from blocksworld.planning.scheduler import MultiAgentScheduler, agent_name
from blocksworld.planning.strategies import PriorityStrategy
from blocksworld.schemas import TABLE, ConflictType, Move, Relation


def _scheduler(stacks, chains, **kwargs) -> MultiAgentScheduler:
    return MultiAgentScheduler(BeliefModel.from_stacks(stacks), chains, **kwargs)


def test_agent_names():
    assert agent_name(0) == "Agent-A"
    assert agent_name(1) == "Agent-B"
    assert agent_name(25) == "Agent-Z"
    assert agent_name(26) == "Agent-27"


def test_disjoint_towers_move_in_the_same_cycle():
    scheduler = _scheduler(
        [["C"], ["B"], ["A"], ["D"]],
        [["C", "B", TABLE], ["A", "D", TABLE]],
    )

    entry = scheduler.step(1)

    assert [str(move) for move in entry.moves] == ["C -> B", "A -> D"]
    assert [move.actor for move in entry.moves] == ["Agent-A", "Agent-B"]
    assert all(move.cycle == 1 for move in entry.moves)
    assert entry.conflicts == []
    assert entry.goal_achieved
    assert set(entry.relations_reached) == {
        Relation(block="C", destination="B"),
        Relation(block="A", destination="D"),
    }
    assert scheduler.move_groups[0].is_concurrent
    assert scheduler.statistics()["parallel_cycles"] == 1


def test_shared_blocker_produces_one_resource_conflict():
    scheduler = _scheduler(
        [["B", "D", "X"], ["C"], ["A"]],
        [["D", "C", TABLE], ["A", "B", TABLE]],
    )

    entry = scheduler.step(1)

    assert [p.move.block for p in entry.proposals] == ["X", "X"]
    assert len(entry.conflicts) == 1
    assert entry.conflicts[0].type == ConflictType.RESOURCE
    assert len(entry.moves) == 1
    assert entry.moves[0].block == "X"
    assert len(entry.deferred) == 1
    # Clearing the target outranks clearing the block under prefer-stack
    assert entry.moves[0].actor == "Agent-B"


def test_priority_strategy_lets_first_agent_win():
    scheduler = _scheduler(
        [["B", "D", "X"], ["C"], ["A"]],
        [["D", "C", TABLE], ["A", "B", TABLE]],
        strategy=PriorityStrategy(),
    )

    entry = scheduler.step(1)

    assert entry.moves[0].actor == "Agent-A"
    assert entry.deferred[0].agent_id == "Agent-B"


def test_deferred_agent_proposes_again_until_done():
    scheduler = _scheduler(
        [["B", "D", "X"], ["C"], ["A"]],
        [["D", "C", TABLE], ["A", "B", TABLE]],
    )

    cycle = 0
    while not scheduler.goal_achieved():
        cycle += 1
        scheduler.step(cycle)
        assert cycle < 10

    assert scheduler.beliefs.stacks() == [["B", "A"], ["C", "D"], ["X"]]
    stats = scheduler.statistics()
    assert stats["total_conflicts"] == 2
    assert stats["conflicts_by_type"] == {"RESOURCE_CONFLICT": 2}
    assert stats["deferred_proposals"] == 2
    assert sum(stats["agent_moves"].values()) == 3


def test_illegal_accepted_move_is_dropped():
    class StalePlanner:
        """Always proposes a move that is no longer legal."""

        def pending_relations(self, beliefs, chain):
            return [Relation(block="A", destination="B")]

        def next_move(self, beliefs, chain):
            return Move(block="A", to="B")

    scheduler = _scheduler([["B", "A"]], [["A", "B", TABLE]], planner=StalePlanner())

    entry = scheduler.step(1)

    assert entry.moves == []
    assert len(entry.dropped) == 1
    assert scheduler.move_groups == []
    assert scheduler.statistics()["dropped_proposals"] == 1
    assert scheduler.beliefs.stacks() == [["B", "A"]]


def test_cycle_moves_never_share_blocks_or_destinations():
    scheduler = _scheduler(
        [["A", "F"], ["D", "B"], ["E", "C"]],
        [["A", "B", TABLE], ["C", "D", TABLE], ["E", "F", TABLE]],
    )

    cycle = 0
    while not scheduler.goal_achieved():
        cycle += 1
        entry = scheduler.step(cycle)
        blocks = [move.block for move in entry.moves]
        targets = [move.to for move in entry.moves if move.to != TABLE]
        assert len(blocks) == len(set(blocks))
        assert len(targets) == len(set(targets))
        assert not set(blocks) & set(targets)
        assert cycle < 50

    for chain in scheduler.goal_chains:
        assert scheduler.planner.pending_relations(scheduler.beliefs, chain) == []


def test_phase_callback_reports_every_phase():
    scheduler = _scheduler([["A", "B"]], [["A", "B", TABLE]])
    phases = []

    scheduler.step(1, on_phase=phases.append)

    assert phases == ["proposing", "conflict_check", "applying", "goal_check"]
