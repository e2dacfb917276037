"""Tests for the single-tower planner."""

from blocksworld.beliefs import BeliefModel
from blocksworld.planning.tower import SingleTowerPlanner, chain_relations
from blocksworld.schemas import TABLE, Move, MoveReason, Relation


def _replay(stacks, moves):
    beliefs = BeliefModel.from_stacks(stacks)
    for move in moves:
        beliefs.apply(move)
    return beliefs


def test_chain_relations_are_ordered_bottom_up():
    assert chain_relations(["A", "B", "C", TABLE]) == [
        Relation(block="C", destination=TABLE),
        Relation(block="B", destination="C"),
        Relation(block="A", destination="B"),
    ]


def test_pending_relations_skip_satisfied_ones():
    beliefs = BeliefModel.from_stacks([["C", "B"], ["A"]])
    planner = SingleTowerPlanner()

    pending = planner.pending_relations(beliefs, ["A", "B", "C", TABLE])

    assert pending == [Relation(block="A", destination="B")]


def test_next_move_clears_block_before_target_before_stacking():
    planner = SingleTowerPlanner()
    chain = ["A", "B", TABLE]

    # A is buried under C; B is on the table but covered by D
    beliefs = BeliefModel.from_stacks([["A", "C"], ["B", "D"]])
    assert planner.next_move(beliefs, chain) == Move(block="C", to=TABLE, reason=MoveReason.CLEAR_BLOCK)

    beliefs.apply(Move(block="C", to=TABLE))
    assert planner.next_move(beliefs, chain) == Move(block="D", to=TABLE, reason=MoveReason.CLEAR_TARGET)

    beliefs.apply(Move(block="D", to=TABLE))
    assert planner.next_move(beliefs, chain) == Move(block="A", to="B", reason=MoveReason.STACK)

    beliefs.apply(Move(block="A", to="B"))
    assert planner.next_move(beliefs, chain) is None


def test_next_move_moves_topmost_blocker_first():
    beliefs = BeliefModel.from_stacks([["B"], ["A", "X", "Y"]])
    move = SingleTowerPlanner().next_move(beliefs, ["A", "B", TABLE])
    assert move.block == "Y"
    assert move.to == TABLE


def test_plan_builds_tower_bottom_up():
    stacks = [["A", "D"], ["C", "B"]]
    chain = ["A", "B", "C", "D", TABLE]

    plan = SingleTowerPlanner().plan(BeliefModel.from_stacks(stacks), chain)

    assert [str(move) for move in plan.moves] == [
        "D -> Table",
        "B -> Table",
        "C -> D",
        "B -> C",
        "A -> B",
    ]
    assert plan.relations_resolved == 4
    final = _replay(stacks, plan.moves)
    assert final.stacks() == [["D", "C", "B", "A"]]


def test_plan_does_not_touch_input_beliefs():
    beliefs = BeliefModel.from_stacks([["A", "B"]])
    SingleTowerPlanner().plan(beliefs, ["A", "B", TABLE])
    assert beliefs.stacks() == [["A", "B"]]


def test_plan_is_empty_when_goal_holds():
    beliefs = BeliefModel.from_stacks([["C", "B", "A"]])

    plan = SingleTowerPlanner().plan(beliefs, ["A", "B", "C", TABLE])

    assert plan.is_empty
    assert plan.relations_resolved == 0


def test_plan_treats_move_to_table_as_stacking_when_it_is_the_goal():
    stacks = [["C", "D"]]
    plan = SingleTowerPlanner().plan(BeliefModel.from_stacks(stacks), ["C", "D", TABLE])

    assert [str(move) for move in plan.moves] == ["D -> Table", "C -> D"]
    assert [move.reason for move in plan.moves] == [MoveReason.STACK, MoveReason.STACK]
    assert plan.relations_resolved == 2


def test_plan_reaches_goal_from_deep_pile():
    stacks = [["E"], ["I"], ["G", "F", "D", "B", "A", "C"], ["H"]]
    chain = ["A", "B", "C", "D", "E", "F", TABLE]

    plan = SingleTowerPlanner().plan(BeliefModel.from_stacks(stacks), chain)
    final = _replay(stacks, plan.moves)

    for relation in chain_relations(chain):
        assert final.relation_holds(relation)
    assert len(plan.moves) == 10
