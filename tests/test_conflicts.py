"""Tests for pairwise conflict detection and detector statistics."""

import pytest

from blocksworld.planning.conflicts import ConflictDetector, severity_for
from blocksworld.schemas import TABLE, ConflictType, Move, Proposal, Relation, Severity


def _proposal(agent: str, block: str, to: str, cycle: int = 1) -> Proposal:
    return Proposal(agent_id=agent, move=Move(block=block, to=to), cycle=cycle)


def test_same_block_is_a_resource_conflict():
    detector = ConflictDetector()
    conflict = detector.detect_pairwise(_proposal("Agent-A", "X", TABLE), _proposal("Agent-B", "X", "C"))

    assert conflict.type == ConflictType.RESOURCE
    assert conflict.severity == Severity.HIGH
    assert conflict.participants == ["Agent-A", "Agent-B"]
    assert conflict.cycle == 1


def test_same_block_destination_is_a_destination_conflict():
    conflict = ConflictDetector().detect_pairwise(
        _proposal("Agent-A", "X", "C"), _proposal("Agent-B", "Y", "C")
    )
    assert conflict.type == ConflictType.DESTINATION
    assert conflict.severity == Severity.HIGH


def test_table_destination_never_conflicts():
    conflict = ConflictDetector().detect_pairwise(
        _proposal("Agent-A", "X", TABLE), _proposal("Agent-B", "Y", TABLE)
    )
    assert conflict is None


@pytest.mark.parametrize(
    "first, second",
    [
        (("X", "Y"), ("Y", TABLE)),
        (("Y", TABLE), ("X", "Y")),
    ],
)
def test_moving_the_other_destination_is_an_ordering_conflict(first, second):
    conflict = ConflictDetector().detect_pairwise(
        _proposal("Agent-A", *first), _proposal("Agent-B", *second)
    )
    assert conflict.type == ConflictType.ORDERING
    assert conflict.severity == Severity.MEDIUM


def test_touching_one_goal_relation_is_a_goal_conflict():
    relation = Relation(block="P", destination="Q")
    detector = ConflictDetector([relation])

    conflict = detector.detect_pairwise(_proposal("Agent-A", "P", TABLE), _proposal("Agent-B", "Q", TABLE))

    assert conflict.type == ConflictType.GOAL
    assert conflict.severity == Severity.MEDIUM
    assert conflict.goal_relation == relation


def test_table_relations_do_not_link_unrelated_moves():
    detector = ConflictDetector([Relation(block="P", destination=TABLE), Relation(block="Q", destination=TABLE)])
    assert detector.detect_pairwise(_proposal("Agent-A", "P", TABLE), _proposal("Agent-B", "Q", TABLE)) is None


def test_first_matching_check_wins():
    # Same block and same destination: only the resource conflict is reported
    detector = ConflictDetector([Relation(block="X", destination="C")])
    conflict = detector.detect_pairwise(_proposal("Agent-A", "X", "C"), _proposal("Agent-B", "X", "C"))
    assert conflict.type == ConflictType.RESOURCE


def test_detect_all_records_history_and_statistics():
    detector = ConflictDetector()
    proposals = [
        _proposal("Agent-A", "X", TABLE),
        _proposal("Agent-B", "X", TABLE),
        _proposal("Agent-C", "Y", "Z"),
        _proposal("Agent-D", "W", "Z"),
    ]

    conflicts = detector.detect_all(proposals, cycle=3)

    assert [c.type for c in conflicts] == [ConflictType.RESOURCE, ConflictType.DESTINATION]
    assert all(c.cycle == 3 for c in conflicts)

    stats = detector.statistics()
    assert stats["total"] == 2
    assert stats["by_type"] == {"RESOURCE_CONFLICT": 1, "DESTINATION_CONFLICT": 1}
    assert len(stats["history"]) == 2

    detector.reset()
    assert detector.statistics() == {"total": 0, "by_type": {}, "history": []}


def test_every_conflict_type_has_a_severity():
    for conflict_type in ConflictType:
        assert isinstance(severity_for(conflict_type), Severity)
