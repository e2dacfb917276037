"""Pairwise conflict detection between proposals of the same cycle.

Checks run in a fixed priority order and the first match wins, so a pair of
proposals yields at most one conflict:

1. RESOURCE_CONFLICT     both proposals move the same block
2. DESTINATION_CONFLICT  both target the same block (the table has room for all)
3. ORDERING_CONFLICT     one moves the block the other stacks onto
4. GOAL_CONFLICT         both touch blocks of the same declared goal relation

The detector keeps a per-session history for statistics; call ``reset()`` at
the start of every planning session.
"""

from __future__ import annotations

from collections import Counter
from typing import Any, Dict, FrozenSet, Iterable, List, Optional, Sequence

from ..schemas import TABLE, Conflict, ConflictType, Proposal, Relation, Severity


def _touched(proposal: Proposal) -> FrozenSet[str]:
    return frozenset({proposal.move.block, proposal.move.to}) - {TABLE}


def severity_for(conflict_type: ConflictType) -> Severity:
    match conflict_type:
        case ConflictType.RESOURCE | ConflictType.DESTINATION:
            return Severity.HIGH
        case ConflictType.ORDERING | ConflictType.GOAL:
            return Severity.MEDIUM
        case _:
            raise ValueError(f"Unhandled conflict type: {conflict_type!r}")


class ConflictDetector:
    """Detects interference between proposals and records what it found."""

    def __init__(self, goal_relations: Optional[Iterable[Relation]] = None) -> None:
        self.goal_relations: List[Relation] = list(goal_relations or [])
        self.history: List[Conflict] = []

    def set_goal_relations(self, relations: Iterable[Relation]) -> None:
        self.goal_relations = list(relations)

    def detect_pairwise(self, a: Proposal, b: Proposal, *, cycle: Optional[int] = None) -> Optional[Conflict]:
        move_a, move_b = a.move, b.move
        participants = [a.agent_id, b.agent_id]
        cycle = a.cycle if cycle is None else cycle

        if move_a.block == move_b.block:
            return self._conflict(
                ConflictType.RESOURCE,
                participants,
                cycle,
                f"Both agents want to move block {move_a.block}",
            )

        if move_a.to == move_b.to and move_a.to != TABLE:
            return self._conflict(
                ConflictType.DESTINATION,
                participants,
                cycle,
                f"Both agents want to stack onto {move_a.to}",
            )

        if move_a.block == move_b.to or move_b.block == move_a.to:
            return self._conflict(
                ConflictType.ORDERING,
                participants,
                cycle,
                f"Moves {move_a} and {move_b} depend on each other's order",
            )

        shared = self._shared_goal_relation(a, b)
        if shared is not None:
            return self._conflict(
                ConflictType.GOAL,
                participants,
                cycle,
                f"Moves {move_a} and {move_b} both affect goal relation {shared}",
                goal_relation=shared,
            )

        return None

    def detect_all(self, proposals: Sequence[Proposal], cycle: int) -> List[Conflict]:
        conflicts = []
        for i in range(len(proposals)):
            for j in range(i + 1, len(proposals)):
                conflict = self.detect_pairwise(proposals[i], proposals[j], cycle=cycle)
                if conflict is not None:
                    conflicts.append(conflict)
        self.history.extend(conflicts)
        return conflicts

    def statistics(self) -> Dict[str, Any]:
        by_type = Counter(conflict.type.value for conflict in self.history)
        return {
            "total": len(self.history),
            "by_type": dict(by_type),
            "history": list(self.history),
        }

    def reset(self) -> None:
        self.history.clear()

    def _shared_goal_relation(self, a: Proposal, b: Proposal) -> Optional[Relation]:
        touched_a, touched_b = _touched(a), _touched(b)
        for relation in self.goal_relations:
            members = frozenset({relation.block, relation.destination}) - {TABLE}
            if members & touched_a and members & touched_b:
                return relation
        return None

    @staticmethod
    def _conflict(
        conflict_type: ConflictType,
        participants: List[str],
        cycle: int,
        description: str,
        goal_relation: Optional[Relation] = None,
    ) -> Conflict:
        return Conflict(
            type=conflict_type,
            participants=participants,
            severity=severity_for(conflict_type),
            description=description,
            cycle=cycle,
            goal_relation=goal_relation,
        )
