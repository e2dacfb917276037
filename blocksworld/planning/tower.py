"""Single-tower planning.

One goal chain ``[b1, ..., bn, Table]`` is built bottom-up: the relation
closest to the table is handled first, so a finished lower segment is never
disturbed by work higher in the tower. Blockers are always moved to the table,
which cannot fail and never lands on another agent's tower.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from ..beliefs import BeliefModel
from ..schemas import TABLE, Move, MoveReason, Relation


def chain_relations(chain: Sequence[str]) -> List[Relation]:
    """Adjacent pairs of a goal chain, ordered bottom (table end) to top."""
    relations = [
        Relation(block=chain[i], destination=chain[i + 1])
        for i in range(len(chain) - 1)
    ]
    relations.reverse()
    return relations


@dataclass
class TowerPlan:
    """Moves that build one tower from a given belief state."""

    moves: List[Move] = field(default_factory=list)
    relations_resolved: int = 0

    @property
    def is_empty(self) -> bool:
        return not self.moves


class SingleTowerPlanner:
    """Deterministic planner for one goal chain.

    ``next_move`` is what the multi-agent scheduler asks each cycle;
    ``plan`` produces the complete move list on a private copy of the beliefs.
    """

    def pending_relations(self, beliefs: BeliefModel, chain: Sequence[str]) -> List[Relation]:
        return [r for r in chain_relations(chain) if not beliefs.relation_holds(r)]

    def next_move(self, beliefs: BeliefModel, chain: Sequence[str]) -> Optional[Move]:
        pending = self.pending_relations(beliefs, chain)
        if not pending:
            return None
        return self._step_toward(beliefs, pending[0])

    def plan(self, beliefs: BeliefModel, chain: Sequence[str]) -> TowerPlan:
        working = beliefs.copy()
        result = TowerPlan()

        for relation in chain_relations(chain):
            if working.relation_holds(relation):
                continue

            for blocker in working.blockers(relation.block):
                self._commit(working, result, Move(block=blocker, to=TABLE, reason=MoveReason.CLEAR_BLOCK))
            if relation.destination != TABLE:
                for blocker in working.blockers(relation.destination):
                    self._commit(working, result, Move(block=blocker, to=TABLE, reason=MoveReason.CLEAR_TARGET))

            self._commit(
                working,
                result,
                Move(block=relation.block, to=relation.destination, reason=MoveReason.STACK),
            )
            result.relations_resolved += 1

        return result

    def _step_toward(self, beliefs: BeliefModel, relation: Relation) -> Move:
        blockers = beliefs.blockers(relation.block)
        if blockers:
            return Move(block=blockers[0], to=TABLE, reason=MoveReason.CLEAR_BLOCK)

        if relation.destination != TABLE:
            blockers = beliefs.blockers(relation.destination)
            if blockers:
                return Move(block=blockers[0], to=TABLE, reason=MoveReason.CLEAR_TARGET)

        return Move(block=relation.block, to=relation.destination, reason=MoveReason.STACK)

    @staticmethod
    def _commit(working: BeliefModel, result: TowerPlan, move: Move) -> None:
        working.apply(move)
        result.moves.append(move)
