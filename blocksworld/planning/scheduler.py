"""Multi-agent scheduling over shared beliefs.

One agent owns each goal chain. Every cycle:

1. Each agent whose chain is unfinished proposes its next move
   (``SingleTowerPlanner.next_move`` against the shared beliefs)
2. The conflict detector compares all proposals pairwise
3. The negotiation strategy ranks the proposals; walking that ranking, a
   proposal is accepted unless it conflicts with one already accepted.
   Excluded proposals are deferred and the agent proposes again next cycle
4. Accepted moves are applied to the shared beliefs. A move the belief
   model rejects is dropped and the cycle continues without it

Accepted moves share no block, no non-table destination, and no ordering
dependency, so they are valid in any order and form one concurrent group.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, FrozenSet, List, Optional, Sequence, Set, Tuple

from ..beliefs import BeliefModel
from ..errors import IllegalMoveError
from ..logging_utils import (
    LOG_TAG_CONFLICT,
    LOG_TAG_DETERMINISTIC,
    LOG_TAG_ERROR,
    log_conflict,
    log_deterministic,
    log_error,
    verbose_enabled,
)
from ..schemas import Conflict, CycleEntry, Move, MoveGroup, Proposal, Relation
from .conflicts import ConflictDetector
from .strategies import NegotiationStrategy, PreferStackStrategy, RankingContext
from .tower import SingleTowerPlanner, chain_relations


PhaseCallback = Callable[[str], None]

# Phase names reported to ``step(on_phase=...)``
PHASE_PROPOSING = "proposing"
PHASE_CONFLICT_CHECK = "conflict_check"
PHASE_APPLYING = "applying"
PHASE_GOAL_CHECK = "goal_check"


def agent_name(index: int) -> str:
    """``Agent-A`` .. ``Agent-Z``, then ``Agent-27`` onwards."""
    if index < 26:
        return f"Agent-{chr(ord('A') + index)}"
    return f"Agent-{index + 1}"


class MultiAgentScheduler:
    """Assembles conflict-free concurrent cycles from per-agent proposals."""

    def __init__(
        self,
        beliefs: BeliefModel,
        goal_chains: Sequence[Sequence[str]],
        *,
        strategy: Optional[NegotiationStrategy] = None,
        detector: Optional[ConflictDetector] = None,
        planner: Optional[SingleTowerPlanner] = None,
    ) -> None:
        self.beliefs = beliefs
        self.goal_chains: List[List[str]] = [list(chain) for chain in goal_chains]
        self.agents: List[str] = [agent_name(i) for i in range(len(self.goal_chains))]
        self.strategy = strategy or PreferStackStrategy()
        self.planner = planner or SingleTowerPlanner()
        self.detector = detector or ConflictDetector()
        self.detector.set_goal_relations(
            relation for chain in self.goal_chains for relation in chain_relations(chain)
        )

        self.move_groups: List[MoveGroup] = []
        self.move_counts: Dict[str, int] = {agent: 0 for agent in self.agents}
        self.parallel_cycles = 0
        self.deferred_count = 0
        self.dropped_count = 0

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def remaining_relations(self) -> List[Relation]:
        pending: List[Relation] = []
        for chain in self.goal_chains:
            pending.extend(self.planner.pending_relations(self.beliefs, chain))
        return pending

    def goal_achieved(self) -> bool:
        return not self.remaining_relations()

    def statistics(self) -> Dict[str, Any]:
        detector_stats = self.detector.statistics()
        return {
            "agent_moves": dict(self.move_counts),
            "total_moves": sum(self.move_counts.values()),
            "total_conflicts": detector_stats["total"],
            "conflicts_by_type": detector_stats["by_type"],
            "parallel_cycles": self.parallel_cycles,
            "deferred_proposals": self.deferred_count,
            "dropped_proposals": self.dropped_count,
        }

    # ------------------------------------------------------------------
    # Cycle phases
    # ------------------------------------------------------------------

    def propose(self, cycle: int) -> List[Proposal]:
        proposals = []
        for index, (agent, chain) in enumerate(zip(self.agents, self.goal_chains)):
            move = self.planner.next_move(self.beliefs, chain)
            if move is None:
                continue
            proposals.append(
                Proposal(
                    agent_id=agent,
                    move=move.model_copy(update={"actor": agent}),
                    chain_index=index,
                    cycle=cycle,
                )
            )
        return proposals

    def resolve(
        self, proposals: Sequence[Proposal], conflicts: Sequence[Conflict]
    ) -> Tuple[List[Proposal], List[Proposal]]:
        """Split proposals into (accepted, deferred) following the strategy's ranking."""
        clashes: Set[FrozenSet[str]] = {frozenset(c.participants) for c in conflicts}
        context = RankingContext(
            agent_order={agent: i for i, agent in enumerate(self.agents)},
            moves_so_far=dict(self.move_counts),
        )

        accepted: List[Proposal] = []
        deferred: List[Proposal] = []
        for proposal in self.strategy.rank(proposals, context):
            if any(frozenset({proposal.agent_id, other.agent_id}) in clashes for other in accepted):
                deferred.append(proposal)
            else:
                accepted.append(proposal)
        return accepted, deferred

    def apply(self, accepted: Sequence[Proposal], cycle: int) -> Tuple[List[Move], List[Proposal]]:
        moves: List[Move] = []
        dropped: List[Proposal] = []
        for proposal in accepted:
            move = proposal.move.model_copy(update={"cycle": cycle})
            try:
                self.beliefs.apply(move)
            except IllegalMoveError as exc:
                dropped.append(proposal)
                if verbose_enabled():
                    log_error(f"  {LOG_TAG_ERROR} [{proposal.agent_id}] Dropped: {exc}")
                continue
            moves.append(move)
            self.move_counts[proposal.agent_id] += 1
        return moves, dropped

    def step(self, cycle: int, on_phase: Optional[PhaseCallback] = None) -> CycleEntry:
        """Run one scheduling round and return its intention-log entry."""
        notify = on_phase or (lambda phase: None)
        verbose = verbose_enabled()
        pending_before = self.remaining_relations()

        notify(PHASE_PROPOSING)
        proposals = self.propose(cycle)
        if verbose:
            for proposal in proposals:
                log_deterministic(
                    f"  {LOG_TAG_DETERMINISTIC} [{proposal.agent_id}] Proposes {proposal.move} "
                    f"({proposal.move.reason.value if proposal.move.reason else 'move'})"
                )

        notify(PHASE_CONFLICT_CHECK)
        conflicts = self.detector.detect_all(proposals, cycle)
        accepted, deferred = self.resolve(proposals, conflicts)
        self.deferred_count += len(deferred)
        if verbose:
            for conflict in conflicts:
                log_conflict(f"  {LOG_TAG_CONFLICT} {conflict.type.value}: {conflict.description}")
            for proposal in deferred:
                log_conflict(f"  {LOG_TAG_CONFLICT} [{proposal.agent_id}] Deferred {proposal.move}")

        notify(PHASE_APPLYING)
        moves, dropped = self.apply(accepted, cycle)
        self.dropped_count += len(dropped)
        if moves:
            self.move_groups.append(MoveGroup(cycle=cycle, moves=moves))
            if len(moves) > 1:
                self.parallel_cycles += 1

        notify(PHASE_GOAL_CHECK)
        pending_after = self.remaining_relations()
        still_pending = set(pending_after)

        return CycleEntry(
            cycle=cycle,
            moves=moves,
            resulting_stacks=self.beliefs.stacks(),
            proposals=proposals,
            conflicts=conflicts,
            deferred=deferred,
            dropped=dropped,
            relations_reached=[r for r in pending_before if r not in still_pending],
            pending_relations=pending_after,
            clear_blocks=self.beliefs.clear_blocks(),
            goal_achieved=not pending_after,
        )
