"""
Replanning when the world changes mid-execution.

The execution layer plays a plan move by move. When a user drags a block,
adds or removes one, or edits the goal, the change is queued as a mutation.
The next ``replan()`` drains the queue, applies the mutations to the actual
stacks, and plans again from scratch. Relations that already hold cost zero
moves, so replanning after partial progress only produces the remaining work.
"""

from __future__ import annotations

from collections import deque
from typing import Any, Deque, Dict, Iterable, List, Literal, Optional, Sequence, Union

from pydantic import Field

from .beliefs import BeliefModel
from .logging_utils import LOG_TAG_INFO, log_info
from .planner import BlocksWorldPlanner, OptionsInput
from .schemas import TABLE, Move, MoveGroup, PayloadModel, PlanResult
from .validation import (
    GoalInput,
    normalize_block,
    normalize_goal_chains,
    normalize_stacks,
    resolve_planner_options,
    split_goal_input,
)


# ============================================================================
# Mutations
# ============================================================================


class ManualMove(PayloadModel):
    """A user moved a block by hand."""

    kind: Literal["manual_move"] = "manual_move"
    block: str
    to: str = TABLE


class AddBlock(PayloadModel):
    """A new block was placed into the world."""

    kind: Literal["add_block"] = "add_block"
    block: str
    on: str = TABLE


class RemoveBlock(PayloadModel):
    """A block was taken out of the world; anything on it drops onto its support."""

    kind: Literal["remove_block"] = "remove_block"
    block: str


class EditGoal(PayloadModel):
    """The goal was replaced while the plan was executing."""

    kind: Literal["edit_goal"] = "edit_goal"
    goal_chains: List[List[str]] = Field(..., min_length=1)


Mutation = Union[ManualMove, AddBlock, RemoveBlock, EditGoal]


class MutationQueue:
    """FIFO of world mutations waiting for the next replan."""

    def __init__(self) -> None:
        self._items: Deque[Mutation] = deque()

    def add(self, mutation: Mutation) -> None:
        self._items.append(mutation)

    def extend(self, mutations: Iterable[Mutation]) -> None:
        self._items.extend(mutations)

    def drain(self) -> List[Mutation]:
        items = list(self._items)
        self._items.clear()
        return items

    def clear(self) -> None:
        self._items.clear()

    def __len__(self) -> int:
        return len(self._items)

    def __bool__(self) -> bool:
        return bool(self._items)


# ============================================================================
# Coordinator
# ============================================================================


def _normalize_target(token: str, *, where: str) -> str:
    if token.strip().upper() == TABLE.upper():
        return TABLE
    return normalize_block(token, where=where)


class ReplanCoordinator:
    """Tracks the actual world and goal, and replans on demand.

    Attributes:
        stacks: Current actual stacks (bottom-to-top), advanced by ``commit``
            and by applied mutations.
        goal_chains: Current normalized goal chains.
        mutations: Pending world mutations, drained by ``replan``.
        replans_triggered: Number of ``replan`` calls.
        manual_interventions: Number of mutations applied so far.
    """

    def __init__(
        self,
        stacks: Any,
        goal: Optional[GoalInput] = None,
        goal_chains: Optional[Sequence[Sequence[str]]] = None,
        options: OptionsInput = None,
    ) -> None:
        self.stacks = normalize_stacks(stacks)
        self.goal_chains = normalize_goal_chains(split_goal_input(goal, goal_chains), self.stacks)
        self.options = options
        self.mutations = MutationQueue()
        self.replans_triggered = 0
        self.manual_interventions = 0
        self.last_result: Optional[PlanResult] = None

    def plan(self) -> PlanResult:
        """Plan from the current world without consuming mutations.

        A goal whose every block has been removed holds trivially, so it
        yields an achieved result with no moves.
        """
        if not self.goal_chains:
            self.last_result = PlanResult(
                agent_count=0,
                beliefs=BeliefModel.from_stacks(self.stacks).snapshot(),
                planner_options_used=resolve_planner_options(self.options),
            )
            return self.last_result

        self.last_result = BlocksWorldPlanner(
            self.stacks, goal_chains=self.goal_chains, options=self.options
        ).plan()
        return self.last_result

    def replan(
        self,
        stacks: Any = None,
        goal: Optional[GoalInput] = None,
        goal_chains: Optional[Sequence[Sequence[str]]] = None,
    ) -> PlanResult:
        """Apply observed state and queued mutations, then plan again from scratch.

        Mutations are committed one at a time, so the tracked world always
        reflects every mutation counted in ``manual_interventions``.

        Args:
            stacks: Observed actual stacks; replaces the tracked stacks when given.
            goal / goal_chains: Replacement goal, checked against the stacks left
                by the queued mutations; same forms as the planner accepts.

        Raises:
            IllegalMoveError: A queued manual move or block edit is impossible in
                the current world. Mutations before it stay applied, the failing
                one is discarded and the ones after it stay queued.
            MalformedStacksError / MalformedGoalError: Invalid replacement input
                or an edited goal that does not fit the world.
        """
        if stacks is not None:
            self.stacks = normalize_stacks(stacks)

        pending = self.mutations.drain()
        beliefs = BeliefModel.from_stacks(self.stacks)
        for index, mutation in enumerate(pending):
            try:
                chains = self._apply_mutation(beliefs, mutation, self.goal_chains)
            except Exception:
                self.mutations.extend(pending[index + 1:])
                raise
            self.stacks = beliefs.stacks()
            self.goal_chains = chains
            self.manual_interventions += 1

        if goal is not None or goal_chains is not None:
            self.goal_chains = normalize_goal_chains(split_goal_input(goal, goal_chains), self.stacks)
        self.replans_triggered += 1

        log_info(
            f"{LOG_TAG_INFO} Replan #{self.replans_triggered} "
            f"({self.manual_interventions} manual intervention(s) so far)"
        )
        return self.plan()

    def commit(self, moves: Iterable[Union[MoveGroup, Move]]) -> List[List[str]]:
        """Advance the tracked stacks by moves the execution layer has performed."""
        beliefs = BeliefModel.from_stacks(self.stacks)
        for item in moves:
            group = item.moves if isinstance(item, MoveGroup) else [item]
            for move in group:
                beliefs.apply(move)
        self.stacks = beliefs.stacks()
        return self.stacks

    def statistics(self) -> Dict[str, int]:
        return {
            "replans_triggered": self.replans_triggered,
            "manual_interventions": self.manual_interventions,
            "pending_mutations": len(self.mutations),
        }

    @staticmethod
    def _apply_mutation(
        beliefs: BeliefModel, mutation: Mutation, goal_chains: List[List[str]]
    ) -> List[List[str]]:
        """Apply one mutation to ``beliefs`` and return the goal chains that follow from it."""
        if isinstance(mutation, ManualMove):
            block = normalize_block(mutation.block, where="Manual move block")
            to = _normalize_target(mutation.to, where="Manual move destination")
            beliefs.apply(Move(block=block, to=to))
        elif isinstance(mutation, AddBlock):
            block = normalize_block(mutation.block, where="Added block")
            on = _normalize_target(mutation.on, where="Added block support")
            beliefs.add_block(block, on)
        elif isinstance(mutation, RemoveBlock):
            block = normalize_block(mutation.block, where="Removed block")
            beliefs.remove_block(block)
            # A removed block can no longer be part of the goal
            pruned = []
            for chain in goal_chains:
                kept = [token for token in chain if token != block]
                if all(token == TABLE for token in kept):
                    continue
                pruned.append(kept)
            return pruned
        elif isinstance(mutation, EditGoal):
            return normalize_goal_chains(mutation.goal_chains, beliefs.stacks())
        else:
            raise TypeError(f"Unsupported mutation: {mutation!r}")
        return [list(chain) for chain in goal_chains]
