"""
Belief model: who sits on what.

The support relation ``block -> support`` is the single source of truth. Two
indexes are maintained incrementally on every write so that the questions the
planner asks most often are O(1):

- ``_above``: support block -> the block resting on it (at most one)
- ``_bases``: blocks resting on the table, in placement order (an
  insertion-ordered dict used as an ordered set), so ``stacks()`` is stable

The only mutation paths are ``apply()`` for moves and the
``add_block()`` / ``remove_block()`` pair used for external world edits. Each
checks its preconditions and keeps the relation acyclic. Callers never get a
reference to the internal dicts.
"""

from __future__ import annotations

from typing import Dict, Iterable, Iterator, List, Optional, Sequence

from .errors import IllegalMoveError, MalformedStacksError
from .schemas import TABLE, BeliefSnapshot, Move, Relation


class BeliefModel:
    """In-memory block-on-block relation with invariant-checked mutation."""

    def __init__(self) -> None:
        self._on: Dict[str, str] = {}
        self._above: Dict[str, str] = {}
        self._bases: Dict[str, None] = {}

    @classmethod
    def from_stacks(cls, stacks: Iterable[Sequence[str]]) -> "BeliefModel":
        """Build beliefs from a bottom-to-top stacks snapshot."""
        model = cls()
        for stack in stacks:
            support = TABLE
            for block in stack:
                if block in model._on:
                    raise MalformedStacksError(f'Duplicate block detected: "{block}".')
                model._place(block, support)
                support = block
        return model

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def __contains__(self, block: object) -> bool:
        return block in self._on

    def __len__(self) -> int:
        return len(self._on)

    def __iter__(self) -> Iterator[str]:
        return iter(self._on)

    @property
    def blocks(self) -> List[str]:
        return list(self._on)

    def is_clear(self, block: str) -> bool:
        """True if nothing rests on ``block``. The table is always clear."""
        if block == TABLE:
            return True
        if block not in self._on:
            return False
        return block not in self._above

    def support_of(self, block: str) -> str:
        try:
            return self._on[block]
        except KeyError:
            raise KeyError(f"Unknown block '{block}'") from None

    def above(self, block: str) -> Optional[str]:
        """The block directly on ``block``, if any."""
        return self._above.get(block)

    def is_on(self, block: str, destination: str) -> bool:
        return self._on.get(block) == destination

    def blockers(self, block: str) -> List[str]:
        """Blocks stacked above ``block``, topmost first (the order they must move)."""
        chain = []
        current = self._above.get(block)
        while current is not None:
            chain.append(current)
            current = self._above.get(current)
        chain.reverse()
        return chain

    def clear_blocks(self) -> List[str]:
        return sorted(block for block in self._on if block not in self._above)

    def on_table_blocks(self) -> List[str]:
        return sorted(self._bases)

    def on_map(self) -> Dict[str, str]:
        return dict(self._on)

    def stacks(self) -> List[List[str]]:
        """Derive bottom-to-top stacks from the support relation."""
        result = []
        for base in self._bases:
            stack = [base]
            current = self._above.get(base)
            while current is not None:
                stack.append(current)
                current = self._above.get(current)
            result.append(stack)
        return result

    def relation_holds(self, relation: Relation) -> bool:
        return self.is_on(relation.block, relation.destination)

    def snapshot(self, pending_relation: Optional[Relation] = None) -> BeliefSnapshot:
        return BeliefSnapshot(
            stacks=self.stacks(),
            on_map=self.on_map(),
            clear_blocks=self.clear_blocks(),
            on_table_blocks=self.on_table_blocks(),
            pending_relation=pending_relation,
        )

    def copy(self) -> "BeliefModel":
        clone = BeliefModel()
        clone._on = dict(self._on)
        clone._above = dict(self._above)
        clone._bases = dict(self._bases)
        return clone

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def check(self, move: Move) -> None:
        """Raise IllegalMoveError if ``move`` cannot be applied right now."""
        block, to = move.block, move.to

        if block not in self._on:
            raise IllegalMoveError(block=block, to=to, reason="block is unknown")
        if to == block:
            raise IllegalMoveError(block=block, to=to, reason="block cannot be moved onto itself")
        if to != TABLE and to not in self._on:
            raise IllegalMoveError(block=block, to=to, reason="destination is unknown")
        if self._on[block] == to:
            raise IllegalMoveError(block=block, to=to, reason="block is already there (no-op move)")
        if not self.is_clear(block):
            raise IllegalMoveError(block=block, to=to, reason=f"block is not clear ({self._above[block]} on top)")
        if not self.is_clear(to):
            raise IllegalMoveError(block=block, to=to, reason=f"destination is not clear ({self._above[to]} on top)")

        # Walking down from the destination must reach the table without meeting
        # the moved block, otherwise the relation would gain a cycle.
        current = to
        while current != TABLE:
            if current == block:
                raise IllegalMoveError(block=block, to=to, reason="move would create a cycle")
            current = self._on[current]

    def apply(self, move: Move) -> None:
        """Commit ``move`` after checking every precondition."""
        self.check(move)
        self._lift(move.block)
        self._place(move.block, move.to)

    def add_block(self, block: str, on: str = TABLE) -> None:
        """Introduce a new block on ``on`` (which must be clear)."""
        if block == TABLE or block in self._on:
            raise IllegalMoveError(block=block, to=on, reason="block already exists")
        if on != TABLE and on not in self._on:
            raise IllegalMoveError(block=block, to=on, reason="destination is unknown")
        if not self.is_clear(on):
            raise IllegalMoveError(block=block, to=on, reason="destination is not clear")
        self._place(block, on)

    def remove_block(self, block: str) -> None:
        """Remove ``block``; anything resting on it drops onto its support."""
        if block not in self._on:
            raise IllegalMoveError(block=block, to=TABLE, reason="block is unknown")

        support = self._on.pop(block)
        resting = self._above.pop(block, None)

        if support == TABLE:
            # The dropped stack keeps the removed base's slot
            order = list(self._bases)
            slot = order.index(block)
            if resting is None:
                del order[slot]
            else:
                order[slot] = resting
            self._bases = dict.fromkeys(order)
        elif resting is None:
            del self._above[support]
        else:
            self._above[support] = resting

        if resting is not None:
            self._on[resting] = support

    def _lift(self, block: str) -> None:
        support = self._on[block]
        if support == TABLE:
            del self._bases[block]
        else:
            del self._above[support]

    def _place(self, block: str, support: str) -> None:
        self._on[block] = support
        if support == TABLE:
            self._bases[block] = None
        else:
            self._above[support] = block
