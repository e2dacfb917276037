"""
Input normalization for planner requests.

Turns loosely-typed request data (stacks, goal chains, options) into the
canonical forms the planner works with, raising ``MalformedStacksError`` /
``MalformedGoalError`` / ``PlanningError`` before any planning is attempted.

Normalization rules:
- Block tokens are stripped and upper-cased; ``table`` in any case becomes
  the ``Table`` sentinel
- A block may appear only once across all stacks
- Goal chains need at least two tokens; ``Table`` may only be last and is
  appended when missing
- Chains reference known blocks only and never share a block
"""

import re
from typing import Any, Iterable, List, Mapping, Optional, Sequence, Union

from pydantic import ValidationError
from pydantic.alias_generators import to_camel

from .config import Config
from .errors import MalformedGoalError, MalformedStacksError, PlanningError
from .planning.strategies import resolve_strategy
from .schemas import TABLE, PlannerOptions

BLOCK_PATTERN = re.compile(r"^[A-Z0-9][A-Z0-9_-]*$")

GoalInput = Union[Sequence[str], Sequence[Sequence[str]]]


def normalize_block(token: Any, *, where: str) -> str:
    """Return the canonical block id for ``token`` or raise MalformedStacksError."""
    if not isinstance(token, str):
        raise MalformedStacksError(f"{where} must be a string.")
    value = token.strip().upper()
    if value == TABLE.upper():
        raise MalformedStacksError(f"{where}: '{TABLE}' is reserved and cannot be a block.")
    if not BLOCK_PATTERN.match(value):
        raise MalformedStacksError(
            f'Block "{token}" is invalid. Use letters, digits, "_" or "-".'
        )
    return value


def normalize_stacks(raw_stacks: Any) -> List[List[str]]:
    """Validate a bottom-to-top stacks snapshot. Empty stacks are discarded."""
    if not isinstance(raw_stacks, (list, tuple)):
        raise MalformedStacksError("Stacks payload must be a list of stacks.")

    seen = set()
    stacks: List[List[str]] = []
    for stack_index, stack in enumerate(raw_stacks):
        if not isinstance(stack, (list, tuple)):
            raise MalformedStacksError(f"Stack at index {stack_index} must be a list.")
        normalized = []
        for block_index, token in enumerate(stack):
            block = normalize_block(
                token, where=f"Block at stack {stack_index}, position {block_index}"
            )
            if block in seen:
                raise MalformedStacksError(f'Duplicate block detected: "{block}".')
            seen.add(block)
            normalized.append(block)
        if normalized:
            stacks.append(normalized)
    return stacks


def _normalize_goal_token(token: Any, position: int) -> str:
    if not isinstance(token, str):
        raise MalformedGoalError(f"Goal token at position {position} must be a string.")
    value = token.strip().upper()
    if value == TABLE.upper():
        return TABLE
    if not BLOCK_PATTERN.match(value):
        raise MalformedGoalError(f'Goal token "{token}" is invalid.')
    return value


def sanitize_goal_chain(raw_chain: Any, available_blocks: Iterable[str]) -> List[str]:
    """Normalize one goal chain and anchor it on the table."""
    if not isinstance(raw_chain, (list, tuple)) or len(raw_chain) < 2:
        raise MalformedGoalError(
            'Goal chain must include at least two identifiers (e.g., "A, B").'
        )

    known = set(available_blocks)
    chain = [_normalize_goal_token(token, idx) for idx, token in enumerate(raw_chain)]

    if TABLE in chain[:-1]:
        raise MalformedGoalError(f'"{TABLE}" can only appear as the final element in a goal chain.')

    for block in chain:
        if block != TABLE and block not in known:
            raise MalformedGoalError(f'Goal references unknown block "{block}".')

    if chain[-1] != TABLE:
        chain.append(TABLE)
    return chain


def split_goal_input(
    goal: Optional[GoalInput] = None,
    goal_chains: Optional[Sequence[Sequence[str]]] = None,
) -> List[Any]:
    """Accept either a single chain or a list of chains and return a list of raw chains."""
    if goal is not None and goal_chains is not None:
        raise MalformedGoalError("Provide either goal or goal_chains, not both.")

    if goal_chains is not None:
        if not isinstance(goal_chains, (list, tuple)) or not goal_chains:
            raise MalformedGoalError("goal_chains must be a non-empty list of goal chains.")
        return list(goal_chains)

    if goal is None:
        raise MalformedGoalError("A goal chain is required.")
    if not isinstance(goal, (list, tuple)) or not goal:
        raise MalformedGoalError("Goal chain must be a non-empty list.")

    # A list of lists is the multi-tower form
    if all(isinstance(item, (list, tuple)) for item in goal):
        return list(goal)
    return [goal]


def normalize_goal_chains(raw_chains: Sequence[Any], stacks: Sequence[Sequence[str]]) -> List[List[str]]:
    """Sanitize every chain and ensure no block is claimed twice."""
    available = [block for stack in stacks for block in stack]
    chains = [sanitize_goal_chain(raw, available) for raw in raw_chains]

    owner = {}
    for chain_index, chain in enumerate(chains):
        for block in chain:
            if block == TABLE:
                continue
            if block in owner:
                if owner[block] == chain_index:
                    raise MalformedGoalError(
                        f'Goal chain repeats block "{block}", which would create a loop. '
                        "Use each block at most once."
                    )
                raise MalformedGoalError(
                    f'Block "{block}" appears in goal chains {owner[block]} and {chain_index}; '
                    "chains must target disjoint blocks."
                )
            owner[block] = chain_index
    return chains


def resolve_planner_options(options: Union[PlannerOptions, Mapping[str, Any], None] = None) -> PlannerOptions:
    """Merge caller options over Config defaults and clamp the iteration budget."""
    if isinstance(options, PlannerOptions):
        data = options.model_dump()
    elif options is None:
        data = {}
    elif isinstance(options, Mapping):
        data = dict(options)
    else:
        raise PlanningError("Planner options must be a mapping.")

    merged = {
        "max_iterations": Config.MAX_ITERATIONS,
        "deliberation_timeout_ms": Config.DELIBERATION_TIMEOUT_MS,
        "enable_negotiation": Config.ENABLE_NEGOTIATION,
        "negotiation_strategy": Config.NEGOTIATION_STRATEGY,
    }
    # Wire payloads use camelCase; fold them onto field names before overlaying
    aliases = {to_camel(name): name for name in PlannerOptions.model_fields}
    for key, value in data.items():
        name = aliases.get(key, key)
        if name in merged and value is not None:
            merged[name] = value

    try:
        resolved = PlannerOptions.model_validate(merged)
    except ValidationError as exc:
        raise PlanningError(f"Invalid planner options: {exc}") from exc

    # Unknown strategy names are a client error, not a scheduling-time surprise
    resolve_strategy(resolved.negotiation_strategy)

    return resolved.model_copy(
        update={"max_iterations": min(resolved.max_iterations, Config.MAX_ITERATION_CAP)}
    )
