"""Transition validator - single source of truth for state-move legality.

Every workflow mutation calls ``require_valid_transition`` before any
persistence happens. Tables are passed in explicitly; nothing here reads
a global registry.

Rules:
- The current state must be a member of the table's state set,
  otherwise InvalidStateError.
- A move is legal only if the target is listed as a successor.
- Terminal states have an empty successor set, so every move out of
  them is illegal.
- Self-transitions are illegal unless listed.
"""

from __future__ import annotations

from enum import Enum

from land_registry.domain.errors.state_transition import (
    IllegalTransitionError,
    InvalidStateError,
    RolePermissionError,
)
from land_registry.domain.models.transition_table import TransitionTable


def coerce_state(state: Enum | str, table: TransitionTable) -> Enum:
    """Return ``state`` as a member of the table's state enum.

    Accepts either an enum member or its string value.

    Raises:
        InvalidStateError: If the value is not a member of the domain's set.
    """
    if isinstance(state, table.state_type):
        return state
    if isinstance(state, str):
        try:
            return table.state_type(state)
        except ValueError:
            pass
    raise InvalidStateError(table.domain.value, state)


def is_valid_transition(
    from_state: Enum | str,
    to_state: Enum | str,
    table: TransitionTable,
) -> bool:
    """Check whether ``from_state -> to_state`` is in the table.

    Args:
        from_state: Current state; must belong to the domain.
        to_state: Proposed target; a non-member is simply illegal.
        table: Transition table of the domain.

    Returns:
        True if the transition is legal.

    Raises:
        InvalidStateError: If ``from_state`` is not a member of the domain.
    """
    current = coerce_state(from_state, table)
    try:
        target = coerce_state(to_state, table)
    except InvalidStateError:
        return False
    return target in table.successors(current)


def get_valid_next_states(
    from_state: Enum | str,
    table: TransitionTable,
) -> frozenset[Enum]:
    """Return the set of legal successors (empty for terminal states).

    Raises:
        InvalidStateError: If ``from_state`` is not a member of the domain.
    """
    return table.successors(coerce_state(from_state, table))


def is_terminal_state(state: Enum | str, table: TransitionTable) -> bool:
    return not get_valid_next_states(state, table)


def require_valid_transition(
    from_state: Enum | str,
    to_state: Enum | str,
    table: TransitionTable,
) -> tuple[Enum, Enum]:
    """Validate a transition and return both states as enum members.

    Raises:
        InvalidStateError: If either state is not a member of the domain.
        IllegalTransitionError: If the move is not in the table.
    """
    current = coerce_state(from_state, table)
    target = coerce_state(to_state, table)
    allowed = table.successors(current)
    if target not in allowed:
        raise IllegalTransitionError(table.domain.value, current, target, allowed)
    return current, target


def require_role_permission(role: str, to_state: Enum, table: TransitionTable) -> None:
    """Check that ``role`` may move records of this domain into ``to_state``.

    Raises:
        RolePermissionError: If the role lacks permission.
    """
    if not table.role_allows(role, to_state):
        raise RolePermissionError(table.domain.value, role, to_state)


def available_transitions(
    from_state: Enum | str,
    role: str,
    table: TransitionTable,
) -> frozenset[Enum]:
    """Legal successors the given role is also permitted to choose."""
    return frozenset(
        s for s in get_valid_next_states(from_state, table) if table.role_allows(role, s)
    )
