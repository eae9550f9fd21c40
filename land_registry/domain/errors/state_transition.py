"""State transition errors for the workflow state machines.

Raised by the transition validator before any persistence happens, so a
caller receiving one of these can be sure nothing was written.
"""

from __future__ import annotations

from collections.abc import Iterable
from enum import Enum

from land_registry.domain.exceptions import LandRegistryError


def _label(state: object) -> str:
    return str(state.value) if isinstance(state, Enum) else str(state)


class InvalidStateError(LandRegistryError):
    """Raised when a value is not a member of a domain's state set.

    Attributes:
        domain: Workflow domain name (planning, survey, ...).
        state: The unrecognised value.
    """

    error_code = "INVALID_STATE"

    def __init__(self, domain: str, state: object) -> None:
        self.domain = domain
        self.state = state
        super().__init__(f"'{_label(state)}' is not a valid {domain} state")


class IllegalTransitionError(LandRegistryError):
    """Raised when a proposed move is absent from the transition table.

    Safe to retry with a different target state.

    Attributes:
        domain: Workflow domain name.
        from_state: Current state.
        to_state: Rejected target state.
        allowed_transitions: Legal successors of ``from_state``.
    """

    error_code = "ILLEGAL_TRANSITION"

    def __init__(
        self,
        domain: str,
        from_state: Enum,
        to_state: Enum,
        allowed_transitions: Iterable[Enum] = (),
    ) -> None:
        """Initialize illegal transition error.

        Args:
            domain: Workflow domain name.
            from_state: Current state of the entity.
            to_state: Attempted target state.
            allowed_transitions: Valid successors (empty for terminal states).
        """
        self.domain = domain
        self.from_state = from_state
        self.to_state = to_state
        self.allowed_transitions = sorted(allowed_transitions, key=_label)

        if self.allowed_transitions:
            allowed_str = (
                f" Valid transitions: {[_label(s) for s in self.allowed_transitions]}"
            )
        else:
            allowed_str = f" '{_label(from_state)}' is a terminal state."
        super().__init__(
            f"Illegal {domain} transition: "
            f"{_label(from_state)} -> {_label(to_state)}.{allowed_str}"
        )


class RolePermissionError(LandRegistryError):
    """Raised when a role may not move an entity into the target state.

    Attributes:
        domain: Workflow domain name.
        role: Caller role.
        to_state: Target state the role attempted.
    """

    error_code = "ROLE_NOT_PERMITTED"

    def __init__(self, domain: str, role: str, to_state: Enum) -> None:
        self.domain = domain
        self.role = role
        self.to_state = to_state
        super().__init__(
            f"Role '{role}' cannot transition {domain} records to "
            f"'{_label(to_state)}'"
        )
