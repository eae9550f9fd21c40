"""Per-entity workflow state with its transition history."""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum

from land_registry.domain.models.state_transition import StateTransition
from land_registry.domain.models.workflow_state import WorkflowDomain


@dataclass(frozen=True)
class WorkflowRecord:
    """Current state of one entity in one workflow domain.

    Attributes:
        entity_id: Identifier of the scheme, survey plan, deed or title.
        domain: Workflow domain the state belongs to.
        state: Current state (member of the domain's state enum).
        version: Incremented on every accepted transition.
        history: Accepted transitions, oldest first. Append-only.
    """

    entity_id: str
    domain: WorkflowDomain
    state: Enum
    version: int = 1
    history: tuple[StateTransition, ...] = ()

    def with_transition(self, transition: StateTransition) -> WorkflowRecord:
        """Return the record after applying an accepted transition.

        Raises:
            ValueError: If the transition does not start from the current state.
        """
        if transition.from_state != self.state:
            raise ValueError(
                f"Transition starts at {transition.from_state.value}, "
                f"record is at {self.state.value}"
            )
        return replace(
            self,
            state=transition.to_state,
            version=self.version + 1,
            history=(*self.history, transition),
        )

    @property
    def last_transition(self) -> StateTransition | None:
        """Most recent accepted transition, if any."""
        return self.history[-1] if self.history else None
