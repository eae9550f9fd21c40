"""Workflow repository port.

Storage contract for per-entity workflow state and transition history.

Rules for implementations:
1. CONDITIONAL WRITES - apply_transition updates only when the stored
   state still equals ``expected_state`` ("UPDATE ... WHERE state = ?").
   Zero rows affected raises ConcurrentModificationError; never overwrite.
2. ATOMIC HISTORY - the state change and the history append commit
   together or not at all.
3. FAIL LOUD - storage errors propagate; the service maps them.
"""

from __future__ import annotations

from enum import Enum
from typing import Protocol

from land_registry.domain.models.state_transition import StateTransition
from land_registry.domain.models.workflow_record import WorkflowRecord
from land_registry.domain.models.workflow_state import WorkflowDomain


class WorkflowRepositoryProtocol(Protocol):
    """Protocol for workflow state storage.

    Methods:
        create: Store a new record in its initial state
        get: Retrieve a record by domain and entity id
        list_by_state: List records of a domain in a given state
        apply_transition: Conditionally move a record to a new state
    """

    async def create(self, record: WorkflowRecord) -> None:
        """Store a new workflow record.

        Raises:
            ValueError: If a record already exists for (domain, entity_id).
        """
        ...

    async def get(self, domain: WorkflowDomain, entity_id: str) -> WorkflowRecord | None:
        """Retrieve the record, or None if the entity has no workflow state."""
        ...

    async def list_by_state(
        self,
        domain: WorkflowDomain,
        state: Enum,
        limit: int = 100,
    ) -> list[WorkflowRecord]:
        """List records of ``domain`` currently in ``state``."""
        ...

    async def apply_transition(
        self,
        domain: WorkflowDomain,
        entity_id: str,
        expected_state: Enum,
        transition: StateTransition,
    ) -> WorkflowRecord:
        """Atomically move the record and append ``transition`` to its history.

        Args:
            domain: Workflow domain.
            entity_id: Entity being transitioned.
            expected_state: State observed when the caller read the record.
            transition: The accepted transition (from_state == expected_state).

        Returns:
            The updated record.

        Raises:
            EntityNotFoundError: If no record exists.
            ConcurrentModificationError: If the stored state differs from
                ``expected_state``.
        """
        ...
