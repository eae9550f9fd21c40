"""Concurrent modification error for conditional (CAS) updates.

Every state-changing write is conditioned on the state observed at read
time. When the condition no longer holds the write affects zero rows and
this error is raised instead of overwriting the other writer's result.
"""

from __future__ import annotations

from enum import Enum

from land_registry.domain.exceptions import LandRegistryError


class ConcurrentModificationError(LandRegistryError):
    """Raised when a CAS update loses to a concurrent writer.

    This is a recoverable error - the caller should re-read the entity
    and decide whether to retry or report the conflict. The workflow core
    never retries automatically.

    Attributes:
        entity_id: Identifier of the entity being modified.
        expected_state: State that was expected to be current.
        operation: Description of the operation that failed.
    """

    error_code = "CONCURRENT_MODIFICATION"

    def __init__(
        self,
        entity_id: str,
        expected_state: Enum | str,
        operation: str = "state_transition",
    ) -> None:
        """Initialize concurrent modification error.

        Args:
            entity_id: Identifier of the entity being modified.
            expected_state: The state expected for the CAS operation.
            operation: Description of the failed operation.
        """
        self.entity_id = entity_id
        self.expected_state = expected_state
        self.operation = operation
        expected = (
            expected_state.value if isinstance(expected_state, Enum) else expected_state
        )
        super().__init__(
            f"Concurrent modification detected for {entity_id} during "
            f"{operation}. Expected state: {expected}. "
            "Another request has modified this record."
        )
