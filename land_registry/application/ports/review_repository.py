"""Review repository port.

At most one review per entity may be in progress. ``start_if_idle``
enforces that atomically so two reviewers starting at once cannot both
be assigned.
"""

from __future__ import annotations

from typing import Protocol

from land_registry.domain.models.review import Review
from land_registry.domain.models.workflow_state import WorkflowDomain


class ReviewRepositoryProtocol(Protocol):
    """Protocol for reviewer assignment storage."""

    async def get_active(self, domain: WorkflowDomain, entity_id: str) -> Review | None:
        """Return the in-progress review of an entity, if any."""
        ...

    async def start_if_idle(self, review: Review) -> tuple[Review, bool]:
        """Store ``review`` unless another review is already in progress.

        Returns:
            (review in effect, True if ``review`` was stored)
        """
        ...

    async def save(self, review: Review) -> None:
        """Replace a stored review (e.g. when it completes)."""
        ...

    async def list_for_entity(self, domain: WorkflowDomain, entity_id: str) -> list[Review]:
        ...
