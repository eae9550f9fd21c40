"""Review repository stub implementation."""

from __future__ import annotations

import asyncio

from land_registry.application.ports.review_repository import ReviewRepositoryProtocol
from land_registry.domain.models.review import Review, ReviewStatus
from land_registry.domain.models.workflow_state import WorkflowDomain


class ReviewRepositoryStub(ReviewRepositoryProtocol):
    """In-memory stub for reviewer assignments (testing only)."""

    def __init__(self) -> None:
        self._reviews: dict[object, Review] = {}
        self._lock = asyncio.Lock()

    def clear(self) -> None:
        self._reviews.clear()

    async def get_active(self, domain: WorkflowDomain, entity_id: str) -> Review | None:
        for review in self._reviews.values():
            if (
                review.domain is domain
                and review.entity_id == entity_id
                and review.status is ReviewStatus.IN_PROGRESS
            ):
                return review
        return None

    async def start_if_idle(self, review: Review) -> tuple[Review, bool]:
        async with self._lock:
            active = await self.get_active(review.domain, review.entity_id)
            if active is not None:
                return active, False
            self._reviews[review.review_id] = review
            return review, True

    async def save(self, review: Review) -> None:
        self._reviews[review.review_id] = review

    async def list_for_entity(self, domain: WorkflowDomain, entity_id: str) -> list[Review]:
        reviews = [
            r
            for r in self._reviews.values()
            if r.domain is domain and r.entity_id == entity_id
        ]
        return sorted(reviews, key=lambda r: r.started_at)
