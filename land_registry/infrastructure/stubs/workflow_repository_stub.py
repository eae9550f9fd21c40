"""Workflow repository stub implementation.

In-memory implementation of WorkflowRepositoryProtocol for tests and
development. apply_transition is a compare-and-swap under one lock, so
of two concurrent callers expecting the same state only the first wins.
"""

from __future__ import annotations

import asyncio
from enum import Enum

from land_registry.application.ports.workflow_repository import (
    WorkflowRepositoryProtocol,
)
from land_registry.domain.errors import ConcurrentModificationError, EntityNotFoundError
from land_registry.domain.models.state_transition import StateTransition
from land_registry.domain.models.workflow_record import WorkflowRecord
from land_registry.domain.models.workflow_state import WorkflowDomain


class WorkflowRepositoryStub(WorkflowRepositoryProtocol):
    """In-memory stub for workflow state storage (testing only).

    Attributes:
        latency: Seconds every call sleeps before touching storage.
            Lets tests interleave concurrent callers or exercise timeouts.
    """

    def __init__(self, latency: float = 0.0) -> None:
        self._records: dict[tuple[WorkflowDomain, str], WorkflowRecord] = {}
        self._lock = asyncio.Lock()
        self.latency = latency

    def clear(self) -> None:
        """Clear all stored records (for test cleanup)."""
        self._records.clear()

    def seed(self, record: WorkflowRecord) -> None:
        """Insert a record directly, bypassing the workflow (test setup)."""
        self._records[(record.domain, record.entity_id)] = record

    async def _pause(self) -> None:
        if self.latency:
            await asyncio.sleep(self.latency)

    async def create(self, record: WorkflowRecord) -> None:
        await self._pause()
        async with self._lock:
            key = (record.domain, record.entity_id)
            if key in self._records:
                raise ValueError(
                    f"{record.domain.value} record {record.entity_id} already exists"
                )
            self._records[key] = record

    async def get(self, domain: WorkflowDomain, entity_id: str) -> WorkflowRecord | None:
        await self._pause()
        return self._records.get((domain, entity_id))

    async def list_by_state(
        self,
        domain: WorkflowDomain,
        state: Enum,
        limit: int = 100,
    ) -> list[WorkflowRecord]:
        await self._pause()
        matches = [
            r for (d, _), r in self._records.items() if d is domain and r.state == state
        ]
        return sorted(matches, key=lambda r: r.entity_id)[:limit]

    async def apply_transition(
        self,
        domain: WorkflowDomain,
        entity_id: str,
        expected_state: Enum,
        transition: StateTransition,
    ) -> WorkflowRecord:
        await self._pause()
        async with self._lock:
            current = self._records.get((domain, entity_id))
            if current is None:
                raise EntityNotFoundError(domain.value, entity_id)
            if current.state != expected_state:
                raise ConcurrentModificationError(entity_id, expected_state)
            updated = current.with_transition(transition)
            self._records[(domain, entity_id)] = updated
            return updated
