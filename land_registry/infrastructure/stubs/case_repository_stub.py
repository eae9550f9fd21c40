"""Case repository stub implementation.

One instance per case kind (amendments, transfers, disputes, objections).
"""

from __future__ import annotations

import asyncio
from enum import Enum
from typing import Generic

from land_registry.application.ports.case_repository import CaseT
from land_registry.domain.errors import ConcurrentModificationError, EntityNotFoundError


class CaseRepositoryStub(Generic[CaseT]):
    """In-memory stub for case storage (testing only).

    Args:
        entity_type: Name used in not-found errors (``amendment``, ...).
    """

    def __init__(self, entity_type: str) -> None:
        self._entity_type = entity_type
        self._records: dict[str, CaseT] = {}
        self._lock = asyncio.Lock()

    def clear(self) -> None:
        self._records.clear()

    async def add(self, record: CaseT) -> None:
        async with self._lock:
            if record.record_id in self._records:
                raise ValueError(
                    f"{self._entity_type.capitalize()} {record.record_id} already exists"
                )
            self._records[record.record_id] = record

    async def get(self, record_id: str) -> CaseT | None:
        return self._records.get(record_id)

    async def find(self, field: str, value: object) -> list[CaseT]:
        return [r for r in self._records.values() if getattr(r, field, None) == value]

    async def update_cas(
        self,
        record_id: str,
        expected_status: Enum,
        updated: CaseT,
    ) -> CaseT:
        async with self._lock:
            current = self._records.get(record_id)
            if current is None:
                raise EntityNotFoundError(self._entity_type, record_id)
            if current.status != expected_status:
                raise ConcurrentModificationError(
                    record_id, expected_status, operation=f"{self._entity_type}_update"
                )
            self._records[record_id] = updated
            return updated
