"""Audit log port - append-only record of who changed what."""

from __future__ import annotations

from typing import Protocol

from land_registry.domain.models.notification import AuditEntry


class AuditLogProtocol(Protocol):
    async def append(self, entry: AuditEntry) -> None:
        """Append one entry. Entries are never updated or deleted."""
        ...

    async def list_for_entity(self, entity_type: str, entity_id: str) -> list[AuditEntry]:
        ...
