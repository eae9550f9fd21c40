"""Audit log stub implementation."""

from __future__ import annotations

from land_registry.application.ports.audit_log import AuditLogProtocol
from land_registry.domain.models.notification import AuditEntry


class AuditLogStub(AuditLogProtocol):
    """In-memory append-only audit log (testing only).

    Attributes:
        entries: Every appended entry, in order.
        fail_with: When set, append raises this exception instead.
    """

    def __init__(self) -> None:
        self.entries: list[AuditEntry] = []
        self.fail_with: Exception | None = None

    def clear(self) -> None:
        self.entries.clear()
        self.fail_with = None

    async def append(self, entry: AuditEntry) -> None:
        if self.fail_with is not None:
            raise self.fail_with
        self.entries.append(entry)

    async def list_for_entity(self, entity_type: str, entity_id: str) -> list[AuditEntry]:
        return [
            e
            for e in self.entries
            if e.entity_type == entity_type and e.entity_id == entity_id
        ]
