"""Outbound notification and audit entry models."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any
from uuid import UUID, uuid4


@dataclass(frozen=True)
class Notification:
    """A message for an affected party, dispatched after commit.

    Attributes:
        recipient_id: User the message is addressed to.
        party: Party role (planner, surveyor, conveyancer, complainant, ...).
        event_type: Machine-readable event (e.g. ``planning.approved``).
        subject: Short subject line.
        message: Body text.
        entity_type: Kind of record the message concerns.
        entity_id: Identifier of that record.
        payload: Structured details (defects, numbers, dates).
    """

    recipient_id: str
    party: str
    event_type: str
    subject: str
    message: str
    entity_type: str
    entity_id: str
    payload: dict[str, Any] = field(default_factory=dict, hash=False)


@dataclass(frozen=True)
class AuditEntry:
    """One audit log line: who changed what, from which values to which.

    Attributes:
        entry_id: Unique identifier.
        entity_type: Kind of record changed.
        entity_id: Identifier of that record.
        action: Action name (e.g. ``state_transition``, ``quota_recalculated``).
        actor_id: Who performed the action.
        timestamp: When it happened (UTC).
        old_values: Relevant values before the change.
        new_values: Relevant values after the change.
    """

    entry_id: UUID
    entity_type: str
    entity_id: str
    action: str
    actor_id: str
    timestamp: datetime
    old_values: dict[str, Any] = field(default_factory=dict, hash=False)
    new_values: dict[str, Any] = field(default_factory=dict, hash=False)

    @classmethod
    def create(
        cls,
        *,
        entity_type: str,
        entity_id: str,
        action: str,
        actor_id: str,
        timestamp: datetime,
        old_values: dict[str, Any] | None = None,
        new_values: dict[str, Any] | None = None,
    ) -> AuditEntry:
        return cls(
            entry_id=uuid4(),
            entity_type=entity_type,
            entity_id=entity_id,
            action=action,
            actor_id=actor_id,
            timestamp=timestamp,
            old_values=dict(old_values or {}),
            new_values=dict(new_values or {}),
        )
