"""Immutable record of one accepted state transition.

A StateTransition is created exactly once per accepted transition and
appended to the entity's history. It is never mutated or deleted; the
history is the audit trail.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID, uuid4


@dataclass(frozen=True)
class StateTransition:
    """Record of a state transition.

    Attributes:
        transition_id: Unique identifier of this record.
        from_state: State before the transition.
        to_state: State after the transition.
        timestamp: When the transition was accepted (UTC).
        actor_id: Who triggered the transition.
        reason: Free-text reason, mandatory for rejections and revisions.
        metadata: Decision details (checklist summary, defect ids, numbers).
    """

    transition_id: UUID
    from_state: Enum
    to_state: Enum
    timestamp: datetime
    actor_id: str
    reason: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict, hash=False)

    @classmethod
    def create(
        cls,
        from_state: Enum,
        to_state: Enum,
        actor_id: str,
        timestamp: datetime,
        reason: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> StateTransition:
        """Create a new transition record with a fresh id.

        Args:
            from_state: Current state.
            to_state: Target state.
            actor_id: Who triggered the transition.
            timestamp: When the transition occurred. Pass time_authority.now().
            reason: Optional reason.
            metadata: Optional decision details (copied).

        Returns:
            New StateTransition instance.
        """
        return cls(
            transition_id=uuid4(),
            from_state=from_state,
            to_state=to_state,
            timestamp=timestamp,
            actor_id=actor_id,
            reason=reason,
            metadata=dict(metadata or {}),
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize for audit export and persistence."""
        return {
            "transition_id": str(self.transition_id),
            "from_state": self.from_state.value,
            "to_state": self.to_state.value,
            "timestamp": self.timestamp.isoformat(),
            "actor_id": self.actor_id,
            "reason": self.reason,
            "metadata": dict(self.metadata),
        }
