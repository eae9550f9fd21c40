"""Caller identity passed into every workflow operation."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Actor:
    """An authenticated caller.

    Authentication and coarse authorisation happen upstream; the workflow
    core only uses the role to check per-state permissions.

    Attributes:
        actor_id: Stable user identifier.
        role: Role the caller acts in (planner, deeds_examiner, registrar, ...).
        display_name: Optional human-readable name for notifications.
    """

    actor_id: str
    role: str
    display_name: str | None = None

    def __post_init__(self) -> None:
        if not self.actor_id:
            raise ValueError("actor_id must not be empty")
        if not self.role:
            raise ValueError("role must not be empty")
