"""Uniform result shape returned across the workflow module boundary.

Operations never raise to their callers. Business-rule failures become
``WorkflowResult.failure``; notification outcomes travel separately in
``notifications`` so a messaging problem cannot flip ``success``.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

GENERIC_ERROR_MESSAGE = "An unexpected error occurred"


@dataclass(frozen=True)
class NotificationOutcome:
    """Delivery outcome for one best-effort notification.

    Attributes:
        recipient_id: Who the notification was addressed to.
        party: Party role (planner, surveyor, conveyancer, ...).
        event_type: Notification event name.
        delivered: True when the dispatcher accepted the message.
        error: Failure description when not delivered.
    """

    recipient_id: str
    party: str
    event_type: str
    delivered: bool
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "recipient_id": self.recipient_id,
            "party": self.party,
            "event_type": self.event_type,
            "delivered": self.delivered,
            "error": self.error,
        }


@dataclass(frozen=True)
class WorkflowResult:
    """Outcome of a workflow operation.

    Attributes:
        success: Whether the operation took effect (or was a no-op success).
        error: Human-readable failure message.
        error_code: Stable code of the failure (see LandRegistryError).
        warnings: Non-blocking observations.
        notifications: Outcomes of best-effort notifications.
        data: Domain fields specific to the operation.
    """

    success: bool
    error: str | None = None
    error_code: str | None = None
    warnings: tuple[str, ...] = ()
    notifications: tuple[NotificationOutcome, ...] = ()
    data: Mapping[str, Any] = field(default_factory=dict, hash=False)

    @classmethod
    def ok(
        cls,
        *,
        warnings: Iterable[str] = (),
        notifications: Iterable[NotificationOutcome] = (),
        **data: Any,
    ) -> WorkflowResult:
        """Build a successful result carrying domain fields."""
        return cls(
            success=True,
            warnings=tuple(warnings),
            notifications=tuple(notifications),
            data=data,
        )

    @classmethod
    def failure(
        cls,
        error: str,
        *,
        error_code: str | None = None,
        warnings: Iterable[str] = (),
        **data: Any,
    ) -> WorkflowResult:
        """Build a failed result."""
        return cls(
            success=False,
            error=error,
            error_code=error_code,
            warnings=tuple(warnings),
            data=data,
        )

    @property
    def failed_notifications(self) -> tuple[NotificationOutcome, ...]:
        return tuple(n for n in self.notifications if not n.delivered)

    def get(self, key: str, default: Any = None) -> Any:
        """Return a domain field, or ``default`` if absent."""
        return self.data.get(key, default)

    def to_dict(self) -> dict[str, Any]:
        """Flatten into ``{success, error?, warnings?, ...domain fields}``."""
        result: dict[str, Any] = {"success": self.success}
        if self.error is not None:
            result["error"] = self.error
            result["error_code"] = self.error_code
        if self.warnings:
            result["warnings"] = list(self.warnings)
        if self.notifications:
            result["notifications"] = [n.to_dict() for n in self.notifications]
        result.update(self.data)
        return result
