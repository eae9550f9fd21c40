"""Audit and notification hooks fired after a committed transition.

Ordering contract:
1. The state change and its history record are committed by the
   repository (one conditional write).
2. The audit log entry is appended. A failure here is logged and
   returned as a warning; it does not undo the committed transition.
3. Notifications are dispatched, each bounded by the notification
   timeout. Outcomes are returned to the caller in
   ``WorkflowResult.notifications`` and never raise.
"""

from __future__ import annotations

import asyncio
from collections.abc import Mapping, Sequence
from typing import Any

from land_registry.application.ports.audit_log import AuditLogProtocol
from land_registry.application.ports.notification_dispatcher import (
    NotificationDispatcherProtocol,
)
from land_registry.application.ports.time_authority import TimeAuthorityProtocol
from land_registry.application.services.base import LoggingMixin
from land_registry.config import DEFAULT_WORKFLOW_CONFIG, WorkflowConfig
from land_registry.domain.models.notification import AuditEntry, Notification
from land_registry.domain.models.state_transition import StateTransition
from land_registry.domain.models.workflow_result import NotificationOutcome
from land_registry.infrastructure.monitoring import (
    WorkflowMetricsCollector,
    get_workflow_metrics,
)

# Subscriber of cross-module workflow events
WORKFLOW_EVENT_RECIPIENT = "workflow-events"
WORKFLOW_EVENT_PARTY = "workflow"

AUDIT_FAILURE_WARNING = "Audit log entry could not be recorded"


class WorkflowHooks(LoggingMixin):
    """Best-effort post-commit side effects."""

    def __init__(
        self,
        *,
        audit_log: AuditLogProtocol,
        dispatcher: NotificationDispatcherProtocol,
        time_authority: TimeAuthorityProtocol,
        config: WorkflowConfig = DEFAULT_WORKFLOW_CONFIG,
        metrics: WorkflowMetricsCollector | None = None,
    ) -> None:
        self._audit_log = audit_log
        self._dispatcher = dispatcher
        self._time = time_authority
        self._config = config
        self._metrics = metrics or get_workflow_metrics()
        self._init_logger()

    async def audit(
        self,
        *,
        entity_type: str,
        entity_id: str,
        action: str,
        actor_id: str,
        old_values: Mapping[str, Any] | None = None,
        new_values: Mapping[str, Any] | None = None,
    ) -> list[str]:
        """Append one audit entry; return warnings (empty on success)."""
        entry = AuditEntry.create(
            entity_type=entity_type,
            entity_id=entity_id,
            action=action,
            actor_id=actor_id,
            timestamp=self._time.now(),
            old_values=dict(old_values or {}),
            new_values=dict(new_values or {}),
        )
        log = self._log_operation("audit", entity_type=entity_type, entity_id=entity_id)
        try:
            await asyncio.wait_for(
                self._audit_log.append(entry),
                timeout=self._config.persistence_timeout_seconds,
            )
        except Exception:
            log.exception("audit_append_failed", action=action)
            return [AUDIT_FAILURE_WARNING]
        return []

    async def audit_transition(
        self,
        entity_type: str,
        entity_id: str,
        transition: StateTransition,
    ) -> list[str]:
        """Audit an accepted state transition."""
        return await self.audit(
            entity_type=entity_type,
            entity_id=entity_id,
            action="state_transition",
            actor_id=transition.actor_id,
            old_values={"state": transition.from_state.value},
            new_values={
                "state": transition.to_state.value,
                "transition_id": str(transition.transition_id),
                "reason": transition.reason,
            },
        )

    async def _dispatch_one(self, notification: Notification) -> NotificationOutcome:
        try:
            await asyncio.wait_for(
                self._dispatcher.dispatch(notification),
                timeout=self._config.notification_timeout_seconds,
            )
        except asyncio.TimeoutError:
            error = (
                "Notification timed out after "
                f"{self._config.notification_timeout_seconds}s"
            )
        except Exception as exc:
            error = str(exc) or exc.__class__.__name__
        else:
            return NotificationOutcome(
                recipient_id=notification.recipient_id,
                party=notification.party,
                event_type=notification.event_type,
                delivered=True,
            )

        self._metrics.record_notification_failure(notification.party)
        self._log_operation(
            "notify",
            entity_type=notification.entity_type,
            entity_id=notification.entity_id,
        ).warning(
            "notification_failed",
            party=notification.party,
            event_type=notification.event_type,
            error=error,
        )
        return NotificationOutcome(
            recipient_id=notification.recipient_id,
            party=notification.party,
            event_type=notification.event_type,
            delivered=False,
            error=error,
        )

    async def notify(
        self, notifications: Sequence[Notification]
    ) -> tuple[NotificationOutcome, ...]:
        """Dispatch notifications concurrently and collect their outcomes."""
        if not notifications:
            return ()
        outcomes = await asyncio.gather(
            *(self._dispatch_one(n) for n in notifications)
        )
        return tuple(outcomes)

    async def emit_event(
        self,
        event_type: str,
        *,
        entity_type: str,
        entity_id: str,
        payload: Mapping[str, Any] | None = None,
    ) -> tuple[NotificationOutcome, ...]:
        """Publish a cross-module workflow event (e.g. ``survey.sealed``)."""
        event = Notification(
            recipient_id=WORKFLOW_EVENT_RECIPIENT,
            party=WORKFLOW_EVENT_PARTY,
            event_type=event_type,
            subject=event_type,
            message=f"{entity_type} {entity_id}: {event_type}",
            entity_type=entity_type,
            entity_id=entity_id,
            payload=dict(payload or {}),
        )
        return await self.notify([event])
