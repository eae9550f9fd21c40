"""Shared plumbing for amendment, transfer, dispute and objection cases.

Cases keep their own status field. Every status change:
1. is checked against the domain's transition table and role map;
2. is written with a conditional update on the status read;
3. is audited, then notifies the affected party (best effort).
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from enum import Enum
from typing import Any, Generic

from land_registry.application.ports.case_repository import (
    CaseRepositoryProtocol,
    CaseT,
)
from land_registry.application.services.base import WorkflowServiceBase
from land_registry.application.services.workflow_hooks import WorkflowHooks
from land_registry.domain.errors import EntityNotFoundError, ValidationError
from land_registry.domain.models.actor import Actor
from land_registry.domain.models.notification import Notification
from land_registry.domain.models.transition_table import (
    TransitionTable,
    WorkflowRegistry,
)
from land_registry.domain.models.workflow_result import (
    NotificationOutcome,
    WorkflowResult,
)
from land_registry.domain.models.workflow_state import WorkflowDomain
from land_registry.domain.services.case_rules import CaseValidation
from land_registry.domain.services.transition_validator import (
    require_role_permission,
    require_valid_transition,
)


def validation_result(validation: CaseValidation, **data: Any) -> WorkflowResult:
    """Speculative validation as a successful result carrying ``is_valid``."""
    return WorkflowResult.ok(
        warnings=validation.warnings,
        is_valid=validation.is_valid,
        errors=list(validation.errors),
        geometry_valid=validation.geometry_valid,
        quota_valid=validation.quota_valid,
        **validation.details,
        **data,
    )


def raise_if_invalid(validation: CaseValidation, what: str) -> None:
    if not validation.is_valid:
        raise ValidationError(
            f"{what} validation failed: {validation.errors[0]}",
            errors=validation.errors,
            warnings=validation.warnings,
        )


class CaseWorkflowService(WorkflowServiceBase, Generic[CaseT]):
    """Base for services whose records carry their own status."""

    domain: WorkflowDomain
    entity_type: str

    def __init__(
        self,
        *,
        workflow_registry: WorkflowRegistry,
        cases: CaseRepositoryProtocol[CaseT],
        hooks: WorkflowHooks,
        **kwargs: Any,
    ) -> None:
        super().__init__(**kwargs)
        self._tables = workflow_registry
        self._cases = cases
        self._hooks = hooks
        self._domain_label = self.domain.value

    @property
    def table(self) -> TransitionTable:
        return self._tables.table_for(self.domain)

    async def _require(self, record_id: str) -> CaseT:
        record = await self._bounded(f"get_{self.entity_type}", self._cases.get(record_id))
        if record is None:
            raise EntityNotFoundError(self.entity_type, record_id)
        return record

    def _check(self, record: CaseT, to_status: Enum, actor: Actor) -> tuple[Enum, Enum]:
        """Validate the move and the caller's role; nothing is written."""
        current, target = require_valid_transition(record.status, to_status, self.table)
        require_role_permission(actor.role, target, self.table)
        return current, target

    async def _create(self, record: CaseT) -> None:
        try:
            await self._bounded(f"add_{self.entity_type}", self._cases.add(record))
        except ValueError as exc:
            raise ValidationError(str(exc)) from exc

    async def _move(self, record: CaseT, updated: CaseT, actor: Actor) -> CaseT:
        """Conditionally persist ``updated`` in place of ``record``.

        Raises:
            IllegalTransitionError: If the status change is not in the table.
            RolePermissionError: If the caller's role may not make it.
            ConcurrentModificationError: If the status changed since the read.
        """
        current, target = self._check(record, updated.status, actor)
        stored = await self._bounded(
            f"update_{self.entity_type}",
            self._cases.update_cas(record.record_id, current, updated),
        )
        self._metrics.record_transition(self.domain.value, current.value, target.value)
        self._log_operation(
            "status_change", entity_id=record.record_id
        ).info(
            "case_status_changed",
            from_status=current.value,
            to_status=target.value,
            actor_id=actor.actor_id,
        )
        return stored

    async def _after(
        self,
        record_id: str,
        actor: Actor,
        *,
        action: str,
        old_values: Mapping[str, Any] | None = None,
        new_values: Mapping[str, Any] | None = None,
        notifications: Iterable[Notification] = (),
        event: tuple[str, Mapping[str, Any]] | None = None,
    ) -> tuple[list[str], list[NotificationOutcome]]:
        """Audit, notify and publish; returns (warnings, outcomes)."""
        warnings = await self._hooks.audit(
            entity_type=self.entity_type,
            entity_id=record_id,
            action=action,
            actor_id=actor.actor_id,
            old_values=old_values,
            new_values=new_values,
        )
        outcomes = list(await self._hooks.notify(list(notifications)))
        if event is not None:
            event_type, payload = event
            outcomes.extend(
                await self._hooks.emit_event(
                    event_type,
                    entity_type=self.entity_type,
                    entity_id=record_id,
                    payload=payload,
                )
            )
        return warnings, outcomes

    def _notice(
        self,
        record_id: str,
        recipient_id: str,
        party: str,
        event_type: str,
        subject: str,
        message: str,
        **payload: Any,
    ) -> list[Notification]:
        """Single-notification list; empty when there is nobody to notify."""
        if not recipient_id:
            return []
        return [
            Notification(
                recipient_id=recipient_id,
                party=party,
                event_type=event_type,
                subject=subject,
                message=message,
                entity_type=self.entity_type,
                entity_id=record_id,
                payload=payload,
            )
        ]
