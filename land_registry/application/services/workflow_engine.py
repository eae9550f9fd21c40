"""Workflow engine - the one path by which workflow state changes.

Every state-changing operation in the planning, survey, deed and title
workflows goes through ``WorkflowEngine.apply``:

1. Read the record (or take the record the caller already read).
2. ``require_valid_transition`` against the domain's table.
3. ``require_role_permission`` for the caller's role.
4. Custom validators supplied by the calling service.
5. Conditional write of state plus history on the state read in step 1.

Post-commit side effects (audit, notifications, workflow events) are
run by ``after_commit`` and never affect the outcome of the transition.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any

from land_registry.application.ports.workflow_repository import (
    WorkflowRepositoryProtocol,
)
from land_registry.application.services.base import WorkflowServiceBase
from land_registry.application.services.workflow_hooks import WorkflowHooks
from land_registry.domain.errors import EntityNotFoundError, ValidationError
from land_registry.domain.models.actor import Actor
from land_registry.domain.models.notification import Notification
from land_registry.domain.models.state_transition import StateTransition
from land_registry.domain.models.transition_table import (
    TransitionTable,
    WorkflowRegistry,
)
from land_registry.domain.models.workflow_record import WorkflowRecord
from land_registry.domain.models.workflow_result import (
    NotificationOutcome,
    WorkflowResult,
)
from land_registry.domain.models.workflow_state import WorkflowDomain
from land_registry.domain.services.transition_validator import (
    available_transitions,
    coerce_state,
    require_role_permission,
    require_valid_transition,
)

TransitionValidator = Callable[[WorkflowRecord, Enum], None]


@dataclass(frozen=True)
class AppliedTransition:
    """A committed transition and the record it produced."""

    record: WorkflowRecord
    transition: StateTransition


@dataclass(frozen=True)
class SideEffects:
    """Outcome of post-commit hooks."""

    warnings: tuple[str, ...] = ()
    notifications: tuple[NotificationOutcome, ...] = ()


class WorkflowEngine(WorkflowServiceBase):
    """Validates and commits workflow transitions for any domain."""

    def __init__(
        self,
        *,
        registry: WorkflowRegistry,
        repository: WorkflowRepositoryProtocol,
        hooks: WorkflowHooks,
        **kwargs: Any,
    ) -> None:
        super().__init__(**kwargs)
        self._registry = registry
        self._repository = repository
        self._hooks = hooks

    @property
    def hooks(self) -> WorkflowHooks:
        return self._hooks

    def table(self, domain: WorkflowDomain) -> TransitionTable:
        return self._registry.table_for(domain)

    async def load(self, domain: WorkflowDomain, entity_id: str) -> WorkflowRecord:
        """Read a record.

        Raises:
            EntityNotFoundError: If the entity has no workflow state.
        """
        record = await self._bounded(
            "get_workflow", self._repository.get(domain, entity_id)
        )
        if record is None:
            raise EntityNotFoundError(domain.value, entity_id)
        return record

    async def find(self, domain: WorkflowDomain, entity_id: str) -> WorkflowRecord | None:
        return await self._bounded(
            "get_workflow", self._repository.get(domain, entity_id)
        )

    async def start(self, domain: WorkflowDomain, entity_id: str) -> WorkflowRecord:
        """Create a record in the domain's initial state.

        Raises:
            ValidationError: If the entity already has workflow state.
        """
        record = WorkflowRecord(
            entity_id=entity_id,
            domain=domain,
            state=self.table(domain).initial_state,
        )
        try:
            await self._bounded("create_workflow", self._repository.create(record))
        except ValueError as exc:
            raise ValidationError(str(exc), field="entity_id") from exc
        return record

    async def apply(
        self,
        domain: WorkflowDomain,
        entity_id: str,
        to_state: Enum | str,
        actor: Actor,
        *,
        reason: str | None = None,
        metadata: Mapping[str, Any] | None = None,
        validators: Sequence[TransitionValidator] = (),
        record: WorkflowRecord | None = None,
    ) -> AppliedTransition:
        """Validate and commit one transition.

        Args:
            domain: Workflow domain.
            entity_id: Entity to transition.
            to_state: Target state (enum member or its value).
            actor: Caller identity; its role is checked against the table.
            reason: Free-text reason stored on the transition.
            metadata: Decision details stored on the transition.
            validators: Extra checks, called with (record, target state),
                that raise a LandRegistryError to veto the move.
            record: Record the caller already read. The write is conditioned
                on its state, so checks made against it stay valid.

        Raises:
            IllegalTransitionError: If the move is not in the table.
            RolePermissionError: If the role may not choose the target.
            ConcurrentModificationError: If the state changed since the read.
        """
        if record is None:
            record = await self.load(domain, entity_id)
        table = self.table(domain)
        current, target = require_valid_transition(record.state, to_state, table)
        require_role_permission(actor.role, target, table)
        for validator in validators:
            validator(record, target)

        transition = StateTransition.create(
            from_state=current,
            to_state=target,
            actor_id=actor.actor_id,
            timestamp=self._time.now(),
            reason=reason,
            metadata=dict(metadata or {}),
        )
        updated = await self._bounded(
            "apply_transition",
            self._repository.apply_transition(domain, entity_id, current, transition),
        )
        self._metrics.record_transition(domain.value, current.value, target.value)
        self._log_operation("apply", domain=domain.value, entity_id=entity_id).info(
            "transition_applied",
            from_state=current.value,
            to_state=target.value,
            actor_id=actor.actor_id,
            version=updated.version,
        )
        return AppliedTransition(record=updated, transition=transition)

    async def after_commit(
        self,
        domain: WorkflowDomain,
        entity_id: str,
        transition: StateTransition,
        *,
        notifications: Iterable[Notification] = (),
        events: Iterable[tuple[str, Mapping[str, Any]]] = (),
    ) -> SideEffects:
        """Audit the transition, then notify parties and publish events."""
        warnings = await self._hooks.audit_transition(domain.value, entity_id, transition)
        outcomes = list(await self._hooks.notify(list(notifications)))
        for event_type, payload in events:
            outcomes.extend(
                await self._hooks.emit_event(
                    event_type,
                    entity_type=domain.value,
                    entity_id=entity_id,
                    payload=payload,
                )
            )
        return SideEffects(warnings=tuple(warnings), notifications=tuple(outcomes))

    async def transition(
        self,
        domain: WorkflowDomain,
        entity_id: str,
        to_state: Enum | str,
        actor: Actor,
        reason: str | None = None,
        metadata: Mapping[str, Any] | None = None,
    ) -> WorkflowResult:
        """Generic guarded transition for any domain."""

        async def _run() -> WorkflowResult:
            applied = await self.apply(
                domain, entity_id, to_state, actor, reason=reason, metadata=metadata
            )
            effects = await self.after_commit(domain, entity_id, applied.transition)
            return WorkflowResult.ok(
                warnings=effects.warnings,
                notifications=effects.notifications,
                entity_id=entity_id,
                previous_state=applied.transition.from_state.value,
                new_state=applied.record.state.value,
                transition_id=str(applied.transition.transition_id),
            )

        return await self._execute(
            "transition", _run, domain=domain.value, entity_id=entity_id
        )

    async def get_available_transitions(
        self,
        domain: WorkflowDomain,
        entity_id: str,
        role: str,
    ) -> WorkflowResult:
        """List target states the role may choose from the current state."""

        async def _run() -> WorkflowResult:
            record = await self.load(domain, entity_id)
            table = self.table(domain)
            current = coerce_state(record.state, table)
            targets = available_transitions(current, role, table)
            return WorkflowResult.ok(
                entity_id=entity_id,
                current_state=current.value,
                available_transitions=sorted(s.value for s in targets),
                is_final=current in table.final_states,
            )

        return await self._execute(
            "get_available_transitions", _run, domain=domain.value, entity_id=entity_id
        )

    async def get_history(self, domain: WorkflowDomain, entity_id: str) -> WorkflowResult:
        async def _run() -> WorkflowResult:
            record = await self.load(domain, entity_id)
            return WorkflowResult.ok(
                entity_id=entity_id,
                current_state=record.state.value,
                version=record.version,
                history=[t.to_dict() for t in record.history],
            )

        return await self._execute(
            "get_history", _run, domain=domain.value, entity_id=entity_id
        )
