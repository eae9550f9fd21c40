"""Objections to planning schemes, gated by the statutory window.

The window opens when a scheme is first submitted for planning review
and is inclusive at both ends. Outside it no objection can be lodged,
whatever the caller's role.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from land_registry.application.ports.registry_repository import (
    RegistryRepositoryProtocol,
)
from land_registry.application.ports.workflow_repository import (
    WorkflowRepositoryProtocol,
)
from land_registry.application.services.case_workflow import (
    CaseWorkflowService,
    raise_if_invalid,
)
from land_registry.application.services.dispute_service import parse_choice
from land_registry.domain.errors import (
    EntityNotFoundError,
    ValidationError,
    WindowClosedError,
)
from land_registry.domain.models.actor import Actor
from land_registry.domain.models.dispute import Hearing
from land_registry.domain.models.objection import (
    Objection,
    ObjectionOutcome,
    ObjectionType,
)
from land_registry.domain.models.objection_window import ObjectionWindow
from land_registry.domain.models.workflow_result import WorkflowResult
from land_registry.domain.models.workflow_state import (
    ObjectionStatus,
    PlanningState,
    WorkflowDomain,
)
from land_registry.domain.services.case_rules import validate_objection


def window_fields(window: ObjectionWindow, now: datetime) -> dict[str, Any]:
    return {
        "window_start": window.window_start.isoformat(),
        "window_end": window.window_end.isoformat(),
        "days_remaining": window.days_remaining(now),
    }


class ObjectionService(CaseWorkflowService[Objection]):
    """Lodges, schedules and resolves objections against planning schemes."""

    domain = WorkflowDomain.OBJECTION
    entity_type = "objection"

    def __init__(
        self,
        *,
        registry: RegistryRepositoryProtocol,
        workflows: WorkflowRepositoryProtocol,
        **kwargs: Any,
    ) -> None:
        super().__init__(**kwargs)
        self._registry = registry
        self._workflows = workflows

    async def _window(self, plan_id: str) -> ObjectionWindow:
        scheme = await self._bounded("get_scheme", self._registry.get_scheme(plan_id))
        if scheme is None:
            raise EntityNotFoundError("scheme", plan_id)
        if scheme.objection_window is None:
            raise EntityNotFoundError("objection window", plan_id)
        return scheme.objection_window

    async def is_within_objection_window(self, plan_id: str) -> WorkflowResult:
        """Report whether objections are currently accepted for ``plan_id``.

        A scheme that has never been submitted has no window; that is
        reported as a failure with ``NOT_FOUND``.
        """

        async def _run() -> WorkflowResult:
            window = await self._window(plan_id)
            now = self._time.now()
            return WorkflowResult.ok(
                plan_id=plan_id,
                is_within_window=window.contains(now),
                **window_fields(window, now),
            )

        return await self._execute("is_within_objection_window", _run, plan_id=plan_id)

    async def submit_objection(
        self,
        objection_id: str,
        plan_id: str,
        objection_type: ObjectionType | str,
        objector_name: str,
        description: str,
        actor: Actor,
        objector_contact: str | None = None,
    ) -> WorkflowResult:
        """Lodge an objection while the plan's window is open.

        Raises (reported as failures):
            WindowClosedError: Before the window opens or after it closes.
        """

        async def _run() -> WorkflowResult:
            kind = parse_choice(ObjectionType, objection_type, "objection_type")
            window = await self._window(plan_id)
            now = self._time.now()
            if not window.contains(now):
                raise WindowClosedError(
                    plan_id,
                    window.days_remaining(now),
                    window.window_start,
                    window.window_end,
                    not_yet_open=now < window.window_start,
                )
            planning = await self._bounded(
                "get_workflow", self._workflows.get(WorkflowDomain.PLANNING, plan_id)
            )
            plan_state = planning.state if planning is not None else PlanningState.DRAFT
            validation = validate_objection(
                objector_name=objector_name,
                description=description,
                window=window,
                now=now,
                plan_state=plan_state,
                closing_soon_days=self._config.closing_soon_days,
                min_description_length=self._config.min_description_length,
            )
            raise_if_invalid(validation, "Objection")

            objection = Objection(
                objection_id=objection_id,
                plan_id=plan_id,
                objection_type=kind,
                objector_name=objector_name.strip(),
                description=description.strip(),
                objector_contact=objector_contact,
                lodged_by=actor.actor_id,
                lodged_at=now,
            )
            await self._create(objection)
            warnings, _ = await self._after(
                objection_id,
                actor,
                action="objection_submitted",
                new_values={
                    "status": objection.status.value,
                    "plan_id": plan_id,
                    "objection_type": kind.value,
                },
            )
            return WorkflowResult.ok(
                warnings=[*validation.warnings, *warnings],
                objection_id=objection_id,
                plan_id=plan_id,
                status=objection.status.value,
                **window_fields(window, now),
            )

        return await self._execute("submit_objection", _run, entity_id=objection_id)

    async def schedule_objection_hearing(
        self,
        objection_id: str,
        actor: Actor,
        hearing_date: datetime,
        location: str,
        officer_id: str | None = None,
    ) -> WorkflowResult:
        async def _run() -> WorkflowResult:
            if not location.strip():
                raise ValidationError("Hearing location is required", field="location")
            objection = await self._require(objection_id)
            hearing = Hearing(
                hearing_date=hearing_date,
                location=location.strip(),
                officer_id=officer_id or actor.actor_id,
            )
            updated = objection.with_status(
                ObjectionStatus.HEARING_SCHEDULED, hearing=hearing
            )
            await self._move(objection, updated, actor)
            warnings, outcomes = await self._after(
                objection_id,
                actor,
                action="objection_hearing_scheduled",
                old_values={"status": objection.status.value},
                new_values={
                    "status": updated.status.value,
                    "hearing_date": hearing_date.isoformat(),
                    "location": hearing.location,
                },
                notifications=self._notice(
                    objection_id,
                    objection.lodged_by,
                    "objector",
                    "objection.hearing_scheduled",
                    "Objection hearing scheduled",
                    f"A hearing for your objection to plan {objection.plan_id} is "
                    f"scheduled for {hearing_date.isoformat()} at {hearing.location}",
                    plan_id=objection.plan_id,
                ),
            )
            return WorkflowResult.ok(
                warnings=warnings,
                notifications=outcomes,
                objection_id=objection_id,
                status=updated.status.value,
                hearing_date=hearing_date.isoformat(),
                location=hearing.location,
                officer_id=hearing.officer_id,
            )

        return await self._execute(
            "schedule_objection_hearing", _run, entity_id=objection_id
        )

    async def resolve_objection(
        self,
        objection_id: str,
        actor: Actor,
        outcome: ObjectionOutcome | str,
        resolution: str,
    ) -> WorkflowResult:
        async def _run() -> WorkflowResult:
            result = parse_choice(ObjectionOutcome, outcome, "outcome")
            if not (resolution and resolution.strip()):
                raise ValidationError("Resolution text is required", field="resolution")
            objection = await self._require(objection_id)
            updated = objection.with_status(
                ObjectionStatus.RESOLVED,
                outcome=result,
                resolution=resolution.strip(),
                resolved_by=actor.actor_id,
                resolved_at=self._time.now(),
            )
            await self._move(objection, updated, actor)
            warnings, outcomes = await self._after(
                objection_id,
                actor,
                action="objection_resolved",
                old_values={"status": objection.status.value},
                new_values={
                    "status": updated.status.value,
                    "outcome": result.value,
                    "resolution": updated.resolution,
                },
                notifications=self._notice(
                    objection_id,
                    objection.lodged_by,
                    "objector",
                    "objection.resolved",
                    "Objection resolved",
                    f"Your objection to plan {objection.plan_id} was {result.value}",
                    plan_id=objection.plan_id,
                    outcome=result.value,
                ),
            )
            return WorkflowResult.ok(
                warnings=warnings,
                notifications=outcomes,
                objection_id=objection_id,
                status=updated.status.value,
                outcome=result.value,
            )

        return await self._execute("resolve_objection", _run, entity_id=objection_id)

    async def list_objections(self, plan_id: str) -> WorkflowResult:
        async def _run() -> WorkflowResult:
            objections = await self._bounded(
                "list_objections", self._cases.find("plan_id", plan_id)
            )
            return WorkflowResult.ok(
                plan_id=plan_id,
                objections=[
                    {
                        "objection_id": o.objection_id,
                        "objection_type": o.objection_type.value,
                        "objector_name": o.objector_name,
                        "status": o.status.value,
                        "outcome": o.outcome.value if o.outcome else None,
                    }
                    for o in objections
                ],
            )

        return await self._execute("list_objections", _run, plan_id=plan_id)
