"""Dispute workflow: pending -> assigned -> hearing_scheduled -> resolved."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, TypeVar

from land_registry.application.ports.case_repository import CaseRepositoryProtocol
from land_registry.application.ports.registry_repository import (
    RegistryRepositoryProtocol,
)
from land_registry.application.services.case_workflow import (
    CaseWorkflowService,
    raise_if_invalid,
    validation_result,
)
from land_registry.domain.errors import EntityNotFoundError, ValidationError
from land_registry.domain.models.actor import Actor
from land_registry.domain.models.amendment import Amendment
from land_registry.domain.models.dispute import (
    Dispute,
    DisputeAuthority,
    DisputeType,
    Hearing,
    ResolutionType,
)
from land_registry.domain.models.workflow_result import WorkflowResult
from land_registry.domain.models.workflow_state import DisputeStatus, WorkflowDomain
from land_registry.domain.services.case_rules import validate_dispute

E = TypeVar("E", bound=Enum)


def parse_choice(enum_type: type[E], value: E | str, field: str) -> E:
    if isinstance(value, enum_type):
        return value
    try:
        return enum_type(value)
    except ValueError:
        allowed = ", ".join(member.value for member in enum_type)
        raise ValidationError(
            f"Invalid {field} '{value}'. Must be one of: {allowed}", field=field
        ) from None


class DisputeService(CaseWorkflowService[Dispute]):
    """Lodges disputes and carries them through hearing to resolution."""

    domain = WorkflowDomain.DISPUTE
    entity_type = "dispute"

    def __init__(
        self,
        *,
        registry: RegistryRepositoryProtocol,
        amendments: CaseRepositoryProtocol[Amendment] | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(**kwargs)
        self._registry = registry
        self._amendments = amendments

    async def _check_references(
        self,
        title_id: str | None,
        scheme_id: str | None,
        amendment_id: str | None,
    ) -> None:
        if title_id and (
            await self._bounded("get_title", self._registry.get_title(title_id)) is None
        ):
            raise EntityNotFoundError("title", title_id)
        if scheme_id and (
            await self._bounded("get_scheme", self._registry.get_scheme(scheme_id)) is None
        ):
            raise EntityNotFoundError("scheme", scheme_id)
        if (
            amendment_id
            and self._amendments is not None
            and await self._bounded("get_amendment", self._amendments.get(amendment_id))
            is None
        ):
            raise EntityNotFoundError("amendment", amendment_id)

    async def validate_dispute_request(
        self,
        complainant_name: str,
        description: str,
        title_id: str | None = None,
        scheme_id: str | None = None,
        amendment_id: str | None = None,
    ) -> WorkflowResult:
        async def _run() -> WorkflowResult:
            await self._check_references(title_id, scheme_id, amendment_id)
            return validation_result(
                validate_dispute(
                    complainant_name=complainant_name,
                    description=description,
                    title_id=title_id,
                    scheme_id=scheme_id,
                    amendment_id=amendment_id,
                    min_description_length=self._config.min_description_length,
                )
            )

        return await self._execute("validate_dispute", _run)

    async def lodge_dispute(
        self,
        dispute_id: str,
        dispute_type: DisputeType | str,
        complainant_name: str,
        description: str,
        actor: Actor,
        title_id: str | None = None,
        scheme_id: str | None = None,
        amendment_id: str | None = None,
        respondent_name: str | None = None,
    ) -> WorkflowResult:
        """Lodge a dispute referencing at least one title, scheme or amendment."""

        async def _run() -> WorkflowResult:
            kind = parse_choice(DisputeType, dispute_type, "dispute_type")
            validation = validate_dispute(
                complainant_name=complainant_name,
                description=description,
                title_id=title_id,
                scheme_id=scheme_id,
                amendment_id=amendment_id,
                min_description_length=self._config.min_description_length,
            )
            raise_if_invalid(validation, "Dispute")
            await self._check_references(title_id, scheme_id, amendment_id)

            dispute = Dispute(
                dispute_id=dispute_id,
                dispute_type=kind,
                complainant_name=complainant_name.strip(),
                description=description.strip(),
                title_id=title_id,
                scheme_id=scheme_id,
                amendment_id=amendment_id,
                respondent_name=respondent_name,
                lodged_by=actor.actor_id,
                lodged_at=self._time.now(),
            )
            await self._create(dispute)
            warnings, _ = await self._after(
                dispute_id,
                actor,
                action="dispute_lodged",
                new_values={
                    "status": dispute.status.value,
                    "dispute_type": kind.value,
                    "title_id": title_id,
                    "scheme_id": scheme_id,
                    "amendment_id": amendment_id,
                },
            )
            return WorkflowResult.ok(
                warnings=[*validation.warnings, *warnings],
                dispute_id=dispute_id,
                status=dispute.status.value,
            )

        return await self._execute("lodge_dispute", _run, entity_id=dispute_id)

    async def assign_dispute(
        self,
        dispute_id: str,
        actor: Actor,
        assignee_id: str,
        authority: DisputeAuthority | str,
    ) -> WorkflowResult:
        async def _run() -> WorkflowResult:
            body = parse_choice(DisputeAuthority, authority, "authority")
            if not assignee_id:
                raise ValidationError("An assignee is required", field="assignee_id")
            dispute = await self._require(dispute_id)
            updated = dispute.with_status(
                DisputeStatus.ASSIGNED, assigned_to=assignee_id, authority=body
            )
            await self._move(dispute, updated, actor)
            warnings, outcomes = await self._after(
                dispute_id,
                actor,
                action="dispute_assigned",
                old_values={"status": dispute.status.value},
                new_values={
                    "status": updated.status.value,
                    "assigned_to": assignee_id,
                    "authority": body.value,
                },
                notifications=self._notice(
                    dispute_id,
                    assignee_id,
                    "dispute_officer",
                    "dispute.assigned",
                    "Dispute assigned",
                    f"Dispute {dispute_id} has been assigned to you "
                    f"({body.value})",
                    authority=body.value,
                ),
            )
            return WorkflowResult.ok(
                warnings=warnings,
                notifications=outcomes,
                dispute_id=dispute_id,
                status=updated.status.value,
                assigned_to=assignee_id,
                authority=body.value,
            )

        return await self._execute("assign_dispute", _run, entity_id=dispute_id)

    async def schedule_dispute_hearing(
        self,
        dispute_id: str,
        actor: Actor,
        hearing_date: datetime,
        location: str,
        officer_id: str | None = None,
    ) -> WorkflowResult:
        """Schedule a hearing; the officer defaults to the caller."""

        async def _run() -> WorkflowResult:
            if not location.strip():
                raise ValidationError("Hearing location is required", field="location")
            dispute = await self._require(dispute_id)
            warnings: list[str] = []
            if hearing_date < self._time.now():
                warnings.append("Hearing date is in the past")
            hearing = Hearing(
                hearing_date=hearing_date,
                location=location.strip(),
                officer_id=officer_id or actor.actor_id,
            )
            updated = dispute.with_status(DisputeStatus.HEARING_SCHEDULED, hearing=hearing)
            await self._move(dispute, updated, actor)
            audit_warnings, outcomes = await self._after(
                dispute_id,
                actor,
                action="dispute_hearing_scheduled",
                old_values={"status": dispute.status.value},
                new_values={
                    "status": updated.status.value,
                    "hearing_date": hearing_date.isoformat(),
                    "location": hearing.location,
                    "officer_id": hearing.officer_id,
                },
                notifications=self._notice(
                    dispute_id,
                    dispute.lodged_by,
                    "complainant",
                    "dispute.hearing_scheduled",
                    "Dispute hearing scheduled",
                    f"A hearing for dispute {dispute_id} is scheduled for "
                    f"{hearing_date.isoformat()} at {hearing.location}",
                    hearing_date=hearing_date.isoformat(),
                    location=hearing.location,
                ),
            )
            return WorkflowResult.ok(
                warnings=[*warnings, *audit_warnings],
                notifications=outcomes,
                dispute_id=dispute_id,
                status=updated.status.value,
                hearing_date=hearing_date.isoformat(),
                location=hearing.location,
                officer_id=hearing.officer_id,
            )

        return await self._execute(
            "schedule_dispute_hearing", _run, entity_id=dispute_id
        )

    async def resolve_dispute(
        self,
        dispute_id: str,
        actor: Actor,
        resolution_type: ResolutionType | str,
        resolution: str,
        resolution_document_id: str | None = None,
    ) -> WorkflowResult:
        async def _run() -> WorkflowResult:
            outcome = parse_choice(ResolutionType, resolution_type, "resolution_type")
            if not (resolution and resolution.strip()):
                raise ValidationError("Resolution text is required", field="resolution")
            dispute = await self._require(dispute_id)
            updated = dispute.with_status(
                DisputeStatus.RESOLVED,
                resolution_type=outcome,
                resolution=resolution.strip(),
                resolution_document_id=resolution_document_id,
                resolved_by=actor.actor_id,
                resolved_at=self._time.now(),
            )
            await self._move(dispute, updated, actor)
            payload = {
                "resolution_type": outcome.value,
                "title_id": dispute.title_id,
                "scheme_id": dispute.scheme_id,
                "amendment_id": dispute.amendment_id,
            }
            warnings, outcomes = await self._after(
                dispute_id,
                actor,
                action="dispute_resolved",
                old_values={"status": dispute.status.value},
                new_values={
                    "status": updated.status.value,
                    "resolution": updated.resolution,
                    "resolution_document_id": resolution_document_id,
                    **payload,
                },
                notifications=self._notice(
                    dispute_id,
                    dispute.lodged_by,
                    "complainant",
                    "dispute.resolved",
                    "Dispute resolved",
                    f"Dispute {dispute_id} was resolved: {outcome.value}",
                    resolution_type=outcome.value,
                ),
            )
            return WorkflowResult.ok(
                warnings=warnings,
                notifications=outcomes,
                dispute_id=dispute_id,
                status=updated.status.value,
                resolution_type=outcome.value,
            )

        return await self._execute("resolve_dispute", _run, entity_id=dispute_id)
