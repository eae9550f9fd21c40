"""Scheme amendment workflow.

submitted -> approved | rejected; approved -> processed.

Processing is the only step that mutates the scheme: it cancels replaced
sections, adds new ones and recalculates quotas in one registry write.
It is idempotent: processing an already processed amendment reports
success without touching the scheme again.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from land_registry.application.ports.registry_repository import (
    RegistryRepositoryProtocol,
)
from land_registry.application.services.case_workflow import (
    CaseWorkflowService,
    raise_if_invalid,
    validation_result,
)
from land_registry.application.services.quota_service import (
    default_common_property_area,
)
from land_registry.domain.errors import (
    ConcurrentModificationError,
    EntityNotFoundError,
    MissingReasonError,
    ValidationError,
)
from land_registry.domain.models.actor import Actor
from land_registry.domain.models.amendment import (
    Amendment,
    AmendmentType,
    NewSectionSpec,
)
from land_registry.domain.models.registry import QuotaHistoryEntry, Scheme, Section
from land_registry.domain.models.workflow_result import WorkflowResult
from land_registry.domain.models.workflow_state import CaseStatus, WorkflowDomain
from land_registry.domain.services.case_rules import (
    CaseValidation,
    projected_sections,
    registration_number,
    validate_amendment,
)
from land_registry.domain.services.quota_calculator import (
    calculate_participation_quotas,
)

REGISTRATION_PREFIX = "AMEND"

_STRUCTURAL_TYPES = frozenset(
    {AmendmentType.EXTENSION, AmendmentType.SUBDIVISION, AmendmentType.CONSOLIDATION}
)


def parse_amendment_type(value: AmendmentType | str) -> AmendmentType:
    if isinstance(value, AmendmentType):
        return value
    try:
        return AmendmentType(value)
    except ValueError:
        raise ValidationError(
            f"Invalid amendment type '{value}'", field="amendment_type"
        ) from None


class AmendmentService(CaseWorkflowService[Amendment]):
    """Validates, decides and processes scheme amendments."""

    domain = WorkflowDomain.AMENDMENT
    entity_type = "amendment"

    def __init__(self, *, registry: RegistryRepositoryProtocol, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self._registry = registry

    async def _require_scheme(self, scheme_id: str) -> Scheme:
        scheme = await self._bounded("get_scheme", self._registry.get_scheme(scheme_id))
        if scheme is None:
            raise EntityNotFoundError("scheme", scheme_id)
        return scheme

    async def _validate(
        self,
        scheme_id: str,
        amendment_type: AmendmentType,
        affected_sections: Sequence[str],
        new_sections: Sequence[NewSectionSpec],
        survey_plan_id: str | None,
    ) -> CaseValidation:
        await self._require_scheme(scheme_id)
        sections = await self._bounded(
            "list_sections", self._registry.list_sections(scheme_id)
        )
        return validate_amendment(
            amendment_type,
            affected_sections,
            new_sections,
            sections,
            has_survey_plan=survey_plan_id is not None,
            precision=self._config.quota_precision,
            topology_options=self._config.topology_options,
        )

    async def validate_amendment_submission(
        self,
        scheme_id: str,
        amendment_type: AmendmentType | str,
        affected_sections: Sequence[str],
        new_sections: Sequence[NewSectionSpec] = (),
        survey_plan_id: str | None = None,
    ) -> WorkflowResult:
        """Check an amendment without persisting anything."""

        async def _run() -> WorkflowResult:
            validation = await self._validate(
                scheme_id,
                parse_amendment_type(amendment_type),
                affected_sections,
                new_sections,
                survey_plan_id,
            )
            return validation_result(validation, scheme_id=scheme_id)

        return await self._execute(
            "validate_amendment_submission", _run, scheme_id=scheme_id
        )

    async def submit_amendment(
        self,
        amendment_id: str,
        scheme_id: str,
        amendment_type: AmendmentType | str,
        description: str,
        affected_sections: Sequence[str],
        actor: Actor,
        new_sections: Sequence[NewSectionSpec] = (),
        survey_plan_id: str | None = None,
    ) -> WorkflowResult:
        """Lodge an amendment against an approved scheme."""

        async def _run() -> WorkflowResult:
            kind = parse_amendment_type(amendment_type)
            scheme = await self._require_scheme(scheme_id)
            if scheme.approval_number is None:
                raise ValidationError(
                    f"Scheme {scheme_id} must be approved before it can be amended",
                    field="scheme_id",
                )
            if not description.strip():
                raise ValidationError("Amendment description is required", field="description")
            validation = await self._validate(
                scheme_id, kind, affected_sections, new_sections, survey_plan_id
            )
            raise_if_invalid(validation, "Amendment")

            amendment = Amendment(
                amendment_id=amendment_id,
                scheme_id=scheme_id,
                amendment_type=kind,
                description=description,
                affected_sections=tuple(affected_sections),
                new_sections=tuple(new_sections),
                survey_plan_id=survey_plan_id,
                submitted_by=actor.actor_id,
                submitted_at=self._time.now(),
            )
            await self._create(amendment)
            warnings, _ = await self._after(
                amendment_id,
                actor,
                action="amendment_submitted",
                new_values={
                    "status": amendment.status.value,
                    "scheme_id": scheme_id,
                    "amendment_type": kind.value,
                },
            )
            return WorkflowResult.ok(
                warnings=[*validation.warnings, *warnings],
                amendment_id=amendment_id,
                status=amendment.status.value,
                geometry_valid=validation.geometry_valid,
                quota_valid=validation.quota_valid,
            )

        return await self._execute("submit_amendment", _run, entity_id=amendment_id)

    async def _decide(
        self,
        amendment_id: str,
        actor: Actor,
        status: CaseStatus,
        notes: str | None,
    ) -> WorkflowResult:
        amendment = await self._require(amendment_id)
        updated = amendment.with_status(
            status,
            decided_by=actor.actor_id,
            decided_at=self._time.now(),
            decision_notes=notes,
        )
        stored = await self._move(amendment, updated, actor)
        warnings, outcomes = await self._after(
            amendment_id,
            actor,
            action=f"amendment_{status.value}",
            old_values={"status": amendment.status.value},
            new_values={"status": status.value, "notes": notes},
            notifications=self._notice(
                amendment_id,
                amendment.submitted_by,
                "applicant",
                f"amendment.{status.value}",
                f"Amendment {status.value}",
                f"Amendment {amendment_id} was {status.value}"
                + (f": {notes}" if notes else ""),
                notes=notes,
            ),
        )
        return WorkflowResult.ok(
            warnings=warnings,
            notifications=outcomes,
            amendment_id=amendment_id,
            status=stored.status.value,
        )

    async def approve_amendment(
        self, amendment_id: str, actor: Actor, notes: str | None = None
    ) -> WorkflowResult:
        return await self._execute(
            "approve_amendment",
            lambda: self._decide(amendment_id, actor, CaseStatus.APPROVED, notes),
            entity_id=amendment_id,
        )

    async def reject_amendment(
        self, amendment_id: str, actor: Actor, reason: str | None
    ) -> WorkflowResult:
        """Reject an amendment; a reason is mandatory."""

        async def _run() -> WorkflowResult:
            if not (reason and reason.strip()):
                raise MissingReasonError("reject")
            return await self._decide(amendment_id, actor, CaseStatus.REJECTED, reason)

        return await self._execute("reject_amendment", _run, entity_id=amendment_id)

    def _section_changes(
        self,
        amendment: Amendment,
        sections: Sequence[Section],
    ) -> tuple[list[str], list[Section]]:
        """Sections to cancel and to add when the amendment is processed."""
        if amendment.amendment_type not in _STRUCTURAL_TYPES:
            return [], []
        cancelled: list[str] = []
        if amendment.amendment_type is not AmendmentType.EXTENSION:
            cancelled = list(amendment.affected_sections)
        areas = {
            s.section_number: s.area
            for s in projected_sections(
                amendment.amendment_type,
                amendment.affected_sections,
                amendment.new_sections,
                sections,
            )
        }
        added = [
            Section(
                scheme_id=amendment.scheme_id,
                section_number=spec.section_number,
                area=areas.get(spec.section_number, spec.area),
                floor_level=spec.floor_level,
                section_type=spec.section_type,
                boundary=spec.boundary,
            )
            for spec in amendment.new_sections
        ]
        return cancelled, added

    async def _apply_to_scheme(
        self, amendment: Amendment, actor: Actor
    ) -> tuple[dict[str, Any], list[QuotaHistoryEntry]]:
        scheme = await self._require_scheme(amendment.scheme_id)
        sections = await self._bounded(
            "list_sections", self._registry.list_sections(amendment.scheme_id)
        )
        cancelled, added = self._section_changes(amendment, sections)
        if not cancelled and not added:
            return {"sections_cancelled": [], "sections_added": []}, []

        remaining = [s for s in sections if s.section_number not in cancelled]
        projected = remaining + added
        calculation = calculate_participation_quotas(
            projected_sections(
                amendment.amendment_type,
                amendment.affected_sections,
                amendment.new_sections,
                sections,
            ),
            common_property_area=default_common_property_area(scheme, projected),
            precision=self._config.quota_precision,
        )
        if not calculation.is_valid:
            raise ValidationError(
                "Quota recalculation failed", errors=calculation.errors
            )
        await self._bounded(
            "apply_section_changes",
            self._registry.apply_section_changes(
                amendment.scheme_id,
                cancelled,
                added,
                {
                    q.section_number: (q.participation_quota, q.common_area_share)
                    for q in calculation.quotas
                },
            ),
        )
        previous = {s.section_number: s.participation_quota for s in sections}
        now = self._time.now()
        history = [
            QuotaHistoryEntry.create(
                scheme_id=amendment.scheme_id,
                section_number=q.section_number,
                old_quota=previous.get(q.section_number),
                new_quota=q.participation_quota,
                reason=f"amendment:{amendment.amendment_id}",
                changed_by=actor.actor_id,
                changed_at=now,
            )
            for q in calculation.quotas
            if previous.get(q.section_number) != q.participation_quota
        ]
        return {
            "sections_cancelled": cancelled,
            "sections_added": [s.section_number for s in added],
            "quotas": calculation.quota_map(),
        }, history

    async def process_amendment(self, amendment_id: str, actor: Actor) -> WorkflowResult:
        """Apply an approved amendment to the scheme (idempotent)."""

        async def _run() -> WorkflowResult:
            amendment = await self._require(amendment_id)
            if amendment.status is CaseStatus.PROCESSED:
                return self._already_processed(amendment)

            self._check(amendment, CaseStatus.PROCESSED, actor)
            now = self._time.now()
            claimed = amendment.with_status(
                CaseStatus.PROCESSED,
                processed_at=now,
                registration_number=registration_number(
                    REGISTRATION_PREFIX, now, amendment_id
                ),
            )
            try:
                await self._move(amendment, claimed, actor)
            except ConcurrentModificationError:
                current = await self._require(amendment_id)
                if current.status is CaseStatus.PROCESSED:
                    return self._already_processed(current)
                raise

            try:
                changes, history = await self._apply_to_scheme(amendment, actor)
            except Exception:
                # Release the claim so the amendment can be processed again
                await self._bounded(
                    "release_claim",
                    self._cases.update_cas(amendment_id, CaseStatus.PROCESSED, amendment),
                )
                raise
            if history:
                await self._bounded(
                    "append_quota_history", self._registry.append_quota_history(history)
                )

            payload = {
                "scheme_id": amendment.scheme_id,
                "registration_number": claimed.registration_number,
                **changes,
            }
            warnings, outcomes = await self._after(
                amendment_id,
                actor,
                action="amendment_processed",
                old_values={"status": amendment.status.value},
                new_values={"status": claimed.status.value, **payload},
                notifications=self._notice(
                    amendment_id,
                    amendment.submitted_by,
                    "applicant",
                    "amendment.processed",
                    "Amendment registered",
                    f"Amendment {amendment_id} registered as "
                    f"{claimed.registration_number}",
                    registration_number=claimed.registration_number,
                ),
                event=("amendment.processed", payload),
            )
            return WorkflowResult.ok(
                warnings=warnings,
                notifications=outcomes,
                amendment_id=amendment_id,
                status=claimed.status.value,
                already_processed=False,
                **payload,
            )

        return await self._execute("process_amendment", _run, entity_id=amendment_id)

    def _already_processed(self, amendment: Amendment) -> WorkflowResult:
        return WorkflowResult.ok(
            amendment_id=amendment.amendment_id,
            status=amendment.status.value,
            already_processed=True,
            scheme_id=amendment.scheme_id,
            registration_number=amendment.registration_number,
        )

    async def list_amendments(self, scheme_id: str) -> WorkflowResult:
        async def _run() -> WorkflowResult:
            amendments = await self._bounded(
                "list_amendments", self._cases.find("scheme_id", scheme_id)
            )
            return WorkflowResult.ok(
                scheme_id=scheme_id,
                amendments=[
                    {
                        "amendment_id": a.amendment_id,
                        "amendment_type": a.amendment_type.value,
                        "status": a.status.value,
                        "registration_number": a.registration_number,
                    }
                    for a in amendments
                ],
            )

        return await self._execute("list_amendments", _run, scheme_id=scheme_id)
