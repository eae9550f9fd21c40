"""Deed examination and registration workflow.

A conveyancer submits a deed; a deeds examiner examines it against the
examination checklist and decides. Incomplete checklist items become
defects, and defects are routed to the party who must correct them
(planner, surveyor or conveyancer), one notification per party.

An approved deed is registered by the registrar, which issues a
registration number ``DEED/<year>/<id8>``. Registering an already
registered deed is a no-op success.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import replace
from typing import Any

from land_registry.application.ports.registry_repository import (
    RegistryRepositoryProtocol,
)
from land_registry.application.services.review_workflow import (
    DecisionContext,
    DecisionEffects,
    ReviewWorkflowService,
)
from land_registry.application.services.workflow_engine import TransitionValidator
from land_registry.domain.errors import (
    ConcurrentModificationError,
    EntityNotFoundError,
    ValidationError,
)
from land_registry.domain.models.actor import Actor
from land_registry.domain.models.checklist import (
    DEED_EXAMINATION_CHECKLIST,
    ChecklistItem,
)
from land_registry.domain.models.defect import CorrectionParty, ExaminationDefect
from land_registry.domain.models.notification import Notification
from land_registry.domain.models.registry import DeedTitle
from land_registry.domain.models.review import ReviewDecision, ReviewType
from land_registry.domain.models.workflow_record import WorkflowRecord
from land_registry.domain.models.workflow_result import WorkflowResult
from land_registry.domain.models.workflow_state import DeedState, WorkflowDomain
from land_registry.domain.services.case_rules import registration_number
from land_registry.domain.services.checklist_rules import (
    categorize_defects,
    generate_defects_from_checklist,
    has_blocking_defects,
    route_defects,
)
from land_registry.domain.services.survey_verification import cross_validate
from land_registry.domain.services.transition_validator import (
    require_role_permission,
    require_valid_transition,
)

REGISTRATION_PREFIX = "DEED"


class DeedExaminationService(ReviewWorkflowService):
    """Drives deed titles through examination and registration."""

    domain = WorkflowDomain.DEED
    submitted_state = DeedState.SUBMITTED
    review_state = DeedState.UNDER_EXAMINATION
    withdrawn_state = DeedState.WITHDRAWN
    decision_states = {
        ReviewDecision.APPROVE: DeedState.APPROVED,
        ReviewDecision.REJECT: DeedState.REJECTED,
        ReviewDecision.REQUEST_REVISION: DeedState.REVISION_REQUESTED,
    }
    default_checklist = DEED_EXAMINATION_CHECKLIST
    default_review_type = ReviewType.EXAMINATION

    def __init__(self, *, registry: RegistryRepositoryProtocol, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self._registry = registry

    async def _require_title(self, title_id: str) -> DeedTitle:
        title = await self._bounded("get_title", self._registry.get_title(title_id))
        if title is None:
            raise EntityNotFoundError("title", title_id)
        return title

    async def create_title(self, title: DeedTitle, actor: Actor) -> WorkflowResult:
        """Register a draft deed for a section of an existing scheme."""

        async def _run() -> WorkflowResult:
            section = await self._bounded(
                "get_section",
                self._registry.get_section(title.scheme_id, title.section_number),
            )
            if section is None or not section.is_active:
                raise EntityNotFoundError(
                    "section", f"{title.scheme_id}/{title.section_number}"
                )
            if not title.holder_name.strip():
                raise ValidationError("Holder name is required", field="holder_name")
            record = await self._engine.start(self.domain, title.title_id)
            await self._bounded("save_title", self._registry.save_title(title))
            warnings = await self._engine.hooks.audit(
                entity_type=self.domain.value,
                entity_id=title.title_id,
                action="title_created",
                actor_id=actor.actor_id,
                new_values={
                    "scheme_id": title.scheme_id,
                    "section_number": title.section_number,
                    "holder_name": title.holder_name,
                },
            )
            return WorkflowResult.ok(
                warnings=warnings, title_id=title.title_id, status=record.state.value
            )

        return await self._execute("create_title", _run, entity_id=title.title_id)

    async def submit_title(self, title_id: str, actor: Actor) -> WorkflowResult:
        return await self._execute(
            "submit_title", lambda: self._submit(title_id, actor), entity_id=title_id
        )

    async def start_examination(
        self,
        title_id: str,
        actor: Actor,
        review_type: ReviewType | str | None = None,
    ) -> WorkflowResult:
        """Assign an examiner; a second call while examination runs is a no-op."""
        return await self._execute(
            "start_examination",
            lambda: self._start_review(title_id, actor, review_type),
            entity_id=title_id,
        )

    def _collect_defects(
        self,
        decision: ReviewDecision,
        checklist: tuple[ChecklistItem, ...],
        defects: tuple[ExaminationDefect, ...],
    ) -> tuple[ExaminationDefect, ...]:
        known = {d.defect_id for d in defects}
        generated = tuple(
            d for d in generate_defects_from_checklist(checklist) if d.defect_id not in known
        )
        return defects + generated

    def _decision_validators(self, context: DecisionContext) -> list[TransitionValidator]:
        def _no_blocking_defects(record: WorkflowRecord, target: Any) -> None:
            if context.decision is ReviewDecision.APPROVE and has_blocking_defects(
                context.defects
            ):
                blocking = [d.title for d in context.defects if d.is_blocking]
                raise ValidationError(
                    "Cannot approve a deed with blocking defects",
                    errors=blocking,
                )

        return [_no_blocking_defects]

    async def _recipients(self, title: DeedTitle) -> dict[CorrectionParty, str]:
        recipients = {CorrectionParty.CONVEYANCER: title.conveyancer_id}
        scheme = await self._bounded(
            "get_scheme", self._registry.get_scheme(title.scheme_id)
        )
        if scheme is not None:
            recipients[CorrectionParty.PLANNER] = scheme.planner_id
        if title.survey_plan_id:
            plan = await self._bounded(
                "get_survey_plan", self._registry.get_survey_plan(title.survey_plan_id)
            )
            if plan is not None:
                recipients[CorrectionParty.SURVEYOR] = plan.surveyor_id
        return recipients

    async def _on_decision(self, context: DecisionContext) -> DecisionEffects:
        title = await self._require_title(context.record.entity_id)
        effects = DecisionEffects()
        grouped = categorize_defects(context.defects)
        effects.data["defect_summary"] = {
            severity.value: len(items) for severity, items in grouped.items()
        }

        effects.notifications.append(
            Notification(
                recipient_id=title.conveyancer_id,
                party=CorrectionParty.CONVEYANCER.value,
                event_type=f"deed.{context.target.value}",
                subject=f"Deed examination: {context.decision.value}",
                message=(
                    f"Title {title.title_id} (section {title.section_number}) is now "
                    f"{context.target.value}"
                    + (f". Notes: {context.notes}" if context.notes else "")
                ),
                entity_type=self.domain.value,
                entity_id=title.title_id,
                payload={"decision": context.decision.value, "notes": context.notes},
            )
        )

        if context.decision is not ReviewDecision.APPROVE and context.defects:
            recipients = await self._recipients(title)
            routed = route_defects(context.defects)
            effects.data["routed_to"] = sorted(p.value for p in routed)
            for party, defects in routed.items():
                recipient = recipients.get(party)
                if recipient is None:
                    effects.warnings.append(
                        f"No {party.value} on record to receive "
                        f"{len(defects)} correction(s)"
                    )
                    continue
                effects.notifications.append(
                    Notification(
                        recipient_id=recipient,
                        party=party.value,
                        event_type="deed.correction_required",
                        subject=f"Corrections required for title {title.title_id}",
                        message="\n".join(
                            f"- {d.title}: {d.suggested_correction or d.description}"
                            for d in defects
                        ),
                        entity_type=self.domain.value,
                        entity_id=title.title_id,
                        payload={"defects": [d.to_dict() for d in defects]},
                    )
                )
        return effects

    async def submit_decision(
        self,
        title_id: str,
        actor: Actor,
        decision: ReviewDecision | str,
        notes: str | None = None,
        checklist: Sequence[ChecklistItem] | None = None,
        defects: Sequence[ExaminationDefect] | None = None,
    ) -> WorkflowResult:
        """Record the examiner's decision and route correction notices."""
        return await self._execute(
            "submit_decision",
            lambda: self._submit_decision(
                title_id, actor, decision, notes, checklist, defects
            ),
            entity_id=title_id,
        )

    async def register_title(self, title_id: str, actor: Actor) -> WorkflowResult:
        """Register an approved deed and issue its registration number."""

        async def _run() -> WorkflowResult:
            record = await self._engine.load(self.domain, title_id)
            title = await self._require_title(title_id)
            if record.state is DeedState.REGISTERED:
                return WorkflowResult.ok(
                    title_id=title_id,
                    status=record.state.value,
                    registration_number=title.registration_number,
                    already_registered=True,
                )

            now = self._time.now()
            number = registration_number(REGISTRATION_PREFIX, now, title_id)
            registered = replace(title, registration_number=number, registered_at=now)
            # Legality and role are checked before anything is written
            table = self._engine.table(self.domain)
            require_valid_transition(record.state, DeedState.REGISTERED, table)
            require_role_permission(actor.role, DeedState.REGISTERED, table)
            await self._bounded("save_title", self._registry.save_title(registered))
            try:
                applied = await self._engine.apply(
                    self.domain,
                    title_id,
                    DeedState.REGISTERED,
                    actor,
                    metadata={"registration_number": number},
                    record=record,
                )
            except ConcurrentModificationError:
                # A concurrent registration owns the stored title now
                current = await self._engine.find(self.domain, title_id)
                if current is None or current.state is not DeedState.REGISTERED:
                    await self._bounded("restore_title", self._registry.save_title(title))
                raise
            except Exception:
                await self._bounded("restore_title", self._registry.save_title(title))
                raise

            payload = {
                "title_id": title_id,
                "registration_number": number,
                "holder_name": title.holder_name,
            }
            side = await self._engine.after_commit(
                self.domain,
                title_id,
                applied.transition,
                notifications=[
                    Notification(
                        recipient_id=title.conveyancer_id,
                        party=CorrectionParty.CONVEYANCER.value,
                        event_type="deed.registered",
                        subject="Title registered",
                        message=f"Title {title_id} registered as {number}",
                        entity_type=self.domain.value,
                        entity_id=title_id,
                        payload=payload,
                    )
                ],
                events=[("deed.registered", payload)],
            )
            return WorkflowResult.ok(
                warnings=side.warnings,
                notifications=side.notifications,
                title_id=title_id,
                status=applied.record.state.value,
                registration_number=number,
                registered_at=now.isoformat(),
                already_registered=False,
            )

        return await self._execute("register_title", _run, entity_id=title_id)

    async def cross_validate_with_survey(self, title_id: str) -> WorkflowResult:
        """Compare the deed with its sealed survey; never changes state."""

        async def _run() -> WorkflowResult:
            title = await self._require_title(title_id)
            if not title.survey_plan_id:
                return WorkflowResult.ok(
                    title_id=title_id,
                    is_valid=False,
                    errors=["Title does not reference a survey plan"],
                    validation_warnings=[],
                )
            plan = await self._bounded(
                "get_survey_plan", self._registry.get_survey_plan(title.survey_plan_id)
            )
            survey_record = await self._engine.find(
                WorkflowDomain.SURVEY, title.survey_plan_id
            )
            if plan is None or survey_record is None:
                raise EntityNotFoundError("survey plan", title.survey_plan_id)
            section = await self._bounded(
                "get_section",
                self._registry.get_section(title.scheme_id, title.section_number),
            )
            if section is None:
                raise EntityNotFoundError(
                    "section", f"{title.scheme_id}/{title.section_number}"
                )
            sections = await self._bounded(
                "list_sections", self._registry.list_sections(plan.scheme_id)
            )
            report = cross_validate(
                title,
                section,
                plan,
                survey_record.state,
                sections,
                area_tolerance=self._config.area_match_tolerance,
                quota_tolerance=self._config.quota_match_tolerance,
            )
            return WorkflowResult.ok(
                title_id=title_id,
                is_valid=report.is_valid,
                errors=list(report.errors),
                validation_warnings=list(report.warnings),
            )

        return await self._execute("cross_validate_with_survey", _run, entity_id=title_id)

    async def withdraw(
        self, title_id: str, actor: Actor, reason: str | None = None
    ) -> WorkflowResult:
        return await self._execute(
            "withdraw", lambda: self._withdraw(title_id, actor, reason), entity_id=title_id
        )

    async def get_examination_history(self, title_id: str) -> WorkflowResult:
        return await self._execute(
            "get_examination_history", lambda: self._history(title_id), entity_id=title_id
        )
