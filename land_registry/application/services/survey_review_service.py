"""Survey review and sealing workflow.

A land surveyor computes the survey (draft or revision_requested ->
computed) once its section geometry passes topology validation. The
Surveyor-General then reviews it: approve -> sealed, reject -> rejected,
request_revision -> revision_requested.

Sealing stores a sha256 seal over the survey data; ``verify_seal``
recomputes it so later tampering with areas or section counts is
detectable.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import replace
from datetime import datetime
from typing import Any

from land_registry.application.ports.registry_repository import (
    RegistryRepositoryProtocol,
)
from land_registry.application.services.review_workflow import (
    DecisionContext,
    DecisionEffects,
    ReviewWorkflowService,
)
from land_registry.application.services.topology_service import section_geometries
from land_registry.domain.errors import EntityNotFoundError, ValidationError
from land_registry.domain.models.actor import Actor
from land_registry.domain.models.checklist import SURVEY_REVIEW_CHECKLIST, ChecklistItem
from land_registry.domain.models.geometry import Coordinate
from land_registry.domain.models.notification import Notification
from land_registry.domain.models.registry import SurveyPlan
from land_registry.domain.models.review import ReviewDecision, ReviewType
from land_registry.domain.models.state_transition import StateTransition
from land_registry.domain.models.workflow_result import WorkflowResult
from land_registry.domain.models.workflow_state import SurveyState, WorkflowDomain
from land_registry.domain.services.survey_verification import (
    compute_seal_hash,
    verify_seal,
)
from land_registry.domain.services.topology_validator import validate_topology


class SurveyReviewService(ReviewWorkflowService):
    """Drives survey plans from computation to sealing."""

    domain = WorkflowDomain.SURVEY
    submitted_state = SurveyState.COMPUTED
    review_state = SurveyState.UNDER_REVIEW
    withdrawn_state = SurveyState.WITHDRAWN
    decision_states = {
        ReviewDecision.APPROVE: SurveyState.SEALED,
        ReviewDecision.REJECT: SurveyState.REJECTED,
        ReviewDecision.REQUEST_REVISION: SurveyState.REVISION_REQUESTED,
    }
    default_checklist = SURVEY_REVIEW_CHECKLIST
    default_review_type = ReviewType.TECHNICAL

    def __init__(self, *, registry: RegistryRepositoryProtocol, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self._registry = registry

    async def _require_plan(self, plan_id: str) -> SurveyPlan:
        plan = await self._bounded(
            "get_survey_plan", self._registry.get_survey_plan(plan_id)
        )
        if plan is None:
            raise EntityNotFoundError("survey plan", plan_id)
        return plan

    async def create_survey_plan(
        self,
        plan: SurveyPlan,
        actor: Actor,
        section_boundaries: Mapping[str, Sequence[Coordinate]] | None = None,
    ) -> WorkflowResult:
        """Register a draft survey plan, optionally capturing section boundaries."""

        async def _run() -> WorkflowResult:
            scheme = await self._bounded(
                "get_scheme", self._registry.get_scheme(plan.scheme_id)
            )
            if scheme is None:
                raise EntityNotFoundError("scheme", plan.scheme_id)
            if plan.parent_parcel_area <= 0:
                raise ValidationError(
                    "Parent parcel area must be greater than zero",
                    field="parent_parcel_area",
                )
            record = await self._engine.start(self.domain, plan.plan_id)
            await self._bounded("save_survey_plan", self._registry.save_survey_plan(plan))
            if section_boundaries:
                await self._capture_boundaries(plan.scheme_id, section_boundaries)
            warnings = await self._engine.hooks.audit(
                entity_type=self.domain.value,
                entity_id=plan.plan_id,
                action="survey_plan_created",
                actor_id=actor.actor_id,
                new_values={
                    "scheme_id": plan.scheme_id,
                    "parent_parcel_area": plan.parent_parcel_area,
                },
            )
            return WorkflowResult.ok(
                warnings=warnings,
                plan_id=plan.plan_id,
                status=record.state.value,
            )

        return await self._execute("create_survey_plan", _run, entity_id=plan.plan_id)

    async def _capture_boundaries(
        self,
        scheme_id: str,
        boundaries: Mapping[str, Sequence[Coordinate]],
    ) -> None:
        updated = []
        for number, vertices in boundaries.items():
            section = await self._bounded(
                "get_section", self._registry.get_section(scheme_id, number)
            )
            if section is None:
                raise EntityNotFoundError("section", f"{scheme_id}/{number}")
            updated.append(replace(section, boundary=tuple(vertices)))
        await self._bounded("save_sections", self._registry.save_sections(updated))

    async def compute_survey(self, plan_id: str, actor: Actor) -> WorkflowResult:
        """Mark the survey computed once its geometry has no topology errors."""

        async def _run() -> WorkflowResult:
            plan = await self._require_plan(plan_id)
            sections = await self._bounded(
                "list_sections", self._registry.list_sections(plan.scheme_id)
            )
            report = validate_topology(
                section_geometries(sections),
                parent_boundary=plan.parent_boundary,
                options=self._config.topology_options,
            )
            if not report.is_valid:
                messages = [v.message for v in report.errors]
                raise ValidationError(
                    f"Survey geometry has {len(messages)} topology error(s)",
                    errors=messages,
                    warnings=[v.message for v in report.warnings],
                )
            result = await self._submit(plan_id, actor)
            return WorkflowResult.ok(
                warnings=[*result.warnings, *(v.message for v in report.warnings)],
                notifications=result.notifications,
                **result.data,
                topology=report.to_dict(),
            )

        return await self._execute("compute_survey", _run, entity_id=plan_id)

    async def start_review(
        self,
        plan_id: str,
        actor: Actor,
        review_type: ReviewType | str | None = None,
    ) -> WorkflowResult:
        return await self._execute(
            "start_review",
            lambda: self._start_review(plan_id, actor, review_type),
            entity_id=plan_id,
        )

    async def _on_decision(self, context: DecisionContext) -> DecisionEffects:
        plan = await self._require_plan(context.record.entity_id)
        effects = DecisionEffects()
        payload: dict[str, Any] = {"decision": context.decision.value}
        if context.notes:
            payload["notes"] = context.notes

        if context.decision is ReviewDecision.APPROVE:
            sections = await self._bounded(
                "list_sections", self._registry.list_sections(plan.scheme_id)
            )
            sealed_at = self._time.now()
            seal_hash = compute_seal_hash(
                plan.plan_id, plan.parent_parcel_area, sections, sealed_at
            )
            await self._bounded(
                "save_survey_plan",
                self._registry.save_survey_plan(
                    replace(
                        plan,
                        seal_hash=seal_hash,
                        sealed_at=sealed_at,
                        sealed_by=context.actor.actor_id,
                    )
                ),
            )

            async def _restore() -> None:
                await self._bounded(
                    "restore_survey_plan", self._registry.save_survey_plan(plan)
                )

            async def _adopt(winner: StateTransition) -> None:
                won = winner.metadata.get("seal_hash")
                if won and won != seal_hash:
                    await self._bounded(
                        "save_survey_plan",
                        self._registry.save_survey_plan(
                            replace(
                                plan,
                                seal_hash=won,
                                sealed_at=datetime.fromisoformat(
                                    winner.metadata["sealed_at"]
                                ),
                                sealed_by=winner.actor_id,
                            )
                        ),
                    )

            effects.rollback = _restore
            effects.adopt = _adopt
            effects.data["seal_hash"] = seal_hash
            effects.data["sealed_at"] = sealed_at.isoformat()
            effects.metadata["seal_hash"] = seal_hash
            effects.metadata["sealed_at"] = sealed_at.isoformat()
            payload["seal_hash"] = seal_hash
            effects.events.append(
                (
                    "survey.sealed",
                    {"plan_id": plan.plan_id, "scheme_id": plan.scheme_id, **payload},
                )
            )

        effects.notifications.append(
            Notification(
                recipient_id=plan.surveyor_id,
                party="surveyor",
                event_type=f"survey.{context.target.value}",
                subject=f"Survey plan {context.target.value.replace('_', ' ')}",
                message=(
                    f"Survey plan {plan.plan_id} is now {context.target.value}"
                    + (f". Notes: {context.notes}" if context.notes else "")
                ),
                entity_type=self.domain.value,
                entity_id=plan.plan_id,
                payload=payload,
            )
        )
        return effects

    async def submit_decision(
        self,
        plan_id: str,
        actor: Actor,
        decision: ReviewDecision | str,
        notes: str | None = None,
        checklist: Sequence[ChecklistItem] | None = None,
    ) -> WorkflowResult:
        """Record the Surveyor-General's decision; approval seals the plan."""
        return await self._execute(
            "submit_decision",
            lambda: self._submit_decision(plan_id, actor, decision, notes, checklist),
            entity_id=plan_id,
        )

    async def verify_seal(self, plan_id: str) -> WorkflowResult:
        """Recompute the seal hash and compare it with the stored one."""

        async def _run() -> WorkflowResult:
            plan = await self._require_plan(plan_id)
            sections = await self._bounded(
                "list_sections", self._registry.list_sections(plan.scheme_id)
            )
            is_valid, error = verify_seal(plan, sections)
            return WorkflowResult.ok(
                plan_id=plan_id,
                is_valid=is_valid,
                seal_error=error,
                seal_hash=plan.seal_hash,
            )

        return await self._execute("verify_seal", _run, entity_id=plan_id)

    async def withdraw(
        self, plan_id: str, actor: Actor, reason: str | None = None
    ) -> WorkflowResult:
        return await self._execute(
            "withdraw", lambda: self._withdraw(plan_id, actor, reason), entity_id=plan_id
        )
