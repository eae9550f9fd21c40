"""Planning review workflow.

Planner submits a scheme, the planning authority reviews it and decides:
approve -> approved, reject -> rejected, request_revision ->
revision_requested (which loops back to submitted on resubmission).

The first submission opens the statutory objection window. Approval
issues an approval number ``PLAN/<year>/<id8>`` and publishes the
``planning.approved`` workflow event.
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
from land_registry.domain.errors import EntityNotFoundError, ValidationError
from land_registry.domain.models.actor import Actor
from land_registry.domain.models.checklist import (
    PLANNING_REVIEW_CHECKLIST,
    ChecklistItem,
)
from land_registry.domain.models.notification import Notification
from land_registry.domain.models.objection_window import ObjectionWindow
from land_registry.domain.models.registry import Scheme, Section
from land_registry.domain.models.review import ReviewDecision, ReviewType
from land_registry.domain.models.state_transition import StateTransition
from land_registry.domain.models.workflow_record import WorkflowRecord
from land_registry.domain.models.workflow_result import WorkflowResult
from land_registry.domain.models.workflow_state import PlanningState, WorkflowDomain
from land_registry.domain.services.case_rules import registration_number

APPROVAL_PREFIX = "PLAN"

_DECISION_SUBJECTS = {
    ReviewDecision.APPROVE: "Planning scheme approved",
    ReviewDecision.REJECT: "Planning scheme rejected",
    ReviewDecision.REQUEST_REVISION: "Planning scheme revision requested",
}


class PlanningReviewService(ReviewWorkflowService):
    """Drives schemes through planning review."""

    domain = WorkflowDomain.PLANNING
    submitted_state = PlanningState.SUBMITTED
    review_state = PlanningState.UNDER_REVIEW
    withdrawn_state = PlanningState.WITHDRAWN
    decision_states = {
        ReviewDecision.APPROVE: PlanningState.APPROVED,
        ReviewDecision.REJECT: PlanningState.REJECTED,
        ReviewDecision.REQUEST_REVISION: PlanningState.REVISION_REQUESTED,
    }
    default_checklist = PLANNING_REVIEW_CHECKLIST
    default_review_type = ReviewType.INITIAL

    def __init__(self, *, registry: RegistryRepositoryProtocol, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self._registry = registry

    async def _require_scheme(self, scheme_id: str) -> Scheme:
        scheme = await self._bounded("get_scheme", self._registry.get_scheme(scheme_id))
        if scheme is None:
            raise EntityNotFoundError("scheme", scheme_id)
        return scheme

    async def create_scheme(
        self,
        scheme: Scheme,
        sections: Sequence[Section],
        actor: Actor,
    ) -> WorkflowResult:
        """Register a draft scheme with its sections."""

        async def _run() -> WorkflowResult:
            numbers = [s.section_number for s in sections]
            errors: list[str] = []
            if not scheme.scheme_number.strip():
                errors.append("Scheme number is required")
            if len(set(numbers)) != len(numbers):
                errors.append("Section numbers must be unique within a scheme")
            if any(s.scheme_id != scheme.scheme_id for s in sections):
                errors.append("Every section must belong to the scheme")
            if errors:
                raise ValidationError(errors[0], errors=errors)

            record = await self._engine.start(self.domain, scheme.scheme_id)
            await self._bounded("save_scheme", self._registry.save_scheme(scheme))
            await self._bounded("save_sections", self._registry.save_sections(sections))
            warnings = await self._engine.hooks.audit(
                entity_type=self.domain.value,
                entity_id=scheme.scheme_id,
                action="scheme_created",
                actor_id=actor.actor_id,
                new_values={"scheme_number": scheme.scheme_number, "sections": numbers},
            )
            return WorkflowResult.ok(
                warnings=warnings,
                scheme_id=scheme.scheme_id,
                status=record.state.value,
                section_count=len(sections),
            )

        return await self._execute("create_scheme", _run, entity_id=scheme.scheme_id)

    async def _on_submitted(
        self, record: WorkflowRecord, actor: Actor, first_submission: bool
    ) -> DecisionEffects:
        scheme = await self._require_scheme(record.entity_id)
        effects = DecisionEffects()
        window = scheme.objection_window
        if window is None:
            window = ObjectionWindow.opening_at(
                self._time.now(), self._config.objection_window_days
            )
            await self._bounded(
                "save_scheme",
                self._registry.save_scheme(replace(scheme, objection_window=window)),
            )
        effects.data["objection_window"] = {
            "window_start": window.window_start.isoformat(),
            "window_end": window.window_end.isoformat(),
        }
        return effects

    async def submit_scheme(self, scheme_id: str, actor: Actor) -> WorkflowResult:
        """Submit (or resubmit after revision) a scheme for review."""
        return await self._execute(
            "submit_scheme", lambda: self._submit(scheme_id, actor), entity_id=scheme_id
        )

    async def start_review(
        self,
        scheme_id: str,
        actor: Actor,
        review_type: ReviewType | str | None = None,
    ) -> WorkflowResult:
        """Assign a reviewer; a second call while a review runs is a no-op."""
        return await self._execute(
            "start_review",
            lambda: self._start_review(scheme_id, actor, review_type),
            entity_id=scheme_id,
        )

    async def _on_decision(self, context: DecisionContext) -> DecisionEffects:
        scheme = await self._require_scheme(context.record.entity_id)
        effects = DecisionEffects()
        payload: dict[str, Any] = {"decision": context.decision.value}
        if context.notes:
            payload["notes"] = context.notes

        if context.decision is ReviewDecision.APPROVE:
            number = registration_number(
                APPROVAL_PREFIX, self._time.now(), scheme.scheme_id
            )
            await self._bounded(
                "save_scheme",
                self._registry.save_scheme(replace(scheme, approval_number=number)),
            )

            async def _restore() -> None:
                await self._bounded("restore_scheme", self._registry.save_scheme(scheme))

            async def _adopt(winner: StateTransition) -> None:
                won = winner.metadata.get("approval_number")
                if won and won != number:
                    await self._bounded(
                        "save_scheme",
                        self._registry.save_scheme(replace(scheme, approval_number=won)),
                    )

            effects.rollback = _restore
            effects.adopt = _adopt
            effects.data["approval_number"] = number
            effects.metadata["approval_number"] = number
            payload["approval_number"] = number
            effects.events.append(
                ("planning.approved", {"scheme_id": scheme.scheme_id, **payload})
            )

        effects.notifications.append(
            Notification(
                recipient_id=scheme.planner_id,
                party="planner",
                event_type=f"planning.{context.target.value}",
                subject=_DECISION_SUBJECTS[context.decision],
                message=(
                    f"Scheme {scheme.scheme_number}: "
                    f"{_DECISION_SUBJECTS[context.decision].lower()}"
                    + (f". Notes: {context.notes}" if context.notes else "")
                ),
                entity_type=self.domain.value,
                entity_id=scheme.scheme_id,
                payload=payload,
            )
        )
        return effects

    async def submit_decision(
        self,
        scheme_id: str,
        actor: Actor,
        decision: ReviewDecision | str,
        notes: str | None = None,
        checklist: Sequence[ChecklistItem] | None = None,
    ) -> WorkflowResult:
        """Record the planning authority's decision.

        Approval requires every required checklist item to be complete;
        rejection and revision requests require notes.
        """
        return await self._execute(
            "submit_decision",
            lambda: self._submit_decision(scheme_id, actor, decision, notes, checklist),
            entity_id=scheme_id,
        )

    async def batch_review(
        self,
        scheme_ids: Sequence[str],
        actor: Actor,
        decision: ReviewDecision | str,
        notes: str | None = None,
        checklist: Sequence[ChecklistItem] | None = None,
    ) -> WorkflowResult:
        """Apply one decision to several schemes, each independently.

        A failure on one scheme does not stop the others; the result lists
        the outcome per scheme.
        """
        results: list[dict[str, Any]] = []
        for scheme_id in scheme_ids:
            outcome = await self.submit_decision(
                scheme_id, actor, decision, notes=notes, checklist=checklist
            )
            results.append(
                {
                    "scheme_id": scheme_id,
                    "success": outcome.success,
                    "error": outcome.error,
                    "error_code": outcome.error_code,
                    "new_state": outcome.get("new_state"),
                }
            )
        succeeded = sum(1 for r in results if r["success"])
        return WorkflowResult.ok(
            results=results,
            succeeded=succeeded,
            failed=len(results) - succeeded,
        )

    async def withdraw(
        self, scheme_id: str, actor: Actor, reason: str | None = None
    ) -> WorkflowResult:
        return await self._execute(
            "withdraw", lambda: self._withdraw(scheme_id, actor, reason), entity_id=scheme_id
        )

    async def get_review_history(self, scheme_id: str) -> WorkflowResult:
        return await self._execute(
            "get_review_history", lambda: self._history(scheme_id), entity_id=scheme_id
        )
