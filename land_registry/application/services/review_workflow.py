"""Shared submit / review / decide cycle for planning, survey and deed.

Subclasses describe their workflow declaratively (domain, review state,
decision targets, default checklist) and override two hooks:

- ``_decision_validators`` - extra vetoes evaluated against the record
  read at the start of the decision
- ``_on_decision`` - domain effects of an accepted decision (approval
  numbers, seals) plus the notifications and events to send after commit
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from land_registry.application.ports.review_repository import ReviewRepositoryProtocol
from land_registry.application.services.base import WorkflowServiceBase
from land_registry.application.services.workflow_engine import (
    TransitionValidator,
    WorkflowEngine,
)
from land_registry.domain.errors import ConcurrentModificationError, ValidationError
from land_registry.domain.models.actor import Actor
from land_registry.domain.models.checklist import ChecklistItem, merge_checklist
from land_registry.domain.models.defect import ExaminationDefect
from land_registry.domain.models.notification import Notification
from land_registry.domain.models.review import Review, ReviewDecision, ReviewType
from land_registry.domain.models.state_transition import StateTransition
from land_registry.domain.models.workflow_record import WorkflowRecord
from land_registry.domain.models.workflow_result import WorkflowResult
from land_registry.domain.models.workflow_state import WorkflowDomain
from land_registry.domain.services.checklist_rules import (
    parse_decision,
    require_decision_preconditions,
)
from land_registry.domain.services.transition_validator import require_valid_transition

ALREADY_STARTED_WARNING = "Review already in progress"
REVIEW_SAVE_FAILURE_WARNING = "Review record could not be saved"


@dataclass
class DecisionContext:
    """Everything known about a decision once its preconditions hold."""

    record: WorkflowRecord
    actor: Actor
    decision: ReviewDecision
    target: Enum
    notes: str | None
    checklist: tuple[ChecklistItem, ...]
    defects: tuple[ExaminationDefect, ...]
    review: Review | None


@dataclass
class DecisionEffects:
    """What a subclass adds to an accepted decision."""

    data: dict[str, Any] = field(default_factory=dict)
    metadata: dict[str, Any] = field(default_factory=dict)
    warnings: list[str] = field(default_factory=list)
    notifications: list[Notification] = field(default_factory=list)
    events: list[tuple[str, Mapping[str, Any]]] = field(default_factory=list)
    # Undo for registry writes made before the transition committed
    rollback: Callable[[], Awaitable[None]] | None = None
    # Rewrites those registry values from a concurrent decision that won
    adopt: Callable[[StateTransition], Awaitable[None]] | None = None


def parse_review_type(value: ReviewType | str) -> ReviewType:
    if isinstance(value, ReviewType):
        return value
    try:
        return ReviewType(value)
    except ValueError:
        raise ValidationError(
            f"Invalid review type '{value}'", field="review_type"
        ) from None


class ReviewWorkflowService(WorkflowServiceBase):
    """Base for services driving a submit -> review -> decision workflow."""

    domain: WorkflowDomain
    submitted_state: Enum
    review_state: Enum
    withdrawn_state: Enum
    decision_states: Mapping[ReviewDecision, Enum]
    default_checklist: tuple[ChecklistItem, ...] = ()
    default_review_type: ReviewType = ReviewType.INITIAL

    def __init__(
        self,
        *,
        engine: WorkflowEngine,
        reviews: ReviewRepositoryProtocol,
        **kwargs: Any,
    ) -> None:
        super().__init__(**kwargs)
        self._engine = engine
        self._reviews = reviews
        self._domain_label = self.domain.value

    # Hooks -----------------------------------------------------------------

    def _collect_defects(
        self,
        decision: ReviewDecision,
        checklist: tuple[ChecklistItem, ...],
        defects: tuple[ExaminationDefect, ...],
    ) -> tuple[ExaminationDefect, ...]:
        return defects

    def _decision_validators(self, context: DecisionContext) -> list[TransitionValidator]:
        return []

    async def _on_decision(self, context: DecisionContext) -> DecisionEffects:
        return DecisionEffects()

    async def _on_submitted(
        self, record: WorkflowRecord, actor: Actor, first_submission: bool
    ) -> DecisionEffects:
        return DecisionEffects()

    # Operations ------------------------------------------------------------

    async def _submit(self, entity_id: str, actor: Actor) -> WorkflowResult:
        """Move a draft (or revised) entity into the submitted state."""
        record = await self._engine.load(self.domain, entity_id)
        first_submission = not any(
            t.to_state == self.submitted_state for t in record.history
        )
        applied = await self._engine.apply(
            self.domain, entity_id, self.submitted_state, actor, record=record
        )
        effects = await self._on_submitted(applied.record, actor, first_submission)
        side = await self._engine.after_commit(
            self.domain,
            entity_id,
            applied.transition,
            notifications=effects.notifications,
            events=effects.events,
        )
        return WorkflowResult.ok(
            warnings=[*effects.warnings, *side.warnings],
            notifications=side.notifications,
            entity_id=entity_id,
            status=applied.record.state.value,
            resubmission=not first_submission,
            **effects.data,
        )

    async def _start_review(
        self,
        entity_id: str,
        actor: Actor,
        review_type: ReviewType | str | None,
    ) -> WorkflowResult:
        kind = parse_review_type(review_type or self.default_review_type)
        record = await self._engine.load(self.domain, entity_id)

        active = await self._bounded(
            "get_active_review", self._reviews.get_active(self.domain, entity_id)
        )
        if active is not None or record.state == self.review_state:
            return self._already_started(entity_id, active)

        review = Review.start(
            domain=self.domain,
            entity_id=entity_id,
            reviewer_id=actor.actor_id,
            review_type=kind,
            started_at=self._time.now(),
            checklist=self.default_checklist,
        )
        try:
            applied = await self._engine.apply(
                self.domain,
                entity_id,
                self.review_state,
                actor,
                metadata={"reviewer_id": actor.actor_id, "review_type": kind.value},
                record=record,
            )
        except ConcurrentModificationError:
            current = await self._engine.load(self.domain, entity_id)
            if current.state != self.review_state:
                raise
            active = await self._bounded(
                "get_active_review", self._reviews.get_active(self.domain, entity_id)
            )
            return self._already_started(entity_id, active)

        # The entity is under review from here on, whatever the review store says
        warnings: list[str] = []
        stored = review
        try:
            stored, _ = await self._bounded(
                "start_review", self._reviews.start_if_idle(review)
            )
        except Exception:
            self._log_operation("start_review", entity_id=entity_id).exception(
                "review_save_failed"
            )
            warnings.append(REVIEW_SAVE_FAILURE_WARNING)
        side = await self._engine.after_commit(self.domain, entity_id, applied.transition)
        return WorkflowResult.ok(
            warnings=[*warnings, *side.warnings],
            notifications=side.notifications,
            entity_id=entity_id,
            status=applied.record.state.value,
            already_started=False,
            review_id=str(stored.review_id),
            reviewer_id=stored.reviewer_id,
            review_type=stored.review_type.value,
            checklist=[item.item_id for item in stored.checklist],
        )

    def _already_started(self, entity_id: str, active: Review | None) -> WorkflowResult:
        self._log_operation("start_review", entity_id=entity_id).info(
            "review_already_started"
        )
        return WorkflowResult.ok(
            warnings=[ALREADY_STARTED_WARNING],
            entity_id=entity_id,
            status=self.review_state.value,
            already_started=True,
            review_id=str(active.review_id) if active else None,
            reviewer_id=active.reviewer_id if active else None,
        )

    async def _submit_decision(
        self,
        entity_id: str,
        actor: Actor,
        decision: ReviewDecision | str,
        notes: str | None,
        checklist: Sequence[ChecklistItem] | None,
        defects: Sequence[ExaminationDefect] | None = None,
    ) -> WorkflowResult:
        parsed = parse_decision(decision)
        target = self.decision_states[parsed]
        record = await self._engine.load(self.domain, entity_id)
        # Legality first: nothing about a terminal record is worth validating
        require_valid_transition(record.state, target, self._engine.table(self.domain))

        review = await self._bounded(
            "get_active_review", self._reviews.get_active(self.domain, entity_id)
        )
        items = (
            review.checklist
            if review is not None and review.checklist
            else self.default_checklist
        )
        if checklist is not None:
            try:
                items = merge_checklist(items, checklist)
            except ValueError as exc:
                raise ValidationError(str(exc), field="checklist") from exc

        validation = require_decision_preconditions(parsed, notes, items)
        warnings = [
            f"Optional checklist item incomplete: {text}"
            for text in validation.missing_optional
        ]

        context = DecisionContext(
            record=record,
            actor=actor,
            decision=parsed,
            target=target,
            notes=notes,
            checklist=items,
            defects=self._collect_defects(parsed, items, tuple(defects or ())),
            review=review,
        )
        for validator in self._decision_validators(context):
            validator(record, target)

        effects = await self._on_decision(context)
        try:
            applied = await self._engine.apply(
                self.domain,
                entity_id,
                target,
                actor,
                reason=notes,
                metadata={
                    "decision": parsed.value,
                    "checklist_completed": sum(1 for i in items if i.completed),
                    "checklist_total": len(items),
                    "defect_ids": [d.defect_id for d in context.defects],
                    **effects.metadata,
                },
                record=record,
            )
        except ConcurrentModificationError:
            current = await self._engine.find(self.domain, entity_id)
            won = current.last_transition if current is not None else None
            if won is not None and won.to_state == target:
                # Our pre-commit write may have landed after the winner's
                if effects.adopt is not None:
                    await effects.adopt(won)
            elif effects.rollback is not None:
                await effects.rollback()
            raise
        except Exception:
            if effects.rollback is not None:
                await effects.rollback()
            raise

        warnings.extend(await self._complete_review(context))
        side = await self._engine.after_commit(
            self.domain,
            entity_id,
            applied.transition,
            notifications=effects.notifications,
            events=effects.events,
        )
        self._log_operation("submit_decision", entity_id=entity_id).info(
            "decision_recorded",
            decision=parsed.value,
            new_state=applied.record.state.value,
        )
        return WorkflowResult.ok(
            warnings=[*warnings, *effects.warnings, *side.warnings],
            notifications=side.notifications,
            entity_id=entity_id,
            decision=parsed.value,
            previous_state=applied.transition.from_state.value,
            new_state=applied.record.state.value,
            defects=[d.to_dict() for d in context.defects],
            **effects.data,
        )

    async def _complete_review(self, context: DecisionContext) -> list[str]:
        """Store the completed review; return warnings (empty on success)."""
        review = context.review or Review.start(
            domain=self.domain,
            entity_id=context.record.entity_id,
            reviewer_id=context.actor.actor_id,
            review_type=self.default_review_type,
            started_at=self._time.now(),
        )
        completed = review.complete(
            decision=context.decision,
            notes=context.notes,
            checklist=context.checklist,
            defects=context.defects,
            completed_at=self._time.now(),
        )
        try:
            await self._bounded("save_review", self._reviews.save(completed))
        except Exception:
            self._log_operation(
                "submit_decision", entity_id=context.record.entity_id
            ).exception("review_save_failed", decision=context.decision.value)
            return [REVIEW_SAVE_FAILURE_WARNING]
        return []

    async def _withdraw(self, entity_id: str, actor: Actor, reason: str | None) -> WorkflowResult:
        applied = await self._engine.apply(
            self.domain, entity_id, self.withdrawn_state, actor, reason=reason
        )
        side = await self._engine.after_commit(self.domain, entity_id, applied.transition)
        return WorkflowResult.ok(
            warnings=side.warnings,
            entity_id=entity_id,
            previous_state=applied.transition.from_state.value,
            new_state=applied.record.state.value,
        )

    async def _history(self, entity_id: str) -> WorkflowResult:
        record = await self._engine.load(self.domain, entity_id)
        reviews = await self._bounded(
            "list_reviews", self._reviews.list_for_entity(self.domain, entity_id)
        )
        return WorkflowResult.ok(
            entity_id=entity_id,
            status=record.state.value,
            history=[t.to_dict() for t in record.history],
            reviews=[
                {
                    "review_id": str(r.review_id),
                    "reviewer_id": r.reviewer_id,
                    "review_type": r.review_type.value,
                    "status": r.status.value,
                    "decision": r.decision.value if r.decision else None,
                    "started_at": r.started_at.isoformat(),
                    "completed_at": r.completed_at.isoformat() if r.completed_at else None,
                }
                for r in reviews
            ],
        )
