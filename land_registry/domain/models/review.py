"""Reviewer assignments and decisions."""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from uuid import UUID, uuid4

from land_registry.domain.models.checklist import ChecklistItem
from land_registry.domain.models.defect import ExaminationDefect
from land_registry.domain.models.workflow_state import WorkflowDomain


class ReviewDecision(Enum):
    APPROVE = "approve"
    REJECT = "reject"
    REQUEST_REVISION = "request_revision"

    @property
    def requires_reason(self) -> bool:
        return self is not ReviewDecision.APPROVE


class ReviewType(Enum):
    INITIAL = "initial"
    TECHNICAL = "technical"
    COMPLIANCE = "compliance"
    EXAMINATION = "examination"
    RESUBMISSION = "resubmission"


class ReviewStatus(Enum):
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


@dataclass(frozen=True)
class Review:
    """A review (or examination) of one entity by one reviewer.

    At most one review per entity is IN_PROGRESS at a time.
    """

    review_id: UUID
    domain: WorkflowDomain
    entity_id: str
    reviewer_id: str
    review_type: ReviewType
    started_at: datetime
    checklist: tuple[ChecklistItem, ...] = ()
    status: ReviewStatus = ReviewStatus.IN_PROGRESS
    decision: ReviewDecision | None = None
    notes: str | None = None
    defects: tuple[ExaminationDefect, ...] = ()
    completed_at: datetime | None = None

    @classmethod
    def start(
        cls,
        *,
        domain: WorkflowDomain,
        entity_id: str,
        reviewer_id: str,
        review_type: ReviewType,
        started_at: datetime,
        checklist: tuple[ChecklistItem, ...] = (),
    ) -> Review:
        return cls(
            review_id=uuid4(),
            domain=domain,
            entity_id=entity_id,
            reviewer_id=reviewer_id,
            review_type=review_type,
            started_at=started_at,
            checklist=checklist,
        )

    def complete(
        self,
        *,
        decision: ReviewDecision,
        notes: str | None,
        checklist: tuple[ChecklistItem, ...],
        defects: tuple[ExaminationDefect, ...],
        completed_at: datetime,
    ) -> Review:
        return replace(
            self,
            status=ReviewStatus.COMPLETED,
            decision=decision,
            notes=notes,
            checklist=checklist,
            defects=defects,
            completed_at=completed_at,
        )
