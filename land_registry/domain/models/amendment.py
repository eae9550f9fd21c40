"""Scheme amendment cases."""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum

from land_registry.domain.models.geometry import Coordinate
from land_registry.domain.models.workflow_state import CaseStatus


class AmendmentType(Enum):
    EXTENSION = "extension"
    SUBDIVISION = "subdivision"
    CONSOLIDATION = "consolidation"
    EXCLUSIVE_USE_CHANGE = "exclusive_use_change"
    QUOTA_ADJUSTMENT = "quota_adjustment"
    OTHER = "other"


@dataclass(frozen=True)
class NewSectionSpec:
    """A section to be created when an amendment is processed."""

    section_number: str
    area: float
    floor_level: int = 0
    section_type: str = "residential"
    boundary: tuple[Coordinate, ...] = ()


@dataclass(frozen=True)
class Amendment:
    """An amendment to a registered scheme.

    Attributes:
        amendment_id: Identifier.
        scheme_id: Scheme being amended.
        amendment_type: Kind of amendment.
        description: What the amendment does.
        affected_sections: Existing section numbers the amendment touches.
        new_sections: Sections created on processing.
        survey_plan_id: Supporting survey plan, if any.
        status: Case status (submitted -> approved/rejected -> processed).
        submitted_by: Submitting party.
        submitted_at: Submission time.
        decided_by: Registrar who approved or rejected.
        decided_at: Decision time.
        decision_notes: Approval notes or rejection reason.
        processed_at: When the registry mutation was applied.
        registration_number: ``AMEND/<year>/<id8>``, issued on processing.
    """

    amendment_id: str
    scheme_id: str
    amendment_type: AmendmentType
    description: str
    affected_sections: tuple[str, ...]
    new_sections: tuple[NewSectionSpec, ...] = ()
    survey_plan_id: str | None = None
    status: CaseStatus = CaseStatus.SUBMITTED
    submitted_by: str = ""
    submitted_at: datetime | None = None
    decided_by: str | None = None
    decided_at: datetime | None = None
    decision_notes: str | None = None
    processed_at: datetime | None = None
    registration_number: str | None = None

    @property
    def record_id(self) -> str:
        return self.amendment_id

    def with_status(self, status: CaseStatus, **changes: object) -> Amendment:
        return replace(self, status=status, **changes)
