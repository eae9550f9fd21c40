"""Registry records that workflows read and mutate.

Workflow *state* lives in WorkflowRecord; the records here hold the
domain data (areas, quotas, holders) that business rules inspect and
that the process steps of amendments and transfers change.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID, uuid4

from land_registry.domain.models.geometry import Coordinate
from land_registry.domain.models.objection_window import ObjectionWindow

COMMON_SECTION_TYPE = "common"


class SectionStatus(Enum):
    ACTIVE = "active"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class Section:
    """A unit within a sectional scheme.

    Attributes:
        scheme_id: Scheme the section belongs to.
        section_number: Number unique within the scheme.
        area: Floor area in square metres.
        floor_level: Storey, used to scope overlap checks.
        section_type: Usage (residential, commercial, common, ...). Common
            sections are excluded from quota calculation.
        participation_quota: Percentage share of common property.
        common_area_share: Square metres of common property attributed.
        status: ACTIVE, or CANCELLED after subdivision/consolidation.
        owner_id: Registered owner, when known.
        boundary: Closed ring of the section boundary.
    """

    scheme_id: str
    section_number: str
    area: float
    floor_level: int = 0
    section_type: str = "residential"
    participation_quota: float | None = None
    common_area_share: float | None = None
    status: SectionStatus = SectionStatus.ACTIVE
    owner_id: str | None = None
    boundary: tuple[Coordinate, ...] = ()

    @property
    def is_active(self) -> bool:
        return self.status is SectionStatus.ACTIVE

    def cancelled(self) -> Section:
        return replace(self, status=SectionStatus.CANCELLED)


@dataclass(frozen=True)
class Scheme:
    """A sectional title scheme as submitted for planning approval.

    Attributes:
        scheme_id: Identifier, shared with the planning WorkflowRecord.
        scheme_number: Human-facing number.
        planner_id: Planner who submitted the scheme.
        parent_parcel_area: Area of the land parcel (m²).
        common_property_area: Explicit common property area (m²), if set.
        approval_number: Issued on planning approval.
        objection_window: Opened when the scheme is first submitted.
    """

    scheme_id: str
    scheme_number: str
    planner_id: str
    parent_parcel_area: float | None = None
    common_property_area: float | None = None
    approval_number: str | None = None
    objection_window: ObjectionWindow | None = None


@dataclass(frozen=True)
class SurveyPlan:
    """A survey plan for a scheme, sealed by the Surveyor-General.

    Attributes:
        plan_id: Identifier, shared with the survey WorkflowRecord.
        scheme_id: Scheme the plan surveys.
        surveyor_id: Land surveyor responsible.
        parent_parcel_area: Surveyed parcel area (m²).
        parent_boundary: Closed ring of the parent parcel, if captured.
        seal_hash: sha256 seal, set when sealed.
        sealed_at: Seal timestamp.
        sealed_by: Surveyor-General user who sealed.
    """

    plan_id: str
    scheme_id: str
    surveyor_id: str
    parent_parcel_area: float
    parent_boundary: tuple[Coordinate, ...] = ()
    seal_hash: str | None = None
    sealed_at: datetime | None = None
    sealed_by: str | None = None


@dataclass(frozen=True)
class DeedTitle:
    """A sectional title deed.

    Attributes:
        title_id: Identifier, shared with the deed WorkflowRecord.
        scheme_id: Scheme containing the section.
        section_number: Section the title is for.
        survey_plan_id: Sealed survey plan the deed relies on.
        conveyancer_id: Conveyancer who drafted the deed.
        legal_description: Free text including area, quota and section.
        holder_name: Registered (or proposed) holder.
        holder_id: National id or registration number of the holder.
        registration_number: Issued on registration.
        registered_at: Registration timestamp.
        previous_holder_name: Holder before the most recent transfer.
        has_active_mortgage: Whether an active bond is registered.
    """

    title_id: str
    scheme_id: str
    section_number: str
    survey_plan_id: str | None
    conveyancer_id: str
    legal_description: str = ""
    holder_name: str = ""
    holder_id: str | None = None
    registration_number: str | None = None
    registered_at: datetime | None = None
    previous_holder_name: str | None = None
    has_active_mortgage: bool = False


@dataclass(frozen=True)
class QuotaHistoryEntry:
    """A recorded change to a section's participation quota."""

    entry_id: UUID
    scheme_id: str
    section_number: str
    old_quota: float | None
    new_quota: float
    reason: str
    changed_by: str
    changed_at: datetime
    details: dict[str, Any] = field(default_factory=dict, hash=False)

    @classmethod
    def create(
        cls,
        *,
        scheme_id: str,
        section_number: str,
        old_quota: float | None,
        new_quota: float,
        reason: str,
        changed_by: str,
        changed_at: datetime,
    ) -> QuotaHistoryEntry:
        return cls(
            entry_id=uuid4(),
            scheme_id=scheme_id,
            section_number=section_number,
            old_quota=old_quota,
            new_quota=new_quota,
            reason=reason,
            changed_by=changed_by,
            changed_at=changed_at,
        )
