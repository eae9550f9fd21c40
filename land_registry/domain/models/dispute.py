"""Dispute cases."""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum

from land_registry.domain.models.workflow_state import DisputeStatus


class DisputeType(Enum):
    BOUNDARY = "boundary"
    OWNERSHIP = "ownership"
    RIGHTS = "rights"
    AMENDMENT = "amendment"
    LEASE = "lease"
    MORTGAGE = "mortgage"
    OTHER = "other"


class DisputeAuthority(Enum):
    """Body a dispute is assigned to."""

    SCHEME_BODY = "scheme_body"
    DISTRICT_ADMIN = "district_admin"
    PROVINCIAL_ADMIN = "provincial_admin"
    LAND_COMMISSION = "land_commission"
    MINISTRY = "ministry"
    COURTS = "courts"


class ResolutionType(Enum):
    UPHELD = "upheld"
    DISMISSED = "dismissed"
    COMPROMISE = "compromise"
    REFERRED = "referred"


@dataclass(frozen=True)
class Hearing:
    """A scheduled hearing."""

    hearing_date: datetime
    location: str
    officer_id: str


@dataclass(frozen=True)
class Dispute:
    """A dispute about a title, scheme or amendment.

    Attributes:
        dispute_id: Identifier.
        dispute_type: Subject of the dispute.
        complainant_name: Party lodging the dispute.
        description: Statement of the dispute.
        title_id: Disputed title, if any.
        scheme_id: Disputed scheme, if any.
        amendment_id: Disputed amendment, if any.
        respondent_name: Opposing party, if known.
        status: pending -> assigned -> hearing_scheduled -> resolved.
        lodged_by: User who lodged it.
        lodged_at: Lodging time.
        assigned_to: Officer the dispute is assigned to.
        authority: Body handling the dispute.
        hearing: Scheduled hearing, if any.
        resolution_type: Outcome type once resolved.
        resolution: Free-text resolution.
        resolution_document_id: Linked resolution document.
        resolved_by: Officer who resolved it.
        resolved_at: Resolution time.
    """

    dispute_id: str
    dispute_type: DisputeType
    complainant_name: str
    description: str
    title_id: str | None = None
    scheme_id: str | None = None
    amendment_id: str | None = None
    respondent_name: str | None = None
    status: DisputeStatus = DisputeStatus.PENDING
    lodged_by: str = ""
    lodged_at: datetime | None = None
    assigned_to: str | None = None
    authority: DisputeAuthority | None = None
    hearing: Hearing | None = None
    resolution_type: ResolutionType | None = None
    resolution: str | None = None
    resolution_document_id: str | None = None
    resolved_by: str | None = None
    resolved_at: datetime | None = None

    @property
    def record_id(self) -> str:
        return self.dispute_id

    def with_status(self, status: DisputeStatus, **changes: object) -> Dispute:
        return replace(self, status=status, **changes)
