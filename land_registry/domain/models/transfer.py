"""Ownership transfer cases."""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date, datetime
from enum import Enum

from land_registry.domain.models.workflow_state import CaseStatus


class TransferType(Enum):
    SALE = "sale"
    GIFT = "gift"
    INHERITANCE = "inheritance"
    COURT_ORDER = "court_order"
    OTHER = "other"


@dataclass(frozen=True)
class Transfer:
    """A transfer of a registered title to a new holder.

    Attributes:
        transfer_id: Identifier.
        title_id: Title being transferred.
        transfer_type: Sale, gift, inheritance, ...
        new_holder_name: Incoming holder.
        new_holder_id: Incoming holder's id number.
        consideration: Purchase price, for sales.
        transfer_date: Date of the transfer agreement.
        effective_date: Date the transfer takes effect.
        stamp_duty: Duty computed at submission.
        status: Case status (submitted -> approved/rejected -> processed).
        submitted_by: Conveyancer who lodged the transfer.
        submitted_at: Submission time.
        decided_by: Registrar who approved or rejected.
        decided_at: Decision time.
        decision_notes: Approval notes or rejection reason.
        previous_holder_name: Holder replaced on processing.
        processed_at: When the title was updated.
        registration_number: ``TRANSFER/<year>/<id8>``, issued on processing.
    """

    transfer_id: str
    title_id: str
    transfer_type: TransferType
    new_holder_name: str
    transfer_date: date
    new_holder_id: str | None = None
    consideration: float | None = None
    effective_date: date | None = None
    stamp_duty: float = 0.0
    status: CaseStatus = CaseStatus.SUBMITTED
    submitted_by: str = ""
    submitted_at: datetime | None = None
    decided_by: str | None = None
    decided_at: datetime | None = None
    decision_notes: str | None = None
    previous_holder_name: str | None = None
    processed_at: datetime | None = None
    registration_number: str | None = None

    @property
    def record_id(self) -> str:
        return self.transfer_id

    def with_status(self, status: CaseStatus, **changes: object) -> Transfer:
        return replace(self, status=status, **changes)
