"""Objections lodged against planning schemes."""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum

from land_registry.domain.models.dispute import Hearing
from land_registry.domain.models.workflow_state import ObjectionStatus


class ObjectionType(Enum):
    BOUNDARY = "boundary"
    RIGHTS = "rights"
    ENVIRONMENTAL = "environmental"
    ACCESS = "access"
    OTHER = "other"


class ObjectionOutcome(Enum):
    UPHELD = "upheld"
    DISMISSED = "dismissed"
    WITHDRAWN = "withdrawn"


@dataclass(frozen=True)
class Objection:
    """A third-party objection to a planning scheme.

    Attributes:
        objection_id: Identifier.
        plan_id: Planning scheme objected to.
        objection_type: Ground of objection.
        objector_name: Objecting party.
        description: Statement of the objection.
        objector_contact: Contact details, if given.
        status: pending -> hearing_scheduled -> resolved.
        lodged_by: User who lodged it.
        lodged_at: Lodging time (inside the objection window).
        hearing: Scheduled hearing, if any.
        outcome: Outcome once resolved.
        resolution: Free-text resolution.
        resolved_by: Officer who resolved it.
        resolved_at: Resolution time.
    """

    objection_id: str
    plan_id: str
    objection_type: ObjectionType
    objector_name: str
    description: str
    objector_contact: str | None = None
    status: ObjectionStatus = ObjectionStatus.PENDING
    lodged_by: str = ""
    lodged_at: datetime | None = None
    hearing: Hearing | None = None
    outcome: ObjectionOutcome | None = None
    resolution: str | None = None
    resolved_by: str | None = None
    resolved_at: datetime | None = None

    @property
    def record_id(self) -> str:
        return self.objection_id

    def with_status(self, status: ObjectionStatus, **changes: object) -> Objection:
        return replace(self, status=status, **changes)
