"""Workflow state enumerations for every approval domain.

Four core domains (planning, survey, deed, title) carry the main
approval lifecycles. Four smaller case workflows (amendment, transfer,
dispute, objection) track post-registration mutations and run
independently of the core states.

Each enum is a closed set; the legal moves between members live in
``transition_table`` as plain data.
"""

from __future__ import annotations

from enum import Enum


class WorkflowDomain(Enum):
    """Workflow domains with their own transition table."""

    PLANNING = "planning"
    SURVEY = "survey"
    DEED = "deed"
    TITLE = "title"
    AMENDMENT = "amendment"
    TRANSFER = "transfer"
    DISPUTE = "dispute"
    OBJECTION = "objection"


class PlanningState(Enum):
    """Lifecycle of a sectional scheme planning submission."""

    DRAFT = "draft"
    SUBMITTED = "submitted"
    UNDER_REVIEW = "under_review"
    REVISION_REQUESTED = "revision_requested"
    APPROVED = "approved"
    REJECTED = "rejected"
    WITHDRAWN = "withdrawn"


class SurveyState(Enum):
    """Lifecycle of a survey plan up to Surveyor-General sealing."""

    DRAFT = "draft"
    COMPUTED = "computed"
    UNDER_REVIEW = "under_review"
    REVISION_REQUESTED = "revision_requested"
    SEALED = "sealed"
    REJECTED = "rejected"
    WITHDRAWN = "withdrawn"


class DeedState(Enum):
    """Lifecycle of a deed from drafting through examination to registration."""

    DRAFT = "draft"
    SUBMITTED = "submitted"
    UNDER_EXAMINATION = "under_examination"
    REVISION_REQUESTED = "revision_requested"
    APPROVED = "approved"
    REJECTED = "rejected"
    REGISTERED = "registered"
    WITHDRAWN = "withdrawn"


class TitleState(Enum):
    """Lifecycle of a registered title record."""

    PENDING = "pending"
    UNDER_REVIEW = "under_review"
    APPROVED = "approved"
    REGISTERED = "registered"
    REJECTED = "rejected"
    CANCELLED = "cancelled"


class CaseStatus(Enum):
    """Status of an amendment or transfer case."""

    SUBMITTED = "submitted"
    APPROVED = "approved"
    REJECTED = "rejected"
    PROCESSED = "processed"


class DisputeStatus(Enum):
    """Status of a dispute case."""

    PENDING = "pending"
    ASSIGNED = "assigned"
    HEARING_SCHEDULED = "hearing_scheduled"
    RESOLVED = "resolved"


class ObjectionStatus(Enum):
    """Status of an objection lodged against a planning scheme."""

    PENDING = "pending"
    HEARING_SCHEDULED = "hearing_scheduled"
    RESOLVED = "resolved"
