"""Request DTOs for the workflow services.

Pydantic models validate caller input at the boundary and convert it into
the frozen domain records the services work with.

The services take domain records, not these models. An inbound adapter
(the HTTP layer, which lives outside this package) parses the request
body into one of these models and passes the converted record on, e.g.::

    request = DecisionRequest.model_validate(body)
    await services.planning.submit_decision(
        scheme_id,
        actor,
        request.decision,
        notes=request.notes,
        checklist=request.apply_checklist(PLANNING_REVIEW_CHECKLIST),
    )
"""

from land_registry.application.dtos.cases import (
    AmendmentRequest,
    DisputeAssignment,
    DisputeRequest,
    DisputeResolution,
    HearingRequest,
    ObjectionRequest,
    ObjectionResolution,
    TransferRequest,
)
from land_registry.application.dtos.registry import (
    CoordinateModel,
    NewSectionInput,
    SchemeSubmission,
    SectionInput,
    SurveyPlanSubmission,
    TitleSubmission,
)
from land_registry.application.dtos.review import (
    ChecklistItemUpdate,
    DecisionRequest,
    DefectInput,
)

__all__ = [
    "AmendmentRequest",
    "ChecklistItemUpdate",
    "CoordinateModel",
    "DecisionRequest",
    "DefectInput",
    "DisputeAssignment",
    "DisputeRequest",
    "DisputeResolution",
    "HearingRequest",
    "NewSectionInput",
    "ObjectionRequest",
    "ObjectionResolution",
    "SchemeSubmission",
    "SectionInput",
    "SurveyPlanSubmission",
    "TitleSubmission",
    "TransferRequest",
]
