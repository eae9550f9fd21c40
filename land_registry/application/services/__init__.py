"""Application services - workflow use case orchestration.

Available services:
- WorkflowEngine: Validated, conditional state transitions for core workflows
- WorkflowHooks: Audit, notification and event side effects
- PlanningReviewService: Scheme submission, review and approval
- SurveyReviewService: Survey computation, review and sealing
- DeedExaminationService: Deed examination, defects and registration
- QuotaService: Participation quota calculation and adjustment
- TopologyService: Advisory topology validation of scheme sections
- AmendmentService / TransferService: Post-registration mutations
- DisputeService / ObjectionService: Dispute and objection handling
"""

from land_registry.application.services.amendment_service import AmendmentService
from land_registry.application.services.base import (
    GENERIC_ERROR_MESSAGE,
    LoggingMixin,
    WorkflowServiceBase,
    execute_operation,
)
from land_registry.application.services.deed_examination_service import (
    DeedExaminationService,
)
from land_registry.application.services.dispute_service import DisputeService
from land_registry.application.services.objection_service import ObjectionService
from land_registry.application.services.planning_review_service import (
    PlanningReviewService,
)
from land_registry.application.services.quota_service import QuotaService
from land_registry.application.services.survey_review_service import (
    SurveyReviewService,
)
from land_registry.application.services.topology_service import TopologyService
from land_registry.application.services.transfer_service import TransferService
from land_registry.application.services.workflow_engine import WorkflowEngine
from land_registry.application.services.workflow_hooks import WorkflowHooks

__all__ = [
    "GENERIC_ERROR_MESSAGE",
    "AmendmentService",
    "DeedExaminationService",
    "DisputeService",
    "LoggingMixin",
    "ObjectionService",
    "PlanningReviewService",
    "QuotaService",
    "SurveyReviewService",
    "TopologyService",
    "TransferService",
    "WorkflowEngine",
    "WorkflowHooks",
    "WorkflowServiceBase",
    "execute_operation",
]
