"""Bootstrap wiring for the workflow services.

The transition tables are built once and every service receives the same
WorkflowRegistry. Workflow state goes to PostgreSQL when DATABASE_URL is
configured; every other port uses its in-memory stub.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from structlog import get_logger

from land_registry.application.ports.audit_log import AuditLogProtocol
from land_registry.application.ports.notification_dispatcher import (
    NotificationDispatcherProtocol,
)
from land_registry.application.ports.registry_repository import (
    RegistryRepositoryProtocol,
)
from land_registry.application.ports.review_repository import ReviewRepositoryProtocol
from land_registry.application.ports.time_authority import TimeAuthorityProtocol
from land_registry.application.ports.workflow_repository import (
    WorkflowRepositoryProtocol,
)
from land_registry.application.services.amendment_service import AmendmentService
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
from land_registry.config import WorkflowConfig
from land_registry.domain.models.amendment import Amendment
from land_registry.domain.models.dispute import Dispute
from land_registry.domain.models.objection import Objection
from land_registry.domain.models.transfer import Transfer
from land_registry.domain.models.transition_table import (
    WorkflowRegistry,
    build_workflow_registry,
)
from land_registry.infrastructure.adapters.system_time import SystemTimeAuthority
from land_registry.infrastructure.monitoring import (
    WorkflowMetricsCollector,
    get_workflow_metrics,
)
from land_registry.infrastructure.stubs import (
    AuditLogStub,
    CaseRepositoryStub,
    NotificationDispatcherStub,
    RegistryRepositoryStub,
    ReviewRepositoryStub,
    WorkflowRepositoryStub,
)

logger = get_logger()


@dataclass(frozen=True)
class WorkflowServices:
    """Every service of the workflow core, sharing one set of adapters."""

    workflow_registry: WorkflowRegistry
    config: WorkflowConfig
    engine: WorkflowEngine
    hooks: WorkflowHooks
    planning: PlanningReviewService
    survey: SurveyReviewService
    deeds: DeedExaminationService
    quotas: QuotaService
    topology: TopologyService
    amendments: AmendmentService
    transfers: TransferService
    disputes: DisputeService
    objections: ObjectionService


def create_workflow_repository(
    workflow_registry: WorkflowRegistry,
) -> WorkflowRepositoryProtocol:
    """PostgreSQL repository if DATABASE_URL is set, otherwise the stub."""
    if not os.environ.get("DATABASE_URL"):
        logger.warning(
            "workflow_repository_initialized",
            repository_type="InMemoryStub",
            message="DATABASE_URL not set - using in-memory stub (data will not persist)",
        )
        return WorkflowRepositoryStub()

    from land_registry.bootstrap.database import get_session_factory
    from land_registry.infrastructure.adapters.persistence import (
        PostgresWorkflowRepository,
    )

    repository = PostgresWorkflowRepository(
        session_factory=get_session_factory(),
        workflow_registry=workflow_registry,
    )
    logger.info("workflow_repository_initialized", repository_type="PostgreSQL")
    return repository


def create_workflow_services(
    *,
    config: WorkflowConfig | None = None,
    time_authority: TimeAuthorityProtocol | None = None,
    workflow_registry: WorkflowRegistry | None = None,
    workflows: WorkflowRepositoryProtocol | None = None,
    registry: RegistryRepositoryProtocol | None = None,
    reviews: ReviewRepositoryProtocol | None = None,
    audit_log: AuditLogProtocol | None = None,
    dispatcher: NotificationDispatcherProtocol | None = None,
    metrics: WorkflowMetricsCollector | None = None,
) -> WorkflowServices:
    """Construct the workflow services; omitted collaborators get defaults."""
    config = config or WorkflowConfig.from_environment()
    time_authority = time_authority or SystemTimeAuthority()
    workflow_registry = workflow_registry or build_workflow_registry()
    if workflows is None:
        workflows = create_workflow_repository(workflow_registry)
    if registry is None:
        registry = RegistryRepositoryStub()
    if reviews is None:
        reviews = ReviewRepositoryStub()
    metrics = metrics or get_workflow_metrics()

    common = {"time_authority": time_authority, "config": config, "metrics": metrics}
    hooks = WorkflowHooks(
        audit_log=audit_log if audit_log is not None else AuditLogStub(),
        dispatcher=dispatcher if dispatcher is not None else NotificationDispatcherStub(),
        **common,
    )
    engine = WorkflowEngine(
        registry=workflow_registry, repository=workflows, hooks=hooks, **common
    )
    review_deps = {"engine": engine, "reviews": reviews, "registry": registry, **common}
    case_deps = {"workflow_registry": workflow_registry, "hooks": hooks, **common}
    amendment_cases: CaseRepositoryStub[Amendment] = CaseRepositoryStub("amendment")

    services = WorkflowServices(
        workflow_registry=workflow_registry,
        config=config,
        engine=engine,
        hooks=hooks,
        planning=PlanningReviewService(**review_deps),
        survey=SurveyReviewService(**review_deps),
        deeds=DeedExaminationService(**review_deps),
        quotas=QuotaService(registry=registry, hooks=hooks, **common),
        topology=TopologyService(registry=registry, **common),
        amendments=AmendmentService(
            registry=registry, cases=amendment_cases, **case_deps
        ),
        transfers=TransferService(
            registry=registry,
            workflows=workflows,
            cases=CaseRepositoryStub[Transfer]("transfer"),
            **case_deps,
        ),
        disputes=DisputeService(
            registry=registry,
            amendments=amendment_cases,
            cases=CaseRepositoryStub[Dispute]("dispute"),
            **case_deps,
        ),
        objections=ObjectionService(
            registry=registry,
            workflows=workflows,
            cases=CaseRepositoryStub[Objection]("objection"),
            **case_deps,
        ),
    )
    logger.info(
        "workflow_services_created",
        domains=[domain.value for domain in workflow_registry.tables],
    )
    return services


_services: WorkflowServices | None = None


def get_workflow_services() -> WorkflowServices:
    """Process-wide services, created on first call."""
    global _services
    if _services is None:
        _services = create_workflow_services()
    return _services


def reset_workflow_services() -> None:
    """Reset the singleton (for testing)."""
    global _services
    _services = None
