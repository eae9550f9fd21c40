"""In-memory stub implementations of the application ports.

Stubs are used by unit and integration tests and by the default
development wiring in ``land_registry.bootstrap``. Conditional updates
are serialized with an ``asyncio.Lock`` so concurrent callers observe
the same compare-and-swap semantics as the Postgres adapter.
"""

from land_registry.infrastructure.stubs.audit_log_stub import AuditLogStub
from land_registry.infrastructure.stubs.case_repository_stub import CaseRepositoryStub
from land_registry.infrastructure.stubs.notification_dispatcher_stub import (
    NotificationDispatcherStub,
)
from land_registry.infrastructure.stubs.registry_repository_stub import (
    RegistryRepositoryStub,
)
from land_registry.infrastructure.stubs.review_repository_stub import (
    ReviewRepositoryStub,
)
from land_registry.infrastructure.stubs.workflow_repository_stub import (
    WorkflowRepositoryStub,
)

__all__ = [
    "AuditLogStub",
    "CaseRepositoryStub",
    "NotificationDispatcherStub",
    "RegistryRepositoryStub",
    "ReviewRepositoryStub",
    "WorkflowRepositoryStub",
]
