"""Application ports - abstract interfaces for infrastructure adapters.

Available ports:
- WorkflowRepositoryProtocol: workflow state with conditional transitions
- RegistryRepositoryProtocol: schemes, sections, survey plans, deed titles
- ReviewRepositoryProtocol: reviewer assignments
- CaseRepositoryProtocol: amendment, transfer, dispute and objection cases
- AuditLogProtocol: append-only audit log
- NotificationDispatcherProtocol: best-effort notifications
- TimeAuthorityProtocol: injected clock
"""

from land_registry.application.ports.audit_log import AuditLogProtocol
from land_registry.application.ports.case_repository import CaseRepositoryProtocol
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

__all__: list[str] = [
    "AuditLogProtocol",
    "CaseRepositoryProtocol",
    "NotificationDispatcherProtocol",
    "RegistryRepositoryProtocol",
    "ReviewRepositoryProtocol",
    "TimeAuthorityProtocol",
    "WorkflowRepositoryProtocol",
]
