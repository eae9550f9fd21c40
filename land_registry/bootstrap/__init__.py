"""Process-start wiring for the land registry workflow core."""

from land_registry.bootstrap.workflow import (
    WorkflowServices,
    create_workflow_services,
    get_workflow_services,
    reset_workflow_services,
)

__all__ = [
    "WorkflowServices",
    "create_workflow_services",
    "get_workflow_services",
    "reset_workflow_services",
]
