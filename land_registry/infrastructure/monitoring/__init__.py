"""Prometheus metrics for the workflow core."""

from land_registry.infrastructure.monitoring.workflow_metrics import (
    WorkflowMetricsCollector,
    get_workflow_metrics,
    reset_workflow_metrics,
)

__all__ = [
    "WorkflowMetricsCollector",
    "get_workflow_metrics",
    "reset_workflow_metrics",
]
