"""Workflow metrics for Prometheus exposition.

Counters for accepted and refused transitions, optimistic-concurrency
conflicts and failed notifications, plus an operation latency histogram.
Each collector owns its CollectorRegistry so tests stay isolated.
"""

from __future__ import annotations

import os
import threading

from prometheus_client import CollectorRegistry, Counter, Histogram

# Thread lock for singleton initialization
_metrics_lock = threading.Lock()


class WorkflowMetricsCollector:
    """Collects workflow metrics for Prometheus.

    Attributes:
        transitions_total: Accepted transitions by domain and edge.
        transitions_rejected_total: Refused operations by domain and error code.
        concurrency_conflicts_total: CAS losses by domain.
        notification_failures_total: Undelivered notifications by party.
        operation_duration_seconds: Latency of service operations.
    """

    def __init__(self, registry: CollectorRegistry | None = None) -> None:
        """Initialize workflow metrics collector.

        Args:
            registry: Optional custom registry for testing isolation.
        """
        self._registry = registry or CollectorRegistry()
        self._environment = os.environ.get("ENVIRONMENT", "development")
        self._service_name = os.environ.get("SERVICE_NAME", "land-registry-workflow")

        self.transitions_total = Counter(
            name="workflow_transitions_total",
            documentation="Accepted workflow state transitions",
            labelnames=["domain", "from_state", "to_state", "service", "environment"],
            registry=self._registry,
        )
        self.transitions_rejected_total = Counter(
            name="workflow_operations_rejected_total",
            documentation="Workflow operations refused by business rules",
            labelnames=["domain", "error_code", "service", "environment"],
            registry=self._registry,
        )
        self.concurrency_conflicts_total = Counter(
            name="workflow_concurrency_conflicts_total",
            documentation="Conditional updates lost to a concurrent writer",
            labelnames=["domain", "service", "environment"],
            registry=self._registry,
        )
        self.notification_failures_total = Counter(
            name="workflow_notification_failures_total",
            documentation="Best-effort notifications that were not delivered",
            labelnames=["party", "service", "environment"],
            registry=self._registry,
        )
        self.operation_duration_seconds = Histogram(
            name="workflow_operation_duration_seconds",
            documentation="Duration of workflow service operations",
            labelnames=["operation", "service", "environment"],
            registry=self._registry,
        )

    def record_transition(self, domain: str, from_state: str, to_state: str) -> None:
        self.transitions_total.labels(
            domain=domain,
            from_state=from_state,
            to_state=to_state,
            service=self._service_name,
            environment=self._environment,
        ).inc()

    def record_rejection(self, domain: str, error_code: str) -> None:
        self.transitions_rejected_total.labels(
            domain=domain,
            error_code=error_code,
            service=self._service_name,
            environment=self._environment,
        ).inc()

    def record_conflict(self, domain: str) -> None:
        self.concurrency_conflicts_total.labels(
            domain=domain,
            service=self._service_name,
            environment=self._environment,
        ).inc()

    def record_notification_failure(self, party: str) -> None:
        self.notification_failures_total.labels(
            party=party,
            service=self._service_name,
            environment=self._environment,
        ).inc()

    def observe_duration(self, operation: str, seconds: float) -> None:
        self.operation_duration_seconds.labels(
            operation=operation,
            service=self._service_name,
            environment=self._environment,
        ).observe(seconds)

    def get_registry(self) -> CollectorRegistry:
        """Get the collector registry."""
        return self._registry


# Singleton instance
_workflow_metrics_collector: WorkflowMetricsCollector | None = None


def get_workflow_metrics() -> WorkflowMetricsCollector:
    """Get the singleton WorkflowMetricsCollector instance (thread-safe).

    Uses double-checked locking for thread-safe lazy initialization.
    """
    global _workflow_metrics_collector
    if _workflow_metrics_collector is None:
        with _metrics_lock:
            if _workflow_metrics_collector is None:
                _workflow_metrics_collector = WorkflowMetricsCollector()
    return _workflow_metrics_collector


def reset_workflow_metrics() -> None:
    """Reset the singleton collector (for testing only)."""
    global _workflow_metrics_collector
    with _metrics_lock:
        _workflow_metrics_collector = None
