"""Base service helpers shared by every workflow service.

Provides:
- LoggingMixin: structured logger bound with service and correlation id
- WorkflowServiceBase: bounded persistence calls and the uniform
  error-to-result mapping used at the module boundary

Usage:
    class MyService(WorkflowServiceBase):
        async def do_something(self, entity_id: str) -> WorkflowResult:
            return await self._execute(
                "do_something",
                lambda: self._do_something(entity_id),
                entity_id=entity_id,
            )
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

import structlog

from land_registry.application.ports.time_authority import TimeAuthorityProtocol
from land_registry.config import DEFAULT_WORKFLOW_CONFIG, WorkflowConfig
from land_registry.domain.errors import (
    ChecklistIncompleteError,
    ConcurrentModificationError,
    IllegalTransitionError,
    PersistenceTimeoutError,
    ValidationError,
    WindowClosedError,
)
from land_registry.domain.exceptions import LandRegistryError
from land_registry.domain.models.workflow_result import (
    GENERIC_ERROR_MESSAGE,
    WorkflowResult,
)
from land_registry.infrastructure.monitoring import (
    WorkflowMetricsCollector,
    get_workflow_metrics,
)
from land_registry.infrastructure.observability.correlation import get_correlation_id

T = TypeVar("T")

INTERNAL_ERROR_CODE = "INTERNAL_ERROR"


class LoggingMixin:
    """Mixin providing structured logging for services.

    The logger is bound with:
    - service: The class name of the service
    - component: The component type (default: "workflow")

    Each operation gets:
    - operation: The name of the operation being performed
    - correlation_id: From context for distributed tracing
    - Any additional context passed to _log_operation()

    Attributes:
        _log: The structlog BoundLogger for this service instance.
    """

    _log: structlog.BoundLogger

    def _init_logger(self, component: str = "workflow") -> None:
        """Initialize the logger with service name binding.

        Should be called in __init__ after setting up dependencies.

        Args:
            component: The component type for log categorization.
        """
        self._log = structlog.get_logger().bind(
            service=self.__class__.__name__,
            component=component,
        )

    def _log_operation(
        self,
        operation: str,
        **context: object,
    ) -> structlog.BoundLogger:
        """Create operation-scoped logger with correlation ID.

        Args:
            operation: Name of the operation being performed.
            **context: Additional context to bind to the logger.

        Returns:
            BoundLogger with operation and correlation context.
        """
        return self._log.bind(
            operation=operation,
            correlation_id=get_correlation_id(),
            **context,
        )


def error_details(exc: LandRegistryError) -> dict[str, Any]:
    """Structured fields of a domain error worth returning to the caller."""
    if isinstance(exc, ChecklistIncompleteError):
        return {"missing_items": list(exc.missing_items)}
    if isinstance(exc, WindowClosedError):
        return {
            "days_remaining": exc.days_remaining,
            "window_start": exc.window_start.isoformat(),
            "window_end": exc.window_end.isoformat(),
        }
    if isinstance(exc, IllegalTransitionError):
        return {
            "current_state": exc.from_state.value,
            "allowed_transitions": [s.value for s in exc.allowed_transitions],
        }
    if isinstance(exc, ConcurrentModificationError):
        return {"entity_id": exc.entity_id}
    if isinstance(exc, ValidationError) and len(exc.errors) > 1:
        return {"errors": list(exc.errors)}
    return {}


async def execute_operation(
    operation: str,
    call: Callable[[], Awaitable[WorkflowResult]],
    *,
    log: structlog.BoundLogger,
    metrics: WorkflowMetricsCollector,
    domain: str = "none",
) -> WorkflowResult:
    """Run an operation and map every exception to a WorkflowResult.

    - LandRegistryError becomes a failure carrying its message and code.
    - Anything else is logged with its traceback and reported with the
      generic message; details never leave the process.

    Args:
        operation: Operation name (metrics label and log field).
        call: Zero-argument coroutine factory doing the work.
        log: Operation-scoped logger.
        metrics: Collector to record rejections, conflicts and duration.
        domain: Workflow domain label for metrics.
    """
    started = time.perf_counter()
    try:
        return await call()
    except ConcurrentModificationError as exc:
        metrics.record_conflict(domain)
        metrics.record_rejection(domain, exc.error_code)
        log.warning("concurrent_modification", entity_id=exc.entity_id)
        return WorkflowResult.failure(
            exc.message, error_code=exc.error_code, **error_details(exc)
        )
    except LandRegistryError as exc:
        metrics.record_rejection(domain, exc.error_code)
        log.info("operation_rejected", error_code=exc.error_code, error=exc.message)
        warnings = exc.warnings if isinstance(exc, ValidationError) else ()
        return WorkflowResult.failure(
            exc.message,
            error_code=exc.error_code,
            warnings=warnings,
            **error_details(exc),
        )
    except Exception:
        metrics.record_rejection(domain, INTERNAL_ERROR_CODE)
        log.exception("operation_failed_unexpectedly")
        return WorkflowResult.failure(
            GENERIC_ERROR_MESSAGE, error_code=INTERNAL_ERROR_CODE
        )
    finally:
        metrics.observe_duration(operation, time.perf_counter() - started)


class WorkflowServiceBase(LoggingMixin):
    """Shared plumbing for workflow services.

    Attributes:
        _time: Injected clock.
        _config: Workflow configuration.
        _metrics: Prometheus collector.
    """

    _domain_label = "none"

    def __init__(
        self,
        *,
        time_authority: TimeAuthorityProtocol,
        config: WorkflowConfig = DEFAULT_WORKFLOW_CONFIG,
        metrics: WorkflowMetricsCollector | None = None,
    ) -> None:
        self._time = time_authority
        self._config = config
        self._metrics = metrics or get_workflow_metrics()
        self._init_logger()

    async def _bounded(self, operation: str, awaitable: Awaitable[T]) -> T:
        """Await a persistence call within the configured timeout.

        Raises:
            PersistenceTimeoutError: If the call does not finish in time.
        """
        timeout = self._config.persistence_timeout_seconds
        try:
            return await asyncio.wait_for(awaitable, timeout=timeout)
        except asyncio.TimeoutError as exc:
            raise PersistenceTimeoutError(operation, timeout) from exc

    async def _execute(
        self,
        operation: str,
        call: Callable[[], Awaitable[WorkflowResult]],
        **context: object,
    ) -> WorkflowResult:
        log = self._log_operation(operation, **context)
        return await execute_operation(
            operation,
            call,
            log=log,
            metrics=self._metrics,
            domain=self._domain_label,
        )
