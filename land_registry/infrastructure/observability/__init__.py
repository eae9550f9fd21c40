"""Observability: structured logging and correlation ids."""

from land_registry.infrastructure.observability.correlation import (
    correlation_context,
    correlation_id_processor,
    generate_correlation_id,
    get_correlation_id,
    set_correlation_id,
)
from land_registry.infrastructure.observability.logging import (
    configure_structlog,
    get_logger_for_service,
)

__all__ = [
    "configure_structlog",
    "correlation_context",
    "correlation_id_processor",
    "generate_correlation_id",
    "get_correlation_id",
    "get_logger_for_service",
    "set_correlation_id",
]
