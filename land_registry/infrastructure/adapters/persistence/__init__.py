"""Persistence adapters backed by PostgreSQL via SQLAlchemy."""

from land_registry.infrastructure.adapters.persistence.workflow_repository import (
    PostgresWorkflowRepository,
)

__all__: list[str] = ["PostgresWorkflowRepository"]
