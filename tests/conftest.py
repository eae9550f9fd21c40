"""
Pytest configuration and shared fixtures for land registry tests.

Testing Standards:
- All async tests use pytest.mark.asyncio (auto mode enabled in pyproject.toml)
- Use AsyncMock for async function mocking
- Unit tests go in tests/unit/
- Integration tests go in tests/integration/
- Services are wired with in-memory stubs and a FakeTimeAuthority
"""

from __future__ import annotations

from collections.abc import Iterator
from datetime import datetime, timezone

import pytest

from land_registry.bootstrap import WorkflowServices, create_workflow_services
from land_registry.config import TEST_WORKFLOW_CONFIG, WorkflowConfig
from land_registry.domain.models.transition_table import (
    WorkflowRegistry,
    build_workflow_registry,
)
from land_registry.infrastructure.monitoring import (
    WorkflowMetricsCollector,
    reset_workflow_metrics,
)
from land_registry.infrastructure.stubs import (
    AuditLogStub,
    NotificationDispatcherStub,
    RegistryRepositoryStub,
    ReviewRepositoryStub,
    WorkflowRepositoryStub,
)
from tests.helpers import FakeTimeAuthority


@pytest.fixture
def anyio_backend() -> str:
    """Use asyncio as the async backend."""
    return "asyncio"


@pytest.fixture(autouse=True)
def _fresh_metrics() -> Iterator[None]:
    """Keep the process-wide metrics singleton out of test-to-test state."""
    reset_workflow_metrics()
    yield
    reset_workflow_metrics()


@pytest.fixture
def fake_time_authority() -> FakeTimeAuthority:
    """Clock frozen at 2026-03-02 09:00 UTC."""
    return FakeTimeAuthority(frozen_at=datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc))


@pytest.fixture
def config() -> WorkflowConfig:
    return TEST_WORKFLOW_CONFIG


@pytest.fixture
def workflow_registry() -> WorkflowRegistry:
    return build_workflow_registry()


@pytest.fixture
def metrics() -> WorkflowMetricsCollector:
    """Collector with its own prometheus registry."""
    return WorkflowMetricsCollector()


@pytest.fixture
def workflow_repository() -> WorkflowRepositoryStub:
    return WorkflowRepositoryStub()


@pytest.fixture
def registry_repository() -> RegistryRepositoryStub:
    return RegistryRepositoryStub()


@pytest.fixture
def review_repository() -> ReviewRepositoryStub:
    return ReviewRepositoryStub()


@pytest.fixture
def audit_log() -> AuditLogStub:
    return AuditLogStub()


@pytest.fixture
def dispatcher() -> NotificationDispatcherStub:
    return NotificationDispatcherStub()


@pytest.fixture
def services(
    config: WorkflowConfig,
    fake_time_authority: FakeTimeAuthority,
    workflow_registry: WorkflowRegistry,
    workflow_repository: WorkflowRepositoryStub,
    registry_repository: RegistryRepositoryStub,
    review_repository: ReviewRepositoryStub,
    audit_log: AuditLogStub,
    dispatcher: NotificationDispatcherStub,
    metrics: WorkflowMetricsCollector,
) -> WorkflowServices:
    """Every workflow service wired to the stubs above."""
    return create_workflow_services(
        config=config,
        time_authority=fake_time_authority,
        workflow_registry=workflow_registry,
        workflows=workflow_repository,
        registry=registry_repository,
        reviews=review_repository,
        audit_log=audit_log,
        dispatcher=dispatcher,
        metrics=metrics,
    )
