"""Unit tests for service wiring and database URL handling."""

from __future__ import annotations

from collections.abc import Iterator

import pytest

from land_registry.bootstrap import (
    create_workflow_services,
    get_workflow_services,
    reset_workflow_services,
)
from land_registry.bootstrap.database import (
    get_database_url,
    mask_database_url,
    reset_database_bootstrap,
)
from land_registry.bootstrap.workflow import create_workflow_repository
from land_registry.config import TEST_WORKFLOW_CONFIG
from land_registry.domain.models.transition_table import build_workflow_registry
from land_registry.domain.models.workflow_state import WorkflowDomain
from land_registry.infrastructure.adapters.persistence import (
    PostgresWorkflowRepository,
)
from land_registry.infrastructure.stubs import WorkflowRepositoryStub


@pytest.fixture(autouse=True)
def _reset_singletons() -> Iterator[None]:
    reset_workflow_services()
    reset_database_bootstrap()
    yield
    reset_workflow_services()
    reset_database_bootstrap()


class TestDatabaseUrl:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("postgresql://u:p@db:5432/registry", "postgresql+asyncpg://u:p@db:5432/registry"),
            ("postgres://u:p@db/registry", "postgresql+asyncpg://u:p@db/registry"),
            ("postgresql+asyncpg://u@db/registry", "postgresql+asyncpg://u@db/registry"),
            ("u:p@db/registry", "postgresql+asyncpg://u:p@db/registry"),
        ],
    )
    def test_converted_to_asyncpg(
        self, monkeypatch: pytest.MonkeyPatch, raw: str, expected: str
    ) -> None:
        monkeypatch.setenv("DATABASE_URL", raw)
        assert get_database_url() == expected

    def test_missing_url(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("DATABASE_URL", raising=False)
        with pytest.raises(ValueError, match="DATABASE_URL environment variable not set"):
            get_database_url()

    def test_password_is_masked(self) -> None:
        assert (
            mask_database_url("postgresql+asyncpg://registrar:s3cret@db:5432/registry")
            == "postgresql+asyncpg://registrar:***@db:5432/registry"
        )

    def test_url_without_password_is_unchanged(self) -> None:
        url = "postgresql+asyncpg://registrar@db/registry"
        assert mask_database_url(url) == url


class TestWorkflowRepositorySelection:
    def test_stub_without_database(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("DATABASE_URL", raising=False)

        repository = create_workflow_repository(build_workflow_registry())

        assert isinstance(repository, WorkflowRepositoryStub)

    def test_postgres_with_database(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("DATABASE_URL", "postgresql://u:p@localhost:5432/registry")

        repository = create_workflow_repository(build_workflow_registry())

        assert isinstance(repository, PostgresWorkflowRepository)


class TestWorkflowServices:
    def test_all_domains_share_one_registry(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("DATABASE_URL", raising=False)

        services = create_workflow_services(config=TEST_WORKFLOW_CONFIG)

        assert set(services.workflow_registry.tables) == set(WorkflowDomain)
        assert services.engine is not None
        assert services.config is TEST_WORKFLOW_CONFIG

    def test_singleton_until_reset(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("DATABASE_URL", raising=False)

        first = get_workflow_services()

        assert get_workflow_services() is first
        reset_workflow_services()
        assert get_workflow_services() is not first
