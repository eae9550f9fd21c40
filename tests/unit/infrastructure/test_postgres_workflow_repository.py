"""Unit tests for PostgresWorkflowRepository against a mocked session.

Exercises the conditional-update error mapping without a database.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.exc import IntegrityError

from land_registry.domain.errors import ConcurrentModificationError, EntityNotFoundError
from land_registry.domain.models.state_transition import StateTransition
from land_registry.domain.models.transition_table import build_workflow_registry
from land_registry.domain.models.workflow_record import WorkflowRecord
from land_registry.domain.models.workflow_state import DeedState, WorkflowDomain
from land_registry.infrastructure.adapters.persistence import (
    PostgresWorkflowRepository,
)

NOW = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)


def _result(rowcount: int = 1, row: object = None, rows: list[object] | None = None):
    result = MagicMock()
    result.rowcount = rowcount
    result.fetchone.return_value = row
    result.fetchall.return_value = rows or []
    return result


@pytest.fixture
def session() -> MagicMock:
    session = MagicMock()
    session.execute = AsyncMock()

    @asynccontextmanager
    async def begin():
        yield

    session.begin = begin
    return session


@pytest.fixture
def repository(session: MagicMock) -> PostgresWorkflowRepository:
    @asynccontextmanager
    async def factory():
        yield session

    return PostgresWorkflowRepository(
        session_factory=factory,  # type: ignore[arg-type]
        workflow_registry=build_workflow_registry(),
    )


def _submit() -> StateTransition:
    return StateTransition.create(
        DeedState.DRAFT, DeedState.SUBMITTED, "conveyancer-1", NOW
    )


class TestApplyTransition:
    @pytest.mark.asyncio
    async def test_lost_race_is_a_conflict(
        self, repository: PostgresWorkflowRepository, session: MagicMock
    ) -> None:
        session.execute.side_effect = [_result(rowcount=0), _result(row=(1,))]

        with pytest.raises(ConcurrentModificationError):
            await repository.apply_transition(
                WorkflowDomain.DEED, "title-1", DeedState.DRAFT, _submit()
            )

        assert session.execute.await_count == 2

    @pytest.mark.asyncio
    async def test_missing_row_is_not_found(
        self, repository: PostgresWorkflowRepository, session: MagicMock
    ) -> None:
        session.execute.side_effect = [_result(rowcount=0), _result(row=None)]

        with pytest.raises(EntityNotFoundError):
            await repository.apply_transition(
                WorkflowDomain.DEED, "title-9", DeedState.DRAFT, _submit()
            )

    @pytest.mark.asyncio
    async def test_success_writes_history_and_reloads(
        self, repository: PostgresWorkflowRepository, session: MagicMock
    ) -> None:
        transition = _submit()
        history_row = SimpleNamespace(
            transition_id=transition.transition_id,
            from_state="draft",
            to_state="submitted",
            actor_id="conveyancer-1",
            reason=None,
            metadata="{}",
            occurred_at=NOW,
        )
        session.execute.side_effect = [
            _result(rowcount=1),
            _result(),
            _result(row=SimpleNamespace(state="submitted", version=2)),
            _result(rows=[history_row]),
        ]

        record = await repository.apply_transition(
            WorkflowDomain.DEED, "title-1", DeedState.DRAFT, transition
        )

        assert record.state is DeedState.SUBMITTED
        assert record.version == 2
        assert record.history[0].transition_id == transition.transition_id
        insert_params = session.execute.await_args_list[1].args[1]
        assert insert_params["metadata"] == "{}"


class TestCreateAndGet:
    @pytest.mark.asyncio
    async def test_duplicate_create(
        self, repository: PostgresWorkflowRepository, session: MagicMock
    ) -> None:
        session.execute.side_effect = IntegrityError("INSERT", {}, Exception("dup"))

        with pytest.raises(ValueError, match="already exists"):
            await repository.create(
                WorkflowRecord("title-1", WorkflowDomain.DEED, DeedState.DRAFT)
            )

    @pytest.mark.asyncio
    async def test_get_unknown_entity(
        self, repository: PostgresWorkflowRepository, session: MagicMock
    ) -> None:
        session.execute.return_value = _result(row=None)

        assert await repository.get(WorkflowDomain.DEED, "title-9") is None
        assert session.execute.await_count == 1

    @pytest.mark.asyncio
    async def test_list_by_state_without_rows(
        self, repository: PostgresWorkflowRepository, session: MagicMock
    ) -> None:
        session.execute.return_value = _result(rows=[])

        assert await repository.list_by_state(WorkflowDomain.DEED, DeedState.DRAFT) == []
