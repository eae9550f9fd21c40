"""PostgreSQL workflow repository.

Stores one row per (domain, entity_id) in ``workflow_records`` and one
row per accepted transition in ``workflow_transitions``.

apply_transition runs a single transaction:
1. ``UPDATE workflow_records ... WHERE state = :expected_state``
2. zero rows -> ConcurrentModificationError (or EntityNotFoundError)
3. ``INSERT INTO workflow_transitions`` for the history entry

Usage:
    from land_registry.bootstrap.database import get_session_factory

    repository = PostgresWorkflowRepository(
        session_factory=get_session_factory(),
        workflow_registry=build_workflow_registry(),
    )
"""

from __future__ import annotations

import json
from collections import defaultdict
from enum import Enum
from typing import Any
from uuid import UUID

from sqlalchemy import text
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from structlog import get_logger

from land_registry.domain.errors import (
    ConcurrentModificationError,
    EntityNotFoundError,
)
from land_registry.domain.models.state_transition import StateTransition
from land_registry.domain.models.transition_table import WorkflowRegistry
from land_registry.domain.models.workflow_record import WorkflowRecord
from land_registry.domain.models.workflow_state import WorkflowDomain

logger = get_logger()

SCHEMA_STATEMENTS: tuple[str, ...] = (
    """
    CREATE TABLE IF NOT EXISTS workflow_records (
        domain TEXT NOT NULL,
        entity_id TEXT NOT NULL,
        state TEXT NOT NULL,
        version INTEGER NOT NULL DEFAULT 1,
        updated_at TIMESTAMPTZ NOT NULL DEFAULT now(),
        PRIMARY KEY (domain, entity_id)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS workflow_transitions (
        transition_id UUID PRIMARY KEY,
        domain TEXT NOT NULL,
        entity_id TEXT NOT NULL,
        from_state TEXT NOT NULL,
        to_state TEXT NOT NULL,
        actor_id TEXT NOT NULL,
        reason TEXT,
        metadata JSONB NOT NULL DEFAULT '{}'::jsonb,
        occurred_at TIMESTAMPTZ NOT NULL,
        FOREIGN KEY (domain, entity_id)
            REFERENCES workflow_records (domain, entity_id)
    )
    """,
    """
    CREATE INDEX IF NOT EXISTS ix_workflow_transitions_entity
        ON workflow_transitions (domain, entity_id, occurred_at)
    """,
    """
    CREATE INDEX IF NOT EXISTS ix_workflow_records_state
        ON workflow_records (domain, state)
    """,
)


class PostgresWorkflowRepository:
    """Workflow state storage in PostgreSQL.

    Attributes:
        _session_factory: SQLAlchemy async session factory.
        _registry: Transition tables, used to map stored state strings back
            to each domain's state enum.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        workflow_registry: WorkflowRegistry,
    ) -> None:
        self._session_factory = session_factory
        self._registry = workflow_registry

    def _state(self, domain: WorkflowDomain, value: str) -> Enum:
        return self._registry.table_for(domain).state_type(value)

    def _transition(self, domain: WorkflowDomain, row: Any) -> StateTransition:
        metadata = row.metadata
        if isinstance(metadata, str):
            metadata = json.loads(metadata)
        return StateTransition(
            transition_id=UUID(str(row.transition_id)),
            from_state=self._state(domain, row.from_state),
            to_state=self._state(domain, row.to_state),
            timestamp=row.occurred_at,
            actor_id=row.actor_id,
            reason=row.reason,
            metadata=dict(metadata or {}),
        )

    async def create(self, record: WorkflowRecord) -> None:
        async with self._session_factory() as session:
            try:
                async with session.begin():
                    await session.execute(
                        text("""
                            INSERT INTO workflow_records (domain, entity_id, state, version)
                            VALUES (:domain, :entity_id, :state, :version)
                        """),
                        {
                            "domain": record.domain.value,
                            "entity_id": record.entity_id,
                            "state": record.state.value,
                            "version": record.version,
                        },
                    )
            except IntegrityError as exc:
                raise ValueError(
                    f"{record.domain.value} workflow for {record.entity_id} already exists"
                ) from exc
        logger.debug(
            "workflow_record_created",
            domain=record.domain.value,
            entity_id=record.entity_id,
        )

    async def get(self, domain: WorkflowDomain, entity_id: str) -> WorkflowRecord | None:
        async with self._session_factory() as session:
            result = await session.execute(
                text("""
                    SELECT state, version
                    FROM workflow_records
                    WHERE domain = :domain AND entity_id = :entity_id
                """),
                {"domain": domain.value, "entity_id": entity_id},
            )
            row = result.fetchone()
            if row is None:
                return None
            history = await session.execute(
                text("""
                    SELECT transition_id, from_state, to_state, actor_id,
                           reason, metadata, occurred_at
                    FROM workflow_transitions
                    WHERE domain = :domain AND entity_id = :entity_id
                    ORDER BY occurred_at, transition_id
                """),
                {"domain": domain.value, "entity_id": entity_id},
            )
            transitions = tuple(self._transition(domain, t) for t in history.fetchall())
        return WorkflowRecord(
            entity_id=entity_id,
            domain=domain,
            state=self._state(domain, row.state),
            version=row.version,
            history=transitions,
        )

    async def list_by_state(
        self,
        domain: WorkflowDomain,
        state: Enum,
        limit: int = 100,
    ) -> list[WorkflowRecord]:
        async with self._session_factory() as session:
            result = await session.execute(
                text("""
                    SELECT entity_id, state, version
                    FROM workflow_records
                    WHERE domain = :domain AND state = :state
                    ORDER BY updated_at, entity_id
                    LIMIT :limit
                """),
                {"domain": domain.value, "state": state.value, "limit": limit},
            )
            rows = result.fetchall()
            if not rows:
                return []
            history = await session.execute(
                text("""
                    SELECT entity_id, transition_id, from_state, to_state, actor_id,
                           reason, metadata, occurred_at
                    FROM workflow_transitions
                    WHERE domain = :domain AND entity_id = ANY(:entity_ids)
                    ORDER BY occurred_at, transition_id
                """),
                {"domain": domain.value, "entity_ids": [r.entity_id for r in rows]},
            )
            by_entity: dict[str, list[StateTransition]] = defaultdict(list)
            for t in history.fetchall():
                by_entity[t.entity_id].append(self._transition(domain, t))
        return [
            WorkflowRecord(
                entity_id=r.entity_id,
                domain=domain,
                state=self._state(domain, r.state),
                version=r.version,
                history=tuple(by_entity[r.entity_id]),
            )
            for r in rows
        ]

    async def apply_transition(
        self,
        domain: WorkflowDomain,
        entity_id: str,
        expected_state: Enum,
        transition: StateTransition,
    ) -> WorkflowRecord:
        """Conditionally update state and append history in one transaction."""
        async with self._session_factory() as session:
            async with session.begin():
                result = await session.execute(
                    text("""
                        UPDATE workflow_records
                        SET state = :to_state,
                            version = version + 1,
                            updated_at = :occurred_at
                        WHERE domain = :domain
                          AND entity_id = :entity_id
                          AND state = :expected_state
                    """),
                    {
                        "domain": domain.value,
                        "entity_id": entity_id,
                        "expected_state": expected_state.value,
                        "to_state": transition.to_state.value,
                        "occurred_at": transition.timestamp,
                    },
                )
                if result.rowcount == 0:
                    exists = await session.execute(
                        text("""
                            SELECT 1 FROM workflow_records
                            WHERE domain = :domain AND entity_id = :entity_id
                        """),
                        {"domain": domain.value, "entity_id": entity_id},
                    )
                    if exists.fetchone() is None:
                        raise EntityNotFoundError(domain.value, entity_id)
                    logger.warning(
                        "workflow_cas_conflict",
                        domain=domain.value,
                        entity_id=entity_id,
                        expected_state=expected_state.value,
                    )
                    raise ConcurrentModificationError(
                        entity_id, expected_state, f"{domain.value}_transition"
                    )
                await session.execute(
                    text("""
                        INSERT INTO workflow_transitions (
                            transition_id, domain, entity_id, from_state, to_state,
                            actor_id, reason, metadata, occurred_at
                        ) VALUES (
                            :transition_id, :domain, :entity_id, :from_state, :to_state,
                            :actor_id, :reason, CAST(:metadata AS JSONB), :occurred_at
                        )
                    """),
                    {
                        "transition_id": transition.transition_id,
                        "domain": domain.value,
                        "entity_id": entity_id,
                        "from_state": transition.from_state.value,
                        "to_state": transition.to_state.value,
                        "actor_id": transition.actor_id,
                        "reason": transition.reason,
                        "metadata": json.dumps(transition.metadata, default=str),
                        "occurred_at": transition.timestamp,
                    },
                )
        record = await self.get(domain, entity_id)
        if record is None:
            raise EntityNotFoundError(domain.value, entity_id)
        return record
