"""Integration tests running a scheme from planning to a transferred title.

All services share one set of stubs, so each step sees what the
previous ones wrote.
"""

from __future__ import annotations

from datetime import date

import pytest

from land_registry.bootstrap import WorkflowServices
from land_registry.domain.models.amendment import NewSectionSpec
from land_registry.domain.models.workflow_state import WorkflowDomain
from land_registry.infrastructure.stubs import AuditLogStub, RegistryRepositoryStub
from tests.helpers.builders import (
    CONVEYANCER,
    PLANNER,
    REGISTRAR,
    approved_scheme,
    registered_title,
    sealed_survey,
)


@pytest.mark.asyncio
async def test_scheme_to_transfer_and_amendment(
    services: WorkflowServices,
    registry_repository: RegistryRepositoryStub,
    audit_log: AuditLogStub,
) -> None:
    approval_number = await approved_scheme(services)
    quotas = await services.quotas.calculate_quotas("scheme-1", PLANNER)
    await sealed_survey(services)
    await registered_title(services)

    assert approval_number
    assert quotas.success
    check = await services.deeds.cross_validate_with_survey("title-1")
    assert check.get("is_valid") is True
    assert check.get("errors") == []

    submitted = await services.transfers.submit_transfer(
        "xfer-1",
        "title-1",
        "sale",
        "Bob Buyer",
        date(2026, 3, 2),
        CONVEYANCER,
        new_holder_id="63-654321B21",
        consideration=150_000.0,
    )
    assert submitted.success, submitted.error
    assert (await services.transfers.approve_transfer("xfer-1", REGISTRAR)).success
    transferred = await services.transfers.process_transfer("xfer-1", REGISTRAR)
    assert transferred.success, transferred.error

    amended = await services.amendments.submit_amendment(
        "amend-1",
        "scheme-1",
        "extension",
        "Add a fourth unit above the garages",
        ["1"],
        PLANNER,
        new_sections=[NewSectionSpec("4", 100.0)],
        survey_plan_id="plan-1",
    )
    assert amended.success, amended.error
    assert (await services.amendments.approve_amendment("amend-1", REGISTRAR)).success
    processed = await services.amendments.process_amendment("amend-1", REGISTRAR)
    assert processed.success, processed.error

    title = await registry_repository.get_title("title-1")
    assert title is not None
    assert title.holder_name == "Bob Buyer"
    assert title.registration_number is not None
    sections = await registry_repository.list_sections("scheme-1")
    assert [s.section_number for s in sections] == ["1", "2", "3", "4"]
    assert sum(s.participation_quota or 0.0 for s in sections) == pytest.approx(100.0)

    # The new section is not covered by the original seal
    seal = await services.survey.verify_seal("plan-1")
    assert seal.get("is_valid") is False
    assert seal.get("seal_error") == "Seal hash does not match current survey data"

    deed_trail = await audit_log.list_for_entity("deed", "title-1")
    states = [e.new_values["state"] for e in deed_trail if e.action == "state_transition"]
    assert states[-1] == "registered"


@pytest.mark.asyncio
async def test_planning_history_records_each_step(services: WorkflowServices) -> None:
    await approved_scheme(services)

    result = await services.engine.get_history(WorkflowDomain.PLANNING, "scheme-1")

    assert result.get("current_state") == "approved"
    assert result.get("version") == 4
    assert [t["to_state"] for t in result.get("history")] == [
        "submitted",
        "under_review",
        "approved",
    ]
