"""Unit tests for DeedExaminationService.

Covers checklist-derived defects, blocking defects on approval, routing
of correction notices, registration and survey cross-validation.
"""

from __future__ import annotations

import asyncio

import pytest

from land_registry.bootstrap import WorkflowServices
from land_registry.domain.models.checklist import (
    DEED_EXAMINATION_CHECKLIST,
    complete_all,
    complete_items,
)
from land_registry.domain.models.defect import DefectSeverity, ExaminationDefect
from land_registry.domain.models.workflow_state import DeedState, WorkflowDomain
from land_registry.infrastructure.stubs import (
    NotificationDispatcherStub,
    RegistryRepositoryStub,
    WorkflowRepositoryStub,
)
from tests.helpers.builders import (
    CONVEYANCER,
    EXAMINER,
    PLANNER,
    REGISTRAR,
    SURVEYOR,
    create_scheme,
    make_title,
    registered_title,
    sealed_survey,
    title_under_examination,
)

REQUIRED_ONLY = complete_items(
    DEED_EXAMINATION_CHECKLIST,
    [i.item_id for i in DEED_EXAMINATION_CHECKLIST if i.required],
)


@pytest.fixture
async def scheme(services: WorkflowServices) -> str:
    await create_scheme(services)
    return "scheme-1"


class TestCreateTitle:
    @pytest.mark.asyncio
    async def test_section_must_exist(self, services: WorkflowServices, scheme: str) -> None:
        result = await services.deeds.create_title(
            make_title(section_number="9"), CONVEYANCER
        )

        assert result.error_code == "NOT_FOUND"
        assert result.error == "Section scheme-1/9 not found"

    @pytest.mark.asyncio
    async def test_holder_name_required(self, services: WorkflowServices, scheme: str) -> None:
        result = await services.deeds.create_title(make_title(holder_name=""), CONVEYANCER)

        assert result.error_code == "VALIDATION_ERROR"

    @pytest.mark.asyncio
    async def test_examination_start_is_idempotent(
        self, services: WorkflowServices, scheme: str
    ) -> None:
        await title_under_examination(services)

        again = await services.deeds.start_examination("title-1", EXAMINER)

        assert again.get("already_started") is True
        assert again.get("status") == "under_examination"


class TestExaminationDecision:
    @pytest.mark.asyncio
    async def test_approve_requires_checklist(
        self, services: WorkflowServices, scheme: str
    ) -> None:
        await title_under_examination(services)

        result = await services.deeds.submit_decision("title-1", EXAMINER, "approve")

        assert result.error_code == "CHECKLIST_INCOMPLETE"
        assert len(result.get("missing_items")) == 17

    @pytest.mark.asyncio
    async def test_blocking_defect_prevents_approval(
        self,
        services: WorkflowServices,
        scheme: str,
        workflow_repository: WorkflowRepositoryStub,
    ) -> None:
        await title_under_examination(services)
        defect = ExaminationDefect(
            defect_id="defect-manual-1",
            title="Servitude not disclosed",
            description="Registered servitude missing from deed",
            severity=DefectSeverity.ERROR,
            category="legal",
        )

        result = await services.deeds.submit_decision(
            "title-1",
            EXAMINER,
            "approve",
            checklist=complete_all(DEED_EXAMINATION_CHECKLIST),
            defects=[defect],
        )

        assert result.error_code == "VALIDATION_ERROR"
        assert result.error == "Cannot approve a deed with blocking defects"
        record = await workflow_repository.get(WorkflowDomain.DEED, "title-1")
        assert record is not None and record.state is DeedState.UNDER_EXAMINATION

    @pytest.mark.asyncio
    async def test_warning_defects_do_not_block(
        self, services: WorkflowServices, scheme: str
    ) -> None:
        await title_under_examination(services)

        result = await services.deeds.submit_decision(
            "title-1", EXAMINER, "approve", checklist=REQUIRED_ONLY
        )

        assert result.success
        assert result.get("new_state") == "approved"
        assert result.get("defect_summary") == {"error": 0, "warning": 3, "info": 0}
        assert len(result.warnings) == 3

    @pytest.mark.asyncio
    async def test_revision_routes_corrections_to_each_party(
        self,
        services: WorkflowServices,
        scheme: str,
        dispatcher: NotificationDispatcherStub,
    ) -> None:
        await sealed_survey(services)
        await title_under_examination(services)
        dispatcher.clear()

        result = await services.deeds.submit_decision(
            "title-1", EXAMINER, "request_revision", notes="See correction notices"
        )

        assert result.success
        assert result.get("new_state") == "revision_requested"
        assert result.get("routed_to") == ["conveyancer", "planner", "surveyor"]
        assert result.get("defect_summary") == {"error": 17, "warning": 3, "info": 0}
        corrections = {
            n.party: n
            for n in dispatcher.sent
            if n.event_type == "deed.correction_required"
        }
        assert corrections["planner"].recipient_id == PLANNER.actor_id
        assert corrections["surveyor"].recipient_id == SURVEYOR.actor_id
        assert len(corrections["planner"].payload["defects"]) == 6
        assert len(corrections["surveyor"].payload["defects"]) == 4
        assert len(corrections["conveyancer"].payload["defects"]) == 10
        assert "Update area in legal description" in corrections["planner"].message

    @pytest.mark.asyncio
    async def test_missing_party_becomes_a_warning(
        self, services: WorkflowServices, scheme: str
    ) -> None:
        await title_under_examination(services)

        result = await services.deeds.submit_decision(
            "title-1", EXAMINER, "reject", notes="Deed incomplete"
        )

        assert result.get("new_state") == "rejected"
        assert "No surveyor on record to receive 4 correction(s)" in result.warnings

    @pytest.mark.asyncio
    async def test_failed_notification_keeps_decision(
        self,
        services: WorkflowServices,
        scheme: str,
        dispatcher: NotificationDispatcherStub,
    ) -> None:
        await title_under_examination(services)
        dispatcher.fail_parties.add("conveyancer")

        result = await services.deeds.submit_decision(
            "title-1", EXAMINER, "approve", checklist=complete_all(DEED_EXAMINATION_CHECKLIST)
        )

        assert result.success
        assert result.get("new_state") == "approved"
        assert [n.party for n in result.failed_notifications] == ["conveyancer"]


class TestRegistration:
    @pytest.mark.asyncio
    async def test_register_issues_number(
        self,
        services: WorkflowServices,
        scheme: str,
        registry_repository: RegistryRepositoryStub,
        dispatcher: NotificationDispatcherStub,
    ) -> None:
        await registered_title(services)

        title = await registry_repository.get_title("title-1")
        assert title is not None
        assert title.registration_number == "DEED/2026/TITLE1"
        assert title.registered_at is not None
        assert "deed.registered" in dispatcher.sent_events()

    @pytest.mark.asyncio
    async def test_registering_twice_is_a_no_op(
        self, services: WorkflowServices, scheme: str
    ) -> None:
        await registered_title(services)

        again = await services.deeds.register_title("title-1", REGISTRAR)

        assert again.success
        assert again.get("already_registered") is True
        assert again.get("registration_number") == "DEED/2026/TITLE1"

    @pytest.mark.asyncio
    async def test_cannot_register_before_approval(
        self,
        services: WorkflowServices,
        scheme: str,
        registry_repository: RegistryRepositoryStub,
    ) -> None:
        await title_under_examination(services)

        result = await services.deeds.register_title("title-1", REGISTRAR)

        assert result.error_code == "ILLEGAL_TRANSITION"
        title = await registry_repository.get_title("title-1")
        assert title is not None and title.registration_number is None

    @pytest.mark.asyncio
    async def test_examiner_cannot_register(
        self, services: WorkflowServices, scheme: str
    ) -> None:
        await title_under_examination(services)
        await services.deeds.submit_decision(
            "title-1", EXAMINER, "approve", checklist=complete_all(DEED_EXAMINATION_CHECKLIST)
        )

        result = await services.deeds.register_title("title-1", EXAMINER)

        assert result.error_code == "ROLE_NOT_PERMITTED"


class TestCrossValidation:
    @pytest.mark.asyncio
    async def test_against_sealed_survey(
        self, services: WorkflowServices, scheme: str
    ) -> None:
        await sealed_survey(services)
        await services.deeds.create_title(make_title(), CONVEYANCER)

        result = await services.deeds.cross_validate_with_survey("title-1")

        assert result.success
        assert result.get("is_valid") is True
        assert result.get("validation_warnings") == [
            "Participation quota not found in legal description"
        ]

    @pytest.mark.asyncio
    async def test_area_mismatch(self, services: WorkflowServices, scheme: str) -> None:
        await sealed_survey(services)
        await services.deeds.create_title(
            make_title(legal_description="Section 1 measuring 95.00 m²"), CONVEYANCER
        )

        result = await services.deeds.cross_validate_with_survey("title-1")

        assert result.get("is_valid") is False
        assert result.get("errors") == [
            "Area mismatch: Legal description has 95.00 m², survey has 100.00 m²"
        ]

    @pytest.mark.asyncio
    async def test_slow_section_read_times_out(
        self,
        services: WorkflowServices,
        scheme: str,
        registry_repository: RegistryRepositoryStub,
    ) -> None:
        await sealed_survey(services)
        await services.deeds.create_title(make_title(), CONVEYANCER)

        async def _hang(*args: object) -> list[object]:
            await asyncio.sleep(1.0)
            return []

        registry_repository.list_sections = _hang  # type: ignore[method-assign]

        result = await services.deeds.cross_validate_with_survey("title-1")

        assert result.error_code == "PERSISTENCE_TIMEOUT"

    @pytest.mark.asyncio
    async def test_title_without_survey_plan(
        self, services: WorkflowServices, scheme: str
    ) -> None:
        await services.deeds.create_title(make_title(survey_plan_id=None), CONVEYANCER)

        result = await services.deeds.cross_validate_with_survey("title-1")

        assert result.get("is_valid") is False
        assert result.get("errors") == ["Title does not reference a survey plan"]

    @pytest.mark.asyncio
    async def test_referenced_plan_missing(
        self, services: WorkflowServices, scheme: str
    ) -> None:
        await services.deeds.create_title(make_title(), CONVEYANCER)

        result = await services.deeds.cross_validate_with_survey("title-1")

        assert result.error_code == "NOT_FOUND"
