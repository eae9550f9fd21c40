"""Unit tests for SurveyReviewService (computation, sealing, seal checks)."""

from __future__ import annotations

from dataclasses import replace

import pytest

from land_registry.bootstrap import WorkflowServices
from land_registry.domain.models.checklist import SURVEY_REVIEW_CHECKLIST, complete_all
from land_registry.infrastructure.stubs import (
    NotificationDispatcherStub,
    RegistryRepositoryStub,
)
from tests.helpers.builders import (
    SURVEYOR,
    SURVEYOR_GENERAL,
    create_scheme,
    make_survey_plan,
    sealed_survey,
    square,
)


class TestCreateAndCompute:
    @pytest.mark.asyncio
    async def test_plan_needs_an_existing_scheme(self, services: WorkflowServices) -> None:
        result = await services.survey.create_survey_plan(make_survey_plan(), SURVEYOR)

        assert result.error_code == "NOT_FOUND"
        assert result.error == "Scheme scheme-1 not found"

    @pytest.mark.asyncio
    async def test_parent_area_must_be_positive(self, services: WorkflowServices) -> None:
        await create_scheme(services)

        result = await services.survey.create_survey_plan(
            make_survey_plan(parent_parcel_area=0.0), SURVEYOR
        )

        assert result.error_code == "VALIDATION_ERROR"

    @pytest.mark.asyncio
    async def test_boundaries_are_captured_on_sections(
        self, services: WorkflowServices, registry_repository: RegistryRepositoryStub
    ) -> None:
        await create_scheme(services)

        result = await services.survey.create_survey_plan(
            make_survey_plan(), SURVEYOR, section_boundaries={"1": square(0, 0, 10)}
        )

        assert result.success
        assert result.get("status") == "draft"
        section = await registry_repository.get_section("scheme-1", "1")
        assert section is not None and section.boundary == square(0, 0, 10)

    @pytest.mark.asyncio
    async def test_compute_blocks_on_topology_errors(
        self, services: WorkflowServices
    ) -> None:
        await create_scheme(services)
        await services.survey.create_survey_plan(
            make_survey_plan(),
            SURVEYOR,
            section_boundaries={"1": square(0, 0, 10), "2": square(5, 5, 10)},
        )

        result = await services.survey.compute_survey("plan-1", SURVEYOR)

        assert result.error_code == "VALIDATION_ERROR"
        assert result.error == "Survey geometry has 1 topology error(s)"

    @pytest.mark.asyncio
    async def test_compute_reports_gap_warnings(self, services: WorkflowServices) -> None:
        await create_scheme(services)
        await services.survey.create_survey_plan(
            make_survey_plan(parent_boundary=square(0, 0, 20)),
            SURVEYOR,
            section_boundaries={"1": square(0, 0, 10), "2": square(10, 0, 10)},
        )

        result = await services.survey.compute_survey("plan-1", SURVEYOR)

        assert result.success
        assert result.get("status") == "computed"
        assert result.get("topology")["is_valid"] is True
        assert any("of the parent parcel is not covered" in w for w in result.warnings)


class TestSealing:
    @pytest.mark.asyncio
    async def test_approval_seals_the_plan(
        self,
        services: WorkflowServices,
        registry_repository: RegistryRepositoryStub,
        dispatcher: NotificationDispatcherStub,
    ) -> None:
        await create_scheme(services)

        seal_hash = await sealed_survey(services)

        assert len(seal_hash) == 64
        plan = await registry_repository.get_survey_plan("plan-1")
        assert plan is not None
        assert plan.seal_hash == seal_hash
        assert plan.sealed_by == SURVEYOR_GENERAL.actor_id
        assert "survey.sealed" in dispatcher.sent_events()
        (notice,) = dispatcher.sent_to("surveyor")
        assert notice.recipient_id == SURVEYOR.actor_id

    @pytest.mark.asyncio
    async def test_verify_seal_detects_tampering(
        self, services: WorkflowServices, registry_repository: RegistryRepositoryStub
    ) -> None:
        await create_scheme(services)
        await sealed_survey(services)
        assert (await services.survey.verify_seal("plan-1")).get("is_valid") is True

        section = await registry_repository.get_section("scheme-1", "2")
        assert section is not None
        await registry_repository.save_sections([replace(section, area=150.0)])
        result = await services.survey.verify_seal("plan-1")

        assert result.success
        assert result.get("is_valid") is False
        assert result.get("seal_error") == "Seal hash does not match current survey data"

    @pytest.mark.asyncio
    async def test_unsealed_plan_has_no_valid_seal(self, services: WorkflowServices) -> None:
        await create_scheme(services)
        await services.survey.create_survey_plan(make_survey_plan(), SURVEYOR)

        result = await services.survey.verify_seal("plan-1")

        assert result.get("is_valid") is False
        assert result.get("seal_error") == "Survey plan seal hash is missing"

    @pytest.mark.asyncio
    async def test_surveyor_cannot_seal_own_plan(
        self, services: WorkflowServices, registry_repository: RegistryRepositoryStub
    ) -> None:
        await create_scheme(services)
        await services.survey.create_survey_plan(make_survey_plan(), SURVEYOR)
        await services.survey.compute_survey("plan-1", SURVEYOR)
        await services.survey.start_review("plan-1", SURVEYOR_GENERAL)

        result = await services.survey.submit_decision(
            "plan-1", SURVEYOR, "approve", checklist=complete_all(SURVEY_REVIEW_CHECKLIST)
        )

        assert result.error_code == "ROLE_NOT_PERMITTED"
        plan = await registry_repository.get_survey_plan("plan-1")
        assert plan is not None and plan.seal_hash is None

    @pytest.mark.asyncio
    async def test_revision_then_recompute(self, services: WorkflowServices) -> None:
        await create_scheme(services)
        await services.survey.create_survey_plan(make_survey_plan(), SURVEYOR)
        await services.survey.compute_survey("plan-1", SURVEYOR)
        await services.survey.start_review("plan-1", SURVEYOR_GENERAL)
        revise = await services.survey.submit_decision(
            "plan-1", SURVEYOR_GENERAL, "request_revision", notes="Control points missing"
        )
        assert revise.get("new_state") == "revision_requested"

        result = await services.survey.compute_survey("plan-1", SURVEYOR)

        assert result.success
        assert result.get("resubmission") is True
