"""Unit tests for the request DTOs and their conversion to domain records."""

from __future__ import annotations

from datetime import date

import pytest
from pydantic import ValidationError

from land_registry.application.dtos import (
    AmendmentRequest,
    DecisionRequest,
    DefectInput,
    DisputeRequest,
    SchemeSubmission,
    SurveyPlanSubmission,
    TitleSubmission,
    TransferRequest,
)
from land_registry.bootstrap import WorkflowServices
from land_registry.domain.models.checklist import PLANNING_REVIEW_CHECKLIST
from land_registry.domain.models.defect import DefectSeverity
from land_registry.domain.models.geometry import Coordinate
from tests.helpers.builders import PLANNER, PLANNING_AUTHORITY, scheme_under_review


def _scheme_payload(**overrides: object) -> dict[str, object]:
    payload: dict[str, object] = {
        "scheme_id": "scheme-1",
        "scheme_number": "SS/2026/001",
        "planner_id": PLANNER.actor_id,
        "parent_parcel_area": 400.0,
        "sections": [
            {"section_number": " 1 ", "area": 120.0},
            {"section_number": "2", "area": 80.0, "floor_level": 1},
        ],
    }
    payload.update(overrides)
    return payload


class TestSchemeSubmission:
    def test_converts_to_domain(self) -> None:
        scheme, sections = SchemeSubmission.model_validate(_scheme_payload()).to_domain()

        assert scheme.scheme_number == "SS/2026/001"
        assert [s.section_number for s in sections] == ["1", "2"]
        assert sections[1].floor_level == 1
        assert {s.scheme_id for s in sections} == {"scheme-1"}

    def test_duplicate_section_numbers(self) -> None:
        with pytest.raises(ValidationError, match="Duplicate section numbers: 1"):
            SchemeSubmission.model_validate(
                _scheme_payload(
                    sections=[
                        {"section_number": "1", "area": 1.0},
                        {"section_number": "1 ", "area": 2.0},
                    ]
                )
            )

    def test_blank_section_number(self) -> None:
        with pytest.raises(ValidationError):
            SchemeSubmission.model_validate(
                _scheme_payload(sections=[{"section_number": "  ", "area": 1.0}])
            )

    def test_parcel_area_must_be_positive(self) -> None:
        with pytest.raises(ValidationError):
            SchemeSubmission.model_validate(_scheme_payload(parent_parcel_area=0))

    @pytest.mark.asyncio
    async def test_feeds_the_planning_service(self, services: WorkflowServices) -> None:
        scheme, sections = SchemeSubmission.model_validate(_scheme_payload()).to_domain()

        result = await services.planning.create_scheme(scheme, sections, PLANNER)

        assert result.success
        assert result.get("section_count") == 2


class TestSurveyAndTitle:
    def test_survey_plan_boundaries(self) -> None:
        submission = SurveyPlanSubmission.model_validate(
            {
                "plan_id": "plan-1",
                "scheme_id": "scheme-1",
                "surveyor_id": "surveyor-1",
                "parent_parcel_area": 400.0,
                "section_boundaries": {
                    "1": [{"x": 0, "y": 0}, {"x": 10, "y": 0}, {"x": 10, "y": 10}]
                },
            }
        )

        assert submission.to_domain().parent_boundary == ()
        assert submission.boundaries()["1"][1] == Coordinate(10.0, 0.0)

    def test_title_holder_is_trimmed(self) -> None:
        title = TitleSubmission(
            title_id="title-1",
            scheme_id="scheme-1",
            section_number="1",
            conveyancer_id="conveyancer-1",
            holder_name="  Alice Holder ",
        ).to_domain()

        assert title.holder_name == "Alice Holder"
        assert title.has_active_mortgage is False


class TestDecisionRequest:
    def test_unknown_decision(self) -> None:
        with pytest.raises(ValidationError):
            DecisionRequest(decision="maybe")  # type: ignore[arg-type]

    def test_no_checklist_means_none(self) -> None:
        assert DecisionRequest(decision="approve").apply_checklist(
            PLANNING_REVIEW_CHECKLIST
        ) is None

    def test_updates_are_merged_onto_base(self) -> None:
        request = DecisionRequest.model_validate(
            {
                "decision": "approve",
                "checklist": [
                    {"item_id": "compliance-1"},
                    {"item_id": "technical-1", "notes": "Checked on site"},
                ],
            }
        )

        merged = request.apply_checklist(PLANNING_REVIEW_CHECKLIST)

        assert merged is not None
        assert len(merged) == len(PLANNING_REVIEW_CHECKLIST)
        completed = {i.item_id: i for i in merged if i.completed}
        assert set(completed) == {"compliance-1", "technical-1"}
        assert completed["technical-1"].notes == "Checked on site"

    def test_unknown_checklist_item(self) -> None:
        request = DecisionRequest.model_validate(
            {"decision": "approve", "checklist": [{"item_id": "bogus-9"}]}
        )

        with pytest.raises(ValueError, match="Unknown checklist items: bogus-9"):
            request.apply_checklist(PLANNING_REVIEW_CHECKLIST)

    def test_defects_default_to_blocking(self) -> None:
        (defect,) = DecisionRequest(
            decision="request_revision",
            notes="See defects",
            defects=[DefectInput(title="Servitude not disclosed")],
        ).domain_defects()

        assert defect.severity is DefectSeverity.ERROR
        assert defect.defect_id

    @pytest.mark.asyncio
    async def test_feeds_a_planning_decision(self, services: WorkflowServices) -> None:
        await scheme_under_review(services)
        request = DecisionRequest.model_validate(
            {
                "decision": "approve",
                "checklist": [
                    {"item_id": item.item_id} for item in PLANNING_REVIEW_CHECKLIST
                ],
            }
        )

        result = await services.planning.submit_decision(
            "scheme-1",
            PLANNING_AUTHORITY,
            request.decision,
            checklist=request.apply_checklist(PLANNING_REVIEW_CHECKLIST),
            notes=request.notes,
        )

        assert result.get("new_state") == "approved"


class TestCaseRequests:
    def test_sale_requires_consideration(self) -> None:
        with pytest.raises(ValidationError, match="consideration is required for a sale"):
            TransferRequest(
                transfer_id="xfer-1",
                title_id="title-1",
                transfer_type="sale",  # type: ignore[arg-type]
                new_holder_name="Bob Buyer",
                transfer_date=date(2026, 3, 2),
            )

    def test_negative_consideration(self) -> None:
        with pytest.raises(ValidationError):
            TransferRequest(
                transfer_id="xfer-1",
                title_id="title-1",
                transfer_type="gift",  # type: ignore[arg-type]
                new_holder_name="Bob Buyer",
                transfer_date=date(2026, 3, 2),
                consideration=-1.0,
            )

    def test_dispute_needs_a_reference(self) -> None:
        with pytest.raises(ValidationError, match="At least one reference"):
            DisputeRequest(
                dispute_id="dispute-1",
                dispute_type="boundary",  # type: ignore[arg-type]
                complainant_name="Dana",
                description="Wall moved",
            )

    def test_amendment_new_sections(self) -> None:
        request = AmendmentRequest.model_validate(
            {
                "amendment_id": "amend-1",
                "scheme_id": "scheme-1",
                "amendment_type": "extension",
                "description": "Add a unit",
                "affected_sections": ["1"],
                "new_sections": [{"section_number": " 4 ", "area": 100.0}],
            }
        )

        (spec,) = [s.to_domain() for s in request.new_sections]

        assert spec.section_number == "4"
        assert spec.area == 100.0
