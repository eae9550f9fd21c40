"""Unit tests for PlanningReviewService."""

from __future__ import annotations

import asyncio
from dataclasses import replace
from datetime import timedelta
from unittest.mock import AsyncMock

import pytest

from land_registry.application.services.review_workflow import REVIEW_SAVE_FAILURE_WARNING
from land_registry.bootstrap import WorkflowServices
from land_registry.domain.models.checklist import (
    PLANNING_REVIEW_CHECKLIST,
    ChecklistItem,
    complete_all,
    complete_items,
)
from land_registry.domain.models.registry import Section
from land_registry.domain.models.workflow_state import PlanningState, WorkflowDomain
from land_registry.infrastructure.stubs import (
    NotificationDispatcherStub,
    RegistryRepositoryStub,
    ReviewRepositoryStub,
    WorkflowRepositoryStub,
)
from tests.helpers import FakeTimeAuthority
from tests.helpers.builders import (
    PLANNER,
    PLANNING_AUTHORITY,
    approved_scheme,
    create_scheme,
    make_scheme,
    scheme_under_review,
)

REQUIRED_ONLY = complete_items(
    PLANNING_REVIEW_CHECKLIST,
    [i.item_id for i in PLANNING_REVIEW_CHECKLIST if i.required],
)


async def _state(repository: WorkflowRepositoryStub, scheme_id: str = "scheme-1") -> str:
    record = await repository.get(WorkflowDomain.PLANNING, scheme_id)
    assert record is not None
    return record.state.value


class TestCreateAndSubmit:
    @pytest.mark.asyncio
    async def test_create_scheme(self, services: WorkflowServices) -> None:
        result = await services.planning.create_scheme(
            make_scheme(), [Section("scheme-1", "1", 80.0)], PLANNER
        )

        assert result.success
        assert result.get("status") == "draft"
        assert result.get("section_count") == 1

    @pytest.mark.asyncio
    async def test_duplicate_section_numbers(self, services: WorkflowServices) -> None:
        result = await services.planning.create_scheme(
            make_scheme(),
            [Section("scheme-1", "1", 80.0), Section("scheme-1", "1", 20.0)],
            PLANNER,
        )

        assert result.error_code == "VALIDATION_ERROR"
        assert result.error == "Section numbers must be unique within a scheme"

    @pytest.mark.asyncio
    async def test_scheme_cannot_be_created_twice(self, services: WorkflowServices) -> None:
        await create_scheme(services)

        result = await services.planning.create_scheme(make_scheme(), [], PLANNER)

        assert result.error_code == "VALIDATION_ERROR"

    @pytest.mark.asyncio
    async def test_first_submission_opens_objection_window(
        self, services: WorkflowServices, registry_repository: RegistryRepositoryStub
    ) -> None:
        await create_scheme(services)

        result = await services.planning.submit_scheme("scheme-1", PLANNER)

        assert result.success
        assert result.get("status") == "submitted"
        assert result.get("resubmission") is False
        assert result.get("objection_window") == {
            "window_start": "2026-03-02T09:00:00+00:00",
            "window_end": "2026-04-01T09:00:00+00:00",
        }
        scheme = await registry_repository.get_scheme("scheme-1")
        assert scheme is not None and scheme.objection_window is not None

    @pytest.mark.asyncio
    async def test_resubmission_keeps_the_window(
        self, services: WorkflowServices, fake_time_authority: FakeTimeAuthority
    ) -> None:
        await scheme_under_review(services)
        revise = await services.planning.submit_decision(
            "scheme-1", PLANNING_AUTHORITY, "request_revision", notes="Fix access road"
        )
        assert revise.get("new_state") == "revision_requested"
        fake_time_authority.advance(delta=timedelta(days=3))

        result = await services.planning.submit_scheme("scheme-1", PLANNER)

        assert result.success
        assert result.get("resubmission") is True
        assert result.get("objection_window")["window_start"] == (
            "2026-03-02T09:00:00+00:00"
        )

    @pytest.mark.asyncio
    async def test_withdraw_draft(self, services: WorkflowServices) -> None:
        await create_scheme(services)

        result = await services.planning.withdraw("scheme-1", PLANNER, reason="Site sold")

        assert result.get("new_state") == "withdrawn"


class TestStartReview:
    @pytest.mark.asyncio
    async def test_start_review_assigns_reviewer(self, services: WorkflowServices) -> None:
        await create_scheme(services)
        await services.planning.submit_scheme("scheme-1", PLANNER)

        result = await services.planning.start_review("scheme-1", PLANNING_AUTHORITY)

        assert result.success
        assert result.get("status") == "under_review"
        assert result.get("already_started") is False
        assert result.get("reviewer_id") == PLANNING_AUTHORITY.actor_id
        assert len(result.get("checklist")) == len(PLANNING_REVIEW_CHECKLIST)

    @pytest.mark.asyncio
    async def test_second_start_is_a_no_op(
        self, services: WorkflowServices, workflow_repository: WorkflowRepositoryStub
    ) -> None:
        await create_scheme(services)
        await services.planning.submit_scheme("scheme-1", PLANNER)
        first = await services.planning.start_review("scheme-1", PLANNING_AUTHORITY)

        second = await services.planning.start_review("scheme-1", PLANNING_AUTHORITY)

        assert second.success
        assert second.warnings == ("Review already in progress",)
        assert second.get("already_started") is True
        assert second.get("review_id") == first.get("review_id")
        record = await workflow_repository.get(WorkflowDomain.PLANNING, "scheme-1")
        assert record is not None and record.version == 3

    @pytest.mark.asyncio
    async def test_invalid_review_type(self, services: WorkflowServices) -> None:
        await create_scheme(services)
        await services.planning.submit_scheme("scheme-1", PLANNER)

        result = await services.planning.start_review(
            "scheme-1", PLANNING_AUTHORITY, review_type="casual"
        )

        assert result.error_code == "VALIDATION_ERROR"

    @pytest.mark.asyncio
    async def test_review_store_failure_after_commit_is_a_warning(
        self,
        services: WorkflowServices,
        review_repository: ReviewRepositoryStub,
        workflow_repository: WorkflowRepositoryStub,
    ) -> None:
        await create_scheme(services)
        await services.planning.submit_scheme("scheme-1", PLANNER)
        review_repository.start_if_idle = AsyncMock(  # type: ignore[method-assign]
            side_effect=RuntimeError("connection reset")
        )

        result = await services.planning.start_review("scheme-1", PLANNING_AUTHORITY)

        assert result.success
        assert REVIEW_SAVE_FAILURE_WARNING in result.warnings
        assert result.get("reviewer_id") == PLANNING_AUTHORITY.actor_id
        record = await workflow_repository.get(WorkflowDomain.PLANNING, "scheme-1")
        assert record is not None and record.state is PlanningState.UNDER_REVIEW


class TestDecisions:
    @pytest.mark.asyncio
    async def test_approve_with_incomplete_checklist(
        self, services: WorkflowServices, workflow_repository: WorkflowRepositoryStub
    ) -> None:
        await scheme_under_review(services)

        result = await services.planning.submit_decision(
            "scheme-1", PLANNING_AUTHORITY, "approve"
        )

        assert result.error_code == "CHECKLIST_INCOMPLETE"
        assert len(result.get("missing_items")) == 11
        assert await _state(workflow_repository) == "under_review"

    @pytest.mark.asyncio
    async def test_empty_checklist_cannot_approve(
        self, services: WorkflowServices, workflow_repository: WorkflowRepositoryStub
    ) -> None:
        await scheme_under_review(services)

        result = await services.planning.submit_decision(
            "scheme-1", PLANNING_AUTHORITY, "approve", checklist=[]
        )

        assert result.error_code == "CHECKLIST_INCOMPLETE"
        assert len(result.get("missing_items")) == 11
        assert await _state(workflow_repository) == "under_review"

    @pytest.mark.asyncio
    async def test_partial_checklist_is_merged_over_the_review(
        self, services: WorkflowServices
    ) -> None:
        await scheme_under_review(services)
        ticked = complete_items(PLANNING_REVIEW_CHECKLIST, ["compliance-1", "legal-1"])

        result = await services.planning.submit_decision(
            "scheme-1",
            PLANNING_AUTHORITY,
            "approve",
            checklist=[i for i in ticked if i.completed],
        )

        assert result.error_code == "CHECKLIST_INCOMPLETE"
        assert len(result.get("missing_items")) == 9

    @pytest.mark.asyncio
    async def test_required_items_cannot_be_downgraded(
        self, services: WorkflowServices
    ) -> None:
        await scheme_under_review(services)

        result = await services.planning.submit_decision(
            "scheme-1",
            PLANNING_AUTHORITY,
            "approve",
            checklist=[replace(i, required=False) for i in PLANNING_REVIEW_CHECKLIST],
        )

        assert result.error_code == "CHECKLIST_INCOMPLETE"
        assert len(result.get("missing_items")) == 11

    @pytest.mark.asyncio
    async def test_unknown_checklist_item_is_rejected(
        self, services: WorkflowServices
    ) -> None:
        await scheme_under_review(services)
        extra = ChecklistItem("custom-1", "other", "Custom check", completed=True)

        result = await services.planning.submit_decision(
            "scheme-1",
            PLANNING_AUTHORITY,
            "approve",
            checklist=[*complete_all(PLANNING_REVIEW_CHECKLIST), extra],
        )

        assert result.error_code == "VALIDATION_ERROR"
        assert result.error == "Unknown checklist items: custom-1"

    @pytest.mark.asyncio
    async def test_review_save_failure_after_commit_is_a_warning(
        self,
        services: WorkflowServices,
        review_repository: ReviewRepositoryStub,
        workflow_repository: WorkflowRepositoryStub,
        registry_repository: RegistryRepositoryStub,
    ) -> None:
        await scheme_under_review(services)
        review_repository.save = AsyncMock(  # type: ignore[method-assign]
            side_effect=RuntimeError("connection reset")
        )

        result = await services.planning.submit_decision(
            "scheme-1",
            PLANNING_AUTHORITY,
            "approve",
            checklist=complete_all(PLANNING_REVIEW_CHECKLIST),
        )

        assert result.success
        assert result.get("new_state") == "approved"
        assert REVIEW_SAVE_FAILURE_WARNING in result.warnings
        assert await _state(workflow_repository) == "approved"
        scheme = await registry_repository.get_scheme("scheme-1")
        assert scheme is not None
        assert scheme.approval_number == result.get("approval_number")

    @pytest.mark.asyncio
    async def test_approval_issues_number_and_notifies(
        self,
        services: WorkflowServices,
        registry_repository: RegistryRepositoryStub,
        dispatcher: NotificationDispatcherStub,
    ) -> None:
        await scheme_under_review(services)

        result = await services.planning.submit_decision(
            "scheme-1",
            PLANNING_AUTHORITY,
            "approve",
            checklist=complete_all(PLANNING_REVIEW_CHECKLIST),
        )

        assert result.success
        assert result.warnings == ()
        assert result.get("approval_number") == "PLAN/2026/SCHEME1"
        assert result.get("previous_state") == "under_review"
        assert result.get("new_state") == "approved"
        scheme = await registry_repository.get_scheme("scheme-1")
        assert scheme is not None and scheme.approval_number == "PLAN/2026/SCHEME1"
        (to_planner,) = dispatcher.sent_to("planner")
        assert to_planner.event_type == "planning.approved"
        assert to_planner.recipient_id == PLANNER.actor_id
        assert "planning.approved" in [n.event_type for n in dispatcher.sent_to("workflow")]

    @pytest.mark.asyncio
    async def test_optional_gaps_become_warnings(self, services: WorkflowServices) -> None:
        await scheme_under_review(services)

        result = await services.planning.submit_decision(
            "scheme-1", PLANNING_AUTHORITY, "approve", checklist=REQUIRED_ONLY
        )

        assert result.success
        assert (
            "Optional checklist item incomplete: No outstanding disputes or encumbrances"
            in result.warnings
        )

    @pytest.mark.asyncio
    async def test_terminal_state_is_reported_before_checklist(
        self, services: WorkflowServices
    ) -> None:
        await approved_scheme(services)

        result = await services.planning.submit_decision(
            "scheme-1", PLANNING_AUTHORITY, "approve"
        )

        assert result.error_code == "ILLEGAL_TRANSITION"
        assert result.get("current_state") == "approved"
        assert result.get("allowed_transitions") == []

    @pytest.mark.parametrize("decision", ["reject", "request_revision"])
    @pytest.mark.asyncio
    async def test_reason_required(self, services: WorkflowServices, decision: str) -> None:
        await scheme_under_review(services)

        result = await services.planning.submit_decision(
            "scheme-1", PLANNING_AUTHORITY, decision, notes="  "
        )

        assert result.error_code == "MISSING_REASON"
        assert result.error == f"A reason is required for decision '{decision}'"

    @pytest.mark.asyncio
    async def test_reject_with_reason(
        self, services: WorkflowServices, dispatcher: NotificationDispatcherStub
    ) -> None:
        await scheme_under_review(services)

        result = await services.planning.submit_decision(
            "scheme-1", PLANNING_AUTHORITY, "reject", notes="Outside zoning envelope"
        )

        assert result.get("new_state") == "rejected"
        (notice,) = dispatcher.sent_to("planner")
        assert notice.payload["notes"] == "Outside zoning envelope"
        assert "Outside zoning envelope" in notice.message

    @pytest.mark.asyncio
    async def test_invalid_decision(self, services: WorkflowServices) -> None:
        await scheme_under_review(services)

        result = await services.planning.submit_decision(
            "scheme-1", PLANNING_AUTHORITY, "maybe"
        )

        assert result.error_code == "VALIDATION_ERROR"

    @pytest.mark.asyncio
    async def test_planner_cannot_approve_and_number_is_rolled_back(
        self,
        services: WorkflowServices,
        registry_repository: RegistryRepositoryStub,
        workflow_repository: WorkflowRepositoryStub,
    ) -> None:
        await scheme_under_review(services)

        result = await services.planning.submit_decision(
            "scheme-1",
            PLANNER,
            "approve",
            checklist=complete_all(PLANNING_REVIEW_CHECKLIST),
        )

        assert result.error_code == "ROLE_NOT_PERMITTED"
        scheme = await registry_repository.get_scheme("scheme-1")
        assert scheme is not None and scheme.approval_number is None
        assert await _state(workflow_repository) == "under_review"

    @pytest.mark.asyncio
    async def test_unknown_scheme(self, services: WorkflowServices) -> None:
        result = await services.planning.submit_decision(
            "nope", PLANNING_AUTHORITY, "approve"
        )

        assert result.error_code == "NOT_FOUND"

    @pytest.mark.asyncio
    async def test_review_history_records_completed_review(
        self, services: WorkflowServices
    ) -> None:
        await approved_scheme(services)

        result = await services.planning.get_review_history("scheme-1")

        assert result.get("status") == PlanningState.APPROVED.value
        (review,) = result.get("reviews")
        assert review["status"] == "completed"
        assert review["decision"] == "approve"
        assert [h["to_state"] for h in result.get("history")] == [
            "submitted",
            "under_review",
            "approved",
        ]

    @pytest.mark.asyncio
    async def test_slow_review_listing_times_out(
        self, services: WorkflowServices, review_repository: ReviewRepositoryStub
    ) -> None:
        await approved_scheme(services)

        async def _hang(*args: object) -> list[object]:
            await asyncio.sleep(1.0)
            return []

        review_repository.list_for_entity = _hang  # type: ignore[method-assign]

        result = await services.planning.get_review_history("scheme-1")

        assert result.error_code == "PERSISTENCE_TIMEOUT"


class TestBatchReview:
    @pytest.mark.asyncio
    async def test_each_scheme_is_decided_independently(
        self, services: WorkflowServices
    ) -> None:
        await scheme_under_review(services, "scheme-1")
        await scheme_under_review(services, "scheme-2")

        result = await services.planning.batch_review(
            ["scheme-1", "missing", "scheme-2"],
            PLANNING_AUTHORITY,
            "approve",
            checklist=complete_all(PLANNING_REVIEW_CHECKLIST),
        )

        assert result.success
        assert result.get("succeeded") == 2
        assert result.get("failed") == 1
        outcomes = {r["scheme_id"]: r for r in result.get("results")}
        assert outcomes["scheme-1"]["new_state"] == "approved"
        assert outcomes["missing"]["error_code"] == "NOT_FOUND"
