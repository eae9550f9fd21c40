"""Unit tests for DisputeService."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from land_registry.bootstrap import WorkflowServices
from land_registry.infrastructure.stubs import NotificationDispatcherStub
from tests.helpers.builders import (
    DISPUTE_OFFICER,
    PUBLIC,
    REGISTRAR,
    create_scheme,
)

DESCRIPTION = (
    "The boundary wall between sections 1 and 2 was rebuilt half a metre "
    "inside section 2 without consent."
)
HEARING_AT = datetime(2026, 3, 20, 10, 0, tzinfo=timezone.utc)


async def _lodge(services: WorkflowServices) -> None:
    await create_scheme(services)
    result = await services.disputes.lodge_dispute(
        "dispute-1",
        "boundary",
        "Dana Complainant",
        DESCRIPTION,
        PUBLIC,
        scheme_id="scheme-1",
    )
    assert result.success, result.error


async def _assigned(services: WorkflowServices) -> None:
    await _lodge(services)
    result = await services.disputes.assign_dispute(
        "dispute-1", REGISTRAR, DISPUTE_OFFICER.actor_id, "scheme_body"
    )
    assert result.success, result.error


class TestLodgeDispute:
    @pytest.mark.asyncio
    async def test_lodge(self, services: WorkflowServices) -> None:
        await create_scheme(services)

        result = await services.disputes.lodge_dispute(
            "dispute-1",
            "boundary",
            "Dana Complainant",
            DESCRIPTION,
            PUBLIC,
            scheme_id="scheme-1",
        )

        assert result.success
        assert result.get("status") == "pending"
        assert result.warnings == ()

    @pytest.mark.asyncio
    async def test_needs_a_reference(self, services: WorkflowServices) -> None:
        result = await services.disputes.lodge_dispute(
            "dispute-1", "ownership", "Dana Complainant", DESCRIPTION, PUBLIC
        )

        assert result.error_code == "VALIDATION_ERROR"
        assert result.error == (
            "Dispute validation failed: At least one reference "
            "(title, scheme, or amendment) must be provided"
        )

    @pytest.mark.asyncio
    async def test_reference_must_exist(self, services: WorkflowServices) -> None:
        result = await services.disputes.lodge_dispute(
            "dispute-1",
            "ownership",
            "Dana Complainant",
            DESCRIPTION,
            PUBLIC,
            title_id="title-9",
        )

        assert result.error_code == "NOT_FOUND"
        assert result.error == "Title title-9 not found"

    @pytest.mark.asyncio
    async def test_unknown_dispute_type(self, services: WorkflowServices) -> None:
        await create_scheme(services)

        result = await services.disputes.lodge_dispute(
            "dispute-1", "noise", "Dana", DESCRIPTION, PUBLIC, scheme_id="scheme-1"
        )

        assert result.error == (
            "Invalid dispute_type 'noise'. Must be one of: boundary, ownership, "
            "rights, amendment, lease, mortgage, other"
        )

    @pytest.mark.asyncio
    async def test_short_description_warns(self, services: WorkflowServices) -> None:
        await create_scheme(services)

        result = await services.disputes.validate_dispute_request(
            "Dana", "Wall moved", scheme_id="scheme-1"
        )

        assert result.get("is_valid") is True
        assert result.warnings == (
            "Dispute description should be at least 50 characters for clarity",
        )


class TestDisputeLifecycle:
    @pytest.mark.asyncio
    async def test_assignment_notifies_the_officer(
        self, services: WorkflowServices, dispatcher: NotificationDispatcherStub
    ) -> None:
        await _lodge(services)

        result = await services.disputes.assign_dispute(
            "dispute-1", REGISTRAR, DISPUTE_OFFICER.actor_id, "scheme_body"
        )

        assert result.get("status") == "assigned"
        assert result.get("authority") == "scheme_body"
        (notice,) = dispatcher.sent_to("dispute_officer")
        assert notice.recipient_id == DISPUTE_OFFICER.actor_id

    @pytest.mark.asyncio
    async def test_officer_cannot_self_assign(self, services: WorkflowServices) -> None:
        await _lodge(services)

        result = await services.disputes.assign_dispute(
            "dispute-1", DISPUTE_OFFICER, DISPUTE_OFFICER.actor_id, "courts"
        )

        assert result.error_code == "ROLE_NOT_PERMITTED"

    @pytest.mark.asyncio
    async def test_schedule_hearing(
        self, services: WorkflowServices, dispatcher: NotificationDispatcherStub
    ) -> None:
        await _assigned(services)

        result = await services.disputes.schedule_dispute_hearing(
            "dispute-1", DISPUTE_OFFICER, HEARING_AT, "Council chambers"
        )

        assert result.get("status") == "hearing_scheduled"
        assert result.get("officer_id") == DISPUTE_OFFICER.actor_id
        assert result.warnings == ()
        (notice,) = dispatcher.sent_to("complainant")
        assert notice.recipient_id == PUBLIC.actor_id

    @pytest.mark.asyncio
    async def test_hearing_in_the_past_warns(self, services: WorkflowServices) -> None:
        await _assigned(services)

        result = await services.disputes.schedule_dispute_hearing(
            "dispute-1",
            DISPUTE_OFFICER,
            datetime(2026, 2, 1, tzinfo=timezone.utc),
            "Council chambers",
        )

        assert result.success
        assert result.warnings == ("Hearing date is in the past",)

    @pytest.mark.asyncio
    async def test_resolve_after_hearing(self, services: WorkflowServices) -> None:
        await _assigned(services)
        await services.disputes.schedule_dispute_hearing(
            "dispute-1", DISPUTE_OFFICER, HEARING_AT, "Council chambers"
        )

        result = await services.disputes.resolve_dispute(
            "dispute-1", DISPUTE_OFFICER, "compromise", "Wall to be rebuilt on the line"
        )

        assert result.get("status") == "resolved"
        assert result.get("resolution_type") == "compromise"

    @pytest.mark.asyncio
    async def test_pending_dispute_cannot_be_resolved(
        self, services: WorkflowServices
    ) -> None:
        await _lodge(services)

        result = await services.disputes.resolve_dispute(
            "dispute-1", REGISTRAR, "dismissed", "Out of time"
        )

        assert result.error_code == "ILLEGAL_TRANSITION"
        assert result.get("allowed_transitions") == ["assigned"]

    @pytest.mark.asyncio
    async def test_resolution_text_required(self, services: WorkflowServices) -> None:
        await _assigned(services)

        result = await services.disputes.resolve_dispute(
            "dispute-1", REGISTRAR, "upheld", "   "
        )

        assert result.error_code == "VALIDATION_ERROR"
        assert result.error == "Resolution text is required"
