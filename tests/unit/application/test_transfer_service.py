"""Unit tests for TransferService."""

from __future__ import annotations

from datetime import date
from unittest.mock import AsyncMock

import pytest

from land_registry.bootstrap import WorkflowServices
from land_registry.domain.errors import ConcurrentModificationError
from land_registry.infrastructure.stubs import (
    NotificationDispatcherStub,
    RegistryRepositoryStub,
)
from tests.helpers.builders import (
    CONVEYANCER,
    REGISTRAR,
    create_scheme,
    make_title,
    registered_title,
)

TODAY = date(2026, 3, 2)


@pytest.fixture
async def title(services: WorkflowServices) -> str:
    await create_scheme(services)
    await registered_title(services)
    return "title-1"


async def _submit(
    services: WorkflowServices,
    transfer_id: str = "xfer-1",
    new_holder_name: str = "Bob Buyer",
) -> None:
    result = await services.transfers.submit_transfer(
        transfer_id,
        "title-1",
        "sale",
        new_holder_name,
        TODAY,
        CONVEYANCER,
        new_holder_id="63-654321B21",
        consideration=200_000.0,
    )
    assert result.success, result.error


class TestSubmitTransfer:
    @pytest.mark.asyncio
    async def test_sale_computes_stamp_duty(
        self, services: WorkflowServices, title: str
    ) -> None:
        result = await services.transfers.submit_transfer(
            "xfer-1",
            title,
            "sale",
            "  Bob Buyer ",
            TODAY,
            CONVEYANCER,
            new_holder_id="63-654321B21",
            consideration=200_000.0,
        )

        assert result.success
        assert result.get("status") == "submitted"
        assert result.get("stamp_duty") == 2000.0
        assert result.warnings == ()

    @pytest.mark.asyncio
    async def test_title_must_be_registered(self, services: WorkflowServices) -> None:
        await create_scheme(services)
        await services.deeds.create_title(make_title(), CONVEYANCER)

        result = await services.transfers.submit_transfer(
            "xfer-1", "title-1", "gift", "Bob Buyer", TODAY, CONVEYANCER
        )

        assert result.error_code == "VALIDATION_ERROR"
        assert result.error == (
            "Transfer validation failed: Title must be registered before "
            "transfer. Current status: draft"
        )

    @pytest.mark.asyncio
    async def test_unknown_title(self, services: WorkflowServices) -> None:
        result = await services.transfers.submit_transfer(
            "xfer-1", "title-9", "gift", "Bob Buyer", TODAY, CONVEYANCER
        )

        assert result.error_code == "NOT_FOUND"
        assert result.error == "Title title-9 not found"

    @pytest.mark.asyncio
    async def test_validate_request_without_persisting(
        self, services: WorkflowServices, title: str
    ) -> None:
        result = await services.transfers.validate_transfer_request(
            title, "gift", "Carol Child", date(2026, 4, 1)
        )

        assert result.success
        assert result.get("is_valid") is True
        assert result.get("stamp_duty") == 0.0
        assert result.warnings == (
            "Transfer date is in the future",
            "National ID number recommended for individual holders",
        )

    @pytest.mark.asyncio
    async def test_sale_needs_consideration(
        self, services: WorkflowServices, title: str
    ) -> None:
        result = await services.transfers.validate_transfer_request(
            title, "sale", "Bob Buyer", TODAY, new_holder_id="63-654321B21"
        )

        assert result.get("is_valid") is False
        assert result.get("errors") == ["Consideration amount is required for a sale"]


class TestDecisions:
    @pytest.mark.asyncio
    async def test_registrar_approves(
        self,
        services: WorkflowServices,
        title: str,
        dispatcher: NotificationDispatcherStub,
    ) -> None:
        await _submit(services)
        dispatcher.clear()

        result = await services.transfers.approve_transfer("xfer-1", REGISTRAR)

        assert result.get("status") == "approved"
        (notice,) = dispatcher.sent_to("conveyancer")
        assert notice.event_type == "transfer.approved"
        assert notice.recipient_id == CONVEYANCER.actor_id

    @pytest.mark.asyncio
    async def test_conveyancer_cannot_approve(
        self, services: WorkflowServices, title: str
    ) -> None:
        await _submit(services)

        result = await services.transfers.approve_transfer("xfer-1", CONVEYANCER)

        assert result.error_code == "ROLE_NOT_PERMITTED"

    @pytest.mark.asyncio
    async def test_rejection_needs_a_reason(
        self, services: WorkflowServices, title: str
    ) -> None:
        await _submit(services)

        result = await services.transfers.reject_transfer("xfer-1", REGISTRAR, None)

        assert result.error_code == "MISSING_REASON"


class TestProcessTransfer:
    @pytest.mark.asyncio
    async def test_holder_is_replaced(
        self,
        services: WorkflowServices,
        title: str,
        registry_repository: RegistryRepositoryStub,
    ) -> None:
        await _submit(services)
        await services.transfers.approve_transfer("xfer-1", REGISTRAR)

        result = await services.transfers.process_transfer("xfer-1", REGISTRAR)

        assert result.success
        assert result.get("registration_number") == "TRANSFER/2026/XFER1"
        assert result.get("previous_holder_name") == "Alice Holder"
        assert result.get("new_holder_name") == "Bob Buyer"
        stored = await registry_repository.get_title(title)
        assert stored is not None
        assert stored.holder_name == "Bob Buyer"
        assert stored.holder_id == "63-654321B21"
        assert stored.previous_holder_name == "Alice Holder"

    @pytest.mark.asyncio
    async def test_processing_twice_is_a_no_op(
        self, services: WorkflowServices, title: str
    ) -> None:
        await _submit(services)
        await services.transfers.approve_transfer("xfer-1", REGISTRAR)
        await services.transfers.process_transfer("xfer-1", REGISTRAR)

        again = await services.transfers.process_transfer("xfer-1", REGISTRAR)

        assert again.get("already_processed") is True
        assert again.get("registration_number") == "TRANSFER/2026/XFER1"

    @pytest.mark.asyncio
    async def test_must_be_approved_first(
        self, services: WorkflowServices, title: str
    ) -> None:
        await _submit(services)

        result = await services.transfers.process_transfer("xfer-1", REGISTRAR)

        assert result.error_code == "ILLEGAL_TRANSITION"
        assert result.get("allowed_transitions") == ["approved", "rejected"]

    @pytest.mark.asyncio
    async def test_lost_holder_race_releases_the_claim(
        self,
        services: WorkflowServices,
        title: str,
        registry_repository: RegistryRepositoryStub,
    ) -> None:
        await _submit(services)
        await services.transfers.approve_transfer("xfer-1", REGISTRAR)
        update = registry_repository.update_title_holder
        registry_repository.update_title_holder = AsyncMock(  # type: ignore[method-assign]
            side_effect=ConcurrentModificationError(
                title, "Alice Holder", operation="holder_update"
            )
        )

        lost = await services.transfers.process_transfer("xfer-1", REGISTRAR)

        assert lost.error_code == "CONCURRENT_MODIFICATION"
        stored = await registry_repository.get_title(title)
        assert stored is not None and stored.holder_name == "Alice Holder"

        registry_repository.update_title_holder = update  # type: ignore[method-assign]
        retried = await services.transfers.process_transfer("xfer-1", REGISTRAR)
        assert retried.success
        assert retried.get("already_processed") is False

    @pytest.mark.asyncio
    async def test_second_transfer_sees_the_new_holder(
        self,
        services: WorkflowServices,
        title: str,
        registry_repository: RegistryRepositoryStub,
    ) -> None:
        await _submit(services, "xfer-1", "Bob Buyer")
        await _submit(services, "xfer-2", "Carol Buyer")
        for transfer_id in ("xfer-1", "xfer-2"):
            await services.transfers.approve_transfer(transfer_id, REGISTRAR)
            await services.transfers.process_transfer(transfer_id, REGISTRAR)

        stored = await registry_repository.get_title(title)
        assert stored is not None
        assert stored.holder_name == "Carol Buyer"
        assert stored.previous_holder_name == "Bob Buyer"
