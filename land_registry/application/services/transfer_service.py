"""Title transfer workflow.

A transfer moves a registered title to a new holder. It is validated
against the title's deed state, decided by the registrar and, once
approved, processed: the holder change is written with a conditional
update on the previous holder so two transfers of the same title cannot
both succeed.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import date
from typing import Any

from land_registry.application.ports.registry_repository import (
    RegistryRepositoryProtocol,
)
from land_registry.application.ports.workflow_repository import (
    WorkflowRepositoryProtocol,
)
from land_registry.application.services.case_workflow import (
    CaseWorkflowService,
    raise_if_invalid,
    validation_result,
)
from land_registry.domain.errors import (
    ConcurrentModificationError,
    EntityNotFoundError,
    MissingReasonError,
    ValidationError,
)
from land_registry.domain.models.actor import Actor
from land_registry.domain.models.registry import DeedTitle
from land_registry.domain.models.transfer import Transfer, TransferType
from land_registry.domain.models.workflow_result import WorkflowResult
from land_registry.domain.models.workflow_state import CaseStatus, WorkflowDomain
from land_registry.domain.services.case_rules import (
    CaseValidation,
    registration_number,
    validate_transfer,
)

REGISTRATION_PREFIX = "TRANSFER"


def parse_transfer_type(value: TransferType | str) -> TransferType:
    if isinstance(value, TransferType):
        return value
    try:
        return TransferType(value)
    except ValueError:
        raise ValidationError(
            f"Invalid transfer type '{value}'", field="transfer_type"
        ) from None


class TransferService(CaseWorkflowService[Transfer]):
    """Validates, decides and processes title transfers."""

    domain = WorkflowDomain.TRANSFER
    entity_type = "transfer"

    def __init__(
        self,
        *,
        registry: RegistryRepositoryProtocol,
        workflows: WorkflowRepositoryProtocol,
        **kwargs: Any,
    ) -> None:
        super().__init__(**kwargs)
        self._registry = registry
        self._workflows = workflows

    async def _require_title(self, title_id: str) -> DeedTitle:
        title = await self._bounded("get_title", self._registry.get_title(title_id))
        if title is None:
            raise EntityNotFoundError("title", title_id)
        return title

    async def _validate(
        self,
        title_id: str,
        transfer_type: TransferType,
        new_holder_name: str,
        new_holder_id: str | None,
        consideration: float | None,
        transfer_date: date,
        effective_date: date | None,
    ) -> CaseValidation:
        title = await self._require_title(title_id)
        deed = await self._bounded(
            "get_workflow", self._workflows.get(WorkflowDomain.DEED, title_id)
        )
        if deed is None:
            raise EntityNotFoundError(WorkflowDomain.DEED.value, title_id)
        return validate_transfer(
            title,
            deed.state,
            transfer_type=transfer_type,
            new_holder_name=new_holder_name,
            new_holder_id=new_holder_id,
            consideration=consideration,
            transfer_date=transfer_date,
            effective_date=effective_date,
            today=self._time.now().date(),
            stamp_duty_rate=self._config.stamp_duty_rate,
            minimum_stamp_duty=self._config.minimum_stamp_duty,
        )

    async def validate_transfer_request(
        self,
        title_id: str,
        transfer_type: TransferType | str,
        new_holder_name: str,
        transfer_date: date,
        new_holder_id: str | None = None,
        consideration: float | None = None,
        effective_date: date | None = None,
    ) -> WorkflowResult:
        """Check a transfer and compute stamp duty without persisting it."""

        async def _run() -> WorkflowResult:
            validation = await self._validate(
                title_id,
                parse_transfer_type(transfer_type),
                new_holder_name,
                new_holder_id,
                consideration,
                transfer_date,
                effective_date,
            )
            return validation_result(validation, title_id=title_id)

        return await self._execute("validate_transfer", _run, title_id=title_id)

    async def submit_transfer(
        self,
        transfer_id: str,
        title_id: str,
        transfer_type: TransferType | str,
        new_holder_name: str,
        transfer_date: date,
        actor: Actor,
        new_holder_id: str | None = None,
        consideration: float | None = None,
        effective_date: date | None = None,
    ) -> WorkflowResult:
        async def _run() -> WorkflowResult:
            kind = parse_transfer_type(transfer_type)
            validation = await self._validate(
                title_id,
                kind,
                new_holder_name,
                new_holder_id,
                consideration,
                transfer_date,
                effective_date,
            )
            raise_if_invalid(validation, "Transfer")

            transfer = Transfer(
                transfer_id=transfer_id,
                title_id=title_id,
                transfer_type=kind,
                new_holder_name=new_holder_name.strip(),
                transfer_date=transfer_date,
                new_holder_id=new_holder_id,
                consideration=consideration,
                effective_date=effective_date or transfer_date,
                stamp_duty=validation.details["stamp_duty"],
                submitted_by=actor.actor_id,
                submitted_at=self._time.now(),
            )
            await self._create(transfer)
            warnings, _ = await self._after(
                transfer_id,
                actor,
                action="transfer_submitted",
                new_values={
                    "status": transfer.status.value,
                    "title_id": title_id,
                    "transfer_type": kind.value,
                    "new_holder_name": transfer.new_holder_name,
                    "stamp_duty": transfer.stamp_duty,
                },
            )
            return WorkflowResult.ok(
                warnings=[*validation.warnings, *warnings],
                transfer_id=transfer_id,
                status=transfer.status.value,
                stamp_duty=transfer.stamp_duty,
            )

        return await self._execute("submit_transfer", _run, entity_id=transfer_id)

    async def _decide(
        self,
        transfer_id: str,
        actor: Actor,
        status: CaseStatus,
        notes: str | None,
    ) -> WorkflowResult:
        transfer = await self._require(transfer_id)
        updated = transfer.with_status(
            status,
            decided_by=actor.actor_id,
            decided_at=self._time.now(),
            decision_notes=notes,
        )
        stored = await self._move(transfer, updated, actor)
        warnings, outcomes = await self._after(
            transfer_id,
            actor,
            action=f"transfer_{status.value}",
            old_values={"status": transfer.status.value},
            new_values={"status": status.value, "notes": notes},
            notifications=self._notice(
                transfer_id,
                transfer.submitted_by,
                "conveyancer",
                f"transfer.{status.value}",
                f"Transfer {status.value}",
                f"Transfer {transfer_id} of title {transfer.title_id} was "
                f"{status.value}" + (f": {notes}" if notes else ""),
                title_id=transfer.title_id,
            ),
        )
        return WorkflowResult.ok(
            warnings=warnings,
            notifications=outcomes,
            transfer_id=transfer_id,
            status=stored.status.value,
        )

    async def approve_transfer(
        self, transfer_id: str, actor: Actor, notes: str | None = None
    ) -> WorkflowResult:
        return await self._execute(
            "approve_transfer",
            lambda: self._decide(transfer_id, actor, CaseStatus.APPROVED, notes),
            entity_id=transfer_id,
        )

    async def reject_transfer(
        self, transfer_id: str, actor: Actor, reason: str | None
    ) -> WorkflowResult:
        async def _run() -> WorkflowResult:
            if not (reason and reason.strip()):
                raise MissingReasonError("reject")
            return await self._decide(transfer_id, actor, CaseStatus.REJECTED, reason)

        return await self._execute("reject_transfer", _run, entity_id=transfer_id)

    async def process_transfer(self, transfer_id: str, actor: Actor) -> WorkflowResult:
        """Write the new holder onto the title (idempotent).

        The transfer is claimed first; if the holder update then fails the
        claim is released and the error propagates.
        """

        async def _run() -> WorkflowResult:
            transfer = await self._require(transfer_id)
            if transfer.status is CaseStatus.PROCESSED:
                return self._already_processed(transfer)

            self._check(transfer, CaseStatus.PROCESSED, actor)
            title = await self._require_title(transfer.title_id)
            now = self._time.now()
            claimed = transfer.with_status(
                CaseStatus.PROCESSED,
                processed_at=now,
                previous_holder_name=title.holder_name,
                registration_number=registration_number(
                    REGISTRATION_PREFIX, now, transfer_id
                ),
            )
            try:
                await self._move(transfer, claimed, actor)
            except ConcurrentModificationError:
                current = await self._require(transfer_id)
                if current.status is CaseStatus.PROCESSED:
                    return self._already_processed(current)
                raise

            try:
                await self._bounded(
                    "update_title_holder",
                    self._registry.update_title_holder(
                        title.title_id,
                        title.holder_name,
                        replace(
                            title,
                            holder_name=transfer.new_holder_name,
                            holder_id=transfer.new_holder_id,
                            previous_holder_name=title.holder_name,
                        ),
                    ),
                )
            except Exception:
                await self._bounded(
                    "release_claim",
                    self._cases.update_cas(transfer_id, CaseStatus.PROCESSED, transfer),
                )
                raise

            payload = {
                "title_id": transfer.title_id,
                "previous_holder_name": title.holder_name,
                "new_holder_name": transfer.new_holder_name,
                "registration_number": claimed.registration_number,
            }
            warnings, outcomes = await self._after(
                transfer_id,
                actor,
                action="transfer_processed",
                old_values={
                    "status": transfer.status.value,
                    "holder_name": title.holder_name,
                },
                new_values={"status": claimed.status.value, **payload},
                notifications=self._notice(
                    transfer_id,
                    transfer.submitted_by,
                    "conveyancer",
                    "transfer.processed",
                    "Transfer registered",
                    f"Title {transfer.title_id} transferred to "
                    f"{transfer.new_holder_name} ({claimed.registration_number})",
                    **payload,
                ),
                event=("transfer.processed", payload),
            )
            return WorkflowResult.ok(
                warnings=warnings,
                notifications=outcomes,
                transfer_id=transfer_id,
                status=claimed.status.value,
                already_processed=False,
                **payload,
            )

        return await self._execute("process_transfer", _run, entity_id=transfer_id)

    def _already_processed(self, transfer: Transfer) -> WorkflowResult:
        return WorkflowResult.ok(
            transfer_id=transfer.transfer_id,
            status=transfer.status.value,
            already_processed=True,
            title_id=transfer.title_id,
            registration_number=transfer.registration_number,
        )
