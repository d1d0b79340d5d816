"""Shared FastAPI dependencies for the resource routers."""

from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Annotated, Any

from fastapi import Depends, HTTPException, status
from pydantic import BaseModel

from leasedesk.core.errors import ValidationError
from leasedesk.core.security import get_auth_context, get_bearer_token
from leasedesk.schemas.approval import ApprovableRecord, EntityType
from leasedesk.schemas.auth import AuthContext
from leasedesk.services.base import ApprovableService
from leasedesk.services.contracts import ContractService
from leasedesk.services.envelope import EnvelopeClient
from leasedesk.services.invoices import ContractInvoiceService
from leasedesk.services.notifications import NotificationHook, build_notifier
from leasedesk.services.petty_cash import PettyCashService
from leasedesk.services.terminations import TerminationService

SERVICE_TYPES: dict[EntityType, type[ApprovableService[Any]]] = {
    EntityType.CONTRACT: ContractService,
    EntityType.INVOICE: ContractInvoiceService,
    EntityType.TERMINATION: TerminationService,
    EntityType.PETTY_CASH: PettyCashService,
}


class MessageResponse(BaseModel):
    message: str


async def get_envelope_client(
    token: Annotated[str, Depends(get_bearer_token)],
) -> AsyncIterator[EnvelopeClient]:
    """Open an envelope client that forwards the caller's bearer token."""

    async with EnvelopeClient(token=token) as client:
        yield client


def get_notifier() -> NotificationHook:
    return build_notifier()


ClientDep = Annotated[EnvelopeClient, Depends(get_envelope_client)]
AuthDep = Annotated[AuthContext, Depends(get_auth_context)]
NotifierDep = Annotated[NotificationHook, Depends(get_notifier)]


def build_service(
    entity: EntityType, client: EnvelopeClient, auth: AuthContext
) -> ApprovableService[Any]:
    return SERVICE_TYPES[entity](client, actor=auth)


def coerce_record_id(entity: EntityType, raw: str) -> int | str:
    """Vouchers are keyed by number; every other entity by integer id."""

    if entity is EntityType.PETTY_CASH:
        return raw
    try:
        return int(raw)
    except ValueError as exc:
        raise ValidationError(f"Invalid {entity.label} id: {raw}") from exc


async def load_record(service: ApprovableService[Any], record_id: int | str) -> ApprovableRecord:
    """Fetch the current snapshot or raise 404."""

    record = await service.get_record(record_id)
    if record is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"{service.label} not found",
        )
    return record


def get_contract_service(client: ClientDep, auth: AuthDep) -> ContractService:
    return ContractService(client, actor=auth)


def get_invoice_service(client: ClientDep, auth: AuthDep) -> ContractInvoiceService:
    return ContractInvoiceService(client, actor=auth)


def get_termination_service(client: ClientDep, auth: AuthDep) -> TerminationService:
    return TerminationService(client, actor=auth)


def get_petty_cash_service(client: ClientDep, auth: AuthDep) -> PettyCashService:
    return PettyCashService(client, actor=auth)


__all__ = [
    "AuthDep",
    "ClientDep",
    "MessageResponse",
    "NotifierDep",
    "SERVICE_TYPES",
    "build_service",
    "coerce_record_id",
    "get_contract_service",
    "get_envelope_client",
    "get_invoice_service",
    "get_notifier",
    "get_petty_cash_service",
    "get_termination_service",
    "load_record",
]
