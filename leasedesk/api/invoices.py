"""Contract invoice endpoints."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Response, status
from pydantic import BaseModel

from leasedesk.core.errors import GuardError
from leasedesk.schemas.approval import MutationOperation
from leasedesk.schemas.invoice import (
    ContractInvoice,
    InvoiceDetail,
    InvoicePaymentRequest,
    InvoicePostingRequest,
    InvoiceSearch,
    InvoiceStatus,
    InvoiceUpdate,
    PostingReversalRequest,
)
from leasedesk.services.approval_gate import ApprovalGate
from leasedesk.services.export import export_csv
from leasedesk.services.invoices import ContractInvoiceService
from leasedesk.services.mutation_guard import MutationGuard

from .deps import MessageResponse, NotifierDep, get_invoice_service, load_record

router = APIRouter(prefix="/invoices", tags=["Invoices"])

ServiceDep = Annotated[ContractInvoiceService, Depends(get_invoice_service)]
guard = MutationGuard()


class StatusChange(BaseModel):
    status: InvoiceStatus


class PostingResponse(BaseModel):
    message: str
    voucher_no: str | None = None


@router.get("", response_model=list[ContractInvoice])
async def list_invoices(service: ServiceDep) -> list[ContractInvoice]:
    return await service.list_invoices()


@router.post("/search", response_model=list[ContractInvoice])
async def search_invoices(criteria: InvoiceSearch, service: ServiceDep) -> list[ContractInvoice]:
    return await service.search_invoices(criteria)


@router.get("/unposted", response_model=list[ContractInvoice])
async def list_unposted(service: ServiceDep) -> list[ContractInvoice]:
    return await service.list_unposted()


@router.get("/export")
async def export_invoices(service: ServiceDep) -> Response:
    records = await service.list_invoices()
    return Response(
        content=export_csv(records, service.export_columns),
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="invoices.csv"'},
    )


@router.get("/{invoice_id}", response_model=InvoiceDetail)
async def get_invoice(invoice_id: int, service: ServiceDep) -> InvoiceDetail:
    detail = await service.get_invoice(invoice_id)
    if detail is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Invoice not found")
    return detail


@router.put("/{invoice_id}", response_model=MessageResponse)
async def update_invoice(
    invoice_id: int, update: InvoiceUpdate, service: ServiceDep
) -> MessageResponse:
    record = await load_record(service, invoice_id)
    message = await guard.run(
        record, MutationOperation.EDIT, lambda: service.update_invoice(invoice_id, update)
    )
    return MessageResponse(message=message)


@router.delete("/{invoice_id}", response_model=MessageResponse)
async def delete_invoice(invoice_id: int, service: ServiceDep) -> MessageResponse:
    record = await load_record(service, invoice_id)
    message = await guard.run(
        record, MutationOperation.DELETE, lambda: service.delete_invoice(invoice_id)
    )
    return MessageResponse(message=message)


@router.post("/{invoice_id}/status", response_model=MessageResponse)
async def change_status(
    invoice_id: int,
    payload: StatusChange,
    service: ServiceDep,
    notifier: NotifierDep,
) -> MessageResponse:
    message = await service.change_status(invoice_id, payload.status)
    await ApprovalGate(service, notifier).notify_status_changed(invoice_id, payload.status.value)
    return MessageResponse(message=message)


@router.post("/{invoice_id}/post", response_model=PostingResponse)
async def post_invoice(
    invoice_id: int, request: InvoicePostingRequest, service: ServiceDep
) -> PostingResponse:
    """Commit an approved (or approval-exempt) invoice to the ledger."""

    invoice = await load_record(service, invoice_id)
    if not invoice.can_post():
        raise GuardError("Only approved, unposted invoices can be posted")
    voucher_no = await service.post_invoice(invoice_id, request)
    return PostingResponse(message="Invoice posted successfully", voucher_no=voucher_no)


@router.post("/{invoice_id}/reverse", response_model=MessageResponse)
async def reverse_posting(
    invoice_id: int, request: PostingReversalRequest, service: ServiceDep
) -> MessageResponse:
    await load_record(service, invoice_id)
    return MessageResponse(message=await service.reverse_posting(request))


@router.post("/{invoice_id}/payments", response_model=MessageResponse)
async def record_payment(
    invoice_id: int, request: InvoicePaymentRequest, service: ServiceDep
) -> MessageResponse:
    return MessageResponse(message=await service.record_payment(invoice_id, request))


__all__ = ["router"]
