"""Petty cash voucher endpoints."""

from __future__ import annotations

from datetime import date
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Response, status
from pydantic import BaseModel

from leasedesk.schemas.approval import MutationOperation
from leasedesk.schemas.petty_cash import (
    PettyCashVoucher,
    VoucherDetail,
    VoucherReversal,
    VoucherStatus,
    VoucherUpdate,
)
from leasedesk.services.export import export_csv
from leasedesk.services.mutation_guard import MutationGuard
from leasedesk.services.petty_cash import PettyCashService

from .deps import MessageResponse, get_petty_cash_service, load_record

router = APIRouter(prefix="/petty-cash", tags=["Petty Cash"])

ServiceDep = Annotated[PettyCashService, Depends(get_petty_cash_service)]
guard = MutationGuard()


class ReversalResponse(BaseModel):
    message: str
    reversal_voucher_no: str | None = None


class CreatedResponse(BaseModel):
    message: str
    voucher_no: str


class VoucherSearch(BaseModel):
    search_text: str | None = None
    from_date: date | None = None
    to_date: date | None = None
    posting_status: VoucherStatus | None = None
    company_id: int | None = None
    fiscal_year_id: int | None = None
    account_id: int | None = None


@router.get("", response_model=list[PettyCashVoucher])
async def list_vouchers(service: ServiceDep) -> list[PettyCashVoucher]:
    return await service.list_vouchers()


@router.post("", response_model=CreatedResponse, status_code=status.HTTP_201_CREATED)
async def create_voucher(voucher: VoucherUpdate, service: ServiceDep) -> CreatedResponse:
    voucher_no = await service.create_voucher(voucher)
    return CreatedResponse(
        message="Petty Cash Voucher created successfully", voucher_no=voucher_no
    )


@router.post("/search", response_model=list[PettyCashVoucher])
async def search_vouchers(criteria: VoucherSearch, service: ServiceDep) -> list[PettyCashVoucher]:
    return await service.search_vouchers(**criteria.model_dump())


@router.get("/export")
async def export_vouchers(service: ServiceDep) -> Response:
    records = await service.list_vouchers()
    return Response(
        content=export_csv(records, service.export_columns),
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="petty-cash.csv"'},
    )


@router.get("/{voucher_no}", response_model=VoucherDetail)
async def get_voucher(voucher_no: str, service: ServiceDep) -> VoucherDetail:
    detail = await service.get_voucher(voucher_no)
    if detail is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Voucher not found")
    return detail


@router.put("/{voucher_no}", response_model=MessageResponse)
async def update_voucher(
    voucher_no: str, update: VoucherUpdate, service: ServiceDep
) -> MessageResponse:
    record = await load_record(service, voucher_no)
    message = await guard.run(
        record, MutationOperation.EDIT, lambda: service.update_voucher(voucher_no, update)
    )
    return MessageResponse(message=message)


@router.delete("/{voucher_no}", response_model=MessageResponse)
async def delete_voucher(voucher_no: str, service: ServiceDep) -> MessageResponse:
    record = await load_record(service, voucher_no)
    message = await guard.run(
        record, MutationOperation.DELETE, lambda: service.delete_voucher(voucher_no)
    )
    return MessageResponse(message=message)


@router.post("/{voucher_no}/post", response_model=MessageResponse)
async def post_voucher(voucher_no: str, service: ServiceDep) -> MessageResponse:
    return MessageResponse(message=await service.post_voucher(voucher_no))


@router.post("/{voucher_no}/reverse", response_model=ReversalResponse)
async def reverse_voucher(
    voucher_no: str, reversal: VoucherReversal, service: ServiceDep
) -> ReversalResponse:
    reversal_no = await service.reverse_voucher(voucher_no, reversal)
    return ReversalResponse(
        message="Petty Cash Voucher reversed successfully",
        reversal_voucher_no=reversal_no,
    )


__all__ = ["router"]
