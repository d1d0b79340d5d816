"""Contract termination endpoints."""

from __future__ import annotations

from datetime import date
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Response, status
from pydantic import BaseModel

from leasedesk.schemas.approval import MutationOperation
from leasedesk.schemas.termination import (
    ContractTermination,
    RefundRequest,
    TerminationDeduction,
    TerminationCreate,
    TerminationDetail,
    TerminationStatus,
    TerminationUpdate,
)
from leasedesk.services.approval_gate import ApprovalGate
from leasedesk.services.export import export_csv
from leasedesk.services.mutation_guard import MutationGuard
from leasedesk.services.terminations import TerminationService

from .deps import MessageResponse, NotifierDep, get_termination_service, load_record

router = APIRouter(prefix="/terminations", tags=["Terminations"])

ServiceDep = Annotated[TerminationService, Depends(get_termination_service)]
guard = MutationGuard()


class StatusChange(BaseModel):
    status: TerminationStatus


class CreatedResponse(BaseModel):
    message: str
    termination_id: int


class TerminationSearch(BaseModel):
    search_text: str | None = None
    contract_id: int | None = None
    termination_status: TerminationStatus | None = None
    approval_status: str | None = None
    from_date: date | None = None
    to_date: date | None = None


@router.get("", response_model=list[ContractTermination])
async def list_terminations(service: ServiceDep) -> list[ContractTermination]:
    return await service.list_terminations()


@router.post("", response_model=CreatedResponse, status_code=status.HTTP_201_CREATED)
async def create_termination(
    termination: TerminationCreate, service: ServiceDep
) -> CreatedResponse:
    termination_id = await service.create_termination(termination)
    return CreatedResponse(
        message="Contract termination created successfully", termination_id=termination_id
    )


@router.post("/search", response_model=list[ContractTermination])
async def search_terminations(
    criteria: TerminationSearch, service: ServiceDep
) -> list[ContractTermination]:
    return await service.search_terminations(**criteria.model_dump())


@router.get("/export")
async def export_terminations(service: ServiceDep) -> Response:
    records = await service.list_terminations()
    return Response(
        content=export_csv(records, service.export_columns),
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="terminations.csv"'},
    )


@router.get("/by-contract/{contract_id}", response_model=list[ContractTermination])
async def terminations_by_contract(
    contract_id: int, service: ServiceDep
) -> list[ContractTermination]:
    return await service.terminations_by_contract(contract_id)


@router.get("/{termination_id}", response_model=TerminationDetail)
async def get_termination(termination_id: int, service: ServiceDep) -> TerminationDetail:
    detail = await service.get_termination(termination_id)
    if detail is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Termination not found")
    return detail


@router.put("/{termination_id}", response_model=MessageResponse)
async def update_termination(
    termination_id: int, update: TerminationUpdate, service: ServiceDep
) -> MessageResponse:
    record = await load_record(service, termination_id)
    message = await guard.run(
        record,
        MutationOperation.EDIT,
        lambda: service.update_termination(termination_id, update),
    )
    return MessageResponse(message=message)


@router.delete("/{termination_id}", response_model=MessageResponse)
async def delete_termination(termination_id: int, service: ServiceDep) -> MessageResponse:
    record = await load_record(service, termination_id)
    message = await guard.run(
        record,
        MutationOperation.DELETE,
        lambda: service.delete_termination(termination_id),
    )
    return MessageResponse(message=message)


@router.post("/{termination_id}/status", response_model=MessageResponse)
async def change_status(
    termination_id: int,
    payload: StatusChange,
    service: ServiceDep,
    notifier: NotifierDep,
) -> MessageResponse:
    message = await service.change_status(termination_id, payload.status)
    await ApprovalGate(service, notifier).notify_status_changed(
        termination_id, payload.status.value
    )
    return MessageResponse(message=message)


@router.post("/{termination_id}/refund", response_model=MessageResponse)
async def process_refund(
    termination_id: int, request: RefundRequest, service: ServiceDep
) -> MessageResponse:
    return MessageResponse(message=await service.process_refund(termination_id, request))


@router.post("/{termination_id}/deductions", response_model=MessageResponse)
async def add_deduction(
    termination_id: int, deduction: TerminationDeduction, service: ServiceDep
) -> MessageResponse:
    record = await load_record(service, termination_id)
    message = await guard.run(
        record,
        MutationOperation.EDIT,
        lambda: service.add_deduction(termination_id, deduction),
    )
    return MessageResponse(message=message)


@router.put("/{termination_id}/deductions/{deduction_id}", response_model=MessageResponse)
async def update_deduction(
    termination_id: int,
    deduction_id: int,
    deduction: TerminationDeduction,
    service: ServiceDep,
) -> MessageResponse:
    record = await load_record(service, termination_id)
    deduction = deduction.model_copy(update={"termination_deduction_id": deduction_id})
    message = await guard.run(
        record, MutationOperation.EDIT, lambda: service.update_deduction(deduction)
    )
    return MessageResponse(message=message)


@router.delete("/{termination_id}/deductions/{deduction_id}", response_model=MessageResponse)
async def delete_deduction(
    termination_id: int, deduction_id: int, service: ServiceDep
) -> MessageResponse:
    record = await load_record(service, termination_id)
    message = await guard.run(
        record, MutationOperation.EDIT, lambda: service.delete_deduction(deduction_id)
    )
    return MessageResponse(message=message)


__all__ = ["router"]
