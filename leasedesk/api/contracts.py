"""Contract endpoints; every mutation is checked by the mutation guard first."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Response, status
from pydantic import BaseModel, Field

from leasedesk.schemas.approval import MutationOperation
from leasedesk.schemas.contract import (
    Contract,
    ContractAdditionalCharge,
    ContractDetail,
    ContractRenewal,
    ContractSearch,
    ContractStatistics,
    ContractStatus,
    ContractUnit,
    ContractUpdate,
)
from leasedesk.services.approval_gate import ApprovalGate
from leasedesk.services.contracts import ContractService
from leasedesk.services.export import export_csv
from leasedesk.services.mutation_guard import MutationGuard

from .deps import MessageResponse, NotifierDep, get_contract_service, load_record

router = APIRouter(prefix="/contracts", tags=["Contracts"])

ServiceDep = Annotated[ContractService, Depends(get_contract_service)]
guard = MutationGuard()


class StatusChange(BaseModel):
    status: ContractStatus


class ContractCreate(BaseModel):
    contract: ContractUpdate
    units: list[ContractUnit] = Field(default_factory=list)
    additional_charges: list[ContractAdditionalCharge] = Field(default_factory=list)


class CreatedResponse(BaseModel):
    message: str
    contract_id: int


class RenewalResponse(BaseModel):
    message: str
    new_contract_id: int


@router.get("", response_model=list[Contract])
async def list_contracts(service: ServiceDep) -> list[Contract]:
    return await service.list_contracts()


@router.post("", response_model=CreatedResponse, status_code=status.HTTP_201_CREATED)
async def create_contract(payload: ContractCreate, service: ServiceDep) -> CreatedResponse:
    contract_id = await service.create_contract(
        payload.contract, payload.units, payload.additional_charges
    )
    return CreatedResponse(message="Contract created successfully", contract_id=contract_id)


@router.post("/search", response_model=list[Contract])
async def search_contracts(criteria: ContractSearch, service: ServiceDep) -> list[Contract]:
    return await service.search_contracts(criteria)


@router.get("/export")
async def export_contracts(service: ServiceDep) -> Response:
    """Return the contract list as CSV."""

    records = await service.list_contracts()
    return Response(
        content=export_csv(records, service.export_columns),
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="contracts.csv"'},
    )


@router.get("/statistics", response_model=ContractStatistics)
async def contract_statistics(service: ServiceDep) -> ContractStatistics:
    return await service.get_statistics()


@router.get("/by-unit/{unit_id}", response_model=list[Contract])
async def contracts_by_unit(unit_id: int, service: ServiceDep) -> list[Contract]:
    return await service.contracts_by_unit(unit_id)


@router.get("/{contract_id}", response_model=ContractDetail)
async def get_contract(contract_id: int, service: ServiceDep) -> ContractDetail:
    detail = await service.get_contract(contract_id)
    if detail is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Contract not found")
    return detail


@router.put("/{contract_id}", response_model=MessageResponse)
async def update_contract(
    contract_id: int, update: ContractUpdate, service: ServiceDep
) -> MessageResponse:
    record = await load_record(service, contract_id)
    message = await guard.run(
        record,
        MutationOperation.EDIT,
        lambda: service.update_contract(contract_id, update),
    )
    return MessageResponse(message=message)


@router.delete("/{contract_id}", response_model=MessageResponse)
async def delete_contract(contract_id: int, service: ServiceDep) -> MessageResponse:
    record = await load_record(service, contract_id)
    message = await guard.run(
        record,
        MutationOperation.DELETE,
        lambda: service.delete_contract(contract_id),
    )
    return MessageResponse(message=message)


@router.post("/{contract_id}/units", response_model=MessageResponse)
async def add_unit(
    contract_id: int, unit: ContractUnit, service: ServiceDep
) -> MessageResponse:
    record = await load_record(service, contract_id)
    message = await guard.run(
        record, MutationOperation.EDIT, lambda: service.add_unit(contract_id, unit)
    )
    return MessageResponse(message=message)


@router.put("/{contract_id}/units/{contract_unit_id}", response_model=MessageResponse)
async def update_unit(
    contract_id: int, contract_unit_id: int, unit: ContractUnit, service: ServiceDep
) -> MessageResponse:
    record = await load_record(service, contract_id)
    unit = unit.model_copy(update={"contract_unit_id": contract_unit_id})
    message = await guard.run(
        record, MutationOperation.EDIT, lambda: service.update_unit(contract_id, unit)
    )
    return MessageResponse(message=message)


@router.delete("/{contract_id}/units/{contract_unit_id}", response_model=MessageResponse)
async def remove_unit(
    contract_id: int, contract_unit_id: int, service: ServiceDep
) -> MessageResponse:
    record = await load_record(service, contract_id)
    message = await guard.run(
        record,
        MutationOperation.EDIT,
        lambda: service.remove_unit(contract_id, contract_unit_id),
    )
    return MessageResponse(message=message)


@router.post("/{contract_id}/charges", response_model=MessageResponse)
async def add_charge(
    contract_id: int, charge: ContractAdditionalCharge, service: ServiceDep
) -> MessageResponse:
    record = await load_record(service, contract_id)
    message = await guard.run(
        record, MutationOperation.EDIT, lambda: service.add_charge(contract_id, charge)
    )
    return MessageResponse(message=message)


@router.put("/{contract_id}/charges/{charge_id}", response_model=MessageResponse)
async def update_charge(
    contract_id: int,
    charge_id: int,
    charge: ContractAdditionalCharge,
    service: ServiceDep,
) -> MessageResponse:
    record = await load_record(service, contract_id)
    charge = charge.model_copy(update={"contract_additional_charge_id": charge_id})
    message = await guard.run(
        record, MutationOperation.EDIT, lambda: service.update_charge(contract_id, charge)
    )
    return MessageResponse(message=message)


@router.delete("/{contract_id}/charges/{charge_id}", response_model=MessageResponse)
async def remove_charge(
    contract_id: int, charge_id: int, service: ServiceDep
) -> MessageResponse:
    record = await load_record(service, contract_id)
    message = await guard.run(
        record,
        MutationOperation.EDIT,
        lambda: service.remove_charge(contract_id, charge_id),
    )
    return MessageResponse(message=message)


@router.post("/{contract_id}/status", response_model=MessageResponse)
async def change_status(
    contract_id: int,
    payload: StatusChange,
    service: ServiceDep,
    notifier: NotifierDep,
) -> MessageResponse:
    """Change the business status; approval state is left untouched."""

    message = await service.change_status(contract_id, payload.status)
    await ApprovalGate(service, notifier).notify_status_changed(contract_id, payload.status.value)
    return MessageResponse(message=message)


@router.post("/{contract_id}/renew", response_model=RenewalResponse)
async def renew_contract(
    contract_id: int,
    renewal: ContractRenewal,
    service: ServiceDep,
    notifier: NotifierDep,
) -> RenewalResponse:
    new_id = await service.renew_contract(contract_id, renewal.years, renewal.months)
    await ApprovalGate(service, notifier).notify_renewed(contract_id, new_id)
    return RenewalResponse(message="Contract renewed successfully", new_contract_id=new_id)


__all__ = ["router"]
