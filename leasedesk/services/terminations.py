"""Contract termination service backed by ``/Master/contractTermination``."""

from __future__ import annotations

import json
from datetime import date
from enum import IntEnum
from typing import Any, ClassVar

from leasedesk.core.errors import BackendError, ValidationError
from leasedesk.schemas.approval import ApprovalStatus, EntityType
from leasedesk.schemas.termination import (
    ContractTermination,
    RefundRequest,
    TerminationCreate,
    TerminationDeduction,
    TerminationDetail,
    TerminationStatus,
    TerminationUpdate,
)

from .base import ApprovableService
from .export import Column


class TerminationModes(IntEnum):
    CREATE = 1
    UPDATE = 2
    LIST = 3
    DETAIL = 4
    DELETE = 5
    SEARCH = 6
    CHANGE_STATUS = 7
    PROCESS_REFUND = 8
    ADD_DEDUCTION = 10
    UPDATE_DEDUCTION = 11
    DELETE_DEDUCTION = 12
    BY_CONTRACT = 16
    APPROVE = 19
    REJECT = 20
    RESET_APPROVAL = 21
    PENDING_APPROVAL = 22


TERMINATION_EXPORT_COLUMNS: tuple[Column, ...] = (
    ("Termination No", "termination_no"),
    ("Contract No", "contract_no"),
    ("Customer", "customer_name"),
    ("Termination Date", "termination_date"),
    ("Effective Date", "effective_date"),
    ("Status", "termination_status"),
    ("Approval", "approval_status"),
    ("Security Deposit", "security_deposit_amount"),
    ("Deductions", "total_deductions"),
    ("Refund", "refund_amount"),
)


def _iso(value: date | None) -> str | None:
    return value.isoformat() if value else None


def _termination_parameters(update: TerminationUpdate) -> dict[str, Any]:
    return {
        "TerminationDate": _iso(update.termination_date),
        "NoticeDate": _iso(update.notice_date),
        "EffectiveDate": _iso(update.effective_date),
        "TerminationReason": update.termination_reason,
        "TerminationStatus": update.termination_status.value
        if update.termination_status
        else None,
        "SecurityDepositAmount": update.security_deposit_amount,
        "Notes": update.notes,
        "RequiresApproval": update.requires_approval,
    }


class TerminationService(ApprovableService[ContractTermination]):
    endpoint = "/Master/contractTermination"
    entity_type = EntityType.TERMINATION
    record_model = ContractTermination
    id_parameter = "TerminationID"
    Modes = TerminationModes
    export_columns: ClassVar[tuple[Column, ...]] = TERMINATION_EXPORT_COLUMNS

    async def create_termination(self, termination: TerminationCreate) -> int:
        parameters = _termination_parameters(termination)
        parameters.update(
            {
                "TerminationNo": termination.termination_no,
                "ContractID": termination.contract_id,
                "ApprovalStatus": ApprovalStatus.PENDING.value,
                "RequiresApproval": True
                if termination.requires_approval is None
                else termination.requires_approval,
                "DeductionsJSON": json.dumps(
                    [
                        row.model_dump(mode="json", by_alias=True, exclude_none=True)
                        for row in termination.deductions
                    ]
                )
                if termination.deductions
                else None,
            }
        )
        response = await self._execute(TerminationModes.CREATE, **parameters)
        new_id = response.new_id("Termination")
        if new_id is None:
            raise BackendError(response.message or "Failed to create termination")
        return int(new_id)

    async def update_termination(self, termination_id: int, update: TerminationUpdate) -> str:
        response = await self._execute(
            TerminationModes.UPDATE,
            TerminationID=termination_id,
            **_termination_parameters(update),
        )
        return response.message or "Termination updated successfully"

    async def list_terminations(self) -> list[ContractTermination]:
        response = await self._execute(TerminationModes.LIST)
        return self._parse_rows(response.rows())

    async def get_termination(self, termination_id: int) -> TerminationDetail | None:
        response = await self._execute(TerminationModes.DETAIL, TerminationID=termination_id)
        termination = self._parse(response.first_row(1))
        if termination is None:
            return None
        return TerminationDetail(
            termination=termination,
            deductions=[TerminationDeduction.model_validate(row) for row in response.table(2)],
            attachments=response.table(3),
        )

    async def get_record(self, record_id: int | str) -> ContractTermination | None:
        detail = await self.get_termination(int(record_id))
        return detail.termination if detail else None

    async def delete_termination(self, termination_id: int) -> str:
        response = await self._execute(TerminationModes.DELETE, TerminationID=termination_id)
        return response.message or "Termination deleted successfully"

    async def search_terminations(
        self,
        search_text: str | None = None,
        contract_id: int | None = None,
        termination_status: TerminationStatus | None = None,
        approval_status: str | None = None,
        from_date: date | None = None,
        to_date: date | None = None,
    ) -> list[ContractTermination]:
        response = await self._execute(
            TerminationModes.SEARCH,
            SearchText=search_text,
            FilterContractID=contract_id,
            FilterTerminationStatus=termination_status.value if termination_status else None,
            FilterApprovalStatus=approval_status,
            FilterFromDate=_iso(from_date),
            FilterToDate=_iso(to_date),
        )
        return self._parse_rows(response.rows())

    async def change_status(self, termination_id: int, status: TerminationStatus) -> str:
        response = await self._execute(
            TerminationModes.CHANGE_STATUS,
            TerminationID=termination_id,
            TerminationStatus=status.value,
        )
        return response.message or f"Termination status changed to {status.value} successfully"

    async def process_refund(self, termination_id: int, request: RefundRequest) -> str:
        if not request.refund_reference.strip():
            raise ValidationError("Refund reference is required.")
        response = await self._execute(
            TerminationModes.PROCESS_REFUND,
            TerminationID=termination_id,
            RefundDate=_iso(request.refund_date),
            RefundReference=request.refund_reference.strip(),
        )
        return response.message or "Refund processed successfully"

    async def add_deduction(self, termination_id: int, deduction: TerminationDeduction) -> str:
        response = await self._execute(
            TerminationModes.ADD_DEDUCTION,
            TerminationID=termination_id,
            **deduction.to_parameters(),
        )
        return response.message or "Deduction added successfully"

    async def update_deduction(self, deduction: TerminationDeduction) -> str:
        if deduction.termination_deduction_id is None:
            raise ValidationError("Termination deduction id is required")
        response = await self._execute(
            TerminationModes.UPDATE_DEDUCTION,
            TerminationDeductionID=deduction.termination_deduction_id,
            **deduction.to_parameters(),
        )
        return response.message or "Deduction updated successfully"

    async def delete_deduction(self, termination_deduction_id: int) -> str:
        response = await self._execute(
            TerminationModes.DELETE_DEDUCTION,
            TerminationDeductionID=termination_deduction_id,
        )
        return response.message or "Deduction deleted successfully"

    async def terminations_by_contract(self, contract_id: int) -> list[ContractTermination]:
        response = await self._execute(TerminationModes.BY_CONTRACT, ContractID=contract_id)
        return self._parse_rows(response.rows())


__all__ = ["TERMINATION_EXPORT_COLUMNS", "TerminationModes", "TerminationService"]
