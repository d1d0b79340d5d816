"""Lease contract service backed by ``/Master/contractmanagement``."""

from __future__ import annotations

import calendar
import json
from datetime import date, timedelta
from enum import IntEnum
from typing import Any, ClassVar

import structlog

from leasedesk.core.errors import BackendError, ValidationError
from leasedesk.schemas.approval import ApprovalStatus, EntityType
from leasedesk.schemas.contract import (
    Contract,
    ContractAdditionalCharge,
    ContractAttachment,
    ContractDetail,
    ContractSearch,
    ContractStatistics,
    ContractStatus,
    ContractUnit,
    ContractUpdate,
)

from .base import ApprovableService
from .export import Column

LOGGER = structlog.get_logger(__name__)


class ContractModes(IntEnum):
    CREATE = 1
    UPDATE = 2
    LIST = 3
    DETAIL = 4
    DELETE = 5
    SEARCH = 6
    CHANGE_STATUS = 7
    STATISTICS = 8
    BY_UNIT = 9
    ADD_UNIT = 10
    UPDATE_UNIT = 11
    REMOVE_UNIT = 12
    ADD_CHARGE = 13
    UPDATE_CHARGE = 14
    REMOVE_CHARGE = 15
    APPROVE = 19
    REJECT = 20
    RESET_APPROVAL = 21
    PENDING_APPROVAL = 22


CONTRACT_EXPORT_COLUMNS: tuple[Column, ...] = (
    ("Contract No", "contract_no"),
    ("Customer", "customer_name"),
    ("Date", "transaction_date"),
    ("Status", "contract_status"),
    ("Approval", "approval_status"),
    ("Total", "total_amount"),
    ("Additional Charges", "additional_charges"),
    ("Grand Total", "grand_total"),
)


def _header_parameters(update: ContractUpdate) -> dict[str, Any]:
    return {
        "ContractNo": update.contract_no,
        "ContractStatus": update.contract_status.value if update.contract_status else None,
        "CustomerID": update.customer_id,
        "JointCustomerID": update.joint_customer_id,
        "TransactionDate": update.transaction_date.isoformat() if update.transaction_date else None,
        "TotalAmount": update.total_amount,
        "AdditionalCharges": update.additional_charges,
        "GrandTotal": update.grand_total,
        "Remarks": update.remarks,
        "RequiresApproval": update.requires_approval,
    }


def _json_rows(rows: list[ContractUnit] | list[ContractAdditionalCharge]) -> str | None:
    if not rows:
        return None
    return json.dumps([row.model_dump(mode="json", by_alias=True, exclude_none=True) for row in rows])


def add_months(value: date, months: int) -> date:
    """Shift ``value`` by ``months``, clamping to the end of short months."""

    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def renewal_period(unit: ContractUnit, years: int, months: int, today: date) -> tuple[date, date]:
    """Return the ``(from, to)`` dates for the renewed term of ``unit``."""

    start = unit.to_date + timedelta(days=1) if unit.to_date else today
    end = add_months(start, years * 12 + months) - timedelta(days=1)
    return start, end


class ContractService(ApprovableService[Contract]):
    endpoint = "/Master/contractmanagement"
    entity_type = EntityType.CONTRACT
    record_model = Contract
    id_parameter = "ContractID"
    Modes = ContractModes
    export_columns: ClassVar[tuple[Column, ...]] = CONTRACT_EXPORT_COLUMNS

    async def create_contract(
        self,
        contract: ContractUpdate,
        units: list[ContractUnit] | None = None,
        additional_charges: list[ContractAdditionalCharge] | None = None,
    ) -> int:
        """Insert a contract with its child rows and return the new id."""

        parameters = _header_parameters(contract)
        parameters.update(
            {
                "ApprovalStatus": ApprovalStatus.PENDING.value,
                "RequiresApproval": True
                if contract.requires_approval is None
                else contract.requires_approval,
                "UnitsJSON": _json_rows(units or []),
                "AdditionalChargesJSON": _json_rows(additional_charges or []),
            }
        )
        response = await self._execute(ContractModes.CREATE, **parameters)
        new_id = response.new_id("Contract")
        if new_id is None:
            raise BackendError(response.message or "Failed to create contract")
        return int(new_id)

    async def update_contract(self, contract_id: int, update: ContractUpdate) -> str:
        response = await self._execute(
            ContractModes.UPDATE, ContractID=contract_id, **_header_parameters(update)
        )
        return response.message or "Contract updated successfully"

    async def list_contracts(self) -> list[Contract]:
        response = await self._execute(ContractModes.LIST)
        return self._parse_rows(response.rows())

    async def get_contract(self, contract_id: int) -> ContractDetail | None:
        response = await self._execute(ContractModes.DETAIL, ContractID=contract_id)
        contract = self._parse(response.first_row(1))
        if contract is None:
            return None
        return ContractDetail(
            contract=contract,
            units=[ContractUnit.model_validate(row) for row in response.table(2)],
            additional_charges=[
                ContractAdditionalCharge.model_validate(row) for row in response.table(3)
            ],
            attachments=[ContractAttachment.model_validate(row) for row in response.table(4)],
        )

    async def get_record(self, record_id: int | str) -> Contract | None:
        detail = await self.get_contract(int(record_id))
        return detail.contract if detail else None

    async def delete_contract(self, contract_id: int) -> str:
        response = await self._execute(ContractModes.DELETE, ContractID=contract_id)
        return response.message or "Contract deleted successfully"

    async def search_contracts(self, criteria: ContractSearch) -> list[Contract]:
        response = await self._execute(
            ContractModes.SEARCH,
            SearchText=criteria.search_text,
            FilterCustomerID=criteria.customer_id,
            FilterContractStatus=criteria.contract_status.value
            if criteria.contract_status
            else None,
            FilterApprovalStatus=criteria.approval_status,
            FilterFromDate=criteria.from_date.isoformat() if criteria.from_date else None,
            FilterToDate=criteria.to_date.isoformat() if criteria.to_date else None,
            FilterUnitID=criteria.unit_id,
            FilterPropertyID=criteria.property_id,
        )
        return self._parse_rows(response.rows())

    async def change_status(self, contract_id: int, status: ContractStatus) -> str:
        response = await self._execute(
            ContractModes.CHANGE_STATUS, ContractID=contract_id, ContractStatus=status.value
        )
        return response.message or f"Contract status changed to {status.value}"

    async def get_statistics(self) -> ContractStatistics:
        response = await self._execute(ContractModes.STATISTICS)
        return ContractStatistics(
            status_counts=response.table(1),
            approval_counts=response.table(2),
            property_unit_counts=response.table(3),
            customer_counts=response.table(4),
        )

    async def contracts_by_unit(self, unit_id: int) -> list[Contract]:
        response = await self._execute(ContractModes.BY_UNIT, FilterUnitID=unit_id)
        return self._parse_rows(response.rows())

    async def add_unit(self, contract_id: int, unit: ContractUnit) -> str:
        response = await self._execute(
            ContractModes.ADD_UNIT, ContractID=contract_id, **unit.to_parameters()
        )
        return response.message or "Unit added to contract"

    async def update_unit(self, contract_id: int, unit: ContractUnit) -> str:
        if unit.contract_unit_id is None:
            raise ValidationError("Contract unit id is required")
        response = await self._execute(
            ContractModes.UPDATE_UNIT,
            ContractID=contract_id,
            ContractUnitID=unit.contract_unit_id,
            **unit.to_parameters(),
        )
        return response.message or "Contract unit updated"

    async def remove_unit(self, contract_id: int, contract_unit_id: int) -> str:
        response = await self._execute(
            ContractModes.REMOVE_UNIT, ContractID=contract_id, ContractUnitID=contract_unit_id
        )
        return response.message or "Unit removed from contract"

    async def add_charge(self, contract_id: int, charge: ContractAdditionalCharge) -> str:
        response = await self._execute(
            ContractModes.ADD_CHARGE, ContractID=contract_id, **charge.to_parameters()
        )
        return response.message or "Additional charge added"

    async def update_charge(self, contract_id: int, charge: ContractAdditionalCharge) -> str:
        if charge.contract_additional_charge_id is None:
            raise ValidationError("Additional charge id is required")
        response = await self._execute(
            ContractModes.UPDATE_CHARGE,
            ContractID=contract_id,
            ContractAdditionalChargeID=charge.contract_additional_charge_id,
            **charge.to_parameters(),
        )
        return response.message or "Additional charge updated"

    async def remove_charge(self, contract_id: int, charge_id: int) -> str:
        response = await self._execute(
            ContractModes.REMOVE_CHARGE,
            ContractID=contract_id,
            ContractAdditionalChargeID=charge_id,
        )
        return response.message or "Additional charge removed"

    async def renew_contract(
        self,
        contract_id: int,
        years: int = 1,
        months: int = 0,
        *,
        today: date | None = None,
    ) -> int:
        """Create a Draft renewal of ``contract_id`` and return its id.

        Each unit's new term starts the day after its current end date and
        runs for the requested period. Charges are carried over unchanged.
        """

        if years < 0 or not 0 <= months <= 11 or years * 12 + months == 0:
            raise ValidationError("Renewal period must be at least one month")

        detail = await self.get_contract(contract_id)
        if detail is None:
            raise BackendError("Contract not found", status_code=404)

        source = detail.contract
        today = today or date.today()
        renewed_units: list[ContractUnit] = []
        for unit in detail.units:
            start, end = renewal_period(unit, years, months, today)
            renewed_units.append(
                unit.model_copy(
                    update={
                        "contract_unit_id": None,
                        "contract_id": None,
                        "from_date": start,
                        "to_date": end,
                        "commencement_date": start,
                        "fitout_from_date": None,
                        "fitout_to_date": None,
                        "contract_days": 0,
                        "contract_months": months,
                        "contract_years": years,
                    }
                )
            )
        charges = [
            charge.model_copy(update={"contract_additional_charge_id": None, "contract_id": None})
            for charge in detail.additional_charges
        ]
        remarks = f"Renewal of contract {source.contract_no}."
        if source.remarks:
            remarks = f"{remarks} {source.remarks}"

        new_id = await self.create_contract(
            ContractUpdate(
                contract_status=ContractStatus.DRAFT,
                customer_id=source.customer_id,
                joint_customer_id=source.joint_customer_id,
                transaction_date=today,
                total_amount=source.total_amount,
                additional_charges=source.additional_charges,
                grand_total=source.grand_total,
                remarks=remarks,
                requires_approval=True,
            ),
            renewed_units,
            charges,
        )
        LOGGER.info(
            "contract_renewed",
            contract_id=contract_id,
            new_contract_id=new_id,
            years=years,
            months=months,
        )
        return new_id


__all__ = [
    "CONTRACT_EXPORT_COLUMNS",
    "ContractModes",
    "ContractService",
    "add_months",
    "renewal_period",
]
