"""Contract schemas."""

from __future__ import annotations

from datetime import date, datetime
from enum import Enum
from typing import Any, ClassVar

from pydantic import BaseModel, Field

from .approval import ApprovableRecord, EntityType, MutationOperation, WireModel


class ContractStatus(str, Enum):
    DRAFT = "Draft"
    PENDING = "Pending"
    ACTIVE = "Active"
    EXPIRED = "Expired"
    CANCELLED = "Cancelled"
    COMPLETED = "Completed"
    TERMINATED = "Terminated"


# Live or closed contracts cannot be deleted whatever their approval state.
UNDELETABLE_CONTRACT_STATUSES: frozenset[ContractStatus] = frozenset(
    {ContractStatus.ACTIVE, ContractStatus.COMPLETED}
)


class Contract(ApprovableRecord):
    """Lease contract header."""

    entity_type: ClassVar[EntityType] = EntityType.CONTRACT

    contract_id: int = Field(alias="ContractID")
    contract_no: str | None = Field(default=None, alias="ContractNo")
    contract_status: ContractStatus = Field(default=ContractStatus.DRAFT, alias="ContractStatus")
    customer_id: int | None = Field(default=None, alias="CustomerID")
    joint_customer_id: int | None = Field(default=None, alias="JointCustomerID")
    transaction_date: date | None = Field(default=None, alias="TransactionDate")
    total_amount: float | None = Field(default=None, alias="TotalAmount")
    additional_charges: float | None = Field(default=None, alias="AdditionalCharges")
    grand_total: float | None = Field(default=None, alias="GrandTotal")
    remarks: str | None = Field(default=None, alias="Remarks")

    @property
    def record_id(self) -> int:
        return self.contract_id

    @property
    def record_number(self) -> str | None:
        return self.contract_no

    def blocking_reason(self, operation: MutationOperation) -> str | None:
        reason = super().blocking_reason(operation)
        if reason:
            return reason
        if (
            operation is MutationOperation.DELETE
            and self.contract_status in UNDELETABLE_CONTRACT_STATUSES
        ):
            return f"Cannot delete {self.contract_status.value.lower()} contracts"
        return None

    def notification_variables(self) -> dict[str, Any]:
        variables = super().notification_variables()
        variables.update(
            {
                "ContractNumber": self.contract_no,
                "ContractStatus": self.contract_status.value,
                "ContractStartDate": self.transaction_date.isoformat()
                if self.transaction_date
                else None,
                "TotalAmount": self.grand_total,
            }
        )
        return variables


class ContractUnit(WireModel):
    contract_unit_id: int | None = Field(default=None, alias="ContractUnitID")
    contract_id: int | None = Field(default=None, alias="ContractID")
    unit_id: int = Field(alias="UnitID")
    from_date: date | None = Field(default=None, alias="FromDate")
    to_date: date | None = Field(default=None, alias="ToDate")
    fitout_from_date: date | None = Field(default=None, alias="FitoutFromDate")
    fitout_to_date: date | None = Field(default=None, alias="FitoutToDate")
    commencement_date: date | None = Field(default=None, alias="CommencementDate")
    contract_days: int | None = Field(default=None, alias="ContractDays")
    contract_months: int | None = Field(default=None, alias="ContractMonths")
    contract_years: int | None = Field(default=None, alias="ContractYears")
    rent_per_month: float | None = Field(default=None, alias="RentPerMonth")
    rent_per_year: float | None = Field(default=None, alias="RentPerYear")
    no_of_installments: int | None = Field(default=None, alias="NoOfInstallments")
    tax_percentage: float | None = Field(default=None, alias="TaxPercentage")
    tax_amount: float | None = Field(default=None, alias="TaxAmount")
    total_amount: float | None = Field(default=None, alias="TotalAmount")

    def to_parameters(self) -> dict[str, Any]:
        """Return the unit fields using the add/update-unit parameter names."""

        return {
            "UnitID": self.unit_id,
            "FromDate": _iso(self.from_date),
            "ToDate": _iso(self.to_date),
            "FitoutFromDate": _iso(self.fitout_from_date),
            "FitoutToDate": _iso(self.fitout_to_date),
            "CommencementDate": _iso(self.commencement_date),
            "ContractDays": self.contract_days,
            "ContractMonths": self.contract_months,
            "ContractYears": self.contract_years,
            "RentPerMonth": self.rent_per_month,
            "RentPerYear": self.rent_per_year,
            "NoOfInstallments": self.no_of_installments,
            "UnitTaxPercentage": self.tax_percentage,
            "UnitTaxAmount": self.tax_amount,
            "UnitTotalAmount": self.total_amount,
        }


class ContractAdditionalCharge(WireModel):
    contract_additional_charge_id: int | None = Field(
        default=None, alias="ContractAdditionalChargeID"
    )
    contract_id: int | None = Field(default=None, alias="ContractID")
    additional_charges_id: int = Field(alias="AdditionalChargesID")
    amount: float = Field(default=0, alias="Amount")
    tax_percentage: float | None = Field(default=None, alias="TaxPercentage")
    tax_amount: float | None = Field(default=None, alias="TaxAmount")
    total_amount: float | None = Field(default=None, alias="TotalAmount")

    def to_parameters(self) -> dict[str, Any]:
        return {
            "AdditionalChargesID": self.additional_charges_id,
            "ChargeAmount": self.amount,
            "ChargeTaxPercentage": self.tax_percentage,
            "ChargeTaxAmount": self.tax_amount,
            "ChargeTotalAmount": self.total_amount,
        }


class ContractAttachment(WireModel):
    contract_attachment_id: int | None = Field(default=None, alias="ContractAttachmentID")
    doc_type_id: int | None = Field(default=None, alias="DocTypeID")
    document_name: str | None = Field(default=None, alias="DocumentName")
    file_content_type: str | None = Field(default=None, alias="FileContentType")
    file_size: int | None = Field(default=None, alias="FileSize")
    doc_expiry_date: date | None = Field(default=None, alias="DocExpiryDate")


class ContractDetail(BaseModel):
    contract: Contract
    units: list[ContractUnit] = Field(default_factory=list)
    additional_charges: list[ContractAdditionalCharge] = Field(default_factory=list)
    attachments: list[ContractAttachment] = Field(default_factory=list)


class ContractUpdate(BaseModel):
    """Editable contract header fields."""

    contract_no: str | None = None
    contract_status: ContractStatus | None = None
    customer_id: int | None = None
    joint_customer_id: int | None = None
    transaction_date: date | None = None
    total_amount: float | None = None
    additional_charges: float | None = None
    grand_total: float | None = None
    remarks: str | None = None
    requires_approval: bool | None = None


class ContractStatistics(BaseModel):
    status_counts: list[dict[str, Any]] = Field(default_factory=list)
    approval_counts: list[dict[str, Any]] = Field(default_factory=list)
    property_unit_counts: list[dict[str, Any]] = Field(default_factory=list)
    customer_counts: list[dict[str, Any]] = Field(default_factory=list)


class ContractSearch(BaseModel):
    search_text: str | None = None
    customer_id: int | None = None
    contract_status: ContractStatus | None = None
    approval_status: str | None = None
    from_date: date | None = None
    to_date: date | None = None
    unit_id: int | None = None
    property_id: int | None = None


class ContractRenewal(BaseModel):
    years: int = Field(default=1, ge=0)
    months: int = Field(default=0, ge=0, le=11)


def _iso(value: date | datetime | None) -> str | None:
    return value.isoformat() if value else None


__all__ = [
    "Contract",
    "ContractAdditionalCharge",
    "ContractAttachment",
    "ContractDetail",
    "ContractRenewal",
    "ContractSearch",
    "ContractStatistics",
    "ContractStatus",
    "ContractUnit",
    "ContractUpdate",
    "UNDELETABLE_CONTRACT_STATUSES",
]
