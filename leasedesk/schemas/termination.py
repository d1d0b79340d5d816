"""Contract termination schemas."""

from __future__ import annotations

from datetime import date
from enum import Enum
from typing import Any, ClassVar

from pydantic import BaseModel, Field

from .approval import ApprovableRecord, EntityType, WireModel


class TerminationStatus(str, Enum):
    DRAFT = "Draft"
    PENDING = "Pending"
    APPROVED = "Approved"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"


class ContractTermination(ApprovableRecord):
    entity_type: ClassVar[EntityType] = EntityType.TERMINATION

    termination_id: int = Field(alias="TerminationID")
    termination_no: str | None = Field(default=None, alias="TerminationNo")
    contract_id: int | None = Field(default=None, alias="ContractID")
    contract_no: str | None = Field(default=None, alias="ContractNo")
    termination_date: date | None = Field(default=None, alias="TerminationDate")
    notice_date: date | None = Field(default=None, alias="NoticeDate")
    effective_date: date | None = Field(default=None, alias="EffectiveDate")
    termination_reason: str | None = Field(default=None, alias="TerminationReason")
    termination_status: TerminationStatus = Field(
        default=TerminationStatus.DRAFT, alias="TerminationStatus"
    )
    security_deposit_amount: float | None = Field(default=None, alias="SecurityDepositAmount")
    total_deductions: float | None = Field(default=None, alias="TotalDeductions")
    refund_amount: float | None = Field(default=None, alias="RefundAmount")
    is_refund_processed: bool = Field(default=False, alias="IsRefundProcessed")
    refund_date: date | None = Field(default=None, alias="RefundDate")
    refund_reference: str | None = Field(default=None, alias="RefundReference")
    property_name: str | None = Field(default=None, alias="PropertyName")
    unit_numbers: str | None = Field(default=None, alias="UnitNumbers")

    @property
    def record_id(self) -> int:
        return self.termination_id

    @property
    def record_number(self) -> str | None:
        return self.termination_no

    def notification_variables(self) -> dict[str, Any]:
        variables = super().notification_variables()
        variables.update(
            {
                "TerminationNumber": self.termination_no,
                "TerminationStatus": self.termination_status.value,
                "TerminationDate": self.termination_date.isoformat()
                if self.termination_date
                else None,
                "EffectiveDate": self.effective_date.isoformat() if self.effective_date else None,
                "TerminationReason": self.termination_reason,
                "SecurityDepositAmount": self.security_deposit_amount,
                "TotalDeductions": self.total_deductions,
                "RefundAmount": self.refund_amount,
                "ContractNumber": self.contract_no,
                "PropertyName": self.property_name,
                "UnitNumbers": self.unit_numbers,
            }
        )
        return variables


class TerminationDeduction(WireModel):
    termination_deduction_id: int | None = Field(default=None, alias="TerminationDeductionID")
    termination_id: int | None = Field(default=None, alias="TerminationID")
    deduction_id: int | None = Field(default=None, alias="DeductionID")
    deduction_name: str | None = Field(default=None, alias="DeductionName")
    deduction_description: str | None = Field(default=None, alias="DeductionDescription")
    deduction_amount: float = Field(default=0, alias="DeductionAmount")
    tax_percentage: float | None = Field(default=None, alias="TaxPercentage")
    tax_amount: float | None = Field(default=None, alias="TaxAmount")
    total_amount: float | None = Field(default=None, alias="TotalAmount")

    def to_parameters(self) -> dict[str, Any]:
        return {
            "DeductionID": self.deduction_id,
            "DeductionName": self.deduction_name,
            "DeductionDescription": self.deduction_description,
            "DeductionAmount": self.deduction_amount,
            "TaxPercentage": self.tax_percentage,
            "TaxAmount": self.tax_amount,
            "DeductionTotalAmount": self.total_amount,
        }


class TerminationDetail(BaseModel):
    termination: ContractTermination
    deductions: list[TerminationDeduction] = Field(default_factory=list)
    attachments: list[dict[str, Any]] = Field(default_factory=list)


class TerminationUpdate(BaseModel):
    termination_date: date | None = None
    notice_date: date | None = None
    effective_date: date | None = None
    termination_reason: str | None = None
    termination_status: TerminationStatus | None = None
    security_deposit_amount: float | None = None
    notes: str | None = None
    requires_approval: bool | None = None


class TerminationCreate(TerminationUpdate):
    contract_id: int
    termination_no: str | None = None
    deductions: list[TerminationDeduction] = Field(default_factory=list)


class RefundRequest(BaseModel):
    refund_date: date
    refund_reference: str


__all__ = [
    "ContractTermination",
    "RefundRequest",
    "TerminationCreate",
    "TerminationDeduction",
    "TerminationDetail",
    "TerminationStatus",
    "TerminationUpdate",
]
