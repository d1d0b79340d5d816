"""Petty cash voucher schemas."""

from __future__ import annotations

from datetime import date
from enum import Enum
from typing import Any, ClassVar, Literal

from pydantic import BaseModel, Field

from .approval import ApprovableRecord, EntityType, MutationOperation, WireModel


class VoucherStatus(str, Enum):
    DRAFT = "Draft"
    PENDING = "Pending"
    POSTED = "Posted"
    REJECTED = "Rejected"
    REVERSED = "Reversed"


EDITABLE_VOUCHER_STATUSES: frozenset[VoucherStatus] = frozenset(
    {VoucherStatus.DRAFT, VoucherStatus.PENDING}
)


class PettyCashVoucher(ApprovableRecord):
    """Petty cash voucher, addressed by its voucher number."""

    entity_type: ClassVar[EntityType] = EntityType.PETTY_CASH

    posting_id: int | None = Field(default=None, alias="PostingID")
    voucher_no: str = Field(alias="VoucherNo")
    transaction_date: date | None = Field(default=None, alias="TransactionDate")
    posting_date: date | None = Field(default=None, alias="PostingDate")
    company_id: int | None = Field(default=None, alias="CompanyID")
    fiscal_year_id: int | None = Field(default=None, alias="FiscalYearID")
    amount: float | None = Field(default=None, alias="Amount")
    currency_id: int | None = Field(default=None, alias="CurrencyID")
    description: str | None = Field(default=None, alias="Description")
    narration: str | None = Field(default=None, alias="Narration")
    posting_status: VoucherStatus = Field(default=VoucherStatus.DRAFT, alias="PostingStatus")
    receipt_no: str | None = Field(default=None, alias="ReceiptNo")

    @property
    def record_id(self) -> str:
        return self.voucher_no

    @property
    def record_number(self) -> str | None:
        return self.voucher_no

    def blocking_reason(self, operation: MutationOperation) -> str | None:
        reason = super().blocking_reason(operation)
        if reason:
            return reason
        if self.posting_status not in EDITABLE_VOUCHER_STATUSES:
            verb = "edit" if operation is MutationOperation.EDIT else "delete"
            return f"Cannot {verb} {self.posting_status.value.lower()} vouchers"
        return None

    def notification_variables(self) -> dict[str, Any]:
        variables = super().notification_variables()
        variables.update(
            {
                "VoucherNumber": self.voucher_no,
                "PostingStatus": self.posting_status.value,
                "TransactionDate": self.transaction_date.isoformat()
                if self.transaction_date
                else None,
                "Amount": self.amount,
                "Description": self.description,
            }
        )
        return variables


class PettyCashEntry(BaseModel):
    """One debit or credit line sent with a create/update."""

    account_id: int
    amount: float
    description: str | None = None
    cost_center1_id: int | None = None

    def to_wire(self) -> dict[str, Any]:
        return {
            "AccountID": self.account_id,
            "Amount": self.amount,
            "Description": self.description,
            "CostCenter1ID": self.cost_center1_id,
        }


class PostingLine(WireModel):
    posting_id: int | None = Field(default=None, alias="PostingID")
    account_id: int = Field(alias="AccountID")
    transaction_type: Literal["Debit", "Credit"] = Field(alias="TransactionType")
    debit_amount: float = Field(default=0, alias="DebitAmount")
    credit_amount: float = Field(default=0, alias="CreditAmount")
    account_code: str | None = Field(default=None, alias="AccountCode")
    account_name: str | None = Field(default=None, alias="AccountName")


class VoucherDetail(BaseModel):
    voucher: PettyCashVoucher
    posting_lines: list[PostingLine] = Field(default_factory=list)


class VoucherUpdate(BaseModel):
    transaction_date: date | None = None
    posting_date: date | None = None
    company_id: int | None = None
    fiscal_year_id: int | None = None
    currency_id: int | None = None
    exchange_rate: float | None = None
    description: str | None = None
    narration: str | None = None
    receipt_no: str | None = None
    debit_entries: list[PettyCashEntry] = Field(default_factory=list)
    credit_entries: list[PettyCashEntry] = Field(default_factory=list)


class VoucherReversal(BaseModel):
    reversal_reason: str = ""


__all__ = [
    "EDITABLE_VOUCHER_STATUSES",
    "PettyCashEntry",
    "PettyCashVoucher",
    "PostingLine",
    "VoucherDetail",
    "VoucherReversal",
    "VoucherStatus",
    "VoucherUpdate",
]
