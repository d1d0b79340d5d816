"""Contract invoice schemas."""

from __future__ import annotations

from datetime import date
from enum import Enum
from typing import Any, ClassVar

from pydantic import BaseModel, Field

from .approval import ApprovableRecord, ApprovalStatus, EntityType, MutationOperation, WireModel


class InvoiceStatus(str, Enum):
    DRAFT = "Draft"
    PENDING = "Pending"
    APPROVED = "Approved"
    ACTIVE = "Active"
    PAID = "Paid"
    CANCELLED = "Cancelled"
    VOIDED = "Voided"


POSTED_INVOICE_MESSAGES: dict[MutationOperation, str] = {
    MutationOperation.EDIT: "Cannot edit posted invoices; reverse the posting first",
    MutationOperation.DELETE: "Cannot delete posted invoices; reverse the posting first",
}


class ContractInvoice(ApprovableRecord):
    """Lease invoice raised against a contract.

    Posting is folded into both the edit and the delete predicate: once an
    invoice is in the ledger only a reversal can change it.
    """

    entity_type: ClassVar[EntityType] = EntityType.INVOICE

    lease_invoice_id: int = Field(alias="LeaseInvoiceID")
    invoice_no: str | None = Field(default=None, alias="InvoiceNo")
    invoice_date: date | None = Field(default=None, alias="InvoiceDate")
    due_date: date | None = Field(default=None, alias="DueDate")
    invoice_type: str | None = Field(default=None, alias="InvoiceType")
    invoice_status: InvoiceStatus = Field(default=InvoiceStatus.DRAFT, alias="InvoiceStatus")
    contract_id: int | None = Field(default=None, alias="ContractID")
    contract_no: str | None = Field(default=None, alias="ContractNo")
    sub_total: float | None = Field(default=None, alias="SubTotal")
    tax_amount: float | None = Field(default=None, alias="TaxAmount")
    total_amount: float | None = Field(default=None, alias="TotalAmount")
    paid_amount: float | None = Field(default=None, alias="PaidAmount")
    balance_amount: float | None = Field(default=None, alias="BalanceAmount")
    is_posted: bool = Field(default=False, alias="IsPosted")

    @property
    def record_id(self) -> int:
        return self.lease_invoice_id

    @property
    def record_number(self) -> str | None:
        return self.invoice_no

    def blocking_reason(self, operation: MutationOperation) -> str | None:
        reason = super().blocking_reason(operation)
        if reason:
            return reason
        if self.is_posted:
            return POSTED_INVOICE_MESSAGES[operation]
        return None

    def can_post(self) -> bool:
        """Return ``True`` when the invoice may be committed to the ledger."""

        if self.is_posted:
            return False
        if not self.requires_approval:
            return True
        return self.approval_status is ApprovalStatus.APPROVED

    def notification_variables(self) -> dict[str, Any]:
        variables = super().notification_variables()
        variables.update(
            {
                "InvoiceNumber": self.invoice_no,
                "InvoiceStatus": self.invoice_status.value,
                "InvoiceDate": self.invoice_date.isoformat() if self.invoice_date else None,
                "DueDate": self.due_date.isoformat() if self.due_date else None,
                "ContractNumber": self.contract_no,
                "TotalAmount": self.total_amount,
            }
        )
        return variables


class InvoicePayment(WireModel):
    payment_id: int | None = Field(default=None, alias="PaymentID")
    payment_amount: float = Field(default=0, alias="PaymentAmount")
    payment_date: date | None = Field(default=None, alias="PaymentDate")
    payment_reference: str | None = Field(default=None, alias="PaymentReference")
    payment_method: str | None = Field(default=None, alias="PaymentMethod")


class InvoicePosting(WireModel):
    posting_id: int = Field(alias="PostingID")
    voucher_no: str | None = Field(default=None, alias="VoucherNo")
    posting_date: date | None = Field(default=None, alias="PostingDate")
    is_reversed: bool = Field(default=False, alias="IsReversed")


class InvoiceDetail(BaseModel):
    invoice: ContractInvoice
    payments: list[InvoicePayment] = Field(default_factory=list)
    postings: list[InvoicePosting] = Field(default_factory=list)


class InvoiceUpdate(BaseModel):
    invoice_no: str | None = None
    invoice_date: date | None = None
    due_date: date | None = None
    invoice_type: str | None = None
    invoice_status: InvoiceStatus | None = None
    sub_total: float | None = None
    tax_amount: float | None = None
    discount_amount: float | None = None
    total_amount: float | None = None
    notes: str | None = None
    requires_approval: bool | None = None


class InvoicePostingRequest(BaseModel):
    posting_date: date | None = None
    debit_account_id: int | None = None
    credit_account_id: int | None = None
    narration: str | None = None
    reference: str | None = None
    exchange_rate: float | None = None


class PostingReversalRequest(BaseModel):
    posting_id: int | None = None
    reversal_reason: str = ""


class InvoicePaymentRequest(BaseModel):
    payment_amount: float = 0
    payment_date: date | None = None
    payment_reference: str | None = None
    payment_method: str | None = None
    notes: str | None = None


class InvoiceSearch(BaseModel):
    search_text: str | None = None
    invoice_status: InvoiceStatus | None = None
    invoice_type: str | None = None
    approval_status: str | None = None
    customer_id: int | None = None
    contract_id: int | None = None
    from_date: date | None = None
    to_date: date | None = None


__all__ = [
    "ContractInvoice",
    "InvoiceDetail",
    "InvoicePayment",
    "InvoicePaymentRequest",
    "InvoicePosting",
    "InvoicePostingRequest",
    "InvoiceSearch",
    "InvoiceStatus",
    "InvoiceUpdate",
    "POSTED_INVOICE_MESSAGES",
    "PostingReversalRequest",
]
