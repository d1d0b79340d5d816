"""Contract invoice service backed by ``/Master/contractInvoiceManagement``."""

from __future__ import annotations

from datetime import date
from enum import IntEnum
from typing import Any, ClassVar

from leasedesk.core.errors import ValidationError
from leasedesk.schemas.approval import EntityType
from leasedesk.schemas.invoice import (
    ContractInvoice,
    InvoiceDetail,
    InvoicePayment,
    InvoicePaymentRequest,
    InvoicePosting,
    InvoicePostingRequest,
    InvoiceSearch,
    InvoiceStatus,
    InvoiceUpdate,
    PostingReversalRequest,
)

from .base import ApprovableService
from .export import Column


class InvoiceModes(IntEnum):
    UPDATE = 2
    LIST = 3
    DETAIL = 4
    DELETE = 5
    SEARCH = 6
    CHANGE_STATUS = 7
    UNPOSTED = 9
    POST_SINGLE = 10
    REVERSE_POSTING = 12
    RECORD_PAYMENT = 13
    APPROVE = 14
    REJECT = 15
    RESET_APPROVAL = 16
    PENDING_APPROVAL = 17


INVOICE_EXPORT_COLUMNS: tuple[Column, ...] = (
    ("Invoice No", "invoice_no"),
    ("Invoice Date", "invoice_date"),
    ("Due Date", "due_date"),
    ("Customer", "customer_name"),
    ("Contract No", "contract_no"),
    ("Type", "invoice_type"),
    ("Status", "invoice_status"),
    ("Approval", "approval_status"),
    ("Total", "total_amount"),
    ("Paid", "paid_amount"),
    ("Balance", "balance_amount"),
    ("Posted", "is_posted"),
)


def _iso(value: date | None) -> str | None:
    return value.isoformat() if value else None


def validate_posting(invoice_id: int | None, request: InvoicePostingRequest) -> None:
    """Reject a posting request that is missing the required ledger fields."""

    required = (
        invoice_id,
        request.posting_date,
        request.debit_account_id,
        request.credit_account_id,
    )
    if not all(required):
        raise ValidationError(
            "Invoice ID, Posting Date, Debit Account, and Credit Account are required."
        )


def validate_reversal(request: PostingReversalRequest) -> None:
    if not request.posting_id:
        raise ValidationError("Posting ID is required for reversal.")
    if not request.reversal_reason.strip():
        raise ValidationError("Reversal reason is required.")


def validate_payment(invoice_id: int | None, request: InvoicePaymentRequest) -> None:
    if not invoice_id or request.payment_amount <= 0:
        raise ValidationError("Invoice ID and valid Payment Amount are required.")


class ContractInvoiceService(ApprovableService[ContractInvoice]):
    endpoint = "/Master/contractInvoiceManagement"
    entity_type = EntityType.INVOICE
    record_model = ContractInvoice
    id_parameter = "LeaseInvoiceID"
    Modes = InvoiceModes
    export_columns: ClassVar[tuple[Column, ...]] = INVOICE_EXPORT_COLUMNS

    async def update_invoice(self, invoice_id: int, update: InvoiceUpdate) -> str:
        parameters: dict[str, Any] = {
            "LeaseInvoiceID": invoice_id,
            "InvoiceNo": update.invoice_no,
            "InvoiceDate": _iso(update.invoice_date),
            "DueDate": _iso(update.due_date),
            "InvoiceType": update.invoice_type,
            "InvoiceStatus": update.invoice_status.value if update.invoice_status else None,
            "SubTotal": update.sub_total,
            "TaxAmount": update.tax_amount,
            "DiscountAmount": update.discount_amount,
            "TotalAmount": update.total_amount,
            "Notes": update.notes,
            "RequiresApproval": update.requires_approval,
        }
        response = await self._execute(InvoiceModes.UPDATE, **parameters)
        return response.message or "Invoice updated successfully"

    async def list_invoices(self) -> list[ContractInvoice]:
        response = await self._execute(InvoiceModes.LIST)
        return self._parse_rows(response.rows())

    async def get_invoice(self, invoice_id: int) -> InvoiceDetail | None:
        response = await self._execute(InvoiceModes.DETAIL, LeaseInvoiceID=invoice_id)
        invoice = self._parse(response.first_row(1))
        if invoice is None:
            return None
        return InvoiceDetail(
            invoice=invoice,
            payments=[InvoicePayment.model_validate(row) for row in response.table(2)],
            postings=[InvoicePosting.model_validate(row) for row in response.table(3)],
        )

    async def get_record(self, record_id: int | str) -> ContractInvoice | None:
        detail = await self.get_invoice(int(record_id))
        return detail.invoice if detail else None

    async def delete_invoice(self, invoice_id: int) -> str:
        response = await self._execute(InvoiceModes.DELETE, LeaseInvoiceID=invoice_id)
        return response.message or "Invoice deleted successfully"

    async def search_invoices(self, criteria: InvoiceSearch) -> list[ContractInvoice]:
        response = await self._execute(
            InvoiceModes.SEARCH,
            SearchText=criteria.search_text,
            FilterInvoiceStatus=criteria.invoice_status.value if criteria.invoice_status else None,
            FilterInvoiceType=criteria.invoice_type,
            FilterApprovalStatus=criteria.approval_status,
            FilterCustomerID=criteria.customer_id,
            FilterContractID=criteria.contract_id,
            FilterFromDate=_iso(criteria.from_date),
            FilterToDate=_iso(criteria.to_date),
        )
        return self._parse_rows(response.rows())

    async def change_status(self, invoice_id: int, status: InvoiceStatus) -> str:
        response = await self._execute(
            InvoiceModes.CHANGE_STATUS, LeaseInvoiceID=invoice_id, InvoiceStatus=status.value
        )
        return response.message or f"Invoice status changed to {status.value}"

    async def list_unposted(
        self,
        customer_id: int | None = None,
        from_date: date | None = None,
        to_date: date | None = None,
    ) -> list[ContractInvoice]:
        response = await self._execute(
            InvoiceModes.UNPOSTED,
            FilterCustomerID=customer_id,
            FilterFromDate=_iso(from_date),
            FilterToDate=_iso(to_date),
        )
        return self._parse_rows(response.rows())

    async def post_invoice(self, invoice_id: int, request: InvoicePostingRequest) -> str | None:
        """Post one invoice to the ledger and return the voucher number."""

        validate_posting(invoice_id, request)
        response = await self._execute(
            InvoiceModes.POST_SINGLE,
            LeaseInvoiceID=invoice_id,
            PostingDate=_iso(request.posting_date),
            DebitAccountID=request.debit_account_id,
            CreditAccountID=request.credit_account_id,
            PostingNarration=request.narration,
            PostingReference=request.reference,
            ExchangeRate=request.exchange_rate,
        )
        return response.extras.get("VoucherNo")

    async def reverse_posting(self, request: PostingReversalRequest) -> str:
        validate_reversal(request)
        response = await self._execute(
            InvoiceModes.REVERSE_POSTING,
            PostingID=request.posting_id,
            ReversalReason=request.reversal_reason.strip(),
        )
        return response.message or "Invoice posting reversed successfully"

    async def record_payment(self, invoice_id: int, request: InvoicePaymentRequest) -> str:
        validate_payment(invoice_id, request)
        response = await self._execute(
            InvoiceModes.RECORD_PAYMENT,
            LeaseInvoiceID=invoice_id,
            PaymentAmount=request.payment_amount,
            PaymentDate=_iso(request.payment_date),
            PaymentReference=request.payment_reference,
            PaymentMethod=request.payment_method,
            Notes=request.notes,
        )
        return response.message or "Payment recorded successfully"


__all__ = [
    "ContractInvoiceService",
    "INVOICE_EXPORT_COLUMNS",
    "InvoiceModes",
    "validate_payment",
    "validate_posting",
    "validate_reversal",
]
