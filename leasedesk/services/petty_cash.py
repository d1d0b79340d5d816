"""Petty cash voucher service backed by ``/Master/pettyCash``."""

from __future__ import annotations

import json
from datetime import date
from enum import IntEnum
from typing import Any, ClassVar

from leasedesk.core.errors import BackendError, ValidationError
from leasedesk.schemas.approval import ApprovalAction, EntityType
from leasedesk.schemas.petty_cash import (
    PettyCashVoucher,
    PostingLine,
    VoucherDetail,
    VoucherReversal,
    VoucherStatus,
    VoucherUpdate,
)

from .base import ApprovableService
from .export import Column


class PettyCashModes(IntEnum):
    CREATE = 1
    UPDATE = 2
    LIST = 3
    DETAIL = 4
    DELETE = 5
    SEARCH = 6
    POST = 7
    REVERSE = 8
    APPROVE = 9
    REJECT = 9
    PENDING_APPROVAL = 10
    RESET_APPROVAL = 11


PETTY_CASH_EXPORT_COLUMNS: tuple[Column, ...] = (
    ("Voucher No", "voucher_no"),
    ("Transaction Date", "transaction_date"),
    ("Posting Date", "posting_date"),
    ("Description", "description"),
    ("Amount", "amount"),
    ("Status", "posting_status"),
    ("Approval", "approval_status"),
    ("Receipt No", "receipt_no"),
)


def _iso(value: date | None) -> str | None:
    return value.isoformat() if value else None


def _voucher_parameters(update: VoucherUpdate) -> dict[str, Any]:
    if not update.debit_entries or not update.credit_entries:
        raise ValidationError("At least one debit and one credit entry are required.")
    debit_total = round(sum(entry.amount for entry in update.debit_entries), 2)
    credit_total = round(sum(entry.amount for entry in update.credit_entries), 2)
    if debit_total != credit_total:
        raise ValidationError("Total debits must equal total credits.")
    return {
        "TransactionDate": _iso(update.transaction_date),
        "PostingDate": _iso(update.posting_date),
        "CompanyID": update.company_id,
        "FiscalYearID": update.fiscal_year_id,
        "CurrencyID": update.currency_id,
        "ExchangeRate": update.exchange_rate,
        "Description": update.description,
        "Narration": update.narration,
        "ReceiptNo": update.receipt_no,
        "DebitEntriesJSON": json.dumps([entry.to_wire() for entry in update.debit_entries]),
        "CreditEntriesJSON": json.dumps([entry.to_wire() for entry in update.credit_entries]),
    }


class PettyCashService(ApprovableService[PettyCashVoucher]):
    """Voucher-family resource: one mode carries both approve and reject."""

    endpoint = "/Master/pettyCash"
    entity_type = EntityType.PETTY_CASH
    record_model = PettyCashVoucher
    id_parameter = "VoucherNo"
    Modes = PettyCashModes
    export_columns: ClassVar[tuple[Column, ...]] = PETTY_CASH_EXPORT_COLUMNS

    async def create_voucher(self, voucher: VoucherUpdate) -> str:
        """Insert a voucher and return the generated voucher number."""

        response = await self._execute(
            PettyCashModes.CREATE,
            PostingStatus=VoucherStatus.DRAFT.value,
            **_voucher_parameters(voucher),
        )
        voucher_no = response.extras.get("VoucherNo")
        if not voucher_no:
            raise BackendError(response.message or "Failed to create petty cash voucher")
        return str(voucher_no)

    async def update_voucher(self, voucher_no: str, update: VoucherUpdate) -> str:
        response = await self._execute(
            PettyCashModes.UPDATE, VoucherNo=voucher_no, **_voucher_parameters(update)
        )
        return response.message or "Petty Cash Voucher updated successfully"

    async def list_vouchers(self) -> list[PettyCashVoucher]:
        response = await self._execute(PettyCashModes.LIST)
        return self._parse_rows(response.table(1))

    async def get_voucher(self, voucher_no: str) -> VoucherDetail | None:
        response = await self._execute(PettyCashModes.DETAIL, VoucherNo=voucher_no)
        voucher = self._parse(response.first_row(1))
        if voucher is None:
            return None
        return VoucherDetail(
            voucher=voucher,
            posting_lines=[PostingLine.model_validate(row) for row in response.table(2)],
        )

    async def get_record(self, record_id: int | str) -> PettyCashVoucher | None:
        detail = await self.get_voucher(str(record_id))
        return detail.voucher if detail else None

    async def delete_voucher(self, voucher_no: str) -> str:
        response = await self._execute(PettyCashModes.DELETE, VoucherNo=voucher_no)
        return response.message or "Petty Cash Voucher deleted successfully"

    async def search_vouchers(
        self,
        search_text: str | None = None,
        from_date: date | None = None,
        to_date: date | None = None,
        posting_status: VoucherStatus | None = None,
        company_id: int | None = None,
        fiscal_year_id: int | None = None,
        account_id: int | None = None,
    ) -> list[PettyCashVoucher]:
        response = await self._execute(
            PettyCashModes.SEARCH,
            SearchText=search_text,
            FilterFromDate=_iso(from_date),
            FilterToDate=_iso(to_date),
            FilterPostingStatus=posting_status.value if posting_status else None,
            FilterCompanyID=company_id,
            FilterFiscalYearID=fiscal_year_id,
            FilterAccountID=account_id,
        )
        return self._parse_rows(response.table(1))

    async def post_voucher(self, voucher_no: str) -> str:
        response = await self._execute(PettyCashModes.POST, VoucherNo=voucher_no)
        return response.message or "Petty Cash Voucher posted successfully"

    async def reverse_voucher(self, voucher_no: str, reversal: VoucherReversal) -> str | None:
        """Reverse a posted voucher and return the reversal voucher number."""

        if not reversal.reversal_reason.strip():
            raise ValidationError("Reversal reason is required.")
        response = await self._execute(
            PettyCashModes.REVERSE,
            VoucherNo=voucher_no,
            ReversalReason=reversal.reversal_reason.strip(),
        )
        return response.extras.get("ReversalVoucherNo")

    async def approve(self, record_id: int | str, comments: str | None = None) -> str:
        response = await self._execute(
            PettyCashModes.APPROVE,
            VoucherNo=str(record_id),
            ApprovalAction=ApprovalAction.APPROVE.value,
            ApprovalComments=comments,
        )
        return response.message or "Petty cash voucher approved successfully"

    async def reject(self, record_id: int | str, reason: str) -> str:
        response = await self._execute(
            PettyCashModes.REJECT,
            VoucherNo=str(record_id),
            ApprovalAction=ApprovalAction.REJECT.value,
            RejectionReason=reason,
        )
        return response.message or "Petty cash voucher rejected successfully"


__all__ = ["PETTY_CASH_EXPORT_COLUMNS", "PettyCashModes", "PettyCashService"]
