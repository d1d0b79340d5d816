"""Tests for the edit/delete predicates and the mutation guard."""

from __future__ import annotations

import asyncio
import os
import sys
from pathlib import Path

sys.path.append(str(Path(__file__).resolve().parents[2]))

os.environ.setdefault("DATABASE_URL", "sqlite:///./test_leasedesk.db")

import pytest

from fake_backend import contract_row, invoice_row, termination_row, voucher_row
from leasedesk.core.errors import GuardError, GuardErrorKind
from leasedesk.schemas.approval import APPROVAL_LOCK_MESSAGES, ApprovalStatus, MutationOperation
from leasedesk.schemas.contract import Contract
from leasedesk.schemas.invoice import ContractInvoice
from leasedesk.schemas.petty_cash import PettyCashVoucher
from leasedesk.schemas.termination import ContractTermination
from leasedesk.services.approval_gate import can_delete, can_edit
from leasedesk.services.mutation_guard import MutationGuard, guard_mutation


@pytest.mark.parametrize(
    ("status", "requires_approval", "editable"),
    [
        ("Pending", True, True),
        ("Rejected", True, True),
        ("Approved", True, False),
        ("Approved", False, True),
    ],
)
def test_approval_state_decides_edit_and_delete(
    status: str, requires_approval: bool, editable: bool
) -> None:
    contract = Contract.model_validate(
        contract_row(ApprovalStatus=status, RequiresApproval=requires_approval)
    )

    assert can_edit(contract) is editable
    assert can_delete(contract) is editable


def test_missing_approval_fields_default_to_pending_and_required() -> None:
    contract = Contract.model_validate(
        contract_row(ApprovalStatus="", RequiresApproval=None)
    )

    assert contract.approval_status is ApprovalStatus.PENDING
    assert contract.requires_approval is True


def test_approval_status_is_parsed_case_insensitively() -> None:
    termination = ContractTermination.model_validate(termination_row(ApprovalStatus="approved"))

    assert termination.approval_status is ApprovalStatus.APPROVED
    assert not can_edit(termination)


def test_guard_raises_protected_error_with_lock_message() -> None:
    contract = Contract.model_validate(contract_row(ApprovalStatus="Approved"))

    with pytest.raises(GuardError) as exc_info:
        guard_mutation(contract, MutationOperation.EDIT)

    assert exc_info.value.kind is GuardErrorKind.PROTECTED
    assert exc_info.value.message == APPROVAL_LOCK_MESSAGES[MutationOperation.EDIT]


def test_active_contract_can_be_edited_but_not_deleted() -> None:
    contract = Contract.model_validate(contract_row(ContractStatus="Active"))

    assert can_edit(contract)
    assert not can_delete(contract)
    with pytest.raises(GuardError) as exc_info:
        guard_mutation(contract, MutationOperation.DELETE)
    assert exc_info.value.message == "Cannot delete active contracts"


def test_posted_invoice_is_locked_for_edit_and_delete() -> None:
    invoice = ContractInvoice.model_validate(invoice_row(IsPosted=True, ApprovalStatus="Pending"))

    assert not can_edit(invoice)
    assert not can_delete(invoice)
    with pytest.raises(GuardError) as exc_info:
        guard_mutation(invoice, MutationOperation.EDIT)
    assert exc_info.value.message == "Cannot edit posted invoices; reverse the posting first"


@pytest.mark.parametrize(
    ("overrides", "postable"),
    [
        ({"ApprovalStatus": "Approved"}, True),
        ({"ApprovalStatus": "Pending"}, False),
        ({"ApprovalStatus": "Pending", "RequiresApproval": False}, True),
        ({"ApprovalStatus": "Approved", "IsPosted": True}, False),
    ],
)
def test_invoice_posting_eligibility(overrides: dict[str, object], postable: bool) -> None:
    invoice = ContractInvoice.model_validate(invoice_row(**overrides))

    assert invoice.can_post() is postable


def test_posted_voucher_cannot_be_edited() -> None:
    voucher = PettyCashVoucher.model_validate(
        voucher_row(PostingStatus="Posted", ApprovalStatus="Rejected")
    )

    assert voucher.record_id == "PC-2024-0001"
    with pytest.raises(GuardError) as exc_info:
        guard_mutation(voucher, MutationOperation.EDIT)
    assert exc_info.value.message == "Cannot edit posted vouchers"


def test_guard_runs_call_only_when_allowed() -> None:
    guard = MutationGuard()
    calls: list[str] = []

    async def update() -> str:
        calls.append("update")
        return "Contract updated successfully"

    pending = Contract.model_validate(contract_row())
    approved = Contract.model_validate(contract_row(ApprovalStatus="Approved"))

    assert asyncio.run(guard.run(pending, MutationOperation.EDIT, update)) == (
        "Contract updated successfully"
    )
    with pytest.raises(GuardError):
        asyncio.run(guard.run(approved, MutationOperation.EDIT, update))

    assert calls == ["update"]
