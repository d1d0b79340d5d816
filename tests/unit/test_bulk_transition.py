"""Tests for concurrent bulk approve/reject."""

from __future__ import annotations

import asyncio
import os
import sys
from pathlib import Path

sys.path.append(str(Path(__file__).resolve().parents[2]))

os.environ.setdefault("DATABASE_URL", "sqlite:///./test_leasedesk.db")

import pytest

from fake_backend import CONTRACTS, FakeLeaseBackend, RecordingNotifier, contract_row
from leasedesk.core.errors import Unauthorized, ValidationError
from leasedesk.schemas.approval import ApprovalAction
from leasedesk.schemas.auth import AuthContext
from leasedesk.schemas.contract import Contract
from leasedesk.services.approval_gate import ApprovalGate
from leasedesk.services.contracts import ContractService

MANAGER = AuthContext(user_id="7", user_name="Maya Manager", role="manager")
STAFF = AuthContext(user_id="9", user_name="Sam Staff", role="staff")

SELECTION = {42: "Pending", 43: "Approved", 44: "Pending", 45: "Rejected"}


@pytest.fixture()
def backend() -> FakeLeaseBackend:
    backend = FakeLeaseBackend()
    for contract_id, status in SELECTION.items():
        backend.add(CONTRACTS, contract_row(contract_id, ApprovalStatus=status))
    return backend


@pytest.fixture()
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture()
def gate(backend: FakeLeaseBackend, notifier: RecordingNotifier) -> ApprovalGate:
    return ApprovalGate(ContractService(backend.client(), actor=MANAGER), notifier)


@pytest.fixture()
def records(backend: FakeLeaseBackend) -> list[Contract]:
    return [Contract.model_validate(backend.get(CONTRACTS, cid)) for cid in SELECTION]


def test_bulk_approve_processes_pending_and_skips_the_rest(  # type: ignore[no-untyped-def]
    backend, notifier, gate, records
) -> None:
    result = asyncio.run(gate.bulk_transition(MANAGER, records, ApprovalAction.APPROVE))

    assert result.succeeded == 2
    assert result.failed == 0
    assert sorted(result.succeeded_ids) == [42, 44]
    assert result.skipped == [43, 45]
    assert {call.parameters["ContractID"] for call in backend.calls_for(19)} == {42, 44}
    assert backend.get(CONTRACTS, 45)["ApprovalStatus"] == "Rejected"
    assert sorted(event.entity_id for event in notifier.events) == [42, 44]
    assert result.summary == "2 contract record(s) approved successfully, 2 skipped (not pending)"


def test_bulk_member_failure_does_not_roll_back_siblings(  # type: ignore[no-untyped-def]
    backend, notifier, gate, records
) -> None:
    backend.fail_ids.add(44)

    result = asyncio.run(gate.bulk_transition(MANAGER, records, ApprovalAction.APPROVE))

    assert result.succeeded == 1
    assert result.failed == 1
    assert result.succeeded_ids == [42]
    assert result.failures[0].record_id == 44
    assert result.failures[0].reason == "Record was modified by another user"
    assert backend.get(CONTRACTS, 42)["ApprovalStatus"] == "Approved"
    assert backend.get(CONTRACTS, 44)["ApprovalStatus"] == "Pending"
    assert [event.entity_id for event in notifier.events] == [42]
    assert result.summary == (
        "1 contract record(s) approved successfully, 1 failed, 2 skipped (not pending)"
    )


def test_bulk_member_network_failure_is_reported(backend, gate, records) -> None:  # type: ignore[no-untyped-def]
    backend.offline_ids.add(42)

    result = asyncio.run(gate.bulk_transition(MANAGER, records, ApprovalAction.APPROVE))

    assert result.succeeded == 1
    assert result.failures[0].record_id == 42
    assert result.failures[0].reason == (
        "No response received from server. Please check your connection."
    )


def test_bulk_reject_sends_reason_to_each_member(backend, notifier, gate, records) -> None:  # type: ignore[no-untyped-def]
    result = asyncio.run(
        gate.bulk_transition(MANAGER, records, ApprovalAction.REJECT, " Rent below floor ")
    )

    assert result.succeeded == 2
    reasons = {call.parameters["RejectionReason"] for call in backend.calls_for(20)}
    assert reasons == {"Rent below floor"}
    assert {event.trigger_event for event in notifier.events} == {"contract_rejected"}
    assert result.summary.startswith("2 contract record(s) rejected successfully")


@pytest.mark.parametrize("reason", [None, "", "  "])
def test_bulk_reject_without_reason_sends_nothing(backend, gate, records, reason) -> None:  # type: ignore[no-untyped-def]
    with pytest.raises(ValidationError) as exc_info:
        asyncio.run(gate.bulk_transition(MANAGER, records, ApprovalAction.REJECT, reason))

    assert exc_info.value.message == "Rejection reason is required"
    assert backend.calls == []


def test_bulk_with_empty_selection_is_rejected(backend, gate) -> None:  # type: ignore[no-untyped-def]
    with pytest.raises(ValidationError) as exc_info:
        asyncio.run(gate.bulk_transition(MANAGER, [], ApprovalAction.APPROVE))

    assert exc_info.value.message == "No records selected"
    assert backend.calls == []


def test_bulk_checks_role_before_anything_else(backend, notifier, gate) -> None:  # type: ignore[no-untyped-def]
    with pytest.raises(Unauthorized):
        asyncio.run(gate.bulk_transition(STAFF, [], ApprovalAction.REJECT))

    assert backend.calls == []
    assert notifier.events == []


def test_bulk_reset_is_not_supported(backend, gate, records) -> None:  # type: ignore[no-untyped-def]
    with pytest.raises(ValidationError):
        asyncio.run(gate.bulk_transition(MANAGER, records, ApprovalAction.RESET))

    assert backend.calls == []


def test_bulk_with_nothing_pending_only_skips(backend, gate, records) -> None:  # type: ignore[no-untyped-def]
    settled = [record for record in records if record.contract_id in {43, 45}]

    result = asyncio.run(gate.bulk_transition(MANAGER, settled, ApprovalAction.APPROVE))

    assert result.succeeded == 0
    assert result.skipped == [43, 45]
    assert backend.calls == []


def test_bulk_handles_a_repeated_record_once(backend, notifier, gate, records) -> None:  # type: ignore[no-untyped-def]
    repeated = [records[0], records[0], records[2]]

    result = asyncio.run(gate.bulk_transition(MANAGER, repeated, ApprovalAction.APPROVE))

    assert result.succeeded == 2
    assert result.succeeded_ids == [42, 44]
    assert [call.parameters["ContractID"] for call in backend.calls_for(19)] == [42, 44]
    assert sorted(event.entity_id for event in notifier.events) == [42, 44]


def test_malformed_snapshot_after_approval_still_counts_as_success(  # type: ignore[no-untyped-def]
    backend, notifier, gate, records
) -> None:
    backend.scripted[(CONTRACTS, 4)] = {
        "success": True,
        "table1": [{"ContractID": 42, "ApprovedOn": "not-a-date"}],
    }

    result = asyncio.run(gate.bulk_transition(MANAGER, records, ApprovalAction.APPROVE))

    assert result.succeeded == 2
    assert result.failed == 0
    assert backend.get(CONTRACTS, 42)["ApprovalStatus"] == "Approved"
    assert [event.recipients for event in notifier.events] == [[], []]
