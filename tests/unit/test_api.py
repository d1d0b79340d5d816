"""API tests for the approval, contract, invoice and petty cash endpoints."""

from __future__ import annotations

import os
import sys
from pathlib import Path

sys.path.append(str(Path(__file__).resolve().parents[2]))

os.environ.setdefault("DATABASE_URL", "sqlite:///./test_leasedesk.db")

import pytest
from fastapi.testclient import TestClient

from fake_backend import (
    CONTRACTS,
    INVOICES,
    PETTY_CASH,
    FakeLeaseBackend,
    RecordingNotifier,
    contract_row,
    invoice_row,
    voucher_row,
)
from leasedesk.api.deps import get_envelope_client, get_notifier
from leasedesk.core.security import create_access_token
from leasedesk.db import get_engine, session_scope
from leasedesk.main import app
from leasedesk.models import ApprovalLog
from leasedesk.models.base import Base


@pytest.fixture(autouse=True)
def setup_database() -> None:  # type: ignore[no-untyped-def]
    engine = get_engine()
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def backend() -> FakeLeaseBackend:
    backend = FakeLeaseBackend()
    backend.add(CONTRACTS, contract_row(42), [], [], [])
    backend.add(CONTRACTS, contract_row(43, ApprovalStatus="Approved"))
    backend.add(CONTRACTS, contract_row(44))
    backend.add(CONTRACTS, contract_row(46, ContractStatus="Active"))
    backend.add(INVOICES, invoice_row(501))
    backend.add(PETTY_CASH, voucher_row("PC-2024-0001"))
    return backend


@pytest.fixture()
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture()
def client(backend: FakeLeaseBackend, notifier: RecordingNotifier) -> TestClient:  # type: ignore[no-untyped-def]
    async def _override_client():  # type: ignore[no-untyped-def]
        async with backend.client() as envelope:
            yield envelope

    app.dependency_overrides[get_envelope_client] = _override_client
    app.dependency_overrides[get_notifier] = lambda: notifier
    yield TestClient(app)
    app.dependency_overrides.pop(get_envelope_client, None)
    app.dependency_overrides.pop(get_notifier, None)


def _headers(role: str = "manager") -> dict[str, str]:
    token = create_access_token({"sub": "7", "name": "Maya Manager", "role": role})
    return {"Authorization": f"Bearer {token}"}


def test_manager_can_approve_and_transition_is_audited(  # type: ignore[no-untyped-def]
    client: TestClient, backend: FakeLeaseBackend, notifier: RecordingNotifier
) -> None:
    response = client.post(
        "/api/approvals/contract/42/approve",
        json={"comments": "Rent verified"},
        headers=_headers(),
    )

    assert response.status_code == 200
    body = response.json()
    assert body["approval_status"] == "Approved"
    assert body["record"]["ApprovedBy"] == "Maya Manager"
    assert [event.trigger_event for event in notifier.events] == ["contract_approved"]

    history = client.get("/api/approvals/contract/42/history", headers=_headers())
    assert history.status_code == 200
    rows = history.json()
    assert len(rows) == 1
    assert rows[0]["action"] == "Approve"
    assert rows[0]["actor_id"] == "7"
    assert rows[0]["actor_name"] == "Maya Manager"
    assert rows[0]["comment"] == "Rent verified"


def test_staff_approval_is_forbidden(client: TestClient, backend: FakeLeaseBackend) -> None:  # type: ignore[no-untyped-def]
    response = client.post(
        "/api/approvals/contract/42/approve", json={}, headers=_headers("staff")
    )

    assert response.status_code == 403
    assert response.json()["detail"] == (
        "Only managers and administrators can perform approval actions"
    )
    assert backend.calls == []
    history = client.get("/api/approvals/contract/42/history", headers=_headers())
    assert history.json() == []


def test_reject_without_reason_is_unprocessable(client: TestClient, backend: FakeLeaseBackend) -> None:  # type: ignore[no-untyped-def]
    response = client.post(
        "/api/approvals/contract/42/reject", json={"reason": "  "}, headers=_headers()
    )

    assert response.status_code == 422
    assert response.json()["detail"] == "Rejection reason is required"
    assert backend.calls == []


def test_missing_token_is_unauthorized(client: TestClient) -> None:
    response = client.post("/api/approvals/contract/42/approve", json={})

    assert response.status_code == 401


def test_backend_rejection_maps_to_bad_gateway(  # type: ignore[no-untyped-def]
    client: TestClient, backend: FakeLeaseBackend, notifier: RecordingNotifier
) -> None:
    backend.fail_ids.add(42)

    response = client.post("/api/approvals/contract/42/reset", headers=_headers("admin"))

    assert response.status_code == 502
    assert response.json()["detail"] == "Record was modified by another user"
    assert notifier.events == []
    assert client.get("/api/approvals/contract/42/history", headers=_headers()).json() == []


def test_invalid_record_id_is_unprocessable(client: TestClient) -> None:
    response = client.post("/api/approvals/invoice/abc/reset", headers=_headers())

    assert response.status_code == 422
    assert response.json()["detail"] == "Invalid invoice id: abc"


def test_petty_cash_approval_uses_voucher_number(client: TestClient, backend: FakeLeaseBackend) -> None:  # type: ignore[no-untyped-def]
    response = client.post(
        "/api/approvals/petty_cash/PC-2024-0001/approve", json={}, headers=_headers()
    )

    assert response.status_code == 200
    assert response.json()["record_id"] == "PC-2024-0001"
    assert backend.calls_for(9)[0].parameters["ApprovalAction"] == "Approve"


def test_pending_list_returns_only_pending_records(client: TestClient) -> None:
    response = client.get("/api/approvals/contract/pending", headers=_headers())

    assert response.status_code == 200
    assert sorted(row["ContractID"] for row in response.json()) == [42, 44, 46]


def test_bulk_approve_reports_processed_skipped_and_missing(  # type: ignore[no-untyped-def]
    client: TestClient, backend: FakeLeaseBackend
) -> None:
    response = client.post(
        "/api/approvals/contract/bulk",
        json={"action": "Approve", "record_ids": [42, 43, 44, 99]},
        headers=_headers(),
    )

    assert response.status_code == 200
    body = response.json()
    assert body["succeeded"] == 2
    assert body["skipped"] == [43]
    assert body["failed"] == 1
    assert body["failures"] == [{"record_id": 99, "reason": "Record not found"}]
    assert body["summary_message"] == (
        "2 contract record(s) approved successfully, 1 failed, 1 skipped (not pending)"
    )
    history = client.get("/api/approvals/contract/44/history", headers=_headers())
    assert [row["action"] for row in history.json()] == ["Approve"]


def test_bulk_reject_requires_reason(client: TestClient, backend: FakeLeaseBackend) -> None:  # type: ignore[no-untyped-def]
    response = client.post(
        "/api/approvals/contract/bulk",
        json={"action": "Reject", "record_ids": [42]},
        headers=_headers(),
    )

    assert response.status_code == 422
    assert backend.calls == []


def test_edit_of_approved_contract_is_blocked(client: TestClient, backend: FakeLeaseBackend) -> None:  # type: ignore[no-untyped-def]
    response = client.put(
        "/api/contracts/43", json={"remarks": "New remarks"}, headers=_headers("staff")
    )

    assert response.status_code == 409
    assert response.json()["detail"] == (
        "Cannot edit approved records; reset approval status first"
    )
    assert backend.calls_for(2) == []


def test_edit_of_pending_contract_is_forwarded(client: TestClient, backend: FakeLeaseBackend) -> None:  # type: ignore[no-untyped-def]
    response = client.put(
        "/api/contracts/42", json={"remarks": "New remarks"}, headers=_headers("staff")
    )

    assert response.status_code == 200
    assert response.json() == {"message": "Contract updated successfully"}
    assert backend.get(CONTRACTS, 42)["Remarks"] == "New remarks"


def test_delete_of_active_contract_is_blocked(client: TestClient, backend: FakeLeaseBackend) -> None:  # type: ignore[no-untyped-def]
    response = client.delete("/api/contracts/46", headers=_headers())

    assert response.status_code == 409
    assert response.json()["detail"] == "Cannot delete active contracts"
    assert backend.calls_for(5) == []


def test_unit_change_on_approved_contract_is_blocked(client: TestClient, backend: FakeLeaseBackend) -> None:  # type: ignore[no-untyped-def]
    response = client.post(
        "/api/contracts/43/units", json={"UnitID": 5}, headers=_headers()
    )

    assert response.status_code == 409
    assert backend.calls_for(10) == []


def test_unknown_contract_is_not_found(client: TestClient) -> None:
    response = client.get("/api/contracts/999", headers=_headers())

    assert response.status_code == 404
    assert response.json()["detail"] == "Contract not found"


def test_renewal_creates_contract_and_notifies(  # type: ignore[no-untyped-def]
    client: TestClient, backend: FakeLeaseBackend, notifier: RecordingNotifier
) -> None:
    response = client.post("/api/contracts/42/renew", json={"years": 1}, headers=_headers())

    assert response.status_code == 200
    assert response.json()["new_contract_id"] == 1001
    assert backend.get(CONTRACTS, 1001)["ContractStatus"] == "Draft"
    assert notifier.events[0].trigger_event == "contract_renewed"
    assert notifier.events[0].variables["RenewedFromID"] == 42


def test_contract_export_returns_csv(client: TestClient) -> None:
    response = client.get("/api/contracts/export", headers=_headers())

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    lines = response.text.splitlines()
    assert lines[0].startswith("Contract No,Customer,Date")
    assert len(lines) == 5


def test_unapproved_invoice_cannot_be_posted(client: TestClient, backend: FakeLeaseBackend) -> None:  # type: ignore[no-untyped-def]
    response = client.post(
        "/api/invoices/501/post",
        json={"posting_date": "2024-03-01", "debit_account_id": 1100, "credit_account_id": 4100},
        headers=_headers(),
    )

    assert response.status_code == 409
    assert response.json()["detail"] == "Only approved, unposted invoices can be posted"
    assert backend.calls_for(10) == []


def test_health_endpoints(client: TestClient) -> None:
    assert client.get("/api/health/live").json() == {"status": "live"}
    assert client.get("/api/health/ready").json() == {"status": "ready"}
    metrics = client.get("/api/metrics")
    assert metrics.status_code == 200
    assert "envelope_request_seconds" in metrics.text


def test_bulk_reject_audits_each_confirmed_member(client: TestClient) -> None:
    response = client.post(
        "/api/approvals/contract/bulk",
        json={"action": "Reject", "record_ids": [42, 44], "reason": "Rent below floor"},
        headers=_headers("admin"),
    )

    assert response.status_code == 200
    with session_scope() as session:
        logs = session.query(ApprovalLog).order_by(ApprovalLog.record_id).all()
        assert [(log.record_id, log.action, log.comment) for log in logs] == [
            ("42", "Reject", "Rent below floor"),
            ("44", "Reject", "Rent below floor"),
        ]


def test_search_endpoints_forward_filters(client: TestClient, backend: FakeLeaseBackend) -> None:  # type: ignore[no-untyped-def]
    terminations = client.post(
        "/api/terminations/search", json={"contract_id": 42}, headers=_headers()
    )
    vouchers = client.post(
        "/api/petty-cash/search", json={"posting_status": "Draft"}, headers=_headers()
    )

    assert terminations.status_code == 200
    assert vouchers.status_code == 200
    filters = [call.parameters for call in backend.calls_for(6)]
    assert [f.get("FilterContractID") for f in filters] == [42, None]
    assert [f.get("FilterPostingStatus") for f in filters] == [None, "Draft"]
    assert terminations.json() == []


def test_created_contract_starts_pending_approval(client: TestClient, backend: FakeLeaseBackend) -> None:  # type: ignore[no-untyped-def]
    response = client.post(
        "/api/contracts",
        json={"contract": {"contract_no": "CT-2024-0100", "customer_id": 12}},
        headers=_headers("staff"),
    )

    assert response.status_code == 201
    assert response.json() == {"message": "Contract created successfully", "contract_id": 1001}
    created = backend.get(CONTRACTS, 1001)
    assert created["ContractNo"] == "CT-2024-0100"
    assert created["ApprovalStatus"] == "Pending"
    assert created["CurrentUserName"] == "Maya Manager"


def test_bulk_approve_survives_an_unreadable_member(client: TestClient, backend: FakeLeaseBackend) -> None:  # type: ignore[no-untyped-def]
    backend.offline_reads.add(99)

    response = client.post(
        "/api/approvals/contract/bulk",
        json={"action": "Approve", "record_ids": [42, 44, 99]},
        headers=_headers(),
    )

    assert response.status_code == 200
    body = response.json()
    assert body["succeeded"] == 2
    assert body["failures"] == [
        {
            "record_id": 99,
            "reason": "No response received from server. Please check your connection.",
        }
    ]
    assert backend.get(CONTRACTS, 42)["ApprovalStatus"] == "Approved"
    assert backend.get(CONTRACTS, 44)["ApprovalStatus"] == "Approved"


def test_bulk_approve_collapses_repeated_ids(  # type: ignore[no-untyped-def]
    client: TestClient, backend: FakeLeaseBackend, notifier: RecordingNotifier
) -> None:
    response = client.post(
        "/api/approvals/contract/bulk",
        json={"action": "Approve", "record_ids": [42, "42", 42]},
        headers=_headers(),
    )

    assert response.status_code == 200
    assert response.json()["succeeded"] == 1
    assert len(backend.calls_for(19)) == 1
    assert len(notifier.events) == 1
    history = client.get("/api/approvals/contract/42/history", headers=_headers())
    assert len(history.json()) == 1


def test_blank_approval_comment_is_not_audited(client: TestClient) -> None:
    response = client.post(
        "/api/approvals/contract/42/approve", json={"comments": "   "}, headers=_headers()
    )

    assert response.status_code == 200
    history = client.get("/api/approvals/contract/42/history", headers=_headers())
    assert history.json()[0]["comment"] is None
