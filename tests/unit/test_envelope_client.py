"""Tests for the envelope client and response unwrapping."""

from __future__ import annotations

import asyncio
import json
import os
import sys
from pathlib import Path

sys.path.append(str(Path(__file__).resolve().parents[2]))

os.environ.setdefault("DATABASE_URL", "sqlite:///./test_leasedesk.db")

import httpx
import pytest

from leasedesk.core.errors import BackendError, NetworkError
from leasedesk.schemas.envelope import EnvelopeRequest, EnvelopeResponse
from leasedesk.services.envelope import EnvelopeClient

BASE_URL = "http://leasedesk.test/api"


def _execute(handler, mode: int = 3, parameters=None, token=None) -> EnvelopeResponse:  # type: ignore[no-untyped-def]
    async def _run() -> EnvelopeResponse:
        async with EnvelopeClient(
            BASE_URL, token=token, transport=httpx.MockTransport(handler)
        ) as client:
            return await client.execute("/Master/contractmanagement", mode, parameters)

    return asyncio.run(_run())


def test_execute_posts_mode_and_parameters_with_bearer_token() -> None:
    captured: dict[str, object] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["path"] = request.url.path
        captured["auth"] = request.headers.get("Authorization")
        captured["body"] = json.loads(request.content)
        return httpx.Response(200, json={"success": True, "message": "ok", "data": []})

    response = _execute(
        handler, mode=4, parameters={"ContractID": 42, "Remarks": None}, token="abc"
    )

    assert response.success is True
    assert response.message == "ok"
    assert captured["path"] == "/api/Master/contractmanagement"
    assert captured["auth"] == "Bearer abc"
    assert captured["body"] == {"mode": 4, "parameters": {"ContractID": 42}}


def test_execute_omits_authorization_without_token() -> None:
    seen: list[str | None] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request.headers.get("Authorization"))
        return httpx.Response(200, json={"success": True})

    _execute(handler)

    assert seen == [None]


def test_unsuccessful_envelope_raises_backend_error_with_server_message() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"success": False, "message": "Contract is locked"})

    with pytest.raises(BackendError) as exc_info:
        _execute(handler)

    assert exc_info.value.message == "Contract is locked"
    assert exc_info.value.status_code is None


def test_http_error_status_prefers_body_message() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(400, json={"success": False, "message": "Bad contract number"})

    with pytest.raises(BackendError) as exc_info:
        _execute(handler)

    assert exc_info.value.message == "Bad contract number"
    assert exc_info.value.status_code == 400


@pytest.mark.parametrize(
    ("status_code", "message"),
    [
        (401, "Your session has expired. Please log in again."),
        (403, "You do not have permission to perform this action."),
        (404, "The requested resource was not found."),
        (503, "A server error occurred. Please try again later."),
        (409, "An error occurred while processing your request"),
    ],
)
def test_http_error_status_falls_back_to_status_message(status_code: int, message: str) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status_code, text="gateway says no")

    with pytest.raises(BackendError) as exc_info:
        _execute(handler)

    assert exc_info.value.message == message
    assert exc_info.value.status_code == status_code


def test_non_json_success_body_is_a_backend_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="<html>maintenance</html>")

    with pytest.raises(BackendError) as exc_info:
        _execute(handler)

    assert exc_info.value.message == "Invalid response received from server"


def test_transport_failure_raises_network_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(NetworkError) as exc_info:
        _execute(handler)

    assert exc_info.value.message == (
        "No response received from server. Please check your connection."
    )


def test_response_collects_positional_tables_and_extras() -> None:
    response = EnvelopeResponse.from_payload(
        {
            "success": True,
            "message": "Contract created successfully",
            "table3": [{"ContractAttachmentID": 1}],
            "table1": [{"ContractID": 42}],
            "NewContractID": 42,
        }
    )

    assert len(response.tables) == 3
    assert response.first_row(1) == {"ContractID": 42}
    assert response.table(2) == []
    assert response.table(3) == [{"ContractAttachmentID": 1}]
    assert response.table(9) == []
    assert response.new_id("Contract") == 42
    assert response.rows() == [{"ContractID": 42}]


def test_response_rows_prefer_data_list() -> None:
    response = EnvelopeResponse.from_payload(
        {"success": True, "data": [{"ContractID": 1}], "table1": [{"ContractID": 2}]}
    )

    assert response.rows() == [{"ContractID": 1}]


def test_request_payload_drops_unset_parameters() -> None:
    request = EnvelopeRequest(mode=2, parameters={"ContractID": 1, "Remarks": None, "Flag": False})

    assert request.to_payload() == {"mode": 2, "parameters": {"ContractID": 1, "Flag": False}}
