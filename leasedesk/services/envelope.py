"""Async client for the ``{mode, parameters}`` stored-procedure API."""

from __future__ import annotations

import time
from typing import Any

import httpx
import structlog

from leasedesk.core.config import get_settings
from leasedesk.core.errors import BackendError, NetworkError
from leasedesk.schemas.envelope import EnvelopeRequest, EnvelopeResponse

from .metrics import envelope_request_seconds

LOGGER = structlog.get_logger(__name__)

_STATUS_MESSAGES: dict[int, str] = {
    401: "Your session has expired. Please log in again.",
    403: "You do not have permission to perform this action.",
    404: "The requested resource was not found.",
}


def _status_message(status_code: int) -> str:
    if status_code in _STATUS_MESSAGES:
        return _STATUS_MESSAGES[status_code]
    if status_code >= 500:
        return "A server error occurred. Please try again later."
    return "An error occurred while processing your request"


def _decode_body(response: httpx.Response) -> dict[str, Any] | None:
    try:
        body = response.json()
    except ValueError:
        return None
    return body if isinstance(body, dict) else None


class EnvelopeClient:
    """Post envelopes to resource endpoints and unwrap the replies.

    ``success: false`` replies and HTTP error statuses raise
    :class:`BackendError` with the server message; transport failures raise
    :class:`NetworkError`. Nothing is retried.
    """

    def __init__(
        self,
        base_url: str | None = None,
        *,
        token: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        settings = get_settings()
        self.base_url = (base_url or settings.api_base_url).rstrip("/")
        headers = {"Content-Type": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers=headers,
            timeout=timeout if timeout is not None else settings.api_timeout_seconds,
            transport=transport,
        )

    async def __aenter__(self) -> "EnvelopeClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def execute(
        self,
        endpoint: str,
        mode: int,
        parameters: dict[str, Any] | None = None,
    ) -> EnvelopeResponse:
        """Run ``mode`` against ``endpoint`` and return the unwrapped reply."""

        request = EnvelopeRequest(mode=int(mode), parameters=parameters or {})
        started = time.perf_counter()
        try:
            response = await self._client.post(endpoint, json=request.to_payload())
        except httpx.TransportError as exc:
            LOGGER.warning(
                "envelope_request_failed",
                endpoint=endpoint,
                mode=request.mode,
                error=str(exc),
            )
            raise NetworkError() from exc
        finally:
            envelope_request_seconds.labels(endpoint=endpoint).observe(
                time.perf_counter() - started
            )

        body = _decode_body(response)
        if response.status_code >= 400:
            message = (body or {}).get("message") or _status_message(response.status_code)
            LOGGER.warning(
                "envelope_request_rejected",
                endpoint=endpoint,
                mode=request.mode,
                status_code=response.status_code,
                message=message,
            )
            raise BackendError(message, status_code=response.status_code)

        if body is None:
            raise BackendError("Invalid response received from server")

        envelope = EnvelopeResponse.from_payload(body)
        LOGGER.info(
            "envelope_request",
            endpoint=endpoint,
            mode=request.mode,
            success=envelope.success,
        )
        if not envelope.success:
            raise BackendError(envelope.message)
        return envelope


__all__ = ["EnvelopeClient"]
