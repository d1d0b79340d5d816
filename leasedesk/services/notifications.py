"""Workflow notification hooks."""

from __future__ import annotations

from typing import Protocol

import httpx
import structlog

from leasedesk.core.config import Settings, get_settings
from leasedesk.schemas.notification import NotificationEvent

from .metrics import notifications_total

LOGGER = structlog.get_logger(__name__)


class NotificationHook(Protocol):
    async def notify(self, event: NotificationEvent) -> None: ...


class LoggingNotificationHook:
    """Log events instead of delivering them."""

    async def notify(self, event: NotificationEvent) -> None:
        LOGGER.info(
            "notification_logged",
            trigger_event=event.trigger_event,
            entity_type=event.entity_type,
            entity_id=event.entity_id,
            recipients=[recipient.email for recipient in event.recipients],
        )
        notifications_total.labels(outcome="logged").inc()


class HttpNotificationHook:
    """POST events to the email integration endpoint."""

    def __init__(
        self,
        url: str,
        *,
        timeout: float = 5.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.url = url
        self.timeout = timeout
        self.transport = transport

    async def notify(self, event: NotificationEvent) -> None:
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            response = await client.post(self.url, json=event.to_payload())
            response.raise_for_status()
        LOGGER.info(
            "notification_sent",
            trigger_event=event.trigger_event,
            entity_id=event.entity_id,
        )
        notifications_total.labels(outcome="sent").inc()


async def dispatch(hook: NotificationHook, event: NotificationEvent) -> bool:
    """Deliver ``event`` through ``hook``; failures are logged, not raised."""

    try:
        await hook.notify(event)
    except httpx.HTTPError as exc:
        LOGGER.warning(
            "notification_delivery_failed",
            trigger_event=event.trigger_event,
            entity_type=event.entity_type,
            entity_id=event.entity_id,
            error=str(exc),
        )
        notifications_total.labels(outcome="failed").inc()
        return False
    return True


def build_notifier(settings: Settings | None = None) -> NotificationHook:
    """Return the hook configured for this deployment."""

    settings = settings or get_settings()
    if settings.notifications_enabled:
        return HttpNotificationHook(
            settings.notification_url or "",
            timeout=settings.notification_timeout_seconds,
        )
    return LoggingNotificationHook()


__all__ = [
    "HttpNotificationHook",
    "LoggingNotificationHook",
    "NotificationHook",
    "build_notifier",
    "dispatch",
]
