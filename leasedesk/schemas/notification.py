"""Notification events handed to the email integration."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field


class NotificationRecipient(BaseModel):
    email: str
    name: str | None = None
    type: Literal["to", "cc", "bcc"] = "to"


class NotificationEvent(BaseModel):
    """Event emitted once per successful workflow transition."""

    trigger_event: str = Field(serialization_alias="triggerEvent")
    entity_type: str = Field(serialization_alias="entityType")
    entity_id: int | str = Field(serialization_alias="entityId")
    variables: dict[str, Any] = Field(default_factory=dict)
    recipients: list[NotificationRecipient] = Field(default_factory=list)

    def to_payload(self) -> dict[str, Any]:
        """Return the camelCase JSON body expected by the email integration."""

        return self.model_dump(mode="json", by_alias=True)


__all__ = ["NotificationEvent", "NotificationRecipient"]
