"""Shared plumbing for the mode-number resource services."""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import IntEnum
from typing import Any, ClassVar, Generic, TypeVar

from leasedesk.schemas.approval import ApprovableRecord, EntityType
from leasedesk.schemas.auth import AuthContext
from leasedesk.schemas.envelope import EnvelopeResponse

from .envelope import EnvelopeClient
from .export import Column

RecordT = TypeVar("RecordT", bound=ApprovableRecord)


class ResourceService(ABC):
    """One instance per resource endpoint; each method maps to one mode."""

    endpoint: ClassVar[str]

    def __init__(self, client: EnvelopeClient, actor: AuthContext | None = None) -> None:
        self.client = client
        self.actor = actor

    async def _execute(self, mode: int, **parameters: Any) -> EnvelopeResponse:
        if self.actor is not None:
            parameters.setdefault("CurrentUserID", self.actor.user_id)
            parameters.setdefault("CurrentUserName", self.actor.display_name)
        return await self.client.execute(self.endpoint, mode, parameters)


class ApprovableService(ResourceService, Generic[RecordT]):
    """Resource whose records carry the approval workflow fields.

    Subclasses declare the approval modes on their ``Modes`` enum as
    ``APPROVE``, ``REJECT``, ``RESET_APPROVAL`` and ``PENDING_APPROVAL``.
    """

    entity_type: ClassVar[EntityType]
    record_model: ClassVar[type[ApprovableRecord]]
    id_parameter: ClassVar[str]
    Modes: ClassVar[type[IntEnum]]
    export_columns: ClassVar[tuple[Column, ...]] = ()

    @property
    def label(self) -> str:
        return self.entity_type.label.capitalize()

    def _parse(self, row: dict[str, Any] | None) -> RecordT | None:
        if not row:
            return None
        return self.record_model.model_validate(row)  # type: ignore[return-value]

    def _parse_rows(self, rows: list[dict[str, Any]]) -> list[RecordT]:
        return [self.record_model.model_validate(row) for row in rows]  # type: ignore[misc]

    @abstractmethod
    async def get_record(self, record_id: int | str) -> RecordT | None:
        """Return the header snapshot for ``record_id``, or ``None`` when missing."""

    async def approve(self, record_id: int | str, comments: str | None = None) -> str:
        response = await self._execute(
            self.Modes.APPROVE,
            **{self.id_parameter: record_id, "ApprovalComments": comments},
        )
        return response.message or f"{self.label} approved successfully"

    async def reject(self, record_id: int | str, reason: str) -> str:
        response = await self._execute(
            self.Modes.REJECT,
            **{self.id_parameter: record_id, "RejectionReason": reason},
        )
        return response.message or f"{self.label} rejected successfully"

    async def reset_approval(self, record_id: int | str) -> str:
        response = await self._execute(
            self.Modes.RESET_APPROVAL, **{self.id_parameter: record_id}
        )
        return response.message or f"{self.label} approval status reset successfully"

    async def list_pending_approval(self) -> list[RecordT]:
        response = await self._execute(self.Modes.PENDING_APPROVAL)
        return self._parse_rows(response.rows())


__all__ = ["ApprovableService", "ResourceService"]
