"""Approval status gate for contracts, invoices, terminations and vouchers.

The gate owns three things: the pure edit/delete predicates, the privileged
approve/reject/reset transitions, and the bulk fan-out. Transitions are only
considered done once the backend confirms them; local state is never updated
optimistically.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Sequence
from typing import Any

import pydantic
import structlog

from leasedesk.core.errors import BackendError, NetworkError, Unauthorized, ValidationError
from leasedesk.schemas.approval import (
    ApprovableRecord,
    ApprovalAction,
    ApprovalStatus,
    BulkFailure,
    BulkTransitionResult,
    EntityType,
    TransitionResult,
)
from leasedesk.schemas.auth import AuthContext
from leasedesk.schemas.notification import NotificationEvent

from .base import ApprovableService
from .metrics import approval_transitions_total
from .notifications import LoggingNotificationHook, NotificationHook, dispatch

LOGGER = structlog.get_logger(__name__)

_EVENT_SUFFIX = {
    ApprovalAction.APPROVE: "approved",
    ApprovalAction.REJECT: "rejected",
}
_CONFIRMED_STATUS = {
    ApprovalAction.APPROVE: ApprovalStatus.APPROVED,
    ApprovalAction.REJECT: ApprovalStatus.REJECTED,
    ApprovalAction.RESET: ApprovalStatus.PENDING,
}


def can_edit(record: ApprovableRecord) -> bool:
    return record.can_edit()


def can_delete(record: ApprovableRecord) -> bool:
    return record.can_delete()


def require_approver(auth: AuthContext) -> None:
    """Raise :class:`Unauthorized` unless ``auth`` may approve records."""

    if not auth.is_approver:
        LOGGER.info("approval_denied", user_id=auth.user_id, role=auth.role)
        raise Unauthorized()


def require_reason(reason: str | None) -> str:
    cleaned = (reason or "").strip()
    if not cleaned:
        raise ValidationError("Rejection reason is required")
    return cleaned


def clean_comments(comments: str | None) -> str | None:
    cleaned = (comments or "").strip()
    return cleaned or None


def _first_of_each(records: Sequence[ApprovableRecord]) -> list[ApprovableRecord]:
    unique: dict[int | str, ApprovableRecord] = {}
    for record in records:
        unique.setdefault(record.record_id, record)
    return list(unique.values())


class ApprovalGate:
    """Run approval transitions for one entity type through its service."""

    def __init__(
        self,
        service: ApprovableService[Any],
        notifier: NotificationHook | None = None,
    ) -> None:
        self.service = service
        self.notifier = notifier or LoggingNotificationHook()

    @property
    def entity_type(self) -> EntityType:
        return self.service.entity_type

    async def approve(
        self,
        auth: AuthContext,
        record_id: int | str,
        comments: str | None = None,
    ) -> TransitionResult:
        """Approve ``record_id``.

        Approving a record that is not Pending is not refused here; the
        backend decides whether the transition is allowed.
        """

        require_approver(auth)
        comments = clean_comments(comments)
        message = await self._call(
            ApprovalAction.APPROVE, record_id, self.service.approve(record_id, comments)
        )
        return await self._confirm(ApprovalAction.APPROVE, record_id, message, comments)

    async def reject(self, auth: AuthContext, record_id: int | str, reason: str) -> TransitionResult:
        require_approver(auth)
        reason = require_reason(reason)
        message = await self._call(
            ApprovalAction.REJECT, record_id, self.service.reject(record_id, reason)
        )
        return await self._confirm(ApprovalAction.REJECT, record_id, message, reason)

    async def reset(self, auth: AuthContext, record_id: int | str) -> TransitionResult:
        """Return ``record_id`` to Pending. Resets never notify."""

        require_approver(auth)
        message = await self._call(
            ApprovalAction.RESET, record_id, self.service.reset_approval(record_id)
        )
        return await self._confirm(ApprovalAction.RESET, record_id, message, None)

    async def list_pending(self, auth: AuthContext) -> list[Any]:
        require_approver(auth)
        return await self.service.list_pending_approval()

    async def bulk_transition(
        self,
        auth: AuthContext,
        records: Sequence[ApprovableRecord],
        action: ApprovalAction,
        reason: str | None = None,
    ) -> BulkTransitionResult:
        """Approve or reject every Pending record in ``records`` concurrently.

        Records that are not Pending are reported as skipped. A record listed
        more than once is handled once. Each member call settles on its own;
        a failure never cancels or rolls back siblings.
        """

        require_approver(auth)
        if action is ApprovalAction.RESET:
            raise ValidationError("Bulk reset is not supported")
        text = require_reason(reason) if action is ApprovalAction.REJECT else clean_comments(reason)
        if not records:
            raise ValidationError("No records selected")

        records = _first_of_each(records)
        eligible = [r for r in records if r.approval_status is ApprovalStatus.PENDING]
        skipped = [r.record_id for r in records if r.approval_status is not ApprovalStatus.PENDING]

        outcomes = await asyncio.gather(
            *(self._bulk_member(action, record.record_id, text) for record in eligible)
        )

        result = BulkTransitionResult(
            entity_type=self.entity_type,
            action=action,
            skipped=skipped,
        )
        for record, failure in zip(eligible, outcomes):
            if failure is None:
                result.succeeded += 1
                result.succeeded_ids.append(record.record_id)
            else:
                result.failed += 1
                result.failures.append(failure)

        LOGGER.info(
            "bulk_transition_completed",
            entity_type=self.entity_type.value,
            action=action.value,
            succeeded=result.succeeded,
            failed=result.failed,
            skipped=len(result.skipped),
        )
        return result

    async def notify_status_changed(self, record_id: int | str, status: str) -> None:
        """Emit ``<entity>_status_changed`` after a confirmed status change."""

        snapshot = await self._reread(record_id)
        variables = snapshot.notification_variables() if snapshot else {}
        variables["NewStatus"] = status
        await self._emit(f"{self.entity_type.value}_status_changed", record_id, snapshot, variables)

    async def notify_renewed(self, source_id: int | str, new_id: int | str) -> None:
        """Emit ``<entity>_renewed`` for a renewal created from ``source_id``."""

        snapshot = await self._reread(new_id)
        variables = snapshot.notification_variables() if snapshot else {}
        variables["RenewedFromID"] = source_id
        await self._emit(f"{self.entity_type.value}_renewed", new_id, snapshot, variables)

    async def _call(
        self, action: ApprovalAction, record_id: int | str, call: Awaitable[str]
    ) -> str:
        try:
            return await call
        except (BackendError, NetworkError) as exc:
            approval_transitions_total.labels(
                entity=self.entity_type.value, action=action.value, outcome="failed"
            ).inc()
            LOGGER.warning(
                "approval_transition_failed",
                entity_type=self.entity_type.value,
                record_id=record_id,
                action=action.value,
                error=exc.message,
            )
            raise

    async def _bulk_member(
        self, action: ApprovalAction, record_id: int | str, text: str | None
    ) -> BulkFailure | None:
        if action is ApprovalAction.APPROVE:
            call = self.service.approve(record_id, text)
        else:
            call = self.service.reject(record_id, text or "")
        try:
            message = await self._call(action, record_id, call)
        except (BackendError, NetworkError) as exc:
            return BulkFailure(record_id=record_id, reason=exc.message)
        await self._confirm(action, record_id, message, text)
        return None

    async def _confirm(
        self,
        action: ApprovalAction,
        record_id: int | str,
        message: str,
        text: str | None,
    ) -> TransitionResult:
        approval_transitions_total.labels(
            entity=self.entity_type.value, action=action.value, outcome="succeeded"
        ).inc()
        LOGGER.info(
            "approval_transition_succeeded",
            entity_type=self.entity_type.value,
            record_id=record_id,
            action=action.value,
        )

        snapshot = await self._reread(record_id)
        if action in _EVENT_SUFFIX:
            variables = snapshot.notification_variables() if snapshot else {}
            key = "ApprovalComments" if action is ApprovalAction.APPROVE else "RejectionReason"
            if not variables.get(key):
                variables[key] = text
            await self._emit(
                f"{self.entity_type.value}_{_EVENT_SUFFIX[action]}", record_id, snapshot, variables
            )

        return TransitionResult(
            entity_type=self.entity_type,
            record_id=record_id,
            action=action,
            message=message,
            approval_status=snapshot.approval_status if snapshot else _CONFIRMED_STATUS[action],
            record=snapshot.model_dump(mode="json", by_alias=True) if snapshot else None,
        )

    async def _reread(self, record_id: int | str) -> ApprovableRecord | None:
        try:
            return await self.service.get_record(record_id)
        except (BackendError, NetworkError) as exc:
            error = exc.message
        except pydantic.ValidationError as exc:
            error = f"Malformed record: {exc.error_count()} invalid field(s)"
        LOGGER.warning(
            "approval_snapshot_failed",
            entity_type=self.entity_type.value,
            record_id=record_id,
            error=error,
        )
        return None

    async def _emit(
        self,
        trigger_event: str,
        record_id: int | str,
        snapshot: ApprovableRecord | None,
        variables: dict[str, Any],
    ) -> None:
        event = NotificationEvent(
            trigger_event=trigger_event,
            entity_type=self.entity_type.value,
            entity_id=record_id,
            variables=variables,
            recipients=snapshot.notification_recipients() if snapshot else [],
        )
        await dispatch(self.notifier, event)


__all__ = [
    "ApprovalGate",
    "can_delete",
    "can_edit",
    "clean_comments",
    "require_approver",
    "require_reason",
]
