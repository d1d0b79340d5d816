"""Approval workflow endpoints shared by every approvable entity."""

from __future__ import annotations

import asyncio
from datetime import datetime
from typing import Annotated, Any

from fastapi import APIRouter, Depends
import pydantic
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from leasedesk.core.errors import BackendError, NetworkError
from leasedesk.db import get_session_dependency
from leasedesk.schemas.approval import (
    ApprovableRecord,
    ApprovalAction,
    BulkFailure,
    BulkTransitionResult,
    EntityType,
    TransitionResult,
)
from leasedesk.schemas.auth import AuthContext
from leasedesk.services import audit
from leasedesk.services.approval_gate import (
    ApprovalGate,
    clean_comments,
    require_approver,
    require_reason,
)
from leasedesk.services.envelope import EnvelopeClient
from leasedesk.services.notifications import NotificationHook

from .deps import AuthDep, ClientDep, NotifierDep, build_service, coerce_record_id

router = APIRouter(prefix="/approvals", tags=["Approvals"])

SessionDep = Annotated[Session, Depends(get_session_dependency)]


class ApproveRequest(BaseModel):
    comments: str | None = None


class RejectRequest(BaseModel):
    reason: str = ""


class BulkRequest(BaseModel):
    action: ApprovalAction
    record_ids: list[int | str] = Field(default_factory=list)
    reason: str | None = None


class BulkResponse(BulkTransitionResult):
    summary_message: str = ""


class ApprovalLogOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    entity_type: str
    record_id: str
    action: str
    actor_id: str | None
    actor_name: str | None
    comment: str | None
    created_at: datetime


def _gate(
    entity: EntityType,
    client: EnvelopeClient,
    auth: AuthContext,
    notifier: NotificationHook,
) -> ApprovalGate:
    return ApprovalGate(build_service(entity, client, auth), notifier)


def _audit(
    session: Session,
    result: TransitionResult,
    auth: AuthContext,
    comment: str | None,
) -> None:
    audit.record_transition(
        session,
        entity_type=result.entity_type,
        record_id=result.record_id,
        action=result.action,
        actor=auth,
        comment=comment,
    )
    session.commit()


async def _read_member(gate: ApprovalGate, record_id: int | str) -> ApprovableRecord | str:
    """Return the current snapshot, or why it could not be read."""

    try:
        record = await gate.service.get_record(record_id)
    except (BackendError, NetworkError) as exc:
        return exc.message
    except pydantic.ValidationError:
        return "Record could not be read"
    return record if record is not None else "Record not found"


@router.get("/{entity}/pending")
async def list_pending(
    entity: EntityType,
    client: ClientDep,
    auth: AuthDep,
    notifier: NotifierDep,
) -> list[dict[str, Any]]:
    """Return the records of ``entity`` waiting for a decision."""

    records = await _gate(entity, client, auth, notifier).list_pending(auth)
    return [record.model_dump(mode="json", by_alias=True) for record in records]


@router.post("/{entity}/{record_id}/approve", response_model=TransitionResult)
async def approve_record(
    entity: EntityType,
    record_id: str,
    payload: ApproveRequest,
    client: ClientDep,
    auth: AuthDep,
    notifier: NotifierDep,
    session: SessionDep,
) -> TransitionResult:
    gate = _gate(entity, client, auth, notifier)
    result = await gate.approve(auth, coerce_record_id(entity, record_id), payload.comments)
    _audit(session, result, auth, clean_comments(payload.comments))
    return result


@router.post("/{entity}/{record_id}/reject", response_model=TransitionResult)
async def reject_record(
    entity: EntityType,
    record_id: str,
    payload: RejectRequest,
    client: ClientDep,
    auth: AuthDep,
    notifier: NotifierDep,
    session: SessionDep,
) -> TransitionResult:
    gate = _gate(entity, client, auth, notifier)
    result = await gate.reject(auth, coerce_record_id(entity, record_id), payload.reason)
    _audit(session, result, auth, payload.reason.strip())
    return result


@router.post("/{entity}/{record_id}/reset", response_model=TransitionResult)
async def reset_record(
    entity: EntityType,
    record_id: str,
    client: ClientDep,
    auth: AuthDep,
    notifier: NotifierDep,
    session: SessionDep,
) -> TransitionResult:
    gate = _gate(entity, client, auth, notifier)
    result = await gate.reset(auth, coerce_record_id(entity, record_id))
    _audit(session, result, auth, None)
    return result


@router.post("/{entity}/bulk", response_model=BulkResponse)
async def bulk_transition(
    entity: EntityType,
    payload: BulkRequest,
    client: ClientDep,
    auth: AuthDep,
    notifier: NotifierDep,
    session: SessionDep,
) -> BulkResponse:
    """Approve or reject a selection, reading each record's current state first."""

    require_approver(auth)
    if payload.action is ApprovalAction.REJECT:
        require_reason(payload.reason)
    gate = _gate(entity, client, auth, notifier)
    record_ids = list(
        dict.fromkeys(coerce_record_id(entity, str(raw)) for raw in payload.record_ids)
    )
    snapshots = await asyncio.gather(*(_read_member(gate, rid) for rid in record_ids))
    records = [snapshot for snapshot in snapshots if isinstance(snapshot, ApprovableRecord)]
    unreadable = [
        BulkFailure(record_id=rid, reason=snapshot)
        for rid, snapshot in zip(record_ids, snapshots)
        if isinstance(snapshot, str)
    ]

    if records or not unreadable:
        result = await gate.bulk_transition(auth, records, payload.action, payload.reason)
    else:
        result = BulkTransitionResult(entity_type=entity, action=payload.action)
    result.failed += len(unreadable)
    result.failures.extend(unreadable)

    comment = clean_comments(payload.reason)
    for rid in result.succeeded_ids:
        audit.record_transition(
            session,
            entity_type=entity,
            record_id=rid,
            action=payload.action,
            actor=auth,
            comment=comment,
        )
    session.commit()

    response = BulkResponse(**result.model_dump())
    response.summary_message = result.summary
    return response


@router.get("/{entity}/{record_id}/history", response_model=list[ApprovalLogOut])
def transition_history(
    entity: EntityType,
    record_id: str,
    auth: AuthDep,
    session: SessionDep,
) -> list[Any]:
    """Return the locally audited transitions for one record, newest first."""

    return audit.list_transitions(session, entity, coerce_record_id(entity, record_id))


__all__ = ["router"]
