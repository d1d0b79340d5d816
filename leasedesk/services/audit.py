"""Local audit trail for confirmed approval transitions."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from leasedesk.models import ApprovalLog
from leasedesk.schemas.approval import ApprovalAction, EntityType
from leasedesk.schemas.auth import AuthContext


def record_transition(
    session: Session,
    *,
    entity_type: EntityType,
    record_id: int | str,
    action: ApprovalAction,
    actor: AuthContext,
    comment: str | None = None,
) -> ApprovalLog:
    """Add an audit row to ``session``; the caller owns the commit."""

    entry = ApprovalLog(
        entity_type=entity_type.value,
        record_id=str(record_id),
        action=action.value,
        actor_id=actor.user_id,
        actor_name=actor.display_name,
        comment=comment,
    )
    session.add(entry)
    session.flush()
    return entry


def list_transitions(
    session: Session, entity_type: EntityType, record_id: int | str
) -> list[ApprovalLog]:
    """Return the audit rows for one record, newest first."""

    stmt = (
        select(ApprovalLog)
        .where(
            ApprovalLog.entity_type == entity_type.value,
            ApprovalLog.record_id == str(record_id),
        )
        .order_by(ApprovalLog.created_at.desc(), ApprovalLog.id.desc())
    )
    return list(session.scalars(stmt))


__all__ = ["list_transitions", "record_transition"]
