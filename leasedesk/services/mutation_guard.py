"""Pre-flight checks for edits and deletes of approvable records."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import TypeVar

import structlog

from leasedesk.core.errors import GuardError, GuardErrorKind
from leasedesk.schemas.approval import ApprovableRecord, MutationOperation

LOGGER = structlog.get_logger(__name__)

T = TypeVar("T")


def guard_mutation(record: ApprovableRecord, operation: MutationOperation) -> None:
    """Raise :class:`GuardError` when ``operation`` is not allowed on ``record``.

    Adding, updating or removing child rows (units, charges, deductions) is
    an edit of the parent record and must be checked against the parent.
    """

    reason = record.blocking_reason(operation)
    if reason is None:
        return
    LOGGER.info(
        "mutation_blocked",
        entity_type=record.entity_type.value,
        record_id=record.record_id,
        record_number=record.record_number,
        operation=operation.value,
        reason=reason,
    )
    raise GuardError(reason, kind=GuardErrorKind.PROTECTED)


class MutationGuard:
    """Run service calls only after the record passes :func:`guard_mutation`."""

    async def run(
        self,
        record: ApprovableRecord,
        operation: MutationOperation,
        call: Callable[[], Awaitable[T]],
    ) -> T:
        guard_mutation(record, operation)
        return await call()


__all__ = ["MutationGuard", "guard_mutation"]
