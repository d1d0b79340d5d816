"""Approval workflow types shared by every approvable record."""

from __future__ import annotations

from abc import abstractmethod
from datetime import date, datetime
from enum import Enum
from typing import Any, ClassVar

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator

from .notification import NotificationRecipient


class ApprovalStatus(str, Enum):
    PENDING = "Pending"
    APPROVED = "Approved"
    REJECTED = "Rejected"

    @classmethod
    def _missing_(cls, value: object) -> "ApprovalStatus | None":
        if isinstance(value, str):
            lowered = value.strip().lower()
            for member in cls:
                if member.value.lower() == lowered:
                    return member
        return None


class ApprovalAction(str, Enum):
    APPROVE = "Approve"
    REJECT = "Reject"
    RESET = "Reset"


class EntityType(str, Enum):
    CONTRACT = "contract"
    INVOICE = "invoice"
    TERMINATION = "termination"
    PETTY_CASH = "petty_cash"

    @property
    def label(self) -> str:
        return {
            EntityType.CONTRACT: "contract",
            EntityType.INVOICE: "invoice",
            EntityType.TERMINATION: "termination",
            EntityType.PETTY_CASH: "petty cash voucher",
        }[self]


class MutationOperation(str, Enum):
    EDIT = "Edit"
    DELETE = "Delete"


APPROVAL_LOCK_MESSAGES: dict[MutationOperation, str] = {
    MutationOperation.EDIT: "Cannot edit approved records; reset approval status first",
    MutationOperation.DELETE: "Cannot delete approved records; reset approval status first",
}


class WireModel(BaseModel):
    """Base for records mapped from PascalCase stored-procedure rows."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    @model_validator(mode="before")
    @classmethod
    def _blank_strings_to_none(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return {key: (None if value == "" else value) for key, value in data.items()}
        return data


class ApprovableRecord(WireModel):
    """Approval fields common to contracts, invoices, terminations and vouchers.

    Provenance fields are written by the backend during a transition and are
    never sent on the normal edit path.
    """

    entity_type: ClassVar[EntityType]

    approval_status: ApprovalStatus = Field(
        default=ApprovalStatus.PENDING, alias="ApprovalStatus"
    )
    requires_approval: bool = Field(default=True, alias="RequiresApproval")
    approval_comments: str | None = Field(default=None, alias="ApprovalComments")
    rejection_reason: str | None = Field(default=None, alias="RejectionReason")
    approved_by: str | None = Field(default=None, alias="ApprovedBy")
    approved_on: datetime | None = Field(default=None, alias="ApprovedOn")
    rejected_by: str | None = Field(default=None, alias="RejectedBy")
    rejected_on: datetime | None = Field(default=None, alias="RejectedOn")
    customer_name: str | None = Field(
        default=None,
        validation_alias=AliasChoices("CustomerName", "CustomerFullName", "customer_name"),
        serialization_alias="CustomerName",
    )
    customer_email: str | None = Field(
        default=None,
        validation_alias=AliasChoices("CustomerEmail", "customer_email"),
        serialization_alias="CustomerEmail",
    )

    @field_validator("approval_status", mode="before")
    @classmethod
    def _default_status(cls, value: object) -> object:
        if value is None:
            return ApprovalStatus.PENDING
        if isinstance(value, str) and not isinstance(value, ApprovalStatus):
            return ApprovalStatus(value.strip())
        return value

    @field_validator("requires_approval", mode="before")
    @classmethod
    def _default_requires_approval(cls, value: object) -> object:
        return True if value is None else value

    @property
    @abstractmethod
    def record_id(self) -> int | str:
        """Key the backend procedures take for this record."""

    @property
    def record_number(self) -> str | None:
        """Human-facing document number, when the entity has one."""

        return None

    def is_approval_locked(self) -> bool:
        """Return ``True`` when the approval state freezes the record."""

        if not self.requires_approval:
            return False
        return self.approval_status is ApprovalStatus.APPROVED

    def blocking_reason(self, operation: MutationOperation) -> str | None:
        """Return why ``operation`` is refused, or ``None`` when it is allowed."""

        if self.is_approval_locked():
            return APPROVAL_LOCK_MESSAGES[operation]
        return None

    def can_edit(self) -> bool:
        return self.blocking_reason(MutationOperation.EDIT) is None

    def can_delete(self) -> bool:
        return self.blocking_reason(MutationOperation.DELETE) is None

    def notification_variables(self) -> dict[str, Any]:
        return {
            "CustomerName": self.customer_name,
            "CustomerEmail": self.customer_email,
            "ApprovalStatus": self.approval_status.value,
            "ApprovedBy": self.approved_by,
            "ApprovedOn": self.approved_on.isoformat() if self.approved_on else None,
            "ApprovalComments": self.approval_comments,
            "RejectedBy": self.rejected_by,
            "RejectionReason": self.rejection_reason,
            "CurrentDate": date.today().isoformat(),
        }

    def notification_recipients(self) -> list[NotificationRecipient]:
        if not self.customer_email:
            return []
        return [
            NotificationRecipient(email=self.customer_email, name=self.customer_name, type="to")
        ]


class TransitionResult(BaseModel):
    """Outcome of a confirmed approve, reject or reset call."""

    entity_type: EntityType
    record_id: int | str
    action: ApprovalAction
    message: str
    approval_status: ApprovalStatus | None = None
    record: dict[str, Any] | None = None


class BulkFailure(BaseModel):
    record_id: int | str
    reason: str


class BulkTransitionResult(BaseModel):
    """Aggregate of a fan-out approve/reject."""

    entity_type: EntityType
    action: ApprovalAction
    succeeded: int = 0
    failed: int = 0
    succeeded_ids: list[int | str] = Field(default_factory=list)
    skipped: list[int | str] = Field(default_factory=list)
    failures: list[BulkFailure] = Field(default_factory=list)

    @property
    def summary(self) -> str:
        verb = "approved" if self.action is ApprovalAction.APPROVE else "rejected"
        noun = f"{self.entity_type.label} record(s)"
        message = f"{self.succeeded} {noun} {verb} successfully"
        if self.failed:
            message += f", {self.failed} failed"
        if self.skipped:
            message += f", {len(self.skipped)} skipped (not pending)"
        return message


__all__ = [
    "APPROVAL_LOCK_MESSAGES",
    "ApprovableRecord",
    "ApprovalAction",
    "ApprovalStatus",
    "BulkFailure",
    "BulkTransitionResult",
    "EntityType",
    "MutationOperation",
    "TransitionResult",
    "WireModel",
]
