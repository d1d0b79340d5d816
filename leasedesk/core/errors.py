"""Error taxonomy shared by the envelope client, services and approval gate."""

from __future__ import annotations

from enum import Enum


class LeaseDeskError(Exception):
    """Base class for all errors raised by the gateway."""

    default_message = "An error occurred"

    def __init__(self, message: str | None = None) -> None:
        self.message = (message or "").strip() or self.default_message
        super().__init__(self.message)


class ValidationError(LeaseDeskError):
    """Input rejected locally before any backend call."""

    default_message = "Invalid input"


class Unauthorized(LeaseDeskError):
    """Caller lacks the manager/admin capability required for the operation."""

    default_message = "Only managers and administrators can perform approval actions"


class GuardErrorKind(str, Enum):
    PROTECTED = "Protected"


class GuardError(LeaseDeskError):
    """Mutation blocked by the record's approval or posting state."""

    default_message = "Record is protected"

    def __init__(
        self,
        message: str | None = None,
        *,
        kind: GuardErrorKind = GuardErrorKind.PROTECTED,
    ) -> None:
        super().__init__(message)
        self.kind = kind


class BackendError(LeaseDeskError):
    """The remote call completed but reported failure."""

    def __init__(self, message: str | None = None, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class NetworkError(LeaseDeskError):
    """Transport-level failure; no response was received."""

    default_message = "No response received from server. Please check your connection."


__all__ = [
    "BackendError",
    "GuardError",
    "GuardErrorKind",
    "LeaseDeskError",
    "NetworkError",
    "Unauthorized",
    "ValidationError",
]
