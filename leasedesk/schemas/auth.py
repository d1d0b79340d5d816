"""Authorization context passed explicitly into approval operations."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, field_validator


class Role(str, Enum):
    ADMIN = "admin"
    MANAGER = "manager"
    STAFF = "staff"


APPROVER_ROLES: frozenset[str] = frozenset({Role.ADMIN.value, Role.MANAGER.value})


class AuthContext(BaseModel):
    """Identity of the caller making a request."""

    user_id: str | None = None
    user_name: str | None = None
    email: str | None = None
    role: str = Role.STAFF.value

    @field_validator("role", mode="before")
    @classmethod
    def _normalize_role(cls, value: object) -> str:
        if isinstance(value, Role):
            return value.value
        return str(value or "").strip().lower()

    @property
    def is_approver(self) -> bool:
        return self.role in APPROVER_ROLES

    @property
    def display_name(self) -> str:
        return self.user_name or self.email or self.user_id or "unknown"


__all__ = ["APPROVER_ROLES", "AuthContext", "Role"]
