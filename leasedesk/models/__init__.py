"""ORM models exposed for easy imports."""

from .approval import ApprovalLog

__all__ = ["ApprovalLog"]
