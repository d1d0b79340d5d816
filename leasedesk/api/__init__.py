"""Public API routers exposed by the FastAPI application."""

from . import approvals, contracts, health, invoices, petty_cash, terminations

__all__ = [
    "approvals",
    "contracts",
    "health",
    "invoices",
    "petty_cash",
    "terminations",
]
