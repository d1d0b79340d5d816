"""Entrypoint for the FastAPI application."""

import os

from dotenv import load_dotenv

env_path = os.path.join(os.path.dirname(__file__), "../.env")
if os.path.exists(env_path):
    load_dotenv(dotenv_path=os.path.abspath(env_path))

import structlog
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .api import approvals, contracts, health, invoices, petty_cash, terminations
from .core.config import get_settings
from .core.errors import (
    BackendError,
    GuardError,
    LeaseDeskError,
    NetworkError,
    Unauthorized,
    ValidationError,
)
from .core.logging import configure_logging

LOGGER = structlog.get_logger(__name__)

ERROR_STATUS: dict[type[LeaseDeskError], int] = {
    ValidationError: status.HTTP_422_UNPROCESSABLE_ENTITY,
    Unauthorized: status.HTTP_403_FORBIDDEN,
    GuardError: status.HTTP_409_CONFLICT,
    BackendError: status.HTTP_502_BAD_GATEWAY,
    NetworkError: status.HTTP_503_SERVICE_UNAVAILABLE,
}


async def handle_leasedesk_error(request: Request, exc: LeaseDeskError) -> JSONResponse:
    status_code = ERROR_STATUS.get(type(exc), status.HTTP_500_INTERNAL_SERVER_ERROR)
    LOGGER.info(
        "request_failed",
        path=request.url.path,
        error=type(exc).__name__,
        status_code=status_code,
        message=exc.message,
    )
    return JSONResponse(status_code=status_code, content={"detail": exc.message})


def create_app() -> FastAPI:
    configure_logging()
    settings = get_settings()
    app = FastAPI(title="LeaseDesk Gateway", version="0.1.0")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(LeaseDeskError, handle_leasedesk_error)

    app.include_router(health.router, prefix="/api")
    app.include_router(approvals.router, prefix="/api")
    app.include_router(contracts.router, prefix="/api")
    app.include_router(invoices.router, prefix="/api")
    app.include_router(terminations.router, prefix="/api")
    app.include_router(petty_cash.router, prefix="/api")

    return app


app = create_app()
