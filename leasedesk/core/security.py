"""Bearer token handling for the HTTP layer."""

from __future__ import annotations

from typing import Any

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from leasedesk.core.config import get_settings
from leasedesk.schemas.auth import AuthContext

_scheme = HTTPBearer(auto_error=False)


# -------------------------------------------------------
# Token Utilities
# -------------------------------------------------------

def create_access_token(claims: dict[str, Any]) -> str:
    """Sign ``claims`` with the configured secret."""

    settings = get_settings()
    return jwt.encode(claims, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_token(token: str) -> dict[str, Any]:
    """Decode and verify a bearer token, raising 401 on any failure."""

    settings = get_settings()
    try:
        return jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except JWTError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
        ) from exc


def auth_context_from_claims(payload: dict[str, Any]) -> AuthContext:
    subject = payload.get("sub")
    if not subject:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token missing subject",
        )
    return AuthContext(
        user_id=str(subject),
        user_name=payload.get("name"),
        email=payload.get("email"),
        role=payload.get("role") or "staff",
    )


# -------------------------------------------------------
# Request Dependencies
# -------------------------------------------------------

def get_bearer_token(
    credentials: HTTPAuthorizationCredentials | None = Depends(_scheme),
) -> str:
    """Return the raw bearer token so it can be forwarded to the backend."""

    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authorization header missing",
        )
    return credentials.credentials


def get_auth_context(token: str = Depends(get_bearer_token)) -> AuthContext:
    """Resolve the caller identity from the bearer token."""

    return auth_context_from_claims(decode_token(token))


__all__ = [
    "auth_context_from_claims",
    "create_access_token",
    "decode_token",
    "get_auth_context",
    "get_bearer_token",
]
