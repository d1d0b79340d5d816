"""Tests for bearer token decoding and the auth context."""

from __future__ import annotations

import os
import sys
from pathlib import Path

sys.path.append(str(Path(__file__).resolve().parents[2]))

os.environ.setdefault("DATABASE_URL", "sqlite:///./test_leasedesk.db")

import pytest
from fastapi import HTTPException

from leasedesk.core.security import (
    auth_context_from_claims,
    create_access_token,
    decode_token,
)
from leasedesk.schemas.auth import AuthContext


def test_token_round_trip_builds_auth_context() -> None:
    token = create_access_token(
        {"sub": "7", "name": "Maya Manager", "email": "maya@example.com", "role": "Manager"}
    )

    auth = auth_context_from_claims(decode_token(token))

    assert auth.user_id == "7"
    assert auth.role == "manager"
    assert auth.is_approver
    assert auth.display_name == "Maya Manager"


def test_role_defaults_to_staff() -> None:
    auth = auth_context_from_claims({"sub": "12"})

    assert auth.role == "staff"
    assert not auth.is_approver
    assert auth.display_name == "12"


def test_token_without_subject_is_rejected() -> None:
    with pytest.raises(HTTPException) as exc_info:
        auth_context_from_claims({"role": "admin"})

    assert exc_info.value.status_code == 401


def test_tampered_token_is_rejected() -> None:
    token = create_access_token({"sub": "7"})

    with pytest.raises(HTTPException) as exc_info:
        decode_token(token + "x")

    assert exc_info.value.detail == "Invalid token"


@pytest.mark.parametrize("role", ["admin", "Manager", " MANAGER "])
def test_approver_roles(role: str) -> None:
    assert AuthContext(user_id="1", role=role).is_approver
