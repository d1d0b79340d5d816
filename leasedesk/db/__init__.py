"""Sessions on the approval audit store.

Request handlers write audit rows through :func:`get_session_dependency` and
commit explicitly once the backend has confirmed a transition. Scripts and
tests that only read or seed the log use :func:`session_scope`.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session

from .session import SessionLocal, engine as _engine


@contextmanager
def get_session() -> Iterator[Session]:
    """Yield an audit session; uncommitted rows are rolled back on error."""

    session = SessionLocal()
    try:
        yield session
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def get_session_dependency() -> Iterator[Session]:
    with get_session() as session:
        yield session


def get_engine() -> Engine:
    return _engine


@contextmanager
def session_scope() -> Iterator[Session]:
    """Like :func:`get_session`, committing when the block exits cleanly."""

    with get_session() as session:
        yield session
        session.commit()


__all__ = [
    "get_engine",
    "get_session",
    "get_session_dependency",
    "session_scope",
]
