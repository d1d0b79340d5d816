"""Engine and session factory for the local approval audit store."""

from __future__ import annotations

from pathlib import Path

import structlog
from sqlalchemy import create_engine
from sqlalchemy.engine import URL, make_url
from sqlalchemy.orm import sessionmaker

from leasedesk.core.config import get_settings

LOGGER = structlog.get_logger(__name__)
PROJECT_ROOT = Path(__file__).resolve().parents[2]


def _audit_store_url(raw_url: str) -> URL:
    """Anchor relative SQLite files at the project root.

    The audit log must land in the same file whether the app is started from
    the repository, the tests directory or ``init_db.py``.
    """

    url = make_url(raw_url)
    if not url.drivername.startswith("sqlite") or url.database in (None, "", ":memory:"):
        return url

    db_path = Path(url.database)
    if db_path.is_absolute():
        return url
    resolved = (PROJECT_ROOT / db_path).resolve()
    LOGGER.info("audit_store_path_resolved", configured=str(db_path), resolved=str(resolved))
    return url.set(database=str(resolved))


_audit_url = _audit_store_url(get_settings().database_url)
engine = create_engine(
    _audit_url,
    pool_pre_ping=True,
    # Request handlers and the TestClient share SQLite connections across threads.
    connect_args={"check_same_thread": False} if _audit_url.drivername.startswith("sqlite") else {},
)
SessionLocal = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)

LOGGER.info("audit_store_ready", url=_audit_url.render_as_string(hide_password=True))

__all__ = ["engine", "SessionLocal"]
