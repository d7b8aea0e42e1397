"""
Database engine/session management for the registration backend.

Connection string resolution order (see ``src.core.config.resolve_database_url``):
1) DATABASE_URL env var, accepting the ``psql postgres://...`` form.
2) DB_USER / DB_PASS / DB_HOST / DB_NAME components.
3) A local development default.

We intentionally do NOT create tables from ORM models in this service because the
database owns schema creation and seeding.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Generator, Iterator

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from src.core.config import resolve_database_url
from src.core.errors import StoreError

logger = logging.getLogger(__name__)

DATABASE_URL = resolve_database_url()

_engine: Engine = create_engine(
    DATABASE_URL,
    pool_pre_ping=True,
)

SessionLocal = sessionmaker(bind=_engine, autoflush=False, autocommit=False, expire_on_commit=False)

# Bulk DML through the session skips syncing the identity map; callers re-query after it.
BULK_OPTIONS = {"synchronize_session": False}


# PUBLIC_INTERFACE
def get_db() -> Generator[Session, None, None]:
    """FastAPI dependency that yields a SQLAlchemy session and ensures it's closed."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


# PUBLIC_INTERFACE
def db_healthcheck() -> bool:
    """
    Perform a simple DB liveness check.

    Returns:
        bool: True if DB is reachable and responds to `SELECT 1`, else False.
    """
    try:
        with _engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return True
    except SQLAlchemyError:
        logger.warning("Database healthcheck failed", exc_info=True)
        return False


@contextmanager
def atomic(session: Session, operation: str) -> Iterator[Session]:
    """
    Run a unit of work on ``session``: commit when the block finishes, roll back
    and re-raise on any exception. A failed commit surfaces as ``StoreError``
    tagged with ``operation``.

    Usage:
        with atomic(session, "migrate"):
            session.execute(...)
    """
    try:
        yield session
        with store_stage(operation):
            session.commit()
        logger.debug("%s committed", operation)
    except Exception as e:
        session.rollback()
        logger.warning("%s rolled back: %s", operation, e)
        raise


@contextmanager
def store_stage(stage: str) -> Iterator[None]:
    """Wrap store failures raised inside the block as ``StoreError`` tagged with ``stage``."""
    try:
        yield
    except SQLAlchemyError as e:
        raise StoreError(stage, e) from e
