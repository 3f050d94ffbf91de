"""
Database configuration and session management.
SQLAlchemy 2.0 engine, session factory and transaction helpers.
"""

import os
from collections.abc import Generator
from contextlib import contextmanager
from typing import Any

from sqlalchemy import create_engine
from sqlalchemy.exc import DBAPIError
from sqlalchemy.orm import sessionmaker, Session

from shared.config.settings import DATABASE_URL, settings
from shared.utils.exceptions import ConflictError


def _calculate_pool_size() -> int:
    """(2 * CPU cores) + 1, capped at 20."""
    cores = os.cpu_count() or 4
    return min(cores * 2 + 1, 20)


def _engine_options(url: str) -> dict[str, Any]:
    """
    Pool and connect options per backend.

    SQLite (local runs, CLI demos) has no connect timeout and shares one
    connection across threads; PostgreSQL gets a sized pool.
    """
    if url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}}
    return {
        "pool_pre_ping": True,  # Verify connections before using
        "pool_size": _calculate_pool_size(),
        "max_overflow": 15,
        "pool_timeout": 30,  # Wait max 30s for connection from pool
        "pool_recycle": 1800,  # Recycle connections after 30 minutes
        "connect_args": {"connect_timeout": 10},
    }


engine = create_engine(DATABASE_URL, echo=settings.db_echo, **_engine_options(DATABASE_URL))

# Session factory
SessionLocal = sessionmaker(
    bind=engine,
    autoflush=False,
    autocommit=False,
)


def get_db() -> Generator[Session, None, None]:
    """
    FastAPI dependency for database sessions.

    Usage:
        @router.get("/checks")
        def list_checks(db: Session = Depends(get_db)):
            ...

    The session is closed after the request completes. Anything not
    committed by the service is rolled back by close().
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def get_db_context() -> Generator[Session, None, None]:
    """
    Context manager for database sessions outside of FastAPI (CLI, seed).

    Usage:
        with get_db_context() as db:
            CheckService(db).get_check(1)
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def safe_commit(db: Session) -> None:
    """
    Commit, rolling back on failure.

    Raises the original exception after rolling back.
    """
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise


# PostgreSQL serialization_failure and deadlock_detected
RETRYABLE_SQLSTATES = frozenset({"40001", "40P01"})


def is_retryable(exc: DBAPIError) -> bool:
    """True when the database aborted the transaction for a lock conflict."""
    return getattr(exc.orig, "sqlstate", None) in RETRYABLE_SQLSTATES


@contextmanager
def transaction(db: Session) -> Generator[Session, None, None]:
    """
    One unit of work: commit on success, roll back on any error.

    Usage:
        with transaction(db):
            check = repo.lock(check_id)
            ...

    Nothing written inside the block is visible to other sessions unless
    the whole block succeeds. Deadlocks and serialization failures surface
    as ConflictError (409) so the client can retry.
    """
    try:
        yield db
        safe_commit(db)
    except DBAPIError as exc:
        db.rollback()
        if is_retryable(exc):
            raise ConflictError("Concurrent update, retry the request") from exc
        raise
    except Exception:
        db.rollback()
        raise
