"""Database connection, session management and the unit-of-work helper."""
import logging
from contextlib import contextmanager
from functools import lru_cache
from typing import Generator, Iterator, Optional

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

from .config import get_settings
from .errors import DocumentStoreError, DocumentDatabaseError, VersionConflictError

logger = logging.getLogger("objdoc-core.database")

# Name of the unique constraint guarding the ordering key (see models.ObjectiveDocumentVersion)
VERSION_NUMBER_CONSTRAINT = "uq_document_version_number"


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def build_engine(
    database_url: str,
    echo: bool = False,
    statement_timeout_ms: Optional[int] = None,
) -> Engine:
    """Create an engine for the given URL.

    PostgreSQL gets a conservative connection pool and a server-side
    statement timeout so a stuck statement aborts its transaction instead of
    blocking forever. SQLite (tests, local development) gets foreign key
    enforcement switched on for every connection.
    """
    url = make_url(database_url)

    if url.get_backend_name() == "sqlite":
        kwargs = {"connect_args": {"check_same_thread": False}}
        if url.database in (None, "", ":memory:"):
            # One shared connection, otherwise every checkout sees an empty database
            kwargs["poolclass"] = StaticPool
        engine = create_engine(url, echo=echo, **kwargs)
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
        return engine

    connect_args = {}
    if statement_timeout_ms:
        connect_args["options"] = f"-c statement_timeout={statement_timeout_ms}"

    return create_engine(
        url,
        echo=echo,
        pool_pre_ping=True,          # Verify connections before using
        pool_size=3,                 # Base pool of 3 connections
        max_overflow=7,              # Allow up to 10 total connections
        pool_recycle=3600,           # Recycle connections every hour
        pool_timeout=30,             # Timeout after 30 seconds
        connect_args=connect_args,
    )


@lru_cache
def get_engine() -> Engine:
    """Return the process-wide engine built from settings."""
    settings = get_settings()
    return build_engine(
        settings.database_url,
        echo=settings.sql_echo,
        statement_timeout_ms=settings.statement_timeout_ms,
    )


@lru_cache
def get_session_factory() -> sessionmaker:
    """Return the process-wide session factory."""
    return sessionmaker(autocommit=False, autoflush=False, bind=get_engine())


def get_db() -> Generator[Session, None, None]:
    """
    Dependency function to get database session.

    Yields:
        Session: SQLAlchemy database session
    """
    db = get_session_factory()()
    try:
        yield db
    finally:
        db.close()


def _is_version_collision(error: IntegrityError) -> bool:
    message = str(error.orig)
    # PostgreSQL names the constraint, SQLite names the columns
    return VERSION_NUMBER_CONSTRAINT in message or "version_number" in message


@contextmanager
def transaction(db: Session, action: str) -> Iterator[Session]:
    """Run a multi-statement unit of work atomically.

    Commits when the block finishes, rolls back on any exception. Storage
    driver errors are classified before they leave this helper, so callers
    only ever see ``DocumentStoreError`` subclasses (or their own exceptions,
    re-raised untouched after the rollback).

    Args:
        db: Database session
        action: Short description used in log lines and error messages,
            e.g. "create document version"
    """
    try:
        yield db
        db.commit()
    except DocumentStoreError:
        db.rollback()
        raise
    except IntegrityError as e:
        db.rollback()
        if _is_version_collision(e):
            logger.warning(f"Ordering key collision while trying to {action}: {e.orig}")
            raise VersionConflictError(
                f"Another version was created concurrently; failed to {action}"
            ) from e
        logger.error(f"Integrity error while trying to {action}: {e}", exc_info=True)
        raise DocumentDatabaseError(f"Failed to {action}") from e
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Database error while trying to {action}: {e}", exc_info=True)
        raise DocumentDatabaseError(f"Failed to {action}") from e
    except BaseException:
        # Caller cancellation or a programming error: nothing may be left half-written
        db.rollback()
        raise
