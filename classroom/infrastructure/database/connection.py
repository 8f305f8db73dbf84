# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Database connection management using SQLAlchemy async.

The engine and its pool are created once at application startup and handed
to request handlers as short-lived AsyncSession objects. Services never
reach for a global connection: they receive the session they operate on.

Example:
    from classroom.infrastructure.database.connection import (
        init_database,
        get_session,
    )

    await init_database(settings)

    async with get_session() as session:
        result = await session.execute(select(Subject))
"""

import asyncio
import functools
import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any, AsyncIterator, Awaitable, Callable, Optional, TypeVar

from sqlalchemy import text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from classroom.core.exceptions import DuplicateError, StorageError

if TYPE_CHECKING:
    from classroom.core.config.settings import Settings

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Module-level state for the application engine
_engine: Optional[AsyncEngine] = None
_sessionmaker: Optional[async_sessionmaker[AsyncSession]] = None


class DatabaseError(StorageError):
    """Raised when the database layer fails or is not initialized."""

    pass


def create_engine_from_settings(settings: "Settings") -> AsyncEngine:
    """Create an async engine for the configured database.

    Args:
        settings: Application settings containing database configuration.

    Returns:
        Configured AsyncEngine.
    """
    db = settings.database
    if db.is_sqlite:
        return create_async_engine(db.url, echo=settings.debug)

    return create_async_engine(
        db.url,
        pool_size=db.pool_size,
        max_overflow=db.max_overflow,
        pool_pre_ping=True,
        pool_recycle=db.pool_recycle,
        echo=settings.debug,
    )


def create_sessionmaker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Create the session factory used for every request-scoped session.

    Args:
        engine: Engine to bind sessions to.

    Returns:
        async_sessionmaker producing AsyncSession objects.
    """
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


async def init_database(settings: "Settings") -> None:
    """Initialize the database connection pool.

    Args:
        settings: Application settings containing database configuration.

    Raises:
        DatabaseError: If connection pool creation fails.
    """
    global _engine, _sessionmaker

    try:
        _engine = create_engine_from_settings(settings)
        _sessionmaker = create_sessionmaker(_engine)
    except SQLAlchemyError as e:
        raise DatabaseError("Failed to initialize database connection", e) from e

    logger.info("Database engine initialized")


async def close_database() -> None:
    """Close the database connection pool."""
    global _engine, _sessionmaker

    if _engine is not None:
        await _engine.dispose()
        _engine = None
        _sessionmaker = None


def get_engine() -> AsyncEngine:
    """Get the application async engine.

    Raises:
        DatabaseError: If the database has not been initialized.
    """
    if _engine is None:
        raise DatabaseError("Database not initialized. Call init_database() first.")
    return _engine


def get_sessionmaker() -> async_sessionmaker[AsyncSession]:
    """Get the application sessionmaker.

    Raises:
        DatabaseError: If the database has not been initialized.
    """
    if _sessionmaker is None:
        raise DatabaseError("Database not initialized. Call init_database() first.")
    return _sessionmaker


@asynccontextmanager
async def get_session() -> AsyncIterator[AsyncSession]:
    """Get an async session bound to the application database.

    Services commit their own units of work; anything left uncommitted is
    rolled back when the session closes, including when the surrounding
    task is cancelled.

    Yields:
        AsyncSession for database operations.

    Raises:
        DatabaseError: If the database has not been initialized or
            if a database operation fails.
    """
    sessionmaker = get_sessionmaker()

    async with sessionmaker() as session:
        try:
            yield session
        except SQLAlchemyError as e:
            await session.rollback()
            raise DatabaseError("Database operation failed", e) from e
        except Exception:
            await session.rollback()
            raise


async def commit_or_raise(session: AsyncSession, duplicate_message: str | None = None) -> None:
    """Commit the current unit of work and translate storage failures.

    A uniqueness violation raised by the database (for example, two
    concurrent requests enrolling the same student) becomes DuplicateError;
    any other failure becomes DatabaseError. The transaction is rolled back
    before the error is raised, so no partial write survives.

    Args:
        session: Session holding the pending unit of work.
        duplicate_message: Message for DuplicateError. When None, integrity
            errors are reported as DatabaseError.

    Raises:
        DuplicateError: On uniqueness violation when duplicate_message is set.
        DatabaseError: On any other storage failure.
    """
    try:
        await session.commit()
    except IntegrityError as e:
        await session.rollback()
        if duplicate_message is not None:
            raise DuplicateError(duplicate_message) from e
        raise DatabaseError("Integrity constraint violated", e) from e
    except SQLAlchemyError as e:
        await session.rollback()
        raise DatabaseError("Transaction failed", e) from e


def storage_operation(
    method: Callable[..., Awaitable[T]],
) -> Callable[..., Awaitable[T]]:
    """Translate SQLAlchemy failures of a service method into DatabaseError.

    Wraps an async method of a service holding its session as ``self.db``.
    Reads and bulk deletes issued outside ``commit_or_raise`` fail the same
    way commits do: the open transaction is rolled back and the caller sees
    a StorageError instead of a driver exception.

    Example:
        class SubjectService:
            @storage_operation
            async def get_subject(self, subject_id): ...
    """

    @functools.wraps(method)
    async def wrapper(self: Any, *args: Any, **kwargs: Any) -> T:
        try:
            return await method(self, *args, **kwargs)
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise DatabaseError("Database operation failed", e) from e

    return wrapper


async def run_with_deadline(operation: Awaitable[T], timeout: float | None) -> T:
    """Run a core operation under an external deadline.

    When the deadline expires the pending storage call is cancelled; the
    session rolls back the open transaction on close.

    Args:
        operation: Awaitable service call.
        timeout: Deadline in seconds, or None for no deadline.

    Returns:
        The operation's result.

    Raises:
        DatabaseError: If the deadline expires.
    """
    try:
        return await asyncio.wait_for(operation, timeout=timeout)
    except asyncio.TimeoutError as e:
        raise DatabaseError(f"Operation exceeded deadline of {timeout}s") from e


async def check_database_connection() -> bool:
    """Check if the database is reachable.

    Returns:
        True if the database is reachable, False otherwise.
    """
    if _engine is None:
        return False

    try:
        async with _engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return True
    except SQLAlchemyError:
        return False
