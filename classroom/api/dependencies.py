# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""FastAPI dependency injection definitions.

This module provides dependency functions for FastAPI endpoints.
Dependencies are used to:
- Get request-scoped database sessions
- Read the authenticated actor id
- Get service instances
- Bound service calls by the request deadline

Example:
    @router.get("/subjects/{subject_id}/students")
    async def list_students(
        subject_id: UUID,
        service: EnrollmentService = Depends(get_enrollment_service),
    ):
        return await bounded(service.list_students(subject_id))
"""

import logging
from typing import Annotated, AsyncGenerator, Awaitable, TypeVar

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from classroom.core.config import get_settings
from classroom.domains.activity import ActivityLog, DatabaseActivityLog, NullActivityLog
from classroom.domains.attendance import AttendanceService
from classroom.domains.enrollment import EnrollmentService
from classroom.domains.grading import GradeStatisticsService
from classroom.domains.hierarchy import HierarchyService
from classroom.domains.submission import SubmissionService
from classroom.infrastructure.database.connection import (
    DatabaseError,
    get_session,
    get_sessionmaker,
    run_with_deadline,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Get a database session for the current request.

    Yields:
        AsyncSession closed (and rolled back if uncommitted) after the request.
    """
    async with get_session() as session:
        yield session


def get_actor_id(
    x_actor_id: Annotated[str | None, Header(description="Authenticated actor id")] = None,
) -> str | None:
    """Read the actor id forwarded by the authentication layer."""
    return x_actor_id or None


def require_actor_id(actor_id: str | None = Depends(get_actor_id)) -> str:
    """Require an actor id.

    Raises:
        HTTPException: 401 if the X-Actor-Id header is missing.
    """
    if not actor_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="X-Actor-Id header is required",
        )
    return actor_id


def get_activity_log() -> ActivityLog:
    """Get the activity sink backed by the application database."""
    try:
        return DatabaseActivityLog(get_sessionmaker())
    except DatabaseError:
        logger.warning("Database not initialized, activity logging disabled")
        return NullActivityLog()


def get_hierarchy_service(
    db: AsyncSession = Depends(get_db),
    activity_log: ActivityLog = Depends(get_activity_log),
) -> HierarchyService:
    return HierarchyService(db=db, activity_log=activity_log)


def get_enrollment_service(
    db: AsyncSession = Depends(get_db),
    activity_log: ActivityLog = Depends(get_activity_log),
) -> EnrollmentService:
    return EnrollmentService(db=db, activity_log=activity_log)


def get_submission_service(
    db: AsyncSession = Depends(get_db),
    activity_log: ActivityLog = Depends(get_activity_log),
) -> SubmissionService:
    return SubmissionService(db=db, activity_log=activity_log)


def get_attendance_service(
    db: AsyncSession = Depends(get_db),
    activity_log: ActivityLog = Depends(get_activity_log),
) -> AttendanceService:
    return AttendanceService(db=db, activity_log=activity_log)


def get_grade_statistics_service(
    db: AsyncSession = Depends(get_db),
) -> GradeStatisticsService:
    return GradeStatisticsService(db=db)


async def bounded(operation: Awaitable[T]) -> T:
    """Run a service call under the configured request timeout.

    Args:
        operation: Awaitable service call.

    Returns:
        The call's result.

    Raises:
        DatabaseError: If the request timeout expires.
    """
    return await run_with_deadline(operation, get_settings().api.request_timeout)
