# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Pytest configuration and shared fixtures.

This module provides fixtures used across all test types:
- Mock sessions for error-path unit tests
- An in-memory SQLite session for behavioral tests
- Seed helpers building the school hierarchy and person records
"""

from collections.abc import AsyncGenerator
from datetime import date, time
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.pool import StaticPool

from classroom.core.config import clear_settings_cache
from classroom.infrastructure.database.connection import create_sessionmaker
from classroom.infrastructure.database.models import (
    AttendanceRecord,
    AttendanceSession,
    Base,
    GradeLevel,
    Profile,
    SchoolYear,
    Section,
    Semester,
    StudentSubmission,
    Subject,
    SubjectInstructor,
    SubjectStudent,
    Submission,
    SubmissionFolder,
    User,
)
from classroom.models.common import AttendanceStatus, Role


# =============================================================================
# Settings
# =============================================================================


@pytest.fixture(autouse=True)
def reset_settings_cache():
    """Reload settings for every test."""
    clear_settings_cache()
    yield
    clear_settings_cache()


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest.fixture
def mock_db():
    """Create mock database session."""
    db = AsyncMock()
    db.add = MagicMock()
    db.add_all = MagicMock()
    db.flush = AsyncMock()
    db.commit = AsyncMock()
    db.rollback = AsyncMock()
    db.execute = AsyncMock()
    return db


@pytest_asyncio.fixture
async def db_engine() -> AsyncGenerator[AsyncEngine, None]:
    """Create an in-memory SQLite engine with every table."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(db_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create a session configured like the application's sessions."""
    sessionmaker = create_sessionmaker(db_engine)
    async with sessionmaker() as session:
        yield session


@pytest.fixture
def seed(db_session):
    """Create a seeder bound to the test session."""
    return Seeder(db_session)


# =============================================================================
# Seed helpers
# =============================================================================


class Seeder:
    """Insert rows directly, bypassing the services under test."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def _save(self, *rows):
        self.session.add_all(rows)
        await self.session.commit()
        return rows[0] if len(rows) == 1 else rows

    async def subject(self, name: str = "Mathematics", year: str = "2024-2025") -> Subject:
        """Create a full hierarchy path ending in a subject."""
        school_year = SchoolYear(year=year)
        await self._save(school_year)
        semester = Semester(name="First Semester", school_year_id=school_year.id)
        await self._save(semester)
        grade_level = GradeLevel(name="Grade 7", semester_id=semester.id)
        await self._save(grade_level)
        section = Section(name="Section A", grade_level_id=grade_level.id)
        await self._save(section)
        subject = Subject(name=name, code="MATH7", section_id=section.id)
        await self._save(subject)
        return subject

    async def person(
        self,
        username: str,
        role: Role = Role.STUDENT,
        first_name: str | None = None,
        middle_name: str | None = None,
        last_name: str | None = None,
        employee_id: str | None = None,
    ) -> User:
        """Create a user with an optional profile."""
        user = User(username=username, email=f"{username}@school.test", role=role)
        await self._save(user)
        if first_name or middle_name or last_name or employee_id:
            await self._save(
                Profile(
                    user_id=user.id,
                    first_name=first_name,
                    middle_name=middle_name,
                    last_name=last_name,
                    employee_id=employee_id,
                )
            )
        return user

    async def enroll(self, subject: Subject, *students: User) -> None:
        await self._save(
            *[SubjectStudent(subject_id=subject.id, student_id=s.id) for s in students]
        )

    async def assign(self, subject: Subject, instructor: User) -> None:
        await self._save(SubjectInstructor(subject_id=subject.id, instructor_id=instructor.id))

    async def folder(self, subject: Subject, name: str = "Quizzes") -> SubmissionFolder:
        return await self._save(SubmissionFolder(name=name, subject_id=subject.id))

    async def submission(
        self, subject: Subject, folder: SubmissionFolder, name: str = "Quiz 1"
    ) -> Submission:
        return await self._save(
            Submission(folder_id=folder.id, subject_id=subject.id, name=name)
        )

    async def grade(self, submission: Submission, student_id: str, grade: float | None):
        return await self._save(
            StudentSubmission(
                submission_id=submission.id,
                student_id=student_id,
                attempt_number=1,
                grade=grade,
            )
        )

    async def attendance(
        self,
        subject: Subject,
        statuses: dict[str, AttendanceStatus],
        session_date: date = date(2024, 9, 2),
        session_time: time | None = None,
    ) -> AttendanceSession:
        session = AttendanceSession(
            subject_id=subject.id, session_date=session_date, session_time=session_time
        )
        await self._save(session)
        if statuses:
            await self._save(
                *[
                    AttendanceRecord(session_id=session.id, student_id=sid, status=status)
                    for sid, status in statuses.items()
                ]
            )
        return session