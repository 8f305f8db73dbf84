# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for the activity log sinks."""

from unittest.mock import AsyncMock, MagicMock
from uuid import UUID

import pytest
from sqlalchemy import select

from classroom.domains.activity import DatabaseActivityLog, NullActivityLog, record_activity
from classroom.domains.enrollment import EnrollmentService
from classroom.infrastructure.database.connection import create_sessionmaker
from classroom.infrastructure.database.models import ActivityLogEntry
from classroom.models.common import Role


class TestRecordActivity:
    """Tests for best-effort recording."""

    @pytest.mark.asyncio
    async def test_none_sink_is_noop(self):
        await record_activity(None, "actor", "create", "Created something")

    @pytest.mark.asyncio
    async def test_null_sink(self):
        await record_activity(NullActivityLog(), "actor", "create", "Created something")

    @pytest.mark.asyncio
    async def test_failure_is_swallowed(self):
        """Test that a failing sink never fails the caller."""
        sink = MagicMock()
        sink.record = AsyncMock(side_effect=RuntimeError("log table missing"))

        await record_activity(sink, "actor", "delete", "Deleted folder: Quizzes")

        sink.record.assert_awaited_once_with("actor", "delete", "Deleted folder: Quizzes")


class TestDatabaseActivityLog:
    """Tests for the database sink."""

    @pytest.mark.asyncio
    async def test_writes_row(self, db_engine, db_session):
        """Test that an activity becomes one row."""
        sink = DatabaseActivityLog(create_sessionmaker(db_engine))

        await sink.record("actor-1", "create", "Created school year: 2024-2025")

        result = await db_session.execute(select(ActivityLogEntry))
        rows = result.scalars().all()
        assert len(rows) == 1
        assert rows[0].actor_id == "actor-1"
        assert rows[0].action == "create"
        assert rows[0].description == "Created school year: 2024-2025"

    @pytest.mark.asyncio
    async def test_service_operation_survives_sink_failure(self, db_session, seed):
        """Test that the primary change is kept when logging fails."""
        subject = await seed.subject()
        alice = await seed.person("alice")
        sink = MagicMock()
        sink.record = AsyncMock(side_effect=RuntimeError("down"))
        service = EnrollmentService(db=db_session, activity_log=sink)

        await service.assign_student(UUID(subject.id), UUID(alice.id), actor_id="admin")

        students = await service.list_students(UUID(subject.id))
        assert [s.role for s in students] == [Role.STUDENT]
        sink.record.assert_awaited_once()
