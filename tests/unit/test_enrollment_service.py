# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for Enrollment service."""

from unittest.mock import AsyncMock, MagicMock
from uuid import UUID, uuid4

import pytest
from sqlalchemy.exc import IntegrityError

from classroom.core.exceptions import DuplicateError, NotFoundError, ValidationError
from classroom.domains.enrollment import (
    AlreadyAssignedError,
    AlreadyEnrolledError,
    EnrollmentService,
    InvalidRoleError,
    PersonNotFoundError,
    display_name,
)
from classroom.domains.hierarchy import SubjectNotFoundError
from classroom.models.common import Role


@pytest.fixture
def enrollment_service(db_session):
    """Create enrollment service on the SQLite session."""
    return EnrollmentService(db=db_session)


class TestDisplayName:
    """Tests for display name synthesis."""

    def test_all_parts(self):
        assert display_name("Maria", "Clara", "Santos", "msantos") == "Maria Clara Santos"

    def test_skips_empty_parts(self):
        assert display_name("Maria", "  ", "Santos", "msantos") == "Maria Santos"

    def test_falls_back_to_username(self):
        assert display_name(None, "", None, "msantos") == "msantos"


class TestEnrollmentServiceAssign:
    """Tests for instructor assignment and student enrollment."""

    @pytest.mark.asyncio
    async def test_assign_student_success(self, enrollment_service, seed):
        """Test enrolling a student."""
        subject = await seed.subject()
        alice = await seed.person("alice", first_name="Alice", last_name="Reyes")

        await enrollment_service.assign_student(UUID(subject.id), UUID(alice.id))

        students = await enrollment_service.list_students(UUID(subject.id))
        assert [s.name for s in students] == ["Alice Reyes"]
        assert students[0].role == Role.STUDENT

    @pytest.mark.asyncio
    async def test_assign_student_twice(self, enrollment_service, seed):
        """Test that a second enrollment of the same pair fails."""
        subject = await seed.subject()
        alice = await seed.person("alice")
        await enrollment_service.assign_student(UUID(subject.id), UUID(alice.id))

        with pytest.raises(AlreadyEnrolledError) as exc_info:
            await enrollment_service.assign_student(UUID(subject.id), UUID(alice.id))

        assert isinstance(exc_info.value, DuplicateError)

    @pytest.mark.asyncio
    async def test_assign_instructor_twice(self, enrollment_service, seed):
        """Test that a second assignment of the same instructor fails."""
        subject = await seed.subject()
        teacher = await seed.person("teacher", Role.INSTRUCTOR)
        await enrollment_service.assign_instructor(UUID(subject.id), UUID(teacher.id))

        with pytest.raises(AlreadyAssignedError):
            await enrollment_service.assign_instructor(UUID(subject.id), UUID(teacher.id))

    @pytest.mark.asyncio
    async def test_assign_student_with_instructor_role(self, enrollment_service, seed):
        """Test that role mismatch is a validation error."""
        subject = await seed.subject()
        teacher = await seed.person("teacher", Role.INSTRUCTOR)

        with pytest.raises(InvalidRoleError) as exc_info:
            await enrollment_service.assign_student(UUID(subject.id), UUID(teacher.id))

        assert isinstance(exc_info.value, ValidationError)
        assert await enrollment_service.list_students(UUID(subject.id)) == []

    @pytest.mark.asyncio
    async def test_assign_instructor_with_admin_role(self, enrollment_service, seed):
        """Test that admins cannot be assigned as instructors."""
        subject = await seed.subject()
        admin = await seed.person("admin", Role.ADMIN)

        with pytest.raises(InvalidRoleError):
            await enrollment_service.assign_instructor(UUID(subject.id), UUID(admin.id))

    @pytest.mark.asyncio
    async def test_assign_to_unknown_subject(self, enrollment_service, seed):
        """Test assigning into a subject that does not exist."""
        alice = await seed.person("alice")

        with pytest.raises(SubjectNotFoundError):
            await enrollment_service.assign_student(uuid4(), UUID(alice.id))

    @pytest.mark.asyncio
    async def test_assign_unknown_person(self, enrollment_service, seed):
        """Test assigning a person unknown to the directory."""
        subject = await seed.subject()

        with pytest.raises(PersonNotFoundError) as exc_info:
            await enrollment_service.assign_student(UUID(subject.id), uuid4())

        assert isinstance(exc_info.value, NotFoundError)

    @pytest.mark.asyncio
    async def test_uses_injected_directory(self, db_session, seed):
        """Test that role validation goes through the directory."""
        subject = await seed.subject()
        person_id = uuid4()
        directory = MagicMock()
        directory.role_of = AsyncMock(return_value=Role.INSTRUCTOR)

        service = EnrollmentService(db=db_session, directory=directory)
        await service.assign_instructor(UUID(subject.id), person_id)

        directory.role_of.assert_awaited_once_with(person_id)

    @pytest.mark.asyncio
    async def test_race_past_precheck_is_duplicate(self, mock_db):
        """Test that a uniqueness violation at commit is reported as duplicate."""
        subject = MagicMock()
        subject.id = str(uuid4())
        subject.name = "Mathematics"

        subject_result = MagicMock()
        subject_result.scalar_one_or_none.return_value = subject
        no_existing = MagicMock()
        no_existing.scalar_one_or_none.return_value = None
        mock_db.execute.side_effect = [subject_result, no_existing]
        mock_db.commit.side_effect = IntegrityError("INSERT", {}, Exception("uq_subject_student"))

        directory = MagicMock()
        directory.role_of = AsyncMock(return_value=Role.STUDENT)
        service = EnrollmentService(db=mock_db, directory=directory)

        with pytest.raises(AlreadyEnrolledError):
            await service.assign_student(uuid4(), uuid4())

        mock_db.rollback.assert_awaited_once()


class TestEnrollmentServiceRemove:
    """Tests for idempotent removal."""

    @pytest.mark.asyncio
    async def test_remove_student(self, enrollment_service, seed):
        """Test removing an enrolled student."""
        subject = await seed.subject()
        alice = await seed.person("alice")
        await seed.enroll(subject, alice)

        await enrollment_service.remove_student(UUID(subject.id), UUID(alice.id))

        assert await enrollment_service.list_students(UUID(subject.id)) == []

    @pytest.mark.asyncio
    async def test_remove_missing_pair_succeeds(self, enrollment_service, seed):
        """Test that removing a pair that does not exist is not an error."""
        subject = await seed.subject()

        await enrollment_service.remove_student(UUID(subject.id), uuid4())
        await enrollment_service.remove_instructor(UUID(subject.id), uuid4())
        await enrollment_service.remove_instructor(uuid4(), uuid4())


class TestEnrollmentServiceList:
    """Tests for roster listings."""

    @pytest.mark.asyncio
    async def test_students_ordered_by_last_first_username(self, enrollment_service, seed):
        """Test roster ordering and display names."""
        subject = await seed.subject()
        zed = await seed.person("zed")
        santos_b = await seed.person("bsantos", first_name="Bea", last_name="Santos")
        santos_a = await seed.person("asantos", first_name="Ana", middle_name="L", last_name="Santos")
        cruz = await seed.person("cruz", first_name="Carlo", last_name="Cruz")
        await seed.enroll(subject, zed, santos_b, santos_a, cruz)

        students = await enrollment_service.list_students(UUID(subject.id))

        # No profile sorts first: missing last name orders as empty
        assert [s.username for s in students] == ["zed", "cruz", "asantos", "bsantos"]
        assert [s.name for s in students] == ["zed", "Carlo Cruz", "Ana L Santos", "Bea Santos"]

    @pytest.mark.asyncio
    async def test_list_instructors(self, enrollment_service, seed):
        """Test instructor roster."""
        subject = await seed.subject()
        teacher = await seed.person(
            "teacher", Role.INSTRUCTOR, first_name="Tess", last_name="Lim", employee_id="EMP-7"
        )
        await seed.assign(subject, teacher)

        instructors = await enrollment_service.list_instructors(UUID(subject.id))

        assert len(instructors) == 1
        assert instructors[0].name == "Tess Lim"
        assert instructors[0].employee_id == "EMP-7"
        assert instructors[0].assigned_at is not None

    @pytest.mark.asyncio
    async def test_list_students_unknown_subject(self, enrollment_service):
        """Test listing the roster of an unknown subject."""
        with pytest.raises(SubjectNotFoundError):
            await enrollment_service.list_students(uuid4())

    @pytest.mark.asyncio
    async def test_list_available_by_role(self, enrollment_service, seed):
        """Test listing every person holding a role."""
        await seed.person("teacher", Role.INSTRUCTOR, last_name="Lim")
        await seed.person("alice", last_name="Reyes")
        await seed.person("admin", Role.ADMIN)

        instructors = await enrollment_service.list_available(Role.INSTRUCTOR)
        students = await enrollment_service.list_available(Role.STUDENT)

        assert [p.username for p in instructors] == ["teacher"]
        assert [p.username for p in students] == ["alice"]

    @pytest.mark.asyncio
    async def test_list_instructor_subjects(self, enrollment_service, seed):
        """Test subjects of an instructor carry hierarchy names and student counts."""
        subject = await seed.subject()
        other = await seed.subject(name="Science", year="2023-2024")
        teacher = await seed.person("teacher", Role.INSTRUCTOR)
        alice = await seed.person("alice")
        await seed.assign(subject, teacher)
        await seed.assign(other, teacher)
        await seed.enroll(subject, alice)

        subjects = await enrollment_service.list_instructor_subjects(UUID(teacher.id))

        assert [s.name for s in subjects] == ["Mathematics", "Science"]
        assert subjects[0].school_year == "2024-2025"
        assert subjects[0].section_name == "Section A"
        assert subjects[0].grade_level_name == "Grade 7"
        assert subjects[0].semester_name == "First Semester"
        assert subjects[0].student_count == 1
        assert subjects[1].student_count == 0
