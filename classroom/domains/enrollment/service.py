# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Enrollment service for subject rosters.

This module provides the EnrollmentService class for:
- Assigning instructors and enrolling students in subjects
- Removing assignments (idempotent)
- Roster listings with profile display names
- Instructor subject listings with hierarchy context
"""

from __future__ import annotations

import logging
from uuid import UUID

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from classroom.core.exceptions import DuplicateError, ValidationError
from classroom.domains.activity import ActivityLog, record_activity
from classroom.domains.enrollment.directory import (
    PersonDirectory,
    SqlPersonDirectory,
    display_name,
    roster_order,
)
from classroom.domains.hierarchy.service import SubjectNotFoundError
from classroom.infrastructure.database.connection import commit_or_raise, storage_operation
from classroom.infrastructure.database.models import (
    GradeLevel,
    Profile,
    SchoolYear,
    Section,
    Semester,
    Subject,
    SubjectInstructor,
    SubjectStudent,
    User,
)
from classroom.models.common import Role
from classroom.models.enrollment import (
    InstructorSubjectSummary,
    PersonSummary,
    RosterInstructor,
    RosterStudent,
)

logger = logging.getLogger(__name__)


class InvalidRoleError(ValidationError):
    """Raised when a person's role does not fit the assignment."""

    pass


class AlreadyAssignedError(DuplicateError):
    """Raised when an instructor is already assigned to the subject."""

    pass


class AlreadyEnrolledError(DuplicateError):
    """Raised when a student is already enrolled in the subject."""

    pass


class EnrollmentService:
    """Service managing subject instructors and students.

    Attributes:
        db: Async database session.
        directory: Person directory used for role validation.
        activity_log: Optional best-effort activity sink.
    """

    def __init__(
        self,
        db: AsyncSession,
        directory: PersonDirectory | None = None,
        activity_log: ActivityLog | None = None,
    ) -> None:
        """Initialize enrollment service.

        Args:
            db: Async database session.
            directory: Person directory; defaults to the users table.
            activity_log: Optional activity sink.
        """
        self.db = db
        self.directory = directory or SqlPersonDirectory(db)
        self.activity_log = activity_log

    @storage_operation
    async def assign_instructor(
        self,
        subject_id: UUID,
        instructor_id: UUID,
        actor_id: str | None = None,
    ) -> None:
        """Assign an instructor to a subject.

        Args:
            subject_id: Subject identifier.
            instructor_id: Person to assign.
            actor_id: ID of user performing the change.

        Raises:
            SubjectNotFoundError: If subject not found.
            PersonNotFoundError: If the person is unknown.
            InvalidRoleError: If the person is not an instructor.
            AlreadyAssignedError: If the pair already exists.
        """
        subject = await self._get_subject(subject_id)
        await self._require_role(instructor_id, Role.INSTRUCTOR)

        message = f"Instructor {instructor_id} is already assigned to subject {subject_id}"
        existing = await self.db.execute(
            select(SubjectInstructor.id).where(
                SubjectInstructor.subject_id == subject.id,
                SubjectInstructor.instructor_id == str(instructor_id),
            )
        )
        if existing.scalar_one_or_none():
            raise AlreadyAssignedError(message)

        self.db.add(
            SubjectInstructor(subject_id=subject.id, instructor_id=str(instructor_id))
        )
        try:
            await commit_or_raise(self.db, message)
        except DuplicateError as e:
            raise AlreadyAssignedError(e.message) from e

        logger.info("Assigned instructor %s to subject %s", instructor_id, subject_id)
        await record_activity(
            self.activity_log,
            actor_id,
            "assign",
            f"Assigned instructor to subject: {subject.name}",
        )

    @storage_operation
    async def assign_student(
        self,
        subject_id: UUID,
        student_id: UUID,
        actor_id: str | None = None,
    ) -> None:
        """Enroll a student in a subject.

        Raises:
            SubjectNotFoundError: If subject not found.
            PersonNotFoundError: If the person is unknown.
            InvalidRoleError: If the person is not a student.
            AlreadyEnrolledError: If the pair already exists.
        """
        subject = await self._get_subject(subject_id)
        await self._require_role(student_id, Role.STUDENT)

        message = f"Student {student_id} is already enrolled in subject {subject_id}"
        existing = await self.db.execute(
            select(SubjectStudent.id).where(
                SubjectStudent.subject_id == subject.id,
                SubjectStudent.student_id == str(student_id),
            )
        )
        if existing.scalar_one_or_none():
            raise AlreadyEnrolledError(message)

        self.db.add(SubjectStudent(subject_id=subject.id, student_id=str(student_id)))
        try:
            await commit_or_raise(self.db, message)
        except DuplicateError as e:
            raise AlreadyEnrolledError(e.message) from e

        logger.info("Enrolled student %s in subject %s", student_id, subject_id)
        await record_activity(
            self.activity_log,
            actor_id,
            "enroll",
            f"Enrolled student in subject: {subject.name}",
        )

    @storage_operation
    async def remove_instructor(
        self,
        subject_id: UUID,
        instructor_id: UUID,
        actor_id: str | None = None,
    ) -> None:
        """Remove an instructor from a subject. Succeeds when nothing is assigned."""
        result = await self.db.execute(
            delete(SubjectInstructor)
            .where(
                SubjectInstructor.subject_id == str(subject_id),
                SubjectInstructor.instructor_id == str(instructor_id),
            )
            .execution_options(synchronize_session=False)
        )
        await commit_or_raise(self.db)

        if result.rowcount:
            logger.info("Removed instructor %s from subject %s", instructor_id, subject_id)
            await record_activity(
                self.activity_log, actor_id, "unassign", "Removed instructor from subject"
            )

    @storage_operation
    async def remove_student(
        self,
        subject_id: UUID,
        student_id: UUID,
        actor_id: str | None = None,
    ) -> None:
        """Remove a student from a subject. Succeeds when not enrolled."""
        result = await self.db.execute(
            delete(SubjectStudent)
            .where(
                SubjectStudent.subject_id == str(subject_id),
                SubjectStudent.student_id == str(student_id),
            )
            .execution_options(synchronize_session=False)
        )
        await commit_or_raise(self.db)

        if result.rowcount:
            logger.info("Removed student %s from subject %s", student_id, subject_id)
            await record_activity(
                self.activity_log, actor_id, "unenroll", "Removed student from subject"
            )

    @storage_operation
    async def list_students(self, subject_id: UUID) -> list[RosterStudent]:
        """List students enrolled in a subject.

        Raises:
            SubjectNotFoundError: If subject not found.
        """
        subject = await self._get_subject(subject_id)

        query = (
            select(User, Profile, SubjectStudent.enrolled_at)
            .join(SubjectStudent, SubjectStudent.student_id == User.id)
            .outerjoin(Profile, Profile.user_id == User.id)
            .where(SubjectStudent.subject_id == subject.id)
            .order_by(*roster_order())
        )
        result = await self.db.execute(query)

        return [
            RosterStudent(**self._person_fields(user, profile), enrolled_at=enrolled_at)
            for user, profile, enrolled_at in result.all()
        ]

    @storage_operation
    async def list_instructors(self, subject_id: UUID) -> list[RosterInstructor]:
        """List instructors assigned to a subject.

        Raises:
            SubjectNotFoundError: If subject not found.
        """
        subject = await self._get_subject(subject_id)

        query = (
            select(User, Profile, SubjectInstructor.assigned_at)
            .join(SubjectInstructor, SubjectInstructor.instructor_id == User.id)
            .outerjoin(Profile, Profile.user_id == User.id)
            .where(SubjectInstructor.subject_id == subject.id)
            .order_by(*roster_order())
        )
        result = await self.db.execute(query)

        return [
            RosterInstructor(**self._person_fields(user, profile), assigned_at=assigned_at)
            for user, profile, assigned_at in result.all()
        ]

    @storage_operation
    async def list_available(self, role: Role) -> list[PersonSummary]:
        """List every person holding a role, in roster order."""
        query = (
            select(User, Profile)
            .outerjoin(Profile, Profile.user_id == User.id)
            .where(User.role == role)
            .order_by(*roster_order())
        )
        result = await self.db.execute(query)

        return [PersonSummary(**self._person_fields(user, profile)) for user, profile in result.all()]

    @storage_operation
    async def list_instructor_subjects(self, instructor_id: UUID | str) -> list[InstructorSubjectSummary]:
        """List subjects taught by an instructor.

        Subjects are ordered by school year (most recent first), then by
        subject name.
        """
        student_count = (
            select(func.count(SubjectStudent.id))
            .where(SubjectStudent.subject_id == Subject.id)
            .correlate(Subject)
            .scalar_subquery()
        )
        query = (
            select(
                Subject,
                Section.name,
                GradeLevel.name,
                Semester.name,
                SchoolYear.year,
                student_count,
            )
            .join(SubjectInstructor, SubjectInstructor.subject_id == Subject.id)
            .join(Section, Section.id == Subject.section_id)
            .join(GradeLevel, GradeLevel.id == Section.grade_level_id)
            .join(Semester, Semester.id == GradeLevel.semester_id)
            .join(SchoolYear, SchoolYear.id == Semester.school_year_id)
            .where(SubjectInstructor.instructor_id == str(instructor_id))
            .order_by(SchoolYear.year.desc(), Subject.name.asc())
        )
        result = await self.db.execute(query)

        return [
            InstructorSubjectSummary(
                id=UUID(subject.id),
                name=subject.name,
                code=subject.code,
                section_id=UUID(subject.section_id),
                section_name=section_name,
                grade_level_name=grade_level_name,
                semester_name=semester_name,
                school_year=school_year,
                student_count=count or 0,
            )
            for subject, section_name, grade_level_name, semester_name, school_year, count in result.all()
        ]

    async def _get_subject(self, subject_id: UUID) -> Subject:
        """Get subject by ID.

        Raises:
            SubjectNotFoundError: If subject not found.
        """
        result = await self.db.execute(select(Subject).where(Subject.id == str(subject_id)))
        subject = result.scalar_one_or_none()

        if not subject:
            raise SubjectNotFoundError(f"Subject {subject_id} not found")

        return subject

    async def _require_role(self, person_id: UUID, expected: Role) -> None:
        role = await self.directory.role_of(person_id)

        if role != expected:
            raise InvalidRoleError(
                f"Person {person_id} has role {role.value}, expected {expected.value}"
            )

    def _person_fields(self, user: User, profile: Profile | None) -> dict:
        first = profile.first_name if profile else None
        middle = profile.middle_name if profile else None
        last = profile.last_name if profile else None

        return {
            "id": UUID(user.id),
            "username": user.username,
            "email": user.email,
            "role": user.role,
            "name": display_name(first, middle, last, user.username),
            "first_name": first,
            "middle_name": middle,
            "last_name": last,
            "department": profile.department if profile else None,
            "employee_id": profile.employee_id if profile else None,
        }
