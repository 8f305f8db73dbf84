# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Hierarchy service for the academic structure.

This module provides the HierarchyService class for:
- School year, semester, grade level, section and subject CRUD
- Parent-exists-before-child validation
- Child listings with derived counts computed at read time
- Cascading deletes executed as ordered statements in one transaction
"""

from __future__ import annotations

import logging
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from classroom.core.exceptions import DuplicateError, NotFoundError, ValidationError
from classroom.domains.activity import ActivityLog, record_activity
from classroom.infrastructure.database import cascade
from classroom.infrastructure.database.connection import commit_or_raise, storage_operation
from classroom.infrastructure.database.models import (
    GradeLevel,
    SchoolYear,
    Section,
    Semester,
    Subject,
    SubjectInstructor,
    SubjectStudent,
)
from classroom.models.hierarchy import (
    GradeLevelCreateRequest,
    GradeLevelResponse,
    NameUpdateRequest,
    SchoolYearCreateRequest,
    SchoolYearResponse,
    SchoolYearUpdateRequest,
    SectionCreateRequest,
    SectionResponse,
    SemesterCreateRequest,
    SemesterResponse,
    SubjectCreateRequest,
    SubjectResponse,
    SubjectUpdateRequest,
)

logger = logging.getLogger(__name__)


class SchoolYearNotFoundError(NotFoundError):
    """Raised when school year is not found."""

    pass


class SemesterNotFoundError(NotFoundError):
    """Raised when semester is not found."""

    pass


class GradeLevelNotFoundError(NotFoundError):
    """Raised when grade level is not found."""

    pass


class SectionNotFoundError(NotFoundError):
    """Raised when section is not found."""

    pass


class SubjectNotFoundError(NotFoundError):
    """Raised when subject is not found."""

    pass


class ParentNotFoundError(ValidationError):
    """Raised when a create request names a missing or unknown parent."""

    pass


class SchoolYearExistsError(DuplicateError):
    """Raised when a school year label is already taken."""

    pass


def _require_text(value: str | None, label: str) -> str:
    """Return the trimmed value or raise ValidationError when blank."""
    text = (value or "").strip()
    if not text:
        raise ValidationError(f"{label} is required")
    return text


class HierarchyService:
    """Service for the SchoolYear -> Semester -> GradeLevel -> Section -> Subject chain.

    Attributes:
        db: Async database session.
        activity_log: Optional best-effort activity sink.
    """

    def __init__(self, db: AsyncSession, activity_log: ActivityLog | None = None) -> None:
        """Initialize hierarchy service.

        Args:
            db: Async database session.
            activity_log: Optional activity sink.
        """
        self.db = db
        self.activity_log = activity_log

    # =========================================================================
    # School years
    # =========================================================================

    @storage_operation
    async def create_school_year(
        self,
        request: SchoolYearCreateRequest,
        actor_id: str | None = None,
    ) -> SchoolYearResponse:
        """Create a new school year.

        Args:
            request: School year creation data.
            actor_id: ID of user performing the change.

        Returns:
            Created school year.

        Raises:
            ValidationError: If the year label is blank.
            SchoolYearExistsError: If the year label is already taken.
        """
        year = _require_text(request.year, "Year")
        await self._ensure_year_available(year)

        if request.is_active:
            await self._clear_active_year()

        school_year = SchoolYear(year=year, is_active=request.is_active)
        self.db.add(school_year)
        await commit_or_raise(self.db, f"School year {year} already exists")

        logger.info("Created school year: %s (%s)", school_year.year, school_year.id)
        await record_activity(self.activity_log, actor_id, "create", f"Created school year: {year}")

        return self._school_year_response(school_year, 0)

    @storage_operation
    async def list_school_years(self) -> list[SchoolYearResponse]:
        """List school years, most recent year first, with semester counts."""
        semester_count = (
            select(func.count(Semester.id))
            .where(Semester.school_year_id == SchoolYear.id)
            .correlate(SchoolYear)
            .scalar_subquery()
        )
        query = select(SchoolYear, semester_count).order_by(SchoolYear.year.desc())
        result = await self.db.execute(query)

        return [self._school_year_response(year, count) for year, count in result.all()]

    @storage_operation
    async def get_school_year(self, year_id: UUID) -> SchoolYearResponse:
        """Get school year by ID.

        Raises:
            SchoolYearNotFoundError: If year not found.
        """
        school_year = await self._get_school_year(year_id)
        count = await self._count(Semester.id, Semester.school_year_id, school_year.id)
        return self._school_year_response(school_year, count)

    @storage_operation
    async def update_school_year(
        self,
        year_id: UUID,
        request: SchoolYearUpdateRequest,
        actor_id: str | None = None,
    ) -> SchoolYearResponse:
        """Rename a school year.

        Raises:
            SchoolYearNotFoundError: If year not found.
            ValidationError: If the new label is blank.
            SchoolYearExistsError: If another year already uses the label.
        """
        school_year = await self._get_school_year(year_id)
        year = _require_text(request.year, "Year")

        if year != school_year.year:
            await self._ensure_year_available(year)
            school_year.year = year
            await commit_or_raise(self.db, f"School year {year} already exists")

        logger.info("Updated school year: %s", year_id)
        await record_activity(self.activity_log, actor_id, "update", f"Updated school year: {year}")

        return await self.get_school_year(year_id)

    @storage_operation
    async def set_active_school_year(
        self,
        year_id: UUID,
        actor_id: str | None = None,
    ) -> SchoolYearResponse:
        """Mark one school year active and clear the flag on all others.

        Raises:
            SchoolYearNotFoundError: If year not found.
        """
        school_year = await self._get_school_year(year_id)

        await self._clear_active_year()
        school_year.is_active = True
        await commit_or_raise(self.db)

        logger.info("Set school year %s as active", year_id)
        await record_activity(
            self.activity_log, actor_id, "update", f"Activated school year: {school_year.year}"
        )

        return await self.get_school_year(year_id)

    @storage_operation
    async def delete_school_year(self, year_id: UUID, actor_id: str | None = None) -> None:
        """Delete a school year and everything beneath it.

        Raises:
            SchoolYearNotFoundError: If year not found.
        """
        school_year = await self._get_school_year(year_id)
        label = school_year.year

        await cascade.delete_school_years(self.db, [school_year.id])
        await commit_or_raise(self.db)

        logger.info("Deleted school year: %s", year_id)
        await record_activity(self.activity_log, actor_id, "delete", f"Deleted school year: {label}")

    # =========================================================================
    # Semesters
    # =========================================================================

    @storage_operation
    async def create_semester(
        self,
        request: SemesterCreateRequest,
        actor_id: str | None = None,
    ) -> SemesterResponse:
        """Create a semester under a school year.

        Raises:
            ValidationError: If the name is blank.
            ParentNotFoundError: If the school year is missing or unknown.
        """
        name = _require_text(request.name, "Name")
        parent_id = await self._require_parent(SchoolYear, request.school_year_id, "School year")

        semester = Semester(name=name, school_year_id=parent_id)
        self.db.add(semester)
        await commit_or_raise(self.db)

        logger.info("Created semester: %s (%s)", semester.name, semester.id)
        await record_activity(self.activity_log, actor_id, "create", f"Created semester: {name}")

        return self._semester_response(semester, 0)

    @storage_operation
    async def list_semesters(self, school_year_id: UUID) -> list[SemesterResponse]:
        """List semesters of a school year by name, with grade level counts."""
        grade_level_count = (
            select(func.count(GradeLevel.id))
            .where(GradeLevel.semester_id == Semester.id)
            .correlate(Semester)
            .scalar_subquery()
        )
        query = (
            select(Semester, grade_level_count)
            .where(Semester.school_year_id == str(school_year_id))
            .order_by(Semester.name.asc())
        )
        result = await self.db.execute(query)

        return [self._semester_response(semester, count) for semester, count in result.all()]

    @storage_operation
    async def get_semester(self, semester_id: UUID) -> SemesterResponse:
        """Get semester by ID.

        Raises:
            SemesterNotFoundError: If semester not found.
        """
        semester = await self._get(Semester, semester_id, SemesterNotFoundError, "Semester")
        count = await self._count(GradeLevel.id, GradeLevel.semester_id, semester.id)
        return self._semester_response(semester, count)

    @storage_operation
    async def update_semester(
        self,
        semester_id: UUID,
        request: NameUpdateRequest,
        actor_id: str | None = None,
    ) -> SemesterResponse:
        """Rename a semester."""
        semester = await self._get(Semester, semester_id, SemesterNotFoundError, "Semester")
        semester.name = _require_text(request.name, "Name")
        await commit_or_raise(self.db)

        logger.info("Updated semester: %s", semester_id)
        await record_activity(
            self.activity_log, actor_id, "update", f"Updated semester: {semester.name}"
        )

        return await self.get_semester(semester_id)

    @storage_operation
    async def delete_semester(self, semester_id: UUID, actor_id: str | None = None) -> None:
        """Delete a semester and everything beneath it."""
        semester = await self._get(Semester, semester_id, SemesterNotFoundError, "Semester")
        name = semester.name

        await cascade.delete_semesters(self.db, [semester.id])
        await commit_or_raise(self.db)

        logger.info("Deleted semester: %s", semester_id)
        await record_activity(self.activity_log, actor_id, "delete", f"Deleted semester: {name}")

    # =========================================================================
    # Grade levels
    # =========================================================================

    @storage_operation
    async def create_grade_level(
        self,
        request: GradeLevelCreateRequest,
        actor_id: str | None = None,
    ) -> GradeLevelResponse:
        """Create a grade level under a semester.

        Raises:
            ValidationError: If the name is blank.
            ParentNotFoundError: If the semester is missing or unknown.
        """
        name = _require_text(request.name, "Name")
        parent_id = await self._require_parent(Semester, request.semester_id, "Semester")

        grade_level = GradeLevel(name=name, semester_id=parent_id)
        self.db.add(grade_level)
        await commit_or_raise(self.db)

        logger.info("Created grade level: %s (%s)", grade_level.name, grade_level.id)
        await record_activity(self.activity_log, actor_id, "create", f"Created grade level: {name}")

        return self._grade_level_response(grade_level, 0)

    @storage_operation
    async def list_grade_levels(self, semester_id: UUID) -> list[GradeLevelResponse]:
        """List grade levels of a semester by name, with section counts."""
        section_count = (
            select(func.count(Section.id))
            .where(Section.grade_level_id == GradeLevel.id)
            .correlate(GradeLevel)
            .scalar_subquery()
        )
        query = (
            select(GradeLevel, section_count)
            .where(GradeLevel.semester_id == str(semester_id))
            .order_by(GradeLevel.name.asc())
        )
        result = await self.db.execute(query)

        return [self._grade_level_response(level, count) for level, count in result.all()]

    @storage_operation
    async def get_grade_level(self, grade_level_id: UUID) -> GradeLevelResponse:
        """Get grade level by ID.

        Raises:
            GradeLevelNotFoundError: If grade level not found.
        """
        grade_level = await self._get(
            GradeLevel, grade_level_id, GradeLevelNotFoundError, "Grade level"
        )
        count = await self._count(Section.id, Section.grade_level_id, grade_level.id)
        return self._grade_level_response(grade_level, count)

    @storage_operation
    async def update_grade_level(
        self,
        grade_level_id: UUID,
        request: NameUpdateRequest,
        actor_id: str | None = None,
    ) -> GradeLevelResponse:
        """Rename a grade level."""
        grade_level = await self._get(
            GradeLevel, grade_level_id, GradeLevelNotFoundError, "Grade level"
        )
        grade_level.name = _require_text(request.name, "Name")
        await commit_or_raise(self.db)

        logger.info("Updated grade level: %s", grade_level_id)
        await record_activity(
            self.activity_log, actor_id, "update", f"Updated grade level: {grade_level.name}"
        )

        return await self.get_grade_level(grade_level_id)

    @storage_operation
    async def delete_grade_level(self, grade_level_id: UUID, actor_id: str | None = None) -> None:
        """Delete a grade level and everything beneath it."""
        grade_level = await self._get(
            GradeLevel, grade_level_id, GradeLevelNotFoundError, "Grade level"
        )
        name = grade_level.name

        await cascade.delete_grade_levels(self.db, [grade_level.id])
        await commit_or_raise(self.db)

        logger.info("Deleted grade level: %s", grade_level_id)
        await record_activity(self.activity_log, actor_id, "delete", f"Deleted grade level: {name}")

    # =========================================================================
    # Sections
    # =========================================================================

    @storage_operation
    async def create_section(
        self,
        request: SectionCreateRequest,
        actor_id: str | None = None,
    ) -> SectionResponse:
        """Create a section under a grade level.

        Raises:
            ValidationError: If the name is blank.
            ParentNotFoundError: If the grade level is missing or unknown.
        """
        name = _require_text(request.name, "Name")
        parent_id = await self._require_parent(GradeLevel, request.grade_level_id, "Grade level")

        section = Section(name=name, grade_level_id=parent_id)
        self.db.add(section)
        await commit_or_raise(self.db)

        logger.info("Created section: %s (%s)", section.name, section.id)
        await record_activity(self.activity_log, actor_id, "create", f"Created section: {name}")

        return self._section_response(section, 0)

    @storage_operation
    async def list_sections(self, grade_level_id: UUID) -> list[SectionResponse]:
        """List sections of a grade level by name, with subject counts."""
        subject_count = (
            select(func.count(Subject.id))
            .where(Subject.section_id == Section.id)
            .correlate(Section)
            .scalar_subquery()
        )
        query = (
            select(Section, subject_count)
            .where(Section.grade_level_id == str(grade_level_id))
            .order_by(Section.name.asc())
        )
        result = await self.db.execute(query)

        return [self._section_response(section, count) for section, count in result.all()]

    @storage_operation
    async def get_section(self, section_id: UUID) -> SectionResponse:
        """Get section by ID.

        Raises:
            SectionNotFoundError: If section not found.
        """
        section = await self._get(Section, section_id, SectionNotFoundError, "Section")
        count = await self._count(Subject.id, Subject.section_id, section.id)
        return self._section_response(section, count)

    @storage_operation
    async def update_section(
        self,
        section_id: UUID,
        request: NameUpdateRequest,
        actor_id: str | None = None,
    ) -> SectionResponse:
        """Rename a section."""
        section = await self._get(Section, section_id, SectionNotFoundError, "Section")
        section.name = _require_text(request.name, "Name")
        await commit_or_raise(self.db)

        logger.info("Updated section: %s", section_id)
        await record_activity(
            self.activity_log, actor_id, "update", f"Updated section: {section.name}"
        )

        return await self.get_section(section_id)

    @storage_operation
    async def delete_section(self, section_id: UUID, actor_id: str | None = None) -> None:
        """Delete a section and everything beneath it."""
        section = await self._get(Section, section_id, SectionNotFoundError, "Section")
        name = section.name

        await cascade.delete_sections(self.db, [section.id])
        await commit_or_raise(self.db)

        logger.info("Deleted section: %s", section_id)
        await record_activity(self.activity_log, actor_id, "delete", f"Deleted section: {name}")

    # =========================================================================
    # Subjects
    # =========================================================================

    @storage_operation
    async def create_subject(
        self,
        request: SubjectCreateRequest,
        actor_id: str | None = None,
    ) -> SubjectResponse:
        """Create a subject under a section.

        Raises:
            ValidationError: If the name is blank.
            ParentNotFoundError: If the section is missing or unknown.
        """
        name = _require_text(request.name, "Name")
        parent_id = await self._require_parent(Section, request.section_id, "Section")

        subject = Subject(
            name=name,
            code=(request.code or "").strip() or None,
            section_id=parent_id,
        )
        self.db.add(subject)
        await commit_or_raise(self.db)

        logger.info("Created subject: %s (%s)", subject.name, subject.id)
        await record_activity(self.activity_log, actor_id, "create", f"Created subject: {name}")

        return self._subject_response(subject, 0, 0)

    @storage_operation
    async def list_subjects(self, section_id: UUID) -> list[SubjectResponse]:
        """List subjects of a section by name, with instructor and student counts."""
        instructor_count = (
            select(func.count(SubjectInstructor.id))
            .where(SubjectInstructor.subject_id == Subject.id)
            .correlate(Subject)
            .scalar_subquery()
        )
        student_count = (
            select(func.count(SubjectStudent.id))
            .where(SubjectStudent.subject_id == Subject.id)
            .correlate(Subject)
            .scalar_subquery()
        )
        query = (
            select(Subject, instructor_count, student_count)
            .where(Subject.section_id == str(section_id))
            .order_by(Subject.name.asc())
        )
        result = await self.db.execute(query)

        return [
            self._subject_response(subject, instructors, students)
            for subject, instructors, students in result.all()
        ]

    @storage_operation
    async def get_subject(self, subject_id: UUID) -> SubjectResponse:
        """Get subject by ID.

        Raises:
            SubjectNotFoundError: If subject not found.
        """
        subject = await self._get(Subject, subject_id, SubjectNotFoundError, "Subject")
        instructors = await self._count(
            SubjectInstructor.id, SubjectInstructor.subject_id, subject.id
        )
        students = await self._count(SubjectStudent.id, SubjectStudent.subject_id, subject.id)
        return self._subject_response(subject, instructors, students)

    @storage_operation
    async def update_subject(
        self,
        subject_id: UUID,
        request: SubjectUpdateRequest,
        actor_id: str | None = None,
    ) -> SubjectResponse:
        """Update a subject's name and code."""
        subject = await self._get(Subject, subject_id, SubjectNotFoundError, "Subject")
        subject.name = _require_text(request.name, "Name")
        subject.code = (request.code or "").strip() or None
        await commit_or_raise(self.db)

        logger.info("Updated subject: %s", subject_id)
        await record_activity(
            self.activity_log, actor_id, "update", f"Updated subject: {subject.name}"
        )

        return await self.get_subject(subject_id)

    @storage_operation
    async def delete_subject(self, subject_id: UUID, actor_id: str | None = None) -> None:
        """Delete a subject with its coursework, attendance and enrollment rows."""
        subject = await self._get(Subject, subject_id, SubjectNotFoundError, "Subject")
        name = subject.name

        await cascade.delete_subjects(self.db, [subject.id])
        await commit_or_raise(self.db)

        logger.info("Deleted subject: %s", subject_id)
        await record_activity(self.activity_log, actor_id, "delete", f"Deleted subject: {name}")

    # =========================================================================
    # Helpers
    # =========================================================================

    async def _get(self, model, entity_id: UUID, error_cls: type[NotFoundError], label: str):
        """Get a row by primary key.

        Args:
            model: ORM model class.
            entity_id: Row identifier.
            error_cls: NotFoundError subclass to raise.
            label: Human-readable entity name.

        Returns:
            Model instance.

        Raises:
            NotFoundError: (error_cls) If not found.
        """
        result = await self.db.execute(select(model).where(model.id == str(entity_id)))
        instance = result.scalar_one_or_none()

        if not instance:
            raise error_cls(f"{label} {entity_id} not found")

        return instance

    async def _get_school_year(self, year_id: UUID) -> SchoolYear:
        return await self._get(SchoolYear, year_id, SchoolYearNotFoundError, "School year")

    async def _require_parent(self, model, parent_id: UUID | None, label: str) -> str:
        """Validate the parent reference of a create request.

        Returns:
            Parent id as stored.

        Raises:
            ParentNotFoundError: If parent_id is missing or does not exist.
        """
        if parent_id is None:
            raise ParentNotFoundError(f"{label} ID is required")

        result = await self.db.execute(
            select(func.count()).select_from(model).where(model.id == str(parent_id))
        )
        if not result.scalar():
            raise ParentNotFoundError(f"{label} {parent_id} not found")

        return str(parent_id)

    async def _count(self, column, parent_column, parent_id: str) -> int:
        """Count direct children of one parent."""
        result = await self.db.execute(
            select(func.count(column)).where(parent_column == parent_id)
        )
        return result.scalar() or 0

    async def _ensure_year_available(self, year: str) -> None:
        result = await self.db.execute(select(SchoolYear.id).where(SchoolYear.year == year))
        if result.scalar_one_or_none():
            raise SchoolYearExistsError(f"School year {year} already exists")

    async def _clear_active_year(self) -> None:
        await self.db.execute(
            update(SchoolYear)
            .where(SchoolYear.is_active.is_(True))
            .values(is_active=False)
            .execution_options(synchronize_session="fetch")
        )

    def _school_year_response(self, school_year: SchoolYear, count: int) -> SchoolYearResponse:
        return SchoolYearResponse(
            id=UUID(school_year.id),
            year=school_year.year,
            is_active=school_year.is_active,
            created_at=school_year.created_at,
            semester_count=count or 0,
        )

    def _semester_response(self, semester: Semester, count: int) -> SemesterResponse:
        return SemesterResponse(
            id=UUID(semester.id),
            name=semester.name,
            school_year_id=UUID(semester.school_year_id),
            created_at=semester.created_at,
            grade_level_count=count or 0,
        )

    def _grade_level_response(self, grade_level: GradeLevel, count: int) -> GradeLevelResponse:
        return GradeLevelResponse(
            id=UUID(grade_level.id),
            name=grade_level.name,
            semester_id=UUID(grade_level.semester_id),
            created_at=grade_level.created_at,
            section_count=count or 0,
        )

    def _section_response(self, section: Section, count: int) -> SectionResponse:
        return SectionResponse(
            id=UUID(section.id),
            name=section.name,
            grade_level_id=UUID(section.grade_level_id),
            created_at=section.created_at,
            subject_count=count or 0,
        )

    def _subject_response(
        self,
        subject: Subject,
        instructor_count: int,
        student_count: int,
    ) -> SubjectResponse:
        return SubjectResponse(
            id=UUID(subject.id),
            name=subject.name,
            code=subject.code,
            section_id=UUID(subject.section_id),
            created_at=subject.created_at,
            instructor_count=instructor_count or 0,
            student_count=student_count or 0,
        )
