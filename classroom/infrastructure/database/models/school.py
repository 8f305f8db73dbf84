# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Academic hierarchy and enrollment tables.

SchoolYear -> Semester -> GradeLevel -> Section -> Subject, plus the
instructor/student join tables hanging off Subject.

Foreign keys carry no ON DELETE CASCADE: descendants are removed
explicitly, leaf first (see classroom.infrastructure.database.cascade).
"""

from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from classroom.infrastructure.database.models.base import (
    Base,
    TimestampMixin,
    UUIDPrimaryKeyMixin,
)
from classroom.utils.datetime import utc_now


class SchoolYear(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """School year, e.g. ``2024-2025``."""

    __tablename__ = "school_years"

    year: Mapped[str] = mapped_column(String(20), unique=True, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)


class Semester(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """Semester within a school year."""

    __tablename__ = "semesters"

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    school_year_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("school_years.id"), nullable=False, index=True
    )


class GradeLevel(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """Grade level within a semester."""

    __tablename__ = "grade_levels"

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    semester_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("semesters.id"), nullable=False, index=True
    )


class Section(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """Section within a grade level."""

    __tablename__ = "sections"

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    grade_level_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("grade_levels.id"), nullable=False, index=True
    )


class Subject(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """Subject taught to a section."""

    __tablename__ = "subjects"

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    code: Mapped[str | None] = mapped_column(String(50), nullable=True)
    section_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("sections.id"), nullable=False, index=True
    )


class SubjectInstructor(UUIDPrimaryKeyMixin, Base):
    """Instructor assigned to a subject."""

    __tablename__ = "subject_instructors"
    __table_args__ = (
        UniqueConstraint("subject_id", "instructor_id", name="uq_subject_instructor"),
    )

    subject_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("subjects.id"), nullable=False, index=True
    )
    instructor_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id"), nullable=False, index=True
    )
    assigned_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now
    )


class SubjectStudent(UUIDPrimaryKeyMixin, Base):
    """Student enrolled in a subject."""

    __tablename__ = "subject_students"
    __table_args__ = (
        UniqueConstraint("subject_id", "student_id", name="uq_subject_student"),
    )

    subject_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("subjects.id"), nullable=False, index=True
    )
    student_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id"), nullable=False, index=True
    )
    enrolled_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now
    )
