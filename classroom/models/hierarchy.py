# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Request/response models for the academic hierarchy.

Parent ids are optional on create requests so that a missing parent is
reported by the service as a ValidationError rather than rejected by the
transport layer with a different shape.
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from classroom.models.common import ORMModel


class SchoolYearCreateRequest(BaseModel):
    """Create a school year."""

    year: str = Field(description="Year label, e.g. 2024-2025")
    is_active: bool = False


class SchoolYearUpdateRequest(BaseModel):
    """Rename a school year."""

    year: str


class SemesterCreateRequest(BaseModel):
    """Create a semester under a school year."""

    name: str
    school_year_id: UUID | None = None


class GradeLevelCreateRequest(BaseModel):
    """Create a grade level under a semester."""

    name: str
    semester_id: UUID | None = None


class SectionCreateRequest(BaseModel):
    """Create a section under a grade level."""

    name: str
    grade_level_id: UUID | None = None


class SubjectCreateRequest(BaseModel):
    """Create a subject under a section."""

    name: str
    code: str | None = None
    section_id: UUID | None = None


class NameUpdateRequest(BaseModel):
    """Rename a semester, grade level or section."""

    name: str


class SubjectUpdateRequest(BaseModel):
    """Update a subject's name and code."""

    name: str
    code: str | None = None


class SchoolYearResponse(ORMModel):
    """School year with its semester count."""

    id: UUID
    year: str
    is_active: bool
    created_at: datetime
    semester_count: int = 0


class SemesterResponse(ORMModel):
    """Semester with its grade level count."""

    id: UUID
    name: str
    school_year_id: UUID
    created_at: datetime
    grade_level_count: int = 0


class GradeLevelResponse(ORMModel):
    """Grade level with its section count."""

    id: UUID
    name: str
    semester_id: UUID
    created_at: datetime
    section_count: int = 0


class SectionResponse(ORMModel):
    """Section with its subject count."""

    id: UUID
    name: str
    grade_level_id: UUID
    created_at: datetime
    subject_count: int = 0


class SubjectResponse(ORMModel):
    """Subject with enrollment counts."""

    id: UUID
    name: str
    code: str | None = None
    section_id: UUID
    created_at: datetime
    instructor_count: int = 0
    student_count: int = 0


class CreatedResponse(BaseModel):
    """Identifier of a newly created node."""

    id: UUID
