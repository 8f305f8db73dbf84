# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Request/response models for subject enrollment."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel

from classroom.models.common import Role


class AssignInstructorRequest(BaseModel):
    """Assign an instructor to a subject."""

    instructor_id: UUID


class AssignStudentRequest(BaseModel):
    """Enroll a student in a subject."""

    student_id: UUID


class PersonSummary(BaseModel):
    """Person record joined with profile names.

    Attributes:
        name: Display name built from the non-empty name parts, or the
            username when the profile has none.
    """

    id: UUID
    username: str
    email: str | None = None
    role: Role
    name: str
    first_name: str | None = None
    middle_name: str | None = None
    last_name: str | None = None
    department: str | None = None
    employee_id: str | None = None


class RosterStudent(PersonSummary):
    """Enrolled student."""

    enrolled_at: datetime


class RosterInstructor(PersonSummary):
    """Assigned instructor."""

    assigned_at: datetime


class InstructorSubjectSummary(BaseModel):
    """Subject taught by an instructor, with its place in the hierarchy."""

    id: UUID
    name: str
    code: str | None = None
    section_id: UUID
    section_name: str
    grade_level_name: str
    semester_name: str
    school_year: str
    student_count: int = 0
