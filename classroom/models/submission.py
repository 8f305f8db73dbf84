# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Request/response models for folders, submissions and grades."""

from datetime import date, datetime, time
from uuid import UUID

from pydantic import BaseModel, Field

from classroom.models.common import GradingStatus


class FileAttachment(BaseModel):
    """File to attach to a submission."""

    name: str
    type: str | None = None
    url: str


class FolderCreateRequest(BaseModel):
    """Create a folder in a subject."""

    name: str


class SubmissionCreateRequest(BaseModel):
    """Create a submission with its attached files."""

    folder_id: UUID | None = None
    name: str
    description: str | None = None
    due_date: date | None = None
    due_time: time | None = None
    max_attempts: int = Field(default=1, ge=1)
    is_visible: bool = False
    files: list[FileAttachment] = Field(default_factory=list)


class SubmissionUpdateRequest(BaseModel):
    """Update a submission.

    Only fields present in the request are applied. ``files`` replaces the
    complete attachment list when given (an empty list removes every file)
    and leaves attachments untouched when omitted.
    """

    name: str | None = None
    description: str | None = None
    due_date: date | None = None
    due_time: time | None = None
    max_attempts: int | None = Field(default=None, ge=1)
    is_visible: bool | None = None
    files: list[FileAttachment] | None = None


class GradeRequest(BaseModel):
    """Record a grade for one student."""

    student_id: UUID
    grade: float | None = None
    feedback: str | None = None


class BulkGradeRequest(BaseModel):
    """Record grades for many students at once."""

    grades: list[GradeRequest]


class SubmissionFileResponse(BaseModel):
    """Attached file."""

    id: UUID
    name: str
    type: str | None = None
    url: str


class SubmissionResponse(BaseModel):
    """Submission definition with its files."""

    id: UUID
    folder_id: UUID
    folder_name: str | None = None
    subject_id: UUID
    name: str
    description: str | None = None
    due_date: date | None = None
    due_time: time | None = None
    max_attempts: int
    is_visible: bool
    created_at: datetime
    files: list[SubmissionFileResponse] = Field(default_factory=list)


class FolderResponse(BaseModel):
    """Folder with its submissions."""

    id: UUID
    name: str
    subject_id: UUID
    created_at: datetime
    submission_count: int = 0
    submissions: list[SubmissionResponse] = Field(default_factory=list)


class StudentGradeResponse(BaseModel):
    """Stored grade row of one student on one submission."""

    id: UUID
    submission_id: UUID
    student_id: UUID
    attempt_number: int
    grade: float | None = None
    feedback: str | None = None
    graded_at: datetime | None = None


class GradingRosterEntry(BaseModel):
    """Enrolled student and where they stand on a submission."""

    student_id: UUID
    name: str
    email: str | None = None
    student_number: str | None = None
    student_submission_id: UUID | None = None
    attempt_number: int | None = None
    submitted_at: datetime | None = None
    grade: float | None = None
    feedback: str | None = None
    graded_at: datetime | None = None
    status: GradingStatus


class GradingRosterResponse(BaseModel):
    """Submission with every enrolled student's grading status."""

    submission: SubmissionResponse
    students: list[GradingRosterEntry]
