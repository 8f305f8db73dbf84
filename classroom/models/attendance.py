# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Request/response models for attendance sessions and statistics."""

from datetime import date, datetime, time
from uuid import UUID

from pydantic import BaseModel, Field

from classroom.models.common import AttendanceStatus


class AttendanceMark(BaseModel):
    """Status of one student; a missing status means absent."""

    student_id: UUID
    status: AttendanceStatus | None = None


class AttendanceSessionCreateRequest(BaseModel):
    """Create a session and its initial records.

    Attributes:
        roster: Students expected in the session. Any roster student without
            an explicit mark is recorded as absent.
        marks: Explicit statuses; students not on the roster are recorded too.
    """

    session_date: date | None = None
    session_time: time | None = None
    is_visible: bool = False
    roster: list[UUID] = Field(default_factory=list)
    marks: list[AttendanceMark] = Field(default_factory=list)


class AttendanceRecordUpdateRequest(BaseModel):
    """Set one student's status in a session."""

    status: AttendanceStatus


class AttendanceRecordsReplaceRequest(BaseModel):
    """Replace every record of a session."""

    marks: list[AttendanceMark]


class SessionStats(BaseModel):
    """Record counts of one session, by status."""

    session_id: UUID
    present: int = 0
    absent: int = 0
    late: int = 0
    excused: int = 0
    total: int = 0


class AttendanceSessionSummary(BaseModel):
    """Session with its record counts."""

    id: UUID
    subject_id: UUID
    session_date: date
    session_time: time | None = None
    is_visible: bool
    created_at: datetime
    stats: SessionStats


class AttendanceRecordResponse(BaseModel):
    """One student's record with display name."""

    student_id: UUID
    name: str
    status: AttendanceStatus


class AttendanceSessionDetail(AttendanceSessionSummary):
    """Session with every record."""

    records: list[AttendanceRecordResponse] = Field(default_factory=list)


class SubjectAttendanceStats(BaseModel):
    """Attendance aggregated over every session of a subject.

    Attributes:
        total_students: Size of the enrollment roster, independent of
            attendance history.
        average_attendance: Integer percentage of records that are present
            or late; 0 when there are no records.
    """

    subject_id: UUID
    total_sessions: int = 0
    total_present: int = 0
    total_absent: int = 0
    total_late: int = 0
    total_excused: int = 0
    total_records: int = 0
    total_students: int = 0
    average_attendance: int = 0


class QrTokenRequest(BaseModel):
    """Open a session for self check-in.

    Attributes:
        expires_in_minutes: Lifetime of the token.
        late_after_minutes: Minutes after the session start from which a
            check-in is recorded as late.
    """

    expires_in_minutes: int = Field(default=60, gt=0)
    late_after_minutes: int = Field(default=15, ge=0)


class QrTokenResponse(BaseModel):
    """Check-in token issued for a session."""

    session_id: UUID
    token: str
    expires_at: datetime
    late_after_minutes: int


class QrSessionPreview(BaseModel):
    """Session behind a check-in token, as seen by a student before checking in."""

    session_id: UUID
    subject_id: UUID
    subject_name: str
    session_date: date
    session_time: time | None = None
    expires_at: datetime | None = None
    will_be_marked_as: AttendanceStatus


class QrCheckInRequest(BaseModel):
    """Token scanned by a student."""

    token: str = Field(..., min_length=1)


class QrCheckInResponse(BaseModel):
    """Outcome of a self check-in.

    Attributes:
        already_marked: True when the student was already present or late;
            the stored status is returned unchanged.
    """

    session_id: UUID
    student_id: UUID
    status: AttendanceStatus
    already_marked: bool = False
