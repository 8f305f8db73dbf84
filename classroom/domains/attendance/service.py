# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Attendance service.

This module provides the AttendanceService class for:
- Creating sessions with their initial records in one transaction
- Updating or replacing the records of a session
- Self check-in of students through an expiring token
- Per-session and per-subject attendance statistics

Sessions are containers: after creation only their records and check-in
token change, or the whole session is deleted. Statistics are recomputed from the stored rows on
every read.
"""

from __future__ import annotations

import logging
import secrets
from collections.abc import Sequence
from datetime import date, datetime, time, timedelta, timezone
from uuid import UUID

from sqlalchemy import case, delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from classroom.core.exceptions import NotFoundError, ValidationError
from classroom.domains.activity import ActivityLog, record_activity
from classroom.domains.enrollment.directory import display_name, roster_order
from classroom.domains.hierarchy.service import SubjectNotFoundError
from classroom.infrastructure.database import cascade
from classroom.infrastructure.database.connection import commit_or_raise, storage_operation
from classroom.infrastructure.database.models import (
    AttendanceRecord,
    AttendanceSession,
    Profile,
    Subject,
    SubjectStudent,
    User,
)
from classroom.infrastructure.database.models.base import new_id
from classroom.models.attendance import (
    AttendanceMark,
    AttendanceRecordResponse,
    AttendanceRecordsReplaceRequest,
    AttendanceRecordUpdateRequest,
    AttendanceSessionCreateRequest,
    AttendanceSessionDetail,
    AttendanceSessionSummary,
    QrCheckInResponse,
    QrSessionPreview,
    QrTokenRequest,
    QrTokenResponse,
    SessionStats,
    SubjectAttendanceStats,
)
from classroom.models.common import AttendanceStatus
from classroom.utils.datetime import ensure_utc, utc_now
from classroom.utils.numbers import percentage

logger = logging.getLogger(__name__)

DEFAULT_LATE_AFTER_MINUTES = 15
QR_TOKEN_BYTES = 32


class AttendanceSessionNotFoundError(NotFoundError):
    """Raised when attendance session is not found."""

    pass


class InvalidQrTokenError(NotFoundError):
    """Raised when no session carries the scanned token."""

    pass


class QrTokenExpiredError(ValidationError):
    """Raised when a check-in token is past its expiry."""

    pass


class StudentNotEnrolledError(ValidationError):
    """Raised when a student checks in to a subject they are not enrolled in."""

    pass


def resolve_marks(
    roster: Sequence[UUID],
    marks: Sequence[AttendanceMark],
) -> dict[str, AttendanceStatus]:
    """Work out the initial status of every student in a session.

    Roster students without an explicit mark, and marks without a status,
    are recorded as absent. A later mark for the same student overrides an
    earlier one.

    Args:
        roster: Students expected in the session.
        marks: Explicit statuses.

    Returns:
        Mapping of student id to status, roster order first.
    """
    statuses = {str(student_id): AttendanceStatus.ABSENT for student_id in roster}
    for mark in marks:
        statuses[str(mark.student_id)] = mark.status or AttendanceStatus.ABSENT
    return statuses


def check_in_status(
    session_date: date,
    session_time: time | None,
    late_after_minutes: int | None,
    now: datetime,
) -> AttendanceStatus:
    """Status of a self check-in made at ``now``.

    The session starts at its date and time (midnight when no time is set),
    read as UTC. A check-in after start plus the late allowance is late.
    """
    if late_after_minutes is None:
        late_after_minutes = DEFAULT_LATE_AFTER_MINUTES

    start = datetime.combine(session_date, session_time or time(0), tzinfo=timezone.utc)
    cutoff = start + timedelta(minutes=late_after_minutes)

    return AttendanceStatus.LATE if now > cutoff else AttendanceStatus.PRESENT


def _count_status(status: AttendanceStatus):
    return func.coalesce(func.sum(case((AttendanceRecord.status == status, 1), else_=0)), 0)


class AttendanceService:
    """Service for attendance sessions, records and statistics.

    Attributes:
        db: Async database session.
        activity_log: Optional best-effort activity sink.
    """

    def __init__(self, db: AsyncSession, activity_log: ActivityLog | None = None) -> None:
        self.db = db
        self.activity_log = activity_log

    @storage_operation
    async def create_session(
        self,
        subject_id: UUID,
        request: AttendanceSessionCreateRequest,
        actor_id: str | None = None,
    ) -> AttendanceSessionDetail:
        """Create a session and its initial records.

        The session row and every record are written in one transaction;
        on failure nothing is stored.

        Args:
            subject_id: Subject the session belongs to.
            request: Date, optional time, visibility, roster and marks.
            actor_id: ID of user performing the change.

        Returns:
            Created session with records.

        Raises:
            SubjectNotFoundError: If subject not found.
            ValidationError: If the session date is missing.
        """
        subject = await self._get_subject(subject_id)
        if request.session_date is None:
            raise ValidationError("Session date is required")

        session = AttendanceSession(
            id=new_id(),
            subject_id=subject.id,
            session_date=request.session_date,
            session_time=request.session_time,
            is_visible=request.is_visible,
        )
        self.db.add(session)

        statuses = resolve_marks(request.roster, request.marks)
        self.db.add_all(
            [
                AttendanceRecord(session_id=session.id, student_id=student_id, status=status)
                for student_id, status in statuses.items()
            ]
        )
        await commit_or_raise(self.db)

        logger.info(
            "Created attendance session %s for subject %s with %d records",
            session.id,
            subject.id,
            len(statuses),
        )
        await record_activity(
            self.activity_log,
            actor_id,
            "create",
            f"Created attendance session for {subject.name} on {request.session_date.isoformat()}",
        )

        return await self.get_session(subject_id, UUID(session.id))

    @storage_operation
    async def update_record(
        self,
        subject_id: UUID,
        session_id: UUID,
        student_id: UUID,
        request: AttendanceRecordUpdateRequest,
        actor_id: str | None = None,
    ) -> AttendanceRecordResponse:
        """Set one student's status, creating the record when missing.

        Raises:
            AttendanceSessionNotFoundError: If the session does not exist in the subject.
        """
        session = await self._get_session(subject_id, session_id)

        result = await self.db.execute(
            select(AttendanceRecord).where(
                AttendanceRecord.session_id == session.id,
                AttendanceRecord.student_id == str(student_id),
            )
        )
        record = result.scalar_one_or_none()

        if record is None:
            record = AttendanceRecord(session_id=session.id, student_id=str(student_id))
            self.db.add(record)
        record.status = request.status

        await commit_or_raise(self.db, "Attendance record was created concurrently, retry the request")

        logger.info(
            "Set attendance of student %s in session %s to %s",
            student_id,
            session_id,
            request.status.value,
        )
        await record_activity(
            self.activity_log, actor_id, "update", "Updated attendance record"
        )

        name = await self._student_name(record.student_id)
        return AttendanceRecordResponse(
            student_id=UUID(record.student_id), name=name, status=record.status
        )

    @storage_operation
    async def replace_records(
        self,
        subject_id: UUID,
        session_id: UUID,
        request: AttendanceRecordsReplaceRequest,
        actor_id: str | None = None,
    ) -> AttendanceSessionDetail:
        """Replace every record of a session in one transaction.

        Raises:
            AttendanceSessionNotFoundError: If the session does not exist in the subject.
        """
        session = await self._get_session(subject_id, session_id)

        await self.db.execute(
            delete(AttendanceRecord)
            .where(AttendanceRecord.session_id == session.id)
            .execution_options(synchronize_session=False)
        )
        statuses = resolve_marks([], request.marks)
        self.db.add_all(
            [
                AttendanceRecord(session_id=session.id, student_id=student_id, status=status)
                for student_id, status in statuses.items()
            ]
        )
        await commit_or_raise(self.db)

        logger.info("Replaced %d records of session %s", len(statuses), session_id)
        await record_activity(
            self.activity_log, actor_id, "update", "Updated attendance session records"
        )

        return await self.get_session(subject_id, session_id)

    @storage_operation
    async def delete_session(
        self, subject_id: UUID, session_id: UUID, actor_id: str | None = None
    ) -> None:
        """Delete a session and its records.

        Raises:
            AttendanceSessionNotFoundError: If the session does not exist in the subject.
        """
        session = await self._get_session(subject_id, session_id)

        await cascade.delete_attendance_sessions(self.db, [session.id])
        await commit_or_raise(self.db)

        logger.info("Deleted attendance session: %s", session_id)
        await record_activity(
            self.activity_log,
            actor_id,
            "delete",
            f"Deleted attendance session on {session.session_date.isoformat()}",
        )

    @storage_operation
    async def get_session(self, subject_id: UUID, session_id: UUID) -> AttendanceSessionDetail:
        """Get a session with every record and its statistics.

        Records are ordered like the enrollment roster.

        Raises:
            AttendanceSessionNotFoundError: If the session does not exist in the subject.
        """
        session = await self._get_session(subject_id, session_id)

        query = (
            select(AttendanceRecord, User, Profile)
            .outerjoin(User, User.id == AttendanceRecord.student_id)
            .outerjoin(Profile, Profile.user_id == User.id)
            .where(AttendanceRecord.session_id == session.id)
            .order_by(*roster_order())
        )
        result = await self.db.execute(query)

        records = [
            AttendanceRecordResponse(
                student_id=UUID(record.student_id),
                name=self._name(record.student_id, user, profile),
                status=record.status,
            )
            for record, user, profile in result.all()
        ]
        stats = await self.get_session_stats(subject_id, session_id)

        return AttendanceSessionDetail(
            **self._summary_fields(session, stats),
            records=records,
        )

    @storage_operation
    async def list_sessions(self, subject_id: UUID) -> list[AttendanceSessionSummary]:
        """List sessions of a subject, latest first, with record counts."""
        result = await self.db.execute(
            select(AttendanceSession)
            .where(AttendanceSession.subject_id == str(subject_id))
            .order_by(
                AttendanceSession.session_date.desc(),
                AttendanceSession.session_time.desc(),
            )
        )
        sessions = result.scalars().all()
        if not sessions:
            return []

        counts_result = await self.db.execute(
            select(AttendanceRecord.session_id, AttendanceRecord.status, func.count())
            .where(AttendanceRecord.session_id.in_([s.id for s in sessions]))
            .group_by(AttendanceRecord.session_id, AttendanceRecord.status)
        )
        counts: dict[str, dict[AttendanceStatus, int]] = {}
        for session_id, status, count in counts_result.all():
            counts.setdefault(session_id, {})[AttendanceStatus(status)] = count

        return [
            AttendanceSessionSummary(
                **self._summary_fields(session, self._stats(session.id, counts.get(session.id, {})))
            )
            for session in sessions
        ]

    @storage_operation
    async def get_session_stats(self, subject_id: UUID, session_id: UUID) -> SessionStats:
        """Count the records of a session by status.

        Raises:
            AttendanceSessionNotFoundError: If the session does not exist in the subject.
        """
        session = await self._get_session(subject_id, session_id)

        result = await self.db.execute(
            select(AttendanceRecord.status, func.count())
            .where(AttendanceRecord.session_id == session.id)
            .group_by(AttendanceRecord.status)
        )
        counts = {AttendanceStatus(status): count for status, count in result.all()}

        return self._stats(session.id, counts)

    @storage_operation
    async def get_subject_stats(self, subject_id: UUID) -> SubjectAttendanceStats:
        """Aggregate attendance over every session of a subject.

        Present and late both count as attended. A subject without sessions
        yields all-zero statistics.

        Raises:
            SubjectNotFoundError: If subject not found.
        """
        subject = await self._get_subject(subject_id)

        sessions_result = await self.db.execute(
            select(func.count(AttendanceSession.id)).where(
                AttendanceSession.subject_id == subject.id
            )
        )
        total_sessions = sessions_result.scalar() or 0

        records_result = await self.db.execute(
            select(
                _count_status(AttendanceStatus.PRESENT),
                _count_status(AttendanceStatus.ABSENT),
                _count_status(AttendanceStatus.LATE),
                _count_status(AttendanceStatus.EXCUSED),
                func.count(AttendanceRecord.id),
            )
            .select_from(AttendanceRecord)
            .join(AttendanceSession, AttendanceSession.id == AttendanceRecord.session_id)
            .where(AttendanceSession.subject_id == subject.id)
        )
        present, absent, late, excused, total_records = records_result.one()

        students_result = await self.db.execute(
            select(func.count(SubjectStudent.id)).where(SubjectStudent.subject_id == subject.id)
        )
        total_students = students_result.scalar() or 0

        present = int(present or 0)
        late = int(late or 0)
        total_records = int(total_records or 0)

        return SubjectAttendanceStats(
            subject_id=UUID(subject.id),
            total_sessions=total_sessions,
            total_present=present,
            total_absent=int(absent or 0),
            total_late=late,
            total_excused=int(excused or 0),
            total_records=total_records,
            total_students=total_students,
            average_attendance=percentage(present + late, total_records),
        )

    # =========================================================================
    # Self check-in
    # =========================================================================

    @storage_operation
    async def generate_qr_token(
        self,
        subject_id: UUID,
        session_id: UUID,
        request: QrTokenRequest,
        actor_id: str | None = None,
    ) -> QrTokenResponse:
        """Issue a check-in token for a session.

        A new token replaces any earlier one, so only the latest token of a
        session is accepted.

        Args:
            subject_id: Subject the session belongs to.
            session_id: Session to open for check-in.
            request: Token lifetime and late allowance.
            actor_id: ID of user performing the change.

        Returns:
            The token with its expiry.

        Raises:
            AttendanceSessionNotFoundError: If the session does not exist in the subject.
        """
        session = await self._get_session(subject_id, session_id)

        session.qr_token = secrets.token_hex(QR_TOKEN_BYTES)
        session.qr_expires_at = utc_now() + timedelta(minutes=request.expires_in_minutes)
        session.allow_late_after_minutes = request.late_after_minutes
        await commit_or_raise(self.db)

        logger.info(
            "Issued check-in token for session %s, expires at %s",
            session_id,
            session.qr_expires_at.isoformat(),
        )
        await record_activity(
            self.activity_log, actor_id, "update", "Opened attendance session for check-in"
        )

        return QrTokenResponse(
            session_id=UUID(session.id),
            token=session.qr_token,
            expires_at=session.qr_expires_at,
            late_after_minutes=session.allow_late_after_minutes,
        )

    @storage_operation
    async def preview_qr_token(
        self, token: str, now: datetime | None = None
    ) -> QrSessionPreview:
        """Describe the session behind a token and the status a check-in would get.

        Raises:
            InvalidQrTokenError: If no session carries the token.
            QrTokenExpiredError: If the token has expired.
        """
        now = ensure_utc(now) if now else utc_now()
        session = await self._get_session_by_token(token, now)
        subject = await self._get_subject(UUID(session.subject_id))

        return QrSessionPreview(
            session_id=UUID(session.id),
            subject_id=UUID(subject.id),
            subject_name=subject.name,
            session_date=session.session_date,
            session_time=session.session_time,
            expires_at=ensure_utc(session.qr_expires_at) if session.qr_expires_at else None,
            will_be_marked_as=check_in_status(
                session.session_date,
                session.session_time,
                session.allow_late_after_minutes,
                now,
            ),
        )

    @storage_operation
    async def check_in(
        self,
        token: str,
        student_id: UUID,
        now: datetime | None = None,
    ) -> QrCheckInResponse:
        """Mark a student present, or late, from a scanned token.

        A student already recorded as present or late keeps that status.
        An absent or excused record is overwritten; a missing one is
        created.

        Args:
            token: Scanned check-in token.
            student_id: Student checking in.
            now: Time of the check-in; defaults to the current UTC time.

        Returns:
            The recorded status.

        Raises:
            InvalidQrTokenError: If no session carries the token.
            QrTokenExpiredError: If the token has expired.
            StudentNotEnrolledError: If the student is not enrolled in the subject.
        """
        now = ensure_utc(now) if now else utc_now()
        session = await self._get_session_by_token(token, now)

        enrolled = await self.db.execute(
            select(SubjectStudent.id).where(
                SubjectStudent.subject_id == session.subject_id,
                SubjectStudent.student_id == str(student_id),
            )
        )
        if enrolled.scalar_one_or_none() is None:
            raise StudentNotEnrolledError(
                f"Student {student_id} is not enrolled in subject {session.subject_id}"
            )

        result = await self.db.execute(
            select(AttendanceRecord).where(
                AttendanceRecord.session_id == session.id,
                AttendanceRecord.student_id == str(student_id),
            )
        )
        record = result.scalar_one_or_none()

        if record is not None and record.status in (
            AttendanceStatus.PRESENT,
            AttendanceStatus.LATE,
        ):
            return QrCheckInResponse(
                session_id=UUID(session.id),
                student_id=student_id,
                status=record.status,
                already_marked=True,
            )

        status = check_in_status(
            session.session_date, session.session_time, session.allow_late_after_minutes, now
        )
        if record is None:
            record = AttendanceRecord(session_id=session.id, student_id=str(student_id))
            self.db.add(record)
        record.status = status

        await commit_or_raise(self.db, "Attendance record was created concurrently, retry the request")

        logger.info(
            "Student %s checked in to session %s as %s", student_id, session.id, status.value
        )
        await record_activity(
            self.activity_log,
            str(student_id),
            "check_in",
            f"Checked in as {status.value}",
        )

        return QrCheckInResponse(session_id=UUID(session.id), student_id=student_id, status=status)

    async def _get_subject(self, subject_id: UUID) -> Subject:
        result = await self.db.execute(select(Subject).where(Subject.id == str(subject_id)))
        subject = result.scalar_one_or_none()

        if not subject:
            raise SubjectNotFoundError(f"Subject {subject_id} not found")

        return subject

    async def _get_session(self, subject_id: UUID, session_id: UUID) -> AttendanceSession:
        result = await self.db.execute(
            select(AttendanceSession).where(
                AttendanceSession.id == str(session_id),
                AttendanceSession.subject_id == str(subject_id),
            )
        )
        session = result.scalar_one_or_none()

        if not session:
            raise AttendanceSessionNotFoundError(
                f"Attendance session {session_id} not found in subject {subject_id}"
            )

        return session

    async def _get_session_by_token(self, token: str, now: datetime) -> AttendanceSession:
        result = await self.db.execute(
            select(AttendanceSession).where(AttendanceSession.qr_token == token)
        )
        session = result.scalar_one_or_none()

        if not session:
            raise InvalidQrTokenError("Invalid check-in token")
        if session.qr_expires_at is not None and ensure_utc(session.qr_expires_at) < now:
            raise QrTokenExpiredError("Check-in token has expired")

        return session

    async def _student_name(self, student_id: str) -> str:
        result = await self.db.execute(
            select(User, Profile)
            .outerjoin(Profile, Profile.user_id == User.id)
            .where(User.id == student_id)
        )
        row = result.one_or_none()
        if row is None:
            return student_id
        return self._name(student_id, *row)

    def _name(self, student_id: str, user: User | None, profile: Profile | None) -> str:
        if user is None:
            return student_id
        return display_name(
            profile.first_name if profile else None,
            profile.middle_name if profile else None,
            profile.last_name if profile else None,
            user.username,
        )

    def _stats(self, session_id: str, counts: dict[AttendanceStatus, int]) -> SessionStats:
        return SessionStats(
            session_id=UUID(session_id),
            present=counts.get(AttendanceStatus.PRESENT, 0),
            absent=counts.get(AttendanceStatus.ABSENT, 0),
            late=counts.get(AttendanceStatus.LATE, 0),
            excused=counts.get(AttendanceStatus.EXCUSED, 0),
            total=sum(counts.values()),
        )

    def _summary_fields(self, session: AttendanceSession, stats: SessionStats) -> dict:
        return {
            "id": UUID(session.id),
            "subject_id": UUID(session.subject_id),
            "session_date": session.session_date,
            "session_time": session.session_time,
            "is_visible": session.is_visible,
            "created_at": session.created_at,
            "stats": stats,
        }
