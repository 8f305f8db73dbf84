# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Attendance sessions and per-student records."""

from datetime import date, datetime, time

from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    String,
    Time,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from classroom.infrastructure.database.models.base import (
    Base,
    TimestampMixin,
    UUIDPrimaryKeyMixin,
)
from classroom.models.common import AttendanceStatus


class AttendanceSession(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """One dated roll call for a subject."""

    __tablename__ = "attendance_sessions"

    subject_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("subjects.id"), nullable=False, index=True
    )
    session_date: Mapped[date] = mapped_column(Date, nullable=False)
    session_time: Mapped[time | None] = mapped_column(Time, nullable=True)
    is_visible: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # Self check-in; a token is valid until qr_expires_at
    qr_token: Mapped[str | None] = mapped_column(String(64), nullable=True, unique=True)
    qr_expires_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    allow_late_after_minutes: Mapped[int | None] = mapped_column(Integer, nullable=True)


class AttendanceRecord(UUIDPrimaryKeyMixin, Base):
    """Status of one student in one session."""

    __tablename__ = "attendance_records"
    __table_args__ = (
        UniqueConstraint("session_id", "student_id", name="uq_attendance_record"),
    )

    session_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("attendance_sessions.id"), nullable=False, index=True
    )
    student_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id"), nullable=False, index=True
    )
    status: Mapped[AttendanceStatus] = mapped_column(
        Enum(
            AttendanceStatus,
            native_enum=False,
            length=20,
            values_callable=lambda enum: [member.value for member in enum],
        ),
        nullable=False,
        default=AttendanceStatus.ABSENT,
    )
