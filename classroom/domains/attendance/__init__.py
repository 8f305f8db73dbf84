# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Attendance domain package.

This package provides attendance functionality including:
- Session creation with initial per-student records
- Record updates and replacement
- Self check-in with expiring tokens
- Session and subject attendance statistics
"""

from classroom.domains.attendance.service import (
    AttendanceService,
    AttendanceSessionNotFoundError,
    InvalidQrTokenError,
    QrTokenExpiredError,
    StudentNotEnrolledError,
    check_in_status,
    resolve_marks,
)

__all__ = [
    "AttendanceService",
    "AttendanceSessionNotFoundError",
    "InvalidQrTokenError",
    "QrTokenExpiredError",
    "StudentNotEnrolledError",
    "check_in_status",
    "resolve_marks",
]
