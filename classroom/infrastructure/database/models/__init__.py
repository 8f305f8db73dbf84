# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""ORM models.

Importing this package registers every table on ``Base.metadata``.
"""

from classroom.infrastructure.database.models.activity import ActivityLogEntry
from classroom.infrastructure.database.models.attendance import (
    AttendanceRecord,
    AttendanceSession,
)
from classroom.infrastructure.database.models.base import (
    Base,
    TimestampMixin,
    UUIDPrimaryKeyMixin,
)
from classroom.infrastructure.database.models.coursework import (
    StudentSubmission,
    Submission,
    SubmissionFile,
    SubmissionFolder,
)
from classroom.infrastructure.database.models.school import (
    GradeLevel,
    SchoolYear,
    Section,
    Semester,
    Subject,
    SubjectInstructor,
    SubjectStudent,
)
from classroom.infrastructure.database.models.user import Profile, User

__all__ = [
    "Base",
    "TimestampMixin",
    "UUIDPrimaryKeyMixin",
    "SchoolYear",
    "Semester",
    "GradeLevel",
    "Section",
    "Subject",
    "SubjectInstructor",
    "SubjectStudent",
    "User",
    "Profile",
    "SubmissionFolder",
    "Submission",
    "SubmissionFile",
    "StudentSubmission",
    "AttendanceSession",
    "AttendanceRecord",
    "ActivityLogEntry",
]
