# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Submission domain package.

This package provides coursework functionality including:
- Folders grouping a subject's submissions
- Submission definitions with attached files
- Grade recording and grading rosters
"""

from classroom.domains.submission.service import (
    FolderNotFoundError,
    InvalidGradeError,
    MissingFolderError,
    SubmissionNotFoundError,
    SubmissionService,
    validate_grade,
)

__all__ = [
    "SubmissionService",
    "FolderNotFoundError",
    "SubmissionNotFoundError",
    "MissingFolderError",
    "InvalidGradeError",
    "validate_grade",
]
