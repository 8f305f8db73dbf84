# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Enrollment domain package.

This package provides subject roster functionality including:
- Instructor assignment and student enrollment
- Role validation through the person directory
- Roster listings with display names
"""

from classroom.domains.enrollment.directory import (
    PersonDirectory,
    PersonNotFoundError,
    SqlPersonDirectory,
    display_name,
)
from classroom.domains.enrollment.service import (
    AlreadyAssignedError,
    AlreadyEnrolledError,
    EnrollmentService,
    InvalidRoleError,
)

__all__ = [
    "EnrollmentService",
    "InvalidRoleError",
    "AlreadyAssignedError",
    "AlreadyEnrolledError",
    "PersonDirectory",
    "PersonNotFoundError",
    "SqlPersonDirectory",
    "display_name",
]
