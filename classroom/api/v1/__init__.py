# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""API v1 routes package.

Modules:
    courses: Academic hierarchy and subject roster endpoints.
    teacher: Instructor endpoints (folders, submissions, grades, attendance,
        statistics).
    student: Student self check-in endpoints.
"""

from fastapi import APIRouter

from classroom.api.v1 import courses, student, teacher

# Create the main v1 router
router = APIRouter(prefix="/api/v1")

# Include domain routers
router.include_router(courses.router, prefix="/courses", tags=["Courses"])
router.include_router(teacher.router, prefix="/teacher", tags=["Teacher"])
router.include_router(student.router, prefix="/student", tags=["Student"])

__all__ = ["router"]
