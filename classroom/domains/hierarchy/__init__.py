# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Academic hierarchy domain package.

This package provides hierarchy management functionality including:
- School year, semester, grade level, section and subject CRUD
- Active school year selection
- Cascading deletes down the hierarchy
"""

from classroom.domains.hierarchy.service import (
    GradeLevelNotFoundError,
    HierarchyService,
    ParentNotFoundError,
    SchoolYearExistsError,
    SchoolYearNotFoundError,
    SectionNotFoundError,
    SemesterNotFoundError,
    SubjectNotFoundError,
)

__all__ = [
    "HierarchyService",
    "SchoolYearNotFoundError",
    "SemesterNotFoundError",
    "GradeLevelNotFoundError",
    "SectionNotFoundError",
    "SubjectNotFoundError",
    "ParentNotFoundError",
    "SchoolYearExistsError",
]
