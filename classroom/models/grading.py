# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Response model for subject grade statistics."""

from uuid import UUID

from pydantic import BaseModel


class SubjectGradeStats(BaseModel):
    """Grades aggregated over every submission of a subject.

    Attributes:
        total_submissions: Number of submission definitions (not attempts).
        graded_count: Student attempts with a grade.
        pending_count: Student attempts still waiting for a grade.
        average_grade: Mean grade rounded to one decimal; None when nothing
            has been graded yet.
        passing_rate: Integer percentage of graded attempts at or above the
            passing threshold; 0 when nothing has been graded.
    """

    subject_id: UUID
    total_submissions: int = 0
    graded_count: int = 0
    pending_count: int = 0
    average_grade: float | None = None
    passing_count: int = 0
    failing_count: int = 0
    passing_rate: int = 0
