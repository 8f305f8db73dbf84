# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Grade statistics service.

Read-only aggregation of StudentSubmission grades over every submission of
a subject. Nothing is cached; each call recomputes from the stored rows.
"""

import logging
from uuid import UUID

from sqlalchemy import case, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from classroom.domains.hierarchy.service import SubjectNotFoundError
from classroom.infrastructure.database.connection import storage_operation
from classroom.infrastructure.database.models import StudentSubmission, Subject, Submission
from classroom.models.grading import SubjectGradeStats
from classroom.utils.numbers import percentage, round_half_up

logger = logging.getLogger(__name__)

PASSING_THRESHOLD = 75


class GradeStatisticsService:
    """Service computing subject-level grade aggregates.

    Attributes:
        db: Async database session.
    """

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    @storage_operation
    async def get_subject_grade_stats(self, subject_id: UUID) -> SubjectGradeStats:
        """Aggregate grades across every submission of a subject.

        Args:
            subject_id: Subject identifier.

        Returns:
            Submission count, graded and pending attempts, average grade
            (None when nothing is graded) and pass/fail counts at the
            passing threshold.

        Raises:
            SubjectNotFoundError: If subject not found.
        """
        result = await self.db.execute(select(Subject.id).where(Subject.id == str(subject_id)))
        if result.scalar_one_or_none() is None:
            raise SubjectNotFoundError(f"Subject {subject_id} not found")

        submissions_result = await self.db.execute(
            select(func.count(Submission.id)).where(Submission.subject_id == str(subject_id))
        )
        total_submissions = submissions_result.scalar() or 0

        graded = StudentSubmission.grade.is_not(None)
        grades_result = await self.db.execute(
            select(
                func.count(StudentSubmission.grade),
                func.coalesce(func.sum(case((StudentSubmission.grade.is_(None), 1), else_=0)), 0),
                func.avg(StudentSubmission.grade),
                func.coalesce(
                    func.sum(
                        case((graded & (StudentSubmission.grade >= PASSING_THRESHOLD), 1), else_=0)
                    ),
                    0,
                ),
            )
            .select_from(StudentSubmission)
            .join(Submission, Submission.id == StudentSubmission.submission_id)
            .where(Submission.subject_id == str(subject_id))
        )
        graded_count, pending_count, average, passing_count = grades_result.one()

        graded_count = int(graded_count or 0)
        passing_count = int(passing_count or 0)

        logger.debug(
            "Grade stats for subject %s: %d graded, %d pending",
            subject_id,
            graded_count,
            pending_count,
        )

        return SubjectGradeStats(
            subject_id=UUID(str(subject_id)),
            total_submissions=total_submissions,
            graded_count=graded_count,
            pending_count=int(pending_count or 0),
            average_grade=(
                round_half_up(float(average), 1) if graded_count and average is not None else None
            ),
            passing_count=passing_count,
            failing_count=graded_count - passing_count,
            passing_rate=percentage(passing_count, graded_count),
        )
