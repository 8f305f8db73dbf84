# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for Grade statistics service."""

from uuid import UUID, uuid4

import pytest

from classroom.domains.grading import PASSING_THRESHOLD, GradeStatisticsService
from classroom.domains.hierarchy import SubjectNotFoundError


@pytest.fixture
def stats_service(db_session):
    """Create grade statistics service on the SQLite session."""
    return GradeStatisticsService(db=db_session)


class TestGradeStatisticsService:
    """Tests for subject grade aggregation."""

    @pytest.mark.asyncio
    async def test_mixed_grades(self, stats_service, seed):
        """Test counts, average and passing rate."""
        subject = await seed.subject()
        folder = await seed.folder(subject)
        submissions = [await seed.submission(subject, folder, name=f"Quiz {i}") for i in range(10)]
        students = [await seed.person(f"student{i}") for i in range(4)]
        for submission, student, grade in zip(submissions, students, (80, 60, 90, 70)):
            await seed.grade(submission, student.id, grade)

        stats = await stats_service.get_subject_grade_stats(UUID(subject.id))

        assert stats.total_submissions == 10
        assert stats.graded_count == 4
        assert stats.pending_count == 0
        assert stats.passing_count == 2
        assert stats.failing_count == 2
        assert stats.passing_rate == 50
        assert stats.average_grade == 75.0

    @pytest.mark.asyncio
    async def test_threshold_is_inclusive(self, stats_service, seed):
        """Test that a grade equal to the threshold passes."""
        subject = await seed.subject()
        folder = await seed.folder(subject)
        submission = await seed.submission(subject, folder)
        alice = await seed.person("alice")
        bob = await seed.person("bob")
        await seed.grade(submission, alice.id, PASSING_THRESHOLD)
        await seed.grade(submission, bob.id, 74.5)

        stats = await stats_service.get_subject_grade_stats(UUID(subject.id))

        assert stats.passing_count == 1
        assert stats.failing_count == 1
        # 74.75 rounds half up at one decimal
        assert stats.average_grade == 74.8

    @pytest.mark.asyncio
    async def test_pending_attempts(self, stats_service, seed):
        """Test that ungraded attempts count as pending only."""
        subject = await seed.subject()
        folder = await seed.folder(subject)
        submission = await seed.submission(subject, folder)
        alice = await seed.person("alice")
        bob = await seed.person("bob")
        await seed.grade(submission, alice.id, 88)
        await seed.grade(submission, bob.id, None)

        stats = await stats_service.get_subject_grade_stats(UUID(subject.id))

        assert stats.graded_count == 1
        assert stats.pending_count == 1
        assert stats.average_grade == 88.0
        assert stats.passing_rate == 100

    @pytest.mark.asyncio
    async def test_nothing_graded(self, stats_service, seed):
        """Test that the average is absent when nothing is graded."""
        subject = await seed.subject()
        folder = await seed.folder(subject)
        await seed.submission(subject, folder)

        stats = await stats_service.get_subject_grade_stats(UUID(subject.id))

        assert stats.total_submissions == 1
        assert stats.graded_count == 0
        assert stats.average_grade is None
        assert stats.passing_rate == 0

    @pytest.mark.asyncio
    async def test_other_subjects_ignored(self, stats_service, seed):
        """Test that only the requested subject's grades are aggregated."""
        subject = await seed.subject()
        other = await seed.subject(name="Science", year="2023-2024")
        other_folder = await seed.folder(other)
        other_submission = await seed.submission(other, other_folder)
        alice = await seed.person("alice")
        await seed.grade(other_submission, alice.id, 99)

        stats = await stats_service.get_subject_grade_stats(UUID(subject.id))

        assert stats.total_submissions == 0
        assert stats.graded_count == 0

    @pytest.mark.asyncio
    async def test_unknown_subject(self, stats_service):
        """Test statistics of an unknown subject."""
        with pytest.raises(SubjectNotFoundError):
            await stats_service.get_subject_grade_stats(uuid4())
