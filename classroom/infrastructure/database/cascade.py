# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Explicit, ordered cascading deletes.

Foreign keys are declared without ON DELETE CASCADE, so every delete of a
parent removes its descendants first, inside the caller's transaction.
Nothing is committed here; the calling service commits once, making the
whole cascade atomic.

Deletion order, leaf first:

    attendance_records
    attendance_sessions
    student_submissions
    submission_files
    submissions
    submission_folders
    subject_students
    subject_instructors
    subjects
    sections
    grade_levels
    semesters
    school_years

Each function stops at its own level; e.g. ``delete_sections`` runs the
subject cascade for the subjects beneath, then deletes the sections.
"""

import logging
from collections.abc import Sequence

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from classroom.infrastructure.database.models import (
    AttendanceRecord,
    AttendanceSession,
    GradeLevel,
    SchoolYear,
    Section,
    Semester,
    StudentSubmission,
    Subject,
    SubjectInstructor,
    SubjectStudent,
    Submission,
    SubmissionFile,
    SubmissionFolder,
)

logger = logging.getLogger(__name__)


async def _ids(db: AsyncSession, column, parent_column, parent_ids: Sequence[str]) -> list[str]:
    """Materialize child ids referencing any of the given parents."""
    if not parent_ids:
        return []
    result = await db.execute(select(column).where(parent_column.in_(parent_ids)))
    return list(result.scalars().all())


async def _delete(db: AsyncSession, model, column, values: Sequence[str]) -> int:
    """Bulk delete rows of a model whose column matches any value."""
    if not values:
        return 0
    result = await db.execute(
        delete(model)
        .where(column.in_(values))
        .execution_options(synchronize_session=False)
    )
    return result.rowcount or 0


async def delete_attendance_sessions(db: AsyncSession, session_ids: Sequence[str]) -> None:
    """Delete attendance sessions and their records."""
    await _delete(db, AttendanceRecord, AttendanceRecord.session_id, session_ids)
    await _delete(db, AttendanceSession, AttendanceSession.id, session_ids)


async def delete_submissions(db: AsyncSession, submission_ids: Sequence[str]) -> None:
    """Delete submissions with their grade rows and files."""
    await _delete(db, StudentSubmission, StudentSubmission.submission_id, submission_ids)
    await _delete(db, SubmissionFile, SubmissionFile.submission_id, submission_ids)
    await _delete(db, Submission, Submission.id, submission_ids)


async def delete_folders(db: AsyncSession, folder_ids: Sequence[str]) -> None:
    """Delete folders and every submission filed in them."""
    submission_ids = await _ids(db, Submission.id, Submission.folder_id, folder_ids)
    await delete_submissions(db, submission_ids)
    await _delete(db, SubmissionFolder, SubmissionFolder.id, folder_ids)


async def delete_subjects(db: AsyncSession, subject_ids: Sequence[str]) -> None:
    """Delete subjects with attendance, coursework and enrollment rows."""
    if not subject_ids:
        return

    session_ids = await _ids(
        db, AttendanceSession.id, AttendanceSession.subject_id, subject_ids
    )
    await delete_attendance_sessions(db, session_ids)

    submission_ids = await _ids(db, Submission.id, Submission.subject_id, subject_ids)
    await delete_submissions(db, submission_ids)
    await _delete(db, SubmissionFolder, SubmissionFolder.subject_id, subject_ids)

    await _delete(db, SubjectStudent, SubjectStudent.subject_id, subject_ids)
    await _delete(db, SubjectInstructor, SubjectInstructor.subject_id, subject_ids)
    await _delete(db, Subject, Subject.id, subject_ids)

    logger.debug("Cascade removed %d subjects", len(subject_ids))


async def delete_sections(db: AsyncSession, section_ids: Sequence[str]) -> None:
    """Delete sections and everything beneath them."""
    subject_ids = await _ids(db, Subject.id, Subject.section_id, section_ids)
    await delete_subjects(db, subject_ids)
    await _delete(db, Section, Section.id, section_ids)


async def delete_grade_levels(db: AsyncSession, grade_level_ids: Sequence[str]) -> None:
    """Delete grade levels and everything beneath them."""
    section_ids = await _ids(db, Section.id, Section.grade_level_id, grade_level_ids)
    await delete_sections(db, section_ids)
    await _delete(db, GradeLevel, GradeLevel.id, grade_level_ids)


async def delete_semesters(db: AsyncSession, semester_ids: Sequence[str]) -> None:
    """Delete semesters and everything beneath them."""
    grade_level_ids = await _ids(db, GradeLevel.id, GradeLevel.semester_id, semester_ids)
    await delete_grade_levels(db, grade_level_ids)
    await _delete(db, Semester, Semester.id, semester_ids)


async def delete_school_years(db: AsyncSession, school_year_ids: Sequence[str]) -> None:
    """Delete school years and everything beneath them."""
    semester_ids = await _ids(db, Semester.id, Semester.school_year_id, school_year_ids)
    await delete_semesters(db, semester_ids)
    await _delete(db, SchoolYear, SchoolYear.id, school_year_ids)
