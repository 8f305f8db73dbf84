# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Submission service for coursework.

This module provides the SubmissionService class for:
- Folder CRUD within a subject
- Submission definitions with attached files
- Grade recording (single and bulk upsert)
- Grading roster of every enrolled student
"""

from __future__ import annotations

import logging
import math
from collections import defaultdict
from collections.abc import Sequence
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from classroom.core.exceptions import NotFoundError, ValidationError
from classroom.domains.activity import ActivityLog, record_activity
from classroom.domains.enrollment.directory import display_name, roster_order
from classroom.domains.hierarchy.service import SubjectNotFoundError
from classroom.infrastructure.database import cascade
from classroom.infrastructure.database.connection import commit_or_raise, storage_operation
from classroom.infrastructure.database.models import (
    Profile,
    StudentSubmission,
    Subject,
    SubjectStudent,
    Submission,
    SubmissionFile,
    SubmissionFolder,
    User,
)
from classroom.infrastructure.database.models.base import new_id
from classroom.models.common import GradingStatus
from classroom.models.submission import (
    BulkGradeRequest,
    FileAttachment,
    FolderCreateRequest,
    FolderResponse,
    GradeRequest,
    GradingRosterEntry,
    GradingRosterResponse,
    StudentGradeResponse,
    SubmissionCreateRequest,
    SubmissionFileResponse,
    SubmissionResponse,
    SubmissionUpdateRequest,
)
from classroom.utils.datetime import utc_now

logger = logging.getLogger(__name__)

MIN_GRADE = 0
MAX_GRADE = 100


class FolderNotFoundError(NotFoundError):
    """Raised when folder is not found."""

    pass


class SubmissionNotFoundError(NotFoundError):
    """Raised when submission is not found."""

    pass


class MissingFolderError(ValidationError):
    """Raised when a submission names a missing folder or one of another subject."""

    pass


class InvalidGradeError(ValidationError):
    """Raised when a grade is outside 0-100."""

    pass


def validate_grade(grade: float | None) -> float | None:
    """Check a grade value.

    Args:
        grade: Grade to check; None clears the grade.

    Returns:
        The grade as float, or None.

    Raises:
        InvalidGradeError: If the grade is not a number within 0-100.
    """
    if grade is None:
        return None

    if isinstance(grade, bool) or not isinstance(grade, (int, float)) or math.isnan(grade):
        raise InvalidGradeError(f"Grade must be a number, got {grade!r}")

    if not MIN_GRADE <= grade <= MAX_GRADE:
        raise InvalidGradeError(f"Grade must be between {MIN_GRADE} and {MAX_GRADE}, got {grade}")

    return float(grade)


class SubmissionService:
    """Service for folders, submissions, files and grades.

    Attributes:
        db: Async database session.
        activity_log: Optional best-effort activity sink.
    """

    def __init__(self, db: AsyncSession, activity_log: ActivityLog | None = None) -> None:
        """Initialize submission service.

        Args:
            db: Async database session.
            activity_log: Optional activity sink.
        """
        self.db = db
        self.activity_log = activity_log

    # =========================================================================
    # Folders
    # =========================================================================

    @storage_operation
    async def create_folder(
        self,
        subject_id: UUID,
        request: FolderCreateRequest,
        actor_id: str | None = None,
    ) -> FolderResponse:
        """Create a folder in a subject.

        Raises:
            SubjectNotFoundError: If subject not found.
            ValidationError: If the name is blank.
        """
        subject = await self._get_subject(subject_id)
        name = self._require_name(request.name)

        folder = SubmissionFolder(name=name, subject_id=subject.id)
        self.db.add(folder)
        await commit_or_raise(self.db)

        logger.info("Created folder: %s (%s)", folder.name, folder.id)
        await record_activity(self.activity_log, actor_id, "create", f"Created folder: {name}")

        return self._folder_response(folder, [])

    @storage_operation
    async def rename_folder(
        self,
        subject_id: UUID,
        folder_id: UUID,
        request: FolderCreateRequest,
        actor_id: str | None = None,
    ) -> FolderResponse:
        """Rename a folder.

        Raises:
            FolderNotFoundError: If the folder does not exist in the subject.
            ValidationError: If the name is blank.
        """
        folder = await self._get_folder(subject_id, folder_id)
        folder.name = self._require_name(request.name)
        await commit_or_raise(self.db)

        logger.info("Renamed folder %s to %s", folder_id, folder.name)
        await record_activity(
            self.activity_log, actor_id, "update", f"Renamed folder: {folder.name}"
        )

        submissions = await self._submissions_in(folder_ids=[folder.id])
        return self._folder_response(folder, submissions)

    @storage_operation
    async def delete_folder(
        self, subject_id: UUID, folder_id: UUID, actor_id: str | None = None
    ) -> None:
        """Delete a folder with its submissions, files and grades.

        Raises:
            FolderNotFoundError: If the folder does not exist in the subject.
        """
        folder = await self._get_folder(subject_id, folder_id)
        name = folder.name

        await cascade.delete_folders(self.db, [folder.id])
        await commit_or_raise(self.db)

        logger.info("Deleted folder: %s", folder_id)
        await record_activity(self.activity_log, actor_id, "delete", f"Deleted folder: {name}")

    @storage_operation
    async def list_folders(self, subject_id: UUID) -> list[FolderResponse]:
        """List folders of a subject in creation order, with nested submissions.

        Raises:
            SubjectNotFoundError: If subject not found.
        """
        subject = await self._get_subject(subject_id)

        result = await self.db.execute(
            select(SubmissionFolder)
            .where(SubmissionFolder.subject_id == subject.id)
            .order_by(SubmissionFolder.created_at.asc(), SubmissionFolder.name.asc())
        )
        folders = result.scalars().all()

        submissions = await self._submissions_in(subject_id=subject.id)
        by_folder: dict[str, list[SubmissionResponse]] = defaultdict(list)
        for submission in submissions:
            by_folder[str(submission.folder_id)].append(submission)

        return [self._folder_response(folder, by_folder[folder.id]) for folder in folders]

    # =========================================================================
    # Submissions
    # =========================================================================

    @storage_operation
    async def create_submission(
        self,
        subject_id: UUID,
        request: SubmissionCreateRequest,
        actor_id: str | None = None,
    ) -> SubmissionResponse:
        """Create a submission and its files in one transaction.

        Args:
            subject_id: Subject the submission belongs to.
            request: Submission fields and attached files.
            actor_id: ID of user performing the change.

        Returns:
            Created submission with files.

        Raises:
            ValidationError: If the name is blank.
            MissingFolderError: If the folder is missing, unknown or belongs
                to another subject.
        """
        name = self._require_name(request.name)
        folder = await self._require_folder(request.folder_id, subject_id)

        submission = Submission(
            id=new_id(),
            folder_id=folder.id,
            subject_id=folder.subject_id,
            name=name,
            description=request.description,
            due_date=request.due_date,
            due_time=request.due_time,
            max_attempts=request.max_attempts,
            is_visible=request.is_visible,
        )
        self.db.add(submission)

        files = self._build_files(submission.id, request.files)
        self.db.add_all(files)
        await commit_or_raise(self.db)

        logger.info(
            "Created submission: %s (%s) with %d files",
            submission.name,
            submission.id,
            len(files),
        )
        await record_activity(
            self.activity_log, actor_id, "create", f"Created submission: {name}"
        )

        return self._to_response(submission, files, folder.name)

    @storage_operation
    async def update_submission(
        self,
        subject_id: UUID,
        submission_id: UUID,
        request: SubmissionUpdateRequest,
        actor_id: str | None = None,
    ) -> SubmissionResponse:
        """Update a submission.

        Only fields set on the request are applied. When ``files`` is set,
        the stored files are replaced by the given list in the same
        transaction as the field update.

        Raises:
            SubmissionNotFoundError: If the submission does not exist in the subject.
            ValidationError: If a new name is blank.
        """
        submission = await self._get_submission(subject_id, submission_id)
        changes = request.model_dump(exclude_unset=True, exclude={"files"})

        if "name" in changes and changes["name"] is not None:
            submission.name = self._require_name(changes["name"])
        for field in ("description", "due_date", "due_time"):
            if field in changes:
                setattr(submission, field, changes[field])
        for field in ("max_attempts", "is_visible"):
            if changes.get(field) is not None:
                setattr(submission, field, changes[field])

        if request.files is not None:
            await self.db.execute(
                delete(SubmissionFile)
                .where(SubmissionFile.submission_id == submission.id)
                .execution_options(synchronize_session=False)
            )
            self.db.add_all(self._build_files(submission.id, request.files))

        await commit_or_raise(self.db)

        logger.info("Updated submission: %s", submission_id)
        await record_activity(
            self.activity_log, actor_id, "update", f"Updated submission: {submission.name}"
        )

        return await self.get_submission(subject_id, submission_id)

    @storage_operation
    async def get_submission(self, subject_id: UUID, submission_id: UUID) -> SubmissionResponse:
        """Get submission by ID with its files and folder name.

        Raises:
            SubmissionNotFoundError: If the submission does not exist in the subject.
        """
        submissions = await self._submissions_in(
            subject_id=str(subject_id), submission_ids=[str(submission_id)]
        )

        if not submissions:
            raise SubmissionNotFoundError(f"Submission {submission_id} not found")

        return submissions[0]

    @storage_operation
    async def list_submissions(self, subject_id: UUID) -> list[SubmissionResponse]:
        """List every submission of a subject, newest first."""
        return await self._submissions_in(subject_id=str(subject_id))

    @storage_operation
    async def delete_submission(
        self, subject_id: UUID, submission_id: UUID, actor_id: str | None = None
    ) -> None:
        """Delete a submission with its files and student grade rows.

        Raises:
            SubmissionNotFoundError: If the submission does not exist in the subject.
        """
        submission = await self._get_submission(subject_id, submission_id)
        name = submission.name

        await cascade.delete_submissions(self.db, [submission.id])
        await commit_or_raise(self.db)

        logger.info("Deleted submission: %s", submission_id)
        await record_activity(
            self.activity_log, actor_id, "delete", f"Deleted submission: {name}"
        )

    # =========================================================================
    # Grades
    # =========================================================================

    @storage_operation
    async def record_grade(
        self,
        subject_id: UUID,
        submission_id: UUID,
        request: GradeRequest,
        actor_id: str | None = None,
    ) -> StudentGradeResponse:
        """Record or clear one student's grade on a submission.

        Raises:
            SubmissionNotFoundError: If the submission does not exist in the subject.
            InvalidGradeError: If the grade is outside 0-100.
        """
        grade = validate_grade(request.grade)
        submission = await self._get_submission(subject_id, submission_id)

        row = await self._upsert_grade(
            submission.id, str(request.student_id), grade, request.feedback, actor_id
        )
        await commit_or_raise(self.db, "Grade was recorded concurrently, retry the request")

        logger.info(
            "Recorded grade for student %s on submission %s", request.student_id, submission_id
        )
        await record_activity(
            self.activity_log, actor_id, "grade", f"Graded submission: {submission.name}"
        )

        return self._grade_response(row)

    @storage_operation
    async def record_grades(
        self,
        subject_id: UUID,
        submission_id: UUID,
        request: BulkGradeRequest,
        actor_id: str | None = None,
    ) -> list[StudentGradeResponse]:
        """Record many grades in one transaction.

        Entries without a grade are skipped; when a student appears more
        than once the last entry wins. Every grade is validated before
        anything is written.

        Raises:
            SubmissionNotFoundError: If the submission does not exist in the subject.
            InvalidGradeError: If any grade is outside 0-100.
        """
        entries = {
            str(entry.student_id): entry for entry in request.grades if entry.grade is not None
        }
        grades = {student_id: validate_grade(entry.grade) for student_id, entry in entries.items()}
        submission = await self._get_submission(subject_id, submission_id)

        rows = []
        for student_id, entry in entries.items():
            rows.append(
                await self._upsert_grade(
                    submission.id, student_id, grades[student_id], entry.feedback, actor_id
                )
            )
        await commit_or_raise(self.db, "Grades were recorded concurrently, retry the request")

        logger.info("Recorded %d grades on submission %s", len(rows), submission_id)
        if rows:
            await record_activity(
                self.activity_log,
                actor_id,
                "grade",
                f"Graded {len(rows)} students on submission: {submission.name}",
            )

        return [self._grade_response(row) for row in rows]

    @storage_operation
    async def get_grading_roster(
        self,
        subject_id: UUID,
        submission_id: UUID,
    ) -> GradingRosterResponse:
        """List every enrolled student with their status on a submission.

        Raises:
            SubmissionNotFoundError: If the submission does not exist in the subject.
        """
        submission = await self.get_submission(subject_id, submission_id)

        query = (
            select(User, Profile, StudentSubmission)
            .join(SubjectStudent, SubjectStudent.student_id == User.id)
            .outerjoin(Profile, Profile.user_id == User.id)
            .outerjoin(
                StudentSubmission,
                (StudentSubmission.student_id == User.id)
                & (StudentSubmission.submission_id == str(submission_id)),
            )
            .where(SubjectStudent.subject_id == str(subject_id))
            .order_by(*roster_order())
        )
        result = await self.db.execute(query)

        students = []
        for user, profile, attempt in result.all():
            if attempt is None:
                status = GradingStatus.NOT_SUBMITTED
            elif attempt.grade is not None:
                status = GradingStatus.GRADED
            else:
                status = GradingStatus.SUBMITTED

            students.append(
                GradingRosterEntry(
                    student_id=UUID(user.id),
                    name=display_name(
                        profile.first_name if profile else None,
                        profile.middle_name if profile else None,
                        profile.last_name if profile else None,
                        user.username,
                    ),
                    email=user.email,
                    student_number=profile.employee_id if profile else None,
                    student_submission_id=UUID(attempt.id) if attempt else None,
                    attempt_number=attempt.attempt_number if attempt else None,
                    submitted_at=attempt.submitted_at if attempt else None,
                    grade=attempt.grade if attempt else None,
                    feedback=attempt.feedback if attempt else None,
                    graded_at=attempt.graded_at if attempt else None,
                    status=status,
                )
            )

        return GradingRosterResponse(submission=submission, students=students)

    # =========================================================================
    # Helpers
    # =========================================================================

    async def _upsert_grade(
        self,
        submission_id: str,
        student_id: str,
        grade: float | None,
        feedback: str | None,
        actor_id: str | None,
    ) -> StudentSubmission:
        result = await self.db.execute(
            select(StudentSubmission).where(
                StudentSubmission.submission_id == submission_id,
                StudentSubmission.student_id == student_id,
            )
        )
        row = result.scalar_one_or_none()

        if row is None:
            row = StudentSubmission(
                submission_id=submission_id,
                student_id=student_id,
                attempt_number=1,
            )
            self.db.add(row)

        row.grade = grade
        row.feedback = feedback
        row.graded_at = utc_now() if grade is not None else None
        row.graded_by = actor_id if grade is not None else None

        return row

    async def _submissions_in(
        self,
        subject_id: str | None = None,
        folder_ids: Sequence[str] | None = None,
        submission_ids: Sequence[str] | None = None,
    ) -> list[SubmissionResponse]:
        """Load submissions with folder names and files, newest first."""
        query = select(Submission, SubmissionFolder.name).join(
            SubmissionFolder, SubmissionFolder.id == Submission.folder_id
        )
        if subject_id is not None:
            query = query.where(Submission.subject_id == subject_id)
        if folder_ids is not None:
            query = query.where(Submission.folder_id.in_(folder_ids))
        if submission_ids is not None:
            query = query.where(Submission.id.in_(submission_ids))
        query = query.order_by(Submission.created_at.desc(), Submission.name.asc())

        rows = (await self.db.execute(query)).all()
        if not rows:
            return []

        files_result = await self.db.execute(
            select(SubmissionFile)
            .where(SubmissionFile.submission_id.in_([s.id for s, _ in rows]))
            .order_by(SubmissionFile.position.asc())
        )
        files: dict[str, list[SubmissionFile]] = defaultdict(list)
        for file in files_result.scalars().all():
            files[file.submission_id].append(file)

        return [
            self._to_response(submission, files[submission.id], folder_name)
            for submission, folder_name in rows
        ]

    async def _get_subject(self, subject_id: UUID) -> Subject:
        result = await self.db.execute(select(Subject).where(Subject.id == str(subject_id)))
        subject = result.scalar_one_or_none()

        if not subject:
            raise SubjectNotFoundError(f"Subject {subject_id} not found")

        return subject

    async def _get_folder(self, subject_id: UUID, folder_id: UUID) -> SubmissionFolder:
        result = await self.db.execute(
            select(SubmissionFolder).where(
                SubmissionFolder.id == str(folder_id),
                SubmissionFolder.subject_id == str(subject_id),
            )
        )
        folder = result.scalar_one_or_none()

        if not folder:
            raise FolderNotFoundError(f"Folder {folder_id} not found in subject {subject_id}")

        return folder

    async def _get_submission(self, subject_id: UUID, submission_id: UUID) -> Submission:
        result = await self.db.execute(
            select(Submission).where(
                Submission.id == str(submission_id),
                Submission.subject_id == str(subject_id),
            )
        )
        submission = result.scalar_one_or_none()

        if not submission:
            raise SubmissionNotFoundError(
                f"Submission {submission_id} not found in subject {subject_id}"
            )

        return submission

    async def _require_folder(self, folder_id: UUID | None, subject_id: UUID) -> SubmissionFolder:
        """Validate the folder reference of a new submission.

        Raises:
            MissingFolderError: If missing, unknown or in another subject.
        """
        if folder_id is None:
            raise MissingFolderError("Folder ID is required")

        result = await self.db.execute(
            select(SubmissionFolder).where(SubmissionFolder.id == str(folder_id))
        )
        folder = result.scalar_one_or_none()

        if not folder:
            raise MissingFolderError(f"Folder {folder_id} not found")
        if folder.subject_id != str(subject_id):
            raise MissingFolderError(f"Folder {folder_id} does not belong to subject {subject_id}")

        return folder

    def _require_name(self, name: str | None) -> str:
        text = (name or "").strip()
        if not text:
            raise ValidationError("Name is required")
        return text

    def _build_files(
        self, submission_id: str, attachments: Sequence[FileAttachment]
    ) -> list[SubmissionFile]:
        return [
            SubmissionFile(
                submission_id=submission_id,
                file_name=attachment.name,
                file_type=attachment.type,
                file_url=attachment.url,
                position=position,
            )
            for position, attachment in enumerate(attachments)
        ]

    def _to_response(
        self,
        submission: Submission,
        files: Sequence[SubmissionFile],
        folder_name: str | None = None,
    ) -> SubmissionResponse:
        return SubmissionResponse(
            id=UUID(submission.id),
            folder_id=UUID(submission.folder_id),
            folder_name=folder_name,
            subject_id=UUID(submission.subject_id),
            name=submission.name,
            description=submission.description,
            due_date=submission.due_date,
            due_time=submission.due_time,
            max_attempts=submission.max_attempts,
            is_visible=submission.is_visible,
            created_at=submission.created_at,
            files=[
                SubmissionFileResponse(
                    id=UUID(file.id),
                    name=file.file_name,
                    type=file.file_type,
                    url=file.file_url,
                )
                for file in files
            ],
        )

    def _folder_response(
        self,
        folder: SubmissionFolder,
        submissions: Sequence[SubmissionResponse],
    ) -> FolderResponse:
        return FolderResponse(
            id=UUID(folder.id),
            name=folder.name,
            subject_id=UUID(folder.subject_id),
            created_at=folder.created_at,
            submission_count=len(submissions),
            submissions=list(submissions),
        )

    def _grade_response(self, row: StudentSubmission) -> StudentGradeResponse:
        return StudentGradeResponse(
            id=UUID(row.id),
            submission_id=UUID(row.submission_id),
            student_id=UUID(row.student_id),
            attempt_number=row.attempt_number,
            grade=row.grade,
            feedback=row.feedback,
            graded_at=row.graded_at,
        )
