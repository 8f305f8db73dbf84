# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Instructor API endpoints.

This module provides the endpoints an instructor uses inside a subject:
- GET /subjects - Subjects taught by the calling instructor
- /subjects/{subject_id}/folders - Folder management
- /subjects/{subject_id}/submissions - Submissions, files and grades
- /subjects/{subject_id}/attendance - Attendance sessions and records
- GET /subjects/{subject_id}/attendance-stats - Subject attendance statistics
- GET /subjects/{subject_id}/grade-stats - Subject grade statistics
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, status

from classroom.api.dependencies import (
    bounded,
    get_actor_id,
    get_attendance_service,
    get_enrollment_service,
    get_grade_statistics_service,
    get_submission_service,
    require_actor_id,
)
from classroom.domains.attendance import AttendanceService
from classroom.domains.enrollment import EnrollmentService
from classroom.domains.grading import GradeStatisticsService
from classroom.domains.submission import SubmissionService
from classroom.models.attendance import (
    AttendanceRecordResponse,
    AttendanceRecordsReplaceRequest,
    AttendanceRecordUpdateRequest,
    AttendanceSessionCreateRequest,
    AttendanceSessionDetail,
    AttendanceSessionSummary,
    QrTokenRequest,
    QrTokenResponse,
    SessionStats,
    SubjectAttendanceStats,
)
from classroom.models.common import SuccessResponse
from classroom.models.enrollment import InstructorSubjectSummary
from classroom.models.grading import SubjectGradeStats
from classroom.models.submission import (
    BulkGradeRequest,
    FolderCreateRequest,
    FolderResponse,
    GradeRequest,
    GradingRosterResponse,
    StudentGradeResponse,
    SubmissionCreateRequest,
    SubmissionResponse,
    SubmissionUpdateRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get(
    "/subjects",
    response_model=list[InstructorSubjectSummary],
    summary="List my subjects",
)
async def list_my_subjects(
    actor_id: str = Depends(require_actor_id),
    service: EnrollmentService = Depends(get_enrollment_service),
) -> list[InstructorSubjectSummary]:
    """List subjects taught by the calling instructor."""
    return await bounded(service.list_instructor_subjects(actor_id))


# =============================================================================
# Folders
# =============================================================================


@router.get("/subjects/{subject_id}/folders", response_model=list[FolderResponse])
async def list_folders(
    subject_id: UUID,
    service: SubmissionService = Depends(get_submission_service),
) -> list[FolderResponse]:
    return await bounded(service.list_folders(subject_id))


@router.post(
    "/subjects/{subject_id}/folders",
    response_model=FolderResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_folder(
    subject_id: UUID,
    data: FolderCreateRequest,
    actor_id: str | None = Depends(get_actor_id),
    service: SubmissionService = Depends(get_submission_service),
) -> FolderResponse:
    return await bounded(service.create_folder(subject_id, data, actor_id))


@router.put("/subjects/{subject_id}/folders/{folder_id}", response_model=FolderResponse)
async def rename_folder(
    subject_id: UUID,
    folder_id: UUID,
    data: FolderCreateRequest,
    actor_id: str | None = Depends(get_actor_id),
    service: SubmissionService = Depends(get_submission_service),
) -> FolderResponse:
    return await bounded(service.rename_folder(subject_id, folder_id, data, actor_id))


@router.delete("/subjects/{subject_id}/folders/{folder_id}", response_model=SuccessResponse)
async def delete_folder(
    subject_id: UUID,
    folder_id: UUID,
    actor_id: str | None = Depends(get_actor_id),
    service: SubmissionService = Depends(get_submission_service),
) -> SuccessResponse:
    await bounded(service.delete_folder(subject_id, folder_id, actor_id))
    return SuccessResponse()


# =============================================================================
# Submissions
# =============================================================================


@router.get("/subjects/{subject_id}/submissions", response_model=list[SubmissionResponse])
async def list_submissions(
    subject_id: UUID,
    service: SubmissionService = Depends(get_submission_service),
) -> list[SubmissionResponse]:
    return await bounded(service.list_submissions(subject_id))


@router.post(
    "/subjects/{subject_id}/submissions",
    response_model=SubmissionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create submission",
)
async def create_submission(
    subject_id: UUID,
    data: SubmissionCreateRequest,
    actor_id: str | None = Depends(get_actor_id),
    service: SubmissionService = Depends(get_submission_service),
) -> SubmissionResponse:
    """Create a submission with its attached files.

    Returns 400 when the name is blank or the folder is missing.
    """
    logger.info("Creating submission %s in subject %s by %s", data.name, subject_id, actor_id)
    return await bounded(service.create_submission(subject_id, data, actor_id))


@router.get(
    "/subjects/{subject_id}/submissions/{submission_id}",
    response_model=SubmissionResponse,
)
async def get_submission(
    subject_id: UUID,
    submission_id: UUID,
    service: SubmissionService = Depends(get_submission_service),
) -> SubmissionResponse:
    return await bounded(service.get_submission(subject_id, submission_id))


@router.put(
    "/subjects/{subject_id}/submissions/{submission_id}",
    response_model=SubmissionResponse,
    description="Fields left out are unchanged. A files list replaces all attachments.",
)
async def update_submission(
    subject_id: UUID,
    submission_id: UUID,
    data: SubmissionUpdateRequest,
    actor_id: str | None = Depends(get_actor_id),
    service: SubmissionService = Depends(get_submission_service),
) -> SubmissionResponse:
    return await bounded(service.update_submission(subject_id, submission_id, data, actor_id))


@router.delete(
    "/subjects/{subject_id}/submissions/{submission_id}",
    response_model=SuccessResponse,
)
async def delete_submission(
    subject_id: UUID,
    submission_id: UUID,
    actor_id: str | None = Depends(get_actor_id),
    service: SubmissionService = Depends(get_submission_service),
) -> SuccessResponse:
    await bounded(service.delete_submission(subject_id, submission_id, actor_id))
    return SuccessResponse()


@router.get(
    "/subjects/{subject_id}/submissions/{submission_id}/grades",
    response_model=GradingRosterResponse,
    summary="Grading roster",
)
async def get_grading_roster(
    subject_id: UUID,
    submission_id: UUID,
    service: SubmissionService = Depends(get_submission_service),
) -> GradingRosterResponse:
    return await bounded(service.get_grading_roster(subject_id, submission_id))


@router.post(
    "/subjects/{subject_id}/submissions/{submission_id}/grades",
    response_model=list[StudentGradeResponse],
    summary="Record grades",
)
async def record_grades(
    subject_id: UUID,
    submission_id: UUID,
    data: BulkGradeRequest,
    actor_id: str | None = Depends(get_actor_id),
    service: SubmissionService = Depends(get_submission_service),
) -> list[StudentGradeResponse]:
    return await bounded(service.record_grades(subject_id, submission_id, data, actor_id))


@router.put(
    "/subjects/{subject_id}/submissions/{submission_id}/grade",
    response_model=StudentGradeResponse,
    summary="Record one grade",
)
async def record_grade(
    subject_id: UUID,
    submission_id: UUID,
    data: GradeRequest,
    actor_id: str | None = Depends(get_actor_id),
    service: SubmissionService = Depends(get_submission_service),
) -> StudentGradeResponse:
    return await bounded(service.record_grade(subject_id, submission_id, data, actor_id))


# =============================================================================
# Attendance
# =============================================================================


@router.get(
    "/subjects/{subject_id}/attendance",
    response_model=list[AttendanceSessionSummary],
)
async def list_attendance_sessions(
    subject_id: UUID,
    service: AttendanceService = Depends(get_attendance_service),
) -> list[AttendanceSessionSummary]:
    return await bounded(service.list_sessions(subject_id))


@router.post(
    "/subjects/{subject_id}/attendance",
    response_model=AttendanceSessionDetail,
    status_code=status.HTTP_201_CREATED,
    summary="Create attendance session",
)
async def create_attendance_session(
    subject_id: UUID,
    data: AttendanceSessionCreateRequest,
    actor_id: str | None = Depends(get_actor_id),
    service: AttendanceService = Depends(get_attendance_service),
) -> AttendanceSessionDetail:
    return await bounded(service.create_session(subject_id, data, actor_id))


@router.get(
    "/subjects/{subject_id}/attendance/{session_id}",
    response_model=AttendanceSessionDetail,
)
async def get_attendance_session(
    subject_id: UUID,
    session_id: UUID,
    service: AttendanceService = Depends(get_attendance_service),
) -> AttendanceSessionDetail:
    return await bounded(service.get_session(subject_id, session_id))


@router.delete(
    "/subjects/{subject_id}/attendance/{session_id}",
    response_model=SuccessResponse,
)
async def delete_attendance_session(
    subject_id: UUID,
    session_id: UUID,
    actor_id: str | None = Depends(get_actor_id),
    service: AttendanceService = Depends(get_attendance_service),
) -> SuccessResponse:
    await bounded(service.delete_session(subject_id, session_id, actor_id))
    return SuccessResponse()


@router.put(
    "/subjects/{subject_id}/attendance/{session_id}/records",
    response_model=AttendanceSessionDetail,
    summary="Replace attendance records",
)
async def replace_attendance_records(
    subject_id: UUID,
    session_id: UUID,
    data: AttendanceRecordsReplaceRequest,
    actor_id: str | None = Depends(get_actor_id),
    service: AttendanceService = Depends(get_attendance_service),
) -> AttendanceSessionDetail:
    return await bounded(service.replace_records(subject_id, session_id, data, actor_id))


@router.put(
    "/subjects/{subject_id}/attendance/{session_id}/records/{student_id}",
    response_model=AttendanceRecordResponse,
)
async def update_attendance_record(
    subject_id: UUID,
    session_id: UUID,
    student_id: UUID,
    data: AttendanceRecordUpdateRequest,
    actor_id: str | None = Depends(get_actor_id),
    service: AttendanceService = Depends(get_attendance_service),
) -> AttendanceRecordResponse:
    return await bounded(service.update_record(subject_id, session_id, student_id, data, actor_id))


@router.get(
    "/subjects/{subject_id}/attendance/{session_id}/stats",
    response_model=SessionStats,
)
async def get_session_stats(
    subject_id: UUID,
    session_id: UUID,
    service: AttendanceService = Depends(get_attendance_service),
) -> SessionStats:
    return await bounded(service.get_session_stats(subject_id, session_id))


@router.post(
    "/subjects/{subject_id}/attendance/{session_id}/qr",
    response_model=QrTokenResponse,
    summary="Open session for check-in",
)
async def generate_qr_token(
    subject_id: UUID,
    session_id: UUID,
    data: QrTokenRequest,
    actor_id: str | None = Depends(get_actor_id),
    service: AttendanceService = Depends(get_attendance_service),
) -> QrTokenResponse:
    """Issue a check-in token students scan to mark themselves present."""
    return await bounded(service.generate_qr_token(subject_id, session_id, data, actor_id))


# =============================================================================
# Statistics
# =============================================================================


@router.get(
    "/subjects/{subject_id}/attendance-stats",
    response_model=SubjectAttendanceStats,
    summary="Subject attendance statistics",
)
async def get_subject_attendance_stats(
    subject_id: UUID,
    service: AttendanceService = Depends(get_attendance_service),
) -> SubjectAttendanceStats:
    return await bounded(service.get_subject_stats(subject_id))


@router.get(
    "/subjects/{subject_id}/grade-stats",
    response_model=SubjectGradeStats,
    summary="Subject grade statistics",
)
async def get_subject_grade_stats(
    subject_id: UUID,
    service: GradeStatisticsService = Depends(get_grade_statistics_service),
) -> SubjectGradeStats:
    return await bounded(service.get_subject_grade_stats(subject_id))
