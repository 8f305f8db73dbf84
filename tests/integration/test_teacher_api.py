# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Integration tests for Teacher API endpoints."""

import asyncio
from datetime import date, datetime, timezone
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from classroom.api.app import create_app
from classroom.api.dependencies import (
    get_attendance_service,
    get_enrollment_service,
    get_grade_statistics_service,
    get_submission_service,
)
from classroom.core.config import clear_settings_cache
from classroom.domains.attendance import AttendanceSessionNotFoundError
from classroom.domains.submission import (
    InvalidGradeError,
    MissingFolderError,
    SubmissionNotFoundError,
)
from classroom.models.attendance import (
    AttendanceSessionDetail,
    QrTokenResponse,
    SessionStats,
    SubjectAttendanceStats,
)
from classroom.models.enrollment import InstructorSubjectSummary
from classroom.models.grading import SubjectGradeStats
from classroom.models.submission import StudentGradeResponse, SubmissionResponse

NOW = datetime(2024, 9, 2, 8, 0, tzinfo=timezone.utc)


def async_service(*methods):
    service = MagicMock()
    for name in methods:
        setattr(service, name, AsyncMock())
    return service


@pytest.fixture
def enrollment_service():
    return async_service("list_instructor_subjects")


@pytest.fixture
def submission_service():
    return async_service(
        "create_submission",
        "update_submission",
        "delete_submission",
        "record_grade",
        "record_grades",
    )


@pytest.fixture
def attendance_service():
    return async_service(
        "create_session", "get_session", "generate_qr_token", "get_subject_stats"
    )


@pytest.fixture
def grade_stats_service():
    return async_service("get_subject_grade_stats")


@pytest.fixture
def app(enrollment_service, submission_service, attendance_service, grade_stats_service):
    """Create test app with mocked services."""
    app = create_app()
    app.dependency_overrides[get_enrollment_service] = lambda: enrollment_service
    app.dependency_overrides[get_submission_service] = lambda: submission_service
    app.dependency_overrides[get_attendance_service] = lambda: attendance_service
    app.dependency_overrides[get_grade_statistics_service] = lambda: grade_stats_service
    return app


@pytest.fixture
def client(app):
    """Create test client."""
    return TestClient(app)


def submission_response(subject_id, folder_id, **overrides):
    fields = {
        "id": uuid4(),
        "folder_id": folder_id,
        "folder_name": "Quizzes",
        "subject_id": subject_id,
        "name": "Quiz 1",
        "max_attempts": 1,
        "is_visible": False,
        "created_at": NOW,
    }
    fields.update(overrides)
    return SubmissionResponse(**fields)


class TestMySubjects:
    """Tests for the instructor subject listing."""

    def test_requires_actor(self, client):
        """Test that the actor header is required."""
        response = client.get("/api/v1/teacher/subjects")

        assert response.status_code == 401

    def test_lists_actor_subjects(self, client, enrollment_service):
        """Test that subjects are listed for the calling actor."""
        enrollment_service.list_instructor_subjects.return_value = [
            InstructorSubjectSummary(
                id=uuid4(),
                name="Mathematics",
                section_id=uuid4(),
                section_name="Section A",
                grade_level_name="Grade 7",
                semester_name="First Semester",
                school_year="2024-2025",
                student_count=30,
            )
        ]

        response = client.get("/api/v1/teacher/subjects", headers={"X-Actor-Id": "teacher-1"})

        assert response.status_code == 200
        assert response.json()[0]["student_count"] == 30
        enrollment_service.list_instructor_subjects.assert_awaited_once_with("teacher-1")


class TestSubmissionEndpoints:
    """Tests for submission endpoints."""

    def test_create_submission(self, client, submission_service):
        """Test creating a submission with files."""
        subject_id, folder_id = uuid4(), uuid4()
        submission_service.create_submission.return_value = submission_response(
            subject_id, folder_id
        )

        response = client.post(
            f"/api/v1/teacher/subjects/{subject_id}/submissions",
            json={
                "folder_id": str(folder_id),
                "name": "Quiz 1",
                "files": [{"name": "q1.pdf", "url": "https://files.test/q1.pdf"}],
            },
        )

        assert response.status_code == 201
        assert response.json()["name"] == "Quiz 1"
        _, request, _ = submission_service.create_submission.await_args.args
        assert request.files[0].name == "q1.pdf"

    def test_create_submission_missing_folder(self, client, submission_service):
        """Test that a missing folder returns 400."""
        submission_service.create_submission.side_effect = MissingFolderError(
            "Folder ID is required"
        )

        response = client.post(
            f"/api/v1/teacher/subjects/{uuid4()}/submissions", json={"name": "Quiz 1"}
        )

        assert response.status_code == 400
        assert response.json()["error"] == "MissingFolderError"

    def test_update_submission_partial(self, client, submission_service):
        """Test that only sent fields reach the service."""
        subject_id, submission_id = uuid4(), uuid4()
        submission_service.update_submission.return_value = submission_response(
            subject_id, uuid4(), id=submission_id, name="Renamed"
        )

        response = client.put(
            f"/api/v1/teacher/subjects/{subject_id}/submissions/{submission_id}",
            json={"name": "Renamed"},
        )

        assert response.status_code == 200
        subject_arg, submission_arg, request, _ = (
            submission_service.update_submission.await_args.args
        )
        assert (subject_arg, submission_arg) == (subject_id, submission_id)
        assert request.model_fields_set == {"name"}
        assert request.files is None

    def test_record_grade(self, client, submission_service):
        """Test recording one grade."""
        subject_id, submission_id, student_id = uuid4(), uuid4(), uuid4()
        submission_service.record_grade.return_value = StudentGradeResponse(
            id=uuid4(),
            submission_id=submission_id,
            student_id=student_id,
            attempt_number=1,
            grade=88,
            graded_at=NOW,
        )

        response = client.put(
            f"/api/v1/teacher/subjects/{subject_id}/submissions/{submission_id}/grade",
            json={"student_id": str(student_id), "grade": 88},
            headers={"X-Actor-Id": "teacher-1"},
        )

        assert response.status_code == 200
        assert response.json()["grade"] == 88
        args = submission_service.record_grade.await_args.args
        assert args[:2] == (subject_id, submission_id)
        assert args[3] == "teacher-1"

    def test_record_grade_out_of_range(self, client, submission_service):
        """Test that an invalid grade returns 400."""
        submission_service.record_grade.side_effect = InvalidGradeError(
            "Grade must be between 0 and 100, got 120.0"
        )

        response = client.put(
            f"/api/v1/teacher/subjects/{uuid4()}/submissions/{uuid4()}/grade",
            json={"student_id": str(uuid4()), "grade": 120},
        )

        assert response.status_code == 400

    def test_record_grades_bulk(self, client, submission_service):
        """Test bulk grading."""
        submission_service.record_grades.return_value = []

        response = client.post(
            f"/api/v1/teacher/subjects/{uuid4()}/submissions/{uuid4()}/grades",
            json={"grades": [{"student_id": str(uuid4()), "grade": 90}]},
        )

        assert response.status_code == 200
        _, _, request, _ = submission_service.record_grades.await_args.args
        assert request.grades[0].grade == 90

    def test_delete_submission_scoped_to_subject(self, client, submission_service):
        """Test that the subject in the path reaches the service."""
        subject_id, submission_id = uuid4(), uuid4()
        submission_service.delete_submission.side_effect = SubmissionNotFoundError(
            f"Submission {submission_id} not found in subject {subject_id}"
        )

        response = client.delete(
            f"/api/v1/teacher/subjects/{subject_id}/submissions/{submission_id}"
        )

        assert response.status_code == 404
        submission_service.delete_submission.assert_awaited_once_with(
            subject_id, submission_id, None
        )


class TestAttendanceEndpoints:
    """Tests for attendance endpoints."""

    def test_create_session(self, client, attendance_service):
        """Test creating an attendance session."""
        subject_id, session_id = uuid4(), uuid4()
        attendance_service.create_session.return_value = AttendanceSessionDetail(
            id=session_id,
            subject_id=subject_id,
            session_date=date(2024, 9, 2),
            is_visible=False,
            created_at=NOW,
            stats=SessionStats(session_id=session_id, absent=1, total=1),
            records=[],
        )
        student_id = uuid4()

        response = client.post(
            f"/api/v1/teacher/subjects/{subject_id}/attendance",
            json={"session_date": "2024-09-02", "roster": [str(student_id)]},
        )

        assert response.status_code == 201
        assert response.json()["stats"]["absent"] == 1
        _, request, _ = attendance_service.create_session.await_args.args
        assert request.roster == [student_id]

    def test_invalid_status_rejected(self, client):
        """Test that an unknown attendance status is rejected."""
        response = client.put(
            f"/api/v1/teacher/subjects/{uuid4()}/attendance/{uuid4()}/records/{uuid4()}",
            json={"status": "sleeping"},
        )

        assert response.status_code == 422

    def test_missing_session(self, client, attendance_service):
        """Test that a session of another subject returns 404."""
        subject_id, session_id = uuid4(), uuid4()
        attendance_service.get_session.side_effect = AttendanceSessionNotFoundError("not found")

        response = client.get(f"/api/v1/teacher/subjects/{subject_id}/attendance/{session_id}")

        assert response.status_code == 404
        attendance_service.get_session.assert_awaited_once_with(subject_id, session_id)

    def test_generate_qr_token(self, client, attendance_service):
        """Test opening a session for check-in."""
        subject_id, session_id = uuid4(), uuid4()
        attendance_service.generate_qr_token.return_value = QrTokenResponse(
            session_id=session_id,
            token="ab" * 32,
            expires_at=NOW,
            late_after_minutes=10,
        )

        response = client.post(
            f"/api/v1/teacher/subjects/{subject_id}/attendance/{session_id}/qr",
            json={"expires_in_minutes": 30, "late_after_minutes": 10},
        )

        assert response.status_code == 200
        assert response.json()["token"] == "ab" * 32
        args = attendance_service.generate_qr_token.await_args.args
        assert args[:2] == (subject_id, session_id)
        assert args[2].expires_in_minutes == 30

    def test_generate_qr_token_invalid_lifetime(self, client):
        response = client.post(
            f"/api/v1/teacher/subjects/{uuid4()}/attendance/{uuid4()}/qr",
            json={"expires_in_minutes": 0},
        )

        assert response.status_code == 422

    def test_subject_attendance_stats(self, client, attendance_service):
        """Test subject attendance statistics."""
        subject_id = uuid4()
        attendance_service.get_subject_stats.return_value = SubjectAttendanceStats(
            subject_id=subject_id,
            total_sessions=1,
            total_present=5,
            total_absent=2,
            total_late=1,
            total_records=8,
            total_students=8,
            average_attendance=75,
        )

        response = client.get(f"/api/v1/teacher/subjects/{subject_id}/attendance-stats")

        assert response.status_code == 200
        assert response.json()["average_attendance"] == 75

    def test_request_deadline(self, client, attendance_service, monkeypatch):
        """Test that an operation exceeding the deadline returns 503."""
        monkeypatch.setenv("API_REQUEST_TIMEOUT", "0.01")
        clear_settings_cache()

        async def slow(*args, **kwargs):
            await asyncio.sleep(1)

        attendance_service.get_subject_stats.side_effect = slow

        response = client.get(f"/api/v1/teacher/subjects/{uuid4()}/attendance-stats")

        assert response.status_code == 503


class TestGradeStatsEndpoint:
    """Tests for the grade statistics endpoint."""

    def test_grade_stats(self, client, grade_stats_service):
        """Test subject grade statistics."""
        subject_id = uuid4()
        grade_stats_service.get_subject_grade_stats.return_value = SubjectGradeStats(
            subject_id=subject_id,
            total_submissions=10,
            graded_count=4,
            average_grade=75.0,
            passing_count=2,
            failing_count=2,
            passing_rate=50,
        )

        response = client.get(f"/api/v1/teacher/subjects/{subject_id}/grade-stats")

        assert response.status_code == 200
        assert response.json()["passing_rate"] == 50
        assert response.json()["average_grade"] == 75.0
