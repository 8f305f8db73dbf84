# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Integration tests for Courses API endpoints."""

from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from classroom.api.app import create_app
from classroom.api.dependencies import get_enrollment_service, get_hierarchy_service
from classroom.domains.enrollment import AlreadyEnrolledError, InvalidRoleError
from classroom.domains.hierarchy import (
    ParentNotFoundError,
    SchoolYearExistsError,
    SchoolYearNotFoundError,
)
from classroom.infrastructure.database.connection import DatabaseError
from classroom.models.common import Role
from classroom.models.enrollment import PersonSummary
from classroom.models.hierarchy import SchoolYearResponse, SemesterResponse

NOW = datetime(2024, 6, 1, tzinfo=timezone.utc)


@pytest.fixture
def hierarchy_service():
    """Create mock hierarchy service."""
    service = MagicMock()
    for name in (
        "create_school_year",
        "list_school_years",
        "get_school_year",
        "set_active_school_year",
        "delete_school_year",
        "create_semester",
    ):
        setattr(service, name, AsyncMock())
    return service


@pytest.fixture
def enrollment_service():
    """Create mock enrollment service."""
    service = MagicMock()
    for name in ("assign_student", "assign_instructor", "remove_student", "list_available"):
        setattr(service, name, AsyncMock())
    return service


@pytest.fixture
def app(hierarchy_service, enrollment_service):
    """Create test app with mocked services."""
    app = create_app()
    app.dependency_overrides[get_hierarchy_service] = lambda: hierarchy_service
    app.dependency_overrides[get_enrollment_service] = lambda: enrollment_service
    return app


@pytest.fixture
def client(app):
    """Create test client."""
    return TestClient(app)


def school_year(year="2024-2025", is_active=False):
    return SchoolYearResponse(
        id=uuid4(), year=year, is_active=is_active, created_at=NOW, semester_count=0
    )


class TestCoursesAPIRouting:
    """Tests for courses API routing."""

    def test_routes_registered(self, app):
        """Test that course routes are registered."""
        routes = [getattr(route, "path", None) for route in app.routes]

        assert "/api/v1/courses/school-years" in routes
        assert "/api/v1/courses/school-years/{year_id}" in routes
        assert "/api/v1/courses/school-years/{year_id}/activate" in routes
        assert "/api/v1/courses/school-years/{year_id}/semesters" in routes
        assert "/api/v1/courses/semesters/{semester_id}/grade-levels" in routes
        assert "/api/v1/courses/grade-levels/{grade_level_id}/sections" in routes
        assert "/api/v1/courses/sections/{section_id}/subjects" in routes
        assert "/api/v1/courses/subjects/{subject_id}/instructors" in routes
        assert "/api/v1/courses/subjects/{subject_id}/students/{student_id}" in routes
        assert "/api/v1/courses/people" in routes


class TestSchoolYearEndpoints:
    """Tests for school year endpoints."""

    def test_create_school_year(self, client, hierarchy_service):
        """Test creating a school year returns 201."""
        hierarchy_service.create_school_year.return_value = school_year(is_active=True)

        response = client.post(
            "/api/v1/courses/school-years",
            json={"year": "2024-2025", "is_active": True},
            headers={"X-Actor-Id": "admin-1"},
        )

        assert response.status_code == 201
        assert response.json()["year"] == "2024-2025"
        assert response.json()["is_active"] is True
        request, actor_id = hierarchy_service.create_school_year.await_args.args
        assert request.year == "2024-2025"
        assert actor_id == "admin-1"

    def test_create_duplicate_year(self, client, hierarchy_service):
        """Test that a duplicate year label returns 409."""
        hierarchy_service.create_school_year.side_effect = SchoolYearExistsError(
            "School year 2024-2025 already exists"
        )

        response = client.post("/api/v1/courses/school-years", json={"year": "2024-2025"})

        assert response.status_code == 409
        assert response.json()["error"] == "SchoolYearExistsError"
        assert "already exists" in response.json()["detail"]

    def test_create_missing_field(self, client):
        """Test that request validation errors keep FastAPI's 422."""
        response = client.post("/api/v1/courses/school-years", json={})

        assert response.status_code == 422

    def test_list_school_years(self, client, hierarchy_service):
        """Test listing school years."""
        hierarchy_service.list_school_years.return_value = [
            school_year("2025-2026"),
            school_year("2024-2025"),
        ]

        response = client.get("/api/v1/courses/school-years")

        assert response.status_code == 200
        assert [y["year"] for y in response.json()] == ["2025-2026", "2024-2025"]

    def test_get_missing_year(self, client, hierarchy_service):
        """Test that a missing school year returns 404."""
        hierarchy_service.get_school_year.side_effect = SchoolYearNotFoundError("not found")

        response = client.get(f"/api/v1/courses/school-years/{uuid4()}")

        assert response.status_code == 404

    def test_invalid_uuid(self, client):
        """Test that a malformed id is rejected before the service."""
        response = client.get("/api/v1/courses/school-years/not-a-uuid")

        assert response.status_code == 422

    def test_activate(self, client, hierarchy_service):
        """Test setting the active school year."""
        hierarchy_service.set_active_school_year.return_value = school_year(is_active=True)

        response = client.post(f"/api/v1/courses/school-years/{uuid4()}/activate")

        assert response.status_code == 200
        assert response.json()["is_active"] is True

    def test_delete(self, client, hierarchy_service):
        """Test deleting a school year."""
        year_id = uuid4()

        response = client.delete(f"/api/v1/courses/school-years/{year_id}")

        assert response.status_code == 200
        assert response.json()["success"] is True
        assert hierarchy_service.delete_school_year.await_args.args[0] == year_id

    def test_storage_failure(self, client, hierarchy_service):
        """Test that storage failures return 503."""
        hierarchy_service.list_school_years.side_effect = DatabaseError("Transaction failed")

        response = client.get("/api/v1/courses/school-years")

        assert response.status_code == 503


class TestSemesterEndpoints:
    """Tests for semester endpoints."""

    def test_create_semester(self, client, hierarchy_service):
        """Test creating a semester."""
        year_id = uuid4()
        hierarchy_service.create_semester.return_value = SemesterResponse(
            id=uuid4(), name="First Semester", school_year_id=year_id, created_at=NOW
        )

        response = client.post(
            "/api/v1/courses/semesters",
            json={"name": "First Semester", "school_year_id": str(year_id)},
        )

        assert response.status_code == 201
        assert response.json()["school_year_id"] == str(year_id)

    def test_create_semester_missing_parent(self, client, hierarchy_service):
        """Test that a missing parent returns 400."""
        hierarchy_service.create_semester.side_effect = ParentNotFoundError(
            "School year is required"
        )

        response = client.post("/api/v1/courses/semesters", json={"name": "First Semester"})

        assert response.status_code == 400
        assert response.json()["detail"] == "School year is required"


class TestRosterEndpoints:
    """Tests for instructor and student roster endpoints."""

    def test_enroll_student(self, client, enrollment_service):
        """Test enrolling a student returns 201."""
        subject_id, student_id = uuid4(), uuid4()

        response = client.post(
            f"/api/v1/courses/subjects/{subject_id}/students",
            json={"student_id": str(student_id)},
        )

        assert response.status_code == 201
        assert enrollment_service.assign_student.await_args.args == (subject_id, student_id, None)

    def test_enroll_twice(self, client, enrollment_service):
        """Test that a duplicate enrollment returns 409."""
        enrollment_service.assign_student.side_effect = AlreadyEnrolledError("already enrolled")

        response = client.post(
            f"/api/v1/courses/subjects/{uuid4()}/students",
            json={"student_id": str(uuid4())},
        )

        assert response.status_code == 409

    def test_assign_wrong_role(self, client, enrollment_service):
        """Test that a role mismatch returns 400."""
        enrollment_service.assign_instructor.side_effect = InvalidRoleError("wrong role")

        response = client.post(
            f"/api/v1/courses/subjects/{uuid4()}/instructors",
            json={"instructor_id": str(uuid4())},
        )

        assert response.status_code == 400
        assert response.json()["error"] == "InvalidRoleError"

    def test_remove_student(self, client, enrollment_service):
        """Test removing a student."""
        response = client.delete(f"/api/v1/courses/subjects/{uuid4()}/students/{uuid4()}")

        assert response.status_code == 200
        enrollment_service.remove_student.assert_awaited_once()

    def test_list_people(self, client, enrollment_service):
        """Test listing people by role."""
        enrollment_service.list_available.return_value = [
            PersonSummary(id=uuid4(), username="tlim", role=Role.INSTRUCTOR, name="Tess Lim")
        ]

        response = client.get("/api/v1/courses/people", params={"role": "instructor"})

        assert response.status_code == 200
        assert response.json()[0]["name"] == "Tess Lim"
        enrollment_service.list_available.assert_awaited_once_with(Role.INSTRUCTOR)

    def test_list_people_unknown_role(self, client):
        """Test that an unknown role is rejected."""
        response = client.get("/api/v1/courses/people", params={"role": "janitor"})

        assert response.status_code == 422
