# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Course structure API endpoints.

This module provides endpoints for the academic hierarchy and rosters:
- /school-years, /semesters, /grade-levels, /sections, /subjects - CRUD
- POST /school-years/{year_id}/activate - Set the active school year
- /subjects/{subject_id}/instructors - Instructor assignment
- /subjects/{subject_id}/students - Student enrollment
- GET /people - Persons available for assignment

Domain errors are mapped to HTTP status codes by the application's
exception handlers.
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from classroom.api.dependencies import (
    bounded,
    get_actor_id,
    get_enrollment_service,
    get_hierarchy_service,
)
from classroom.domains.enrollment import EnrollmentService
from classroom.domains.hierarchy import HierarchyService
from classroom.models.common import Role, SuccessResponse
from classroom.models.enrollment import (
    AssignInstructorRequest,
    AssignStudentRequest,
    PersonSummary,
    RosterInstructor,
    RosterStudent,
)
from classroom.models.hierarchy import (
    GradeLevelCreateRequest,
    GradeLevelResponse,
    NameUpdateRequest,
    SchoolYearCreateRequest,
    SchoolYearResponse,
    SchoolYearUpdateRequest,
    SectionCreateRequest,
    SectionResponse,
    SemesterCreateRequest,
    SemesterResponse,
    SubjectCreateRequest,
    SubjectResponse,
    SubjectUpdateRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter()


# =============================================================================
# School years
# =============================================================================


@router.get("/school-years", response_model=list[SchoolYearResponse], summary="List school years")
async def list_school_years(
    service: HierarchyService = Depends(get_hierarchy_service),
) -> list[SchoolYearResponse]:
    return await bounded(service.list_school_years())


@router.post(
    "/school-years",
    response_model=SchoolYearResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create school year",
)
async def create_school_year(
    data: SchoolYearCreateRequest,
    actor_id: str | None = Depends(get_actor_id),
    service: HierarchyService = Depends(get_hierarchy_service),
) -> SchoolYearResponse:
    """Create a school year.

    Returns 409 when the year label is already taken.
    """
    return await bounded(service.create_school_year(data, actor_id))


@router.get("/school-years/{year_id}", response_model=SchoolYearResponse)
async def get_school_year(
    year_id: UUID,
    service: HierarchyService = Depends(get_hierarchy_service),
) -> SchoolYearResponse:
    return await bounded(service.get_school_year(year_id))


@router.put("/school-years/{year_id}", response_model=SchoolYearResponse)
async def update_school_year(
    year_id: UUID,
    data: SchoolYearUpdateRequest,
    actor_id: str | None = Depends(get_actor_id),
    service: HierarchyService = Depends(get_hierarchy_service),
) -> SchoolYearResponse:
    return await bounded(service.update_school_year(year_id, data, actor_id))


@router.post(
    "/school-years/{year_id}/activate",
    response_model=SchoolYearResponse,
    summary="Set active school year",
)
async def activate_school_year(
    year_id: UUID,
    actor_id: str | None = Depends(get_actor_id),
    service: HierarchyService = Depends(get_hierarchy_service),
) -> SchoolYearResponse:
    return await bounded(service.set_active_school_year(year_id, actor_id))


@router.delete(
    "/school-years/{year_id}",
    response_model=SuccessResponse,
    summary="Delete school year",
    description="Delete a school year and everything beneath it.",
)
async def delete_school_year(
    year_id: UUID,
    actor_id: str | None = Depends(get_actor_id),
    service: HierarchyService = Depends(get_hierarchy_service),
) -> SuccessResponse:
    await bounded(service.delete_school_year(year_id, actor_id))
    return SuccessResponse()


# =============================================================================
# Semesters
# =============================================================================


@router.get("/school-years/{year_id}/semesters", response_model=list[SemesterResponse])
async def list_semesters(
    year_id: UUID,
    service: HierarchyService = Depends(get_hierarchy_service),
) -> list[SemesterResponse]:
    return await bounded(service.list_semesters(year_id))


@router.post("/semesters", response_model=SemesterResponse, status_code=status.HTTP_201_CREATED)
async def create_semester(
    data: SemesterCreateRequest,
    actor_id: str | None = Depends(get_actor_id),
    service: HierarchyService = Depends(get_hierarchy_service),
) -> SemesterResponse:
    return await bounded(service.create_semester(data, actor_id))


@router.get("/semesters/{semester_id}", response_model=SemesterResponse)
async def get_semester(
    semester_id: UUID,
    service: HierarchyService = Depends(get_hierarchy_service),
) -> SemesterResponse:
    return await bounded(service.get_semester(semester_id))


@router.put("/semesters/{semester_id}", response_model=SemesterResponse)
async def update_semester(
    semester_id: UUID,
    data: NameUpdateRequest,
    actor_id: str | None = Depends(get_actor_id),
    service: HierarchyService = Depends(get_hierarchy_service),
) -> SemesterResponse:
    return await bounded(service.update_semester(semester_id, data, actor_id))


@router.delete("/semesters/{semester_id}", response_model=SuccessResponse)
async def delete_semester(
    semester_id: UUID,
    actor_id: str | None = Depends(get_actor_id),
    service: HierarchyService = Depends(get_hierarchy_service),
) -> SuccessResponse:
    await bounded(service.delete_semester(semester_id, actor_id))
    return SuccessResponse()


# =============================================================================
# Grade levels
# =============================================================================


@router.get("/semesters/{semester_id}/grade-levels", response_model=list[GradeLevelResponse])
async def list_grade_levels(
    semester_id: UUID,
    service: HierarchyService = Depends(get_hierarchy_service),
) -> list[GradeLevelResponse]:
    return await bounded(service.list_grade_levels(semester_id))


@router.post(
    "/grade-levels", response_model=GradeLevelResponse, status_code=status.HTTP_201_CREATED
)
async def create_grade_level(
    data: GradeLevelCreateRequest,
    actor_id: str | None = Depends(get_actor_id),
    service: HierarchyService = Depends(get_hierarchy_service),
) -> GradeLevelResponse:
    return await bounded(service.create_grade_level(data, actor_id))


@router.get("/grade-levels/{grade_level_id}", response_model=GradeLevelResponse)
async def get_grade_level(
    grade_level_id: UUID,
    service: HierarchyService = Depends(get_hierarchy_service),
) -> GradeLevelResponse:
    return await bounded(service.get_grade_level(grade_level_id))


@router.put("/grade-levels/{grade_level_id}", response_model=GradeLevelResponse)
async def update_grade_level(
    grade_level_id: UUID,
    data: NameUpdateRequest,
    actor_id: str | None = Depends(get_actor_id),
    service: HierarchyService = Depends(get_hierarchy_service),
) -> GradeLevelResponse:
    return await bounded(service.update_grade_level(grade_level_id, data, actor_id))


@router.delete("/grade-levels/{grade_level_id}", response_model=SuccessResponse)
async def delete_grade_level(
    grade_level_id: UUID,
    actor_id: str | None = Depends(get_actor_id),
    service: HierarchyService = Depends(get_hierarchy_service),
) -> SuccessResponse:
    await bounded(service.delete_grade_level(grade_level_id, actor_id))
    return SuccessResponse()


# =============================================================================
# Sections
# =============================================================================


@router.get("/grade-levels/{grade_level_id}/sections", response_model=list[SectionResponse])
async def list_sections(
    grade_level_id: UUID,
    service: HierarchyService = Depends(get_hierarchy_service),
) -> list[SectionResponse]:
    return await bounded(service.list_sections(grade_level_id))


@router.post("/sections", response_model=SectionResponse, status_code=status.HTTP_201_CREATED)
async def create_section(
    data: SectionCreateRequest,
    actor_id: str | None = Depends(get_actor_id),
    service: HierarchyService = Depends(get_hierarchy_service),
) -> SectionResponse:
    return await bounded(service.create_section(data, actor_id))


@router.get("/sections/{section_id}", response_model=SectionResponse)
async def get_section(
    section_id: UUID,
    service: HierarchyService = Depends(get_hierarchy_service),
) -> SectionResponse:
    return await bounded(service.get_section(section_id))


@router.put("/sections/{section_id}", response_model=SectionResponse)
async def update_section(
    section_id: UUID,
    data: NameUpdateRequest,
    actor_id: str | None = Depends(get_actor_id),
    service: HierarchyService = Depends(get_hierarchy_service),
) -> SectionResponse:
    return await bounded(service.update_section(section_id, data, actor_id))


@router.delete("/sections/{section_id}", response_model=SuccessResponse)
async def delete_section(
    section_id: UUID,
    actor_id: str | None = Depends(get_actor_id),
    service: HierarchyService = Depends(get_hierarchy_service),
) -> SuccessResponse:
    await bounded(service.delete_section(section_id, actor_id))
    return SuccessResponse()


# =============================================================================
# Subjects
# =============================================================================


@router.get("/sections/{section_id}/subjects", response_model=list[SubjectResponse])
async def list_subjects(
    section_id: UUID,
    service: HierarchyService = Depends(get_hierarchy_service),
) -> list[SubjectResponse]:
    return await bounded(service.list_subjects(section_id))


@router.post("/subjects", response_model=SubjectResponse, status_code=status.HTTP_201_CREATED)
async def create_subject(
    data: SubjectCreateRequest,
    actor_id: str | None = Depends(get_actor_id),
    service: HierarchyService = Depends(get_hierarchy_service),
) -> SubjectResponse:
    return await bounded(service.create_subject(data, actor_id))


@router.get("/subjects/{subject_id}", response_model=SubjectResponse)
async def get_subject(
    subject_id: UUID,
    service: HierarchyService = Depends(get_hierarchy_service),
) -> SubjectResponse:
    return await bounded(service.get_subject(subject_id))


@router.put("/subjects/{subject_id}", response_model=SubjectResponse)
async def update_subject(
    subject_id: UUID,
    data: SubjectUpdateRequest,
    actor_id: str | None = Depends(get_actor_id),
    service: HierarchyService = Depends(get_hierarchy_service),
) -> SubjectResponse:
    return await bounded(service.update_subject(subject_id, data, actor_id))


@router.delete(
    "/subjects/{subject_id}",
    response_model=SuccessResponse,
    description="Delete a subject with its coursework, attendance and rosters.",
)
async def delete_subject(
    subject_id: UUID,
    actor_id: str | None = Depends(get_actor_id),
    service: HierarchyService = Depends(get_hierarchy_service),
) -> SuccessResponse:
    await bounded(service.delete_subject(subject_id, actor_id))
    return SuccessResponse()


# =============================================================================
# Rosters
# =============================================================================


@router.get("/subjects/{subject_id}/instructors", response_model=list[RosterInstructor])
async def list_instructors(
    subject_id: UUID,
    service: EnrollmentService = Depends(get_enrollment_service),
) -> list[RosterInstructor]:
    return await bounded(service.list_instructors(subject_id))


@router.post(
    "/subjects/{subject_id}/instructors",
    response_model=SuccessResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Assign instructor",
)
async def assign_instructor(
    subject_id: UUID,
    data: AssignInstructorRequest,
    actor_id: str | None = Depends(get_actor_id),
    service: EnrollmentService = Depends(get_enrollment_service),
) -> SuccessResponse:
    """Assign an instructor to a subject.

    Returns 409 when already assigned and 400 when the person is not an
    instructor.
    """
    await bounded(service.assign_instructor(subject_id, data.instructor_id, actor_id))
    return SuccessResponse()


@router.delete(
    "/subjects/{subject_id}/instructors/{instructor_id}",
    response_model=SuccessResponse,
)
async def remove_instructor(
    subject_id: UUID,
    instructor_id: UUID,
    actor_id: str | None = Depends(get_actor_id),
    service: EnrollmentService = Depends(get_enrollment_service),
) -> SuccessResponse:
    await bounded(service.remove_instructor(subject_id, instructor_id, actor_id))
    return SuccessResponse()


@router.get("/subjects/{subject_id}/students", response_model=list[RosterStudent])
async def list_students(
    subject_id: UUID,
    service: EnrollmentService = Depends(get_enrollment_service),
) -> list[RosterStudent]:
    return await bounded(service.list_students(subject_id))


@router.post(
    "/subjects/{subject_id}/students",
    response_model=SuccessResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Enroll student",
)
async def assign_student(
    subject_id: UUID,
    data: AssignStudentRequest,
    actor_id: str | None = Depends(get_actor_id),
    service: EnrollmentService = Depends(get_enrollment_service),
) -> SuccessResponse:
    await bounded(service.assign_student(subject_id, data.student_id, actor_id))
    return SuccessResponse()


@router.delete("/subjects/{subject_id}/students/{student_id}", response_model=SuccessResponse)
async def remove_student(
    subject_id: UUID,
    student_id: UUID,
    actor_id: str | None = Depends(get_actor_id),
    service: EnrollmentService = Depends(get_enrollment_service),
) -> SuccessResponse:
    await bounded(service.remove_student(subject_id, student_id, actor_id))
    return SuccessResponse()


@router.get(
    "/people",
    response_model=list[PersonSummary],
    summary="List people by role",
    description="Persons available for instructor assignment or enrollment.",
)
async def list_people(
    role: Role = Query(description="Role to list"),
    service: EnrollmentService = Depends(get_enrollment_service),
) -> list[PersonSummary]:
    return await bounded(service.list_available(role))
