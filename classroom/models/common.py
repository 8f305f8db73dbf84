# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Common enums and base models."""

from enum import Enum

from pydantic import BaseModel, ConfigDict


class Role(str, Enum):
    """Role of a person known to the directory."""

    ADMIN = "admin"
    INSTRUCTOR = "instructor"
    STUDENT = "student"


class AttendanceStatus(str, Enum):
    """Status of one student in one attendance session."""

    PRESENT = "present"
    ABSENT = "absent"
    LATE = "late"
    EXCUSED = "excused"


class GradingStatus(str, Enum):
    """Where a student stands on one submission."""

    GRADED = "graded"
    SUBMITTED = "submitted"
    NOT_SUBMITTED = "not_submitted"


class SuccessResponse(BaseModel):
    """Generic acknowledgement for writes that return nothing else."""

    success: bool = True


class ORMModel(BaseModel):
    """Base for response models populated from ORM rows."""

    model_config = ConfigDict(from_attributes=True)
