# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Student API endpoints.

This module provides the self check-in endpoints:
- GET /attendance/qr - Session behind a scanned token
- POST /attendance/qr/check-in - Mark the calling student present or late
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status

from classroom.api.dependencies import bounded, get_attendance_service, require_actor_id
from classroom.domains.attendance import AttendanceService
from classroom.models.attendance import QrCheckInRequest, QrCheckInResponse, QrSessionPreview

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get(
    "/attendance/qr",
    response_model=QrSessionPreview,
    summary="Preview check-in",
)
async def preview_check_in(
    token: str = Query(..., min_length=1),
    service: AttendanceService = Depends(get_attendance_service),
) -> QrSessionPreview:
    """Show the session a token opens and whether a check-in now would be late."""
    return await bounded(service.preview_qr_token(token))


@router.post(
    "/attendance/qr/check-in",
    response_model=QrCheckInResponse,
    summary="Check in",
)
async def check_in(
    data: QrCheckInRequest,
    actor_id: str = Depends(require_actor_id),
    service: AttendanceService = Depends(get_attendance_service),
) -> QrCheckInResponse:
    """Record the calling student's attendance from a scanned token.

    Returns 404 for an unknown token and 400 when the token has expired or
    the student is not enrolled in the subject.
    """
    try:
        student_id = UUID(actor_id)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="X-Actor-Id must be a person id",
        )

    logger.info("Check-in by student %s", student_id)
    return await bounded(service.check_in(data.token, student_id))
