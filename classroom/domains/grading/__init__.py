# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Grade statistics domain package."""

from classroom.domains.grading.service import PASSING_THRESHOLD, GradeStatisticsService

__all__ = ["GradeStatisticsService", "PASSING_THRESHOLD"]
