# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Best-effort activity logging."""

from classroom.domains.activity.service import (
    ActivityLog,
    DatabaseActivityLog,
    NullActivityLog,
    record_activity,
)

__all__ = [
    "ActivityLog",
    "DatabaseActivityLog",
    "NullActivityLog",
    "record_activity",
]
