# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""DateTime utilities.

All timestamps are stored in UTC and all Python datetimes are
timezone-aware, so naive/aware mixing never happens.

Usage:
    from classroom.utils.datetime import utc_now

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now)
"""

from datetime import datetime, timezone


def utc_now() -> datetime:
    """Get current UTC time as timezone-aware datetime.

    Returns:
        Timezone-aware datetime representing current UTC time.
    """
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime) -> datetime:
    """Ensure a datetime is timezone-aware in UTC.

    Naive datetimes are assumed to already be UTC (SQLite returns naive
    values for ``DateTime(timezone=True)`` columns).

    Args:
        dt: Datetime to normalize.

    Returns:
        Timezone-aware UTC datetime.
    """
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)
