# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Activity log rows written by the database-backed activity sink."""

from datetime import datetime

from sqlalchemy import DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from classroom.infrastructure.database.models.base import Base, UUIDPrimaryKeyMixin
from classroom.utils.datetime import utc_now


class ActivityLogEntry(UUIDPrimaryKeyMixin, Base):
    """Who did what, in plain words."""

    __tablename__ = "activity_logs"

    actor_id: Mapped[str | None] = mapped_column(String(36), nullable=True, index=True)
    action: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now, index=True
    )
